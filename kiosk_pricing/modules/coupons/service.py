"""
Validación de cupones

Los errores de validación se devuelven en el resultado (no se lanzan)
para que la caja los muestre junto al carrito.
"""

from datetime import datetime
from typing import Optional
import logging

from sqlalchemy.orm import Session

from kiosk_pricing.modules.coupons.models import Coupon
from kiosk_pricing.modules.coupons.schemas import CouponValidation
from kiosk_pricing.modules.promotions.models import Promotion
from kiosk_pricing.modules.promotions.schedule import local_now, to_local

logger = logging.getLogger(__name__)

COUPON_NOT_FOUND = "Coupon not found."
COUPON_INACTIVE = "Coupon is not active."
COUPON_EXPIRED = "Coupon has expired."
COUPON_USAGE_LIMIT = "Coupon has reached its usage limit."
COUPON_WRONG_CUSTOMER = "Coupon is not valid for this customer."
COUPON_WITHOUT_PROMOTION = "Coupon is not linked to any promotion."
COUPON_PROMOTION_INACTIVE = "The promotion linked to this coupon is not active."


class CouponValidator:

    def __init__(self, db: Session):
        self.db = db

    def validate(
        self,
        code: str,
        customer_id: Optional[int] = None,
        as_of: Optional[datetime] = None
    ) -> CouponValidation:
        """
        Validar un cupón y resolver su promoción

        El orden de las verificaciones define el mensaje que ve el cliente:
        existencia, estado, vencimiento, cupo, cliente, promoción ligada
        y estado de la promoción. La vigencia horaria de la promoción no
        se verifica, solo su bandera is_active.
        """
        moment = to_local(as_of) if as_of else local_now()

        coupon = self.db.query(Coupon).filter(Coupon.code == code).first()
        if not coupon:
            return CouponValidation(valid=False, error=COUPON_NOT_FOUND)

        if not coupon.is_active:
            return CouponValidation(valid=False, coupon=coupon, error=COUPON_INACTIVE)

        if coupon.expires_at is not None and to_local(coupon.expires_at) < moment:
            return CouponValidation(valid=False, coupon=coupon, error=COUPON_EXPIRED)

        if coupon.max_uses is not None and (coupon.current_uses or 0) >= coupon.max_uses:
            return CouponValidation(valid=False, coupon=coupon, error=COUPON_USAGE_LIMIT)

        if coupon.customer_id is not None and coupon.customer_id != customer_id:
            return CouponValidation(valid=False, coupon=coupon, error=COUPON_WRONG_CUSTOMER)

        if not coupon.promotion_id:
            return CouponValidation(valid=False, coupon=coupon, error=COUPON_WITHOUT_PROMOTION)

        promotion = self.db.query(Promotion).filter(Promotion.id == coupon.promotion_id).first()
        if promotion is None:
            logger.warning(
                f"Data integrity: coupon '{coupon.code}' references missing promotion {coupon.promotion_id}"
            )
            return CouponValidation(valid=False, coupon=coupon, error=COUPON_PROMOTION_INACTIVE)

        if not promotion.is_active:
            return CouponValidation(valid=False, coupon=coupon, error=COUPON_PROMOTION_INACTIVE)

        return CouponValidation(valid=True, coupon=coupon, promotion=promotion)
