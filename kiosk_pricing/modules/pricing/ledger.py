"""
Libro de usos de promociones y cupones

El motor de precios nunca modifica contadores. El endpoint que confirma
la venta debe llamar a record_redemption DENTRO de la misma transacción
que guarda la venta y hacer commit él mismo. Los incrementos son
actualizaciones condicionales atómicas:

    UPDATE coupons SET current_uses = current_uses + 1
    WHERE code = :code AND (max_uses IS NULL OR current_uses < max_uses)

así dos ventas concurrentes no pueden superar el cupo. Si la
actualización no afecta filas se lanza QuotaExceededError y el llamador
debe hacer rollback.
"""

from typing import Dict, Optional
import logging

from sqlalchemy import func, or_, update
from sqlalchemy.orm import Session

from kiosk_pricing.modules.coupons.models import Coupon
from kiosk_pricing.modules.pricing.exceptions import InconsistentDataError, QuotaExceededError
from kiosk_pricing.modules.pricing.schemas import CartTotal
from kiosk_pricing.modules.promotions.models import Promotion, PromotionUsage

logger = logging.getLogger(__name__)


class UsageLedger:
    """Lecturas y escrituras de cupos de uso sobre la sesión del llamador"""

    def __init__(self, db: Session):
        self.db = db

    def customer_redemptions(self, promotion_id: str, customer_id: int) -> int:
        """Cantidad de veces que un cliente ha redimido una promoción"""
        count = self.db.query(func.count(PromotionUsage.id)).filter(
            PromotionUsage.promotion_id == promotion_id,
            PromotionUsage.customer_id == customer_id
        ).scalar()
        return count or 0

    def record_redemption(
        self,
        cart_total: CartTotal,
        customer_id: Optional[int] = None,
        transaction_ref: Optional[str] = None
    ) -> Optional[PromotionUsage]:
        """
        Registrar el uso del descuento aplicado a una venta confirmada.

        No hace commit. Devuelve None si la venta no tuvo descuento.

        Raises:
            QuotaExceededError: si el cupón o la promoción ya no tienen cupo
            InconsistentDataError: si el cupón o la promoción aplicada ya no existen
        """
        coupon_code = None
        if cart_total.applied_coupon and cart_total.applied_coupon.discount > 0:
            coupon_code = cart_total.applied_coupon.code
            promotion_id = cart_total.applied_coupon.promotion_id
            discount = cart_total.applied_coupon.discount
        elif cart_total.applied_promotion and cart_total.applied_promotion.discount > 0:
            promotion_id = cart_total.applied_promotion.promotion_id
            discount = cart_total.applied_promotion.discount
        else:
            return None

        if coupon_code:
            self._increment_coupon(coupon_code)

        promotion = self._increment_promotion(promotion_id)

        # El UPDATE deja bloqueada la fila de la promoción hasta el commit:
        # el conteo por cliente queda serializado entre ventas concurrentes
        if customer_id is not None and promotion.max_uses_per_customer is not None:
            if self.customer_redemptions(promotion_id, customer_id) >= promotion.max_uses_per_customer:
                raise QuotaExceededError(
                    f"El cliente {customer_id} alcanzó el límite de usos de la promoción {promotion_id}"
                )

        usage = PromotionUsage(
            promotion_id=promotion_id,
            customer_id=customer_id,
            coupon_code=coupon_code,
            transaction_ref=transaction_ref,
            discount_amount=discount
        )
        self.db.add(usage)
        self.db.flush()

        logger.info(
            f"Recorded redemption of promotion {promotion_id}"
            f"{f' (coupon {coupon_code})' if coupon_code else ''} for {transaction_ref or 'sale'}: {discount}"
        )
        return usage

    def _increment_coupon(self, code: str) -> None:
        stmt = (
            update(Coupon)
            .where(
                Coupon.code == code,
                or_(Coupon.max_uses.is_(None), Coupon.current_uses < Coupon.max_uses)
            )
            .values(current_uses=Coupon.current_uses + 1)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        if result.rowcount == 0:
            coupon = self.db.query(Coupon).filter(Coupon.code == code).first()
            if coupon is None:
                logger.warning(f"Data integrity: redemption for missing coupon '{code}'")
                raise InconsistentDataError(f"El cupón '{code}' no existe")
            raise QuotaExceededError(f"El cupón '{code}' alcanzó su límite de usos")

        self.db.query(Coupon).populate_existing().filter(Coupon.code == code).one()

    def _increment_promotion(self, promotion_id: str) -> Promotion:
        stmt = (
            update(Promotion)
            .where(
                Promotion.id == promotion_id,
                or_(Promotion.max_total_uses.is_(None), Promotion.current_uses < Promotion.max_total_uses)
            )
            .values(current_uses=Promotion.current_uses + 1)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        if result.rowcount == 0:
            promotion = self.db.query(Promotion).filter(Promotion.id == promotion_id).first()
            if promotion is None:
                logger.warning(f"Data integrity: redemption for missing promotion {promotion_id}")
                raise InconsistentDataError(f"La promoción {promotion_id} no existe")
            raise QuotaExceededError(f"La promoción {promotion_id} alcanzó su límite de usos")

        # Refresca la instancia cargada en la sesión con el contador nuevo
        return self.db.query(Promotion).populate_existing().filter(Promotion.id == promotion_id).one()

    def reconcile_counters(self) -> Dict[str, int]:
        """
        Recalcular current_uses de promociones y cupones desde promotion_usage.

        Repara contadores desviados (ventas anuladas, cargas manuales).
        No hace commit.
        """
        promotion_counts = dict(
            self.db.query(PromotionUsage.promotion_id, func.count(PromotionUsage.id))
            .group_by(PromotionUsage.promotion_id)
            .all()
        )
        coupon_counts = dict(
            self.db.query(PromotionUsage.coupon_code, func.count(PromotionUsage.id))
            .filter(PromotionUsage.coupon_code.isnot(None))
            .group_by(PromotionUsage.coupon_code)
            .all()
        )

        fixed_promotions = 0
        for promotion in self.db.query(Promotion).populate_existing().all():
            expected = promotion_counts.get(promotion.id, 0)
            if (promotion.current_uses or 0) != expected:
                logger.warning(
                    f"Promotion {promotion.id} current_uses drift: {promotion.current_uses} -> {expected}"
                )
                promotion.current_uses = expected
                fixed_promotions += 1

        fixed_coupons = 0
        for coupon in self.db.query(Coupon).populate_existing().all():
            expected = coupon_counts.get(coupon.code, 0)
            if (coupon.current_uses or 0) != expected:
                logger.warning(
                    f"Coupon '{coupon.code}' current_uses drift: {coupon.current_uses} -> {expected}"
                )
                coupon.current_uses = expected
                fixed_coupons += 1

        self.db.flush()
        return {"promotions": fixed_promotions, "coupons": fixed_coupons}
