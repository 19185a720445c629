"""
Servicio de precios de carrito (punto de entrada del motor)

Flujo de price_cart:
1. Validar las líneas del carrito
2. Resolver precios unitarios por ubicación / canal
3. Aplicar el cupón si es válido; si no, la mejor promoción automática
4. Repartir el descuento entre las líneas y redondear solo el total

Nunca se combinan descuentos: un carrito lleva un cupón, una promoción
automática o ninguno. El servicio solo lee; los contadores de uso se
registran al confirmar la venta con UsageLedger.record_redemption.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence
import logging

from pydantic import ValidationError
from sqlalchemy.orm import Session

from kiosk_pricing.common.money import ZERO, round_currency
from kiosk_pricing.core.config import settings
from kiosk_pricing.modules.catalog.resolver import ChannelArg, PriceResolver
from kiosk_pricing.modules.catalog.schemas import PriceResult
from kiosk_pricing.modules.coupons.schemas import CouponValidation
from kiosk_pricing.modules.coupons.service import CouponValidator
from kiosk_pricing.modules.pricing.exceptions import InvalidCartError
from kiosk_pricing.modules.pricing.ledger import UsageLedger
from kiosk_pricing.modules.pricing.schemas import (
    AppliedCoupon, AppliedPromotion, AppliedPromotionSummary,
    CartLineIn, CartLineOut, CartTotal, ProductQuote
)
from kiosk_pricing.modules.promotions.calculator import lines_value
from kiosk_pricing.modules.promotions.catalog import PromotionCatalog
from kiosk_pricing.modules.promotions.eligibility import EligibilityFilter
from kiosk_pricing.modules.promotions.schedule import local_now, to_local
from kiosk_pricing.modules.promotions.schemas import PricedLine
from kiosk_pricing.modules.promotions.selector import PromotionSelector

logger = logging.getLogger(__name__)

UNPRICED_SOURCE = "unpriced"


class PricingService:
    """Orquesta resolución de precios, cupones y promociones para un carrito"""

    def __init__(self, db: Session, ledger: Optional[UsageLedger] = None):
        self.db = db
        self.ledger = ledger or UsageLedger(db)
        self.resolver = PriceResolver(db)
        self.coupons = CouponValidator(db)
        self.catalog = PromotionCatalog(db)
        self.eligibility = EligibilityFilter(self.ledger)
        self.selector = PromotionSelector(self.catalog, self.eligibility)

    def resolve_price(
        self,
        product_id: int,
        location_id: Optional[int] = None,
        channel: ChannelArg = None,
        as_of: Optional[datetime] = None
    ) -> PriceResult:
        return self.resolver.resolve_price(product_id, location_id, channel, as_of)

    def validate_coupon(
        self,
        code: str,
        customer_id: Optional[int] = None,
        as_of: Optional[datetime] = None
    ) -> CouponValidation:
        return self.coupons.validate(code, customer_id, as_of)

    def price_cart(
        self,
        lines: Sequence[Any],
        customer_id: Optional[int] = None,
        location_id: Optional[int] = None,
        channel: ChannelArg = None,
        coupon_code: Optional[str] = None,
        as_of: Optional[datetime] = None
    ) -> CartTotal:
        """
        Calcular el total de un carrito

        Args:
            lines: Líneas (CartLineIn o dict con product_id y quantity)
            customer_id: Cliente (cupos por cliente y cupones personales)
            location_id: Ubicación de la venta
            channel: Canal de venta
            coupon_code: Cupón presentado por el cliente
            as_of: Instante de la venta; por defecto la hora local actual

        Returns:
            CartTotal con un único descuento aplicado (o ninguno)

        Raises:
            InvalidCartError: si alguna línea está mal formada
        """
        cart_lines = self._validate_lines(lines)
        moment = to_local(as_of) if as_of else local_now()

        priced, unpriced = self._price_lines(cart_lines, location_id, channel, moment)
        subtotal = lines_value(priced)

        discount = ZERO
        applied_coupon = None
        applied_promotion = None
        coupon_error = None
        coupon_accepted = False

        if coupon_code:
            validation = self.coupons.validate(coupon_code, customer_id, moment)
            if validation.valid:
                coupon_accepted = True
                result = self.eligibility.evaluate(validation.promotion, priced, customer_id)
                discount = result.discount if result else ZERO
                applied_coupon = AppliedCoupon(
                    code=validation.coupon.code,
                    promotion_id=validation.promotion.id,
                    promotion_name=validation.promotion.name,
                    discount=discount
                )
            else:
                coupon_error = validation.error
                logger.info(f"Coupon '{coupon_code}' rejected: {validation.error}")

        # Un cupón válido excluye la búsqueda automática aunque su descuento sea 0
        if not coupon_accepted:
            best = self.selector.select_best(priced, customer_id, location_id, moment)
            if best is not None:
                discount = best.discount
                applied_promotion = AppliedPromotion(
                    promotion_id=best.promotion.id,
                    name=best.promotion.name,
                    type=best.promotion.promotion_type,
                    discount=discount
                )

        line_discounts = self._distribute(discount, priced)
        total = round_currency(max(ZERO, subtotal - discount))

        if discount > 0:
            source = f"coupon '{applied_coupon.code}'" if applied_coupon else f"promotion {applied_promotion.promotion_id}"
            logger.info(f"Applied {source} to cart: subtotal={subtotal} discount={discount} total={total}")

        return CartTotal(
            subtotal=subtotal,
            discount=discount,
            total=total,
            currency=settings.CURRENCY_CODE,
            items=[
                CartLineOut(
                    product_id=line.product_id,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    price_source=line.price_source,
                    line_total=line.line_total,
                    discount=line_discount
                )
                for line, line_discount in zip(priced, line_discounts)
            ],
            applied_coupon=applied_coupon,
            applied_promotion=applied_promotion,
            coupon_error=coupon_error,
            unpriced_product_ids=unpriced
        )

    def quote_product(
        self,
        product_id: int,
        quantity: int,
        location_id: Optional[int] = None,
        channel: ChannelArg = None,
        customer_id: Optional[int] = None,
        coupon_code: Optional[str] = None,
        as_of: Optional[datetime] = None
    ) -> ProductQuote:
        """
        Cotizar un producto con su mejor descuento

        A diferencia del carrito, un producto inexistente es un error.

        Raises:
            ProductNotFoundError: si el producto no existe
            InvalidCartError: si la cantidad no es un entero positivo
        """
        if channel is None:
            channel = settings.DEFAULT_CHANNEL

        cart_lines = self._validate_lines([{"product_id": product_id, "quantity": quantity}])

        # Falla con 404 antes de armar el carrito
        self.resolver.resolve_price(product_id, location_id, channel, as_of)

        cart = self.price_cart(
            cart_lines,
            customer_id=customer_id,
            location_id=location_id,
            channel=channel,
            coupon_code=coupon_code,
            as_of=as_of
        )

        applied_promotions: List[AppliedPromotionSummary] = []
        if cart.applied_coupon and cart.applied_coupon.discount > 0:
            applied_promotions.append(AppliedPromotionSummary(
                promotion_id=cart.applied_coupon.promotion_id,
                promotion_name=cart.applied_coupon.promotion_name or cart.applied_coupon.code,
                discount_amount=cart.applied_coupon.discount
            ))
        elif cart.applied_promotion:
            applied_promotions.append(AppliedPromotionSummary(
                promotion_id=cart.applied_promotion.promotion_id,
                promotion_name=cart.applied_promotion.name,
                discount_amount=cart.applied_promotion.discount
            ))

        return ProductQuote(
            product_id=product_id,
            quantity=quantity,
            base_price=cart.subtotal,
            final_price=cart.total,
            discount=cart.discount,
            applied_promotions=applied_promotions
        )

    def _validate_lines(self, lines: Sequence[Any]) -> List[CartLineIn]:
        try:
            return [
                line if isinstance(line, CartLineIn) else CartLineIn.model_validate(line)
                for line in lines
            ]
        except ValidationError as e:
            logger.warning(f"Invalid cart lines: {e.errors()}")
            raise InvalidCartError("Líneas de carrito inválidas: product_id y quantity deben ser enteros positivos")

    def _price_lines(
        self,
        cart_lines: List[CartLineIn],
        location_id: Optional[int],
        channel: ChannelArg,
        moment: datetime
    ):
        prices: Dict[int, PriceResult] = self.resolver.resolve_many(
            [line.product_id for line in cart_lines], location_id, channel, moment
        )

        priced: List[PricedLine] = []
        unpriced: List[int] = []
        for line in cart_lines:
            price = prices.get(line.product_id)
            if price is None:
                # El carrito sigue con precio 0; la caja decide si bloquea la venta
                if line.product_id not in unpriced:
                    logger.warning(f"Product {line.product_id} not found while pricing cart, using price 0")
                    unpriced.append(line.product_id)
                priced.append(PricedLine(
                    product_id=line.product_id,
                    quantity=line.quantity,
                    unit_price=ZERO,
                    price_source=UNPRICED_SOURCE
                ))
                continue

            priced.append(PricedLine(
                product_id=line.product_id,
                category_id=price.category_id,
                quantity=line.quantity,
                unit_price=price.price,
                price_source=price.source
            ))

        return priced, unpriced

    @staticmethod
    def _distribute(discount: Decimal, priced: Sequence[PricedLine]) -> List[Decimal]:
        """Parte del descuento de cada línea, proporcional a su valor en el carrito"""
        cart_value = lines_value(priced)
        if discount <= 0 or cart_value <= 0:
            return [ZERO for _ in priced]
        return [discount * line.line_total / cart_value for line in priced]
