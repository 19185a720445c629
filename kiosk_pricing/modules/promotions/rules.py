"""
Reglas de descuento tipadas

Cada tipo de promoción se representa con su propia variante, que lleva
únicamente los campos que su fórmula necesita. build_rule traduce una
fila de Promotion a su variante, o None si la fila no trae la
configuración mínima de su tipo (la promoción no genera descuento).
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import FrozenSet, Optional, Union
import logging

from kiosk_pricing.common.money import to_decimal
from kiosk_pricing.modules.promotions.models import Promotion, PromotionType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PercentageOff:
    percentage: Decimal


@dataclass(frozen=True)
class AmountOff:
    amount: Decimal


@dataclass(frozen=True)
class BuyXGetY:
    buy_quantity: int
    get_quantity: int


@dataclass(frozen=True)
class VolumeDiscount:
    min_quantity: int
    percentage: Decimal


@dataclass(frozen=True)
class Bundle:
    bundle_price: Decimal
    required_product_ids: FrozenSet[int]


@dataclass(frozen=True)
class HappyHour:
    percentage: Decimal


PromotionRule = Union[PercentageOff, AmountOff, BuyXGetY, VolumeDiscount, Bundle, HappyHour]

RULE_TYPES = (PercentageOff, AmountOff, BuyXGetY, VolumeDiscount, Bundle, HappyHour)


def _positive(value) -> Optional[Decimal]:
    amount = to_decimal(value)
    return amount if amount > 0 else None


def build_rule(promotion: Promotion) -> Optional[PromotionRule]:
    """Construir la variante de regla de una promoción"""
    try:
        promotion_type = PromotionType(promotion.promotion_type)
    except ValueError:
        logger.warning(f"Unknown promotion type '{promotion.promotion_type}' on promotion {promotion.id}")
        return None

    percentage = _positive(promotion.discount_percentage)
    amount = _positive(promotion.discount_amount)

    if promotion_type == PromotionType.PERCENTAGE_OFF:
        return PercentageOff(percentage) if percentage else None

    if promotion_type == PromotionType.AMOUNT_OFF:
        return AmountOff(amount) if amount else None

    if promotion_type == PromotionType.BUY_X_GET_Y:
        if promotion.buy_quantity and promotion.get_quantity:
            return BuyXGetY(promotion.buy_quantity, promotion.get_quantity)
        return None

    if promotion_type == PromotionType.VOLUME_DISCOUNT:
        if promotion.min_quantity and percentage:
            return VolumeDiscount(promotion.min_quantity, percentage)
        return None

    if promotion_type == PromotionType.BUNDLE:
        # Precio de combo 0 es válido (combo gratis)
        if promotion.discount_amount is not None:
            bundle_price = max(to_decimal(promotion.discount_amount), Decimal('0'))
            return Bundle(bundle_price, frozenset(promotion.required_product_ids))
        return None

    if promotion_type == PromotionType.HAPPY_HOUR:
        return HappyHour(percentage) if percentage else None

    raise TypeError(f"Promotion type without rule: {promotion_type}")
