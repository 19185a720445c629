"""
Cálculo de descuentos por tipo de promoción

Funciones puras: reciben la regla, las líneas que califican y el carrito
completo, y devuelven el descuento junto con el detalle por producto.
Sin acceso a base de datos.
"""

from decimal import Decimal
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from kiosk_pricing.common.money import ZERO, money_sum
from kiosk_pricing.modules.promotions.rules import (
    RULE_TYPES, PromotionRule,
    PercentageOff, AmountOff, BuyXGetY, VolumeDiscount, Bundle, HappyHour
)
from kiosk_pricing.modules.promotions.schemas import AppliedItem, DiscountResult, PricedLine

HUNDRED = Decimal('100')

Calculation = Tuple[Decimal, List[AppliedItem]]


def lines_value(lines: Sequence[PricedLine]) -> Decimal:
    return money_sum(line.line_total for line in lines)


def lines_quantity(lines: Sequence[PricedLine]) -> int:
    return sum(line.quantity for line in lines)


def spread_discount(discount: Decimal, lines: Sequence[PricedLine]) -> List[AppliedItem]:
    """
    Repartir un descuento en proporción al valor de cada línea

    Si el valor total es cero no se reparte nada.
    """
    total_value = lines_value(lines)
    if total_value <= 0:
        return []

    return [
        AppliedItem(
            product_id=line.product_id,
            quantity=line.quantity,
            discount_amount=discount * line.line_total / total_value
        )
        for line in lines
    ]


def _percentage_of(value: Decimal, percentage: Decimal) -> Decimal:
    return value * percentage / HUNDRED


def _percentage_off(rule: PercentageOff, qualifying, cart) -> Calculation:
    return _percentage_of(lines_value(qualifying), rule.percentage), []


def _amount_off(rule: AmountOff, qualifying, cart) -> Calculation:
    # Tope en el valor aplicable: nunca deja el carrito en negativo
    return min(lines_value(qualifying), rule.amount), []


def _buy_x_get_y(rule: BuyXGetY, qualifying, cart) -> Calculation:
    """Las unidades gratis se toman de las más baratas primero"""
    total_quantity = lines_quantity(qualifying)
    sets = total_quantity // (rule.buy_quantity + rule.get_quantity)
    free_units = sets * rule.get_quantity

    discount = ZERO
    applied_items = []
    if free_units <= 0:
        return discount, applied_items

    applied_units = 0
    for line in sorted(qualifying, key=lambda item: item.unit_price):
        units = min(line.quantity, free_units - applied_units)
        if units > 0:
            line_discount = line.unit_price * units
            discount += line_discount
            applied_items.append(AppliedItem(
                product_id=line.product_id,
                quantity=units,
                discount_amount=line_discount
            ))
            applied_units += units
        if applied_units >= free_units:
            break

    return discount, applied_items


def _volume_discount(rule: VolumeDiscount, qualifying, cart) -> Calculation:
    if lines_quantity(qualifying) < rule.min_quantity:
        return ZERO, []
    return _percentage_of(lines_value(qualifying), rule.percentage), []


def _bundle(rule: Bundle, qualifying, cart) -> Calculation:
    # Los obligatorios se buscan en todo el carrito, no solo en las líneas que califican
    cart_products = {line.product_id for line in cart}
    if not rule.required_product_ids <= cart_products:
        return ZERO, []

    bundle_value = lines_value(qualifying)
    discount = bundle_value - rule.bundle_price
    return max(ZERO, min(bundle_value, discount)), []


def _happy_hour(rule: HappyHour, qualifying, cart) -> Calculation:
    # El horario ya lo filtra el catálogo de promociones activas
    return _percentage_of(lines_value(qualifying), rule.percentage), []


CALCULATORS: Dict[type, Callable[..., Calculation]] = {
    PercentageOff: _percentage_off,
    AmountOff: _amount_off,
    BuyXGetY: _buy_x_get_y,
    VolumeDiscount: _volume_discount,
    Bundle: _bundle,
    HappyHour: _happy_hour,
}

_missing = set(RULE_TYPES) - set(CALCULATORS)
if _missing:
    raise RuntimeError(f"Promotion rules without calculator: {sorted(t.__name__ for t in _missing)}")


def calculate_discount(
    rule: PromotionRule,
    qualifying: Sequence[PricedLine],
    cart: Sequence[PricedLine]
) -> Optional[DiscountResult]:
    """
    Calcular el descuento de una regla

    Args:
        rule: Variante de regla de la promoción
        qualifying: Líneas que califican para la promoción
        cart: Todas las líneas del carrito (BUNDLE valida obligatorios aquí)

    Returns:
        DiscountResult, o None si el descuento resultante es <= 0
    """
    calculator = CALCULATORS[type(rule)]
    discount, applied_items = calculator(rule, qualifying, cart)

    if discount <= 0:
        return None

    if not applied_items:
        applied_items = spread_discount(discount, qualifying)

    return DiscountResult(discount=discount, applied_items=applied_items)
