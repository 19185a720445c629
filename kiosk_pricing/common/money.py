"""
Utilidades monetarias compartidas
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, Optional

from kiosk_pricing.core.config import settings

ZERO = Decimal('0')


def to_decimal(value: Any) -> Decimal:
    """Convierte valores de BD o JSON a Decimal sin pasar por float"""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def money_sum(values: Iterable[Decimal]) -> Decimal:
    return sum(values, ZERO)


def round_currency(amount: Decimal, decimals: Optional[int] = None) -> Decimal:
    """
    Redondea un monto a la unidad de la moneda configurada.

    Se usa ROUND_HALF_UP (redondeo comercial). Solo debe aplicarse al total
    final de la venta, nunca a pasos intermedios.
    """
    if decimals is None:
        decimals = settings.CURRENCY_DECIMALS
    exponent = Decimal(1).scaleb(-decimals)
    return amount.quantize(exponent, rounding=ROUND_HALF_UP)
