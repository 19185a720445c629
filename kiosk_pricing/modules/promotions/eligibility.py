"""
Filtro de elegibilidad de promociones

Decide qué líneas del carrito califican para una promoción y si la
promoción puede usarse (cupos totales, cupos por cliente, cantidad mínima).
"""

from typing import List, Optional, Sequence
import logging

from kiosk_pricing.modules.promotions.calculator import calculate_discount, lines_quantity
from kiosk_pricing.modules.promotions.models import Promotion
from kiosk_pricing.modules.promotions.rules import build_rule
from kiosk_pricing.modules.promotions.schemas import DiscountResult, PricedLine

logger = logging.getLogger(__name__)


class EligibilityFilter:
    """
    Evalúa una promoción contra un carrito

    ledger debe exponer customer_redemptions(promotion_id, customer_id) -> int
    con el historial de redenciones del cliente.
    """

    def __init__(self, ledger):
        self.ledger = ledger

    @staticmethod
    def qualifying_lines(promotion: Promotion, lines: Sequence[PricedLine]) -> List[PricedLine]:
        """Líneas cuyo producto está en la promoción o cuya categoría está ligada"""
        product_ids = promotion.product_ids
        category_ids = promotion.category_ids
        return [
            line for line in lines
            if line.product_id in product_ids
            or (line.category_id is not None and line.category_id in category_ids)
        ]

    def within_quota(self, promotion: Promotion, customer_id: Optional[int] = None) -> bool:
        """Verificar cupos totales y por cliente"""
        current_uses = promotion.current_uses or 0
        if promotion.max_total_uses is not None and current_uses >= promotion.max_total_uses:
            logger.debug(f"Promotion {promotion.id} reached max total uses ({promotion.max_total_uses})")
            return False

        if customer_id is not None and promotion.max_uses_per_customer is not None:
            redemptions = self.ledger.customer_redemptions(promotion.id, customer_id)
            if redemptions >= promotion.max_uses_per_customer:
                logger.debug(f"Customer {customer_id} reached max uses for promotion {promotion.id}")
                return False

        return True

    def evaluate(
        self,
        promotion: Promotion,
        lines: Sequence[PricedLine],
        customer_id: Optional[int] = None
    ) -> Optional[DiscountResult]:
        """
        Calcular el descuento de una promoción para el carrito

        Returns:
            DiscountResult o None si la promoción no aplica
        """
        if not self.within_quota(promotion, customer_id):
            return None

        qualifying = self.qualifying_lines(promotion, lines)
        if not qualifying:
            return None

        # La cantidad mínima excluye la promoción completa, no la aplica parcialmente
        if promotion.min_quantity and lines_quantity(qualifying) < promotion.min_quantity:
            return None

        rule = build_rule(promotion)
        if rule is None:
            return None

        result = calculate_discount(rule, qualifying, lines)
        if result is not None:
            result.promotion_id = promotion.id
        return result
