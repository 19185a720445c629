"""
Selección de la mejor promoción automática

Nunca combina promociones: se aplica exactamente una (o ninguna).
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence
import logging

from kiosk_pricing.modules.promotions.catalog import PromotionCatalog
from kiosk_pricing.modules.promotions.eligibility import EligibilityFilter
from kiosk_pricing.modules.promotions.models import Promotion
from kiosk_pricing.modules.promotions.schemas import DiscountResult, PricedLine

logger = logging.getLogger(__name__)


@dataclass
class BestPromotion:
    promotion: Promotion
    result: DiscountResult

    @property
    def discount(self):
        return self.result.discount


class PromotionSelector:

    def __init__(self, catalog: PromotionCatalog, eligibility: EligibilityFilter):
        self.catalog = catalog
        self.eligibility = eligibility

    def select_best(
        self,
        lines: Sequence[PricedLine],
        customer_id: Optional[int] = None,
        location_id: Optional[int] = None,
        as_of: Optional[datetime] = None
    ) -> Optional[BestPromotion]:
        """
        Evaluar todas las promociones activas y quedarse con el mayor descuento.

        En empate exacto gana la primera en el orden del catálogo.
        """
        best: Optional[BestPromotion] = None

        for promotion in self.catalog.active_promotions(as_of=as_of, location_id=location_id):
            result = self.eligibility.evaluate(promotion, lines, customer_id)
            if result is None:
                continue
            if best is None or result.discount > best.discount:
                best = BestPromotion(promotion=promotion, result=result)

        if best:
            logger.debug(f"Best promotion {best.promotion.id} with discount {best.discount}")
        return best
