"""
Catálogo de promociones activas

El filtro por vigencia (fechas), estado y ubicación se hace en SQL
para acotar la consulta; luego cada promoción pasa por
is_temporally_active (estado, fechas, horario y día) sobre la hora
local de la tienda.
"""

from datetime import datetime
from typing import List, Optional
import logging

from sqlalchemy import or_, select
from sqlalchemy.orm import Session, selectinload

from kiosk_pricing.modules.promotions.models import Promotion, PromotionLocation
from kiosk_pricing.modules.promotions.schedule import local_now, to_local, time_of_day, weekday_index

logger = logging.getLogger(__name__)


def is_within_window(promotion: Promotion, moment: datetime) -> bool:
    """Verificar horario (HH:MM) y máscara de días de la promoción"""
    if promotion.start_time and promotion.end_time:
        current_time = time_of_day(moment)
        if not (promotion.start_time <= current_time <= promotion.end_time):
            return False

    if promotion.days_of_week:
        if weekday_index(moment) not in promotion.days_of_week:
            return False

    return True


def is_temporally_active(promotion: Promotion, moment: datetime) -> bool:
    """Verificar estado, vigencia, horario y día de una promoción en un instante"""
    if not promotion.is_active:
        return False

    today = moment.date()
    if promotion.start_date > today:
        return False
    if promotion.end_date is not None and promotion.end_date < today:
        return False

    return is_within_window(promotion, moment)


class PromotionCatalog:
    """Carga las promociones activas en un instante y ubicación"""

    def __init__(self, db: Session):
        self.db = db

    def active_promotions(
        self,
        as_of: Optional[datetime] = None,
        location_id: Optional[int] = None
    ) -> List[Promotion]:
        """
        Obtener promociones activas

        Args:
            as_of: Instante de evaluación; por defecto la hora local actual
            location_id: Si se indica, solo promociones de todas las ubicaciones
                         o ligadas explícitamente a esta

        Returns:
            Promociones ordenadas por prioridad desc, creación desc e id.
            Este orden es el de enumeración para desempates.
        """
        moment = to_local(as_of) if as_of else local_now()
        today = moment.date()

        query = (
            self.db.query(Promotion)
            .options(
                selectinload(Promotion.products),
                selectinload(Promotion.categories)
            )
            .filter(
                Promotion.is_active.is_(True),
                Promotion.start_date <= today,
                or_(Promotion.end_date.is_(None), Promotion.end_date >= today)
            )
        )

        if location_id is not None:
            location_promotions = select(PromotionLocation.promotion_id).where(
                PromotionLocation.location_id == location_id
            )
            query = query.filter(
                or_(
                    Promotion.applies_to_all_locations.is_(True),
                    Promotion.id.in_(location_promotions)
                )
            )

        promotions = query.order_by(
            Promotion.priority.desc(),
            Promotion.created_at.desc(),
            Promotion.id
        ).all()

        active = [p for p in promotions if is_temporally_active(p, moment)]
        logger.debug(f"{len(active)} active promotions at {moment.isoformat()} (location={location_id})")
        return active
