"""
Reloj de pared de la tienda

Todas las fechas del catálogo (vigencias, horarios de promociones,
vencimiento de cupones) se guardan como hora local sin zona horaria.
"""
from datetime import datetime
from functools import lru_cache
from zoneinfo import ZoneInfo

from kiosk_pricing.core.config import settings


@lru_cache(maxsize=None)
def _store_zone(name: str) -> ZoneInfo:
    return ZoneInfo(name)


def local_now() -> datetime:
    """Hora local actual de la tienda (naive)"""
    return datetime.now(_store_zone(settings.TIMEZONE)).replace(tzinfo=None)


def to_local(moment: datetime) -> datetime:
    """Convierte un datetime con zona a hora local naive; los naive se asumen locales"""
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(_store_zone(settings.TIMEZONE)).replace(tzinfo=None)


def time_of_day(moment: datetime) -> str:
    """Hora del día en formato HH:MM, comparable como texto con start_time/end_time"""
    return f"{moment.hour:02d}:{moment.minute:02d}"


def weekday_index(moment: datetime) -> int:
    """Día de la semana con domingo = 0 ... sábado = 6"""
    return moment.isoweekday() % 7
