from pydantic import BaseModel, Field
from decimal import Decimal
from typing import Literal, Optional

from kiosk_pricing.modules.catalog.models import SalesChannel


class PriceLookup(BaseModel):
    """Consulta de precio efectivo de un producto"""
    product_id: int = Field(..., gt=0)
    location_id: Optional[int] = Field(None, gt=0)
    channel: Optional[SalesChannel] = None


class PriceResult(BaseModel):
    """Precio efectivo resuelto para un producto"""
    product_id: int
    category_id: Optional[int] = None
    price: Decimal
    base_price: Decimal
    source: Literal['base', 'specific']
