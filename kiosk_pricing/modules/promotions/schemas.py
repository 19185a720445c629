from pydantic import BaseModel, Field
from decimal import Decimal
from typing import List, Optional
from datetime import date


class PricedLine(BaseModel):
    """Línea de carrito con su precio unitario ya resuelto"""
    product_id: int
    category_id: Optional[int] = None
    quantity: int
    unit_price: Decimal
    price_source: str = "base"

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


class AppliedItem(BaseModel):
    """Parte del descuento absorbida por un producto"""
    product_id: int
    quantity: int
    discount_amount: Decimal


class DiscountResult(BaseModel):
    """Resultado de evaluar una promoción contra un carrito"""
    promotion_id: Optional[str] = None
    discount: Decimal
    applied_items: List[AppliedItem] = Field(default_factory=list)


class PromotionOut(BaseModel):
    """Promoción activa para mostrar en caja o kiosco"""
    id: str
    name: str
    description: Optional[str] = None
    promotion_type: str
    priority: int = 0
    start_date: date
    end_date: Optional[date] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    days_of_week: Optional[List[int]] = None
    discount_percentage: Optional[Decimal] = None
    discount_amount: Optional[Decimal] = None
    buy_quantity: Optional[int] = None
    get_quantity: Optional[int] = None
    min_quantity: Optional[int] = None
    applies_to_all_locations: bool = False

    class Config:
        from_attributes = True
