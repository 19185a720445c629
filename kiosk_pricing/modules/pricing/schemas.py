from pydantic import BaseModel, Field
from decimal import Decimal
from typing import List, Optional

from kiosk_pricing.modules.catalog.models import SalesChannel


# ===== REQUEST SCHEMAS =====

class CartLineIn(BaseModel):
    """Línea de carrito recibida de caja o kiosco"""
    product_id: int = Field(..., gt=0, description="ID del producto")
    quantity: int = Field(..., gt=0, description="Cantidad (entero positivo)")


class CartPricingRequest(BaseModel):
    items: List[CartLineIn]
    customer_id: Optional[int] = Field(None, gt=0)
    location_id: Optional[int] = Field(None, gt=0)
    channel: Optional[SalesChannel] = None
    coupon_code: Optional[str] = Field(None, max_length=50)


class ProductQuoteRequest(BaseModel):
    """Cotización de un solo producto con promociones"""
    product_id: int = Field(..., gt=0)
    quantity: int = Field(..., gt=0)
    location_id: Optional[int] = Field(None, gt=0)
    channel: Optional[SalesChannel] = None
    customer_id: Optional[int] = Field(None, gt=0)
    coupon_code: Optional[str] = Field(None, max_length=50)


# ===== RESPONSE SCHEMAS =====

class CartLineOut(BaseModel):
    product_id: int
    quantity: int
    unit_price: Decimal
    price_source: str = "base"
    line_total: Decimal
    discount: Decimal = Decimal('0')


class AppliedCoupon(BaseModel):
    code: str
    promotion_id: str
    promotion_name: Optional[str] = None
    discount: Decimal


class AppliedPromotion(BaseModel):
    promotion_id: str
    name: str
    type: str
    discount: Decimal


class CartTotal(BaseModel):
    """
    Total de carrito con un único descuento aplicado

    Solo uno de applied_coupon / applied_promotion puede tener valor.
    """
    subtotal: Decimal
    discount: Decimal
    total: Decimal
    currency: str
    items: List[CartLineOut] = Field(default_factory=list)
    applied_coupon: Optional[AppliedCoupon] = None
    applied_promotion: Optional[AppliedPromotion] = None
    coupon_error: Optional[str] = None
    unpriced_product_ids: List[int] = Field(default_factory=list)


class AppliedPromotionSummary(BaseModel):
    promotion_id: str
    promotion_name: str
    discount_amount: Decimal


class ProductQuote(BaseModel):
    product_id: int
    quantity: int
    base_price: Decimal   # precio unitario x cantidad, antes de descuentos
    final_price: Decimal
    discount: Decimal
    applied_promotions: List[AppliedPromotionSummary] = Field(default_factory=list)
