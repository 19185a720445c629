from pydantic import BaseModel, Field
from typing import Any, Optional


class CouponValidateRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    customer_id: Optional[int] = Field(None, gt=0)


class CouponValidation(BaseModel):
    """Resultado interno de validar un cupón (incluye los modelos ORM)"""
    valid: bool
    coupon: Optional[Any] = None
    promotion: Optional[Any] = None
    error: Optional[str] = None


class CouponValidationOut(BaseModel):
    """Respuesta de validación de cupón para caja o kiosco"""
    valid: bool
    code: str
    promotion_id: Optional[str] = None
    promotion_name: Optional[str] = None
    error: Optional[str] = None
