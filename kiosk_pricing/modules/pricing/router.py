"""
Routers FastAPI del motor de precios

Endpoints para caja y kiosco:
- Precio efectivo de un producto
- Total de carrito con cupón o mejor promoción
- Validación de cupones
- Cotización de un producto
- Promociones activas
"""

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from kiosk_pricing.database.database import get_db
from kiosk_pricing.dependencies.dbDependecies import db_dependency
from kiosk_pricing.modules.catalog.schemas import PriceLookup, PriceResult
from kiosk_pricing.modules.coupons.schemas import CouponValidateRequest, CouponValidationOut
from kiosk_pricing.modules.pricing.exceptions import PricingError
from kiosk_pricing.modules.pricing.schemas import (
    CartPricingRequest, CartTotal, ProductQuoteRequest, ProductQuote
)
from kiosk_pricing.modules.pricing.service import PricingService
from kiosk_pricing.modules.promotions.schemas import PromotionOut

logger = logging.getLogger(__name__)

pricing_router = APIRouter(prefix="/pricing", tags=["Pricing"])


def _pricing_http_error(error: PricingError) -> HTTPException:
    return HTTPException(status_code=error.status_code, detail=error.message)


@pricing_router.post("/resolve-price", response_model=PriceResult)
async def resolve_price(
    lookup: PriceLookup,
    db: Session = Depends(get_db)
):
    """
    Precio unitario efectivo de un producto.

    - **location_id**: ubicación de la venta (opcional)
    - **channel**: pos, kiosk, online o wholesale (opcional)

    Sin ubicación ni canal devuelve el precio de catálogo.
    """
    try:
        service = PricingService(db)
        return service.resolve_price(lookup.product_id, lookup.location_id, lookup.channel)
    except PricingError as e:
        raise _pricing_http_error(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error resolving price for product {lookup.product_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error interno al resolver el precio"
        )


@pricing_router.post("/cart", response_model=CartTotal)
async def price_cart(
    cart: CartPricingRequest,
    db: Session = Depends(get_db)
):
    """
    Calcular el total de un carrito.

    Se aplica un único descuento: el cupón si es válido, si no la mejor
    promoción automática. Un cupón rechazado se informa en coupon_error.
    Los productos inexistentes se cotizan en 0 y se listan en
    unpriced_product_ids.
    """
    try:
        service = PricingService(db)
        return service.price_cart(
            cart.items,
            customer_id=cart.customer_id,
            location_id=cart.location_id,
            channel=cart.channel,
            coupon_code=cart.coupon_code
        )
    except PricingError as e:
        raise _pricing_http_error(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error pricing cart: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error interno al calcular el carrito"
        )


@pricing_router.post("/coupons/validate", response_model=CouponValidationOut)
async def validate_coupon(
    request: CouponValidateRequest,
    db: db_dependency
):
    """Validar un cupón sin aplicarlo. Los rechazos se devuelven con valid=false."""
    try:
        service = PricingService(db)
        validation = service.validate_coupon(request.code, request.customer_id)
        return CouponValidationOut(
            valid=validation.valid,
            code=request.code,
            promotion_id=validation.promotion.id if validation.promotion else None,
            promotion_name=validation.promotion.name if validation.promotion else None,
            error=validation.error
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error validating coupon '{request.code}': {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error interno al validar el cupón"
        )


@pricing_router.post("/calculate-price", response_model=ProductQuote)
async def calculate_price(
    request: ProductQuoteRequest,
    db: Session = Depends(get_db)
):
    """
    Cotizar un producto con promociones.

    - **quantity**: unidades a cotizar
    - **channel**: por defecto el canal configurado (pos)

    404 si el producto no existe.
    """
    try:
        service = PricingService(db)
        return service.quote_product(
            request.product_id,
            request.quantity,
            location_id=request.location_id,
            channel=request.channel,
            customer_id=request.customer_id,
            coupon_code=request.coupon_code
        )
    except PricingError as e:
        raise _pricing_http_error(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error calculating product price: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error interno al cotizar el producto"
        )


@pricing_router.get("/promotions/active", response_model=List[PromotionOut])
async def get_active_promotions(
    db: db_dependency,
    location_id: Optional[int] = Query(None, gt=0, description="ID de la ubicación")
):
    """Promociones vigentes ahora (hora local), en orden de prioridad."""
    try:
        service = PricingService(db)
        return service.catalog.active_promotions(location_id=location_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error listing active promotions: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error interno al listar promociones"
        )
