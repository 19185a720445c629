"""
Resolución del precio base efectivo de un producto

Orden de precedencia:
1. Precio específico (ubicación / canal) vigente más reciente
2. Precio de catálogo del producto
"""

from datetime import datetime
from typing import Dict, Iterable, Optional, Union
import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session

from kiosk_pricing.common.money import to_decimal
from kiosk_pricing.modules.catalog.models import Product, ProductPrice, SalesChannel
from kiosk_pricing.modules.catalog.schemas import PriceResult
from kiosk_pricing.modules.pricing.exceptions import ProductNotFoundError
from kiosk_pricing.modules.promotions.schedule import local_now, to_local

logger = logging.getLogger(__name__)

ChannelArg = Optional[Union[SalesChannel, str]]


def channel_value(channel: ChannelArg) -> Optional[str]:
    if isinstance(channel, SalesChannel):
        return channel.value
    return channel


class PriceResolver:
    """Resuelve el precio unitario efectivo por ubicación, canal e instante"""

    def __init__(self, db: Session):
        self.db = db

    def resolve_price(
        self,
        product_id: int,
        location_id: Optional[int] = None,
        channel: ChannelArg = None,
        as_of: Optional[datetime] = None
    ) -> PriceResult:
        """
        Obtener el precio efectivo de un producto

        Args:
            product_id: ID del producto
            location_id: Ubicación de la venta (opcional)
            channel: Canal de venta (opcional)
            as_of: Instante de la consulta; por defecto la hora local actual

        Returns:
            PriceResult con source="specific" si aplica un precio específico,
            o source="base" con el precio de catálogo

        Raises:
            ProductNotFoundError: si el producto no existe
        """
        product = self.db.query(Product).filter(Product.id == product_id).first()
        if not product:
            logger.error(f"Product with id {product_id} not found")
            raise ProductNotFoundError(product_id)

        return self._resolve_for_product(product, location_id, channel, as_of)

    def resolve_many(
        self,
        product_ids: Iterable[int],
        location_id: Optional[int] = None,
        channel: ChannelArg = None,
        as_of: Optional[datetime] = None
    ) -> Dict[int, PriceResult]:
        """Resolver precios de varios productos; los inexistentes se omiten"""
        ids = set(product_ids)
        if not ids:
            return {}

        products = self.db.query(Product).filter(Product.id.in_(ids)).all()
        return {
            product.id: self._resolve_for_product(product, location_id, channel, as_of)
            for product in products
        }

    def _resolve_for_product(
        self,
        product: Product,
        location_id: Optional[int],
        channel: ChannelArg,
        as_of: Optional[datetime]
    ) -> PriceResult:
        base_price = to_decimal(product.price)
        channel = channel_value(channel)

        if location_id is None and channel is None:
            return PriceResult(
                product_id=product.id,
                category_id=product.category_id,
                price=base_price,
                base_price=base_price,
                source="base"
            )

        moment = to_local(as_of) if as_of else local_now()
        override = self._find_override(product.id, location_id, channel, moment)

        if override is not None:
            return PriceResult(
                product_id=product.id,
                category_id=product.category_id,
                price=to_decimal(override.price),
                base_price=base_price,
                source="specific"
            )

        return PriceResult(
            product_id=product.id,
            category_id=product.category_id,
            price=base_price,
            base_price=base_price,
            source="base"
        )

    def _find_override(
        self,
        product_id: int,
        location_id: Optional[int],
        channel: Optional[str],
        moment: datetime
    ) -> Optional[ProductPrice]:
        """Precio específico vigente más reciente que coincide con ubicación y canal"""
        query = self.db.query(ProductPrice).filter(
            ProductPrice.product_id == product_id,
            ProductPrice.effective_from <= moment
        )

        # Un precio sin ubicación o sin canal aplica a cualquiera
        if location_id is not None:
            query = query.filter(or_(ProductPrice.location_id.is_(None), ProductPrice.location_id == location_id))
        else:
            query = query.filter(ProductPrice.location_id.is_(None))

        if channel is not None:
            query = query.filter(or_(ProductPrice.channel.is_(None), ProductPrice.channel == channel))
        else:
            query = query.filter(ProductPrice.channel.is_(None))

        candidates = query.order_by(
            ProductPrice.effective_from.desc(),
            ProductPrice.id.desc()
        ).all()

        for candidate in candidates:
            if candidate.effective_to is None or candidate.effective_to > moment:
                return candidate
        return None
