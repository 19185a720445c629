"""
Fixtures compartidas para los tests del motor de precios

Cada test usa una base SQLite en memoria nueva. Las variables de entorno
se fijan antes de importar la configuración.
"""

import os

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["ENVIRONMENT"] = "test"
os.environ["DEBUG"] = "false"
os.environ["TIMEZONE"] = "America/Bogota"

from datetime import date, datetime
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from kiosk_pricing.database.database import Base
from kiosk_pricing.modules.catalog.models import Category, Location, Product, ProductPrice
from kiosk_pricing.modules.coupons.models import Coupon
from kiosk_pricing.modules.promotions.models import (
    Promotion, PromotionProduct, PromotionCategory, PromotionLocation, PromotionUsage
)


# Lunes 2 de junio de 2025, 10:00 hora local
SALE_MOMENT = datetime(2025, 6, 2, 10, 0)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def sale_moment():
    return SALE_MOMENT


@pytest.fixture
def category(db_session):
    category = Category(name="Bebidas")
    db_session.add(category)
    db_session.commit()
    return category


@pytest.fixture
def store(db_session):
    location = Location(name="Tienda Centro", code="CEN", location_type="store")
    db_session.add(location)
    db_session.commit()
    return location


@pytest.fixture
def make_product(db_session):
    """Crear productos con precio de catálogo"""
    counter = {"value": 0}

    def _make(price, category_id=None, name=None):
        counter["value"] += 1
        product = Product(
            name=name or f"Producto {counter['value']}",
            sku=f"SKU-{counter['value']:04d}",
            price=Decimal(str(price)),
            category_id=category_id
        )
        db_session.add(product)
        db_session.commit()
        return product

    return _make


@pytest.fixture
def make_price(db_session):
    """Crear precios específicos por ubicación / canal"""

    def _make(product, price, location_id=None, channel=None,
              effective_from=datetime(2025, 1, 1), effective_to=None):
        override = ProductPrice(
            product_id=product.id,
            location_id=location_id,
            channel=channel,
            price=Decimal(str(price)),
            effective_from=effective_from,
            effective_to=effective_to
        )
        db_session.add(override)
        db_session.commit()
        return override

    return _make


@pytest.fixture
def make_promotion(db_session):
    """
    Crear promociones vigentes durante 2025 para todas las ubicaciones

    products acepta ids o tuplas (id, is_required).
    """

    def _make(promotion_type, products=(), categories=(), locations=(), **fields):
        fields.setdefault("name", f"Promo {promotion_type}")
        fields.setdefault("start_date", date(2025, 1, 1))
        fields.setdefault("end_date", date(2025, 12, 31))
        fields.setdefault("applies_to_all_locations", not locations)

        promotion = Promotion(promotion_type=promotion_type, **fields)
        for product in products:
            product_id, is_required = product if isinstance(product, tuple) else (product, False)
            promotion.products.append(PromotionProduct(product_id=product_id, is_required=is_required))
        for category_id in categories:
            promotion.categories.append(PromotionCategory(category_id=category_id))
        for location_id in locations:
            promotion.locations.append(PromotionLocation(location_id=location_id))

        db_session.add(promotion)
        db_session.commit()
        return promotion

    return _make


@pytest.fixture
def make_coupon(db_session):
    def _make(code, promotion=None, **fields):
        coupon = Coupon(code=code, promotion_id=promotion.id if promotion else None, **fields)
        db_session.add(coupon)
        db_session.commit()
        return coupon

    return _make


@pytest.fixture
def make_usage(db_session):
    """Registrar redenciones históricas"""

    def _make(promotion, customer_id=None, coupon_code=None, discount_amount=Decimal("1000")):
        usage = PromotionUsage(
            promotion_id=promotion.id,
            customer_id=customer_id,
            coupon_code=coupon_code,
            discount_amount=discount_amount
        )
        db_session.add(usage)
        db_session.commit()
        return usage

    return _make
