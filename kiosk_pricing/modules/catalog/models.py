from kiosk_pricing.database.database import Base
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Numeric, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from kiosk_pricing.common.mixins import TimestampMixin
import enum


class SalesChannel(str, enum.Enum):
    """Canales de venta con precios propios"""
    POS = "pos"
    KIOSK = "kiosk"
    ONLINE = "online"
    WHOLESALE = "wholesale"


class LocationType(str, enum.Enum):
    STORE = "store"
    KIOSK = "kiosk"
    WAREHOUSE = "warehouse"


class Category(Base, TimestampMixin):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, unique=True)
    is_active = Column(Boolean, default=True)

    # Relationships
    products = relationship("Product", back_populates="category")


class Location(Base, TimestampMixin):
    __tablename__ = "locations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    code = Column(String(20), nullable=False, unique=True)
    location_type = Column(String(20), nullable=False, default=LocationType.STORE.value)
    is_active = Column(Boolean, default=True)


class Product(Base, TimestampMixin):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    sku = Column(String(50), nullable=False, unique=True)
    price = Column(Numeric(15, 2), nullable=False, default=0)  # Precio de catálogo
    is_active = Column(Boolean, default=True)

    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True, index=True)

    # Relationships
    category = relationship("Category", back_populates="products")
    prices = relationship("ProductPrice", back_populates="product", cascade="all, delete-orphan")


class ProductPrice(Base, TimestampMixin):
    """
    Precio específico de un producto por ubicación y/o canal

    location_id o channel en NULL significa que el precio aplica
    a cualquier ubicación o canal respectivamente.
    """
    __tablename__ = "product_prices"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    location_id = Column(Integer, ForeignKey("locations.id"), nullable=True)
    channel = Column(String(20), nullable=True)  # pos, kiosk, online, wholesale
    price = Column(Numeric(15, 2), nullable=False)
    effective_from = Column(DateTime, nullable=False)
    effective_to = Column(DateTime, nullable=True)  # NULL = vigente indefinidamente

    # Relationships
    product = relationship("Product", back_populates="prices")
    location = relationship("Location")

    __table_args__ = (
        Index("idx_product_prices_lookup", "product_id", "effective_from"),
        UniqueConstraint("product_id", "location_id", "channel", "effective_from", name="uq_product_price_scope_start"),
    )
