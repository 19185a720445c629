"""
Modelos SQLAlchemy para promociones

- Promotion: regla de descuento con vigencia, horario, días y cupos de uso
- PromotionProduct / PromotionCategory: alcance por producto o categoría
- PromotionLocation: alcance por ubicación (si no aplica a todas)
- PromotionUsage: historial de redenciones (fuente del conteo por cliente)

El motor de precios solo lee estas tablas. Los contadores current_uses
se incrementan al confirmar la venta (ver pricing/ledger.py).
"""

from kiosk_pricing.database.database import Base
from sqlalchemy import Column, Integer, String, Boolean, Date, DateTime, ForeignKey, Numeric, Text, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from uuid import uuid4
from kiosk_pricing.common.mixins import TimestampMixin
import enum


# ===== ENUMS =====

class PromotionType(str, enum.Enum):
    """Tipos de promoción soportados"""
    PERCENTAGE_OFF = "PERCENTAGE_OFF"     # % sobre el valor de las líneas aplicables
    AMOUNT_OFF = "AMOUNT_OFF"             # Monto fijo, tope en el valor aplicable
    BUY_X_GET_Y = "BUY_X_GET_Y"           # Lleve X y obtenga Y gratis
    VOLUME_DISCOUNT = "VOLUME_DISCOUNT"   # % a partir de una cantidad mínima
    BUNDLE = "BUNDLE"                     # Precio de combo
    HAPPY_HOUR = "HAPPY_HOUR"             # % restringido por horario


# ===== MODELOS =====

class Promotion(Base, TimestampMixin):
    """
    Promoción automática o ligada a cupón

    Activa en un instante T si is_active, start_date <= T <= end_date
    (end_date NULL = sin fin), la hora de T cae en [start_time, end_time]
    cuando hay horario y el día de T está en days_of_week cuando hay máscara.
    """
    __tablename__ = "promotions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    name = Column(String(150), nullable=False)
    description = Column(Text, nullable=True)
    promotion_type = Column(String(30), nullable=False, index=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    # Vigencia
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    start_time = Column(String(5), nullable=True)  # "HH:MM"
    end_time = Column(String(5), nullable=True)    # "HH:MM"
    days_of_week = Column(JSON, nullable=True)     # [0..6], 0 = domingo
    priority = Column(Integer, nullable=False, default=0)

    # Configuración del descuento
    discount_percentage = Column(Numeric(5, 2), nullable=True)
    discount_amount = Column(Numeric(15, 2), nullable=True)
    buy_quantity = Column(Integer, nullable=True)
    get_quantity = Column(Integer, nullable=True)
    min_quantity = Column(Integer, nullable=True)

    # Cupos de uso
    max_total_uses = Column(Integer, nullable=True)
    max_uses_per_customer = Column(Integer, nullable=True)
    current_uses = Column(Integer, nullable=False, default=0)

    applies_to_all_locations = Column(Boolean, nullable=False, default=False)

    # Relationships
    products = relationship("PromotionProduct", back_populates="promotion", cascade="all, delete-orphan")
    categories = relationship("PromotionCategory", back_populates="promotion", cascade="all, delete-orphan")
    locations = relationship("PromotionLocation", back_populates="promotion", cascade="all, delete-orphan")
    usages = relationship("PromotionUsage", back_populates="promotion")

    @property
    def product_ids(self):
        return {link.product_id for link in self.products}

    @property
    def category_ids(self):
        return {link.category_id for link in self.categories}

    @property
    def required_product_ids(self):
        """Productos obligatorios de un combo (BUNDLE)"""
        return {link.product_id for link in self.products if link.is_required}


class PromotionProduct(Base):
    __tablename__ = "promotion_products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    promotion_id = Column(String(36), ForeignKey("promotions.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    is_required = Column(Boolean, nullable=False, default=False)

    promotion = relationship("Promotion", back_populates="products")

    __table_args__ = (
        UniqueConstraint("promotion_id", "product_id", name="uq_promotion_product"),
    )


class PromotionCategory(Base):
    __tablename__ = "promotion_categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    promotion_id = Column(String(36), ForeignKey("promotions.id", ondelete="CASCADE"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)

    promotion = relationship("Promotion", back_populates="categories")

    __table_args__ = (
        UniqueConstraint("promotion_id", "category_id", name="uq_promotion_category"),
    )


class PromotionLocation(Base):
    __tablename__ = "promotion_locations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    promotion_id = Column(String(36), ForeignKey("promotions.id", ondelete="CASCADE"), nullable=False, index=True)
    location_id = Column(Integer, ForeignKey("locations.id"), nullable=False, index=True)

    promotion = relationship("Promotion", back_populates="locations")

    __table_args__ = (
        UniqueConstraint("promotion_id", "location_id", name="uq_promotion_location"),
    )


class PromotionUsage(Base):
    """Redención de una promoción registrada al confirmar una venta"""
    __tablename__ = "promotion_usage"

    id = Column(Integer, primary_key=True, autoincrement=True)
    promotion_id = Column(String(36), ForeignKey("promotions.id"), nullable=False, index=True)
    customer_id = Column(Integer, nullable=True, index=True)
    coupon_code = Column(String(50), nullable=True, index=True)
    transaction_ref = Column(String(100), nullable=True)  # Venta, factura, etc.
    discount_amount = Column(Numeric(15, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    promotion = relationship("Promotion", back_populates="usages")
