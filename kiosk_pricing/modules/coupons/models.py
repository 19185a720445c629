from kiosk_pricing.database.database import Base
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from kiosk_pricing.common.mixins import TimestampMixin


class Coupon(Base, TimestampMixin):
    """
    Cupón canjeable ligado a una promoción

    customer_id restringe el cupón a un único cliente cuando tiene valor.
    """
    __tablename__ = "coupons"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(50), nullable=False, unique=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    expires_at = Column(DateTime, nullable=True)  # Hora local; NULL = no vence
    max_uses = Column(Integer, nullable=True)
    current_uses = Column(Integer, nullable=False, default=0)
    customer_id = Column(Integer, nullable=True, index=True)
    promotion_id = Column(String(36), ForeignKey("promotions.id"), nullable=True)

    # Relationships
    promotion = relationship("Promotion")
