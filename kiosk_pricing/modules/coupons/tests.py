"""
Tests para la validación de cupones
"""

from datetime import date, datetime, timedelta
from decimal import Decimal
from sqlalchemy.orm import Session

from kiosk_pricing.modules.coupons.service import (
    CouponValidator,
    COUPON_NOT_FOUND, COUPON_INACTIVE, COUPON_EXPIRED, COUPON_USAGE_LIMIT,
    COUPON_WRONG_CUSTOMER, COUPON_WITHOUT_PROMOTION, COUPON_PROMOTION_INACTIVE
)
from kiosk_pricing.modules.promotions.models import PromotionType


def percentage_promotion(make_promotion, **fields):
    return make_promotion(PromotionType.PERCENTAGE_OFF.value, discount_percentage=Decimal("10"), **fields)


class TestCouponValidator:

    def test_valid_coupon(self, db_session: Session, make_promotion, make_coupon, sale_moment):
        promotion = percentage_promotion(make_promotion)
        make_coupon("BIENVENIDA", promotion)

        validation = CouponValidator(db_session).validate("BIENVENIDA", as_of=sale_moment)

        assert validation.valid
        assert validation.error is None
        assert validation.promotion.id == promotion.id

    def test_not_found(self, db_session: Session):
        validation = CouponValidator(db_session).validate("NOEXISTE")

        assert not validation.valid
        assert validation.error == COUPON_NOT_FOUND
        assert validation.error == "Coupon not found."

    def test_inactive_checked_before_expiry(self, db_session: Session, make_promotion, make_coupon, sale_moment):
        promotion = percentage_promotion(make_promotion)
        make_coupon("VIEJO", promotion, is_active=False, expires_at=datetime(2025, 1, 1))

        validation = CouponValidator(db_session).validate("VIEJO", as_of=sale_moment)

        assert validation.error == COUPON_INACTIVE

    def test_expiry(self, db_session: Session, make_promotion, make_coupon, sale_moment):
        promotion = percentage_promotion(make_promotion)
        make_coupon("AYER", promotion, expires_at=sale_moment - timedelta(minutes=1))
        make_coupon("MANANA", promotion, expires_at=sale_moment + timedelta(days=1))

        validator = CouponValidator(db_session)

        assert validator.validate("AYER", as_of=sale_moment).error == COUPON_EXPIRED
        assert validator.validate("MANANA", as_of=sale_moment).valid

    def test_usage_limit(self, db_session: Session, make_promotion, make_coupon, sale_moment):
        promotion = percentage_promotion(make_promotion)
        make_coupon("AGOTADO", promotion, max_uses=3, current_uses=3)
        make_coupon("DISPONIBLE", promotion, max_uses=3, current_uses=2)

        validator = CouponValidator(db_session)

        assert validator.validate("AGOTADO", as_of=sale_moment).error == COUPON_USAGE_LIMIT
        assert validator.validate("DISPONIBLE", as_of=sale_moment).valid

    def test_customer_restriction(self, db_session: Session, make_promotion, make_coupon, sale_moment):
        promotion = percentage_promotion(make_promotion)
        make_coupon("CLIENTE7", promotion, customer_id=7)

        validator = CouponValidator(db_session)

        assert validator.validate("CLIENTE7", customer_id=7, as_of=sale_moment).valid
        assert validator.validate("CLIENTE7", customer_id=8, as_of=sale_moment).error == COUPON_WRONG_CUSTOMER
        assert validator.validate("CLIENTE7", as_of=sale_moment).error == COUPON_WRONG_CUSTOMER

    def test_without_promotion(self, db_session: Session, make_coupon, sale_moment):
        make_coupon("SUELTO")

        validation = CouponValidator(db_session).validate("SUELTO", as_of=sale_moment)

        assert validation.error == COUPON_WITHOUT_PROMOTION

    def test_inactive_promotion(self, db_session: Session, make_promotion, make_coupon, sale_moment):
        promotion = percentage_promotion(make_promotion, is_active=False)
        make_coupon("PAUSADO", promotion)

        validation = CouponValidator(db_session).validate("PAUSADO", as_of=sale_moment)

        assert validation.error == COUPON_PROMOTION_INACTIVE

    def test_missing_promotion_row(self, db_session: Session, make_coupon, sale_moment):
        coupon = make_coupon("ROTO")
        coupon.promotion_id = "00000000-0000-0000-0000-000000000000"
        db_session.commit()

        validation = CouponValidator(db_session).validate("ROTO", as_of=sale_moment)

        assert not validation.valid
        assert validation.error == COUPON_PROMOTION_INACTIVE

    def test_promotion_window_is_not_checked(self, db_session: Session, make_promotion, make_coupon, sale_moment):
        """Un cupón solo exige que su promoción esté activa, no vigente"""
        promotion = percentage_promotion(
            make_promotion,
            start_date=date(2025, 1, 1),
            end_date=date(2025, 1, 31),
            start_time="20:00",
            end_time="22:00"
        )
        make_coupon("ENERO", promotion)

        assert CouponValidator(db_session).validate("ENERO", as_of=sale_moment).valid
