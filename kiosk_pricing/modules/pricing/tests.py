"""
Tests para el módulo de Precios

Tests que cubren:
- Total de carrito: subtotal, descuento único, redondeo y reparto por línea
- Precedencia del cupón sobre las promociones automáticas
- Productos inexistentes y líneas inválidas
- Cotización de un producto
- Registro de usos con cupos atómicos y conciliación de contadores
- Endpoints HTTP
"""

import pytest
from datetime import date, datetime
from decimal import Decimal
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from kiosk_pricing.database.database import get_db
from kiosk_pricing.main import app
from kiosk_pricing.modules.pricing import tasks
from kiosk_pricing.modules.pricing.exceptions import (
    InconsistentDataError, InvalidCartError, ProductNotFoundError, QuotaExceededError
)
from kiosk_pricing.modules.pricing.ledger import UsageLedger
from kiosk_pricing.modules.pricing.schemas import AppliedCoupon, AppliedPromotion, CartTotal
from kiosk_pricing.modules.pricing.service import PricingService
from kiosk_pricing.modules.promotions.catalog import PromotionCatalog
from kiosk_pricing.modules.promotions.models import Promotion, PromotionType, PromotionUsage


PERCENTAGE_OFF = PromotionType.PERCENTAGE_OFF.value
AMOUNT_OFF = PromotionType.AMOUNT_OFF.value


def items(*pairs):
    return [{"product_id": product_id, "quantity": quantity} for product_id, quantity in pairs]


# ===== TESTS DEL TOTAL DE CARRITO =====

class TestPriceCart:
    """Tests para PricingService.price_cart"""

    def test_ten_percent_on_one_hundred_thousand(self, db_session: Session, make_product, make_promotion, sale_moment):
        product = make_product(100000)
        promotion = make_promotion(PERCENTAGE_OFF, products=[product.id], discount_percentage=Decimal("10"))

        cart = PricingService(db_session).price_cart(items((product.id, 1)), as_of=sale_moment)

        assert cart.subtotal == Decimal("100000")
        assert cart.discount == Decimal("10000")
        assert cart.total == Decimal("90000")
        assert cart.currency == "COP"
        assert cart.applied_promotion.promotion_id == promotion.id
        assert cart.applied_promotion.type == PERCENTAGE_OFF
        assert cart.applied_coupon is None

    def test_cart_without_promotions(self, db_session: Session, make_product, sale_moment):
        product = make_product(2500)

        cart = PricingService(db_session).price_cart(items((product.id, 4)), as_of=sale_moment)

        assert cart.subtotal == Decimal("10000")
        assert cart.discount == Decimal("0")
        assert cart.total == Decimal("10000")
        assert cart.applied_promotion is None
        assert cart.items[0].discount == Decimal("0")

    def test_total_never_negative(self, db_session: Session, make_product, make_promotion, sale_moment):
        product = make_product(100000)
        make_promotion(AMOUNT_OFF, products=[product.id], discount_amount=Decimal("500000"))

        cart = PricingService(db_session).price_cart(items((product.id, 1)), as_of=sale_moment)

        assert cart.discount == Decimal("100000")
        assert cart.total == Decimal("0")

    def test_total_rounded_half_up_to_currency_units(self, db_session: Session, make_product, make_promotion, sale_moment):
        product = make_product(33333)
        make_promotion(PERCENTAGE_OFF, products=[product.id], discount_percentage=Decimal("10"))

        cart = PricingService(db_session).price_cart(items((product.id, 1)), as_of=sale_moment)

        # 33333 - 3333.3 = 29999.7
        assert cart.discount == Decimal("3333.3")
        assert cart.total == Decimal("30000")
        assert cart.total.as_tuple().exponent == 0

    def test_discount_distributed_over_whole_cart(self, db_session: Session, make_product, make_promotion, sale_moment):
        promoted = make_product(60000)
        other = make_product(40000)
        make_promotion(PERCENTAGE_OFF, products=[promoted.id], discount_percentage=Decimal("10"))

        cart = PricingService(db_session).price_cart(items((promoted.id, 1), (other.id, 1)), as_of=sale_moment)

        assert cart.discount == Decimal("6000")
        line_discounts = {item.product_id: item.discount for item in cart.items}
        assert line_discounts[promoted.id] == Decimal("3600")
        assert line_discounts[other.id] == Decimal("2400")
        assert sum(line_discounts.values()) == cart.discount

    def test_pricing_is_idempotent(self, db_session: Session, make_product, make_promotion, sale_moment):
        product = make_product(15000)
        make_promotion(PERCENTAGE_OFF, products=[product.id], discount_percentage=Decimal("15"))
        make_promotion(AMOUNT_OFF, products=[product.id], discount_amount=Decimal("2000"))
        service = PricingService(db_session)

        first = service.price_cart(items((product.id, 3)), customer_id=5, as_of=sale_moment)
        second = service.price_cart(items((product.id, 3)), customer_id=5, as_of=sale_moment)

        assert first.model_dump() == second.model_dump()

    def test_location_price_used_for_promotion(self, db_session: Session, make_product, make_price,
                                               make_promotion, store, sale_moment):
        product = make_product(12000)
        make_price(product, 10000, location_id=store.id)
        make_promotion(PERCENTAGE_OFF, products=[product.id], discount_percentage=Decimal("10"))

        cart = PricingService(db_session).price_cart(
            items((product.id, 1)), location_id=store.id, channel="pos", as_of=sale_moment
        )

        assert cart.items[0].price_source == "specific"
        assert cart.subtotal == Decimal("10000")
        assert cart.total == Decimal("9000")

    def test_category_promotion(self, db_session: Session, make_product, make_promotion, category, sale_moment):
        product = make_product(8000, category_id=category.id)
        make_promotion(PERCENTAGE_OFF, categories=[category.id], discount_percentage=Decimal("25"))

        cart = PricingService(db_session).price_cart(items((product.id, 1)), as_of=sale_moment)

        assert cart.discount == Decimal("2000")

    def test_happy_hour_window(self, db_session: Session, make_product, make_promotion, sale_moment):
        product = make_product(10000)
        make_promotion(PromotionType.HAPPY_HOUR.value, products=[product.id],
                       discount_percentage=Decimal("20"), start_time="09:00", end_time="11:00")
        service = PricingService(db_session)

        inside = service.price_cart(items((product.id, 1)), as_of=sale_moment)
        outside = service.price_cart(items((product.id, 1)), as_of=datetime(2025, 6, 2, 18, 0))

        assert inside.discount == Decimal("2000")
        assert outside.discount == Decimal("0")
        assert outside.applied_promotion is None

    def test_volume_discount_boundary(self, db_session: Session, make_product, make_promotion, sale_moment):
        product = make_product(1000)
        make_promotion(PromotionType.VOLUME_DISCOUNT.value, products=[product.id],
                       min_quantity=10, discount_percentage=Decimal("5"))
        service = PricingService(db_session)

        assert service.price_cart(items((product.id, 9)), as_of=sale_moment).discount == Decimal("0")
        assert service.price_cart(items((product.id, 10)), as_of=sale_moment).discount == Decimal("500")

    def test_buy_x_get_y_in_cart(self, db_session: Session, make_product, make_promotion, sale_moment):
        expensive = make_product(5000)
        cheap = make_product(3000)
        make_promotion(PromotionType.BUY_X_GET_Y.value, products=[expensive.id, cheap.id],
                       buy_quantity=2, get_quantity=1)

        cart = PricingService(db_session).price_cart(items((expensive.id, 2), (cheap.id, 1)), as_of=sale_moment)

        assert cart.discount == Decimal("3000")
        assert cart.total == Decimal("10000")

    def test_customer_quota_excludes_promotion(self, db_session: Session, make_product, make_promotion,
                                               make_usage, sale_moment):
        product = make_product(10000)
        promotion = make_promotion(PERCENTAGE_OFF, products=[product.id],
                                   discount_percentage=Decimal("10"), max_uses_per_customer=1)
        make_usage(promotion, customer_id=7)
        service = PricingService(db_session)

        assert service.price_cart(items((product.id, 1)), customer_id=7, as_of=sale_moment).applied_promotion is None
        assert service.price_cart(items((product.id, 1)), customer_id=8, as_of=sale_moment).discount == Decimal("1000")

    def test_total_quota_excludes_promotion(self, db_session: Session, make_product, make_promotion, sale_moment):
        product = make_product(10000)
        make_promotion(PERCENTAGE_OFF, products=[product.id], discount_percentage=Decimal("10"),
                       max_total_uses=100, current_uses=100)

        cart = PricingService(db_session).price_cart(items((product.id, 1)), as_of=sale_moment)

        assert cart.applied_promotion is None

    def test_unknown_product_priced_at_zero(self, db_session: Session, make_product, sale_moment):
        product = make_product(7000)

        cart = PricingService(db_session).price_cart(items((product.id, 1), (999, 2)), as_of=sale_moment)

        assert cart.subtotal == Decimal("7000")
        assert cart.unpriced_product_ids == [999]
        unknown = [item for item in cart.items if item.product_id == 999][0]
        assert unknown.unit_price == Decimal("0")
        assert unknown.price_source == "unpriced"

    @pytest.mark.parametrize("bad_line", [
        {"product_id": 1, "quantity": 0},
        {"product_id": 1, "quantity": -2},
        {"product_id": 1, "quantity": 1.5},
        {"product_id": 0, "quantity": 1},
        {"product_id": 1},
    ])
    def test_invalid_lines_reject_cart(self, db_session: Session, bad_line):
        with pytest.raises(InvalidCartError) as exc_info:
            PricingService(db_session).price_cart([bad_line])

        assert exc_info.value.status_code == 422


# ===== TESTS DE CUPONES EN EL CARRITO =====

class TestCouponPrecedence:

    def test_valid_coupon_wins_over_better_automatic_promotion(self, db_session: Session, make_product,
                                                               make_promotion, make_coupon, sale_moment):
        product = make_product(10000)
        make_promotion(PERCENTAGE_OFF, products=[product.id], discount_percentage=Decimal("20"), priority=10)
        coupon_promotion = make_promotion(PERCENTAGE_OFF, products=[product.id],
                                          discount_percentage=Decimal("10"), name="Cupón 10%")
        make_coupon("DIEZ", coupon_promotion)

        cart = PricingService(db_session).price_cart(items((product.id, 1)), coupon_code="DIEZ", as_of=sale_moment)

        assert cart.applied_coupon.code == "DIEZ"
        assert cart.applied_coupon.promotion_id == coupon_promotion.id
        assert cart.discount == Decimal("1000")
        assert cart.applied_promotion is None
        assert cart.coupon_error is None

    def test_valid_coupon_skips_automatic_search(self, db_session: Session, make_product, make_promotion,
                                                 make_coupon, sale_moment, monkeypatch):
        product = make_product(10000)
        coupon_promotion = make_promotion(PERCENTAGE_OFF, products=[product.id], discount_percentage=Decimal("10"))
        make_coupon("DIEZ", coupon_promotion)
        service = PricingService(db_session)

        def fail_select_best(*args, **kwargs):
            pytest.fail("automatic promotion search must not run with a valid coupon")

        monkeypatch.setattr(service.selector, "select_best", fail_select_best)

        cart = service.price_cart(items((product.id, 1)), coupon_code="DIEZ", as_of=sale_moment)

        assert cart.applied_coupon is not None

    def test_valid_coupon_with_zero_discount(self, db_session: Session, make_product, make_promotion,
                                             make_coupon, sale_moment):
        product = make_product(10000)
        other = make_product(5000)
        make_promotion(PERCENTAGE_OFF, products=[product.id], discount_percentage=Decimal("20"))
        coupon_promotion = make_promotion(PERCENTAGE_OFF, products=[other.id], discount_percentage=Decimal("50"))
        make_coupon("OTRO", coupon_promotion)

        cart = PricingService(db_session).price_cart(items((product.id, 1)), coupon_code="OTRO", as_of=sale_moment)

        assert cart.applied_coupon.discount == Decimal("0")
        assert cart.applied_promotion is None
        assert cart.total == Decimal("10000")

    def test_invalid_coupon_falls_back_to_automatic(self, db_session: Session, make_product, make_promotion,
                                                    sale_moment):
        product = make_product(10000)
        promotion = make_promotion(PERCENTAGE_OFF, products=[product.id], discount_percentage=Decimal("20"))

        cart = PricingService(db_session).price_cart(items((product.id, 1)), coupon_code="NOEXISTE", as_of=sale_moment)

        assert cart.coupon_error == "Coupon not found."
        assert cart.applied_coupon is None
        assert cart.applied_promotion.promotion_id == promotion.id
        assert cart.total == Decimal("8000")

    def test_expired_coupon_reports_error(self, db_session: Session, make_product, make_promotion,
                                          make_coupon, sale_moment):
        product = make_product(10000)
        coupon_promotion = make_promotion(PERCENTAGE_OFF, products=[product.id], discount_percentage=Decimal("10"),
                                          is_active=True, start_date=date(2025, 1, 1), end_date=date(2025, 1, 31))
        make_coupon("VENCIDO", coupon_promotion, expires_at=datetime(2025, 5, 31, 23, 59))

        cart = PricingService(db_session).price_cart(items((product.id, 1)), coupon_code="VENCIDO", as_of=sale_moment)

        assert cart.coupon_error == "Coupon has expired."
        assert cart.discount == Decimal("0")


# ===== TESTS DE COTIZACIÓN =====

class TestQuoteProduct:

    def test_quote_with_promotion(self, db_session: Session, make_product, make_promotion, sale_moment):
        product = make_product(50000)
        promotion = make_promotion(PERCENTAGE_OFF, products=[product.id],
                                   discount_percentage=Decimal("10"), name="Semana del café")

        quote = PricingService(db_session).quote_product(product.id, 2, as_of=sale_moment)

        assert quote.base_price == Decimal("100000")
        assert quote.discount == Decimal("10000")
        assert quote.final_price == Decimal("90000")
        assert len(quote.applied_promotions) == 1
        assert quote.applied_promotions[0].promotion_id == promotion.id
        assert quote.applied_promotions[0].promotion_name == "Semana del café"

    def test_quote_with_coupon(self, db_session: Session, make_product, make_promotion, make_coupon, sale_moment):
        product = make_product(20000)
        coupon_promotion = make_promotion(AMOUNT_OFF, products=[product.id],
                                          discount_amount=Decimal("5000"), name="Bono")
        make_coupon("BONO5", coupon_promotion)

        quote = PricingService(db_session).quote_product(product.id, 1, coupon_code="BONO5", as_of=sale_moment)

        assert quote.final_price == Decimal("15000")
        assert quote.applied_promotions[0].promotion_name == "Bono"

    def test_quote_unknown_product(self, db_session: Session):
        with pytest.raises(ProductNotFoundError):
            PricingService(db_session).quote_product(999, 1)

    def test_quote_invalid_quantity_checked_before_product(self, db_session: Session, monkeypatch):
        service = PricingService(db_session)

        def fail_lookup(*args, **kwargs):
            raise AssertionError("no debe consultar el producto")

        monkeypatch.setattr(service.resolver, "resolve_price", fail_lookup)

        with pytest.raises(InvalidCartError) as exc_info:
            service.quote_product(999, 0)

        assert exc_info.value.status_code == 422


# ===== TESTS DEL LIBRO DE USOS =====

class TestUsageLedger:

    def _applied(self, promotion, discount="1000"):
        return CartTotal(
            subtotal=Decimal("10000"),
            discount=Decimal(discount),
            total=Decimal("10000") - Decimal(discount),
            currency="COP",
            applied_promotion=AppliedPromotion(
                promotion_id=promotion.id if isinstance(promotion, Promotion) else promotion,
                name="Promo",
                type=PERCENTAGE_OFF,
                discount=Decimal(discount)
            )
        )

    def test_record_promotion_redemption(self, db_session: Session, make_product, make_promotion, sale_moment):
        product = make_product(10000)
        promotion = make_promotion(PERCENTAGE_OFF, products=[product.id],
                                   discount_percentage=Decimal("10"), max_uses_per_customer=1)
        service = PricingService(db_session)

        cart = service.price_cart(items((product.id, 1)), customer_id=7, as_of=sale_moment)
        usage = service.ledger.record_redemption(cart, customer_id=7, transaction_ref="POS-0001")
        db_session.commit()

        assert usage.promotion_id == promotion.id
        assert usage.coupon_code is None
        assert usage.discount_amount == Decimal("1000")
        db_session.refresh(promotion)
        assert promotion.current_uses == 1

        # El cliente ya usó su cupo
        again = service.price_cart(items((product.id, 1)), customer_id=7, as_of=sale_moment)
        assert again.applied_promotion is None

    def test_record_coupon_redemption(self, db_session: Session, make_product, make_promotion,
                                      make_coupon, sale_moment):
        product = make_product(10000)
        promotion = make_promotion(PERCENTAGE_OFF, products=[product.id], discount_percentage=Decimal("10"))
        coupon = make_coupon("UNICO", promotion, max_uses=1)
        service = PricingService(db_session)

        cart = service.price_cart(items((product.id, 1)), coupon_code="UNICO", as_of=sale_moment)
        usage = service.ledger.record_redemption(cart, transaction_ref="POS-0002")
        db_session.commit()

        assert usage.coupon_code == "UNICO"
        db_session.refresh(coupon)
        assert coupon.current_uses == 1

        # Segunda venta con el mismo carrito ya calculado: el cupo se agotó
        with pytest.raises(QuotaExceededError):
            service.ledger.record_redemption(cart, transaction_ref="POS-0003")
        db_session.rollback()

        db_session.refresh(coupon)
        assert coupon.current_uses == 1

    def test_total_quota_enforced_on_commit(self, db_session: Session, make_promotion):
        promotion = make_promotion(PERCENTAGE_OFF, discount_percentage=Decimal("10"),
                                   max_total_uses=1, current_uses=1)

        with pytest.raises(QuotaExceededError) as exc_info:
            UsageLedger(db_session).record_redemption(self._applied(promotion))

        assert exc_info.value.status_code == 409

    def test_customer_quota_enforced_on_commit(self, db_session: Session, make_promotion, make_usage):
        promotion = make_promotion(PERCENTAGE_OFF, discount_percentage=Decimal("10"), max_uses_per_customer=1)
        make_usage(promotion, customer_id=7)

        with pytest.raises(QuotaExceededError):
            UsageLedger(db_session).record_redemption(self._applied(promotion), customer_id=7)

    def test_no_discount_records_nothing(self, db_session: Session):
        cart = CartTotal(subtotal=Decimal("5000"), discount=Decimal("0"), total=Decimal("5000"), currency="COP")

        assert UsageLedger(db_session).record_redemption(cart) is None
        assert db_session.query(PromotionUsage).count() == 0

    def test_missing_promotion(self, db_session: Session):
        with pytest.raises(InconsistentDataError):
            UsageLedger(db_session).record_redemption(self._applied("00000000-0000-0000-0000-000000000000"))

    def test_missing_coupon_is_inconsistent(self, db_session: Session, make_promotion):
        promotion = make_promotion(PERCENTAGE_OFF, discount_percentage=Decimal("10"))
        cart = CartTotal(
            subtotal=Decimal("10000"),
            discount=Decimal("1000"),
            total=Decimal("9000"),
            currency="COP",
            applied_coupon=AppliedCoupon(code="BORRADO", promotion_id=promotion.id, discount=Decimal("1000"))
        )

        with pytest.raises(InconsistentDataError) as exc_info:
            UsageLedger(db_session).record_redemption(cart)

        assert not isinstance(exc_info.value, QuotaExceededError)
        assert db_session.query(PromotionUsage).count() == 0

    def test_customer_redemptions(self, db_session: Session, make_promotion, make_usage):
        promotion = make_promotion(PERCENTAGE_OFF, discount_percentage=Decimal("10"))
        make_usage(promotion, customer_id=7)
        make_usage(promotion, customer_id=7)
        make_usage(promotion, customer_id=8)

        ledger = UsageLedger(db_session)

        assert ledger.customer_redemptions(promotion.id, 7) == 2
        assert ledger.customer_redemptions(promotion.id, 9) == 0

    def test_reconcile_counters(self, db_session: Session, make_promotion, make_coupon, make_usage):
        promotion = make_promotion(PERCENTAGE_OFF, discount_percentage=Decimal("10"), current_uses=5)
        coupon = make_coupon("CONTADOR", promotion, current_uses=0)
        make_usage(promotion, customer_id=1)
        make_usage(promotion, coupon_code="CONTADOR")

        fixed = UsageLedger(db_session).reconcile_counters()
        db_session.commit()

        assert fixed == {"promotions": 1, "coupons": 1}
        db_session.refresh(promotion)
        db_session.refresh(coupon)
        assert promotion.current_uses == 2
        assert coupon.current_uses == 1

    def test_reconcile_task(self, db_session: Session, session_factory, make_promotion, make_usage, monkeypatch):
        promotion = make_promotion(PERCENTAGE_OFF, discount_percentage=Decimal("10"), current_uses=3)
        make_usage(promotion)
        promotion_id = promotion.id
        monkeypatch.setattr(tasks, "SessionLocal", session_factory)

        fixed = tasks.reconcile_usage_counters()

        assert fixed == {"promotions": 1, "coupons": 0}
        db_session.expire_all()
        assert db_session.get(Promotion, promotion_id).current_uses == 1


# ===== TESTS DE ENDPOINTS =====

@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestPricingRouter:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_price_cart(self, client, make_product, make_promotion):
        product = make_product(100000)
        make_promotion(PERCENTAGE_OFF, products=[product.id], discount_percentage=Decimal("10"), end_date=None)

        response = client.post("/pricing/cart", json={"items": [{"product_id": product.id, "quantity": 1}]})

        assert response.status_code == 200
        data = response.json()
        assert Decimal(str(data["total"])) == Decimal("90000")
        assert data["currency"] == "COP"
        assert data["applied_promotion"] is not None

    def test_price_cart_rejects_invalid_quantity(self, client, make_product):
        product = make_product(1000)

        response = client.post("/pricing/cart", json={"items": [{"product_id": product.id, "quantity": 0}]})

        assert response.status_code == 422

    def test_price_cart_reports_coupon_error(self, client, make_product):
        product = make_product(1000)

        response = client.post("/pricing/cart", json={
            "items": [{"product_id": product.id, "quantity": 1}],
            "coupon_code": "NOEXISTE"
        })

        assert response.status_code == 200
        assert response.json()["coupon_error"] == "Coupon not found."

    def test_resolve_price(self, client, make_product, make_price, store):
        product = make_product(12000)
        make_price(product, 9000, location_id=store.id)

        response = client.post("/pricing/resolve-price", json={"product_id": product.id, "location_id": store.id})

        assert response.status_code == 200
        assert response.json()["source"] == "specific"
        assert Decimal(str(response.json()["price"])) == Decimal("9000")

    def test_resolve_price_unknown_product(self, client):
        response = client.post("/pricing/resolve-price", json={"product_id": 999})

        assert response.status_code == 404

    @pytest.mark.parametrize("path,payload,target", [
        ("/pricing/resolve-price", {"product_id": 1}, (PricingService, "resolve_price")),
        ("/pricing/coupons/validate", {"code": "DIEZ"}, (PricingService, "validate_coupon")),
        ("/pricing/promotions/active", None, (PromotionCatalog, "active_promotions")),
    ])
    def test_unexpected_errors_return_500(self, client, monkeypatch, path, payload, target):
        def boom(*args, **kwargs):
            raise RuntimeError("base de datos caída")

        monkeypatch.setattr(*target, boom)

        if payload is None:
            response = client.get(path)
        else:
            response = client.post(path, json=payload)

        assert response.status_code == 500
        assert "Error interno" in response.json()["detail"]

    def test_calculate_price_unknown_product(self, client):
        response = client.post("/pricing/calculate-price", json={"product_id": 999, "quantity": 1})

        assert response.status_code == 404
        assert response.json()["detail"] == "Producto 999 no encontrado"

    def test_calculate_price(self, client, make_product):
        product = make_product(4500)

        response = client.post("/pricing/calculate-price", json={"product_id": product.id, "quantity": 2})

        assert response.status_code == 200
        assert Decimal(str(response.json()["final_price"])) == Decimal("9000")
        assert response.json()["applied_promotions"] == []

    def test_validate_coupon(self, client, make_promotion, make_coupon):
        promotion = make_promotion(PERCENTAGE_OFF, discount_percentage=Decimal("10"), end_date=None, name="Diez")
        make_coupon("DIEZ", promotion)

        valid = client.post("/pricing/coupons/validate", json={"code": "DIEZ"})
        missing = client.post("/pricing/coupons/validate", json={"code": "NOEXISTE"})

        assert valid.json()["valid"] is True
        assert valid.json()["promotion_name"] == "Diez"
        assert missing.status_code == 200
        assert missing.json() == {
            "valid": False,
            "code": "NOEXISTE",
            "promotion_id": None,
            "promotion_name": None,
            "error": "Coupon not found."
        }

    def test_active_promotions(self, client, make_promotion):
        current = make_promotion(PERCENTAGE_OFF, discount_percentage=Decimal("10"), end_date=None)
        make_promotion(PERCENTAGE_OFF, discount_percentage=Decimal("10"), end_date=date(2025, 1, 31))

        response = client.get("/pricing/promotions/active")

        assert response.status_code == 200
        assert [p["id"] for p in response.json()] == [current.id]
