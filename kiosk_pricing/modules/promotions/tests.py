"""
Tests para el módulo de Promociones

Cubren:
- Cálculo de descuentos por tipo de promoción
- Construcción de reglas desde filas de Promotion
- Elegibilidad (líneas que califican, cupos, cantidad mínima)
- Vigencia por fechas, horario y días de la semana
- Selección de la mejor promoción y desempates
"""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal
from sqlalchemy.orm import Session

from kiosk_pricing.modules.pricing.ledger import UsageLedger
from kiosk_pricing.modules.promotions import catalog as catalog_module
from kiosk_pricing.modules.promotions.calculator import CALCULATORS, calculate_discount, spread_discount
from kiosk_pricing.modules.promotions.catalog import PromotionCatalog, is_temporally_active, is_within_window
from kiosk_pricing.modules.promotions.eligibility import EligibilityFilter
from kiosk_pricing.modules.promotions.models import Promotion, PromotionCategory, PromotionProduct, PromotionType
from kiosk_pricing.modules.promotions.rules import (
    RULE_TYPES, AmountOff, Bundle, BuyXGetY, HappyHour, PercentageOff, VolumeDiscount, build_rule
)
from kiosk_pricing.modules.promotions.schedule import time_of_day, to_local, weekday_index
from kiosk_pricing.modules.promotions.schemas import PricedLine
from kiosk_pricing.modules.promotions.selector import PromotionSelector


def line(product_id, quantity, unit_price, category_id=None):
    return PricedLine(
        product_id=product_id,
        category_id=category_id,
        quantity=quantity,
        unit_price=Decimal(str(unit_price))
    )


class FakeLedger:
    """Historial de redenciones en memoria"""

    def __init__(self, counts=None):
        self.counts = counts or {}

    def customer_redemptions(self, promotion_id, customer_id):
        return self.counts.get((promotion_id, customer_id), 0)


# ===== TESTS DEL CALCULADOR =====

class TestDiscountCalculator:

    def test_every_rule_has_calculator(self):
        assert set(RULE_TYPES) == set(CALCULATORS)

    def test_percentage_off(self):
        lines = [line(1, 1, 100000)]
        result = calculate_discount(PercentageOff(Decimal("10")), lines, lines)

        assert result.discount == Decimal("10000")
        assert len(result.applied_items) == 1
        assert result.applied_items[0].discount_amount == Decimal("10000")

    def test_percentage_off_spreads_by_line_value(self):
        lines = [line(1, 3, 1000), line(2, 1, 1000)]
        result = calculate_discount(PercentageOff(Decimal("10")), lines, lines)

        assert result.discount == Decimal("400")
        amounts = {item.product_id: item.discount_amount for item in result.applied_items}
        assert amounts[1] == Decimal("300")
        assert amounts[2] == Decimal("100")

    def test_amount_off_capped_at_qualifying_value(self):
        lines = [line(1, 2, 15000)]
        result = calculate_discount(AmountOff(Decimal("50000")), lines, lines)

        assert result.discount == Decimal("30000")

    def test_amount_off_below_value(self):
        lines = [line(1, 2, 15000)]
        result = calculate_discount(AmountOff(Decimal("5000")), lines, lines)

        assert result.discount == Decimal("5000")

    def test_buy_x_get_y_takes_cheapest_units_first(self):
        """3x2: la unidad gratis es la más barata"""
        lines = [line(1, 2, 5000), line(2, 1, 3000)]
        result = calculate_discount(BuyXGetY(2, 1), lines, lines)

        assert result.discount == Decimal("3000")
        assert len(result.applied_items) == 1
        assert result.applied_items[0].product_id == 2
        assert result.applied_items[0].quantity == 1

    def test_buy_x_get_y_spans_lines(self):
        lines = [line(1, 3, 2000), line(2, 3, 1000)]
        result = calculate_discount(BuyXGetY(2, 1), lines, lines)

        # 6 unidades = 2 juegos = 2 gratis, ambas del producto más barato
        assert result.discount == Decimal("2000")
        assert [(i.product_id, i.quantity) for i in result.applied_items] == [(2, 2)]

    def test_buy_x_get_y_free_units_cross_to_next_line(self):
        lines = [line(1, 4, 2000), line(2, 1, 1000), line(3, 1, 3000)]
        result = calculate_discount(BuyXGetY(1, 1), lines, lines)

        # 6 unidades = 3 gratis: 1 de 1000 y 2 de 2000
        assert result.discount == Decimal("5000")
        assert [(i.product_id, i.quantity) for i in result.applied_items] == [(2, 1), (1, 2)]

    def test_buy_x_get_y_incomplete_set(self):
        lines = [line(1, 2, 5000)]
        assert calculate_discount(BuyXGetY(2, 1), lines, lines) is None

    def test_volume_discount_boundary(self):
        rule = VolumeDiscount(10, Decimal("5"))

        below = [line(1, 9, 1000)]
        assert calculate_discount(rule, below, below) is None

        exact = [line(1, 10, 1000)]
        result = calculate_discount(rule, exact, exact)
        assert result.discount == Decimal("500")

    def test_bundle_price(self):
        cart = [line(1, 1, 5000), line(2, 1, 5000)]
        rule = Bundle(Decimal("8000"), frozenset({1, 2}))

        result = calculate_discount(rule, cart, cart)
        assert result.discount == Decimal("2000")

    def test_bundle_missing_required_product(self):
        cart = [line(1, 1, 5000)]
        rule = Bundle(Decimal("3000"), frozenset({1, 2}))

        assert calculate_discount(rule, cart, cart) is None

    def test_bundle_required_product_outside_qualifying_lines(self):
        """Los obligatorios se buscan en todo el carrito"""
        cart = [line(1, 1, 5000), line(2, 1, 4000)]
        qualifying = [cart[0]]
        rule = Bundle(Decimal("3000"), frozenset({2}))

        result = calculate_discount(rule, qualifying, cart)
        assert result.discount == Decimal("2000")

    def test_bundle_price_above_value(self):
        cart = [line(1, 1, 5000)]
        rule = Bundle(Decimal("7000"), frozenset())

        assert calculate_discount(rule, cart, cart) is None

    def test_happy_hour_uses_percentage(self):
        lines = [line(1, 2, 10000)]
        result = calculate_discount(HappyHour(Decimal("20")), lines, lines)

        assert result.discount == Decimal("4000")

    def test_spread_discount_zero_value(self):
        assert spread_discount(Decimal("100"), [line(1, 1, 0)]) == []


# ===== TESTS DE REGLAS =====

class TestBuildRule:

    def test_percentage_rule(self):
        promotion = Promotion(
            promotion_type=PromotionType.PERCENTAGE_OFF.value,
            discount_percentage=Decimal("10")
        )
        assert build_rule(promotion) == PercentageOff(Decimal("10"))

    def test_unknown_type(self):
        promotion = Promotion(id="p-1", promotion_type="MYSTERY_BOX", discount_percentage=Decimal("10"))
        assert build_rule(promotion) is None

    def test_missing_configuration(self):
        assert build_rule(Promotion(promotion_type=PromotionType.PERCENTAGE_OFF.value)) is None
        assert build_rule(Promotion(promotion_type=PromotionType.BUY_X_GET_Y.value, buy_quantity=2)) is None
        assert build_rule(Promotion(
            promotion_type=PromotionType.VOLUME_DISCOUNT.value,
            discount_percentage=Decimal("5")
        )) is None

    def test_buy_x_get_y_rule(self):
        promotion = Promotion(promotion_type=PromotionType.BUY_X_GET_Y.value, buy_quantity=2, get_quantity=1)
        assert build_rule(promotion) == BuyXGetY(2, 1)

    def test_bundle_rule_collects_required_products(self):
        promotion = Promotion(
            promotion_type=PromotionType.BUNDLE.value,
            discount_amount=Decimal("8000"),
            products=[
                PromotionProduct(product_id=1, is_required=True),
                PromotionProduct(product_id=2, is_required=False),
            ]
        )
        assert build_rule(promotion) == Bundle(Decimal("8000"), frozenset({1}))

    def test_free_bundle(self):
        promotion = Promotion(promotion_type=PromotionType.BUNDLE.value, discount_amount=Decimal("0"))
        rule = build_rule(promotion)

        assert isinstance(rule, Bundle)
        assert rule.bundle_price == Decimal("0")


# ===== TESTS DE ELEGIBILIDAD =====

class TestEligibilityFilter:

    def _promotion(self, **fields):
        fields.setdefault("id", "promo-1")
        fields.setdefault("promotion_type", PromotionType.PERCENTAGE_OFF.value)
        fields.setdefault("discount_percentage", Decimal("10"))
        return Promotion(**fields)

    def test_qualifying_by_product_and_category(self):
        promotion = self._promotion(
            products=[PromotionProduct(product_id=1)],
            categories=[PromotionCategory(category_id=7)]
        )
        lines = [line(1, 1, 1000), line(2, 1, 1000, category_id=7), line(3, 1, 1000, category_id=8)]

        qualifying = EligibilityFilter.qualifying_lines(promotion, lines)
        assert [l.product_id for l in qualifying] == [1, 2]

    def test_no_qualifying_lines(self):
        promotion = self._promotion(products=[PromotionProduct(product_id=99)])
        assert EligibilityFilter(FakeLedger()).evaluate(promotion, [line(1, 1, 1000)]) is None

    def test_evaluate_sets_promotion_id(self):
        promotion = self._promotion(products=[PromotionProduct(product_id=1)])
        result = EligibilityFilter(FakeLedger()).evaluate(promotion, [line(1, 1, 1000)])

        assert result.promotion_id == "promo-1"
        assert result.discount == Decimal("100")

    def test_total_quota_reached(self):
        promotion = self._promotion(
            products=[PromotionProduct(product_id=1)],
            max_total_uses=5,
            current_uses=5
        )
        assert EligibilityFilter(FakeLedger()).evaluate(promotion, [line(1, 1, 1000)]) is None

    def test_customer_quota(self):
        promotion = self._promotion(products=[PromotionProduct(product_id=1)], max_uses_per_customer=1)
        eligibility = EligibilityFilter(FakeLedger({("promo-1", 7): 1}))
        lines = [line(1, 1, 1000)]

        assert eligibility.evaluate(promotion, lines, customer_id=7) is None
        assert eligibility.evaluate(promotion, lines, customer_id=8) is not None
        # Sin cliente no se verifica el cupo por cliente
        assert eligibility.evaluate(promotion, lines) is not None

    def test_min_quantity_excludes_promotion(self):
        promotion = self._promotion(products=[PromotionProduct(product_id=1)], min_quantity=3)
        eligibility = EligibilityFilter(FakeLedger())

        assert eligibility.evaluate(promotion, [line(1, 2, 1000)]) is None
        assert eligibility.evaluate(promotion, [line(1, 3, 1000)]).discount == Decimal("300")


# ===== TESTS DE VIGENCIA =====

class TestSchedule:

    def test_weekday_index_sunday_is_zero(self):
        assert weekday_index(datetime(2025, 6, 1, 12, 0)) == 0  # domingo
        assert weekday_index(datetime(2025, 6, 2, 12, 0)) == 1  # lunes
        assert weekday_index(datetime(2025, 6, 7, 12, 0)) == 6  # sábado

    def test_time_of_day(self):
        assert time_of_day(datetime(2025, 6, 2, 9, 5)) == "09:05"

    def test_to_local_converts_aware_moments(self):
        moment = datetime(2025, 6, 2, 15, 0, tzinfo=timezone.utc)
        assert to_local(moment) == datetime(2025, 6, 2, 10, 0)

    def test_to_local_keeps_naive_moments(self):
        moment = datetime(2025, 6, 2, 15, 0)
        assert to_local(moment) is moment

    def test_time_window_is_inclusive(self):
        promotion = Promotion(start_time="09:00", end_time="11:00")

        assert is_within_window(promotion, datetime(2025, 6, 2, 9, 0))
        assert is_within_window(promotion, datetime(2025, 6, 2, 11, 0))
        assert not is_within_window(promotion, datetime(2025, 6, 2, 11, 1))
        assert not is_within_window(promotion, datetime(2025, 6, 2, 8, 59))

    def test_day_mask(self):
        promotion = Promotion(days_of_week=[0, 6])

        assert is_within_window(promotion, datetime(2025, 6, 1, 12, 0))
        assert not is_within_window(promotion, datetime(2025, 6, 2, 12, 0))

    def test_temporally_active_dates(self):
        promotion = Promotion(is_active=True, start_date=date(2025, 6, 1), end_date=date(2025, 6, 30))

        assert is_temporally_active(promotion, datetime(2025, 6, 1, 0, 0))
        assert is_temporally_active(promotion, datetime(2025, 6, 30, 23, 59))
        assert not is_temporally_active(promotion, datetime(2025, 7, 1, 0, 0))
        assert not is_temporally_active(promotion, datetime(2025, 5, 31, 23, 59))

    def test_open_ended_and_inactive(self):
        open_ended = Promotion(is_active=True, start_date=date(2025, 1, 1), end_date=None)
        inactive = Promotion(is_active=False, start_date=date(2025, 1, 1), end_date=None)

        assert is_temporally_active(open_ended, datetime(2030, 1, 1, 12, 0))
        assert not is_temporally_active(inactive, datetime(2025, 6, 1, 12, 0))


# ===== TESTS DEL CATÁLOGO =====

class TestPromotionCatalog:

    def test_filters_dates_and_state(self, db_session: Session, make_product, make_promotion, sale_moment):
        product = make_product(1000)
        current = make_promotion(PromotionType.PERCENTAGE_OFF.value, products=[product.id],
                                 discount_percentage=Decimal("10"), name="Vigente")
        make_promotion(PromotionType.PERCENTAGE_OFF.value, products=[product.id],
                       discount_percentage=Decimal("10"), name="Vencida", end_date=date(2025, 5, 31))
        make_promotion(PromotionType.PERCENTAGE_OFF.value, products=[product.id],
                       discount_percentage=Decimal("10"), name="Futura", start_date=date(2025, 7, 1))
        make_promotion(PromotionType.PERCENTAGE_OFF.value, products=[product.id],
                       discount_percentage=Decimal("10"), name="Inactiva", is_active=False)

        active = PromotionCatalog(db_session).active_promotions(as_of=sale_moment)

        assert [p.id for p in active] == [current.id]

    def test_filters_time_window_and_days(self, db_session: Session, make_product, make_promotion, sale_moment):
        product = make_product(1000)
        morning = make_promotion(PromotionType.HAPPY_HOUR.value, products=[product.id],
                                 discount_percentage=Decimal("20"), start_time="09:00", end_time="11:00")
        make_promotion(PromotionType.HAPPY_HOUR.value, products=[product.id],
                       discount_percentage=Decimal("20"), start_time="17:00", end_time="19:00")
        make_promotion(PromotionType.PERCENTAGE_OFF.value, products=[product.id],
                       discount_percentage=Decimal("5"), days_of_week=[0, 6])

        active = PromotionCatalog(db_session).active_promotions(as_of=sale_moment)

        assert [p.id for p in active] == [morning.id]

    def test_location_scope(self, db_session: Session, make_product, make_promotion, store, sale_moment):
        product = make_product(1000)
        everywhere = make_promotion(PromotionType.PERCENTAGE_OFF.value, products=[product.id],
                                    discount_percentage=Decimal("5"), priority=2)
        local = make_promotion(PromotionType.PERCENTAGE_OFF.value, products=[product.id],
                               discount_percentage=Decimal("5"), locations=[store.id], priority=1)

        catalog = PromotionCatalog(db_session)

        assert [p.id for p in catalog.active_promotions(sale_moment, location_id=store.id)] == [everywhere.id, local.id]
        assert [p.id for p in catalog.active_promotions(sale_moment, location_id=store.id + 1)] == [everywhere.id]

    def test_ordered_by_priority(self, db_session: Session, make_product, make_promotion, sale_moment):
        product = make_product(1000)
        low = make_promotion(PromotionType.PERCENTAGE_OFF.value, products=[product.id],
                             discount_percentage=Decimal("5"), priority=1)
        high = make_promotion(PromotionType.PERCENTAGE_OFF.value, products=[product.id],
                              discount_percentage=Decimal("5"), priority=10)

        active = PromotionCatalog(db_session).active_promotions(as_of=sale_moment)

        assert [p.id for p in active] == [high.id, low.id]

    def test_applies_temporal_check_to_each_candidate(self, db_session: Session, make_product,
                                                      make_promotion, sale_moment, monkeypatch):
        product = make_product(1000)
        kept = make_promotion(PromotionType.PERCENTAGE_OFF.value, products=[product.id],
                              discount_percentage=Decimal("5"), name="Se queda")
        make_promotion(PromotionType.PERCENTAGE_OFF.value, products=[product.id],
                       discount_percentage=Decimal("5"), name="Descartada")
        checked = []

        def only_kept(promotion, moment):
            checked.append(promotion.id)
            return promotion.id == kept.id

        monkeypatch.setattr(catalog_module, "is_temporally_active", only_kept)

        active = PromotionCatalog(db_session).active_promotions(as_of=sale_moment)

        assert [p.id for p in active] == [kept.id]
        assert len(checked) == 2


# ===== TESTS DEL SELECTOR =====

class TestPromotionSelector:

    def _selector(self, db_session):
        return PromotionSelector(PromotionCatalog(db_session), EligibilityFilter(UsageLedger(db_session)))

    def test_picks_largest_discount(self, db_session: Session, make_product, make_promotion, sale_moment):
        product = make_product(10000)
        make_promotion(PromotionType.PERCENTAGE_OFF.value, products=[product.id],
                       discount_percentage=Decimal("10"), priority=10)
        best = make_promotion(PromotionType.AMOUNT_OFF.value, products=[product.id],
                              discount_amount=Decimal("2500"), priority=1)

        result = self._selector(db_session).select_best([line(product.id, 1, 10000)], as_of=sale_moment)

        assert result.promotion.id == best.id
        assert result.discount == Decimal("2500")

    @pytest.mark.parametrize("first_priority,second_priority,winner", [(5, 1, 0), (1, 5, 1)])
    def test_tie_goes_to_first_in_catalog_order(
        self, db_session: Session, make_product, make_promotion, sale_moment,
        first_priority, second_priority, winner
    ):
        product = make_product(10000)
        promotions = [
            make_promotion(PromotionType.PERCENTAGE_OFF.value, products=[product.id],
                           discount_percentage=Decimal("10"), priority=first_priority),
            make_promotion(PromotionType.AMOUNT_OFF.value, products=[product.id],
                           discount_amount=Decimal("1000"), priority=second_priority),
        ]
        selector = self._selector(db_session)
        cart = [line(product.id, 1, 10000)]

        result = selector.select_best(cart, as_of=sale_moment)

        assert result.promotion.id == promotions[winner].id
        # Repetir la evaluación no cambia la elección
        assert selector.select_best(cart, as_of=sale_moment).promotion.id == promotions[winner].id

    def test_no_applicable_promotion(self, db_session: Session, make_product, make_promotion, sale_moment):
        product = make_product(10000)
        other = make_product(5000)
        make_promotion(PromotionType.PERCENTAGE_OFF.value, products=[other.id], discount_percentage=Decimal("10"))

        assert self._selector(db_session).select_best([line(product.id, 1, 10000)], as_of=sale_moment) is None
