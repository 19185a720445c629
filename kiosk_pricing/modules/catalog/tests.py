"""
Tests para la resolución de precios por ubicación y canal
"""

import pytest
from datetime import datetime
from decimal import Decimal
from sqlalchemy.orm import Session

from kiosk_pricing.modules.catalog.models import SalesChannel
from kiosk_pricing.modules.catalog.resolver import PriceResolver
from kiosk_pricing.modules.pricing.exceptions import ProductNotFoundError


class TestPriceResolver:
    """Tests para PriceResolver"""

    def test_base_price_without_context(self, db_session: Session, make_product, make_price, store):
        product = make_product(12000)
        make_price(product, 9000, location_id=store.id)

        result = PriceResolver(db_session).resolve_price(product.id)

        assert result.price == Decimal("12000")
        assert result.base_price == Decimal("12000")
        assert result.source == "base"

    def test_location_override(self, db_session: Session, make_product, make_price, store, sale_moment):
        product = make_product(12000)
        make_price(product, 9000, location_id=store.id)

        result = PriceResolver(db_session).resolve_price(product.id, location_id=store.id, as_of=sale_moment)

        assert result.price == Decimal("9000")
        assert result.base_price == Decimal("12000")
        assert result.source == "specific"

    def test_override_for_other_location_is_ignored(self, db_session: Session, make_product, make_price, store, sale_moment):
        product = make_product(12000)
        make_price(product, 9000, location_id=store.id)

        result = PriceResolver(db_session).resolve_price(product.id, location_id=store.id + 1, as_of=sale_moment)

        assert result.source == "base"

    def test_channel_override_applies_to_any_location(self, db_session: Session, make_product, make_price, store, sale_moment):
        product = make_product(12000)
        make_price(product, 11000, channel="kiosk")

        resolver = PriceResolver(db_session)
        kiosk = resolver.resolve_price(product.id, location_id=store.id, channel=SalesChannel.KIOSK, as_of=sale_moment)
        pos = resolver.resolve_price(product.id, location_id=store.id, channel=SalesChannel.POS, as_of=sale_moment)

        assert kiosk.price == Decimal("11000")
        assert kiosk.source == "specific"
        assert pos.source == "base"

    def test_channel_specific_override_needs_channel(self, db_session: Session, make_product, make_price, store, sale_moment):
        product = make_product(12000)
        make_price(product, 11000, location_id=store.id, channel="online")

        result = PriceResolver(db_session).resolve_price(product.id, location_id=store.id, as_of=sale_moment)

        assert result.source == "base"

    def test_most_recent_override_wins(self, db_session: Session, make_product, make_price, store, sale_moment):
        product = make_product(12000)
        make_price(product, 10000, location_id=store.id, effective_from=datetime(2025, 1, 1))
        make_price(product, 9500, location_id=store.id, effective_from=datetime(2025, 5, 1))

        result = PriceResolver(db_session).resolve_price(product.id, location_id=store.id, as_of=sale_moment)

        assert result.price == Decimal("9500")

    def test_expired_and_future_overrides_are_ignored(self, db_session: Session, make_product, make_price, store, sale_moment):
        product = make_product(12000)
        make_price(product, 10000, location_id=store.id,
                   effective_from=datetime(2025, 1, 1), effective_to=datetime(2025, 6, 1))
        make_price(product, 8000, location_id=store.id, effective_from=datetime(2025, 7, 1))

        result = PriceResolver(db_session).resolve_price(product.id, location_id=store.id, as_of=sale_moment)

        assert result.price == Decimal("12000")
        assert result.source == "base"

    def test_expired_recent_override_falls_back_to_older(self, db_session: Session, make_product, make_price, store, sale_moment):
        product = make_product(12000)
        make_price(product, 10000, location_id=store.id, effective_from=datetime(2025, 1, 1))
        make_price(product, 7000, location_id=store.id,
                   effective_from=datetime(2025, 5, 1), effective_to=datetime(2025, 5, 15))

        result = PriceResolver(db_session).resolve_price(product.id, location_id=store.id, as_of=sale_moment)

        assert result.price == Decimal("10000")

    def test_effective_to_is_exclusive(self, db_session: Session, make_product, make_price, store, sale_moment):
        product = make_product(12000)
        make_price(product, 10000, location_id=store.id,
                   effective_from=datetime(2025, 1, 1), effective_to=sale_moment)

        result = PriceResolver(db_session).resolve_price(product.id, location_id=store.id, as_of=sale_moment)

        assert result.source == "base"

    def test_missing_product(self, db_session: Session):
        with pytest.raises(ProductNotFoundError) as exc_info:
            PriceResolver(db_session).resolve_price(999)

        assert exc_info.value.status_code == 404
        assert exc_info.value.product_id == 999

    def test_resolve_many_omits_missing_products(self, db_session: Session, make_product, category):
        first = make_product(1000, category_id=category.id)
        second = make_product(2000)

        prices = PriceResolver(db_session).resolve_many([first.id, second.id, 999])

        assert set(prices) == {first.id, second.id}
        assert prices[first.id].category_id == category.id
        assert prices[second.id].price == Decimal("2000")
