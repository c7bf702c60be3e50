"""Tests for domain models."""

from decimal import Decimal

import pytest

from catalog_aggregator.domain.models import AggregationRequest, parse_price
from factories import make_record


class TestAggregationRequest:
    """Tests for request normalization."""

    def test_from_params_reads_canonical_names(self) -> None:
        """Canonical parameter names populate every field."""
        request = AggregationRequest.from_params(
            {
                "vendor": "Acme",
                "product_type": "Shoes",
                "title": "runner",
                "tag": "sale",
                "price_min": "10",
                "price_max": "20.50",
                "filter.v.option.size": "M",
            }
        )

        assert request == AggregationRequest(
            vendor="Acme",
            product_type="Shoes",
            title="runner",
            tag="sale",
            price_min=Decimal("10"),
            price_max=Decimal("20.50"),
            size="M",
        )

    @pytest.mark.parametrize(
        "params",
        [
            {"productType": "Shoes", "priceMin": "5", "maxPrice": "9"},
            {"type": "Shoes", "minPrice": "5", "priceMax": "9"},
        ],
    )
    def test_from_params_accepts_aliases(self, params: dict[str, str]) -> None:
        """Aliases used by older handlers map to the same fields."""
        request = AggregationRequest.from_params(params)

        assert request.product_type == "Shoes"
        assert request.price_min == Decimal("5")
        assert request.price_max == Decimal("9")

    def test_blank_values_are_absent(self) -> None:
        """Whitespace-only values never become clauses."""
        request = AggregationRequest.from_params({"vendor": "  ", "tag": "", "size": None})

        assert request.is_empty

    def test_unparseable_price_is_absent(self) -> None:
        """A bad price is treated as an absent clause, not an error."""
        request = AggregationRequest.from_params({"price_min": "cheap", "price_max": "NaN"})

        assert request.price_min is None
        assert request.price_max is None
        assert not request.has_price_bound

    def test_cache_key_ignores_field_order(self) -> None:
        """Identical values produce identical keys in any order."""
        first = AggregationRequest.from_params({"vendor": "Acme", "price_min": "10", "tag": "sale"})
        second = AggregationRequest.from_params({"tag": "sale", "price_min": "10", "vendor": "Acme"})

        assert first.cache_key() == second.cache_key()

    def test_cache_key_for_equal_prices(self) -> None:
        """Equal amounts written with different scales share a key."""
        plain = AggregationRequest.from_params({"price_min": "10", "price_max": "100"})
        padded = AggregationRequest.from_params({"price_min": "10.00", "price_max": "100.0"})

        assert plain == padded
        assert plain.cache_key() == padded.cache_key()
        assert plain.cache_key() == '{"price_max":"100","price_min":"10"}'

    def test_cache_key_differs_by_value(self) -> None:
        """Different clause values produce different keys."""
        assert (
            AggregationRequest(vendor="Acme").cache_key()
            != AggregationRequest(vendor="Globex").cache_key()
        )


class TestParsePrice:
    """Tests for price parsing."""

    def test_parses_decimal_strings(self) -> None:
        assert parse_price(" 19.99 ") == Decimal("19.99")

    def test_rejects_infinity(self) -> None:
        assert parse_price("Infinity") is None


class TestCatalogRecord:
    """Tests for record helpers."""

    def test_price_range_spans_variants(self) -> None:
        """Range is min and max over variant prices."""
        record = make_record(prices=("25.00", "15.00", "20.00"))

        assert record.price_range == (Decimal("15.00"), Decimal("25.00"))

    def test_price_range_undefined_without_priced_variants(self) -> None:
        """No priced variants means no range, not zero."""
        assert make_record(prices=()).price_range is None
        assert make_record(prices=(None,)).price_range is None

    def test_tags_keep_casing_but_compare_folded(self) -> None:
        record = make_record(tags=("Summer", "SALE"))

        assert record.tags == ("Summer", "SALE")
        assert record.folded_tags == {"summer", "sale"}
