"""Tests for the meta summarizer."""

from decimal import Decimal

from catalog_aggregator.application.summary import NO_PRICE, color_from_tag, summarize
from factories import make_record


def test_color_from_tag() -> None:
    assert color_from_tag("color:Red") == "Red"
    assert color_from_tag("Color: Navy Blue ") == "Navy Blue"
    assert color_from_tag("Size:M") is None
    assert color_from_tag("color:") is None


class TestSummarize:
    """Tests for vendor, price and color facets."""

    def test_collects_facets(self) -> None:
        records = [
            make_record("1", vendor="Acme", tags=("color:Red", "Size:M"), prices=("15.00", "9.50")),
            make_record("2", vendor="Globex", tags=("color:blue",), prices=("42.00",)),
            make_record("3", vendor="Acme", tags=("color:Red",), prices=("20.00",)),
        ]

        summary = summarize(records)

        assert summary.vendors == frozenset({"Acme", "Globex"})
        assert summary.colors == frozenset({"Red", "blue"})
        assert summary.price_min == Decimal("9.50")
        assert summary.price_max == Decimal("42.00")
        assert summary.truncated is False

    def test_unpriced_catalog_uses_zero_bounds(self) -> None:
        summary = summarize([make_record("1", prices=())])

        assert summary.price_min == NO_PRICE
        assert summary.price_max == NO_PRICE

    def test_empty_vendor_is_skipped(self) -> None:
        summary = summarize([make_record("1", vendor=""), make_record("2", vendor="Acme")])

        assert summary.vendors == frozenset({"Acme"})

    def test_unpriced_variants_are_ignored(self) -> None:
        summary = summarize([make_record("1", prices=(None, "7.00"))])

        assert summary.price_min == Decimal("7.00")
        assert summary.price_max == Decimal("7.00")

    def test_truncation_is_carried(self) -> None:
        assert summarize([], truncated=True).truncated is True
