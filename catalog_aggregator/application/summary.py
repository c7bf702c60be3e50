"""Meta summary over an aggregated catalog.

Produces the vendor list, overall price bounds and the color facet used
by storefront filter sidebars. Colors have no dedicated field; they are
read from tags following the "color:<value>" convention.
"""

from collections.abc import Iterable
from decimal import Decimal

from catalog_aggregator.domain.models import CatalogRecord, CatalogSummary

COLOR_TAG_PREFIX = "color:"

# Reported for both bounds when nothing is priced.
NO_PRICE = Decimal("0")


def color_from_tag(tag: str) -> str | None:
    """Get the color value of a "color:<value>" tag, if it is one."""
    if not tag.casefold().startswith(COLOR_TAG_PREFIX):
        return None
    value = tag[len(COLOR_TAG_PREFIX):].strip()
    return value or None


def summarize(records: Iterable[CatalogRecord], truncated: bool = False) -> CatalogSummary:
    """Summarize vendors, price bounds and colors.

    Args:
        records: Aggregated records.
        truncated: Whether the aggregation was cut short by a bound.

    Returns:
        CatalogSummary instance.
    """
    vendors: set[str] = set()
    colors: set[str] = set()
    prices: list[Decimal] = []

    for record in records:
        if record.vendor:
            vendors.add(record.vendor)
        prices.extend(record.prices)
        for tag in record.tags:
            color = color_from_tag(tag)
            if color:
                colors.add(color)

    return CatalogSummary(
        price_min=min(prices) if prices else NO_PRICE,
        price_max=max(prices) if prices else NO_PRICE,
        vendors=frozenset(vendors),
        colors=frozenset(colors),
        truncated=truncated,
    )
