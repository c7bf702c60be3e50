"""Filter evaluation over aggregated records.

A request is a conjunction of independent clauses. An absent clause is
vacuously true, so an empty request returns the records unchanged.
"""

from collections.abc import Callable, Iterable
from decimal import Decimal

from catalog_aggregator.domain.models import AggregationRequest, CatalogRecord

Predicate = Callable[[CatalogRecord], bool]


def _contains(needle: str) -> Callable[[str], bool]:
    folded = needle.casefold()
    return lambda haystack: folded in haystack.casefold()


def vendor_clause(vendor: str) -> Predicate:
    """Case-insensitive substring match on vendor."""
    match = _contains(vendor)
    return lambda record: match(record.vendor)


def product_type_clause(product_type: str) -> Predicate:
    """Case-insensitive substring match on product type."""
    match = _contains(product_type)
    return lambda record: match(record.product_type)


def title_clause(title: str) -> Predicate:
    """Case-insensitive substring match on title."""
    match = _contains(title)
    return lambda record: match(record.title)


def tag_clause(tag: str) -> Predicate:
    """Case-insensitive exact token match against any tag.

    Tags are discrete labels: "red" does not match "bright-red".
    """
    folded = tag.casefold()
    return lambda record: folded in record.folded_tags


def price_clause(price_min: Decimal | None, price_max: Decimal | None) -> Predicate:
    """Variant price range overlaps [price_min, price_max].

    Records without priced variants never pass.
    """

    def predicate(record: CatalogRecord) -> bool:
        price_range = record.price_range
        if price_range is None:
            return False
        low, high = price_range
        if price_min is not None and high < price_min:
            return False
        if price_max is not None and low > price_max:
            return False
        return True

    return predicate


def size_clause(size: str) -> Predicate:
    """Any variant option case-insensitively equals the size."""
    folded = size.casefold()
    return lambda record: any(
        option.casefold() == folded
        for variant in record.variants
        for option in variant.options
        if option
    )


def build_predicates(request: AggregationRequest) -> list[Predicate]:
    """Build one predicate per set clause.

    Args:
        request: Normalized request.

    Returns:
        Predicates to be combined with logical AND.
    """
    predicates: list[Predicate] = []
    if request.vendor:
        predicates.append(vendor_clause(request.vendor))
    if request.product_type:
        predicates.append(product_type_clause(request.product_type))
    if request.title:
        predicates.append(title_clause(request.title))
    if request.tag:
        predicates.append(tag_clause(request.tag))
    if request.has_price_bound:
        predicates.append(price_clause(request.price_min, request.price_max))
    if request.size:
        predicates.append(size_clause(request.size))
    return predicates


def filter_records(
    records: Iterable[CatalogRecord],
    request: AggregationRequest,
) -> list[CatalogRecord]:
    """Keep records that satisfy every clause of the request.

    Args:
        records: Records in aggregation order.
        request: Normalized request.

    Returns:
        Matching records, order preserved.
    """
    predicates = build_predicates(request)
    return [r for r in records if all(p(r) for p in predicates)]
