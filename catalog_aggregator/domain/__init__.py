"""Domain layer - catalog records, fetch outcomes, requests and errors.

Example usage:
    from catalog_aggregator.domain import AggregationRequest

    request = AggregationRequest.from_params({"vendor": "Acme", "priceMin": "10"})
    request.cache_key()  # '{"price_min":"10","vendor":"Acme"}'
"""

from catalog_aggregator.domain.exceptions import (
    ConfigurationError,
    InvalidPageRequest,
    DomainError,
    MalformedPaginationMetadata,
    UpstreamFailure,
)
from catalog_aggregator.domain.models import (
    AggregationRequest,
    AggregationResult,
    CacheEntry,
    CatalogRecord,
    CatalogSummary,
    FetchFailure,
    FetchOutcome,
    PageResult,
    ProductImage,
    ProductVariant,
    Throttled,
    WalkBounds,
    parse_price,
)

__all__ = [
    "AggregationRequest",
    "AggregationResult",
    "CacheEntry",
    "CatalogRecord",
    "CatalogSummary",
    "ConfigurationError",
    "InvalidPageRequest",
    "DomainError",
    "FetchFailure",
    "FetchOutcome",
    "MalformedPaginationMetadata",
    "PageResult",
    "ProductImage",
    "ProductVariant",
    "Throttled",
    "UpstreamFailure",
    "WalkBounds",
    "parse_price",
]
