"""Domain models for catalog aggregation.

Immutable value objects shared by the fetcher, walker, filter evaluator,
cache and summarizer. Transport-specific product shapes never leave the
normalization step; everything downstream works on CatalogRecord.
"""

import json
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Self


# ============================================================================
# Catalog Records
# ============================================================================


@dataclass(frozen=True)
class ProductImage:
    """Product image reference."""

    src: str
    alt: str = ""


@dataclass(frozen=True)
class ProductVariant:
    """Product variant with its price and positional options.

    Attributes:
        price: Variant price, None when the source price is unparseable.
        option1: First option value (usually size or color).
        option2: Second option value.
        option3: Third option value.
    """

    price: Decimal | None
    option1: str = ""
    option2: str = ""
    option3: str = ""

    @property
    def options(self) -> tuple[str, str, str]:
        """Get the positional option values."""
        return (self.option1, self.option2, self.option3)


@dataclass(frozen=True)
class CatalogRecord:
    """Normalized product representation.

    Tags keep their original casing for display; comparisons casefold.

    Attributes:
        id: Opaque external identifier.
        title: Product title.
        vendor: Vendor name, may be empty.
        product_type: Product type, may be empty.
        tags: Trimmed tag tokens in source order.
        handle: Slug used to build the canonical product URL.
        images: Images in source order.
        variants: Variants in source order.
    """

    id: str
    title: str
    vendor: str = ""
    product_type: str = ""
    tags: tuple[str, ...] = ()
    handle: str = ""
    images: tuple[ProductImage, ...] = ()
    variants: tuple[ProductVariant, ...] = ()

    @property
    def prices(self) -> list[Decimal]:
        """Get all parseable variant prices."""
        return [v.price for v in self.variants if v.price is not None]

    @property
    def price_range(self) -> tuple[Decimal, Decimal] | None:
        """Get the effective [min, max] price range.

        Returns:
            Tuple of lowest and highest variant price, or None when the
            record has no priced variants.
        """
        prices = self.prices
        if not prices:
            return None
        return min(prices), max(prices)

    @property
    def folded_tags(self) -> frozenset[str]:
        """Get casefolded tags for comparison."""
        return frozenset(t.casefold() for t in self.tags)


# ============================================================================
# Fetch Results
# ============================================================================


@dataclass(frozen=True)
class PageResult:
    """One successfully fetched page of records.

    Attributes:
        records: Normalized records in page order.
        next_cursor: Cursor for the following page, None on the last page.
        previous_cursor: Cursor for the preceding page, when known.
    """

    records: tuple[CatalogRecord, ...]
    next_cursor: str | None = None
    previous_cursor: str | None = None


@dataclass(frozen=True)
class Throttled:
    """Upstream rejected the request for exceeding its rate limit.

    Attributes:
        retry_after: Seconds the upstream asked us to wait, if it said.
    """

    retry_after: float | None = None


@dataclass(frozen=True)
class FetchFailure:
    """Upstream returned a hard failure.

    Attributes:
        status_code: HTTP status, None for transport errors.
        body: Response body or error text.
    """

    status_code: int | None
    body: str


FetchOutcome = PageResult | Throttled | FetchFailure


# ============================================================================
# Aggregation Request
# ============================================================================


# Parameter aliases accepted by from_params, first match wins.
PARAM_ALIASES: dict[str, tuple[str, ...]] = {
    "vendor": ("vendor",),
    "product_type": ("product_type", "productType", "type"),
    "title": ("title",),
    "tag": ("tag",),
    "price_min": ("price_min", "priceMin", "minPrice"),
    "price_max": ("price_max", "priceMax", "maxPrice"),
    "size": ("filter.v.option.size", "size"),
}


def _clean_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_price(value: Any) -> Decimal | None:
    """Parse a price parameter.

    Args:
        value: Raw parameter value.

    Returns:
        Decimal price, or None when absent or unparseable.
    """
    text = _clean_text(value)
    if text is None:
        return None
    try:
        price = Decimal(text)
    except InvalidOperation:
        return None
    if not price.is_finite():
        return None
    return price


@dataclass(frozen=True)
class AggregationRequest:
    """Normalized filter/aggregation parameters.

    Every field is optional; an absent field never rejects a record.
    """

    vendor: str | None = None
    product_type: str | None = None
    title: str | None = None
    tag: str | None = None
    price_min: Decimal | None = None
    price_max: Decimal | None = None
    size: str | None = None

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> Self:
        """Build a request from loose query or body parameters.

        Args:
            params: Mapping of raw parameter names to values.

        Returns:
            Normalized AggregationRequest.
        """
        values: dict[str, Any] = {}
        for name, aliases in PARAM_ALIASES.items():
            raw = next(
                (params[a] for a in aliases if _clean_text(params.get(a)) is not None),
                None,
            )
            if name in ("price_min", "price_max"):
                values[name] = parse_price(raw)
            else:
                values[name] = _clean_text(raw)
        return cls(**values)

    @property
    def is_empty(self) -> bool:
        """Check whether no clause is set."""
        return all(getattr(self, f.name) is None for f in fields(self))

    @property
    def has_price_bound(self) -> bool:
        """Check whether a price clause is set."""
        return self.price_min is not None or self.price_max is not None

    def as_dict(self) -> dict[str, str]:
        """Get set fields as strings.

        Prices are written in plain notation without trailing zeros, so
        equal amounts ("10", "10.00") serialize identically.
        """
        values: dict[str, str] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            if isinstance(value, Decimal):
                values[f.name] = format(value.normalize(), "f")
            else:
                values[f.name] = str(value)
        return values

    def cache_key(self) -> str:
        """Get a canonical key for this request.

        Fields are serialized with sorted keys so the order parameters
        were supplied in never affects the key.
        """
        return json.dumps(self.as_dict(), sort_keys=True, separators=(",", ":"))


# ============================================================================
# Aggregation Results
# ============================================================================


@dataclass(frozen=True)
class WalkBounds:
    """Safety caps for one aggregation."""

    max_pages: int
    max_records: int


@dataclass(frozen=True)
class AggregationResult:
    """Records accumulated by one walk.

    Attributes:
        records: Records in page-then-within-page order.
        truncated: True when a safety bound stopped the walk early.
        pages_fetched: Number of pages fetched.
    """

    records: tuple[CatalogRecord, ...]
    truncated: bool = False
    pages_fetched: int = 0

    @property
    def count(self) -> int:
        """Get number of records."""
        return len(self.records)


@dataclass(frozen=True)
class CatalogSummary:
    """Read-only projection over an aggregated catalog.

    Attributes:
        price_min: Lowest variant price, 0 when nothing is priced.
        price_max: Highest variant price, 0 when nothing is priced.
        vendors: Distinct non-empty vendors.
        colors: Distinct values from "color:" tags.
        truncated: Whether the underlying walk was truncated.
    """

    price_min: Decimal
    price_max: Decimal
    vendors: frozenset[str] = field(default_factory=frozenset)
    colors: frozenset[str] = field(default_factory=frozenset)
    truncated: bool = False


@dataclass(frozen=True)
class CacheEntry:
    """A cached aggregation payload.

    Owned by the result cache and replaced, never mutated, on re-fetch.
    """

    key: str
    payload: Any
    created_at: datetime
