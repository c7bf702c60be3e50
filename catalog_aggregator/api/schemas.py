"""API schemas for the catalog aggregator.

Pydantic models for response serialization.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Common Schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Standard error response.

    All API errors follow this format for consistency.
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] | list[Any] = Field(
        default_factory=list, description="Additional error details"
    )
    request_id: str | None = Field(
        default=None, description="Request ID for correlation"
    )


# ============================================================================
# Product Schemas
# ============================================================================


class ImageSchema(BaseModel):
    """Product image."""

    src: str
    alt: str = ""


class VariantSchema(BaseModel):
    """Product variant."""

    price: float | None = Field(default=None, description="Variant price")
    option1: str = ""
    option2: str = ""
    option3: str = ""


class ProductSchema(BaseModel):
    """Product projection returned to clients."""

    id: str
    title: str
    vendor: str
    product_type: str
    handle: str
    url: str = Field(..., description="Canonical storefront URL")
    tags: list[str] = Field(default_factory=list)
    image: str | None = Field(default=None, description="First image URL")
    images: list[ImageSchema] = Field(default_factory=list)
    price_min: float | None = Field(default=None, description="Lowest variant price")
    price_max: float | None = Field(default=None, description="Highest variant price")
    variants: list[VariantSchema] = Field(default_factory=list)


# ============================================================================
# Response Schemas
# ============================================================================


class FilterResponse(BaseModel):
    """Aggregated and filtered products."""

    count: int = Field(..., description="Number of matching products")
    truncated: bool = Field(
        default=False, description="Whether a safety bound cut the walk short"
    )
    products: list[ProductSchema]


class MetaResponse(BaseModel):
    """Catalog facets."""

    price_min: float
    price_max: float
    vendors: list[str]
    colors: list[str]
    truncated: bool = False


class PaginationSchema(BaseModel):
    """Cursor pagination block."""

    model_config = ConfigDict(populate_by_name=True)

    current_page: int = Field(..., alias="currentPage")
    total_pages: int | None = Field(
        default=None, alias="totalPages", description="Unknown under cursor pagination"
    )
    has_next_page: bool = Field(..., alias="hasNextPage")
    has_prev_page: bool = Field(..., alias="hasPrevPage")
    next_cursor: str | None = Field(default=None, alias="nextCursor")
    previous_cursor: str | None = Field(default=None, alias="previousCursor")


class BrowseResponse(BaseModel):
    """One page of products."""

    products: list[ProductSchema]
    pagination: PaginationSchema
