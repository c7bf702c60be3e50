"""Catalog filter endpoints.

Accepts the loose parameter shapes used by storefront filter widgets and
returns filtered products, catalog facets, or a single cursor page.
"""

from collections.abc import Mapping
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder

from catalog_aggregator.api.schemas import (
    BrowseResponse,
    ErrorResponse,
    FilterResponse,
    ImageSchema,
    MetaResponse,
    PaginationSchema,
    ProductSchema,
    VariantSchema,
)
from catalog_aggregator.application.catalog_service import (
    BrowsePage,
    CatalogService,
    get_catalog_service,
)
from catalog_aggregator.domain.models import (
    AggregationRequest,
    AggregationResult,
    CatalogRecord,
    CatalogSummary,
)

router = APIRouter(prefix="/api", tags=["Catalog"])

TRUTHY = {"1", "true", "yes", "on"}

ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    422: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
}


# ============================================================================
# Dependencies
# ============================================================================


def get_service(request: Request) -> CatalogService:
    """Get catalog service with request ID."""
    request_id = getattr(request.state, "request_id", None)
    return get_catalog_service(request_id=request_id)


# ============================================================================
# Converters
# ============================================================================


def product_url(record: CatalogRecord, service: CatalogService) -> str:
    """Build the canonical storefront URL for a product."""
    base = service.settings.storefront_url or f"https://{service.settings.shop_domain}"
    return f"{base.rstrip('/')}/products/{record.handle}"


def record_to_schema(record: CatalogRecord, service: CatalogService) -> ProductSchema:
    """Convert CatalogRecord to response schema."""
    price_range = record.price_range
    return ProductSchema(
        id=record.id,
        title=record.title,
        vendor=record.vendor,
        product_type=record.product_type,
        handle=record.handle,
        url=product_url(record, service),
        tags=list(record.tags),
        image=record.images[0].src if record.images else None,
        images=[ImageSchema(src=i.src, alt=i.alt) for i in record.images],
        price_min=float(price_range[0]) if price_range else None,
        price_max=float(price_range[1]) if price_range else None,
        variants=[
            VariantSchema(
                price=float(v.price) if v.price is not None else None,
                option1=v.option1,
                option2=v.option2,
                option3=v.option3,
            )
            for v in record.variants
        ],
    )


def result_to_response(result: AggregationResult, service: CatalogService) -> FilterResponse:
    """Convert AggregationResult to response schema."""
    return FilterResponse(
        count=result.count,
        truncated=result.truncated,
        products=[record_to_schema(r, service) for r in result.records],
    )


def summary_to_response(summary: CatalogSummary) -> MetaResponse:
    """Convert CatalogSummary to response schema."""
    return MetaResponse(
        price_min=float(summary.price_min),
        price_max=float(summary.price_max),
        vendors=sorted(summary.vendors, key=str.casefold),
        colors=sorted(summary.colors, key=str.casefold),
        truncated=summary.truncated,
    )


def page_to_response(page: BrowsePage, service: CatalogService) -> BrowseResponse:
    """Convert BrowsePage to response schema."""
    return BrowseResponse(
        products=[record_to_schema(r, service) for r in page.records],
        pagination=PaginationSchema(
            current_page=page.current_page,
            total_pages=page.total_pages,
            has_next_page=page.has_next_page,
            has_prev_page=page.has_prev_page,
            next_cursor=page.next_cursor,
            previous_cursor=page.previous_cursor,
        ),
    )


# ============================================================================
# Parameter Parsing
# ============================================================================


def _param(params: Mapping[str, Any], name: str) -> str | None:
    value = params.get(name)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _int_param(params: Mapping[str, Any], name: str, minimum: int = 1) -> int | None:
    value = _param(params, name)
    if value is None:
        return None
    try:
        parsed = int(value)
    except ValueError:
        parsed = None
    if parsed is None or parsed < minimum:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "error_code": "VALIDATION_ERROR",
                "message": f"'{name}' must be an integer >= {minimum}",
            },
        )
    return parsed


async def dispatch(params: Mapping[str, Any], service: CatalogService) -> dict[str, Any]:
    """Route a filter request to the search, meta or browse view.

    Args:
        params: Query or body parameters.
        service: Catalog service.

    Returns:
        JSON-ready response payload.
    """
    request = AggregationRequest.from_params(params)

    meta_only = (_param(params, "meta_only") or "").lower() in TRUTHY
    if meta_only:
        return jsonable_encoder(summary_to_response(await service.summarize(request)))

    cursor = _param(params, "cursor")
    page = _int_param(params, "page")
    limit = _int_param(params, "limit")
    if cursor is not None or page is not None or limit is not None:
        browse = await service.browse(request, cursor=cursor, page=page or 1, limit=limit)
        return jsonable_encoder(page_to_response(browse, service), by_alias=True)

    return jsonable_encoder(result_to_response(await service.search(request), service))


# ============================================================================
# Endpoints
# ============================================================================


@router.get(
    "/filter",
    responses=ERROR_RESPONSES,
    summary="Filter products",
    description=(
        "Aggregate the catalog and filter it by vendor, product type, title, "
        "tag, price range and size. `meta_only` returns facets instead; "
        "`cursor`, `page` or `limit` return a single page."
    ),
)
async def filter_products(
    request: Request,
    service: Annotated[CatalogService, Depends(get_service)],
) -> dict[str, Any]:
    """Filter products from query parameters."""
    return await dispatch(request.query_params, service)


@router.post(
    "/filter",
    responses=ERROR_RESPONSES,
    summary="Filter products (JSON body)",
)
async def filter_products_body(
    request: Request,
    service: Annotated[CatalogService, Depends(get_service)],
) -> dict[str, Any]:
    """Filter products from a JSON body.

    Query parameters are merged underneath the body.

    Raises:
        HTTPException: If the body is not a JSON object.
    """
    try:
        body = await request.json()
    except ValueError:
        body = None
    if not isinstance(body, dict):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "error_code": "VALIDATION_ERROR",
                "message": "Request body must be a JSON object",
            },
        )
    params = {**request.query_params, **body}
    return await dispatch(params, service)


@router.get(
    "/meta",
    response_model=MetaResponse,
    responses=ERROR_RESPONSES,
    summary="Catalog facets",
    description="Distinct vendors, price bounds and colors of the (filtered) catalog.",
)
async def catalog_meta(
    request: Request,
    service: Annotated[CatalogService, Depends(get_service)],
) -> MetaResponse:
    """Summarize the catalog from query parameters."""
    summary = await service.summarize(AggregationRequest.from_params(request.query_params))
    return summary_to_response(summary)
