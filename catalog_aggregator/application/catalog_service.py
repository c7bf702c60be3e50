"""Catalog application service.

Ties the fetcher, walker, filter evaluator, summarizer and result cache
together for one inbound request.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass

import structlog

from catalog_aggregator.application.cache import ResultCache, get_result_cache
from catalog_aggregator.application.filters import filter_records
from catalog_aggregator.application.summary import summarize
from catalog_aggregator.application.walker import CatalogWalker, Sleep, ThrottlePolicy
from catalog_aggregator.domain.exceptions import InvalidPageRequest
from catalog_aggregator.domain.models import (
    AggregationRequest,
    AggregationResult,
    CatalogRecord,
    CatalogSummary,
    WalkBounds,
)
from catalog_aggregator.infrastructure.config import Settings
from catalog_aggregator.infrastructure.config import settings as default_settings
from catalog_aggregator.infrastructure.storefront_client import (
    PageFetcher,
    build_page_fetcher,
)

logger = structlog.get_logger()

FetcherFactory = Callable[[Settings, AggregationRequest], PageFetcher]


@dataclass
class BrowsePage:
    """One page of a cursor-paginated browse.

    Attributes:
        records: Filtered records of this page.
        current_page: Page number as tracked by the caller.
        has_next_page: Whether a following page exists.
        has_prev_page: Whether a preceding page exists.
        next_cursor: Cursor for the following page.
        previous_cursor: Cursor for the preceding page.
        total_pages: Unknown under cursor pagination, always None.
    """

    records: list[CatalogRecord]
    current_page: int
    has_next_page: bool
    has_prev_page: bool
    next_cursor: str | None = None
    previous_cursor: str | None = None
    total_pages: int | None = None


class CatalogService:
    """Service for catalog aggregation requests.

    Example usage:
        service = get_catalog_service()
        result = await service.search(AggregationRequest(vendor="Acme"))
        summary = await service.summarize(AggregationRequest())
    """

    def __init__(
        self,
        settings: Settings | None = None,
        cache: ResultCache | None = None,
        fetcher_factory: FetcherFactory | None = None,
        sleep: Sleep = asyncio.sleep,
        request_id: str | None = None,
    ) -> None:
        """Initialize service.

        Args:
            settings: Application settings (uses global if not provided).
            cache: Result cache (uses process-wide cache if not provided).
            fetcher_factory: Builds a page fetcher per request.
            sleep: Awaitable sleep used for throttle backoff.
            request_id: Request ID for correlation.
        """
        self.settings = settings or default_settings
        self.cache = cache if cache is not None else get_result_cache(self.settings.cache_ttl_seconds)
        self._fetcher_factory = fetcher_factory or build_page_fetcher
        self._sleep = sleep
        self.request_id = request_id

    @property
    def bounds(self) -> WalkBounds:
        """Get configured walk bounds."""
        return WalkBounds(
            max_pages=self.settings.max_pages,
            max_records=self.settings.max_records,
        )

    def _walker(self, fetcher: PageFetcher) -> CatalogWalker:
        return CatalogWalker(
            fetcher,
            policy=ThrottlePolicy.from_settings(self.settings),
            sleep=self._sleep,
        )

    async def _aggregate(self, request: AggregationRequest) -> AggregationResult:
        """Walk the upstream catalog for a request."""
        fetcher = self._fetcher_factory(self.settings, request)
        try:
            return await self._walker(fetcher).aggregate(self.bounds)
        finally:
            await fetcher.close()

    async def search(self, request: AggregationRequest) -> AggregationResult:
        """Aggregate and filter the catalog.

        Args:
            request: Normalized request.

        Returns:
            Filtered records with the truncation flag.

        Raises:
            ConfigurationError: If the upstream is not configured.
            UpstreamFailure: If the walk fails.
        """
        key = f"products:{request.cache_key()}"
        entry = self.cache.get(key)
        if entry is not None:
            logger.info("Cache hit", cache_key=key, request_id=self.request_id)
            return entry.payload

        aggregate = await self._aggregate(request)
        result = AggregationResult(
            records=tuple(filter_records(aggregate.records, request)),
            truncated=aggregate.truncated,
            pages_fetched=aggregate.pages_fetched,
        )
        self.cache.put(key, result)

        logger.info(
            "Catalog search complete",
            request_id=self.request_id,
            scanned=aggregate.count,
            matched=result.count,
            truncated=result.truncated,
        )
        return result

    async def summarize(self, request: AggregationRequest) -> CatalogSummary:
        """Summarize the (filtered) catalog.

        Args:
            request: Normalized request; clauses narrow the summarized set.

        Returns:
            Vendors, price bounds and colors.
        """
        key = f"meta:{request.cache_key()}"
        entry = self.cache.get(key)
        if entry is not None:
            logger.info("Cache hit", cache_key=key, request_id=self.request_id)
            return entry.payload

        aggregate = await self._aggregate(request)
        summary = summarize(
            filter_records(aggregate.records, request),
            truncated=aggregate.truncated,
        )
        self.cache.put(key, summary)
        return summary

    async def browse(
        self,
        request: AggregationRequest,
        cursor: str | None = None,
        page: int = 1,
        limit: int | None = None,
    ) -> BrowsePage:
        """Fetch and filter a single page.

        Browse pages are not cached: cursors are short-lived upstream.

        Args:
            request: Normalized request.
            cursor: Continuation cursor, None for the first page.
            page: Page number as tracked by the caller.
            limit: Page size override.

        Returns:
            BrowsePage instance.

        Raises:
            InvalidPageRequest: If page > 1 arrives without a cursor.
        """
        if cursor is None and page > 1:
            raise InvalidPageRequest(page)

        settings = self.settings
        if limit is not None:
            settings = settings.model_copy(update={"page_size": max(1, min(limit, 250))})

        fetcher = self._fetcher_factory(settings, request)
        try:
            result = await self._walker(fetcher).fetch_one(cursor)
        finally:
            await fetcher.close()

        return BrowsePage(
            records=filter_records(result.records, request),
            current_page=page,
            has_next_page=result.next_cursor is not None,
            has_prev_page=result.previous_cursor is not None or page > 1,
            next_cursor=result.next_cursor,
            previous_cursor=result.previous_cursor,
        )


def get_catalog_service(request_id: str | None = None) -> CatalogService:
    """Get catalog service instance.

    Args:
        request_id: Request ID for correlation.

    Returns:
        CatalogService instance.
    """
    return CatalogService(request_id=request_id)
