"""Storefront admin API clients.

Each client fetches exactly one page of products per call and classifies
the outcome as a PageResult, Throttled or FetchFailure. Retrying and
caching are layered above this module.
"""

import json
from typing import Any, Protocol

import httpx
import structlog

from catalog_aggregator.catalog.cursors import (
    CURSOR_PARAM,
    extract_link_cursor,
    extract_page_info_cursor,
    extract_page_info_previous,
)
from catalog_aggregator.catalog.normalize import from_graphql_node, from_rest_product
from catalog_aggregator.domain.exceptions import ConfigurationError
from catalog_aggregator.domain.models import (
    AggregationRequest,
    FetchFailure,
    FetchOutcome,
    PageResult,
    Throttled,
)
from catalog_aggregator.infrastructure.config import Settings

logger = structlog.get_logger()

ACCESS_TOKEN_HEADER = "X-Shopify-Access-Token"

REST_FIELDS = "id,title,vendor,product_type,handle,tags,images,image,variants"

PRODUCTS_QUERY = """
query Products($first: Int!, $after: String, $query: String) {
  products(first: $first, after: $after, query: $query) {
    pageInfo {
      hasNextPage
      hasPreviousPage
      startCursor
      endCursor
    }
    edges {
      cursor
      node {
        id
        title
        vendor
        productType
        handle
        tags
        images(first: 10) {
          edges {
            node {
              url
              altText
            }
          }
        }
        variants(first: 100) {
          edges {
            node {
              price
              selectedOptions {
                name
                value
              }
            }
          }
        }
      }
    }
  }
}
"""


class PageFetcher(Protocol):
    """Fetches one page of catalog records."""

    async def fetch_page(self, cursor: str | None = None) -> FetchOutcome:
        """Fetch the page at cursor, or the first page when None."""
        ...

    async def close(self) -> None:
        """Release network resources."""
        ...


def _retry_after(response: httpx.Response) -> float | None:
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return max(float(value), 0.0)
    except ValueError:
        return None


def _quote_search_value(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


# ============================================================================
# Base Client
# ============================================================================


class StorefrontClient:
    """Shared HTTP plumbing for the admin API clients.

    Holds a lazily created httpx.AsyncClient authenticated with the
    static access token.
    """

    def __init__(
        self,
        shop_domain: str,
        access_token: str,
        api_version: str = "2024-04",
        request: AggregationRequest | None = None,
        page_size: int = 250,
        push_down_filters: bool = False,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            shop_domain: Shop host, e.g. "acme.myshopify.com".
            access_token: Admin API access token.
            api_version: Admin API version segment.
            request: Request whose vendor/product type may be pushed upstream.
            page_size: Records requested per page.
            push_down_filters: Send vendor/product type to the upstream.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport (used by tests).
        """
        host = shop_domain.strip().removeprefix("https://").removeprefix("http://")
        self.base_url = f"https://{host.rstrip('/')}/admin/api/{api_version}"
        self.access_token = access_token
        self.request = request or AggregationRequest()
        self.page_size = page_size
        self.push_down_filters = push_down_filters
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
                headers={
                    ACCESS_TOKEN_HEADER: self.access_token,
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                },
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "StorefrontClient":
        """Context manager entry."""
        return self

    async def __aexit__(self, *args: object) -> None:
        """Context manager exit."""
        await self.close()

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response | FetchFailure:
        """Send one request, mapping transport errors to FetchFailure."""
        client = await self._get_client()
        try:
            return await client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            logger.error("Catalog request timeout", path=path, error=str(e))
            return FetchFailure(status_code=None, body=f"Request timed out: {e}")
        except httpx.RequestError as e:
            logger.error("Catalog request failed", path=path, error=str(e))
            return FetchFailure(status_code=None, body=f"Request failed: {e}")

    @staticmethod
    def _classify_status(response: httpx.Response) -> Throttled | FetchFailure | None:
        """Classify a non-success status, None when the status is 2xx."""
        if response.status_code == 429:
            retry_after = _retry_after(response)
            logger.info("Catalog request throttled", retry_after=retry_after)
            return Throttled(retry_after=retry_after)
        if not response.is_success:
            logger.warning(
                "Catalog request rejected",
                status_code=response.status_code,
            )
            return FetchFailure(status_code=response.status_code, body=response.text)
        return None


# ============================================================================
# REST Client
# ============================================================================


class RestCatalogClient(StorefrontClient):
    """Pages through `products.json` using link-header cursors."""

    def build_params(self, cursor: str | None = None) -> dict[str, Any]:
        """Build query parameters for one page.

        The upstream rejects filter parameters alongside a cursor; the
        filters of the first request are carried inside the cursor.

        Args:
            cursor: Continuation cursor, None for the first page.

        Returns:
            Query parameters.
        """
        params: dict[str, Any] = {"limit": self.page_size, "fields": REST_FIELDS}
        if cursor:
            params[CURSOR_PARAM] = cursor
            return params
        if self.push_down_filters:
            if self.request.vendor:
                params["vendor"] = self.request.vendor
            if self.request.product_type:
                params["product_type"] = self.request.product_type
        return params

    async def fetch_page(self, cursor: str | None = None) -> FetchOutcome:
        """Fetch one page of products.

        Args:
            cursor: Continuation cursor, None for the first page.

        Returns:
            PageResult, Throttled or FetchFailure.
        """
        logger.debug("Fetching catalog page", transport="rest", cursor_present=cursor is not None)

        response = await self._send("GET", "/products.json", params=self.build_params(cursor))
        if isinstance(response, FetchFailure):
            return response

        classified = self._classify_status(response)
        if classified is not None:
            return classified

        try:
            data = response.json()
        except json.JSONDecodeError:
            return FetchFailure(status_code=response.status_code, body=response.text)

        products = data.get("products") if isinstance(data, dict) else None
        if not isinstance(products, list):
            return FetchFailure(status_code=response.status_code, body=response.text)

        try:
            records = tuple(from_rest_product(p) for p in products)
        except ValueError as e:
            return FetchFailure(
                status_code=response.status_code,
                body=f"Malformed product: {e}",
            )

        link = response.headers.get("Link")
        return PageResult(
            records=records,
            next_cursor=extract_link_cursor(link, "next"),
            previous_cursor=extract_link_cursor(link, "previous"),
        )


# ============================================================================
# GraphQL Client
# ============================================================================


class GraphQLCatalogClient(StorefrontClient):
    """Pages through the `products` connection using edge cursors."""

    def build_search_query(self) -> str | None:
        """Build the upstream search string from pushed-down filters."""
        if not self.push_down_filters:
            return None
        terms = []
        if self.request.vendor:
            terms.append(f"vendor:{_quote_search_value(self.request.vendor)}")
        if self.request.product_type:
            terms.append(f"product_type:{_quote_search_value(self.request.product_type)}")
        return " AND ".join(terms) or None

    def build_payload(self, cursor: str | None = None) -> dict[str, Any]:
        """Build the GraphQL request body for one page."""
        return {
            "query": PRODUCTS_QUERY,
            "variables": {
                "first": self.page_size,
                "after": cursor,
                "query": self.build_search_query(),
            },
        }

    async def fetch_page(self, cursor: str | None = None) -> FetchOutcome:
        """Fetch one page of products.

        Args:
            cursor: Continuation cursor, None for the first page.

        Returns:
            PageResult, Throttled or FetchFailure.
        """
        logger.debug("Fetching catalog page", transport="graphql", cursor_present=cursor is not None)

        response = await self._send("POST", "/graphql.json", json=self.build_payload(cursor))
        if isinstance(response, FetchFailure):
            return response

        classified = self._classify_status(response)
        if classified is not None:
            return classified

        try:
            body = response.json()
        except json.JSONDecodeError:
            return FetchFailure(status_code=response.status_code, body=response.text)
        if not isinstance(body, dict):
            return FetchFailure(status_code=response.status_code, body=response.text)

        errors = body.get("errors") or []
        if errors:
            # Query cost throttling is reported in-band with a 200.
            codes = {
                (e.get("extensions") or {}).get("code")
                for e in errors
                if isinstance(e, dict)
            }
            if "THROTTLED" in codes:
                logger.info("Catalog query throttled", retry_after=None)
                return Throttled()
            return FetchFailure(status_code=response.status_code, body=response.text)

        connection = (body.get("data") or {}).get("products")
        if not isinstance(connection, dict):
            return FetchFailure(status_code=response.status_code, body=response.text)

        edges = connection.get("edges") or []
        try:
            records = tuple(
                from_graphql_node(edge.get("node") if isinstance(edge, dict) else None)
                for edge in edges
            )
        except ValueError as e:
            return FetchFailure(
                status_code=response.status_code,
                body=f"Malformed product: {e}",
            )

        page_info = connection.get("pageInfo")
        return PageResult(
            records=records,
            next_cursor=extract_page_info_cursor(page_info, edges),
            previous_cursor=extract_page_info_previous(page_info, edges),
        )


# ============================================================================
# Client Factory
# ============================================================================


def build_page_fetcher(
    settings: Settings,
    request: AggregationRequest | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> StorefrontClient:
    """Build the configured page fetcher.

    Args:
        settings: Application settings.
        request: Request whose filters may be pushed upstream.
        transport: Optional httpx transport (used by tests).

    Returns:
        REST or GraphQL client.

    Raises:
        ConfigurationError: If the shop domain or access token is missing.
    """
    missing = [
        name
        for name, value in (
            ("shop_domain", settings.shop_domain),
            ("access_token", settings.access_token),
        )
        if not value.strip()
    ]
    if missing:
        raise ConfigurationError(missing)

    client_cls = GraphQLCatalogClient if settings.transport == "graphql" else RestCatalogClient
    return client_cls(
        shop_domain=settings.shop_domain,
        access_token=settings.access_token,
        api_version=settings.admin_api_version,
        request=request,
        page_size=settings.page_size,
        push_down_filters=settings.push_down_filters,
        timeout=settings.request_timeout_seconds,
        transport=transport,
    )
