"""Tests for storefront admin API clients."""

import json

import httpx
import pytest

from catalog_aggregator.domain.exceptions import ConfigurationError
from catalog_aggregator.domain.models import (
    AggregationRequest,
    FetchFailure,
    PageResult,
    Throttled,
)
from catalog_aggregator.infrastructure.config import Settings
from catalog_aggregator.infrastructure.storefront_client import (
    ACCESS_TOKEN_HEADER,
    GraphQLCatalogClient,
    RestCatalogClient,
    build_page_fetcher,
)
from factories import make_rest_product

SHOP = "acme.myshopify.com"
PRODUCTS_URL = f"https://{SHOP}/admin/api/2024-04/products.json"


def rest_client(handler, **kwargs) -> RestCatalogClient:
    return RestCatalogClient(
        shop_domain=SHOP,
        access_token="shpat_test",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def graphql_client(handler, **kwargs) -> GraphQLCatalogClient:
    return GraphQLCatalogClient(
        shop_domain=SHOP,
        access_token="shpat_test",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


class TestRestCatalogClient:
    """Tests for the REST page fetcher."""

    @pytest.mark.asyncio
    async def test_success_returns_records_and_cursors(self) -> None:
        """A 200 page is normalized and its link cursors extracted."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={"products": [make_rest_product(1), make_rest_product(2)]},
                headers={
                    "Link": (
                        f'<{PRODUCTS_URL}?limit=250&page_info=prev1>; rel="previous", '
                        f'<{PRODUCTS_URL}?limit=250&page_info=next1>; rel="next"'
                    )
                },
            )

        client = rest_client(handler)
        result = await client.fetch_page()
        await client.close()

        assert isinstance(result, PageResult)
        assert [r.id for r in result.records] == ["1", "2"]
        assert result.next_cursor == "next1"
        assert result.previous_cursor == "prev1"
        assert len(seen) == 1
        assert seen[0].url.path == "/admin/api/2024-04/products.json"
        assert seen[0].headers[ACCESS_TOKEN_HEADER] == "shpat_test"

    @pytest.mark.asyncio
    async def test_last_page_has_no_cursor(self) -> None:
        client = rest_client(lambda r: httpx.Response(200, json={"products": []}))

        result = await client.fetch_page()

        assert isinstance(result, PageResult)
        assert result.records == ()
        assert result.next_cursor is None

    @pytest.mark.asyncio
    async def test_429_is_throttled(self) -> None:
        """Rate limiting is reported, not retried, by the fetcher."""
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(429, headers={"Retry-After": "2.0"}, text="Exceeded")

        result = await rest_client(handler).fetch_page()

        assert result == Throttled(retry_after=2.0)
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_error_status_is_failure(self) -> None:
        client = rest_client(lambda r: httpx.Response(401, text='{"errors":"Invalid API key"}'))

        result = await client.fetch_page()

        assert result == FetchFailure(status_code=401, body='{"errors":"Invalid API key"}')

    @pytest.mark.asyncio
    async def test_malformed_body_is_failure(self) -> None:
        client = rest_client(lambda r: httpx.Response(200, text="<html>maintenance</html>"))

        result = await client.fetch_page()

        assert isinstance(result, FetchFailure)
        assert result.status_code == 200

    @pytest.mark.asyncio
    async def test_missing_products_key_is_failure(self) -> None:
        client = rest_client(lambda r: httpx.Response(200, json={"items": []}))

        assert isinstance(await client.fetch_page(), FetchFailure)

    @pytest.mark.asyncio
    async def test_transport_error_is_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        result = await rest_client(handler).fetch_page()

        assert isinstance(result, FetchFailure)
        assert result.status_code is None
        assert "Connection refused" in result.body

    def test_first_page_pushes_down_filters(self) -> None:
        client = rest_client(
            lambda r: httpx.Response(200),
            request=AggregationRequest(vendor="Acme", product_type="Shoes", tag="sale"),
            push_down_filters=True,
            page_size=50,
        )

        params = client.build_params()

        assert params["limit"] == 50
        assert params["vendor"] == "Acme"
        assert params["product_type"] == "Shoes"
        assert "tag" not in params
        assert "page_info" not in params

    def test_cursor_page_sends_only_cursor(self) -> None:
        """Filters are not allowed alongside page_info."""
        client = rest_client(
            lambda r: httpx.Response(200),
            request=AggregationRequest(vendor="Acme"),
            push_down_filters=True,
        )

        params = client.build_params("abc")

        assert params["page_info"] == "abc"
        assert "vendor" not in params

    def test_filters_stay_local_by_default(self) -> None:
        client = rest_client(lambda r: httpx.Response(200), request=AggregationRequest(vendor="Acme"))

        assert "vendor" not in client.build_params()


class TestGraphQLCatalogClient:
    """Tests for the GraphQL page fetcher."""

    @pytest.mark.asyncio
    async def test_success_returns_records_and_cursor(self) -> None:
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(
                200,
                json={
                    "data": {
                        "products": {
                            "pageInfo": {"hasNextPage": True, "hasPreviousPage": False},
                            "edges": [
                                {"cursor": "c1", "node": {"id": "gid://shopify/Product/1", "title": "A"}},
                                {"cursor": "c2", "node": {"id": "gid://shopify/Product/2", "title": "B"}},
                            ],
                        }
                    }
                },
            )

        client = graphql_client(handler, page_size=2)
        result = await client.fetch_page("c0")

        assert isinstance(result, PageResult)
        assert [r.title for r in result.records] == ["A", "B"]
        assert result.next_cursor == "c2"
        assert result.previous_cursor is None
        assert bodies[0]["variables"] == {"first": 2, "after": "c0", "query": None}

    @pytest.mark.asyncio
    async def test_throttled_error_is_throttled(self) -> None:
        """Query cost throttling arrives as a 200 with errors."""
        client = graphql_client(
            lambda r: httpx.Response(
                200,
                json={"errors": [{"message": "Throttled", "extensions": {"code": "THROTTLED"}}]},
            )
        )

        assert await client.fetch_page() == Throttled()

    @pytest.mark.asyncio
    async def test_429_is_throttled(self) -> None:
        client = graphql_client(lambda r: httpx.Response(429))

        assert isinstance(await client.fetch_page(), Throttled)

    @pytest.mark.asyncio
    async def test_other_errors_are_failures(self) -> None:
        client = graphql_client(
            lambda r: httpx.Response(200, json={"errors": [{"message": "Field 'x' doesn't exist"}]})
        )

        result = await client.fetch_page()

        assert isinstance(result, FetchFailure)
        assert "doesn't exist" in result.body

    def test_search_query_from_pushed_down_filters(self) -> None:
        client = graphql_client(
            lambda r: httpx.Response(200),
            request=AggregationRequest(vendor='Acme "Co"', product_type="Shoes"),
            push_down_filters=True,
        )

        assert client.build_search_query() == 'vendor:"Acme \\"Co\\"" AND product_type:"Shoes"'


class TestBuildPageFetcher:
    """Tests for the fetcher factory."""

    def test_missing_credentials_fail_fast(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            build_page_fetcher(Settings(shop_domain="", access_token=""))

        assert exc_info.value.missing == ["shop_domain", "access_token"]

    def test_selects_transport(self) -> None:
        rest = build_page_fetcher(Settings(shop_domain=SHOP, access_token="t"))
        graphql = build_page_fetcher(
            Settings(shop_domain=SHOP, access_token="t", transport="graphql")
        )

        assert isinstance(rest, RestCatalogClient)
        assert isinstance(graphql, GraphQLCatalogClient)
        assert rest.base_url == f"https://{SHOP}/admin/api/2024-04"
