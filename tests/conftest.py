"""Shared fixtures for catalog aggregator tests."""

import pytest

import catalog_aggregator.application.cache as cache_module
from catalog_aggregator.infrastructure.config import Settings
from factories import RecordingSleep


@pytest.fixture(autouse=True)
def reset_result_cache():
    """Reset the process-wide result cache before each test."""
    cache_module._result_cache = None
    yield
    cache_module._result_cache = None


@pytest.fixture
def test_settings() -> Settings:
    """Settings pointing at a fake shop."""
    return Settings(
        shop_domain="acme.myshopify.com",
        access_token="shpat_test",
        storefront_url="https://shop.acme.test",
        max_pages=10,
        max_records=1000,
        throttle_max_attempts=3,
        cache_ttl_seconds=60,
    )


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    """Sleep replacement for throttle tests."""
    return RecordingSleep()
