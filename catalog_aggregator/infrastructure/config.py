"""Application configuration.

Loads settings from environment variables with sensible defaults.
"""

from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # API
    api_version: str = "0.1.0"
    debug: bool = False

    # Catalog upstream
    shop_domain: str = Field(
        default="",
        validation_alias=AliasChoices("shop_domain", "shopify_store", "shopify_shop"),
    )
    access_token: str = Field(
        default="",
        validation_alias=AliasChoices(
            "access_token", "shopify_access_token", "shopify_admin_api_access"
        ),
    )
    admin_api_version: str = "2024-04"
    transport: Literal["rest", "graphql"] = "rest"
    storefront_url: str | None = None
    request_timeout_seconds: float = 30.0

    # Aggregation bounds
    page_size: int = Field(default=250, ge=1, le=250)
    max_pages: int = Field(default=40, ge=1)
    max_records: int = Field(default=10_000, ge=1)
    push_down_filters: bool = False

    # Throttling (0 attempts means retry forever)
    throttle_backoff_seconds: float = 0.6
    throttle_backoff_multiplier: float = 2.0
    throttle_max_backoff_seconds: float = 10.0
    throttle_max_attempts: int = Field(default=10, ge=0)

    # Result cache
    cache_ttl_seconds: float = 60.0

    # Logging
    log_level: str = "INFO"


settings = Settings()
