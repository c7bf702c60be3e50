"""Health check endpoints.

Provides endpoints for monitoring service health and readiness.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str
    service: str
    version: str


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Check service health.

    Returns:
        Health status with service name and version.
    """
    from catalog_aggregator.infrastructure.config import settings

    return HealthResponse(
        status="healthy",
        service="catalog-aggregator",
        version=settings.api_version,
    )


@router.get("/ready")
async def readiness_check() -> JSONResponse:
    """Check if service is ready to accept requests.

    Ready once the upstream shop domain and access token are configured.

    Returns:
        Readiness status, 503 when not configured.
    """
    from catalog_aggregator.infrastructure.config import settings

    missing = [
        name
        for name, value in (
            ("shop_domain", settings.shop_domain),
            ("access_token", settings.access_token),
        )
        if not value
    ]
    if missing:
        return JSONResponse(
            status_code=503,
            content={"status": "not_configured", "missing": missing},
        )
    return JSONResponse(content={"status": "ready"})
