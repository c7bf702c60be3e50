"""API middleware for the catalog aggregator.

Provides:
- Request ID correlation for catalog walks
- Domain error mapping to the error envelope
"""

import time
from typing import Callable
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from catalog_aggregator.domain.exceptions import (
    ConfigurationError,
    DomainError,
    InvalidPageRequest,
    UpstreamFailure,
)

logger = structlog.get_logger()

REQUEST_ID_HEADER = "X-Request-ID"


# ============================================================================
# Request ID Middleware
# ============================================================================


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Bind a request ID to every log event of one catalog request.

    A single filter request can fan out into dozens of upstream page
    fetches and throttle waits; the bound ID ties those events to the
    inbound call. The ID is taken from the X-Request-ID header when the
    caller sends one and echoed back on the response.
    """

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        """Process request with correlation ID.

        Args:
            request: Incoming request.
            call_next: Next middleware/handler.

        Returns:
            Response with request ID header.
        """
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())
        request.state.request_id = request_id

        started = time.perf_counter()
        with structlog.contextvars.bound_contextvars(request_id=request_id):
            response = await call_next(request)
            logger.info(
                "Catalog request served",
                method=request.method,
                path=request.url.path,
                clauses=sorted(request.query_params.keys()),
                status_code=response.status_code,
                elapsed_ms=round((time.perf_counter() - started) * 1000, 2),
            )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


# ============================================================================
# Domain Error Mapping
# ============================================================================


# Most specific class wins; lookup follows the exception's MRO.
DOMAIN_ERROR_STATUS: dict[type[DomainError], tuple[int, str]] = {
    UpstreamFailure: (status.HTTP_502_BAD_GATEWAY, "UPSTREAM_FAILURE"),
    ConfigurationError: (status.HTTP_500_INTERNAL_SERVER_ERROR, "CONFIGURATION_ERROR"),
    InvalidPageRequest: (status.HTTP_422_UNPROCESSABLE_ENTITY, "VALIDATION_ERROR"),
}


def domain_error_status(exc: DomainError) -> tuple[int, str]:
    """Get the HTTP status and error code for a domain error.

    Args:
        exc: Raised domain error.

    Returns:
        Tuple of status code and error code.
    """
    for cls in type(exc).__mro__:
        if cls in DOMAIN_ERROR_STATUS:
            return DOMAIN_ERROR_STATUS[cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR, "DOMAIN_ERROR"


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Render a domain error as the standard error envelope."""
    status_code, error_code = domain_error_status(exc)
    request_id = getattr(request.state, "request_id", None)

    log = logger.warning if status_code < 500 or isinstance(exc, UpstreamFailure) else logger.error
    log(
        "Catalog request failed",
        path=request.url.path,
        error_code=error_code,
        error=exc.message,
        upstream_status=getattr(exc, "status_code", None),
    )

    return JSONResponse(
        status_code=status_code,
        content={
            "error_code": error_code,
            "message": exc.message,
            "details": exc.details,
            "request_id": request_id,
        },
    )


# ============================================================================
# Middleware Setup
# ============================================================================


def setup_middleware(app: FastAPI) -> None:
    """Configure request correlation and domain error mapping.

    Args:
        app: FastAPI application instance.
    """
    app.add_middleware(RequestIdMiddleware)
    app.add_exception_handler(DomainError, domain_error_handler)
