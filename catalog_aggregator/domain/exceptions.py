"""Domain exceptions.

Errors raised while aggregating the remote catalog. Throttling is not
represented here: it is a transient result value that the walker retries
and never surfaces to callers unless the throttle policy is exhausted.
"""

from typing import Any


class DomainError(Exception):
    """Base class for all catalog aggregation errors.

    All errors inherit from this class so the API layer can map them to
    a consistent error envelope.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize domain error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ============================================================================
# Upstream Errors
# ============================================================================


class UpstreamFailure(DomainError):
    """Raised when the catalog service returns a non-throttle failure.

    Covers non-2xx statuses, malformed bodies, transport errors and an
    exhausted throttle policy. The upstream status and body are kept for
    diagnostics.
    """

    def __init__(
        self,
        status_code: int | None,
        body: str,
        message: str | None = None,
    ) -> None:
        """Initialize upstream failure.

        Args:
            status_code: Upstream HTTP status, None for transport errors.
            body: Upstream response body or transport error text.
            message: Optional override for the error message.
        """
        super().__init__(
            message or f"Catalog upstream failed with status {status_code}",
            details={"status_code": status_code, "body": body},
        )
        self.status_code = status_code
        self.body = body


class MalformedPaginationMetadata(DomainError):
    """Raised by pagination parsers on unreadable metadata.

    Never escapes the cursor extractor: it degrades to "no next page".
    """

    pass


# ============================================================================
# Configuration Errors
# ============================================================================


class ConfigurationError(DomainError):
    """Raised when required credentials or the shop domain are missing."""

    def __init__(self, missing: list[str]) -> None:
        """Initialize configuration error.

        Args:
            missing: Names of the missing settings.
        """
        super().__init__(
            f"Catalog client is not configured, missing: {', '.join(missing)}",
            details={"missing": missing},
        )
        self.missing = missing


# ============================================================================
# Request Errors
# ============================================================================


class InvalidPageRequest(DomainError):
    """Raised when a page number cannot be reached without a cursor.

    Cursor pagination only moves one page at a time from a known cursor,
    so page N > 1 needs the cursor handed out with page N - 1.
    """

    def __init__(self, page: int) -> None:
        """Initialize invalid page request.

        Args:
            page: Requested page number.
        """
        super().__init__(
            f"Page {page} requires the cursor returned with page {page - 1}",
            details={"page": page},
        )
        self.page = page
