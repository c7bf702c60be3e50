"""Tests for API middleware."""

from fastapi.testclient import TestClient

from catalog_aggregator.api.middleware import domain_error_status
from catalog_aggregator.domain.exceptions import (
    ConfigurationError,
    InvalidPageRequest,
    MalformedPaginationMetadata,
    UpstreamFailure,
)
from catalog_aggregator.main import app


def test_generates_request_id() -> None:
    response = TestClient(app).get("/health")

    assert response.headers["X-Request-ID"]


def test_echoes_request_id() -> None:
    response = TestClient(app).get("/health", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"


def test_request_id_in_error_envelope() -> None:
    response = TestClient(app).get(
        "/api/filter", params={"page": "-1"}, headers={"X-Request-ID": "req-456"}
    )

    assert response.status_code == 422
    assert response.json()["request_id"] == "req-456"


class TestDomainErrorStatus:
    """Tests for mapping domain errors to HTTP statuses."""

    def test_mapped_errors(self) -> None:
        assert domain_error_status(UpstreamFailure(401, "denied")) == (502, "UPSTREAM_FAILURE")
        assert domain_error_status(ConfigurationError(["access_token"])) == (
            500,
            "CONFIGURATION_ERROR",
        )
        assert domain_error_status(InvalidPageRequest(2)) == (422, "VALIDATION_ERROR")

    def test_subclass_uses_parent_mapping(self) -> None:
        class StorefrontDown(UpstreamFailure):
            pass

        assert domain_error_status(StorefrontDown(503, "")) == (502, "UPSTREAM_FAILURE")

    def test_unmapped_error_is_internal(self) -> None:
        error = MalformedPaginationMetadata("bad link header")

        assert domain_error_status(error) == (500, "DOMAIN_ERROR")
