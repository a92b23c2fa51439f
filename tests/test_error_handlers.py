"""
Tests for FastAPI error handlers.
"""

import logging

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from siteinspect.api.error_handlers import register_error_handlers
from siteinspect.api.middleware import RequestCorrelationMiddleware
from siteinspect.core.config import settings
from siteinspect.core.errors import (
    APIError,
    ConfigurationError,
    NotFoundError,
    PersistenceError,
    UpstreamError,
    ValidationError,
    validation_error_from_pydantic,
)
from siteinspect.models.reports import SoilReportFields


class Payload(BaseModel):
    """Body model for request validation."""

    name: str = Field(..., min_length=3)
    count: int = Field(..., gt=0)


@pytest.fixture
def app() -> FastAPI:
    """Create test FastAPI app with error handlers."""
    test_app = FastAPI()

    @test_app.get("/test/validation-error")
    def raise_validation_error():
        raise ValidationError("Invalid JSON in boundaryDetails", field="boundaryDetails")

    @test_app.get("/test/invalid-fields")
    def raise_invalid_fields():
        try:
            SoilReportFields.model_validate(
                {"soilType": "Clay", "moistureContent": 10, "phLevel": 20, "compactionLevel": -1}
            )
        except PydanticValidationError as e:
            raise validation_error_from_pydantic(e) from e

    @test_app.get("/test/not-found")
    def raise_not_found():
        raise NotFoundError(report_id="abc", collection="soil_reports")

    @test_app.get("/test/persistence-error")
    def raise_persistence_error():
        raise PersistenceError("Failed to save report", operation="insert")

    @test_app.get("/test/upstream-error")
    def raise_upstream_error():
        raise UpstreamError("Weather down", service_name="openweathermap")

    @test_app.get("/test/api-error")
    def raise_api_error():
        raise APIError("Rate limited", error_code="RATE_LIMIT", status_code=429)

    @test_app.get("/test/config-error")
    def raise_config_error():
        raise ConfigurationError("Missing key", config_key="SITEINSPECT_WEATHER_API_KEY")

    @test_app.get("/test/unexpected")
    def raise_unexpected():
        raise RuntimeError("boom")

    @test_app.post("/test/body")
    def accept_body(payload: Payload):
        return payload

    test_app.add_middleware(RequestCorrelationMiddleware)
    register_error_handlers(test_app)
    return test_app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app, raise_server_exceptions=False)


class TestErrorHandlers:
    """Tests for error response conversion."""

    @pytest.mark.parametrize(
        "path, status_code, error_code",
        [
            ("/test/validation-error", 400, "VALIDATION_ERROR"),
            ("/test/not-found", 404, "REPORT_NOT_FOUND"),
            ("/test/persistence-error", 500, "PERSISTENCE_ERROR"),
            ("/test/upstream-error", 502, "UPSTREAM_ERROR"),
            ("/test/api-error", 429, "RATE_LIMIT"),
            ("/test/config-error", 500, "CONFIGURATION_ERROR"),
        ],
    )
    def test_custom_errors(
        self, client: TestClient, path: str, status_code: int, error_code: str
    ) -> None:
        response = client.get(path)

        assert response.status_code == status_code
        data = response.json()
        assert data["error_code"] == error_code
        assert "message" in data
        assert "timestamp" in data

    def test_validation_error_names_field(self, client: TestClient) -> None:
        data = client.get("/test/validation-error").json()
        assert data["message"] == "Invalid JSON in boundaryDetails"
        assert data["details"]["field"] == "boundaryDetails"
        assert data["suggestions"]
        assert data["errors"] == [
            {
                "field": "boundaryDetails",
                "message": "Invalid JSON in boundaryDetails",
                "code": "VALIDATION_ERROR",
            }
        ]

    def test_invalid_report_fields_listed(self, client: TestClient) -> None:
        data = client.get("/test/invalid-fields").json()

        assert data["error_code"] == "VALIDATION_ERROR"
        assert data["details"]["field"] == "phLevel"
        assert [error["field"] for error in data["errors"]] == ["phLevel", "compactionLevel"]

    def test_not_found_logged_with_report_fields(
        self, client: TestClient, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="siteinspect.api.error_handlers"):
            client.get("/test/not-found")

        record = next(r for r in caplog.records if r.name == "siteinspect.api.error_handlers")
        assert record.levelno == logging.WARNING
        assert record.report_id == "abc"
        assert record.collection == "soil_reports"
        assert record.error_code == "REPORT_NOT_FOUND"

    def test_not_found_details(self, client: TestClient) -> None:
        data = client.get("/test/not-found").json()
        assert data["message"] == "Report not found"
        assert data["details"] == {"report_id": "abc", "collection": "soil_reports"}

    def test_request_validation_is_422(self, client: TestClient) -> None:
        response = client.post("/test/body", json={"name": "ab", "count": 0})

        assert response.status_code == 422
        data = response.json()
        assert data["error_code"] == "VALIDATION_ERROR"
        fields = [error["field"] for error in data["errors"]]
        assert fields == ["name", "count"]

    def test_unexpected_error_in_development(
        self, client: TestClient, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(settings, "environment", "development")

        response = client.get("/test/unexpected")

        assert response.status_code == 500
        data = response.json()
        assert data["error_code"] == "INTERNAL_ERROR"
        assert data["details"]["exception_type"] == "RuntimeError"

    def test_unexpected_error_hides_details_in_production(
        self, client: TestClient, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(settings, "environment", "production")

        data = client.get("/test/unexpected").json()

        assert data["error_code"] == "INTERNAL_ERROR"
        assert "details" not in data


class TestRequestCorrelation:
    """Tests for request id propagation."""

    def test_generated_request_id(self, client: TestClient) -> None:
        response = client.get("/test/not-found")
        request_id = response.headers["X-Request-ID"]
        assert request_id
        assert response.json()["request_id"] == request_id

    def test_incoming_request_id_is_kept(self, client: TestClient) -> None:
        response = client.get("/test/not-found", headers={"X-Request-ID": "trace-123"})
        assert response.headers["X-Request-ID"] == "trace-123"
        assert response.json()["request_id"] == "trace-123"
