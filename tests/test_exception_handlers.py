"""Tests for global exception handlers.

Validates that every error type maps to its HTTP status with a consistent
error body and without leaking internals.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from meister_api.core.errors import (
    AppError,
    AuthenticationAppError,
    AuthorizationAppError,
    AuthProviderAppError,
    ConflictAppError,
    RateLimitAppError,
    ValidationAppError,
)
from meister_api.core.exception_handlers import (
    general_exception_handler,
    setup_exception_handlers,
    status_for_error,
)


@pytest.fixture
def app_with_handlers() -> FastAPI:
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def handler_client(app_with_handlers: FastAPI) -> TestClient:
    return TestClient(app_with_handlers)


@pytest.mark.parametrize(
    ("error_type", "expected_status"),
    [
        (ValidationAppError, 400),
        (AuthenticationAppError, 401),
        (AuthorizationAppError, 403),
        (ConflictAppError, 409),
        (RateLimitAppError, 429),
        (AuthProviderAppError, 502),
        (AppError, 400),
    ],
)
def test_status_mapping(error_type: type[AppError], expected_status: int) -> None:
    assert status_for_error(error_type(code="c", message="m")) == expected_status


class TestAppErrorHandler:
    def test_error_body_is_consistent(self, handler_client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-conflict")
        async def test_endpoint():
            raise ConflictAppError(code="user_already_exists", message="exists")

        response = handler_client.get("/test-conflict")

        assert response.status_code == 409
        error = response.json()["error"]
        assert error["code"] == "user_already_exists"
        assert error["message"] == "exists"
        assert "request_id" in error
        assert "details" not in error

    def test_details_are_included(self, handler_client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-details")
        async def test_endpoint():
            raise ValidationAppError(
                code="auth_request_rejected",
                message="rejected",
                details={"provider_status": 422},
            )

        response = handler_client.get("/test-details")

        assert response.status_code == 400
        assert response.json()["error"]["details"] == {"provider_status": 422}

    def test_rate_limit_error_sets_retry_after(self, handler_client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-rate-limit")
        async def test_endpoint():
            raise RateLimitAppError(
                code="rate_limit_exceeded",
                message="Zu viele Anmeldeversuche.",
                details={"action": "login", "retry_after": 1},
            )

        response = handler_client.get("/test-rate-limit")

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "1"
        assert response.json()["error"]["details"]["retry_after"] == 1

    def test_rate_limit_error_without_retry_after_has_no_header(
        self, handler_client: TestClient, app_with_handlers: FastAPI
    ):
        @app_with_handlers.get("/test-rate-limit-bare")
        async def test_endpoint():
            raise RateLimitAppError(code="rate_limit_exceeded", message="slow down")

        response = handler_client.get("/test-rate-limit-bare")

        assert response.status_code == 429
        assert "Retry-After" not in response.headers


class TestRequestValidationHandler:
    def test_body_validation_returns_400(self, handler_client: TestClient, app_with_handlers: FastAPI):
        from pydantic import BaseModel

        class Payload(BaseModel):
            count: int

        @app_with_handlers.post("/test-body")
        async def test_endpoint(payload: Payload):
            return {"count": payload.count}

        response = handler_client.post("/test-body", json={"count": "many"})

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "validation_error"
        assert error["message"].startswith("Validierungsfehler: ")
        assert error["details"]["errors"][0]["field"] == "count"


class TestGeneralExceptionHandler:
    def test_handler_registered(self, app_with_handlers: FastAPI):
        assert Exception in app_with_handlers.exception_handlers
        assert AppError in app_with_handlers.exception_handlers

    def test_never_leaks_internal_details(self):
        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"

        exc = RuntimeError("database connection failed at 10.0.0.5")
        response = asyncio.run(general_exception_handler(request, exc))

        data = json.loads(bytes(response.body).decode())
        assert response.status_code == 500
        assert data["error"]["code"] == "internal_server_error"
        assert "database" not in data["error"]["message"]
        assert "RuntimeError" not in bytes(response.body).decode()
        assert "request_id" in data["error"]
