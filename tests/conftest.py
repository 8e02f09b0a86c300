"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before any application import so the global
settings object never reads a local .env file.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["TESTING"] = "true"
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("SUPABASE_URL", "https://project-ref.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("APP_ADMIN_API_KEYS", "test-admin-key-123,test-admin-key-456")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Any  # noqa: E402

import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from meister_api.adapters.auth.base import AbstractAuthProvider  # noqa: E402
from meister_api.core.app_factory import create_app  # noqa: E402
from meister_api.core.rate_limit import DEFAULT_POLICIES, RateLimiterRegistry  # noqa: E402
from meister_api.schemas.auth import AuthSession, AuthUser, RegistrationRequest  # noqa: E402


class FakeClock:
    """Manually advanced clock returning epoch milliseconds."""

    def __init__(self, now: int = 0) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakeAuthProvider(AbstractAuthProvider):
    """In-memory stand-in for the hosted auth backend."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, Any]] = []
        self.error: Exception | None = None
        self.closed = False

    def _record(self, name: str, payload: Any) -> None:
        self.calls.append((name, payload))
        if self.error is not None:
            raise self.error

    async def sign_up(self, registration: RegistrationRequest) -> AuthUser:
        self._record("sign_up", registration)
        return AuthUser(
            id="user-1",
            email=registration.email,
            user_metadata={"user_type": registration.user_type},
        )

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        self._record("sign_in_with_password", email)
        return AuthSession(
            access_token="access-token",
            refresh_token="refresh-token",
            expires_in=3600,
            user=AuthUser(id="user-1", email=email),
        )

    async def send_password_reset(self, email: str, *, redirect_to: str | None = None) -> None:
        self._record("send_password_reset", (email, redirect_to))

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(now=1_700_000_000_000)


@pytest.fixture
def auth_provider() -> FakeAuthProvider:
    return FakeAuthProvider()


@pytest.fixture
def rate_limiters(clock: FakeClock) -> RateLimiterRegistry:
    return RateLimiterRegistry(DEFAULT_POLICIES, clock=clock)


@pytest.fixture
def app(auth_provider: FakeAuthProvider, rate_limiters: RateLimiterRegistry) -> FastAPI:
    return create_app(auth_provider=auth_provider, rate_limiters=rate_limiters)


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"X-API-Key": "test-admin-key-123"}


@pytest.fixture
def registration_payload() -> dict[str, Any]:
    return {
        "email": "meister@example.de",
        "password": "Sicher#2024",
        "firstName": "Hans",
        "lastName": "Müller",
        "userType": "handwerker",
        "companyName": "Müller Sanitär GmbH",
        "phone": "+49 30 1234567",
    }
