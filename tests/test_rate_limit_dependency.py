"""Tests for rate-limit wiring: keys, Retry-After math, registry, dependency."""

from unittest.mock import patch

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from meister_api.core.config import RateLimitSettings
from meister_api.core.exception_handlers import setup_exception_handlers
from meister_api.core.rate_limit import (
    DEFAULT_POLICIES,
    LOGIN_POLICY,
    PASSWORD_RESET_POLICY,
    REGISTER_POLICY,
    RateLimitAction,
    RateLimiterRegistry,
    compute_retry_after_seconds,
    get_rate_limit_key,
    policies_from_settings,
    require_rate_limit,
)


class TestRateLimitKey:
    def test_key_is_action_then_ip(self) -> None:
        assert get_rate_limit_key("203.0.113.7", RateLimitAction.REGISTER) == "register:203.0.113.7"

    def test_accepts_plain_action_name(self) -> None:
        assert get_rate_limit_key("1.2.3.4", "login") == "login:1.2.3.4"

    def test_unknown_ip_shares_bucket(self) -> None:
        assert get_rate_limit_key("unknown", RateLimitAction.LOGIN) == "login:unknown"


class TestRetryAfter:
    def test_rounds_up_partial_seconds(self) -> None:
        assert compute_retry_after_seconds(1000, 200) == 1

    def test_exact_seconds(self) -> None:
        assert compute_retry_after_seconds(5000, 2000) == 3

    def test_full_window(self) -> None:
        assert compute_retry_after_seconds(3_600_000, 0) == 3600

    def test_never_negative(self) -> None:
        assert compute_retry_after_seconds(1000, 1500) == 0


class TestPolicies:
    def test_default_policies(self) -> None:
        assert (LOGIN_POLICY.window_ms, LOGIN_POLICY.max_requests) == (900_000, 5)
        assert (REGISTER_POLICY.window_ms, REGISTER_POLICY.max_requests) == (3_600_000, 3)
        assert (PASSWORD_RESET_POLICY.window_ms, PASSWORD_RESET_POLICY.max_requests) == (3_600_000, 2)

    def test_settings_defaults_match_policies(self) -> None:
        assert policies_from_settings(RateLimitSettings()) == DEFAULT_POLICIES

    def test_settings_override_policy(self) -> None:
        cfg = RateLimitSettings(login_window_ms=1000, login_max_requests=10)
        policies = {p.action: p for p in policies_from_settings(cfg)}

        assert policies[RateLimitAction.LOGIN].window_ms == 1000
        assert policies[RateLimitAction.LOGIN].max_requests == 10
        assert policies[RateLimitAction.REGISTER] == REGISTER_POLICY


class TestRegistry:
    def test_actions_have_separate_limiters(self, clock) -> None:
        registry = RateLimiterRegistry(DEFAULT_POLICIES, clock=clock)

        for _ in range(2):
            assert registry.check(RateLimitAction.PASSWORD_RESET, "1.2.3.4").allowed is True
        assert registry.check(RateLimitAction.PASSWORD_RESET, "1.2.3.4").allowed is False

        assert registry.check(RateLimitAction.LOGIN, "1.2.3.4").allowed is True

    def test_reset_returns_identifier_and_clears(self, clock) -> None:
        registry = RateLimiterRegistry(DEFAULT_POLICIES, clock=clock)
        for _ in range(3):
            registry.check(RateLimitAction.REGISTER, "5.6.7.8")
        assert registry.check(RateLimitAction.REGISTER, "5.6.7.8").allowed is False

        identifier = registry.reset(RateLimitAction.REGISTER, "5.6.7.8")

        assert identifier == "register:5.6.7.8"
        assert registry.check(RateLimitAction.REGISTER, "5.6.7.8").allowed is True

    def test_instances_do_not_share_state(self, clock) -> None:
        first = RateLimiterRegistry(DEFAULT_POLICIES, clock=clock)
        second = RateLimiterRegistry(DEFAULT_POLICIES, clock=clock)

        for _ in range(2):
            first.check(RateLimitAction.PASSWORD_RESET, "ip")

        assert first.check(RateLimitAction.PASSWORD_RESET, "ip").allowed is False
        assert second.check(RateLimitAction.PASSWORD_RESET, "ip").allowed is True

    def test_from_settings(self, clock) -> None:
        cfg = RateLimitSettings(register_max_requests=1, sweep_interval_ms=0)
        registry = RateLimiterRegistry.from_settings(cfg, clock=clock)

        assert registry.get(RateLimitAction.REGISTER).max_requests == 1
        assert registry.get(RateLimitAction.LOGIN).max_requests == 5


@pytest.fixture
def limited_client(clock) -> TestClient:
    app = FastAPI()
    setup_exception_handlers(app)
    app.state.rate_limiters = RateLimiterRegistry(DEFAULT_POLICIES, clock=clock)

    @app.post("/limited", dependencies=[Depends(require_rate_limit(RateLimitAction.PASSWORD_RESET))])
    async def limited_endpoint() -> dict:
        return {"ok": True}

    return TestClient(app)


class TestRequireRateLimitDependency:
    def test_rejects_with_429_and_retry_after(self, limited_client: TestClient, clock) -> None:
        start = clock.now
        assert limited_client.post("/limited").status_code == 200
        assert limited_client.post("/limited").status_code == 200

        clock.now = start + 200
        response = limited_client.post("/limited")

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "3600"
        error = response.json()["error"]
        assert error["code"] == "rate_limit_exceeded"
        assert error["details"]["retry_after"] == 3600
        assert error["details"]["action"] == "password_reset"
        assert "Passworts" in error["message"]

    def test_counts_per_forwarded_ip(self, limited_client: TestClient) -> None:
        for _ in range(2):
            limited_client.post("/limited", headers={"X-Forwarded-For": "10.0.0.1"})

        blocked = limited_client.post("/limited", headers={"X-Forwarded-For": "10.0.0.1"})
        other = limited_client.post("/limited", headers={"X-Forwarded-For": "10.0.0.2"})

        assert blocked.status_code == 429
        assert other.status_code == 200

    def test_window_expiry_readmits(self, limited_client: TestClient, clock) -> None:
        for _ in range(2):
            limited_client.post("/limited")
        assert limited_client.post("/limited").status_code == 429

        clock.advance(PASSWORD_RESET_POLICY.window_ms + 1)

        assert limited_client.post("/limited").status_code == 200

    @patch("meister_api.core.rate_limit.settings")
    def test_disabled_rate_limit_never_blocks(self, mock_settings, limited_client: TestClient) -> None:
        mock_settings.rate_limit.enabled = False

        responses = [limited_client.post("/limited") for _ in range(5)]

        assert all(r.status_code == 200 for r in responses)
