"""Rate limiting for the authentication endpoints.

Wires the limiter adapter into the HTTP layer:
- one fixed-window limiter per auth action, owned by a registry on app.state
- limiter keys are ``"<action>:<client-ip>"``
- a rejected check becomes RateLimitAppError (HTTP 429 + Retry-After)

The limiter itself never raises; deciding what a rejection means for the
client happens here.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from fastapi import Request

from meister_api.adapters.rate_limit.base import RateLimitDecision
from meister_api.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter, epoch_ms
from meister_api.core.client_ip import get_client_ip
from meister_api.core.config import RateLimitSettings, settings
from meister_api.core.errors import RateLimitAppError
from meister_api.core.logging import hash_for_log

logger = logging.getLogger(__name__)


class RateLimitAction(str, Enum):
    LOGIN = "login"
    REGISTER = "register"
    PASSWORD_RESET = "password_reset"


@dataclass(frozen=True)
class RateLimitPolicy:
    """Window length and request budget for one action."""

    action: RateLimitAction
    window_ms: int
    max_requests: int


LOGIN_POLICY = RateLimitPolicy(RateLimitAction.LOGIN, window_ms=15 * 60 * 1000, max_requests=5)
REGISTER_POLICY = RateLimitPolicy(RateLimitAction.REGISTER, window_ms=60 * 60 * 1000, max_requests=3)
PASSWORD_RESET_POLICY = RateLimitPolicy(
    RateLimitAction.PASSWORD_RESET, window_ms=60 * 60 * 1000, max_requests=2
)

DEFAULT_POLICIES: tuple[RateLimitPolicy, ...] = (
    LOGIN_POLICY,
    REGISTER_POLICY,
    PASSWORD_RESET_POLICY,
)

EXCEEDED_MESSAGES: dict[RateLimitAction, str] = {
    RateLimitAction.LOGIN: "Zu viele Anmeldeversuche. Bitte versuchen Sie es später erneut.",
    RateLimitAction.REGISTER: "Zu viele Registrierungsversuche. Bitte versuchen Sie es später erneut.",
    RateLimitAction.PASSWORD_RESET: (
        "Zu viele Anfragen zum Zurücksetzen des Passworts. Bitte versuchen Sie es später erneut."
    ),
}


def get_rate_limit_key(ip: str, action: RateLimitAction | str) -> str:
    """Build the limiter identifier for an action and client IP."""

    action_name = action.value if isinstance(action, RateLimitAction) else action
    return f"{action_name}:{ip}"


def compute_retry_after_seconds(reset_time_ms: int, now_ms: int) -> int:
    """Whole seconds until ``reset_time_ms``, rounded up and never negative."""

    return max(0, math.ceil((reset_time_ms - now_ms) / 1000))


def policies_from_settings(cfg: RateLimitSettings) -> tuple[RateLimitPolicy, ...]:
    """Apply configured overrides to the default per-action policies."""

    return (
        RateLimitPolicy(RateLimitAction.LOGIN, cfg.login_window_ms, cfg.login_max_requests),
        RateLimitPolicy(RateLimitAction.REGISTER, cfg.register_window_ms, cfg.register_max_requests),
        RateLimitPolicy(
            RateLimitAction.PASSWORD_RESET,
            cfg.password_reset_window_ms,
            cfg.password_reset_max_requests,
        ),
    )


class RateLimiterRegistry:
    """Owns one limiter per auth action for the lifetime of an app instance."""

    def __init__(
        self,
        policies: tuple[RateLimitPolicy, ...] = DEFAULT_POLICIES,
        *,
        clock: Callable[[], int] = epoch_ms,
        sweep_interval_ms: int = 0,
    ) -> None:
        self._clock = clock
        self._policies = {policy.action: policy for policy in policies}
        self._limiters = {
            policy.action: InMemoryFixedWindowRateLimiter(
                window_ms=policy.window_ms,
                max_requests=policy.max_requests,
                clock=clock,
                sweep_interval_ms=sweep_interval_ms,
            )
            for policy in policies
        }

    @classmethod
    def from_settings(
        cls,
        cfg: RateLimitSettings,
        *,
        clock: Callable[[], int] = epoch_ms,
    ) -> "RateLimiterRegistry":
        return cls(
            policies_from_settings(cfg),
            clock=clock,
            sweep_interval_ms=cfg.sweep_interval_ms,
        )

    def now(self) -> int:
        return self._clock()

    def policy(self, action: RateLimitAction) -> RateLimitPolicy:
        return self._policies[action]

    def get(self, action: RateLimitAction) -> InMemoryFixedWindowRateLimiter:
        return self._limiters[action]

    def check(self, action: RateLimitAction, ip: str) -> RateLimitDecision:
        return self.get(action).check(get_rate_limit_key(ip, action))

    def reset(self, action: RateLimitAction, ip: str) -> str:
        """Clear the counter for ``ip`` under ``action``; returns the identifier."""

        identifier = get_rate_limit_key(ip, action)
        self.get(action).reset(identifier)
        return identifier


def get_rate_limiter_registry(request: Request) -> RateLimiterRegistry:
    """FastAPI dependency returning the registry owned by the running app."""

    return request.app.state.rate_limiters


def require_rate_limit(action: RateLimitAction) -> Callable:
    """Build a FastAPI dependency enforcing the limiter for ``action``.

    Usage:
        @router.post("/login", dependencies=[Depends(require_rate_limit(RateLimitAction.LOGIN))])

    Raises (from the dependency):
        RateLimitAppError: When the client exhausted its budget for the window.
    """

    async def enforce(request: Request) -> None:
        if not settings.rate_limit.enabled:
            return

        registry = get_rate_limiter_registry(request)
        client_ip = get_client_ip(request)
        identifier = get_rate_limit_key(client_ip, action)
        policy = registry.policy(action)

        decision = registry.check(action, client_ip)
        if decision.allowed:
            logger.debug(
                "rate_limit.allowed",
                extra={
                    "action": action.value,
                    "key_hash": hash_for_log(identifier),
                    "limit": policy.max_requests,
                    "window_ms": policy.window_ms,
                },
            )
            return

        reset_time = decision.reset_time if decision.reset_time is not None else registry.now()
        retry_after = compute_retry_after_seconds(reset_time, registry.now())
        logger.warning(
            "rate_limit.exceeded",
            extra={
                "action": action.value,
                "key_hash": hash_for_log(identifier),
                "limit": policy.max_requests,
                "window_ms": policy.window_ms,
                "retry_after_s": retry_after,
            },
        )

        raise RateLimitAppError(
            code="rate_limit_exceeded",
            message=EXCEEDED_MESSAGES[action],
            details={"action": action.value, "retry_after": retry_after},
        )

    enforce.__name__ = f"enforce_{action.value}_rate_limit"
    return enforce
