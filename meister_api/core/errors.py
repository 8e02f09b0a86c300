"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional; only the ones relevant to an error are set.
    """

    hint: str
    retry_after: int
    action: str
    provider_status: int
    errors: list[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class AuthenticationAppError(AppError):
    """Raised when credentials are missing or wrong."""


class AuthorizationAppError(AppError):
    """Raised when the caller is authenticated but not allowed."""


class ConflictAppError(AppError):
    """Raised when a resource already exists (e.g. duplicate e-mail)."""


class RateLimitAppError(AppError):
    """Raised by the HTTP layer when a rate limiter rejected the request.

    ``details["retry_after"]`` holds the suggested wait in seconds.
    """


class AuthProviderAppError(AppError):
    """Raised when the hosted auth backend fails or is unreachable."""
