"""API key authentication for the admin endpoints.

Admin keys are validated against a comma-separated list from the
APP_ADMIN_API_KEYS environment variable. Without any configured key the admin
surface is closed.
"""

from __future__ import annotations

import logging
import secrets
from typing import Annotated

from fastapi import Header, HTTPException, status

from meister_api.core.config import settings
from meister_api.core.errors import AuthorizationAppError
from meister_api.core.logging import hash_for_log

logger = logging.getLogger(__name__)


def parse_api_keys(keys_string: str | None) -> set[str]:
    """Parse comma-separated API keys into a set.

    Examples:
        >>> parse_api_keys("key1, key2 , key3 ")
        {'key1', 'key2', 'key3'}
        >>> parse_api_keys(None)
        set()
    """
    if not keys_string:
        return set()

    return {key.strip() for key in keys_string.split(",") if key.strip()}


def validate_admin_api_key(provided_key: str) -> None:
    """Check ``provided_key`` against the configured admin keys.

    Raises:
        AuthorizationAppError: If no keys are configured or the key is unknown.
    """
    valid_keys = parse_api_keys(settings.app.admin_api_keys)

    if not valid_keys:
        logger.error(
            "admin_auth.failed",
            extra={"reason": "admin_api_keys_not_configured"},
        )
        raise AuthorizationAppError(
            code="admin_api_keys_not_configured",
            message="Admin endpoints are disabled because no admin API keys are configured",
            details={"hint": "Set APP_ADMIN_API_KEYS to enable admin endpoints"},
        )

    provided = provided_key.encode()
    if not any(secrets.compare_digest(provided, key.encode()) for key in valid_keys):
        logger.warning(
            "admin_auth.failed",
            extra={"reason": "invalid_api_key", "api_key_hash": hash_for_log(provided_key)},
        )
        raise AuthorizationAppError(
            code="invalid_api_key",
            message="Invalid or missing API key",
        )


async def verify_admin_api_key(
    x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
) -> None:
    """FastAPI dependency guarding admin routes with the X-API-Key header.

    Raises:
        HTTPException: 403 Forbidden if the key is missing or rejected.
    """
    if not x_api_key:
        logger.warning("admin_auth.missing_key")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Missing API key. Provide X-API-Key header.",
        )

    try:
        validate_admin_api_key(x_api_key)
    except AuthorizationAppError as exc:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=exc.message,
        ) from exc

    logger.info("admin_auth.success", extra={"api_key_hash": hash_for_log(x_api_key)})
