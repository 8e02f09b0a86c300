"""Supabase (GoTrue) auth adapter over the REST API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from meister_api.adapters.auth.base import AbstractAuthProvider
from meister_api.core.errors import (
    AuthenticationAppError,
    AuthProviderAppError,
    ConflictAppError,
    RateLimitAppError,
    ValidationAppError,
)
from meister_api.schemas.auth import AuthSession, AuthUser, RegistrationRequest

logger = logging.getLogger(__name__)

_CONFLICT_CODES = {"user_already_exists", "email_exists"}
_INVALID_CREDENTIAL_CODES = {"invalid_grant", "invalid_credentials"}
_DEFAULT_PROVIDER_RETRY_AFTER = 60


class SupabaseAuthClient(AbstractAuthProvider):
    """Client for the GoTrue endpoints of a Supabase project.

    Uses a shared ``httpx.AsyncClient``; pass ``transport`` to plug in a
    mock transport in tests.
    """

    def __init__(
        self,
        url: str,
        anon_key: str,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the GoTrue client.

        Args:
            url: Supabase project URL (``https://<ref>.supabase.co``).
            anon_key: Public anon key, sent as ``apikey`` and bearer token.
            timeout_seconds: Timeout for each request.
            transport: Optional custom httpx transport.
        """
        self.client = httpx.AsyncClient(
            base_url=f"{url.rstrip('/')}/auth/v1",
            headers={
                "apikey": anon_key,
                "Authorization": f"Bearer {anon_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout_seconds,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    async def sign_up(self, registration: RegistrationRequest) -> AuthUser:
        payload = {
            "email": registration.email,
            "password": registration.password,
            "data": {
                "user_type": registration.user_type,
                "first_name": registration.first_name,
                "last_name": registration.last_name,
                "company_name": registration.company_name,
                "phone": registration.phone,
            },
        }
        data = await self._post("/signup", json=payload)

        # With e-mail confirmation enabled GoTrue returns the bare user,
        # otherwise a full session wrapping it.
        user_data = data.get("user") if "access_token" in data else data
        if not user_data or not user_data.get("id"):
            raise AuthProviderAppError(
                code="auth_provider_invalid_response",
                message="Auth backend returned no user for the sign-up request",
            )
        return AuthUser.model_validate(user_data)

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        data = await self._post(
            "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        return AuthSession.model_validate(data)

    async def send_password_reset(self, email: str, *, redirect_to: str | None = None) -> None:
        params = {"redirect_to": redirect_to} if redirect_to else None
        await self._post("/recover", params=params, json={"email": email})

    async def _post(
        self,
        path: str,
        *,
        json: dict[str, Any],
        params: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        try:
            response = await self.client.post(path, json=json, params=params)
        except httpx.HTTPError as exc:
            logger.error(
                "auth_provider.transport_error",
                extra={"path": path, "error_type": type(exc).__name__},
            )
            raise AuthProviderAppError(
                code="auth_provider_unavailable",
                message="Der Authentifizierungsdienst ist derzeit nicht erreichbar",
            ) from exc

        if response.is_success:
            if not response.content:
                return {}
            return response.json()

        raise self._map_error(path, response)

    @staticmethod
    def _map_error(path: str, response: httpx.Response) -> Exception:
        """Translate a GoTrue error response into an AppError."""
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        error_code = str(body.get("error_code") or body.get("error") or "").lower()
        message = str(
            body.get("msg") or body.get("error_description") or body.get("message") or ""
        )
        status_code = response.status_code

        logger.warning(
            "auth_provider.error",
            extra={"path": path, "provider_status": status_code, "provider_code": error_code},
        )

        if status_code == 429:
            retry_after = response.headers.get("Retry-After")
            return RateLimitAppError(
                code="auth_provider_rate_limited",
                message="Zu viele Anfragen. Bitte versuchen Sie es später erneut.",
                details={
                    "retry_after": int(retry_after)
                    if retry_after and retry_after.isdigit()
                    else _DEFAULT_PROVIDER_RETRY_AFTER,
                },
            )

        if error_code in _CONFLICT_CODES or "already registered" in message.lower():
            return ConflictAppError(
                code="user_already_exists",
                message="Ein Benutzer mit dieser E-Mail-Adresse existiert bereits",
            )

        if error_code in _INVALID_CREDENTIAL_CODES or "invalid login credentials" in message.lower():
            return AuthenticationAppError(
                code="invalid_credentials",
                message="Ungültige E-Mail-Adresse oder Passwort",
            )

        if 400 <= status_code < 500:
            return ValidationAppError(
                code=error_code or "auth_request_rejected",
                message=message or "Die Anfrage wurde vom Authentifizierungsdienst abgelehnt",
                details={"provider_status": status_code},
            )

        return AuthProviderAppError(
            code="auth_provider_error",
            message="Der Authentifizierungsdienst hat einen Fehler gemeldet",
            details={"provider_status": status_code},
        )
