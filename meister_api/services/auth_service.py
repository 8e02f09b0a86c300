"""Authentication use cases on top of the auth provider adapter."""

from __future__ import annotations

import logging

from meister_api.adapters.auth.base import AbstractAuthProvider
from meister_api.core.errors import AuthorizationAppError
from meister_api.core.logging import hash_for_log
from meister_api.schemas.auth import (
    LoginRequest,
    LoginResponse,
    MessageResponse,
    PasswordResetRequest,
    RegistrationRequest,
    RegistrationResponse,
)

logger = logging.getLogger(__name__)

REGISTRATION_SUCCESS_MESSAGE = "Registrierung erfolgreich. Bitte überprüfen Sie Ihre E-Mail."
LOGIN_SUCCESS_MESSAGE = "Anmeldung erfolgreich."
# Same answer whether or not the address exists, to avoid account enumeration
PASSWORD_RESET_MESSAGE = (
    "Falls ein Konto mit dieser E-Mail-Adresse existiert, "
    "wurde ein Link zum Zurücksetzen des Passworts gesendet."
)


class AuthService:
    """Registration, login and password reset flows.

    Errors raised by the provider (AppError subclasses) propagate unchanged;
    the exception handlers turn them into HTTP responses.
    """

    def __init__(
        self,
        provider: AbstractAuthProvider,
        *,
        registration_enabled: bool = True,
        password_reset_redirect_url: str | None = None,
    ) -> None:
        self._provider = provider
        self._registration_enabled = registration_enabled
        self._password_reset_redirect_url = password_reset_redirect_url

    async def register(self, registration: RegistrationRequest) -> RegistrationResponse:
        if not self._registration_enabled:
            raise AuthorizationAppError(
                code="registration_disabled",
                message="Die Registrierung ist derzeit deaktiviert",
            )

        user = await self._provider.sign_up(registration)
        logger.info(
            "auth.register.success",
            extra={"user_id": user.id, "user_type": registration.user_type},
        )
        return RegistrationResponse(message=REGISTRATION_SUCCESS_MESSAGE, user=user)

    async def login(self, credentials: LoginRequest) -> LoginResponse:
        session = await self._provider.sign_in_with_password(credentials.email, credentials.password)
        logger.info("auth.login.success", extra={"user_id": session.user.id})
        return LoginResponse(message=LOGIN_SUCCESS_MESSAGE, user=session.user, session=session)

    async def request_password_reset(self, request: PasswordResetRequest) -> MessageResponse:
        await self._provider.send_password_reset(
            request.email,
            redirect_to=self._password_reset_redirect_url,
        )
        logger.info(
            "auth.password_reset.requested",
            extra={"email_hash": hash_for_log(request.email)},
        )
        return MessageResponse(message=PASSWORD_RESET_MESSAGE)
