"""Unit tests for AuthService against the fake provider."""

import pytest

from meister_api.core.errors import AuthorizationAppError, ConflictAppError
from meister_api.schemas.auth import LoginRequest, PasswordResetRequest, RegistrationRequest
from meister_api.services.auth_service import AuthService


@pytest.fixture
def registration(registration_payload) -> RegistrationRequest:
    return RegistrationRequest.model_validate(registration_payload)


@pytest.mark.asyncio
async def test_register_returns_user(auth_provider, registration) -> None:
    service = AuthService(auth_provider)

    result = await service.register(registration)

    assert result.user.email == "meister@example.de"
    assert auth_provider.calls[0][0] == "sign_up"


@pytest.mark.asyncio
async def test_register_disabled_never_reaches_provider(auth_provider, registration) -> None:
    service = AuthService(auth_provider, registration_enabled=False)

    with pytest.raises(AuthorizationAppError):
        await service.register(registration)

    assert auth_provider.calls == []


@pytest.mark.asyncio
async def test_provider_errors_propagate(auth_provider, registration) -> None:
    auth_provider.error = ConflictAppError(code="user_already_exists", message="exists")
    service = AuthService(auth_provider)

    with pytest.raises(ConflictAppError):
        await service.register(registration)


@pytest.mark.asyncio
async def test_login_returns_session(auth_provider) -> None:
    service = AuthService(auth_provider)

    result = await service.login(LoginRequest(email="a@b.de", password="pw"))

    assert result.session.refresh_token == "refresh-token"
    assert result.user.email == "a@b.de"


@pytest.mark.asyncio
async def test_password_reset_passes_redirect_url(auth_provider) -> None:
    service = AuthService(auth_provider, password_reset_redirect_url="https://app.example.de/reset")

    await service.request_password_reset(PasswordResetRequest(email="a@b.de"))

    assert auth_provider.calls == [
        ("send_password_reset", ("a@b.de", "https://app.example.de/reset"))
    ]
