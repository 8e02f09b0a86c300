from __future__ import annotations

from typing import Annotated, TypeVar

from fastapi import APIRouter, Depends, Request, status
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError

from meister_api.adapters.auth.base import AbstractAuthProvider
from meister_api.core.config import settings
from meister_api.core.rate_limit import RateLimitAction, require_rate_limit
from meister_api.schemas.auth import (
    LoginRequest,
    LoginResponse,
    MessageResponse,
    PasswordResetRequest,
    RegistrationRequest,
    RegistrationResponse,
)
from meister_api.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])

ModelT = TypeVar("ModelT", bound=BaseModel)


def get_auth_provider(request: Request) -> AbstractAuthProvider:
    return request.app.state.auth_provider


def get_auth_service(
    provider: Annotated[AbstractAuthProvider, Depends(get_auth_provider)],
) -> AuthService:
    return AuthService(
        provider,
        registration_enabled=settings.app.enable_registration,
        password_reset_redirect_url=settings.app.password_reset_redirect_url,
    )


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]


def _json_body(model: type[BaseModel]) -> dict:
    """OpenAPI request body for a route that parses its payload itself."""
    return {
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": model.model_json_schema(by_alias=True)}},
        }
    }


async def parse_body(request: Request, model: type[ModelT]) -> ModelT:
    """Read and validate the JSON body once the rate limit has been enforced.

    Declaring the payload as an endpoint parameter would make FastAPI parse it
    before any dependency runs, letting malformed bodies skip the limiter.

    Raises:
        RequestValidationError: Body is not JSON or fails model validation.
    """
    try:
        data = await request.json()
    except ValueError as exc:
        raise RequestValidationError(
            [
                {
                    "type": "json_invalid",
                    "loc": ("body",),
                    "msg": "Ungültiger JSON-Inhalt",
                    "input": {},
                    "ctx": {"error": str(exc)},
                }
            ]
        ) from exc

    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise RequestValidationError(
            [{**error, "loc": ("body", *error["loc"])} for error in exc.errors()]
        ) from exc


@router.post(
    "/register",
    response_model=RegistrationResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_rate_limit(RateLimitAction.REGISTER))],
    openapi_extra=_json_body(RegistrationRequest),
)
async def register(request: Request, service: AuthServiceDep) -> RegistrationResponse:
    """Create a craftsman or customer account.

    Throttled per client IP (default 3 attempts per hour). The confirmation
    e-mail is sent by the auth backend.
    """
    payload = await parse_body(request, RegistrationRequest)
    return await service.register(payload)


@router.post(
    "/login",
    response_model=LoginResponse,
    dependencies=[Depends(require_rate_limit(RateLimitAction.LOGIN))],
    openapi_extra=_json_body(LoginRequest),
)
async def login(request: Request, service: AuthServiceDep) -> LoginResponse:
    """Sign in with e-mail and password (default 5 attempts per 15 minutes)."""
    payload = await parse_body(request, LoginRequest)
    return await service.login(payload)


@router.post(
    "/password-reset",
    response_model=MessageResponse,
    dependencies=[Depends(require_rate_limit(RateLimitAction.PASSWORD_RESET))],
    openapi_extra=_json_body(PasswordResetRequest),
)
async def password_reset(request: Request, service: AuthServiceDep) -> MessageResponse:
    """Request a password reset e-mail (default 2 requests per hour)."""
    payload = await parse_body(request, PasswordResetRequest)
    return await service.request_password_reset(payload)
