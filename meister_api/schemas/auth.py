"""Pydantic schemas for the authentication endpoints.

Request bodies use the camelCase field names the web client sends
(``firstName``, ``userType``...); Python code works with snake_case.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from meister_api.core.security import is_valid_email, password_policy_violations, sanitize_input

UserType = Literal["handwerker", "kunde"]


def _clean_email(value: str) -> str:
    email = value.strip().lower()
    if not is_valid_email(email):
        raise ValueError("Ungültige E-Mail-Adresse")
    return email


class RegistrationRequest(BaseModel):
    """Sign-up payload for a craftsman (handwerker) or customer (kunde)."""

    model_config = ConfigDict(populate_by_name=True)

    email: str
    password: str
    first_name: str = Field(..., alias="firstName")
    last_name: str = Field(..., alias="lastName")
    user_type: UserType = Field(..., alias="userType")
    company_name: str | None = Field(None, alias="companyName")
    phone: str | None = None

    @field_validator("email")
    @classmethod
    def _validate_email(cls, value: str) -> str:
        return _clean_email(value)

    @field_validator("password")
    @classmethod
    def _validate_password(cls, value: str) -> str:
        violations = password_policy_violations(value)
        if violations:
            raise ValueError("; ".join(violations))
        return value

    @field_validator("first_name")
    @classmethod
    def _validate_first_name(cls, value: str) -> str:
        value = sanitize_input(value)
        if not value:
            raise ValueError("Vorname ist erforderlich")
        return value

    @field_validator("last_name")
    @classmethod
    def _validate_last_name(cls, value: str) -> str:
        value = sanitize_input(value)
        if not value:
            raise ValueError("Nachname ist erforderlich")
        return value

    @field_validator("user_type", mode="before")
    @classmethod
    def _validate_user_type(cls, value: Any) -> Any:
        if value not in ("handwerker", "kunde"):
            raise ValueError("Benutzertyp muss 'handwerker' oder 'kunde' sein")
        return value

    @field_validator("company_name", "phone")
    @classmethod
    def _sanitize_optional(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return sanitize_input(value) or None


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def _validate_email(cls, value: str) -> str:
        return _clean_email(value)

    @field_validator("password")
    @classmethod
    def _validate_password(cls, value: str) -> str:
        if not value:
            raise ValueError("Passwort ist erforderlich")
        return value


class PasswordResetRequest(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def _validate_email(cls, value: str) -> str:
        return _clean_email(value)


class AuthUser(BaseModel):
    """User record as returned by the auth backend (subset we expose)."""

    id: str
    email: str | None = None
    user_metadata: dict[str, Any] = Field(default_factory=dict)
    email_confirmed_at: str | None = None
    created_at: str | None = None


class AuthSession(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int | None = None
    user: AuthUser


class RegistrationResponse(BaseModel):
    message: str
    user: AuthUser


class LoginResponse(BaseModel):
    message: str
    user: AuthUser
    session: AuthSession


class MessageResponse(BaseModel):
    message: str


class RateLimitResetResponse(BaseModel):
    action: str
    identifier: str
    reset: bool = True
