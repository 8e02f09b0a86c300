"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Nested BaseSettings don't inherit env_file, so populate os.environ up front
if _env_file and os.getenv("TESTING") != "true":
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level (DEBUG, INFO, WARNING, ...)")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log destination: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        10_485_760,
        description="Rotate the log file at this size; 0 disables rotation",
        ge=0,
    )
    backup_count: int = Field(5, description="Number of rotated files to keep", ge=0)
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to read/propagate the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    enable_registration: bool = Field(
        True,
        description="Allow new accounts to be created via /v1/auth/register",
    )
    admin_api_keys: str | None = Field(
        None,
        description="Comma-separated API keys accepted by the admin endpoints",
    )
    security_headers_enabled: bool = Field(
        True,
        description="Attach hardening headers (CSP, X-Frame-Options, ...) to every response",
    )
    password_reset_redirect_url: str | None = Field(
        None,
        description="URL the password reset e-mail links back to",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class SupabaseSettings(BaseSettings):
    """Hosted auth backend (Supabase GoTrue) connection settings."""

    url: str | None = Field(
        None,
        description="Supabase project URL, e.g. https://xyz.supabase.co",
    )
    anon_key: str | None = Field(
        None,
        description="Public anon key sent as apikey header",
    )
    timeout_seconds: float = Field(
        10.0,
        description="HTTP timeout for auth backend calls",
    )

    model_config = SettingsConfigDict(
        env_prefix="SUPABASE_",
        case_sensitive=False,
    )


class RateLimitSettings(BaseSettings):
    """Fixed-window limits for the authentication endpoints."""

    enabled: bool = Field(True, description="Enforce rate limits on auth endpoints")

    login_window_ms: int = Field(15 * 60 * 1000, ge=1)
    login_max_requests: int = Field(5, ge=1)

    register_window_ms: int = Field(60 * 60 * 1000, ge=1)
    register_max_requests: int = Field(3, ge=1)

    password_reset_window_ms: int = Field(60 * 60 * 1000, ge=1)
    password_reset_max_requests: int = Field(2, ge=1)

    sweep_interval_ms: int = Field(
        5 * 60 * 1000,
        description="Minimum delay between purges of expired counters; 0 disables",
        ge=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        case_sensitive=False,
    )


def _build_log_settings() -> LogSettings:
    return LogSettings()


def _build_app_settings() -> AppSettings:
    return AppSettings()


def _build_supabase_settings() -> SupabaseSettings:
    return SupabaseSettings()


def _build_rate_limit_settings() -> RateLimitSettings:
    return RateLimitSettings()


class Settings(BaseSettings):
    """Main application settings container.

    Nested groups are created via default_factory so each one reads its own
    env prefix at construction time.
    """

    app_env: str = APP_ENV
    log: LogSettings = Field(default_factory=_build_log_settings)
    app: AppSettings = Field(default_factory=_build_app_settings)
    supabase: SupabaseSettings = Field(default_factory=_build_supabase_settings)
    rate_limit: RateLimitSettings = Field(default_factory=_build_rate_limit_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


settings = Settings()
