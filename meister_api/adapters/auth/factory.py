"""Factory for the auth provider used by the application."""

from meister_api.adapters.auth.base import AbstractAuthProvider
from meister_api.adapters.auth.supabase_client import SupabaseAuthClient
from meister_api.core.config import SupabaseSettings, settings
from meister_api.core.errors import ValidationAppError


def create_auth_provider(supabase_settings: SupabaseSettings | None = None) -> AbstractAuthProvider:
    """Instantiate the auth provider from configuration.

    Raises:
        ValidationAppError: If the Supabase URL or anon key is missing.
    """
    cfg = supabase_settings or settings.supabase

    if not cfg.url:
        raise ValidationAppError(
            code="auth_missing_url",
            message="Supabase auth requires the SUPABASE_URL environment variable",
        )
    if not cfg.anon_key:
        raise ValidationAppError(
            code="auth_missing_anon_key",
            message="Supabase auth requires the SUPABASE_ANON_KEY environment variable",
        )

    return SupabaseAuthClient(
        url=cfg.url,
        anon_key=cfg.anon_key,
        timeout_seconds=cfg.timeout_seconds,
    )
