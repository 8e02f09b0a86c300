"""Auth adapter layer - abstracts over the hosted authentication backend."""

from meister_api.adapters.auth.base import AbstractAuthProvider
from meister_api.adapters.auth.factory import create_auth_provider
from meister_api.adapters.auth.supabase_client import SupabaseAuthClient

__all__ = [
    "AbstractAuthProvider",
    "SupabaseAuthClient",
    "create_auth_provider",
]
