"""Application factory for the FastAPI app.

Builds the app together with the state it owns: the rate limiter registry
and the auth provider live on ``app.state``, so every app instance (and every
test) gets its own counters.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from meister_api.adapters.auth.base import AbstractAuthProvider
from meister_api.adapters.auth.factory import create_auth_provider
from meister_api.api.routes import admin_router, auth_router, health_router
from meister_api.core.config import settings
from meister_api.core.exception_handlers import setup_exception_handlers
from meister_api.core.logging import configure_logging
from meister_api.core.middleware import (
    request_id_middleware,
    security_headers_middleware,
    unhandled_exception_middleware,
)
from meister_api.core.openapi import apply_openapi_customizations
from meister_api.core.rate_limit import RateLimiterRegistry


def create_app(
    *,
    auth_provider: AbstractAuthProvider | None = None,
    rate_limiters: RateLimiterRegistry | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        auth_provider: Auth backend to use; built from settings when omitted.
        rate_limiters: Limiter registry to use; built from settings when omitted.

    Returns:
        Configured app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    provider = auth_provider or create_auth_provider(settings.supabase)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await app.state.auth_provider.aclose()

    app = FastAPI(
        title="Meister API",
        description=(
            "Authentifizierungs-Endpunkte des Handwerker-Marktplatzes "
            "(Registrierung, Anmeldung, Passwort zurücksetzen) mit "
            "Fixed-Window-Rate-Limiting pro Client-IP."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.auth_provider = provider
    app.state.rate_limiters = rate_limiters or RateLimiterRegistry.from_settings(settings.rate_limit)

    # Middleware: the last registered runs outermost
    app.middleware("http")(unhandled_exception_middleware)
    app.middleware("http")(security_headers_middleware)
    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(auth_router, prefix="/v1")
    app.include_router(admin_router, prefix="/v1")
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
