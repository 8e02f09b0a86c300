from __future__ import annotations

from meister_api.api.routes.admin import router as admin_router
from meister_api.api.routes.auth import router as auth_router
from meister_api.api.routes.health import router as health_router

__all__ = ["admin_router", "auth_router", "health_router"]
