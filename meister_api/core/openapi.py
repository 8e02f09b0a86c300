"""OpenAPI customization.

Adds the admin API key security scheme (``X-API-Key``) to the admin
operations only, documents the 429 response of throttled auth operations and
registers tag descriptions. Keeps documentation concerns out of the factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

TAGS_METADATA = [
    {"name": "Auth", "description": "Registration, login and password reset (rate limited per client IP)."},
    {"name": "Admin", "description": "Operator endpoints; require an admin X-API-Key."},
    {"name": "Health", "description": "Liveness checks."},
]

TOO_MANY_REQUESTS_RESPONSE = {
    "description": "Too many attempts from this client; retry after the given delay.",
    "headers": {
        "Retry-After": {
            "description": "Seconds until the current rate-limit window ends.",
            "schema": {"type": "integer"},
        }
    },
}


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation with security and tag metadata."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "AdminApiKey",
            {
                "type": "apiKey",
                "in": "header",
                "name": "X-API-Key",
                "description": "Admin API key configured via APP_ADMIN_API_KEYS.",
            },
        )

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in TAGS_METADATA:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for path, methods in schema.get("paths", {}).items():
            for method_obj in methods.values():
                if not isinstance(method_obj, dict):
                    continue
                if "/admin/" in path:
                    method_obj["security"] = [{"AdminApiKey": []}]
                if "/auth/" in path:
                    method_obj.setdefault("responses", {}).setdefault(
                        "429", TOO_MANY_REQUESTS_RESPONSE
                    )

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
