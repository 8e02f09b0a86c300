"""Global exception handlers for consistent error responses.

Design:
- AppError subclasses map to their HTTP status (400, 401, 403, 409, 429, 502)
- Request body validation failures become 400 with per-field messages
- Unexpected Exception becomes a generic 500 (safety net)
- All responses include request_id for tracing
"""

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from meister_api.core.errors import (
    AppError,
    AuthenticationAppError,
    AuthorizationAppError,
    AuthProviderAppError,
    ConflictAppError,
    RateLimitAppError,
    ValidationAppError,
)
from meister_api.core.logging import get_request_id

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: tuple[tuple[type[AppError], int], ...] = (
    (ValidationAppError, 400),
    (AuthenticationAppError, 401),
    (AuthorizationAppError, 403),
    (ConflictAppError, 409),
    (RateLimitAppError, 429),
    (AuthProviderAppError, 502),
)


def status_for_error(exc: AppError) -> int:
    """HTTP status for a domain error; unknown subclasses default to 400."""
    for error_type, status_code in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 400


def _error_body(code: str, message: str, details: dict | None = None) -> dict:
    error_content = {
        "code": code,
        "message": message,
        "request_id": get_request_id(),
    }
    if details:
        error_content["details"] = details
    return {"error": error_content}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    RateLimitAppError additionally gets a Retry-After header taken from
    ``details["retry_after"]``.
    """
    status_code = status_for_error(exc)

    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
        },
    )

    headers: dict[str, str] | None = None
    if isinstance(exc, RateLimitAppError) and exc.details and "retry_after" in exc.details:
        headers = {"Retry-After": str(exc.details["retry_after"])}

    return JSONResponse(
        status_code=status_code,
        content=_error_body(exc.code, exc.message, dict(exc.details) if exc.details else None),
        headers=headers,
    )


def _field_error_message(error: dict) -> str:
    message = str(error.get("msg", ""))
    # Custom validators surface as "Value error, <message>"
    prefix = "Value error, "
    return message[len(prefix):] if message.startswith(prefix) else message


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Turn FastAPI/Pydantic body validation failures into a 400 response."""
    errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": _field_error_message(error),
        }
        for error in exc.errors()
    ]

    logger.info(
        "request_validation_failed",
        extra={
            "request_path": request.url.path,
            "error_count": len(errors),
            "fields": [e["field"] for e in errors],
        },
    )

    message = "Validierungsfehler: " + ", ".join(e["message"] for e in errors)
    return JSONResponse(
        status_code=400,
        content=_error_body("validation_error", message, {"errors": errors}),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (no implementation details leaked)."""
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )

    return JSONResponse(
        status_code=500,
        content=_error_body(
            "internal_server_error",
            "Ein interner Fehler ist aufgetreten. Bitte versuchen Sie es später erneut.",
        ),
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(RequestValidationError)(request_validation_handler)
    app.exception_handler(Exception)(general_exception_handler)
