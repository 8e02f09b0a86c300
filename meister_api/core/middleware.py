"""HTTP middleware for request correlation and response hardening.

- request_id_middleware: accepts X-Request-ID or generates a UUID, stores it
  in contextvars for log correlation and echoes it back with the duration.
- security_headers_middleware: adds the hardening headers to every response,
  including error responses produced by the exception handlers.
- unhandled_exception_middleware: turns unexpected exceptions into the generic
  500 response inside the stack, so the outer layers still decorate it.

Usage:
    app.middleware("http")(unhandled_exception_middleware)
    app.middleware("http")(security_headers_middleware)
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import time
import uuid

from fastapi import Request, Response

from meister_api.core.config import settings
from meister_api.core.exception_handlers import general_exception_handler
from meister_api.core.logging import clear_request_id, set_request_id
from meister_api.core.security import SECURITY_HEADERS


async def request_id_middleware(request: Request, call_next) -> Response:
    """Propagate a request id through the request lifecycle.

    Side Effects:
        - Sets request_id in contextvars for the duration of the request
        - Adds the request id header and X-Request-Duration-ms to the response
    """

    header_name = settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
    finally:
        clear_request_id()

    duration_ms = (time.perf_counter() - start) * 1000
    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response


async def security_headers_middleware(request: Request, call_next) -> Response:
    response: Response = await call_next(request)
    if settings.app.security_headers_enabled:
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
    return response


async def unhandled_exception_middleware(request: Request, call_next) -> Response:
    """Convert unexpected exceptions into the generic 500 response.

    Registered innermost: the request id is still set while the body is
    built, and the outer middleware add their headers to the response.
    """

    try:
        return await call_next(request)
    except Exception as exc:
        return await general_exception_handler(request, exc)
