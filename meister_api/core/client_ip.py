"""Client IP resolution for requests arriving through proxies/CDNs."""

from __future__ import annotations

from fastapi import Request

UNKNOWN_CLIENT_IP = "unknown"

# Checked in order; the first non-empty value wins
CLIENT_IP_HEADERS = ("x-forwarded-for", "x-real-ip", "cf-connecting-ip")


def get_client_ip(request: Request) -> str:
    """Resolve the originating client IP from proxy headers.

    ``X-Forwarded-For`` may carry a chain (``client, proxy1, proxy2``); only
    the left-most entry is used. Without any of the known headers the literal
    ``"unknown"`` is returned, so all such clients share one rate-limit bucket.

    Args:
        request: Incoming request.

    Returns:
        The client IP string, or ``"unknown"``.
    """

    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first_hop = forwarded_for.split(",")[0].strip()
        if first_hop:
            return first_hop

    for header in CLIENT_IP_HEADERS[1:]:
        value = request.headers.get(header)
        if value:
            return value

    return UNKNOWN_CLIENT_IP
