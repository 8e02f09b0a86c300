"""Rate limiting adapters.

The auth endpoints depend on the abstract limiter so the in-memory store can
later be replaced by a shared one without touching the HTTP layer.
"""

from meister_api.adapters.rate_limit.base import AbstractRateLimiter, RateLimitDecision
from meister_api.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter

__all__ = [
    "AbstractRateLimiter",
    "InMemoryFixedWindowRateLimiter",
    "RateLimitDecision",
]
