"""Rate limiter interfaces.

Routes depend on this abstraction (not the concrete implementation) so the
storage backend can be swapped later with minimal changes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a single rate limit check.

    Attributes:
        allowed: Whether the request may proceed.
        reset_time: Epoch milliseconds at which the current window ends.
            Only populated when the request was rejected.
    """

    allowed: bool
    reset_time: int | None = None


class AbstractRateLimiter(ABC):
    """Interface for per-identifier rate limiters."""

    @abstractmethod
    def check(self, identifier: str) -> RateLimitDecision:
        """Count a request for ``identifier`` and decide whether to admit it.

        Implementations must never raise on an exceeded limit; rejection is
        reported through the returned decision.

        Args:
            identifier: Namespaced key, usually ``"<action>:<client-ip>"``.

        Returns:
            RateLimitDecision describing the admit/reject outcome.
        """
        raise NotImplementedError

    @abstractmethod
    def reset(self, identifier: str) -> None:
        """Forget all counting state for ``identifier``."""
        raise NotImplementedError
