"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around shared state.
- Windows start at the first request for an identifier, not on a global grid,
  so two adjacent windows may admit up to ``2 * max_requests`` requests around
  the boundary.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable

from meister_api.adapters.rate_limit.base import AbstractRateLimiter, RateLimitDecision


def epoch_ms() -> int:
    """Current UNIX time in whole milliseconds."""
    return int(time.time() * 1000)


@dataclass
class RateLimitEntry:
    """Counter state for one identifier within its current window."""

    count: int
    window_reset_at: int


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter counting requests per identifier in a fixed window.

    The first request for an identifier opens a window of ``window_ms``
    milliseconds. Up to ``max_requests`` requests are admitted inside it; any
    further request is rejected without being counted. Once the clock passes
    the window end, the entry is dropped and the next request opens a new one.

    Expired entries are removed lazily when their identifier is seen again.
    With ``sweep_interval_ms`` set, ``check`` additionally purges every expired
    entry at most once per interval so abandoned identifiers do not pile up.
    """

    def __init__(
        self,
        *,
        window_ms: int = 15 * 60 * 1000,
        max_requests: int = 5,
        clock: Callable[[], int] = epoch_ms,
        sweep_interval_ms: int = 0,
    ) -> None:
        """Initialize the limiter.

        Args:
            window_ms: Length of a window in milliseconds.
            max_requests: Requests admitted per identifier and window.
            clock: Time source returning epoch milliseconds.
            sweep_interval_ms: Minimum delay between full sweeps of expired
                entries; 0 disables sweeping.

        Raises:
            ValueError: If any parameter is out of range.
        """
        if window_ms < 1:
            raise ValueError("window_ms must be >= 1")
        if max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if sweep_interval_ms < 0:
            raise ValueError("sweep_interval_ms must be >= 0")

        self._window_ms = window_ms
        self._max_requests = max_requests
        self._clock = clock
        self._sweep_interval_ms = sweep_interval_ms
        self._lock = threading.RLock()
        self._entries: dict[str, RateLimitEntry] = {}
        self._last_sweep_at = clock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"InMemoryFixedWindowRateLimiter(window_ms={self._window_ms}, "
            f"max_requests={self._max_requests}, tracked={len(self)})"
        )

    @property
    def window_ms(self) -> int:
        return self._window_ms

    @property
    def max_requests(self) -> int:
        return self._max_requests

    def check(self, identifier: str) -> RateLimitDecision:
        """Count a request for ``identifier`` and decide whether to admit it.

        Args:
            identifier: Namespaced key, e.g. ``"login:203.0.113.7"``.

        Returns:
            Allowed decision, or a rejected one carrying the window end.
        """
        now = self._clock()

        with self._lock:
            self._maybe_sweep(now)

            entry = self._entries.get(identifier)
            if entry is not None and now > entry.window_reset_at:
                del self._entries[identifier]
                entry = None

            if entry is None:
                self._entries[identifier] = RateLimitEntry(
                    count=1,
                    window_reset_at=now + self._window_ms,
                )
                return RateLimitDecision(allowed=True)

            if entry.count >= self._max_requests:
                return RateLimitDecision(allowed=False, reset_time=entry.window_reset_at)

            entry.count += 1
            return RateLimitDecision(allowed=True)

    def reset(self, identifier: str) -> None:
        """Drop any entry for ``identifier``; absent identifiers are ignored."""
        with self._lock:
            self._entries.pop(identifier, None)

    def sweep_expired(self) -> int:
        """Remove every entry whose window has already ended.

        Returns:
            Number of entries removed.
        """
        now = self._clock()
        with self._lock:
            return self._sweep(now)

    def _maybe_sweep(self, now: int) -> None:
        if not self._sweep_interval_ms:
            return
        if now - self._last_sweep_at >= self._sweep_interval_ms:
            self._sweep(now)

    def _sweep(self, now: int) -> int:
        expired = [key for key, entry in self._entries.items() if now > entry.window_reset_at]
        for key in expired:
            del self._entries[key]
        self._last_sweep_at = now
        return len(expired)
