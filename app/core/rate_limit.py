"""Rate limiting for the public GitHub activity endpoints.

Fixed-window counter per client identity. One limiter instance is created
by the application factory and injected into the request path, so tests
get a fresh instance each time.
"""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeAlias

# Type alias for clarity
ClientId: TypeAlias = str
Timestamp: TypeAlias = float


@dataclass
class RateLimitConfig:
    """Configuration for rate limiting."""

    requests: int  # Maximum requests allowed per window
    window_seconds: int  # Window length in seconds


DEFAULT_LIMIT = RateLimitConfig(requests=100, window_seconds=60)  # 100 requests per minute


@dataclass
class RateWindow:
    """Request count for one client within the current window."""

    count: int
    reset_at: Timestamp


@dataclass
class RateLimitResult:
    """Outcome of a single admission check."""

    allowed: bool
    remaining: int
    reset_in: float  # Seconds until the window resets


class FixedWindowRateLimiter:
    """In-memory fixed-window rate limiter.

    The first request from a client (or the first after its window expired)
    opens a new window with count=1. Requests inside a live window increment
    the count until it reaches the limit; further requests are denied and do
    not grow the count.

    Windows are never evicted: the key space is small and windows are short.

    Note: This is an in-memory implementation suitable for single-instance
    deployments.
    """

    def __init__(
        self,
        config: RateLimitConfig = DEFAULT_LIMIT,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config
        self._clock = clock
        self._windows: dict[ClientId, RateWindow] = {}
        self._lock = threading.Lock()

    def check(self, client_id: ClientId) -> RateLimitResult:
        """Record a request for client_id and decide whether it is admitted."""
        max_requests = self.config.requests

        with self._lock:
            now = self._clock()
            window = self._windows.get(client_id)

            if window is None or now >= window.reset_at:
                window = RateWindow(count=1, reset_at=now + self.config.window_seconds)
                self._windows[client_id] = window
                return RateLimitResult(
                    allowed=True,
                    remaining=max_requests - 1,
                    reset_in=float(self.config.window_seconds),
                )

            reset_in = window.reset_at - now

            if window.count >= max_requests:
                return RateLimitResult(allowed=False, remaining=0, reset_in=reset_in)

            window.count += 1
            return RateLimitResult(
                allowed=True,
                remaining=max_requests - window.count,
                reset_in=reset_in,
            )

    def get_window(self, client_id: ClientId) -> RateWindow | None:
        """Get the current window for a client, if any."""
        with self._lock:
            return self._windows.get(client_id)

    def reset(self) -> None:
        """Forget all windows."""
        with self._lock:
            self._windows.clear()
