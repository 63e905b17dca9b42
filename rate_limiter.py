"""
Async sliding-window rate limiter for Management API requests.

Admits at most `requests_per_second` calls in any trailing one-second
window. Excess callers are delayed, never rejected. Safe to share
between tasks via asyncio.Lock.
"""

import asyncio
import logging
import time
from collections import deque
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

DEFAULT_RATE_LIMIT = 8  # one below the tenant's 10 req/sec ceiling


class SlidingWindowRateLimiter:
    """Sliding-window rate limiter for async code.

    Keeps the admission instants of the last `window` seconds. When the
    window is full, acquire() sleeps until the oldest admission falls
    out of it (plus a small buffer), then records the new admission.
    Waiters are admitted in call order because the lock is FIFO.
    """

    def __init__(
        self,
        requests_per_second: int = DEFAULT_RATE_LIMIT,
        window: float = 1.0,
        buffer: float = 0.010,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if requests_per_second < 1:
            raise ValueError(f"requests_per_second must be >= 1, got {requests_per_second}")
        self._limit = requests_per_second
        self._window = window
        self._buffer = buffer
        self._clock = clock
        self._sleep = sleep
        self._timestamps: deque[float] = deque()
        self._lock = asyncio.Lock()

    @property
    def requests_per_second(self) -> int:
        return self._limit

    @property
    def in_flight_window(self) -> int:
        """Number of admissions currently inside the window."""
        self._purge(self._clock())
        return len(self._timestamps)

    async def acquire(self) -> None:
        """Wait until the window has room, then record this admission."""
        async with self._lock:
            now = self._clock()
            window_start = now - self._window
            self._purge(now)

            if len(self._timestamps) >= self._limit:
                wait = self._timestamps[0] - window_start + self._buffer
                if wait > 0:
                    logger.debug(f"Rate limit reached ({self._limit}/s), waiting {wait * 1000:.0f}ms")
                    await self._sleep(wait)
                self._purge(self._clock())

            self._timestamps.append(self._clock())

    def _purge(self, now: float) -> None:
        """Drop admissions at or before the start of the window ending at `now`."""
        window_start = now - self._window
        while self._timestamps and self._timestamps[0] <= window_start:
            self._timestamps.popleft()
