# ABOUTME: Token-bucket rate limiter owned by each quota-limited provider.
# ABOUTME: Callers await acquire() before every upstream request so the provider self-throttles.

import asyncio
import time
from collections.abc import Awaitable, Callable


class TokenBucket:
    """Async token bucket allowing ``capacity`` requests per ``per_seconds``.

    Starts full. Tokens refill continuously at ``capacity / per_seconds``
    per second. Waiters are served one at a time in arrival order.
    """

    def __init__(
        self,
        capacity: int,
        per_seconds: float = 1.0,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if capacity < 1:
            msg = f"capacity must be at least 1, got {capacity}"
            raise ValueError(msg)
        if per_seconds <= 0:
            msg = f"per_seconds must be positive, got {per_seconds}"
            raise ValueError(msg)
        self.capacity = capacity
        self.per_seconds = per_seconds
        self._rate = capacity / per_seconds
        self._clock = clock
        self._sleep = sleep
        self._tokens = float(capacity)
        self._updated = clock()
        self._lock = asyncio.Lock()

    @property
    def available(self) -> float:
        """Tokens available right now (after refill)."""
        self._refill()
        return self._tokens

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._updated)
        self._tokens = min(float(self.capacity), self._tokens + elapsed * self._rate)
        self._updated = now

    async def acquire(self) -> None:
        """Wait until a token is available, then take it."""
        async with self._lock:
            while True:
                self._refill()
                if self._tokens >= 1.0:
                    self._tokens -= 1.0
                    return
                await self._sleep((1.0 - self._tokens) / self._rate)
