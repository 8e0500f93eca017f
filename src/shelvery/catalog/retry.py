# ABOUTME: Shared retry/backoff policy injected into every catalog provider.
# ABOUTME: Exponential backoff for rate limits, linear for transient aborts, no retry otherwise.

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TypeVar

from shelvery.catalog.errors import RateLimitedError, TransientError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_RETRIES = 2
DEFAULT_BASE_DELAY = 0.5


class RetryKind(Enum):
    """How a failure should be treated by the retry loop."""

    RATE_LIMITED = "rate_limited"
    TRANSIENT = "transient"
    FATAL = "fatal"


def classify_error(exc: BaseException) -> RetryKind:
    """Default classification over the catalog error taxonomy."""
    if isinstance(exc, RateLimitedError):
        return RetryKind.RATE_LIMITED
    if isinstance(exc, (TransientError, asyncio.TimeoutError)):
        return RetryKind.TRANSIENT
    return RetryKind.FATAL


@dataclass
class RetryPolicy:
    """Retry an async operation according to the failure it raised.

    Rate limits back off exponentially (``base_delay * 2**attempt``),
    transient failures linearly (``base_delay * (attempt + 1)``). Fatal
    failures, and any failure once ``retries`` is spent, propagate as-is.
    Each retry re-runs the operation from scratch.
    """

    retries: int = DEFAULT_RETRIES
    base_delay: float = DEFAULT_BASE_DELAY
    classify: Callable[[BaseException], RetryKind] = classify_error
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep)

    def delay_for(self, kind: RetryKind, attempt: int) -> float:
        if kind is RetryKind.RATE_LIMITED:
            return self.base_delay * (2**attempt)
        return self.base_delay * (attempt + 1)

    def with_retries(self, retries: int) -> "RetryPolicy":
        """Copy of this policy with a different retry budget."""
        return RetryPolicy(
            retries=retries, base_delay=self.base_delay, classify=self.classify, sleep=self.sleep
        )

    async def run(self, operation: Callable[[], Awaitable[T]], *, label: str = "request") -> T:
        attempt = 0
        while True:
            try:
                return await operation()
            except Exception as exc:
                kind = self.classify(exc)
                if kind is RetryKind.FATAL or attempt >= self.retries:
                    raise
                delay = self.delay_for(kind, attempt)
                logger.warning(
                    "%s %s, retrying in %.1fs (attempt %d/%d): %s",
                    label,
                    kind.value.replace("_", " "),
                    delay,
                    attempt + 1,
                    self.retries,
                    exc,
                )
                await self.sleep(delay)
                attempt += 1
