# ABOUTME: Unit tests for the shared retry/backoff policy.
# ABOUTME: Verifies classification, backoff schedules, and the retry budget with a recording sleep.

import asyncio

import pytest

from shelvery.catalog.errors import (
    CatalogFetchError,
    NotFoundError,
    RateLimitedError,
    TransientError,
)
from shelvery.catalog.retry import RetryKind, RetryPolicy, classify_error


class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FlakyOperation:
    """Raises the queued errors in order, then returns ``value``."""

    def __init__(self, errors: list[Exception], value: str = "ok") -> None:
        self._errors = list(errors)
        self._value = value
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self._errors:
            raise self._errors.pop(0)
        return self._value


class TestClassifyError:
    """Tests for the default error classification."""

    def test_rate_limited(self) -> None:
        assert classify_error(RateLimitedError("429")) is RetryKind.RATE_LIMITED

    def test_transient_and_timeout(self) -> None:
        assert classify_error(TransientError("aborted")) is RetryKind.TRANSIENT
        assert classify_error(asyncio.TimeoutError()) is RetryKind.TRANSIENT

    def test_everything_else_is_fatal(self) -> None:
        assert classify_error(NotFoundError("404")) is RetryKind.FATAL
        assert classify_error(CatalogFetchError("bad json")) is RetryKind.FATAL
        assert classify_error(KeyError("id")) is RetryKind.FATAL


class TestRetryPolicy:
    """Tests for RetryPolicy.run."""

    async def test_success_needs_no_retry(self) -> None:
        sleep = RecordingSleep()
        op = FlakyOperation([])
        assert await RetryPolicy(sleep=sleep).run(op) == "ok"
        assert op.calls == 1
        assert sleep.delays == []

    async def test_rate_limit_backs_off_exponentially(self) -> None:
        """Rate-limited attempts wait base, 2x base, 4x base."""
        sleep = RecordingSleep()
        op = FlakyOperation([RateLimitedError("429")] * 3)
        policy = RetryPolicy(retries=3, base_delay=0.5, sleep=sleep)

        assert await policy.run(op) == "ok"
        assert op.calls == 4
        assert sleep.delays == [0.5, 1.0, 2.0]

    async def test_transient_backs_off_linearly(self) -> None:
        """Transient attempts wait base, 2x base, 3x base."""
        sleep = RecordingSleep()
        op = FlakyOperation([TransientError("reset")] * 3)
        policy = RetryPolicy(retries=3, base_delay=0.5, sleep=sleep)

        assert await policy.run(op) == "ok"
        assert sleep.delays == [0.5, 1.0, 1.5]

    async def test_budget_exhausted_raises_last_error(self) -> None:
        """After the retry budget, the failure propagates unchanged."""
        sleep = RecordingSleep()
        op = FlakyOperation([TransientError("1"), TransientError("2"), TransientError("3")])

        with pytest.raises(TransientError, match="3"):
            await RetryPolicy(retries=2, sleep=sleep).run(op)
        assert op.calls == 3

    async def test_fatal_error_is_not_retried(self) -> None:
        sleep = RecordingSleep()
        op = FlakyOperation([NotFoundError("404")])

        with pytest.raises(NotFoundError):
            await RetryPolicy(sleep=sleep).run(op)
        assert op.calls == 1
        assert sleep.delays == []

    async def test_zero_retries_fails_immediately(self) -> None:
        op = FlakyOperation([RateLimitedError("429")])
        with pytest.raises(RateLimitedError):
            await RetryPolicy(retries=0, sleep=RecordingSleep()).run(op)
        assert op.calls == 1

    async def test_custom_classifier(self) -> None:
        """A caller-supplied classifier decides what is retryable."""
        sleep = RecordingSleep()
        op = FlakyOperation([KeyError("flaky")])
        policy = RetryPolicy(sleep=sleep, classify=lambda exc: RetryKind.TRANSIENT)

        assert await policy.run(op) == "ok"
        assert op.calls == 2

    def test_with_retries_keeps_other_settings(self) -> None:
        sleep = RecordingSleep()
        policy = RetryPolicy(retries=2, base_delay=0.25, sleep=sleep).with_retries(5)
        assert policy.retries == 5
        assert policy.base_delay == 0.25
        assert policy.sleep is sleep
