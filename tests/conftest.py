# ABOUTME: Shared pytest fixtures for Shelvery tests.
# ABOUTME: Provides a no-wait retry policy, an unthrottled limiter, and a container config file.

import json
from pathlib import Path

import pytest

from shelvery.catalog.ratelimit import TokenBucket
from shelvery.catalog.retry import RetryPolicy


async def _no_sleep(delay: float) -> None:
    return None


@pytest.fixture
def fixtures_dir() -> Path:
    """Path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def fast_retry() -> RetryPolicy:
    """Retry policy that never actually sleeps between attempts."""
    return RetryPolicy(retries=2, sleep=_no_sleep)


@pytest.fixture
def open_limiter() -> TokenBucket:
    """A limiter with enough tokens that tests never wait on it."""
    return TokenBucket(1000, 1.0)


@pytest.fixture
def containers_file(tmp_path: Path) -> Path:
    """A small container config covering fallback, merge, and an alias target."""
    data = {
        "books": {
            "mode": "fallback",
            "apis": [
                {"name": "hardcover", "priority": 1, "enabled": True, "envDisableKey": "DISABLE_HARDCOVER"},
                {"name": "openLibrary", "priority": 2, "enabled": True, "envDisableKey": "DISABLE_OPENLIBRARY"},
            ],
        },
        "movies": {
            "mode": "fallback",
            "apis": [
                {"name": "tmdb", "priority": 1, "enabled": True, "envDisableKey": "DISABLE_TMDB"},
                {"name": "bluray", "priority": 2, "enabled": False},
            ],
        },
        "vinyl": {"mode": "merge", "apis": []},
    }
    path = tmp_path / "containers.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path
