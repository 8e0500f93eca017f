# ABOUTME: NYT Books bestseller discovery provider.
# ABOUTME: Fetches the bestseller overview and ranks its entries when used for lookups.

import logging
from datetime import datetime, timezone

from shelvery.catalog.errors import ProviderNotConfiguredError
from shelvery.catalog.http import HttpClient
from shelvery.catalog.parsers.nyt import (
    BestsellerEntry,
    entry_candidate,
    entry_to_result,
    parse_list,
    parse_overview,
)
from shelvery.catalog.provider import ProviderBase
from shelvery.catalog.ratelimit import TokenBucket
from shelvery.catalog.retry import RetryPolicy
from shelvery.catalog.scoring import rank
from shelvery.catalog.types import CanonicalResult, SearchCriteria

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.nytimes.com/svc/books/v3"
DEFAULT_TIMEOUT = 10.0
# NYT allows 5 requests a minute and recommends 12 seconds between calls.
_REQUEST_INTERVAL_SECONDS = 12.0
# Entries must at least partially match the requested title.
MIN_MATCH_SCORE = 25.0


class NytBooksProvider(ProviderBase):
    """Bestseller lists from the NYT Books API.

    ``fetch_all`` returns the whole overview (every list, top books each).
    ``lookup_many`` ranks overview entries against the criteria, so only
    currently listed books can match.
    """

    name = "nyt"
    timeout = DEFAULT_TIMEOUT

    def __init__(
        self,
        http_client: HttpClient,
        *,
        api_key: str | None,
        base_url: str = DEFAULT_BASE_URL,
        retry_policy: RetryPolicy | None = None,
        limiter: TokenBucket | None = None,
        timeout: float | None = None,
    ) -> None:
        super().__init__(
            http_client,
            retry_policy=retry_policy,
            limiter=limiter or TokenBucket(1, _REQUEST_INTERVAL_SECONDS),
            timeout=timeout,
        )
        self._api_key = (api_key or "").strip() or None
        self._base_url = base_url.rstrip("/")

    def is_configured(self) -> bool:
        return self._api_key is not None

    async def _fetch(self, endpoint: str) -> dict:
        if not self._api_key:
            raise ProviderNotConfiguredError("NYT Books API key not configured")
        data = await self._get_json(
            f"{self._base_url}{endpoint}",
            params={"api-key": self._api_key},
            headers={"Accept": "application/json"},
        )
        return data or {}

    async def fetch_overview(self) -> list[BestsellerEntry]:
        return parse_overview(await self._fetch("/lists/overview.json"))

    async def fetch_list(self, list_name: str, date: str = "current") -> list[BestsellerEntry]:
        """Fetch one full list, e.g. 'hardcover-fiction', for 'current' or a YYYY-MM-DD date."""
        return parse_list(await self._fetch(f"/lists/{date}/{list_name}.json"), list_name)

    async def fetch_all(self) -> list[CanonicalResult]:
        """Every book on every overview list, as CanonicalResults."""
        entries = await self._retry.run(self.fetch_overview, label="nyt overview")
        fetched_at = datetime.now(timezone.utc)
        logger.info("nyt: %d bestseller entries", len(entries))
        return [entry_to_result(entry, fetched_at=fetched_at) for entry in entries]

    async def _search(self, criteria: SearchCriteria, limit: int) -> list[CanonicalResult]:
        entries = await self.fetch_overview()
        ranked = [
            m
            for m in rank([entry_candidate(e, i) for i, e in enumerate(entries)], criteria)
            if m.score >= MIN_MATCH_SCORE
        ]
        fetched_at = datetime.now(timezone.utc)
        return [
            entry_to_result(entries[m.source_index], criteria=criteria, score=m.score, fetched_at=fetched_at)
            for m in ranked[:limit]
        ]
