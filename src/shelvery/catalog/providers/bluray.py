# ABOUTME: Blu-ray.com release discovery provider (HTML scraping, no credentials).
# ABOUTME: Fetches the home page once per call and parses pre-order, new and upcoming tables.

import logging
from datetime import datetime, timezone

from shelvery.catalog.http import HttpClient
from shelvery.catalog.parsers.bluray import (
    BASE_URL,
    FORMAT_ALL,
    SECTIONS,
    BlurayRelease,
    parse_all_sections,
    parse_section,
    release_candidate,
    release_to_result,
)
from shelvery.catalog.provider import ProviderBase
from shelvery.catalog.ratelimit import TokenBucket
from shelvery.catalog.retry import RetryPolicy
from shelvery.catalog.scoring import rank
from shelvery.catalog.types import CanonicalResult, SearchCriteria

logger = logging.getLogger(__name__)

# The site serves its release tables only to browser-like agents.
BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
MIN_MATCH_SCORE = 25.0
_REQUEST_INTERVAL_SECONDS = 2.0


class BlurayProvider(ProviderBase):
    """New and upcoming Blu-ray and 4K releases scraped from blu-ray.com."""

    name = "bluray"

    def __init__(
        self,
        http_client: HttpClient,
        *,
        base_url: str = BASE_URL,
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
        self._base_url = base_url.rstrip("/")

    async def fetch_page(self) -> str:
        return await self._get_text(self._base_url, headers={"User-Agent": BROWSER_USER_AGENT})

    async def fetch_section(self, section: str, fmt: str = FORMAT_ALL) -> list[BlurayRelease]:
        """Releases from one table ('preorders', 'new' or 'upcoming').

        Raises:
            KeyError: If ``section`` is not a known table.
        """
        if section not in SECTIONS:
            raise KeyError(f"Unknown blu-ray.com section: {section!r}")
        html = await self._retry.run(self.fetch_page, label=f"bluray {section}")
        return parse_section(html, section, fmt)

    async def fetch_all(self, fmt: str = FORMAT_ALL) -> list[CanonicalResult]:
        """Every release across all three tables, as CanonicalResults."""
        html = await self._retry.run(self.fetch_page, label="bluray home page")
        releases = parse_all_sections(html, fmt)
        fetched_at = datetime.now(timezone.utc)
        logger.info("bluray: %d releases", len(releases))
        return [release_to_result(r, fetched_at=fetched_at) for r in releases]

    async def _search(self, criteria: SearchCriteria, limit: int) -> list[CanonicalResult]:
        fmt = FORMAT_ALL
        wanted = (criteria.format or "").lower().replace(" ", "")
        if wanted in ("4k", "uhd", "4kuhd"):
            fmt = "4k"
        elif wanted in ("bluray", "blu-ray"):
            fmt = "bluray"

        releases = parse_all_sections(await self.fetch_page(), fmt)
        ranked = [
            m
            for m in rank([release_candidate(r, i) for i, r in enumerate(releases)], criteria)
            if m.score >= MIN_MATCH_SCORE
        ]
        fetched_at = datetime.now(timezone.utc)
        return [
            release_to_result(releases[m.source_index], criteria=criteria, score=m.score, fetched_at=fetched_at)
            for m in ranked[:limit]
        ]
