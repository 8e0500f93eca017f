# ABOUTME: TMDB movie catalog provider.
# ABOUTME: Searches /search/movie and fetches details for the top matches; also serves trending and upcoming lists.

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any

from shelvery.catalog.candidate import RankedCandidate, RawCandidate
from shelvery.catalog.errors import NotFoundError, ProviderNotConfiguredError
from shelvery.catalog.http import HttpClient
from shelvery.catalog.parsers.tmdb import (
    DEFAULT_API_BASE_URL,
    DEFAULT_IMAGE_BASE_URL,
    movie_to_result,
    parse_discovery_list,
    parse_movie_search,
)
from shelvery.catalog.provider import ProviderBase
from shelvery.catalog.ratelimit import TokenBucket
from shelvery.catalog.retry import RetryPolicy
from shelvery.catalog.scoring import rank
from shelvery.catalog.types import CanonicalResult, MediaKind, SearchCriteria

logger = logging.getLogger(__name__)

# TMDB allows roughly 40 requests per 10 seconds; stay under it.
_REQUESTS_PER_WINDOW = 35
_WINDOW_SECONDS = 10.0
DISCOVERY_LIMIT = 20


class TmdbProvider(ProviderBase):
    """Movie lookups against the TMDB v3 API using a bearer token.

    Subclasses switch the media endpoints (see TmdbTvProvider).
    """

    name = "tmdb"
    search_path = "/search/movie"
    detail_path = "/movie"
    year_param = "primary_release_year"
    append_to_response = "credits,release_dates,keywords"
    discovery_kind = MediaKind.MOVIE
    # List name -> (endpoint, extra query params).
    discovery_lists: dict[str, tuple[str, dict[str, str]]] = {
        "trending": ("/trending/movie/week", {}),
        "upcoming": ("/movie/upcoming", {"region": "US"}),
        "now_playing": ("/movie/now_playing", {"region": "US"}),
    }

    def __init__(
        self,
        http_client: HttpClient,
        *,
        api_key: str | None,
        base_url: str = DEFAULT_API_BASE_URL,
        image_base_url: str = DEFAULT_IMAGE_BASE_URL,
        retry_policy: RetryPolicy | None = None,
        limiter: TokenBucket | None = None,
        timeout: float | None = None,
    ) -> None:
        super().__init__(
            http_client,
            retry_policy=retry_policy,
            limiter=limiter or TokenBucket(_REQUESTS_PER_WINDOW, _WINDOW_SECONDS),
            timeout=timeout,
        )
        self._api_key = (api_key or "").strip() or None
        self._base_url = base_url.rstrip("/")
        self._image_base_url = image_base_url

    def is_configured(self) -> bool:
        return self._api_key is not None

    def _headers(self) -> dict[str, str]:
        if not self._api_key:
            raise ProviderNotConfiguredError(f"{self.name} API key not configured")
        return {"Authorization": f"Bearer {self._api_key}", "Accept": "application/json"}

    def parse_search(self, data: dict[str, Any]) -> list[RawCandidate]:
        return parse_movie_search(data)

    def to_result(
        self, details: dict[str, Any], criteria: SearchCriteria, score: float
    ) -> CanonicalResult | None:
        return movie_to_result(
            details,
            criteria=criteria,
            score=score,
            image_base_url=self._image_base_url,
            api_base_url=self._base_url,
            fetched_at=datetime.now(timezone.utc),
        )

    async def search(self, criteria: SearchCriteria) -> list[RawCandidate]:
        """Run the upstream title search and return unranked candidates."""
        params = {
            "query": criteria.clean_title,
            "include_adult": "false",
            "language": "en-US",
            "page": "1",
        }
        if criteria.year:
            params[self.year_param] = str(criteria.year)
        data = await self._get_json(
            f"{self._base_url}{self.search_path}", params=params, headers=self._headers()
        )
        return self.parse_search(data or {})

    async def fetch_details(self, upstream_id: str) -> dict[str, Any]:
        return await self._get_json(
            f"{self._base_url}{self.detail_path}/{upstream_id}",
            params={"append_to_response": self.append_to_response, "language": "en-US"},
            headers=self._headers(),
        )

    async def _details_for(self, match: RankedCandidate) -> dict[str, Any] | None:
        try:
            return await self.fetch_details(match.id)
        except NotFoundError:
            logger.info("%s: details for %s not found, skipping", self.name, match.id)
            return None

    async def _search(self, criteria: SearchCriteria, limit: int) -> list[CanonicalResult]:
        candidates = await self.search(criteria)
        ranked = rank(candidates, criteria)
        if not ranked:
            logger.debug("%s: no search hits for title=%r", self.name, criteria.clean_title)
            return []

        results: list[CanonicalResult] = []
        for match in ranked[:limit]:
            details = await self._details_for(match)
            if not details:
                continue
            result = self.to_result(details, criteria, match.score)
            if result is not None:
                results.append(result)
        return results

    async def fetch_list(self, list_name: str, limit: int = DISCOVERY_LIMIT) -> list[CanonicalResult]:
        """Entries of one discovery list ('trending', 'upcoming', ...), in TMDB order.

        Raises:
            KeyError: If ``list_name`` is not one of ``discovery_lists``.
        """
        if list_name not in self.discovery_lists:
            raise KeyError(f"Unknown {self.name} list: {list_name!r}")
        path, extra = self.discovery_lists[list_name]
        data = await self._get_json(
            f"{self._base_url}{path}",
            params={"language": "en-US", "page": "1", **extra},
            headers=self._headers(),
        )
        return parse_discovery_list(
            data or {},
            self.discovery_kind,
            list_name,
            limit,
            image_base_url=self._image_base_url,
            fetched_at=datetime.now(timezone.utc),
        )

    async def fetch_all(self, limit: int = DISCOVERY_LIMIT) -> list[CanonicalResult]:
        """Every discovery list fetched concurrently, concatenated in list order."""
        lists = await asyncio.gather(
            *(
                self._retry.run(lambda name=name: self.fetch_list(name, limit), label=f"{self.name} {name}")
                for name in self.discovery_lists
            )
        )
        results = [result for items in lists for result in items]
        logger.info("%s: %d discovery entries", self.name, len(results))
        return results
