# ABOUTME: TMDB television catalog provider.
# ABOUTME: Same search/rank/details flow as the movie provider against the /tv endpoints.

from datetime import datetime, timezone
from typing import Any

from shelvery.catalog.candidate import RawCandidate
from shelvery.catalog.parsers.tmdb import parse_tv_search, tv_to_result
from shelvery.catalog.providers.tmdb import TmdbProvider
from shelvery.catalog.types import CanonicalResult, MediaKind, SearchCriteria


class TmdbTvProvider(TmdbProvider):
    """TV series lookups; shares credentials and quota settings with TmdbProvider."""

    name = "tmdbTv"
    search_path = "/search/tv"
    detail_path = "/tv"
    year_param = "first_air_date_year"
    append_to_response = "credits,content_ratings,keywords"
    discovery_kind = MediaKind.TV
    discovery_lists = {
        "trending": ("/trending/tv/week", {}),
        "now_playing": ("/tv/on_the_air", {}),
    }

    def parse_search(self, data: dict[str, Any]) -> list[RawCandidate]:
        return parse_tv_search(data)

    def to_result(
        self, details: dict[str, Any], criteria: SearchCriteria, score: float
    ) -> CanonicalResult | None:
        return tv_to_result(
            details,
            criteria=criteria,
            score=score,
            image_base_url=self._image_base_url,
            api_base_url=self._base_url,
            fetched_at=datetime.now(timezone.utc),
        )
