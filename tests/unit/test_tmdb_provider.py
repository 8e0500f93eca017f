# ABOUTME: Unit tests for the TMDB movie and TV providers.
# ABOUTME: Uses FakeHttpClient to verify search params, detail fetches and error handling.

import pytest

from shelvery.catalog.errors import RateLimitedError, UnauthorizedError
from shelvery.catalog.provider import CatalogProvider
from shelvery.catalog.providers.tmdb import TmdbProvider
from shelvery.catalog.providers.tmdb_tv import TmdbTvProvider
from shelvery.catalog.ratelimit import TokenBucket
from shelvery.catalog.retry import RetryPolicy
from shelvery.catalog.types import MediaKind, SearchCriteria
from tests.fixtures.fake_http import FakeHttpClient, Sequenced
from tests.fixtures.tmdb_responses import (
    MOVIE_DETAILS_RESPONSE,
    MOVIE_LIST_RESPONSE,
    MOVIE_SEARCH_EMPTY,
    MOVIE_SEARCH_RESPONSE,
    TV_DETAILS_RESPONSE,
    TV_LIST_RESPONSE,
    TV_SEARCH_RESPONSE,
)


def _movies(client: FakeHttpClient, retry: RetryPolicy, limiter: TokenBucket, api_key: str | None = "k") -> TmdbProvider:
    return TmdbProvider(client, api_key=api_key, retry_policy=retry, limiter=limiter)


class TestTmdbProvider:
    """Tests for TmdbProvider."""

    def test_satisfies_protocol(self, fast_retry: RetryPolicy, open_limiter: TokenBucket) -> None:
        assert isinstance(_movies(FakeHttpClient(), fast_retry, open_limiter), CatalogProvider)

    def test_configured_only_with_key(self, fast_retry: RetryPolicy, open_limiter: TokenBucket) -> None:
        assert _movies(FakeHttpClient(), fast_retry, open_limiter).is_configured()
        assert not _movies(FakeHttpClient(), fast_retry, open_limiter, api_key="  ").is_configured()

    async def test_lookup_picks_exact_year_match(self, fast_retry: RetryPolicy, open_limiter: TokenBucket) -> None:
        """With a 1982 year hint, Blade Runner outranks the more popular sequel."""
        client = FakeHttpClient({"/search/movie": MOVIE_SEARCH_RESPONSE, "/movie/78": MOVIE_DETAILS_RESPONSE})
        provider = _movies(client, fast_retry, open_limiter)

        result = await provider.lookup(SearchCriteria(title="Blade Runner", year=1982))

        assert result is not None
        assert result.title == "Blade Runner"
        assert result.primary_creator == "Ridley Scott"
        assert result.score is not None

    async def test_search_request_shape(self, fast_retry: RetryPolicy, open_limiter: TokenBucket) -> None:
        client = FakeHttpClient({"/search/movie": MOVIE_SEARCH_RESPONSE, "/movie/78": MOVIE_DETAILS_RESPONSE})
        await _movies(client, fast_retry, open_limiter).lookup(SearchCriteria(title=" Blade Runner ", year=1982))

        search = client.requests_to("/search/movie")[0]
        assert search["params"]["query"] == "Blade Runner"
        assert search["params"]["primary_release_year"] == "1982"
        assert search["params"]["include_adult"] == "false"
        assert search["headers"]["Authorization"] == "Bearer k"

        details = client.requests_to("/movie/78")[0]
        assert details["params"]["append_to_response"] == "credits,release_dates,keywords"

    async def test_lookup_many_skips_missing_details(self, fast_retry: RetryPolicy, open_limiter: TokenBucket) -> None:
        """A candidate whose details 404 is dropped, not fatal."""
        client = FakeHttpClient({"/search/movie": MOVIE_SEARCH_RESPONSE, "/movie/78": MOVIE_DETAILS_RESPONSE})
        results = await _movies(client, fast_retry, open_limiter).lookup_many(SearchCriteria(title="Blade Runner"), 5)
        assert [r.title for r in results] == ["Blade Runner"]

    async def test_blank_title_makes_no_request(self, fast_retry: RetryPolicy, open_limiter: TokenBucket) -> None:
        client = FakeHttpClient({"/search/movie": MOVIE_SEARCH_RESPONSE})
        assert await _movies(client, fast_retry, open_limiter).lookup(SearchCriteria(title="  ")) is None
        assert client.request_log == []

    async def test_unconfigured_makes_no_request(self, fast_retry: RetryPolicy, open_limiter: TokenBucket) -> None:
        client = FakeHttpClient({"/search/movie": MOVIE_SEARCH_RESPONSE})
        provider = _movies(client, fast_retry, open_limiter, api_key=None)
        assert await provider.lookup(SearchCriteria(title="Heat")) is None
        assert client.request_log == []

    async def test_no_hits(self, fast_retry: RetryPolicy, open_limiter: TokenBucket) -> None:
        client = FakeHttpClient({"/search/movie": MOVIE_SEARCH_EMPTY})
        assert await _movies(client, fast_retry, open_limiter).lookup(SearchCriteria(title="Nothing")) is None

    async def test_unauthorized_returns_none(self, fast_retry: RetryPolicy, open_limiter: TokenBucket) -> None:
        client = FakeHttpClient({"/search/movie": UnauthorizedError("HTTP 401", status=401)})
        assert await _movies(client, fast_retry, open_limiter).lookup(SearchCriteria(title="Heat")) is None
        assert len(client.request_log) == 1

    async def test_rate_limit_is_retried(self, fast_retry: RetryPolicy, open_limiter: TokenBucket) -> None:
        client = FakeHttpClient(
            {
                "/search/movie": Sequenced(RateLimitedError("HTTP 429", status=429), MOVIE_SEARCH_RESPONSE),
                "/movie/78": MOVIE_DETAILS_RESPONSE,
            }
        )
        result = await _movies(client, fast_retry, open_limiter).lookup(SearchCriteria(title="Blade Runner", year=1982))
        assert result is not None
        assert len(client.requests_to("/search/movie")) == 2

    async def test_details_rate_limit_retried_at_lookup_level_only(
        self, fast_retry: RetryPolicy, open_limiter: TokenBucket
    ) -> None:
        """Each attempt issues one search and one details call; budget is not multiplied."""
        client = FakeHttpClient(
            {
                "/search/movie": MOVIE_SEARCH_RESPONSE,
                "/movie/78": RateLimitedError("HTTP 429", status=429),
            }
        )

        with pytest.raises(RateLimitedError):
            await _movies(client, fast_retry, open_limiter).lookup(SearchCriteria(title="Blade Runner", year=1982))

        assert len(client.requests_to("/search/movie")) == 3
        assert len(client.requests_to("/movie/78")) == 3


class TestTmdbTvProvider:
    """Tests for TmdbTvProvider."""

    async def test_lookup_uses_tv_endpoints(self, fast_retry: RetryPolicy, open_limiter: TokenBucket) -> None:
        client = FakeHttpClient({"/search/tv": TV_SEARCH_RESPONSE, "/tv/1396": TV_DETAILS_RESPONSE})
        provider = TmdbTvProvider(client, api_key="k", retry_policy=fast_retry, limiter=open_limiter)

        result = await provider.lookup(SearchCriteria(title="Breaking Bad", year=2008))

        assert provider.name == "tmdbTv"
        assert result is not None
        assert result.title == "Breaking Bad"
        assert result.primary_creator == "Vince Gilligan"
        search = client.requests_to("/search/tv")[0]
        assert search["params"]["first_air_date_year"] == "2008"
        details = client.requests_to("/tv/1396")[0]
        assert details["params"]["append_to_response"] == "credits,content_ratings,keywords"


class TestTmdbDiscovery:
    """Tests for the trending, upcoming and now-playing lists."""

    async def test_fetch_list_request_shape(self, fast_retry: RetryPolicy, open_limiter: TokenBucket) -> None:
        client = FakeHttpClient({"/movie/upcoming": MOVIE_LIST_RESPONSE})

        results = await _movies(client, fast_retry, open_limiter).fetch_list("upcoming", limit=1)

        assert [r.title for r in results] == ["Dune: Part Two"]
        assert results[0].extras["itemType"] == "upcoming"
        request = client.request_log[0]
        assert request["params"] == {"language": "en-US", "page": "1", "region": "US"}
        assert request["headers"]["Authorization"] == "Bearer k"

    async def test_fetch_all_movies(self, fast_retry: RetryPolicy, open_limiter: TokenBucket) -> None:
        client = FakeHttpClient(
            {
                "/trending/movie/week": MOVIE_LIST_RESPONSE,
                "/movie/upcoming": MOVIE_LIST_RESPONSE,
                "/movie/now_playing": MOVIE_LIST_RESPONSE,
            }
        )

        results = await _movies(client, fast_retry, open_limiter).fetch_all()

        assert [r.extras["itemType"] for r in results] == [
            "trending",
            "trending",
            "upcoming",
            "upcoming",
            "now_playing",
            "now_playing",
        ]
        assert {r.kind for r in results} == {MediaKind.MOVIE}
        assert len(client.request_log) == 3

    async def test_fetch_all_retries_a_rate_limited_list(
        self, fast_retry: RetryPolicy, open_limiter: TokenBucket
    ) -> None:
        client = FakeHttpClient(
            {
                "/trending/movie/week": MOVIE_LIST_RESPONSE,
                "/movie/upcoming": MOVIE_LIST_RESPONSE,
                "/movie/now_playing": Sequenced(RateLimitedError("HTTP 429", status=429), MOVIE_LIST_RESPONSE),
            }
        )

        results = await _movies(client, fast_retry, open_limiter).fetch_all()

        assert len(results) == 6
        assert len(client.requests_to("/movie/now_playing")) == 2
        assert len(client.requests_to("/trending/movie/week")) == 1

    async def test_tv_lists(self, fast_retry: RetryPolicy, open_limiter: TokenBucket) -> None:
        client = FakeHttpClient({"/trending/tv/week": TV_LIST_RESPONSE, "/tv/on_the_air": TV_LIST_RESPONSE})
        provider = TmdbTvProvider(client, api_key="k", retry_policy=fast_retry, limiter=open_limiter)

        results = await provider.fetch_all()

        assert [(r.title, r.extras["itemType"]) for r in results] == [
            ("Breaking Bad", "trending"),
            ("Breaking Bad", "now_playing"),
        ]
        assert {r.kind for r in results} == {MediaKind.TV}
        assert client.requests_to("/tv/on_the_air")[0]["params"] == {"language": "en-US", "page": "1"}

    async def test_unknown_list(self, fast_retry: RetryPolicy, open_limiter: TokenBucket) -> None:
        with pytest.raises(KeyError):
            await _movies(FakeHttpClient(), fast_retry, open_limiter).fetch_list("classics")
