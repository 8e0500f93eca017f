# ABOUTME: IGDB game catalog provider with a cached Twitch OAuth app token.
# ABOUTME: Posts Apicalypse searches and trending/upcoming list queries, refreshing the token once on 401.

import asyncio
import logging
import time
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from shelvery.catalog.errors import ProviderNotConfiguredError, UnauthorizedError
from shelvery.catalog.http import HttpClient
from shelvery.catalog.parsers.igdb import (
    POPULARITY_PLAYING,
    POPULARITY_STEAM_PEAK_PLAYERS,
    POPULARITY_VISITS,
    build_coming_soon_query,
    build_games_by_ids_query,
    build_popularity_query,
    build_recent_releases_query,
    build_search_query,
    discovered_game_to_result,
    game_to_result,
    order_by_ids,
    parse_search_results,
    unique_game_ids,
)
from shelvery.catalog.provider import ProviderBase
from shelvery.catalog.ratelimit import TokenBucket
from shelvery.catalog.retry import RetryPolicy
from shelvery.catalog.scoring import rank
from shelvery.catalog.types import CanonicalResult, SearchCriteria

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.igdb.com/v4"
DEFAULT_AUTH_URL = "https://id.twitch.tv/oauth2/token"

MIN_MATCH_SCORE = 25.0
_REFRESH_MARGIN_SECONDS = 60.0
_DEFAULT_TOKEN_TTL = 3600.0
_REQUESTS_PER_SECOND = 4
# Ask IGDB for a few extra hits so ranking has something to choose from.
_SEARCH_BREADTH = 10
DISCOVERY_LIMIT = 20
DISCOVERY_LISTS = ("trending", "upcoming", "recent", "now_playing")


class AppTokenCache:
    """Client-credentials access token, refreshed shortly before it expires.

    Concurrent callers share one refresh through an asyncio.Lock.
    """

    def __init__(
        self,
        http_client: HttpClient,
        *,
        client_id: str,
        client_secret: str,
        auth_url: str = DEFAULT_AUTH_URL,
        timeout: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._http = http_client
        self._client_id = client_id
        self._client_secret = client_secret
        self._auth_url = auth_url
        self._timeout = timeout
        self._clock = clock
        self._token: str | None = None
        self._expires_at = 0.0
        self._lock = asyncio.Lock()

    def invalidate(self) -> None:
        self._token = None
        self._expires_at = 0.0

    async def get(self, *, force_refresh: bool = False) -> str:
        async with self._lock:
            now = self._clock()
            if not force_refresh and self._token and self._expires_at > now + _REFRESH_MARGIN_SECONDS:
                return self._token

            logger.debug("Requesting IGDB app access token")
            data = await self._http.post_json(
                self._auth_url,
                data={
                    "client_id": self._client_id,
                    "client_secret": self._client_secret,
                    "grant_type": "client_credentials",
                },
                timeout=self._timeout,
            )
            token = (data or {}).get("access_token")
            if not token:
                raise UnauthorizedError("IGDB auth response carried no access_token", url=self._auth_url)
            try:
                ttl = float(data.get("expires_in") or _DEFAULT_TOKEN_TTL)
            except (TypeError, ValueError):
                ttl = _DEFAULT_TOKEN_TTL
            self._token = token
            self._expires_at = now + ttl
            return token


class IgdbProvider(ProviderBase):
    """Game lookups against IGDB.

    Matches scoring below MIN_MATCH_SCORE are discarded, so an unrelated
    popular game never stands in for an obscure one.
    """

    name = "igdb"

    def __init__(
        self,
        http_client: HttpClient,
        *,
        client_id: str | None,
        client_secret: str | None,
        base_url: str = DEFAULT_BASE_URL,
        auth_url: str = DEFAULT_AUTH_URL,
        retry_policy: RetryPolicy | None = None,
        limiter: TokenBucket | None = None,
        timeout: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(
            http_client,
            retry_policy=retry_policy,
            limiter=limiter or TokenBucket(_REQUESTS_PER_SECOND, 1.0),
            timeout=timeout,
        )
        self._client_id = (client_id or "").strip() or None
        self._client_secret = (client_secret or "").strip() or None
        self._base_url = base_url.rstrip("/")
        self._clock = clock
        self._tokens = AppTokenCache(
            http_client,
            client_id=self._client_id or "",
            client_secret=self._client_secret or "",
            auth_url=auth_url,
            timeout=self.timeout,
            clock=clock,
        )

    def is_configured(self) -> bool:
        return bool(self._client_id and self._client_secret)

    async def _query(self, endpoint: str, body: str, *, force_refresh: bool = False) -> Any:
        if not self.is_configured():
            raise ProviderNotConfiguredError("IGDB client credentials not configured")
        token = await self._tokens.get(force_refresh=force_refresh)
        return await self._post_json(
            f"{self._base_url}/{endpoint.lstrip('/')}",
            content=body,
            headers={
                "Client-ID": self._client_id or "",
                "Authorization": f"Bearer {token}",
                "Content-Type": "text/plain",
                "Accept": "application/json",
            },
        )

    async def query(self, endpoint: str, body: str) -> Any:
        """POST an Apicalypse query, refreshing the token and retrying once on 401."""
        try:
            return await self._query(endpoint, body)
        except UnauthorizedError:
            logger.info("IGDB rejected the cached token, refreshing")
            self._tokens.invalidate()
            return await self._query(endpoint, body, force_refresh=True)

    async def _search(self, criteria: SearchCriteria, limit: int) -> list[CanonicalResult]:
        body = build_search_query(criteria.clean_title, max(limit, _SEARCH_BREADTH))
        payload = await self.query("games", body)
        ranked = [m for m in rank(parse_search_results(payload), criteria) if m.score >= MIN_MATCH_SCORE]
        if not ranked:
            logger.info("igdb: no match above %.0f for title=%r", MIN_MATCH_SCORE, criteria.clean_title)
            return []

        fetched_at = datetime.now(timezone.utc)
        results: list[CanonicalResult] = []
        for match in ranked[:limit]:
            result = game_to_result(match.payload, criteria=criteria, score=match.score, fetched_at=fetched_at)
            if result is not None:
                results.append(result)
        return results

    # --- discovery lists ---------------------------------------------------

    async def _games_by_ids(self, game_ids: list[int]) -> list[dict[str, Any]]:
        if not game_ids:
            return []
        payload = await self.query("games", build_games_by_ids_query(game_ids))
        return order_by_ids(payload, game_ids)

    async def _popular_ids(self, popularity_type: int, limit: int) -> list[int]:
        payload = await self.query("popularity_primitives", build_popularity_query(popularity_type, limit))
        return unique_game_ids(payload, "game_id", limit)

    def _discovered(self, games: list[dict[str, Any]], item_type: str) -> list[CanonicalResult]:
        fetched_at = datetime.now(timezone.utc)
        results = (discovered_game_to_result(game, item_type, fetched_at=fetched_at) for game in games)
        return [r for r in results if r is not None]

    async def fetch_trending(self, limit: int = DISCOVERY_LIMIT) -> list[CanonicalResult]:
        """Games with the most IGDB page visits right now."""
        ids = await self._popular_ids(POPULARITY_VISITS, limit)
        return self._discovered(await self._games_by_ids(ids), "trending")

    async def fetch_upcoming(self, limit: int = DISCOVERY_LIMIT) -> list[CanonicalResult]:
        """Games with the soonest future release dates."""
        payload = await self.query("release_dates", build_coming_soon_query(int(self._clock()), limit))
        ids = unique_game_ids(payload, "game", limit)
        return self._discovered(await self._games_by_ids(ids), "upcoming")

    async def fetch_recent(self, limit: int = DISCOVERY_LIMIT) -> list[CanonicalResult]:
        """Released games with covers, newest first."""
        payload = await self.query("games", build_recent_releases_query(int(self._clock()), limit))
        games = [game for game in payload or [] if isinstance(game, dict)]
        return self._discovered(games, "recent")

    async def fetch_now_playing(self, limit: int = DISCOVERY_LIMIT) -> list[CanonicalResult]:
        """Games by Steam peak players, topped up from IGDB "Playing" when Steam data is thin."""
        ids = await self._popular_ids(POPULARITY_STEAM_PEAK_PLAYERS, limit)
        if len(ids) < limit / 2:
            for game_id in await self._popular_ids(POPULARITY_PLAYING, limit):
                if len(ids) >= limit:
                    break
                if game_id not in ids:
                    ids.append(game_id)
        return self._discovered(await self._games_by_ids(ids), "now_playing")

    async def fetch_list(self, list_name: str, limit: int = DISCOVERY_LIMIT) -> list[CanonicalResult]:
        """One discovery list by name.

        Raises:
            KeyError: If ``list_name`` is not in DISCOVERY_LISTS.
        """
        fetchers = {
            "trending": self.fetch_trending,
            "upcoming": self.fetch_upcoming,
            "recent": self.fetch_recent,
            "now_playing": self.fetch_now_playing,
        }
        if list_name not in fetchers:
            raise KeyError(f"Unknown igdb list: {list_name!r}")
        return await fetchers[list_name](limit)

    async def fetch_all(self, limit: int = DISCOVERY_LIMIT) -> list[CanonicalResult]:
        """Every discovery list fetched concurrently, concatenated in DISCOVERY_LISTS order."""
        lists = await asyncio.gather(
            *(
                self._retry.run(lambda name=name: self.fetch_list(name, limit), label=f"igdb {name}")
                for name in DISCOVERY_LISTS
            )
        )
        results = [result for items in lists for result in items]
        logger.info("igdb: %d discovery entries", len(results))
        return results
