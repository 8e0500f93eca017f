# ABOUTME: CatalogProvider protocol defining the contract every upstream adapter implements.
# ABOUTME: ProviderBase carries the shared lookup flow: blank-title guard, retries, 404/401 handling.

import logging
from typing import Any, Protocol, runtime_checkable

from shelvery.catalog.errors import NotFoundError, UnauthorizedError
from shelvery.catalog.http import HttpClient
from shelvery.catalog.ratelimit import TokenBucket
from shelvery.catalog.retry import RetryPolicy
from shelvery.catalog.types import CanonicalResult, SearchCriteria

logger = logging.getLogger(__name__)

DEFAULT_LOOKUP_LIMIT = 5


@runtime_checkable
class CatalogProvider(Protocol):
    """Protocol for catalog lookup services.

    Implementations return normalized CanonicalResults. "No match" is
    None (or an empty list), never an exception.
    """

    @property
    def name(self) -> str: ...

    def is_configured(self) -> bool: ...

    async def lookup(self, criteria: SearchCriteria) -> CanonicalResult | None: ...

    async def lookup_many(
        self, criteria: SearchCriteria, limit: int = DEFAULT_LOOKUP_LIMIT
    ) -> list[CanonicalResult]: ...


@runtime_checkable
class CollectableStore(Protocol):
    """Persistence collaborator that receives resolved records.

    Implementations live outside the catalog package and are expected to be
    idempotent on ``fingerprint``.
    """

    def store(self, collectable: CanonicalResult) -> str: ...


class ProviderBase:
    """Shared lookup flow for HTTP-backed providers.

    Subclasses set ``name`` and implement ``_search``, which performs the
    upstream calls and returns ranked, normalized results. This class
    applies the retry policy around the whole search and turns 404s and
    401s into empty results. Rate-limited and transient failures that
    outlast the retry budget, and every unexpected failure, propagate.
    """

    name: str = "base"
    timeout: float = 8.0

    def __init__(
        self,
        http_client: HttpClient,
        *,
        retry_policy: RetryPolicy | None = None,
        limiter: TokenBucket | None = None,
        timeout: float | None = None,
    ) -> None:
        self._http = http_client
        self._retry = retry_policy or RetryPolicy()
        self._limiter = limiter
        if timeout is not None:
            self.timeout = timeout

    def is_configured(self) -> bool:
        return True

    async def lookup(self, criteria: SearchCriteria) -> CanonicalResult | None:
        """Return the best match for the criteria, or None."""
        results = await self.lookup_many(criteria, limit=1)
        return results[0] if results else None

    async def lookup_many(
        self, criteria: SearchCriteria, limit: int = DEFAULT_LOOKUP_LIMIT
    ) -> list[CanonicalResult]:
        """Return up to ``limit`` matches, best first."""
        if criteria.is_blank:
            logger.debug("%s: skipping lookup with blank title", self.name)
            return []
        if not self.is_configured():
            logger.debug("%s: not configured, skipping", self.name)
            return []

        limit = max(1, limit)
        try:
            return await self._retry.run(
                lambda: self._search(criteria, limit), label=f"{self.name} lookup"
            )
        except NotFoundError as exc:
            logger.info("%s: not found for title=%r: %s", self.name, criteria.clean_title, exc)
            return []
        except UnauthorizedError as exc:
            logger.error("%s: unauthorized, check credentials: %s", self.name, exc)
            return []

    async def _search(self, criteria: SearchCriteria, limit: int) -> list[CanonicalResult]:
        raise NotImplementedError

    async def _throttle(self) -> None:
        if self._limiter is not None:
            await self._limiter.acquire()

    async def _get_json(
        self,
        url: str,
        *,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        await self._throttle()
        return await self._http.get_json(url, params=params, headers=headers, timeout=self.timeout)

    async def _post_json(self, url: str, **kwargs: Any) -> Any:
        await self._throttle()
        return await self._http.post_json(url, timeout=self.timeout, **kwargs)

    async def _get_text(
        self,
        url: str,
        *,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> str:
        await self._throttle()
        return await self._http.get_text(url, params=params, headers=headers, timeout=self.timeout)
