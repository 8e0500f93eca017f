# ABOUTME: Hardcover book catalog provider over its GraphQL API.
# ABOUTME: Resolves ISBNs through editions; otherwise searches, fetches book details, and picks the best.

import logging
from datetime import datetime, timezone
from typing import Any

from shelvery.catalog.errors import CatalogFetchError, ProviderNotConfiguredError, RateLimitedError
from shelvery.catalog.http import HttpClient
from shelvery.catalog.parsers.hardcover import (
    BOOK_DETAILS_QUERY,
    SEARCH_FIELDS,
    SEARCH_QUERY,
    SEARCH_SORT,
    SEARCH_WEIGHTS,
    book_match_score,
    book_to_result,
    edition_by_isbn_query,
    normalize_isbn,
    parse_search_results,
)
from shelvery.catalog.provider import ProviderBase
from shelvery.catalog.ratelimit import TokenBucket
from shelvery.catalog.retry import RetryPolicy
from shelvery.catalog.scoring import rank
from shelvery.catalog.types import CanonicalResult, SearchCriteria

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.hardcover.app/v1/graphql"
DEFAULT_REQUESTS_PER_MINUTE = 55
_MAX_DETAIL_CANDIDATES = 5
_RATE_LIMIT_MARKERS = ("rate limit", "throttl", "too many requests")


class HardcoverProvider(ProviderBase):
    """Book lookups against Hardcover.

    The API token is sent verbatim in the ``authorization`` header.
    """

    name = "hardcover"

    def __init__(
        self,
        http_client: HttpClient,
        *,
        token: str | None,
        base_url: str = DEFAULT_BASE_URL,
        requests_per_minute: int = DEFAULT_REQUESTS_PER_MINUTE,
        retry_policy: RetryPolicy | None = None,
        limiter: TokenBucket | None = None,
        timeout: float | None = None,
    ) -> None:
        super().__init__(
            http_client,
            retry_policy=retry_policy,
            limiter=limiter or TokenBucket(max(1, requests_per_minute), 60.0),
            timeout=timeout,
        )
        self._token = (token or "").strip() or None
        self._base_url = base_url

    def is_configured(self) -> bool:
        return self._token is not None

    async def graphql(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        """Run a GraphQL document and return its ``data`` object.

        Raises:
            RateLimitedError: If a GraphQL error reports throttling.
            CatalogFetchError: If the response carries any other GraphQL errors.
        """
        if not self._token:
            raise ProviderNotConfiguredError("Hardcover API token not configured")
        payload = await self._post_json(
            self._base_url,
            json={"query": query, "variables": variables},
            headers={"Content-Type": "application/json", "authorization": self._token},
        )
        payload = payload or {}
        errors = payload.get("errors") or []
        if errors:
            message = "; ".join(str(e.get("message")) for e in errors if isinstance(e, dict) and e.get("message"))
            text = f"Hardcover GraphQL error: {message or 'Unknown error'}"
            if any(marker in message.lower() for marker in _RATE_LIMIT_MARKERS):
                raise RateLimitedError(text, url=self._base_url)
            raise CatalogFetchError(text, url=self._base_url)
        return payload.get("data") or {}

    async def _search(self, criteria: SearchCriteria, limit: int) -> list[CanonicalResult]:
        for key in ("isbn13", "isbn10", "isbn"):
            isbn = normalize_isbn(criteria.identifier(key))
            if not isbn:
                continue
            result = await self.lookup_by_isbn(isbn, criteria)
            if result is not None:
                return [result]
        return await self.lookup_by_title_author(criteria, limit)

    async def lookup_by_isbn(self, isbn: str, criteria: SearchCriteria) -> CanonicalResult | None:
        """Resolve an ISBN to its newest matching edition and that edition's book."""
        field = "isbn_13" if len(isbn) == 13 else "isbn_10"
        data = await self.graphql(edition_by_isbn_query(field), {"isbn": isbn})
        editions = [e for e in data.get("editions") or [] if isinstance(e, dict)]
        if not editions or not editions[0].get("book"):
            logger.debug("hardcover: no edition for ISBN %s", isbn)
            return None
        edition = editions[0]
        return book_to_result(
            edition["book"],
            edition=edition,
            criteria=criteria,
            fetched_at=datetime.now(timezone.utc),
        )

    async def lookup_by_title_author(self, criteria: SearchCriteria, limit: int) -> list[CanonicalResult]:
        """Search, fetch details for the top hits, and order them by match quality."""
        query_text = " ".join(part for part in (criteria.clean_title, criteria.creator or "") if part)
        data = await self.graphql(
            SEARCH_QUERY,
            {
                "query": query_text,
                "queryType": "Book",
                "perPage": max(1, limit, _MAX_DETAIL_CANDIDATES),
                "page": 1,
                "fields": SEARCH_FIELDS,
                "weights": SEARCH_WEIGHTS,
                "sort": SEARCH_SORT,
            },
        )
        candidates = parse_search_results(data.get("search"))
        ranked = rank(candidates, criteria)
        ids = [m.id for m in ranked] or [c.id for c in candidates]
        ids = [int(i) for i in ids if str(i).isdigit()][:_MAX_DETAIL_CANDIDATES]
        if not ids:
            return []

        details = await self.graphql(BOOK_DETAILS_QUERY, {"ids": ids})
        books = [b for b in details.get("books") or [] if isinstance(b, dict)]
        scored = sorted(
            ((book_match_score(book, criteria), book) for book in books),
            key=lambda entry: entry[0],
            reverse=True,
        )

        fetched_at = datetime.now(timezone.utc)
        results: list[CanonicalResult] = []
        for score, book in scored[:limit]:
            result = book_to_result(book, criteria=criteria, score=score, fetched_at=fetched_at)
            if result is not None:
                results.append(result)
        return results
