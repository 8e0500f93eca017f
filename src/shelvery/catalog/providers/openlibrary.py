# ABOUTME: Open Library book catalog provider.
# ABOUTME: Looks up by ISBN when one is known, otherwise searches by title/author and enriches the top hits.

import logging
import re
from datetime import datetime, timezone
from typing import Any

from shelvery.catalog.errors import CatalogFetchError, NotFoundError
from shelvery.catalog.http import HttpClient
from shelvery.catalog.parsers.openlibrary import (
    OL_BASE_URL,
    edition_to_result,
    parse_author_name,
    parse_search_results,
    parse_works_response,
    search_doc_to_result,
    select_best_edition,
)
from shelvery.catalog.provider import ProviderBase
from shelvery.catalog.ratelimit import TokenBucket
from shelvery.catalog.retry import RetryPolicy
from shelvery.catalog.scoring import rank
from shelvery.catalog.types import CanonicalResult, SearchCriteria

logger = logging.getLogger(__name__)

_SEARCH_LIMIT = 5
_ENRICH_LIMIT = 3

# Matches a colon followed by a space and remaining text (subtitle pattern).
_SUBTITLE_RE = re.compile(r"\s*:\s+.+$")


def strip_subtitle(title: str) -> str | None:
    """Remove subtitle from a title string (text after ": ").

    Returns the stripped title, or None if no subtitle was found or
    stripping would produce an identical or empty string.
    """
    stripped = _SUBTITLE_RE.sub("", title).strip()
    if stripped and stripped != title.strip():
        return stripped
    return None


class OpenLibraryProvider(ProviderBase):
    """Book provider backed by the Open Library API.

    Needs no credentials. ISBN lookup is tried first (most precise); a
    miss falls through to title/author search, which retries once with
    the subtitle stripped when the full title finds nothing.
    """

    name = "openLibrary"

    def __init__(
        self,
        http_client: HttpClient,
        *,
        base_url: str = OL_BASE_URL,
        retry_policy: RetryPolicy | None = None,
        limiter: TokenBucket | None = None,
        timeout: float | None = None,
    ) -> None:
        super().__init__(
            http_client,
            retry_policy=retry_policy,
            limiter=limiter or TokenBucket(1, 0.1),
            timeout=timeout,
        )
        self._base_url = base_url.rstrip("/")

    async def _search(self, criteria: SearchCriteria, limit: int) -> list[CanonicalResult]:
        isbn = criteria.identifier("isbn13", "isbn10", "isbn")
        if isbn:
            result = await self.search_by_isbn(isbn, criteria)
            if result is not None:
                return [result]
        return await self.search_by_title_author(criteria, limit)

    async def search_by_isbn(self, isbn: str, criteria: SearchCriteria) -> CanonicalResult | None:
        """Look up a book by ISBN, then follow the works and author links.

        Returns None when Open Library has no edition for the ISBN.
        """
        clean_isbn = re.sub(r"[\s-]", "", isbn)
        try:
            data = await self._get_json(f"{self._base_url}/isbn/{clean_isbn}.json")
        except NotFoundError:
            logger.info("No Open Library edition for ISBN %s", clean_isbn)
            return None

        description = await self._works_description(data)
        authors = await self._author_names(data)
        return edition_to_result(
            data,
            authors=authors,
            description=description,
            criteria=criteria,
            fetched_at=datetime.now(timezone.utc),
        )

    async def search_by_title_author(self, criteria: SearchCriteria, limit: int) -> list[CanonicalResult]:
        """Search by title and optional author, best match first."""
        results = await self._search_ol(criteria.clean_title, criteria, limit)
        if not results:
            stripped = strip_subtitle(criteria.clean_title)
            if stripped:
                logger.debug("Retrying Open Library search without subtitle: %r", stripped)
                results = await self._search_ol(stripped, criteria, limit)
        return results

    async def _search_ol(self, title: str, criteria: SearchCriteria, limit: int) -> list[CanonicalResult]:
        params: dict[str, str] = {"title": title, "limit": str(max(limit, _SEARCH_LIMIT))}
        if criteria.creator:
            params["author"] = criteria.creator

        data = await self._get_json(f"{self._base_url}/search.json", params=params)
        ranked = rank(parse_search_results(data or {}), criteria)
        if not ranked:
            return []

        fetched_at = datetime.now(timezone.utc)
        results: list[CanonicalResult] = []
        for position, match in enumerate(ranked[:limit]):
            description = None
            edition = None
            if position < _ENRICH_LIMIT:
                description = await self._works_description({"works": [{"key": match.id}]})
                edition = await self._best_edition(match.id)
            result = search_doc_to_result(
                match.payload,
                description=description,
                edition=edition,
                criteria=criteria,
                score=match.score,
                fetched_at=fetched_at,
            )
            if result is not None:
                results.append(result)
        return results

    async def _works_description(self, data: dict[str, Any]) -> str | None:
        """Fetch the description from the works endpoint, if the record links one."""
        works = data.get("works") or []
        works_key = works[0].get("key", "") if works and isinstance(works[0], dict) else ""
        if not works_key:
            return None
        try:
            works_data = await self._get_json(f"{self._base_url}{works_key}.json")
        except CatalogFetchError as exc:
            logger.debug("Works lookup failed for %s: %s", works_key, exc)
            return None
        return parse_works_response(works_data or {})

    async def _best_edition(self, works_key: str) -> dict[str, str | None] | None:
        """Fetch edition-level data (ISBN, publisher) for a work."""
        try:
            editions = await self._get_json(f"{self._base_url}{works_key}/editions.json")
        except CatalogFetchError as exc:
            logger.debug("Editions lookup failed for %s: %s", works_key, exc)
            return None
        return select_best_edition((editions or {}).get("entries", []))

    async def _author_names(self, data: dict[str, Any]) -> list[str]:
        authors: list[str] = []
        for entry in data.get("authors") or []:
            author_key = entry.get("key", "") if isinstance(entry, dict) else ""
            if not author_key:
                continue
            try:
                author_data = await self._get_json(f"{self._base_url}{author_key}.json")
            except CatalogFetchError:
                continue
            authors.append(parse_author_name(author_data or {}))
        return authors
