# ABOUTME: Parsing functions for the NYT Books bestseller API.
# ABOUTME: Flattens overview and single-list payloads into entries and maps them to CanonicalResults.

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from shelvery.catalog.candidate import RawCandidate
from shelvery.catalog.fingerprint import make_collectable_fingerprint, make_lightweight_fingerprint
from shelvery.catalog.normalizer import namespaced_id, normalize_string, unique_strings
from shelvery.catalog.types import Attribution, CanonicalResult, Image, MediaKind, SearchCriteria, Source

_BESTSELLERS_URL = "https://www.nytimes.com/books/best-sellers"


@dataclass(frozen=True)
class BestsellerEntry:
    """One book on one bestseller list."""

    title: str
    author: str
    list_name: str
    list_name_encoded: str
    item_type: str
    description: str = ""
    rank: int | None = None
    rank_last_week: int | None = None
    weeks_on_list: int | None = None
    isbn13: str | None = None
    isbn10: str | None = None
    publisher: str | None = None
    image_url: str | None = None
    amazon_url: str | None = None
    payload: dict[str, Any] = field(default_factory=dict)

    @property
    def upstream_id(self) -> str:
        return self.isbn13 or self.isbn10 or re.sub(r"\s+", "_", self.title).lower()

    @property
    def source_url(self) -> str | None:
        if self.payload.get("book_uri"):
            return f"{_BESTSELLERS_URL}/{self.list_name_encoded}/"
        return self.amazon_url


def classify_entry(book: dict[str, Any]) -> str:
    """New entries are 'new_release', top three are 'trending', the rest 'bestseller'."""
    if book.get("weeks_on_list") == 1:
        return "new_release"
    rank = book.get("rank")
    if isinstance(rank, int) and rank <= 3:
        return "trending"
    return "bestseller"


def _entry(book: dict[str, Any], list_name: str, list_name_encoded: str) -> BestsellerEntry:
    return BestsellerEntry(
        title=normalize_string(book.get("title")),
        author=normalize_string(book.get("author") or book.get("contributor")),
        list_name=list_name,
        list_name_encoded=list_name_encoded,
        item_type=classify_entry(book),
        description=normalize_string(book.get("description")),
        rank=book.get("rank") or None,
        rank_last_week=book.get("rank_last_week") or None,
        weeks_on_list=book.get("weeks_on_list") or None,
        isbn13=normalize_string(book.get("primary_isbn13")) or None,
        isbn10=normalize_string(book.get("primary_isbn10")) or None,
        publisher=normalize_string(book.get("publisher")) or None,
        image_url=book.get("book_image") or None,
        amazon_url=book.get("amazon_product_url") or None,
        payload=book,
    )


def parse_overview(data: dict[str, Any]) -> list[BestsellerEntry]:
    """Flatten a /lists/overview.json payload into one entry per listed book."""
    lists = (data.get("results") or {}).get("lists")
    if not isinstance(lists, list):
        return []
    entries: list[BestsellerEntry] = []
    for book_list in lists:
        if not isinstance(book_list, dict):
            continue
        name = book_list.get("list_name") or book_list.get("display_name") or "Unknown"
        encoded = book_list.get("list_name_encoded") or ""
        for book in book_list.get("books") or []:
            if isinstance(book, dict) and normalize_string(book.get("title")):
                entries.append(_entry(book, name, encoded))
    return entries


def parse_list(data: dict[str, Any], list_name_encoded: str) -> list[BestsellerEntry]:
    """Parse a single /lists/{date}/{list}.json payload."""
    results = data.get("results") or {}
    books = results.get("books")
    if not isinstance(books, list):
        return []
    display = results.get("display_name") or list_name_encoded
    return [
        _entry(book, display, list_name_encoded)
        for book in books
        if isinstance(book, dict) and normalize_string(book.get("title"))
    ]


def entry_candidate(entry: BestsellerEntry, index: int) -> RawCandidate:
    return RawCandidate(
        id=f"{entry.upstream_id}:{index}",
        title=entry.title,
        has_image=bool(entry.image_url),
        payload={"index": index},
    )


def entry_to_result(
    entry: BestsellerEntry,
    *,
    criteria: SearchCriteria | None = None,
    score: float | None = None,
    fetched_at: datetime | None = None,
) -> CanonicalResult:
    """Map a bestseller entry to a CanonicalResult; the list name becomes the genre."""
    # NYT titles are upper-cased; present them in title case.
    title = entry.title.title() if entry.title.isupper() else entry.title
    creator = entry.author or None

    identifiers: dict[str, list[str]] = {"nyt": [entry.upstream_id]}
    if entry.isbn13:
        identifiers["isbn13"] = [entry.isbn13]
    if entry.isbn10:
        identifiers["isbn10"] = [entry.isbn10]

    images = []
    if entry.image_url:
        images.append(
            Image(
                kind="cover",
                url_small=entry.image_url,
                url_medium=entry.image_url,
                url_large=entry.image_url,
                provider="nyt",
            )
        )
    urls = {"list": entry.source_url} if entry.source_url else {}
    if entry.amazon_url:
        urls["amazon"] = entry.amazon_url
    lookup_title = criteria.clean_title if criteria else title

    return CanonicalResult(
        title=title,
        kind=MediaKind.BOOK,
        primary_creator=creator,
        description=entry.description or None,
        creators=[creator] if creator else [],
        publishers=unique_strings([entry.publisher]),
        genre=[entry.list_name],
        identifiers=identifiers,
        images=images,
        cover_url=entry.image_url,
        cover_image_url=entry.image_url,
        cover_image_source="external" if entry.image_url else None,
        attribution=Attribution(
            link_url=entry.source_url or _BESTSELLERS_URL,
            link_text="NYT Best Sellers",
            logo_key="nyt",
        ),
        sources=[
            Source(
                provider="nyt",
                ids={"isbn13": entry.isbn13} if entry.isbn13 else {},
                urls=urls,
                fetched_at=fetched_at or datetime.now(timezone.utc),
                raw={"score": score} if score is not None else {},
            )
        ],
        external_id=namespaced_id("nyt", entry.upstream_id),
        fingerprint=make_collectable_fingerprint(title, creator, None, MediaKind.BOOK),
        lightweight_fingerprint=make_lightweight_fingerprint(
            lookup_title, criteria.creator if criteria else creator, MediaKind.BOOK
        ),
        provider="nyt",
        score=score,
        extras={
            "itemType": entry.item_type,
            "rank": entry.rank,
            "rankLastWeek": entry.rank_last_week,
            "weeksOnList": entry.weeks_on_list,
            "listName": entry.list_name,
            "listNameEncoded": entry.list_name_encoded,
        },
    )
