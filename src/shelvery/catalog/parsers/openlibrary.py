# ABOUTME: Parsing functions for Open Library API JSON responses.
# ABOUTME: Converts search docs and edition records into RawCandidates and CanonicalResults.

from datetime import datetime, timezone
from typing import Any

from shelvery.catalog.candidate import RawCandidate
from shelvery.catalog.fingerprint import make_collectable_fingerprint, make_lightweight_fingerprint
from shelvery.catalog.normalizer import namespaced_id, normalize_string, select_cover_url, unique_strings
from shelvery.catalog.types import (
    Attribution,
    CanonicalResult,
    Image,
    MediaKind,
    SearchCriteria,
    Source,
    coerce_year,
)

OL_BASE_URL = "https://openlibrary.org"
_COVERS_BASE_URL = "https://covers.openlibrary.org/b"
_MAX_SUBJECTS = 10


def build_cover_url(value: str | int, size: str = "L", key: str = "isbn") -> str:
    """Build an Open Library cover image URL.

    Args:
        value: The ISBN or numeric cover id.
        size: Image size - "S" (small), "M" (medium), or "L" (large).
        key: "isbn" or "id", depending on what ``value`` is.
    """
    return f"{_COVERS_BASE_URL}/{key}/{value}-{size}.jpg"


def cover_image(value: str | int | None, key: str = "id") -> Image | None:
    if value in (None, "", -1):
        return None
    return Image(
        kind="cover",
        url_small=build_cover_url(value, "S", key),
        url_medium=build_cover_url(value, "M", key),
        url_large=build_cover_url(value, "L", key),
        provider="openlibrary",
    )


def parse_works_response(data: dict[str, Any]) -> str | None:
    """Extract the description from an Open Library Works response.

    Handles the OL quirk where description can be either a plain string
    or a dict with {"type": ..., "value": "actual text"}.
    """
    desc = data.get("description")
    if desc is None:
        return None
    if isinstance(desc, str):
        return desc
    if isinstance(desc, dict):
        return desc.get("value")
    return None


def parse_author_name(data: dict[str, Any]) -> str:
    """Extract the author name from an Open Library Author response."""
    return data.get("name", "Unknown")


def parse_search_results(data: dict[str, Any]) -> list[RawCandidate]:
    """Parse an Open Library Search API response into ranker candidates.

    Each doc carries title, author_name, first_publish_year, cover_i, etc.
    The edition count stands in for the vote signal.
    """
    candidates: list[RawCandidate] = []
    for doc in data.get("docs", []):
        if not isinstance(doc, dict):
            continue
        candidates.append(
            RawCandidate(
                id=normalize_string(doc.get("key")),
                title=normalize_string(doc.get("title")),
                year=coerce_year(doc.get("first_publish_year")),
                vote_count=doc.get("edition_count"),
                has_image=bool(doc.get("cover_i")),
                payload=doc,
            )
        )
    return candidates


# Format preference for edition selection (lower = better).
_FORMAT_RANK: dict[str, int] = {
    "hardcover": 0,
    "paperback": 1,
    "trade paperback": 1,
    "mass market paperback": 1,
    "electronic resource": 2,
    "ebook": 2,
    "audio cd": 3,
    "audio cassette": 3,
}
_FORMAT_RANK_DEFAULT = 2


def select_best_edition(entries: list[dict[str, Any]]) -> dict[str, str | None] | None:
    """Pick the best edition from a list of Open Library edition entries.

    Prefers physical formats with ISBNs. Returns a dict with 'isbn13',
    'isbn10', 'publisher' and 'format' keys, or None if no usable edition
    was found.
    """
    scored: list[tuple[int, int, dict[str, str | None]]] = []

    for entry in entries:
        isbn_13 = entry.get("isbn_13", [])
        isbn_10 = entry.get("isbn_10", [])
        if not isbn_13 and not isbn_10:
            continue

        publishers = entry.get("publishers", [])
        fmt = (entry.get("physical_format") or "").lower()
        format_rank = _FORMAT_RANK.get(fmt, _FORMAT_RANK_DEFAULT)
        # Prefer ISBN-13 (0) over ISBN-10 only (1)
        isbn_rank = 0 if isbn_13 else 1

        scored.append(
            (
                format_rank,
                isbn_rank,
                {
                    "isbn13": isbn_13[0] if isbn_13 else None,
                    "isbn10": isbn_10[0] if isbn_10 else None,
                    "publisher": publishers[0] if publishers else None,
                    "format": entry.get("physical_format"),
                },
            )
        )

    if not scored:
        return None

    scored.sort(key=lambda item: (item[0], item[1]))
    return scored[0][2]


def _build_result(
    *,
    work_key: str | None,
    title: str,
    subtitle: str | None,
    authors: list[str],
    year: int | None,
    description: str | None,
    publishers: list[str],
    subjects: list[str],
    isbn13: list[str],
    isbn10: list[str],
    cover: Image | None,
    criteria: SearchCriteria | None,
    score: float | None,
    fetched_at: datetime | None,
    edition_format: str | None = None,
) -> CanonicalResult:
    authors = unique_strings(authors)
    primary_creator = authors[0] if authors else None

    identifiers: dict[str, list[str]] = {}
    if work_key:
        identifiers["openlibrary_work"] = [work_key]
    if isbn13:
        identifiers["isbn13"] = unique_strings(isbn13)
    if isbn10:
        identifiers["isbn10"] = unique_strings(isbn10)

    images = [cover] if cover else []
    page_url = f"{OL_BASE_URL}{work_key}" if work_key else OL_BASE_URL
    upstream_id = work_key.rsplit("/", 1)[-1] if work_key else (isbn13 or isbn10 or [None])[0]
    lookup_title = criteria.clean_title if criteria else title
    fmt = normalize_string(criteria.format) if criteria and criteria.format else normalize_string(edition_format)

    return CanonicalResult(
        title=title,
        kind=MediaKind.BOOK,
        primary_creator=primary_creator,
        year=year,
        description=description or None,
        subtitle=subtitle or None,
        creators=authors,
        publishers=unique_strings(publishers),
        tags=unique_strings(subjects)[:_MAX_SUBJECTS],
        formats=[fmt] if fmt else [],
        identifiers=identifiers,
        images=images,
        cover_url=select_cover_url(images),
        cover_image_url=cover.url_large if cover else None,
        cover_image_source="external" if cover else None,
        attribution=Attribution(link_url=page_url, link_text="View on Open Library", logo_key="openlibrary"),
        sources=[
            Source(
                provider="openlibrary",
                ids={"work": work_key} if work_key else {},
                urls={"work": page_url},
                fetched_at=fetched_at or datetime.now(timezone.utc),
                raw={"score": score} if score is not None else {},
            )
        ],
        external_id=namespaced_id("openlibrary", upstream_id),
        fingerprint=make_collectable_fingerprint(title, primary_creator, year, MediaKind.BOOK),
        lightweight_fingerprint=make_lightweight_fingerprint(
            lookup_title, criteria.creator if criteria else primary_creator, MediaKind.BOOK
        ),
        provider="openLibrary",
        score=score,
    )


def search_doc_to_result(
    doc: dict[str, Any],
    *,
    description: str | None = None,
    edition: dict[str, str | None] | None = None,
    criteria: SearchCriteria | None = None,
    score: float | None = None,
    fetched_at: datetime | None = None,
) -> CanonicalResult | None:
    """Map a search doc (plus optional works description and best edition) to a CanonicalResult."""
    title = normalize_string(doc.get("title"))
    if not title:
        return None

    edition = edition or {}
    isbns = [normalize_string(i) for i in doc.get("isbn", [])]
    isbn13 = [i for i in isbns if len(i) == 13]
    isbn10 = [i for i in isbns if len(i) == 10]
    if edition.get("isbn13"):
        isbn13.insert(0, edition["isbn13"])
    if edition.get("isbn10"):
        isbn10.insert(0, edition["isbn10"])

    publishers = list(doc.get("publisher", []))
    if edition.get("publisher"):
        publishers.insert(0, edition["publisher"])

    cover = cover_image(doc.get("cover_i"), "id")
    if cover is None and isbn13:
        cover = cover_image(isbn13[0], "isbn")

    return _build_result(
        work_key=normalize_string(doc.get("key")) or None,
        title=title,
        subtitle=doc.get("subtitle"),
        authors=doc.get("author_name", []),
        year=coerce_year(doc.get("first_publish_year")),
        description=description,
        publishers=publishers,
        subjects=doc.get("subject", []),
        isbn13=isbn13,
        isbn10=isbn10,
        cover=cover,
        criteria=criteria,
        score=score,
        fetched_at=fetched_at,
        edition_format=edition.get("format"),
    )


def edition_to_result(
    data: dict[str, Any],
    *,
    authors: list[str],
    description: str | None = None,
    criteria: SearchCriteria | None = None,
    fetched_at: datetime | None = None,
) -> CanonicalResult | None:
    """Map an edition record (from the /isbn endpoint) to a CanonicalResult.

    Author names and the works description are resolved by the caller
    through follow-up requests.
    """
    title = normalize_string(data.get("title"))
    if not title:
        return None

    works = data.get("works", [])
    work_key = works[0].get("key") if works and isinstance(works[0], dict) else None
    isbn13 = list(data.get("isbn_13", []))
    isbn10 = list(data.get("isbn_10", []))

    covers = [c for c in data.get("covers", []) if isinstance(c, int) and c > 0]
    cover = cover_image(covers[0], "id") if covers else None
    if cover is None and isbn13:
        cover = cover_image(isbn13[0], "isbn")

    return _build_result(
        work_key=work_key,
        title=title,
        subtitle=data.get("subtitle"),
        authors=authors,
        year=coerce_year(data.get("publish_date")),
        description=description,
        publishers=data.get("publishers", []),
        subjects=data.get("subjects", []),
        isbn13=isbn13,
        isbn10=isbn10,
        cover=cover,
        criteria=criteria,
        score=None,
        fetched_at=fetched_at,
        edition_format=data.get("physical_format"),
    )
