# ABOUTME: GraphQL documents and response parsing for the Hardcover book API.
# ABOUTME: Maps editions and books (with contributors, tags, cached images) into CanonicalResults.

import json
import re
from datetime import datetime, timezone
from typing import Any

from shelvery.catalog.candidate import RawCandidate
from shelvery.catalog.fingerprint import make_collectable_fingerprint, make_lightweight_fingerprint
from shelvery.catalog.normalizer import namespaced_id, normalize_compare, normalize_string, select_cover_url, unique_strings
from shelvery.catalog.types import Attribution, CanonicalResult, Image, MediaKind, SearchCriteria, Source, coerce_year

_SITE_URL = "https://hardcover.app"

_BOOK_FIELDS = """
    id
    title
    subtitle
    description
    release_date
    release_year
    slug
    cached_tags
    cached_image
    cached_contributors
    contributions {
      contribution
      author {
        name
      }
    }
"""

_EDITION_FIELDS = """
    id
    title
    subtitle
    isbn_13
    isbn_10
    asin
    pages
    release_date
    edition_format
    physical_format
    cached_image
    reading_format {
      format
    }
    language {
      language
    }
    publisher {
      name
    }
"""

SEARCH_QUERY = """
query BookSearch($query: String!, $queryType: String!, $perPage: Int!, $page: Int!, $fields: String, $weights: String, $sort: String) {
  search(query: $query, query_type: $queryType, per_page: $perPage, page: $page, fields: $fields, weights: $weights, sort: $sort) {
    ids
    results
    query
  }
}
"""

BOOK_DETAILS_QUERY = (
    "query BookDetails($ids: [Int!]) {\n  books(where: {id: {_in: $ids}}) {"
    + _BOOK_FIELDS
    + "    default_physical_edition {"
    + _EDITION_FIELDS
    + "    }\n  }\n}\n"
)


def edition_by_isbn_query(isbn_field: str) -> str:
    """Editions matching an ISBN, newest first; ``isbn_field`` is isbn_13 or isbn_10."""
    return (
        f"query EditionByIsbn($isbn: String!) {{\n"
        f"  editions(where: {{{isbn_field}: {{_eq: $isbn}}}}, order_by: {{release_date: desc}}, limit: 5) {{"
        + _EDITION_FIELDS
        + "    book {"
        + _BOOK_FIELDS
        + "    }\n  }\n}\n"
    )


SEARCH_FIELDS = "title,isbns,series_names,author_names,alternative_titles"
SEARCH_WEIGHTS = "5,5,3,1,1"
SEARCH_SORT = "_text_match:desc,users_count:desc"


def normalize_isbn(value: Any) -> str | None:
    cleaned = re.sub(r"[^0-9Xx]", "", normalize_string(value)).upper()
    return cleaned or None


def parse_json_maybe(value: Any) -> Any:
    """Decode values Hardcover returns as JSON-encoded strings; leave anything else alone."""
    if not isinstance(value, str):
        return value
    trimmed = value.strip()
    if not trimmed.startswith(("{", "[")):
        return value
    try:
        return json.loads(trimmed)
    except ValueError:
        return value


def search_documents(search: dict[str, Any] | None) -> list[dict[str, Any]]:
    """Extract the document list from a ``search`` payload (Typesense hits, documents or a bare list)."""
    if not search:
        return []
    parsed = parse_json_maybe(search.get("results"))
    if isinstance(parsed, list):
        return [doc for doc in parsed if isinstance(doc, dict)]
    if isinstance(parsed, dict):
        if isinstance(parsed.get("hits"), list):
            docs = [hit.get("document") or hit.get("doc") or hit for hit in parsed["hits"] if isinstance(hit, dict)]
            return [doc for doc in docs if isinstance(doc, dict)]
        for key in ("documents", "results"):
            if isinstance(parsed.get(key), list):
                return [doc for doc in parsed[key] if isinstance(doc, dict)]
    return []


def author_names(value: Any) -> list[str]:
    parsed = parse_json_maybe(value)
    if isinstance(parsed, list):
        return unique_strings(parsed)
    if isinstance(parsed, str):
        return unique_strings(name.strip() for name in parsed.split(","))
    return []


def parse_search_results(search: dict[str, Any] | None) -> list[RawCandidate]:
    """Turn a ``search`` payload into ranker candidates.

    Falls back to the bare id list when the search returns ids without
    documents.
    """
    if not search:
        return []
    docs = search_documents(search)
    ids = parse_json_maybe(search.get("ids"))
    ids = ids if isinstance(ids, list) else []

    candidates: list[RawCandidate] = []
    for index, doc in enumerate(docs):
        doc_id = doc.get("id") or (ids[index] if index < len(ids) else None)
        candidates.append(
            RawCandidate(
                id=normalize_string(doc_id),
                title=normalize_string(doc.get("title")),
                year=coerce_year(doc.get("release_year")),
                vote_count=doc.get("users_count"),
                has_image=bool(doc.get("image")),
                payload=doc,
            )
        )
    if not candidates:
        candidates = [RawCandidate(id=normalize_string(i), title="", payload={"id": i}) for i in ids]
    return candidates


def contributor_names(book: dict[str, Any], fallback: list[str] | None = None) -> list[str]:
    names = [
        normalize_string((entry.get("author") or {}).get("name"))
        for entry in book.get("contributions") or []
        if isinstance(entry, dict)
    ]
    names = [n for n in names if n]
    if not names:
        cached = parse_json_maybe(book.get("cached_contributors"))
        if isinstance(cached, list):
            for entry in cached:
                if isinstance(entry, dict):
                    author = entry.get("author")
                    author_name = author.get("name") if isinstance(author, dict) else author
                    names.append(normalize_string(entry.get("name") or author_name or entry.get("author_name")))
    if not names and fallback:
        names = list(fallback)
    return unique_strings(names)


def primary_author(book: dict[str, Any], contributors: list[str]) -> str | None:
    """The contributor credited as 'Author', else the first contributor."""
    for entry in book.get("contributions") or []:
        if not isinstance(entry, dict):
            continue
        name = normalize_string((entry.get("author") or {}).get("name"))
        if name and normalize_compare(entry.get("contribution")) == "author":
            return name
    return contributors[0] if contributors else None


def extract_tags(book: dict[str, Any]) -> list[str]:
    tags: list[str] = []

    def collect(entries: Any) -> None:
        for entry in entries if isinstance(entries, list) else []:
            if isinstance(entry, str):
                tags.append(entry)
            elif isinstance(entry, dict):
                tags.append(entry.get("tag") or entry.get("name") or "")

    cached = parse_json_maybe(book.get("cached_tags"))
    if isinstance(cached, dict):
        for value in cached.values():
            collect(value)
    else:
        collect(cached)
    return unique_strings(tags)


def image_from_cache(value: Any) -> Image | None:
    """Build a cover Image from a ``cached_image`` value (URL string or variant dict)."""
    parsed = parse_json_maybe(value)
    if isinstance(parsed, str) and parsed.strip():
        url = parsed.strip()
        return Image(kind="cover", url_small=url, url_medium=url, url_large=url, provider="hardcover")
    if isinstance(parsed, dict):
        large = parsed.get("url_large") or parsed.get("large") or parsed.get("full") or parsed.get("url") or parsed.get("src")
        medium = parsed.get("url_medium") or parsed.get("medium") or large
        small = parsed.get("url_small") or parsed.get("small") or medium
        if not (small or medium or large):
            return None
        return Image(
            kind="cover",
            url_small=small or medium or large,
            url_medium=medium or large or small,
            url_large=large or medium or small,
            provider="hardcover",
        )
    return None


def book_match_score(book: dict[str, Any], criteria: SearchCriteria) -> float:
    """Score a fetched book against the requested title, author and year."""
    score = 0.0
    expected_title = normalize_compare(criteria.clean_title)
    title = normalize_compare(book.get("title"))
    if expected_title:
        if title == expected_title:
            score += 100
        elif title and (expected_title in title or title in expected_title):
            score += 60
        else:
            score -= 5

    expected_author = normalize_compare(criteria.creator)
    if expected_author:
        names = [normalize_compare(n) for n in contributor_names(book)]
        if expected_author in names:
            score += 40
        elif any(expected_author in n for n in names):
            score += 20
        else:
            score -= 5

    year = coerce_year(book.get("release_year")) or coerce_year(book.get("release_date"))
    if criteria.year is not None and year == criteria.year:
        score += 10
    return score


def book_to_result(
    book: dict[str, Any],
    *,
    edition: dict[str, Any] | None = None,
    criteria: SearchCriteria | None = None,
    score: float | None = None,
    fetched_at: datetime | None = None,
) -> CanonicalResult | None:
    """Map a Hardcover book (and its edition, if known) to a CanonicalResult."""
    if not book or book.get("id") is None:
        return None

    edition = edition or book.get("default_physical_edition") or None
    book_id = str(book["id"])
    title = normalize_string(book.get("title"))
    contributors = contributor_names(book)
    primary_creator = primary_author(book, contributors)
    year = (
        coerce_year(book.get("release_year"))
        or coerce_year(book.get("release_date"))
        or coerce_year((edition or {}).get("release_date"))
    )

    identifiers: dict[str, list[str]] = {"hardcover_book": [book_id]}
    ids = {"book": book_id}
    publishers: list[str] = []
    fmt = ""
    if edition:
        if edition.get("id") is not None:
            identifiers["hardcover_edition"] = [str(edition["id"])]
            ids["edition"] = str(edition["id"])
        for key, out in (("isbn_13", "isbn13"), ("isbn_10", "isbn10"), ("asin", "asin")):
            if edition.get(key):
                identifiers[out] = [str(edition[key])]
        publishers = unique_strings([(edition.get("publisher") or {}).get("name")])
        fmt = (
            normalize_string(edition.get("physical_format"))
            or normalize_string(edition.get("edition_format"))
            or normalize_string((edition.get("reading_format") or {}).get("format"))
        )
    if criteria and criteria.format:
        fmt = normalize_string(criteria.format)

    cover = image_from_cache((edition or {}).get("cached_image")) or image_from_cache(book.get("cached_image"))
    images = [cover] if cover else []

    urls = {"book": f"{_SITE_URL}/books/{book['slug']}"} if book.get("slug") else {}
    lookup_title = criteria.clean_title if criteria else title

    return CanonicalResult(
        title=title,
        kind=MediaKind.BOOK,
        primary_creator=primary_creator,
        year=year,
        description=normalize_string(book.get("description")) or None,
        subtitle=normalize_string(book.get("subtitle")) or None,
        creators=contributors,
        publishers=publishers,
        tags=extract_tags(book),
        formats=[fmt] if fmt else [],
        identifiers=identifiers,
        images=images,
        cover_url=select_cover_url(images),
        cover_image_url=cover.url_large if cover else None,
        cover_image_source="external" if cover else None,
        attribution=Attribution(
            link_url=urls.get("book", _SITE_URL), link_text="View on Hardcover", logo_key="hardcover"
        ),
        sources=[
            Source(
                provider="hardcover",
                ids=ids,
                urls=urls,
                fetched_at=fetched_at or datetime.now(timezone.utc),
                raw={"searchScore": score},
            )
        ],
        external_id=namespaced_id("hardcover", book_id),
        fingerprint=make_collectable_fingerprint(title, primary_creator, year, MediaKind.BOOK),
        lightweight_fingerprint=make_lightweight_fingerprint(
            lookup_title, criteria.creator if criteria else primary_creator, MediaKind.BOOK
        ),
        provider="hardcover",
        score=score,
        extras={
            "pages": (edition or {}).get("pages"),
            "language": ((edition or {}).get("language") or {}).get("language"),
        },
    )
