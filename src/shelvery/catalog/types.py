# ABOUTME: Core data structures for catalog lookups and their canonical results.
# ABOUTME: CanonicalResult is the interchange format between providers, the router, and storage.

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

_YEAR_RE = re.compile(r"\b(\d{4})\b")


class MediaKind(str, Enum):
    """Kinds of collectable a canonical record can describe."""

    BOOK = "book"
    MOVIE = "movie"
    TV = "tv"
    GAME = "game"
    ALBUM = "album"
    OTHER = "other"


def coerce_year(value: Any) -> int | None:
    """Pull a four-digit year out of an int, date string, or timestamp-ish text."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if 1000 <= value <= 9999 else None
    match = _YEAR_RE.search(str(value))
    return int(match.group(1)) if match else None


@dataclass(frozen=True)
class SearchCriteria:
    """Immutable input to a catalog lookup.

    Only the title is required. A blank title is not an error: providers
    answer it with "no result" without touching the network.
    """

    title: str
    year: int | None = None
    format: str | None = None
    creator: str | None = None
    identifiers: Mapping[str, str] = field(default_factory=dict)

    @property
    def clean_title(self) -> str:
        return (self.title or "").strip()

    @property
    def is_blank(self) -> bool:
        return not self.clean_title

    def identifier(self, *keys: str) -> str | None:
        """Return the first non-empty identifier among the given keys."""
        for key in keys:
            value = (self.identifiers.get(key) or "").strip()
            if value:
                return value
        return None

    @classmethod
    def from_item(cls, item: Mapping[str, Any]) -> "SearchCriteria":
        """Build criteria from a loose item dict (``title``/``name``, ``year``, ...)."""
        identifiers = {
            str(key): str(value)
            for key, value in (item.get("identifiers") or {}).items()
            if value is not None and not isinstance(value, (list, tuple, dict))
        }
        creator = item.get("creator") or item.get("author") or item.get("primaryCreator")
        return cls(
            title=str(item.get("title") or item.get("name") or ""),
            year=coerce_year(item.get("year")),
            format=item.get("format") or None,
            creator=str(creator) if creator else None,
            identifiers=identifiers,
        )


@dataclass
class Image:
    """One artwork entry with size variants; any variant may be missing."""

    kind: str
    url_small: str | None = None
    url_medium: str | None = None
    url_large: str | None = None
    url: str | None = None
    provider: str | None = None


@dataclass
class Source:
    """Provenance entry recording where a record's data came from."""

    provider: str
    ids: dict[str, str] = field(default_factory=dict)
    urls: dict[str, str] = field(default_factory=dict)
    fetched_at: datetime | None = None
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass
class Attribution:
    """Credit line some upstreams require wherever their data is shown."""

    link_url: str
    link_text: str
    logo_key: str | None = None
    disclaimer_text: str | None = None


@dataclass
class CanonicalResult:
    """Normalized collectable record produced by every provider.

    The fingerprint is derived from (title, primary_creator, year, kind) only,
    so the same real-world item found via different providers collapses to
    one record downstream. Provenance fields (source, source_index,
    source_priority, sources_used) are filled in by the router.
    """

    title: str
    kind: MediaKind
    fingerprint: str
    primary_creator: str | None = None
    year: int | None = None
    description: str | None = None
    subtitle: str | None = None
    creators: list[str] = field(default_factory=list)
    publishers: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    genre: list[str] = field(default_factory=list)
    runtime: int | None = None
    formats: list[str] = field(default_factory=list)
    system_name: str | None = None
    identifiers: dict[str, list[str]] = field(default_factory=dict)
    images: list[Image] = field(default_factory=list)
    cover_url: str | None = None
    cover_image_url: str | None = None
    cover_image_source: str | None = None
    attribution: Attribution | None = None
    sources: list[Source] = field(default_factory=list)
    external_id: str | None = None
    lightweight_fingerprint: str | None = None
    provider: str | None = None
    score: float | None = None
    extras: dict[str, Any] = field(default_factory=dict)
    source: str | None = None
    source_index: int | None = None
    source_priority: int | None = None
    sources_used: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Render the record in the camelCase shape the collectable store expects."""
        data: dict[str, Any] = {
            "title": self.title,
            "primaryCreator": self.primary_creator,
            "year": self.year,
            "kind": self.kind.value,
            "description": self.description,
            "subtitle": self.subtitle,
            "creators": list(self.creators),
            "publishers": list(self.publishers),
            "tags": list(self.tags),
            "genre": list(self.genre),
            "runtime": self.runtime,
            "formats": list(self.formats),
            "systemName": self.system_name,
            "identifiers": {key: list(values) for key, values in self.identifiers.items()},
            "images": [_image_dict(image) for image in self.images],
            "coverUrl": self.cover_url,
            "coverImageUrl": self.cover_image_url,
            "coverImageSource": self.cover_image_source,
            "attribution": _attribution_dict(self.attribution),
            "sources": [_source_dict(source) for source in self.sources],
            "externalId": self.external_id,
            "fingerprint": self.fingerprint,
            "lightweightFingerprint": self.lightweight_fingerprint,
            "provider": self.provider,
            "extras": dict(self.extras),
        }
        if self.source is not None:
            data["_source"] = self.source
        if self.source_index is not None:
            data["_sourceIndex"] = self.source_index
        if self.source_priority is not None:
            data["_sourcePriority"] = self.source_priority
        if self.sources_used:
            data["_sources"] = list(self.sources_used)
        return data


def _image_dict(image: Image) -> dict[str, Any]:
    return {
        "kind": image.kind,
        "urlSmall": image.url_small,
        "urlMedium": image.url_medium,
        "urlLarge": image.url_large,
        "url": image.url,
        "provider": image.provider,
    }


def _source_dict(source: Source) -> dict[str, Any]:
    return {
        "provider": source.provider,
        "ids": dict(source.ids),
        "urls": dict(source.urls),
        "fetchedAt": source.fetched_at.isoformat() if source.fetched_at else None,
        "raw": dict(source.raw),
    }


def _attribution_dict(attribution: Attribution | None) -> dict[str, Any] | None:
    if attribution is None:
        return None
    return {
        "linkUrl": attribution.link_url,
        "linkText": attribution.link_text,
        "logoKey": attribution.logo_key,
        "disclaimerText": attribution.disclaimer_text,
    }
