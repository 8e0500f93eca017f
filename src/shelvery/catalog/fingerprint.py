# ABOUTME: Content-derived identities for collectable records.
# ABOUTME: The same (title, creator, year, kind) always hashes to the same fingerprint.

import hashlib
import re
from collections.abc import Iterable
from enum import Enum

_MEDIA_TYPE_ALIASES: dict[str, str] = {
    "book": "book",
    "books": "book",
    "movie": "movie",
    "movies": "movie",
    "film": "movie",
    "films": "movie",
    "game": "game",
    "games": "game",
    "videogame": "game",
    "videogames": "game",
}

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def _normalize_part(value: object) -> str:
    """Trim and lowercase one fingerprint component; None becomes empty."""
    if value is None:
        return ""
    if isinstance(value, Enum):
        value = value.value
    return str(value).strip().lower()


def _normalize_list(values: str | Iterable[str] | None) -> str:
    """Collapse a list-valued component into a sorted, de-duplicated CSV."""
    if values is None:
        return ""
    if isinstance(values, str):
        return _normalize_part(values)
    seen = {_normalize_part(v) for v in values}
    seen.discard("")
    return ",".join(sorted(seen))


def normalize_media_type(value: object) -> str:
    """Canonicalize a media type so 'Films' and 'movie' fingerprint alike."""
    normalized = _normalize_part(value)
    if not normalized:
        return ""
    compact = _NON_ALNUM_RE.sub("", normalized)
    return _MEDIA_TYPE_ALIASES.get(normalized) or _MEDIA_TYPE_ALIASES.get(compact) or normalized


def _sha1(text: str) -> str:
    return hashlib.sha1(text.encode("utf-8")).hexdigest()


def make_collectable_fingerprint(
    title: str | None,
    primary_creator: str | None,
    year: int | str | None,
    kind: object = None,
    *,
    platforms: str | Iterable[str] | None = None,
    formats: str | Iterable[str] | None = None,
) -> str:
    """Compute the stable identity of a collectable.

    Pure function of its inputs and independent of the provider that
    supplied the data. Platforms and formats are only mixed in when given,
    so callers that omit them get the plain four-part identity.

    Returns:
        Lowercase SHA-1 hex digest (40 characters).
    """
    parts = [_normalize_part(title), _normalize_part(primary_creator), _normalize_part(year)]

    media_type = normalize_media_type(kind)
    if media_type:
        parts.append(media_type)

    platform = _normalize_list(platforms)
    if platform:
        parts.append(platform)

    fmt = _normalize_list(formats)
    if fmt:
        parts.append(fmt)

    return _sha1("|".join(parts))


def make_lightweight_fingerprint(
    title: str | None,
    primary_creator: str | None = None,
    kind: object = None,
) -> str:
    """Year-less identity computed from what the caller searched for.

    Lets repeated queries for the same thing find the record they produced
    before, even when the upstream year differs from what the user typed.
    """
    parts = [_normalize_part(title), _normalize_part(primary_creator)]
    media_type = normalize_media_type(kind)
    if media_type:
        parts.append(media_type)
    return _sha1("|".join(parts))
