# ABOUTME: Shared helpers for mapping provider payloads into CanonicalResult records.
# ABOUTME: String cleanup, order-preserving de-duplication, cover selection, namespaced ids.

import re
from collections.abc import Iterable, Sequence
from typing import Any

from shelvery.catalog.types import Image

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def normalize_string(value: Any) -> str:
    """Stringify and trim; None becomes the empty string."""
    if value is None:
        return ""
    return str(value).strip()


def normalize_compare(value: Any) -> str:
    """Comparison form of a title: lowercase, non-alphanumeric runs collapsed to one space."""
    return _NON_ALNUM_RE.sub(" ", normalize_string(value).lower()).strip()


def unique_strings(values: Iterable[Any] | None) -> list[str]:
    """De-duplicate strings case-insensitively, keeping the first spelling and order."""
    seen: set[str] = set()
    out: list[str] = []
    for value in values or []:
        normalized = normalize_string(value)
        if not normalized:
            continue
        key = normalized.lower()
        if key in seen:
            continue
        seen.add(key)
        out.append(normalized)
    return out


def names_of(entries: Iterable[Any] | None, key: str = "name") -> list[str]:
    """Pull ``key`` out of a list of upstream dicts, skipping malformed entries."""
    names: list[str] = []
    for entry in entries or []:
        if isinstance(entry, dict) and entry.get(key):
            names.append(entry[key])
    return names


def namespaced_id(provider: str, upstream_id: Any) -> str | None:
    """Build an external id like ``tmdb:603`` so ids never collide across providers."""
    value = normalize_string(upstream_id)
    if not value:
        return None
    return f"{provider}:{value}"


def select_cover_url(images: Sequence[Image], override: str | None = None) -> str | None:
    """Pick the cover URL for a record.

    An explicit override wins. Otherwise the largest variant present on any
    image is used, then medium, then small, then a generic ``url``.
    """
    if normalize_string(override):
        return normalize_string(override)
    for attr in ("url_large", "url_medium", "url_small", "url"):
        for image in images:
            value = normalize_string(getattr(image, attr, None))
            if value:
                return value
    return None


def prune(source: dict[str, Any]) -> dict[str, Any]:
    """Drop None and empty-string values, mostly for compact log context."""
    return {key: value for key, value in source.items() if value is not None and value != ""}
