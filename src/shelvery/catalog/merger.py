# ABOUTME: Field-level merge of several provider results into one CanonicalResult.
# ABOUTME: The highest-priority result is the base; an explicit allow-list of fields is gap-filled.

import copy
from collections.abc import Sequence
from typing import Any

from shelvery.catalog.types import CanonicalResult

# Only these fields are ever taken from lower-priority results.
FILLABLE_FIELDS: tuple[str, ...] = (
    "description",
    "cover_url",
    "year",
    "publishers",
    "tags",
    "identifiers",
)


def _is_missing(value: Any) -> bool:
    return value is None or value == "" or value == [] or value == {}


def _extend_unique(target: list[Any], extra: list[Any]) -> None:
    """Append items from ``extra`` not already present (deep equality)."""
    for item in extra:
        if item not in target:
            target.append(copy.deepcopy(item))


def _merge_identifiers(target: dict[str, list[str]], extra: dict[str, list[str]]) -> None:
    for key, values in extra.items():
        if _is_missing(target.get(key)):
            target[key] = copy.deepcopy(values)


def merge_results(results: Sequence[CanonicalResult]) -> CanonicalResult | None:
    """Merge results ordered best-priority first.

    A single result is returned as-is. Otherwise the first result is copied
    and, for each field in FILLABLE_FIELDS, gaps are filled from later
    results: scalars only when the base has no value, lists concatenated
    without duplicates, and identifier keys added only when the base lacks
    them. Inputs are never mutated.
    """
    if not results:
        return None
    if len(results) == 1:
        return results[0]

    merged = copy.deepcopy(results[0])
    for source in results[1:]:
        for name in FILLABLE_FIELDS:
            current = getattr(merged, name)
            incoming = getattr(source, name)
            if _is_missing(incoming):
                continue
            if name == "identifiers":
                _merge_identifiers(current, incoming)
            elif isinstance(current, list) and isinstance(incoming, list):
                _extend_unique(current, incoming)
            elif _is_missing(current):
                setattr(merged, name, copy.deepcopy(incoming))
    return merged
