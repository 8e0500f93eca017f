# ABOUTME: Match ranking for upstream search candidates and completeness scoring for book records.
# ABOUTME: Additive heuristics; exact normalized title plus exact year dominates popularity.

from dataclasses import dataclass, field

from shelvery.catalog.candidate import RankedCandidate, RawCandidate
from shelvery.catalog.normalizer import normalize_compare, normalize_string
from shelvery.catalog.types import CanonicalResult, SearchCriteria

# Title terms
_EXACT_TITLE_BONUS = 50.0
_PARTIAL_TITLE_BONUS = 25.0

# Year terms, keyed by absolute difference
_YEAR_BONUS: dict[int, float] = {0: 20.0, 1: 10.0, 2: 5.0}
_UNREQUESTED_YEAR_BONUS = 2.0

# Vote count contributes votes/100, capped.
_VOTE_DIVISOR = 100.0
_VOTE_CAP = 10.0

_IMAGE_BONUS = 2.0


def score_match(candidate: RawCandidate, criteria: SearchCriteria) -> float:
    """Score how well one upstream candidate matches the search criteria.

    Starts from the upstream popularity metric and adds title, year,
    vote-count, and artwork terms. A year mismatch beyond two years
    subtracts the full difference with no floor.
    """
    score = float(candidate.popularity or 0.0)

    wanted = normalize_compare(criteria.title)
    found = normalize_compare(candidate.title)
    if wanted and found:
        if found == wanted:
            score += _EXACT_TITLE_BONUS
        elif wanted in found or found in wanted:
            score += _PARTIAL_TITLE_BONUS

    if criteria.year and candidate.year:
        diff = abs(candidate.year - criteria.year)
        if diff in _YEAR_BONUS:
            score += _YEAR_BONUS[diff]
        else:
            score -= diff
    elif candidate.year and not criteria.year:
        score += _UNREQUESTED_YEAR_BONUS

    if candidate.vote_count:
        score += min(candidate.vote_count / _VOTE_DIVISOR, _VOTE_CAP)

    if candidate.has_image:
        score += _IMAGE_BONUS

    return score


def rank(candidates: list[RawCandidate], criteria: SearchCriteria) -> list[RankedCandidate]:
    """Score and sort candidates best-first.

    Candidates missing an id or title are dropped. The sort is stable, so
    equal scores keep their upstream order.
    """
    ranked = [
        RankedCandidate(candidate=candidate, score=score_match(candidate, criteria), source_index=i)
        for i, candidate in enumerate(candidates)
        if normalize_string(candidate.id) and normalize_string(candidate.title)
    ]
    ranked.sort(key=lambda entry: entry.score, reverse=True)
    return ranked


def pick_best(
    candidates: list[RawCandidate],
    criteria: SearchCriteria,
    *,
    min_score: float | None = None,
) -> RankedCandidate | None:
    """Return the top-ranked candidate, or None when empty or below ``min_score``."""
    ranked = rank(candidates, criteria)
    if not ranked:
        return None
    best = ranked[0]
    if min_score is not None and best.score < min_score:
        return None
    return best


# --- Book record completeness ------------------------------------------------

DEFAULT_BOOK_MIN_SCORE = 55.0
_BOOK_MAX_SCORE = 100


@dataclass
class MetadataScore:
    """How complete a book record is, out of ``max_score``, and what it lacks."""

    score: int
    max_score: int = _BOOK_MAX_SCORE
    missing: list[str] = field(default_factory=list)


def _has_values(values: list[str] | None) -> bool:
    return any(normalize_string(v) for v in values or [])


def score_book_result(result: CanonicalResult) -> MetadataScore:
    """Score a book record by which fields are populated.

    Used to reject thin provider hits (a bare title and nothing else) so the
    router can keep looking for a richer record.
    """
    score = 0
    missing: list[str] = []

    def award(points: int, present: bool, name: str) -> None:
        nonlocal score
        if present:
            score += points
        else:
            missing.append(name)

    award(15, bool(normalize_string(result.title)), "title")
    award(20, bool(normalize_string(result.primary_creator)) or _has_values(result.creators), "creator")
    award(10, _has_values(result.publishers), "publishers")
    award(10, result.year is not None, "year")

    description = normalize_string(result.description)
    if len(description) >= 120:
        score += 20
    elif len(description) >= 40:
        score += 10
    else:
        missing.append("description")

    has_cover = bool(
        normalize_string(result.cover_image_url) or normalize_string(result.cover_url)
    ) or any(image.url_large or image.url_medium or image.url_small or image.url for image in result.images)
    award(15, has_cover, "cover")

    ids = result.identifiers
    if any(_has_values(ids.get(key)) for key in ("isbn13", "isbn10", "asin")):
        score += 10
    elif any(_has_values(ids.get(key)) for key in ("openlibrary_work", "hardcover_book")):
        score += 5
    else:
        missing.append("identifiers")

    award(5, _has_values(result.tags) or _has_values(result.genre), "tags")

    return MetadataScore(score=score, missing=missing)


def resolve_min_metadata_score(value: object, default: float = DEFAULT_BOOK_MIN_SCORE) -> float:
    """Parse a threshold given as 0..1 or 0..100; bad input falls back to ``default``."""
    if value is None or value == "":
        return default
    try:
        parsed = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    if parsed != parsed:  # NaN
        return default
    normalized = parsed * 100 if parsed <= 1 else parsed
    return max(0.0, min(100.0, normalized))
