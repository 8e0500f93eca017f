# ABOUTME: Raw and ranked candidate records produced while matching a search query.
# ABOUTME: Parsers build RawCandidates from upstream payloads; the ranker wraps them with scores.

from dataclasses import dataclass, field
from typing import Any


@dataclass
class RawCandidate:
    """One upstream search hit before normalization.

    Only the fields the ranker looks at are lifted out; the untouched
    upstream record travels along in ``payload``.
    """

    id: str
    title: str
    year: int | None = None
    popularity: float | None = None
    vote_count: int | None = None
    has_image: bool = False
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass
class RankedCandidate:
    """A RawCandidate with its match score and original upstream position."""

    candidate: RawCandidate
    score: float
    source_index: int

    @property
    def id(self) -> str:
        return self.candidate.id

    @property
    def title(self) -> str:
        return self.candidate.title

    @property
    def payload(self) -> dict[str, Any]:
        return self.candidate.payload
