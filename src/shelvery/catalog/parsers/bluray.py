# ABOUTME: HTML parsing for the blu-ray.com home page release tables.
# ABOUTME: Extracts pre-order, new and upcoming releases with 4K detection and title cleanup.

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timezone

from bs4 import BeautifulSoup

from shelvery.catalog.candidate import RawCandidate
from shelvery.catalog.fingerprint import make_collectable_fingerprint, make_lightweight_fingerprint
from shelvery.catalog.normalizer import namespaced_id, normalize_string
from shelvery.catalog.types import Attribution, CanonicalResult, MediaKind, SearchCriteria, Source

logger = logging.getLogger(__name__)

BASE_URL = "https://www.blu-ray.com"

# The index-0 tabs hold both Blu-ray and 4K rows; the 4K tabs load dynamically.
SECTIONS: dict[str, str] = {
    "preorders": "newpreorderstabbody0",
    "new": "newmoviestabbody0",
    "upcoming": "upcomingmoviestabbody0",
}

FORMAT_ALL = "all"
FORMAT_BLURAY = "bluray"
FORMAT_4K = "4k"

_TITLE_4K_RE = re.compile(r"\b4K\b", re.IGNORECASE)
_URL_4K_RE = re.compile(r"4K-Blu-ray", re.IGNORECASE)
_DATE_FORMATS = ("%b %d, %Y", "%B %d, %Y", "%b %d %Y", "%Y-%m-%d", "%m/%d/%Y")
_SHORT_DATE_RE = re.compile(r"([A-Za-z]{3})\s+(\d{1,2}),?\s+(\d{4})")


@dataclass(frozen=True)
class BlurayRelease:
    """One row from a release table."""

    title: str
    raw_title: str
    source_url: str
    release_date: date | None
    format: str
    section: str

    @property
    def is_4k(self) -> bool:
        return self.format == "4K"

    @property
    def slug_id(self) -> str:
        """The numeric release id embedded in blu-ray.com URLs, else the URL path."""
        match = re.search(r"/(\d+)/?$", self.source_url)
        return match.group(1) if match else self.source_url.removeprefix(BASE_URL).strip("/")


def is_4k(title: str, url: str) -> bool:
    return bool(_TITLE_4K_RE.search(title) or _URL_4K_RE.search(url))


def clean_title(raw_title: str) -> str:
    """Strip format suffixes and trailing edition notes from a listing title."""
    title = re.sub(r" 4K \(.*?\)$", "", raw_title)
    title = re.sub(r" 4K$", "", title)
    title = re.sub(r" Blu-ray$", "", title)
    title = re.sub(r" \(.*?\)$", "", title)
    return title.strip()


def parse_date(text: str) -> date | None:
    """Parse listing dates such as 'Jan 19, 2026'."""
    text = normalize_string(text)
    if not text:
        return None
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    match = _SHORT_DATE_RE.search(text)
    if match:
        try:
            return datetime.strptime(" ".join(match.groups()), "%b %d %Y").date()
        except ValueError:
            return None
    return None


def parse_section(html: str, section: str, fmt: str = FORMAT_ALL) -> list[BlurayRelease]:
    """Parse one release table out of the home page HTML.

    Args:
        html: The page markup.
        section: A key of SECTIONS ('preorders', 'new', 'upcoming').
        fmt: 'all', 'bluray' (non-4K only) or '4k' (4K only).
    """
    section_id = SECTIONS[section]
    soup = BeautifulSoup(html, "html.parser")
    container = soup.find(id=section_id)
    if container is None:
        logger.warning("Section %r not found in blu-ray.com page", section_id)
        return []
    table = container.find("table")
    if table is None:
        logger.warning("No table found in section %r", section_id)
        return []

    releases: list[BlurayRelease] = []
    for index, row in enumerate(table.find_all("tr")):
        if index == 0:
            continue
        cells = row.find_all("td")
        if len(cells) < 2:
            continue
        link = cells[1].find("a")
        if link is None:
            continue
        href = link.get("href")
        raw_title = link.get_text().strip()
        if not raw_title or not href:
            continue

        url = href if href.startswith("http") else f"{BASE_URL}{href}"
        four_k = is_4k(raw_title, url)
        if fmt == FORMAT_4K and not four_k:
            continue
        if fmt == FORMAT_BLURAY and four_k:
            continue

        date_text = cells[2].get_text() if len(cells) > 2 else ""
        releases.append(
            BlurayRelease(
                title=clean_title(raw_title),
                raw_title=raw_title,
                source_url=url,
                release_date=parse_date(date_text),
                format="4K" if four_k else "Blu-ray",
                section=section,
            )
        )
    return releases


def parse_all_sections(html: str, fmt: str = FORMAT_ALL) -> list[BlurayRelease]:
    releases: list[BlurayRelease] = []
    for section in SECTIONS:
        releases.extend(parse_section(html, section, fmt))
    return releases


def release_candidate(release: BlurayRelease, index: int) -> RawCandidate:
    return RawCandidate(
        id=f"{release.slug_id}:{index}",
        title=release.title,
        year=release.release_date.year if release.release_date else None,
        payload={"index": index},
    )


def release_to_result(
    release: BlurayRelease,
    *,
    criteria: SearchCriteria | None = None,
    score: float | None = None,
    fetched_at: datetime | None = None,
) -> CanonicalResult:
    year = release.release_date.year if release.release_date else None
    lookup_title = criteria.clean_title if criteria else release.title
    return CanonicalResult(
        title=release.title,
        kind=MediaKind.MOVIE,
        year=year,
        formats=[release.format],
        identifiers={"bluray": [release.slug_id]},
        attribution=Attribution(link_url=release.source_url, link_text="View on Blu-ray.com", logo_key="bluray"),
        sources=[
            Source(
                provider="bluray",
                ids={"release": release.slug_id},
                urls={"release": release.source_url},
                fetched_at=fetched_at or datetime.now(timezone.utc),
                raw={"score": score} if score is not None else {},
            )
        ],
        external_id=namespaced_id("bluray", release.slug_id),
        fingerprint=make_collectable_fingerprint(release.title, None, year, MediaKind.MOVIE),
        lightweight_fingerprint=make_lightweight_fingerprint(
            lookup_title, criteria.creator if criteria else None, MediaKind.MOVIE
        ),
        provider="bluray",
        score=score,
        extras={
            "rawTitle": release.raw_title,
            "section": release.section,
            "releaseDate": release.release_date.isoformat() if release.release_date else None,
        },
    )
