# ABOUTME: Parsing functions for IGDB game API JSON responses.
# ABOUTME: Builds Apicalypse search and discovery-list queries and maps game records into CanonicalResults.

from datetime import datetime, timezone
from typing import Any

from shelvery.catalog.candidate import RawCandidate
from shelvery.catalog.fingerprint import make_collectable_fingerprint, make_lightweight_fingerprint
from shelvery.catalog.normalizer import (
    names_of,
    namespaced_id,
    normalize_compare,
    normalize_string,
    select_cover_url,
    unique_strings,
)
from shelvery.catalog.types import CanonicalResult, Image, MediaKind, SearchCriteria, Source

_IMAGE_BASE_URL = "https://images.igdb.com/igdb/image/upload"
_MAX_QUERY_LIMIT = 50
# IGDB caps any single query at 500 rows.
_MAX_LIST_LIMIT = 500

# popularity_primitives.popularity_type values.
POPULARITY_VISITS = 1
POPULARITY_PLAYING = 3
POPULARITY_STEAM_PEAK_PLAYERS = 5

# Main games, remakes, remasters, expanded games, ports.
_CATEGORY_FILTER = "where category = (0, 8, 9, 10, 11);"

SEARCH_FIELDS = (
    "id",
    "name",
    "slug",
    "summary",
    "storyline",
    "first_release_date",
    "total_rating_count",
    "release_dates.date",
    "release_dates.platform.name",
    "platforms.name",
    "platforms.abbreviation",
    "genres.name",
    "involved_companies.company.name",
    "involved_companies.developer",
    "involved_companies.publisher",
    "keywords.name",
    "collection.name",
    "franchises.name",
    "cover.image_id",
    "screenshots.image_id",
    "artworks.image_id",
    "url",
)


def build_search_query(title: str, limit: int) -> str:
    """Build the Apicalypse body for a /games title search."""
    sanitized = normalize_string(title).replace('"', '\\"')
    capped = max(1, min(limit, _MAX_QUERY_LIMIT))
    return "\n".join(
        [
            f'search "{sanitized}";',
            f"fields {','.join(SEARCH_FIELDS)};",
            _CATEGORY_FILTER,
            f"limit {capped};",
        ]
    )


def image_url(image_id: str | None, preset: str = "t_cover_big") -> str | None:
    if not image_id:
        return None
    return f"{_IMAGE_BASE_URL}/{preset}/{image_id}.jpg"


def release_year(game: dict[str, Any]) -> int | None:
    """Year of first release, falling back to the earliest dated regional release."""
    timestamps = [game.get("first_release_date")]
    timestamps += sorted(
        r["date"] for r in game.get("release_dates") or [] if isinstance(r, dict) and r.get("date")
    )
    for timestamp in timestamps:
        if not timestamp:
            continue
        try:
            return datetime.fromtimestamp(int(timestamp), tz=timezone.utc).year
        except (OverflowError, OSError, ValueError):
            continue
    return None


def company_names(game: dict[str, Any], role: str) -> list[str]:
    """Names of involved companies flagged with ``role`` ('developer' or 'publisher')."""
    names = [
        (entry.get("company") or {}).get("name")
        for entry in game.get("involved_companies") or []
        if isinstance(entry, dict) and entry.get(role)
    ]
    return unique_strings(names)


def platform_names(game: dict[str, Any]) -> list[str]:
    names = names_of(game.get("platforms"))
    for release in game.get("release_dates") or []:
        if isinstance(release, dict):
            names.extend(names_of([release.get("platform")]))
    return unique_strings(names)


def parse_search_results(payload: Any) -> list[RawCandidate]:
    """Turn an IGDB /games array into ranker candidates."""
    if not isinstance(payload, list):
        return []
    candidates: list[RawCandidate] = []
    for game in payload:
        if not isinstance(game, dict):
            continue
        candidates.append(
            RawCandidate(
                id=normalize_string(game.get("id")),
                title=normalize_string(game.get("name")),
                year=release_year(game),
                vote_count=game.get("total_rating_count"),
                has_image=bool((game.get("cover") or {}).get("image_id")),
                payload=game,
            )
        )
    return candidates


def _pick_platform(platforms: list[str], wanted: str | None) -> str | None:
    needle = normalize_compare(wanted)
    if needle:
        for name in platforms:
            if needle in normalize_compare(name):
                return name
    return platforms[0] if platforms else None


def _variant_image(kind: str, image_id: str | None, large: str, medium: str) -> Image | None:
    if not image_id:
        return None
    return Image(
        kind=kind,
        url_large=image_url(image_id, large),
        url_medium=image_url(image_id, medium),
        url_small=image_url(image_id, "t_thumb"),
        provider="igdb",
    )


def game_to_result(
    game: dict[str, Any],
    *,
    criteria: SearchCriteria | None = None,
    score: float | None = None,
    fetched_at: datetime | None = None,
) -> CanonicalResult | None:
    """Map an IGDB game record to a CanonicalResult.

    The first credited developer is the primary creator. Collection and
    franchise names are folded into the tags.
    """
    if not game or not game.get("id"):
        return None

    game_id = str(game["id"])
    title = normalize_string(game.get("name"))
    developers = company_names(game, "developer")
    publishers = company_names(game, "publisher")
    primary_creator = developers[0] if developers else (criteria.creator if criteria else None)
    year = release_year(game)
    platforms = platform_names(game)

    description_parts = [normalize_string(game.get(key)) for key in ("summary", "storyline")]
    description = "\n\n".join(part for part in description_parts if part) or None

    tags = names_of(game.get("keywords"))
    if (game.get("collection") or {}).get("name"):
        tags.append(game["collection"]["name"])
    tags.extend(names_of(game.get("franchises")))

    images: list[Image] = []
    cover = _variant_image("cover", (game.get("cover") or {}).get("image_id"), "t_cover_big_2x", "t_cover_big")
    if cover:
        images.append(cover)
    for shot in game.get("screenshots") or []:
        image = _variant_image("screenshot", (shot or {}).get("image_id"), "t_screenshot_huge", "t_screenshot_big")
        if image:
            images.append(image)
    for art in game.get("artworks") or []:
        image = _variant_image("artwork", (art or {}).get("image_id"), "t_1080p", "t_720p")
        if image:
            images.append(image)

    fmt = normalize_string(criteria.format) if criteria else ""
    urls = {"game": game["url"]} if game.get("url") else {}
    lookup_title = criteria.clean_title if criteria else title

    return CanonicalResult(
        title=title,
        kind=MediaKind.GAME,
        primary_creator=primary_creator,
        year=year,
        description=description,
        creators=unique_strings(developers + publishers),
        publishers=publishers,
        tags=unique_strings(tags),
        genre=unique_strings(names_of(game.get("genres"))),
        formats=[fmt] if fmt else [],
        system_name=_pick_platform(platforms, criteria.format if criteria else None),
        identifiers={"igdb": [game_id]},
        images=images,
        cover_url=select_cover_url(images),
        cover_image_url=cover.url_large if cover else None,
        cover_image_source="external" if cover else None,
        sources=[
            Source(
                provider="igdb",
                ids={"game": game_id},
                urls=urls,
                fetched_at=fetched_at or datetime.now(timezone.utc),
                raw={"score": score} if score is not None else {},
            )
        ],
        external_id=namespaced_id("igdb", game_id),
        fingerprint=make_collectable_fingerprint(title, primary_creator, year, MediaKind.GAME),
        lightweight_fingerprint=make_lightweight_fingerprint(
            lookup_title, criteria.creator if criteria else primary_creator, MediaKind.GAME
        ),
        provider="igdb",
        score=score,
        extras={"platforms": platforms, "slug": game.get("slug")},
    )


# --- Discovery lists ---------------------------------------------------------

DISCOVERY_FIELDS = SEARCH_FIELDS + ("hypes", "follows", "total_rating")


def _list_limit(limit: int) -> int:
    return max(1, min(limit, _MAX_LIST_LIMIT))


def build_popularity_query(popularity_type: int, limit: int) -> str:
    """Top game ids for one popularity signal, most popular first."""
    return "\n".join(
        [
            "fields game_id,value,popularity_type;",
            f"where popularity_type = {int(popularity_type)};",
            "sort value desc;",
            f"limit {_list_limit(limit)};",
        ]
    )


def build_coming_soon_query(now: int, limit: int) -> str:
    """Upcoming release dates, soonest first.

    One game has a row per platform and region, so this over-fetches and
    callers de-duplicate with :func:`unique_game_ids`.
    """
    return "\n".join(
        [
            "fields game,date;",
            f"where game != null & date != null & date >= {int(now)};",
            "sort date asc;",
            f"limit {_list_limit(limit * 4)};",
        ]
    )


def build_recent_releases_query(now: int, limit: int) -> str:
    return "\n".join(
        [
            f"fields {','.join(DISCOVERY_FIELDS)};",
            f"where cover != null & first_release_date != null & first_release_date < {int(now)};",
            "sort first_release_date desc;",
            f"limit {_list_limit(limit)};",
        ]
    )


def build_games_by_ids_query(game_ids: list[int]) -> str:
    return "\n".join(
        [
            f"fields {','.join(DISCOVERY_FIELDS)};",
            f"where id = ({','.join(str(int(i)) for i in game_ids)});",
            f"limit {_list_limit(len(game_ids))};",
        ]
    )


def unique_game_ids(payload: Any, key: str, limit: int) -> list[int]:
    """Distinct ids under ``key`` in row order, at most ``limit`` of them."""
    if not isinstance(payload, list):
        return []
    ids: list[int] = []
    for row in payload:
        game_id = row.get(key) if isinstance(row, dict) else None
        if not isinstance(game_id, int) or isinstance(game_id, bool) or game_id in ids:
            continue
        ids.append(game_id)
        if len(ids) >= limit:
            break
    return ids


def order_by_ids(payload: Any, game_ids: list[int]) -> list[dict[str, Any]]:
    """Games from a by-id query, put back into the order of ``game_ids``."""
    if not isinstance(payload, list):
        return []
    by_id = {game.get("id"): game for game in payload if isinstance(game, dict)}
    return [by_id[game_id] for game_id in game_ids if game_id in by_id]


def discovered_game_to_result(
    game: dict[str, Any], item_type: str, *, fetched_at: datetime | None = None
) -> CanonicalResult | None:
    """A discovery-list game as a CanonicalResult, tagged with the list it came from."""
    result = game_to_result(game, fetched_at=fetched_at)
    if result is None:
        return None
    result.extras.update(
        {
            "itemType": item_type,
            "releaseDate": _release_date(game),
            "hypes": game.get("hypes"),
            "follows": game.get("follows"),
            "totalRating": game.get("total_rating"),
        }
    )
    return result


def _release_date(game: dict[str, Any]) -> str | None:
    timestamp = game.get("first_release_date")
    if not timestamp:
        return None
    try:
        return datetime.fromtimestamp(int(timestamp), tz=timezone.utc).date().isoformat()
    except (OverflowError, OSError, ValueError):
        return None
