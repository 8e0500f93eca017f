# ABOUTME: Parsing functions for TMDB movie and TV API JSON responses.
# ABOUTME: Converts search hits, detail payloads and trending/upcoming list entries into catalog records.

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
from shelvery.catalog.types import (
    Attribution,
    CanonicalResult,
    Image,
    MediaKind,
    SearchCriteria,
    Source,
    coerce_year,
)

DEFAULT_IMAGE_BASE_URL = "https://image.tmdb.org/t/p"
DEFAULT_API_BASE_URL = "https://api.themoviedb.org/3"
_SITE_URL = "https://www.themoviedb.org"
_PREFERRED_REGIONS = ("US", "GB", "CA")
_TOP_CAST = 6
_DISCLAIMER = "This product uses the TMDB API but is not endorsed or certified by TMDB."

MOVIE_GENRES = {
    28: "Action",
    12: "Adventure",
    16: "Animation",
    35: "Comedy",
    80: "Crime",
    99: "Documentary",
    18: "Drama",
    10751: "Family",
    14: "Fantasy",
    36: "History",
    27: "Horror",
    10402: "Music",
    9648: "Mystery",
    10749: "Romance",
    878: "Sci-Fi",
    10770: "TV Movie",
    53: "Thriller",
    10752: "War",
    37: "Western",
}
TV_GENRES = {
    10759: "Action & Adventure",
    16: "Animation",
    35: "Comedy",
    80: "Crime",
    99: "Documentary",
    18: "Drama",
    10751: "Family",
    10762: "Kids",
    9648: "Mystery",
    10763: "News",
    10764: "Reality",
    10765: "Sci-Fi & Fantasy",
    10766: "Soap",
    10767: "Talk",
    10768: "War & Politics",
    37: "Western",
}


def build_image_variants(path: str | None, image_base_url: str = DEFAULT_IMAGE_BASE_URL) -> dict[str, str] | None:
    """Expand a TMDB image path into sized URLs (w185 / w342 / w780 / original)."""
    if not path:
        return None
    base = image_base_url.rstrip("/")
    normalized = path if path.startswith("/") else f"/{path}"
    return {
        "small": f"{base}/w185{normalized}",
        "medium": f"{base}/w342{normalized}",
        "large": f"{base}/w780{normalized}",
        "original": f"{base}/original{normalized}",
    }


def _search_candidate(result: dict[str, Any], title_keys: tuple[str, ...], date_key: str) -> RawCandidate:
    title = next((result[key] for key in title_keys if result.get(key)), "")
    return RawCandidate(
        id=normalize_string(result.get("id")),
        title=title,
        year=coerce_year(result.get(date_key)),
        popularity=result.get("popularity"),
        vote_count=result.get("vote_count"),
        has_image=bool(result.get("poster_path")),
        payload=result,
    )


def parse_movie_search(data: dict[str, Any]) -> list[RawCandidate]:
    """Turn a /search/movie response into ranker candidates."""
    results = data.get("results") or []
    return [
        _search_candidate(r, ("title", "original_title"), "release_date")
        for r in results
        if isinstance(r, dict)
    ]


def parse_tv_search(data: dict[str, Any]) -> list[RawCandidate]:
    """Turn a /search/tv response into ranker candidates."""
    results = data.get("results") or []
    return [
        _search_candidate(r, ("name", "original_name"), "first_air_date")
        for r in results
        if isinstance(r, dict)
    ]


def _images(record: dict[str, Any], image_base_url: str) -> tuple[list[Image], dict[str, str] | None]:
    poster = build_image_variants(record.get("poster_path"), image_base_url)
    backdrop = build_image_variants(record.get("backdrop_path"), image_base_url)
    images: list[Image] = []
    for kind, variants in (("poster", poster), ("backdrop", backdrop)):
        if variants:
            images.append(
                Image(
                    kind=kind,
                    url_small=variants["small"],
                    url_medium=variants["medium"],
                    url_large=variants["large"],
                    provider="tmdb",
                )
            )
    return images, poster


def _raw_stats(record: dict[str, Any], score: float | None) -> dict[str, Any]:
    raw: dict[str, Any] = {}
    if score is not None:
        raw["score"] = score
    for key, out in (("popularity", "popularity"), ("vote_average", "voteAverage"), ("vote_count", "voteCount")):
        if record.get(key) is not None:
            raw[out] = record[key]
    return raw


def _keywords(record: dict[str, Any]) -> list[str]:
    keywords = record.get("keywords") or {}
    entries = keywords.get("keywords") or keywords.get("results") or []
    return unique_strings(names_of(entries))


def find_primary_certification(release_dates: list[dict[str, Any]]) -> dict[str, Any] | None:
    """Pick the movie certification for the first preferred region that has one."""
    regions = list(_PREFERRED_REGIONS) + [r.get("iso_3166_1") for r in release_dates if r]
    for region in regions:
        entry = next((r for r in release_dates if r and r.get("iso_3166_1") == region), None)
        if not entry:
            continue
        for release in entry.get("release_dates") or []:
            if release and release.get("certification"):
                return {
                    "region": region,
                    "certification": release["certification"],
                    "releaseDate": release.get("release_date"),
                }
    return None


def find_primary_content_rating(content_ratings: dict[str, Any] | None) -> dict[str, Any] | None:
    """Pick the TV content rating for the first preferred region that has one."""
    results = (content_ratings or {}).get("results") or []
    regions = list(_PREFERRED_REGIONS) + [r.get("iso_3166_1") for r in results if r]
    for region in regions:
        entry = next((r for r in results if r and r.get("iso_3166_1") == region), None)
        if entry and entry.get("rating"):
            return {"region": region, "certification": entry["rating"]}
    return None


def movie_to_result(
    movie: dict[str, Any],
    *,
    criteria: SearchCriteria | None = None,
    score: float | None = None,
    image_base_url: str = DEFAULT_IMAGE_BASE_URL,
    api_base_url: str = DEFAULT_API_BASE_URL,
    fetched_at: datetime | None = None,
) -> CanonicalResult | None:
    """Map a TMDB /movie/{id} detail payload (with credits and keywords) to a CanonicalResult.

    The director is the primary creator; the top-billed cast member stands
    in when no director is credited.
    """
    if not movie or not movie.get("id"):
        return None

    movie_id = str(movie["id"])
    title = movie.get("title") or movie.get("name") or movie.get("original_title") or ""
    year = coerce_year(movie.get("release_date"))

    credits = movie.get("credits") or {}
    directors = unique_strings(
        m.get("name") for m in credits.get("crew") or [] if m and normalize_compare(m.get("job")) == "director"
    )
    cast = unique_strings(names_of((credits.get("cast") or [])[:_TOP_CAST]))
    primary_creator = (directors or cast or [None])[0]

    identifiers: dict[str, list[str]] = {"tmdb_movie": [movie_id]}
    if movie.get("imdb_id"):
        identifiers["imdb"] = [str(movie["imdb_id"])]

    images, poster = _images(movie, image_base_url)
    companies = unique_strings(names_of(movie.get("production_companies")))

    urls = {"movie": f"{_SITE_URL}/movie/{movie_id}", "api": f"{api_base_url.rstrip('/')}/movie/{movie_id}"}
    ids = {"movie": movie_id}
    if movie.get("imdb_id"):
        ids["imdb"] = str(movie["imdb_id"])
        urls["imdb"] = f"https://www.imdb.com/title/{movie['imdb_id']}/"

    fmt = normalize_string(criteria.format) if criteria else ""
    lookup_title = criteria.clean_title if criteria else title

    return CanonicalResult(
        title=title,
        kind=MediaKind.MOVIE,
        primary_creator=primary_creator,
        year=year,
        description=movie.get("overview") or None,
        subtitle=movie.get("tagline") or None,
        creators=unique_strings(directors + cast),
        publishers=companies,
        tags=_keywords(movie),
        genre=unique_strings(names_of(movie.get("genres"))),
        runtime=movie.get("runtime") or None,
        formats=[fmt] if fmt else [],
        identifiers=identifiers,
        images=images,
        cover_url=select_cover_url(images),
        cover_image_url=(poster["large"] if poster else None),
        cover_image_source="external" if poster else None,
        attribution=Attribution(
            link_url=urls["movie"],
            link_text="View on TMDB",
            logo_key="tmdb",
            disclaimer_text=_DISCLAIMER,
        ),
        sources=[
            Source(
                provider="tmdb",
                ids=ids,
                urls=urls,
                fetched_at=fetched_at or datetime.now(timezone.utc),
                raw=_raw_stats(movie, score),
            )
        ],
        external_id=namespaced_id("tmdb", movie_id),
        fingerprint=make_collectable_fingerprint(title, primary_creator, year, MediaKind.MOVIE),
        lightweight_fingerprint=make_lightweight_fingerprint(
            lookup_title, criteria.creator if criteria else primary_creator, MediaKind.MOVIE
        ),
        provider="tmdb",
        score=score,
        extras={
            "status": movie.get("status"),
            "releaseDate": movie.get("release_date"),
            "certification": find_primary_certification((movie.get("release_dates") or {}).get("results") or []),
            "originalTitle": movie.get("original_title"),
            "originalLanguage": movie.get("original_language"),
            "budget": movie.get("budget"),
            "revenue": movie.get("revenue"),
            "homepage": movie.get("homepage") or None,
            "posterOriginalUrl": poster["original"] if poster else None,
        },
    )


def tv_to_result(
    show: dict[str, Any],
    *,
    criteria: SearchCriteria | None = None,
    score: float | None = None,
    image_base_url: str = DEFAULT_IMAGE_BASE_URL,
    api_base_url: str = DEFAULT_API_BASE_URL,
    fetched_at: datetime | None = None,
) -> CanonicalResult | None:
    """Map a TMDB /tv/{id} detail payload (with credits and keywords) to a CanonicalResult.

    Showrunners (``created_by``) come first among creators; the network
    stands in for the publisher.
    """
    if not show or not show.get("id"):
        return None

    show_id = str(show["id"])
    title = show.get("name") or show.get("original_name") or ""
    year = coerce_year(show.get("first_air_date"))

    showrunners = unique_strings(names_of(show.get("created_by")))
    cast = unique_strings(names_of(((show.get("credits") or {}).get("cast") or [])[:_TOP_CAST]))
    primary_creator = (showrunners or cast or [None])[0]

    identifiers: dict[str, list[str]] = {"tmdb_tv": [show_id]}
    networks = [n for n in show.get("networks") or [] if isinstance(n, dict)]
    network_ids = [str(n["id"]) for n in networks if n.get("id") is not None]
    if network_ids:
        identifiers["tmdb_network"] = network_ids

    images, poster = _images(show, image_base_url)
    runtimes = show.get("episode_run_time") or []

    urls = {"tv": f"{_SITE_URL}/tv/{show_id}", "api": f"{api_base_url.rstrip('/')}/tv/{show_id}"}
    fmt = normalize_string(criteria.format) if criteria else ""
    lookup_title = criteria.clean_title if criteria else title

    return CanonicalResult(
        title=title,
        kind=MediaKind.TV,
        primary_creator=primary_creator,
        year=year,
        description=show.get("overview") or None,
        subtitle=show.get("tagline") or None,
        creators=unique_strings(showrunners + cast),
        publishers=unique_strings(names_of(networks) + names_of(show.get("production_companies"))),
        tags=_keywords(show),
        genre=unique_strings(names_of(show.get("genres"))),
        runtime=runtimes[0] if runtimes else None,
        formats=[fmt] if fmt else [],
        identifiers=identifiers,
        images=images,
        cover_url=select_cover_url(images),
        cover_image_url=(poster["large"] if poster else None),
        cover_image_source="external" if poster else None,
        attribution=Attribution(
            link_url=urls["tv"],
            link_text="View on TMDB",
            logo_key="tmdb",
            disclaimer_text=_DISCLAIMER,
        ),
        sources=[
            Source(
                provider="tmdb",
                ids={"tv": show_id},
                urls=urls,
                fetched_at=fetched_at or datetime.now(timezone.utc),
                raw=_raw_stats(show, score),
            )
        ],
        external_id=namespaced_id("tmdbTv", show_id),
        fingerprint=make_collectable_fingerprint(title, primary_creator, year, MediaKind.TV),
        lightweight_fingerprint=make_lightweight_fingerprint(
            lookup_title, criteria.creator if criteria else primary_creator, MediaKind.TV
        ),
        provider="tmdbTv",
        score=score,
        extras={
            "status": show.get("status"),
            "firstAirDate": show.get("first_air_date"),
            "lastAirDate": show.get("last_air_date"),
            "contentRating": find_primary_content_rating(show.get("content_ratings")),
            "originalTitle": show.get("original_name"),
            "originalLanguage": show.get("original_language"),
            "numberOfSeasons": show.get("number_of_seasons"),
            "numberOfEpisodes": show.get("number_of_episodes"),
            "inProduction": show.get("in_production"),
            "homepage": show.get("homepage") or None,
            "posterOriginalUrl": poster["original"] if poster else None,
        },
    )


def discovered_to_result(
    record: dict[str, Any],
    kind: MediaKind,
    item_type: str,
    *,
    image_base_url: str = DEFAULT_IMAGE_BASE_URL,
    fetched_at: datetime | None = None,
) -> CanonicalResult | None:
    """Map one entry of a trending, upcoming or now-playing list to a CanonicalResult.

    List entries carry no credits, so there is no primary creator. Genre
    ids are resolved through the static TMDB genre tables.
    """
    if not record or not record.get("id"):
        return None

    is_tv = kind is MediaKind.TV
    record_id = str(record["id"])
    title_keys = ("name", "original_name") if is_tv else ("title", "original_title")
    title = next((record[key] for key in title_keys if record.get(key)), "")
    if not title:
        return None

    release_date = record.get("first_air_date" if is_tv else "release_date") or None
    year = coerce_year(release_date)
    genre_table = TV_GENRES if is_tv else MOVIE_GENRES
    images, poster = _images(record, image_base_url)
    site_kind = "tv" if is_tv else "movie"
    provider = "tmdbTv" if is_tv else "tmdb"
    page_url = f"{_SITE_URL}/{site_kind}/{record_id}"

    return CanonicalResult(
        title=title,
        kind=kind,
        year=year,
        description=record.get("overview") or None,
        genre=unique_strings(genre_table.get(genre_id) for genre_id in record.get("genre_ids") or []),
        identifiers={f"tmdb_{site_kind}": [record_id]},
        images=images,
        cover_url=select_cover_url(images),
        cover_image_url=(poster["large"] if poster else None),
        cover_image_source="external" if poster else None,
        attribution=Attribution(
            link_url=page_url,
            link_text="View on TMDB",
            logo_key="tmdb",
            disclaimer_text=_DISCLAIMER,
        ),
        sources=[
            Source(
                provider="tmdb",
                ids={site_kind: record_id},
                urls={site_kind: page_url},
                fetched_at=fetched_at or datetime.now(timezone.utc),
                raw=_raw_stats(record, None),
            )
        ],
        external_id=namespaced_id(provider, record_id),
        fingerprint=make_collectable_fingerprint(title, None, year, kind),
        lightweight_fingerprint=make_lightweight_fingerprint(title, None, kind),
        provider=provider,
        extras={
            "itemType": item_type,
            "releaseDate": release_date,
            "originalLanguage": record.get("original_language"),
            "posterOriginalUrl": poster["original"] if poster else None,
        },
    )


def parse_discovery_list(
    data: dict[str, Any],
    kind: MediaKind,
    item_type: str,
    limit: int,
    *,
    image_base_url: str = DEFAULT_IMAGE_BASE_URL,
    fetched_at: datetime | None = None,
) -> list[CanonicalResult]:
    """Map the first ``limit`` entries of a TMDB list response, in upstream order."""
    entries = [r for r in data.get("results") or [] if isinstance(r, dict)]
    results = (
        discovered_to_result(r, kind, item_type, image_base_url=image_base_url, fetched_at=fetched_at)
        for r in entries[: max(0, limit)]
    )
    return [r for r in results if r is not None]
