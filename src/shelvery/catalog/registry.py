# ABOUTME: Wiring of concrete providers from CatalogSettings.
# ABOUTME: Produces the name -> factory mapping a CatalogRouter is constructed with.

from collections.abc import Callable

from shelvery.catalog.config import CatalogSettings, ConfigStore
from shelvery.catalog.http import HttpClient
from shelvery.catalog.provider import CatalogProvider
from shelvery.catalog.providers.bluray import BlurayProvider
from shelvery.catalog.providers.hardcover import HardcoverProvider
from shelvery.catalog.providers.igdb import IgdbProvider
from shelvery.catalog.providers.nyt import NytBooksProvider
from shelvery.catalog.providers.openlibrary import OpenLibraryProvider
from shelvery.catalog.providers.tmdb import TmdbProvider
from shelvery.catalog.providers.tmdb_tv import TmdbTvProvider
from shelvery.catalog.retry import RetryPolicy
from shelvery.catalog.router import CatalogRouter


def build_default_adapters(
    settings: CatalogSettings,
    http_client: HttpClient,
    *,
    retry_policy: RetryPolicy | None = None,
) -> dict[str, Callable[[], CatalogProvider]]:
    """Factories for every built-in provider, keyed by the name used in containers.json.

    Each factory builds its provider on first use, with the provider's own
    rate limiter and the retry budget from ``settings``.
    """
    base = retry_policy or RetryPolicy()

    return {
        "tmdb": lambda: TmdbProvider(
            http_client,
            api_key=settings.tmdb_api_key,
            base_url=settings.tmdb_base_url,
            image_base_url=settings.tmdb_image_base_url,
            retry_policy=base.with_retries(settings.tmdb_retries),
            timeout=settings.tmdb_timeout,
        ),
        "tmdbTv": lambda: TmdbTvProvider(
            http_client,
            api_key=settings.tmdb_api_key,
            base_url=settings.tmdb_base_url,
            image_base_url=settings.tmdb_image_base_url,
            retry_policy=base.with_retries(settings.tmdb_retries),
            timeout=settings.tmdb_timeout,
        ),
        "igdb": lambda: IgdbProvider(
            http_client,
            client_id=settings.igdb_client_id,
            client_secret=settings.igdb_client_secret,
            base_url=settings.igdb_base_url,
            auth_url=settings.igdb_auth_url,
            retry_policy=base.with_retries(settings.igdb_retries),
            timeout=settings.igdb_timeout,
        ),
        "openLibrary": lambda: OpenLibraryProvider(
            http_client,
            base_url=settings.openlibrary_base_url,
            retry_policy=base.with_retries(settings.openlibrary_retries),
            timeout=settings.openlibrary_timeout,
        ),
        "hardcover": lambda: HardcoverProvider(
            http_client,
            token=settings.hardcover_api_token,
            base_url=settings.hardcover_base_url,
            requests_per_minute=settings.hardcover_requests_per_minute,
            retry_policy=base.with_retries(settings.hardcover_retries),
            timeout=settings.hardcover_timeout,
        ),
        "nyt": lambda: NytBooksProvider(
            http_client,
            api_key=settings.nyt_api_key,
            base_url=settings.nyt_base_url,
            retry_policy=base.with_retries(settings.nyt_retries),
            timeout=settings.nyt_timeout,
        ),
        "bluray": lambda: BlurayProvider(
            http_client,
            base_url=settings.bluray_base_url,
            retry_policy=base.with_retries(settings.bluray_retries),
            timeout=settings.bluray_timeout,
        ),
    }


def build_router(
    settings: CatalogSettings,
    http_client: HttpClient,
    config_store: ConfigStore | None = None,
) -> CatalogRouter:
    """A CatalogRouter over every built-in provider."""
    return CatalogRouter(build_default_adapters(settings, http_client), config_store)
