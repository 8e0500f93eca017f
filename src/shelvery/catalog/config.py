# ABOUTME: Declarative container configuration, alias resolution, and provider credential settings.
# ABOUTME: ConfigStore holds an immutable snapshot that reload() swaps atomically.

import json
import logging
import os
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import Any

from shelvery import __version__
from shelvery.catalog.normalizer import normalize_string

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV = "SHELVERY_CONTAINERS_PATH"
MODE_FALLBACK = "fallback"
MODE_MERGE = "merge"
MISSING_PRIORITY = 999

CONTAINER_ALIASES: Mapping[str, str] = MappingProxyType(
    {
        "book": "books",
        "novel": "books",
        "manga": "books",
        "comic": "books",
        "game": "games",
        "videogame": "games",
        "video game": "games",
        "movie": "movies",
        "film": "movies",
        "dvd": "movies",
        "bluray": "movies",
        "blu-ray": "movies",
        "show": "tv",
        "series": "tv",
        "television": "tv",
        "record": "vinyl",
        "album": "vinyl",
        "music": "vinyl",
    }
)

_TRUE_VALUES = frozenset({"true", "1", "yes"})


class ConfigError(ValueError):
    """Raised when a container configuration file cannot be read or parsed."""


def parse_boolean(value: Any) -> bool:
    """Interpret env-style flags: true/1/yes (any case) are true, everything else false."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in _TRUE_VALUES


@dataclass(frozen=True)
class ApiEntry:
    """One provider slot in a container."""

    name: str
    priority: int | None = None
    enabled: bool = True
    env_disable_key: str | None = None

    @property
    def sort_priority(self) -> int:
        return self.priority if self.priority is not None else MISSING_PRIORITY

    def disabled_by(self, env: Mapping[str, str]) -> bool:
        return bool(self.env_disable_key) and parse_boolean(env.get(self.env_disable_key))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ApiEntry":
        name = normalize_string(data.get("name"))
        if not name:
            raise ConfigError(f"API entry without a name: {dict(data)!r}")
        priority = data.get("priority")
        return cls(
            name=name,
            priority=int(priority) if isinstance(priority, (int, float)) and not isinstance(priority, bool) else None,
            enabled=bool(data.get("enabled", False)),
            env_disable_key=normalize_string(data.get("envDisableKey")) or None,
        )


@dataclass(frozen=True)
class ContainerConfig:
    """Routing rules for one media-type container."""

    key: str
    mode: str = MODE_FALLBACK
    apis: tuple[ApiEntry, ...] = ()
    min_metadata_score: float | None = None

    @classmethod
    def from_dict(cls, key: str, data: Mapping[str, Any]) -> "ContainerConfig":
        mode = normalize_string(data.get("mode")).lower() or MODE_FALLBACK
        if mode not in (MODE_FALLBACK, MODE_MERGE):
            logger.warning("Container %r has unknown mode %r, using fallback", key, mode)
            mode = MODE_FALLBACK
        apis = data.get("apis") or []
        if not isinstance(apis, list):
            raise ConfigError(f"Container {key!r}: 'apis' must be a list")
        score = data.get("minMetadataScore")
        return cls(
            key=key,
            mode=mode,
            apis=tuple(ApiEntry.from_dict(api) for api in apis if isinstance(api, Mapping)),
            min_metadata_score=float(score) if isinstance(score, (int, float)) and not isinstance(score, bool) else None,
        )

    def enabled_apis(self, env: Mapping[str, str] | None = None) -> list[ApiEntry]:
        """Enabled entries not switched off by their env flag, by ascending priority.

        The sort is stable, so entries sharing a priority keep file order.
        """
        env = os.environ if env is None else env
        entries = [api for api in self.apis if api.enabled and not api.disabled_by(env)]
        return sorted(entries, key=lambda api: api.sort_priority)


@dataclass(frozen=True)
class CatalogConfig:
    """Immutable snapshot of every container's routing rules."""

    containers: Mapping[str, ContainerConfig] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CatalogConfig":
        if not isinstance(data, Mapping):
            raise ConfigError("Container configuration must be a JSON object")
        containers = {
            str(key).strip().lower(): ContainerConfig.from_dict(str(key).strip().lower(), value)
            for key, value in data.items()
            if isinstance(value, Mapping)
        }
        return cls(containers=MappingProxyType(containers))

    def resolve_key(self, container: str | None) -> str | None:
        """Map a container name or alias ('novel', 'dvd', ...) to a configured key."""
        normalized = normalize_string(container).lower()
        if not normalized:
            return None
        if normalized in self.containers:
            return normalized
        alias = CONTAINER_ALIASES.get(normalized)
        if alias and alias in self.containers:
            return alias
        return None

    def get_container(self, container: str | None) -> ContainerConfig | None:
        key = self.resolve_key(container)
        return self.containers[key] if key else None


def default_config_path() -> Path:
    """Path from SHELVERY_CONTAINERS_PATH, else the containers.json shipped with the package."""
    override = os.environ.get(CONFIG_PATH_ENV)
    if override:
        return Path(override)
    return Path(str(resources.files("shelvery.catalog").joinpath("containers.json")))


def load_config(path: Path | str) -> CatalogConfig:
    """Read and parse a container configuration file.

    Raises:
        ConfigError: If the file is missing, unreadable, or malformed.
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Cannot read container config {path}: {exc}") from exc
    except ValueError as exc:
        raise ConfigError(f"Invalid JSON in container config {path}: {exc}") from exc
    return CatalogConfig.from_dict(data)


class ConfigStore:
    """Holds the current CatalogConfig and swaps it atomically on reload.

    Readers take ``snapshot()`` once per lookup and keep using it, so an
    in-flight lookup never sees a half-applied reload.
    """

    def __init__(self, path: Path | str | None = None, *, config: CatalogConfig | None = None) -> None:
        self._path = Path(path) if path is not None else None
        self._lock = threading.Lock()
        if config is not None:
            self._config = config
            return
        try:
            self._config = load_config(self.path)
        except ConfigError as exc:
            logger.warning("%s; using empty container config", exc)
            self._config = CatalogConfig()

    @property
    def path(self) -> Path:
        return self._path if self._path is not None else default_config_path()

    def snapshot(self) -> CatalogConfig:
        return self._config

    def reload(self) -> bool:
        """Re-read the config file. On failure the previous snapshot stays in place.

        Returns:
            True if a new snapshot was installed.
        """
        try:
            config = load_config(self.path)
        except ConfigError as exc:
            logger.warning("Config reload failed, keeping previous config: %s", exc)
            return False
        with self._lock:
            self._config = config
        logger.info("Container config reloaded from %s", self.path)
        return True

    def replace(self, config: CatalogConfig) -> None:
        with self._lock:
            self._config = config


def _env_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = normalize_string(env.get(key))
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r", key, raw)
        return default


def _timeout(env: Mapping[str, str], key: str, default_ms: int) -> float:
    return max(1, _env_int(env, key, default_ms)) / 1000.0


@dataclass(frozen=True)
class CatalogSettings:
    """Credentials, endpoints and budgets for every provider.

    Timeouts are seconds (read from ``*_TIMEOUT_MS`` in milliseconds).
    """

    tmdb_api_key: str | None = None
    tmdb_base_url: str = "https://api.themoviedb.org/3"
    tmdb_image_base_url: str = "https://image.tmdb.org/t/p"
    tmdb_timeout: float = 8.0
    tmdb_retries: int = 2
    igdb_client_id: str | None = None
    igdb_client_secret: str | None = None
    igdb_base_url: str = "https://api.igdb.com/v4"
    igdb_auth_url: str = "https://id.twitch.tv/oauth2/token"
    igdb_timeout: float = 8.0
    igdb_retries: int = 2
    openlibrary_base_url: str = "https://openlibrary.org"
    openlibrary_timeout: float = 8.0
    openlibrary_retries: int = 2
    hardcover_api_token: str | None = None
    hardcover_base_url: str = "https://api.hardcover.app/v1/graphql"
    hardcover_requests_per_minute: int = 55
    hardcover_timeout: float = 8.0
    hardcover_retries: int = 2
    nyt_api_key: str | None = None
    nyt_base_url: str = "https://api.nytimes.com/svc/books/v3"
    nyt_timeout: float = 10.0
    nyt_retries: int = 2
    bluray_base_url: str = "https://www.blu-ray.com"
    bluray_timeout: float = 8.0
    bluray_retries: int = 2
    user_agent: str = f"shelvery/{__version__}"

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "CatalogSettings":
        env = os.environ if env is None else env
        defaults = cls()

        def text(key: str, default: str | None = None) -> str | None:
            return normalize_string(env.get(key)) or default

        return cls(
            tmdb_api_key=text("TMDB_API_KEY"),
            tmdb_base_url=text("TMDB_BASE_URL", defaults.tmdb_base_url),
            tmdb_image_base_url=text("TMDB_IMAGE_BASE_URL", defaults.tmdb_image_base_url),
            tmdb_timeout=_timeout(env, "TMDB_TIMEOUT_MS", 8000),
            tmdb_retries=_env_int(env, "TMDB_RETRIES", 2),
            igdb_client_id=text("IGDB_CLIENT_ID"),
            igdb_client_secret=text("IGDB_CLIENT_SECRET"),
            igdb_base_url=text("IGDB_BASE_URL", defaults.igdb_base_url),
            igdb_auth_url=text("IGDB_AUTH_URL", defaults.igdb_auth_url),
            igdb_timeout=_timeout(env, "IGDB_TIMEOUT_MS", 8000),
            igdb_retries=_env_int(env, "IGDB_RETRIES", 2),
            openlibrary_base_url=text("OPENLIBRARY_BASE_URL", defaults.openlibrary_base_url),
            openlibrary_timeout=_timeout(env, "OPENLIBRARY_TIMEOUT_MS", 8000),
            openlibrary_retries=_env_int(env, "OPENLIBRARY_RETRIES", 2),
            hardcover_api_token=text("HARDCOVER_API_TOKEN"),
            hardcover_base_url=text("HARDCOVER_API_URL", defaults.hardcover_base_url),
            hardcover_requests_per_minute=_env_int(env, "HARDCOVER_REQUESTS_PER_MINUTE", 55),
            hardcover_timeout=_timeout(env, "HARDCOVER_TIMEOUT_MS", 8000),
            hardcover_retries=_env_int(env, "HARDCOVER_RETRIES", 2),
            nyt_api_key=text("NYT_BOOKS_API_KEY"),
            nyt_base_url=text("NYT_BASE_URL", defaults.nyt_base_url),
            nyt_timeout=_timeout(env, "NYT_TIMEOUT_MS", 10000),
            nyt_retries=_env_int(env, "NYT_RETRIES", 2),
            bluray_base_url=text("BLURAY_BASE_URL", defaults.bluray_base_url),
            bluray_timeout=_timeout(env, "BLURAY_TIMEOUT_MS", 8000),
            bluray_retries=_env_int(env, "BLURAY_RETRIES", 2),
            user_agent=text("SHELVERY_USER_AGENT", defaults.user_agent),
        )
