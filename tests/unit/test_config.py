# ABOUTME: Unit tests for container configuration, aliases, env disable flags and settings.
# ABOUTME: Also covers ConfigStore reload semantics and the shipped containers.json.

import json
from pathlib import Path

import pytest

from shelvery.catalog.config import (
    ApiEntry,
    CatalogConfig,
    CatalogSettings,
    ConfigError,
    ConfigStore,
    ContainerConfig,
    load_config,
    parse_boolean,
)


class TestParseBoolean:
    """Tests for parse_boolean."""

    @pytest.mark.parametrize("value", ["true", "TRUE", " 1 ", "yes", True])
    def test_truthy(self, value: object) -> None:
        assert parse_boolean(value) is True

    @pytest.mark.parametrize("value", ["false", "0", "no", "", None, "on", False])
    def test_falsy(self, value: object) -> None:
        assert parse_boolean(value) is False


class TestApiEntry:
    """Tests for ApiEntry parsing."""

    def test_missing_enabled_means_disabled(self) -> None:
        assert ApiEntry.from_dict({"name": "tmdb", "priority": 1}).enabled is False

    def test_missing_priority_sorts_last(self) -> None:
        entry = ApiEntry.from_dict({"name": "tmdb", "enabled": True})
        assert entry.priority is None
        assert entry.sort_priority == 999

    def test_name_required(self) -> None:
        with pytest.raises(ConfigError):
            ApiEntry.from_dict({"priority": 1})


class TestContainerConfig:
    """Tests for ContainerConfig."""

    def _container(self) -> ContainerConfig:
        return ContainerConfig.from_dict(
            "books",
            {
                "apis": [
                    {"name": "c", "enabled": True},
                    {"name": "b", "priority": 2, "enabled": True, "envDisableKey": "DISABLE_B"},
                    {"name": "a", "priority": 1, "enabled": True},
                    {"name": "off", "priority": 0, "enabled": False},
                ]
            },
        )

    def test_enabled_apis_sorted_by_priority(self) -> None:
        assert [api.name for api in self._container().enabled_apis({})] == ["a", "b", "c"]

    def test_env_flag_disables_api(self) -> None:
        names = [api.name for api in self._container().enabled_apis({"DISABLE_B": "TRUE"})]
        assert names == ["a", "c"]

    def test_non_true_env_flag_keeps_api(self) -> None:
        names = [api.name for api in self._container().enabled_apis({"DISABLE_B": "off"})]
        assert names == ["a", "b", "c"]

    def test_default_mode_is_fallback(self) -> None:
        assert ContainerConfig.from_dict("tv", {"apis": []}).mode == "fallback"

    def test_unknown_mode_falls_back(self) -> None:
        assert ContainerConfig.from_dict("tv", {"mode": "roundrobin", "apis": []}).mode == "fallback"

    def test_apis_must_be_a_list(self) -> None:
        with pytest.raises(ConfigError):
            ContainerConfig.from_dict("tv", {"apis": {"name": "tmdb"}})

    def test_min_metadata_score(self) -> None:
        assert ContainerConfig.from_dict("books", {"minMetadataScore": 70}).min_metadata_score == 70.0
        assert ContainerConfig.from_dict("books", {}).min_metadata_score is None


class TestCatalogConfig:
    """Tests for container resolution and aliases."""

    def _config(self) -> CatalogConfig:
        return CatalogConfig.from_dict({"Books": {"apis": []}, "movies": {"apis": []}})

    @pytest.mark.parametrize("name", ["books", "BOOKS", " novel ", "manga", "comic", "book"])
    def test_book_aliases(self, name: str) -> None:
        assert self._config().resolve_key(name) == "books"

    def test_movie_aliases(self) -> None:
        config = self._config()
        assert config.resolve_key("dvd") == "movies"
        assert config.resolve_key("blu-ray") == "movies"

    def test_alias_to_unconfigured_container(self) -> None:
        assert self._config().resolve_key("videogame") is None

    def test_unknown_and_blank(self) -> None:
        config = self._config()
        assert config.get_container("spaceships") is None
        assert config.get_container("") is None
        assert config.get_container(None) is None

    def test_rejects_non_object(self) -> None:
        with pytest.raises(ConfigError):
            CatalogConfig.from_dict(["books"])  # type: ignore[arg-type]


class TestConfigFiles:
    """Tests for load_config and ConfigStore."""

    def test_load_config(self, containers_file: Path) -> None:
        config = load_config(containers_file)
        assert set(config.containers) == {"books", "movies", "vinyl"}
        assert config.containers["vinyl"].mode == "merge"

    def test_load_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "containers.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_missing_file_gives_empty_config(self, tmp_path: Path) -> None:
        store = ConfigStore(tmp_path / "absent.json")
        assert dict(store.snapshot().containers) == {}

    def test_reload_swaps_snapshot(self, containers_file: Path) -> None:
        store = ConfigStore(containers_file)
        before = store.snapshot()

        containers_file.write_text(json.dumps({"games": {"apis": []}}), encoding="utf-8")

        assert store.reload() is True
        assert set(store.snapshot().containers) == {"games"}
        assert "books" in before.containers

    def test_failed_reload_keeps_previous(self, containers_file: Path) -> None:
        store = ConfigStore(containers_file)
        containers_file.write_text("oops", encoding="utf-8")

        assert store.reload() is False
        assert "books" in store.snapshot().containers

    def test_env_path_override(self, containers_file: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SHELVERY_CONTAINERS_PATH", str(containers_file))
        assert ConfigStore().path == containers_file

    def test_shipped_config(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("SHELVERY_CONTAINERS_PATH", raising=False)
        config = ConfigStore().snapshot()
        books = config.get_container("novel")
        assert books is not None
        assert [api.name for api in books.enabled_apis({})] == ["hardcover", "openLibrary"]
        assert config.get_container("vinyl").mode == "merge"


class TestCatalogSettings:
    """Tests for CatalogSettings.from_env."""

    def test_defaults(self) -> None:
        settings = CatalogSettings.from_env({})
        assert settings.tmdb_api_key is None
        assert settings.tmdb_timeout == 8.0
        assert settings.nyt_timeout == 10.0
        assert settings.hardcover_requests_per_minute == 55
        assert settings.user_agent.startswith("shelvery/")

    def test_reads_credentials_and_budgets(self) -> None:
        settings = CatalogSettings.from_env(
            {
                "TMDB_API_KEY": " abc ",
                "TMDB_TIMEOUT_MS": "2500",
                "IGDB_RETRIES": "4",
                "HARDCOVER_API_TOKEN": "Bearer t",
                "OPENLIBRARY_BASE_URL": "http://localhost:9000",
            }
        )
        assert settings.tmdb_api_key == "abc"
        assert settings.tmdb_timeout == 2.5
        assert settings.igdb_retries == 4
        assert settings.hardcover_api_token == "Bearer t"
        assert settings.openlibrary_base_url == "http://localhost:9000"

    def test_bad_integer_uses_default(self) -> None:
        settings = CatalogSettings.from_env({"TMDB_TIMEOUT_MS": "soon", "NYT_RETRIES": "x"})
        assert settings.tmdb_timeout == 8.0
        assert settings.nyt_retries == 2
