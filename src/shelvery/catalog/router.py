# ABOUTME: Config-driven routing of catalog lookups across prioritized providers.
# ABOUTME: Fallback mode stops at the first hit; merge mode fans out concurrently and merges by priority.

import asyncio
import dataclasses
import logging
import os
from collections.abc import Callable, Mapping
from typing import Any, Union

from shelvery.catalog.config import MODE_MERGE, ApiEntry, ConfigStore, ContainerConfig
from shelvery.catalog.merger import merge_results
from shelvery.catalog.provider import DEFAULT_LOOKUP_LIMIT, CatalogProvider
from shelvery.catalog.scoring import resolve_min_metadata_score, score_book_result
from shelvery.catalog.types import CanonicalResult, SearchCriteria

logger = logging.getLogger(__name__)

AdapterSource = Union[CatalogProvider, Callable[[], CatalogProvider]]


class CatalogRouter:
    """Routes lookups for a media-type container through its configured providers.

    Args:
        adapters: Provider name -> provider instance, or a zero-arg factory
            called once on first use.
        config_store: Source of container configuration snapshots.
        env: Environment used for ``DISABLE_*`` flags (defaults to os.environ).
    """

    def __init__(
        self,
        adapters: Mapping[str, AdapterSource],
        config_store: ConfigStore | None = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._sources = dict(adapters)
        self._instances: dict[str, CatalogProvider] = {}
        self._unknown: set[str] = set()
        self._store = config_store or ConfigStore()
        self._env = os.environ if env is None else env

    # --- configuration -----------------------------------------------------

    def get_container(self, container: str) -> ContainerConfig | None:
        return self._store.snapshot().get_container(container)

    def supports_container(self, container: str) -> bool:
        return self.get_container(container) is not None

    def get_enabled_apis(self, container: str) -> list[ApiEntry]:
        """Enabled APIs for the container in priority order, honoring env disable flags."""
        config = self.get_container(container)
        return config.enabled_apis(self._env) if config else []

    def reload_config(self) -> bool:
        """Re-read the container file; lookups already running keep their snapshot."""
        return self._store.reload()

    def get_adapter(self, name: str) -> CatalogProvider | None:
        if name in self._instances:
            return self._instances[name]
        source = self._sources.get(name)
        if source is None:
            if name not in self._unknown:
                self._unknown.add(name)
                logger.warning("Unknown adapter %r in container config, skipping", name)
            return None
        adapter = source() if isinstance(source, type) or not hasattr(source, "lookup") else source
        self._instances[name] = adapter
        return adapter

    def _active(self, container: ContainerConfig) -> list[tuple[int, ApiEntry, CatalogProvider]]:
        active = []
        for index, api in enumerate(container.enabled_apis(self._env)):
            adapter = self.get_adapter(api.name)
            if adapter is None:
                continue
            if not adapter.is_configured():
                logger.debug("Skipping %s: not configured", api.name)
                continue
            active.append((index, api, adapter))
        return active

    @staticmethod
    def _min_metadata_score(container: ContainerConfig) -> float | None:
        # Opt-in per container; without it the first non-null result wins.
        if container.min_metadata_score is None:
            return None
        return resolve_min_metadata_score(container.min_metadata_score)

    # --- lookups -----------------------------------------------------------

    @staticmethod
    def _criteria(item: SearchCriteria | Mapping[str, Any]) -> SearchCriteria:
        return item if isinstance(item, SearchCriteria) else SearchCriteria.from_item(item)

    async def lookup(
        self, item: SearchCriteria | Mapping[str, Any], container: str
    ) -> CanonicalResult | None:
        """Resolve one item to a CanonicalResult, or None when nothing matches.

        Provider failures never escape: they are logged and the provider is
        treated as having no result.
        """
        criteria = self._criteria(item)
        if criteria.is_blank:
            logger.debug("Skipping lookup with blank title")
            return None

        config = self._store.snapshot().get_container(container)
        if config is None:
            logger.info("No container found for type %r", container)
            return None

        active = self._active(config)
        if not active:
            logger.info("No enabled APIs for container %r", config.key)
            return None

        logger.info(
            "Looking up %r in %s (mode: %s) via %s",
            criteria.clean_title,
            config.key,
            config.mode,
            [api.name for _, api, _ in active],
        )
        if config.mode == MODE_MERGE:
            return await self._lookup_merge(criteria, active)
        return await self._lookup_fallback(criteria, active, self._min_metadata_score(config))

    async def _lookup_fallback(
        self,
        criteria: SearchCriteria,
        active: list[tuple[int, ApiEntry, CatalogProvider]],
        min_score: float | None,
    ) -> CanonicalResult | None:
        best_partial: CanonicalResult | None = None
        best_partial_score = -1

        for index, api, adapter in active:
            try:
                result = await adapter.lookup(criteria)
            except Exception as exc:
                logger.warning("%s failed: %s", api.name, exc)
                continue

            if result is None:
                logger.info("No result from %s", api.name)
                continue

            tagged = dataclasses.replace(result, source=api.name, source_index=index)
            if min_score is not None:
                completeness = score_book_result(tagged)
                if completeness.score < min_score:
                    logger.info(
                        "%s result scored %d < %.0f (missing %s), trying next provider",
                        api.name,
                        completeness.score,
                        min_score,
                        ", ".join(completeness.missing),
                    )
                    if completeness.score > best_partial_score:
                        best_partial, best_partial_score = tagged, completeness.score
                    continue

            logger.info("Hit on %s", api.name)
            return tagged

        if best_partial is not None:
            logger.info("Returning best partial result from %s", best_partial.source)
            return best_partial
        logger.info("All APIs exhausted, no result for %r", criteria.clean_title)
        return None

    async def _lookup_merge(
        self,
        criteria: SearchCriteria,
        active: list[tuple[int, ApiEntry, CatalogProvider]],
    ) -> CanonicalResult | None:
        async def call(api: ApiEntry, adapter: CatalogProvider) -> CanonicalResult | None:
            try:
                result = await adapter.lookup(criteria)
            except Exception as exc:
                logger.warning("(merge) %s failed: %s", api.name, exc)
                return None
            if result is None:
                return None
            return dataclasses.replace(result, source=api.name, source_priority=api.priority)

        settled = await asyncio.gather(*(call(api, adapter) for _, api, adapter in active))
        results = [r for r in settled if r is not None]
        if not results:
            return None

        results.sort(key=lambda r: r.source_priority if r.source_priority is not None else 999)
        merged = merge_results(results)
        if merged is None:
            return None
        merged.sources_used = [r.source for r in results if r.source]
        logger.info("(merge) Combined results from %s", merged.sources_used)
        return merged

    async def lookup_many(
        self,
        item: SearchCriteria | Mapping[str, Any],
        container: str,
        limit: int = DEFAULT_LOOKUP_LIMIT,
    ) -> list[CanonicalResult]:
        """Up to ``limit`` candidates from the first provider that returns any."""
        criteria = self._criteria(item)
        if criteria.is_blank:
            return []
        config = self._store.snapshot().get_container(container)
        if config is None:
            logger.info("No container found for type %r", container)
            return []

        for index, api, adapter in self._active(config):
            try:
                results = await adapter.lookup_many(criteria, limit)
            except Exception as exc:
                logger.warning("%s failed: %s", api.name, exc)
                continue
            if results:
                return [dataclasses.replace(r, source=api.name, source_index=index) for r in results]
            logger.info("No results from %s", api.name)
        return []
