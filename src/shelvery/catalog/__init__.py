# ABOUTME: Catalog package: multi-provider lookup, ranking, normalization and merging.
# ABOUTME: Exports the router, the data model, and the wiring helpers callers need.

from shelvery.catalog.config import CatalogSettings, ConfigStore
from shelvery.catalog.merger import merge_results
from shelvery.catalog.provider import CatalogProvider, CollectableStore
from shelvery.catalog.registry import build_default_adapters, build_router
from shelvery.catalog.router import CatalogRouter
from shelvery.catalog.types import CanonicalResult, MediaKind, SearchCriteria

__all__ = [
    "CanonicalResult",
    "CatalogProvider",
    "CatalogRouter",
    "CatalogSettings",
    "CollectableStore",
    "ConfigStore",
    "MediaKind",
    "SearchCriteria",
    "build_default_adapters",
    "build_router",
    "merge_results",
]
