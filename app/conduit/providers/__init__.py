"""Model catalogs: static provider table, registry and remote catalog caching."""

from .constants import ProviderId
from .openrouter import OpenRouterCatalog
from .registry import ModelRegistry
from .remote_cache import CacheRecord, JsonFileStore, RemoteMetadataCache

__all__ = [
    "CacheRecord",
    "JsonFileStore",
    "ModelRegistry",
    "OpenRouterCatalog",
    "ProviderId",
    "RemoteMetadataCache",
]
