"""stash — one async cache interface over memory, Redis and SQLite stores.

Quick start::

    from stash import build_cache

    cache = build_cache()
    user = await cache.fetch("user:1", load_user, ttl=300)
"""

from stash.interfaces.cache_store import ICacheStore
from stash.main import build_cache
from stash.models.entry import CacheEntry
from stash.models.store import StoreDefinition, StoreKind
from stash.providers.cache import MemoryCacheStore, RedisCacheStore, SQLiteCacheStore
from stash.services.cache_manager import CacheManager, build_cache_store
from stash.utils.errors import (
    CacheDeserializationError,
    CacheSerializationError,
    ConfigurationError,
    StashError,
)

__version__ = "0.1.0"

__all__ = [
    "CacheDeserializationError",
    "CacheEntry",
    "CacheManager",
    "CacheSerializationError",
    "ConfigurationError",
    "ICacheStore",
    "MemoryCacheStore",
    "RedisCacheStore",
    "SQLiteCacheStore",
    "StashError",
    "StoreDefinition",
    "StoreKind",
    "build_cache",
    "build_cache_store",
]
