"""Cache stores.

Three interchangeable implementations of ``ICacheStore``:

- MemoryCacheStore -- process-local ``TLRUCache``; fast but not shared
  across processes.  Sweeps expired entries every 60 seconds.
- RedisCacheStore -- shared across processes and hosts; Redis enforces
  TTLs server-side.
- SQLiteCacheStore -- durable local table; survives restarts and sweeps
  expired rows every 60 seconds.
"""

from stash.providers.cache.memory_store import MemoryCacheStore
from stash.providers.cache.redis_store import RedisCacheStore
from stash.providers.cache.sqlite_store import SQLiteCacheStore

__all__ = ["MemoryCacheStore", "RedisCacheStore", "SQLiteCacheStore"]
