"""Public interface definitions for cache stores.

Application code talks to :class:`ICacheStore` only.  Concrete stores live
in ``stash.providers.cache`` and are selected by configuration through
``stash.services.cache_manager``:

    ICacheStore  →  MemoryCacheStore, RedisCacheStore, SQLiteCacheStore
"""

from stash.interfaces.cache_store import ICacheStore, as_key_list, resolve_default

__all__ = [
    "ICacheStore",
    "as_key_list",
    "resolve_default",
]
