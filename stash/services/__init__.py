"""Services composing cache stores from configuration."""

from stash.services.cache_manager import CacheManager, build_cache_store

__all__ = ["CacheManager", "build_cache_store"]
