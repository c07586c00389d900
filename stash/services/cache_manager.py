"""Named cache stores behind one uniform interface.

:func:`build_cache_store` turns one validated
:class:`~stash.models.store.StoreDefinition` into a concrete store.  The
selection is a single lookup on the definition's kind, done once at
construction time.

:class:`CacheManager` owns every store built from one configuration.  It
is created by the application's composition root and passed where it is
needed; there is no module-level instance.  Each configured name maps to
exactly one store instance, built lazily the first time it is requested
and reused for the rest of the process lifetime.

The manager also exposes the full cache interface (``get``, ``set``,
``fetch``, ...) bound to the default store, so callers that only ever use
one store never have to look it up::

    cache = CacheManager.from_config()
    await cache.set("user:1", {"name": "Ada"}, ttl=300)
    await cache.store("sessions").forever("token", "abc")
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

import structlog
from pydantic import ValidationError

from stash.config.loader import DEFAULT_CONFIG, load_config
from stash.config.settings import Settings
from stash.interfaces.cache_store import ICacheStore
from stash.models.store import StoreDefinition, StoreKind
from stash.providers.cache.memory_store import MemoryCacheStore
from stash.providers.cache.redis_store import RedisCacheStore
from stash.providers.cache.sqlite_store import SQLiteCacheStore
from stash.utils.errors import ConfigurationError

logger = structlog.get_logger(logger_name=__name__)


def build_cache_store(
    name: str,
    definition: StoreDefinition,
    settings: Settings | None = None,
) -> ICacheStore:
    """Construct the store described by *definition*.

    Resource acquisition (Redis client, SQLite connection) is deferred to
    the store's first operation.

    Raises
    ------
    ConfigurationError
        If a Redis store has no URL, or the definition is otherwise
        unusable.
    """
    settings = settings or Settings()
    sweep_interval = definition.sweep_interval or settings.sweep_interval_seconds

    if definition.store is StoreKind.MEMORY:
        store: ICacheStore = MemoryCacheStore(name=name, sweep_interval=sweep_interval)
    elif definition.store is StoreKind.REDIS:
        url = definition.url or settings.redis_url
        if not url:
            raise ConfigurationError(
                "Redis store needs a url (or STASH_REDIS_URL)", store_name=name
            )
        store = RedisCacheStore(name=name, url=url, prefix=definition.prefix)
    elif definition.store is StoreKind.SQLITE:
        store = SQLiteCacheStore(
            name=name,
            db_path=definition.path or settings.sqlite_path,
            table=definition.table,
            sweep_interval=sweep_interval,
        )
    else:  # pragma: no cover
        raise ConfigurationError(f"Unsupported store kind {definition.store!r}", store_name=name)

    logger.info("cache_store_built", store=name, kind=definition.store.value)
    return store


def _coerce_definition(name: str, raw: StoreDefinition | Mapping[str, Any]) -> StoreDefinition:
    if isinstance(raw, StoreDefinition):
        return raw
    try:
        return StoreDefinition.model_validate(raw)
    except ValidationError as exc:
        msg = f"Invalid definition for cache store '{name}': {exc}"
        raise ConfigurationError(msg, store_name=name) from exc


class CacheManager:
    """Registry of named cache stores plus a facade over the default one.

    Parameters
    ----------
    definitions:
        Store name → definition (a :class:`StoreDefinition` or a plain
        mapping such as a parsed YAML section).
    default_store:
        Name of the store used when none is given.
    settings:
        Fallback values for definitions that omit url / path / interval.

    Raises
    ------
    ConfigurationError
        If a definition is invalid or *default_store* is not defined.
    """

    def __init__(
        self,
        definitions: Mapping[str, StoreDefinition | Mapping[str, Any]],
        default_store: str = "default",
        settings: Settings | None = None,
    ) -> None:
        self._settings = settings or Settings()
        self._definitions: dict[str, StoreDefinition] = {
            name: _coerce_definition(name, raw) for name, raw in definitions.items()
        }
        if default_store not in self._definitions:
            raise ConfigurationError(
                "The provided cachestore could not be found.", store_name=default_store
            )
        self._default_name = default_store
        self._stores: dict[str, ICacheStore] = {}

    @classmethod
    def from_config(
        cls,
        config: Mapping[str, Any] | None = None,
        settings: Settings | None = None,
    ) -> CacheManager:
        """Build a manager from a config dict, loading YAML + env when omitted."""
        settings = settings or Settings()
        if config is None:
            config = load_config(settings=settings)
        section = config.get("stash") or {}
        definitions = config.get("cachestores") or DEFAULT_CONFIG["cachestores"]
        default_store = section.get("cachestore") or settings.cache_store
        return cls(definitions, default_store=default_store, settings=settings)

    # ------------------------------------------------------------------
    # Store lookup
    # ------------------------------------------------------------------

    @property
    def default_store_name(self) -> str:
        return self._default_name

    def list_stores(self) -> list[str]:
        """Names of all configured stores."""
        return sorted(self._definitions)

    def store(self, name: str | None = None) -> ICacheStore:
        """Return the store configured under *name* (default store if ``None``).

        Raises
        ------
        ConfigurationError
            If no store is configured under *name*.
        """
        name = name or self._default_name
        existing = self._stores.get(name)
        if existing is not None:
            return existing

        definition = self._definitions.get(name)
        if definition is None:
            raise ConfigurationError("The provided cachestore could not be found.", store_name=name)
        store = build_cache_store(name, definition, self._settings)
        self._stores[name] = store
        return store

    async def close(self) -> None:
        """Close every store built so far."""
        for store in self._stores.values():
            await store.close()
        logger.info("cache_manager_closed", stores=list(self._stores))

    # ------------------------------------------------------------------
    # Uniform interface bound to the default store
    # ------------------------------------------------------------------

    async def get(self, key: str, default: Any = None) -> Any:
        return await self.store().get(key, default)

    async def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        await self.store().set(key, value, ttl)

    async def has(self, key: str) -> bool:
        return await self.store().has(key)

    async def delete(self, keys: str | Iterable[str]) -> int:
        return await self.store().delete(keys)

    async def fetch(self, key: str, default: Any = None, ttl: float | None = None) -> Any:
        return await self.store().fetch(key, default, ttl)

    async def add(self, key: str, value: Any, ttl: float | None = None) -> bool:
        return await self.store().add(key, value, ttl)

    async def pull(self, key: str, default: Any = None) -> Any:
        return await self.store().pull(key, default)

    async def forever(self, key: str, value: Any) -> None:
        await self.store().forever(key, value)

    async def destroy(self) -> None:
        await self.store().destroy()
