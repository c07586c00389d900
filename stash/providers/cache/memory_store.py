"""In-process cache store using cachetools.TLRUCache.

Fast store with no external service, suitable for development and
single-process deployments.  Entries live in a ``TLRUCache`` whose
per-item time-to-use is the entry's own expiry instant, so each key keeps
the TTL it was stored with.  ``maxsize`` is unbounded: entries leave the
table only by expiry, ``delete`` or ``destroy``.

Expired entries are purged on every read (lazy expiry) and by a
background :class:`~stash.utils.sweeper.PeriodicSweeper` that bounds the
memory held by expired-but-unread entries.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from typing import Any, Callable

import structlog
from cachetools import TLRUCache

from stash.interfaces.cache_store import ICacheStore, as_key_list, resolve_default
from stash.models.entry import CacheEntry, now_ms
from stash.utils.sweeper import DEFAULT_SWEEP_INTERVAL, PeriodicSweeper

logger = structlog.get_logger(logger_name=__name__)


def _time_to_use(_key: str, entry: CacheEntry, _now: int) -> float:
    return math.inf if entry.expires_at is None else entry.expires_at


class MemoryCacheStore(ICacheStore):
    """Process-local cache backed by ``cachetools.TLRUCache``.

    Parameters
    ----------
    name:
        Configured store name.
    sweep_interval:
        Seconds between two background sweeps.
    clock:
        Zero-argument callable returning epoch milliseconds.  Tests pass
        a fake clock to move time forward.
    """

    def __init__(
        self,
        name: str = "memory",
        sweep_interval: float = DEFAULT_SWEEP_INTERVAL,
        clock: Callable[[], int] | None = None,
    ) -> None:
        super().__init__(name)
        self._clock = clock or now_ms
        self._table: TLRUCache[str, CacheEntry] = self._new_table()
        self._sweeper = PeriodicSweeper(self.sweep, sweep_interval, name=name)

    def _new_table(self) -> TLRUCache[str, CacheEntry]:
        return TLRUCache(maxsize=math.inf, ttu=_time_to_use, timer=self._clock)

    @property
    def size(self) -> int:
        """Number of entries held, including expired ones not yet purged."""
        return len(self._table)

    @property
    def sweeper(self) -> PeriodicSweeper:
        return self._sweeper

    # ------------------------------------------------------------------
    # ICacheStore implementation
    # ------------------------------------------------------------------

    async def get(self, key: str, default: Any = None) -> Any:
        """Return the live value for *key*, or the resolved *default*."""
        self._sweeper.start()
        self._table.expire()
        entry = self._table.get(key)
        if entry is None:
            logger.debug("cache_miss", store=self.name, key=key)
            return await resolve_default(default)
        logger.debug("cache_hit", store=self.name, key=key)
        return entry.value

    async def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store *value* under *key*; values are held as live objects."""
        self._sweeper.start()
        entry = CacheEntry.from_ttl(value, ttl, now=self._clock())
        # TLRUCache skips an item already expired by its own timer and
        # would keep the previous value.
        self._discard(key)
        self._table[key] = entry
        logger.debug("cache_set", store=self.name, key=key, expires_at=entry.expires_at)

    async def has(self, key: str) -> bool:
        """Return ``True`` if *key* holds an unexpired entry."""
        self._sweeper.start()
        self._table.expire()
        return key in self._table

    async def delete(self, keys: str | Iterable[str]) -> int:
        """Remove the given keys, returning how many were present."""
        self._sweeper.start()
        self._table.expire()
        removed = sum(1 for key in as_key_list(keys) if self._discard(key))
        logger.debug("cache_delete", store=self.name, removed=removed)
        return removed

    async def destroy(self) -> None:
        """Drop every entry and stop the background sweep for good."""
        self._table = self._new_table()
        await self._sweeper.stop()
        logger.info("cache_destroyed", store=self.name)

    async def close(self) -> None:
        await self._sweeper.stop()

    # ------------------------------------------------------------------
    # Expiry
    # ------------------------------------------------------------------

    async def sweep(self) -> int:
        """Purge every expired entry.  Returns the number removed."""
        before = len(self._table)
        self._table.expire()
        removed = before - len(self._table)
        if removed:
            logger.debug("cache_swept", store=self.name, removed=removed)
        return removed

    def _discard(self, key: str) -> bool:
        # TLRUCache raises KeyError for absent keys and, after removing
        # it, for an entry that had already expired.
        try:
            del self._table[key]
        except KeyError:
            return False
        return True

    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""
        return f"memory:{self.name}"
