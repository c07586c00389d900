"""Abstract base class for cache stores.

Defines the single cache contract shared by every backend (in-process
table, Redis, SQLite).  Backends implement the primitives -- ``get``,
``set``, ``has``, ``delete`` and ``destroy`` -- and inherit the compound
operations ``fetch``, ``add``, ``pull`` and ``forever``, which are built
once here on top of the primitives.

The compound operations are NOT atomic.  ``fetch`` and ``add`` are a
read followed by a write: two concurrent misses on the same key may both
compute a value and both write it, and the last completed write wins.
Neither operation rolls anything back on failure; the first error raised
by a primitive (or by a fallback producer) reaches the caller.
"""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any

# Private marker for "no stored value" so stored falsy values (0, "",
# False, None) still count as hits in fetch().
_MISSING: Any = object()


async def resolve_default(default: Any) -> Any:
    """Resolve a fallback: call it when callable, await it when awaitable.

    Exceptions raised by the producer propagate unchanged.
    """
    if callable(default):
        result = default()
        if inspect.isawaitable(result):
            result = await result
        return result
    return default


def as_key_list(keys: str | Iterable[str]) -> list[str]:
    """Normalise a single key or an iterable of keys to a list."""
    if isinstance(keys, str):
        return [keys]
    return list(keys)


class ICacheStore(ABC):
    """Contract for key-value cache stores.

    All operations are async so network-backed stores (Redis, SQLite via
    aiosqlite) never block the event loop.

    Parameters
    ----------
    name:
        Configured store name, used in logs and error messages.
    """

    def __init__(self, name: str = "default") -> None:
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    # ------------------------------------------------------------------
    # Primitives
    # ------------------------------------------------------------------

    @abstractmethod
    async def get(self, key: str, default: Any = None) -> Any:
        """Retrieve the value stored under *key*.

        Parameters
        ----------
        key:
            The cache key to look up.
        default:
            Returned on a miss.  When callable it is invoked with no
            arguments (and awaited if it returns an awaitable) and its
            result is returned instead.  Nothing is stored.

        Returns
        -------
        Any
            The cached value if present and not expired; the resolved
            ``default`` otherwise.
        """

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store *value* under *key*, replacing any existing entry.

        Parameters
        ----------
        key:
            The cache key.
        value:
            The value to store.  Stores that persist values require it
            to be JSON serialisable.
        ttl:
            Time-to-live in seconds.  ``None`` or ``0`` stores a
            permanent entry.  Negative values raise ``ValueError``.
        """

    @abstractmethod
    async def has(self, key: str) -> bool:
        """Return ``True`` if *key* is present and not expired.

        An expired entry reports ``False`` and is removed.
        """

    @abstractmethod
    async def delete(self, keys: str | Iterable[str]) -> int:
        """Remove one key or several keys.

        Missing keys are skipped.  A key repeated in the same call is
        counted once.

        Returns
        -------
        int
            Number of entries actually removed.
        """

    @abstractmethod
    async def destroy(self) -> None:
        """Remove every entry in this store and stop background sweeping.

        The store remains usable afterwards.
        """

    # ------------------------------------------------------------------
    # Compound operations
    # ------------------------------------------------------------------

    async def fetch(self, key: str, default: Any = None, ttl: float | None = None) -> Any:
        """Return the cached value, computing and storing it on a miss.

        On a miss the fallback is resolved exactly once, stored under
        *key* with *ttl* and returned.  If the fallback raises, nothing
        is written.
        """
        cached = await self.get(key, _MISSING)
        if cached is not _MISSING:
            return cached
        value = await resolve_default(default)
        await self.set(key, value, ttl)
        return value

    async def add(self, key: str, value: Any, ttl: float | None = None) -> bool:
        """Store *value* only if *key* is absent or expired.

        Returns ``True`` if the value was stored, ``False`` if an
        unexpired entry already existed (it is left untouched).
        """
        if await self.has(key):
            return False
        await self.set(key, value, ttl)
        return True

    async def pull(self, key: str, default: Any = None) -> Any:
        """Return the value under *key* and delete it.

        Equivalent to ``get`` followed by ``delete``; the value read is
        returned even if another caller changes the key in between.
        """
        value = await self.get(key, default)
        await self.delete(key)
        return value

    async def forever(self, key: str, value: Any) -> None:
        """Store *value* under *key* with no expiry."""
        await self.set(key, value)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Release the underlying resource.  Stores without one do nothing."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this store."""
