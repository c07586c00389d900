"""Redis-backed cache store for multi-process deployments.

Values are JSON-encoded on write and decoded on read.  Expiry is left
entirely to Redis: a TTL is sent with ``SETEX`` and the server drops the
key on its own, so this store runs no local sweep.

An optional ``prefix`` namespaces every key.  With a prefix, ``destroy``
removes only the keys under it; without one it flushes the whole Redis
data space (``FLUSHALL ASYNC``), which also wipes data written by other
consumers of the same server.
"""

from __future__ import annotations

import asyncio
import math
import re
from collections.abc import Iterable
from typing import Any

import redis.asyncio as redis
import structlog

from stash.interfaces.cache_store import ICacheStore, as_key_list, resolve_default
from stash.models.entry import deserialize_value, expires_at_from_ttl, serialize_value
from stash.utils.errors import ConfigurationError

logger = structlog.get_logger(logger_name=__name__)

_GLOB_SPECIAL = re.compile(r"([*?\[\]\\])")


def _escape_glob(text: str) -> str:
    """Escape Redis glob metacharacters so *text* matches literally."""
    return _GLOB_SPECIAL.sub(r"\\\1", text)


def _ttl_seconds(ttl: float | None) -> int | None:
    """Whole seconds for ``SETEX``; ``None`` for a permanent entry.

    ``SETEX`` only takes whole seconds, so fractions round up.
    """
    if expires_at_from_ttl(ttl, now=0) is None:
        return None
    return max(1, math.ceil(ttl))


class RedisCacheStore(ICacheStore):
    """Cache store issuing commands to a Redis server.

    Parameters
    ----------
    name:
        Configured store name.
    client:
        A ready ``redis.asyncio.Redis`` client.  When omitted, one is
        created from *url* on first use and owned by this store.
    url:
        Redis URL, e.g. ``redis://localhost:6379/0``.
    prefix:
        Namespace prepended to every key.
    scan_count:
        Batch size used when destroying a prefixed namespace.
    """

    def __init__(
        self,
        name: str = "redis",
        client: redis.Redis | None = None,
        url: str | None = None,
        prefix: str = "",
        scan_count: int = 500,
    ) -> None:
        super().__init__(name)
        if client is None and not url:
            raise ConfigurationError("Redis store requires a client or a url", store_name=name)
        self._client = client
        self._url = url
        self._prefix = prefix
        self._scan_count = scan_count
        self._owns_client = client is None
        self._client_lock = asyncio.Lock()

    @property
    def prefix(self) -> str:
        return self._prefix

    async def get_client(self) -> redis.Redis:
        """Return the Redis client, creating it on first use."""
        if self._client is None:
            async with self._client_lock:
                if self._client is None:
                    self._client = redis.Redis.from_url(self._url, decode_responses=True)
                    logger.info("redis_cache_client_created", store=self.name)
        return self._client

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    # ------------------------------------------------------------------
    # ICacheStore implementation
    # ------------------------------------------------------------------

    async def get(self, key: str, default: Any = None) -> Any:
        """Return the decoded value for *key*, or the resolved *default*.

        A payload that is not valid JSON raises
        :class:`~stash.utils.errors.CacheDeserializationError`.
        """
        client = await self.get_client()
        payload = await client.get(self._key(key))
        if payload is None:
            logger.debug("cache_miss", store=self.name, key=key)
            return await resolve_default(default)
        logger.debug("cache_hit", store=self.name, key=key)
        return deserialize_value(payload)

    async def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """``SETEX`` when a TTL is given, plain ``SET`` otherwise."""
        seconds = _ttl_seconds(ttl)
        payload = serialize_value(value)
        client = await self.get_client()
        if seconds is None:
            await client.set(self._key(key), payload)
        else:
            await client.setex(self._key(key), seconds, payload)
        logger.debug("cache_set", store=self.name, key=key, ttl=seconds)

    async def has(self, key: str) -> bool:
        client = await self.get_client()
        return await client.get(self._key(key)) is not None

    async def delete(self, keys: str | Iterable[str]) -> int:
        """One ``DEL`` for all keys; Redis counts a repeated key once."""
        names = [self._key(key) for key in as_key_list(keys)]
        if not names:
            return 0
        client = await self.get_client()
        removed = int(await client.delete(*names))
        logger.debug("cache_delete", store=self.name, removed=removed)
        return removed

    async def destroy(self) -> None:
        """Remove the prefixed namespace, or flush the server without one."""
        client = await self.get_client()
        if not self._prefix:
            await client.flushall(asynchronous=True)
            logger.info("cache_destroyed", store=self.name, scope="server")
            return

        removed = 0
        batch: list[Any] = []
        async for name in client.scan_iter(
            match=f"{_escape_glob(self._prefix)}*", count=self._scan_count
        ):
            batch.append(name)
            if len(batch) >= self._scan_count:
                removed += int(await client.delete(*batch))
                batch.clear()
        if batch:
            removed += int(await client.delete(*batch))
        logger.info("cache_destroyed", store=self.name, scope="prefix", removed=removed)

    async def close(self) -> None:
        """Close the client if this store created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
            logger.info("redis_cache_client_closed", store=self.name)

    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""
        return f"redis:{self.name}"
