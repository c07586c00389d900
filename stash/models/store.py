"""Named cache store definitions.

One :class:`StoreDefinition` describes one entry of the ``cachestores``
configuration section: which backend kind to build and, where relevant,
which resource it binds to.  Definitions are validated once, when the
:class:`~stash.services.cache_manager.CacheManager` is constructed.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class StoreKind(str, Enum):  # noqa: UP042
    """Closed set of backend kinds."""

    MEMORY = "memory"   # process-local TLRUCache
    REDIS = "redis"     # remote key/value server
    SQLITE = "sqlite"   # local persisted table


# Descriptive names accepted in configuration files.
_KIND_ALIASES: dict[str, str] = {
    "in-memory": StoreKind.MEMORY.value,
    "remote-kv": StoreKind.REDIS.value,
    "persisted": StoreKind.SQLITE.value,
}


class StoreDefinition(BaseModel):
    """Configuration of one named cache store."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    store: StoreKind
    # Redis connection URL; falls back to Settings.redis_url.
    url: str | None = None
    # Key namespace for Redis stores.
    prefix: str = ""
    # SQLite database file; falls back to Settings.sqlite_path.
    path: str | None = None
    table: str = "_cache"
    # Seconds between sweeps; falls back to Settings.sweep_interval_seconds.
    sweep_interval: float | None = Field(default=None, gt=0)

    @field_validator("store", mode="before")
    @classmethod
    def _normalise_kind(cls, value: Any) -> Any:
        if isinstance(value, str):
            key = value.strip().lower()
            return _KIND_ALIASES.get(key, key)
        return value
