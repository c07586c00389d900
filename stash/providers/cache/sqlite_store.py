"""SQLite-backed persistent cache store.

Entries survive process restarts in a single table::

    _cache(key TEXT PRIMARY KEY, value TEXT, expires_at INTEGER NULL)

``value`` holds JSON text and ``expires_at`` an epoch-millisecond instant
(``NULL`` for permanent entries).  Uses ``aiosqlite`` for async I/O; the
connection is opened on first use and reused, and the table is created
at the same moment (``CREATE TABLE IF NOT EXISTS``).

Expired rows are deleted when a read touches them and by a background
sweep.  A failing sweep is logged and retried on the next tick; it never
reaches callers.
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import Iterable
from pathlib import Path
from typing import Any, Callable

import aiosqlite
import structlog

from stash.interfaces.cache_store import ICacheStore, as_key_list, resolve_default
from stash.models.entry import (
    deserialize_value,
    expires_at_from_ttl,
    is_expired_at,
    now_ms,
    serialize_value,
)
from stash.utils.errors import ConfigurationError
from stash.utils.sweeper import DEFAULT_SWEEP_INTERVAL, PeriodicSweeper

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/cache.db")
_DEFAULT_TABLE = "_cache"

_TABLE_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS {table} (
    key        TEXT PRIMARY KEY,
    value      TEXT,
    expires_at INTEGER
);
"""

_SELECT_SQL = "SELECT value, expires_at FROM {table} WHERE key = ?;"

_SELECT_EXPIRY_SQL = "SELECT expires_at FROM {table} WHERE key = ?;"

_UPSERT_SQL = """\
INSERT INTO {table} (key, value, expires_at)
VALUES (?, ?, ?)
ON CONFLICT(key)
DO UPDATE SET value      = excluded.value,
              expires_at = excluded.expires_at;
"""

_DELETE_SQL = "DELETE FROM {table} WHERE key = ?;"

_DELETE_EXPIRED_SQL = (
    "DELETE FROM {table} WHERE key = ? AND expires_at IS NOT NULL AND expires_at <= ?;"
)

_SWEEP_SQL = "DELETE FROM {table} WHERE expires_at IS NOT NULL AND expires_at <= ?;"

_TRUNCATE_SQL = "DELETE FROM {table};"


class SQLiteCacheStore(ICacheStore):
    """Cache store persisted in a SQLite table.

    Parameters
    ----------
    name:
        Configured store name.
    db_path:
        Path to the SQLite database file, or ``":memory:"``.
    connection:
        An already open ``aiosqlite.Connection``.  When given, *db_path*
        is ignored and the caller keeps ownership of the connection.
    table:
        Table name, ``_cache`` by default.
    sweep_interval:
        Seconds between two background sweeps.
    clock:
        Zero-argument callable returning epoch milliseconds.
    """

    def __init__(
        self,
        name: str = "sqlite",
        db_path: str | Path = _DEFAULT_DB_PATH,
        connection: aiosqlite.Connection | None = None,
        table: str = _DEFAULT_TABLE,
        sweep_interval: float = DEFAULT_SWEEP_INTERVAL,
        clock: Callable[[], int] | None = None,
    ) -> None:
        super().__init__(name)
        if not _TABLE_NAME_RE.match(table):
            raise ConfigurationError(f"Invalid cache table name {table!r}", store_name=name)
        self._db_path = str(db_path)
        self._connection = connection
        self._owns_connection = connection is None
        self._table = table
        self._clock = clock or now_ms
        self._initialized = False
        self._connect_lock = asyncio.Lock()
        self._sweeper = PeriodicSweeper(self.sweep, sweep_interval, name=name)
        # Inside a running loop the sweep starts now; otherwise on first use.
        self._sweeper.start()

    @property
    def path(self) -> str:
        return self._db_path

    @property
    def sweeper(self) -> PeriodicSweeper:
        return self._sweeper

    def _sql(self, template: str) -> str:
        return template.format(table=self._table)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def get_connection(self) -> aiosqlite.Connection:
        """Return the connection, opening it and creating the table on first use."""
        self._sweeper.start()
        if self._connection is None or not self._initialized:
            async with self._connect_lock:
                if self._connection is None:
                    if self._db_path != ":memory:":
                        Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
                    self._connection = await aiosqlite.connect(self._db_path)
                if not self._initialized:
                    await self._connection.execute(self._sql(_CREATE_TABLE_SQL))
                    await self._connection.commit()
                    self._initialized = True
                    logger.info("cache_table_initialized", store=self.name, table=self._table)
        return self._connection

    async def close(self) -> None:
        """Stop the sweep and close the connection if this store opened it."""
        await self._sweeper.stop()
        if self._connection is not None and self._owns_connection:
            await self._connection.close()
            self._connection = None
            self._initialized = False
            logger.info("sqlite_cache_closed", store=self.name)

    # ------------------------------------------------------------------
    # ICacheStore implementation
    # ------------------------------------------------------------------

    async def get(self, key: str, default: Any = None) -> Any:
        """Point lookup; an expired row is deleted and reported as a miss.

        A stored value that is not valid JSON raises
        :class:`~stash.utils.errors.CacheDeserializationError`.
        """
        db = await self.get_connection()
        cursor = await db.execute(self._sql(_SELECT_SQL), (key,))
        row = await cursor.fetchone()

        if row is None:
            logger.debug("cache_miss", store=self.name, key=key)
            return await resolve_default(default)

        payload, expires_at = row
        if is_expired_at(expires_at, self._clock()):
            await self._remove_expired(db, key)
            logger.debug("cache_miss", store=self.name, key=key, expired=True)
            return await resolve_default(default)

        logger.debug("cache_hit", store=self.name, key=key)
        return deserialize_value(payload)

    async def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Upsert the row for *key*."""
        expires_at = expires_at_from_ttl(ttl, self._clock())
        payload = serialize_value(value)
        db = await self.get_connection()
        await db.execute(self._sql(_UPSERT_SQL), (key, payload, expires_at))
        await db.commit()
        logger.debug("cache_set", store=self.name, key=key, expires_at=expires_at)

    async def has(self, key: str) -> bool:
        db = await self.get_connection()
        cursor = await db.execute(self._sql(_SELECT_EXPIRY_SQL), (key,))
        row = await cursor.fetchone()
        if row is None:
            return False
        if is_expired_at(row[0], self._clock()):
            await self._remove_expired(db, key)
            return False
        return True

    async def delete(self, keys: str | Iterable[str]) -> int:
        """One ``DELETE`` per key, summing the affected-row counts.

        An expired row is dropped first and not counted.
        """
        db = await self.get_connection()
        now = self._clock()
        removed = 0
        for key in as_key_list(keys):
            await db.execute(self._sql(_DELETE_EXPIRED_SQL), (key, now))
            cursor = await db.execute(self._sql(_DELETE_SQL), (key,))
            removed += max(cursor.rowcount, 0)
        await db.commit()
        logger.debug("cache_delete", store=self.name, removed=removed)
        return removed

    async def destroy(self) -> None:
        """Empty the table and stop the background sweep."""
        db = await self.get_connection()
        await db.execute(self._sql(_TRUNCATE_SQL))
        await db.commit()
        await self._sweeper.stop()
        logger.info("cache_destroyed", store=self.name, table=self._table)

    # ------------------------------------------------------------------
    # Expiry
    # ------------------------------------------------------------------

    async def sweep(self) -> int:
        """Delete every expired row.  Returns the number removed.

        Does nothing until the table has been created by a first use.
        """
        if self._connection is None or not self._initialized:
            return 0
        cursor = await self._connection.execute(self._sql(_SWEEP_SQL), (self._clock(),))
        await self._connection.commit()
        removed = max(cursor.rowcount, 0)
        if removed:
            logger.debug("cache_swept", store=self.name, removed=removed)
        return removed

    async def _remove_expired(self, db: aiosqlite.Connection, key: str) -> None:
        await db.execute(self._sql(_DELETE_SQL), (key,))
        await db.commit()

    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""
        return f"sqlite:{self.name}"
