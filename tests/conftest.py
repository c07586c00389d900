"""Shared pytest fixtures for the stash test suite."""

from __future__ import annotations

import fnmatch
import logging
from pathlib import Path
from typing import Any, AsyncIterator

import pytest
import pytest_asyncio
import structlog

from stash.interfaces.cache_store import ICacheStore
from stash.providers.cache.memory_store import MemoryCacheStore
from stash.providers.cache.redis_store import RedisCacheStore
from stash.providers.cache.sqlite_store import SQLiteCacheStore

# A fixed, arbitrary instant (2024-01-01T00:00:00Z) in epoch milliseconds.
START_MS = 1_704_067_200_000


class FakeClock:
    """Controllable epoch-millisecond clock."""

    def __init__(self, start: int = START_MS) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += int(seconds * 1000)


class FakeRedis:
    """Dict-backed stand-in for ``redis.asyncio.Redis``.

    Implements only the commands the Redis store issues, with expiry
    driven by a :class:`FakeClock` so TTL tests can move time forward.
    """

    def __init__(self, clock: FakeClock) -> None:
        self._clock = clock
        self._data: dict[str, tuple[str, int | None]] = {}
        self.commands: list[tuple[Any, ...]] = []
        self.closed = False

    def _live(self, key: str) -> str | None:
        item = self._data.get(key)
        if item is None:
            return None
        value, expires_at = item
        if expires_at is not None and expires_at <= self._clock():
            del self._data[key]
            return None
        return value

    def keys(self) -> list[str]:
        return [key for key in list(self._data) if self._live(key) is not None]

    async def get(self, key: str) -> str | None:
        self.commands.append(("GET", key))
        return self._live(key)

    async def set(self, key: str, value: str) -> bool:
        self.commands.append(("SET", key, value))
        self._data[key] = (value, None)
        return True

    async def setex(self, key: str, seconds: int, value: str) -> bool:
        self.commands.append(("SETEX", key, seconds, value))
        self._data[key] = (value, self._clock() + seconds * 1000)
        return True

    async def delete(self, *keys: str) -> int:
        self.commands.append(("DEL", *keys))
        removed = 0
        for key in keys:
            if self._live(key) is not None:
                del self._data[key]
                removed += 1
        return removed

    async def flushall(self, asynchronous: bool = False) -> bool:
        self.commands.append(("FLUSHALL", asynchronous))
        self._data.clear()
        return True

    async def scan_iter(self, match: str | None = None, count: int | None = None) -> AsyncIterator[str]:
        self.commands.append(("SCAN", match, count))
        for key in self.keys():
            if match is None or fnmatch.fnmatchcase(key, match):
                yield key

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def restore_logging():
    """Undo root-logger and structlog changes made by configure_logging."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_redis(clock: FakeClock) -> FakeRedis:
    return FakeRedis(clock)


@pytest_asyncio.fixture(params=["memory", "redis", "sqlite"])
async def store(request: pytest.FixtureRequest, clock: FakeClock, tmp_path: Path) -> AsyncIterator[ICacheStore]:
    """Each backend in turn, all driven by the same fake clock."""
    if request.param == "memory":
        cache: ICacheStore = MemoryCacheStore(name="test", clock=clock)
    elif request.param == "redis":
        cache = RedisCacheStore(name="test", client=FakeRedis(clock))
    else:
        cache = SQLiteCacheStore(name="test", db_path=tmp_path / "cache.db", clock=clock)
    yield cache
    await cache.close()
