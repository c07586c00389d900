"""Contract tests run against every cache store.

The ``store`` fixture (tests/conftest.py) yields the memory, Redis and
SQLite stores in turn, all on the same fake clock, so every backend must
produce identical results for the same sequence of operations.
"""

from __future__ import annotations

import pytest

from stash.interfaces.cache_store import ICacheStore


class TestGetSet:
    @pytest.mark.asyncio
    async def test_set_then_get_returns_value(self, store: ICacheStore) -> None:
        await store.set("user", {"name": "Ada", "roles": ["admin"]})
        assert await store.get("user") == {"name": "Ada", "roles": ["admin"]}

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, store: ICacheStore) -> None:
        assert await store.get("missing") is None

    @pytest.mark.asyncio
    async def test_get_missing_returns_literal_default(self, store: ICacheStore) -> None:
        assert await store.get("missing", "fallback") == "fallback"

    @pytest.mark.asyncio
    async def test_get_missing_calls_sync_producer(self, store: ICacheStore) -> None:
        assert await store.get("missing", lambda: 42) == 42

    @pytest.mark.asyncio
    async def test_get_missing_awaits_async_producer(self, store: ICacheStore) -> None:
        async def produce() -> str:
            return "computed"

        assert await store.get("missing", produce) == "computed"

    @pytest.mark.asyncio
    async def test_get_does_not_store_default(self, store: ICacheStore) -> None:
        await store.get("missing", "fallback")
        assert await store.has("missing") is False

    @pytest.mark.asyncio
    async def test_producer_error_propagates(self, store: ICacheStore) -> None:
        def boom() -> None:
            raise RuntimeError("producer failed")

        with pytest.raises(RuntimeError, match="producer failed"):
            await store.get("missing", boom)

    @pytest.mark.asyncio
    async def test_set_overwrites_existing(self, store: ICacheStore) -> None:
        await store.set("k", "old", 100)
        await store.set("k", "new")
        assert await store.get("k") == "new"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", [0, "", False, [], None])
    async def test_falsy_values_are_hits(self, store: ICacheStore, value) -> None:
        await store.set("k", value)
        assert await store.get("k", "fallback") == value
        assert await store.has("k") is True

    @pytest.mark.asyncio
    async def test_negative_ttl_rejected(self, store: ICacheStore) -> None:
        with pytest.raises(ValueError):
            await store.set("k", "v", -5)


class TestExpiry:
    @pytest.mark.asyncio
    async def test_has_true_before_and_false_after_ttl(self, store: ICacheStore, clock) -> None:
        await store.set("k", "v", 10)
        clock.advance(9)
        assert await store.has("k") is True
        clock.advance(2)
        assert await store.has("k") is False

    @pytest.mark.asyncio
    async def test_zero_ttl_is_permanent(self, store: ICacheStore, clock) -> None:
        await store.set("k", "v", 0)
        clock.advance(365 * 24 * 3600)
        assert await store.get("k") == "v"

    @pytest.mark.asyncio
    async def test_sub_millisecond_ttl_is_live_until_it_elapses(self, store: ICacheStore, clock) -> None:
        await store.set("k", "old")
        await store.set("k", "new", 0.0001)
        assert await store.get("k") == "new"
        clock.advance(2)
        assert await store.has("k") is False

    @pytest.mark.asyncio
    async def test_expired_entry_reads_as_default(self, store: ICacheStore, clock) -> None:
        await store.set("a", {"n": 1}, 1)
        clock.advance(2)
        assert await store.get("a") is None
        assert await store.get("a", "fallback") == "fallback"
        assert await store.has("a") is False


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete_absent_returns_zero(self, store: ICacheStore) -> None:
        assert await store.delete("missing") == 0

    @pytest.mark.asyncio
    async def test_delete_present_returns_one(self, store: ICacheStore) -> None:
        await store.set("k", "v")
        assert await store.delete("k") == 1
        assert await store.has("k") is False

    @pytest.mark.asyncio
    async def test_delete_many_counts_present_keys(self, store: ICacheStore) -> None:
        await store.set("k1", 1)
        await store.set("k3", 3)
        assert await store.delete(["k1", "k2", "k3"]) == 2
        assert await store.has("k1") is False
        assert await store.has("k3") is False

    @pytest.mark.asyncio
    async def test_duplicate_keys_count_once(self, store: ICacheStore) -> None:
        await store.set("k", "v")
        assert await store.delete(["k", "k"]) == 1

    @pytest.mark.asyncio
    async def test_delete_empty_list(self, store: ICacheStore) -> None:
        assert await store.delete([]) == 0

    @pytest.mark.asyncio
    async def test_delete_of_expired_key_counts_zero(self, store: ICacheStore, clock) -> None:
        await store.set("k", "v", 1)
        clock.advance(2)
        assert await store.delete("k") == 0
        assert await store.delete(["k", "k"]) == 0

    @pytest.mark.asyncio
    async def test_delete_counts_live_keys_among_expired(self, store: ICacheStore, clock) -> None:
        await store.set("short", 1, 1)
        await store.set("long", 2, 100)
        clock.advance(2)
        assert await store.delete(["short", "long"]) == 1


class TestFetch:
    @pytest.mark.asyncio
    async def test_miss_computes_stores_and_returns(self, store: ICacheStore, clock) -> None:
        calls: list[int] = []

        def produce() -> dict:
            calls.append(1)
            return {"fresh": True}

        assert await store.fetch("k", produce, 10) == {"fresh": True}
        assert len(calls) == 1
        assert await store.get("k") == {"fresh": True}

        clock.advance(11)
        assert await store.has("k") is False

    @pytest.mark.asyncio
    async def test_hit_never_calls_producer(self, store: ICacheStore) -> None:
        await store.set("k", "cached")
        calls: list[int] = []

        def produce() -> str:
            calls.append(1)
            return "fresh"

        assert await store.fetch("k", produce) == "cached"
        assert calls == []

    @pytest.mark.asyncio
    async def test_literal_default_is_stored(self, store: ICacheStore) -> None:
        assert await store.fetch("k", "literal") == "literal"
        assert await store.get("k") == "literal"

    @pytest.mark.asyncio
    async def test_async_producer(self, store: ICacheStore) -> None:
        async def produce() -> list[int]:
            return [1, 2, 3]

        assert await store.fetch("k", produce) == [1, 2, 3]
        assert await store.get("k") == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_stored_falsy_value_is_a_hit(self, store: ICacheStore) -> None:
        await store.set("count", 0)
        assert await store.fetch("count", lambda: 99) == 0

    @pytest.mark.asyncio
    async def test_failing_producer_writes_nothing(self, store: ICacheStore) -> None:
        async def boom() -> None:
            raise ValueError("upstream down")

        with pytest.raises(ValueError, match="upstream down"):
            await store.fetch("k", boom, 10)
        assert await store.has("k") is False


class TestAdd:
    @pytest.mark.asyncio
    async def test_add_only_once(self, store: ICacheStore) -> None:
        assert await store.add("b", 5) is True
        assert await store.add("b", 9) is False
        assert await store.get("b") == 5

    @pytest.mark.asyncio
    async def test_add_after_expiry_succeeds(self, store: ICacheStore, clock) -> None:
        assert await store.add("k", "first", 1) is True
        clock.advance(2)
        assert await store.add("k", "second") is True
        assert await store.get("k") == "second"

    @pytest.mark.asyncio
    async def test_add_respects_falsy_existing_value(self, store: ICacheStore) -> None:
        await store.set("flag", False)
        assert await store.add("flag", True) is False
        assert await store.get("flag") is False


class TestPullForever:
    @pytest.mark.asyncio
    async def test_pull_returns_and_deletes(self, store: ICacheStore) -> None:
        await store.set("k", {"once": True})
        assert await store.pull("k") == {"once": True}
        assert await store.has("k") is False

    @pytest.mark.asyncio
    async def test_pull_missing_returns_default(self, store: ICacheStore) -> None:
        assert await store.pull("missing") is None
        assert await store.pull("missing", "fallback") == "fallback"

    @pytest.mark.asyncio
    async def test_forever_survives_time(self, store: ICacheStore, clock) -> None:
        await store.set("k", "short", 1)
        await store.forever("k", "long")
        clock.advance(10 * 365 * 24 * 3600)
        assert await store.has("k") is True
        assert await store.get("k") == "long"


class TestDestroy:
    @pytest.mark.asyncio
    async def test_destroy_clears_everything(self, store: ICacheStore) -> None:
        await store.set("a", 1)
        await store.set("b", 2, 60)
        await store.forever("c", 3)

        await store.destroy()

        for key in ("a", "b", "c"):
            assert await store.has(key) is False

    @pytest.mark.asyncio
    async def test_store_usable_after_destroy(self, store: ICacheStore) -> None:
        await store.set("a", 1)
        await store.destroy()

        await store.set("a", 2)
        assert await store.get("a") == 2
        assert await store.delete("a") == 1
