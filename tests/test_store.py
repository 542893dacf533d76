"""Tests for the summary stores and the periodic compaction loop."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from chatmemory.memory.store import (
    InMemorySummaryStore,
    MongoSummaryStore,
    run_periodic_compaction,
)


class TestInMemorySummaryStore:
    @pytest.mark.asyncio
    async def test_get_set_overwrite(self, store: InMemorySummaryStore) -> None:
        assert await store.get("a") is None

        await store.set("a", "first")
        await store.set("a", "second")

        assert await store.get("a") == "second"
        record = await store.get_record("a")
        assert record.chat_id == "a"
        assert record.text == "second"
        assert record.updated_at

    @pytest.mark.asyncio
    async def test_delete(self, store: InMemorySummaryStore) -> None:
        await store.set("a", "x")

        assert await store.delete("a") is True
        assert await store.delete("a") is False
        assert await store.get("a") is None

    @pytest.mark.asyncio
    async def test_compact_below_ceiling_is_noop(self, store: InMemorySummaryStore) -> None:
        for i in range(1000):
            await store.set(f"chat-{i}", "s")

        assert await store.compact() == 0
        assert await store.count() == 1000

    @pytest.mark.asyncio
    async def test_compact_1001_keeps_newest_500(self, store: InMemorySummaryStore) -> None:
        for i in range(1001):
            await store.set(f"chat-{i}", f"summary {i}")

        evicted = await store.compact()

        assert evicted == 501
        assert await store.count() == 500
        for i in range(501):
            assert await store.get(f"chat-{i}") is None
        for i in range(501, 1001):
            assert await store.get(f"chat-{i}") == f"summary {i}"

    @pytest.mark.asyncio
    async def test_rewrite_moves_entry_to_newest(self) -> None:
        store = InMemorySummaryStore(max_entries=3, retain=2)
        for key in ("a", "b", "c", "d"):
            await store.set(key, key)
        await store.set("a", "a2")

        await store.compact()

        assert await store.get("a") == "a2"
        assert await store.get("d") == "d"
        assert await store.get("b") is None
        assert await store.get("c") is None

    def test_retain_must_not_exceed_ceiling(self) -> None:
        with pytest.raises(ValueError):
            InMemorySummaryStore(max_entries=10, retain=11)


class TestPeriodicCompaction:
    @pytest.mark.asyncio
    async def test_loop_compacts_and_survives_errors(self) -> None:
        store = MagicMock()
        calls = 0

        async def _compact():
            nonlocal calls
            calls += 1
            if calls == 1:
                raise RuntimeError("boom")
            return 0

        store.compact = _compact
        task = asyncio.create_task(run_periodic_compaction(store, 0.01))
        for _ in range(100):
            if calls >= 3:
                break
            await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert calls >= 3


def _mongo_db(collection: MagicMock) -> MagicMock:
    db = MagicMock()
    db.__getitem__.return_value = collection
    return db


class TestMongoSummaryStore:
    @pytest.mark.asyncio
    async def test_set_upserts_whole_summary(self) -> None:
        collection = MagicMock()
        collection.update_one = AsyncMock()
        store = MongoSummaryStore(_mongo_db(collection))

        await store.set("chat-1", "digest")

        filter_, update = collection.update_one.call_args.args
        assert filter_ == {"chatId": "chat-1"}
        assert update["$set"]["summary"] == "digest"
        assert "updatedAt" in update["$set"]
        assert "createdAt" in update["$setOnInsert"]
        assert collection.update_one.call_args.kwargs == {"upsert": True}

    @pytest.mark.asyncio
    async def test_get_returns_summary_text(self) -> None:
        collection = MagicMock()
        collection.find_one = AsyncMock(return_value={
            "chatId": "chat-1", "summary": "digest", "updatedAt": "2025-01-01T00:00:00+00:00"
        })
        store = MongoSummaryStore(_mongo_db(collection))

        assert await store.get("chat-1") == "digest"
        collection.find_one.assert_awaited_once_with({"chatId": "chat-1"})

    @pytest.mark.asyncio
    async def test_get_missing(self) -> None:
        collection = MagicMock()
        collection.find_one = AsyncMock(return_value=None)
        store = MongoSummaryStore(_mongo_db(collection))

        assert await store.get("nope") is None

    @pytest.mark.asyncio
    async def test_compact_deletes_oldest_beyond_retain(self) -> None:
        collection = MagicMock()
        collection.count_documents = AsyncMock(return_value=1001)
        cursor = MagicMock()
        cursor.sort.return_value = cursor
        cursor.limit.return_value = cursor
        cursor.to_list = AsyncMock(return_value=[{"_id": i} for i in range(501)])
        collection.find.return_value = cursor
        collection.delete_many = AsyncMock(return_value=SimpleNamespace(deleted_count=501))
        store = MongoSummaryStore(_mongo_db(collection), max_entries=1000, retain=500)

        assert await store.compact() == 501
        cursor.sort.assert_called_once_with("updatedAt", 1)
        cursor.limit.assert_called_once_with(501)
        deleted_ids = collection.delete_many.call_args.args[0]["_id"]["$in"]
        assert deleted_ids == list(range(501))

    def test_retain_must_not_exceed_ceiling(self) -> None:
        with pytest.raises(ValueError):
            MongoSummaryStore(_mongo_db(MagicMock()), max_entries=1000, retain=1500)

    @pytest.mark.asyncio
    async def test_compact_under_ceiling_skips_scan(self) -> None:
        collection = MagicMock()
        collection.count_documents = AsyncMock(return_value=10)
        store = MongoSummaryStore(_mongo_db(collection))

        assert await store.compact() == 0
        collection.find.assert_not_called()
