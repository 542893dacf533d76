"""
Session memory store: maps a chat id to its current rolling summary.

Two backends share one interface so the turn pipeline never knows which
one it talks to:
- InMemorySummaryStore: process-local, ephemeral, bounded by compaction
- MongoSummaryStore: networked, survives restarts
"""
from dataclasses import dataclass
from typing import Dict, Optional
import asyncio
import logging

from motor.motor_asyncio import AsyncIOMotorDatabase

from ..tools.time import format_iso

logger = logging.getLogger(__name__)


DEFAULT_MAX_ENTRIES = 1000
DEFAULT_RETAIN_ENTRIES = 500


@dataclass(frozen=True)
class SessionSummary:
    """Current summary for one conversation. Replaced wholesale on update."""
    chat_id: str
    text: str
    updated_at: str


class SummaryStore:
    """
    Interface for summary storage.

    set() is last-writer-wins; concurrent turns on the same chat id race
    and the later write replaces the earlier one.
    """

    async def get(self, chat_id: str) -> Optional[str]:
        record = await self.get_record(chat_id)
        return record.text if record else None

    async def get_record(self, chat_id: str) -> Optional[SessionSummary]:
        raise NotImplementedError

    async def set(self, chat_id: str, text: str) -> None:
        raise NotImplementedError

    async def delete(self, chat_id: str) -> bool:
        raise NotImplementedError

    async def count(self) -> int:
        raise NotImplementedError

    async def compact(self) -> int:
        """Evict entries over the ceiling. Returns the number evicted."""
        raise NotImplementedError


class InMemorySummaryStore(SummaryStore):
    """
    Dict-backed store ordered by last write.

    Compaction is size-triggered: once the entry count exceeds max_entries,
    only the `retain` most recently written entries are kept. Reads do not
    refresh an entry's position.
    """

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        retain: int = DEFAULT_RETAIN_ENTRIES
    ):
        if retain > max_entries:
            raise ValueError("retain must not exceed max_entries")
        self.max_entries = max_entries
        self.retain = retain
        self._entries: Dict[str, SessionSummary] = {}

    async def get_record(self, chat_id: str) -> Optional[SessionSummary]:
        return self._entries.get(chat_id)

    async def set(self, chat_id: str, text: str) -> None:
        # Re-insert so the key moves to the newest position
        self._entries.pop(chat_id, None)
        self._entries[chat_id] = SessionSummary(
            chat_id=chat_id,
            text=text,
            updated_at=format_iso()
        )

    async def delete(self, chat_id: str) -> bool:
        return self._entries.pop(chat_id, None) is not None

    async def count(self) -> int:
        return len(self._entries)

    async def compact(self) -> int:
        total = len(self._entries)
        if total <= self.max_entries:
            return 0

        keep = list(self._entries.items())[-self.retain:] if self.retain else []
        self._entries = dict(keep)
        evicted = total - len(self._entries)
        logger.info(f"Compacted summary store: evicted {evicted}, kept {len(self._entries)}")
        return evicted


class MongoSummaryStore(SummaryStore):
    """
    MongoDB-backed summary store.

    Collection `summaries`:
        {chatId, summary, createdAt, updatedAt}
    """

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        retain: int = DEFAULT_RETAIN_ENTRIES
    ):
        """
        Initialize Mongo summary store.

        Args:
            db: MongoDB database instance
            max_entries: Entry count that triggers compaction
            retain: Entries kept after compaction (newest by updatedAt)
        """
        if retain > max_entries:
            raise ValueError("retain must not exceed max_entries")
        self.db = db
        self.collection = db["summaries"]
        self.max_entries = max_entries
        self.retain = retain

    async def get_record(self, chat_id: str) -> Optional[SessionSummary]:
        doc = await self.collection.find_one({"chatId": chat_id})
        if not doc or doc.get("summary") is None:
            return None
        return SessionSummary(
            chat_id=doc["chatId"],
            text=doc["summary"],
            updated_at=doc.get("updatedAt", "")
        )

    async def set(self, chat_id: str, text: str) -> None:
        now = format_iso()
        await self.collection.update_one(
            {"chatId": chat_id},
            {
                "$set": {
                    "summary": text,
                    "updatedAt": now
                },
                "$setOnInsert": {
                    "createdAt": now
                }
            },
            upsert=True
        )

    async def delete(self, chat_id: str) -> bool:
        result = await self.collection.delete_one({"chatId": chat_id})
        return result.deleted_count > 0

    async def count(self) -> int:
        return await self.collection.count_documents({})

    async def compact(self) -> int:
        total = await self.count()
        if total <= self.max_entries:
            return 0

        # Oldest writes first; everything beyond the retained tail goes
        cursor = self.collection.find({}, {"_id": 1}).sort("updatedAt", 1).limit(total - self.retain)
        stale = await cursor.to_list(length=None)
        if not stale:
            return 0

        result = await self.collection.delete_many({"_id": {"$in": [doc["_id"] for doc in stale]}})
        logger.info(f"Compacted Mongo summary store: evicted {result.deleted_count}")
        return result.deleted_count


async def run_periodic_compaction(store: SummaryStore, interval_seconds: float):
    """
    Background loop: compact the store every `interval_seconds`.

    Runs as its own task so it never blocks a chat turn. Cancel the task
    to stop it.
    """
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await store.compact()
        except Exception as e:
            logger.error(f"Summary store compaction failed: {str(e)}", exc_info=True)
