"""
Process-wide dependencies shared by the routers.
"""
from typing import Optional
import logging

from chatmemory.config import Settings, get_settings
from chatmemory.memory.store import InMemorySummaryStore, MongoSummaryStore, SummaryStore
from db.client import get_db_client
from db.indexes import create_indexes

logger = logging.getLogger(__name__)


_memory_store: Optional[SummaryStore] = None


async def init_memory_store(settings: Settings) -> SummaryStore:
    """
    Create the configured summary store. Called once from the app lifespan.

    Args:
        settings: Application settings (MEMORY_BACKEND selects the backend)

    Returns:
        The process-wide SummaryStore
    """
    global _memory_store

    if settings.memory_backend == "mongo":
        db = await get_db_client().connect(settings)
        await create_indexes(db)
        _memory_store = MongoSummaryStore(
            db,
            max_entries=settings.memory_max_sessions,
            retain=settings.memory_retain_sessions
        )
    elif settings.memory_backend == "memory":
        _memory_store = InMemorySummaryStore(
            max_entries=settings.memory_max_sessions,
            retain=settings.memory_retain_sessions
        )
    else:
        raise ValueError(f"Unknown MEMORY_BACKEND: {settings.memory_backend}")

    logger.info(f"Summary store ready: backend={settings.memory_backend}")
    return _memory_store


async def close_memory_store(settings: Settings):
    global _memory_store
    _memory_store = None
    if settings.memory_backend == "mongo":
        await get_db_client().disconnect()


def get_memory_store() -> SummaryStore:
    """
    Dependency injection helper for FastAPI.

    Falls back to an in-process store when the lifespan has not run.
    """
    global _memory_store
    if _memory_store is None:
        settings = get_settings()
        _memory_store = InMemorySummaryStore(
            max_entries=settings.memory_max_sessions,
            retain=settings.memory_retain_sessions
        )
    return _memory_store
