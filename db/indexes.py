"""
MongoDB index definitions for the summary store.
"""
from motor.motor_asyncio import AsyncIOMotorDatabase
import logging

logger = logging.getLogger(__name__)


async def create_indexes(db: AsyncIOMotorDatabase):
    """
    Create indexes used by MongoSummaryStore.

    - chatId (unique): get/set by conversation
    - updatedAt: oldest-first scan during compaction

    Args:
        db: MongoDB database instance
    """
    logger.info("Creating MongoDB indexes...")

    try:
        summaries = db["summaries"]

        await summaries.create_index(
            [("chatId", 1)],
            name="idx_chat_id",
            unique=True
        )

        await summaries.create_index(
            [("updatedAt", 1)],
            name="idx_updated_at"
        )

        logger.info("Summary indexes created")

    except Exception as e:
        logger.error(f"Failed to create indexes: {str(e)}")
        raise
