"""
MongoDB connection for the networked summary store (MEMORY_BACKEND=mongo).
"""
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from typing import Optional
import logging

from chatmemory.config import Settings

logger = logging.getLogger(__name__)


class DatabaseClient:
    """
    Holds one motor client per process.

    Usage:
        db_client = get_db_client()
        db = await db_client.connect(settings)
        ...
        await db_client.disconnect()
    """

    def __init__(self):
        self.client: Optional[AsyncIOMotorClient] = None
        self.db: Optional[AsyncIOMotorDatabase] = None

    async def connect(self, settings: Settings) -> AsyncIOMotorDatabase:
        """
        Connect using MONGO_URI / MONGO_DB_NAME and verify with a ping.

        Returns:
            The summary database. A second call reuses the open connection.
        """
        if self.db is not None:
            return self.db

        client = AsyncIOMotorClient(
            settings.mongo_uri,
            maxPoolSize=10,
            serverSelectionTimeoutMS=5000
        )
        db = client[settings.mongo_db_name]

        try:
            await db.command("ping")
        except Exception as e:
            client.close()
            logger.error(f"Failed to connect to MongoDB: {str(e)}")
            raise

        self.client = client
        self.db = db
        logger.info(f"Connected to MongoDB: {settings.mongo_db_name}")
        return db

    async def disconnect(self):
        """Close MongoDB connection."""
        if self.client is not None:
            self.client.close()
            logger.info("Disconnected from MongoDB")
        self.client = None
        self.db = None

    async def ping(self) -> bool:
        """True when connected and the server answers."""
        if self.db is None:
            return False
        try:
            await self.db.command("ping")
            return True
        except Exception as e:
            logger.error(f"MongoDB ping failed: {str(e)}")
            return False


_db_client: Optional[DatabaseClient] = None


def get_db_client() -> DatabaseClient:
    """Process-wide DatabaseClient (singleton)."""
    global _db_client
    if _db_client is None:
        _db_client = DatabaseClient()
    return _db_client
