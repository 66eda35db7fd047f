"""MongoDB connection setup using Motor async driver."""

import logging
import os

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

logger = logging.getLogger(__name__)

MONGODB_URL = os.getenv("MONGODB_URL", "mongodb://localhost:27017")
DATABASE_NAME = os.getenv("DATABASE_NAME", "content_studio")

THREADS_COLLECTION = "threads"
CONTENTS_COLLECTION = "contents"
JOBS_COLLECTION = "jobs"

_client: AsyncIOMotorClient | None = None


async def get_database() -> AsyncIOMotorDatabase:
    """Get the database instance, creating the client on first use."""
    global _client
    if _client is None:
        # Fail fast if MongoDB is unavailable
        _client = AsyncIOMotorClient(
            MONGODB_URL,
            serverSelectionTimeoutMS=5000,
            connectTimeoutMS=5000,
        )
    return _client[DATABASE_NAME]


async def ensure_indexes() -> None:
    """Create the indexes the thread and content stores query by."""
    db = await get_database()
    await db[THREADS_COLLECTION].create_index([("userId", 1), ("createdAt", -1)])
    await db[CONTENTS_COLLECTION].create_index([("threadId", 1), ("createdAt", -1)])
    logger.info("MongoDB indexes ensured")


async def close_database() -> None:
    """Close the database connection."""
    global _client
    if _client is not None:
        _client.close()
        _client = None


def set_client(client: AsyncIOMotorClient | None) -> None:
    """Set the client instance (for testing)."""
    global _client
    _client = client
