# backend/webwallet/db/mongo.py
"""MongoDB connection management and the Mongo-backed document store"""

from __future__ import annotations
import asyncio
from typing import Any, Dict, Optional

from motor.motor_asyncio import (
    AsyncIOMotorClient,
    AsyncIOMotorDatabase,
    AsyncIOMotorCollection,
)
from pymongo.errors import DuplicateKeyError, PyMongoError

from webwallet.core.config import settings
from webwallet.core.errors import StorageError, WriteConflictError
from webwallet.logger import get_logger

log = get_logger(__name__)

# One client per process, opened in the app lifespan
_client: Optional[AsyncIOMotorClient] = None
_db: Optional[AsyncIOMotorDatabase] = None


async def connect_to_mongo() -> AsyncIOMotorDatabase:
    """Open the shared client and verify it with a ping"""
    global _client, _db

    timeout = settings.MONGO_CONNECT_TIMEOUT_SECONDS
    _client = AsyncIOMotorClient(
        settings.MONGO_URI,
        tz_aware=True,
        serverSelectionTimeoutMS=int(timeout * 1000),
        maxPoolSize=10,
        minPoolSize=1,
        maxIdleTimeMS=60000,
    )
    _db = _client[settings.MONGO_DB_NAME]

    try:
        await asyncio.wait_for(_client.admin.command("ping"), timeout=timeout)
    except (PyMongoError, asyncio.TimeoutError) as e:
        _client.close()
        _client, _db = None, None
        raise StorageError(f"failed to connect to MongoDB: {e}") from e

    log.info("Connected to MongoDB: %s", settings.MONGO_DB_NAME)
    return _db


async def close_mongo_connection() -> None:
    """Close the shared client, bounded by SHUTDOWN_TIMEOUT_SECONDS"""
    global _client, _db
    if _client is None:
        return
    client, _client, _db = _client, None, None
    try:
        await asyncio.wait_for(
            asyncio.to_thread(client.close),
            timeout=settings.SHUTDOWN_TIMEOUT_SECONDS,
        )
    except asyncio.TimeoutError:
        log.warning("MongoDB client did not close within %.1fs", settings.SHUTDOWN_TIMEOUT_SECONDS)
        return
    log.info("Disconnected from MongoDB")


class MongoDocumentStore:
    """DocumentStore over one Mongo collection, keyed by ``_id``."""

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        try:
            return await self.collection.find_one({"_id": key})
        except PyMongoError as e:
            raise StorageError(f"failed to read document {key!r}: {e}") from e

    async def upsert(
        self, key: str, document: Dict[str, Any], expected_version: Optional[int] = None
    ) -> None:
        body = {k: v for k, v in document.items() if k != "_id"}
        try:
            if expected_version is None:
                await self.collection.replace_one({"_id": key}, body, upsert=True)
            elif expected_version == 0:
                # first save, or a document written before versioning existed
                await self.collection.replace_one(
                    {"_id": key, "version": {"$exists": False}}, body, upsert=True
                )
            else:
                result = await self.collection.replace_one(
                    {"_id": key, "version": expected_version}, body
                )
                if result.matched_count == 0:
                    raise WriteConflictError(
                        f"document {key!r} is no longer at version {expected_version}"
                    )
        except DuplicateKeyError as e:
            raise WriteConflictError(f"document {key!r} already exists") from e
        except PyMongoError as e:
            raise StorageError(f"failed to save document {key!r}: {e}") from e

    async def ping(self) -> bool:
        try:
            await self.collection.database.command("ping")
            return True
        except PyMongoError:
            return False
