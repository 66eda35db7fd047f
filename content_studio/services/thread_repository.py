"""Thread store backed by the ``threads`` collection.

Deletes are soft: ``status=deleted`` threads are excluded from every read.
"""

import logging
import re
from datetime import UTC, datetime
from typing import Any

from bson import ObjectId
from bson.errors import InvalidId

from content_studio.db.mongo import THREADS_COLLECTION, get_database
from content_studio.models import ContentType, Thread, ThreadQuery, ThreadStatus

logger = logging.getLogger(__name__)

_NOT_DELETED = {"$ne": ThreadStatus.DELETED.value}


def to_object_id(value: str | ObjectId) -> ObjectId | None:
    """Parse an id, returning None for malformed values."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def _to_thread(doc: dict) -> Thread:
    """Convert MongoDB document to Thread model."""
    return Thread(
        id=str(doc["_id"]),
        userId=str(doc["userId"]),
        title=doc.get("title", ""),
        type=ContentType(doc["type"]),
        status=ThreadStatus(doc.get("status", ThreadStatus.ACTIVE.value)),
        createdAt=doc["createdAt"],
        updatedAt=doc["updatedAt"],
    )


class ThreadRepository:
    """CRUD access to threads."""

    async def _get_collection(self):
        db = await get_database()
        return db[THREADS_COLLECTION]

    async def create(
        self,
        user_id: str,
        title: str,
        content_type: ContentType,
        status: ThreadStatus = ThreadStatus.ACTIVE,
    ) -> Thread:
        collection = await self._get_collection()
        now = datetime.now(UTC)
        doc = {
            "userId": user_id,
            "title": title,
            "type": content_type.value,
            "status": status.value,
            "createdAt": now,
            "updatedAt": now,
        }
        result = await collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return _to_thread(doc)

    async def find_owned(self, thread_id: str, user_id: str) -> Thread | None:
        """Get a non-deleted thread only if ``user_id`` owns it."""
        object_id = to_object_id(thread_id)
        if object_id is None or not user_id:
            return None
        collection = await self._get_collection()
        doc = await collection.find_one({"_id": object_id, "userId": user_id, "status": _NOT_DELETED})
        return _to_thread(doc) if doc else None

    async def update(self, thread_id: str, fields: dict[str, Any]) -> Thread | None:
        """Apply a partial update. ``userId`` is never writable."""
        object_id = to_object_id(thread_id)
        if object_id is None:
            return None
        update_doc = {
            key: value.value if hasattr(value, "value") else value
            for key, value in fields.items()
            if key != "userId" and value is not None
        }
        update_doc["updatedAt"] = datetime.now(UTC)

        collection = await self._get_collection()
        await collection.update_one({"_id": object_id}, {"$set": update_doc})
        doc = await collection.find_one({"_id": object_id})
        return _to_thread(doc) if doc else None

    async def update_title(self, thread_id: str, title: str) -> Thread | None:
        return await self.update(thread_id, {"title": title})

    async def soft_delete(self, thread_id: str) -> bool:
        object_id = to_object_id(thread_id)
        if object_id is None:
            return False
        collection = await self._get_collection()
        result = await collection.update_one(
            {"_id": object_id, "status": _NOT_DELETED},
            {"$set": {"status": ThreadStatus.DELETED.value, "updatedAt": datetime.now(UTC)}},
        )
        return result.modified_count > 0

    async def list_for_user(self, user_id: str, query: ThreadQuery) -> tuple[list[Thread], int]:
        """One page of a user's threads plus the total match count."""
        filters: dict[str, Any] = {"userId": user_id, "status": _NOT_DELETED}
        if query.status and query.status != ThreadStatus.DELETED:
            filters["status"] = query.status.value
        if query.type:
            filters["type"] = query.type.value
        if query.search:
            filters["title"] = {"$regex": re.escape(query.search), "$options": "i"}

        collection = await self._get_collection()
        total = await collection.count_documents(filters)

        direction = 1 if query.sortOrder == "asc" else -1
        cursor = (
            collection.find(filters)
            .sort([("createdAt", direction), ("_id", direction)])
            .skip((query.currentPage - 1) * query.pageSize)
            .limit(query.pageSize)
        )
        docs = await cursor.to_list(length=None)
        return [_to_thread(doc) for doc in docs], total

    async def ids_for_user(self, user_id: str) -> list[str]:
        collection = await self._get_collection()
        cursor = collection.find({"userId": user_id, "status": _NOT_DELETED}, {"_id": 1})
        docs = await cursor.to_list(length=None)
        return [str(doc["_id"]) for doc in docs]

    async def count_by_type(self, user_id: str) -> dict[str, int]:
        """Count a user's non-deleted threads per content type."""
        counts = {content_type.value: 0 for content_type in ContentType}
        collection = await self._get_collection()
        cursor = collection.find({"userId": user_id, "status": _NOT_DELETED}, {"type": 1})
        for doc in await cursor.to_list(length=None):
            counts[doc["type"]] = counts.get(doc["type"], 0) + 1
        return counts
