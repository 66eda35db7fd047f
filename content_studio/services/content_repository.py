"""Content store backed by the ``contents`` collection."""

import logging
from datetime import UTC, datetime
from typing import Any, Iterable

from pymongo import ReturnDocument

from content_studio.db.mongo import CONTENTS_COLLECTION, get_database
from content_studio.models import Content, ContentStatus, SentimentType

from .thread_repository import to_object_id

logger = logging.getLogger(__name__)


def _to_content(doc: dict) -> Content:
    """Convert MongoDB document to Content model."""
    return Content(
        id=str(doc["_id"]),
        threadId=str(doc["threadId"]),
        prompt=doc.get("prompt", ""),
        generatedContent=doc.get("generatedContent", ""),
        status=ContentStatus(doc.get("status", ContentStatus.PENDING.value)),
        statusUpdatedAt=doc.get("statusUpdatedAt"),
        sentiment=SentimentType(doc.get("sentiment", SentimentType.NEUTRAL.value)),
        createdAt=doc["createdAt"],
        updatedAt=doc["updatedAt"],
    )


class ContentRepository:
    """Persistence for Content rows.

    Status changes go through ``transition``, a single conditional write, so
    two workers racing on the same content cannot both move it forward.
    """

    async def _get_collection(self):
        db = await get_database()
        return db[CONTENTS_COLLECTION]

    async def create(self, thread_id: str, prompt: str) -> Content:
        """Insert a pending Content with no generated text."""
        collection = await self._get_collection()
        now = datetime.now(UTC)
        doc = {
            "threadId": thread_id,
            "prompt": prompt,
            "generatedContent": "",
            "status": ContentStatus.PENDING.value,
            "statusUpdatedAt": now,
            "sentiment": SentimentType.NEUTRAL.value,
            "createdAt": now,
            "updatedAt": now,
        }
        result = await collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return _to_content(doc)

    async def get(self, content_id: str) -> Content | None:
        object_id = to_object_id(content_id)
        if object_id is None:
            return None
        collection = await self._get_collection()
        doc = await collection.find_one({"_id": object_id})
        return _to_content(doc) if doc else None

    async def list_for_thread(
        self,
        thread_id: str,
        exclude_id: str | None = None,
        newest_first: bool = True,
    ) -> list[Content]:
        filters: dict[str, Any] = {"threadId": thread_id}
        excluded = to_object_id(exclude_id) if exclude_id else None
        if excluded is not None:
            filters["_id"] = {"$ne": excluded}

        collection = await self._get_collection()
        direction = -1 if newest_first else 1
        cursor = collection.find(filters).sort([("createdAt", direction), ("_id", direction)])
        docs = await cursor.to_list(length=None)
        return [_to_content(doc) for doc in docs]

    async def transition(
        self,
        content_id: str,
        to_status: ContentStatus,
        allowed_from: Iterable[ContentStatus],
        **fields: Any,
    ) -> Content | None:
        """Move a Content to ``to_status`` only if it is in ``allowed_from``.

        Returns:
            The updated Content, or None when the id is unknown or the current
            status was not allowed.
        """
        object_id = to_object_id(content_id)
        if object_id is None:
            return None

        now = datetime.now(UTC)
        update_doc = {
            **fields,
            "status": to_status.value,
            "statusUpdatedAt": now,
            "updatedAt": now,
        }
        collection = await self._get_collection()
        doc = await collection.find_one_and_update(
            {"_id": object_id, "status": {"$in": [s.value for s in allowed_from]}},
            {"$set": update_doc},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            logger.debug(f"Transition of content {content_id} to {to_status.value} rejected")
            return None
        return _to_content(doc)

    async def update_sentiment(self, content_id: str, sentiment: SentimentType) -> Content | None:
        """Sentiment-only update; no other field can be written here."""
        object_id = to_object_id(content_id)
        if object_id is None:
            return None
        collection = await self._get_collection()
        doc = await collection.find_one_and_update(
            {"_id": object_id},
            {"$set": {"sentiment": sentiment.value, "updatedAt": datetime.now(UTC)}},
            return_document=ReturnDocument.AFTER,
        )
        return _to_content(doc) if doc else None

    async def status_counts(self, thread_ids: list[str]) -> dict[str, int]:
        """Count contents per status across threads. Every status key is present."""
        counts = {status.value: 0 for status in ContentStatus}
        if not thread_ids:
            return counts
        collection = await self._get_collection()
        cursor = collection.find({"threadId": {"$in": thread_ids}}, {"status": 1})
        for doc in await cursor.to_list(length=None):
            counts[doc["status"]] = counts.get(doc["status"], 0) + 1
        return counts

    async def latest_for_threads(self, thread_ids: list[str]) -> dict[str, Content]:
        """Map each thread id to its most recent Content, if any."""
        if not thread_ids:
            return {}
        collection = await self._get_collection()
        cursor = collection.find({"threadId": {"$in": thread_ids}}).sort([("createdAt", -1), ("_id", -1)])
        latest: dict[str, Content] = {}
        for doc in await cursor.to_list(length=None):
            thread_id = str(doc["threadId"])
            if thread_id not in latest:
                latest[thread_id] = _to_content(doc)
        return latest
