"""MongoDB-backed durable queue.

Jobs persist across restarts. Claiming uses ``find_one_and_update`` so that
exactly one worker leases a due job per attempt.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from uuid import uuid4

from pymongo import ReturnDocument

from content_studio.db.mongo import JOBS_COLLECTION, get_database

from .base import DEFAULT_MAX_ATTEMPTS, QueueBackend
from .models import QueueJob, QueueJobStatus, QueueStats

logger = logging.getLogger(__name__)


class MongoJobQueue(QueueBackend):
    """Durable queue stored in the ``jobs`` collection."""

    def __init__(self, collection_name: str = JOBS_COLLECTION, **kwargs: Any):
        super().__init__(**kwargs)
        self._collection_name = collection_name
        self._index_created = False

    async def initialize(self) -> None:
        """Ensure indexes on startup."""
        await self._ensure_indexes()

    async def _get_collection(self):
        db = await get_database()
        return db[self._collection_name]

    async def _ensure_indexes(self) -> None:
        if self._index_created:
            return
        try:
            collection = await self._get_collection()
            await collection.create_index([("status", 1), ("task_name", 1), ("run_at", 1)])
            await collection.create_index([("status", 1), ("locked_until", 1)])
            self._index_created = True
            logger.info("MongoDB job queue indexes created")
        except Exception as e:
            logger.warning(f"Failed to create MongoDB job queue indexes: {e}")

    @staticmethod
    def _job_to_doc(job: QueueJob) -> dict:
        doc = job.model_dump()
        doc["_id"] = doc.pop("id")
        doc["status"] = job.status.value
        return doc

    @staticmethod
    def _doc_to_job(doc: dict) -> QueueJob:
        data = dict(doc)
        data["id"] = str(data.pop("_id"))
        return QueueJob.model_validate(data)

    async def enqueue(
        self,
        task_name: str,
        payload: dict[str, Any],
        delay_seconds: float = 0.0,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> QueueJob:
        now = datetime.now(timezone.utc)
        job = QueueJob(
            id=str(uuid4()),
            task_name=task_name,
            payload=dict(payload),
            max_attempts=max_attempts,
            run_at=now + timedelta(seconds=delay_seconds),
            created_at=now,
            updated_at=now,
        )
        collection = await self._get_collection()
        await collection.insert_one(self._job_to_doc(job))

        logger.debug(f"Enqueued {task_name} job {job.id} in MongoDB (delay={delay_seconds}s)")
        return job

    async def dequeue(self, task_names: list[str], worker_id: str) -> Optional[QueueJob]:
        collection = await self._get_collection()

        while True:
            now = datetime.now(timezone.utc)
            doc = await collection.find_one_and_update(
                {
                    "task_name": {"$in": task_names},
                    "$or": [
                        {"status": QueueJobStatus.PENDING.value, "run_at": {"$lte": now}},
                        {"status": QueueJobStatus.PROCESSING.value, "locked_until": {"$lte": now}},
                    ],
                },
                {
                    "$set": {
                        "status": QueueJobStatus.PROCESSING.value,
                        "locked_by": worker_id,
                        "locked_until": now + timedelta(seconds=self._visibility_timeout_seconds),
                        "updated_at": now,
                    },
                    "$inc": {"attempts": 1},
                },
                sort=[("run_at", 1)],
                return_document=ReturnDocument.AFTER,
            )
            if doc is None:
                return None

            job = self._doc_to_job(doc)
            if job.attempts <= job.max_attempts:
                return job

            # Lease of the final attempt expired
            await collection.update_one(
                {"_id": job.id},
                {
                    "$set": {
                        "status": QueueJobStatus.DEAD.value,
                        "completed_at": now,
                        "locked_by": None,
                        "locked_until": None,
                        "last_error": job.last_error or "lease expired",
                    }
                },
            )
            logger.warning(f"Job {job.id} exhausted attempts after lease expiry")

    async def complete(self, job_id: str) -> Optional[QueueJob]:
        collection = await self._get_collection()
        now = datetime.now(timezone.utc)
        doc = await collection.find_one_and_update(
            {"_id": job_id},
            {
                "$set": {
                    "status": QueueJobStatus.COMPLETED.value,
                    "completed_at": now,
                    "updated_at": now,
                    "locked_by": None,
                    "locked_until": None,
                }
            },
            return_document=ReturnDocument.AFTER,
        )
        return self._doc_to_job(doc) if doc else None

    async def fail(self, job_id: str, error: str) -> Optional[QueueJob]:
        collection = await self._get_collection()
        doc = await collection.find_one({"_id": job_id})
        if not doc:
            return None

        job = self._doc_to_job(doc)
        now = datetime.now(timezone.utc)
        update: dict[str, Any] = {
            "last_error": error,
            "updated_at": now,
            "locked_by": None,
            "locked_until": None,
        }
        if job.attempts < job.max_attempts:
            delay = self._retry_policy.get_delay(job.attempts)
            update["status"] = QueueJobStatus.PENDING.value
            update["run_at"] = now + timedelta(seconds=delay)
            logger.info(f"Job {job_id} scheduled for retry in {delay:.1f}s")
        else:
            update["status"] = QueueJobStatus.DEAD.value
            update["completed_at"] = now
            logger.warning(f"Job {job_id} is dead after {job.attempts} attempts: {error}")

        doc = await collection.find_one_and_update(
            {"_id": job_id},
            {"$set": update},
            return_document=ReturnDocument.AFTER,
        )
        return self._doc_to_job(doc) if doc else None

    async def get_job(self, job_id: str) -> Optional[QueueJob]:
        collection = await self._get_collection()
        doc = await collection.find_one({"_id": job_id})
        return self._doc_to_job(doc) if doc else None

    async def stats(self) -> QueueStats:
        collection = await self._get_collection()
        counts = {}
        for status in QueueJobStatus:
            counts[status.value] = await collection.count_documents({"status": status.value})
        return QueueStats(**counts)
