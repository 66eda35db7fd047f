"""In-memory queue backend.

For tests and local development: jobs are lost on restart. Semantics
(delays, leases, retries) match the Mongo backend.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from uuid import uuid4

from .base import DEFAULT_MAX_ATTEMPTS, QueueBackend
from .models import QueueJob, QueueJobStatus, QueueStats

logger = logging.getLogger(__name__)


class InMemoryJobQueue(QueueBackend):
    """Dict-backed queue guarded by an asyncio lock."""

    def __init__(self, **kwargs: Any):
        super().__init__(**kwargs)
        self._jobs: dict[str, QueueJob] = {}
        self._lock = asyncio.Lock()

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
        async with self._lock:
            self._jobs[job.id] = job

        logger.debug(f"Enqueued {task_name} job {job.id} (delay={delay_seconds}s)")
        return job.model_copy()

    async def dequeue(self, task_names: list[str], worker_id: str) -> Optional[QueueJob]:
        async with self._lock:
            while True:
                now = datetime.now(timezone.utc)
                due = [
                    job
                    for job in self._jobs.values()
                    if job.task_name in task_names and self._is_claimable(job, now)
                ]
                if not due:
                    return None

                job = min(due, key=lambda j: j.run_at)
                job.attempts += 1
                job.updated_at = now

                if job.attempts > job.max_attempts:
                    # Lease of the final attempt expired
                    job.status = QueueJobStatus.DEAD
                    job.completed_at = now
                    job.locked_by = None
                    job.locked_until = None
                    job.last_error = job.last_error or "lease expired"
                    logger.warning(f"Job {job.id} exhausted attempts after lease expiry")
                    continue

                job.status = QueueJobStatus.PROCESSING
                job.locked_by = worker_id
                job.locked_until = now + timedelta(seconds=self._visibility_timeout_seconds)
                return job.model_copy()

    @staticmethod
    def _is_claimable(job: QueueJob, now: datetime) -> bool:
        if job.status == QueueJobStatus.PENDING:
            return job.run_at <= now
        if job.status == QueueJobStatus.PROCESSING:
            return job.locked_until is not None and job.locked_until <= now
        return False

    async def complete(self, job_id: str) -> Optional[QueueJob]:
        async with self._lock:
            job = self._jobs.get(job_id)
            if not job:
                return None
            now = datetime.now(timezone.utc)
            job.status = QueueJobStatus.COMPLETED
            job.completed_at = now
            job.updated_at = now
            job.locked_by = None
            job.locked_until = None
            return job.model_copy()

    async def fail(self, job_id: str, error: str) -> Optional[QueueJob]:
        async with self._lock:
            job = self._jobs.get(job_id)
            if not job:
                return None
            now = datetime.now(timezone.utc)
            job.last_error = error
            job.updated_at = now
            job.locked_by = None
            job.locked_until = None

            if job.attempts < job.max_attempts:
                delay = self._retry_policy.get_delay(job.attempts)
                job.status = QueueJobStatus.PENDING
                job.run_at = now + timedelta(seconds=delay)
                logger.info(f"Job {job_id} scheduled for retry in {delay:.1f}s")
            else:
                job.status = QueueJobStatus.DEAD
                job.completed_at = now
                logger.warning(f"Job {job_id} is dead after {job.attempts} attempts: {error}")

            return job.model_copy()

    async def get_job(self, job_id: str) -> Optional[QueueJob]:
        async with self._lock:
            job = self._jobs.get(job_id)
            return job.model_copy() if job else None

    async def list_jobs(self, task_name: Optional[str] = None) -> list[QueueJob]:
        """List jobs, oldest first."""
        async with self._lock:
            jobs = [
                job.model_copy()
                for job in self._jobs.values()
                if task_name is None or job.task_name == task_name
            ]
        return sorted(jobs, key=lambda j: j.created_at)

    async def stats(self) -> QueueStats:
        async with self._lock:
            counts = {status: 0 for status in QueueJobStatus}
            for job in self._jobs.values():
                counts[job.status] += 1
        return QueueStats(**{status.value: count for status, count in counts.items()})

    def __len__(self) -> int:
        return len(self._jobs)
