"""Abstract base class for queue backends.

Contract:
- ``enqueue`` is durable for the Mongo backend and returns immediately.
- ``dequeue`` atomically claims the oldest due job and leases it to one
  worker for the visibility timeout; a lease that expires (worker crash)
  makes the job claimable again.
- ``fail`` re-schedules with backoff while attempts remain, otherwise the
  job is marked dead.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from .models import QueueJob, QueueStats, RetryPolicy

DEFAULT_VISIBILITY_TIMEOUT_SECONDS = 300
DEFAULT_MAX_ATTEMPTS = 3


class QueueBackend(ABC):
    """Durable, delayed, retryable task queue."""

    def __init__(
        self,
        retry_policy: Optional[RetryPolicy] = None,
        visibility_timeout_seconds: int = DEFAULT_VISIBILITY_TIMEOUT_SECONDS,
    ):
        self._retry_policy = retry_policy or RetryPolicy()
        self._visibility_timeout_seconds = visibility_timeout_seconds

    async def initialize(self) -> None:
        """Called on startup. Override to create indexes or connections."""
        pass

    async def close(self) -> None:
        """Called on shutdown. Override to release resources."""
        pass

    @abstractmethod
    async def enqueue(
        self,
        task_name: str,
        payload: dict[str, Any],
        delay_seconds: float = 0.0,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> QueueJob:
        """Add a job that becomes dispatchable after ``delay_seconds``.

        Returns:
            The created job (its ``id`` is the job handle).
        """
        pass

    @abstractmethod
    async def dequeue(self, task_names: list[str], worker_id: str) -> Optional[QueueJob]:
        """Claim the next due job for one of ``task_names``.

        Returns:
            The leased job, or None if nothing is due.
        """
        pass

    @abstractmethod
    async def complete(self, job_id: str) -> Optional[QueueJob]:
        """Mark a leased job as completed."""
        pass

    @abstractmethod
    async def fail(self, job_id: str, error: str) -> Optional[QueueJob]:
        """Record a failed attempt; retry with backoff or mark dead."""
        pass

    @abstractmethod
    async def get_job(self, job_id: str) -> Optional[QueueJob]:
        """Get a job by ID."""
        pass

    @abstractmethod
    async def stats(self) -> QueueStats:
        """Count jobs per status."""
        pass
