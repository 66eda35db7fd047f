"""Queue job models: status tracking, leases and retry policy."""

from __future__ import annotations

import random
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


class QueueJobStatus(str, Enum):
    """Status of a job in the queue."""

    PENDING = "pending"  # Waiting for run_at
    PROCESSING = "processing"  # Leased by a worker
    COMPLETED = "completed"
    DEAD = "dead"  # Exhausted max_attempts


class QueueJob(BaseModel):
    """A queued unit of work.

    The queue knows only the task name and an opaque payload dict.
    """

    model_config = ConfigDict(extra="forbid")

    id: str
    task_name: str
    payload: dict[str, Any] = Field(default_factory=dict)
    status: QueueJobStatus = QueueJobStatus.PENDING
    attempts: int = Field(default=0, ge=0, description="Dispatches so far")
    max_attempts: int = Field(default=3, ge=1)
    run_at: datetime = Field(default_factory=_utcnow, description="Earliest dispatch time")
    locked_by: Optional[str] = None
    locked_until: Optional[datetime] = None
    last_error: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
    completed_at: Optional[datetime] = None

    def is_terminal(self) -> bool:
        return self.status in (QueueJobStatus.COMPLETED, QueueJobStatus.DEAD)

    @property
    def attempts_remaining(self) -> int:
        return max(self.max_attempts - self.attempts, 0)


class QueueStats(BaseModel):
    """Job counts per status."""

    pending: int = 0
    processing: int = 0
    completed: int = 0
    dead: int = 0


class RetryPolicy(BaseModel):
    """Backoff between failed attempts.

    Attributes:
        base_delay_seconds: Delay before the first retry.
        max_delay_seconds: Upper bound on any delay.
        exponential_backoff: Double the delay on each attempt.
        jitter: Add up to 25% random jitter.
    """

    base_delay_seconds: float = Field(default=5.0, ge=0.0)
    max_delay_seconds: float = Field(default=300.0, ge=0.0)
    exponential_backoff: bool = True
    jitter: bool = True

    def get_delay(self, attempt: int) -> float:
        """Delay in seconds before the retry following ``attempt`` (1-indexed)."""
        if self.exponential_backoff:
            delay = self.base_delay_seconds * (2 ** max(attempt - 1, 0))
        else:
            delay = self.base_delay_seconds

        if self.jitter:
            delay += delay * 0.25 * random.random()

        return min(delay, self.max_delay_seconds)
