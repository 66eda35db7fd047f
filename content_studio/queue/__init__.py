"""Job queue layer.

Backends:
- ``MongoJobQueue``: durable, shared between API and worker processes.
- ``InMemoryJobQueue``: for tests and local development.

Usage:
    from content_studio.queue import create_queue

    queue = create_queue("mongo")
    job = await queue.enqueue("generate_content", payload, delay_seconds=60, max_attempts=2)
"""

import logging
from typing import Any

from .base import QueueBackend
from .memory_queue import InMemoryJobQueue
from .models import QueueJob, QueueJobStatus, QueueStats, RetryPolicy
from .mongo_queue import MongoJobQueue
from .worker import QueueWorker, TaskHandler

logger = logging.getLogger(__name__)


def create_queue(backend: str = "mongo", **kwargs: Any) -> QueueBackend:
    """Create a queue backend by name.

    Raises:
        ValueError: If the backend name is unknown.
    """
    backend = backend.lower()
    if backend == "mongo":
        logger.info("Using MongoDB job queue")
        return MongoJobQueue(**kwargs)
    if backend == "memory":
        logger.info("Using in-memory job queue")
        return InMemoryJobQueue(**kwargs)
    raise ValueError(f"Unknown queue backend: {backend}. Available: ['mongo', 'memory']")


__all__ = [
    "create_queue",
    "QueueBackend",
    "QueueJob",
    "QueueJobStatus",
    "QueueStats",
    "QueueWorker",
    "RetryPolicy",
    "TaskHandler",
    "InMemoryJobQueue",
    "MongoJobQueue",
]
