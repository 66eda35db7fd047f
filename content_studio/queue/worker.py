"""Queue worker: polls a backend and dispatches jobs to named handlers.

A handler is an async callable taking the job payload. A handler exception
or timeout counts as a failed attempt and hands the job back to the queue's
retry policy; a normal return completes the job.
"""

from __future__ import annotations

import asyncio
import logging
import socket
from collections.abc import Awaitable, Callable
from typing import Any, Optional
from uuid import uuid4

from .base import QueueBackend
from .models import QueueJob

logger = logging.getLogger(__name__)

TaskHandler = Callable[[dict[str, Any]], Awaitable[None]]


class QueueWorker:
    """Run queued jobs with bounded concurrency.

    Usage:
        worker = QueueWorker(queue, {"generate_content": handler})
        await worker.start()
        ...
        await worker.stop()
    """

    def __init__(
        self,
        queue: QueueBackend,
        handlers: dict[str, TaskHandler],
        worker_id: Optional[str] = None,
        poll_interval_seconds: float = 1.0,
        concurrency: int = 4,
        job_timeout_seconds: Optional[float] = None,
    ):
        self._queue = queue
        self._handlers = dict(handlers)
        self.worker_id = worker_id or f"{socket.gethostname()}-{uuid4().hex[:8]}"
        self._poll_interval = poll_interval_seconds
        self._job_timeout = job_timeout_seconds
        self._slots = asyncio.Semaphore(max(concurrency, 1))
        self._stop_event = asyncio.Event()
        self._run_task: Optional[asyncio.Task] = None
        self._inflight: set[asyncio.Task] = set()

    @property
    def task_names(self) -> list[str]:
        return list(self._handlers)

    @property
    def running(self) -> bool:
        return self._run_task is not None and not self._run_task.done()

    def register(self, task_name: str, handler: TaskHandler) -> None:
        """Bind a task name to its handler."""
        self._handlers[task_name] = handler

    async def start(self) -> None:
        """Start the polling loop as a background task."""
        if self.running:
            return
        self._stop_event.clear()
        self._run_task = asyncio.create_task(self._run(), name=f"queue_worker_{self.worker_id}")
        logger.info(f"Queue worker {self.worker_id} started for tasks {self.task_names}")

    async def stop(self, drain_timeout: float = 30.0) -> None:
        """Stop polling and wait for in-flight jobs.

        Jobs still running after ``drain_timeout`` are cancelled; their
        leases expire and another worker picks them up.
        """
        self._stop_event.set()
        if self._run_task is not None:
            await self._run_task
            self._run_task = None

        if self._inflight:
            _, pending = await asyncio.wait(self._inflight, timeout=drain_timeout)
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
        logger.info(f"Queue worker {self.worker_id} stopped")

    async def _run(self) -> None:
        while not self._stop_event.is_set():
            await self._slots.acquire()
            if self._stop_event.is_set():
                self._slots.release()
                break
            try:
                job = await self._queue.dequeue(self.task_names, self.worker_id)
            except Exception as e:
                self._slots.release()
                logger.error(f"Queue worker {self.worker_id} failed to dequeue: {e}")
                await self._idle()
                continue

            if job is None:
                self._slots.release()
                await self._idle()
                continue

            task = asyncio.create_task(self._execute(job), name=f"queue_job_{job.id}")
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)

    async def _idle(self) -> None:
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=self._poll_interval)
        except asyncio.TimeoutError:
            pass

    async def _execute(self, job: QueueJob) -> None:
        try:
            await self.process(job)
        finally:
            self._slots.release()

    async def run_once(self) -> bool:
        """Dequeue and process a single due job.

        Returns:
            True if a job was processed, False if none was due.
        """
        job = await self._queue.dequeue(self.task_names, self.worker_id)
        if job is None:
            return False
        await self.process(job)
        return True

    async def process(self, job: QueueJob) -> bool:
        """Run the handler for a leased job and record the outcome.

        Returns:
            True if the job completed, False if the attempt failed.
        """
        handler = self._handlers.get(job.task_name)
        if handler is None:
            await self._queue.fail(job.id, f"No handler registered for task {job.task_name}")
            return False

        logger.info(
            f"Processing {job.task_name} job {job.id}",
            extra={"job_id": job.id, "attempt": job.attempts, "max_attempts": job.max_attempts},
        )
        try:
            if self._job_timeout:
                await asyncio.wait_for(handler(job.payload), timeout=self._job_timeout)
            else:
                await handler(job.payload)
        except asyncio.TimeoutError:
            logger.error(f"Job {job.id} timed out after {self._job_timeout}s")
            await self._queue.fail(job.id, f"Timed out after {self._job_timeout}s")
            return False
        except Exception as e:
            logger.exception(f"Job {job.id} failed on attempt {job.attempts}/{job.max_attempts}")
            await self._queue.fail(job.id, f"{type(e).__name__}: {e}")
            return False

        await self._queue.complete(job.id)
        logger.info(f"Job {job.id} completed", extra={"job_id": job.id})
        return True
