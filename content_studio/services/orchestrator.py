"""Content Orchestrator: drives Content through its generation state machine.

``submit_generation`` records a pending Content and enqueues a job;
``execute_generation`` runs when the queue dispatches that job.

Re-delivery policy: a job whose Content is already completed or failed is a
no-op (no AI call, no write, no notification). AI failures, and AI calls
that outlive ``generation_timeout_seconds``, end as a failed Content. The
timeout is kept below the queue's per-job timeout so a slow vendor never leaves
a Content in processing. Exceptions while loading propagate so the
queue retries; an exception after the processing write is recorded as failed, and is
only re-raised if that failure write itself cannot be persisted.
"""

import asyncio
import logging
from typing import Any

from content_studio.api.exceptions import ContentNotFoundError, ThreadNotFoundError
from content_studio.llm import AIGateway, GenerationOutcome
from content_studio.models import (
    NEW_THREAD_SENTINEL,
    RUNNABLE_STATUSES,
    Content,
    ContentStatus,
    GenerateContentRequest,
    GenerationJob,
    SentimentType,
    Thread,
)
from content_studio.queue import QueueBackend

from .content_repository import ContentRepository
from .notifications import NotificationChannel
from .prompts import CurrentRequest, HistoryItem, PromptPayload, build_ai_prompt
from .thread_repository import ThreadRepository

logger = logging.getLogger(__name__)

GENERATE_CONTENT_TASK = "generate_content"

TITLE_PREFIX_WORDS = 3


def derive_thread_title(prompt: str, content_type: str) -> str:
    """Title for a thread created by a generation request."""
    head = " ".join(prompt.split()[:TITLE_PREFIX_WORDS])
    return f"{head} - {content_type}"


class ContentOrchestrator:
    """Submits generation requests and executes generation jobs."""

    def __init__(
        self,
        thread_repo: ThreadRepository,
        content_repo: ContentRepository,
        queue: QueueBackend,
        gateway: AIGateway,
        notifier: NotificationChannel,
        delay_seconds: float = 60.0,
        max_attempts: int = 2,
        generation_timeout_seconds: float | None = None,
    ):
        self.thread_repo = thread_repo
        self.content_repo = content_repo
        self.queue = queue
        self.gateway = gateway
        self.notifier = notifier
        self.delay_seconds = delay_seconds
        self.max_attempts = max_attempts
        self.generation_timeout_seconds = generation_timeout_seconds

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def submit_generation(self, user_id: str, request: GenerateContentRequest) -> Thread:
        """Create a pending Content and enqueue its generation job.

        Args:
            user_id: Owner of the request.
            request: Prompt, content type and optional thread/provider/sentiment.

        Returns:
            The target thread with ``lastContent`` set to the new Content.

        Raises:
            ThreadNotFoundError: If ``threadId`` names a thread the user does not own.
        """
        thread = await self._resolve_thread(user_id, request)
        content = await self.content_repo.create(thread.id, request.prompt)

        job = GenerationJob(
            contentId=content.id,
            threadId=thread.id,
            userId=user_id,
            provider=request.provider,
            sentiment=request.sentiment,
        )
        queued = await self.queue.enqueue(
            GENERATE_CONTENT_TASK,
            job.model_dump(mode="json"),
            delay_seconds=self.delay_seconds,
            max_attempts=self.max_attempts,
        )
        logger.info(
            f"Content generation job queued: {content.id} for thread: {thread.id}",
            extra={"content_id": content.id, "job_id": queued.id},
        )

        return thread.model_copy(update={"lastContent": content})

    async def _resolve_thread(self, user_id: str, request: GenerateContentRequest) -> Thread:
        if not request.threadId or request.threadId == NEW_THREAD_SENTINEL:
            return await self.thread_repo.create(
                user_id,
                derive_thread_title(request.prompt, request.contentType.value),
                request.contentType,
            )

        thread = await self.thread_repo.find_owned(request.threadId, user_id)
        if thread is None:
            raise ThreadNotFoundError(request.threadId)
        return thread

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def handle_generation_task(self, payload: dict[str, Any]) -> None:
        """Queue handler bound to ``GENERATE_CONTENT_TASK``."""
        await self.execute_generation(GenerationJob.model_validate(payload))

    async def execute_generation(self, job: GenerationJob) -> None:
        """Run one generation job to a terminal Content state."""
        log_extra = {"content_id": job.contentId, "thread_id": job.threadId}

        content, thread = await asyncio.gather(
            self.content_repo.get(job.contentId),
            self.thread_repo.find_owned(job.threadId, job.userId),
        )
        if content is None or thread is None:
            logger.warning("Content or thread no longer exists, skipping job", extra=log_extra)
            return
        if content.is_terminal():
            logger.info(f"Content already {content.status.value}, skipping job", extra=log_extra)
            return

        processing = await self.content_repo.transition(
            content.id, ContentStatus.PROCESSING, allowed_from=RUNNABLE_STATUSES
        )
        if processing is None:
            logger.info("Content left the runnable states before processing, skipping job", extra=log_extra)
            return

        try:
            final = await self._generate(processing, thread, job)
        except Exception as exc:
            logger.exception(f"Error processing content job: {exc}", extra=log_extra)
            try:
                final = await self._mark_failed(content.id)
            except Exception:
                logger.exception("Could not record failed status", extra=log_extra)
                raise exc

        if final is not None:
            await self._notify(job.userId, final)

    async def _generate(self, content: Content, thread: Thread, job: GenerationJob) -> Content | None:
        history = await self.content_repo.list_for_thread(thread.id, exclude_id=content.id, newest_first=True)
        payload = PromptPayload(
            type=thread.type,
            history=[HistoryItem(prompt=c.prompt, response=c.generatedContent) for c in history],
            current=CurrentRequest(prompt=content.prompt, sentiment=job.sentiment),
        )

        try:
            async with asyncio.timeout(self.generation_timeout_seconds):
                outcome = await self.gateway.generate(
                    build_ai_prompt(payload),
                    provider=job.provider,
                    correlation_id=content.id,
                )
        except TimeoutError:
            logger.error(
                f"AI generation timed out after {self.generation_timeout_seconds}s",
                extra={"content_id": content.id},
            )
            outcome = GenerationOutcome.failed()

        updated = await self.content_repo.transition(
            content.id,
            outcome.status,
            allowed_from={ContentStatus.PROCESSING},
            generatedContent=outcome.content,
        )
        if updated is None:
            logger.warning(
                "Content changed while generating, result discarded",
                extra={"content_id": content.id},
            )
            return None

        logger.info(
            f"Content {content.id} finished with status {updated.status.value}",
            extra={"content_id": content.id, "provider": outcome.provider},
        )

        if outcome.succeeded and outcome.title and not history:
            await self.thread_repo.update_title(thread.id, outcome.title)

        return updated

    async def _mark_failed(self, content_id: str) -> Content | None:
        failed = await self.content_repo.transition(
            content_id, ContentStatus.FAILED, allowed_from=RUNNABLE_STATUSES
        )
        # Already terminal: report whatever was persisted
        return failed or await self.content_repo.get(content_id)

    async def _notify(self, user_id: str, content: Content) -> None:
        delivered = await self.notifier.publish(user_id, content.model_dump(mode="json"))
        if delivered:
            logger.info(f"Notified user {user_id} about content {content.id}")

    # ------------------------------------------------------------------
    # Reads and sentiment
    # ------------------------------------------------------------------

    async def get_content(self, content_id: str, user_id: str) -> Content:
        """Get a Content the user owns through its thread.

        Raises:
            ContentNotFoundError: If missing or owned by someone else.
        """
        content = await self.content_repo.get(content_id)
        if content is None:
            raise ContentNotFoundError(content_id)
        if await self.thread_repo.find_owned(content.threadId, user_id) is None:
            raise ContentNotFoundError(content_id)
        return content

    async def update_sentiment(self, content_id: str, user_id: str, sentiment: SentimentType) -> Content:
        await self.get_content(content_id, user_id)
        updated = await self.content_repo.update_sentiment(content_id, sentiment)
        if updated is None:
            raise ContentNotFoundError(content_id)
        return updated
