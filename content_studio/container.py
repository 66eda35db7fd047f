"""Wiring of the generation pipeline from ``Settings``."""

from dataclasses import dataclass

from content_studio.config import Settings
from content_studio.llm import AIGateway
from content_studio.queue import QueueBackend, QueueWorker, create_queue
from content_studio.services import (
    GENERATE_CONTENT_TASK,
    ContentOrchestrator,
    ContentRepository,
    NotificationChannel,
    SentimentService,
    ThreadRepository,
    ThreadService,
)


@dataclass
class Services:
    """Every long-lived component, shared by the API and the worker."""

    settings: Settings
    gateway: AIGateway
    queue: QueueBackend
    notifier: NotificationChannel
    thread_repo: ThreadRepository
    content_repo: ContentRepository
    orchestrator: ContentOrchestrator
    threads: ThreadService
    sentiment: SentimentService

    def build_worker(self, worker_id: str | None = None) -> QueueWorker:
        """Create a queue worker bound to the generation task."""
        return QueueWorker(
            self.queue,
            handlers={GENERATE_CONTENT_TASK: self.orchestrator.handle_generation_task},
            worker_id=worker_id,
            poll_interval_seconds=self.settings.queue_poll_interval_seconds,
            concurrency=self.settings.queue_concurrency,
            job_timeout_seconds=self.settings.queue_job_timeout_seconds,
        )


def build_services(
    settings: Settings | None = None,
    gateway: AIGateway | None = None,
    queue: QueueBackend | None = None,
) -> Services:
    """Construct the service graph.

    Args:
        settings: Configuration; read from the environment when omitted.
        gateway: Override the AI gateway (tests).
        queue: Override the job queue (tests).
    """
    settings = settings or Settings.from_env()
    gateway = gateway or AIGateway.from_settings(settings)
    queue = queue or create_queue(
        settings.queue_backend,
        visibility_timeout_seconds=settings.queue_visibility_timeout_seconds,
    )
    notifier = NotificationChannel()
    thread_repo = ThreadRepository()
    content_repo = ContentRepository()

    orchestrator = ContentOrchestrator(
        thread_repo=thread_repo,
        content_repo=content_repo,
        queue=queue,
        gateway=gateway,
        notifier=notifier,
        delay_seconds=settings.generation_delay_seconds,
        max_attempts=settings.generation_max_attempts,
        generation_timeout_seconds=settings.effective_generation_timeout,
    )
    return Services(
        settings=settings,
        gateway=gateway,
        queue=queue,
        notifier=notifier,
        thread_repo=thread_repo,
        content_repo=content_repo,
        orchestrator=orchestrator,
        threads=ThreadService(thread_repo, content_repo),
        sentiment=SentimentService(orchestrator, gateway),
    )
