"""Business logic services for threads, contents and generation."""

from .content_repository import ContentRepository
from .notifications import SSE_KEEP_ALIVE, NotificationChannel, Subscription, SubscriptionClosed, format_sse_event
from .orchestrator import GENERATE_CONTENT_TASK, ContentOrchestrator
from .prompts import PromptPayload, build_ai_prompt
from .sentiment_service import SentimentService
from .thread_repository import ThreadRepository
from .thread_service import ThreadService

__all__ = [
    "GENERATE_CONTENT_TASK",
    "SSE_KEEP_ALIVE",
    "ContentOrchestrator",
    "ContentRepository",
    "NotificationChannel",
    "PromptPayload",
    "SentimentService",
    "Subscription",
    "SubscriptionClosed",
    "ThreadRepository",
    "ThreadService",
    "build_ai_prompt",
    "format_sse_event",
]
