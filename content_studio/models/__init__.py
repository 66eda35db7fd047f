"""Backend models package."""

from .content import (
    NEW_THREAD_SENTINEL,
    RUNNABLE_STATUSES,
    TERMINAL_STATUSES,
    AIProvider,
    AnalyzeSentimentRequest,
    Content,
    ContentStatus,
    GenerateContentRequest,
    GenerationJob,
    SentimentType,
    UpdateContentRequest,
)
from .thread import (
    ContentType,
    CreateThreadRequest,
    Thread,
    ThreadPage,
    ThreadQuery,
    ThreadStatus,
    ThreadSummary,
    UpdateThreadRequest,
)

# Resolve the Thread -> Content forward references
Thread.model_rebuild()
ThreadPage.model_rebuild()

__all__ = [
    "NEW_THREAD_SENTINEL",
    "RUNNABLE_STATUSES",
    "TERMINAL_STATUSES",
    "AIProvider",
    "AnalyzeSentimentRequest",
    "Content",
    "ContentStatus",
    "ContentType",
    "CreateThreadRequest",
    "GenerateContentRequest",
    "GenerationJob",
    "SentimentType",
    "Thread",
    "ThreadPage",
    "ThreadQuery",
    "ThreadStatus",
    "ThreadSummary",
    "UpdateContentRequest",
    "UpdateThreadRequest",
]
