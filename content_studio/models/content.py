"""Pydantic models for generated Content and generation requests."""

from datetime import datetime
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, Field

from .thread import ContentType


class ContentStatus(str, Enum):
    """Lifecycle status of a Content row.

    pending -> processing -> completed, or pending/processing -> failed.
    completed and failed are terminal.
    """

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset({ContentStatus.COMPLETED, ContentStatus.FAILED})
RUNNABLE_STATUSES = frozenset({ContentStatus.PENDING, ContentStatus.PROCESSING})


class SentimentType(str, Enum):
    """Sentiment label attached to a Content."""

    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class AIProvider(str, Enum):
    """Backends able to generate content."""

    OPENROUTER = "openrouter"
    GEMINI = "gemini"
    ANTHROPIC = "anthropic"


# Reserved threadId value meaning "start a new thread"
NEW_THREAD_SENTINEL = "new-thread"


class Content(BaseModel):
    """One generation request/response pair."""

    id: str
    threadId: str
    prompt: str
    generatedContent: str = ""
    status: ContentStatus = ContentStatus.PENDING
    statusUpdatedAt: datetime | None = None
    sentiment: SentimentType = SentimentType.NEUTRAL
    createdAt: datetime
    updatedAt: datetime

    def is_terminal(self) -> bool:
        """Check whether the generation state machine has finished."""
        return self.status in TERMINAL_STATUSES


# Request schemas
class GenerateContentRequest(BaseModel):
    """Request body for POST /content/generate."""

    prompt: Annotated[str, Field(min_length=1)]
    contentType: ContentType
    threadId: str | None = None
    provider: AIProvider | None = None
    sentiment: SentimentType | None = None


class UpdateContentRequest(BaseModel):
    """Request body for PATCH /content/{id}. Only sentiment is mutable."""

    sentiment: SentimentType


class AnalyzeSentimentRequest(BaseModel):
    """Request body for POST /sentiment/analyze."""

    contentId: Annotated[str, Field(min_length=1)]
    prompt: Annotated[str, Field(min_length=1)]


class GenerationJob(BaseModel):
    """Queue payload correlating a Content with the user who requested it."""

    contentId: str
    threadId: str
    userId: str
    provider: AIProvider | None = None
    sentiment: SentimentType | None = None
