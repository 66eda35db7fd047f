"""Pydantic models for Threads."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Annotated, Literal

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from .content import Content


class ContentType(str, Enum):
    """Kind of content a thread produces."""

    BLOG_POST = "blog_post"
    PRODUCT_DESCRIPTION = "product_description"
    SOCIAL_MEDIA_CAPTION = "social_media_caption"
    ARTICLE = "article"
    OTHER = "other"


class ThreadStatus(str, Enum):
    """Thread visibility status. Deleted threads are hidden from every read."""

    ACTIVE = "active"
    ARCHIVED = "archived"
    DELETED = "deleted"


class Thread(BaseModel):
    """A conversation-like container of generations for one user."""

    id: str
    userId: str
    title: str = ""
    type: ContentType
    status: ThreadStatus = ThreadStatus.ACTIVE
    createdAt: datetime
    updatedAt: datetime
    lastContent: Content | None = None
    contents: list[Content] | None = None


# Request schemas
class CreateThreadRequest(BaseModel):
    """Request body for POST /threads."""

    title: Annotated[str, Field(min_length=1)]
    type: ContentType
    status: ThreadStatus | None = None


class UpdateThreadRequest(BaseModel):
    """Request body for PUT /threads/{id}."""

    title: str | None = Field(default=None, min_length=1)
    type: ContentType | None = None
    status: ThreadStatus | None = None


class ThreadQuery(BaseModel):
    """Pagination and filter options for GET /threads."""

    currentPage: Annotated[int, Field(ge=1)] = 1
    pageSize: Annotated[int, Field(ge=1, le=100)] = 10
    search: str | None = None
    status: ThreadStatus | None = None
    type: ContentType | None = None
    sortOrder: Literal["asc", "desc"] = "desc"


# Response schemas
class ThreadPage(BaseModel):
    """One page of threads."""

    items: list[Thread]
    total: int
    currentPage: int
    pageSize: int
    totalPages: int


class ThreadSummary(BaseModel):
    """Aggregate counts for a user's threads and their contents."""

    totalThreads: int
    threadsByType: dict[str, int]
    contentStatusCounts: dict[str, int]
