"""Thread service for business logic."""

import logging
import math

from content_studio.api.exceptions import ThreadNotFoundError, ValidationError
from content_studio.models import (
    CreateThreadRequest,
    Thread,
    ThreadPage,
    ThreadQuery,
    ThreadStatus,
    ThreadSummary,
    UpdateThreadRequest,
)

from .content_repository import ContentRepository
from .thread_repository import ThreadRepository

logger = logging.getLogger(__name__)


class ThreadService:
    """User-facing thread operations. Every call is scoped to one owner."""

    def __init__(self, thread_repo: ThreadRepository, content_repo: ContentRepository):
        self.thread_repo = thread_repo
        self.content_repo = content_repo

    async def create_thread(self, user_id: str, request: CreateThreadRequest) -> Thread:
        if request.status == ThreadStatus.DELETED:
            raise ValidationError("Cannot create a thread with status 'deleted'")
        thread = await self.thread_repo.create(
            user_id,
            request.title,
            request.type,
            request.status or ThreadStatus.ACTIVE,
        )
        logger.info(f"Created thread {thread.id} for user {user_id}")
        return thread

    async def list_threads(self, user_id: str, query: ThreadQuery) -> ThreadPage:
        """List a page of threads, each with its most recent content."""
        threads, total = await self.thread_repo.list_for_user(user_id, query)
        latest = await self.content_repo.latest_for_threads([t.id for t in threads])
        items = [t.model_copy(update={"lastContent": latest.get(t.id)}) for t in threads]
        return ThreadPage(
            items=items,
            total=total,
            currentPage=query.currentPage,
            pageSize=query.pageSize,
            totalPages=math.ceil(total / query.pageSize) if total else 0,
        )

    async def get_thread(self, thread_id: str, user_id: str) -> Thread:
        """Get a thread with its contents, newest first.

        Raises:
            ThreadNotFoundError: If missing, deleted or owned by someone else.
        """
        thread = await self.thread_repo.find_owned(thread_id, user_id)
        if thread is None:
            raise ThreadNotFoundError(thread_id)
        contents = await self.content_repo.list_for_thread(thread.id, newest_first=True)
        return thread.model_copy(
            update={"contents": contents, "lastContent": contents[0] if contents else None}
        )

    async def update_thread(self, thread_id: str, user_id: str, request: UpdateThreadRequest) -> Thread:
        if await self.thread_repo.find_owned(thread_id, user_id) is None:
            raise ThreadNotFoundError(thread_id)
        if request.status == ThreadStatus.DELETED:
            raise ValidationError("Use DELETE to remove a thread")

        updated = await self.thread_repo.update(thread_id, request.model_dump(exclude_none=True))
        if updated is None:
            raise ThreadNotFoundError(thread_id)
        return updated

    async def delete_thread(self, thread_id: str, user_id: str) -> None:
        """Soft-delete a thread; its contents are kept but no longer reachable."""
        if await self.thread_repo.find_owned(thread_id, user_id) is None:
            raise ThreadNotFoundError(thread_id)
        await self.thread_repo.soft_delete(thread_id)
        logger.info(f"Deleted thread {thread_id} for user {user_id}")

    async def get_summary(self, user_id: str) -> ThreadSummary:
        threads_by_type = await self.thread_repo.count_by_type(user_id)
        thread_ids = await self.thread_repo.ids_for_user(user_id)
        status_counts = await self.content_repo.status_counts(thread_ids)
        return ThreadSummary(
            totalThreads=len(thread_ids),
            threadsByType=threads_by_type,
            contentStatusCounts=status_counts,
        )
