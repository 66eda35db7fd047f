"""Unit tests for the content store (mongomock backend)."""

import pytest

from content_studio.models import ContentStatus, SentimentType
from content_studio.services import ContentRepository

THREAD_ID = "64b7f0c2a1b2c3d4e5f60718"


@pytest.fixture
def repo(mock_db):
    return ContentRepository()


class TestContentRepository:
    """Tests for ContentRepository."""

    @pytest.mark.asyncio
    async def test_create_pending(self, repo):
        content = await repo.create(THREAD_ID, "Write a caption")

        assert content.status == ContentStatus.PENDING
        assert content.generatedContent == ""
        assert content.sentiment == SentimentType.NEUTRAL
        assert (await repo.get(content.id)).prompt == "Write a caption"

    @pytest.mark.asyncio
    async def test_get_invalid_id(self, repo):
        assert await repo.get("not-an-object-id") is None

    @pytest.mark.asyncio
    async def test_transition_allowed(self, repo):
        content = await repo.create(THREAD_ID, "p")

        updated = await repo.transition(
            content.id,
            ContentStatus.COMPLETED,
            allowed_from={ContentStatus.PENDING},
            generatedContent="Done",
        )

        assert updated.status == ContentStatus.COMPLETED
        assert updated.generatedContent == "Done"
        assert updated.statusUpdatedAt is not None

    @pytest.mark.asyncio
    async def test_transition_rejected_from_terminal(self, repo):
        content = await repo.create(THREAD_ID, "p")
        await repo.transition(content.id, ContentStatus.FAILED, allowed_from={ContentStatus.PENDING})

        rejected = await repo.transition(
            content.id, ContentStatus.PROCESSING, allowed_from={ContentStatus.PENDING, ContentStatus.PROCESSING}
        )

        assert rejected is None
        assert (await repo.get(content.id)).status == ContentStatus.FAILED

    @pytest.mark.asyncio
    async def test_update_sentiment_only_touches_sentiment(self, repo):
        content = await repo.create(THREAD_ID, "p")

        updated = await repo.update_sentiment(content.id, SentimentType.NEGATIVE)

        assert updated.sentiment == SentimentType.NEGATIVE
        assert updated.status == ContentStatus.PENDING
        assert updated.prompt == "p"

    @pytest.mark.asyncio
    async def test_list_for_thread_excludes_and_orders(self, repo):
        first = await repo.create(THREAD_ID, "first")
        second = await repo.create(THREAD_ID, "second")
        current = await repo.create(THREAD_ID, "current")
        await repo.create("64b7f0c2a1b2c3d4e5f60719", "elsewhere")

        newest = await repo.list_for_thread(THREAD_ID, exclude_id=current.id)
        oldest = await repo.list_for_thread(THREAD_ID, newest_first=False)

        assert [c.id for c in newest] == [second.id, first.id]
        assert [c.prompt for c in oldest] == ["first", "second", "current"]

    @pytest.mark.asyncio
    async def test_status_counts(self, repo):
        a = await repo.create(THREAD_ID, "a")
        await repo.create(THREAD_ID, "b")
        await repo.transition(a.id, ContentStatus.PROCESSING, allowed_from={ContentStatus.PENDING})

        counts = await repo.status_counts([THREAD_ID])

        assert counts == {"pending": 1, "processing": 1, "completed": 0, "failed": 0}
        assert await repo.status_counts([]) == {"pending": 0, "processing": 0, "completed": 0, "failed": 0}

    @pytest.mark.asyncio
    async def test_latest_for_threads(self, repo):
        other_thread = "64b7f0c2a1b2c3d4e5f60719"
        await repo.create(THREAD_ID, "old")
        newest = await repo.create(THREAD_ID, "new")
        only = await repo.create(other_thread, "only")

        latest = await repo.latest_for_threads([THREAD_ID, other_thread, "64b7f0c2a1b2c3d4e5f6071a"])

        assert latest[THREAD_ID].id == newest.id
        assert latest[other_thread].id == only.id
        assert "64b7f0c2a1b2c3d4e5f6071a" not in latest
