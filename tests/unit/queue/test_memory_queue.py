"""Unit tests for the in-memory job queue and retry policy."""

import pytest

from content_studio.queue import InMemoryJobQueue, QueueJobStatus, RetryPolicy, create_queue
from content_studio.queue.mongo_queue import MongoJobQueue

NO_DELAY = RetryPolicy(base_delay_seconds=0, jitter=False)


@pytest.fixture
def queue():
    """Fresh in-memory queue with immediate retries."""
    return InMemoryJobQueue(retry_policy=NO_DELAY)


class TestRetryPolicy:
    """Tests for RetryPolicy.get_delay."""

    def test_exponential_delay(self):
        policy = RetryPolicy(base_delay_seconds=5, jitter=False)
        assert policy.get_delay(1) == 5
        assert policy.get_delay(2) == 10
        assert policy.get_delay(3) == 20

    def test_fixed_delay(self):
        policy = RetryPolicy(base_delay_seconds=5, exponential_backoff=False, jitter=False)
        assert policy.get_delay(4) == 5

    def test_delay_capped(self):
        policy = RetryPolicy(base_delay_seconds=100, max_delay_seconds=150, jitter=False)
        assert policy.get_delay(5) == 150

    def test_jitter_bounds(self):
        policy = RetryPolicy(base_delay_seconds=8)
        for _ in range(20):
            assert 8 <= policy.get_delay(1) <= 10


class TestInMemoryJobQueue:
    """Tests for InMemoryJobQueue."""

    @pytest.mark.asyncio
    async def test_enqueue(self, queue):
        job = await queue.enqueue("generate_content", {"contentId": "c1"}, max_attempts=2)

        assert job.status == QueueJobStatus.PENDING
        assert job.attempts == 0
        assert job.max_attempts == 2
        assert job.payload == {"contentId": "c1"}
        assert len(queue) == 1

    @pytest.mark.asyncio
    async def test_delayed_job_not_due(self, queue):
        await queue.enqueue("generate_content", {}, delay_seconds=60)
        assert await queue.dequeue(["generate_content"], "w1") is None

    @pytest.mark.asyncio
    async def test_dequeue_claims_and_leases(self, queue):
        job = await queue.enqueue("generate_content", {})

        claimed = await queue.dequeue(["generate_content"], "w1")

        assert claimed.id == job.id
        assert claimed.status == QueueJobStatus.PROCESSING
        assert claimed.attempts == 1
        assert claimed.locked_by == "w1"
        assert claimed.locked_until is not None
        # Leased job is not handed out twice
        assert await queue.dequeue(["generate_content"], "w2") is None

    @pytest.mark.asyncio
    async def test_dequeue_filters_task_names(self, queue):
        await queue.enqueue("other_task", {})
        assert await queue.dequeue(["generate_content"], "w1") is None

    @pytest.mark.asyncio
    async def test_oldest_due_job_first(self, queue):
        first = await queue.enqueue("generate_content", {"n": 1})
        await queue.enqueue("generate_content", {"n": 2})

        claimed = await queue.dequeue(["generate_content"], "w1")
        assert claimed.id == first.id

    @pytest.mark.asyncio
    async def test_complete(self, queue):
        job = await queue.enqueue("generate_content", {})
        await queue.dequeue(["generate_content"], "w1")

        completed = await queue.complete(job.id)

        assert completed.status == QueueJobStatus.COMPLETED
        assert completed.is_terminal()
        assert completed.locked_by is None

    @pytest.mark.asyncio
    async def test_fail_reschedules_then_dies(self, queue):
        job = await queue.enqueue("generate_content", {}, max_attempts=2)

        await queue.dequeue(["generate_content"], "w1")
        retried = await queue.fail(job.id, "boom")
        assert retried.status == QueueJobStatus.PENDING
        assert retried.last_error == "boom"
        assert retried.attempts_remaining == 1

        await queue.dequeue(["generate_content"], "w1")
        dead = await queue.fail(job.id, "boom again")
        assert dead.status == QueueJobStatus.DEAD
        assert dead.attempts == 2
        assert await queue.dequeue(["generate_content"], "w1") is None

    @pytest.mark.asyncio
    async def test_expired_lease_redispatched(self):
        queue = InMemoryJobQueue(retry_policy=NO_DELAY, visibility_timeout_seconds=0)
        job = await queue.enqueue("generate_content", {}, max_attempts=2)

        await queue.dequeue(["generate_content"], "crashed-worker")
        reclaimed = await queue.dequeue(["generate_content"], "w2")

        assert reclaimed.id == job.id
        assert reclaimed.attempts == 2
        assert reclaimed.locked_by == "w2"

    @pytest.mark.asyncio
    async def test_expired_final_lease_marks_dead(self):
        queue = InMemoryJobQueue(retry_policy=NO_DELAY, visibility_timeout_seconds=0)
        job = await queue.enqueue("generate_content", {}, max_attempts=1)

        await queue.dequeue(["generate_content"], "crashed-worker")

        assert await queue.dequeue(["generate_content"], "w2") is None
        dead = await queue.get_job(job.id)
        assert dead.status == QueueJobStatus.DEAD
        assert dead.last_error == "lease expired"

    @pytest.mark.asyncio
    async def test_unknown_job(self, queue):
        assert await queue.get_job("missing") is None
        assert await queue.complete("missing") is None
        assert await queue.fail("missing", "x") is None

    @pytest.mark.asyncio
    async def test_stats_and_list(self, queue):
        job = await queue.enqueue("generate_content", {})
        await queue.enqueue("other_task", {})
        await queue.dequeue(["generate_content"], "w1")
        await queue.complete(job.id)

        stats = await queue.stats()
        assert stats.completed == 1
        assert stats.pending == 1
        assert len(await queue.list_jobs("generate_content")) == 1
        assert len(await queue.list_jobs()) == 2

    @pytest.mark.asyncio
    async def test_returned_jobs_are_copies(self, queue):
        job = await queue.enqueue("generate_content", {})
        job.status = QueueJobStatus.DEAD

        stored = await queue.get_job(job.id)
        assert stored.status == QueueJobStatus.PENDING


class TestCreateQueue:
    """Tests for the backend factory."""

    def test_memory_backend(self):
        assert isinstance(create_queue("memory"), InMemoryJobQueue)

    def test_mongo_backend(self):
        assert isinstance(create_queue("MONGO"), MongoJobQueue)

    def test_unknown_backend(self):
        with pytest.raises(ValueError) as exc_info:
            create_queue("redis")
        assert "Unknown queue backend" in str(exc_info.value)
