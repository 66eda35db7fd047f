"""Tests for the health check and the SSE event stream."""

import asyncio
import signal
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import AsyncClient

from content_studio.api.main import install_stream_shutdown
from content_studio.api.routes.sse import event_stream
from content_studio.services import SSE_KEEP_ALIVE, NotificationChannel


def fake_request(disconnect_after: int | None = None) -> MagicMock:
    """Request whose ``is_disconnected`` turns True after N checks."""
    request = MagicMock()
    if disconnect_after is None:
        request.is_disconnected = AsyncMock(return_value=False)
    else:
        request.is_disconnected = AsyncMock(
            side_effect=[False] * disconnect_after + [True] * 10
        )
    return request


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient) -> None:
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "ok"
        assert data["queue"] == {"pending": 0, "processing": 0, "completed": 0, "dead": 0}

    @pytest.mark.asyncio
    async def test_health_needs_no_user(self, client: AsyncClient) -> None:
        response = await client.get("/health", headers={"X-User-Id": ""})

        assert response.status_code == 200


class TestEventStream:
    """Tests for the SSE frame generator."""

    @pytest.mark.asyncio
    async def test_yields_published_event(self) -> None:
        channel = NotificationChannel()
        subscription = await channel.subscribe("user-1")
        await channel.publish("user-1", {"id": "c1", "status": "completed"})

        stream = event_stream(fake_request(), subscription, heartbeat_seconds=1)
        frame = await stream.__anext__()
        await stream.aclose()

        assert frame == 'data: {"id": "c1", "status": "completed"}\n\n'
        assert subscription.closed
        assert await channel.subscriber_count("user-1") == 0

    @pytest.mark.asyncio
    async def test_heartbeat_when_idle(self) -> None:
        channel = NotificationChannel()
        subscription = await channel.subscribe("user-1")

        stream = event_stream(fake_request(), subscription, heartbeat_seconds=0.01)
        frame = await asyncio.wait_for(stream.__anext__(), timeout=1)
        await stream.aclose()

        assert frame == SSE_KEEP_ALIVE

    @pytest.mark.asyncio
    async def test_stops_on_disconnect(self) -> None:
        channel = NotificationChannel()
        subscription = await channel.subscribe("user-1")

        frames = [frame async for frame in event_stream(fake_request(0), subscription, 0.01)]

        assert frames == []
        assert await channel.subscriber_count("user-1") == 0

    @pytest.mark.asyncio
    async def test_stops_on_channel_shutdown(self) -> None:
        channel = NotificationChannel()
        subscription = await channel.subscribe("user-1")
        await channel.shutdown()

        frames = [frame async for frame in event_stream(fake_request(), subscription, 1)]

        assert frames == []


class TestStreamEndpoint:
    @pytest.mark.asyncio
    async def test_stream_requires_user_id(self, client: AsyncClient) -> None:
        response = await client.get("/sse/stream")

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"


class TestStreamShutdown:
    """Exit signals end open streams before the server drains connections."""

    @pytest.mark.asyncio
    async def test_exit_signal_ends_open_stream(self) -> None:
        channel = NotificationChannel()
        subscription = await channel.subscribe("user-1")
        forwarded = []

        def server_handler(signum, frame):
            forwarded.append(signum)

        original = signal.signal(signal.SIGTERM, server_handler)
        try:
            restore = install_stream_shutdown(channel)

            async def collect() -> list[str]:
                return [frame async for frame in event_stream(fake_request(), subscription, 5)]

            reader = asyncio.create_task(collect())
            await asyncio.sleep(0.01)
            signal.getsignal(signal.SIGTERM)(signal.SIGTERM, None)
            frames = await asyncio.wait_for(reader, timeout=1)

            restore()
            assert signal.getsignal(signal.SIGTERM) is server_handler
            assert forwarded == [signal.SIGTERM]
        finally:
            signal.signal(signal.SIGTERM, original)

        assert frames == []
        assert subscription.closed
        assert await channel.subscriber_count("user-1") == 0

    @pytest.mark.asyncio
    async def test_restore_puts_previous_handler_back(self) -> None:
        def previous(signum, frame):
            pass

        original = signal.signal(signal.SIGINT, previous)
        try:
            restore = install_stream_shutdown(NotificationChannel())
            assert signal.getsignal(signal.SIGINT) is not previous

            restore()

            assert signal.getsignal(signal.SIGINT) is previous
        finally:
            signal.signal(signal.SIGINT, original)
