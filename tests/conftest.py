"""Pytest fixtures for testing."""

from collections.abc import AsyncGenerator
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from content_studio.api.main import create_app
from content_studio.config import Settings
from content_studio.container import Services, build_services
from content_studio.db import mongo
from content_studio.llm import AIGateway
from content_studio.models import AIProvider
from content_studio.queue import InMemoryJobQueue
from tests.helpers import USER_ID, FakeProvider


@pytest_asyncio.fixture
async def mock_db() -> AsyncGenerator[Any, None]:
    """Provide a mock MongoDB database for testing."""
    mock_client = AsyncMongoMockClient()
    mock_database = mock_client[mongo.DATABASE_NAME]

    # Replace the real client with mock
    mongo.set_client(mock_client)

    yield mock_database

    # Cleanup
    mongo.set_client(None)


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def gateway(fake_provider: FakeProvider) -> AIGateway:
    """Gateway backed by the scripted provider, without retries."""
    return AIGateway(
        providers={AIProvider.OPENROUTER: fake_provider},
        default_provider=AIProvider.OPENROUTER,
        max_retries=0,
    )


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        queue_backend="memory",
        run_queue_worker=False,
        generation_delay_seconds=0,
        sse_heartbeat_seconds=0.05,
    )


@pytest.fixture
def services(mock_db: Any, test_settings: Settings, gateway: AIGateway) -> Services:
    """Service graph over mongomock, an in-memory queue and the fake provider."""
    return build_services(settings=test_settings, gateway=gateway, queue=InMemoryJobQueue())


@pytest_asyncio.fixture
async def client(services: Services) -> AsyncGenerator[AsyncClient, None]:
    """Provide an async HTTP client for testing."""
    app = create_app(services)
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"X-User-Id": USER_ID},
    ) as ac:
        yield ac


@pytest.fixture
def sample_generate_data() -> dict[str, Any]:
    """Sample generation request body."""
    return {
        "prompt": "Write about remote work productivity tips",
        "contentType": "blog_post",
    }
