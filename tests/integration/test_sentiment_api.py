"""Tests for POST /sentiment/analyze."""

from typing import Any

import pytest
from httpx import AsyncClient

from tests.helpers import FakeProvider


class TestAnalyzeSentiment:
    @pytest.mark.asyncio
    async def test_analyze(
        self,
        client: AsyncClient,
        fake_provider: FakeProvider,
        sample_generate_data: dict[str, Any],
    ) -> None:
        generated = await client.post("/content/generate", json=sample_generate_data)
        content_id = generated.json()["data"]["lastContent"]["id"]
        fake_provider.replies = ["negative"]

        response = await client.post(
            "/sentiment/analyze", json={"contentId": content_id, "prompt": "This is terrible"}
        )

        assert response.status_code == 200
        assert response.json() == {"data": {"sentiment": "negative"}, "error": None}

        content = await client.get(f"/content/{content_id}")
        assert content.json()["data"]["sentiment"] == "negative"

    @pytest.mark.asyncio
    async def test_analyze_unknown_content(self, client: AsyncClient) -> None:
        response = await client.post(
            "/sentiment/analyze",
            json={"contentId": "64b7f0c2a1b2c3d4e5f60718", "prompt": "Hello"},
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "CONTENT_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_analyze_missing_prompt(self, client: AsyncClient) -> None:
        response = await client.post("/sentiment/analyze", json={"contentId": "abc"})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"
