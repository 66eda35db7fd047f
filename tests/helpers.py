"""Shared test doubles."""

from typing import Any

from content_studio.llm import LLMRequest, LLMResponse, Usage
from content_studio.llm.providers import LLMProvider

USER_ID = "user-1"
OTHER_USER_ID = "user-2"

DEFAULT_REPLY = '{"content": "Generated text.", "title": "Generated"}'


class FakeProvider(LLMProvider):
    """Scripted provider: replies with queued texts or raises queued errors."""

    SUPPORTED_FEATURES = frozenset({"json_object"})

    def __init__(self, replies: list[Any] | None = None, name: str = "openrouter"):
        super().__init__(api_key="test-key", default_model="fake-model")
        self._name = name
        self.replies = list(replies or [])
        self.requests: list[LLMRequest] = []

    @property
    def name(self) -> str:
        return self._name

    async def generate(self, request: LLMRequest) -> LLMResponse:
        self.requests.append(request)
        reply = self.replies.pop(0) if self.replies else DEFAULT_REPLY
        if isinstance(reply, Exception):
            raise reply
        return LLMResponse(
            text=reply,
            usage=Usage(prompt_tokens=10, completion_tokens=5, total_tokens=15),
            model=self.resolve_model(request),
            provider=self._name,
        )
