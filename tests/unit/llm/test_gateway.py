"""Unit tests for the AI gateway.

Tests cover:
- Title extraction policy
- JSON reply parsing and raw-text fallback
- Vendor failures normalized to a failed outcome
- Retry with backoff on retryable errors
- Provider and model selection
"""

from unittest.mock import AsyncMock, patch

import pytest

from content_studio.config import Settings
from content_studio.llm import AIGateway, AIPrompt, extract_title
from content_studio.llm.errors import AuthenticationError, ProviderError, RateLimitError, TimeoutError
from content_studio.llm.gateway import parse_structured_reply
from content_studio.llm.providers import AnthropicProvider, GeminiProvider, OpenRouterProvider
from content_studio.models import AIProvider, ContentStatus
from tests.helpers import FakeProvider

JSON_PROMPT = AIPrompt(
    content_prompt="Write a post",
    title_prompt="Give it a title",
    expected_response_format='{"content": "...", "title": "..."}',
)


def make_gateway(*providers: FakeProvider, max_retries: int = 0) -> AIGateway:
    registry = {AIProvider(p.name): p for p in providers}
    return AIGateway(providers=registry, default_provider=AIProvider(providers[0].name), max_retries=max_retries)


class TestExtractTitle:
    """Tests for raw-text title extraction."""

    def test_first_sentence_shorter_than_limit(self):
        assert extract_title("Short intro. More text follows here.") == "Short intro"

    def test_limit_shorter_than_first_sentence(self):
        text = "A" * 80 + ". Tail."
        assert extract_title(text) == "A" * 50

    def test_no_terminal_punctuation(self):
        assert extract_title("hello world") == "hello world"

    def test_question_and_exclamation_terminate(self):
        assert extract_title("Ready? Go!") == "Ready"
        assert extract_title("Wow! Amazing") == "Wow"

    def test_empty_text(self):
        assert extract_title("") == ""
        assert extract_title("   ") == ""

    def test_leading_punctuation_uses_head(self):
        assert extract_title(".hidden start") == ".hidden start"


class TestParseStructuredReply:
    """Tests for JSON reply parsing."""

    def test_plain_json(self):
        assert parse_structured_reply('{"content": "Body", "title": "T"}') == ("Body", "T")

    def test_fenced_json(self):
        reply = '```json\n{"content": "Body", "title": "T"}\n```'
        assert parse_structured_reply(reply) == ("Body", "T")

    def test_not_json(self):
        assert parse_structured_reply("Just prose.") is None

    def test_json_array_is_rejected(self):
        assert parse_structured_reply('["a", "b"]') is None

    def test_missing_title(self):
        assert parse_structured_reply('{"content": "Body"}') == ("Body", "")

    @pytest.mark.parametrize(
        "reply",
        ['{"text": "Hello world. More."}', '{"content": "", "title": "T"}', '{"content": "   "}'],
    )
    def test_missing_or_blank_content_is_rejected(self, reply):
        assert parse_structured_reply(reply) is None


class TestGatewayGenerate:
    """Tests for AIGateway.generate."""

    @pytest.mark.asyncio
    async def test_json_reply(self):
        provider = FakeProvider(['{"content": "Remote work is great.", "title": "Remote Work"}'])
        outcome = await make_gateway(provider).generate(JSON_PROMPT)

        assert outcome.status == ContentStatus.COMPLETED
        assert outcome.content == "Remote work is great."
        assert outcome.title == "Remote Work"
        assert outcome.provider == "openrouter"

    @pytest.mark.asyncio
    async def test_requests_native_json_mode(self):
        provider = FakeProvider()
        await make_gateway(provider).generate(JSON_PROMPT)

        request = provider.requests[0]
        assert request.response_format is not None
        assert request.response_format.type == "json_object"
        assert "Please respond in JSON format" in request.messages[0].content
        assert "Give it a title" in request.messages[0].content

    @pytest.mark.asyncio
    async def test_no_json_mode_without_support(self):
        provider = FakeProvider()
        provider.SUPPORTED_FEATURES = frozenset()
        await make_gateway(provider).generate(JSON_PROMPT)

        assert provider.requests[0].response_format is None

    @pytest.mark.asyncio
    async def test_unparsable_json_falls_back_to_text(self):
        provider = FakeProvider(["Plain answer here. With a second sentence."])
        outcome = await make_gateway(provider).generate(JSON_PROMPT)

        assert outcome.status == ContentStatus.COMPLETED
        assert outcome.content == "Plain answer here. With a second sentence."
        assert outcome.title == "Plain answer here"

    @pytest.mark.asyncio
    async def test_json_without_content_falls_back_to_text(self):
        reply = '{"text": "Hello world. More."}'
        provider = FakeProvider([reply])
        outcome = await make_gateway(provider).generate(JSON_PROMPT)

        assert outcome.status == ContentStatus.COMPLETED
        assert outcome.content == reply
        assert outcome.title != ""

    @pytest.mark.asyncio
    async def test_empty_structured_title_uses_extraction(self):
        provider = FakeProvider(['{"content": "Body text. More.", "title": ""}'])
        outcome = await make_gateway(provider).generate(JSON_PROMPT)

        assert outcome.title == "Body text"

    @pytest.mark.asyncio
    async def test_plain_prompt_returns_raw_text(self):
        provider = FakeProvider(["positive"])
        outcome = await make_gateway(provider).generate(AIPrompt(content_prompt="Classify"))

        assert outcome.content == "positive"
        assert provider.requests[0].response_format is None

    @pytest.mark.asyncio
    async def test_vendor_error_becomes_failed(self):
        provider = FakeProvider([AuthenticationError("bad key", provider="openrouter")])
        outcome = await make_gateway(provider).generate(JSON_PROMPT)

        assert outcome.status == ContentStatus.FAILED
        assert outcome.content == ""
        assert outcome.title == ""

    @pytest.mark.asyncio
    async def test_unexpected_exception_becomes_failed(self):
        provider = FakeProvider([RuntimeError("boom")])
        outcome = await make_gateway(provider).generate(JSON_PROMPT)

        assert outcome.status == ContentStatus.FAILED
        assert outcome.succeeded is False

    @pytest.mark.asyncio
    async def test_unknown_provider_becomes_failed(self):
        provider = FakeProvider()
        outcome = await make_gateway(provider).generate(JSON_PROMPT, provider=AIProvider.GEMINI)

        assert outcome.status == ContentStatus.FAILED
        assert provider.requests == []


class TestGatewayRetry:
    """Tests for retry logic."""

    @pytest.mark.asyncio
    async def test_retry_on_rate_limit(self):
        provider = FakeProvider([RateLimitError("slow down", retry_after=0.1), '{"content": "ok", "title": "t"}'])
        gateway = make_gateway(provider, max_retries=2)

        with patch("asyncio.sleep", new_callable=AsyncMock) as sleep:
            outcome = await gateway.generate(JSON_PROMPT)

        assert outcome.status == ContentStatus.COMPLETED
        assert len(provider.requests) == 2
        sleep.assert_awaited_once_with(0.1)

    @pytest.mark.asyncio
    async def test_retries_exhausted(self):
        provider = FakeProvider([TimeoutError("t1"), ProviderError("p2"), ProviderError("p3")])
        gateway = make_gateway(provider, max_retries=2)

        with patch("asyncio.sleep", new_callable=AsyncMock):
            outcome = await gateway.generate(JSON_PROMPT)

        assert outcome.status == ContentStatus.FAILED
        assert len(provider.requests) == 3

    @pytest.mark.asyncio
    async def test_non_retryable_not_retried(self):
        provider = FakeProvider([AuthenticationError("bad key")])
        gateway = make_gateway(provider, max_retries=2)

        with patch("asyncio.sleep", new_callable=AsyncMock) as sleep:
            outcome = await gateway.generate(JSON_PROMPT)

        assert outcome.status == ContentStatus.FAILED
        assert len(provider.requests) == 1
        sleep.assert_not_awaited()

    def test_backoff_is_capped(self):
        gateway = make_gateway(FakeProvider())
        assert gateway._calculate_backoff(10, ProviderError("x")) <= AIGateway.DEFAULT_MAX_DELAY
        assert gateway._calculate_backoff(0, RateLimitError("x", retry_after=120)) == AIGateway.DEFAULT_MAX_DELAY


class TestGatewayProviders:
    """Tests for provider registry and model selection."""

    @pytest.mark.asyncio
    async def test_per_call_provider_override(self):
        openrouter = FakeProvider(name="openrouter")
        gemini = FakeProvider(['{"content": "from gemini", "title": "G"}'], name="gemini")
        outcome = await make_gateway(openrouter, gemini).generate(JSON_PROMPT, provider="gemini")

        assert outcome.content == "from gemini"
        assert openrouter.requests == []
        assert len(gemini.requests) == 1

    @pytest.mark.asyncio
    async def test_per_call_model_honoured(self):
        provider = FakeProvider()
        outcome = await make_gateway(provider).generate(JSON_PROMPT, model="custom-model")

        assert provider.requests[0].model == "custom-model"
        assert outcome.model == "custom-model"

    @pytest.mark.asyncio
    async def test_default_model_when_omitted(self):
        provider = FakeProvider()
        outcome = await make_gateway(provider).generate(JSON_PROMPT)

        assert outcome.model == "fake-model"

    @pytest.mark.asyncio
    async def test_register_new_backend(self):
        gateway = make_gateway(FakeProvider())
        anthropic = FakeProvider(['{"content": "claude", "title": "C"}'], name="anthropic")
        gateway.register(AIProvider.ANTHROPIC, anthropic)

        outcome = await gateway.generate(JSON_PROMPT, provider=AIProvider.ANTHROPIC)
        assert outcome.content == "claude"

    def test_get_unknown_provider(self):
        gateway = make_gateway(FakeProvider())
        with pytest.raises(ValueError) as exc_info:
            gateway.get_provider(AIProvider.GEMINI)
        assert "Unknown provider" in str(exc_info.value)

    def test_from_settings_registers_all_providers(self):
        gateway = AIGateway.from_settings(Settings(default_provider="gemini", gemini_api_key="g-key"))

        assert isinstance(gateway.get_provider(AIProvider.OPENROUTER), OpenRouterProvider)
        assert isinstance(gateway.get_provider(AIProvider.GEMINI), GeminiProvider)
        assert isinstance(gateway.get_provider(AIProvider.ANTHROPIC), AnthropicProvider)
        assert isinstance(gateway.get_provider(), GeminiProvider)
