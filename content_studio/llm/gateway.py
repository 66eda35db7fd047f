"""AI Gateway: one generation capability over interchangeable providers.

The gateway picks a provider (per-call override or configured default),
retries transient vendor errors with exponential backoff, and normalizes
every reply into a ``GenerationOutcome``. It never raises: any vendor or
parsing failure becomes ``status=failed`` with empty text.
"""

import asyncio
import json
import logging
import random
import re
import uuid

from content_studio.config import Settings
from content_studio.models import AIProvider, ContentStatus

from .errors import RETRYABLE_ERRORS, LLMError, RateLimitError
from .models import AIPrompt, ChatMessage, GenerationOutcome, LLMRequest, LLMResponse, ResponseFormat
from .providers import AnthropicProvider, GeminiProvider, LLMProvider, OpenRouterProvider

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 50

_SENTENCE_END = re.compile(r"[.!?]")


def extract_title(text: str, max_length: int = TITLE_MAX_LENGTH) -> str:
    """Derive a title from free text.

    Takes the text up to the first sentence-terminal punctuation, or the
    first ``max_length`` characters, whichever is shorter.
    """
    text = (text or "").strip()
    if not text:
        return ""
    first_sentence = _SENTENCE_END.split(text, maxsplit=1)[0].strip()
    head = text[:max_length].strip()
    if first_sentence and len(first_sentence) <= len(head):
        return first_sentence
    return head


def parse_structured_reply(text: str) -> tuple[str, str] | None:
    """Parse a ``{"content": ..., "title": ...}`` JSON reply.

    Tolerates a surrounding markdown code fence. Returns None when the text
    is not a JSON object or carries no non-empty ``content``.
    """
    candidate = text.strip()
    if candidate.startswith("```"):
        candidate = candidate.strip("`")
        if candidate.lower().startswith("json"):
            candidate = candidate[4:]
    try:
        data = json.loads(candidate)
    except (json.JSONDecodeError, ValueError):
        return None
    if not isinstance(data, dict):
        return None

    content = data.get("content")
    if content is None:
        return None
    if not isinstance(content, str):
        content = json.dumps(content)
    if not content.strip():
        return None
    title = data.get("title") or ""
    return content, title if isinstance(title, str) else str(title)


class AIGateway:
    """Provider-agnostic content generation.

    Providers are registered under an ``AIProvider`` key; new backends are
    added with ``register`` and require no change to callers.
    """

    DEFAULT_BASE_DELAY = 1.0
    DEFAULT_MAX_DELAY = 30.0

    def __init__(
        self,
        providers: dict[AIProvider, LLMProvider] | None = None,
        default_provider: AIProvider = AIProvider.OPENROUTER,
        max_retries: int = 2,
        max_tokens: int = 1000,
        temperature: float = 0.7,
    ):
        self._providers: dict[AIProvider, LLMProvider] = dict(providers or {})
        self._default_provider = AIProvider(default_provider)
        self._max_retries = max_retries
        self._max_tokens = max_tokens
        self._temperature = temperature

    @classmethod
    def from_settings(cls, settings: Settings) -> "AIGateway":
        """Build a gateway with every built-in provider registered."""
        providers: dict[AIProvider, LLMProvider] = {
            AIProvider.OPENROUTER: OpenRouterProvider(
                api_key=settings.openrouter_api_key,
                default_model=settings.openrouter_model,
                timeout=settings.ai_timeout_seconds,
                site_url=settings.openrouter_site_url,
                site_name=settings.openrouter_site_name,
            ),
            AIProvider.GEMINI: GeminiProvider(
                api_key=settings.gemini_api_key,
                default_model=settings.gemini_model,
                timeout=settings.ai_timeout_seconds,
            ),
            AIProvider.ANTHROPIC: AnthropicProvider(
                api_key=settings.anthropic_api_key,
                default_model=settings.anthropic_model,
                timeout=settings.ai_timeout_seconds,
            ),
        }
        return cls(
            providers=providers,
            default_provider=AIProvider(settings.default_provider),
            max_retries=settings.ai_max_retries,
            max_tokens=settings.ai_max_tokens,
        )

    def register(self, key: AIProvider, provider: LLMProvider) -> None:
        """Add or replace the backend for a provider key."""
        self._providers[key] = provider

    def get_provider(self, key: AIProvider | str | None = None) -> LLMProvider:
        """Resolve a provider by key, falling back to the default.

        Raises:
            ValueError: If no provider is registered under the key.
        """
        resolved = AIProvider(key) if key else self._default_provider
        if resolved not in self._providers:
            raise ValueError(
                f"Unknown provider: {resolved.value}. Available: {[p.value for p in self._providers]}"
            )
        return self._providers[resolved]

    async def generate(
        self,
        prompt: AIPrompt,
        provider: AIProvider | str | None = None,
        model: str | None = None,
        correlation_id: str | None = None,
    ) -> GenerationOutcome:
        """Generate content and a title for a prompt.

        Args:
            prompt: Content/title prompt texts and optional JSON format hint.
            provider: Per-call provider override.
            model: Per-call model override; provider default when omitted.
            correlation_id: Tracking id for logs (usually the content id).

        Returns:
            Normalized outcome; ``status`` is completed or failed.
        """
        correlation_id = correlation_id or str(uuid.uuid4())
        try:
            backend = self.get_provider(provider)
        except ValueError as e:
            logger.error(str(e), extra={"correlation_id": correlation_id})
            return GenerationOutcome.failed()

        wants_json = bool(prompt.expected_response_format)
        request = self._build_request(prompt, backend, model, wants_json)

        try:
            response = await self._generate_with_retry(backend, request, correlation_id)
        except LLMError as e:
            logger.error(
                "Content generation failed: %s",
                str(e),
                extra={
                    "correlation_id": correlation_id,
                    "provider": backend.name,
                    "error_type": type(e).__name__,
                },
            )
            return GenerationOutcome.failed(provider=backend.name)
        except Exception:
            logger.exception(
                "Unexpected error from provider %s",
                backend.name,
                extra={"correlation_id": correlation_id},
            )
            return GenerationOutcome.failed(provider=backend.name)

        return self._normalize(response, wants_json, correlation_id)

    def _build_request(
        self,
        prompt: AIPrompt,
        backend: LLMProvider,
        model: str | None,
        wants_json: bool,
    ) -> LLMRequest:
        combined = prompt.content_prompt
        if prompt.title_prompt:
            combined = f"{combined}\n\n{prompt.title_prompt}"
        if wants_json:
            combined += f"\n\nPlease respond in JSON format:\n{prompt.expected_response_format}"

        response_format = None
        if wants_json and backend.supports("json_object"):
            response_format = ResponseFormat(type="json_object")

        return LLMRequest(
            messages=[ChatMessage(role="user", content=combined)],
            model=model or "",
            temperature=self._temperature,
            max_tokens=self._max_tokens,
            response_format=response_format,
        )

    def _normalize(self, response: LLMResponse, wants_json: bool, correlation_id: str) -> GenerationOutcome:
        text = response.text or ""

        if wants_json:
            parsed = parse_structured_reply(text)
            if parsed is not None:
                content, title = parsed
                logger.info(
                    "Content generated successfully (%d characters)",
                    len(content),
                    extra={"correlation_id": correlation_id, "provider": response.provider},
                )
                return GenerationOutcome(
                    content=content,
                    title=title.strip() or extract_title(content),
                    status=ContentStatus.COMPLETED,
                    provider=response.provider,
                    model=response.model,
                )
            logger.warning(
                "Failed to parse JSON response, falling back to text parsing",
                extra={"correlation_id": correlation_id, "provider": response.provider},
            )

        logger.info(
            "Content generated successfully (%d characters)",
            len(text),
            extra={"correlation_id": correlation_id, "provider": response.provider},
        )
        return GenerationOutcome(
            content=text,
            title=extract_title(text),
            status=ContentStatus.COMPLETED,
            provider=response.provider,
            model=response.model,
        )

    async def _generate_with_retry(
        self,
        backend: LLMProvider,
        request: LLMRequest,
        correlation_id: str,
    ) -> LLMResponse:
        """Call one provider, retrying retryable errors.

        Raises:
            LLMError: After all retries are exhausted or on a non-retryable error.
        """
        for attempt in range(self._max_retries + 1):
            try:
                response = await backend.generate(request)
                logger.info(
                    "AI request succeeded",
                    extra={
                        "correlation_id": correlation_id,
                        "provider": response.provider,
                        "model": response.model,
                        "latency_ms": response.latency_ms,
                        "prompt_tokens": response.usage.prompt_tokens,
                        "completion_tokens": response.usage.completion_tokens,
                    },
                )
                return response

            except RETRYABLE_ERRORS as e:
                e.correlation_id = correlation_id
                if attempt >= self._max_retries:
                    raise
                logger.warning(
                    "Retryable error on attempt %d/%d: %s",
                    attempt + 1,
                    self._max_retries + 1,
                    str(e),
                    extra={"correlation_id": correlation_id, "provider": backend.name},
                )
                await asyncio.sleep(self._calculate_backoff(attempt, e))

        raise LLMError(
            f"Provider {backend.name} failed after {self._max_retries + 1} attempts",
            provider=backend.name,
            correlation_id=correlation_id,
        )

    def _calculate_backoff(self, attempt: int, error: Exception) -> float:
        """Exponential backoff with ±25% jitter, honouring retry-after."""
        if isinstance(error, RateLimitError) and error.retry_after:
            return min(error.retry_after, self.DEFAULT_MAX_DELAY)

        base_delay = self.DEFAULT_BASE_DELAY * (2 ** attempt)
        jitter = base_delay * 0.25 * (2 * random.random() - 1)
        return min(base_delay + jitter, self.DEFAULT_MAX_DELAY)
