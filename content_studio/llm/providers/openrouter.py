"""OpenRouter provider implementation.

OpenRouter exposes an OpenAI-compatible Chat Completions API, so this
provider drives it through the ``openai`` SDK with a custom base URL.
"""

import time
from typing import Any

from openai import APIConnectionError, APIStatusError, APITimeoutError, AsyncOpenAI

from ..errors import AuthenticationError, ProviderError, TimeoutError, error_from_status
from ..models import LLMRequest, LLMResponse, Usage
from .base import LLMProvider

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


class OpenRouterProvider(LLMProvider):
    """OpenRouter Chat Completions provider."""

    SUPPORTED_FEATURES = frozenset({"json_object", "system_message"})

    def __init__(
        self,
        api_key: str | None = None,
        default_model: str = "openai/gpt-4o",
        timeout: float = 60.0,
        site_url: str = "https://ai-content-studio.com",
        site_name: str = "AI Content Studio",
    ):
        super().__init__(api_key, default_model, timeout)
        self._site_url = site_url
        self._site_name = site_name
        self._client: AsyncOpenAI | None = None

    @property
    def name(self) -> str:
        return "openrouter"

    @property
    def client(self) -> AsyncOpenAI:
        """Lazy-initialized OpenAI-compatible client."""
        if self._client is None:
            if not self._api_key:
                raise AuthenticationError(
                    "OpenRouter API key not configured. Set OPENROUTER_API_KEY environment variable.",
                    provider=self.name,
                )
            self._client = AsyncOpenAI(
                api_key=self._api_key,
                base_url=OPENROUTER_BASE_URL,
                timeout=self._timeout,
                max_retries=0,
                default_headers={
                    "HTTP-Referer": self._site_url,
                    "X-Title": self._site_name,
                },
            )
        return self._client

    async def generate(self, request: LLMRequest) -> LLMResponse:
        """Send a completion request to OpenRouter."""
        start_time = time.perf_counter()
        payload = self._build_request(request)

        try:
            response = await self.client.chat.completions.create(**payload)
        except APITimeoutError as e:
            raise TimeoutError(
                f"OpenRouter request timed out after {self._timeout}s",
                provider=self.name,
            ) from e
        except APIConnectionError as e:
            raise ProviderError(f"Failed to connect to OpenRouter: {e}", provider=self.name) from e
        except APIStatusError as e:
            raise self._map_status_error(e) from e

        latency_ms = int((time.perf_counter() - start_time) * 1000)
        return self._parse_response(response, latency_ms)

    def _build_request(self, request: LLMRequest) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self.resolve_model(request),
            "messages": [{"role": m.role, "content": m.content} for m in request.messages],
            "temperature": request.temperature,
        }
        if request.max_tokens:
            payload["max_tokens"] = request.max_tokens
        if request.response_format and request.response_format.type == "json_object":
            payload["response_format"] = {"type": "json_object"}
        return payload

    def _parse_response(self, response: Any, latency_ms: int) -> LLMResponse:
        choice = response.choices[0] if response.choices else None
        usage = response.usage
        return LLMResponse(
            text=choice.message.content if choice else None,
            finish_reason=(choice.finish_reason if choice else None) or "stop",
            usage=Usage(
                prompt_tokens=usage.prompt_tokens,
                completion_tokens=usage.completion_tokens,
                total_tokens=usage.total_tokens,
            )
            if usage
            else Usage(),
            model=response.model or "",
            provider=self.name,
            latency_ms=latency_ms,
            request_id=response.id,
        )

    def _map_status_error(self, error: APIStatusError):
        message = str(getattr(error, "message", error))
        retry_after = None
        if error.status_code == 429 and getattr(error, "response", None) is not None:
            retry_after_str = error.response.headers.get("retry-after")
            if retry_after_str:
                try:
                    retry_after = float(retry_after_str)
                except ValueError:
                    pass
        return error_from_status(
            error.status_code,
            message,
            provider=self.name,
            request_id=getattr(error, "request_id", None),
            retry_after=retry_after,
        )
