"""Anthropic provider implementation.

Anthropic has no native JSON mode; when a JSON object is requested the
instruction stays in the prompt text and the gateway parses the reply.
"""

import time
from typing import Any

from anthropic import APIConnectionError, APIStatusError, APITimeoutError, AsyncAnthropic

from ..errors import AuthenticationError, ProviderError, TimeoutError, error_from_status
from ..models import LLMRequest, LLMResponse, Usage
from .base import LLMProvider


class AnthropicProvider(LLMProvider):
    """Anthropic Messages API provider."""

    SUPPORTED_FEATURES = frozenset({"system_message"})

    def __init__(
        self,
        api_key: str | None = None,
        default_model: str = "claude-sonnet-4-5-20250929",
        timeout: float = 60.0,
    ):
        super().__init__(api_key, default_model, timeout)
        self._client: AsyncAnthropic | None = None

    @property
    def name(self) -> str:
        return "anthropic"

    @property
    def client(self) -> AsyncAnthropic:
        """Lazy-initialized Anthropic client."""
        if self._client is None:
            if not self._api_key:
                raise AuthenticationError(
                    "Anthropic API key not configured. Set ANTHROPIC_API_KEY environment variable.",
                    provider=self.name,
                )
            # Retries happen in the gateway only
            self._client = AsyncAnthropic(api_key=self._api_key, timeout=self._timeout, max_retries=0)
        return self._client

    async def generate(self, request: LLMRequest) -> LLMResponse:
        """Send a completion request to Anthropic."""
        start_time = time.perf_counter()
        payload = self._build_request(request)

        try:
            response = await self.client.messages.create(**payload)
        except APITimeoutError as e:
            raise TimeoutError(
                f"Anthropic request timed out after {self._timeout}s",
                provider=self.name,
            ) from e
        except APIConnectionError as e:
            raise ProviderError(f"Failed to connect to Anthropic: {e}", provider=self.name) from e
        except APIStatusError as e:
            raise error_from_status(
                e.status_code,
                str(getattr(e, "message", e)),
                provider=self.name,
                request_id=getattr(e, "request_id", None),
            ) from e

        latency_ms = int((time.perf_counter() - start_time) * 1000)
        return self._parse_response(response, latency_ms)

    def _build_request(self, request: LLMRequest) -> dict[str, Any]:
        # Anthropic takes system as a top-level parameter
        system_parts = [m.content for m in request.messages if m.role == "system"]
        messages = [
            {"role": m.role, "content": m.content} for m in request.messages if m.role != "system"
        ]

        payload: dict[str, Any] = {
            "model": self.resolve_model(request),
            "messages": messages,
            "max_tokens": request.max_tokens or 4096,
            # Anthropic temperature range is 0-1
            "temperature": min(request.temperature, 1.0),
        }
        if system_parts:
            payload["system"] = "\n\n".join(system_parts)
        return payload

    def _parse_response(self, response: Any, latency_ms: int) -> LLMResponse:
        text_parts = [block.text for block in response.content if block.type == "text"]

        finish_reason_map = {
            "end_turn": "stop",
            "max_tokens": "length",
            "stop_sequence": "stop",
        }

        return LLMResponse(
            text="\n".join(text_parts) if text_parts else None,
            finish_reason=finish_reason_map.get(response.stop_reason, response.stop_reason or "stop"),
            usage=Usage(
                prompt_tokens=response.usage.input_tokens,
                completion_tokens=response.usage.output_tokens,
                total_tokens=response.usage.input_tokens + response.usage.output_tokens,
            ),
            model=response.model,
            provider=self.name,
            latency_ms=latency_ms,
            request_id=response.id,
        )
