"""Google Gemini provider implementation using the google-genai SDK."""

import time
from typing import Any

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from ..errors import AuthenticationError, ContentFilterError, ProviderError, TimeoutError, error_from_status
from ..models import LLMRequest, LLMResponse, Usage
from .base import LLMProvider


class GeminiProvider(LLMProvider):
    """Gemini generate_content provider.

    System messages become ``system_instruction``; assistant turns are sent
    with Gemini's ``model`` role. JSON mode maps to ``response_mime_type``.
    """

    SUPPORTED_FEATURES = frozenset({"json_object", "system_message"})

    def __init__(
        self,
        api_key: str | None = None,
        default_model: str = "gemini-2.0-flash",
        timeout: float = 60.0,
    ):
        super().__init__(api_key, default_model, timeout)
        self._client: genai.Client | None = None

    @property
    def name(self) -> str:
        return "gemini"

    @property
    def client(self) -> genai.Client:
        """Lazy-create and cache the genai Client."""
        if self._client is None:
            if not self._api_key:
                raise AuthenticationError(
                    "Gemini API key not configured. Set GEMINI_API_KEY environment variable.",
                    provider=self.name,
                )
            self._client = genai.Client(
                api_key=self._api_key,
                http_options=types.HttpOptions(timeout=int(self._timeout * 1000)),
            )
        return self._client

    async def generate(self, request: LLMRequest) -> LLMResponse:
        """Send a generate_content request to Gemini."""
        start_time = time.perf_counter()
        model = self.resolve_model(request)
        contents, config = self._build_request(request)

        try:
            response = await self.client.aio.models.generate_content(
                model=model,
                contents=contents,
                config=config,
            )
        except genai_errors.APIError as e:
            raise error_from_status(e.code or 500, e.message or str(e), provider=self.name) from e
        except httpx.TimeoutException as e:
            raise TimeoutError(f"Gemini request timed out after {self._timeout}s", provider=self.name) from e
        except httpx.TransportError as e:
            raise ProviderError(f"Failed to connect to Gemini: {e}", provider=self.name) from e

        latency_ms = int((time.perf_counter() - start_time) * 1000)
        return self._parse_response(response, model, latency_ms)

    def _build_request(self, request: LLMRequest) -> tuple[list[types.Content], types.GenerateContentConfig]:
        system_parts = []
        contents = []
        for msg in request.messages:
            if msg.role == "system":
                system_parts.append(msg.content)
                continue
            role = "model" if msg.role == "assistant" else "user"
            contents.append(types.Content(role=role, parts=[types.Part(text=msg.content)]))

        config_kwargs: dict[str, Any] = {"temperature": request.temperature}
        if system_parts:
            config_kwargs["system_instruction"] = "\n\n".join(system_parts)
        if request.max_tokens:
            config_kwargs["max_output_tokens"] = request.max_tokens
        if request.response_format and request.response_format.type == "json_object":
            config_kwargs["response_mime_type"] = "application/json"

        return contents, types.GenerateContentConfig(**config_kwargs)

    def _parse_response(self, response: Any, model: str, latency_ms: int) -> LLMResponse:
        feedback = getattr(response, "prompt_feedback", None)
        if feedback is not None and getattr(feedback, "block_reason", None):
            raise ContentFilterError(
                f"Prompt blocked by Gemini safety filters: {feedback.block_reason}",
                provider=self.name,
            )

        finish_reason = "stop"
        if response.candidates:
            raw_reason = response.candidates[0].finish_reason
            if raw_reason is not None:
                finish_reason = str(getattr(raw_reason, "value", raw_reason)).lower()

        usage = Usage()
        metadata = getattr(response, "usage_metadata", None)
        if metadata is not None:
            usage = Usage(
                prompt_tokens=metadata.prompt_token_count or 0,
                completion_tokens=metadata.candidates_token_count or 0,
                total_tokens=metadata.total_token_count or 0,
            )

        return LLMResponse(
            text=response.text,
            finish_reason=finish_reason,
            usage=usage,
            model=getattr(response, "model_version", None) or model,
            provider=self.name,
            latency_ms=latency_ms,
            request_id=getattr(response, "response_id", None),
        )
