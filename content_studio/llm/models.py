"""Vendor-neutral request/response models for AI providers."""

from typing import Any, Literal

from pydantic import BaseModel, Field

from content_studio.models import ContentStatus


class ChatMessage(BaseModel):
    """A single message in the conversation."""

    role: Literal["system", "user", "assistant"]
    content: str


class ResponseFormat(BaseModel):
    """Structured output format configuration."""

    type: Literal["text", "json_object"]


class LLMRequest(BaseModel):
    """Vendor-neutral completion request.

    An empty ``model`` means "use the provider's configured default".
    """

    messages: list[ChatMessage]
    model: str = ""
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int | None = None
    response_format: ResponseFormat | None = None


class Usage(BaseModel):
    """Token usage statistics."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class LLMResponse(BaseModel):
    """Vendor-neutral completion response."""

    text: str | None
    finish_reason: str = "stop"
    usage: Usage = Field(default_factory=Usage)
    model: str
    provider: str
    latency_ms: int = 0
    request_id: str | None = None
    raw: dict[str, Any] | None = None


class AIPrompt(BaseModel):
    """Opaque prompt texts handed to the gateway.

    ``expected_response_format`` is a JSON example; when set the gateway asks
    the vendor for a JSON object and parses ``content``/``title`` out of it.
    """

    content_prompt: str
    title_prompt: str = ""
    expected_response_format: str | None = None


class GenerationOutcome(BaseModel):
    """Normalized gateway result. ``status`` is completed or failed."""

    content: str = ""
    title: str = ""
    status: ContentStatus
    provider: str | None = None
    model: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == ContentStatus.COMPLETED

    @classmethod
    def failed(cls, provider: str | None = None) -> "GenerationOutcome":
        return cls(content="", title="", status=ContentStatus.FAILED, provider=provider)
