"""AI provider abstraction layer.

Vendor-neutral access to content-generation providers (OpenRouter, Gemini,
Anthropic) behind the ``AIGateway``.
"""

from .errors import (
    AuthenticationError,
    ContentFilterError,
    InvalidRequestError,
    LLMError,
    ModelNotFoundError,
    ProviderError,
    RateLimitError,
    TimeoutError,
)
from .gateway import AIGateway, extract_title
from .models import AIPrompt, ChatMessage, GenerationOutcome, LLMRequest, LLMResponse, ResponseFormat, Usage

__all__ = [
    "AIGateway",
    "AIPrompt",
    "ChatMessage",
    "GenerationOutcome",
    "LLMRequest",
    "LLMResponse",
    "ResponseFormat",
    "Usage",
    "extract_title",
    "LLMError",
    "AuthenticationError",
    "RateLimitError",
    "TimeoutError",
    "InvalidRequestError",
    "ContentFilterError",
    "ModelNotFoundError",
    "ProviderError",
]
