"""AI provider implementations of the LLMProvider interface."""

from .anthropic import AnthropicProvider
from .base import LLMProvider
from .gemini import GeminiProvider
from .openrouter import OpenRouterProvider

__all__ = [
    "LLMProvider",
    "AnthropicProvider",
    "GeminiProvider",
    "OpenRouterProvider",
]
