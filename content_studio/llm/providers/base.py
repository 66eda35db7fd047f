"""Abstract base class for AI providers."""

from abc import ABC, abstractmethod

from ..models import LLMRequest, LLMResponse


class LLMProvider(ABC):
    """Interface every content-generation backend implements.

    Providers raise ``LLMError`` subclasses; the gateway turns those into a
    failed outcome.
    """

    SUPPORTED_FEATURES: frozenset[str] = frozenset()

    def __init__(self, api_key: str | None, default_model: str, timeout: float = 60.0):
        self._api_key = api_key
        self._default_model = default_model
        self._timeout = timeout

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider identifier: 'openrouter', 'gemini', etc."""
        ...

    @property
    def default_model(self) -> str:
        return self._default_model

    def supports(self, feature: str) -> bool:
        """Check if provider supports a capability.

        Args:
            feature: 'json_object' (native JSON mode) or 'system_message'.
        """
        return feature in self.SUPPORTED_FEATURES

    def resolve_model(self, request: LLMRequest) -> str:
        return request.model or self._default_model

    @abstractmethod
    async def generate(self, request: LLMRequest) -> LLMResponse:
        """Send a completion request and return the response.

        Raises:
            AuthenticationError: Invalid or missing API key.
            RateLimitError: Rate limit exceeded (retryable).
            TimeoutError: Request timed out (retryable).
            InvalidRequestError: Malformed request.
            ContentFilterError: Blocked by safety filters.
            ProviderError: Provider-side failure (retryable).
        """
        ...
