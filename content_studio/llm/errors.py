"""Vendor error hierarchy for AI providers.

Providers translate SDK-specific failures into these classes so the gateway
can decide what to retry. None of them escape the gateway boundary.
"""


class LLMError(Exception):
    """Base exception for provider calls."""

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        request_id: str | None = None,
        correlation_id: str | None = None,
    ):
        super().__init__(message)
        self.provider = provider
        self.request_id = request_id
        self.correlation_id = correlation_id

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.provider:
            parts.append(f"provider={self.provider}")
        if self.request_id:
            parts.append(f"request_id={self.request_id}")
        return " ".join(parts)


class AuthenticationError(LLMError):
    """Missing, invalid or unauthorized API key (401/403)."""


class RateLimitError(LLMError):
    """Quota or rate limit exceeded (429). Retryable, honours retry_after."""

    def __init__(
        self,
        message: str,
        retry_after: float | None = None,
        provider: str | None = None,
        request_id: str | None = None,
        correlation_id: str | None = None,
    ):
        super().__init__(message, provider, request_id, correlation_id)
        self.retry_after = retry_after


class TimeoutError(LLMError):
    """Vendor did not answer within the configured timeout. Retryable."""


class InvalidRequestError(LLMError):
    """Malformed request (400)."""


class ContentFilterError(LLMError):
    """Prompt or completion blocked by vendor safety filters."""


class ProviderError(LLMError):
    """Vendor-side or network failure (5xx, connection reset). Retryable."""


class ModelNotFoundError(LLMError):
    """Unknown model identifier (404)."""


RETRYABLE_ERRORS = (RateLimitError, TimeoutError, ProviderError)
NON_RETRYABLE_ERRORS = (AuthenticationError, InvalidRequestError, ContentFilterError, ModelNotFoundError)


def error_from_status(
    status_code: int,
    message: str,
    provider: str,
    request_id: str | None = None,
    retry_after: float | None = None,
) -> LLMError:
    """Map an HTTP status returned by a vendor to an LLMError instance."""
    if status_code in (401, 403):
        return AuthenticationError(
            f"{provider} rejected credentials: {message}",
            provider=provider,
            request_id=request_id,
        )
    if status_code == 404:
        return ModelNotFoundError(f"Model not found: {message}", provider=provider, request_id=request_id)
    if status_code == 429:
        return RateLimitError(
            f"{provider} rate limit exceeded: {message}",
            retry_after=retry_after,
            provider=provider,
            request_id=request_id,
        )
    if status_code == 400:
        lowered = message.lower()
        if "content_filter" in lowered or "safety" in lowered or "blocked" in lowered:
            return ContentFilterError(
                f"Content blocked by {provider} safety filters: {message}",
                provider=provider,
                request_id=request_id,
            )
        return InvalidRequestError(
            f"Invalid request to {provider}: {message}",
            provider=provider,
            request_id=request_id,
        )
    if status_code >= 500:
        return ProviderError(
            f"{provider} server error ({status_code}): {message}",
            provider=provider,
            request_id=request_id,
        )
    return LLMError(f"{provider} error ({status_code}): {message}", provider=provider, request_id=request_id)
