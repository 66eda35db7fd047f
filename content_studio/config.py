"""Application settings loaded from environment variables.

Mongo connection settings live in ``content_studio.db.mongo``; everything the
generation pipeline consumes is collected here so services can be constructed
with explicit values instead of reading the environment themselves.
"""

import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    value = os.environ.get(name)
    if not value:
        return default
    return tuple(item.strip() for item in value.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    """Pipeline configuration.

    Attributes:
        default_provider: Provider used when a request does not name one.
        openrouter_api_key: OpenRouter API key.
        openrouter_model: Default OpenRouter model.
        openrouter_site_url: Attribution URL sent to OpenRouter.
        openrouter_site_name: Attribution name sent to OpenRouter.
        gemini_api_key: Google Gemini API key.
        gemini_model: Default Gemini model.
        anthropic_api_key: Anthropic API key.
        anthropic_model: Default Anthropic model.
        ai_timeout_seconds: Vendor request timeout.
        ai_max_retries: Gateway retries for retryable vendor errors.
        ai_max_tokens: Completion token budget.
        generation_delay_seconds: Artificial delay before a generation job runs.
        generation_max_attempts: Queue attempts per generation job.
        generation_timeout_seconds: Upper bound on the AI call of one generation.
        queue_backend: "mongo" (durable) or "memory".
        queue_poll_interval_seconds: Worker poll interval when the queue is idle.
        queue_visibility_timeout_seconds: Lease length for a claimed job.
        queue_job_timeout_seconds: Upper bound on a single job execution.
        queue_concurrency: Jobs executed concurrently by one worker.
        run_queue_worker: Start the worker inside the API process.
        sse_heartbeat_seconds: Keep-alive interval for event streams.
        cors_origins: Browser origins allowed by the CORS middleware.
    """

    default_provider: str = "openrouter"
    openrouter_api_key: str | None = None
    openrouter_model: str = "openai/gpt-4o"
    openrouter_site_url: str = "https://ai-content-studio.com"
    openrouter_site_name: str = "AI Content Studio"
    gemini_api_key: str | None = None
    gemini_model: str = "gemini-2.0-flash"
    anthropic_api_key: str | None = None
    anthropic_model: str = "claude-sonnet-4-5-20250929"
    ai_timeout_seconds: float = 60.0
    ai_max_retries: int = 2
    ai_max_tokens: int = 1000
    generation_delay_seconds: float = 60.0
    generation_max_attempts: int = 2
    generation_timeout_seconds: float = 200.0
    queue_backend: str = "mongo"
    queue_poll_interval_seconds: float = 1.0
    queue_visibility_timeout_seconds: int = 300
    queue_job_timeout_seconds: float = 240.0
    queue_concurrency: int = 4
    run_queue_worker: bool = True
    sse_heartbeat_seconds: float = 15.0
    cors_origins: tuple[str, ...] = ("http://localhost:3000", "http://127.0.0.1:3000")

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment."""
        defaults = cls()
        return cls(
            default_provider=os.environ.get("AI_DEFAULT_PROVIDER", defaults.default_provider),
            openrouter_api_key=os.environ.get("OPENROUTER_API_KEY"),
            openrouter_model=os.environ.get("OPENROUTER_MODEL", defaults.openrouter_model),
            openrouter_site_url=os.environ.get("OPENROUTER_SITE_URL", defaults.openrouter_site_url),
            openrouter_site_name=os.environ.get("OPENROUTER_SITE_NAME", defaults.openrouter_site_name),
            gemini_api_key=os.environ.get("GEMINI_API_KEY"),
            gemini_model=os.environ.get("GEMINI_MODEL", defaults.gemini_model),
            anthropic_api_key=os.environ.get("ANTHROPIC_API_KEY"),
            anthropic_model=os.environ.get("ANTHROPIC_MODEL", defaults.anthropic_model),
            ai_timeout_seconds=float(os.environ.get("AI_TIMEOUT_SECONDS", defaults.ai_timeout_seconds)),
            ai_max_retries=int(os.environ.get("AI_MAX_RETRIES", defaults.ai_max_retries)),
            ai_max_tokens=int(os.environ.get("AI_MAX_TOKENS", defaults.ai_max_tokens)),
            generation_delay_seconds=float(
                os.environ.get("GENERATION_DELAY_SECONDS", defaults.generation_delay_seconds)
            ),
            generation_max_attempts=int(
                os.environ.get("GENERATION_MAX_ATTEMPTS", defaults.generation_max_attempts)
            ),
            generation_timeout_seconds=float(
                os.environ.get("GENERATION_TIMEOUT_SECONDS", defaults.generation_timeout_seconds)
            ),
            queue_backend=os.environ.get("JOB_QUEUE_BACKEND", defaults.queue_backend).lower(),
            queue_poll_interval_seconds=float(
                os.environ.get("QUEUE_POLL_INTERVAL_SECONDS", defaults.queue_poll_interval_seconds)
            ),
            queue_visibility_timeout_seconds=int(
                os.environ.get(
                    "QUEUE_VISIBILITY_TIMEOUT_SECONDS", defaults.queue_visibility_timeout_seconds
                )
            ),
            queue_job_timeout_seconds=float(
                os.environ.get("QUEUE_JOB_TIMEOUT_SECONDS", defaults.queue_job_timeout_seconds)
            ),
            queue_concurrency=int(os.environ.get("QUEUE_CONCURRENCY", defaults.queue_concurrency)),
            run_queue_worker=_env_bool("RUN_QUEUE_WORKER", defaults.run_queue_worker),
            sse_heartbeat_seconds=float(
                os.environ.get("SSE_HEARTBEAT_SECONDS", defaults.sse_heartbeat_seconds)
            ),
            cors_origins=_env_list("CORS_ORIGINS", defaults.cors_origins),
        )

    @property
    def effective_generation_timeout(self) -> float:
        """AI call bound, capped below the queue's per-job timeout."""
        if not self.queue_job_timeout_seconds:
            return self.generation_timeout_seconds
        return min(self.generation_timeout_seconds, self.queue_job_timeout_seconds * 0.9)
