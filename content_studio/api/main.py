"""FastAPI application setup."""

import asyncio
import logging
import signal
import threading
from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager
from typing import Any

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError

from content_studio import __version__
from content_studio.api.exceptions import ApiError
from content_studio.api.response import error_response
from content_studio.api.routes import content, health, sentiment, sse, threads
from content_studio.container import Services, build_services
from content_studio.db.mongo import close_database, ensure_indexes
from content_studio.services import NotificationChannel

logger = logging.getLogger(__name__)

STREAM_SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def install_stream_shutdown(notifier: NotificationChannel) -> Callable[[], None]:
    """End open event streams as soon as the process is asked to exit.

    The server drains open responses before it runs lifespan shutdown, and an
    event stream never finishes by itself. The handler that was installed
    before still runs afterwards, so the server sees the signal as usual.

    Returns:
        A callable that puts the previous handlers back.
    """
    if threading.current_thread() is not threading.main_thread():
        logger.warning("Signal hooks need the main thread; streams end at lifespan shutdown")
        return lambda: None

    loop = asyncio.get_running_loop()
    previous: dict[int, Any] = {}
    pending: set[asyncio.Task] = set()

    def close_streams() -> None:
        logger.info("Exit requested, closing event streams")
        task = loop.create_task(notifier.shutdown())
        pending.add(task)
        task.add_done_callback(pending.discard)

    def handle(signum: int, frame: Any) -> None:
        loop.call_soon_threadsafe(close_streams)
        handler = previous.get(signum)
        if callable(handler):
            handler(signum, frame)
        elif handler == signal.SIG_DFL:
            signal.signal(signum, signal.SIG_DFL)
            signal.raise_signal(signum)

    for sig in STREAM_SHUTDOWN_SIGNALS:
        previous[sig] = signal.getsignal(sig)
        signal.signal(sig, handle)

    def restore() -> None:
        for sig, handler in previous.items():
            if handler is not None and signal.getsignal(sig) is handle:
                signal.signal(sig, handler)

    return restore


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    services: Services = app.state.services

    # Startup
    await ensure_indexes()
    await services.queue.initialize()
    restore_signals = install_stream_shutdown(services.notifier)
    worker = None
    if services.settings.run_queue_worker:
        worker = services.build_worker()
        await worker.start()
    else:
        logger.info("In-process queue worker disabled")

    yield

    # Shutdown
    restore_signals()
    if worker is not None:
        await worker.stop()
    await services.notifier.shutdown()
    await services.queue.close()
    await close_database()


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    """Handle domain errors (not found, validation, unauthorized)."""
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(exc.code, exc.message),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle FastAPI parameter validation errors."""
    return JSONResponse(
        status_code=400,
        content=error_response("VALIDATION_ERROR", str(exc)),
    )


async def mongo_timeout_handler(request: Request, exc: ServerSelectionTimeoutError) -> JSONResponse:
    """Handle MongoDB connection timeout."""
    return JSONResponse(
        status_code=503,
        content=error_response("DATABASE_UNAVAILABLE", "Database is not available. Please try again later."),
    )


async def mongo_connection_handler(request: Request, exc: ConnectionFailure) -> JSONResponse:
    """Handle MongoDB connection failure."""
    return JSONResponse(
        status_code=503,
        content=error_response("DATABASE_UNAVAILABLE", "Database connection failed. Please try again later."),
    )


def create_app(services: Services | None = None) -> FastAPI:
    """Build the API application.

    Args:
        services: Pre-built service container; built from the environment when omitted.
    """
    services = services or build_services()

    app = FastAPI(
        title="Content Studio API",
        description="Asynchronous AI content generation with threads and live notifications",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(services.settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(ServerSelectionTimeoutError, mongo_timeout_handler)
    app.add_exception_handler(ConnectionFailure, mongo_connection_handler)

    # Register routes
    app.include_router(health.router)
    app.include_router(content.router)
    app.include_router(threads.router)
    app.include_router(sentiment.router)
    app.include_router(sse.router)

    return app


app = create_app()
