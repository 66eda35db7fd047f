"""Server-sent event stream of generation results."""

import asyncio
import logging
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse

from content_studio.api.dependencies import get_services
from content_studio.container import Services
from content_studio.services import SSE_KEEP_ALIVE, Subscription, SubscriptionClosed, format_sse_event

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sse", tags=["Notifications"])


async def event_stream(
    request: Request,
    subscription: Subscription,
    heartbeat_seconds: float,
) -> AsyncIterator[str]:
    """Yield SSE frames until the client disconnects or the channel closes."""
    try:
        while not await request.is_disconnected():
            try:
                event = await subscription.get(timeout=heartbeat_seconds)
            except asyncio.TimeoutError:
                yield SSE_KEEP_ALIVE
                continue
            except SubscriptionClosed:
                break
            yield format_sse_event(event)
    finally:
        await subscription.close()
        logger.info(f"SSE stream closed for user {subscription.user_id}")


@router.get("/stream")
async def stream(
    request: Request,
    userId: str = Query(..., min_length=1),
    services: Services = Depends(get_services),
) -> StreamingResponse:
    """Open an event stream for a user's finished contents."""
    subscription = await services.notifier.subscribe(userId)
    return StreamingResponse(
        event_stream(request, subscription, services.settings.sse_heartbeat_seconds),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
