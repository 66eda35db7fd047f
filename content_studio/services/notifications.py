"""Per-user push channel for generation results.

Events are delivered to the subscribers connected at publish time. Nothing
is buffered for absent users and delivery is process-local.
"""

import asyncio
import json
import logging
from typing import Any

logger = logging.getLogger(__name__)

# Queue marker that ends a subscription
_CLOSED = object()


def format_sse_event(event: Any) -> str:
    """Serialize one event as an SSE ``data:`` frame."""
    return f"data: {json.dumps(event, default=str)}\n\n"


SSE_KEEP_ALIVE = ": keep-alive\n\n"


class SubscriptionClosed(Exception):
    """Raised by ``Subscription.get`` once the stream has been completed."""


class Subscription:
    """One open stream for a user; iterate it to receive events."""

    def __init__(self, channel: "NotificationChannel", user_id: str):
        self.user_id = user_id
        self._channel = channel
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _deliver(self, event: Any) -> None:
        if not self._closed:
            self._queue.put_nowait(event)

    def _finish(self) -> None:
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(_CLOSED)

    async def get(self, timeout: float | None = None) -> Any:
        """Wait for the next event.

        Raises:
            asyncio.TimeoutError: If ``timeout`` elapses first.
            SubscriptionClosed: If the subscription has been closed.
        """
        if timeout is None:
            item = await self._queue.get()
        else:
            item = await asyncio.wait_for(self._queue.get(), timeout)
        if item is _CLOSED:
            raise SubscriptionClosed(self.user_id)
        return item

    def __aiter__(self):
        return self

    async def __anext__(self) -> Any:
        try:
            return await self.get()
        except SubscriptionClosed:
            raise StopAsyncIteration

    async def close(self) -> None:
        """Detach from the channel and end iteration."""
        await self._channel._remove(self)
        self._finish()


class NotificationChannel:
    """Fan-out of events to every live subscription of a user."""

    def __init__(self):
        self._subscribers: dict[str, set[Subscription]] = {}
        self._lock = asyncio.Lock()
        self._shut_down = False

    async def subscribe(self, user_id: str) -> Subscription:
        """Open a stream for a user. After ``shutdown`` the stream is already ended."""
        if not user_id:
            raise ValueError("user_id required")
        subscription = Subscription(self, user_id)
        async with self._lock:
            if self._shut_down:
                subscription._finish()
                return subscription
            self._subscribers.setdefault(user_id, set()).add(subscription)
        logger.info(f"Subscribed to notifications for user {user_id}")
        return subscription

    async def publish(self, user_id: str, event: Any) -> bool:
        """Deliver ``event`` to the user's subscribers.

        Returns:
            False when the user has no live subscription; the event is dropped.
        """
        async with self._lock:
            targets = list(self._subscribers.get(user_id, ()))
        if not targets:
            logger.warning(f"No active connection for user {user_id}, dropping event")
            return False
        for subscription in targets:
            subscription._deliver(event)
        logger.debug(f"Published event to {len(targets)} subscriber(s) of user {user_id}")
        return True

    async def subscriber_count(self, user_id: str) -> int:
        async with self._lock:
            return len(self._subscribers.get(user_id, ()))

    async def close(self, user_id: str) -> None:
        """End every open stream of one user."""
        async with self._lock:
            subscriptions = self._subscribers.pop(user_id, set())
        for subscription in subscriptions:
            subscription._finish()

    async def shutdown(self) -> None:
        """Complete all open streams."""
        async with self._lock:
            self._shut_down = True
            subscriptions = [s for subs in self._subscribers.values() for s in subs]
            self._subscribers.clear()
        for subscription in subscriptions:
            subscription._finish()
        logger.info(f"Notification channel closed {len(subscriptions)} stream(s)")

    async def _remove(self, subscription: Subscription) -> None:
        async with self._lock:
            subs = self._subscribers.get(subscription.user_id)
            if subs is None:
                return
            subs.discard(subscription)
            if not subs:
                del self._subscribers[subscription.user_id]
