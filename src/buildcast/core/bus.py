"""
Asyncio-based event bus used for module communication.

Supports topic-based publish/subscribe over a bounded queue. Handlers run
as tasks scheduled in publish order so a slow subscriber never stalls the
dispatcher.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from asyncio import QueueEmpty
from collections import defaultdict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from .contracts import BasePayload, EventHandler

logger = logging.getLogger(__name__)


Handler = Callable[[str, BasePayload], Awaitable[None] | None]


@dataclass(frozen=True)
class Subscription:
    """Handle for a topic subscription."""

    topic: str
    handler: EventHandler


class EventBus:
    """
    Minimal asynchronous publish/subscribe bus.

    Topics are matched exactly.
    """

    def __init__(self, *, queue_size: int = 256) -> None:
        self._queue: asyncio.Queue[tuple[str, BasePayload]] = asyncio.Queue(maxsize=queue_size)
        self._subscribers: dict[str, list[Handler]] = defaultdict(list)
        self._dispatcher_task: asyncio.Task[None] | None = None
        self._handler_tasks: set[asyncio.Task[None]] = set()
        self._stopping = asyncio.Event()
        self._published_total = 0
        self._processed_total = 0
        self._dropped_total = 0

    @property
    def running(self) -> bool:
        return self._dispatcher_task is not None

    def subscribe(self, topic: str, handler: Handler) -> Subscription:
        """Register a handler for a topic. Sync and async handlers are both accepted."""
        self._subscribers[topic].append(handler)
        logger.debug("Subscribed handler %s to topic %s", handler, topic)
        return Subscription(topic=topic, handler=handler)  # type: ignore[arg-type]

    def unsubscribe(self, subscription: Subscription) -> None:
        """Detach a previously registered handler."""
        handlers = self._subscribers.get(subscription.topic, [])
        if subscription.handler in handlers:
            handlers.remove(subscription.handler)
            logger.debug(
                "Unsubscribed handler %s from topic %s", subscription.handler, subscription.topic
            )

    async def publish(self, topic: str, payload: BasePayload) -> None:
        """Publish a payload for a specific topic."""
        self._published_total += 1
        if self._queue.full():
            logger.warning("Event bus queue is full; publisher will wait for free space.")
        await self._queue.put((topic, payload))
        logger.debug("Queued payload for topic %s", topic)

    async def start(self) -> None:
        """Start the dispatcher loop."""
        if self._dispatcher_task is None:
            self._stopping.clear()
            self._dispatcher_task = asyncio.create_task(self._dispatcher(), name="buildcast-bus")
            logger.info("Event bus dispatcher started.")

    async def stop(self) -> None:
        """Stop the dispatcher loop and drain remaining events."""
        if self._dispatcher_task is None:
            return
        self._stopping.set()
        await self._queue.put(("", _StopPayload()))
        await self._dispatcher_task
        self._dispatcher_task = None
        if self._handler_tasks:
            pending = list(self._handler_tasks)
            self._handler_tasks.clear()
            await asyncio.gather(*pending, return_exceptions=True)
        logger.info("Event bus dispatcher stopped.")

    def stats(self) -> dict[str, int]:
        return {
            "queue_depth": self._queue.qsize(),
            "subscriber_count": sum(len(handlers) for handlers in self._subscribers.values()),
            "published_total": self._published_total,
            "processed_total": self._processed_total,
            "dropped_total": self._dropped_total,
        }

    async def _dispatcher(self) -> None:
        """Internal dispatcher loop that fans out events to subscribers."""
        while not self._stopping.is_set():
            topic, payload = await self._queue.get()
            try:
                if isinstance(payload, _StopPayload):
                    break

                handlers = list(self._subscribers.get(topic, []))
                logger.debug("Dispatching payload on topic %s to %d handlers", topic, len(handlers))
                if not handlers:
                    continue

                # Handlers run as tasks so they may publish back into the bus
                # without deadlocking on queue backpressure.
                for handler in handlers:
                    task = asyncio.create_task(self._call_handler(handler, topic, payload))
                    self._handler_tasks.add(task)

                    def _on_done(t: asyncio.Task[None], _topic: str = topic) -> None:
                        self._handler_tasks.discard(t)
                        if t.cancelled():
                            return
                        exc = t.exception()
                        if exc is not None:
                            logger.error(
                                "Subscriber handler failed on topic %s", _topic, exc_info=exc
                            )

                    task.add_done_callback(_on_done)
                self._processed_total += 1
            finally:
                self._queue.task_done()
        while not self._queue.empty():
            try:
                _topic, _payload = self._queue.get_nowait()
            except QueueEmpty:
                break
            else:
                self._dropped_total += 1
                self._queue.task_done()
        logger.info("Event bus dispatcher drained %d dropped events.", self._dropped_total)

    async def _call_handler(self, handler: Handler, topic: str, payload: BasePayload) -> None:
        result = handler(topic, payload)
        if inspect.isawaitable(result):
            await result


class _StopPayload(BasePayload):
    """Sentinel payload to signal dispatcher shutdown."""

    pass


__all__ = ["EventBus", "Handler", "Subscription"]
