"""
Live-update channel registry and build broadcast.

Each connected client is a `Channel`. On connect a channel is immediately
sent the current build (``hash`` then ``ok``) so late joiners catch up; on
every completed build all channels receive the same pair, in that order.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol, runtime_checkable

from ...core.contracts import BasePayload, BuildRecord
from ...core.errors import ChannelTransportError

logger = logging.getLogger(__name__)

HASH_EVENT = "hash"
OK_EVENT = "ok"


@runtime_checkable
class Channel(Protocol):
    """One connected live-update transport."""

    def emit(self, event: str, data: str | None = None) -> None: ...


class QueueChannel:
    """
    Channel backed by a bounded queue that a transport pump drains.

    Frames are JSON-ready dicts: ``{"type": "hash", "data": "<hash>"}`` and
    ``{"type": "ok"}``.
    """

    def __init__(self, *, maxsize: int = 64, label: str | None = None) -> None:
        self.queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=maxsize)
        self.label = label or f"channel-{id(self):x}"
        self._closed = False
        self._closed_event = asyncio.Event()

    @property
    def closed(self) -> bool:
        return self._closed

    def emit(self, event: str, data: str | None = None) -> None:
        if self._closed:
            raise ChannelTransportError(f"{self.label} is closed")
        frame: dict[str, Any] = {"type": event}
        if data is not None:
            frame["data"] = data
        try:
            self.queue.put_nowait(frame)
        except asyncio.QueueFull:
            raise ChannelTransportError(f"{self.label} is not draining its queue") from None

    def close(self) -> None:
        """Refuse further frames and wake the pump waiting in `wait_closed`."""
        self._closed = True
        self._closed_event.set()

    async def wait_closed(self) -> None:
        await self._closed_event.wait()

    def __repr__(self) -> str:
        return f"QueueChannel({self.label!r})"


class NotificationHub:
    """Owner of the channel registry and the current build record."""

    def __init__(self) -> None:
        self._channels: set[Channel] = set()
        self._current: BuildRecord | None = None

    @property
    def current(self) -> BuildRecord | None:
        return self._current

    @property
    def channel_count(self) -> int:
        return len(self._channels)

    def __contains__(self, channel: object) -> bool:
        return channel in self._channels

    def connect(self, channel: Channel) -> None:
        """Register ``channel`` and replay the current build to it."""
        self._channels.add(channel)
        logger.debug("Channel %r connected (%d total)", channel, len(self._channels))
        record = self._current
        if record is None:
            return
        if not self._deliver(channel, record.hash):
            self._drop(channel)

    def disconnect(self, channel: Channel) -> None:
        """Remove ``channel``; unknown channels are ignored."""
        if channel in self._channels:
            self._channels.discard(channel)
            logger.debug("Channel %r disconnected (%d left)", channel, len(self._channels))

    def broadcast(self, build: BuildRecord | str) -> int:
        """
        Make ``build`` current and send it to every registered channel.

        A channel that fails is dropped and closed without affecting the others.
        Returns the number of channels that received the build.
        """
        record = build if isinstance(build, BuildRecord) else BuildRecord(hash=build)
        self._current = record
        delivered = 0
        failed: list[Channel] = []
        for channel in list(self._channels):
            if self._deliver(channel, record.hash):
                delivered += 1
            else:
                failed.append(channel)
        for channel in failed:
            self._drop(channel)
        if failed:
            logger.warning(
                "Dropped %d channels that failed during broadcast of %s", len(failed), record.hash
            )
        logger.info("Broadcast build %s to %d channels", record.hash, delivered)
        return delivered

    async def handle_build(self, topic: str, payload: BasePayload) -> None:
        """Bus handler for completed builds."""
        if not isinstance(payload, BuildRecord):
            logger.debug("Ignoring non BuildRecord payload on %s", topic)
            return
        self.broadcast(payload)

    def _drop(self, channel: Channel) -> None:
        # A dropped channel is closed so its transport ends instead of idling.
        self.disconnect(channel)
        close = getattr(channel, "close", None)
        if callable(close):
            close()

    @staticmethod
    def _deliver(channel: Channel, build_hash: str) -> bool:
        try:
            channel.emit(HASH_EVENT, build_hash)
            channel.emit(OK_EVENT)
        except Exception:
            logger.exception("Channel %r failed while receiving build %s", channel, build_hash)
            return False
        return True


__all__ = ["HASH_EVENT", "OK_EVENT", "Channel", "NotificationHub", "QueueChannel"]
