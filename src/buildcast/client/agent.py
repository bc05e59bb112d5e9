"""
Python counterpart of the browser client agent.

Subscribes to the dev server's live-update socket, remembers the last
announced build hash, and raises ``update-available`` on every ``ok``.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import Any

from websockets.asyncio.client import connect
from websockets.exceptions import ConnectionClosed

from .emitter import Listener, UpdateEmitter

logger = logging.getLogger(__name__)

UPDATE_AVAILABLE = "update-available"


class ClientUpdateAgent:
    """
    Track the latest build hash and republish ``ok`` as ``update-available``.

    The agent does not deduplicate: a repeated ``ok`` with an unchanged hash
    raises another ``update-available``. Downstream listeners decide whether
    to act.
    """

    def __init__(self, emitter: UpdateEmitter | None = None) -> None:
        self.emitter = emitter or UpdateEmitter()
        self.last_hash: str | None = None
        self.emitter.on("hash", self._on_hash)
        self.emitter.on("ok", self._on_ok)

    def on_update_available(self, listener: Listener) -> Callable[[], None]:
        """Subscribe to ``update-available``; the listener receives the last known hash."""
        return self.emitter.on(UPDATE_AVAILABLE, listener)

    def handle_frame(self, frame: str | bytes | dict[str, Any]) -> None:
        """Feed one server frame (``{"type": "hash", "data": ...}`` or ``{"type": "ok"}``)."""
        if isinstance(frame, str | bytes):
            try:
                frame = json.loads(frame)
            except json.JSONDecodeError:
                logger.warning("Ignoring malformed live-update frame: %r", frame)
                return
        if not isinstance(frame, dict):
            logger.warning("Ignoring unexpected live-update frame: %r", frame)
            return
        kind = frame.get("type")
        if kind == "hash":
            self.emitter.emit("hash", frame.get("data"))
        elif kind == "ok":
            self.emitter.emit("ok")
        else:
            logger.debug("Ignoring unknown live-update event %r", kind)

    async def run(self, url: str) -> None:
        """Connect to ``url`` and process frames until the server closes the socket."""
        async with connect(url) as websocket:
            logger.info("Connected to live-update channel %s", url)
            try:
                async for message in websocket:
                    self.handle_frame(message)
            except ConnectionClosed as exc:
                logger.warning("Live-update channel closed unexpectedly: %s", exc)
        logger.info("Live-update channel %s closed", url)

    def _on_hash(self, build_hash: str | None) -> None:
        self.last_hash = build_hash

    def _on_ok(self) -> None:
        self.emitter.emit(UPDATE_AVAILABLE, self.last_hash)


__all__ = ["UPDATE_AVAILABLE", "ClientUpdateAgent"]
