"""
Typed publish/subscribe used by the client update agent.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Literal, get_args

logger = logging.getLogger(__name__)

ClientEvent = Literal["hash", "ok", "update-available"]
CLIENT_EVENTS: tuple[str, ...] = get_args(ClientEvent)

Listener = Callable[..., Any]


class UpdateEmitter:
    """
    Synchronous emitter for the ``hash``, ``ok`` and ``update-available`` events.

    Several listeners may subscribe to the same event. Nothing is recorded:
    a listener only sees events emitted after it subscribed.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = {event: [] for event in CLIENT_EVENTS}

    def on(self, event: ClientEvent, listener: Listener) -> Callable[[], None]:
        """Subscribe ``listener``; returns a callable that unsubscribes it."""
        self._listeners_for(event).append(listener)
        return lambda: self.off(event, listener)

    def off(self, event: ClientEvent, listener: Listener) -> None:
        listeners = self._listeners_for(event)
        if listener in listeners:
            listeners.remove(listener)

    def emit(self, event: ClientEvent, *args: Any) -> int:
        """Call every listener of ``event``; returns how many were called."""
        listeners = list(self._listeners_for(event))
        for listener in listeners:
            try:
                listener(*args)
            except Exception:
                logger.exception("Listener %s failed on %s event", listener, event)
        return len(listeners)

    def listener_count(self, event: ClientEvent) -> int:
        return len(self._listeners_for(event))

    def _listeners_for(self, event: str) -> list[Listener]:
        try:
            return self._listeners[event]
        except KeyError:
            raise ValueError(
                f"Unknown client event '{event}'. Expected one of {CLIENT_EVENTS}"
            ) from None


__all__ = ["CLIENT_EVENTS", "ClientEvent", "Listener", "UpdateEmitter"]
