"""
Client side of the live-update protocol.

``agent.js`` and ``hot_runtime.js`` are injected into the compiled bundle;
`ClientUpdateAgent` implements the same behaviour for Python consumers.
"""

from .agent import UPDATE_AVAILABLE, ClientUpdateAgent
from .emitter import CLIENT_EVENTS, UpdateEmitter

__all__ = ["CLIENT_EVENTS", "UPDATE_AVAILABLE", "ClientUpdateAgent", "UpdateEmitter"]
