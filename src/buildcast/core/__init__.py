"""
Core infrastructure for buildcast.

Exposes the asynchronous event bus, contracts, configuration, entry
injection and the orchestrator that wires the dev server modules.
"""

from .bus import EventBus, Subscription
from .config import ConfigService, ConfigSnapshot
from .contracts import BaseModule, BasePayload, BuildRecord, HealthStatus, ModuleConfig
from .entry import EntryInjector
from .errors import (
    BindError,
    BuildcastError,
    ChannelTransportError,
    ConfigError,
    NotFoundError,
    WatchStartError,
)
from .orchestrator import Orchestrator

__all__ = [
    "BaseModule",
    "BasePayload",
    "BindError",
    "BuildRecord",
    "BuildcastError",
    "ChannelTransportError",
    "ConfigError",
    "ConfigService",
    "ConfigSnapshot",
    "EntryInjector",
    "EventBus",
    "HealthStatus",
    "ModuleConfig",
    "NotFoundError",
    "Orchestrator",
    "Subscription",
    "WatchStartError",
]
