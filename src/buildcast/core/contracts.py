"""
Contracts and payload schemas shared by buildcast modules.

Modules exchange frozen pydantic payloads over the event bus and follow the
lifecycle hooks declared on `BaseModule` so the orchestrator can wire them.
"""

from __future__ import annotations

import abc
import datetime as dt
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field


class BasePayload(BaseModel):
    """Base class for all bus payloads."""

    model_config = ConfigDict(extra="allow", frozen=True)

    schema_version: str = Field(
        default="1.0.0", description="Semantic version of the payload schema."
    )


class BuildRecord(BasePayload):
    """Identifier of the most recently completed build."""

    hash: str = Field(description="Build identifier reported by the compiler.")
    completed_at: dt.datetime = Field(
        default_factory=lambda: dt.datetime.now(tz=dt.UTC),
        description="Completion timestamp in UTC.",
    )
    errors: list[str] = Field(
        default_factory=list, description="Compile errors reported with this build."
    )
    assets: list[str] = Field(
        default_factory=list, description="Store paths written by this build."
    )

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)


class HealthStatus(BaseModel):
    """Structured health report for modules."""

    model_config = ConfigDict(extra="allow", frozen=True)

    status: str = Field(description="Health classification such as healthy/degraded/error.")
    details: dict[str, Any] = Field(default_factory=dict)


class ModuleConfig(BaseModel):
    """Baseline configuration contract applied to all modules."""

    model_config = ConfigDict(extra="allow")

    enabled: bool = Field(default=True)
    options: dict[str, Any] = Field(
        default_factory=dict, description="Arbitrary module configuration."
    )


@runtime_checkable
class EventHandler(Protocol):
    """Callable type for bus subscribers."""

    async def __call__(self, topic: str, payload: BasePayload) -> None: ...


if TYPE_CHECKING:
    from .bus import EventBus


class BaseModule(abc.ABC):
    """
    Abstract base class for all modular components.

    Modules receive an event bus instance and are responsible for
    subscribing to topics during `start`.
    """

    name: str

    def __init__(self) -> None:
        self._configured = False
        self._config = ModuleConfig()
        self._bus: EventBus | None = None

    @property
    def bus(self) -> EventBus:
        if self._bus is None:
            raise RuntimeError(f"{self.__class__.__name__} has not been attached to an EventBus.")
        return self._bus

    def set_bus(self, bus: EventBus) -> None:
        """Attach the shared event bus instance to the module."""
        self._bus = bus

    async def configure(self, config: ModuleConfig) -> None:
        """Apply the provided configuration prior to module start."""
        self._config = config
        self._configured = True

    @abc.abstractmethod
    async def start(self) -> None:
        """Begin processing by registering bus subscriptions or scheduling tasks."""

    async def stop(self) -> None:
        """Release resources; the base implementation is a no-op."""
        return None

    async def health(self) -> HealthStatus:
        """Return a basic health status; modules can override for richer diagnostics."""
        status = "healthy" if self._configured else "degraded"
        return HealthStatus(status=status, details={"configured": self._configured})


__all__ = [
    "BaseModule",
    "BasePayload",
    "BuildRecord",
    "EventHandler",
    "HealthStatus",
    "ModuleConfig",
]
