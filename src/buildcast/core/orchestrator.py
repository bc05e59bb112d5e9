"""
Lifecycle coordinator for buildcast modules.

The orchestrator owns the shared event bus, configures modules, and
coordinates their startup and shutdown order.
"""

from __future__ import annotations

import logging

from .bus import EventBus
from .contracts import BaseModule, HealthStatus, ModuleConfig

logger = logging.getLogger(__name__)


class Orchestrator:
    """Manage module lifecycle and shared infrastructure."""

    def __init__(self, *, bus: EventBus | None = None) -> None:
        self.bus = bus or EventBus()
        self._modules: list[BaseModule] = []
        self._configs: dict[BaseModule, ModuleConfig] = {}
        self._started: list[BaseModule] = []
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    @property
    def modules(self) -> list[BaseModule]:
        return list(self._modules)

    async def add_module(self, module: BaseModule, config: ModuleConfig | None = None) -> None:
        """
        Register a module with an optional configuration.

        Modules receive the shared bus before configuration and start in
        registration order.
        """
        module.set_bus(self.bus)
        if config is None:
            config = ModuleConfig()
        await module.configure(config)
        self._modules.append(module)
        self._configs[module] = config
        logger.info("Registered module %s", module.name)

    async def start(self) -> None:
        """Start the bus and all registered modules.

        If a module fails to start, the modules already started are stopped
        in reverse order and the error propagates to the caller.
        """
        if self._running:
            logger.warning("Orchestrator already running.")
            return
        await self.bus.start()
        for module in self._modules:
            logger.info("Starting module %s", module.name)
            try:
                await module.start()
            except Exception:
                logger.error("Module %s failed to start; rolling back.", module.name)
                await self._stop_started()
                await self.bus.stop()
                raise
            self._started.append(module)
        self._running = True
        logger.info("Orchestrator started %d modules.", len(self._modules))

    async def stop(self) -> None:
        """Stop all modules in reverse start order and shut down the bus."""
        if not self._running:
            logger.warning("Orchestrator stop requested while not running.")
            return
        await self._stop_started()
        await self.bus.stop()
        self._running = False
        logger.info("Orchestrator stopped.")

    async def health(self) -> dict[str, HealthStatus]:
        """Aggregate health information from all modules."""
        reports: dict[str, HealthStatus] = {}
        for module in self._modules:
            reports[module.name] = await module.health()
        return reports

    @staticmethod
    def overall_status(reports: dict[str, HealthStatus]) -> str:
        statuses = {report.status for report in reports.values()}
        if "error" in statuses:
            return "error"
        if "degraded" in statuses:
            return "degraded"
        return "healthy"

    async def _stop_started(self) -> None:
        while self._started:
            module = self._started.pop()
            try:
                await module.stop()
            except Exception:  # pragma: no cover - logged for troubleshooting
                logger.exception("Module %s failed to stop cleanly.", module.name)


__all__ = ["Orchestrator"]
