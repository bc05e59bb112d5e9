"""
Bridge between compiler watch mode and the event bus.
"""

from __future__ import annotations

import logging
from typing import Any

from ...compiler.contracts import BuildResult, Compiler
from ...core.bus import Handler, Subscription
from ...core.contracts import BaseModule, BuildRecord, HealthStatus, ModuleConfig
from ...core.errors import WatchStartError

logger = logging.getLogger(__name__)

TAP_NAME = "buildcast"


class CompilerWatchBridge(BaseModule):
    """
    Drive continuous compilation and publish each completed build.

    Every ``done`` signal from the compiler replaces the current
    `BuildRecord` and publishes it on the done topic, including builds that
    finished with compile errors. The compiler serializes builds; the bridge
    only reacts to completions.
    """

    name = "modules.compiler.watch_bridge"

    def __init__(self, compiler: Compiler) -> None:
        super().__init__()
        self._compiler = compiler
        self._done_topic = "compiler.build.done"
        self._watch_options: dict[str, Any] = {}
        self._current: BuildRecord | None = None
        self._builds_total = 0
        self._failed_builds_total = 0
        self._watching = False

    async def configure(self, config: ModuleConfig) -> None:
        await super().configure(config)
        options = config.options
        self._done_topic = options.get("done_topic", self._done_topic)
        self._watch_options = dict(options.get("watch_options", self._watch_options))

    @property
    def compiler(self) -> Compiler:
        return self._compiler

    @property
    def done_topic(self) -> str:
        return self._done_topic

    @property
    def current(self) -> BuildRecord | None:
        """The most recently completed build, if any."""
        return self._current

    def on_build_complete(self, handler: Handler) -> Subscription:
        """Register a handler called with ``(topic, BuildRecord)`` after every build."""
        return self.bus.subscribe(self._done_topic, handler)

    async def start(self) -> None:
        self._compiler.hooks.done.tap(TAP_NAME, self._handle_done)
        try:
            await self._compiler.watch(self._watch_options)
        except Exception as exc:
            self._compiler.hooks.done.untap(TAP_NAME)
            raise WatchStartError(f"Compiler watch failed to start: {exc}") from exc
        self._watching = True
        logger.info("Compiler watch started; publishing builds on %s", self._done_topic)

    async def stop(self) -> None:
        self._compiler.hooks.done.untap(TAP_NAME)
        if self._watching:
            await self._compiler.close()
            self._watching = False

    async def health(self) -> HealthStatus:
        if not self._watching:
            status = "degraded"
        elif self._current is not None and self._current.has_errors:
            status = "degraded"
        else:
            status = "healthy"
        return HealthStatus(
            status=status,
            details={
                "watching": self._watching,
                "current_hash": self._current.hash if self._current else None,
                "builds_total": self._builds_total,
                "failed_builds_total": self._failed_builds_total,
            },
        )

    async def _handle_done(self, result: BuildResult) -> None:
        record = BuildRecord(hash=result.hash, errors=list(result.errors), assets=list(result.assets))
        self._current = record
        self._builds_total += 1
        if record.has_errors:
            self._failed_builds_total += 1
            logger.warning(
                "Build %s completed with %d errors: %s",
                record.hash,
                len(record.errors),
                "; ".join(record.errors),
            )
        else:
            logger.info("Build %s completed (%d assets)", record.hash, len(record.assets))
        await self.bus.publish(self._done_topic, record)


__all__ = ["CompilerWatchBridge"]
