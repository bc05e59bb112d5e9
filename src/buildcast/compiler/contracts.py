"""
Contract the dev server expects from a compiler collaborator.

A compiler exposes its options, accepts an injected output store, offers a
``done`` hook fired once per completed build, and can run in watch mode.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..store import OutputStore
    from .options import CompilerOptions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildResult:
    """Outcome of one compilation."""

    hash: str
    errors: tuple[str, ...] = ()
    assets: tuple[str, ...] = ()
    duration_seconds: float = 0.0

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)


DoneCallback = Callable[[BuildResult], Awaitable[None] | None]


@dataclass
class DoneHook:
    """Named taps invoked in registration order after every build."""

    _taps: list[tuple[str, DoneCallback]] = field(default_factory=list)

    def tap(self, name: str, callback: DoneCallback) -> None:
        self._taps.append((name, callback))

    def untap(self, name: str) -> None:
        self._taps = [(tap_name, cb) for tap_name, cb in self._taps if tap_name != name]

    @property
    def taps(self) -> list[str]:
        return [name for name, _ in self._taps]

    async def call(self, result: BuildResult) -> None:
        for name, callback in list(self._taps):
            try:
                outcome = callback(result)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception:
                logger.exception("Done hook tap %s failed for build %s", name, result.hash)


@dataclass
class CompilerHooks:
    done: DoneHook = field(default_factory=DoneHook)


@runtime_checkable
class Compiler(Protocol):
    """Structural type implemented by compiler collaborators."""

    options: CompilerOptions
    output_store: OutputStore | None
    hooks: CompilerHooks

    async def watch(self, watch_options: dict[str, Any] | None = None) -> None:
        """Start watch mode; raise if the watcher cannot be started."""

    async def close(self) -> None:
        """Stop watching and release resources."""


__all__ = ["BuildResult", "Compiler", "CompilerHooks", "DoneCallback", "DoneHook"]
