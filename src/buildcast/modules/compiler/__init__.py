"""Compiler-facing modules."""

from .watch_bridge import CompilerWatchBridge

__all__ = ["CompilerWatchBridge"]
