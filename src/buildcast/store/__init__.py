"""Output stores shared by the compiler and the HTTP layer."""

from .base import OutputStore, StatResult, normalize_path
from .disk import DiskOutputStore
from .memory import MemoryOutputStore


def create_store(kind: str) -> OutputStore:
    """Instantiate a store by its configuration name (``memory`` or ``disk``)."""
    if kind == "memory":
        return MemoryOutputStore()
    if kind == "disk":
        return DiskOutputStore()
    raise ValueError(f"Unknown output store '{kind}'. Expected 'memory' or 'disk'.")


__all__ = [
    "DiskOutputStore",
    "MemoryOutputStore",
    "OutputStore",
    "StatResult",
    "create_store",
    "normalize_path",
]
