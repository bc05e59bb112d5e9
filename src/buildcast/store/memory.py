"""
Transient in-process output store.
"""

from __future__ import annotations

import logging
import posixpath

from ..core.errors import NotFoundError
from .base import OutputStore, StatResult, normalize_path

logger = logging.getLogger(__name__)


class MemoryOutputStore(OutputStore):
    """Keep compiled artifacts in a dict; content lives only for the process."""

    def __init__(self) -> None:
        self._files: dict[str, bytes] = {}
        self._dirs: set[str] = {"/"}

    def stat(self, path: str) -> StatResult:
        key = normalize_path(path)
        if key in self._files:
            return StatResult(is_file=True, size=len(self._files[key]))
        if key in self._dirs:
            return StatResult(is_file=False)
        raise NotFoundError(key)

    def read_file(self, path: str) -> bytes:
        key = normalize_path(path)
        try:
            return self._files[key]
        except KeyError:
            raise NotFoundError(key) from None

    def write_file(self, path: str, data: bytes) -> None:
        key = normalize_path(path)
        if key in self._dirs:
            raise IsADirectoryError(key)
        self.mkdirp(posixpath.dirname(key))
        self._files[key] = bytes(data)
        logger.debug("Wrote %d bytes to %s", len(data), key)

    def mkdirp(self, path: str) -> None:
        key = normalize_path(path)
        current = "/"
        for part in key.strip("/").split("/"):
            if not part:
                continue
            current = posixpath.join(current, part)
            if current in self._files:
                raise NotADirectoryError(current)
            self._dirs.add(current)

    def paths(self) -> list[str]:
        """Return every file path currently held, sorted."""
        return sorted(self._files)


__all__ = ["MemoryOutputStore"]
