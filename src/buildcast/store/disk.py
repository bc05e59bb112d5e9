"""
Disk-backed output store that writes through to the real filesystem.
"""

from __future__ import annotations

import logging
from pathlib import Path
from stat import S_ISREG

from ..core.errors import NotFoundError
from .base import OutputStore, StatResult, normalize_path

logger = logging.getLogger(__name__)


class DiskOutputStore(OutputStore):
    """
    Persistent store rooted at ``/`` of the local filesystem.

    Store paths are the absolute paths the compiler reports, so the compiler
    output directory ends up populated on disk exactly as it would after a
    one-shot build.
    """

    def stat(self, path: str) -> StatResult:
        target = Path(normalize_path(path))
        try:
            info = target.stat()
        except (OSError, ValueError):
            # Missing, unreadable, over-long or NUL-containing paths all read as absent.
            raise NotFoundError(str(target)) from None
        return StatResult(is_file=S_ISREG(info.st_mode), size=info.st_size)

    def read_file(self, path: str) -> bytes:
        target = Path(normalize_path(path))
        try:
            return target.read_bytes()
        except (OSError, ValueError):
            raise NotFoundError(str(target)) from None

    def write_file(self, path: str, data: bytes) -> None:
        target = Path(normalize_path(path))
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        logger.debug("Wrote %d bytes to %s", len(data), target)

    def mkdirp(self, path: str) -> None:
        Path(normalize_path(path)).mkdir(parents=True, exist_ok=True)


__all__ = ["DiskOutputStore"]
