"""
Output store contract shared by the compiler writer and the HTTP reader.
"""

from __future__ import annotations

import abc
import posixpath
from dataclasses import dataclass

from ..core.errors import NotFoundError


@dataclass(frozen=True, slots=True)
class StatResult:
    """Minimal stat information exposed by output stores."""

    is_file: bool
    size: int = 0

    @property
    def is_dir(self) -> bool:
        return not self.is_file


def normalize_path(path: str) -> str:
    """Return the canonical absolute POSIX form of ``path``."""
    if not path:
        return "/"
    return posixpath.normpath("/" + path.replace("\\", "/").lstrip("/"))


class OutputStore(abc.ABC):
    """
    Synchronous stat/read/write interface over compiled artifacts.

    Store paths are absolute POSIX strings. A single instance is shared by the
    compiler (writer) and the asset middleware (reader); stores never cache.
    """

    @abc.abstractmethod
    def stat(self, path: str) -> StatResult:
        """Return stat information or raise ``NotFoundError``."""

    @abc.abstractmethod
    def read_file(self, path: str) -> bytes:
        """Return file content or raise ``NotFoundError``."""

    @abc.abstractmethod
    def write_file(self, path: str, data: bytes) -> None:
        """Write ``data`` to ``path``, creating parent directories."""

    @abc.abstractmethod
    def mkdirp(self, path: str) -> None:
        """Create ``path`` and any missing parents."""

    def join(self, *parts: str) -> str:
        """Join path segments the way the compiler reports them.

        Later absolute segments are appended rather than replacing the prefix,
        so ``join("/dist", "/index.html")`` is ``/dist/index.html``.
        """
        return normalize_path("/".join(part for part in parts if part))

    def exists(self, path: str) -> bool:
        try:
            self.stat(path)
        except NotFoundError:
            return False
        return True


__all__ = ["OutputStore", "StatResult", "normalize_path"]
