"""Exception hierarchy for the dev server."""

from __future__ import annotations


class BuildcastError(RuntimeError):
    """Base class for buildcast failures."""


class ConfigError(BuildcastError):
    """Raised when configuration files are missing or invalid."""


class NotFoundError(BuildcastError):
    """Raised by output stores when a path does not exist or is not a file."""

    def __init__(self, path: str, message: str | None = None) -> None:
        super().__init__(message or f"No such entry in output store: {path}")
        self.path = path


class BindError(BuildcastError):
    """Raised when the HTTP server cannot bind its listening socket."""

    def __init__(self, host: str, port: int, cause: OSError) -> None:
        super().__init__(f"Unable to bind {host}:{port}: {cause}")
        self.host = host
        self.port = port
        self.cause = cause


class WatchStartError(BuildcastError):
    """Raised when the compiler watcher cannot be started."""


class ChannelTransportError(BuildcastError):
    """Raised by a live-update channel that can no longer deliver events."""


__all__ = [
    "BindError",
    "BuildcastError",
    "ChannelTransportError",
    "ConfigError",
    "NotFoundError",
    "WatchStartError",
]
