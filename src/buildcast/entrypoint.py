"""
CLI entrypoint that boots the dev server.

Loads Dynaconf configuration, builds a `StaticCompiler` for the configured
project, and runs the `DevServer` (watch bridge plus HTTP/WebSocket module)
until interrupted.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import logging.handlers
import signal
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from .compiler.static import StaticCompiler
from .core.config import ConfigService, LoggingSettings
from .core.errors import BindError, ConfigError
from .server import DevServer

LOGGER = logging.getLogger(__name__)
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def _ensure_rotating_file_handler(
    log_file: Path,
    *,
    max_mb: int = 10,
    backup_count: int = 3,
) -> None:
    """Attach a rotating file handler pointed at ``log_file`` if missing."""

    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        LOGGER.warning("Unable to create log directory %s: %s", log_file.parent, exc)
        return

    root_logger = logging.getLogger()
    for handler in root_logger.handlers:
        if isinstance(handler, logging.handlers.RotatingFileHandler):
            existing = getattr(handler, "baseFilename", None)
            if existing and Path(existing) == log_file:
                return

    handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=max_mb * 1024 * 1024,
        backupCount=backup_count,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(handler)


def _apply_logging_settings(settings: LoggingSettings, *, level_override: bool) -> None:
    if not level_override:
        logging.getLogger().setLevel(getattr(logging, settings.level.upper(), logging.INFO))
    if settings.file is not None:
        _ensure_rotating_file_handler(
            settings.file, max_mb=settings.max_mb, backup_count=settings.backup_count
        )


def _cli_overrides(args: argparse.Namespace) -> dict[str, Any]:
    server: dict[str, Any] = {}
    if args.host is not None:
        server["host"] = args.host
    if args.port is not None:
        server["port"] = args.port
    if args.store is not None:
        server["store"] = args.store
    return {"server": server} if server else {}


async def run_server(args: argparse.Namespace) -> None:
    """Load configuration, start the dev server, and run until interrupted."""

    config_service = ConfigService(config_dir=args.config_dir)
    overrides = _cli_overrides(args)
    snapshot = config_service.apply_changes(overrides) if overrides else config_service.snapshot
    _apply_logging_settings(snapshot.logging, level_override=args.log_level is not None)

    compiler = StaticCompiler(snapshot.compiler)
    server = DevServer(compiler, settings=snapshot)

    stop_event = asyncio.Event()
    _install_signal_handlers(stop_event)

    await server.listen()
    LOGGER.info("Serving %s from %s. Press Ctrl+C to stop.", server.url, server.static_root)

    try:
        await stop_event.wait()
    finally:
        await server.close()


def _install_signal_handlers(stop_event: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()

    def _request_shutdown(sig_name: str) -> None:
        if not stop_event.is_set():
            LOGGER.info("Received %s, shutting down.", sig_name)
            stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _request_shutdown, sig.name)
        except NotImplementedError:  # Windows Proactor loop
            signal.signal(  # type: ignore[arg-type]
                sig,
                lambda signum, _frame, sig_name=sig.name: loop.call_soon_threadsafe(
                    _request_shutdown, sig_name or str(signum)
                ),
            )


def configure_logging(level: str) -> None:
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format=LOG_FORMAT,
    )


def parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Buildcast development server.")
    parser.add_argument(
        "--config-dir",
        type=Path,
        default=None,
        help="Directory that contains config.yaml/local.yaml (default: repo config/).",
    )
    parser.add_argument("--host", default=None, help="Interface to bind (overrides config).")
    parser.add_argument("--port", type=int, default=None, help="Port to bind (overrides config).")
    parser.add_argument(
        "--store",
        choices=("memory", "disk"),
        default=None,
        help="Where compiled output is written (overrides config).",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Python logging level (default: logging.level from config, else INFO).",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level or "INFO")
    try:
        asyncio.run(run_server(args))
    except KeyboardInterrupt:
        LOGGER.info("Interrupted by user.")
        return 0
    except ConfigError as exc:
        LOGGER.error("Configuration failed: %s", exc)
        return 2
    except BindError:
        return 3
    except Exception:  # pragma: no cover - surfaced to operator
        LOGGER.exception("Buildcast dev server crashed.")
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())


__all__ = ["configure_logging", "main", "parse_args", "run_server"]
