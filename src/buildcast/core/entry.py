"""
Entry-point augmentation that wires the client agent into compiled bundles.
"""

from __future__ import annotations

import logging
from collections.abc import MutableMapping
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

CLIENT_DIR = Path(__file__).resolve().parents[1] / "client"
DEFAULT_CLIENT_AGENT_PATH = (CLIENT_DIR / "agent.js").as_posix()
DEFAULT_HOT_RUNTIME_PATH = (CLIENT_DIR / "hot_runtime.js").as_posix()


class EntryInjector:
    """
    Prepend the client agent and hot-update runtime to the compiler entries.

    Must run exactly once, before the first build: a second call prepends
    the two modules again. Original entries are never removed or reordered.
    Named entries (a mapping) each receive the prefix.
    """

    def __init__(
        self,
        *,
        client_agent_path: str | None = None,
        hot_runtime_path: str | None = None,
    ) -> None:
        self.client_agent_path = client_agent_path or DEFAULT_CLIENT_AGENT_PATH
        self.hot_runtime_path = hot_runtime_path or DEFAULT_HOT_RUNTIME_PATH

    @property
    def prefix(self) -> list[str]:
        return [self.client_agent_path, self.hot_runtime_path]

    def inject(self, config: Any) -> Any:
        """Rewrite ``config.entry`` (or ``config["entry"]``) in place and return ``config``."""
        original = self._get_entry(config)
        if isinstance(original, dict):
            updated: Any = {
                name: [*self.prefix, *self._as_list(modules)]
                for name, modules in original.items()
            }
        else:
            updated = [*self.prefix, *self._as_list(original)]
        self._set_entry(config, updated)
        logger.debug("Injected client entries; entry is now %s", updated)
        return config

    @staticmethod
    def _as_list(modules: Any) -> list[str]:
        if modules is None:
            return []
        if isinstance(modules, str):
            return [modules]
        return list(modules)

    @staticmethod
    def _get_entry(config: Any) -> Any:
        if isinstance(config, MutableMapping):
            return config.get("entry")
        return getattr(config, "entry", None)

    @staticmethod
    def _set_entry(config: Any, entry: Any) -> None:
        if isinstance(config, MutableMapping):
            config["entry"] = entry
        else:
            config.entry = entry


__all__ = [
    "DEFAULT_CLIENT_AGENT_PATH",
    "DEFAULT_HOT_RUNTIME_PATH",
    "EntryInjector",
]
