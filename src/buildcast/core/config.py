"""
Dynaconf-powered configuration loader with Pydantic validation.

The configuration service loads the layered YAML files from the config
directory (plus ``BUILDCAST_``-prefixed environment variables), validates
them, and produces module-friendly `ModuleConfig` instances so the dev server
can wire its modules without hand-written dictionaries.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from dynaconf import Dynaconf
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..compiler.options import CompilerOptions
from .contracts import BaseModule, ModuleConfig
from .entry import DEFAULT_CLIENT_AGENT_PATH, DEFAULT_HOT_RUNTIME_PATH
from .errors import ConfigError


def _section(raw: dict[str, Any], key: str) -> dict[str, Any]:
    """Case-insensitive dictionary lookup helper."""
    value = raw.get(key) or raw.get(key.upper()) or raw.get(key.lower())
    if isinstance(value, dict):
        return value
    return {}


def _deep_merge(base: dict[str, Any], updates: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge dictionaries without mutating the originals."""
    result: dict[str, Any] = {**base}
    for key, value in updates.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


CONFIG_FILENAMES = ("config.yaml", "local.yaml")
_REPO_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_CONFIG_DIR = _REPO_ROOT / "config"

WATCH_BRIDGE_MODULE = "modules.compiler.watch_bridge"
DEV_HTTP_MODULE = "modules.server.dev_http"


class ServerSettings(BaseModel):
    """HTTP and live-update surface configuration."""

    model_config = ConfigDict(extra="ignore")

    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8080, ge=0, le=65535)
    static_root: str | None = Field(
        default=None, description="Store directory served over HTTP; defaults to compiler output."
    )
    websocket_path: str = Field(default="/ws")
    channel_queue_size: int = Field(default=64, ge=1)
    store: Literal["memory", "disk"] = Field(default="memory")

    @field_validator("websocket_path")
    @classmethod
    def _leading_slash(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError("websocket_path must start with '/'")
        return value


class ClientSettings(BaseModel):
    """Modules injected ahead of the configured entries."""

    model_config = ConfigDict(extra="ignore")

    inject: bool = Field(default=True)
    agent_path: str = Field(default=DEFAULT_CLIENT_AGENT_PATH)
    hot_runtime_path: str = Field(default=DEFAULT_HOT_RUNTIME_PATH)


class WatchSettings(BaseModel):
    """Options forwarded to the compiler watcher."""

    model_config = ConfigDict(extra="allow")

    debounce_ms: int = Field(default=50, ge=0)
    done_topic: str = Field(default="compiler.build.done")


class LoggingSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    level: str = Field(default="INFO")
    file: Path | None = Field(default=None)
    max_mb: int = Field(default=10, ge=1)
    backup_count: int = Field(default=3, ge=0)


class ConfigSnapshot(BaseModel):
    """
    Validated, strongly typed view of the merged configuration.

    Provides helpers to derive per-module configuration dictionaries.
    """

    model_config = ConfigDict(extra="ignore")

    server: ServerSettings = Field(default_factory=ServerSettings)
    compiler: CompilerOptions = Field(default_factory=CompilerOptions)
    client: ClientSettings = Field(default_factory=ClientSettings)
    watch: WatchSettings = Field(default_factory=WatchSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @property
    def static_root(self) -> str:
        return self.server.static_root or self.compiler.output_path

    def module_config(self, module_name: str) -> ModuleConfig:
        """Produce a ModuleConfig tailored for the requested module."""
        if module_name == WATCH_BRIDGE_MODULE:
            return ModuleConfig(
                options={
                    "done_topic": self.watch.done_topic,
                    "watch_options": self.watch.model_dump(exclude={"done_topic"}),
                }
            )
        if module_name == DEV_HTTP_MODULE:
            return ModuleConfig(
                options={
                    "host": self.server.host,
                    "port": self.server.port,
                    "static_root": self.static_root,
                    "websocket_path": self.server.websocket_path,
                    "channel_queue_size": self.server.channel_queue_size,
                }
            )
        raise KeyError(f"No module configuration defined for {module_name}")


class ConfigService:
    """
    Runtime facade for loading, validating, and distributing configuration.
    """

    def __init__(
        self,
        *,
        config_dir: str | Path | None = None,
        settings: Dynaconf | None = None,
    ) -> None:
        self._config_dir = Path(config_dir) if config_dir else DEFAULT_CONFIG_DIR
        settings_files = [self._config_dir / name for name in CONFIG_FILENAMES]
        existing_files = [str(path) for path in settings_files if path.exists()]
        if settings is None and not existing_files:
            raise ConfigError(
                f"No configuration files found in {self._config_dir}. "
                "Expected at least config.yaml."
            )

        self._settings = settings or Dynaconf(
            envvar_prefix="BUILDCAST",
            settings_files=existing_files,
            load_dotenv=True,
            environments=False,
            merge_enabled=True,
        )
        self._snapshot = self._build_snapshot()

    @property
    def config_dir(self) -> Path:
        return self._config_dir

    @property
    def snapshot(self) -> ConfigSnapshot:
        """Latest validated configuration snapshot."""
        return self._snapshot

    def refresh(self) -> ConfigSnapshot:
        """Reload configuration files and rebuild the snapshot."""
        self._settings.reload()
        self._snapshot = self._build_snapshot()
        return self._snapshot

    def apply_changes(self, changes: dict[str, Any]) -> ConfigSnapshot:
        """
        Merge the provided changes into the current configuration snapshot.

        Changes are not persisted to disk.
        """
        raw = self._settings.as_dict()
        merged = _deep_merge(self._extract_snapshot_data(raw), changes)
        self._snapshot = self._build_snapshot(merged, extracted=True)
        return self._snapshot

    def module_config_for(self, module: str | type[BaseModule] | BaseModule) -> ModuleConfig:
        """Accepts module names, classes, or instances."""
        if isinstance(module, BaseModule):
            module_name = module.name
        elif isinstance(module, str):
            module_name = module
        else:
            module_name = getattr(module, "name", module.__name__)
        return self._snapshot.module_config(module_name)

    def _build_snapshot(
        self, raw: dict[str, Any] | None = None, *, extracted: bool = False
    ) -> ConfigSnapshot:
        source = raw if raw is not None else self._settings.as_dict()
        data = source if extracted else self._extract_snapshot_data(source)
        try:
            snapshot = ConfigSnapshot.model_validate(data)
        except ValidationError as exc:
            raise ConfigError("Configuration validation failed") from exc
        return self._anchor_paths(snapshot)

    def _extract_snapshot_data(self, raw: dict[str, Any]) -> dict[str, Any]:
        return {
            "server": _section(raw, "server"),
            "compiler": _section(raw, "compiler"),
            "client": _section(raw, "client"),
            "watch": _section(raw, "watch"),
            "logging": _section(raw, "logging"),
        }

    def _anchor_paths(self, snapshot: ConfigSnapshot) -> ConfigSnapshot:
        # Relative project paths are anchored at the directory holding config/.
        base_dir = self._config_dir.resolve().parent
        compiler = snapshot.compiler
        if not compiler.context.is_absolute():
            compiler.context = (base_dir / compiler.context).resolve()
        log_file = snapshot.logging.file
        if log_file is not None and not log_file.is_absolute():
            snapshot.logging.file = base_dir / log_file
        return snapshot


__all__ = [
    "CONFIG_FILENAMES",
    "DEV_HTTP_MODULE",
    "ClientSettings",
    "ConfigService",
    "ConfigSnapshot",
    "LoggingSettings",
    "ServerSettings",
    "WATCH_BRIDGE_MODULE",
    "WatchSettings",
]
