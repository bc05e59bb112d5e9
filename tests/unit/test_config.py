"""Tests for the Dynaconf-backed configuration service."""

from __future__ import annotations

from pathlib import Path

import pytest

from buildcast.core.config import (
    DEV_HTTP_MODULE,
    WATCH_BRIDGE_MODULE,
    ConfigError,
    ConfigService,
    ConfigSnapshot,
)
from buildcast.core.entry import DEFAULT_CLIENT_AGENT_PATH
from buildcast.modules import DevHttpServer


def test_config_service_loads_layered_snapshot(
    sample_config_service: ConfigService, sample_config_dir: Path
) -> None:
    snapshot = sample_config_service.snapshot
    project_root = sample_config_dir.resolve().parent

    assert isinstance(snapshot, ConfigSnapshot)
    assert snapshot.server.host == "127.0.0.1"
    assert snapshot.server.port == 9200
    assert snapshot.server.websocket_path == "/live"
    assert snapshot.compiler.context == (project_root / "project").resolve()
    assert snapshot.compiler.entry == "./src/index.js"
    assert snapshot.static_root == (project_root / "project" / "dist").resolve().as_posix()
    assert snapshot.client.agent_path == DEFAULT_CLIENT_AGENT_PATH
    assert snapshot.logging.level == "DEBUG"
    assert snapshot.logging.file == project_root / "logs" / "buildcast.log"


def test_module_config_generation(sample_config_service: ConfigService) -> None:
    http_cfg = sample_config_service.module_config_for(DEV_HTTP_MODULE)
    assert http_cfg.options["port"] == 9200
    assert http_cfg.options["websocket_path"] == "/live"
    assert http_cfg.options["channel_queue_size"] == 8
    assert http_cfg.options["static_root"] == sample_config_service.snapshot.static_root

    bridge_cfg = sample_config_service.module_config_for(WATCH_BRIDGE_MODULE)
    assert bridge_cfg.options["done_topic"] == "compiler.build.done"
    assert bridge_cfg.options["watch_options"] == {"debounce_ms": 10}

    by_class = sample_config_service.module_config_for(DevHttpServer)
    assert by_class.options == http_cfg.options

    with pytest.raises(KeyError):
        sample_config_service.module_config_for("modules.unknown")


def test_apply_changes_merges_without_persisting(sample_config_service: ConfigService) -> None:
    updated = sample_config_service.apply_changes({"server": {"port": 9300, "store": "disk"}})

    assert updated.server.port == 9300
    assert updated.server.store == "disk"
    assert updated.server.websocket_path == "/live"
    assert sample_config_service.refresh().server.port == 9200


def test_invalid_values_raise_config_error(sample_config_service: ConfigService) -> None:
    with pytest.raises(ConfigError):
        sample_config_service.apply_changes({"server": {"websocket_path": "live"}})
    with pytest.raises(ConfigError):
        sample_config_service.apply_changes({"server": {"store": "s3"}})


def test_missing_config_directory_raises(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        ConfigService(config_dir=tmp_path / "nowhere")


def test_default_snapshot_serves_compiler_output() -> None:
    snapshot = ConfigSnapshot()

    assert snapshot.server.port == 8080
    assert snapshot.server.store == "memory"
    assert snapshot.static_root == snapshot.compiler.output_path
    assert snapshot.compiler.output.filename == "main.js"
