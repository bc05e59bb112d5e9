from __future__ import annotations

import textwrap
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from buildcast.compiler.contracts import BuildResult, CompilerHooks
from buildcast.compiler.options import CompilerOptions
from buildcast.core.config import ConfigService
from buildcast.core.errors import ChannelTransportError
from buildcast.store import MemoryOutputStore, OutputStore


def _write_yaml(path: Path, content: str) -> None:
    path.write_text(textwrap.dedent(content).strip() + "\n", encoding="utf-8")


class FakeCompiler:
    """Compiler double: builds only when a test calls `finish`."""

    def __init__(self, options: CompilerOptions | None = None) -> None:
        self.options = options or CompilerOptions(context=Path("/project"))
        self.output_store: OutputStore | None = None
        self.hooks = CompilerHooks()
        self.watch_calls: list[dict[str, Any] | None] = []
        self.closed = False
        self.fail_watch: Exception | None = None

    async def watch(self, watch_options: dict[str, Any] | None = None) -> None:
        self.watch_calls.append(watch_options)
        if self.fail_watch is not None:
            raise self.fail_watch

    async def close(self) -> None:
        self.closed = True

    async def finish(
        self, build_hash: str, *, errors: tuple[str, ...] = (), files: dict[str, bytes] | None = None
    ) -> BuildResult:
        """Write ``files`` under the output path and fire the done hook."""
        written: list[str] = []
        if files and self.output_store is not None:
            for name, data in files.items():
                target = self.output_store.join(self.options.output_path, name)
                self.output_store.write_file(target, data)
                written.append(target)
        result = BuildResult(hash=build_hash, errors=errors, assets=tuple(written))
        await self.hooks.done.call(result)
        return result


class RecordingChannel:
    """Channel double that records every emitted event."""

    def __init__(self, label: str = "recording") -> None:
        self.label = label
        self.events: list[tuple[str, str | None]] = []

    def emit(self, event: str, data: str | None = None) -> None:
        self.events.append((event, data))

    def __repr__(self) -> str:
        return f"RecordingChannel({self.label!r})"


class FailingChannel(RecordingChannel):
    """Channel double whose transport is already broken."""

    def emit(self, event: str, data: str | None = None) -> None:
        raise ChannelTransportError(f"{self.label} transport is gone")


@pytest.fixture
def fake_compiler() -> FakeCompiler:
    return FakeCompiler()


@pytest.fixture
def memory_store() -> MemoryOutputStore:
    return MemoryOutputStore()


@pytest.fixture
def sample_project(tmp_path: Path) -> Path:
    """A small project with one entry module and an HTML template."""

    project = tmp_path / "project"
    (project / "src").mkdir(parents=True)
    (project / "src" / "index.js").write_text('console.log("hello");\n', encoding="utf-8")
    (project / "src" / "index.html").write_text(
        "<html><body><div id=\"root\"></div></body></html>\n", encoding="utf-8"
    )
    return project


@pytest.fixture
def sample_config_dir(tmp_path: Path) -> Path:
    """
    Provide a temporary configuration directory for tests.
    """

    config_dir = tmp_path / "config"
    config_dir.mkdir()
    config_yaml = """
    server:
      host: "127.0.0.1"
      port: 9100
      websocket_path: "/live"
      channel_queue_size: 8
      store: "memory"

    compiler:
      context: "project"
      entry: "./src/index.js"
      output:
        path: "dist"
        filename: "main.js"
        public_path: "/"
      html_template: "./src/index.html"

    client:
      inject: true

    watch:
      debounce_ms: 10
      done_topic: "compiler.build.done"

    logging:
      level: "DEBUG"
      file: "logs/buildcast.log"
    """
    local_yaml = """
    server:
      port: 9200
    """
    _write_yaml(config_dir / "config.yaml", config_yaml)
    _write_yaml(config_dir / "local.yaml", local_yaml)
    return config_dir


@pytest.fixture
def sample_config_service(sample_config_dir: Path) -> ConfigService:
    """Return a ConfigService wired to the temporary configuration."""

    return ConfigService(config_dir=sample_config_dir)


@pytest.fixture
def make_channel() -> Callable[..., RecordingChannel]:
    """Factory for channel doubles; ``failing=True`` yields a broken transport."""

    def _make(label: str = "recording", *, failing: bool = False) -> RecordingChannel:
        return FailingChannel(label) if failing else RecordingChannel(label)

    return _make
