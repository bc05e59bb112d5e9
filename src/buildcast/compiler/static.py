"""
Minimal reference compiler used by the CLI.

It concatenates the modules of each entry chunk into one script, copies the
HTML template with script tags for every chunk, and rebuilds whenever a file
under the context directory changes. It is not a module bundler: imports are
not resolved.
"""

from __future__ import annotations

import asyncio
import contextlib
import hashlib
import logging
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any

from watchfiles import Change, DefaultFilter, awatch

from .contracts import BuildResult, CompilerHooks
from .options import CompilerOptions

if TYPE_CHECKING:
    from ..store import OutputStore

logger = logging.getLogger(__name__)

HASH_LENGTH = 20
_MODULE_TEMPLATE = "/* {label} */\n(function () {{\n{source}\n}})();\n"


class StaticCompiler:
    """Concatenating compiler with ``watchfiles``-driven watch mode."""

    def __init__(self, options: CompilerOptions) -> None:
        self.options = options
        self.output_store: OutputStore | None = None
        self.hooks = CompilerHooks()
        self._watch_task: asyncio.Task[None] | None = None
        self._stop_event = asyncio.Event()
        self._default_filter = DefaultFilter()
        self._debounce_ms = 50

    @property
    def watching(self) -> bool:
        return self._watch_task is not None and not self._watch_task.done()

    async def run(self) -> BuildResult:
        """Compile once and fire the ``done`` hook."""
        result = self.compile()
        await self.hooks.done.call(result)
        return result

    async def watch(self, watch_options: dict[str, Any] | None = None) -> None:
        if self.watching:
            logger.warning("StaticCompiler is already watching %s", self.options.context)
            return
        context = self.options.context
        if not context.is_dir():
            raise FileNotFoundError(f"Compiler context {context} is not a directory")
        if self.output_store is None:
            raise RuntimeError("StaticCompiler has no output store assigned.")
        watch_options = watch_options or {}
        self._debounce_ms = int(watch_options.get("debounce_ms", self._debounce_ms))
        self._stop_event = asyncio.Event()
        self._watch_task = asyncio.create_task(self._watch_loop(), name="buildcast-watch")
        logger.info("Watching %s for changes", context)

    async def close(self) -> None:
        self._stop_event.set()
        if self._watch_task is not None:
            self._watch_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._watch_task
            self._watch_task = None

    async def _watch_loop(self) -> None:
        await self._rebuild()
        async for changes in awatch(
            self.options.context,
            watch_filter=self._watch_filter,
            stop_event=self._stop_event,
            debounce=self._debounce_ms,
        ):
            logger.debug("Detected %d changed paths", len(changes))
            await self._rebuild()

    async def _rebuild(self) -> None:
        try:
            await self.run()
        except Exception:
            logger.exception("Build failed unexpectedly; waiting for the next change.")

    def _watch_filter(self, change: Change, path: str) -> bool:
        if not self._default_filter(change, path):
            return False
        # Skip our own output when it is written to disk inside the context.
        output = Path(self.options.output_path)
        return not Path(path).resolve().is_relative_to(output)

    def compile(self) -> BuildResult:
        """Build every entry chunk into the output store."""
        store = self.output_store
        if store is None:
            raise RuntimeError("StaticCompiler has no output store assigned.")
        started = time.monotonic()
        errors: list[str] = []
        assets: dict[str, bytes] = {}
        output_path = self.options.output_path
        chunks = self.options.entry_chunks()
        filename = self.options.output.filename
        if len(chunks) > 1 and "[name]" not in filename:
            errors.append(
                f"Output filename '{filename}' must contain [name] when there are multiple entries"
            )
        for chunk, modules in chunks.items():
            assets[filename.replace("[name]", chunk)] = self._bundle(modules, errors)
        if self.options.html_template:
            html = self._render_html(list(assets), errors)
            if html is not None:
                assets["index.html"] = html

        digest = hashlib.sha256()
        written: list[str] = []
        store.mkdirp(output_path)
        for name in sorted(assets):
            digest.update(name.encode("utf-8"))
            digest.update(assets[name])
            target = store.join(output_path, name)
            store.write_file(target, assets[name])
            written.append(target)
        for error in errors:
            digest.update(error.encode("utf-8"))
        result = BuildResult(
            hash=digest.hexdigest()[:HASH_LENGTH],
            errors=tuple(errors),
            assets=tuple(written),
            duration_seconds=time.monotonic() - started,
        )
        logger.info(
            "Compiled %d assets in %.3fs (hash %s, %d errors)",
            len(written),
            result.duration_seconds,
            result.hash,
            len(errors),
        )
        return result

    def _bundle(self, modules: list[str], errors: list[str]) -> bytes:
        parts: list[str] = []
        for module in modules:
            path = self.options.resolve(module)
            try:
                source = path.read_text(encoding="utf-8")
            except OSError as exc:
                errors.append(f"Module not found: {module} ({exc.strerror or exc})")
                continue
            parts.append(_MODULE_TEMPLATE.format(label=module, source=source.rstrip("\n")))
        return "".join(parts).encode("utf-8")

    def _render_html(self, scripts: list[str], errors: list[str]) -> bytes | None:
        template = self.options.resolve(self.options.html_template or "")
        try:
            html = template.read_text(encoding="utf-8")
        except OSError as exc:
            errors.append(f"HTML template not found: {template} ({exc.strerror or exc})")
            return None
        public_path = self.options.output.public_path
        if not public_path.endswith("/"):
            public_path += "/"
        tags = "".join(f'<script src="{public_path}{name}"></script>' for name in scripts)
        marker = html.lower().rfind("</body>")
        if marker == -1:
            html = html + tags
        else:
            html = html[:marker] + tags + html[marker:]
        return html.encode("utf-8")


__all__ = ["HASH_LENGTH", "StaticCompiler"]
