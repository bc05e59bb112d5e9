"""
Composition root of the dev server.

`DevServer` owns the single output store shared by the compiler and the HTTP
layer, injects the client agent into the compiler entries, and runs the
watch bridge and the HTTP/WebSocket module under one orchestrator.
"""

from __future__ import annotations

import logging
import socket
from collections.abc import Callable

from .compiler.contracts import Compiler
from .core.bus import Subscription
from .core.config import DEV_HTTP_MODULE, WATCH_BRIDGE_MODULE, ConfigSnapshot
from .core.entry import EntryInjector
from .core.errors import BindError
from .core.orchestrator import Orchestrator
from .modules.compiler.watch_bridge import CompilerWatchBridge
from .modules.server.dev_http import DevHttpServer
from .modules.server.notification_hub import NotificationHub
from .store import OutputStore, create_store

logger = logging.getLogger(__name__)

ListenCallback = Callable[[BindError | None], None]


class DevServer:
    """Watch a compiler, serve its output, and notify browsers of new builds."""

    def __init__(
        self,
        compiler: Compiler,
        *,
        store: OutputStore | None = None,
        settings: ConfigSnapshot | None = None,
        orchestrator: Orchestrator | None = None,
        http: DevHttpServer | None = None,
    ) -> None:
        self.compiler = compiler
        self.settings = settings or ConfigSnapshot()
        self.store = store or create_store(self.settings.server.store)
        compiler.output_store = self.store
        self.orchestrator = orchestrator or Orchestrator()
        self.bridge = CompilerWatchBridge(compiler)
        self.http = http or DevHttpServer(self.store)
        self._completion: Subscription | None = None
        self._address: tuple[str, int] | None = None
        if self.settings.client.inject:
            injector = EntryInjector(
                client_agent_path=self.settings.client.agent_path,
                hot_runtime_path=self.settings.client.hot_runtime_path,
            )
            injector.inject(compiler.options)

    @property
    def hub(self) -> NotificationHub:
        return self.http.hub

    @property
    def static_root(self) -> str:
        return self.settings.server.static_root or self.compiler.options.output_path

    @property
    def address(self) -> tuple[str, int] | None:
        """``(host, port)`` once listening."""
        return self._address

    @property
    def url(self) -> str | None:
        if self._address is None:
            return None
        host, port = self._address
        return f"http://{host}:{port}"

    async def listen(
        self,
        port: int | None = None,
        host: str | None = None,
        callback: ListenCallback | None = None,
    ) -> None:
        """
        Bind the HTTP server and start watching.

        ``callback`` is invoked once: with a `BindError` if the socket cannot
        be bound (nothing else is started), otherwise with ``None`` after the
        server and the watcher are running. Without a callback a bind failure
        is raised. Failures after binding, such as a watcher that cannot
        start, are raised to the caller.
        """
        host = host or self.settings.server.host
        port = self.settings.server.port if port is None else port
        try:
            sock = self._bind(host, port)
        except OSError as exc:
            error = BindError(host, port, exc)
            logger.error("%s", error)
            if callback is None:
                raise error from exc
            callback(error)
            return
        bound_port = sock.getsockname()[1]
        try:
            await self._register_modules(host, bound_port)
            self.http.use_socket(sock)
            await self.orchestrator.start()
        except BaseException:
            sock.close()
            raise
        self._address = (host, bound_port)
        logger.info("Dev server listening on http://%s:%s", host, bound_port)
        if callback is not None:
            callback(None)

    async def close(self) -> None:
        if self.orchestrator.running:
            await self.orchestrator.stop()
        self._address = None

    async def _register_modules(self, host: str, port: int) -> None:
        if self._completion is not None:
            return
        http_config = self.settings.module_config(DEV_HTTP_MODULE)
        http_config.options.update(host=host, port=port, static_root=self.static_root)
        # HTTP first so the hub is subscribed before the first build can finish.
        await self.orchestrator.add_module(self.http, http_config)
        await self.orchestrator.add_module(
            self.bridge, self.settings.module_config(WATCH_BRIDGE_MODULE)
        )
        self._completion = self.bridge.on_build_complete(self.hub.handle_build)

    @staticmethod
    def _bind(host: str, port: int) -> socket.socket:
        family = socket.AF_INET6 if ":" in host else socket.AF_INET
        return socket.create_server((host, port), family=family)


__all__ = ["DevServer", "ListenCallback"]
