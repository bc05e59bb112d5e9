"""
HTTP + WebSocket surface of the dev server.

Serves compiled assets from the shared output store and streams live-update
events to browser clients over ``/ws``.
"""

from __future__ import annotations

import asyncio
import logging
import socket
from collections.abc import Callable
from typing import Any

import uvicorn
from fastapi import FastAPI, Request, Response, WebSocket, WebSocketDisconnect

from ...core.contracts import BaseModule, HealthStatus, ModuleConfig
from ...store import OutputStore
from .asset_middleware import ALL_METHODS, AssetMiddleware
from .notification_hub import NotificationHub, QueueChannel

logger = logging.getLogger(__name__)

# Internal error: the server gave up on a channel that stopped draining.
DROPPED_CLOSE_CODE = 1011


class DevHttpServer(BaseModule):
    """Expose the output store over HTTP and build notifications over WebSockets."""

    name = "modules.server.dev_http"

    def __init__(
        self,
        store: OutputStore,
        *,
        hub: NotificationHub | None = None,
        config_factory: Callable[..., uvicorn.Config] | None = None,
        server_factory: Callable[[uvicorn.Config], uvicorn.Server] | None = None,
    ) -> None:
        super().__init__()
        self._store = store
        self._hub = hub or NotificationHub()
        self._host = "127.0.0.1"
        self._port = 8080
        self._serve_http = True
        self._static_root = "/"
        self._websocket_path = "/ws"
        self._channel_queue_size = 64
        self._assets = AssetMiddleware(store, self._static_root)
        self._app: FastAPI | None = None
        self._config_factory = config_factory or uvicorn.Config
        self._server_factory = server_factory or uvicorn.Server
        self._server: uvicorn.Server | None = None
        self._server_task: asyncio.Task[None] | None = None
        self._socket: socket.socket | None = None

    async def configure(self, config: ModuleConfig) -> None:
        await super().configure(config)
        options = config.options
        self._host = options.get("host", self._host)
        self._port = int(options.get("port", self._port))
        self._serve_http = bool(options.get("serve_http", self._serve_http))
        self._static_root = options.get("static_root", self._static_root)
        self._websocket_path = options.get("websocket_path", self._websocket_path)
        self._channel_queue_size = int(
            options.get("channel_queue_size", self._channel_queue_size)
        )
        self._assets = AssetMiddleware(self._store, self._static_root)

    @property
    def hub(self) -> NotificationHub:
        return self._hub

    @property
    def assets(self) -> AssetMiddleware:
        return self._assets

    @property
    def app(self) -> FastAPI:
        if self._app is None:
            raise RuntimeError("DevHttpServer has not been started.")
        return self._app

    def use_socket(self, sock: socket.socket) -> None:
        """Serve on an already bound listening socket instead of binding in uvicorn."""
        self._socket = sock

    async def start(self) -> None:
        self._app = self._build_app()
        if not self._serve_http:
            logger.info("DevHttpServer running in embedded mode (no HTTP server).")
            return
        config = self._config_factory(
            app=self._app,
            host=self._host,
            port=self._port,
            loop="asyncio",
            lifespan="off",
            log_level="info",
        )
        self._server = self._server_factory(config)
        sockets = [self._socket] if self._socket is not None else None
        self._server_task = asyncio.create_task(
            self._server.serve(sockets=sockets), name="buildcast-http"
        )
        logger.info(
            "DevHttpServer serving %s on http://%s:%s (live updates at %s)",
            self._static_root,
            self._host,
            self._port,
            self._websocket_path,
        )

    async def stop(self) -> None:
        if self._server_task:
            self._server.should_exit = True  # type: ignore[union-attr]
            await asyncio.wait([self._server_task], timeout=1)
            self._server_task = None
        self._server = None
        self._app = None
        self._socket = None

    async def health(self) -> HealthStatus:
        current = self._hub.current
        return HealthStatus(
            status="healthy",
            details={
                "static_root": self._static_root,
                "channels": self._hub.channel_count,
                "current_hash": current.hash if current else None,
            },
        )

    def _build_app(self) -> FastAPI:
        app = FastAPI(
            title="buildcast dev server",
            version="0.1.0",
            docs_url=None,
            redoc_url=None,
            openapi_url=None,
        )

        @app.websocket(self._websocket_path)
        async def live_updates(websocket: WebSocket) -> None:
            await websocket.accept()
            channel = QueueChannel(maxsize=self._channel_queue_size)
            self._hub.connect(channel)
            try:
                await self._pump(websocket, channel)
            except (WebSocketDisconnect, RuntimeError):
                logger.debug("Live-update client %r went away mid-send.", channel)
            finally:
                channel.close()
                self._hub.disconnect(channel)
            logger.info("Live-update client disconnected.")

        app.add_route(
            "/{path:path}", self._serve_asset, methods=ALL_METHODS, include_in_schema=False
        )
        return app

    async def _serve_asset(self, request: Request) -> Response:
        return await self._assets(request)

    async def _pump(self, websocket: WebSocket, channel: QueueChannel) -> None:
        disconnected = asyncio.create_task(self._wait_for_disconnect(websocket))
        dropped = asyncio.create_task(channel.wait_closed())
        try:
            while True:
                next_frame: asyncio.Task[dict[str, Any]] = asyncio.create_task(
                    channel.queue.get()
                )
                done, _pending = await asyncio.wait(
                    {next_frame, disconnected, dropped}, return_when=asyncio.FIRST_COMPLETED
                )
                if dropped in done:
                    next_frame.cancel()
                    if disconnected not in done:
                        logger.warning(
                            "Closing live-update client %r dropped by the hub.", channel
                        )
                        await websocket.close(code=DROPPED_CLOSE_CODE)
                    return
                if next_frame not in done:
                    next_frame.cancel()
                    return
                await websocket.send_json(next_frame.result())
        finally:
            if disconnected.done() and not disconnected.cancelled():
                disconnected.exception()
            disconnected.cancel()
            dropped.cancel()

    @staticmethod
    async def _wait_for_disconnect(websocket: WebSocket) -> None:
        # Clients send nothing meaningful; inbound frames are read and dropped.
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                return


__all__ = ["DROPPED_CLOSE_CODE", "DevHttpServer"]
