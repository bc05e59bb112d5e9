import asyncio
from typing import Any

import pytest

from buildcast.modules.server.dev_http import DROPPED_CLOSE_CODE, DevHttpServer
from buildcast.modules.server.notification_hub import QueueChannel
from buildcast.store import MemoryOutputStore


class _SilentWebSocket:
    """WebSocket double whose client never sends or disconnects."""

    def __init__(self) -> None:
        self.sent: list[dict[str, Any]] = []
        self.close_code: int | None = None
        self._never = asyncio.Event()

    async def receive(self) -> dict[str, Any]:
        await self._never.wait()
        return {"type": "websocket.disconnect"}

    async def send_json(self, data: dict[str, Any]) -> None:
        self.sent.append(data)

    async def close(self, code: int = 1000) -> None:
        self.close_code = code


@pytest.mark.asyncio
async def test_pump_forwards_frames_in_order() -> None:
    module = DevHttpServer(MemoryOutputStore())
    websocket = _SilentWebSocket()
    channel = QueueChannel(maxsize=8)
    pump = asyncio.create_task(module._pump(websocket, channel))

    module.hub.connect(channel)
    module.hub.broadcast("abc")
    while len(websocket.sent) < 2:
        await asyncio.sleep(0.01)

    channel.close()
    await asyncio.wait_for(pump, timeout=1.0)

    assert websocket.sent == [{"type": "hash", "data": "abc"}, {"type": "ok"}]


@pytest.mark.asyncio
async def test_dropped_channel_closes_its_socket() -> None:
    module = DevHttpServer(MemoryOutputStore())
    websocket = _SilentWebSocket()
    channel = QueueChannel(maxsize=2)
    pump = asyncio.create_task(module._pump(websocket, channel))
    await asyncio.sleep(0)

    module.hub.connect(channel)
    module.hub.broadcast("one")
    module.hub.broadcast("two")
    await asyncio.wait_for(pump, timeout=1.0)

    assert channel not in module.hub
    assert websocket.close_code == DROPPED_CLOSE_CODE
    assert websocket.sent == []
