import asyncio

import pytest

from buildcast.core.bus import EventBus
from buildcast.core.contracts import BuildRecord


@pytest.mark.asyncio
async def test_publish_and_subscribe_round_trip() -> None:
    bus = EventBus(queue_size=8)
    await bus.start()

    received = asyncio.Event()
    payloads: list[BuildRecord] = []

    async def handler(topic: str, payload: BuildRecord) -> None:
        payloads.append(payload)
        received.set()

    bus.subscribe("compiler.build.done", handler)

    await bus.publish("compiler.build.done", BuildRecord(hash="abc123"))
    await asyncio.wait_for(received.wait(), timeout=0.2)

    await bus.stop()

    assert payloads and payloads[0].hash == "abc123"


@pytest.mark.asyncio
async def test_sync_handlers_and_unsubscribe() -> None:
    bus = EventBus()
    await bus.start()

    seen: list[str] = []
    done = asyncio.Event()

    def sync_handler(topic: str, payload: BuildRecord) -> None:
        seen.append(payload.hash)
        done.set()

    subscription = bus.subscribe("compiler.build.done", sync_handler)
    await bus.publish("compiler.build.done", BuildRecord(hash="first"))
    await asyncio.wait_for(done.wait(), timeout=0.2)

    bus.unsubscribe(subscription)
    await bus.publish("compiler.build.done", BuildRecord(hash="second"))
    await bus.stop()

    assert seen == ["first"]
    assert bus.stats()["subscriber_count"] == 0


@pytest.mark.asyncio
async def test_failing_handler_does_not_block_others() -> None:
    bus = EventBus()
    await bus.start()

    received = asyncio.Event()

    async def broken(topic: str, payload: BuildRecord) -> None:
        raise RuntimeError("boom")

    async def healthy(topic: str, payload: BuildRecord) -> None:
        received.set()

    bus.subscribe("compiler.build.done", broken)
    bus.subscribe("compiler.build.done", healthy)
    await bus.publish("compiler.build.done", BuildRecord(hash="abc"))
    await asyncio.wait_for(received.wait(), timeout=0.2)
    await bus.stop()

    stats = bus.stats()
    assert stats["published_total"] == 1
    assert stats["processed_total"] == 1
    assert not bus.running
