import pytest

from buildcast.core.contracts import BaseModule, HealthStatus, ModuleConfig
from buildcast.core.orchestrator import Orchestrator


class _StubModule(BaseModule):
    def __init__(self, name: str, events: list[str], *, fail: bool = False) -> None:
        super().__init__()
        self.name = name
        self._events = events
        self._fail = fail

    async def start(self) -> None:
        if self._fail:
            raise RuntimeError(f"{self.name} cannot start")
        self._events.append(f"start:{self.name}")

    async def stop(self) -> None:
        self._events.append(f"stop:{self.name}")


@pytest.mark.asyncio
async def test_modules_start_in_order_and_stop_in_reverse() -> None:
    events: list[str] = []
    orchestrator = Orchestrator()
    await orchestrator.add_module(_StubModule("first", events), ModuleConfig())
    await orchestrator.add_module(_StubModule("second", events))

    await orchestrator.start()
    assert orchestrator.running
    assert orchestrator.bus.running
    await orchestrator.stop()

    assert events == ["start:first", "start:second", "stop:second", "stop:first"]
    assert not orchestrator.bus.running


@pytest.mark.asyncio
async def test_failed_start_rolls_back_started_modules() -> None:
    events: list[str] = []
    orchestrator = Orchestrator()
    await orchestrator.add_module(_StubModule("first", events))
    await orchestrator.add_module(_StubModule("broken", events, fail=True))

    with pytest.raises(RuntimeError, match="broken cannot start"):
        await orchestrator.start()

    assert events == ["start:first", "stop:first"]
    assert not orchestrator.running
    assert not orchestrator.bus.running


@pytest.mark.asyncio
async def test_health_reports_every_module() -> None:
    orchestrator = Orchestrator()
    await orchestrator.add_module(_StubModule("configured", []), ModuleConfig())

    reports = await orchestrator.health()

    assert reports == {"configured": HealthStatus(status="healthy", details={"configured": True})}
    assert Orchestrator.overall_status(reports) == "healthy"
    assert (
        Orchestrator.overall_status(
            {"a": HealthStatus(status="healthy"), "b": HealthStatus(status="degraded")}
        )
        == "degraded"
    )
