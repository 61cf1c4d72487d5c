"""
Tests for the dashboard controller: the per-user registry and the streamed
analysis run.
"""

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import asyncio
import random
import threading

import pytest

import src.controllers.dashboard_controller as dashboard_controller
from agents.analysis_orchestrator import DashboardState, TabAnalysisOrchestrator
from agents.market_data_generator import SyntheticMarketDataSource


@pytest.fixture
def registry():
    dashboard_controller.reset_dashboards()
    yield dashboard_controller._dashboards
    dashboard_controller.reset_dashboards()
    dashboard_controller.set_orchestrator(None)


def test_idle_dashboards_are_evicted(monkeypatch, registry):
    monkeypatch.setattr(dashboard_controller.settings, "SESSION_TTL", -1)

    dashboard_controller.get_dashboard_state("first@example.com")
    current = dashboard_controller.get_dashboard_state("second@example.com")

    assert "first@example.com" not in registry
    assert registry["second@example.com"] is current


def test_active_dashboards_are_kept(registry):
    first = dashboard_controller.get_dashboard_state("first@example.com")
    dashboard_controller.get_dashboard_state("second@example.com")

    assert dashboard_controller.get_dashboard_state("first@example.com") is first
    assert set(registry) == {"first@example.com", "second@example.com"}


def test_cancelled_stream_leaves_no_pending_queue_reader(monkeypatch, fast_settings, registry):
    release = threading.Event()

    def blocking_runner(website, snapshot, category, provider, classifier):
        release.wait(5)
        return {
            "category": category,
            "points": [f"{category} point one is here"],
            "source": "ai",
            "extraction_strategy": "structured",
            "errors": []
        }

    source = SyntheticMarketDataSource(delay_seconds=0, rng=random.Random(3))
    monkeypatch.setattr(dashboard_controller, "get_market_data_source", lambda: source)
    dashboard_controller.set_orchestrator(TabAnalysisOrchestrator(runner=blocking_runner))

    async def scenario():
        snapshot_ready = asyncio.Event()

        async def consume():
            async for event in dashboard_controller.analysis_events(DashboardState(), "https://example.com"):
                if event["step"] == "snapshot" and event["status"] == "completed":
                    snapshot_ready.set()

        consumer = asyncio.create_task(consume())
        await snapshot_ready.wait()
        await asyncio.sleep(0.05)

        consumer.cancel()
        with pytest.raises(asyncio.CancelledError):
            await consumer
        await asyncio.sleep(0.01)

        pending = [
            t for t in asyncio.all_tasks()
            if t is not asyncio.current_task() and not t.done()
        ]
        names = [t.get_coro().__qualname__ for t in pending]

        release.set()
        await asyncio.gather(*pending, return_exceptions=True)
        return names

    names = asyncio.run(scenario())

    print(f"\n🧵 Pending after cancel: {names}")
    assert "Queue.get" not in names
