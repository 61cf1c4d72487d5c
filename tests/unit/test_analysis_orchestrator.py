"""
Tests for the tab analysis orchestrator: per-category state machines,
concurrent fan-out and stale result handling.
"""

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import asyncio
import threading
import time

import agents.insight_client as insight_client
from agents.analysis_orchestrator import (
    CategoryPanel,
    DashboardState,
    PanelStatus,
    TabAnalysisOrchestrator
)
from agents.category_analysis_agent.utils import build_category_fallback
from models.schemas import CATEGORIES, Category


def fake_result(category, points, source="ai"):
    return {
        "category": category,
        "points": points,
        "source": source,
        "extraction_strategy": "structured" if source == "ai" else "none",
        "errors": []
    }


def test_panel_state_machine():
    panel = CategoryPanel(Category.RISKS)
    assert panel.status == PanelStatus.IDLE
    assert not panel.loading

    panel.start(1)
    assert panel.loading

    assert panel.complete(fake_result("risks", ["Rising acquisition costs"]), 1)
    assert panel.status == PanelStatus.READY
    assert panel.points == ["Rising acquisition costs"]
    assert panel.updated_at is not None

    panel.start(2)
    assert panel.complete(fake_result("risks", ["Fallback risk"], source="fallback"), 2)
    assert panel.status == PanelStatus.READY_WITH_FALLBACK

    panel.reset(3)
    assert panel.status == PanelStatus.IDLE
    assert panel.points == []


def test_panel_discards_stale_generation():
    panel = CategoryPanel(Category.STRENGTHS)
    panel.start(5)

    applied = panel.complete(fake_result("strengths", ["Old result from run 4"]), 4)

    assert applied is False
    assert panel.loading
    assert panel.points == []


def test_request_all_settles_every_panel(snapshot):
    calls = []
    lock = threading.Lock()

    def runner(website, snapshot, category, provider, classifier):
        with lock:
            calls.append(category)
        return fake_result(category, [f"{category} point one is here"])

    settled = []
    state = DashboardState()
    orchestrator = TabAnalysisOrchestrator(runner=runner)

    asyncio.run(orchestrator.request_all(state, "https://example.com", snapshot, on_update=settled.append))

    print(f"\n📊 Loading flags: {state.loading_flags()}")
    assert sorted(calls) == sorted(c.value for c in CATEGORIES)
    assert state.loading_flags() == {c.value: False for c in CATEGORIES}
    assert all(panel.status == PanelStatus.READY for panel in state.panels.values())
    assert len(settled) == 4
    assert state.last_updated is not None
    assert state.snapshot is snapshot
    assert state.error is None
    assert state.category_analysis()["risks"] == ["risks point one is here"]


def test_request_all_runs_categories_concurrently(snapshot):
    def slow_runner(website, snapshot, category, provider, classifier):
        time.sleep(0.3)
        return fake_result(category, [f"{category} point one is here"])

    state = DashboardState()
    orchestrator = TabAnalysisOrchestrator(runner=slow_runner)

    started = time.monotonic()
    asyncio.run(orchestrator.request_all(state, "https://example.com", snapshot))
    elapsed = time.monotonic() - started

    assert elapsed < 1.0, f"Categories ran sequentially ({elapsed:.2f}s)"


def test_runner_failure_becomes_fallback_content(snapshot):
    def runner(website, snapshot, category, provider, classifier):
        if category == "improvements":
            raise RuntimeError("graph exploded")
        return fake_result(category, [f"{category} point one is here"])

    state = DashboardState()
    asyncio.run(TabAnalysisOrchestrator(runner=runner).request_all(state, "https://example.com", snapshot))

    panel = state.panels[Category.IMPROVEMENTS]
    assert panel.status == PanelStatus.READY_WITH_FALLBACK
    assert panel.source == "fallback"
    assert panel.points == build_category_fallback("improvements", "https://example.com", snapshot)
    assert "graph exploded" in panel.error
    assert state.panels[Category.RISKS].status == PanelStatus.READY
    assert state.last_updated is not None


def test_late_reply_cannot_overwrite_newer_refresh(snapshot):
    """A slow first refresh finishing after a second one is discarded."""
    calls = []
    lock = threading.Lock()

    def runner(website, snapshot, category, provider, classifier):
        with lock:
            calls.append(category)
            first = len(calls) == 1
        if first:
            time.sleep(0.3)
            return fake_result(category, ["Slow and outdated risk point"])
        return fake_result(category, ["Fresh risk point from refresh"])

    state = DashboardState()
    orchestrator = TabAnalysisOrchestrator(runner=runner)

    async def scenario():
        first = asyncio.create_task(orchestrator.request_one(state, "https://example.com", snapshot, "risks"))
        await asyncio.sleep(0.05)
        await orchestrator.request_one(state, "https://example.com", snapshot, "risks")
        await first

    asyncio.run(scenario())

    panel = state.panels[Category.RISKS]
    assert panel.points == ["Fresh risk point from refresh"]
    assert panel.status == PanelStatus.READY


def test_superseded_run_does_not_set_last_updated(snapshot):
    def runner(website, snapshot, category, provider, classifier):
        time.sleep(0.2)
        return fake_result(category, [f"{category} point from old run"])

    state = DashboardState()
    orchestrator = TabAnalysisOrchestrator(runner=runner)

    async def scenario():
        task = asyncio.create_task(orchestrator.request_all(state, "https://old.example.com", snapshot))
        await asyncio.sleep(0.05)
        state.begin_run("https://new.example.com")
        await task

    asyncio.run(scenario())

    assert state.website == "https://new.example.com"
    assert state.last_updated is None
    assert state.category_analysis() == {c.value: [] for c in CATEGORIES}


def test_risks_500_only_affects_risks_panel(monkeypatch, fast_settings, snapshot, bulleted_response):
    """Gemini fails for the risks prompt only; the other panels parse normally."""
    prompts = []
    lock = threading.Lock()

    class Response:
        def __init__(self, status_code, text=None):
            self.status_code = status_code
            self.ok = status_code == 200
            self.text = text

        def json(self):
            return {"candidates": [{"content": {"parts": [{"text": self.text}]}}]}

    def fake_post(url, headers=None, json=None, timeout=None):
        prompt = json["contents"][0]["parts"][0]["text"]
        with lock:
            prompts.append(prompt)
        if "risk factors" in prompt:
            return Response(500)
        return Response(200, bulleted_response)

    monkeypatch.setattr(insight_client.requests, "post", fake_post)

    state = DashboardState()
    asyncio.run(TabAnalysisOrchestrator().request_all(state, "https://example.com", snapshot))

    assert len(prompts) == 4
    risks = state.panels[Category.RISKS]
    assert risks.source == "fallback"
    assert risks.status == PanelStatus.READY_WITH_FALLBACK
    assert risks.points == build_category_fallback("risks", "https://example.com", snapshot)

    for category in (Category.STRENGTHS, Category.IMPROVEMENTS, Category.RECOMMENDATIONS):
        panel = state.panels[category]
        assert panel.source == "ai", f"{category.value} should have parsed AI output"
        assert panel.points[0] == "Strong brand recognition drives repeat visits"

    assert state.error is None
    assert state.loading_flags() == {c.value: False for c in CATEGORIES}


def test_state_to_dict_shape(snapshot):
    state = DashboardState()
    state.begin_run("https://example.com")
    state.snapshot = snapshot

    data = state.to_dict()

    assert data["website"] == "https://example.com"
    assert data["snapshot"]["marketShare"] == snapshot.market_share
    assert set(data["panels"]) == {c.value for c in CATEGORIES}
    assert data["panels"]["risks"]["status"] == "idle"
    assert data["loading"] == {c.value: False for c in CATEGORIES}
    assert data["last_updated"] is None
