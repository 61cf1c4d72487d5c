"""
Dashboard Controller

Business logic behind the analytics view: input validation, snapshot
generation, category fan-out and the per-session dashboard registry.
"""

import asyncio
import logging
import time
from typing import AsyncIterator, Dict, Optional

from agents.analysis_orchestrator import DashboardState, TabAnalysisOrchestrator
from agents.insight_client import get_ai_analysis
from agents.market_data_generator import get_market_data_source
from config.settings import settings
from models.schemas import Category, MarketSnapshot
from utils.helpers import normalize_website

logger = logging.getLogger(__name__)

EMPTY_WEBSITE_MESSAGE = "Please enter a website URL"


class InputInvalid(Exception):
    """Raised for a submission that must not start any analysis."""


class SnapshotMissing(Exception):
    """Raised when an operation needs a snapshot that has not been generated yet."""


# ============================================================================
# Dashboard Registry
# ============================================================================

_dashboards: Dict[str, DashboardState] = {}
_last_access: Dict[str, float] = {}
_orchestrator: Optional[TabAnalysisOrchestrator] = None


def _prune_idle_dashboards(now: float, keep: str) -> None:
    """Drop dashboards untouched for longer than the session lifetime."""
    idle = [
        user_id for user_id, seen in _last_access.items()
        if user_id != keep and now - seen > settings.SESSION_TTL
    ]
    for user_id in idle:
        _dashboards.pop(user_id, None)
        _last_access.pop(user_id, None)
    if idle:
        logger.info(f"Evicted {len(idle)} idle dashboard(s)")


def get_dashboard_state(user_id: str) -> DashboardState:
    """Get or create the in-memory dashboard for a user."""
    now = time.monotonic()
    _prune_idle_dashboards(now, keep=user_id)
    _last_access[user_id] = now
    if user_id not in _dashboards:
        _dashboards[user_id] = DashboardState()
    return _dashboards[user_id]


def discard_dashboard_state(user_id: str) -> None:
    _last_access.pop(user_id, None)
    if _dashboards.pop(user_id, None) is not None:
        logger.info(f"Discarded dashboard state for {user_id}")


def reset_dashboards() -> None:
    _dashboards.clear()
    _last_access.clear()


def get_orchestrator() -> TabAnalysisOrchestrator:
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = TabAnalysisOrchestrator()
    return _orchestrator


def set_orchestrator(orchestrator: Optional[TabAnalysisOrchestrator]) -> None:
    global _orchestrator
    _orchestrator = orchestrator


# ============================================================================
# Submission
# ============================================================================

def validate_website(state: DashboardState, website: Optional[str]) -> str:
    """
    Normalize a submitted website.

    Raises:
        InputInvalid: If the website is blank (nothing is started)
    """
    website = normalize_website(website)
    if not website:
        state.input_error = EMPTY_WEBSITE_MESSAGE
        raise InputInvalid(EMPTY_WEBSITE_MESSAGE)
    state.input_error = None
    return website


async def _generate_snapshot(state: DashboardState, website: str, generation: int) -> Optional[MarketSnapshot]:
    """
    Generate the snapshot for a run.

    Returns None (with state.error set) on failure, or when a newer run
    started while this one was generating.
    """
    try:
        snapshot = await get_market_data_source().fetch(website)
    except Exception as e:
        logger.error(f"Error generating market data for {website}: {e}", exc_info=True)
        if state.is_current_run(generation):
            state.error = f"Failed to generate market data: {e}"
        return None

    if not state.is_current_run(generation):
        logger.info(f"Snapshot for {website} arrived after a newer submission, discarding")
        return None

    state.snapshot = snapshot
    return snapshot


def _event(step: str, status: str, data: dict = None, message: str = "") -> dict:
    return {"step": step, "status": status, "message": message, "data": data or {}}


async def analysis_events(state: DashboardState, website: str) -> AsyncIterator[dict]:
    """
    Run a full analysis, yielding progress events.

    Events: snapshot (started/completed), one category event per settled
    panel, then complete, or error if no snapshot could be generated.
    """
    generation = state.begin_run(website)
    yield _event("snapshot", "started", {"website": website}, f"Generating market data for {website}...")

    snapshot = await _generate_snapshot(state, website, generation)
    if snapshot is None:
        if state.is_current_run(generation):
            yield _event("error", "failed", {"error": state.error}, state.error or "Market data unavailable")
        else:
            yield _event("complete", "superseded", message="A newer analysis was started")
        return

    yield _event(
        "snapshot",
        "completed",
        {"snapshot": snapshot.model_dump(by_alias=True, mode="json"), "loading": state.loading_flags()},
        "Market data generated"
    )

    queue: asyncio.Queue = asyncio.Queue()
    task = asyncio.create_task(
        get_orchestrator().request_all(state, website, snapshot, generation=generation, on_update=queue.put_nowait)
    )

    getter = None
    try:
        while True:
            getter = asyncio.ensure_future(queue.get())
            done, _ = await asyncio.wait({getter, task}, return_when=asyncio.FIRST_COMPLETED)
            if getter in done:
                panel = getter.result()
                yield _event("category", panel.status.value, panel.to_dict(), f"{panel.category.value} analysis ready")
                continue
            break
    finally:
        if getter is not None and not getter.done():
            getter.cancel()

    await task
    while not queue.empty():
        panel = queue.get_nowait()
        yield _event("category", panel.status.value, panel.to_dict(), f"{panel.category.value} analysis ready")

    if state.is_current_run(generation):
        yield _event(
            "complete",
            "completed",
            {
                "last_updated": state.last_updated.isoformat() if state.last_updated else None,
                "loading": state.loading_flags()
            },
            "Analysis complete"
        )
    else:
        yield _event("complete", "superseded", message="A newer analysis was started")


async def analyze(state: DashboardState, website: str) -> DashboardState:
    """Run a full analysis without streaming; returns the settled state."""
    generation = state.begin_run(website)
    snapshot = await _generate_snapshot(state, website, generation)
    if snapshot is None:
        return state
    return await get_orchestrator().request_all(state, website, snapshot, generation=generation)


# ============================================================================
# Refresh
# ============================================================================

async def refresh_category(state: DashboardState, category: str) -> dict:
    """
    Re-run one category against the current snapshot.

    Raises:
        ValueError: Unknown category
        SnapshotMissing: No snapshot generated yet
    """
    try:
        category = Category(category)
    except ValueError:
        raise ValueError(f"Unknown category '{category}'. Expected one of: {', '.join(c.value for c in Category)}")

    if state.snapshot is None:
        raise SnapshotMissing("No market data yet. Analyze a website first.")

    panel = await get_orchestrator().request_one(state, state.website, state.snapshot, category)
    return panel.to_dict()


async def refresh_all(state: DashboardState) -> dict:
    """Re-run the whole pipeline (new snapshot) for the current website."""
    if not state.website:
        raise SnapshotMissing("No website analyzed yet.")

    await analyze(state, state.website)
    return state.to_dict()


# ============================================================================
# Overview
# ============================================================================

async def overview(state: DashboardState, provider: Optional[str] = None) -> dict:
    """General AI analysis of the current snapshot."""
    if state.snapshot is None:
        raise SnapshotMissing("No market data yet. Analyze a website first.")

    result = await asyncio.to_thread(get_ai_analysis, state.website, state.snapshot, None, provider)
    return {
        "website": state.website,
        "analysis": result.text,
        "degraded": result.degraded
    }
