"""
Tab Analysis Orchestrator

Runs the four category analyses for a snapshot. Each category is an
independent state machine (idle → loading → ready | ready_with_fallback)
updated only by its own request. Every request carries a monotonic
generation id; results whose id is no longer current for their panel are
discarded, so a slow reply from an earlier submission cannot overwrite a
newer one.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, List, Optional

from agents.category_analysis_agent import run_category_analysis_workflow
from agents.category_analysis_agent.utils import build_category_fallback
from models.schemas import CATEGORIES, Category, MarketSnapshot

logger = logging.getLogger(__name__)


class PanelStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    READY_WITH_FALLBACK = "ready_with_fallback"


@dataclass
class CategoryPanel:
    """State machine for one analysis category."""
    category: Category
    status: PanelStatus = PanelStatus.IDLE
    points: List[str] = field(default_factory=list)
    source: Optional[str] = None
    extraction_strategy: Optional[str] = None
    generation: int = 0
    updated_at: Optional[datetime] = None
    error: Optional[str] = None

    @property
    def loading(self) -> bool:
        return self.status == PanelStatus.LOADING

    def reset(self, generation: int) -> None:
        self.status = PanelStatus.IDLE
        self.points = []
        self.source = None
        self.extraction_strategy = None
        self.error = None
        self.generation = generation

    def start(self, generation: int) -> None:
        self.status = PanelStatus.LOADING
        self.generation = generation

    def complete(self, result: dict, generation: int) -> bool:
        """
        Apply a finished analysis.

        Returns False (and leaves the panel untouched) when the result
        belongs to a generation this panel has moved past.
        """
        if generation != self.generation:
            logger.info(
                f"Discarding stale {self.category.value} result "
                f"(generation {generation}, current {self.generation})"
            )
            return False

        self.points = list(result.get("points", []))
        self.source = result.get("source")
        self.extraction_strategy = result.get("extraction_strategy")
        errors = result.get("errors") or []
        self.error = "; ".join(errors) if errors else None
        self.status = PanelStatus.READY if self.source == "ai" else PanelStatus.READY_WITH_FALLBACK
        self.updated_at = datetime.now(timezone.utc)
        return True

    def to_dict(self) -> dict:
        return {
            "category": self.category.value,
            "status": self.status.value,
            "loading": self.loading,
            "points": list(self.points),
            "source": self.source,
            "extraction_strategy": self.extraction_strategy,
            "generation": self.generation,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "error": self.error
        }


@dataclass
class DashboardState:
    """In-memory dashboard state for one session."""
    website: str = ""
    snapshot: Optional[MarketSnapshot] = None
    panels: Dict[Category, CategoryPanel] = field(
        default_factory=lambda: {category: CategoryPanel(category) for category in CATEGORIES}
    )
    generation: int = 0
    run_generation: int = 0
    last_updated: Optional[datetime] = None
    error: Optional[str] = None
    input_error: Optional[str] = None

    def next_generation(self) -> int:
        self.generation += 1
        return self.generation

    def begin_run(self, website: str) -> int:
        """Start a new full analysis run; clears everything the previous run produced."""
        generation = self.next_generation()
        self.run_generation = generation
        self.website = website
        self.snapshot = None
        self.last_updated = None
        self.error = None
        self.input_error = None
        for panel in self.panels.values():
            panel.reset(generation)
        return generation

    def is_current_run(self, generation: int) -> bool:
        return self.run_generation == generation

    def loading_flags(self) -> Dict[str, bool]:
        return {category.value: panel.loading for category, panel in self.panels.items()}

    def category_analysis(self) -> Dict[str, List[str]]:
        return {category.value: list(panel.points) for category, panel in self.panels.items()}

    def to_dict(self) -> dict:
        return {
            "website": self.website,
            "snapshot": self.snapshot.model_dump(by_alias=True, mode="json") if self.snapshot else None,
            "panels": {category.value: panel.to_dict() for category, panel in self.panels.items()},
            "loading": self.loading_flags(),
            "analysis": self.category_analysis(),
            "generation": self.generation,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
            "error": self.error,
            "input_error": self.input_error
        }


PanelCallback = Callable[[CategoryPanel], None]


class TabAnalysisOrchestrator:
    """
    Fans out the category analyses for a snapshot.

    The per-category workflow is blocking (HTTP + LangGraph), so each run
    happens in a worker thread while the event loop joins them.
    """

    def __init__(self, runner: Callable[..., dict] = None, provider: Optional[str] = None, classifier=None):
        self.runner = runner or run_category_analysis_workflow
        self.provider = provider
        self.classifier = classifier

    async def _run_category(self, website: str, snapshot: MarketSnapshot, category: Category) -> dict:
        try:
            return await asyncio.to_thread(
                self.runner,
                website,
                snapshot,
                category.value,
                self.provider,
                self.classifier
            )
        except Exception as e:
            logger.error(f"Category workflow failed for {category.value}: {e}", exc_info=True)
            return {
                "category": category.value,
                "points": build_category_fallback(category, website, snapshot),
                "source": "fallback",
                "extraction_strategy": "none",
                "errors": [str(e)]
            }

    async def request_one(
        self,
        state: DashboardState,
        website: str,
        snapshot: MarketSnapshot,
        category,
        generation: Optional[int] = None,
        on_update: Optional[PanelCallback] = None
    ) -> CategoryPanel:
        """
        Analyze a single category and apply the result to its panel.

        Without an explicit generation (a manual refresh) a fresh one is
        taken, superseding any earlier request still in flight for this panel.
        """
        category = Category(category)
        panel = state.panels[category]
        generation = generation if generation is not None else state.next_generation()

        panel.start(generation)
        result = await self._run_category(website, snapshot, category)

        if panel.complete(result, generation) and on_update is not None:
            on_update(panel)

        return panel

    async def request_all(
        self,
        state: DashboardState,
        website: str,
        snapshot: MarketSnapshot,
        generation: Optional[int] = None,
        on_update: Optional[PanelCallback] = None
    ) -> DashboardState:
        """
        Analyze all four categories concurrently.

        Panels update as each category settles. last_updated is set once,
        after all four settle, if this run is still the current one.
        """
        if generation is None:
            generation = state.begin_run(website)
        state.snapshot = snapshot

        logger.info(f"Requesting {len(CATEGORIES)} category analyses for {website} (generation {generation})")

        for category in CATEGORIES:
            state.panels[category].start(generation)

        results = await asyncio.gather(
            *(
                self.request_one(state, website, snapshot, category, generation, on_update)
                for category in CATEGORIES
            ),
            return_exceptions=True
        )

        for category, result in zip(CATEGORIES, results):
            if isinstance(result, BaseException):
                logger.error(f"Unexpected failure settling {category.value}: {result}")

        if state.is_current_run(generation):
            state.last_updated = datetime.now(timezone.utc)
            logger.info(f"✅ All categories settled for {website}")
        else:
            logger.info(f"Run {generation} for {website} superseded, keeping newer state")

        return state
