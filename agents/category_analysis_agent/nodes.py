"""
Node functions for the category analysis LangGraph workflow.
"""

import logging

from agents.category_analysis_agent.models import CategoryAnalysisState
from agents.category_analysis_agent.utils import (
    build_category_prompt,
    build_category_fallback,
    build_placeholder,
    extract_required_points,
    get_response_classifier,
    ParseDegraded
)
from agents.insight_client import AnalysisUnavailable, query_model
from utils.helpers import truncate_text

logger = logging.getLogger(__name__)


def build_prompt(state: CategoryAnalysisState) -> CategoryAnalysisState:
    """Node: Build the category-specific prompt from the snapshot."""
    state["prompt"] = build_category_prompt(state["category"], state["website"], state["snapshot"])
    state.setdefault("errors", [])
    return state


def query_insights(state: CategoryAnalysisState) -> CategoryAnalysisState:
    """Node: Send the prompt to the insight provider."""
    category = state["category"]
    errors = state.get("errors", [])

    try:
        state["response_text"] = query_model(state.get("provider"), state["prompt"])
        state["ai_available"] = True
        logger.info(f"  ✓ {category}: {len(state['response_text'])} chars received")
        logger.debug(f"  {category} response: {truncate_text(str(state['response_text']), 120)!r}")
    except AnalysisUnavailable as e:
        error_msg = f"Insights unavailable for {category}: {e}"
        errors.append(error_msg)
        logger.warning(error_msg)
        state["response_text"] = ""
        state["ai_available"] = False

    state["errors"] = errors
    return state


def extract_points(state: CategoryAnalysisState) -> CategoryAnalysisState:
    """Node: Turn the response into bullet points, or use fallback bullets."""
    category = state["category"]

    if not state.get("ai_available"):
        state["points"] = build_category_fallback(category, state["website"], state["snapshot"])
        state["extraction_strategy"] = "none"
        state["source"] = "fallback"
        return state

    try:
        result = extract_required_points(
            state["response_text"],
            category,
            state.get("classifier") or get_response_classifier()
        )
        state["points"] = result.points
        state["source"] = "ai"
    except ParseDegraded as e:
        result = e.result
        state["errors"] = state.get("errors", []) + [f"Could not extract {category} points ({result.strategy})"]
        state["points"] = result.points if result.strategy == "unparsed" else build_placeholder(category)
        state["source"] = "placeholder"

    state["extraction_strategy"] = result.strategy
    return state


def finalize(state: CategoryAnalysisState) -> CategoryAnalysisState:
    """Node: Mark the run as completed."""
    logger.info(f"✅ {state['category']} analysis complete ({state.get('source')}, {len(state.get('points', []))} points)")
    state["completed"] = True
    return state
