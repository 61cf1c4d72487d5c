"""
LangGraph workflow definition for category analysis.

build_prompt → query_insights → extract_points → finalize
"""

import logging
from typing import Optional

from langgraph.graph import StateGraph, START, END

from agents.category_analysis_agent.models import CategoryAnalysisState
from agents.category_analysis_agent.nodes import (
    build_prompt,
    query_insights,
    extract_points,
    finalize
)
from models.schemas import Category, MarketSnapshot

logger = logging.getLogger(__name__)


# Singleton graph instance
_graph = None


def create_category_analysis_graph():
    """Create the LangGraph workflow for a single category analysis."""
    workflow = StateGraph(CategoryAnalysisState)
    
    # Add nodes
    workflow.add_node("build_prompt", build_prompt)
    workflow.add_node("query_insights", query_insights)
    workflow.add_node("extract_points", extract_points)
    workflow.add_node("finalize", finalize)
    
    # Define edges
    workflow.add_edge(START, "build_prompt")
    workflow.add_edge("build_prompt", "query_insights")
    workflow.add_edge("query_insights", "extract_points")
    workflow.add_edge("extract_points", "finalize")
    workflow.add_edge("finalize", END)
    
    return workflow.compile()


def get_category_analysis_graph():
    """Get or create the category analysis graph."""
    global _graph
    if _graph is None:
        _graph = create_category_analysis_graph()
    return _graph


def run_category_analysis_workflow(
    website: str,
    snapshot: MarketSnapshot,
    category: str,
    provider: Optional[str] = None,
    classifier=None
) -> dict:
    """
    Run the analysis workflow for one category.
    
    Never raises for provider or parsing failures: those are folded into
    fallback or placeholder points.
    
    Args:
        website: Website identifier
        snapshot: Market snapshot the prompt is built from
        category: One of strengths, improvements, recommendations, risks
        provider: Insight provider override (default: INSIGHT_PROVIDER)
        classifier: Optional ResponseClassifier for bullet filtering
        
    Returns:
        Dictionary with:
        {
            "category": "risks",
            "points": [...],
            "source": "ai" | "fallback" | "placeholder",
            "extraction_strategy": "structured",
            "prompt": "...",
            "errors": [...]
        }
    """
    category = Category(category).value
    graph = get_category_analysis_graph()
    
    initial_state = {
        "website": website,
        "snapshot": snapshot,
        "category": category,
        "provider": provider,
        "classifier": classifier,
        "errors": [],
        "completed": False
    }
    
    logger.info(f"🚀 Starting {category} analysis for {website}")
    final_state = graph.invoke(initial_state)
    
    return {
        "category": category,
        "points": final_state.get("points", []),
        "source": final_state.get("source", "placeholder"),
        "extraction_strategy": final_state.get("extraction_strategy", "none"),
        "prompt": final_state.get("prompt", ""),
        "errors": final_state.get("errors", [])
    }
