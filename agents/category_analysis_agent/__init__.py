"""
Category Analysis Agent

A modular LangGraph-based agent that turns a market snapshot into bullet
points for one analysis category.
"""

from agents.category_analysis_agent.graph import run_category_analysis_workflow


__all__ = ["run_category_analysis_workflow"]
