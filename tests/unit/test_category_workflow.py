"""
Tests for the category analysis LangGraph workflow.
"""

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import agents.category_analysis_agent.nodes as nodes
from agents.category_analysis_agent import run_category_analysis_workflow
from agents.category_analysis_agent.utils import build_category_fallback, build_category_prompt
from agents.insight_client import AnalysisUnavailable


def test_category_prompt_embeds_snapshot_values(snapshot):
    prompt = build_category_prompt("improvements", "https://example.com", snapshot)

    print(f"\n📝 Prompt:\n{prompt}")
    assert "areas for improvement of https://example.com" in prompt
    assert "Market Share: 12.35%" in prompt
    assert "Monthly Visitors: 123,456" in prompt
    assert "Load Time: 2.35s" in prompt
    assert "Bounce Rate: 41.24%" in prompt
    assert "Conversion Rate: 3.14%" in prompt
    assert "SEO Score: 88/100" in prompt
    assert "Top Competitor: Competitor A (27.50% share)" in prompt


def test_prompts_differ_per_category(snapshot):
    prompts = {
        category: build_category_prompt(category, "https://example.com", snapshot)
        for category in ("strengths", "improvements", "recommendations", "risks")
    }

    assert len(set(prompts.values())) == 4


def test_workflow_parses_ai_response(monkeypatch, snapshot, bulleted_response):
    prompts = []

    def fake_query_model(provider, prompt):
        prompts.append(prompt)
        return bulleted_response

    monkeypatch.setattr(nodes, "query_model", fake_query_model)

    result = run_category_analysis_workflow("https://example.com", snapshot, "strengths")

    assert len(prompts) == 1
    assert result["category"] == "strengths"
    assert result["source"] == "ai"
    assert result["extraction_strategy"] == "structured"
    assert result["points"][0] == "Strong brand recognition drives repeat visits"
    assert result["errors"] == []
    assert result["prompt"] == prompts[0]


def test_workflow_uses_category_fallback_when_ai_unavailable(monkeypatch, snapshot):
    def failing_query_model(provider, prompt):
        raise AnalysisUnavailable("Gemini API error: 500")

    monkeypatch.setattr(nodes, "query_model", failing_query_model)

    result = run_category_analysis_workflow("https://example.com", snapshot, "risks")

    assert result["source"] == "fallback"
    assert result["extraction_strategy"] == "none"
    assert result["points"] == build_category_fallback("risks", "https://example.com", snapshot)
    assert any("500" in error for error in result["errors"])


def test_workflow_uses_placeholder_when_nothing_extracted(monkeypatch, snapshot):
    monkeypatch.setattr(nodes, "query_model", lambda provider, prompt: "ok")

    result = run_category_analysis_workflow("https://example.com", snapshot, "risks")

    assert result["source"] == "placeholder"
    assert result["extraction_strategy"] == "empty"
    assert result["points"] == ["No risks insights could be extracted from the analysis."]


def test_category_fallbacks_reference_snapshot(snapshot):
    website = "https://example.com"

    strengths = build_category_fallback("strengths", website, snapshot)
    improvements = build_category_fallback("improvements", website, snapshot)
    recommendations = build_category_fallback("recommendations", website, snapshot)
    risks = build_category_fallback("risks", website, snapshot)

    assert strengths[0] == "https://example.com is positioned as emerging player with a 12.35% market share"
    assert any("41.2% bounce rate" in point for point in improvements)
    assert recommendations[0] == "Implement A/B testing to improve conversion rates"
    assert risks[-1].startswith("Competitor A holds 27.50%")
