"""
Tests for the AI insight client: Gemini request shape, failure handling
and the deterministic fallback analysis.
"""

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import pytest
import requests

import agents.insight_client as insight_client
from agents.insight_client import (
    AnalysisUnavailable,
    build_fallback_analysis,
    build_overview_prompt,
    classify_market_position,
    extract_generated_text,
    get_ai_analysis,
    query_gemini,
    query_model
)


class FakeResponse:
    def __init__(self, status_code=200, payload=None, invalid_json=False):
        self.status_code = status_code
        self.ok = 200 <= status_code < 300
        self._payload = payload
        self._invalid_json = invalid_json

    def json(self):
        if self._invalid_json:
            raise ValueError("Expecting value")
        return self._payload


def gemini_payload(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


@pytest.fixture
def captured_posts(monkeypatch, fast_settings):
    """Record every requests.post call made by the client."""
    calls = []

    def install(response):
        def fake_post(url, **kwargs):
            calls.append({"url": url, **kwargs})
            if isinstance(response, Exception):
                raise response
            return response
        monkeypatch.setattr(insight_client.requests, "post", fake_post)
        return calls

    return install


def test_gemini_key_travels_in_header(captured_posts):
    calls = captured_posts(FakeResponse(payload=gemini_payload("- Point one about growth")))

    text = query_gemini("Analyze this")

    assert text == "- Point one about growth"
    assert len(calls) == 1
    call = calls[0]
    print(f"\n🔗 URL: {call['url']}")
    assert "key=" not in call["url"]
    assert "test-key" not in call["url"]
    assert "params" not in call
    assert call["headers"]["x-goog-api-key"] == "test-key"
    assert call["headers"]["Content-Type"] == "application/json"
    assert call["json"] == {"contents": [{"parts": [{"text": "Analyze this"}]}]}
    assert call["timeout"] > 0
    assert call["url"].endswith(":generateContent")


def test_non_2xx_raises(captured_posts):
    captured_posts(FakeResponse(status_code=500))

    with pytest.raises(AnalysisUnavailable):
        query_gemini("Analyze this")


def test_network_error_raises(captured_posts):
    captured_posts(requests.ConnectionError("connection refused"))

    with pytest.raises(AnalysisUnavailable):
        query_gemini("Analyze this")


def test_invalid_json_raises(captured_posts):
    captured_posts(FakeResponse(invalid_json=True))

    with pytest.raises(AnalysisUnavailable):
        query_gemini("Analyze this")


@pytest.mark.parametrize("payload", [
    {},
    {"candidates": []},
    {"candidates": [{"content": {"parts": []}}]},
    gemini_payload(""),
    gemini_payload(None),
    ["not", "a", "dict"],
])
def test_malformed_payload_raises(payload):
    with pytest.raises(AnalysisUnavailable):
        extract_generated_text(payload)


def test_missing_key_raises_without_calling(captured_posts, monkeypatch):
    calls = captured_posts(FakeResponse(payload=gemini_payload("unused")))
    monkeypatch.setattr(insight_client.settings, "GEMINI_API_KEY", "")

    with pytest.raises(AnalysisUnavailable):
        query_gemini("Analyze this")
    assert calls == []


def test_unknown_provider_raises():
    with pytest.raises(AnalysisUnavailable):
        query_model("nonexistent", "Analyze this")


def test_market_position_boundaries():
    assert classify_market_position(0) == "emerging player"
    assert classify_market_position(25) == "emerging player"
    assert classify_market_position(25.01) == "strong competitor"
    assert classify_market_position(50) == "strong competitor"
    assert classify_market_position(50.01) == "market leader"
    assert classify_market_position(60) == "market leader"


def test_fallback_text_tiers(snapshot_factory):
    low = build_fallback_analysis("https://example.com", snapshot_factory(market_share=0))
    high = build_fallback_analysis("https://example.com", snapshot_factory(market_share=60))

    assert "emerging player" in low
    assert "0.00% market share" in low
    assert "market leader" in high
    assert "60.00% market share" in high


def test_fallback_text_interpolates_snapshot(snapshot):
    text = build_fallback_analysis("https://example.com", snapshot)

    assert "123,456 visitors" in text
    assert "score of 88/100" in text
    assert "2.35 seconds" in text
    assert "41.2%" in text
    assert "3.14%" in text
    for section in ("Market Position:", "Key Strengths:", "Areas for Improvement:",
                    "Strategic Recommendations:", "Risk Factors:"):
        assert section in text


def test_overview_prompt_formats_values(snapshot):
    prompt = build_overview_prompt("https://example.com", snapshot)

    assert "https://example.com" in prompt
    assert "Market Share: 12.35%" in prompt
    assert "123,456 monthly visitors" in prompt
    assert "Load time 2.35s" in prompt
    assert "SEO Score 88/100" in prompt
    assert "6. Risk factors" in prompt


def test_get_ai_analysis_success(captured_posts, snapshot):
    captured_posts(FakeResponse(payload=gemini_payload("A real analysis")))

    result = get_ai_analysis("https://example.com", snapshot)

    assert result.text == "A real analysis"
    assert result.degraded is False


def test_get_ai_analysis_falls_back_on_failure(captured_posts, snapshot_factory):
    calls = captured_posts(FakeResponse(status_code=500))
    snapshot = snapshot_factory(market_share=0)

    result = get_ai_analysis("https://example.com", snapshot)

    assert len(calls) == 1, "No retries expected"
    assert result.degraded is True
    assert result.text == build_fallback_analysis("https://example.com", snapshot)
    assert "emerging player" in result.text
