"""
AI Insight Client

Builds natural-language prompts from a market snapshot, sends them to the
configured generative-text provider and returns the generated text. Every
provider failure collapses into AnalysisUnavailable; get_ai_analysis recovers
it locally with deterministic fallback text built from the snapshot.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

import requests

from config.settings import settings
from models.schemas import MarketSnapshot
from utils.helpers import format_count

logger = logging.getLogger(__name__)


class AnalysisUnavailable(Exception):
    """Raised when the generative-text provider cannot produce an analysis."""


@dataclass(frozen=True)
class InsightResult:
    """Generated text plus whether it is synthesized fallback content."""
    text: str
    degraded: bool = False


# ============================================================================
# Prompt Building
# ============================================================================

def build_overview_prompt(website: str, snapshot: MarketSnapshot) -> str:
    """Build the general market analysis prompt for a website."""
    performance = snapshot.performance
    return f"""Analyze the following market data for {website} and provide insights:

Market Share: {snapshot.market_share:.2f}%
Traffic: {format_count(snapshot.latest_monthly_visitors)} monthly visitors
Performance: Load time {performance.load_time:.2f}s, SEO Score {performance.seo_score:.0f}/100

Please provide:
1. Market position analysis
2. Key strengths and weaknesses
3. Competitive analysis
4. Growth opportunities
5. Strategic recommendations
6. Risk factors

Format the response in a structured way with clear sections."""


def classify_market_position(market_share: float) -> str:
    """Classify a market share percentage into a market tier."""
    if market_share > 50:
        return "market leader"
    if market_share > 25:
        return "strong competitor"
    return "emerging player"


def build_fallback_analysis(website: str, snapshot: MarketSnapshot) -> str:
    """Deterministic analysis text used whenever the provider call fails."""
    performance = snapshot.performance
    return f"""Market Analysis for {website}:

Market Position: {website} holds a {snapshot.market_share:.2f}% market share, positioning it as a {classify_market_position(snapshot.market_share)} in the industry.

Key Strengths:
- Strong monthly traffic of {format_count(snapshot.latest_monthly_visitors)} visitors
- Good SEO performance with a score of {performance.seo_score:.0f}/100
- Competitive load time of {performance.load_time:.2f} seconds

Areas for Improvement:
- Bounce rate of {performance.bounce_rate:.1f}% could be optimized
- Conversion rate of {performance.conversion_rate:.2f}% has room for growth

Strategic Recommendations:
1. Implement A/B testing to improve conversion rates
2. Optimize user experience to reduce bounce rate
3. Focus on content marketing to increase organic traffic
4. Monitor competitor movements and adapt strategies accordingly

Risk Factors:
- Market competition is intense with multiple players
- Technology changes could impact performance metrics
- Economic factors may affect user behavior and spending"""


# ============================================================================
# Providers
# ============================================================================

def _gemini_url() -> str:
    return f"{settings.GEMINI_API_BASE.rstrip('/')}/{settings.GEMINI_MODEL}:generateContent"


def extract_generated_text(payload: Any) -> str:
    """
    Pull the generated text out of a generateContent response.

    Raises:
        AnalysisUnavailable: If the payload does not have the expected shape
    """
    try:
        text = payload["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as e:
        raise AnalysisUnavailable(f"Malformed Gemini response: {e!r}")

    if not isinstance(text, str) or not text.strip():
        raise AnalysisUnavailable("Gemini response contained no text")

    return text


def query_gemini(prompt: str) -> str:
    """Query Gemini through the generateContent REST endpoint."""
    if not settings.GEMINI_API_KEY:
        raise AnalysisUnavailable("Gemini API key not configured")

    try:
        response = requests.post(
            _gemini_url(),
            headers={
                "Content-Type": "application/json",
                "x-goog-api-key": settings.GEMINI_API_KEY,
            },
            json={"contents": [{"parts": [{"text": prompt}]}]},
            timeout=settings.AI_REQUEST_TIMEOUT
        )
    except requests.RequestException as e:
        raise AnalysisUnavailable(f"Gemini request failed: {e}")

    if not response.ok:
        raise AnalysisUnavailable(f"Gemini API error: {response.status_code}")

    try:
        payload = response.json()
    except ValueError as e:
        raise AnalysisUnavailable(f"Gemini returned invalid JSON: {e}")

    return extract_generated_text(payload)


def query_chatgpt(prompt: str) -> str:
    """Query ChatGPT (OpenAI) via LangChain."""
    if not settings.OPENAI_API_KEY:
        raise AnalysisUnavailable("OpenAI API key not configured")

    try:
        from langchain_openai import ChatOpenAI
        from langchain_core.messages import HumanMessage

        llm = ChatOpenAI(
            model=settings.CHATGPT_MODEL,
            openai_api_key=settings.OPENAI_API_KEY,
            temperature=settings.AI_TEMPERATURE,
            max_tokens=settings.AI_MAX_TOKENS,
            timeout=settings.AI_REQUEST_TIMEOUT
        )
        response = llm.invoke([HumanMessage(content=prompt)])
    except Exception as e:
        raise AnalysisUnavailable(f"ChatGPT request failed: {e}")

    if not response.content:
        raise AnalysisUnavailable("ChatGPT response contained no text")
    return response.content


def query_claude(prompt: str) -> str:
    """Query Claude (Anthropic) via LangChain."""
    if not settings.ANTHROPIC_API_KEY:
        raise AnalysisUnavailable("Anthropic API key not configured")

    try:
        from langchain_anthropic import ChatAnthropic
        from langchain_core.messages import HumanMessage

        llm = ChatAnthropic(
            model=settings.CLAUDE_MODEL,
            anthropic_api_key=settings.ANTHROPIC_API_KEY,
            temperature=settings.AI_TEMPERATURE,
            max_tokens=settings.AI_MAX_TOKENS,
            timeout=settings.AI_REQUEST_TIMEOUT
        )
        response = llm.invoke([HumanMessage(content=prompt)])
    except Exception as e:
        raise AnalysisUnavailable(f"Claude request failed: {e}")

    if not response.content:
        raise AnalysisUnavailable("Claude response contained no text")
    return response.content


def query_model(provider: Optional[str], prompt: str) -> str:
    """
    Send a prompt to a generative-text provider.

    Args:
        provider: Provider name (gemini, chatgpt, claude). Defaults to INSIGHT_PROVIDER.
        prompt: Prompt string

    Returns:
        Generated text

    Raises:
        AnalysisUnavailable: On any provider failure
    """
    provider_lower = (provider or settings.INSIGHT_PROVIDER).lower()

    if provider_lower == "gemini":
        return query_gemini(prompt)
    elif provider_lower == "chatgpt":
        return query_chatgpt(prompt)
    elif provider_lower == "claude":
        return query_claude(prompt)
    else:
        raise AnalysisUnavailable(f"Unknown insight provider: {provider}")


def get_ai_analysis(
    website: str,
    snapshot: MarketSnapshot,
    prompt: Optional[str] = None,
    provider: Optional[str] = None
) -> InsightResult:
    """
    Get an AI analysis for a snapshot, falling back to synthesized text.

    No retry and no backoff: a single failed call yields the fallback.
    """
    prompt = prompt or build_overview_prompt(website, snapshot)

    try:
        text = query_model(provider, prompt)
        return InsightResult(text=text)
    except AnalysisUnavailable as e:
        logger.warning(f"AI analysis unavailable for {website}: {e}. Using fallback analysis")
        return InsightResult(text=build_fallback_analysis(website, snapshot), degraded=True)
