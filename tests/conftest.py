"""
Shared fixtures for the test suite.
"""

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest

from config.settings import settings
from models.schemas import MarketSnapshot


def make_snapshot(
    website: str = "https://example.com",
    market_share: float = 12.3456,
    load_time: float = 2.3456,
    bounce_rate: float = 41.239,
    conversion_rate: float = 3.1416,
    seo_score: float = 87.6,
    visitors: int = 123456
) -> MarketSnapshot:
    """A snapshot with fixed, easy to recognize values."""
    return MarketSnapshot(
        website=website,
        market_share=market_share,
        competitors=[
            {"name": "Competitor A", "share": 27.5},
            {"name": "Competitor B", "share": 18.25},
            {"name": "Others", "share": 4.0},
        ],
        traffic_data={
            "monthly": [
                {"month": "Jan", "visitors": 90000},
                {"month": "Feb", "visitors": visitors},
            ],
            "daily": [{"day": day, "visitors": 5000 + day} for day in range(1, 31)],
        },
        demographics={
            "age_groups": [
                {"age": "18-24", "percentage": 22.0},
                {"age": "25-34", "percentage": 31.5},
            ],
            "locations": [
                {"country": "United States", "percentage": 48.0},
                {"country": "Canada", "percentage": 12.0},
            ],
        },
        performance={
            "load_time": load_time,
            "bounce_rate": bounce_rate,
            "conversion_rate": conversion_rate,
            "seo_score": seo_score,
        },
    )


BULLETED_RESPONSE = """Here are the key points:
- Strong brand recognition drives repeat visits
- Mobile experience outperforms most competitors
- Content library ranks well for long-tail searches
- Loyal returning audience supports stable growth"""


@pytest.fixture
def snapshot() -> MarketSnapshot:
    return make_snapshot()


@pytest.fixture
def fast_settings(monkeypatch):
    """No artificial latency, Gemini as provider with a dummy key."""
    monkeypatch.setattr(settings, "MARKET_DATA_DELAY_SECONDS", 0.0)
    monkeypatch.setattr(settings, "MARKET_DATA_SOURCE", "synthetic")
    monkeypatch.setattr(settings, "INSIGHT_PROVIDER", "gemini")
    monkeypatch.setattr(settings, "GEMINI_API_KEY", "test-key")
    return settings


@pytest.fixture
def snapshot_factory():
    return make_snapshot


@pytest.fixture
def bulleted_response() -> str:
    return BULLETED_RESPONSE
