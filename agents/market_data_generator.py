"""
Market Data Generator

Produces market snapshots for a website. The default source is synthetic:
every numeric field is drawn independently from a uniform range, after an
artificial delay that emulates provider latency. A remote source can be
configured and falls back to the synthetic one on any failure.
"""

import asyncio
import logging
import random
from typing import Optional

import requests
from pydantic import ValidationError

from config.settings import settings
from models.schemas import MarketSnapshot

logger = logging.getLogger(__name__)

# Constants
MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun"]
DAYS_OF_TRAFFIC = 30

# (name, low, high) uniform ranges
COMPETITOR_RANGES = [
    ("Competitor A", 0, 30),
    ("Competitor B", 0, 25),
    ("Competitor C", 0, 20),
    ("Competitor D", 0, 15),
    ("Others", 0, 10),
]
AGE_GROUP_RANGES = [
    ("18-24", 0, 30),
    ("25-34", 0, 35),
    ("35-44", 0, 25),
    ("45+", 0, 20),
]
LOCATION_RANGES = [
    ("United States", 30, 70),
    ("United Kingdom", 10, 30),
    ("Canada", 8, 23),
    ("Australia", 5, 17),
    ("Others", 5, 15),
]
MONTHLY_VISITORS_RANGE = (50000, 150000)
DAILY_VISITORS_RANGE = (2000, 12000)


class MarketDataSource:
    """Base class for snapshot providers."""

    async def fetch(self, website: str) -> MarketSnapshot:
        raise NotImplementedError


class SyntheticMarketDataSource(MarketDataSource):
    """
    Stand-in for a real market data provider.

    Two calls with the same website produce different values unless a seeded
    ``random.Random`` is injected.
    """

    def __init__(self, delay_seconds: Optional[float] = None, rng: Optional[random.Random] = None):
        self.delay_seconds = settings.MARKET_DATA_DELAY_SECONDS if delay_seconds is None else delay_seconds
        self.rng = rng or random.Random()

    async def fetch(self, website: str) -> MarketSnapshot:
        if not website or not website.strip():
            raise ValueError("website is required")

        if self.delay_seconds > 0:
            await asyncio.sleep(self.delay_seconds)

        snapshot = self.generate(website.strip())
        logger.info(f"Generated synthetic snapshot for {snapshot.website}: share={snapshot.market_share:.2f}%")
        return snapshot

    def _uniform(self, low: float, high: float) -> float:
        # random() is in [0, 1), so the result stays in [low, high)
        return low + self.rng.random() * (high - low)

    def _visitors(self, low: int, high: int) -> int:
        return int(self._uniform(low, high))

    def generate(self, website: str) -> MarketSnapshot:
        """Draw a complete snapshot without delay."""
        return MarketSnapshot(
            website=website,
            market_share=self._uniform(0, 100),
            competitors=[
                {"name": name, "share": self._uniform(low, high)}
                for name, low, high in COMPETITOR_RANGES
            ],
            traffic_data={
                "monthly": [
                    {"month": month, "visitors": self._visitors(*MONTHLY_VISITORS_RANGE)}
                    for month in MONTHS
                ],
                "daily": [
                    {"day": day, "visitors": self._visitors(*DAILY_VISITORS_RANGE)}
                    for day in range(1, DAYS_OF_TRAFFIC + 1)
                ],
            },
            demographics={
                "age_groups": [
                    {"age": age, "percentage": self._uniform(low, high)}
                    for age, low, high in AGE_GROUP_RANGES
                ],
                "locations": [
                    {"country": country, "percentage": self._uniform(low, high)}
                    for country, low, high in LOCATION_RANGES
                ],
            },
            performance={
                "load_time": self._uniform(1, 4),
                "bounce_rate": self._uniform(20, 60),
                "conversion_rate": self._uniform(1, 6),
                "seo_score": self._uniform(70, 100),
            },
        )


class RemoteMarketDataSource(MarketDataSource):
    """
    Market data from an HTTP provider.

    Expects ``GET <url>?website=<website>`` to return a snapshot-shaped JSON
    document. Any failure is logged and served from the fallback source.
    """

    def __init__(self, url: str, fallback: Optional[MarketDataSource] = None, timeout: Optional[float] = None):
        self.url = url
        self.fallback = fallback or SyntheticMarketDataSource()
        self.timeout = settings.MARKET_DATA_TIMEOUT if timeout is None else timeout

    def _get(self, website: str) -> MarketSnapshot:
        response = requests.get(self.url, params={"website": website}, timeout=self.timeout)
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            raise ValueError("Market data payload must be a JSON object")
        payload.setdefault("website", website)
        return MarketSnapshot.model_validate(payload)

    async def fetch(self, website: str) -> MarketSnapshot:
        if not website or not website.strip():
            raise ValueError("website is required")

        try:
            return await asyncio.to_thread(self._get, website.strip())
        except (requests.RequestException, ValueError, ValidationError) as e:
            logger.warning(f"Remote market data failed for {website}: {e}. Using fallback data")
            return await self.fallback.fetch(website)


def get_market_data_source(source: Optional[str] = None) -> MarketDataSource:
    """
    Build the configured market data source.

    Args:
        source: "synthetic" or "remote" (default: MARKET_DATA_SOURCE setting)
    """
    source = (source or settings.MARKET_DATA_SOURCE).lower()

    if source == "remote":
        if not settings.MARKET_DATA_API_URL:
            logger.warning("MARKET_DATA_API_URL not configured, using synthetic market data")
            return SyntheticMarketDataSource()
        return RemoteMarketDataSource(settings.MARKET_DATA_API_URL)

    if source != "synthetic":
        logger.warning(f"Unknown market data source '{source}', using synthetic market data")

    return SyntheticMarketDataSource()
