"""
Data models and schemas for the Market Insights Dashboard.

This module defines the Pydantic models used for the market snapshot,
API requests/responses and the authenticated session.
"""

from datetime import datetime, timezone
from enum import Enum
from pydantic import BaseModel, Field
from typing import Optional, List


class Category(str, Enum):
    """The four fixed AI-analysis dimensions, in display order."""
    STRENGTHS = "strengths"
    IMPROVEMENTS = "improvements"
    RECOMMENDATIONS = "recommendations"
    RISKS = "risks"


CATEGORIES: List[Category] = list(Category)


# Market Snapshot Models

class Competitor(BaseModel):
    name: str
    share: float


class MonthlyTraffic(BaseModel):
    month: str
    visitors: int


class DailyTraffic(BaseModel):
    day: int
    visitors: int


class TrafficData(BaseModel):
    monthly: List[MonthlyTraffic]
    daily: List[DailyTraffic]


class AgeGroup(BaseModel):
    age: str
    percentage: float


class LocationShare(BaseModel):
    country: str
    percentage: float


class Demographics(BaseModel):
    age_groups: List[AgeGroup] = Field(..., alias="ageGroups")
    locations: List[LocationShare]

    class Config:
        populate_by_name = True


class PerformanceMetrics(BaseModel):
    load_time: float = Field(..., alias="loadTime", description="Page load time in seconds")
    bounce_rate: float = Field(..., alias="bounceRate", description="Bounce rate percentage")
    conversion_rate: float = Field(..., alias="conversionRate", description="Conversion rate percentage")
    seo_score: float = Field(..., alias="seoScore", description="SEO score out of 100")

    class Config:
        populate_by_name = True


class MarketSnapshot(BaseModel):
    """
    One complete market-data generation for a website.

    Snapshots are immutable once produced and are fully replaced (never
    merged) by the next analysis request.
    """
    website: str = Field(
        ...,
        description="Website identifier the snapshot was generated for",
        examples=["https://example.com"]
    )
    market_share: float = Field(
        ...,
        alias="marketShare",
        description="Market share as a percentage (0-100)",
        ge=0.0,
        le=100.0
    )
    competitors: List[Competitor]
    traffic_data: TrafficData = Field(..., alias="trafficData")
    demographics: Demographics
    performance: PerformanceMetrics
    generated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        alias="generatedAt"
    )

    class Config:
        populate_by_name = True
        frozen = True

    @property
    def latest_monthly_visitors(self) -> int:
        """Visitors of the most recent month, 0 when no monthly data exists."""
        if not self.traffic_data.monthly:
            return 0
        return self.traffic_data.monthly[-1].visitors

    @property
    def top_competitor(self) -> Optional[Competitor]:
        if not self.competitors:
            return None
        return max(self.competitors, key=lambda c: c.share)


# API Request/Response Models

class AnalyzeRequest(BaseModel):
    """Request model for the /analytics/analyze endpoint."""
    website: str = Field(
        "",
        description="Website URL to analyze",
        examples=["https://example.com"]
    )

    class Config:
        extra = "forbid"


class LoginRequest(BaseModel):
    """Request model for the /auth/login endpoint."""
    email: str = Field(..., examples=["analyst@example.com"])
    password: str

    class Config:
        extra = "forbid"


class SessionUser(BaseModel):
    """The user attached to an authenticated session."""
    user_id: str
    name: str
    email: str


class Session(BaseModel):
    """An authenticated session as returned by the auth provider."""
    token: str
    user: SessionUser
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class HealthResponse(BaseModel):
    """Response model for the /health endpoint."""
    status: str = Field(
        ...,
        description="Health status of the system",
        examples=["healthy", "degraded"]
    )
    version: str = Field(
        ...,
        description="Application version",
        examples=["1.0.0"]
    )
