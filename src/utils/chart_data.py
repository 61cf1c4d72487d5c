"""
Chart.js datasets built from a market snapshot.

The browser only renders; every label, value and color is decided here.
"""

from typing import Dict

from models.schemas import MarketSnapshot

PIE_COLORS = ["#FF6384", "#36A2EB", "#FFCE56", "#4BC0C0", "#9966FF", "#FF9F40"]
PRIMARY_COLOR = "#36A2EB"
DAILY_TRAFFIC_COLOR = "#10B981"

PERFORMANCE_LABELS = ["Load Time (s)", "Bounce Rate (%)", "Conversion Rate (%)", "SEO Score (/100)"]


def _title(text: str) -> dict:
    return {"plugins": {"title": {"display": True, "text": text}}, "responsive": True}


def market_share_chart(snapshot: MarketSnapshot) -> dict:
    """Pie of the website's share against each competitor."""
    labels = [snapshot.website] + [c.name for c in snapshot.competitors]
    values = [round(snapshot.market_share, 2)] + [round(c.share, 2) for c in snapshot.competitors]
    return {
        "type": "pie",
        "data": {
            "labels": labels,
            "datasets": [{
                "data": values,
                "backgroundColor": [PIE_COLORS[i % len(PIE_COLORS)] for i in range(len(values))]
            }]
        },
        "options": _title("Market Share Distribution")
    }


def monthly_traffic_chart(snapshot: MarketSnapshot) -> dict:
    monthly = snapshot.traffic_data.monthly
    return {
        "type": "line",
        "data": {
            "labels": [m.month for m in monthly],
            "datasets": [{
                "label": "Monthly Visitors",
                "data": [m.visitors for m in monthly],
                "borderColor": PRIMARY_COLOR,
                "fill": False,
                "tension": 0.1
            }]
        },
        "options": _title("Monthly Traffic Trend")
    }


def daily_traffic_chart(snapshot: MarketSnapshot) -> dict:
    daily = snapshot.traffic_data.daily
    return {
        "type": "line",
        "data": {
            "labels": [f"Day {d.day}" for d in daily],
            "datasets": [{
                "label": "Daily Visitors",
                "data": [d.visitors for d in daily],
                "borderColor": DAILY_TRAFFIC_COLOR,
                "fill": False,
                "tension": 0.1
            }]
        },
        "options": _title("Daily Traffic (Last 30 Days)")
    }


def age_groups_chart(snapshot: MarketSnapshot) -> dict:
    groups = snapshot.demographics.age_groups
    return {
        "type": "bar",
        "data": {
            "labels": [g.age for g in groups],
            "datasets": [{
                "label": "Age Distribution (%)",
                "data": [round(g.percentage, 2) for g in groups],
                "backgroundColor": PIE_COLORS[:len(groups)]
            }]
        },
        "options": _title("Audience Age Groups")
    }


def locations_chart(snapshot: MarketSnapshot) -> dict:
    locations = snapshot.demographics.locations
    return {
        "type": "bar",
        "data": {
            "labels": [loc.country for loc in locations],
            "datasets": [{
                "label": "Visitors by Country (%)",
                "data": [round(loc.percentage, 2) for loc in locations],
                "backgroundColor": PIE_COLORS[:len(locations)]
            }]
        },
        "options": _title("Geographic Distribution")
    }


def performance_chart(snapshot: MarketSnapshot) -> dict:
    performance = snapshot.performance
    return {
        "type": "bar",
        "data": {
            "labels": PERFORMANCE_LABELS,
            "datasets": [{
                "label": "Performance",
                "data": [
                    round(performance.load_time, 2),
                    round(performance.bounce_rate, 2),
                    round(performance.conversion_rate, 2),
                    round(performance.seo_score, 2)
                ],
                "backgroundColor": PIE_COLORS[:len(PERFORMANCE_LABELS)]
            }]
        },
        "options": _title("Performance Metrics")
    }


def build_chart_datasets(snapshot: MarketSnapshot) -> Dict[str, dict]:
    """All dashboard charts, keyed by chart name."""
    return {
        "market_share": market_share_chart(snapshot),
        "monthly_traffic": monthly_traffic_chart(snapshot),
        "age_groups": age_groups_chart(snapshot),
        "locations": locations_chart(snapshot),
        "performance": performance_chart(snapshot),
        "daily_traffic": daily_traffic_chart(snapshot),
    }
