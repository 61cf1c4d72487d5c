"""
CSV Report Generator for Market Insights

Generates a CSV export of the current dashboard: snapshot metrics,
competitors, traffic, demographics and the four insight panels.
"""
import csv
import io
import logging

from agents.analysis_orchestrator import DashboardState
from models.schemas import CATEGORIES

logger = logging.getLogger(__name__)


def generate_csv_report(state: DashboardState) -> str:
    """
    Generate a CSV report from a dashboard state.

    Args:
        state: Dashboard state with a generated snapshot

    Returns:
        CSV content as string
    """
    output = io.StringIO()
    writer = csv.writer(output)

    snapshot = state.snapshot
    performance = snapshot.performance

    # Section 1: Summary
    writer.writerow(["MARKET INSIGHTS REPORT"])
    writer.writerow([])
    writer.writerow(["Website", state.website])
    writer.writerow(["Generated At", snapshot.generated_at.isoformat()])
    writer.writerow(["Last Updated", state.last_updated.isoformat() if state.last_updated else ""])
    writer.writerow(["Market Share", f"{snapshot.market_share:.2f}%"])
    writer.writerow(["Monthly Visitors", snapshot.latest_monthly_visitors])
    writer.writerow([])

    # Section 2: Performance
    writer.writerow(["PERFORMANCE METRICS"])
    writer.writerow(["Metric", "Value"])
    writer.writerow(["Load Time (s)", f"{performance.load_time:.2f}"])
    writer.writerow(["Bounce Rate (%)", f"{performance.bounce_rate:.2f}"])
    writer.writerow(["Conversion Rate (%)", f"{performance.conversion_rate:.2f}"])
    writer.writerow(["SEO Score (/100)", f"{performance.seo_score:.0f}"])
    writer.writerow([])

    # Section 3: Competitors
    writer.writerow(["COMPETITORS"])
    writer.writerow(["Competitor", "Share %"])
    for competitor in snapshot.competitors:
        writer.writerow([competitor.name, f"{competitor.share:.2f}%"])
    writer.writerow([])

    # Section 4: Traffic
    writer.writerow(["MONTHLY TRAFFIC"])
    writer.writerow(["Month", "Visitors"])
    for entry in snapshot.traffic_data.monthly:
        writer.writerow([entry.month, entry.visitors])
    writer.writerow([])

    # Section 5: Demographics
    writer.writerow(["AGE GROUPS"])
    writer.writerow(["Age", "Percentage"])
    for group in snapshot.demographics.age_groups:
        writer.writerow([group.age, f"{group.percentage:.2f}%"])
    writer.writerow([])

    writer.writerow(["LOCATIONS"])
    writer.writerow(["Country", "Percentage"])
    for location in snapshot.demographics.locations:
        writer.writerow([location.country, f"{location.percentage:.2f}%"])
    writer.writerow([])

    # Section 6: Insights
    writer.writerow(["INSIGHTS"])
    writer.writerow(["Category", "Status", "Source", "Point"])
    for category in CATEGORIES:
        panel = state.panels[category]
        for point in panel.points:
            writer.writerow([category.value, panel.status.value, panel.source or "", point])

    csv_content = output.getvalue()
    output.close()

    logger.info(f"Generated CSV report for {state.website} ({len(csv_content)} bytes)")
    return csv_content
