# ==============================================================================
# Traffic Insights
# ==============================================================================
"""
Plain-text summaries of computed statistics, for dashboards and reports.
"""

from insight.core.aggregator import ratio
from insight.core.models import PeriodStats

NO_DATA_MESSAGE = "No tracking data yet. Add the tracker to your website."

# Bounce rate (%) above which the summary flags room for improvement
HIGH_BOUNCE_RATE = 50.0


def summarize(site_id: str, stats: PeriodStats) -> str:
    """One-paragraph summary of a window's traffic."""
    if not stats.real_data:
        return f"Summary for {site_id}: {NO_DATA_MESSAGE}"

    return (
        f"Summary for {site_id}: Your site received {stats.total_visitors} visitors "
        f"with an average session duration of {stats.avg_session_duration} seconds. "
        f"The bounce rate is {stats.bounce_rate}% and visitors view an average of "
        f"{stats.pages_per_visit} pages per session."
    )


def traffic_insights(site_id: str, stats: PeriodStats) -> list[str]:
    """Short observations derived from a window's traffic."""
    if not stats.real_data:
        return [NO_DATA_MESSAGE]

    new_share = round(ratio(stats.new_visitors, stats.total_visitors, 100))
    lines = [
        f"Your site {site_id} had {stats.total_visitors} visitors "
        f"across {stats.total_sessions} sessions",
        f"New visitors make up {new_share}% of your traffic",
    ]
    if stats.bounce_rate > HIGH_BOUNCE_RATE:
        lines.append(f"A bounce rate of {stats.bounce_rate}% indicates room for improvement")
    else:
        lines.append(f"A bounce rate of {stats.bounce_rate}% shows visitors are exploring your site")
    return lines
