# ==============================================================================
# Trend Comparator
# ==============================================================================
"""
Period-over-period percentage changes between two PeriodStats.
"""

from insight.core.aggregator import round_half_up
from insight.core.models import PeriodStats, Trend

# Metrics compared between periods (PeriodStats and Trend field names)
TREND_METRICS = (
    "bounce_rate",
    "avg_session_duration",
    "pages_per_visit",
    "total_visitors",
    "new_visitors",
    "returning_visitors",
)


def percent_change(current: float, previous: float) -> float:
    """
    Percentage change from previous to current, one decimal.

    Growth from zero is reported as a flat +100% rather than infinity.
    """
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return round_half_up((current - previous) / previous * 100)


def compute_trends(current: PeriodStats, previous: PeriodStats | None) -> Trend:
    """
    Compare a window against the equal-length window before it.

    Args:
        current: Stats for the requested window
        previous: Stats for the preceding window, or None if unavailable

    Returns:
        Trend with one percentage per metric; all zero when there is no
        previous data
    """
    if previous is None or not previous.real_data:
        return Trend()

    return Trend(
        **{
            metric: percent_change(getattr(current, metric), getattr(previous, metric))
            for metric in TREND_METRICS
        }
    )
