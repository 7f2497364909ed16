# ==============================================================================
# Aggregator - Pure Domain Logic
# ==============================================================================
"""
Per-window traffic statistics computed from derived sessions.

Ratios follow one rule throughout: a zero denominator yields 0, never NaN.
"""

import logging
from collections.abc import Collection, Iterable
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from insight.core.models import PeriodStats, RawEvent
from insight.core.session_builder import DEFAULT_SESSION_TIMEOUT, build_sessions

logger = logging.getLogger(__name__)


def round_half_up(value: float, ndigits: int = 1) -> float:
    """Round with halves away from zero (2.45 -> 2.5), unlike round()."""
    quantum = Decimal(1).scaleb(-ndigits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def ratio(numerator: float, denominator: float, scale: float = 1.0, ndigits: int = 1) -> float:
    """Rounded ``numerator / denominator * scale``, 0 when the denominator is 0."""
    if denominator == 0:
        return 0.0
    return round_half_up(numerator / denominator * scale, ndigits)


def empty_stats() -> PeriodStats:
    """The distinguished "no data" result: all zero, real_data=False."""
    return PeriodStats(real_data=False)


def classify_visitors(
    visitor_ids: Iterable[str],
    prior_events: Iterable[RawEvent],
    window_start: datetime,
) -> set[str]:
    """
    Find which visitors were seen before the window started.

    Use this when raw history is at hand; the event log also offers an
    indexed equivalent (``EventLog.visitors_seen_before``).

    Args:
        visitor_ids: Visitors present in the window
        prior_events: Events for the same site from before the window
        window_start: Window start; only events strictly before it count

    Returns:
        Subset of visitor_ids that are returning visitors
    """
    wanted = set(visitor_ids)
    return {
        e.visitor_id
        for e in prior_events
        if e.visitor_id in wanted and e.created_at < window_start
    }


def aggregate(
    events: Collection[RawEvent],
    returning_visitor_ids: Collection[str] = frozenset(),
    session_timeout: timedelta = DEFAULT_SESSION_TIMEOUT,
) -> PeriodStats:
    """
    Compute statistics for one window.

    Args:
        events: All events in the window, any order
        returning_visitor_ids: Visitors with any event before the window start
        session_timeout: Inactivity gap that closes a session

    Returns:
        PeriodStats for the window, or empty_stats() when there are no events
    """
    if not events:
        return empty_stats()

    sessions_by_visitor = build_sessions(events, session_timeout)
    sessions = [s for visitor_sessions in sessions_by_visitor.values() for s in visitor_sessions]

    total_visitors = len(sessions_by_visitor)
    total_sessions = len(sessions)
    total_page_views = len(events)
    bounces = sum(1 for s in sessions if s.is_bounce)

    # Single-event sessions have no measurable duration and are left out
    durations = [s.duration_seconds for s in sessions if not s.is_bounce]
    avg_duration = int(round_half_up(sum(durations) / len(durations), 0)) if durations else 0

    returning = sum(1 for visitor_id in sessions_by_visitor if visitor_id in returning_visitor_ids)

    logger.debug(
        "Aggregated %d events into %d sessions for %d visitors",
        total_page_views,
        total_sessions,
        total_visitors,
    )

    return PeriodStats(
        total_visitors=total_visitors,
        new_visitors=total_visitors - returning,
        returning_visitors=returning,
        bounce_rate=ratio(bounces, total_sessions, 100),
        avg_session_duration=avg_duration,
        pages_per_visit=ratio(total_page_views, total_sessions),
        total_page_views=total_page_views,
        total_sessions=total_sessions,
        real_data=True,
    )
