# ==============================================================================
# Core Domain Logic
# ==============================================================================
"""
Pure domain logic with no external dependencies.

This module contains:
- Domain models (RawEvent, Session, PeriodStats, Trend, StatsReport)
- Session derivation (grouping, inactivity-gap boundaries)
- Aggregation, trend comparison and the exit/source/funnel analyzers

All code here is framework-agnostic and easily unit-testable.
"""

from insight.core.aggregator import aggregate, classify_visitors, empty_stats
from insight.core.analyzers import (
    conversion_funnel,
    exit_pages,
    normalize_source,
    traffic_sources,
)
from insight.core.events import parse_event, parse_events
from insight.core.insights import summarize, traffic_insights
from insight.core.models import (
    EventType,
    ExitPage,
    FunnelStage,
    PeriodStats,
    RawEvent,
    Session,
    StatsReport,
    TimeRange,
    TrafficSource,
    Trend,
    previous_window,
    resolve_window,
)
from insight.core.session_builder import (
    DEFAULT_SESSION_TIMEOUT,
    build_sessions,
    fold_sessions,
    group_by_visitor,
)
from insight.core.trends import compute_trends, percent_change

__all__ = [
    # Models
    "EventType",
    "ExitPage",
    "FunnelStage",
    "PeriodStats",
    "RawEvent",
    "Session",
    "StatsReport",
    "TimeRange",
    "TrafficSource",
    "Trend",
    "previous_window",
    "resolve_window",
    # Sessions
    "DEFAULT_SESSION_TIMEOUT",
    "build_sessions",
    "fold_sessions",
    "group_by_visitor",
    # Aggregation
    "aggregate",
    "classify_visitors",
    "empty_stats",
    "compute_trends",
    "percent_change",
    # Analyzers
    "conversion_funnel",
    "exit_pages",
    "normalize_source",
    "traffic_sources",
    # Parsing and text
    "parse_event",
    "parse_events",
    "summarize",
    "traffic_insights",
]
