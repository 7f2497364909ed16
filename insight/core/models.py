# ==============================================================================
# Analytics Domain Models
# ==============================================================================
"""
Pydantic models for tracking events, derived sessions, and computed statistics.

These models are used for:
- Validating events read from the tracker or the event log
- Carrying per-request aggregation results between core components
- Serializing stats reports for the serving layer and the result cache

This module is part of the core domain layer and has no external dependencies
beyond Pydantic.
"""

from datetime import datetime, timedelta
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class EventType(str, Enum):
    """Event types emitted by the browser tracker."""

    PAGEVIEW = "pageview"
    PAGEEXIT = "pageexit"
    ENGAGEMENT = "engagement"


class TimeRange(str, Enum):
    """Supported statistics windows, each ending at the time of the request."""

    LAST_24_HOURS = "24h"
    LAST_7_DAYS = "7d"
    LAST_30_DAYS = "30d"
    LAST_90_DAYS = "90d"

    @property
    def length(self) -> timedelta:
        """Window length."""
        return _RANGE_LENGTHS[self]


_RANGE_LENGTHS = {
    TimeRange.LAST_24_HOURS: timedelta(hours=24),
    TimeRange.LAST_7_DAYS: timedelta(days=7),
    TimeRange.LAST_30_DAYS: timedelta(days=30),
    TimeRange.LAST_90_DAYS: timedelta(days=90),
}


def resolve_window(time_range: TimeRange, now: datetime) -> tuple[datetime, datetime]:
    """
    Map a symbolic range to a concrete half-open window ``[start, end)``.

    Args:
        time_range: Symbolic window length
        now: End of the window

    Returns:
        (start, end) tuple
    """
    return now - time_range.length, now


def previous_window(start: datetime, end: datetime) -> tuple[datetime, datetime]:
    """Equal-length window immediately preceding ``[start, end)``."""
    return start - (end - start), start


class RawEvent(BaseModel):
    """
    Represents a single tracking event as stored in the event log.

    Attributes:
        site_id: Site the event was recorded for
        visitor_id: Pseudo-anonymous id generated by the tracker
        path: Page path
        referrer: Referring URL, "direct", or empty
        event_type: pageview, pageexit or engagement
        time_on_page: Seconds spent on the page, if reported
        utm_source/utm_medium/utm_campaign: Campaign parameters, if any
        created_at: Event time (UTC), the ordering key
    """

    model_config = ConfigDict(frozen=True)

    site_id: str = Field(..., min_length=1, description="Site identifier")
    visitor_id: str = Field(..., min_length=1, description="Visitor identifier")
    path: str = Field(default="/", description="Page path")
    referrer: str = Field(default="direct", description="Referrer URL or 'direct'")
    event_type: EventType = Field(default=EventType.PAGEVIEW, description="Event type")
    time_on_page: int | None = Field(default=None, ge=0, description="Seconds on page")
    utm_source: str | None = None
    utm_medium: str | None = None
    utm_campaign: str | None = None
    screen_width: int | None = None
    screen_height: int | None = None
    language: str | None = None
    timezone: str | None = None
    created_at: datetime = Field(..., description="Event time (UTC)")

    def to_db_record(self) -> dict:
        """Convert event to database record format."""
        return {
            "site_id": self.site_id,
            "visitor_id": self.visitor_id,
            "path": self.path,
            "referrer": self.referrer,
            "event_type": self.event_type.value,
            "time_on_page": self.time_on_page,
            "utm_source": self.utm_source,
            "utm_medium": self.utm_medium,
            "utm_campaign": self.utm_campaign,
            "screen_width": self.screen_width,
            "screen_height": self.screen_height,
            "language": self.language,
            "timezone": self.timezone,
            "created_at": self.created_at,
        }


class Session(BaseModel):
    """
    A contiguous run of one visitor's events.

    No two consecutive events in a session are further apart than the
    inactivity timeout. Sessions are derived on every request and never stored.
    """

    model_config = ConfigDict(frozen=True)

    visitor_id: str
    events: tuple[RawEvent, ...]

    @property
    def start_time(self) -> datetime:
        return self.events[0].created_at

    @property
    def end_time(self) -> datetime:
        return self.events[-1].created_at

    @property
    def duration_seconds(self) -> float:
        """Seconds between first and last event."""
        return (self.end_time - self.start_time).total_seconds()

    @property
    def event_count(self) -> int:
        return len(self.events)

    @property
    def page_view_count(self) -> int:
        """Number of pageview events in session."""
        return sum(1 for e in self.events if e.event_type == EventType.PAGEVIEW)

    @property
    def is_bounce(self) -> bool:
        """A bounce is a session with exactly one event."""
        return len(self.events) == 1


class _ReportModel(BaseModel):
    """Base for serialized results: camelCase aliases, immutable."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class PeriodStats(_ReportModel):
    """Aggregate traffic statistics for one window."""

    total_visitors: int = 0
    new_visitors: int = 0
    returning_visitors: int = 0
    bounce_rate: float = 0.0
    avg_session_duration: int = 0
    pages_per_visit: float = 0.0
    total_page_views: int = 0
    total_sessions: int = 0
    real_data: bool = False


class Trend(_ReportModel):
    """Period-over-period percentage change per metric."""

    bounce_rate: float = 0.0
    avg_session_duration: float = 0.0
    pages_per_visit: float = 0.0
    total_visitors: float = 0.0
    new_visitors: float = 0.0
    returning_visitors: float = 0.0


class ExitPage(_ReportModel):
    url: str
    exit_rate: float
    visits: int
    avg_time_on_page: int


class TrafficSource(_ReportModel):
    source: str
    visitors: int
    bounce_rate: float
    percentage: float


class FunnelStage(_ReportModel):
    stage: str
    visitors: int
    drop_off_count: int
    drop_off_rate: float


class StatsReport(_ReportModel):
    """
    Everything the serving layer needs for one (site, range) request.

    ``degraded`` is set when the historical visitor lookup failed and all
    visitors were counted as new.
    """

    site_id: str
    range: TimeRange
    current: PeriodStats
    previous: PeriodStats
    trends: Trend
    exit_pages: list[ExitPage] = Field(default_factory=list)
    traffic_sources: list[TrafficSource] = Field(default_factory=list)
    conversion_funnel: list[FunnelStage] = Field(default_factory=list)
    real_data: bool = False
    degraded: bool = False
    last_updated: datetime
