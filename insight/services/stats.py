# ==============================================================================
# Stats Service
# ==============================================================================
"""
Computes the full statistics report for a site and time range.

Wires the event log to the pure core:
1. Resolve the current window and the equal-length window before it
2. Fetch events for both windows and the returning-visitor sets
3. Aggregate, diff and analyze
4. Optionally memoize the result in an injected Cache

The core functions never see the cache or the event log.
"""

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from pydantic import ValidationError

from insight.base import Cache, CacheError, EventLog, EventLogError
from insight.core.aggregator import aggregate, empty_stats
from insight.core.analyzers import conversion_funnel, exit_pages, traffic_sources
from insight.core.models import (
    PeriodStats,
    RawEvent,
    StatsReport,
    TimeRange,
    previous_window,
    resolve_window,
)
from insight.core.trends import compute_trends
from insight.utils.config import Settings, get_settings

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "insight:stats:"


def stats_cache_key(site_id: str, time_range: TimeRange) -> str:
    """Cache key for one (site, range) report."""
    return f"{CACHE_KEY_PREFIX}{site_id}:{time_range.value}"


def _utc_now() -> datetime:
    return datetime.now(UTC)


class StatsService:
    """
    Computes StatsReports from an EventLog.

    Holds no per-request state, so one instance can serve concurrent
    requests as long as its collaborators can.
    """

    def __init__(
        self,
        event_log: EventLog,
        cache: Cache | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        """
        Initialize the service.

        Args:
            event_log: Connected event log
            cache: Optional result cache; None disables memoization
            settings: Application settings. If None, uses get_settings().
            clock: Source of "now" (UTC), injectable for tests
        """
        self._event_log = event_log
        self._cache = cache
        self._settings = settings or get_settings()
        self._clock = clock

    @property
    def session_timeout(self) -> timedelta:
        return timedelta(minutes=self._settings.stats.session_timeout_minutes)

    def compute_stats(
        self,
        site_id: str,
        time_range: TimeRange,
        use_cache: bool = True,
    ) -> StatsReport:
        """
        Compute the report for a site over a symbolic range.

        Args:
            site_id: Site to report on
            time_range: Window ending now
            use_cache: Read from the cache if one is configured

        Returns:
            StatsReport. When the returning-visitor lookup or the
            previous-window query fails the report is still produced (all
            visitors new, or flat trends) with ``degraded`` set.

        Raises:
            EventLogError: If the current window cannot be fetched
        """
        key = stats_cache_key(site_id, time_range)
        if use_cache:
            cached = self._cache_get(key)
            if cached is not None:
                logger.debug("Stats cache hit: %s", key)
                return cached

        report = self._build_report(site_id, time_range)
        self._cache_set(key, report)
        return report

    def invalidate(self, site_id: str) -> int:
        """
        Drop every cached report for a site.

        Returns:
            Count of cache entries removed
        """
        if self._cache is None:
            return 0
        try:
            return self._cache.delete_pattern(f"{CACHE_KEY_PREFIX}{site_id}:*")
        except CacheError as e:
            logger.warning("Failed to invalidate cached stats for %s: %s", site_id, e)
            return 0

    def recent_events(self, site_id: str, limit: int = 20) -> list[RawEvent]:
        """Newest events for a site, for diagnostics."""
        return self._event_log.recent_events(site_id, limit)

    # ------------------------------------------------------------------
    # Report assembly
    # ------------------------------------------------------------------

    def _build_report(self, site_id: str, time_range: TimeRange) -> StatsReport:
        now = self._clock()
        start, end = resolve_window(time_range, now)
        prev_start, prev_end = previous_window(start, end)

        events = self._event_log.query_events(site_id, start, end)
        current, current_degraded = self._period_stats(site_id, events, start)

        try:
            previous_events = self._event_log.query_events(site_id, prev_start, prev_end)
        except EventLogError as e:
            logger.warning(
                "Previous-window query failed for %s; trends reported as flat: %s", site_id, e
            )
            previous, previous_degraded = empty_stats(), True
        else:
            previous, previous_degraded = self._period_stats(
                site_id, previous_events, prev_start
            )

        report = StatsReport(
            site_id=site_id,
            range=time_range,
            current=current,
            previous=previous,
            trends=compute_trends(current, previous),
            exit_pages=exit_pages(events, limit=self._settings.stats.exit_pages_limit),
            traffic_sources=traffic_sources(events),
            conversion_funnel=conversion_funnel(events),
            real_data=current.real_data,
            degraded=current_degraded or previous_degraded,
            last_updated=now,
        )

        logger.info(
            "Stats for %s (%s): %d visitors, %d sessions, %d page views%s",
            site_id,
            time_range.value,
            current.total_visitors,
            current.total_sessions,
            current.total_page_views,
            " [degraded]" if report.degraded else "",
        )
        return report

    def _period_stats(
        self, site_id: str, events: list[RawEvent], window_start: datetime
    ) -> tuple[PeriodStats, bool]:
        """Aggregate one window; returns (stats, degraded)."""
        if not events:
            return aggregate(events), False

        visitor_ids = {e.visitor_id for e in events}
        degraded = False
        try:
            returning = self._event_log.visitors_seen_before(site_id, window_start, visitor_ids)
        except EventLogError as e:
            logger.warning(
                "Returning-visitor lookup failed for %s; counting all visitors as new: %s",
                site_id,
                e,
            )
            returning = set()
            degraded = True

        return aggregate(events, returning, self.session_timeout), degraded

    # ------------------------------------------------------------------
    # Cache helpers
    # ------------------------------------------------------------------

    def _cache_get(self, key: str) -> StatsReport | None:
        if self._cache is None:
            return None
        try:
            cached = self._cache.get(key)
            if cached is None:
                return None
            return StatsReport.model_validate(cached)
        except CacheError as e:
            logger.warning("Stats cache read failed for %s: %s", key, e)
        except ValidationError as e:
            logger.warning("Discarding unreadable cached stats for %s: %s", key, e)
        return None

    def _cache_set(self, key: str, report: StatsReport) -> None:
        ttl = self._settings.stats.cache_ttl_seconds
        if self._cache is None or ttl <= 0:
            return
        try:
            self._cache.set(key, report.model_dump(mode="json", by_alias=True), ttl_seconds=ttl)
        except CacheError as e:
            logger.warning("Stats cache write failed for %s: %s", key, e)
