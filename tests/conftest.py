# ==============================================================================
# Shared Test Fixtures
# ==============================================================================
"""
Pytest fixtures shared across all test modules.

Provides:
- fakeredis-backed ValkeyCache instances
- An in-memory EventLog for service and CLI tests
- A RawEvent factory anchored at a fixed time
"""

from collections.abc import Collection
from datetime import UTC, datetime, timedelta

import fakeredis
import pytest

from insight.base import EventLog, EventLogError
from insight.core.models import EventType, RawEvent
from insight.infrastructure.cache import ValkeyCache

# Fixed reference time for deterministic tests
T0 = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


class FakeEventLog(EventLog):
    """EventLog over a plain list, with switchable failures."""

    def __init__(self, events: list[RawEvent] | None = None):
        self.events: list[RawEvent] = list(events or [])
        self.fail_queries = False
        self.fail_history = False
        # Window queries beyond this many fail (None = never)
        self.fail_after_queries: int | None = None
        self.query_calls: list[tuple[str, datetime, datetime]] = []
        self.connected = False

    def connect(self) -> None:
        self.connected = True

    def save(self, events: list[RawEvent]) -> int:
        self.events.extend(events)
        return len(events)

    def query_events(self, site_id: str, start: datetime, end: datetime) -> list[RawEvent]:
        self.query_calls.append((site_id, start, end))
        failing_call = (
            self.fail_after_queries is not None
            and len(self.query_calls) > self.fail_after_queries
        )
        if self.fail_queries or failing_call:
            raise EventLogError("event log down")
        return [
            e for e in self.events if e.site_id == site_id and start <= e.created_at < end
        ]

    def visitors_seen_before(
        self, site_id: str, cutoff: datetime, visitor_ids: Collection[str]
    ) -> set[str]:
        if self.fail_history:
            raise EventLogError("history lookup timed out")
        wanted = set(visitor_ids)
        return {
            e.visitor_id
            for e in self.events
            if e.site_id == site_id and e.visitor_id in wanted and e.created_at < cutoff
        }

    def recent_events(self, site_id: str, limit: int = 20) -> list[RawEvent]:
        if self.fail_queries:
            raise EventLogError("event log down")
        matching = [e for e in self.events if e.site_id == site_id]
        return sorted(matching, key=lambda e: e.created_at, reverse=True)[:limit]

    def close(self) -> None:
        self.connected = False


@pytest.fixture()
def make_event():
    """Factory for RawEvents; ``minutes`` is an offset from T0."""

    def _make(
        visitor_id: str = "v1",
        minutes: float = 0,
        path: str = "/",
        site_id: str = "example.com",
        **kwargs,
    ) -> RawEvent:
        kwargs.setdefault("event_type", EventType.PAGEVIEW)
        return RawEvent(
            site_id=site_id,
            visitor_id=visitor_id,
            path=path,
            created_at=T0 + timedelta(minutes=minutes),
            **kwargs,
        )

    return _make


@pytest.fixture()
def event_log():
    """An empty in-memory event log."""
    return FakeEventLog()


@pytest.fixture()
def fake_redis():
    """A clean fakeredis instance for each test.

    Uses decode_responses=True to match the real ValkeyCache behavior.
    """
    server = fakeredis.FakeServer()
    client = fakeredis.FakeRedis(server=server, decode_responses=True)
    yield client
    client.flushall()
    client.close()


@pytest.fixture()
def fake_cache(fake_redis):
    """A ValkeyCache with its internal client replaced by fakeredis.

    This avoids needing a real Valkey/Redis server for unit tests while
    exercising the full ValkeyCache API surface.
    """
    cache = ValkeyCache.__new__(ValkeyCache)
    cache._client = fake_redis
    cache._url = "redis://fake:6379"
    return cache
