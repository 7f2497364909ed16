# ==============================================================================
# Session Builder - Pure Domain Logic
# ==============================================================================
"""
Pure session derivation with no external dependencies.

Sessions are built in two stages:
- group_by_visitor(): which visitors exist and their events in time order
- fold_sessions(): where session boundaries fall in one visitor's events

Both stages are pure functions, so each can be tested in isolation and the
result is identical for identical input regardless of input ordering.
"""

from collections.abc import Iterable, Mapping
from datetime import timedelta
from types import MappingProxyType

from insight.core.models import RawEvent, Session

# Inactivity gap after which the next event starts a new session
DEFAULT_SESSION_TIMEOUT = timedelta(minutes=30)


def group_by_visitor(events: Iterable[RawEvent]) -> Mapping[str, tuple[RawEvent, ...]]:
    """
    Group events by visitor, each group sorted by created_at ascending.

    The sort is stable: events with identical timestamps keep input order.

    Args:
        events: Events for one site, in any order

    Returns:
        Read-only mapping of visitor_id to that visitor's ordered events
    """
    groups: dict[str, list[RawEvent]] = {}
    for event in events:
        groups.setdefault(event.visitor_id, []).append(event)

    return MappingProxyType(
        {
            visitor_id: tuple(sorted(visitor_events, key=lambda e: e.created_at))
            for visitor_id, visitor_events in groups.items()
        }
    )


def is_session_expired(session_events: list[RawEvent], event: RawEvent, timeout: timedelta) -> bool:
    """
    Check whether ``event`` falls outside the open session.

    The gap is measured from the end of the open session (its latest event),
    not from the session start.
    """
    if not session_events:
        return True
    return event.created_at - session_events[-1].created_at > timeout


def fold_sessions(
    visitor_id: str,
    ordered_events: Iterable[RawEvent],
    timeout: timedelta = DEFAULT_SESSION_TIMEOUT,
) -> tuple[Session, ...]:
    """
    Split one visitor's time-ordered events into sessions.

    Args:
        visitor_id: Visitor the events belong to
        ordered_events: Events sorted by created_at ascending
        timeout: Inactivity gap that closes a session

    Returns:
        Sessions in chronological order; every input event lands in exactly one
    """
    sessions: list[Session] = []
    current: list[RawEvent] = []

    for event in ordered_events:
        if current and is_session_expired(current, event, timeout):
            sessions.append(Session(visitor_id=visitor_id, events=tuple(current)))
            current = []
        current.append(event)

    if current:
        sessions.append(Session(visitor_id=visitor_id, events=tuple(current)))

    return tuple(sessions)


def build_sessions(
    events: Iterable[RawEvent],
    timeout: timedelta = DEFAULT_SESSION_TIMEOUT,
) -> dict[str, tuple[Session, ...]]:
    """
    Derive sessions for every visitor in an event set.

    Args:
        events: Events for one site, any time range, any order
        timeout: Inactivity gap that closes a session (default: 30 minutes)

    Returns:
        Dict mapping visitor_id to that visitor's sessions. Empty input
        yields an empty dict.
    """
    return {
        visitor_id: fold_sessions(visitor_id, ordered, timeout)
        for visitor_id, ordered in group_by_visitor(events).items()
    }
