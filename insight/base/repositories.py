# ==============================================================================
# Event Log Abstract Base Class
# ==============================================================================
"""
Repository ABC for the raw tracking event log.

This defines the "what" (append events, query windows) not the "how".
Concrete implementations in infrastructure/ handle the specifics.

The log is append-only: events are never updated or deleted through this
interface. Query results are not guaranteed to be sorted.
"""

from abc import ABC, abstractmethod
from collections.abc import Collection
from datetime import datetime

from insight.core.models import RawEvent


class EventLogError(Exception):
    """Raised when the event log cannot be reached or a query fails."""


class EventLog(ABC):
    """Repository for raw tracking events."""

    @abstractmethod
    def connect(self) -> None:
        """Establish connection to the data store."""
        ...

    @abstractmethod
    def save(self, events: list[RawEvent]) -> int:
        """
        Append events.

        Args:
            events: Events to persist

        Returns:
            Count of events saved
        """
        ...

    @abstractmethod
    def query_events(self, site_id: str, start: datetime, end: datetime) -> list[RawEvent]:
        """
        Fetch all events for a site in the half-open window ``[start, end)``.

        Raises:
            EventLogError: If the query fails
        """
        ...

    @abstractmethod
    def visitors_seen_before(
        self, site_id: str, cutoff: datetime, visitor_ids: Collection[str]
    ) -> set[str]:
        """
        Find which of ``visitor_ids`` have any event strictly before ``cutoff``.

        Raises:
            EventLogError: If the query fails
        """
        ...

    @abstractmethod
    def recent_events(self, site_id: str, limit: int = 20) -> list[RawEvent]:
        """
        Fetch the newest events for a site, newest first.

        Raises:
            EventLogError: If the query fails
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """Close connection and release resources."""
        ...
