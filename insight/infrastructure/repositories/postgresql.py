# ==============================================================================
# PostgreSQL Event Log
# ==============================================================================
"""
PostgreSQL implementation of the EventLog interface.

Provides:
- PostgreSQLEventLog: bulk append, window queries, first-seen lookups
"""

import logging
from collections.abc import Collection
from datetime import datetime

import psycopg2
from psycopg2.extras import RealDictCursor, execute_batch

from insight.base.repositories import EventLog, EventLogError
from insight.core.events import parse_events
from insight.core.models import RawEvent
from insight.utils.config import Settings, get_settings
from insight.utils.retry import POSTGRES_RETRY_EXCEPTIONS, retry_standard

logger = logging.getLogger(__name__)

# Batch size for execute_batch
PAGE_SIZE = 1000

# Connection timeout
CONNECT_TIMEOUT = 10

_EVENT_COLUMNS = """
    site_id, visitor_id, path, referrer, event_type::text AS event_type,
    time_on_page, utm_source, utm_medium, utm_campaign,
    screen_width, screen_height, language, timezone, created_at
"""


def _add_connect_timeout(conn_string: str) -> str:
    """Add connect_timeout to connection string if not present."""
    if "connect_timeout" not in conn_string:
        separator = "&" if "?" in conn_string else "?"
        return f"{conn_string}{separator}connect_timeout={CONNECT_TIMEOUT}"
    return conn_string


class PostgreSQLEventLog(EventLog):
    """
    PostgreSQL implementation of EventLog.

    Events live in ``{schema}.page_views``. Reads go through RealDictCursor
    and parse_events(), so malformed rows are skipped rather than failing
    the query. Connection-class errors are retried with backoff; anything
    still failing is raised as EventLogError.
    """

    def __init__(self, settings: Settings | None = None):
        """
        Initialize the event log.

        Args:
            settings: Application settings. If None, uses get_settings().
        """
        self._settings = settings or get_settings()
        self._conn: psycopg2.extensions.connection | None = None
        self._schema = self._settings.postgres.schema_name

    @property
    def schema(self) -> str:
        """Get the database schema name."""
        return self._schema

    def connect(self) -> None:
        """Establish connection to PostgreSQL."""
        conn_string = _add_connect_timeout(self._settings.postgres.connection_string)
        try:
            self._conn = psycopg2.connect(conn_string)
        except psycopg2.Error as e:
            raise EventLogError(f"Cannot connect to PostgreSQL: {e}") from e
        logger.info("PostgreSQLEventLog connected (schema=%s)", self._schema)

    def _require_conn(self) -> "psycopg2.extensions.connection":
        if self._conn is None:
            raise EventLogError("PostgreSQL connection not established. Call connect() first.")
        return self._conn

    @retry_standard(POSTGRES_RETRY_EXCEPTIONS, logger)
    def _fetch(self, sql: str, params: tuple) -> list[dict]:
        conn = self._require_conn()
        try:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(sql, params)
                rows = cur.fetchall()
            conn.commit()
            return rows
        except POSTGRES_RETRY_EXCEPTIONS:
            self.reconnect()
            raise

    def _query(self, sql: str, params: tuple) -> list[dict]:
        try:
            return self._fetch(sql, params)
        except psycopg2.Error as e:
            self.rollback()
            raise EventLogError(f"Event log query failed: {e}") from e

    def save(self, events: list[RawEvent]) -> int:
        """
        Append events to PostgreSQL.

        Args:
            events: Events to persist

        Returns:
            Count of events saved
        """
        conn = self._require_conn()
        if not events:
            return 0

        records = [event.to_db_record() for event in events]
        try:
            with conn.cursor() as cur:
                execute_batch(
                    cur,
                    f"""
                    INSERT INTO {self._schema}.page_views
                        (site_id, visitor_id, path, referrer, event_type, time_on_page,
                         utm_source, utm_medium, utm_campaign, screen_width,
                         screen_height, language, timezone, created_at)
                    VALUES
                        (%(site_id)s, %(visitor_id)s, %(path)s, %(referrer)s,
                         %(event_type)s::{self._schema}.event_type, %(time_on_page)s,
                         %(utm_source)s, %(utm_medium)s, %(utm_campaign)s,
                         %(screen_width)s, %(screen_height)s, %(language)s,
                         %(timezone)s, %(created_at)s)
                    """,
                    records,
                    page_size=PAGE_SIZE,
                )
            conn.commit()
        except psycopg2.Error as e:
            self.rollback()
            raise EventLogError(f"Failed to save events: {e}") from e

        logger.debug("Inserted %d events", len(records))
        return len(records)

    def query_events(self, site_id: str, start: datetime, end: datetime) -> list[RawEvent]:
        rows = self._query(
            f"""
            SELECT {_EVENT_COLUMNS}
            FROM {self._schema}.page_views
            WHERE site_id = %s AND created_at >= %s AND created_at < %s
            """,
            (site_id, start, end),
        )
        logger.debug("Fetched %d events for %s in [%s, %s)", len(rows), site_id, start, end)
        return parse_events(rows)

    def visitors_seen_before(
        self, site_id: str, cutoff: datetime, visitor_ids: Collection[str]
    ) -> set[str]:
        if not visitor_ids:
            return set()
        rows = self._query(
            f"""
            SELECT DISTINCT visitor_id
            FROM {self._schema}.page_views
            WHERE site_id = %s AND created_at < %s AND visitor_id = ANY(%s)
            """,
            (site_id, cutoff, list(visitor_ids)),
        )
        return {row["visitor_id"] for row in rows}

    def recent_events(self, site_id: str, limit: int = 20) -> list[RawEvent]:
        rows = self._query(
            f"""
            SELECT {_EVENT_COLUMNS}
            FROM {self._schema}.page_views
            WHERE site_id = %s
            ORDER BY created_at DESC
            LIMIT %s
            """,
            (site_id, limit),
        )
        return parse_events(rows)

    def rollback(self) -> None:
        """Rollback current transaction."""
        if self._conn:
            try:
                self._conn.rollback()
            except psycopg2.Error as e:
                logger.debug("Rollback failed: %s", e)

    def reconnect(self) -> None:
        """Attempt to reconnect to the database."""
        if self._conn:
            try:
                self._conn.close()
            except psycopg2.Error as e:
                logger.debug("Error closing stale connection: %s", e)

        conn_string = _add_connect_timeout(self._settings.postgres.connection_string)
        try:
            self._conn = psycopg2.connect(conn_string)
        except psycopg2.Error:
            self._conn = None
            raise
        logger.info("PostgreSQLEventLog reconnected")

    def close(self) -> None:
        """Close connection and release resources."""
        if self._conn:
            try:
                self._conn.close()
                logger.info("PostgreSQLEventLog connection closed")
            except psycopg2.Error as e:
                logger.warning("Error closing connection: %s", e)
            finally:
                self._conn = None


def check_postgresql_connection(settings: Settings | None = None) -> bool:
    """
    Check if PostgreSQL is reachable.

    Args:
        settings: Application settings. If None, uses get_settings().

    Returns:
        True if connection successful, False otherwise
    """
    try:
        settings = settings or get_settings()
        conn_string = _add_connect_timeout(settings.postgres.connection_string)
        conn = psycopg2.connect(conn_string)
        conn.close()
        return True
    except psycopg2.Error:
        return False
