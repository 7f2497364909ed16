# ==============================================================================
# Tests for CLI Stats, Events, Cache and Config Commands
# ==============================================================================
"""
Unit tests for the insight CLI commands that read data.

The event log is replaced with the in-memory FakeEventLog by patching the
context managers where each command module imports them, so no database
or Valkey connection is needed. CLI output is captured via
typer.testing.CliRunner.
"""

import json
from contextlib import contextmanager
from datetime import UTC, datetime, timedelta
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from insight.app import app
from insight.base import EventLogError
from insight.infrastructure.cache import MemoryCache
from insight.services.stats import StatsService
from insight.utils.config import Settings

runner = CliRunner()

T0 = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)
NOW = T0 + timedelta(hours=1)

# Paths to mock in the CLI modules (where they are imported)
_SERVICE_PATH = "insight.cli.stats.open_stats_service"
_EVENT_LOG_PATH = "insight.cli.events.open_event_log"
_CACHE_PATH = "insight.cli.cache.get_cache"
_PG_CHECK_PATH = "insight.cli.db.check_postgresql_connection"


def _open_service(event_log):
    @contextmanager
    def _open():
        yield StatsService(event_log, cache=None, settings=Settings(), clock=lambda: NOW)

    return _open


def _open_log(event_log):
    @contextmanager
    def _open():
        yield event_log

    return _open


@pytest.fixture()
def populated_log(event_log, make_event):
    event_log.save(
        [
            make_event("A", 0, path="/home", referrer="https://www.google.com/"),
            make_event("A", 5, path="/product/1", referrer="https://www.google.com/"),
            make_event("A", 40, path="/cart"),
            make_event("B", 0, path="/home"),
        ]
    )
    return event_log


# ==============================================================================
# stats
# ==============================================================================


class TestStats:
    """Tests for `insight stats`."""

    def test_text_report(self, populated_log):
        with patch(_SERVICE_PATH, _open_service(populated_log)):
            result = runner.invoke(app, ["stats", "example.com", "-r", "24h"])
        assert result.exit_code == 0
        assert "TRAFFIC - example.com (24h)" in result.output
        assert "Your site example.com had 2 visitors across 3 sessions" in result.output
        assert "Exit Pages" in result.output
        assert "Traffic Sources" in result.output
        assert "Conversion Funnel" in result.output

    def test_json_report(self, populated_log):
        with patch(_SERVICE_PATH, _open_service(populated_log)):
            result = runner.invoke(app, ["stats", "example.com", "--range", "24h", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["siteId"] == "example.com"
        assert data["range"] == "24h"
        assert data["current"]["totalVisitors"] == 2
        assert data["current"]["bounceRate"] == 66.7
        assert data["realData"] is True
        assert data["summary"].startswith("Summary for example.com")

    def test_no_data(self, event_log):
        with patch(_SERVICE_PATH, _open_service(event_log)):
            result = runner.invoke(app, ["stats", "empty.com", "-r", "7d"])
        assert result.exit_code == 0
        assert "No tracking data yet" in result.output

    def test_invalid_range(self, event_log):
        with patch(_SERVICE_PATH, _open_service(event_log)):
            result = runner.invoke(app, ["stats", "example.com", "-r", "1y"])
        assert result.exit_code != 0

    def test_event_log_error(self, event_log):
        event_log.fail_queries = True
        with patch(_SERVICE_PATH, _open_service(event_log)):
            result = runner.invoke(app, ["stats", "example.com", "-r", "24h"])
        assert result.exit_code == 1
        assert "Event log unavailable" in result.output

    def test_event_log_error_json(self, event_log):
        event_log.fail_queries = True
        with patch(_SERVICE_PATH, _open_service(event_log)):
            result = runner.invoke(app, ["stats", "example.com", "-r", "24h", "--json"])
        assert result.exit_code == 1
        assert json.loads(result.output)["error"] == "event log down"


# ==============================================================================
# events
# ==============================================================================


class TestEvents:
    """Tests for `insight events recent` and `insight events load`."""

    def test_recent_json(self, populated_log):
        with patch(_EVENT_LOG_PATH, _open_log(populated_log)):
            result = runner.invoke(app, ["events", "recent", "example.com", "-n", "2", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["total_records"] == 2
        assert data["events"][0]["path"] == "/cart"
        assert data["visitors"] == ["A"]

    def test_recent_text(self, populated_log):
        with patch(_EVENT_LOG_PATH, _open_log(populated_log)):
            result = runner.invoke(app, ["events", "recent", "example.com"])
        assert result.exit_code == 0
        assert "Visitors:" in result.output

    def test_recent_empty(self, event_log):
        with patch(_EVENT_LOG_PATH, _open_log(event_log)):
            result = runner.invoke(app, ["events", "recent", "example.com"])
        assert result.exit_code == 0
        assert "No events tracked" in result.output

    def test_load_json_lines(self, event_log, tmp_path):
        path = tmp_path / "events.jsonl"
        path.write_text(
            "\n".join(
                json.dumps(record)
                for record in [
                    {"siteId": "example.com", "visitorId": "a", "timestamp": 1717243200000},
                    {"siteId": "example.com", "visitorId": "b", "path": "/pricing"},
                    {"siteId": "example.com"},
                ]
            )
        )
        with patch(_EVENT_LOG_PATH, _open_log(event_log)):
            result = runner.invoke(app, ["events", "load", str(path)])
        assert result.exit_code == 0
        assert "Loaded" in result.output
        assert "Skipped 1" in result.output
        assert [e.visitor_id for e in event_log.events] == ["a", "b"]

    def test_load_json_array(self, event_log, tmp_path):
        path = tmp_path / "events.json"
        path.write_text(json.dumps([{"siteId": "example.com", "visitorId": "a"}]))
        with patch(_EVENT_LOG_PATH, _open_log(event_log)):
            result = runner.invoke(app, ["events", "load", str(path)])
        assert result.exit_code == 0
        assert len(event_log.events) == 1

    def test_load_invalid_json(self, event_log, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("[{not json")
        with patch(_EVENT_LOG_PATH, _open_log(event_log)):
            result = runner.invoke(app, ["events", "load", str(path)])
        assert result.exit_code == 1
        assert "Cannot parse" in result.output


# ==============================================================================
# cache / config
# ==============================================================================


class TestCacheClear:
    """Tests for `insight cache clear`."""

    def test_clears_site_reports(self):
        cache = MemoryCache()
        cache.set("insight:stats:example.com:24h", {})
        cache.set("insight:stats:example.com:7d", {})
        cache.set("insight:stats:other.com:7d", {})
        with patch(_CACHE_PATH, return_value=cache):
            result = runner.invoke(app, ["cache", "clear", "example.com"])
        assert result.exit_code == 0
        assert "Cleared 2 cached reports" in result.output
        assert len(cache) == 1


class TestConfigShow:
    """Tests for `insight config show`."""

    def test_json(self):
        result = runner.invoke(app, ["config", "show", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert set(data) == {"postgresql", "valkey", "stats", "log_level"}
        assert "session_timeout_minutes" in data["stats"]

    def test_text(self):
        result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0
        assert "PostgreSQL" in result.output
        assert "Session timeout" in result.output


# ==============================================================================
# db
# ==============================================================================


class TestDb:
    """Tests for `insight db init` and `insight db reset`."""

    def test_init_creates(self):
        with (
            patch(_PG_CHECK_PATH, return_value=True),
            patch("insight.cli.db.ensure_schema", return_value=True),
        ):
            result = runner.invoke(app, ["db", "init"])
        assert result.exit_code == 0
        assert "created" in result.output

    def test_init_existing(self):
        with (
            patch(_PG_CHECK_PATH, return_value=True),
            patch("insight.cli.db.ensure_schema", return_value=False),
        ):
            result = runner.invoke(app, ["db", "init"])
        assert result.exit_code == 0
        assert "already exists" in result.output

    def test_init_unreachable(self):
        with (
            patch(_PG_CHECK_PATH, return_value=False),
            patch("insight.cli.db.ensure_schema") as ensure,
        ):
            result = runner.invoke(app, ["db", "init"])
        assert result.exit_code == 1
        assert "not reachable" in result.output
        ensure.assert_not_called()

    def test_reset_requires_confirmation(self):
        with patch("insight.cli.db.reset_schema") as reset:
            result = runner.invoke(app, ["db", "reset"], input="n\n")
        assert result.exit_code == 1
        reset.assert_not_called()

    def test_reset_confirmed(self):
        with patch("insight.cli.db.reset_schema") as reset:
            result = runner.invoke(app, ["db", "reset", "-y"])
        assert result.exit_code == 0
        reset.assert_called_once()
