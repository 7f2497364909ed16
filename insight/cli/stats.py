# ==============================================================================
# Stats Command
# ==============================================================================
"""
Stats command for the insight CLI.

Displays traffic statistics for a site: visitor and session metrics with
period-over-period trends, exit pages, traffic sources and the conversion
funnel.
"""

import json
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from insight.base import EventLogError
from insight.cli.shared import (
    BOX_WIDTH,
    C,
    I,
    _box_bottom,
    _box_header,
    _box_line,
    _empty_line,
    _section_header,
    _trend_badge,
    open_stats_service,
)
from insight.core.insights import summarize, traffic_insights
from insight.core.models import StatsReport, TimeRange
from insight.utils.config import get_settings

# (label, PeriodStats/Trend field, format, higher is better)
_METRIC_ROWS = (
    ("Visitors", "total_visitors", "{:,}", True),
    ("  New", "new_visitors", "{:,}", True),
    ("  Returning", "returning_visitors", "{:,}", True),
    ("Bounce Rate", "bounce_rate", "{:.1f}%", False),
    ("Avg Session Duration", "avg_session_duration", "{:,}s", True),
    ("Pages / Visit", "pages_per_visit", "{:.1f}", True),
)


def _print_report(report: StatsReport) -> None:
    """Formatted box and tables for a report."""
    W = BOX_WIDTH
    current = report.current

    print()
    print(_box_header(f"TRAFFIC - {report.site_id} ({report.range.value})", W))
    print(_empty_line(W))

    for label, field, fmt, higher_is_better in _METRIC_ROWS:
        value = fmt.format(getattr(current, field))
        trend = _trend_badge(getattr(report.trends, field), higher_is_better)
        print(_box_line(f"  {label:<26}{value:>14}    {trend}", W))

    print(_empty_line(W))
    print(_box_line(f"  {'Sessions':<26}{current.total_sessions:>14,}", W))
    print(_box_line(f"  {'Page Views':<26}{current.total_page_views:>14,}", W))
    print(_empty_line(W))

    print(_section_header("Insights", W))
    for line in traffic_insights(report.site_id, current):
        print(_box_line(f"  {I.BULLET} {line}"[: W - 2], W))
    if report.degraded:
        print(
            _box_line(
                f"  {C.BRIGHT_YELLOW}{I.WARN} Visitor history unavailable; "
                f"all visitors counted as new{C.RESET}",
                W,
            )
        )
    print(_box_bottom(W))

    console = Console()

    if report.exit_pages:
        table = Table(title="Exit Pages", show_header=True, header_style="bold")
        table.add_column("Page")
        table.add_column("Exit Rate", justify="right")
        table.add_column("Visits", justify="right")
        table.add_column("Avg Time", justify="right")
        for page in report.exit_pages:
            table.add_row(
                page.url, f"{page.exit_rate:.1f}%", f"{page.visits:,}", f"{page.avg_time_on_page}s"
            )
        print()
        console.print(table)

    if report.traffic_sources:
        table = Table(title="Traffic Sources", show_header=True, header_style="bold")
        table.add_column("Source")
        table.add_column("Visitors", justify="right")
        table.add_column("Share", justify="right")
        table.add_column("Bounce Rate", justify="right")
        for source in report.traffic_sources:
            table.add_row(
                source.source,
                f"{source.visitors:,}",
                f"{source.percentage:.1f}%",
                f"{source.bounce_rate:.1f}%",
            )
        print()
        console.print(table)

    table = Table(title="Conversion Funnel", show_header=True, header_style="bold")
    table.add_column("Stage")
    table.add_column("Visitors", justify="right")
    table.add_column("Drop-off", justify="right")
    table.add_column("Drop-off Rate", justify="right")
    for stage in report.conversion_funnel:
        table.add_row(
            stage.stage,
            f"{stage.visitors:,}",
            f"{stage.drop_off_count:,}",
            f"{stage.drop_off_rate:.1f}%",
        )
    print()
    console.print(table)
    print()
    print(f"  {C.DIM}Updated {report.last_updated.strftime('%Y-%m-%d %H:%M:%S %Z')}{C.RESET}")
    print()


# ==============================================================================
# Commands
# ==============================================================================


def show_stats(
    site_id: Annotated[str, typer.Argument(help="Site identifier (domain)")],
    time_range: Annotated[
        Optional[TimeRange],
        typer.Option("--range", "-r", help="Window ending now (default: STATS_DEFAULT_RANGE)"),
    ] = None,
    json_output: Annotated[
        bool, typer.Option("--json", "-j", help="Output as JSON for scripting")
    ] = False,
    no_cache: Annotated[
        bool, typer.Option("--no-cache", help="Recompute even if a cached report exists")
    ] = False,
) -> None:
    """Show traffic statistics for a site.

    Sessions are derived from raw events using a 30 minute inactivity gap
    (STATS_SESSION_TIMEOUT_MINUTES). Trends compare against the window of
    the same length immediately before.

    Examples:
        insight stats example.com              # Last 30 days
        insight stats example.com -r 24h       # Last 24 hours
        insight stats example.com --json       # JSON output for scripting
    """
    if time_range is None:
        time_range = TimeRange(get_settings().stats.default_range)

    try:
        with open_stats_service() as service:
            report = service.compute_stats(site_id, time_range, use_cache=not no_cache)
    except EventLogError as e:
        if json_output:
            print(json.dumps({"error": str(e), "site_id": site_id}))
        else:
            print(f"\n{C.BRIGHT_RED}{I.CROSS} Event log unavailable: {e}{C.RESET}\n")
        raise typer.Exit(1)

    if json_output:
        data = report.model_dump(mode="json", by_alias=True)
        data["summary"] = summarize(site_id, report.current)
        print(json.dumps(data, indent=2))
        return

    if not report.real_data:
        print(f"\n{C.BRIGHT_YELLOW}{I.WARN} {summarize(site_id, report.current)}{C.RESET}\n")
        return

    _print_report(report)
