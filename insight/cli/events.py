# ==============================================================================
# Events Commands
# ==============================================================================
"""
Event log commands for the insight CLI.

- recent: newest events for a site (tracking diagnostics)
- load: append tracker payloads from a JSON / JSON-lines file
"""

import json
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from insight.base import EventLogError
from insight.cli.shared import C, I, open_event_log
from insight.core.events import parse_events


def _read_records(path: Path) -> list[dict]:
    """Read a JSON array or JSON-lines file of event records."""
    text = path.read_text()
    stripped = text.lstrip()
    if stripped.startswith("["):
        return json.loads(stripped)
    return [json.loads(line) for line in text.splitlines() if line.strip()]


# ==============================================================================
# Commands
# ==============================================================================


def events_recent(
    site_id: Annotated[str, typer.Argument(help="Site identifier (domain)")],
    limit: Annotated[int, typer.Option("--limit", "-n", min=1, help="Events to show")] = 20,
    json_output: Annotated[
        bool, typer.Option("--json", "-j", help="Output as JSON for scripting")
    ] = False,
) -> None:
    """Show the newest tracked events for a site.

    Examples:
        insight events recent example.com
        insight events recent example.com -n 5 --json
    """
    try:
        with open_event_log() as event_log:
            events = event_log.recent_events(site_id, limit)
    except EventLogError as e:
        if json_output:
            print(json.dumps({"error": str(e), "site_id": site_id}))
        else:
            print(f"\n{C.BRIGHT_RED}{I.CROSS} Event log unavailable: {e}{C.RESET}\n")
        raise typer.Exit(1)

    visitors = sorted({e.visitor_id for e in events})

    if json_output:
        print(
            json.dumps(
                {
                    "site_id": site_id,
                    "total_records": len(events),
                    "visitors": visitors,
                    "events": [e.model_dump(mode="json") for e in events],
                },
                indent=2,
            )
        )
        return

    if not events:
        print(f"\n{C.BRIGHT_YELLOW}{I.WARN} No events tracked for {site_id}{C.RESET}\n")
        return

    console = Console()
    table = Table(title=f"Recent Events - {site_id}", show_header=True, header_style="bold")
    table.add_column("Time")
    table.add_column("Visitor")
    table.add_column("Type")
    table.add_column("Path")
    table.add_column("Referrer")
    for event in events:
        table.add_row(
            event.created_at.strftime("%Y-%m-%d %H:%M:%S"),
            event.visitor_id,
            event.event_type.value,
            event.path,
            event.referrer,
        )

    print()
    console.print(table)
    print(f"  {C.BOLD}Visitors:{C.RESET} {len(visitors)}")
    print()


def events_load(
    file: Annotated[
        Path,
        typer.Argument(exists=True, dir_okay=False, readable=True, help="JSON or JSON-lines file"),
    ],
) -> None:
    """Append tracker payloads from a file to the event log.

    Records without a site or visitor id are skipped.

    Examples:
        insight events load data/events.jsonl
    """
    try:
        records = _read_records(file)
    except json.JSONDecodeError as e:
        print(f"{C.BRIGHT_RED}{I.CROSS} Cannot parse {file}: {e}{C.RESET}")
        raise typer.Exit(1)

    events = parse_events(records)
    skipped = len(records) - len(events)

    try:
        with open_event_log() as event_log:
            saved = event_log.save(events)
    except EventLogError as e:
        print(f"{C.BRIGHT_RED}{I.CROSS} Failed to load events: {e}{C.RESET}")
        raise typer.Exit(1)

    print(f"{C.BRIGHT_GREEN}{I.CHECK} Loaded {C.WHITE}{saved:,}{C.RESET} events{C.RESET}")
    if skipped:
        print(f"{C.BRIGHT_YELLOW}{I.WARN} Skipped {skipped:,} malformed records{C.RESET}")
