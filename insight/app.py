# ==============================================================================
# Insight Analytics CLI
# ==============================================================================
"""
Command-line interface for the insight analytics engine.

Usage:
    insight --help
    insight stats example.com --range 7d
    insight events recent example.com
    insight events load events.jsonl
    insight db init
    insight db reset -y
    insight cache clear example.com
    insight config show
"""

import logging

# ==============================================================================
# App Configuration
# ==============================================================================
# Set consistent terminal width for help output formatting
import os

import typer

if "COLUMNS" not in os.environ:
    os.environ["COLUMNS"] = "115"

from insight.utils.config import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

app = typer.Typer(
    name="insight",
    help="Website analytics statistics CLI",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


@app.callback()
def configure_logging() -> None:
    """Website analytics statistics CLI."""
    logging.basicConfig(
        level=getattr(logging, get_settings().log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )


# Register stats command from cli.stats module
from insight.cli.stats import show_stats

app.command("stats")(show_stats)

events_app = typer.Typer(
    help="Event log operations",
    no_args_is_help=True,
)
app.add_typer(events_app, name="events")

from insight.cli.events import events_load, events_recent

events_app.command("recent")(events_recent)
events_app.command("load")(events_load)

db_app = typer.Typer(
    help="Database schema operations",
    no_args_is_help=True,
)
app.add_typer(db_app, name="db")

from insight.cli.db import db_init, db_reset

db_app.command("init")(db_init)
db_app.command("reset")(db_reset)

cache_app = typer.Typer(
    help="Stats cache operations",
    no_args_is_help=True,
)
app.add_typer(cache_app, name="cache")

from insight.cli.cache import cache_clear

cache_app.command("clear")(cache_clear)

config_app = typer.Typer(
    help="Configuration management",
    no_args_is_help=True,
)
app.add_typer(config_app, name="config")

from insight.cli.config import config_show

config_app.command("show")(config_show)


# ==============================================================================
# Entry Point
# ==============================================================================


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
