# ==============================================================================
# Database Commands
# ==============================================================================
"""
Schema management commands for the insight CLI.
"""

from typing import Annotated

import psycopg2
import typer

from insight.cli.shared import C, I
from insight.infrastructure.repositories import check_postgresql_connection
from insight.utils.config import get_settings
from insight.utils.db import ensure_schema, reset_schema


def db_init() -> None:
    """Create the event log schema if it does not exist.

    Examples:
        insight db init
    """
    settings = get_settings()
    schema = settings.postgres.schema_name
    if not check_postgresql_connection(settings):
        print(
            f"{C.BRIGHT_RED}{I.CROSS} PostgreSQL is not reachable at "
            f"{settings.postgres.host}:{settings.postgres.port}{C.RESET}"
        )
        raise typer.Exit(1)

    try:
        created = ensure_schema(settings)
    except (RuntimeError, psycopg2.Error) as e:
        print(f"{C.BRIGHT_RED}{I.CROSS} Schema init failed: {e}{C.RESET}")
        raise typer.Exit(1)

    if created:
        print(f"{C.BRIGHT_GREEN}{I.CHECK} Schema '{schema}' created{C.RESET}")
    else:
        print(f"{C.BRIGHT_GREEN}{I.CHECK} Schema '{schema}' already exists{C.RESET}")


def db_reset(
    confirm: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation prompt")] = False,
) -> None:
    """Drop and recreate the event log schema (deletes all events).

    Examples:
        insight db reset       # With confirmation prompt
        insight db reset -y    # Skip confirmation
    """
    schema = get_settings().postgres.schema_name
    if not confirm:
        typer.confirm(
            f"This will DELETE all tracked events in schema '{schema}'. Are you sure?",
            abort=True,
        )

    try:
        reset_schema()
    except RuntimeError as e:
        print(f"{C.BRIGHT_RED}{I.CROSS} {e}{C.RESET}")
        raise typer.Exit(1)

    print(f"{C.BRIGHT_GREEN}{I.CHECK} Schema '{schema}' reset{C.RESET}")
