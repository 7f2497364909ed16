# ==============================================================================
# Cache Commands
# ==============================================================================
"""
Stats cache commands for the insight CLI.
"""

from typing import Annotated

import typer

from insight.base import CacheError
from insight.cli.shared import C, I
from insight.infrastructure.cache import get_cache
from insight.services.stats import CACHE_KEY_PREFIX


def cache_clear(
    site_id: Annotated[str, typer.Argument(help="Site identifier (domain)")],
) -> None:
    """Drop cached stats for a site so the next request recomputes them.

    Examples:
        insight cache clear example.com
    """
    try:
        deleted = get_cache().delete_pattern(f"{CACHE_KEY_PREFIX}{site_id}:*")
    except CacheError as e:
        print(f"{C.BRIGHT_RED}{I.CROSS} Cache unavailable: {e}{C.RESET}")
        raise typer.Exit(1)

    print(f"{C.BRIGHT_GREEN}{I.CHECK} Cleared {deleted} cached reports for {site_id}{C.RESET}")
