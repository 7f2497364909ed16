# ==============================================================================
# Config Commands
# ==============================================================================
"""
Configuration commands for the insight CLI.
"""

import json
from typing import Annotated

import typer

from insight.cli.shared import C
from insight.utils.config import get_settings


def config_show(
    json_output: Annotated[
        bool, typer.Option("--json", "-j", help="Output configuration as JSON")
    ] = False,
) -> None:
    """Display current configuration (includes secrets in JSON mode)."""
    settings = get_settings()

    if json_output:
        config = {
            "postgresql": {
                "host": settings.postgres.host,
                "port": settings.postgres.port,
                "database": settings.postgres.database,
                "schema": settings.postgres.schema_name,
                "user": settings.postgres.user,
                "password": settings.postgres.password,
                "sslmode": settings.postgres.sslmode,
            },
            "valkey": {
                "enabled": settings.valkey.enabled,
                "host": settings.valkey.host,
                "port": settings.valkey.port,
                "ssl_enabled": settings.valkey.ssl,
                "password": settings.valkey.password,
            },
            "stats": {
                "session_timeout_minutes": settings.stats.session_timeout_minutes,
                "cache_ttl_seconds": settings.stats.cache_ttl_seconds,
                "exit_pages_limit": settings.stats.exit_pages_limit,
                "default_range": settings.stats.default_range,
            },
            "log_level": settings.log_level,
        }
        print(json.dumps(config, indent=2))
        return

    print()
    print(f"{C.BOLD}Configuration{C.RESET}")
    print()

    print(f"{C.CYAN}PostgreSQL{C.RESET}")
    print(f"  Host:       {C.WHITE}{settings.postgres.host}:{settings.postgres.port}{C.RESET}")
    print(f"  Database:   {C.WHITE}{settings.postgres.database}{C.RESET}")
    print(f"  Schema:     {C.WHITE}{settings.postgres.schema_name}{C.RESET}")
    print(f"  User:       {C.WHITE}{settings.postgres.user}{C.RESET}")
    print(f"  SSL mode:   {C.WHITE}{settings.postgres.sslmode}{C.RESET}")
    print()

    print(f"{C.CYAN}Cache{C.RESET}")
    if settings.valkey.enabled:
        print(f"  Backend:    {C.WHITE}Valkey {settings.valkey.host}:{settings.valkey.port}{C.RESET}")
        print(f"  SSL:        {C.WHITE}{'enabled' if settings.valkey.ssl else 'disabled'}{C.RESET}")
    else:
        print(f"  Backend:    {C.WHITE}in-memory{C.RESET}")
    print(f"  TTL:        {C.WHITE}{settings.stats.cache_ttl_seconds}s{C.RESET}")
    print()

    print(f"{C.CYAN}Stats{C.RESET}")
    print(f"  Session timeout:  {C.WHITE}{settings.stats.session_timeout_minutes} min{C.RESET}")
    print(f"  Exit pages:       {C.WHITE}top {settings.stats.exit_pages_limit}{C.RESET}")
    print(f"  Default range:    {C.WHITE}{settings.stats.default_range}{C.RESET}")
    print()
