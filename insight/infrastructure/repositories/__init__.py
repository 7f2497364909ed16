# ==============================================================================
# Event Log Adapters
# ==============================================================================
"""
Database adapters implementing the EventLog interface from base/repositories.py.

Currently supported:
- PostgreSQL (postgresql.py)
"""

from insight.infrastructure.repositories.postgresql import (
    PostgreSQLEventLog,
    check_postgresql_connection,
)

__all__ = [
    "PostgreSQLEventLog",
    "check_postgresql_connection",
]
