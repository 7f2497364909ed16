# ==============================================================================
# Infrastructure Adapters
# ==============================================================================
"""
Adapters for external services (ports-and-adapters architecture).

- cache/ - Cache adapters (Valkey/Redis, in-memory)
- repositories/ - Event log adapters (PostgreSQL)
"""

from insight.infrastructure.cache import MemoryCache, ValkeyCache, get_cache
from insight.infrastructure.repositories import (
    PostgreSQLEventLog,
    check_postgresql_connection,
)

__all__ = [
    # Cache
    "MemoryCache",
    "ValkeyCache",
    "get_cache",
    # Event log
    "PostgreSQLEventLog",
    "check_postgresql_connection",
]
