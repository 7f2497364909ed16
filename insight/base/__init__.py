# ==============================================================================
# Base Abstract Classes
# ==============================================================================
"""
Abstract base classes defining the ports of the ports-and-adapters architecture.

- Cache: transient key-value storage for memoized results
- EventLog: the append-only raw event store
"""

from insight.base.cache import Cache, CacheError
from insight.base.repositories import EventLog, EventLogError

__all__ = [
    "Cache",
    "CacheError",
    "EventLog",
    "EventLogError",
]
