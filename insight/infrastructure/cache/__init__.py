# ==============================================================================
# Cache Infrastructure
# ==============================================================================
"""
Cache implementations for the ports-and-adapters architecture.

Available implementations:
- ValkeyCache: Valkey/Redis-based cache with JSON serialization
- MemoryCache: process-local cache with per-key expiry
"""

from insight.base import Cache
from insight.infrastructure.cache.memory import MemoryCache
from insight.infrastructure.cache.valkey import ValkeyCache
from insight.utils.config import Settings, get_settings


def get_cache(settings: Settings | None = None) -> Cache:
    """
    Build the cache configured in settings.

    Returns:
        ValkeyCache when VALKEY_ENABLED is set, MemoryCache otherwise
    """
    settings = settings or get_settings()
    if settings.valkey.enabled:
        return ValkeyCache(settings.valkey.url)
    return MemoryCache()


__all__ = [
    "MemoryCache",
    "ValkeyCache",
    "get_cache",
]
