# ==============================================================================
# Application Services
# ==============================================================================
"""
Services that connect the pure core to the event log and cache.
"""

from insight.services.stats import StatsService, stats_cache_key

__all__ = [
    "StatsService",
    "stats_cache_key",
]
