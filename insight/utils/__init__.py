# ==============================================================================
# Insight Utilities
# ==============================================================================
"""
Shared utilities: configuration, retry policies, paths and schema helpers.
"""

from insight.utils.config import (
    PostgresSettings,
    Settings,
    StatsSettings,
    ValkeySettings,
    get_settings,
)

__all__ = [
    "PostgresSettings",
    "Settings",
    "StatsSettings",
    "ValkeySettings",
    "get_settings",
]
