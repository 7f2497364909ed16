# ==============================================================================
# CLI Commands Module
# ==============================================================================
"""
CLI commands for insight.

Commands are organized into separate modules for maintainability:
- shared.py: Common utilities, constants, and helpers
- stats.py: Traffic statistics report
- events.py: Event log diagnostics and loading
- db.py, cache.py, config.py: Operational commands
"""
