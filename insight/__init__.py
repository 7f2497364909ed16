# ==============================================================================
# Insight Analytics
# ==============================================================================
"""
Website analytics: session derivation and traffic statistics over a raw
tracking event log.
"""

__version__ = "0.1.0"
