"""
export-insights: analytics reports from store bulk exports.
"""

__version__ = "0.1.0"
