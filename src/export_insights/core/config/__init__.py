"""
Report configuration loading and building.
"""

from .report_config_loader import ReportConfigBuilder, ReportConfigLoader

__all__ = [
    "ReportConfigLoader",
    "ReportConfigBuilder",
]
