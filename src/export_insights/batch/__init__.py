"""
Batch report processing module.
"""

from .pipeline import ReportPipeline
from .readers import InputUnavailableError, JsonLinesReader
from .writers import CsvReportWriter

__all__ = [
    "ReportPipeline",
    "InputUnavailableError",
    "JsonLinesReader",
    "CsvReportWriter",
]
