"""
Bulk-export readers.
"""

from .jsonl_reader import InputUnavailableError, JsonLinesReader

__all__ = [
    "InputUnavailableError",
    "JsonLinesReader",
]
