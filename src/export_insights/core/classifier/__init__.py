"""
Record classification: parsing export lines into typed root and child entities.
"""

from .identifiers import entity_kind, kind_prefix, normalize_ids
from .record_classifier import ClassifiedRecords, RecordClass, RecordClassifier

__all__ = [
    "ClassifiedRecords",
    "RecordClass",
    "RecordClassifier",
    "entity_kind",
    "kind_prefix",
    "normalize_ids",
]
