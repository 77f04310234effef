"""
Parent/child reconstruction of flattened export records.
"""

from .reconstructor import ReconstructedEntities, RelationshipReconstructor

__all__ = [
    "ReconstructedEntities",
    "RelationshipReconstructor",
]
