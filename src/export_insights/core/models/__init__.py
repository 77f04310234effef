"""
Core data models for the export reconciliation pipeline.

All models use Pydantic for runtime validation and type safety.
"""

from .accumulator import Accumulator, BucketTable
from .entities import (
    CHILD_COLLECTIONS,
    ENTITY_MODELS,
    Address,
    Customer,
    EntityKind,
    ExportShape,
    ExportModel,
    LineItem,
    Order,
    ProductVariant,
    Refund,
    kind_of,
)
from .report import Report, RunStats
from .report_config import DATE_FIELDS, MONEY_FIELDS, ReportConfig, RfmBand, RfmThresholds

__all__ = [
    "Accumulator",
    "BucketTable",
    "CHILD_COLLECTIONS",
    "ENTITY_MODELS",
    "Address",
    "Customer",
    "EntityKind",
    "ExportShape",
    "ExportModel",
    "LineItem",
    "Order",
    "ProductVariant",
    "Refund",
    "kind_of",
    "Report",
    "RunStats",
    "DATE_FIELDS",
    "MONEY_FIELDS",
    "ReportConfig",
    "RfmBand",
    "RfmThresholds",
]
