"""
Report and RunStats models: the finalized output of one pipeline run.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RunStats(BaseModel):
    """
    Counters describing what a run read and what it had to skip.

    Attributes:
        lines_read: Non-blank and blank lines consumed from the input
        blank_lines: Lines containing only whitespace
        malformed_lines: Lines that were not a JSON object
        unrecognized_records: Parsed records neither root nor child
        roots: Root entities kept
        children: Child entities kept by the classifier
        duplicate_records: Repeated root or child lines replaced by a later
            line with the same id
        orphaned_children: Children whose parent never appeared
        excluded_undated: Entities left out of date-keyed buckets because
            their date could not be parsed
    """

    lines_read: int = 0
    blank_lines: int = 0
    malformed_lines: int = 0
    unrecognized_records: int = 0
    roots: int = 0
    children: int = 0
    duplicate_records: int = 0
    orphaned_children: int = 0
    excluded_undated: int = 0

    @property
    def invalid_lines(self) -> int:
        """Lines dropped before reconstruction (malformed or unrecognized)."""
        return self.malformed_lines + self.unrecognized_records

    @property
    def skipped(self) -> int:
        """Everything that did not make it into the report."""
        return self.invalid_lines + self.orphaned_children + self.excluded_undated


class Report(BaseModel):
    """
    A finalized report: fixed column order, sorted rows and the run counters.

    Attributes:
        report_type: Registered report name (e.g. "rfm")
        columns: Column names in output order
        rows: One mapping per bucket, keyed by column name
        stats: Counters for the run that produced this report
        generated_at: When the report was produced
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "report_type": "cohort",
                "columns": ["cohort", "periods_since_first_purchase", "Total_customers"],
                "rows": [{"cohort": "2025-04", "periods_since_first_purchase": 0, "Total_customers": 2}],
                "stats": {"lines_read": 5, "malformed_lines": 0},
            }
        }
    )

    report_type: str = Field(..., min_length=1)
    columns: list[str]
    rows: list[dict[str, Any]] = Field(default_factory=list)
    stats: RunStats = Field(default_factory=RunStats)
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def as_tuples(self) -> list[tuple[Any, ...]]:
        """Rows as tuples in column order."""
        return [tuple(row.get(column) for column in self.columns) for row in self.rows]
