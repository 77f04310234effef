"""
CSV report writer.

Writes a finalized Report with its fixed column order, plus an optional
JSON sidecar carrying the run counters so skipped and invalid lines stay
visible next to the numbers they affect.
"""

import csv
import json
from pathlib import Path
from typing import TextIO

from export_insights.core.models import Report


class CsvReportWriter:
    """
    Writes report rows to CSV.
    """

    def __init__(self, write_summary: bool = True):
        """
        Initialize writer.

        Args:
            write_summary: Also write ``<output>.summary.json`` with run counters
        """
        self.write_summary = write_summary

    def write(self, report: Report, output_path: str | Path) -> int:
        """
        Write a report to ``output_path``.

        Args:
            report: The finalized report
            output_path: Destination CSV file

        Returns:
            Number of rows written
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, "w", newline="", encoding="utf-8") as f:
            count = self.write_stream(report, f)

        if self.write_summary:
            summary_path = output_path.with_name(output_path.name + ".summary.json")
            summary_path.write_text(json.dumps(self.summary(report), indent=2), encoding="utf-8")

        return count

    def write_stream(self, report: Report, stream: TextIO) -> int:
        """Write the CSV body to an open text stream."""
        writer = csv.DictWriter(stream, fieldnames=report.columns, extrasaction="ignore")
        writer.writeheader()
        for row in report.rows:
            writer.writerow(row)
        return len(report.rows)

    def summary(self, report: Report) -> dict:
        """Run counters and report metadata as a JSON-ready dict."""
        return {
            "report_type": report.report_type,
            "generated_at": report.generated_at.isoformat(),
            "rows": len(report.rows),
            "stats": report.stats.model_dump(),
            "invalid_lines": report.stats.invalid_lines,
            "skipped": report.stats.skipped,
        }
