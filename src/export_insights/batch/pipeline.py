"""
Report pipeline orchestration.

Coordinates the flow: read → classify → reconstruct → aggregate → write
"""

from pathlib import Path
from typing import Any, Iterable

from export_insights.batch.readers import JsonLinesReader
from export_insights.batch.writers import CsvReportWriter
from export_insights.core.aggregation import MetricAggregator
from export_insights.core.classifier import RecordClassifier
from export_insights.core.config import ReportConfigLoader
from export_insights.core.models import Report, ReportConfig
from export_insights.core.reconstruct import RelationshipReconstructor
from export_insights.observability.logger import get_logger, log_operation
from export_insights.observability.metrics import record_run, record_stage_duration


logger = get_logger(__name__)


class ReportPipeline:
    """
    Orchestrates one report over a bulk export.

    Flow:
    1. Read export lines (JSON Lines)
    2. Classify lines into roots and children
    3. Reconstruct parent/child relationships
    4. Aggregate into buckets and finalize derived metrics
    5. Write the report (CSV + run summary)

    The pipeline holds only configuration; every run builds fresh state.
    """

    def __init__(
        self,
        report_type: str,
        config: ReportConfig | None = None,
        config_path: str | None = None,
        write_summary: bool = True,
    ):
        """
        Initialize report pipeline.

        Args:
            report_type: Registered report name (daily_sales, rfm, ...)
            config: Report parameters; takes precedence over config_path
            config_path: Path to a report configuration YAML file
            write_summary: Write the JSON run summary next to the CSV

        Raises:
            ValueError: If the report type is unknown or the config is invalid
        """
        if config is None and config_path:
            if Path(config_path).exists():
                config = ReportConfigLoader(config_path).load()
            else:
                logger.warning(f"Report configuration file not found: {config_path}, using defaults")

        self.config = config or ReportConfig()
        self.aggregator = MetricAggregator(report_type, self.config)
        self.report_type = report_type

        self.classifier = RecordClassifier(self.aggregator.export_shape.root_kinds)
        self.reconstructor = RelationshipReconstructor()
        self.writer = CsvReportWriter(write_summary=write_summary)

    def run(self, lines: Iterable[str]) -> Report:
        """
        Run the three pipeline stages over raw export lines.

        Args:
            lines: Export lines, consumed once

        Returns:
            Report with rows and run counters
        """
        extra = {"report_type": self.report_type}

        with log_operation("Classifying records", logger=logger, **extra) as op:
            classified = self.classifier.classify(lines)
        record_stage_duration(self.report_type, "classify", op.duration)

        with log_operation("Reconstructing relationships", logger=logger, **extra) as op:
            reconstructed = self.reconstructor.reconstruct(classified)
        record_stage_duration(self.report_type, "reconstruct", op.duration)

        with log_operation("Aggregating metrics", logger=logger, **extra) as op:
            result = self.aggregator.aggregate(reconstructed.entities)
        record_stage_duration(self.report_type, "aggregate", op.duration)

        stats = classified.stats.model_copy(
            update={
                "orphaned_children": reconstructed.orphaned_children,
                "excluded_undated": result.excluded_undated,
            }
        )

        return Report(
            report_type=self.report_type,
            columns=result.columns,
            rows=result.rows,
            stats=stats,
        )

    def process_file(self, input_path: str, output_path: str | None = None) -> dict[str, Any]:
        """
        Process an export file through the complete pipeline.

        Args:
            input_path: Path to the JSON Lines export
            output_path: CSV destination; the report is only returned when None

        Returns:
            Dictionary with processing results:
            - report: the Report
            - rows: rows emitted
            - lines_read / malformed_lines / unrecognized_records /
              duplicate_records / orphaned_children / excluded_undated: run counters
            - output_path: where the CSV was written, if anywhere

        Raises:
            InputUnavailableError: If the export cannot be opened
        """
        logger.info(f"Starting {self.report_type} report for file: {input_path}")

        reader = JsonLinesReader(input_path)
        try:
            report = self.run(reader.lines())
        except Exception:
            record_run(self.report_type, None, 0, success=False)
            raise

        written_to = None
        if output_path:
            with log_operation("Writing report", logger=logger, report_type=self.report_type) as op:
                self.writer.write(report, output_path)
            record_stage_duration(self.report_type, "emit", op.duration)
            written_to = str(output_path)

        record_run(self.report_type, report.stats, len(report.rows))

        stats = report.stats
        logger.info(
            f"Report complete: {len(report.rows)} rows, {stats.invalid_lines} invalid lines, "
            f"{stats.orphaned_children} orphaned children, {stats.excluded_undated} undated",
            extra={"report_type": self.report_type, "rows": len(report.rows), **stats.model_dump()},
        )

        return {
            "report": report,
            "rows": len(report.rows),
            "lines_read": stats.lines_read,
            "malformed_lines": stats.malformed_lines,
            "unrecognized_records": stats.unrecognized_records,
            "duplicate_records": stats.duplicate_records,
            "orphaned_children": stats.orphaned_children,
            "excluded_undated": stats.excluded_undated,
            "output_path": written_to,
        }
