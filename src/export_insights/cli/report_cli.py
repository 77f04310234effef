"""
Command-line interface for report generation.

Usage:
    export-insights report <report_type> --input <export.jsonl> [--output <report.csv>] [options]
    export-insights list-reports
"""

import argparse
import sys
from datetime import date

from export_insights.batch import InputUnavailableError, ReportPipeline
from export_insights.core.aggregation import MetricAggregator
from export_insights.core.config import ReportConfigLoader
from export_insights.core.models import ReportConfig
from export_insights.observability.logger import get_logger
from export_insights.observability.metrics import write_metrics
from export_insights.utils.validation import ValidationError, validate_file_path, validate_report_type


logger = get_logger(__name__)


def parse_as_of(value: str) -> date:
    """argparse type for YYYY-MM-DD dates."""
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date '{value}', expected YYYY-MM-DD")


def load_config(args) -> ReportConfig:
    """
    Build the report configuration from --config and --as-of.

    Raises:
        FileNotFoundError: If --config names a missing file
        ValueError: If the configuration is invalid
    """
    if args.config:
        config = ReportConfigLoader(validate_file_path(args.config, "config")).load()
    else:
        config = ReportConfig()

    if args.as_of:
        config = config.model_copy(update={"as_of": args.as_of})

    return config


def report_command(args):
    """
    Execute report command.

    Args:
        args: Command-line arguments
    """
    try:
        report_type = validate_report_type(args.report_type, MetricAggregator.available_reports())
        input_path = validate_file_path(args.input, "input")
        output_path = validate_file_path(args.output, "output") if args.output else None

        config = load_config(args)
        logger.info(f"Generating {report_type} report from {input_path} (as of {config.as_of})")

        pipeline = ReportPipeline(report_type, config=config, write_summary=not args.no_summary)
        result = pipeline.process_file(input_path, output_path)

        if output_path is None:
            pipeline.writer.write_stream(result["report"], sys.stdout)

        logger.info("=" * 60)
        logger.info("REPORT COMPLETE")
        logger.info("=" * 60)
        logger.info(f"Rows emitted: {result['rows']}")
        logger.info(f"Lines read: {result['lines_read']}")
        logger.info(f"Malformed lines: {result['malformed_lines']}")
        logger.info(f"Unrecognized records: {result['unrecognized_records']}")
        logger.info(f"Duplicate records: {result['duplicate_records']}")
        logger.info(f"Orphaned children: {result['orphaned_children']}")
        logger.info(f"Excluded (unparseable date): {result['excluded_undated']}")
        if output_path:
            logger.info(f"Report written to: {output_path}")
        logger.info("=" * 60)

    except (ValidationError, InputUnavailableError, FileNotFoundError) as e:
        logger.error(f"Cannot run report: {e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Error during report generation: {e}", exc_info=True)
        sys.exit(1)
    finally:
        if args.metrics_output:
            write_metrics(args.metrics_output)
            logger.info(f"Metrics written to: {args.metrics_output}")


def list_reports_command(args):
    """Print the registered report types with their export shape."""
    for report_type in MetricAggregator.available_reports():
        shape = MetricAggregator.export_shape_for(report_type)
        print(f"{report_type}\t{shape.value}")


def main(argv: list[str] | None = None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="export-insights",
        description="Analytics reports from store bulk exports",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Daily sales from an orders export
  export-insights report daily_sales --input exports/orders.jsonl --output out/daily_sales.csv

  # RFM segmentation of a customers export, scored as of a fixed date
  export-insights report rfm --input exports/customers.jsonl --output out/rfm.csv \\
      --as-of 2025-06-30 --config config/report_config.yaml

  # Cohort table to stdout, metrics to a textfile collector
  export-insights report cohort --input exports/customers.jsonl \\
      --metrics-output /var/lib/node_exporter/export_insights.prom

  # Show available reports
  export-insights list-reports
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Report command
    report_parser = subparsers.add_parser("report", help="Generate a report from an export file")
    report_parser.add_argument(
        "report_type",
        help="Report to generate (see list-reports)"
    )
    report_parser.add_argument(
        "--input",
        required=True,
        help="Path to the JSON Lines bulk export"
    )
    report_parser.add_argument(
        "--output",
        help="Path to the CSV report (default: write CSV to stdout)"
    )
    report_parser.add_argument(
        "--config",
        help="Path to report configuration YAML file"
    )
    report_parser.add_argument(
        "--as-of",
        type=parse_as_of,
        help="Date used as 'now' for recency (YYYY-MM-DD, default: today)"
    )
    report_parser.add_argument(
        "--metrics-output",
        help="Write Prometheus metrics to this file after the run"
    )
    report_parser.add_argument(
        "--no-summary",
        action="store_true",
        help="Do not write the JSON run summary next to the CSV"
    )

    # List command
    subparsers.add_parser("list-reports", help="List available report types")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.command == "report":
        report_command(args)
    elif args.command == "list-reports":
        list_reports_command(args)


if __name__ == "__main__":
    main()
