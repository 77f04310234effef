"""
Prometheus metrics for export-insights report runs

A report run is a one-shot process, so metrics are rendered in text
exposition format and written to a file for a textfile collector rather
than served over HTTP.
"""
from pathlib import Path

from prometheus_client import (
    Counter,
    Histogram,
    Gauge,
    CollectorRegistry,
    generate_latest,
)


# Registry for all export-insights metrics
REGISTRY = CollectorRegistry()


# =======================
# PIPELINE METRICS
# =======================

# Lines / records seen by the classifier, by outcome
records_processed_total = Counter(
    name="export_records_processed_total",
    documentation="Total number of export lines processed by the pipeline",
    labelnames=["report_type", "status"],  # status: root, child, blank, malformed, unrecognized, duplicate, orphaned
    registry=REGISTRY,
)

# Stage duration histogram
stage_duration_seconds = Histogram(
    name="export_stage_duration_seconds",
    documentation="Time spent in each pipeline stage in seconds",
    labelnames=["report_type", "stage"],  # stage: classify, reconstruct, aggregate, emit
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0, 60.0],
    registry=REGISTRY,
)

# Rows in the most recent report
report_rows = Gauge(
    name="export_report_rows",
    documentation="Number of rows emitted by the most recent report run",
    labelnames=["report_type"],
    registry=REGISTRY,
)

# Runs counter
runs_total = Counter(
    name="export_runs_total",
    documentation="Total number of report runs",
    labelnames=["report_type", "status"],  # status: success, failure
    registry=REGISTRY,
)


# =======================
# HELPER FUNCTIONS
# =======================

def generate_metrics() -> bytes:
    """
    Generate Prometheus metrics in text format

    Returns:
        Metrics in Prometheus text format
    """
    return generate_latest(REGISTRY)


def write_metrics(path: str | Path) -> Path:
    """
    Write the current metrics to a file for a node-exporter textfile collector.

    Args:
        path: Destination file

    Returns:
        The path written
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(generate_metrics())
    return path


def increment_counter(counter: Counter, value: float = 1.0, **labels) -> None:
    """
    Increment a counter metric

    Args:
        counter: Prometheus Counter metric
        value: Amount to increment (default: 1.0)
        **labels: Label values for the metric
    """
    counter.labels(**labels).inc(value)


def set_gauge(gauge: Gauge, value: float, **labels) -> None:
    """Set a gauge metric value"""
    gauge.labels(**labels).set(value)


def observe_histogram(histogram: Histogram, value: float, **labels) -> None:
    """Observe a value in a histogram metric"""
    histogram.labels(**labels).observe(value)


# =======================
# RUN HELPERS
# =======================

def record_stage_duration(report_type: str, stage: str, duration_seconds: float) -> None:
    """Record how long one pipeline stage took."""
    observe_histogram(stage_duration_seconds, duration_seconds, report_type=report_type, stage=stage)


def record_run(report_type: str, stats, row_count: int, success: bool = True) -> None:
    """
    Record the outcome of one report run.

    Args:
        report_type: Registered report name
        stats: RunStats for the run (None when the run failed before classifying)
        row_count: Rows emitted
        success: Whether the run produced a report
    """
    if stats is not None:
        for status, value in (
            ("root", stats.roots),
            ("child", stats.children),
            ("blank", stats.blank_lines),
            ("malformed", stats.malformed_lines),
            ("unrecognized", stats.unrecognized_records),
            ("duplicate", stats.duplicate_records),
            ("orphaned", stats.orphaned_children),
        ):
            if value > 0:
                increment_counter(records_processed_total, value, report_type=report_type, status=status)

    set_gauge(report_rows, row_count, report_type=report_type)
    increment_counter(runs_total, 1, report_type=report_type, status="success" if success else "failure")
