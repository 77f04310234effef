"""
Unit tests for structured logging and Prometheus metrics.
"""

import json
import logging

import pytest

from export_insights.core.models import RunStats
from export_insights.observability.logger import CustomJsonFormatter, log_operation, setup_logger
from export_insights.observability.metrics import (
    REGISTRY,
    generate_metrics,
    record_run,
    record_stage_duration,
    write_metrics,
)


def sample(name, **labels):
    return REGISTRY.get_sample_value(name, labels) or 0.0


@pytest.mark.unit
class TestLogging:
    """Tests for logger setup"""

    def test_json_formatter_fields(self):
        formatter = CustomJsonFormatter(fmt="%(timestamp)s %(level)s %(logger)s %(message)s")
        record = logging.LogRecord("export-insights.test", logging.WARNING, __file__, 10, "hello", None, None)

        payload = json.loads(formatter.format(record))

        assert payload["message"] == "hello"
        assert payload["level"] == "WARNING"
        assert payload["logger"] == "export-insights.test"
        assert "timestamp" in payload

    def test_setup_logger_level_from_argument(self):
        logger = setup_logger("export-insights.level-test", level="debug", format_type="text")

        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert logger.propagate is False

    def test_log_operation_records_duration(self):
        logger = setup_logger("export-insights.op-test", level="CRITICAL")

        with log_operation("noop", logger=logger) as op:
            pass

        assert op.duration >= 0.0

    def test_log_operation_does_not_swallow(self):
        logger = setup_logger("export-insights.op-test", level="CRITICAL")

        with pytest.raises(KeyError):
            with log_operation("failing", logger=logger):
                raise KeyError("boom")


@pytest.mark.unit
class TestMetrics:
    """Tests for run metrics"""

    def test_metric_names_exposed(self):
        output = generate_metrics().decode("utf-8")

        assert "export_records_processed_total" in output
        assert "export_stage_duration_seconds" in output
        assert "export_runs_total" in output

    def test_record_run_counts_by_status(self):
        before_malformed = sample("export_records_processed_total", report_type="metrics_test", status="malformed")
        before_runs = sample("export_runs_total", report_type="metrics_test", status="success")

        record_run("metrics_test", RunStats(roots=3, malformed_lines=2), row_count=5)

        assert sample("export_records_processed_total", report_type="metrics_test", status="malformed") \
            == before_malformed + 2
        assert sample("export_runs_total", report_type="metrics_test", status="success") == before_runs + 1
        assert sample("export_report_rows", report_type="metrics_test") == 5

    def test_record_failed_run(self):
        before = sample("export_runs_total", report_type="metrics_test", status="failure")

        record_run("metrics_test", None, 0, success=False)

        assert sample("export_runs_total", report_type="metrics_test", status="failure") == before + 1

    def test_stage_duration_and_write(self, tmp_path):
        record_stage_duration("metrics_test", "classify", 0.02)

        path = write_metrics(tmp_path / "metrics" / "export.prom")

        assert path.exists()
        assert 'stage="classify"' in path.read_text()
