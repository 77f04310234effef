"""
Structured JSON logging for export-insights

Every pipeline stage logs through loggers configured here so that run
summaries (line counts, skipped records, stage durations) can be parsed
by whatever collects the process output.
"""
import logging
import os
import sys
import time

from pythonjsonlogger import jsonlogger

DEFAULT_LOGGER_NAME = "export-insights"

JSON_FORMAT = "%(timestamp)s %(level)s %(logger)s %(module)s %(function)s %(message)s"
TEXT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s [%(module)s:%(funcName)s] %(message)s"


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter that stamps every record with timestamp, level,
    logger name and call site.
    """

    def add_fields(self, log_record: dict, record: logging.LogRecord, message_dict: dict) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = log_record.get("timestamp") or self.formatTime(record, self.datefmt)
        log_record["level"] = (log_record.get("level") or record.levelname).upper()
        log_record.update(logger=record.name, module=record.module, function=record.funcName)


def build_formatter(format_type: str) -> logging.Formatter:
    """Formatter for ``json`` (default) or ``text`` output."""
    if format_type == "text":
        return logging.Formatter(fmt=TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    return CustomJsonFormatter(fmt=JSON_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S")


def setup_logger(
    name: str = DEFAULT_LOGGER_NAME,
    level: str | None = None,
    format_type: str | None = None,
) -> logging.Logger:
    """
    Setup and configure a logger

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL);
            falls back to the LOG_LEVEL environment variable
        format_type: "json" or "text"; falls back to LOG_FORMAT

    Returns:
        Configured logger instance
    """
    level_name = (level or os.getenv("LOG_LEVEL") or "INFO").upper()
    log_level = logging.getLevelName(level_name)
    if not isinstance(log_level, int):
        log_level = logging.INFO

    # Reports may go to stdout, logs go to stderr
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)
    handler.setFormatter(build_formatter((format_type or os.getenv("LOG_FORMAT") or "json").lower()))

    logger = logging.getLogger(name)
    logger.setLevel(log_level)
    # Re-running setup replaces the handler instead of stacking another
    logger.handlers[:] = [handler]
    logger.propagate = False

    return logger


def get_logger(name: str = DEFAULT_LOGGER_NAME) -> logging.Logger:
    """
    Get a logger instance, configuring it on first use

    Args:
        name: Logger name
    """
    logger = logging.getLogger(name)
    return logger if logger.handlers else setup_logger(name)


class log_operation:
    """
    Context manager that logs the start and end of a pipeline stage and
    keeps its wall-clock duration on ``.duration``.

    Usage:
        with log_operation("Classifying records", logger=logger, report_type="rfm") as op:
            ...
        record_stage_duration("rfm", "classify", op.duration)
    """

    def __init__(self, operation_name: str, logger: logging.Logger | None = None, **extra_fields):
        self.operation_name = operation_name
        self.logger = logger or get_logger()
        self.fields = {"operation": operation_name, **extra_fields}
        self.started: float = 0.0
        self.duration: float = 0.0

    def __enter__(self):
        self.logger.info(f"Starting: {self.operation_name}", extra=self.fields)
        self.started = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration = time.perf_counter() - self.started
        fields = {**self.fields, "duration_seconds": round(self.duration, 3)}

        if exc_type is not None:
            fields.update(status="error", error_type=exc_type.__name__, error_message=str(exc_val))
            self.logger.error(f"Failed: {self.operation_name}", extra=fields, exc_info=True)
        else:
            self.logger.info(f"Completed: {self.operation_name}", extra={**fields, "status": "success"})

        # Never suppress the exception
        return False
