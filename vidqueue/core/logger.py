"""Structured JSON logger for the video ingestion queue.

Each log entry is a single JSON object with timestamp, level and message,
plus any context passed through ``extra=`` (most often ``job_id`` so the
lifecycle of one job can be traced across the queue and its collaborators).
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

# Attributes every LogRecord carries; anything else came from extra=
_RESERVED_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "taskName",
        "message",
    }
)


class JSONFormatter(logging.Formatter):
    """Formats log records as JSON objects.

    Output format:
        {"ts": "2026-10-18T10:30:00.123456+00:00", "level": "INFO",
         "msg": "Job completed", "logger": "vidqueue.core.video_queue",
         "job_id": "video_1760783400000_1a2b3c4d5"}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(timespec="microseconds"),
            "level": record.levelname,
            "msg": record.getMessage(),
        }

        if record.name and record.name != "root":
            log_entry["logger"] = record.name

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_entry[key] = value

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


class JobLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that includes job_id in every message.

    Usage:
        job_logger = JobLoggerAdapter(logging.getLogger(__name__), job_id="video_1_abc")
        job_logger.info("Scraping")  # record carries job_id
    """

    def __init__(self, logger: logging.Logger, job_id: str):
        super().__init__(logger, {"job_id": job_id})

    def process(
        self, msg: str, kwargs: dict[str, Any]
    ) -> tuple[str, dict[str, Any]]:
        extra = kwargs.get("extra", {})
        extra["job_id"] = self.extra["job_id"]
        kwargs["extra"] = extra
        return msg, kwargs


def setup_logging(level: str = "INFO", stream: Any = None) -> None:
    """Configure the root logger with JSON formatting.

    Args:
        level: Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        stream: Output stream (defaults to sys.stderr).
    """
    if stream is None:
        stream = sys.stderr

    root_logger = logging.getLogger()

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(JSONFormatter())

    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper()))


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger instance (root logger when name is None)."""
    return logging.getLogger(name)


def get_job_logger(name: str, job_id: str) -> JobLoggerAdapter:
    """Get a logger adapter that tags every record with job_id.

    Example:
        logger = get_job_logger(__name__, job.id)
        logger.info("Job started")
        # {"ts": "...", "level": "INFO", "msg": "Job started", "job_id": "video_..."}
    """
    return JobLoggerAdapter(get_logger(name), job_id)


def reset_logging() -> None:
    """Reset logging configuration.

    Useful for testing to ensure clean state between tests.
    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
