"""Centralized logging configuration for simplessh.

The library itself only emits records on the ``simplessh`` loggers; handlers
are installed by applications (and by the ``simplessh`` command) through
:func:`setup_logging`. Extra fields passed with ``extra=`` are kept, so audit
records stay structured in both text and JSON output.
"""

import json
import logging
import logging.handlers

from pathlib import Path

from simplessh.config import CONFIG


TEXT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
TEXT_DATEFMT = "%Y-%m-%d %H:%M:%S"


def get_log_directory() -> Path:
    """Get the log directory path, creating it if necessary."""
    log_dir = CONFIG.log_dir if CONFIG.log_dir else Path.home() / ".local" / "share" / "simplessh" / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def get_log_level() -> int:
    """Get the log level from configuration (defaults to INFO)."""
    return getattr(logging, CONFIG.log_level, logging.INFO)


class StructuredFormatter(logging.Formatter):
    """
    Structured log formatter supporting extra fields.

    Format: TIMESTAMP | LEVEL | MODULE | MESSAGE | key=value ...
    Extra fields added to LogRecord are appended as key=value pairs.
    """

    STANDARD_FIELDS = set(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}

    def format(self, record: logging.LogRecord) -> str:
        base_msg = super().format(record)
        extra_fields = [f"{k}={v}" for k, v in record.__dict__.items() if k not in self.STANDARD_FIELDS]

        return f"{base_msg} | {' | '.join(extra_fields)}" if extra_fields else base_msg


class JSONFormatter(logging.Formatter):
    """JSON log formatter for machine-readable logs."""

    EXCLUDE_FIELDS = set(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in self.EXCLUDE_FIELDS and key not in log_data:
                log_data[key] = value

        return json.dumps(log_data, default=str)


def _rotating_handler(path: Path, formatter: logging.Formatter, level: int) -> logging.Handler:
    handler = logging.handlers.TimedRotatingFileHandler(
        filename=path,
        when="midnight",
        interval=1,
        backupCount=CONFIG.log_retention_days,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.suffix = "%Y-%m-%d"
    return handler


def setup_logging(log_to_files: bool = True):
    """Set up logging with structured formatters and rotation.

    Args:
        log_to_files: Also write rotating text and JSON logs to the log directory.
    """
    log_level = get_log_level()

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(StructuredFormatter(TEXT_FORMAT, datefmt=TEXT_DATEFMT))
    root_logger.addHandler(console_handler)

    if not log_to_files:
        return

    log_dir = get_log_directory()
    root_logger.addHandler(
        _rotating_handler(log_dir / "simplessh.log", StructuredFormatter(TEXT_FORMAT, datefmt=TEXT_DATEFMT), log_level)
    )
    root_logger.addHandler(
        _rotating_handler(log_dir / "simplessh.json", JSONFormatter(datefmt="%Y-%m-%dT%H:%M:%S"), log_level)
    )

    root_logger.debug(f"Logging initialized: {log_dir}")
