"""
Logging configuration for spanlabels.

Library modules only ever do ``logger = logging.getLogger(__name__)``;
handlers are installed by the application (the CLI) through
setup_logging().

Provides:
- JSON-formatted records for machine consumption
- Human-readable records for interactive use
- A per-run correlation id (the CLI uses the input file name)

Logs go to stderr so command output on stdout stays parseable.

Usage:
    from spanlabels.logging import setup_logging, set_run_id

    setup_logging(level="DEBUG")
    set_run_id("batch-0042")
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any

run_id_var: ContextVar[str | None] = ContextVar("run_id", default=None)

# Attributes every LogRecord has; anything else came in through extra=
_RECORD_ATTRS = frozenset({
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "taskName", "message",
})


def get_run_id() -> str | None:
    """Get the current run correlation ID."""
    return run_id_var.get()


def set_run_id(run_id: str | None) -> None:
    """Set the current run correlation ID."""
    run_id_var.set(run_id)


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value for key, value in record.__dict__.items()
        if key not in _RECORD_ATTRS and not key.startswith("_")
    }


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record.

    Output format:
    {
        "timestamp": "2024-01-15T10:30:00.123456Z",
        "level": "WARNING",
        "logger": "spanlabels.core.matcher",
        "message": "Fragment not found in source: 'fox'",
        "run_id": "prompt-17.json",
        ...
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        run_id = get_run_id()
        if run_id:
            log_data["run_id"] = run_id

        if record.levelno >= logging.WARNING:
            log_data["source"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in _extra_fields(record).items():
            try:
                json.dumps(value)
                log_data[key] = value
            except (TypeError, ValueError):
                log_data[key] = str(value)

        return json.dumps(log_data, default=str)


class DevelopmentFormatter(logging.Formatter):
    """
    Human-readable formatter.

    Output format:
    2024-01-15 10:30:00 DEBUG    [prompt-1] [spanlabels.core.pipeline.merger] Merger: 4 spans -> 3
    """

    COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow
        "ERROR": "\033[31m",     # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True) -> None:
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        level = f"{record.levelname:8}"
        if self.use_colors:
            level = f"{self.COLORS.get(record.levelname, '')}{level}{self.RESET}"

        extras = " ".join(f"{key}={value}" for key, value in _extra_fields(record).items())
        extra_str = f" {extras}" if extras else ""

        run_id = get_run_id()
        run_str = f" [{run_id}]" if run_id else ""

        message = f"{timestamp} {level}{run_str} [{record.name}] {record.getMessage()}{extra_str}"
        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)
        return message


def setup_logging(
    level: str = "WARNING",
    json_format: bool = False,
    log_file: str | None = None,
) -> None:
    """
    Configure root logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: Use JSON formatting
        log_file: Optional file path; file logs are always JSON
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.WARNING))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if json_format:
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = DevelopmentFormatter(use_colors=sys.stderr.isatty())

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)
