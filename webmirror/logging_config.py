"""
Logging Configuration — stderr logging for sync runs.

Two output formats:
- text: one short line per record for someone watching a terminal
- json: one object per line for cron jobs and log shippers

Records logged with ``extra={"url": ..., "path": ..., "revision": ...}``
carry those fields as JSON keys; the text format appends the path.

## Environment Variables

- LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
- LOG_FORMAT: json, text (default: text)

## Usage

    from webmirror.logging_config import setup_logging

    setup_logging()  # Call once at startup
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional, TextIO

# Fields a sync passes through ``extra=``
EXTRA_FIELDS = ("url", "path", "revision")

# Libraries that log every request at INFO
QUIET_LOGGERS = ("httpx", "httpcore")


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record.

    Output format:
    {"ts": "...", "level": "...", "logger": "...", "message": "...", "url": "...", ...}
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in EXTRA_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                entry[name] = value

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry)


class HumanFormatter(logging.Formatter):
    """
    Short terminal lines, coloured when the stream is a TTY.

    Output format:
    12:34:56 INFO    [sync        ] New file lisp/subr.el
    """

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, color: bool = False):
        super().__init__()
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        time_str = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")

        level = f"{record.levelname:7}"
        if self.color:
            level = f"{self.COLORS.get(record.levelname, '')}{level}{self.RESET}"

        module = record.name.rsplit(".", 1)[-1][:12]
        line = f"{time_str} {level} [{module:12}] {record.getMessage()}"

        path = getattr(record, "path", None)
        if path and path not in line:
            line += f" ({path})"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(
    level: Optional[str] = None,
    format_type: Optional[str] = None,
    stream: Optional[TextIO] = None,
) -> None:
    """
    Configure the root logger.

    Args:
        level: Log level name. Defaults to LOG_LEVEL, then INFO.
               Unknown names fall back to INFO.
        format_type: "json" or "text". Defaults to LOG_FORMAT, then text.
        stream: Where records go. Defaults to stderr.
    """
    log_level = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    log_format = (format_type or os.environ.get("LOG_FORMAT", "text")).lower()
    numeric_level = logging.getLevelName(log_level)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    stream = stream or sys.stderr
    formatter: logging.Formatter
    if log_format == "json":
        formatter = JSONFormatter()
    else:
        isatty = getattr(stream, "isatty", None)
        formatter = HumanFormatter(color=bool(isatty and isatty()))

    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)
    handler.setLevel(numeric_level)

    root = logging.getLogger()
    root.setLevel(numeric_level)
    root.handlers.clear()
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(
        f"Logging configured: level={log_level}, format={log_format}"
    )
