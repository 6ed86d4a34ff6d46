# src/logging/logger.py - v2
"""Logger factory with JSON and text formatters."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from docthumb.logging.context import get_context

ROOT_LOGGER = "docthumb"


class JsonFormatter(logging.Formatter):
    """One JSON object per line, with the current log context attached."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context_dict = get_context().as_dict()
        if context_dict:
            log_entry["context"] = context_dict

        if hasattr(record, "data") and record.data:  # type: ignore[attr-defined]
            log_entry["data"] = record.data  # type: ignore[attr-defined]

        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable text formatter for terminals."""

    def format(self, record: logging.LogRecord) -> str:
        ctx = get_context()
        parts = [
            datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S"),
            f"[{record.levelname:8s}]",
            record.name,
        ]
        if ctx.document_id:
            parts.append(f"[{ctx.document_id}]")
        if ctx.step:
            parts.append(f"({ctx.step})")
        parts.append(f": {record.getMessage()}")
        line = " ".join(parts)
        if record.exc_info and record.exc_info[1] is not None:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def get_logger(name: str) -> logging.Logger:
    """Get a named logger under the docthumb root."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def setup_logging(
    level: str = "INFO",
    log_format: str = "text",
    log_file: str | Path | None = None,
    rotation: str = "10MB",
    retention: int = 5,
) -> None:
    """Configure the root docthumb logger.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        log_format: Output format ("json" or "text").
        log_file: Path to log file (None = stderr only).
        rotation: Max file size before rotation (e.g. "10MB").
        retention: Number of rotated files to keep.
    """
    root_logger = logging.getLogger(ROOT_LOGGER)
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Re-init must not stack handlers
    root_logger.handlers.clear()

    formatter: logging.Formatter
    if log_format == "json":
        formatter = JsonFormatter()
    else:
        formatter = TextFormatter()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        from docthumb.logging.handlers import create_rotating_handler

        root_logger.addHandler(
            create_rotating_handler(
                log_file, rotation=rotation, retention=retention, formatter=formatter
            )
        )
