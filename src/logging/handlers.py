# src/logging/handlers.py - v2
"""Size-based rotating file handler for the docthumb log file."""

from __future__ import annotations

import logging
import re
from logging.handlers import RotatingFileHandler
from pathlib import Path

_UNITS = {"B": 1, "KB": 1024, "MB": 1024**2, "GB": 1024**3}


def parse_size(size_str: str) -> int:
    """Parse a size string like '10MB' or '512' into bytes.

    A bare integer is read as bytes. Supported suffixes: B, KB, MB, GB
    (case-insensitive).
    """
    match = re.match(r"^(\d+)\s*(B|KB|MB|GB)?$", size_str.strip(), re.IGNORECASE)
    if not match:
        raise ValueError(f"Invalid size format: {size_str!r}. Use e.g. '10MB'.")
    unit = (match.group(2) or "B").upper()
    return int(match.group(1)) * _UNITS[unit]


def create_rotating_handler(
    log_file: str | Path,
    rotation: str = "10MB",
    retention: int = 5,
    formatter: logging.Formatter | None = None,
) -> RotatingFileHandler:
    """Create a rotating file handler, creating parent directories.

    Args:
        log_file: Path to log file (``~`` is expanded).
        rotation: Max file size before rotation (e.g. "10MB").
        retention: Number of rotated backups to keep.
        formatter: Optional formatter attached to the handler.

    Returns:
        Configured RotatingFileHandler.
    """
    path = Path(log_file).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)

    handler = RotatingFileHandler(
        filename=str(path),
        maxBytes=parse_size(rotation),
        backupCount=retention,
        encoding="utf-8",
    )
    if formatter is not None:
        handler.setFormatter(formatter)
    return handler
