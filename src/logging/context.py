# src/logging/context.py - v2
"""Contextual logging support: attach run_id, document_id and step to records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Set per build pass and per document; asyncio tasks inherit a copy.
_run_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "run_id", default=None
)
_document_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "document_id", default=None
)
_step: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "step", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    run_id: str | None = None
    document_id: str | None = None
    step: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        run_id=_run_id.get(),
        document_id=_document_id.get(),
        step=_step.get(),
    )


def set_run_context(run_id: str) -> None:
    """Set run-level context (called once per build pass)."""
    _run_id.set(run_id)


def set_document_context(document_id: str, step: str | None = None) -> None:
    """Set document-level context (called per candidate)."""
    _document_id.set(document_id)
    _step.set(step)


def set_step(step: str | None) -> None:
    _step.set(step)


def clear_context() -> None:
    """Reset all context variables."""
    _run_id.set(None)
    _document_id.set(None)
    _step.set(None)
