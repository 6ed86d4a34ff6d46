# src/tracking/progress.py - v1
"""Log-based progress counter for a build pass."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from docthumb.core.models import GenerationReport

logger = logging.getLogger(__name__)


class ProgressReporter:
    """Counts processed items and logs at roughly every ``step_pct`` percent."""

    def __init__(self, label: str = "Generating thumbnails", step_pct: int = 10) -> None:
        self._label = label
        self._step_pct = max(1, step_pct)
        self._total = 0
        self._current = 0
        self._last_logged_pct = -1
        self._t0 = 0.0

    @property
    def total(self) -> int:
        return self._total

    @property
    def current(self) -> int:
        return self._current

    def start(self, total: int) -> None:
        self._total = total
        self._current = 0
        self._last_logged_pct = -1
        self._t0 = time.perf_counter()
        logger.info("%s: %d candidate(s)", self._label, total)

    def tick(self, n: int = 1) -> None:
        self._current += n
        if not self._total:
            return
        pct = int(self._current * 100 / self._total)
        bucket = pct - pct % self._step_pct
        if bucket > self._last_logged_pct or self._current == self._total:
            self._last_logged_pct = bucket
            logger.info("%s: %d/%d (%d%%)", self._label, self._current, self._total, pct)
        else:
            logger.debug("%s: %d/%d", self._label, self._current, self._total)

    def finish(self, report: GenerationReport | None = None) -> float:
        """Log completion counts and return elapsed seconds."""
        elapsed = time.perf_counter() - self._t0 if self._t0 else 0.0
        if report is None:
            logger.info("%s: done in %.2fs", self._label, elapsed)
        else:
            logger.info(
                "%s: done in %.2fs (%s)",
                self._label,
                elapsed,
                ", ".join(f"{k}={v}" for k, v in report.counts().items()),
                extra={"data": report.counts()},
            )
        return elapsed
