"""
Trim bound arithmetic.

Start and end are edited one at a time; each edit is clamped against the
other bound so the window never shrinks below ``TRIM_CONFIG.min_gap_seconds``
and never leaves [0, duration].
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from .config import TRIM_CONFIG


def _bounded(value: float, duration: float) -> float:
    return max(0.0, min(duration, value))


@dataclass(frozen=True, slots=True)
class TrimBounds:
    """Optional trim bounds of one sound, in seconds."""
    start_time: Optional[float] = None
    end_time: Optional[float] = None

    def effective_start(self) -> float:
        return self.start_time or 0.0

    def effective_end(self, duration: float) -> float:
        return self.end_time if self.end_time else duration

    def with_start(
        self, value: float, duration: float, min_gap: float = TRIM_CONFIG.min_gap_seconds
    ) -> "TrimBounds":
        """Set the start, keeping it at least ``min_gap`` before the end."""
        start = min(value, self.effective_end(duration) - min_gap)
        return TrimBounds(_bounded(start, duration), self.end_time)

    def with_end(
        self, value: float, duration: float, min_gap: float = TRIM_CONFIG.min_gap_seconds
    ) -> "TrimBounds":
        """Set the end, keeping it at least ``min_gap`` after the start."""
        end = max(value, self.effective_start() + min_gap)
        return TrimBounds(self.start_time, _bounded(end, duration))

    def interval(self, duration: float) -> tuple[float, float]:
        """Concrete [start, end) interval to play."""
        return self.effective_start(), self.effective_end(duration)


def resolve_trim(
    start_time: Optional[float],
    end_time: Optional[float],
    duration: float,
    min_gap: float = TRIM_CONFIG.min_gap_seconds
) -> TrimBounds:
    """
    Normalize a requested (start, end) pair.

    The end is applied first and the start is then pulled back so that
    start <= end - min_gap, e.g. (5, 3) on a 10 s clip resolves to (2.5, 3).
    """
    bounds = TrimBounds()
    if end_time is not None:
        bounds = bounds.with_end(end_time, duration, min_gap)
    if start_time is not None:
        bounds = bounds.with_start(start_time, duration, min_gap)
    return bounds
