"""
Diagnostics sink for PySoundboard.

Every component reports through one append-only log that keeps only the most
recent entries. Entries are mirrored to the application logger so the console
and the in-app log tell the same story.
"""
from __future__ import annotations
import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from .config import DIAGNOSTICS_CONFIG, Severity

logger = logging.getLogger("PySoundboard")

_LOG_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.SUCCESS: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


@dataclass(frozen=True, slots=True)
class LogEntry:
    """One line of the diagnostics log."""
    timestamp: str
    message: str
    severity: Severity


class DiagnosticsLog:
    """
    Capped, append-only diagnostics log.

    Listeners are called with each new entry; a failing listener is logged
    and never interrupts the component that reported.
    """
    __slots__ = ('_entries', '_clock', '_listeners')

    def __init__(
        self,
        max_entries: int = DIAGNOSTICS_CONFIG.max_entries,
        clock: Optional[Callable[[], datetime]] = None
    ) -> None:
        self._entries: deque[LogEntry] = deque(maxlen=max_entries)
        self._clock = clock or datetime.now
        self._listeners: list[Callable[[LogEntry], None]] = []

    @property
    def entries(self) -> tuple[LogEntry, ...]:
        """Snapshot of the retained entries, oldest first."""
        return tuple(self._entries)

    @property
    def max_entries(self) -> int:
        return self._entries.maxlen or 0

    def __len__(self) -> int:
        return len(self._entries)

    def subscribe(self, listener: Callable[[LogEntry], None]) -> None:
        self._listeners.append(listener)

    def add(self, message: str, severity: Severity = Severity.INFO) -> LogEntry:
        timestamp = self._clock().strftime(DIAGNOSTICS_CONFIG.timestamp_format)
        entry = LogEntry(timestamp, message, severity)
        self._entries.append(entry)
        logger.log(_LOG_LEVELS[severity], message)

        for listener in list(self._listeners):
            try:
                listener(entry)
            except Exception as e:
                logger.error("Diagnostics listener failed: %s", e, exc_info=True)
        return entry

    def info(self, message: str) -> LogEntry:
        return self.add(message, Severity.INFO)

    def success(self, message: str) -> LogEntry:
        return self.add(message, Severity.SUCCESS)

    def warning(self, message: str) -> LogEntry:
        return self.add(message, Severity.WARNING)

    def error(self, message: str) -> LogEntry:
        return self.add(message, Severity.ERROR)

    def clear(self) -> None:
        self._entries.clear()
