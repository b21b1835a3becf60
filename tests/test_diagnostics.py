"""
Tests for the diagnostics sink.
"""
import logging
from datetime import datetime

from src.core.config import DIAGNOSTICS_CONFIG, Severity
from src.core.diagnostics import DiagnosticsLog


class TestDiagnosticsLog:
    """Tests for DiagnosticsLog."""

    def test_capped_at_max_entries(self):
        log = DiagnosticsLog()
        for i in range(DIAGNOSTICS_CONFIG.max_entries + 20):
            log.info(f"message {i}")
        assert len(log) == 100
        assert log.entries[0].message == "message 20"
        assert log.entries[-1].message == "message 119"

    def test_entry_fields(self):
        log = DiagnosticsLog(clock=lambda: datetime(2024, 1, 1, 13, 5, 9))
        entry = log.success("✓ Sound removed")
        assert entry.timestamp == "13:05:09"
        assert entry.severity == Severity.SUCCESS

    def test_severity_helpers(self):
        log = DiagnosticsLog()
        log.info("a")
        log.success("b")
        log.warning("c")
        log.error("d")
        assert [e.severity for e in log.entries] == [
            Severity.INFO, Severity.SUCCESS, Severity.WARNING, Severity.ERROR
        ]

    def test_listener_receives_entries(self):
        log = DiagnosticsLog()
        seen = []
        log.subscribe(seen.append)
        entry = log.warning("careful")
        assert seen == [entry]

    def test_failing_listener_does_not_interrupt(self):
        log = DiagnosticsLog()

        def broken(entry):
            raise RuntimeError("widget deleted")

        log.subscribe(broken)
        log.error("still recorded")
        assert log.entries[-1].message == "still recorded"

    def test_mirrored_to_logger(self, caplog):
        log = DiagnosticsLog()
        with caplog.at_level(logging.INFO, logger="PySoundboard"):
            log.error("Failed to load sounds")
        assert any(r.levelno == logging.ERROR and r.message == "Failed to load sounds"
                   for r in caplog.records)

    def test_clear(self):
        log = DiagnosticsLog(max_entries=3)
        log.info("x")
        log.clear()
        assert len(log) == 0
        assert log.max_entries == 3
