"""
Tests for translating Qt key events into chord key presses.
"""
import pytest
from PyQt6.QtCore import QEvent, QObject, Qt
from PyQt6.QtGui import QAction, QKeyEvent, QKeySequence
from PyQt6.QtTest import QTest
from PyQt6.QtWidgets import QMainWindow

from src.core.keybind import KeybindRecorder, KeyPress, canonical_chord
from src.ui.key_capture import KeyCaptureFilter, key_press_from_qt


class RecordingRecorder:
    def __init__(self, consume=True, is_recording=True):
        self.presses = []
        self.consume = consume
        self.is_recording = is_recording

    def handle_key(self, press):
        self.presses.append(press)
        return self.consume


class TestKeyPressFromQt:
    """Tests for key_press_from_qt."""

    @pytest.mark.parametrize("key, expected", [
        (Qt.Key.Key_A, "Ctrl+A"),
        (Qt.Key.Key_5, "Ctrl+5"),
        (Qt.Key.Key_F5, "Ctrl+F5"),
        (Qt.Key.Key_Space, "Ctrl+Space"),
        (Qt.Key.Key_Return, "Ctrl+ENTER"),
        (Qt.Key.Key_Up, "Ctrl+ARROWUP"),
    ])
    def test_chord_names(self, key, expected):
        press = key_press_from_qt(key.value, ctrl=True)
        assert canonical_chord(press) == expected

    def test_control_character_text_ignored(self):
        press = key_press_from_qt(Qt.Key.Key_B.value, "\x02", ctrl=True)
        assert press == KeyPress("B", ctrl=True)

    def test_modifier_alone(self):
        press = key_press_from_qt(Qt.Key.Key_Shift.value, shift=True)
        assert press.is_modifier
        assert canonical_chord(press) is None

    def test_text_fallback(self):
        assert key_press_from_qt(0x00e9, "é") == KeyPress("é")

    def test_unnamed_key(self):
        assert key_press_from_qt(Qt.Key.Key_VolumeUp.value) is None


class TestKeyCaptureFilter:
    """Tests for KeyCaptureFilter."""

    @pytest.fixture
    def target(self, qapp):
        return QObject()

    def test_key_press_forwarded(self, target):
        recorder = RecordingRecorder()
        key_filter = KeyCaptureFilter(recorder)
        event = QKeyEvent(QEvent.Type.KeyPress, Qt.Key.Key_K.value,
                          Qt.KeyboardModifier.ControlModifier | Qt.KeyboardModifier.ShiftModifier, "K")
        assert key_filter.eventFilter(target, event)
        assert recorder.presses == [KeyPress("K", ctrl=True, shift=True)]

    def test_auto_repeat_ignored(self, target):
        recorder = RecordingRecorder()
        key_filter = KeyCaptureFilter(recorder)
        event = QKeyEvent(QEvent.Type.KeyPress, Qt.Key.Key_K.value,
                          Qt.KeyboardModifier.NoModifier, "k", True)
        assert not key_filter.eventFilter(target, event)
        assert recorder.presses == []

    def test_release_ignored(self, target):
        recorder = RecordingRecorder()
        key_filter = KeyCaptureFilter(recorder)
        event = QKeyEvent(QEvent.Type.KeyRelease, Qt.Key.Key_K.value, Qt.KeyboardModifier.NoModifier)
        assert not key_filter.eventFilter(target, event)

    def test_install_once(self, target):
        key_filter = KeyCaptureFilter(RecordingRecorder())
        key_filter.install(target)
        key_filter.install(QObject())
        assert key_filter.installed_on is target
        key_filter.remove()
        assert key_filter.installed_on is None

    def test_shortcut_override_claimed_while_recording(self, target):
        recorder = RecordingRecorder()
        key_filter = KeyCaptureFilter(recorder)
        event = QKeyEvent(QEvent.Type.ShortcutOverride, Qt.Key.Key_O.value,
                          Qt.KeyboardModifier.ControlModifier, "o")
        event.ignore()
        assert key_filter.eventFilter(target, event)
        assert event.isAccepted()
        # The chord itself is recorded from the KeyPress that follows
        assert recorder.presses == []

    def test_shortcut_override_passes_when_idle(self, target):
        key_filter = KeyCaptureFilter(RecordingRecorder(is_recording=False))
        event = QKeyEvent(QEvent.Type.ShortcutOverride, Qt.Key.Key_O.value,
                          Qt.KeyboardModifier.ControlModifier, "o")
        event.ignore()
        assert not key_filter.eventFilter(target, event)
        assert not event.isAccepted()

    def test_shortcut_override_ignores_modifier(self, target):
        key_filter = KeyCaptureFilter(RecordingRecorder())
        event = QKeyEvent(QEvent.Type.ShortcutOverride, Qt.Key.Key_Control.value,
                          Qt.KeyboardModifier.ControlModifier)
        assert not key_filter.eventFilter(target, event)


class TestCaptureAgainstShortcuts:
    """Tests for recording a chord that a window action also uses."""

    @pytest.fixture
    def window(self, qapp):
        window = QMainWindow()
        window.fired = []
        action = QAction("Open", window)
        action.setShortcut(QKeySequence("Ctrl+O"))
        action.triggered.connect(lambda: window.fired.append(True))
        window.addAction(action)
        window.show()
        window.activateWindow()
        QTest.qWaitForWindowExposed(window)
        yield window
        window.close()

    def test_recorder_gets_chord_before_action(self, window, qapp, client, diagnostics, backend):
        recorder = KeybindRecorder(client, diagnostics)
        key_filter = KeyCaptureFilter(recorder)
        key_filter.install(qapp)
        try:
            recorder.start_for_stop_all()
            QTest.keyClick(window, Qt.Key.Key_O, Qt.KeyboardModifier.ControlModifier)
        finally:
            key_filter.remove()

        assert window.fired == []
        assert not recorder.is_recording
        assert backend.args_of("set_stop_all_keybind") == [{"keybind": "Ctrl+O"}]
