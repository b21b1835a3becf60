"""
Keybind capture for PySoundboard.

A recording session waits for one key press, turns it into a canonical chord
string ("Ctrl+Shift+A") and swaps the target's global binding in the engine:
the old chord is unregistered before the new one is registered.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Union

from .backend import BackendClient, BackendError
from .diagnostics import DiagnosticsLog

logger = logging.getLogger("PySoundboard")

MODIFIER_KEYS = frozenset({"Control", "Alt", "Shift", "Meta"})


@dataclass(frozen=True, slots=True)
class KeyPress:
    """A key-down event reduced to what chord canonicalization needs.

    ``key`` uses DOM-style names: printable characters as typed (" " for the
    space bar), otherwise names such as "Enter", "ArrowUp", "F5", "Shift".
    """
    key: str
    ctrl: bool = False
    alt: bool = False
    shift: bool = False

    @property
    def is_modifier(self) -> bool:
        return self.key in MODIFIER_KEYS


def canonical_chord(press: KeyPress) -> Optional[str]:
    """
    Build the canonical chord for a key press.

    Returns:
        "Ctrl+Alt+Shift+KEY" style string, or None for a bare modifier
    """
    if press.is_modifier or not press.key:
        return None

    parts = []
    if press.ctrl:
        parts.append("Ctrl")
    if press.alt:
        parts.append("Alt")
    if press.shift:
        parts.append("Shift")
    parts.append("Space" if press.key == " " else press.key.upper())
    return "+".join(parts)


# --- Session state ---

@dataclass(frozen=True, slots=True)
class Idle:
    """No recording in progress."""


@dataclass(frozen=True, slots=True)
class RecordingForSound:
    sound_id: str
    previous_chord: Optional[str] = None


@dataclass(frozen=True, slots=True)
class RecordingForStopAll:
    previous_chord: Optional[str] = None


RecordingSession = Union[Idle, RecordingForSound, RecordingForStopAll]
IDLE = Idle()


class KeybindRecorder:
    """
    Keybind recording state machine.

    Args:
        client: Engine command client
        diagnostics: Diagnostics sink
        on_capture_changed: Called with True when key capture must start and
            False when it must stop
        on_chord_recorded: Called with (session, chord) after a chord has
            been applied, and with (session, None) after a chord was cleared
    """

    def __init__(
        self,
        client: BackendClient,
        diagnostics: DiagnosticsLog,
        on_capture_changed: Optional[Callable[[bool], None]] = None,
        on_chord_recorded: Optional[Callable[[RecordingSession, Optional[str]], None]] = None
    ) -> None:
        self._client = client
        self._diagnostics = diagnostics
        self._on_capture_changed = on_capture_changed
        self._on_chord_recorded = on_chord_recorded
        self._session: RecordingSession = IDLE

    @property
    def session(self) -> RecordingSession:
        return self._session

    @property
    def is_recording(self) -> bool:
        return not isinstance(self._session, Idle)

    def is_recording_for(self, sound_id: str) -> bool:
        return isinstance(self._session, RecordingForSound) and self._session.sound_id == sound_id

    # --- Session lifecycle ---

    def start_for_sound(self, sound_id: str, current_chord: Optional[str] = None) -> None:
        self._open(RecordingForSound(sound_id, current_chord))
        self._diagnostics.info("Press a key combination for the sound...")

    def start_for_stop_all(self, current_chord: Optional[str] = None) -> None:
        self._open(RecordingForStopAll(current_chord))
        self._diagnostics.info("Press a key combination for Stop All...")

    def cancel(self) -> None:
        """Close the session without touching any binding."""
        if self.is_recording:
            logger.debug("Keybind recording cancelled")
            self._close()

    def _open(self, session: RecordingSession) -> None:
        # Nothing is registered until a key arrives, so replacing an open
        # session never leaves a binding behind.
        was_recording = self.is_recording
        self._session = session
        if not was_recording:
            self._notify_capture(True)

    def _close(self) -> None:
        self._session = IDLE
        self._notify_capture(False)

    def _notify_capture(self, active: bool) -> None:
        if self._on_capture_changed:
            self._on_capture_changed(active)

    # --- Key handling ---

    def handle_key(self, press: KeyPress) -> bool:
        """
        Feed one key-down event.

        Returns:
            True if the event was consumed by the recorder
        """
        session = self._session
        if isinstance(session, Idle):
            return False

        chord = canonical_chord(press)
        if chord is None:
            return True  # Modifier alone: keep waiting

        try:
            self._apply(session, chord)
        finally:
            self._close()
        return True

    def _apply(self, session: RecordingSession, chord: str) -> None:
        if isinstance(session, RecordingForStopAll):
            if session.previous_chord:
                self._unregister_stop_all(session.previous_chord)
            self._register_stop_all(chord)
            self._persist(lambda: self._client.set_stop_all_keybind(chord), "Stop All keybind")
        elif isinstance(session, RecordingForSound):
            if session.previous_chord:
                self._unregister_sound(session.previous_chord)
            self._register_sound(session.sound_id, chord)
            self._persist(
                lambda: self._client.update_sound_keybind(session.sound_id, chord),
                "Keybind"
            )
        if self._on_chord_recorded:
            self._on_chord_recorded(session, chord)

    # --- Clearing ---

    def clear_sound_keybind(self, sound_id: str, chord: Optional[str]) -> None:
        if chord:
            self._unregister_sound(chord)
        self._persist(lambda: self._client.update_sound_keybind(sound_id, None), "Keybind")
        if self._on_chord_recorded:
            self._on_chord_recorded(RecordingForSound(sound_id, chord), None)

    def clear_stop_all_keybind(self, chord: Optional[str]) -> None:
        if chord:
            self._unregister_stop_all(chord)
        self._persist(lambda: self._client.set_stop_all_keybind(None), "Stop All keybind")
        if self._on_chord_recorded:
            self._on_chord_recorded(RecordingForStopAll(chord), None)

    def restore_stop_all_keybind(self, chord: str) -> None:
        """Register a saved Stop All chord without persisting it again."""
        self._register_stop_all(chord)

    # --- Engine calls ---

    def _register_sound(self, sound_id: str, chord: str) -> None:
        try:
            self._client.register_sound_keybind(sound_id, chord)
            self._diagnostics.success(f"Global keybind registered: {chord}")
        except BackendError as e:
            self._diagnostics.warning(f"Failed to register keybind: {e}")

    def _unregister_sound(self, chord: str) -> None:
        try:
            self._client.unregister_sound_keybind(chord)
        except BackendError as e:
            logger.debug("Ignoring unregister failure for %s: %s", chord, e)

    def _register_stop_all(self, chord: str) -> None:
        try:
            self._client.register_stop_all_keybind(chord)
            self._diagnostics.success(f"Stop All keybind registered: {chord}")
        except BackendError as e:
            self._diagnostics.warning(f"Failed to register stop all keybind: {e}")

    def _unregister_stop_all(self, chord: str) -> None:
        try:
            self._client.unregister_stop_all_keybind(chord)
        except BackendError as e:
            logger.debug("Ignoring unregister failure for %s: %s", chord, e)

    def _persist(self, call: Callable[[], None], what: str) -> None:
        try:
            call()
            self._diagnostics.success(f"✓ {what} updated")
        except BackendError as e:
            self._diagnostics.error(f"✗ Failed to save {what}: {e}")
