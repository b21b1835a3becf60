"""
Sound editing session.

Opening a sound starts a background waveform decode, exposes clamped trim
and settings edits, drives the preview player and the keybind recorder for
that sound, and writes everything back on save.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, replace
from typing import Any, Optional

from PyQt6.QtCore import QObject, pyqtSignal, pyqtSlot

from .diagnostics import DiagnosticsLog
from .keybind import KeybindRecorder, RecordingForSound, RecordingSession
from .library import SoundLibraryStore
from .models import Sound, SoundSettings
from .preview import TrimPreviewPlayer
from .trim import TrimBounds
from .waveform import EMPTY_WAVEFORM, WaveformBuffer, WaveformLoader

logger = logging.getLogger("PySoundboard")


@dataclass
class EditSession:
    """Working copy of one sound while its editor is open."""
    sound: Sound
    generation: int
    trim: TrimBounds
    settings: SoundSettings
    keybind: Optional[str]
    waveform: WaveformBuffer = EMPTY_WAVEFORM

    @property
    def duration(self) -> float:
        return self.waveform.duration


class SoundEditor(QObject):
    """
    Controller behind the sound editor dialog.

    Signals:
        sessionChanged: A session opened, closed or its working copy changed
        waveformChanged: The session's waveform arrived
    """
    sessionChanged = pyqtSignal()
    waveformChanged = pyqtSignal()

    def __init__(
        self,
        library: SoundLibraryStore,
        recorder: KeybindRecorder,
        preview: TrimPreviewPlayer,
        loader: WaveformLoader,
        diagnostics: DiagnosticsLog,
        parent: Optional[QObject] = None
    ) -> None:
        super().__init__(parent)
        self._library = library
        self._recorder = recorder
        self._preview = preview
        self._loader = loader
        self._diagnostics = diagnostics
        self._session: Optional[EditSession] = None
        self._generation = 0

        self._loader.loaded.connect(self.apply_waveform)
        self._library.soundRemoved.connect(self._on_sound_removed)

    @property
    def session(self) -> Optional[EditSession]:
        return self._session

    @property
    def is_open(self) -> bool:
        return self._session is not None

    # --- Lifecycle ---

    def open(self, sound_id: str) -> bool:
        sound = self._library.get(sound_id)
        if sound is None:
            self._diagnostics.error(f"Sound not found: {sound_id}")
            return False
        if self._session is not None:
            self.close()

        self._generation += 1
        self._session = EditSession(
            sound=sound,
            generation=self._generation,
            trim=TrimBounds(sound.start_time, sound.end_time),
            settings=sound.settings,
            keybind=sound.keybind,
        )
        self._loader.request(sound.file_path, self._generation)
        self.sessionChanged.emit()
        return True

    def close(self) -> None:
        """End the session; a decode still in flight is ignored when it lands."""
        if self._session is None:
            return
        self._preview.stop()
        if self._recorder.is_recording_for(self._session.sound.id):
            self._recorder.cancel()
        self._session = None
        self._generation += 1
        self.sessionChanged.emit()

    @pyqtSlot(int, object)
    def apply_waveform(self, generation: int, buffer: WaveformBuffer) -> bool:
        session = self._session
        if session is None or generation != session.generation:
            logger.debug("Discarding stale waveform (generation %d)", generation)
            return False
        session.waveform = buffer
        if buffer.is_empty:
            self._diagnostics.error("Failed to load waveform")
        self.waveformChanged.emit()
        return True

    def _on_sound_removed(self, sound_id: str) -> None:
        if self._session is not None and self._session.sound.id == sound_id:
            self.close()

    # --- Trim ---

    def set_start(self, value: float) -> Optional[TrimBounds]:
        session = self._session
        if session is None or session.duration <= 0:
            return None
        session.trim = session.trim.with_start(value, session.duration)
        self.sessionChanged.emit()
        return session.trim

    def set_end(self, value: float) -> Optional[TrimBounds]:
        session = self._session
        if session is None or session.duration <= 0:
            return None
        session.trim = session.trim.with_end(value, session.duration)
        self.sessionChanged.emit()
        return session.trim

    def reset_trim(self) -> None:
        if self._session is not None:
            self._session.trim = TrimBounds()
            self.sessionChanged.emit()

    # --- Settings ---

    def update_settings(self, **changes: Any) -> Optional[SoundSettings]:
        """Apply field changes (``volume=1.5`` ...) clamped to their ranges."""
        session = self._session
        if session is None:
            return None
        session.settings = replace(session.settings, **changes).clamped()
        self.sessionChanged.emit()
        return session.settings

    # --- Keybind ---

    def record_keybind(self) -> None:
        session = self._session
        if session is not None:
            self._recorder.start_for_sound(session.sound.id, session.keybind)

    def clear_keybind(self) -> None:
        session = self._session
        if session is not None:
            self._recorder.clear_sound_keybind(session.sound.id, session.keybind)

    def on_chord_recorded(self, recording: RecordingSession, chord: Optional[str]) -> None:
        session = self._session
        if (session is not None and isinstance(recording, RecordingForSound)
                and recording.sound_id == session.sound.id):
            session.keybind = chord
            self.sessionChanged.emit()

    # --- Preview ---

    def preview(self) -> bool:
        session = self._session
        if session is None or session.duration <= 0:
            return False
        start, end = session.trim.interval(session.duration)
        started = self._preview.start(session.sound.file_path, start, end)
        if started:
            self._diagnostics.info(f"Preview: {start:.1f}s - {end:.1f}s")
        else:
            self._diagnostics.error("Failed to preview")
        return started

    def stop_preview(self) -> None:
        self._preview.stop()

    # --- Persistence ---

    def save(self) -> bool:
        session = self._session
        if session is None:
            return False
        sound_id = session.sound.id
        trim = session.trim
        ok = self._library.update_trim(sound_id, trim.start_time or None, trim.end_time or None)
        ok = self._library.update_settings(sound_id, session.settings) and ok
        if ok:
            self._diagnostics.success("✓ Sound settings saved")
        self.close()
        return ok

    def remove(self) -> bool:
        session = self._session
        if session is None:
            return False
        return self._library.remove_sound(session.sound.id)
