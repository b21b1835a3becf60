from typing import Optional

from PyQt6.QtCore import QObject, pyqtSignal

from src.core.backend import Backend, BackendClient
from src.core.diagnostics import DiagnosticsLog
from src.core.editor import SoundEditor
from src.core.keybind import KeybindRecorder, RecordingForSound, RecordingForStopAll, RecordingSession
from src.core.library import SoundLibraryStore
from src.core.playback_queue import PlaybackQueueOrchestrator
from src.core.preferences import PreferencesController
from src.core.preview import TrimPreviewPlayer
from src.core.waveform import WaveformLoader
from src.utils.logger import logger


class Soundboard(QObject):
    """
    Client-side orchestration for the sound board.
    Wires the library, queue, keybind recorder, preview player and editor to
    one engine and one diagnostics log.
    """
    captureChanged = pyqtSignal(bool)
    previewStateChanged = pyqtSignal(bool)

    def __init__(
        self,
        backend: Backend,
        diagnostics: Optional[DiagnosticsLog] = None,
        preview: Optional[TrimPreviewPlayer] = None,
        loader: Optional[WaveformLoader] = None,
        parent: Optional[QObject] = None
    ):
        super().__init__(parent)
        self.diagnostics = diagnostics or DiagnosticsLog()
        self.client = BackendClient(backend)

        self.library = SoundLibraryStore(self.client, self.diagnostics, self)
        self.queue = PlaybackQueueOrchestrator(self.client, self.diagnostics, parent=self)
        self.preferences = PreferencesController(self.client, self.diagnostics, self)
        self.recorder = KeybindRecorder(
            self.client,
            self.diagnostics,
            on_capture_changed=self.captureChanged.emit,
            on_chord_recorded=self._on_chord_recorded,
        )
        self.preview = preview or TrimPreviewPlayer(on_state_changed=self.previewStateChanged.emit)
        self.loader = loader or WaveformLoader(parent=self)
        self.editor = SoundEditor(
            self.library, self.recorder, self.preview, self.loader, self.diagnostics, self
        )
        self.preferences.settingsChanged.connect(self._sync_overlap_mode)
        logger.info("Soundboard initialized")

    def initialize(self):
        """Startup sequence: settings, devices, sounds, Stop All chord, version."""
        self.diagnostics.info("PySoundboard initialized")
        has_primary = self.preferences.load_settings()
        self.preferences.load_devices(auto_select=not has_primary)
        self.library.reload()

        chord = self.preferences.settings.stop_all_keybind
        if chord:
            self.recorder.restore_stop_all_keybind(chord)

        self.preferences.check_for_updates()

    def _sync_overlap_mode(self):
        self.library.overlap_mode = self.preferences.settings.overlap_mode

    # --- Actions ---

    def play_sound(self, sound_id):
        return self.library.play_sound(sound_id)

    def stop_all(self):
        """Stops every sound, ends the queue session and clears the indicator."""
        ok = self.queue.stop_all()
        self.library.clear_playing()
        return ok

    def record_stop_all_keybind(self):
        self.recorder.start_for_stop_all(self.preferences.settings.stop_all_keybind)

    def clear_stop_all_keybind(self):
        self.recorder.clear_stop_all_keybind(self.preferences.settings.stop_all_keybind)

    def _on_chord_recorded(self, session: RecordingSession, chord: Optional[str]):
        self.editor.on_chord_recorded(session, chord)
        if isinstance(session, RecordingForSound):
            self.library.reload()
        elif isinstance(session, RecordingForStopAll):
            self.preferences.set_stop_all_keybind(chord)

    def shutdown(self):
        """Stops preview playback and waits for background decodes."""
        self.editor.close()
        self.preview.stop()
        self.loader.wait(2000)
        logger.info("Soundboard shut down")
