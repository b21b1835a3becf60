"""
PySoundboard Core Module

This module contains the client-side orchestration logic:
- Soundboard: Wires every component to one engine
- SoundLibraryStore: Ordered sound list with drag-to-reorder
- PlaybackQueueOrchestrator: Queue playback with completion polling
- KeybindRecorder: Chord capture and global keybind swaps
- WaveformAnalyzer: Mean-magnitude waveform buckets
- TrimPreviewPlayer: One-shot preview of a trim window
- LocalAudioEngine: In-process engine behind the command boundary
"""
from .backend import Backend, BackendClient, BackendError, SoundboardError
from .config import (
    AUDIO_CONFIG,
    WAVEFORM_CONFIG,
    TRIM_CONFIG,
    QUEUE_CONFIG,
    DIAGNOSTICS_CONFIG,
    SOUND_LIMITS,
    LIBRARY_CONFIG,
    PlaybackState,
    Severity
)
from .diagnostics import DiagnosticsLog, LogEntry
from .editor import SoundEditor
from .engine import LocalAudioEngine
from .keybind import KeybindRecorder, KeyPress, canonical_chord
from .library import SoundLibraryStore, move_item
from .models import AudioDevice, Settings, Sound, SoundSettings, UpdateInfo
from .playback_queue import PlaybackQueueOrchestrator
from .preferences import PreferencesController
from .preview import TrimPreviewPlayer
from .soundboard import Soundboard
from .trim import TrimBounds, resolve_trim
from .waveform import WaveformAnalyzer, WaveformBuffer, WaveformLoader

__all__ = [
    # Main classes
    'Soundboard',
    'SoundLibraryStore',
    'PlaybackQueueOrchestrator',
    'KeybindRecorder',
    'WaveformAnalyzer',
    'WaveformLoader',
    'TrimPreviewPlayer',
    'SoundEditor',
    'PreferencesController',
    'DiagnosticsLog',
    'LocalAudioEngine',
    # Engine boundary
    'Backend',
    'BackendClient',
    'BackendError',
    'SoundboardError',
    # Data
    'Sound',
    'SoundSettings',
    'Settings',
    'AudioDevice',
    'UpdateInfo',
    'LogEntry',
    'KeyPress',
    'TrimBounds',
    'WaveformBuffer',
    # Helpers
    'canonical_chord',
    'move_item',
    'resolve_trim',
    # Config
    'AUDIO_CONFIG',
    'WAVEFORM_CONFIG',
    'TRIM_CONFIG',
    'QUEUE_CONFIG',
    'DIAGNOSTICS_CONFIG',
    'SOUND_LIMITS',
    'LIBRARY_CONFIG',
    'PlaybackState',
    'Severity',
]
