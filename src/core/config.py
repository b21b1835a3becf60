"""
Centralized configuration for PySoundboard.
All magic numbers and default settings in one place.
"""
from dataclasses import dataclass
from enum import Enum, auto

APP_VERSION = "1.0.0"


class PlaybackState(Enum):
    """Queue playback state."""
    STOPPED = auto()
    PLAYING = auto()


class Severity(Enum):
    """Diagnostics log severity."""
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class AudioConfig:
    """Output stream settings for preview and engine playback."""
    default_samplerate: int = 44100
    playback_blocksize: int = 1024
    playback_channels: int = 2


@dataclass(frozen=True, slots=True)
class WaveformConfig:
    """Waveform analysis and drawing settings."""
    bucket_count: int = 200
    in_range_color: tuple[int, int, int] = (0, 255, 65)  # Trim range green
    out_of_range_color: tuple[int, int, int] = (51, 51, 51)
    background_color: tuple[int, int, int] = (10, 10, 10)
    bar_gap: int = 1
    vertical_margin: int = 10


@dataclass(frozen=True, slots=True)
class TrimConfig:
    """Trim editor constraints."""
    min_gap_seconds: float = 0.5
    step_seconds: float = 0.5


@dataclass(frozen=True, slots=True)
class QueueConfig:
    """Queue completion polling."""
    poll_interval_ms: int = 250


@dataclass(frozen=True, slots=True)
class DiagnosticsConfig:
    """Diagnostics sink settings."""
    max_entries: int = 100
    timestamp_format: str = "%H:%M:%S"


@dataclass(frozen=True, slots=True)
class SoundLimits:
    """Accepted ranges for per-sound settings (min, max)."""
    volume: tuple[float, float] = (0.0, 2.0)
    playback_speed: tuple[float, float] = (0.25, 2.0)
    echo_delay_ms: tuple[float, float] = (0.0, 1000.0)
    echo_volume: tuple[float, float] = (0.0, 1.0)
    reverb_decay: tuple[float, float] = (0.0, 1.0)
    bass_boost_db: tuple[float, float] = (0.0, 24.0)
    fake_bass_boost: tuple[float, float] = (0.0, 1.0)
    master_volume: tuple[float, float] = (0.0, 1.0)
    crossfade_seconds: tuple[float, float] = (0.0, 10.0)


@dataclass(frozen=True, slots=True)
class LibraryConfig:
    """Sound library behaviour."""
    audio_extensions: tuple[str, ...] = ("mp3", "wav", "ogg", "flac")
    playing_indicator_ms: int = 3000
    virtual_cable_hint: str = "cable input"  # Auto-selected primary device


# Global config instances (immutable singletons)
AUDIO_CONFIG = AudioConfig()
WAVEFORM_CONFIG = WaveformConfig()
TRIM_CONFIG = TrimConfig()
QUEUE_CONFIG = QueueConfig()
DIAGNOSTICS_CONFIG = DiagnosticsConfig()
SOUND_LIMITS = SoundLimits()
LIBRARY_CONFIG = LibraryConfig()
