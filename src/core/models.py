"""
Data model shared by the client and the audio engine.

Payloads on the command boundary use camelCase keys (``filePath``,
``startTime``); these dataclasses are the snake_case view of them.
"""
from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Optional

from .config import SOUND_LIMITS
from .types import Payload


def clamp(value: float, bounds: tuple[float, float]) -> float:
    """Clamp ``value`` into the inclusive ``(low, high)`` range."""
    low, high = bounds
    return max(low, min(high, float(value)))


@dataclass(frozen=True, slots=True)
class SoundSettings:
    """Per-sound playback and effect parameters edited by the client."""
    volume: float = 1.0
    loop_mode: bool = False
    playback_speed: float = 1.0
    echo_delay: float = 0.0
    echo_volume: float = 0.0
    reverb_decay: float = 0.0
    bass_boost: float = 0.0
    fake_bass_boost: float = 0.0

    def clamped(self) -> "SoundSettings":
        """Return a copy with every value forced into its accepted range."""
        return SoundSettings(
            volume=clamp(self.volume, SOUND_LIMITS.volume),
            loop_mode=bool(self.loop_mode),
            playback_speed=clamp(self.playback_speed, SOUND_LIMITS.playback_speed),
            echo_delay=clamp(self.echo_delay, SOUND_LIMITS.echo_delay_ms),
            echo_volume=clamp(self.echo_volume, SOUND_LIMITS.echo_volume),
            reverb_decay=clamp(self.reverb_decay, SOUND_LIMITS.reverb_decay),
            bass_boost=clamp(self.bass_boost, SOUND_LIMITS.bass_boost_db),
            fake_bass_boost=clamp(self.fake_bass_boost, SOUND_LIMITS.fake_bass_boost),
        )

    def to_payload(self) -> Payload:
        return {
            "volume": self.volume,
            "loopMode": self.loop_mode,
            "playbackSpeed": self.playback_speed,
            "echoDelay": self.echo_delay,
            "echoVolume": self.echo_volume,
            "reverbDecay": self.reverb_decay,
            "bassBoost": self.bass_boost,
            "fakeBassBoost": self.fake_bass_boost,
        }


@dataclass(frozen=True, slots=True)
class Sound:
    """A sound in the library."""
    id: str
    name: str
    file_path: str
    keybind: Optional[str] = None
    start_time: Optional[float] = None
    end_time: Optional[float] = None
    order: int = 0
    settings: SoundSettings = field(default_factory=SoundSettings)

    @property
    def volume(self) -> float:
        return self.settings.volume

    @property
    def has_trim(self) -> bool:
        return self.start_time is not None or self.end_time is not None

    def with_order(self, order: int) -> "Sound":
        return replace(self, order=order)

    @classmethod
    def from_payload(cls, payload: Payload) -> "Sound":
        settings = SoundSettings(
            volume=float(payload.get("volume", 1.0)),
            loop_mode=bool(payload.get("loopMode", False)),
            playback_speed=float(payload.get("playbackSpeed", 1.0)),
            echo_delay=float(payload.get("echoDelay", 0.0)),
            echo_volume=float(payload.get("echoVolume", 0.0)),
            reverb_decay=float(payload.get("reverbDecay", 0.0)),
            bass_boost=float(payload.get("bassBoost", 0.0)),
            fake_bass_boost=float(payload.get("fakeBassBoost", 0.0)),
        )
        return cls(
            id=str(payload["id"]),
            name=payload.get("name", "Untitled"),
            file_path=payload["filePath"],
            keybind=payload.get("keybind") or None,
            start_time=payload.get("startTime"),
            end_time=payload.get("endTime"),
            order=int(payload.get("order", 0)),
            settings=settings,
        )

    def to_payload(self) -> Payload:
        payload = {
            "id": self.id,
            "name": self.name,
            "keybind": self.keybind,
            "filePath": self.file_path,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "order": self.order,
        }
        payload.update(self.settings.to_payload())
        return payload


@dataclass(frozen=True, slots=True)
class AudioDevice:
    """Output device as reported by the engine."""
    id: int
    name: str

    @classmethod
    def from_payload(cls, payload: Payload) -> "AudioDevice":
        return cls(id=int(payload["id"]), name=str(payload["name"]))


@dataclass(slots=True)
class Settings:
    """Preferences held by the engine."""
    primary_device: Optional[str] = None
    monitor_device: Optional[str] = None
    master_volume: float = 0.8
    stop_all_keybind: Optional[str] = None
    compact_mode: bool = False
    theme: str = "green"
    minimize_to_tray: bool = False
    overlap_mode: bool = True
    crossfade_duration: float = 0.0

    @classmethod
    def from_payload(cls, payload: Payload) -> "Settings":
        defaults = cls()
        return cls(
            primary_device=payload.get("primaryDevice") or None,
            monitor_device=payload.get("monitorDevice") or None,
            master_volume=float(payload.get("masterVolume", defaults.master_volume)),
            stop_all_keybind=payload.get("stopAllKeybind") or None,
            compact_mode=bool(payload.get("compactMode", defaults.compact_mode)),
            theme=payload.get("theme") or defaults.theme,
            minimize_to_tray=bool(payload.get("minimizeToTray", defaults.minimize_to_tray)),
            overlap_mode=bool(payload.get("overlapMode", defaults.overlap_mode)),
            crossfade_duration=float(payload.get("crossfadeDuration", defaults.crossfade_duration)),
        )

    def to_payload(self) -> Payload:
        return {
            "primaryDevice": self.primary_device,
            "monitorDevice": self.monitor_device,
            "masterVolume": self.master_volume,
            "stopAllKeybind": self.stop_all_keybind,
            "compactMode": self.compact_mode,
            "theme": self.theme,
            "minimizeToTray": self.minimize_to_tray,
            "overlapMode": self.overlap_mode,
            "crossfadeDuration": self.crossfade_duration,
        }


@dataclass(frozen=True, slots=True)
class UpdateInfo:
    """Result of an update check."""
    available: bool
    version: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Payload) -> "UpdateInfo":
        return cls(
            available=bool(payload.get("available", False)),
            version=payload.get("version"),
            notes=payload.get("notes"),
        )
