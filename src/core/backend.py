"""
Command boundary between the client and the audio engine.

The engine is anything with an ``invoke(command, **args)`` method. The
``BackendClient`` wraps it with one typed method per command and turns every
failure into a ``BackendError``.
"""
from __future__ import annotations
import logging
from typing import Any, Optional, Protocol, Sequence

from .models import AudioDevice, Settings, Sound, SoundSettings, UpdateInfo
from .types import Payload

logger = logging.getLogger("PySoundboard")


class SoundboardError(Exception):
    """Base class for soundboard failures."""


class BackendError(SoundboardError):
    """A backend command failed."""

    def __init__(self, command: str, message: str) -> None:
        super().__init__(f"{command}: {message}")
        self.command = command
        self.message = message


class Backend(Protocol):
    """Anything that executes engine commands."""

    def invoke(self, command: str, **args: Any) -> Any: ...


class BackendClient:
    """Typed facade over a ``Backend``."""
    __slots__ = ('_backend',)

    def __init__(self, backend: Backend) -> None:
        self._backend = backend

    def invoke(self, command: str, **args: Any) -> Any:
        logger.debug("invoke %s %s", command, args)
        try:
            return self._backend.invoke(command, **args)
        except BackendError:
            raise
        except Exception as e:
            raise BackendError(command, str(e)) from e

    # --- Library ---

    def get_sounds(self) -> list[Sound]:
        return [Sound.from_payload(p) for p in self.invoke("get_sounds")]

    def add_sound_from_path(self, file_path: str) -> Sound:
        return Sound.from_payload(self.invoke("add_sound_from_path", filePath=file_path))

    def remove_sound(self, sound_id: str) -> None:
        self.invoke("remove_sound", soundId=sound_id)

    def update_sound_keybind(self, sound_id: str, keybind: Optional[str]) -> None:
        self.invoke("update_sound_keybind", soundId=sound_id, keybind=keybind)

    def update_sound_settings(self, sound_id: str, settings: SoundSettings) -> None:
        self.invoke("update_sound_settings", soundId=sound_id, **settings.to_payload())

    def update_sound_trim(
        self, sound_id: str, start_time: Optional[float], end_time: Optional[float]
    ) -> None:
        self.invoke("update_sound_trim", soundId=sound_id, startTime=start_time, endTime=end_time)

    def update_sound_order(self, sound_ids: Sequence[str]) -> None:
        self.invoke("update_sound_order", soundIds=list(sound_ids))

    # --- Playback ---

    def play_sound(self, sound_id: str) -> None:
        self.invoke("play_sound", soundId=sound_id)

    def stop_all(self) -> None:
        self.invoke("stop_all")

    def add_to_queue(self, sound_id: str) -> list[str]:
        return [str(i) for i in self.invoke("add_to_queue", soundId=sound_id)]

    def clear_queue(self) -> None:
        self.invoke("clear_queue")

    def play_queue(self) -> None:
        self.invoke("play_queue")

    def is_queue_playing(self) -> bool:
        return bool(self.invoke("is_queue_playing"))

    # --- Keybinds ---

    def register_sound_keybind(self, sound_id: str, keybind: str) -> None:
        self.invoke("register_sound_keybind", soundId=sound_id, keybind=keybind)

    def unregister_sound_keybind(self, keybind: str) -> None:
        self.invoke("unregister_sound_keybind", keybind=keybind)

    def register_stop_all_keybind(self, keybind: str) -> None:
        self.invoke("register_stop_all_keybind", keybind=keybind)

    def unregister_stop_all_keybind(self, keybind: str) -> None:
        self.invoke("unregister_stop_all_keybind", keybind=keybind)

    def set_stop_all_keybind(self, keybind: Optional[str]) -> None:
        self.invoke("set_stop_all_keybind", keybind=keybind)

    def get_registered_keybinds(self) -> list[str]:
        return list(self.invoke("get_registered_keybinds"))

    # --- Devices and preferences ---

    def get_audio_devices(self) -> list[AudioDevice]:
        return [AudioDevice.from_payload(p) for p in self.invoke("get_audio_devices")]

    def get_settings(self) -> Settings:
        payload: Payload = self.invoke("get_settings") or {}
        return Settings.from_payload(payload)

    def set_primary_device(self, device_name: str) -> None:
        self.invoke("set_primary_device", deviceName=device_name)

    def set_monitor_device(self, device_name: Optional[str]) -> None:
        self.invoke("set_monitor_device", deviceName=device_name)

    def set_master_volume(self, volume: float) -> None:
        self.invoke("set_master_volume", volume=volume)

    def set_compact_mode(self, enabled: bool) -> None:
        self.invoke("set_compact_mode", enabled=enabled)

    def set_theme(self, theme: str) -> None:
        self.invoke("set_theme", theme=theme)

    def set_minimize_to_tray(self, enabled: bool) -> None:
        self.invoke("set_minimize_to_tray", enabled=enabled)

    def set_overlap_mode(self, enabled: bool) -> None:
        self.invoke("set_overlap_mode", enabled=enabled)

    def set_crossfade_duration(self, duration: float) -> None:
        self.invoke("set_crossfade_duration", duration=duration)

    # --- Updates ---

    def get_current_version(self) -> str:
        return str(self.invoke("get_current_version"))

    def check_for_updates(self) -> UpdateInfo:
        return UpdateInfo.from_payload(self.invoke("check_for_updates") or {})

    def install_update(self) -> None:
        self.invoke("install_update")
