"""
Preferences, output devices and the update check.

Each setter updates the local copy first, then tells the engine and logs the
outcome; a failed command leaves the local value in place for the next
attempt, the same way the device pickers behave.
"""
from __future__ import annotations
import logging
from typing import Optional

from PyQt6.QtCore import QObject, pyqtSignal

from .backend import BackendClient, BackendError
from .config import LIBRARY_CONFIG, SOUND_LIMITS
from .diagnostics import DiagnosticsLog
from .models import AudioDevice, Settings, UpdateInfo, clamp

logger = logging.getLogger("PySoundboard")


class PreferencesController(QObject):
    """
    Local mirror of the engine's preferences.

    Signals:
        settingsChanged: Any preference changed
        devicesChanged: The device list was reloaded
        versionChanged(str, object): Current version and ``UpdateInfo`` (or None)
    """
    settingsChanged = pyqtSignal()
    devicesChanged = pyqtSignal()
    versionChanged = pyqtSignal(str, object)

    def __init__(self, client: BackendClient, diagnostics: DiagnosticsLog,
                 parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._client = client
        self._diagnostics = diagnostics
        self.settings = Settings()
        self.devices: list[AudioDevice] = []
        self.current_version = ""
        self.update_info: Optional[UpdateInfo] = None

    # --- Loading ---

    def load_settings(self) -> bool:
        """
        Fetch preferences from the engine.

        Returns:
            True if a primary device was saved
        """
        try:
            self.settings = self._client.get_settings()
        except BackendError as e:
            self._diagnostics.error(f"Failed to load settings: {e}")
            return False
        if self.settings.stop_all_keybind:
            self._diagnostics.info(f"Loaded Stop All keybind: {self.settings.stop_all_keybind}")
        self.settingsChanged.emit()
        return bool(self.settings.primary_device)

    def load_devices(self, auto_select: bool = True) -> list[AudioDevice]:
        """
        Fetch output devices.

        Args:
            auto_select: Pick a virtual cable as primary device when one exists
        """
        self._diagnostics.info("Loading audio devices...")
        try:
            self.devices = self._client.get_audio_devices()
        except BackendError as e:
            self._diagnostics.error(f"Failed to load devices: {e}")
            return []
        self._diagnostics.success(f"Found {len(self.devices)} audio devices")
        self.devicesChanged.emit()

        if auto_select:
            hint = LIBRARY_CONFIG.virtual_cable_hint
            cable = next((d for d in self.devices if hint in d.name.lower()), None)
            if cable is not None and self.set_primary_device(cable.name):
                self._diagnostics.success(f"Auto-selected VB-Cable: {cable.name}")
        return self.devices

    # --- Setters ---

    def _apply(self, call, success: Optional[str], failure: str) -> bool:
        self.settingsChanged.emit()
        try:
            call()
        except BackendError as e:
            self._diagnostics.error(f"✗ Failed to {failure}: {e}")
            return False
        if success:
            self._diagnostics.success(success)
        return True

    def set_primary_device(self, device_name: str) -> bool:
        self.settings.primary_device = device_name
        return self._apply(lambda: self._client.set_primary_device(device_name),
                           f"Primary device set: {device_name}", "set primary device")

    def set_monitor_device(self, device_name: Optional[str]) -> bool:
        self.settings.monitor_device = device_name or None
        return self._apply(lambda: self._client.set_monitor_device(device_name or None),
                           f"Monitor device set: {device_name or 'None'}", "set monitor device")

    def set_master_volume(self, volume: float) -> bool:
        volume = clamp(volume, SOUND_LIMITS.master_volume)
        self.settings.master_volume = volume
        return self._apply(lambda: self._client.set_master_volume(volume), None, "set volume")

    def set_compact_mode(self, enabled: bool) -> bool:
        self.settings.compact_mode = enabled
        return self._apply(lambda: self._client.set_compact_mode(enabled),
                           f"Compact mode {'enabled' if enabled else 'disabled'}", "set compact mode")

    def set_theme(self, theme: str) -> bool:
        self.settings.theme = theme
        return self._apply(lambda: self._client.set_theme(theme),
                           f"Theme changed to {theme}", "set theme")

    def set_minimize_to_tray(self, enabled: bool) -> bool:
        self.settings.minimize_to_tray = enabled
        return self._apply(lambda: self._client.set_minimize_to_tray(enabled),
                           f"Minimize to tray {'enabled' if enabled else 'disabled'}",
                           "set minimize to tray")

    def set_overlap_mode(self, enabled: bool) -> bool:
        self.settings.overlap_mode = enabled
        return self._apply(lambda: self._client.set_overlap_mode(enabled),
                           f"Overlap mode {'enabled' if enabled else 'disabled'}", "set overlap mode")

    def set_crossfade_duration(self, duration: float) -> bool:
        duration = clamp(duration, SOUND_LIMITS.crossfade_seconds)
        self.settings.crossfade_duration = duration
        return self._apply(lambda: self._client.set_crossfade_duration(duration),
                           f"Crossfade set to {duration:.1f}s", "set crossfade")

    def set_stop_all_keybind(self, chord: Optional[str]) -> None:
        """Record a chord the keybind recorder has already persisted."""
        self.settings.stop_all_keybind = chord
        self.settingsChanged.emit()

    # --- Updates ---

    def check_for_updates(self) -> Optional[UpdateInfo]:
        try:
            self.current_version = self._client.get_current_version()
            self.update_info = self._client.check_for_updates()
        except BackendError as e:
            # No network or no releases yet: just report the running version.
            logger.debug("Update check failed: %s", e)
            self.update_info = None
            self._diagnostics.info(f"PySoundboard v{self.current_version or '1.0.0'}")
            self.versionChanged.emit(self.current_version, None)
            return None

        if self.update_info.available and self.update_info.version:
            self._diagnostics.info(f"Update available: v{self.update_info.version}")
        else:
            self._diagnostics.success(f"PySoundboard v{self.current_version} - Up to date")
        self.versionChanged.emit(self.current_version, self.update_info)
        return self.update_info

    def install_update(self) -> bool:
        self._diagnostics.info("Downloading update...")
        try:
            self._client.install_update()
        except BackendError as e:
            self._diagnostics.error(f"Failed to install update: {e}")
            return False
        return True
