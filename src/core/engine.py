"""
In-process audio engine for PySoundboard.

Implements every command of the client/engine boundary: the sound library
and preferences live in memory, sounds play through sounddevice output
streams on the primary and monitor devices, the queue plays as one
concatenated voice and global hotkeys go through the ``keyboard`` library.

Effect parameters (echo, reverb, bass) are stored and reported back but not
rendered; volume, trim, loop mode and playback speed are applied.
"""
from __future__ import annotations
import logging
import re
import threading
import uuid
from dataclasses import replace
from pathlib import Path
from typing import Any, Callable, Optional, Protocol, Sequence

import numpy as np

from .backend import BackendError, SoundboardError
from .config import APP_VERSION, AUDIO_CONFIG, SOUND_LIMITS
from .models import Settings, Sound, SoundSettings, clamp
from .preview import decode_pcm
from .types import AudioArray, FileReader, OutputStream, Payload, StreamFactory

logger = logging.getLogger("PySoundboard")

STOP_ALL_ACTION = "STOP_ALL"

# Chord key names that differ in the ``keyboard`` library's hotkey syntax
_KEYBOARD_NAMES = {
    "CTRL": "ctrl",
    "ALT": "alt",
    "SHIFT": "shift",
    "META": "windows",
    "SPACE": "space",
    "ESCAPE": "esc",
    "ENTER": "enter",
    "ARROWUP": "up",
    "ARROWDOWN": "down",
    "ARROWLEFT": "left",
    "ARROWRIGHT": "right",
    "PAGEUP": "page up",
    "PAGEDOWN": "page down",
    "+": "plus",
}

_CAMEL_BOUNDARY = re.compile(r'(?<!^)(?=[A-Z])')


def split_chord(chord: str) -> tuple[list[str], str]:
    """Split "Ctrl+Shift+A" into (["Ctrl", "Shift"], "A")."""
    if chord == "+" or chord.endswith("++"):
        head, key = chord[:-2], "+"
        return ([p for p in head.split("+") if p], key)
    parts = chord.split("+")
    return parts[:-1], parts[-1]


def normalize_keybind(chord: str) -> str:
    """Order-insensitive form of a chord: modifiers sorted, key last."""
    modifiers, key = split_chord(chord)
    return "+".join(sorted(modifiers) + [key])


def to_keyboard_hotkey(chord: str) -> str:
    """Translate a canonical chord to ``keyboard`` hotkey syntax."""
    modifiers, key = split_chord(chord)
    names = [_KEYBOARD_NAMES.get(part.upper(), part.lower()) for part in modifiers + [key]]
    return "+".join(names)


def _snake(name: str) -> str:
    return _CAMEL_BOUNDARY.sub('_', name).lower()


class HotkeyBackend(Protocol):
    """System-wide hotkey registration."""

    def add(self, chord: str, callback: Callable[[], None]) -> None: ...
    def remove(self, chord: str) -> None: ...
    def clear(self) -> None: ...


class KeyboardHotkeys:
    """Global hotkeys through the ``keyboard`` library."""
    __slots__ = ('_handles',)

    def __init__(self) -> None:
        self._handles: dict[str, Any] = {}

    def add(self, chord: str, callback: Callable[[], None]) -> None:
        import keyboard
        self.remove(chord)
        self._handles[chord] = keyboard.add_hotkey(to_keyboard_hotkey(chord), callback)

    def remove(self, chord: str) -> None:
        handle = self._handles.pop(chord, None)
        if handle is not None:
            import keyboard
            keyboard.remove_hotkey(handle)

    def clear(self) -> None:
        for chord in list(self._handles):
            self.remove(chord)


def to_output_channels(pcm: AudioArray, channels: int = AUDIO_CONFIG.playback_channels) -> AudioArray:
    """Shape PCM to (frames, channels), duplicating mono."""
    if pcm.ndim == 1:
        pcm = pcm[:, np.newaxis]
    if pcm.shape[1] >= channels:
        return np.ascontiguousarray(pcm[:, :channels], dtype=np.float32)
    return np.ascontiguousarray(np.repeat(pcm[:, :1], channels, axis=1), dtype=np.float32)


def resample(pcm: AudioArray, orig_sr: float, target_sr: int) -> AudioArray:
    """Resample (frames, channels) PCM with librosa."""
    if int(round(orig_sr)) == target_sr or len(pcm) == 0:
        return pcm
    import librosa
    out = librosa.resample(np.ascontiguousarray(pcm.T), orig_sr=orig_sr, target_sr=target_sr)
    return np.ascontiguousarray(out.T, dtype=np.float32)


class Voice:
    """One playing buffer on one output stream."""
    __slots__ = ('pcm', 'position', 'gain', 'loop', 'queue', 'stream', 'finished')

    def __init__(self, pcm: AudioArray, gain: float, loop: bool = False, queue: bool = False) -> None:
        self.pcm = pcm
        self.position = 0
        self.gain = gain
        self.loop = loop
        self.queue = queue
        self.stream: Optional[OutputStream] = None
        self.finished = False


class LocalAudioEngine:
    """
    Command executor behind ``BackendClient``.

    All state is guarded by one lock; hotkey callbacks arrive on the
    ``keyboard`` listener thread and stream completions on PortAudio threads.
    Streams are stopped outside the lock; their finished callbacks take it.
    """

    COMMANDS = frozenset({
        "get_audio_devices", "get_sounds", "get_settings",
        "add_sound_from_path", "remove_sound", "update_sound_keybind",
        "update_sound_settings", "update_sound_trim", "update_sound_order",
        "play_sound", "stop_all",
        "add_to_queue", "clear_queue", "play_queue", "is_queue_playing",
        "register_sound_keybind", "unregister_sound_keybind",
        "register_stop_all_keybind", "unregister_stop_all_keybind",
        "set_stop_all_keybind", "get_registered_keybinds",
        "set_primary_device", "set_monitor_device", "set_master_volume",
        "set_compact_mode", "set_theme", "set_minimize_to_tray",
        "set_overlap_mode", "set_crossfade_duration",
        "get_current_version", "check_for_updates", "install_update",
    })

    def __init__(
        self,
        reader: Optional[FileReader] = None,
        decoder: Callable[[bytes], tuple[AudioArray, int]] = decode_pcm,
        stream_factory: Optional[StreamFactory] = None,
        callback_stop: Optional[type] = None,
        device_query: Optional[Callable[[], Sequence[dict]]] = None,
        hotkeys: Optional[HotkeyBackend] = None,
        samplerate: int = AUDIO_CONFIG.default_samplerate
    ) -> None:
        """
        Initialize the engine.

        Args:
            reader: Raw file reader (defaults to reading from disk)
            decoder: Bytes → (pcm, samplerate)
            stream_factory: Output stream constructor (defaults to
                ``sounddevice.OutputStream``)
            callback_stop: Exception a stream callback raises to finish
                (defaults to ``sounddevice.CallbackStop``)
            device_query: Returns device dicts like ``sounddevice.query_devices()``
            hotkeys: Global hotkey backend (defaults to ``KeyboardHotkeys``)
            samplerate: Output rate every voice is resampled to
        """
        self._reader = reader or (lambda path: Path(path).read_bytes())
        self._decoder = decoder
        self._stream_factory = stream_factory
        self._callback_stop = callback_stop
        self._device_query = device_query
        self._hotkeys: HotkeyBackend = hotkeys if hotkeys is not None else KeyboardHotkeys()
        self._samplerate = samplerate

        self._lock = threading.RLock()
        self._sounds: dict[str, Sound] = {}
        self._settings = Settings()
        self._queue: list[str] = []
        self._voices: list[Voice] = []
        self._keybinds: dict[str, str] = {}  # normalized chord -> sound id or STOP_ALL

    # --- Dispatch ---

    def invoke(self, command: str, **args: Any) -> Any:
        if command not in self.COMMANDS:
            raise BackendError(command, "unknown command")
        handler = getattr(self, command)
        return handler(**{_snake(k): v for k, v in args.items()})

    def start(self) -> None:
        """Register hotkeys for every stored chord."""
        with self._lock:
            sounds = [s for s in self._sounds.values() if s.keybind]
            stop_all_chord = self._settings.stop_all_keybind
        for sound in sounds:
            self._try_register(sound.keybind, sound.id)
        if stop_all_chord:
            self._try_register(stop_all_chord, STOP_ALL_ACTION)

    def shutdown(self) -> None:
        self.stop_all()
        self._hotkeys.clear()
        with self._lock:
            self._keybinds.clear()

    def _try_register(self, chord: str, action: str) -> None:
        try:
            self._register(chord, action)
        except Exception as e:
            logger.warning("Could not register hotkey %s: %s", chord, e)

    # --- Stream plumbing ---

    def _stream_api(self) -> tuple[StreamFactory, type]:
        if self._stream_factory is None or self._callback_stop is None:
            import sounddevice as sd
            self._stream_factory = self._stream_factory or sd.OutputStream
            self._callback_stop = self._callback_stop or sd.CallbackStop
        return self._stream_factory, self._callback_stop

    def _query_devices(self) -> list[dict]:
        if self._device_query is None:
            import sounddevice as sd
            self._device_query = sd.query_devices
        return [dict(d, index=d.get("index", i)) for i, d in enumerate(self._device_query())]

    def _output_devices(self) -> list[dict]:
        return [d for d in self._query_devices() if d.get("max_output_channels", 0) > 0]

    def find_device(self, name: Optional[str]) -> Optional[int]:
        """Index of the first output device whose name contains ``name``; None means default."""
        if not name:
            return None
        needle = name.lower()
        for device in self._output_devices():
            if needle in str(device.get("name", "")).lower():
                return int(device["index"])
        logger.warning("Device '%s' not found, using default output", name)
        return None

    def _load_pcm(self, sound: Sound) -> AudioArray:
        if not Path(sound.file_path).exists():
            raise SoundboardError("Sound file not found")
        pcm, samplerate = self._decoder(self._reader(sound.file_path))
        pcm = to_output_channels(pcm)

        start = int(round((sound.start_time or 0.0) * samplerate))
        end = int(round(sound.end_time * samplerate)) if sound.end_time else len(pcm)
        pcm = pcm[max(0, start):min(len(pcm), end)]

        # Speed change by reinterpreting the rate; pitch follows speed.
        speed = sound.settings.playback_speed
        return resample(pcm, samplerate * speed, self._samplerate)

    def _open_voice(self, voice: Voice, device: Optional[int]) -> None:
        factory, callback_stop = self._stream_api()

        def callback(outdata: np.ndarray, frames: int, time: object, status: object) -> None:
            outdata.fill(0)
            pcm = voice.pcm
            pos = voice.position
            count = max(0, min(frames, len(pcm) - pos))
            if count:
                outdata[:count] = pcm[pos:pos + count] * voice.gain
                voice.position = pos + count
            if voice.position >= len(pcm):
                if voice.loop and len(pcm):
                    voice.position = 0
                else:
                    raise callback_stop()

        def on_finished() -> None:
            voice.finished = True
            with self._lock:
                if voice not in self._voices:
                    return
                self._voices.remove(voice)
                if voice.queue and not any(v.queue for v in self._voices):
                    self._queue.clear()

        with self._lock:
            self._voices.append(voice)
        try:
            voice.stream = factory(
                samplerate=self._samplerate,
                channels=AUDIO_CONFIG.playback_channels,
                blocksize=AUDIO_CONFIG.playback_blocksize,
                dtype="float32",
                device=device,
                callback=callback,
                finished_callback=on_finished
            )
            voice.stream.start()
        except Exception:
            with self._lock:
                if voice in self._voices:
                    self._voices.remove(voice)
            raise

    def _open_voices(self, make_voice: Callable[[], Voice]) -> None:
        """Open one voice per target device; if any device fails, none keep playing."""
        opened: list[Voice] = []
        try:
            for device in self._targets():
                voice = make_voice()
                self._open_voice(voice, device)
                opened.append(voice)
        except Exception:
            with self._lock:
                for voice in opened:
                    if voice in self._voices:
                        self._voices.remove(voice)
            self._close_voices(opened)
            raise

    def _targets(self) -> list[Optional[int]]:
        with self._lock:
            primary = self._settings.primary_device
            monitor = self._settings.monitor_device
        targets = [self.find_device(primary)]
        if monitor and monitor != primary:
            targets.append(self.find_device(monitor))
        return targets

    # --- Library ---

    def get_sounds(self) -> list[Payload]:
        with self._lock:
            sounds = sorted(self._sounds.values(), key=lambda s: s.order)
        return [s.to_payload() for s in sounds]

    def _get_sound(self, sound_id: str) -> Sound:
        sound = self._sounds.get(sound_id)
        if sound is None:
            raise SoundboardError("Sound not found")
        return sound

    def add_sound_from_path(self, file_path: str) -> Payload:
        path = Path(file_path)
        if not path.exists():
            raise SoundboardError("File not found")
        with self._lock:
            sound = Sound(
                id=str(uuid.uuid4()),
                name=path.stem or "Untitled",
                file_path=str(file_path),
                order=len(self._sounds),
            )
            self._sounds[sound.id] = sound
        logger.info("Added sound %s (%s)", sound.name, sound.id)
        return sound.to_payload()

    def remove_sound(self, sound_id: str) -> None:
        with self._lock:
            sound = self._sounds.pop(sound_id, None)
            if sound is not None and sound.keybind:
                self._keybinds.pop(normalize_keybind(sound.keybind), None)
            self._renumber()
        if sound is not None and sound.keybind:
            self._hotkeys.remove(normalize_keybind(sound.keybind))

    def _renumber(self) -> None:
        # Caller holds the lock; orders stay a dense 0..N-1 sequence.
        ordered = sorted(self._sounds.values(), key=lambda s: s.order)
        for index, sound in enumerate(ordered):
            if sound.order != index:
                self._sounds[sound.id] = replace(sound, order=index)

    def _replace_sound(self, sound_id: str, **changes: Any) -> None:
        with self._lock:
            sound = self._sounds.get(sound_id)
            if sound is not None:
                self._sounds[sound_id] = replace(sound, **changes)

    def update_sound_keybind(self, sound_id: str, keybind: Optional[str]) -> None:
        self._replace_sound(sound_id, keybind=keybind or None)

    def update_sound_trim(
        self, sound_id: str, start_time: Optional[float], end_time: Optional[float]
    ) -> None:
        self._replace_sound(sound_id, start_time=start_time, end_time=end_time)

    def update_sound_settings(self, sound_id: str, **settings: Any) -> None:
        self._replace_sound(sound_id, settings=SoundSettings(**settings).clamped())

    def update_sound_order(self, sound_ids: Sequence[str]) -> None:
        with self._lock:
            for index, sound_id in enumerate(sound_ids):
                sound = self._sounds.get(sound_id)
                if sound is not None:
                    self._sounds[sound_id] = replace(sound, order=index)
            self._renumber()

    # --- Playback ---

    def play_sound(self, sound_id: str) -> None:
        with self._lock:
            sound = self._get_sound(sound_id)
            gain = self._settings.master_volume * sound.settings.volume
        pcm = self._load_pcm(sound)
        self._open_voices(lambda: Voice(pcm, gain, loop=sound.settings.loop_mode))
        logger.info("Playing %s", sound.name)

    def stop_all(self) -> None:
        with self._lock:
            voices = list(self._voices)
            self._voices.clear()
            if any(v.queue for v in voices):
                self._queue.clear()
        self._close_voices(voices)

    def _close_voices(self, voices: Sequence[Voice]) -> None:
        for voice in voices:
            if voice.stream is None:
                continue
            try:
                voice.stream.stop()
                voice.stream.close()
            except Exception as e:
                logger.warning("Error closing stream: %s", e)
            voice.finished = True

    # --- Queue ---

    def add_to_queue(self, sound_id: str) -> list[str]:
        with self._lock:
            self._get_sound(sound_id)
            self._queue.append(sound_id)
            return list(self._queue)

    def clear_queue(self) -> None:
        with self._lock:
            self._queue.clear()

    def play_queue(self) -> None:
        with self._lock:
            if not self._queue:
                raise SoundboardError("Queue is empty")
            sounds = [self._get_sound(i) for i in self._queue]
            master = self._settings.master_volume
        parts = [self._load_pcm(s) * np.float32(s.settings.volume) for s in sounds]
        pcm = np.concatenate(parts, axis=0).astype(np.float32)
        self._open_voices(lambda: Voice(pcm, master, queue=True))
        logger.info("Playing queue of %d sounds", len(sounds))

    def is_queue_playing(self) -> bool:
        with self._lock:
            return any(v.queue and not v.finished for v in self._voices)

    # --- Keybinds ---

    def _on_hotkey(self, action: str) -> None:
        try:
            if action == STOP_ALL_ACTION:
                self.stop_all()
            else:
                self.play_sound(action)
        except Exception as e:
            logger.error("Hotkey action %s failed: %s", action, e)

    def _register(self, chord: str, action: str) -> None:
        normalized = normalize_keybind(chord)
        with self._lock:
            stale = [k for k, v in self._keybinds.items() if v == action and k != normalized]
            for key in stale:
                del self._keybinds[key]
            self._keybinds[normalized] = action
        for key in stale:
            self._hotkeys.remove(key)
        self._hotkeys.add(normalized, lambda: self._on_hotkey(action))

    def _unregister(self, chord: str) -> None:
        normalized = normalize_keybind(chord)
        with self._lock:
            self._keybinds.pop(normalized, None)
        self._hotkeys.remove(normalized)

    def register_sound_keybind(self, sound_id: str, keybind: str) -> None:
        self._register(keybind, sound_id)

    def unregister_sound_keybind(self, keybind: str) -> None:
        self._unregister(keybind)

    def register_stop_all_keybind(self, keybind: str) -> None:
        self._register(keybind, STOP_ALL_ACTION)

    def unregister_stop_all_keybind(self, keybind: str) -> None:
        self._unregister(keybind)

    def set_stop_all_keybind(self, keybind: Optional[str]) -> None:
        with self._lock:
            self._settings.stop_all_keybind = keybind or None

    def get_registered_keybinds(self) -> list[str]:
        with self._lock:
            return list(self._keybinds)

    # --- Devices and preferences ---

    def get_audio_devices(self) -> list[Payload]:
        return [{"id": d["index"], "name": d["name"]} for d in self._output_devices()]

    def get_settings(self) -> Payload:
        with self._lock:
            return self._settings.to_payload()

    def set_primary_device(self, device_name: str) -> None:
        with self._lock:
            self._settings.primary_device = device_name or None

    def set_monitor_device(self, device_name: Optional[str]) -> None:
        with self._lock:
            self._settings.monitor_device = device_name or None

    def set_master_volume(self, volume: float) -> None:
        with self._lock:
            self._settings.master_volume = clamp(volume, SOUND_LIMITS.master_volume)

    def set_compact_mode(self, enabled: bool) -> None:
        with self._lock:
            self._settings.compact_mode = bool(enabled)

    def set_theme(self, theme: str) -> None:
        with self._lock:
            self._settings.theme = theme

    def set_minimize_to_tray(self, enabled: bool) -> None:
        with self._lock:
            self._settings.minimize_to_tray = bool(enabled)

    def set_overlap_mode(self, enabled: bool) -> None:
        with self._lock:
            self._settings.overlap_mode = bool(enabled)

    def set_crossfade_duration(self, duration: float) -> None:
        with self._lock:
            self._settings.crossfade_duration = clamp(duration, SOUND_LIMITS.crossfade_seconds)

    # --- Updates ---

    def get_current_version(self) -> str:
        return APP_VERSION

    def check_for_updates(self) -> Payload:
        return {"available": False, "version": None, "notes": None}

    def install_update(self) -> None:
        raise SoundboardError("Updates are installed through the package manager")
