"""
Pytest configuration and fixtures for PySoundboard tests.
"""
import io
import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
import numpy as np
import soundfile as sf
from PyQt6.QtWidgets import QApplication

from src.core.backend import BackendClient
from src.core.config import AUDIO_CONFIG
from src.core.diagnostics import DiagnosticsLog


class FakeBackend:
    """Records every command; replies come from ``responses`` and failures from ``failures``."""

    def __init__(self):
        self.calls = []
        self.queue = []
        self.failures = {}
        self.responses = {
            "get_sounds": [],
            "get_settings": {},
            "get_audio_devices": [],
            "add_to_queue": self._add_to_queue,
            "is_queue_playing": True,
            "get_current_version": "1.0.0",
            "check_for_updates": {"available": False},
            "get_registered_keybinds": [],
        }

    def _add_to_queue(self, soundId):
        self.queue.append(soundId)
        return list(self.queue)

    def invoke(self, command, **args):
        self.calls.append((command, args))
        if command in self.failures:
            raise RuntimeError(self.failures[command])
        response = self.responses.get(command)
        return response(**args) if callable(response) else response

    @property
    def commands(self):
        return [command for command, _ in self.calls]

    def args_of(self, command):
        return [args for name, args in self.calls if name == command]


class FakeCallbackStop(Exception):
    """Stands in for ``sounddevice.CallbackStop``."""


class FakeStream:
    """Output stream that runs its callback on demand instead of on an audio thread."""

    def __init__(self, autorun=True, **kwargs):
        self.kwargs = kwargs
        self.callback = kwargs["callback"]
        self.finished_callback = kwargs.get("finished_callback")
        self.blocksize = kwargs.get("blocksize") or AUDIO_CONFIG.playback_blocksize
        self.channels = kwargs.get("channels", AUDIO_CONFIG.playback_channels)
        self.autorun = autorun
        self.active = False
        self.closed = False
        self.finish_count = 0
        self.blocks = []

    def start(self):
        self.active = True
        if self.autorun:
            self.run()

    def pump(self, blocks=1):
        for _ in range(blocks):
            if not self.active:
                return
            out = np.zeros((self.blocksize, self.channels), dtype=np.float32)
            try:
                self.callback(out, self.blocksize, None, None)
            except FakeCallbackStop:
                self.blocks.append(out)
                self._finish()
                return
            self.blocks.append(out)

    def run(self, max_blocks=100_000):
        while self.active and max_blocks > 0:
            self.pump()
            max_blocks -= 1

    def _finish(self):
        self.active = False
        self.finish_count += 1
        if self.finished_callback:
            self.finished_callback()

    def stop(self):
        if self.active:
            self._finish()

    def close(self):
        self.closed = True

    @property
    def output(self):
        if not self.blocks:
            return np.zeros((0, self.channels), dtype=np.float32)
        return np.concatenate(self.blocks, axis=0)


class FakeStreamFactory:
    def __init__(self, autorun=True):
        self.autorun = autorun
        self.streams = []

    def __call__(self, **kwargs):
        stream = FakeStream(autorun=self.autorun, **kwargs)
        self.streams.append(stream)
        return stream

    @property
    def last(self):
        return self.streams[-1]


class FakeHotkeys:
    def __init__(self):
        self.bound = {}
        self.fail = False

    def add(self, chord, callback):
        if self.fail:
            raise OSError("hotkeys need elevated privileges")
        self.bound[chord] = callback

    def remove(self, chord):
        self.bound.pop(chord, None)

    def clear(self):
        self.bound.clear()


@pytest.fixture(scope="session")
def qapp():
    """Offscreen Qt application for signals, timers, the thread pool and widgets."""
    app = QApplication.instance() or QApplication([])
    yield app


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def client(backend) -> BackendClient:
    return BackendClient(backend)


@pytest.fixture
def diagnostics() -> DiagnosticsLog:
    return DiagnosticsLog()


@pytest.fixture
def stream_factory() -> FakeStreamFactory:
    return FakeStreamFactory()


@pytest.fixture
def manual_stream_factory() -> FakeStreamFactory:
    """Streams that only advance when a test pumps them."""
    return FakeStreamFactory(autorun=False)


@pytest.fixture
def hotkeys() -> FakeHotkeys:
    return FakeHotkeys()


@pytest.fixture
def sample_mono_audio() -> np.ndarray:
    """Generate 1 second of mono sine wave audio."""
    sr = AUDIO_CONFIG.default_samplerate
    t = np.linspace(0, 1, sr, dtype=np.float32)
    return np.sin(2 * np.pi * 440 * t).astype(np.float32)


@pytest.fixture
def sample_stereo_audio() -> np.ndarray:
    """Generate 1 second of stereo sine wave audio."""
    sr = AUDIO_CONFIG.default_samplerate
    t = np.linspace(0, 1, sr, dtype=np.float32)
    left = np.sin(2 * np.pi * 440 * t).astype(np.float32)
    right = np.sin(2 * np.pi * 880 * t).astype(np.float32)
    return np.column_stack((left, right))


@pytest.fixture
def wav_bytes(sample_stereo_audio) -> bytes:
    """The stereo fixture encoded as an in-memory WAV file."""
    buffer = io.BytesIO()
    sf.write(buffer, sample_stereo_audio, AUDIO_CONFIG.default_samplerate, format="WAV", subtype="FLOAT")
    return buffer.getvalue()


@pytest.fixture
def constant_wav(tmp_path):
    """One second of constant 0.5 amplitude audio written to disk."""
    sr = AUDIO_CONFIG.default_samplerate
    path = tmp_path / "tone.wav"
    sf.write(str(path), np.full(sr, 0.5, dtype=np.float32), sr, subtype="FLOAT")
    return path


def sound_payload(sound_id, name=None, order=0, **extra):
    payload = {
        "id": sound_id,
        "name": name or sound_id,
        "filePath": f"/sounds/{sound_id}.wav",
        "keybind": None,
        "volume": 1.0,
        "startTime": None,
        "endTime": None,
        "order": order,
    }
    payload.update(extra)
    return payload


@pytest.fixture
def make_sound():
    return sound_payload


@pytest.fixture
def callback_stop():
    return FakeCallbackStop
