"""
Waveform analysis for the trim editor.

Raw file bytes are decoded, reduced to a fixed number of mean-magnitude
buckets and normalized to the loudest bucket. Decoding can run on the Qt
thread pool; results are tagged with the generation that requested them so
a late result for a closed editing session can be dropped.
"""
from __future__ import annotations
import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

import numpy as np
from PyQt6.QtCore import QObject, QRunnable, QThreadPool, pyqtSignal, pyqtSlot

from .config import WAVEFORM_CONFIG
from .types import AudioArray, BucketArray, FileReader, MonoArray

logger = logging.getLogger("PySoundboard")


@dataclass(frozen=True, slots=True)
class DecodedAudio:
    """First channel of a decoded file."""
    samples: MonoArray
    samplerate: int

    @property
    def duration(self) -> float:
        return len(self.samples) / self.samplerate if self.samplerate > 0 else 0.0


@dataclass(frozen=True)
class WaveformBuffer:
    """Normalized bucket magnitudes plus the duration they describe."""
    buckets: BucketArray = field(default_factory=lambda: np.zeros(0, dtype=np.float32))
    duration: float = 0.0

    @property
    def is_empty(self) -> bool:
        return len(self.buckets) == 0

    def __len__(self) -> int:
        return len(self.buckets)


EMPTY_WAVEFORM = WaveformBuffer()


def decode_audio(data: bytes) -> DecodedAudio:
    """
    Decode an in-memory audio file.

    Only the first channel is kept; the others are ignored.

    Raises:
        Any decoder error (callers decide how to degrade)
    """
    import librosa

    y, sr = librosa.load(io.BytesIO(data), sr=None, mono=False)
    if y.ndim > 1:
        y = y[0]
    return DecodedAudio(np.ascontiguousarray(y, dtype=np.float32), int(sr))


def compute_buckets(samples: AudioArray, bucket_count: int = WAVEFORM_CONFIG.bucket_count) -> BucketArray:
    """
    Downsample samples to ``bucket_count`` normalized magnitudes.

    Each bucket is the mean absolute amplitude of floor(len / bucket_count)
    consecutive samples; trailing samples that do not fill a block are
    dropped. Values are divided by the largest bucket unless it is zero.
    """
    samples = np.asarray(samples, dtype=np.float32)
    if samples.ndim > 1:
        samples = samples[:, 0]

    block_size = len(samples) // bucket_count
    if block_size == 0:
        return np.zeros(bucket_count, dtype=np.float32)

    blocks = np.abs(samples[:block_size * bucket_count]).reshape(bucket_count, block_size)
    buckets = blocks.mean(axis=1).astype(np.float32)

    peak = float(buckets.max())
    if peak > 0.0:
        buckets /= peak
    return buckets


def in_range_mask(
    bucket_count: int,
    duration: float,
    start_time: Optional[float] = None,
    end_time: Optional[float] = None
) -> np.ndarray:
    """
    Flag buckets whose position i/count lies inside the trim range.

    Unset bounds default to the full clip.
    """
    if bucket_count == 0:
        return np.zeros(0, dtype=bool)
    if duration <= 0:
        return np.ones(bucket_count, dtype=bool)

    start_frac = (start_time or 0.0) / duration
    end_frac = (end_time if end_time else duration) / duration
    positions = np.arange(bucket_count) / bucket_count
    return (positions >= start_frac) & (positions <= end_frac)


class WaveformAnalyzer:
    """Bytes → ``WaveformBuffer`` pipeline that never raises."""
    __slots__ = ('_bucket_count', '_decoder')

    def __init__(
        self,
        bucket_count: int = WAVEFORM_CONFIG.bucket_count,
        decoder: Callable[[bytes], DecodedAudio] = decode_audio
    ) -> None:
        self._bucket_count = bucket_count
        self._decoder = decoder

    def analyze(self, data: bytes) -> WaveformBuffer:
        try:
            decoded = self._decoder(data)
        except Exception as e:
            logger.error("Failed to load waveform: %s", e)
            return EMPTY_WAVEFORM
        return WaveformBuffer(compute_buckets(decoded.samples, self._bucket_count), decoded.duration)

    def analyze_file(self, file_path: str, reader: Optional[FileReader] = None) -> WaveformBuffer:
        try:
            data = reader(file_path) if reader else Path(file_path).read_bytes()
        except OSError as e:
            logger.error("Failed to read %s: %s", file_path, e)
            return EMPTY_WAVEFORM
        return self.analyze(data)


class _LoadSignals(QObject):
    finished = pyqtSignal(int, object)  # (generation, WaveformBuffer)


class _LoadTask(QRunnable):
    def __init__(self, analyzer: WaveformAnalyzer, file_path: str, generation: int,
                 reader: Optional[FileReader]) -> None:
        super().__init__()
        self.signals = _LoadSignals()
        self._analyzer = analyzer
        self._file_path = file_path
        self._generation = generation
        self._reader = reader

    def run(self) -> None:
        buffer = self._analyzer.analyze_file(self._file_path, self._reader)
        self.signals.finished.emit(self._generation, buffer)


class WaveformLoader(QObject):
    """
    Runs waveform analysis on a thread pool.

    ``loaded`` is emitted on the loader's thread with the generation passed
    to ``request``; consumers compare it against their current session.
    """
    loaded = pyqtSignal(int, object)

    def __init__(
        self,
        analyzer: Optional[WaveformAnalyzer] = None,
        pool: Optional[QThreadPool] = None,
        reader: Optional[FileReader] = None,
        parent: Optional[QObject] = None
    ) -> None:
        super().__init__(parent)
        self._analyzer = analyzer or WaveformAnalyzer()
        self._pool = pool or QThreadPool.globalInstance()
        self._reader = reader
        self._pending: dict[int, _LoadTask] = {}

    def request(self, file_path: str, generation: int) -> None:
        task = _LoadTask(self._analyzer, file_path, generation, self._reader)
        task.setAutoDelete(False)
        task.signals.finished.connect(self._on_finished)
        self._pending[generation] = task
        self._pool.start(task)

    def wait(self, msecs: int = -1) -> bool:
        """Block until queued decodes are done (tests and shutdown)."""
        return self._pool.waitForDone(msecs)

    @pyqtSlot(int, object)
    def _on_finished(self, generation: int, buffer: WaveformBuffer) -> None:
        self._pending.pop(generation, None)
        self.loaded.emit(generation, buffer)
