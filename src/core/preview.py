"""
Trim preview playback for PySoundboard.

Plays the [start, end) window of a file once through a sounddevice output
stream. Only one preview exists at a time: starting a new one stops and
releases the previous stream first.
"""
from __future__ import annotations
import io
import logging
from pathlib import Path
from typing import Callable, Optional

import numpy as np
import soundfile as sf

from .config import AUDIO_CONFIG
from .types import AudioArray, FileReader, OutputStream, StreamFactory

logger = logging.getLogger("PySoundboard")


def decode_pcm(data: bytes) -> tuple[AudioArray, int]:
    """Decode an in-memory file to (frames, channels) float32 PCM."""
    pcm, samplerate = sf.read(io.BytesIO(data), dtype="float32", always_2d=True)
    return pcm, int(samplerate)


class TrimPreviewPlayer:
    """
    Singleton preview slot.

    The stream callback tracks the playback position; once it reaches the
    end bound the callback stops the stream. Completion clears the playing
    flag and frees the decoded PCM while the stream handle stays in the slot
    until the next ``start`` or ``stop``.
    """
    __slots__ = (
        '_reader', '_decoder', '_stream_factory', '_callback_stop', '_on_state_changed',
        '_stream', '_pcm', '_samplerate', '_position', '_end_frame', '_playing',
        '_generation', 'completions'
    )

    def __init__(
        self,
        reader: Optional[FileReader] = None,
        decoder: Callable[[bytes], tuple[AudioArray, int]] = decode_pcm,
        stream_factory: Optional[StreamFactory] = None,
        callback_stop: Optional[type] = None,
        on_state_changed: Optional[Callable[[bool], None]] = None
    ) -> None:
        """
        Initialize the preview player.

        Args:
            reader: Raw file reader (defaults to reading from disk)
            decoder: Bytes → (pcm, samplerate)
            stream_factory: Output stream constructor (defaults to
                ``sounddevice.OutputStream``)
            callback_stop: Exception the callback raises to end the stream
                (defaults to ``sounddevice.CallbackStop``)
            on_state_changed: Called with the new playing flag
        """
        self._reader = reader or (lambda path: Path(path).read_bytes())
        self._decoder = decoder
        self._stream_factory = stream_factory
        self._callback_stop = callback_stop
        self._on_state_changed = on_state_changed
        self._stream: Optional[OutputStream] = None
        self._pcm: Optional[AudioArray] = None
        self._samplerate: int = AUDIO_CONFIG.default_samplerate
        self._position: int = 0
        self._end_frame: int = 0
        self._playing: bool = False
        self._generation: int = 0
        self.completions: int = 0

    @property
    def is_playing(self) -> bool:
        return self._playing

    @property
    def has_handle(self) -> bool:
        """True while a stream occupies the preview slot."""
        return self._stream is not None

    @property
    def has_buffer(self) -> bool:
        """True while decoded PCM is held for the current preview."""
        return self._pcm is not None

    @property
    def position_seconds(self) -> float:
        return self._position / self._samplerate if self._samplerate > 0 else 0.0

    def _set_playing(self, playing: bool) -> None:
        if self._playing != playing:
            self._playing = playing
            if self._on_state_changed:
                self._on_state_changed(playing)

    def _resolve_stream_api(self) -> None:
        if self._stream_factory is None or self._callback_stop is None:
            import sounddevice as sd
            self._stream_factory = self._stream_factory or sd.OutputStream
            self._callback_stop = self._callback_stop or sd.CallbackStop

    def start(self, file_path: str, start_time: float, end_time: float) -> bool:
        """
        Start previewing [start_time, end_time) of a file.

        Returns:
            True if the stream started; failures are logged, never raised
        """
        self.stop()
        self._generation += 1
        generation = self._generation

        try:
            self._resolve_stream_api()
            pcm, samplerate = self._decoder(self._reader(file_path))
            if pcm.ndim == 1:
                pcm = pcm[:, np.newaxis]

            start_frame = max(0, int(round(start_time * samplerate)))
            end_frame = min(len(pcm), int(round(end_time * samplerate)))
            if end_frame <= start_frame:
                raise ValueError(f"empty preview range {start_time:.2f}s - {end_time:.2f}s")

            self._pcm = pcm
            self._samplerate = samplerate
            self._position = start_frame
            self._end_frame = end_frame

            self._set_playing(True)
            self._stream = self._stream_factory(
                samplerate=samplerate,
                channels=AUDIO_CONFIG.playback_channels,
                blocksize=AUDIO_CONFIG.playback_blocksize,
                dtype="float32",
                callback=self._make_callback(generation),
                finished_callback=lambda: self._on_finished(generation)
            )
            self._stream.start()
            logger.debug("Preview stream started at frame %d", start_frame)
            return True

        except Exception as e:
            logger.error("Failed to preview %s: %s", file_path, e)
            self._release_stream()
            self._pcm = None
            self._set_playing(False)
            return False

    def _make_callback(self, generation: int):
        callback_stop = self._callback_stop
        out_channels = AUDIO_CONFIG.playback_channels

        def callback(outdata: np.ndarray, frames: int, time: object, status: object) -> None:
            outdata.fill(0)
            pcm = self._pcm
            if pcm is None or generation != self._generation:
                raise callback_stop()

            pos = self._position
            count = max(0, min(frames, self._end_frame - pos))
            if count:
                chunk = pcm[pos:pos + count]
                if chunk.shape[1] >= out_channels:
                    outdata[:count] = chunk[:, :out_channels]
                else:
                    outdata[:count] = chunk[:, :1]  # Mono to all outputs
                self._position = pos + count

            if self._position >= self._end_frame:
                raise callback_stop()

        return callback

    def _on_finished(self, generation: int) -> None:
        # Late completion of a replaced preview must not touch the new one.
        if generation != self._generation:
            return
        if self._playing:
            self.completions += 1
            logger.debug("Preview halted at %.2fs", self.position_seconds)
        self._pcm = None
        self._set_playing(False)

    def stop(self) -> None:
        """Stop the current preview and release its stream."""
        self._generation += 1
        self._release_stream()
        self._pcm = None
        self._set_playing(False)

    def _release_stream(self) -> None:
        if self._stream is not None:
            try:
                self._stream.stop()
                self._stream.close()
            except Exception as e:
                logger.warning("Error closing preview stream: %s", e)
            self._stream = None
