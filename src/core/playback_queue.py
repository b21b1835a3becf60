"""
Queue playback orchestration for PySoundboard.

The engine owns the queue; the client mirrors whatever the engine returns
from ``add_to_queue``. Once playback starts, a QTimer polls
``is_queue_playing`` until the engine reports the queue finished or the user
stops everything.
"""
from __future__ import annotations
import logging
from typing import Optional

from PyQt6.QtCore import QObject, QTimer, pyqtSignal

from .backend import BackendClient, BackendError
from .config import QUEUE_CONFIG, PlaybackState
from .diagnostics import DiagnosticsLog

logger = logging.getLogger("PySoundboard")


class PlaybackQueueOrchestrator(QObject):
    """
    Sequential queue playback with completion polling.

    The poll timer exists only between a successful ``play`` and the end of
    that queue session; ``_finish`` is the single place that ends a session
    and is safe to reach from the poll and from ``stop_all`` in any order.

    Signals:
        queueChanged: The mirrored queue changed
        stateChanged(object): New ``PlaybackState``
    """
    queueChanged = pyqtSignal()
    stateChanged = pyqtSignal(object)

    def __init__(
        self,
        client: BackendClient,
        diagnostics: DiagnosticsLog,
        poll_interval_ms: int = QUEUE_CONFIG.poll_interval_ms,
        parent: Optional[QObject] = None
    ) -> None:
        super().__init__(parent)
        self._client = client
        self._diagnostics = diagnostics
        self._queue: list[str] = []
        self._state = PlaybackState.STOPPED
        self.sessions_finished = 0

        self._poll_timer = QTimer(self)
        self._poll_timer.setInterval(poll_interval_ms)
        self._poll_timer.timeout.connect(self.poll)

    @property
    def queue(self) -> tuple[str, ...]:
        return tuple(self._queue)

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def is_playing(self) -> bool:
        return self._state == PlaybackState.PLAYING

    @property
    def is_polling(self) -> bool:
        return self._poll_timer.isActive()

    def _set_queue(self, queue: list[str]) -> None:
        self._queue = queue
        self.queueChanged.emit()

    def _set_state(self, state: PlaybackState) -> None:
        if self._state != state:
            self._state = state
            self.stateChanged.emit(state)

    # --- Queue contents ---

    def enqueue(self, sound_id: str) -> bool:
        """Append a sound; the engine's reply becomes the local queue."""
        try:
            queue = self._client.add_to_queue(sound_id)
        except BackendError as e:
            self._diagnostics.error(f"✗ Failed to add to queue: {e}")
            return False
        self._set_queue(queue)
        self._diagnostics.info(f"Queued ({len(queue)} in queue)")
        return True

    def clear(self) -> bool:
        try:
            self._client.clear_queue()
        except BackendError as e:
            self._diagnostics.error(f"✗ Failed to clear queue: {e}")
            return False
        self._finish()
        self._set_queue([])
        self._diagnostics.info("Queue cleared")
        return True

    # --- Session ---

    def play(self) -> bool:
        """
        Start playing the queue.

        Returns:
            False without contacting the engine when the queue is empty
        """
        if not self._queue:
            self._diagnostics.warning("Queue is empty")
            return False
        if self.is_playing:
            return False

        try:
            self._client.play_queue()
        except BackendError as e:
            self._diagnostics.error(f"✗ Failed to play queue: {e}")
            return False

        self._set_state(PlaybackState.PLAYING)
        self._poll_timer.start()
        self._diagnostics.success(f"✓ Playing queue ({len(self._queue)} sounds)")
        return True

    def poll(self) -> None:
        """One completion check; transient failures keep the session alive."""
        if not self.is_playing:
            self._poll_timer.stop()
            return
        try:
            still_playing = self._client.is_queue_playing()
        except BackendError as e:
            logger.warning("Queue status poll failed: %s", e)
            return
        if not still_playing:
            self._finish()
            self._diagnostics.success("Queue finished")

    def stop_all(self) -> bool:
        """Stop every sound in the engine and end the queue session."""
        try:
            self._client.stop_all()
        except BackendError as e:
            self._diagnostics.error(f"✗ Failed to stop sounds: {e}")
            return False
        self._finish()
        self._diagnostics.success("✓ All sounds stopped")
        return True

    def _finish(self) -> None:
        self._poll_timer.stop()
        if not self.is_playing:
            return
        self.sessions_finished += 1
        self._set_queue([])
        self._set_state(PlaybackState.STOPPED)
