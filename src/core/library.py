"""
Sound library state for PySoundboard.

Holds the ordered sound list mirrored from the engine, applies edits through
engine commands followed by a reload, and owns drag-to-reorder with an
optimistic local update that is rolled back by refetching on failure.
"""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, TypeVar, Union

from PyQt6.QtCore import QObject, QTimer, pyqtSignal

from .backend import BackendClient, BackendError
from .config import LIBRARY_CONFIG
from .diagnostics import DiagnosticsLog
from .models import Sound, SoundSettings

logger = logging.getLogger("PySoundboard")

T = TypeVar("T")


def move_item(items: Sequence[T], source: int, target: int) -> list[T]:
    """
    Move one element from ``source`` to ``target``.

    The element is removed first and then inserted at ``target`` in the
    shortened list, so it ends up at index ``target`` of the result.
    """
    result = list(items)
    if not (0 <= source < len(result)) or not (0 <= target < len(result)):
        raise IndexError(f"move {source} -> {target} out of range for {len(result)} items")
    item = result.pop(source)
    result.insert(target, item)
    return result


# --- Drag session state ---

@dataclass(frozen=True, slots=True)
class NotDragging:
    """No drag in progress."""


@dataclass(frozen=True, slots=True)
class Dragging:
    dragged_id: str
    over_id: Optional[str] = None


DragState = Union[NotDragging, Dragging]
NOT_DRAGGING = NotDragging()


class SoundLibraryStore(QObject):
    """
    Ordered sound collection.

    Signals:
        soundsChanged: The list or an entry changed
        dragChanged: The drag session or its hover marker changed
        playingChanged(str): Id of the sound shown as playing ("" for none)
        soundRemoved(str): A sound was deleted
    """
    soundsChanged = pyqtSignal()
    dragChanged = pyqtSignal()
    playingChanged = pyqtSignal(str)
    soundRemoved = pyqtSignal(str)

    def __init__(self, client: BackendClient, diagnostics: DiagnosticsLog,
                 parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._client = client
        self._diagnostics = diagnostics
        self._sounds: list[Sound] = []
        self._drag: DragState = NOT_DRAGGING
        self._playing_sound: Optional[str] = None
        self.overlap_mode = True

        self._playing_timer = QTimer(self)
        self._playing_timer.setSingleShot(True)
        self._playing_timer.timeout.connect(self.clear_playing)

    # --- Queries ---

    @property
    def sounds(self) -> tuple[Sound, ...]:
        return tuple(self._sounds)

    @property
    def sound_ids(self) -> list[str]:
        return [s.id for s in self._sounds]

    @property
    def drag_state(self) -> DragState:
        return self._drag

    @property
    def playing_sound(self) -> Optional[str]:
        return self._playing_sound

    def get(self, sound_id: str) -> Optional[Sound]:
        return next((s for s in self._sounds if s.id == sound_id), None)

    def index_of(self, sound_id: str) -> int:
        for i, sound in enumerate(self._sounds):
            if sound.id == sound_id:
                return i
        return -1

    def __len__(self) -> int:
        return len(self._sounds)

    # --- Loading ---

    def reload(self) -> bool:
        """Replace local state with the engine's list."""
        try:
            sounds = self._client.get_sounds()
        except BackendError as e:
            self._diagnostics.error(f"Failed to load sounds: {e}")
            return False
        self._sounds = sorted(sounds, key=lambda s: s.order)
        self.soundsChanged.emit()
        if self._sounds:
            self._diagnostics.success(f"Loaded {len(self._sounds)} sounds")
        return True

    def import_files(self, file_paths: Iterable[str]) -> list[Sound]:
        """Add each file to the engine, then reload once."""
        added = []
        for file_path in file_paths:
            self._diagnostics.info(f"Adding: {file_path}")
            try:
                sound = self._client.add_sound_from_path(file_path)
            except BackendError as e:
                self._diagnostics.error(f"✗ Failed to add sound {os.path.basename(file_path)}: {e}")
                continue
            added.append(sound)
            self._diagnostics.success(f"✓ Added sound: {sound.name}")
        self.reload()
        return added

    def remove_sound(self, sound_id: str) -> bool:
        try:
            self._client.remove_sound(sound_id)
        except BackendError as e:
            self._diagnostics.error(f"✗ Failed to remove sound: {e}")
            return False
        self._sounds = [s for s in self._sounds if s.id != sound_id]
        self._diagnostics.success("✓ Sound removed")
        self.soundRemoved.emit(sound_id)
        self.soundsChanged.emit()
        self.reload()
        return True

    # --- Edits (each followed by a reload) ---

    def update_trim(self, sound_id: str, start_time: Optional[float], end_time: Optional[float]) -> bool:
        try:
            self._client.update_sound_trim(sound_id, start_time, end_time)
        except BackendError as e:
            self._diagnostics.error(f"✗ Failed to save trim: {e}")
            return False
        self.reload()
        return True

    def update_settings(self, sound_id: str, settings: SoundSettings) -> bool:
        settings = settings.clamped()
        try:
            self._client.update_sound_settings(sound_id, settings)
        except BackendError as e:
            self._diagnostics.error(f"✗ Failed to save sound settings: {e}")
            return False
        self.reload()
        return True

    # --- Playback ---

    def play_sound(self, sound_id: str) -> bool:
        sound = self.get(sound_id)
        name = sound.name if sound else sound_id
        try:
            if not self.overlap_mode:
                self._client.stop_all()
            self._set_playing(sound_id)
            self._diagnostics.info(f"Playing: {name}")
            self._client.play_sound(sound_id)
        except BackendError as e:
            self._diagnostics.error(f"✗ Failed to play {name}: {e}")
            self.clear_playing()
            return False
        self._diagnostics.success(f"✓ Started playback: {name}")
        self._playing_timer.start(LIBRARY_CONFIG.playing_indicator_ms)
        return True

    def _set_playing(self, sound_id: Optional[str]) -> None:
        if self._playing_sound != sound_id:
            self._playing_sound = sound_id
            self.playingChanged.emit(sound_id or "")

    def clear_playing(self) -> None:
        self._playing_timer.stop()
        self._set_playing(None)

    # --- Reorder ---

    def reorder(self, source: int, target: int) -> bool:
        """
        Move one sound and submit the full order to the engine.

        The new order is applied locally first; if the engine rejects it the
        local list is replaced by a fresh reload.
        """
        if source == target:
            return False
        moved = move_item(self._sounds, source, target)
        self._sounds = [sound.with_order(i) for i, sound in enumerate(moved)]
        self.soundsChanged.emit()

        try:
            self._client.update_sound_order([s.id for s in self._sounds])
        except BackendError as e:
            self._diagnostics.error(f"Failed to update order: {e}")
            self.reload()
            return False
        self._diagnostics.success("Sound order updated")
        return True

    def begin_drag(self, sound_id: str) -> None:
        self._drag = Dragging(sound_id)
        self.dragChanged.emit()

    def drag_over(self, sound_id: str) -> None:
        """Update the hover marker; never changes the order."""
        drag = self._drag
        if isinstance(drag, Dragging) and sound_id != drag.dragged_id and drag.over_id != sound_id:
            self._drag = Dragging(drag.dragged_id, sound_id)
            self.dragChanged.emit()

    def drag_leave(self) -> None:
        drag = self._drag
        if isinstance(drag, Dragging) and drag.over_id is not None:
            self._drag = Dragging(drag.dragged_id)
            self.dragChanged.emit()

    def drop_on(self, target_id: str) -> bool:
        """
        Release the dragged sound over ``target_id``.

        Returns:
            True if an order was submitted to the engine
        """
        drag = self._drag
        self.end_drag()
        if not isinstance(drag, Dragging) or drag.dragged_id == target_id:
            return False

        source = self.index_of(drag.dragged_id)
        target = self.index_of(target_id)
        if source == -1 or target == -1:
            logger.debug("Drop ignored: %s -> %s not in library", drag.dragged_id, target_id)
            return False
        return self.reorder(source, target)

    def end_drag(self) -> None:
        """Terminate the drag session wherever the drag ended."""
        if not isinstance(self._drag, NotDragging):
            self._drag = NOT_DRAGGING
            self.dragChanged.emit()
