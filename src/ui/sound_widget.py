from PyQt6.QtWidgets import QWidget, QHBoxLayout, QLabel, QPushButton, QApplication
from PyQt6.QtCore import Qt, QSize, QMimeData, pyqtSignal
from PyQt6.QtGui import QDrag
import qtawesome as qta

from src.core.library import Dragging
from src.utils.logger import logger

SOUND_MIME_TYPE = "application/x-pysoundboard-sound"


class SoundWidget(QWidget):
    """One row of the sound list: name, keybind and actions. Rows are drag handles and drop targets."""
    playRequested = pyqtSignal(str)
    queueRequested = pyqtSignal(str)
    editRequested = pyqtSignal(str)

    def __init__(self, sound, library, parent=None):
        super().__init__(parent)
        self.sound = sound
        self.library = library
        self.drag_start = None
        self.setAcceptDrops(True)
        self.setObjectName("soundRow")
        self.setAttribute(Qt.WidgetAttribute.WA_StyledBackground, True)
        self.init_ui()
        self.refresh_state()
        library.dragChanged.connect(self.refresh_state)
        library.playingChanged.connect(self.refresh_state)

    def init_ui(self):
        self.layout = QHBoxLayout()
        self.setLayout(self.layout)
        self.layout.setContentsMargins(8, 4, 8, 4)
        self.layout.setSpacing(6)
        self.setMinimumHeight(40)

        handle = QLabel()
        handle.setPixmap(qta.icon("fa5s.grip-vertical", color="#666").pixmap(12, 12))
        handle.setToolTip("Drag to reorder")

        self.name_label = QLabel(self.sound.name)
        self.name_label.setStyleSheet("font-weight: bold;")

        self.keybind_label = QLabel(self.sound.keybind or "")
        self.keybind_label.setStyleSheet("color: #00ff41; font-family: monospace;")

        self.trim_icon = QLabel()
        if self.sound.has_trim:
            self.trim_icon.setPixmap(qta.icon("fa5s.cut", color="#ffaa00").pixmap(12, 12))
            self.trim_icon.setToolTip("Trimmed")

        self.btn_play = self._button("fa5s.play", "Play", self.playRequested)
        self.btn_queue = self._button("fa5s.list", "Add to queue", self.queueRequested)
        self.btn_edit = self._button("fa5s.sliders-h", "Edit", self.editRequested)

        self.layout.addWidget(handle)
        self.layout.addWidget(self.name_label, stretch=1)
        self.layout.addWidget(self.trim_icon)
        self.layout.addWidget(self.keybind_label)
        self.layout.addWidget(self.btn_play)
        self.layout.addWidget(self.btn_queue)
        self.layout.addWidget(self.btn_edit)

    def _button(self, icon, tooltip, signal):
        btn = QPushButton()
        btn.setIcon(qta.icon(icon, color="white"))
        btn.setIconSize(QSize(14, 14))
        btn.setToolTip(tooltip)
        btn.clicked.connect(lambda: signal.emit(self.sound.id))
        return btn

    def refresh_state(self, *args):
        drag = self.library.drag_state
        if isinstance(drag, Dragging) and drag.dragged_id == self.sound.id:
            style = "border: 1px dashed #555;"
        elif isinstance(drag, Dragging) and drag.over_id == self.sound.id:
            style = "border-top: 2px solid #00ff41;"
        elif self.library.playing_sound == self.sound.id:
            style = "background-color: #1f3a24;"
        else:
            style = ""
        self.setStyleSheet(f"#soundRow {{ {style} }}" if style else "")

    # --- Drag source ---

    def mousePressEvent(self, event):
        if event.button() == Qt.MouseButton.LeftButton:
            self.drag_start = event.position().toPoint()
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event):
        if self.drag_start is None or not (event.buttons() & Qt.MouseButton.LeftButton):
            return
        distance = (event.position().toPoint() - self.drag_start).manhattanLength()
        if distance < QApplication.startDragDistance():
            return
        self.drag_start = None

        mime = QMimeData()
        mime.setData(SOUND_MIME_TYPE, self.sound.id.encode("utf-8"))
        drag = QDrag(self)
        drag.setMimeData(mime)
        drag.setPixmap(self.grab())

        self.library.begin_drag(self.sound.id)
        drag.exec(Qt.DropAction.MoveAction)
        # Dropped anywhere, cancelled, or outside the window
        self.library.end_drag()

    def mouseReleaseEvent(self, event):
        self.drag_start = None
        super().mouseReleaseEvent(event)

    # --- Drop target ---

    def dragEnterEvent(self, event):
        if event.mimeData().hasFormat(SOUND_MIME_TYPE):
            event.acceptProposedAction()
            self.library.drag_over(self.sound.id)

    def dragMoveEvent(self, event):
        if event.mimeData().hasFormat(SOUND_MIME_TYPE):
            event.acceptProposedAction()
            self.library.drag_over(self.sound.id)

    def dragLeaveEvent(self, event):
        self.library.drag_leave()

    def dropEvent(self, event):
        if not event.mimeData().hasFormat(SOUND_MIME_TYPE):
            return
        event.acceptProposedAction()
        logger.debug(f"Drop on {self.sound.name}")
        self.library.drop_on(self.sound.id)
