from PyQt6.QtWidgets import QWidget
from PyQt6.QtCore import Qt, QRectF, pyqtSignal
from PyQt6.QtGui import QPainter, QColor, QPalette

from src.core.config import WAVEFORM_CONFIG
from src.core.waveform import EMPTY_WAVEFORM, in_range_mask


class WaveformWidget(QWidget):
    """Bar waveform of a sound with the trim window highlighted."""
    startRequested = pyqtSignal(float)  # Seconds
    endRequested = pyqtSignal(float)

    def __init__(self, parent=None):
        super().__init__(parent)
        self.waveform = EMPTY_WAVEFORM
        self.start_time = None
        self.end_time = None
        self.loading = False
        self.setMinimumHeight(100)
        self.setAutoFillBackground(True)
        self.setBackgroundRole(QPalette.ColorRole.Base)
        self.setSizePolicy(
            self.sizePolicy().Policy.Expanding,
            self.sizePolicy().Policy.Fixed
        )
        self.in_color = QColor(*WAVEFORM_CONFIG.in_range_color)
        self.out_color = QColor(*WAVEFORM_CONFIG.out_of_range_color)
        self.background = QColor(*WAVEFORM_CONFIG.background_color)
        self.setToolTip("Left click: set start · Right click: set end")

    def set_waveform(self, waveform):
        self.waveform = waveform
        self.loading = False
        self.update()

    def set_loading(self):
        self.waveform = EMPTY_WAVEFORM
        self.loading = True
        self.update()

    def set_trim(self, start_time, end_time):
        self.start_time = start_time
        self.end_time = end_time
        self.update()

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.fillRect(self.rect(), self.background)

        if self.waveform.is_empty:
            painter.setPen(QColor(100, 100, 100))
            text = "Loading waveform..." if self.loading else "No Waveform"
            painter.drawText(self.rect(), Qt.AlignmentFlag.AlignCenter, text)
            return

        rect = self.rect()
        width, height = rect.width(), rect.height()
        buckets = self.waveform.buckets
        count = len(buckets)
        mask = in_range_mask(count, self.waveform.duration, self.start_time, self.end_time)

        bar_width = width / count
        gap = WAVEFORM_CONFIG.bar_gap if bar_width > 2 * WAVEFORM_CONFIG.bar_gap else 0
        usable = height - 2 * WAVEFORM_CONFIG.vertical_margin
        mid_y = height / 2

        painter.setPen(Qt.PenStyle.NoPen)
        for i, value in enumerate(buckets):
            bar_height = max(1.0, float(value) * usable)
            painter.setBrush(self.in_color if mask[i] else self.out_color)
            painter.drawRect(QRectF(i * bar_width, mid_y - bar_height / 2,
                                    bar_width - gap, bar_height))

    def mousePressEvent(self, event):
        if self.waveform.is_empty or self.width() == 0:
            return
        ratio = max(0.0, min(1.0, event.position().x() / self.width()))
        seconds = ratio * self.waveform.duration
        if event.button() == Qt.MouseButton.LeftButton:
            self.startRequested.emit(seconds)
        elif event.button() == Qt.MouseButton.RightButton:
            self.endRequested.emit(seconds)
