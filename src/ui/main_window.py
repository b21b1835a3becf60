from PyQt6.QtWidgets import (QMainWindow, QWidget, QVBoxLayout, QHBoxLayout,
                             QPushButton, QLabel, QFileDialog, QScrollArea, QComboBox,
                             QSlider, QCheckBox, QDockWidget, QPlainTextEdit, QApplication)
from PyQt6.QtCore import Qt, QSize, pyqtSignal
from PyQt6.QtGui import QAction, QKeySequence, QColor, QTextCharFormat
import qtawesome as qta

from src.core.config import DIAGNOSTICS_CONFIG, LIBRARY_CONFIG, PlaybackState, Severity
from src.ui.key_capture import KeyCaptureFilter
from src.ui.sound_editor import SoundEditorDialog
from src.ui.sound_widget import SoundWidget
from src.utils.logger import logger

SEVERITY_COLORS = {
    Severity.INFO: "#cccccc",
    Severity.SUCCESS: "#00ff41",
    Severity.WARNING: "#ffaa00",
    Severity.ERROR: "#ff5555",
}


class MainWindow(QMainWindow):
    diagnosticReceived = pyqtSignal(object)

    def __init__(self, soundboard):
        super().__init__()

        self.setWindowTitle("PySoundboard")
        self.resize(720, 640)

        # Core Components
        self.soundboard = soundboard
        self.library = soundboard.library
        self.library.soundsChanged.connect(self.refresh_sound_list)
        self.soundboard.queue.queueChanged.connect(self.on_queue_changed)
        self.soundboard.queue.stateChanged.connect(self.on_queue_state_changed)
        self.soundboard.preferences.devicesChanged.connect(self.refresh_devices)
        self.soundboard.preferences.settingsChanged.connect(self.refresh_settings)
        self.soundboard.preferences.versionChanged.connect(self.on_version_changed)

        # Keybind capture lives only as long as a recording session
        self.key_filter = KeyCaptureFilter(soundboard.recorder, self)
        self.soundboard.captureChanged.connect(self.on_capture_changed)

        self.diagnosticReceived.connect(self.append_diagnostic)
        self.soundboard.diagnostics.subscribe(self.diagnosticReceived.emit)

        # UI Setup
        self.central_widget = QWidget()
        self.setCentralWidget(self.central_widget)
        self.main_layout = QVBoxLayout(self.central_widget)

        self.create_toolbar()
        self.create_device_controls()
        self.create_sound_view()
        self.create_console()
        self.editor_dialog = SoundEditorDialog(soundboard, self)

        self.sound_widgets = []
        self.version_label = QLabel()
        self.statusBar().addPermanentWidget(self.version_label)
        self.statusBar().showMessage("Ready")

    def create_toolbar(self):
        toolbar = self.addToolBar("Sounds")
        toolbar.setMovable(False)

        add_action = QAction(qta.icon("fa5s.plus", color="white"), "Add Sounds", self)
        add_action.setShortcut(QKeySequence.StandardKey.Open)
        add_action.triggered.connect(self.import_file_dialog)
        toolbar.addAction(add_action)

        stop_action = QAction(qta.icon("fa5s.stop", color="#ff5555"), "Stop All", self)
        stop_action.triggered.connect(self.soundboard.stop_all)
        toolbar.addAction(stop_action)

        toolbar.addSeparator()

        self.play_queue_action = QAction(qta.icon("fa5s.play-circle", color="#55ff55"), "Play Queue", self)
        self.play_queue_action.triggered.connect(self.soundboard.queue.play)
        toolbar.addAction(self.play_queue_action)

        clear_queue_action = QAction(qta.icon("fa5s.times-circle", color="white"), "Clear Queue", self)
        clear_queue_action.triggered.connect(self.soundboard.queue.clear)
        toolbar.addAction(clear_queue_action)

        self.queue_label = QLabel("Queue: 0")
        self.queue_label.setStyleSheet("color: #aaa; padding-left: 8px;")
        toolbar.addWidget(self.queue_label)

    def create_device_controls(self):
        panel = QWidget()
        layout = QVBoxLayout(panel)
        layout.setContentsMargins(10, 6, 10, 6)

        device_row = QHBoxLayout()
        self.primary_combo = QComboBox()
        self.primary_combo.activated.connect(
            lambda i: self.soundboard.preferences.set_primary_device(self.primary_combo.itemText(i)))
        self.monitor_combo = QComboBox()
        self.monitor_combo.activated.connect(
            lambda i: self.soundboard.preferences.set_monitor_device(self.monitor_combo.itemData(i)))
        device_row.addWidget(QLabel("Output:"))
        device_row.addWidget(self.primary_combo, stretch=1)
        device_row.addWidget(QLabel("Monitor:"))
        device_row.addWidget(self.monitor_combo, stretch=1)
        layout.addLayout(device_row)

        options_row = QHBoxLayout()
        vol_icon = QLabel()
        vol_icon.setPixmap(qta.icon("fa5s.volume-up", color="gray").pixmap(12, 12))
        self.volume_slider = QSlider(Qt.Orientation.Horizontal)
        self.volume_slider.setRange(0, 100)
        self.volume_slider.sliderReleased.connect(
            lambda: self.soundboard.preferences.set_master_volume(self.volume_slider.value() / 100.0))

        self.overlap_check = QCheckBox("Overlap sounds")
        self.overlap_check.toggled.connect(self.soundboard.preferences.set_overlap_mode)

        self.stop_key_label = QLabel()
        self.stop_key_label.setStyleSheet("color: #00ff41; font-family: monospace;")
        self.btn_stop_key = QPushButton()
        self.btn_stop_key.setIcon(qta.icon("fa5s.keyboard", color="white"))
        self.btn_stop_key.setIconSize(QSize(14, 14))
        self.btn_stop_key.setToolTip("Record Stop All keybind")
        self.btn_stop_key.clicked.connect(self.soundboard.record_stop_all_keybind)
        btn_clear_key = QPushButton()
        btn_clear_key.setIcon(qta.icon("fa5s.times", color="#888"))
        btn_clear_key.setIconSize(QSize(10, 10))
        btn_clear_key.setToolTip("Clear Stop All keybind")
        btn_clear_key.clicked.connect(self.soundboard.clear_stop_all_keybind)

        options_row.addWidget(vol_icon)
        options_row.addWidget(self.volume_slider, stretch=1)
        options_row.addWidget(self.overlap_check)
        options_row.addWidget(QLabel("Stop All:"))
        options_row.addWidget(self.stop_key_label)
        options_row.addWidget(self.btn_stop_key)
        options_row.addWidget(btn_clear_key)
        layout.addLayout(options_row)

        self.main_layout.addWidget(panel)

    def create_sound_view(self):
        self.scroll_area = QScrollArea()
        self.scroll_area.setWidgetResizable(True)
        self.sound_container = QWidget()
        self.sound_layout = QVBoxLayout(self.sound_container)
        self.sound_layout.setContentsMargins(0, 0, 0, 0)
        self.sound_layout.setSpacing(1)
        self.sound_layout.addStretch()
        self.scroll_area.setWidget(self.sound_container)
        self.main_layout.addWidget(self.scroll_area, stretch=1)

        self.empty_label = QLabel("No sounds yet. Add some with Ctrl+O.")
        self.empty_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.empty_label.setStyleSheet("color: #666;")
        self.sound_layout.insertWidget(0, self.empty_label)

    def create_console(self):
        dock = QDockWidget("Diagnostics", self)
        dock.setAllowedAreas(Qt.DockWidgetArea.BottomDockWidgetArea)
        self.console = QPlainTextEdit()
        self.console.setReadOnly(True)
        self.console.setMaximumBlockCount(DIAGNOSTICS_CONFIG.max_entries)
        self.console.setStyleSheet("font-family: monospace;")
        dock.setWidget(self.console)
        self.addDockWidget(Qt.DockWidgetArea.BottomDockWidgetArea, dock)

    # --- Refresh ---

    def refresh_sound_list(self):
        for widget in self.sound_widgets:
            self.sound_layout.removeWidget(widget)
            widget.deleteLater()
        self.sound_widgets = []

        for i, sound in enumerate(self.library.sounds):
            widget = SoundWidget(sound, self.library)
            widget.playRequested.connect(self.soundboard.play_sound)
            widget.queueRequested.connect(self.soundboard.queue.enqueue)
            widget.editRequested.connect(self.editor_dialog.open_sound)
            self.sound_layout.insertWidget(i, widget)
            self.sound_widgets.append(widget)

        self.empty_label.setVisible(not self.sound_widgets)

    def refresh_devices(self):
        prefs = self.soundboard.preferences
        self.primary_combo.clear()
        self.monitor_combo.clear()
        self.monitor_combo.addItem("None", None)
        for device in prefs.devices:
            self.primary_combo.addItem(device.name)
            self.monitor_combo.addItem(device.name, device.name)
        self.refresh_settings()

    def refresh_settings(self):
        settings = self.soundboard.preferences.settings
        for combo, name in ((self.primary_combo, settings.primary_device),
                            (self.monitor_combo, settings.monitor_device)):
            index = combo.findText(name) if name else (0 if combo is self.monitor_combo else -1)
            combo.setCurrentIndex(index)

        self.volume_slider.blockSignals(True)
        self.volume_slider.setValue(int(round(settings.master_volume * 100)))
        self.volume_slider.blockSignals(False)
        self.overlap_check.blockSignals(True)
        self.overlap_check.setChecked(settings.overlap_mode)
        self.overlap_check.blockSignals(False)
        self.stop_key_label.setText(settings.stop_all_keybind or "Not set")

    def on_queue_changed(self):
        self.queue_label.setText(f"Queue: {len(self.soundboard.queue.queue)}")

    def on_queue_state_changed(self, state):
        playing = state == PlaybackState.PLAYING
        self.play_queue_action.setEnabled(not playing)
        self.statusBar().showMessage("Playing queue" if playing else "Ready", 3000)

    def on_version_changed(self, version, update_info):
        text = f"v{version}" if version else ""
        if update_info is not None and update_info.available:
            text += f"  (update v{update_info.version} available)"
        self.version_label.setText(text)

    def on_capture_changed(self, active):
        if active:
            self.key_filter.install(QApplication.instance())
            self.btn_stop_key.setDown(True)
        else:
            self.key_filter.remove()
            self.btn_stop_key.setDown(False)
            self.refresh_settings()

    def append_diagnostic(self, entry):
        fmt = QTextCharFormat()
        fmt.setForeground(QColor(SEVERITY_COLORS[entry.severity]))
        cursor = self.console.textCursor()
        cursor.movePosition(cursor.MoveOperation.End)
        if not self.console.document().isEmpty():
            cursor.insertBlock()
        cursor.insertText(f"[{entry.timestamp}] {entry.message}", fmt)
        self.console.setTextCursor(cursor)
        self.console.ensureCursorVisible()
        if entry.severity in (Severity.WARNING, Severity.ERROR):
            self.statusBar().showMessage(entry.message, 5000)

    # --- Files ---

    def import_file_dialog(self):
        logger.info("Opening import file dialog")
        patterns = " ".join(f"*.{ext}" for ext in LIBRARY_CONFIG.audio_extensions)
        file_paths, _ = QFileDialog.getOpenFileNames(self, "Add Sounds", "", f"Audio Files ({patterns})")
        if file_paths:
            logger.info(f"User selected {len(file_paths)} files")
            self.soundboard.library.import_files(file_paths)

    def closeEvent(self, event):
        self.key_filter.remove()
        self.soundboard.shutdown()
        super().closeEvent(event)
