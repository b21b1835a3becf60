from PyQt6.QtWidgets import (QDialog, QVBoxLayout, QHBoxLayout, QFormLayout, QLabel,
                             QPushButton, QDoubleSpinBox, QSlider, QCheckBox, QGroupBox)
from PyQt6.QtCore import Qt, QSize
import qtawesome as qta

from src.core.config import SOUND_LIMITS, TRIM_CONFIG
from src.ui.waveform_view import WaveformWidget


class SoundEditorDialog(QDialog):
    """Trim, settings and keybind editor for one sound, bound to a ``SoundEditor`` session."""

    def __init__(self, soundboard, parent=None):
        super().__init__(parent)
        self.soundboard = soundboard
        self.editor = soundboard.editor
        self.setWindowTitle("Edit Sound")
        self.resize(640, 520)
        self.init_ui()

        self.editor.sessionChanged.connect(self.sync)
        self.editor.waveformChanged.connect(self.on_waveform)
        self.soundboard.previewStateChanged.connect(self.on_preview_state)
        self.soundboard.captureChanged.connect(lambda active: self.sync())
        self.finished.connect(self.on_finished)

    def init_ui(self):
        layout = QVBoxLayout(self)

        self.name_label = QLabel()
        self.name_label.setStyleSheet("font-weight: bold; font-size: 14px;")
        layout.addWidget(self.name_label)

        # Waveform + trim
        self.waveform = WaveformWidget()
        self.waveform.setFixedHeight(120)
        self.waveform.startRequested.connect(self.editor.set_start)
        self.waveform.endRequested.connect(self.editor.set_end)
        layout.addWidget(self.waveform)

        trim_row = QHBoxLayout()
        self.start_spin = self._spin(0, 0, TRIM_CONFIG.step_seconds, " s")
        self.start_spin.valueChanged.connect(self.editor.set_start)
        self.end_spin = self._spin(0, 0, TRIM_CONFIG.step_seconds, " s")
        self.end_spin.valueChanged.connect(self.editor.set_end)
        btn_reset = QPushButton("Reset")
        btn_reset.clicked.connect(self.editor.reset_trim)

        self.btn_preview = QPushButton()
        self.btn_preview.setIcon(qta.icon("fa5s.play", color="white"))
        self.btn_preview.setIconSize(QSize(14, 14))
        self.btn_preview.setToolTip("Preview trim")
        self.btn_preview.clicked.connect(self.toggle_preview)

        trim_row.addWidget(QLabel("Start:"))
        trim_row.addWidget(self.start_spin)
        trim_row.addWidget(QLabel("End:"))
        trim_row.addWidget(self.end_spin)
        trim_row.addWidget(btn_reset)
        trim_row.addStretch()
        trim_row.addWidget(self.btn_preview)
        layout.addLayout(trim_row)

        # Keybind
        key_row = QHBoxLayout()
        self.keybind_label = QLabel()
        self.keybind_label.setStyleSheet("color: #00ff41; font-family: monospace;")
        self.btn_record = QPushButton("Record")
        self.btn_record.setIcon(qta.icon("fa5s.keyboard", color="white"))
        self.btn_record.clicked.connect(self.editor.record_keybind)
        btn_clear_key = QPushButton("Clear")
        btn_clear_key.clicked.connect(self.editor.clear_keybind)
        key_row.addWidget(QLabel("Keybind:"))
        key_row.addWidget(self.keybind_label, stretch=1)
        key_row.addWidget(self.btn_record)
        key_row.addWidget(btn_clear_key)
        layout.addLayout(key_row)

        # Settings
        group = QGroupBox("Playback & Effects")
        form = QFormLayout(group)

        self.volume_slider = QSlider(Qt.Orientation.Horizontal)
        low, high = SOUND_LIMITS.volume
        self.volume_slider.setRange(int(low * 100), int(high * 100))
        self.volume_slider.valueChanged.connect(lambda v: self.editor.update_settings(volume=v / 100.0))
        form.addRow("Volume:", self.volume_slider)

        self.loop_check = QCheckBox("Loop")
        self.loop_check.toggled.connect(lambda checked: self.editor.update_settings(loop_mode=checked))
        form.addRow("", self.loop_check)

        self.effect_spins = {}
        effects = [
            ("playback_speed", "Speed:", SOUND_LIMITS.playback_speed, 0.05, "x"),
            ("echo_delay", "Echo Delay:", SOUND_LIMITS.echo_delay_ms, 10, " ms"),
            ("echo_volume", "Echo Volume:", SOUND_LIMITS.echo_volume, 0.05, ""),
            ("reverb_decay", "Reverb Decay:", SOUND_LIMITS.reverb_decay, 0.05, ""),
            ("bass_boost", "Bass Boost:", SOUND_LIMITS.bass_boost_db, 1, " dB"),
            ("fake_bass_boost", "Fake Bass:", SOUND_LIMITS.fake_bass_boost, 0.05, ""),
        ]
        for name, label, (low, high), step, suffix in effects:
            spin = self._spin(low, high, step, suffix)
            spin.valueChanged.connect(lambda v, n=name: self.editor.update_settings(**{n: v}))
            form.addRow(label, spin)
            self.effect_spins[name] = spin
        layout.addWidget(group)

        # Actions
        actions = QHBoxLayout()
        btn_remove = QPushButton("Remove")
        btn_remove.setIcon(qta.icon("fa5s.trash-alt", color="#ff5555"))
        btn_remove.clicked.connect(self.remove)
        btn_cancel = QPushButton("Cancel")
        btn_cancel.clicked.connect(self.reject)
        btn_save = QPushButton("Save")
        btn_save.setIcon(qta.icon("fa5s.save", color="white"))
        btn_save.clicked.connect(self.save)
        actions.addWidget(btn_remove)
        actions.addStretch()
        actions.addWidget(btn_cancel)
        actions.addWidget(btn_save)
        layout.addLayout(actions)

    def _spin(self, low, high, step, suffix):
        spin = QDoubleSpinBox()
        spin.setRange(low, high)
        spin.setSingleStep(step)
        spin.setDecimals(2)
        spin.setSuffix(suffix)
        return spin

    def open_sound(self, sound_id):
        if not self.editor.open(sound_id):
            return False
        self.waveform.set_loading()
        self.sync()
        self.show()
        return True

    def sync(self):
        """Push the session's working copy into the controls without echoing edits back."""
        session = self.editor.session
        if session is None:
            if self.isVisible():
                self.hide()
            return

        self.name_label.setText(session.sound.name)
        self.keybind_label.setText(session.keybind or "Not set")

        duration = session.duration
        start, end = session.trim.interval(duration)
        self.waveform.set_trim(session.trim.start_time, session.trim.end_time)

        settings = session.settings
        controls = [self.start_spin, self.end_spin, self.volume_slider, self.loop_check,
                    *self.effect_spins.values()]
        for control in controls:
            control.blockSignals(True)
        self.start_spin.setRange(0, duration)
        self.end_spin.setRange(0, duration)
        self.start_spin.setValue(start)
        self.end_spin.setValue(end)
        self.start_spin.setEnabled(duration > 0)
        self.end_spin.setEnabled(duration > 0)
        self.volume_slider.setValue(int(round(settings.volume * 100)))
        self.loop_check.setChecked(settings.loop_mode)
        for name, spin in self.effect_spins.items():
            spin.setValue(getattr(settings, name))
        for control in controls:
            control.blockSignals(False)

        recording = self.soundboard.recorder.is_recording_for(session.sound.id)
        self.btn_record.setText("Press keys..." if recording else "Record")

    def on_waveform(self):
        session = self.editor.session
        if session is not None:
            self.waveform.set_waveform(session.waveform)
            self.sync()

    def toggle_preview(self):
        if self.soundboard.preview.is_playing:
            self.editor.stop_preview()
        else:
            self.editor.preview()

    def on_preview_state(self, playing):
        icon = "fa5s.stop" if playing else "fa5s.play"
        self.btn_preview.setIcon(qta.icon(icon, color="white"))

    def save(self):
        self.editor.save()
        self.accept()

    def remove(self):
        if self.editor.remove():
            self.accept()

    def on_finished(self, result):
        self.editor.close()
