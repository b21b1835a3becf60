"""
PySoundboard UI Module

Qt-based user interface components:
- MainWindow: Sound list, devices, queue controls and diagnostics console
- SoundWidget: One draggable row of the sound list
- SoundEditorDialog: Trim, settings and keybind editor
- WaveformWidget: Bar waveform with the trim window highlighted
- KeyCaptureFilter: Feeds key presses to the keybind recorder
"""
from .main_window import MainWindow
from .sound_widget import SoundWidget
from .sound_editor import SoundEditorDialog
from .waveform_view import WaveformWidget
from .key_capture import KeyCaptureFilter

__all__ = [
    'MainWindow',
    'SoundWidget',
    'SoundEditorDialog',
    'WaveformWidget',
    'KeyCaptureFilter',
]
