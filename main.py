import sys
from PyQt6.QtWidgets import QApplication
import qdarktheme

from src.core.engine import LocalAudioEngine
from src.core.soundboard import Soundboard
from src.ui.main_window import MainWindow

def main():
    app = QApplication(sys.argv)
    app.setApplicationName("PySoundboard")

    # Apply modern dark theme
    app.setStyleSheet(qdarktheme.load_stylesheet(theme="dark"))

    engine = LocalAudioEngine()
    engine.start()
    soundboard = Soundboard(engine)

    window = MainWindow(soundboard)
    window.show()
    soundboard.initialize()

    code = app.exec()
    engine.shutdown()
    sys.exit(code)

if __name__ == "__main__":
    main()
