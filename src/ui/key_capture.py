from PyQt6.QtCore import QObject, QEvent, Qt

from src.core.keybind import KeyPress

# Qt key codes whose chord name is not the typed text
_NAMED_KEYS = {
    Qt.Key.Key_Space.value: " ",
    Qt.Key.Key_Return.value: "Enter",
    Qt.Key.Key_Enter.value: "Enter",
    Qt.Key.Key_Escape.value: "Escape",
    Qt.Key.Key_Tab.value: "Tab",
    Qt.Key.Key_Backspace.value: "Backspace",
    Qt.Key.Key_Delete.value: "Delete",
    Qt.Key.Key_Insert.value: "Insert",
    Qt.Key.Key_Home.value: "Home",
    Qt.Key.Key_End.value: "End",
    Qt.Key.Key_PageUp.value: "PageUp",
    Qt.Key.Key_PageDown.value: "PageDown",
    Qt.Key.Key_Up.value: "ArrowUp",
    Qt.Key.Key_Down.value: "ArrowDown",
    Qt.Key.Key_Left.value: "ArrowLeft",
    Qt.Key.Key_Right.value: "ArrowRight",
    Qt.Key.Key_Control.value: "Control",
    Qt.Key.Key_Shift.value: "Shift",
    Qt.Key.Key_Alt.value: "Alt",
    Qt.Key.Key_Meta.value: "Meta",
}


def key_press_from_qt(key, text="", ctrl=False, alt=False, shift=False):
    """Translate a Qt key code to a ``KeyPress``; None for keys with no name."""
    name = _NAMED_KEYS.get(key)
    if name is None and Qt.Key.Key_F1.value <= key <= Qt.Key.Key_F24.value:
        name = f"F{key - Qt.Key.Key_F1.value + 1}"
    if name is None and 0x21 <= key < 0x7f:
        # Letters and digits by key code: with Ctrl held the text is a control character.
        name = chr(key)
    if name is None and text and text.isprintable():
        name = text
    if name is None:
        return None
    return KeyPress(name, ctrl=ctrl, alt=alt, shift=shift)


class KeyCaptureFilter(QObject):
    """
    Application-wide key filter that feeds the keybind recorder.
    Installed only while a recording session is open.
    """

    def __init__(self, recorder, parent=None):
        super().__init__(parent)
        self.recorder = recorder
        self.installed_on = None

    def install(self, target):
        if self.installed_on is None:
            target.installEventFilter(self)
            self.installed_on = target

    def remove(self):
        if self.installed_on is not None:
            self.installed_on.removeEventFilter(self)
            self.installed_on = None

    def eventFilter(self, obj, event):
        kind = event.type()
        if kind not in (QEvent.Type.KeyPress, QEvent.Type.ShortcutOverride) or event.isAutoRepeat():
            return False
        mods = event.modifiers()
        press = key_press_from_qt(
            event.key(),
            event.text(),
            ctrl=bool(mods & Qt.KeyboardModifier.ControlModifier),
            alt=bool(mods & Qt.KeyboardModifier.AltModifier),
            shift=bool(mods & Qt.KeyboardModifier.ShiftModifier),
        )
        if press is None:
            return False
        if kind == QEvent.Type.ShortcutOverride:
            # Claim the chord so window shortcuts do not fire and the KeyPress follows.
            if self.recorder.is_recording and not press.is_modifier:
                event.accept()
                return True
            return False
        return self.recorder.handle_key(press)
