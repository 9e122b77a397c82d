from PySide6.QtCore import QEvent, Qt
from PySide6.QtGui import QKeyEvent
from PySide6.QtWidgets import QLineEdit, QWidget

from bookmarkcaller.app.ui.keys import GlobalKeyListener, has_shift, key_name


def _press(key, text="", modifiers=Qt.NoModifier):
    return QKeyEvent(QEvent.KeyPress, key, modifiers, text)


def test_key_names():
    assert key_name(_press(Qt.Key_Return)) == "Enter"
    assert key_name(_press(Qt.Key_Enter)) == "Enter"
    assert key_name(_press(Qt.Key_Backspace)) == "Backspace"
    assert key_name(_press(Qt.Key_Space, " ")) == "Space"
    assert key_name(_press(Qt.Key_Semicolon, ";")) == ";"
    assert has_shift(_press(Qt.Key_Return, modifiers=Qt.ShiftModifier))
    assert not has_shift(_press(Qt.Key_Return))


def test_listener_only_sees_its_own_widgets(qtbot):
    seen = []
    owner = QWidget()
    child = QLineEdit(owner)
    stranger = QLineEdit()
    qtbot.addWidget(owner)
    qtbot.addWidget(stranger)
    owner.show()
    stranger.show()
    listener = GlobalKeyListener(owner, lambda name, event: seen.append(name) or name == "x")
    listener.start()
    try:
        qtbot.keyClick(child, "x")
        qtbot.keyClick(stranger, "y")
    finally:
        listener.stop()
    assert seen == ["x"]
    assert child.text() == ""
    assert stranger.text() == "y"
    assert GlobalKeyListener.active_listener() is None
