from __future__ import annotations

from typing import Callable, Optional

from PySide6.QtCore import QEvent, QObject, Qt
from PySide6.QtGui import QKeyEvent
from PySide6.QtWidgets import QApplication, QWidget

_NAMED_KEYS = {
    int(Qt.Key.Key_Up): "Up",
    int(Qt.Key.Key_Down): "Down",
    int(Qt.Key.Key_Left): "Left",
    int(Qt.Key.Key_Right): "Right",
    int(Qt.Key.Key_Return): "Enter",
    int(Qt.Key.Key_Enter): "Enter",
    int(Qt.Key.Key_Space): "Space",
    int(Qt.Key.Key_Backspace): "Backspace",
    int(Qt.Key.Key_Delete): "Delete",
    int(Qt.Key.Key_Tab): "Tab",
    int(Qt.Key.Key_Escape): "Escape",
    int(Qt.Key.Key_Home): "Home",
    int(Qt.Key.Key_End): "End",
}


def key_name(event: QKeyEvent) -> str:
    """Name a key press the way shortcut settings store it ("Backspace", "Up", "a", ";")."""
    name = _NAMED_KEYS.get(int(event.key()))
    if name:
        return name
    return event.text()


def has_shift(event: QKeyEvent) -> bool:
    return bool(event.modifiers() & Qt.KeyboardModifier.ShiftModifier)


class GlobalKeyListener(QObject):
    """Application-wide key press hook for one picker at a time.

    Starting a listener stops whichever one was active before, and pickers
    stop theirs when they close, so handlers never pile up across repeated
    open/close cycles.
    """

    _active: Optional["GlobalKeyListener"] = None

    def __init__(self, owner: QWidget, handler: Callable[[str, QKeyEvent], bool]) -> None:
        super().__init__(owner)
        self._owner = owner
        self._handler = handler
        self._installed = False

    @property
    def is_active(self) -> bool:
        return self._installed

    @classmethod
    def active_listener(cls) -> Optional["GlobalKeyListener"]:
        return cls._active

    def start(self) -> None:
        if self._installed:
            return
        previous = GlobalKeyListener._active
        if previous is not None and previous is not self:
            previous.stop()
        app = QApplication.instance()
        if app is None:
            return
        app.installEventFilter(self)
        self._installed = True
        GlobalKeyListener._active = self

    def stop(self) -> None:
        if not self._installed:
            return
        app = QApplication.instance()
        if app is not None:
            app.removeEventFilter(self)
        self._installed = False
        if GlobalKeyListener._active is self:
            GlobalKeyListener._active = None

    def eventFilter(self, obj, event):  # type: ignore[override]
        if event.type() != QEvent.Type.KeyPress:
            return False
        # Key presses are delivered to the window handle first; only react to the widget copy.
        if not isinstance(obj, QWidget) or not (obj is self._owner or self._owner.isAncestorOf(obj)):
            return False
        return bool(self._handler(key_name(event), event))
