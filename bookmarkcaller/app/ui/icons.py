from __future__ import annotations

from typing import Optional

from PySide6.QtGui import QIcon, QPixmap
from PySide6.QtWidgets import QApplication, QStyle

from bookmarkcaller.app import display

# icon key -> (freedesktop theme name, bundled Qt fallback)
_ICONS = {
    display.ICON_EXPAND: ("go-next", QStyle.StandardPixmap.SP_ArrowRight),
    display.ICON_FOLDER: ("folder", QStyle.StandardPixmap.SP_DirClosedIcon),
    display.ICON_FILE: ("text-x-generic", QStyle.StandardPixmap.SP_FileIcon),
    display.ICON_HEADING: ("format-text-bold", QStyle.StandardPixmap.SP_FileDialogDetailedView),
    display.ICON_BLOCK: ("insert-object", QStyle.StandardPixmap.SP_FileDialogContentsView),
    display.ICON_SEARCH: ("edit-find", QStyle.StandardPixmap.SP_FileDialogContentsView),
    display.ICON_GRAPH: ("network-workgroup", QStyle.StandardPixmap.SP_DriveNetIcon),
    display.ICON_GLOBE: ("applications-internet", QStyle.StandardPixmap.SP_DriveNetIcon),
    "back": ("edit-undo", QStyle.StandardPixmap.SP_ArrowBack),
    "all": ("window-new", QStyle.StandardPixmap.SP_FileDialogListView),
}


def icon_for(key: str) -> QIcon:
    """Resolve an icon key from :mod:`bookmarkcaller.app.display`; unknown keys give an empty icon."""
    entry = _ICONS.get(key)
    if entry is None:
        return QIcon()
    theme_name, fallback = entry
    if QIcon.hasThemeIcon(theme_name):
        return QIcon.fromTheme(theme_name)
    return QApplication.style().standardIcon(fallback)


def icon_from_bytes(data: bytes) -> Optional[QIcon]:
    pixmap = QPixmap()
    if not pixmap.loadFromData(data):
        return None
    return QIcon(pixmap)
