from __future__ import annotations

import logging
from typing import Optional, Sequence

from PySide6.QtCore import Qt
from PySide6.QtGui import QKeyEvent
from PySide6.QtWidgets import (
    QDialog,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from bookmarkcaller.app import display
from bookmarkcaller.app.bookmarks import URL, BookmarkItem
from bookmarkcaller.app.capabilities import Capabilities
from bookmarkcaller.app.config import CallerSettings
from bookmarkcaller.app.dispatch import OpenDispatcher, Outcome
from bookmarkcaller.app.favicons import FaviconLoader
from bookmarkcaller.app.navigator import DOWN, LEFT, RIGHT, UP, PagedNavigator
from .icons import icon_for, icon_from_bytes
from .keys import GlobalKeyListener

logger = logging.getLogger(__name__)

EMPTY_LAYER_TEXT = "No items found in this group."
_ARROWS = {"Up": UP, "Down": DOWN, "Left": LEFT, "Right": RIGHT}


class BookmarksCallerDialog(QDialog):
    """Paged bookmark picker: one row per shortcut character, one keystroke per jump."""

    def __init__(
        self,
        items: Sequence[BookmarkItem],
        settings: CallerSettings,
        capabilities: Capabilities,
        parent=None,
    ) -> None:
        super().__init__(parent)
        self.setWindowTitle("Bookmarks")
        self.setModal(True)
        self.settings = settings
        self.capabilities = capabilities
        self.navigator = PagedNavigator(
            items,
            list(settings.characters),
            OpenDispatcher(capabilities),
            recursively_open=settings.recursively_open,
        )
        self.shortcut_buttons: list[QPushButton] = []
        self.item_buttons: list[QPushButton] = []
        self._favicon_targets: dict[str, list[QPushButton]] = {}
        self._favicon_loader: Optional[FaviconLoader] = None
        if capabilities.load_icon is not None:
            self._favicon_loader = FaviconLoader(capabilities.load_icon, self)
            self._favicon_loader.iconLoaded.connect(self._on_icon_loaded)
        self.key_listener = GlobalKeyListener(self, self._handle_key)

        self.resize(420, 0)
        layout = QVBoxLayout()
        self.header_label = QLabel()
        layout.addWidget(self.header_label)
        self.rows_widget = QWidget()
        self.rows_layout = QVBoxLayout(self.rows_widget)
        self.rows_layout.setContentsMargins(0, 0, 0, 0)
        self.rows_layout.setSpacing(2)
        layout.addWidget(self.rows_widget)
        self.nav_widget = QWidget()
        self.nav_layout = QHBoxLayout(self.nav_widget)
        self.nav_layout.setContentsMargins(0, 6, 0, 0)
        layout.addWidget(self.nav_widget)
        self.legend_label = QLabel()
        self.legend_label.setTextFormat(Qt.RichText)
        self.legend_label.setVisible(settings.show_legends)
        layout.addWidget(self.legend_label)
        self.setLayout(layout)
        self.setStyleSheet(
            f"QPushButton#bookmarkItem {{ text-align: left; padding: 4px; border: 2px solid transparent; }}"
            f"QPushButton#bookmarkItem:focus {{ border: 2px solid {settings.focus_color}; }}"
            f"QPushButton#bookmarkItem[readonly=\"true\"] {{ color: palette(mid); }}"
        )
        self._render()

    # ---- Lifecycle ----
    def showEvent(self, event) -> None:  # type: ignore[override]
        super().showEvent(event)
        self.key_listener.start()
        self._apply_focus()

    def done(self, result: int) -> None:  # type: ignore[override]
        self.key_listener.stop()
        super().done(result)

    def closeEvent(self, event) -> None:  # type: ignore[override]
        self.key_listener.stop()
        super().closeEvent(event)

    # ---- Rendering ----
    def _render(self) -> None:
        nav = self.navigator
        self._clear_layout(self.rows_layout)
        self.shortcut_buttons = []
        self.item_buttons = []
        self._favicon_targets = {}
        self.header_label.setText(nav.header_text)

        view = nav.view_items
        if not view:
            self.rows_layout.addWidget(QLabel(EMPTY_LAYER_TEXT))
        for idx, item in enumerate(view):
            self.rows_layout.addWidget(self._build_row(idx, item))
        # Inert slots keep the grid height stable on a short last page.
        if nav.has_pages:
            for idx in range(len(view), nav.page_size):
                self.rows_layout.addWidget(self._build_placeholder_row())

        self._build_footer()
        self._apply_focus()

    def _build_row(self, idx: int, item: BookmarkItem) -> QWidget:
        row = QWidget()
        row_layout = QHBoxLayout(row)
        row_layout.setContentsMargins(0, 0, 0, 0)
        shortcut_btn = QPushButton(self.navigator.shortcut_for(idx))
        shortcut_btn.setObjectName("bookmarkShortcut")
        shortcut_btn.setFocusPolicy(Qt.NoFocus)
        shortcut_btn.setFixedWidth(32)
        shortcut_btn.clicked.connect(lambda _checked=False, i=idx: self.click_item(i))
        item_btn = QPushButton(display.display_name(item, self.capabilities.resolve_basename))
        item_btn.setObjectName("bookmarkItem")
        item_btn.setIcon(icon_for(display.type_icon(item)))
        item_btn.clicked.connect(lambda _checked=False, i=idx: self.click_item(i))
        if not self.navigator.is_supported(item):
            shortcut_btn.setProperty("readonly", True)
            item_btn.setProperty("readonly", True)
        if item.type == URL and item.url and self._favicon_loader is not None:
            self._request_favicon(item.url, item_btn)
        row_layout.addWidget(shortcut_btn)
        row_layout.addWidget(item_btn, 1)
        self.shortcut_buttons.append(shortcut_btn)
        self.item_buttons.append(item_btn)
        return row

    def _build_placeholder_row(self) -> QWidget:
        placeholder = QPushButton("")
        placeholder.setEnabled(False)
        placeholder.setFlat(True)
        placeholder.setFocusPolicy(Qt.NoFocus)
        return placeholder

    def _build_footer(self) -> None:
        nav = self.navigator
        self._clear_layout(self.nav_layout)
        self.back_button = None
        self.prev_button = None
        self.next_button = None
        self.all_button = None
        if self.settings.show_footer_buttons:
            self.back_button = self._nav_button("Back", self.back_to_parent, icon="back")
            if nav.has_pages:
                self.prev_button = self._nav_button("←", lambda: self.change_page(LEFT))
                self.next_button = self._nav_button("→", lambda: self.change_page(RIGHT))
            if nav.current_layer_items:
                self.all_button = self._nav_button("All", self.open_all, icon="all")
        self.nav_layout.addStretch(1)
        self.legend_label.setText(self._legend_html())

    def _nav_button(self, text: str, slot, icon: Optional[str] = None) -> QPushButton:
        button = QPushButton(text)
        button.setFocusPolicy(Qt.NoFocus)
        if icon:
            button.setIcon(icon_for(icon))
        button.clicked.connect(lambda _checked=False: slot())
        self.nav_layout.addWidget(button)
        return button

    def _legend_html(self) -> str:
        chars = self.navigator.chars
        legends = [
            ("↑ | ↓", "Move focus"),
            ("← | →", "Switch pages"),
            (self.settings.back_key, "Back to parent group"),
            ("Enter | Space", "Open focused item"),
            (f"{' | '.join(chars[:2])} | ... | {' | '.join(chars[-2:])}", "Quickly open item"),
            (self.settings.all_key, "Open all files in current group"),
        ]
        return "<br>".join(f"<b>{keys}</b>&nbsp;&nbsp;{text}" for keys, text in legends)

    def _apply_focus(self) -> None:
        pos = self.navigator.focus_position
        if 0 <= pos < len(self.item_buttons):
            self.item_buttons[pos].setFocus(Qt.OtherFocusReason)

    @staticmethod
    def _clear_layout(layout) -> None:
        while layout.count():
            child = layout.takeAt(0)
            widget = child.widget()
            if widget is not None:
                widget.deleteLater()

    # ---- Favicons ----
    def _request_favicon(self, url: str, button: QPushButton) -> None:
        domain = display.url_domain(url)
        if not domain:
            return
        targets = self._favicon_targets.setdefault(url, [])
        targets.append(button)
        if len(targets) == 1:
            self._favicon_loader.request(domain, url)

    def _on_icon_loaded(self, url: str, data: object) -> None:
        buttons = self._favicon_targets.get(url)
        if not buttons or not isinstance(data, bytes):
            return
        icon = icon_from_bytes(data)
        if icon is None:
            return
        for button in buttons:
            button.setIcon(icon)

    # ---- Commands ----
    def click_item(self, idx: int) -> None:
        """Pointer and shortcut activation of row ``idx`` both land here."""
        outcome = self.navigator.open(idx)
        if outcome is Outcome.DESCEND:
            self._render()
        elif outcome is Outcome.DONE:
            self.accept()

    def shortcut_key(self, glyph: str) -> None:
        idx = self.navigator.shortcut_index(glyph)
        if 0 <= idx < len(self.shortcut_buttons):
            self.shortcut_buttons[idx].click()

    def move_focus(self, direction: str) -> None:
        self.navigator.move_focus(direction)
        self._apply_focus()

    def change_page(self, direction: str) -> None:
        before = self.navigator.page_position
        self.navigator.change_page(direction)
        if self.navigator.page_position != before:
            self._render()

    def back_to_parent(self) -> None:
        if self.navigator.back_to_parent():
            self._render()

    def open_all(self) -> None:
        if not self.navigator.current_layer_items:
            return
        opened = self.navigator.open_all()
        logger.info("Opened %d bookmarks from %s", opened, self.navigator.header_text)
        self.accept()

    def _sync_focus_from_widget(self) -> None:
        # Tab or a mouse press may have moved focus without going through the navigator.
        focused = self.focusWidget()
        if focused in self.item_buttons:
            self.navigator.focus_position = self.item_buttons.index(focused)

    def _handle_key(self, name: str, event: QKeyEvent) -> bool:
        self._sync_focus_from_widget()
        if name in self.navigator.chars:
            self.shortcut_key(name)
            return True
        if name in ("Up", "Down"):
            self.move_focus(_ARROWS[name])
            return True
        if name in ("Left", "Right"):
            self.change_page(_ARROWS[name])
            return True
        if name in ("Enter", "Space"):
            self.click_item(self.navigator.focus_position)
            return True
        if name == self.settings.back_key:
            self.back_to_parent()
            return True
        if name == self.settings.all_key:
            self.open_all()
            return True
        return False


def open_caller(
    items: Sequence[BookmarkItem],
    settings: CallerSettings,
    capabilities: Capabilities,
    parent=None,
) -> BookmarksCallerDialog:
    """Start a paged session over ``items`` and show it."""
    dialog = BookmarksCallerDialog(items, settings, capabilities, parent)
    dialog.open()
    return dialog
