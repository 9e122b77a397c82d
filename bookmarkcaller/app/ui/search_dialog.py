from __future__ import annotations

import html
import logging
from typing import Optional, Sequence

from PySide6.QtCore import Qt, QRectF, QSize
from PySide6.QtGui import QIcon, QKeyEvent, QPainter, QTextDocument
from PySide6.QtWidgets import (
    QApplication,
    QDialog,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QPushButton,
    QStyle,
    QStyledItemDelegate,
    QVBoxLayout,
)

from bookmarkcaller.app import display
from bookmarkcaller.app.bookmarks import URL, BookmarkItem
from bookmarkcaller.app.capabilities import Capabilities
from bookmarkcaller.app.config import SearchSettings
from bookmarkcaller.app.dispatch import OpenDispatcher, Outcome
from bookmarkcaller.app.favicons import FaviconLoader
from bookmarkcaller.app.fuzzy import FuzzyMatch, FuzzyNavigator
from .icons import icon_for, icon_from_bytes
from .keys import GlobalKeyListener, has_shift

logger = logging.getLogger(__name__)

ITEM_ROLE = Qt.UserRole
ICON_PX = 16


def highlight_ranges(text: str, ranges: Sequence[tuple[int, int]]) -> str:
    """Escape ``text`` for rich text and bold the matched ranges."""
    if not ranges:
        return html.escape(text)
    parts: list[str] = []
    cursor = 0
    for start, end in sorted(ranges):
        start = max(start, cursor)
        if start >= end:
            continue
        parts.append(html.escape(text[cursor:start]))
        parts.append(f"<b>{html.escape(text[start:end])}</b>")
        cursor = end
    parts.append(html.escape(text[cursor:]))
    return "".join(parts)


class HTMLDelegate(QStyledItemDelegate):
    """Custom delegate to render an icon plus HTML in list items."""

    def paint(self, painter: QPainter, option, index):
        painter.save()

        text = index.data(Qt.DisplayRole)
        icon = index.data(Qt.DecorationRole)

        doc = QTextDocument()
        doc.setDefaultFont(option.font)
        doc.setDocumentMargin(2)
        if option.state & QStyle.StateFlag.State_Selected:
            painter.fillRect(option.rect, option.palette.highlight())
            doc.setDefaultStyleSheet("body { color: white; }")
        doc.setHtml(text)

        rect = option.rect
        if isinstance(icon, QIcon) and not icon.isNull():
            icon_top = rect.top() + (rect.height() - ICON_PX) // 2
            icon.paint(painter, rect.left() + 4, icon_top, ICON_PX, ICON_PX)
        text_left = rect.left() + ICON_PX + 10
        doc.setTextWidth(max(rect.width() - ICON_PX - 10, 0))

        painter.translate(text_left, rect.top())
        doc.drawContents(painter, QRectF(0, 0, doc.textWidth(), rect.height()))

        painter.restore()

    def sizeHint(self, option, index):
        doc = QTextDocument()
        doc.setHtml(index.data(Qt.DisplayRole))
        doc.setDefaultFont(option.font)
        doc.setDocumentMargin(2)
        doc.setTextWidth(option.rect.width() if option.rect.width() > 0 else 400)
        size = doc.size()
        return QSize(int(size.width()) + ICON_PX + 10, max(int(size.height()), ICON_PX + 4))


class BookmarksSearchDialog(QDialog):
    """Filterable bookmark list; Shift+Backspace goes up a group, Shift+Enter opens all."""

    def __init__(
        self,
        items: Sequence[BookmarkItem],
        settings: SearchSettings,
        capabilities: Capabilities,
        parent=None,
    ) -> None:
        super().__init__(parent)
        self.setWindowTitle("Search bookmarks")
        self.setModal(True)
        self.settings = settings
        self.capabilities = capabilities
        self.navigator = FuzzyNavigator(
            items,
            OpenDispatcher(capabilities),
            structure_type=settings.structure_type,
            sort_order=settings.sort_order,
            recursively_open=settings.recursively_open,
            resolve_basename=capabilities.resolve_basename,
        )
        self._favicons: dict[str, QIcon] = {}
        self._favicon_requested: set[str] = set()
        self._favicon_loader: Optional[FaviconLoader] = None
        if capabilities.load_icon is not None:
            self._favicon_loader = FaviconLoader(capabilities.load_icon, self)
            self._favicon_loader.iconLoaded.connect(self._on_icon_loaded)
        self.key_listener = GlobalKeyListener(self, self._handle_key)

        self.resize(640, 360)
        layout = QVBoxLayout()

        self.search = QLineEdit()
        self.search.setPlaceholderText("Search bookmarks")
        self.search.textChanged.connect(self._refresh)
        layout.addWidget(self.search)

        self.list_widget = QListWidget()
        self.list_widget.setItemDelegate(HTMLDelegate(self.list_widget))
        self.list_widget.itemActivated.connect(lambda *_: self._activate_current())
        layout.addWidget(self.list_widget, 1)

        footer = QHBoxLayout()
        self.back_button: Optional[QPushButton] = None
        self.all_button: Optional[QPushButton] = None
        if settings.show_footer_buttons:
            self.back_button = QPushButton(icon_for("back"), "Back")
            self.back_button.setFocusPolicy(Qt.NoFocus)
            self.back_button.clicked.connect(lambda _checked=False: self.back_to_parent())
            footer.addWidget(self.back_button)
            self.all_button = QPushButton(icon_for("all"), "All")
            self.all_button.setFocusPolicy(Qt.NoFocus)
            self.all_button.clicked.connect(lambda _checked=False: self.open_all())
            footer.addWidget(self.all_button)
        footer.addStretch(1)
        layout.addLayout(footer)

        self.legend_label = QLabel(self._legend_html())
        self.legend_label.setTextFormat(Qt.RichText)
        self.legend_label.setVisible(settings.show_legends)
        layout.addWidget(self.legend_label)

        self.setLayout(layout)
        self.list_widget.setStyleSheet(
            f"QListWidget::item:selected {{ outline: 2px solid {settings.focus_color}; }}"
        )
        self.search.setFocus()
        self._refresh()

    # ---- Lifecycle ----
    def showEvent(self, event) -> None:  # type: ignore[override]
        super().showEvent(event)
        self.key_listener.start()

    def done(self, result: int) -> None:  # type: ignore[override]
        self.key_listener.stop()
        super().done(result)

    def closeEvent(self, event) -> None:  # type: ignore[override]
        self.key_listener.stop()
        super().closeEvent(event)

    @staticmethod
    def _legend_html() -> str:
        modifier = "⇧" if QApplication.platformName() == "cocoa" else "Shift + "
        legends = [
            ("↑ | ↓", "Move focus"),
            (f"{modifier}Backspace", "Back to parent group"),
            ("Enter", "Open focused item"),
            (f"{modifier}Enter", "Open all files in current group"),
        ]
        return "<br>".join(f"<b>{keys}</b>&nbsp;&nbsp;{text}" for keys, text in legends)

    # ---- List ----
    def _refresh(self) -> None:
        query = self.search.text()
        self.list_widget.clear()
        for item, match in self.navigator.filter(query):
            row = QListWidgetItem(self._display_label(item, match))
            row.setData(ITEM_ROLE, item)
            row.setIcon(self._row_icon(item))
            self.list_widget.addItem(row)
        if self.list_widget.count() > 0:
            self.list_widget.setCurrentRow(0)
        if self.back_button is not None:
            self.back_button.setEnabled(self.navigator.can_go_back)

    def _display_label(self, item: BookmarkItem, match: FuzzyMatch) -> str:
        return highlight_ranges(self.navigator.item_text(item), match.ranges)

    def _row_icon(self, item: BookmarkItem) -> QIcon:
        if item.type == URL and item.url:
            cached = self._favicons.get(item.url)
            if cached is not None:
                return cached
            self._request_favicon(item.url)
        return icon_for(display.type_icon(item))

    def _request_favicon(self, url: str) -> None:
        if self._favicon_loader is None or url in self._favicon_requested:
            return
        domain = display.url_domain(url)
        if not domain:
            return
        self._favicon_requested.add(url)
        self._favicon_loader.request(domain, url)

    def _on_icon_loaded(self, url: str, data: object) -> None:
        if not isinstance(data, bytes):
            return
        icon = icon_from_bytes(data)
        if icon is None:
            return
        self._favicons[url] = icon
        for row in range(self.list_widget.count()):
            list_item = self.list_widget.item(row)
            bookmark = list_item.data(ITEM_ROLE)
            if isinstance(bookmark, BookmarkItem) and bookmark.url == url:
                list_item.setIcon(icon)

    def selected_item(self) -> Optional[BookmarkItem]:
        current = self.list_widget.currentItem()
        return current.data(ITEM_ROLE) if current else None

    # ---- Commands ----
    def choose(self, item: BookmarkItem) -> None:
        outcome, child = self.navigator.choose(item)
        if outcome is Outcome.DESCEND and child is not None:
            self._switch_layer(child)
        elif outcome is Outcome.DONE:
            self.accept()

    def back_to_parent(self) -> None:
        parent = self.navigator.back()
        if parent is not None:
            self._switch_layer(parent)

    def open_all(self) -> None:
        opened = self.navigator.open_all()
        logger.info("Opened %d bookmarks from search layer %d", opened, self.navigator.depth)
        self.accept()

    def _switch_layer(self, navigator: FuzzyNavigator) -> None:
        self.navigator = navigator
        self.search.blockSignals(True)
        self.search.clear()
        self.search.blockSignals(False)
        self._refresh()

    def _activate_current(self) -> bool:
        item = self.selected_item()
        if item is None:
            return False
        self.choose(item)
        return True

    def _handle_key(self, name: str, event: QKeyEvent) -> bool:
        if name == "Backspace" and has_shift(event):
            self.back_to_parent()
            return True
        if name == "Enter" and has_shift(event):
            self.open_all()
            return True
        if name == "Enter":
            return self._activate_current()
        if name in ("Up", "Down"):
            self.move_selection(-1 if name == "Up" else 1)
            return True
        return False

    def move_selection(self, step: int) -> None:
        """Move the highlighted row, wrapping at both ends; typing focus stays in the search box."""
        count = self.list_widget.count()
        if count == 0:
            return
        row = self.list_widget.currentRow()
        self.list_widget.setCurrentRow(0 if row < 0 else (row + step) % count)


def open_search(
    items: Sequence[BookmarkItem],
    settings: SearchSettings,
    capabilities: Capabilities,
    parent=None,
) -> BookmarksSearchDialog:
    """Start a filtering session over ``items`` and show it."""
    dialog = BookmarksSearchDialog(items, settings, capabilities, parent)
    dialog.open()
    return dialog
