"""Paged, shortcut-addressable browsing state for the bookmarks caller.

The navigator owns no widgets. It decides which slice of the current layer is
visible, which row has focus, and what happens when a row is activated; the
dialog in :mod:`bookmarkcaller.app.ui.caller_dialog` only mirrors that state.

Each page shows as many rows as there are shortcut characters, so with the
default ``asdfghjkl;`` alphabet a layer of 23 bookmarks spans three pages and
the third row of every page answers to ``d``.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence

from bookmarkcaller.app.bookmarks import GRAPH, BOOKMARK_TYPES, BookmarkItem
from bookmarkcaller.app.dispatch import OpenDispatcher, Outcome

logger = logging.getLogger(__name__)

UP = "up"
DOWN = "down"
LEFT = "left"
RIGHT = "right"

ROOT_LABEL = "."
# Rendered read-only and never activated from this picker.
NOT_SUPPORTED_TYPES = (GRAPH,)


@dataclass
class HistoryEntry:
    items: Sequence[BookmarkItem]
    page_position: int = 0
    focus_position: int = 0


class PagedNavigator:
    def __init__(
        self,
        items: Sequence[BookmarkItem],
        chars: Sequence[str],
        dispatcher: OpenDispatcher,
        *,
        recursively_open: bool = True,
    ) -> None:
        if not chars:
            raise ValueError("At least one shortcut character is required")
        self.chars = list(chars)
        self.dispatcher = dispatcher
        self.recursively_open = recursively_open
        self.current_layer_items: Sequence[BookmarkItem] = items
        self.page_position = 0
        self.focus_position = 0
        self.group_labels: list[str] = [ROOT_LABEL]
        self.history: list[HistoryEntry] = [HistoryEntry(items)]

    # ---- View ----
    @property
    def page_size(self) -> int:
        return len(self.chars)

    @property
    def page_count(self) -> int:
        return math.ceil(len(self.current_layer_items) / self.page_size)

    @property
    def view_items(self) -> list[BookmarkItem]:
        start = self.page_position * self.page_size
        return list(self.current_layer_items[start : start + self.page_size])

    @property
    def focused_item(self) -> Optional[BookmarkItem]:
        view = self.view_items
        if 0 <= self.focus_position < len(view):
            return view[self.focus_position]
        return None

    @property
    def header_text(self) -> str:
        if len(self.group_labels) == 1:
            return f"{self.group_labels[0]}/"
        return f".../{self.group_labels[-1]}/"

    @property
    def can_go_back(self) -> bool:
        return len(self.history) > 1

    @property
    def has_pages(self) -> bool:
        return self.page_count > 1

    @staticmethod
    def is_supported(item: BookmarkItem) -> bool:
        return item.type in BOOKMARK_TYPES and item.type not in NOT_SUPPORTED_TYPES

    def shortcut_for(self, index: int) -> str:
        return self.chars[index] if 0 <= index < len(self.chars) else ""

    # ---- Commands ----
    def open(self, index: int) -> Outcome:
        """Activate the row at ``index`` of the current page."""
        view = self.view_items
        if not 0 <= index < len(view):
            return Outcome.IGNORED
        item = view[index]
        if not self.is_supported(item):
            logger.debug("Bookmark type %r cannot be opened from the caller", item.type)
            return Outcome.IGNORED
        if item.is_group:
            self._descend(item, index)
            return Outcome.DESCEND
        return self.dispatcher.open_bookmark(item)

    def shortcut_index(self, glyph: str) -> int:
        try:
            return self.chars.index(glyph)
        except ValueError:
            return -1

    def shortcut_key(self, glyph: str) -> Outcome:
        return self.open(self.shortcut_index(glyph))

    def move_focus(self, direction: str) -> None:
        count = len(self.view_items)
        if count == 0 or not 0 <= self.focus_position < count:
            return
        if direction == UP:
            self.focus_position = count - 1 if self.focus_position == 0 else self.focus_position - 1
        elif direction == DOWN:
            self.focus_position = 0 if self.focus_position == count - 1 else self.focus_position + 1

    def change_page(self, direction: str) -> None:
        count = self.page_count
        if count <= 1:
            return
        last_page = count - 1
        if direction == LEFT:
            self.page_position = last_page if self.page_position == 0 else self.page_position - 1
        elif direction == RIGHT:
            self.page_position = 0 if self.page_position >= last_page else self.page_position + 1
        else:
            return
        self.focus_position = 0

    def back_to_parent(self) -> bool:
        if not self.can_go_back:
            return False
        self.history.pop()
        self.group_labels.pop()
        entry = self.history[-1]
        self.current_layer_items = entry.items
        self.page_position = entry.page_position
        self.focus_position = min(entry.focus_position, max(len(self.view_items) - 1, 0))
        return True

    def open_all(self) -> int:
        return self.dispatcher.open_all(self.current_layer_items, self.recursively_open)

    def _descend(self, group: BookmarkItem, index: int) -> None:
        parent = self.history[-1]
        parent.page_position = self.page_position
        parent.focus_position = index
        self.current_layer_items = group.children
        self.group_labels.append(group.title or "")
        self.history.append(HistoryEntry(group.children))
        self.page_position = 0
        self.focus_position = 0
