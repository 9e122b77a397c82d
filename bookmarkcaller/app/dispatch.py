"""Open actions for bookmarks, shared by the paged picker and the search picker."""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, replace
from typing import Callable, Optional, Sequence

from bookmarkcaller.app.bookmarks import FILE, FOLDER, GRAPH, GROUP, SEARCH, URL, BookmarkItem
from bookmarkcaller.app.capabilities import Capabilities

logger = logging.getLogger(__name__)


class Outcome(enum.Enum):
    DESCEND = "descend"  # group: the navigator shows its children
    DONE = "done"  # action requested (or skipped); the picker closes
    IGNORED = "ignored"  # unknown type; the picker stays open


@dataclass(frozen=True)
class _Traversal:
    recursive: bool
    top_level: bool = True


class OpenDispatcher:
    def __init__(self, capabilities: Capabilities) -> None:
        self.capabilities = capabilities

    def open_bookmark(self, item: BookmarkItem) -> Outcome:
        if item.type == GROUP:
            return Outcome.DESCEND
        if item.type == FILE:
            self.open_file(item)
        elif item.type == FOLDER:
            self.open_folder(item)
        elif item.type == SEARCH:
            self.open_search(item)
        elif item.type == GRAPH:
            self.open_graph(item)
        elif item.type == URL:
            self.open_url(item)
        else:
            logger.debug("Ignoring bookmark of unsupported type %r", item.type)
            return Outcome.IGNORED
        return Outcome.DONE

    def open_file(self, item: BookmarkItem) -> bool:
        caps = self.capabilities
        path = item.path or ""
        if caps.open_file is None or not path:
            return False
        if caps.is_file is not None and not caps.is_file(path):
            logger.info("Bookmarked file no longer exists: %s", path)
            return False
        return self._call(caps.open_file, path, item.subpath)

    def open_folder(self, item: BookmarkItem) -> bool:
        caps = self.capabilities
        path = item.path or ""
        if caps.reveal_folder is None or not path:
            return False
        if caps.is_folder is not None and not caps.is_folder(path):
            logger.info("Bookmarked folder no longer exists: %s", path)
            return False
        return self._call(caps.reveal_folder, path)

    def open_search(self, item: BookmarkItem) -> bool:
        if self.capabilities.run_search is None:
            return False
        return self._call(self.capabilities.run_search, item.query or "")

    def open_graph(self, item: BookmarkItem) -> bool:
        caps = self.capabilities
        if caps.activate_scoped_graph is None or caps.bookmark_registry is None:
            return False
        return self._call(caps.activate_scoped_graph, item.identity)

    def open_url(self, item: BookmarkItem) -> bool:
        caps = self.capabilities
        if caps.open_url is None or not item.url:
            return False
        prefer_in_app = caps.web_viewer is not None and caps.web_viewer.allow_external_urls
        return self._call(caps.open_url, item.url, prefer_in_app)

    def open_all(self, items: Sequence[BookmarkItem], recursive: bool) -> int:
        """Open every file in ``items`` left to right and return how many were opened.

        Groups are descended into only when ``recursive`` is set; in that mode
        URLs are opened too. Each open finishes before the next one starts.
        """
        return self._walk(items, _Traversal(recursive=recursive))

    def _walk(self, items: Sequence[BookmarkItem], traversal: _Traversal) -> int:
        caps = self.capabilities
        if traversal.top_level and caps.show_placeholder is not None:
            self._call(caps.show_placeholder)
        opened = 0
        try:
            candidates = items if traversal.recursive else [item for item in items if item.type == FILE]
            for item in candidates:
                if item.type == GROUP:
                    opened += self._walk(item.children, replace(traversal, top_level=False))
                elif item.type == FILE:
                    opened += int(self.open_file(item))
                elif item.type == URL:
                    opened += int(self.open_url(item))
        finally:
            if traversal.top_level and caps.dismiss_placeholder is not None:
                self._call(caps.dismiss_placeholder)
        return opened

    def _call(self, action: Callable[..., object], *args: Optional[object]) -> bool:
        try:
            action(*args)
        except Exception as exc:
            logger.exception("Bookmark action failed: %s", exc)
            return False
        return True
