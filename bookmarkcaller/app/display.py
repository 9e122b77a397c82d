"""Labels and icon keys for bookmark rows."""
from __future__ import annotations

from typing import Callable, Optional
from urllib.parse import urlparse

from bookmarkcaller.app.bookmarks import FILE, FOLDER, GRAPH, GROUP, SEARCH, URL, BookmarkItem

ICON_EXPAND = "expand"
ICON_FOLDER = "folder-closed"
ICON_BLOCK = "block"
ICON_HEADING = "heading"
ICON_FILE = "file"
ICON_SEARCH = "search"
ICON_GRAPH = "graph"
ICON_GLOBE = "globe"


def type_icon(item: BookmarkItem) -> str:
    """Return the symbolic icon key for an item ("" for unknown types)."""
    if item.type == GROUP:
        return ICON_EXPAND
    if item.type == FOLDER:
        return ICON_FOLDER
    if item.type == FILE:
        if item.subpath:
            return ICON_BLOCK if item.is_block_reference else ICON_HEADING
        return ICON_FILE
    if item.type == SEARCH:
        return ICON_SEARCH
    if item.type == GRAPH:
        return ICON_GRAPH
    if item.type == URL:
        # Replaced by the site's favicon once it loads.
        return ICON_GLOBE
    return ""


def display_name(item: BookmarkItem, resolve_basename: Optional[Callable[[str], Optional[str]]] = None) -> str:
    """Human label for a row; may be empty for untitled groups, graphs and URLs."""
    if item.title:
        return item.title
    if item.type == FOLDER:
        return item.path or ""
    if item.type == FILE:
        if resolve_basename is None or not item.path:
            return ""
        return resolve_basename(item.path) or ""
    if item.type == SEARCH:
        return item.query or ""
    return ""


def url_domain(url: str) -> str:
    """Host part of a bookmark URL, "" when it has none (e.g. ``mailto:``)."""
    try:
        return urlparse(url).hostname or ""
    except ValueError:
        return ""
