"""Bookmark tree model shared by both navigators.

A vault's ``.obsidian/bookmarks.json`` holds ``{"items": [...]}`` where every
entry carries a ``type`` tag plus the fields that type needs. Entries are parsed
into immutable :class:`BookmarkItem` nodes so navigators can hold references to
layers without worrying about them changing underneath.
"""
from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Optional, Sequence

logger = logging.getLogger(__name__)

GROUP = "group"
FOLDER = "folder"
FILE = "file"
SEARCH = "search"
GRAPH = "graph"
URL = "url"
BOOKMARK_TYPES = (GROUP, FOLDER, FILE, SEARCH, GRAPH, URL)

# Subpaths starting with this sentinel point at a block, anything else at a heading.
BLOCK_SUBPATH_PREFIX = "#^"

SORT_ORIGINAL = "original"
SORT_NEWER = "newer"
SORT_OLDER = "older"


class BookmarksError(RuntimeError):
    pass


def _optional_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


@dataclass(frozen=True)
class BookmarkItem:
    type: str
    ctime: int = 0
    title: Optional[str] = None
    path: Optional[str] = None
    subpath: Optional[str] = None
    query: Optional[str] = None
    url: Optional[str] = None
    children: tuple["BookmarkItem", ...] = ()

    @classmethod
    def from_dict(cls, data: dict) -> "BookmarkItem":
        """Build an item from a registry entry, treating bad or missing fields as unset."""
        ctime = data.get("ctime", data.get("cTime", 0))
        if not isinstance(ctime, (int, float)) or isinstance(ctime, bool):
            ctime = 0
        elif not math.isfinite(ctime):
            ctime = 0
        raw_children = data.get("items")
        children: tuple[BookmarkItem, ...] = ()
        if data.get("type") == GROUP and isinstance(raw_children, list):
            children = tuple(parse_items(raw_children))
        return cls(
            type=str(data.get("type") or ""),
            ctime=int(ctime),
            title=_optional_str(data.get("title")) or None,
            path=_optional_str(data.get("path")),
            subpath=_optional_str(data.get("subpath")) or None,
            query=_optional_str(data.get("query")),
            url=_optional_str(data.get("url")),
            children=children,
        )

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"type": self.type, "ctime": self.ctime}
        for key in ("title", "path", "subpath", "query", "url"):
            value = getattr(self, key)
            if value is not None:
                payload[key] = value
        if self.type == GROUP:
            payload["items"] = [child.to_dict() for child in self.children]
        return payload

    @property
    def identity(self) -> str:
        """Weak identity key: ``(title or path)_ctime``.

        Siblings sharing both title/path and creation time collide, so widgets
        bind rows by position and only use this for lookups such as the scoped
        graph view.
        """
        prefix = self.title if self.title is not None else self.path
        return f"{prefix}_{self.ctime}"

    @property
    def is_group(self) -> bool:
        return self.type == GROUP

    @property
    def is_block_reference(self) -> bool:
        return bool(self.subpath) and self.subpath.startswith(BLOCK_SUBPATH_PREFIX)


def parse_items(raw_items: Iterable[Any]) -> list[BookmarkItem]:
    items: list[BookmarkItem] = []
    for entry in raw_items:
        if not isinstance(entry, dict):
            logger.debug("Skipping malformed bookmark entry: %r", entry)
            continue
        items.append(BookmarkItem.from_dict(entry))
    return items


def parse_bookmarks(payload: Any) -> list[BookmarkItem]:
    """Parse the registry payload; accepts ``{"items": [...]}`` or a bare list."""
    if isinstance(payload, dict):
        payload = payload.get("items", [])
    if not isinstance(payload, list):
        raise BookmarksError("Bookmark registry must contain a list of items")
    return parse_items(payload)


def load_bookmarks(path: Path) -> list[BookmarkItem]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise BookmarksError(f"No bookmark registry at {path}") from exc
    except (json.JSONDecodeError, OSError, UnicodeDecodeError) as exc:
        raise BookmarksError(f"Failed to read bookmark registry {path}: {exc}") from exc
    items = parse_bookmarks(payload)
    logger.debug("Loaded %d root bookmarks from %s", len(items), path)
    return items


def dump_bookmarks_json(items: Sequence[BookmarkItem]) -> str:
    """Serialize the tree in the registry layout (used by the copy-to-clipboard command)."""
    return json.dumps({"items": [item.to_dict() for item in items]})


def flatten(items: Sequence[BookmarkItem]) -> list[BookmarkItem]:
    """Pre-order linearization: each group is followed by its flattened children."""
    flat: list[BookmarkItem] = []
    for item in items:
        flat.append(item)
        if item.is_group:
            flat.extend(flatten(item.children))
    return flat


def sort_by_ctime(items: Sequence[BookmarkItem], order: str) -> list[BookmarkItem]:
    """Stable sort by creation time; ``original`` keeps the given order."""
    if order == SORT_NEWER:
        return sorted(items, key=lambda item: item.ctime, reverse=True)
    if order == SORT_OLDER:
        return sorted(items, key=lambda item: item.ctime)
    return list(items)
