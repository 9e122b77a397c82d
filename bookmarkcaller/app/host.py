from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from PySide6.QtCore import QUrl
from PySide6.QtGui import QDesktopServices

from bookmarkcaller.app.bookmarks import BookmarkItem, BookmarksError, load_bookmarks
from bookmarkcaller.app.capabilities import Capabilities
from bookmarkcaller.app.favicons import FaviconCache
from bookmarkcaller.server.adapters import files

logger = logging.getLogger(__name__)

FAVICON_CACHE_DIR = Path.home() / ".cache" / "bookmarkcaller" / "favicons"


class DesktopHost:
    """Capabilities for a vault on disk, opened with the desktop's default handlers.

    Search, scoped graph views and placeholder panes only exist inside the
    notes app itself, so they are left out of the bundle.
    """

    def __init__(
        self,
        vault_root: Path,
        bookmarks_path: Optional[Path] = None,
        favicon_cache: Optional[FaviconCache] = None,
    ) -> None:
        self.vault_root = vault_root
        self.bookmarks_path = bookmarks_path or files.bookmarks_file(vault_root)
        self.favicon_cache = favicon_cache or FaviconCache(FAVICON_CACHE_DIR)
        self._bookmarks: Optional[list[BookmarkItem]] = None

    @property
    def has_registry(self) -> bool:
        return self.bookmarks_path.is_file()

    def bookmarks(self) -> list[BookmarkItem]:
        if self._bookmarks is None:
            self._bookmarks = load_bookmarks(self.bookmarks_path)
        return self._bookmarks

    def open_file(self, path: str, subpath: Optional[str] = None) -> None:
        target = files.resolve_vault_path(self.vault_root, path)
        if target is None:
            return
        if subpath:
            logger.debug("External editors can't jump to %s; opening %s at the top", subpath, path)
        QDesktopServices.openUrl(QUrl.fromLocalFile(str(target)))

    def reveal_folder(self, path: str) -> None:
        target = files.resolve_vault_path(self.vault_root, path)
        if target is not None:
            QDesktopServices.openUrl(QUrl.fromLocalFile(str(target)))

    def open_url(self, url: str, prefer_in_app: bool = False) -> None:
        QDesktopServices.openUrl(QUrl(url))

    def resolve_basename(self, path: str) -> Optional[str]:
        return files.basename(self.vault_root, path)

    def is_file(self, path: str) -> bool:
        return files.is_file(self.vault_root, path)

    def is_folder(self, path: str) -> bool:
        return files.is_folder(self.vault_root, path)

    def capabilities(self) -> Capabilities:
        registry = self.bookmarks if self.has_registry else None
        return Capabilities(
            open_file=self.open_file,
            reveal_folder=self.reveal_folder,
            bookmark_registry=registry,
            open_url=self.open_url,
            load_icon=self.favicon_cache.load_icon,
            resolve_basename=self.resolve_basename,
            is_file=self.is_file,
            is_folder=self.is_folder,
        )

    def close(self) -> None:
        self.favicon_cache.close()


def load_root_items(host: DesktopHost) -> Optional[list[BookmarkItem]]:
    """Return the root bookmarks, or None when the vault has no usable registry."""
    if not host.has_registry:
        return None
    try:
        return host.bookmarks()
    except BookmarksError as exc:
        logger.warning("%s", exc)
        return None
