"""Favicon lookup for URL bookmarks.

Icons are fetched once per domain with httpx and kept in an on-disk cache.
Failed lookups are cached as empty files so an unreachable site is not retried
every time a picker opens.
"""
from __future__ import annotations

import logging
import re
import threading
from pathlib import Path
from typing import Callable, Optional

import httpx
from PySide6.QtCore import QObject, Signal

logger = logging.getLogger(__name__)

FAVICON_TIMEOUT_S = 5.0
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


class FaviconCache:
    def __init__(self, cache_dir: Path, client: Optional[httpx.Client] = None) -> None:
        self.cache_dir = cache_dir
        self._client = client
        self._owns_client = client is None
        self._lock = threading.Lock()

    @property
    def client(self) -> httpx.Client:
        with self._lock:
            if self._client is None:
                self._client = httpx.Client(timeout=FAVICON_TIMEOUT_S, follow_redirects=True)
            return self._client

    def _cache_file(self, domain: str) -> Path:
        return self.cache_dir / f"{_UNSAFE_CHARS.sub('_', domain)}.ico"

    def load_icon(self, domain: str, url: str) -> Optional[bytes]:
        """Return icon bytes for ``domain`` or None when the site has none."""
        if not domain:
            return None
        cache_file = self._cache_file(domain)
        if cache_file.exists():
            try:
                data = cache_file.read_bytes()
            except OSError:
                data = b""
            return data or None
        data = self._fetch(domain, url)
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            cache_file.write_bytes(data or b"")
        except OSError as exc:
            logger.warning("Failed to cache favicon for %s: %s", domain, exc)
        return data

    def _fetch(self, domain: str, url: str) -> Optional[bytes]:
        scheme = "http" if url.startswith("http://") else "https"
        try:
            resp = self.client.get(f"{scheme}://{domain}/favicon.ico")
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            logger.debug("Favicon lookup failed for %s: %s", domain, exc)
            return None
        content_type = resp.headers.get("content-type", "")
        if content_type and not content_type.startswith("image/"):
            logger.debug("Favicon for %s is not an image (%s)", domain, content_type)
            return None
        return resp.content or None

    def close(self) -> None:
        if self._owns_client and self._client is not None:
            self._client.close()
            self._client = None


class FaviconLoader(QObject):
    """Runs icon lookups on worker threads, one per domain in flight.

    Every URL requested while its domain is loading is reported when the
    lookup finishes.
    """

    iconLoaded = Signal(str, object)  # url, icon bytes

    def __init__(self, load_icon: Callable[[str, str], Optional[bytes]], parent=None) -> None:
        super().__init__(parent)
        self._load_icon = load_icon
        self._pending: dict[str, list[str]] = {}
        self._lock = threading.Lock()

    def request(self, domain: str, url: str) -> Optional[threading.Thread]:
        """Start a lookup for ``domain``; returns None when one is already running."""
        with self._lock:
            waiting = self._pending.get(domain)
            if waiting is not None:
                if url not in waiting:
                    waiting.append(url)
                return None
            self._pending[domain] = [url]
        thread = threading.Thread(target=self._load_threadsafe, args=(domain, url), daemon=True)
        thread.start()
        return thread

    def _load_threadsafe(self, domain: str, url: str) -> None:
        try:
            data = self._load_icon(domain, url)
        except Exception as exc:
            logger.exception("Favicon job failed: %s", exc)
            data = None
        with self._lock:
            urls = self._pending.pop(domain, [url])
        if not data:
            return
        for target in urls:
            try:
                self.iconLoaded.emit(target, data)
            except RuntimeError:
                # The owning picker was deleted while the lookup ran.
                logger.debug("Dropping favicon for %s after its picker closed", domain)
                return
