from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from bookmarkcaller.app.bookmarks import BookmarkItem


@dataclass(frozen=True)
class WebViewer:
    """In-app browser; only used for URLs when it allows external sites."""

    allow_external_urls: bool = False


@dataclass(frozen=True)
class Capabilities:
    """Host features the pickers call into.

    Every member is optional. A ``None`` member means the host does not offer
    that feature and the action using it quietly does nothing.
    """

    open_file: Optional[Callable[[str, Optional[str]], None]] = None
    reveal_folder: Optional[Callable[[str], None]] = None
    run_search: Optional[Callable[[str], None]] = None
    activate_scoped_graph: Optional[Callable[[str], None]] = None
    bookmark_registry: Optional[Callable[[], Sequence[BookmarkItem]]] = None
    open_url: Optional[Callable[[str, bool], None]] = None
    web_viewer: Optional[WebViewer] = None
    load_icon: Optional[Callable[[str, str], Optional[bytes]]] = None
    resolve_basename: Optional[Callable[[str], Optional[str]]] = None
    is_file: Optional[Callable[[str], bool]] = None
    is_folder: Optional[Callable[[str], bool]] = None
    show_placeholder: Optional[Callable[[], None]] = None
    dismiss_placeholder: Optional[Callable[[], None]] = None
