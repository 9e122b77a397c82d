import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest

from bookmarkcaller.app.bookmarks import BookmarkItem
from bookmarkcaller.app.capabilities import Capabilities, WebViewer


class RecordingHost:
    """Capabilities that record every call instead of touching a real workspace."""

    def __init__(self, files=(), folders=(), web_viewer=None, registry=True):
        self.files = set(files)
        self.folders = set(folders)
        self.web_viewer = web_viewer
        self.registry = registry
        self.calls = []

    def capabilities(self, **overrides):
        values = dict(
            open_file=lambda path, subpath=None: self.calls.append(("file", path, subpath)),
            reveal_folder=lambda path: self.calls.append(("folder", path)),
            run_search=lambda query: self.calls.append(("search", query)),
            activate_scoped_graph=lambda identity: self.calls.append(("graph", identity)),
            bookmark_registry=(lambda: []) if self.registry else None,
            open_url=lambda url, prefer_in_app: self.calls.append(("url", url, prefer_in_app)),
            web_viewer=self.web_viewer,
            resolve_basename=lambda path: path.rsplit("/", 1)[-1].rsplit(".", 1)[0] if path in self.files else None,
            is_file=lambda path: path in self.files,
            is_folder=lambda path: path in self.folders,
            show_placeholder=lambda: self.calls.append(("placeholder", "show")),
            dismiss_placeholder=lambda: self.calls.append(("placeholder", "dismiss")),
        )
        values.update(overrides)
        return Capabilities(**values)

    def opened(self):
        return [call for call in self.calls if call[0] != "placeholder"]


def file_item(path, title=None, ctime=0, subpath=None):
    return BookmarkItem(type="file", path=path, title=title, ctime=ctime, subpath=subpath)


def group_item(title, children, ctime=0):
    return BookmarkItem(type="group", title=title, ctime=ctime, children=tuple(children))


@pytest.fixture
def host():
    return RecordingHost(files={f"Notes/n{i}.md" for i in range(40)}, folders={"Projects"})


@pytest.fixture
def in_app_host():
    return RecordingHost(web_viewer=WebViewer(allow_external_urls=True))


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    from bookmarkcaller.app import config

    path = tmp_path / "bookmarkcaller_config.json"
    monkeypatch.setattr(config, "GLOBAL_CONFIG", path)
    return path
