import logging
import threading

import httpx
from PySide6.QtCore import QObject

from bookmarkcaller.app.favicons import FaviconCache, FaviconLoader

ICON_BYTES = b"\x00\x00\x01\x00fake-ico"


def _client(handler):
    return httpx.Client(transport=httpx.MockTransport(handler))


def test_fetches_and_caches_per_domain(tmp_path):
    requests = []

    def handler(request):
        requests.append(str(request.url))
        return httpx.Response(200, content=ICON_BYTES, headers={"content-type": "image/x-icon"})

    cache = FaviconCache(tmp_path, client=_client(handler))
    assert cache.load_icon("example.com", "https://example.com/page") == ICON_BYTES
    assert cache.load_icon("example.com", "https://example.com/other") == ICON_BYTES
    assert requests == ["https://example.com/favicon.ico"]
    assert (tmp_path / "example.com.ico").read_bytes() == ICON_BYTES


def test_plain_http_urls_keep_their_scheme(tmp_path):
    requests = []

    def handler(request):
        requests.append(request.url.scheme)
        return httpx.Response(200, content=ICON_BYTES, headers={"content-type": "image/png"})

    FaviconCache(tmp_path, client=_client(handler)).load_icon("intranet", "http://intranet/wiki")
    assert requests == ["http"]


def test_failures_are_cached_as_missing(tmp_path):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(404)

    cache = FaviconCache(tmp_path, client=_client(handler))
    assert cache.load_icon("example.org", "https://example.org") is None
    assert cache.load_icon("example.org", "https://example.org") is None
    assert len(calls) == 1


def test_non_image_and_network_errors(tmp_path):
    def html_handler(request):
        return httpx.Response(200, content=b"<html></html>", headers={"content-type": "text/html"})

    def broken_handler(request):
        raise httpx.ConnectError("offline", request=request)

    assert FaviconCache(tmp_path / "a", client=_client(html_handler)).load_icon("a.test", "https://a.test") is None
    assert FaviconCache(tmp_path / "b", client=_client(broken_handler)).load_icon("b.test", "https://b.test") is None


def test_empty_domain(tmp_path):
    assert FaviconCache(tmp_path).load_icon("", "mailto:x@example.com") is None


def test_loader_emits_per_url(qtbot):
    loader = FaviconLoader(lambda domain, url: ICON_BYTES if domain == "example.com" else None)
    with qtbot.waitSignal(loader.iconLoaded, timeout=2000) as blocker:
        loader.request("example.com", "https://example.com/a")
    assert blocker.args == ["https://example.com/a", ICON_BYTES]


def test_loader_stays_quiet_without_icon(qtbot):
    loader = FaviconLoader(lambda domain, url: None)
    with qtbot.assertNotEmitted(loader.iconLoaded, wait=100):
        loader.request("nothing.test", "https://nothing.test").join()


def test_loader_fetches_each_domain_once(qtbot):
    gate = threading.Event()
    calls = []
    received = []

    def load_icon(domain, url):
        calls.append(url)
        gate.wait(2)
        return ICON_BYTES

    loader = FaviconLoader(load_icon)
    loader.iconLoaded.connect(lambda url, data: received.append(url))
    thread = loader.request("example.com", "https://example.com/a")
    assert loader.request("example.com", "https://example.com/b") is None
    assert loader.request("example.com", "https://example.com/a") is None
    gate.set()
    thread.join()
    qtbot.waitUntil(lambda: len(received) == 2, timeout=2000)
    assert calls == ["https://example.com/a"]
    assert sorted(received) == ["https://example.com/a", "https://example.com/b"]
    # Finished domains can be looked up again.
    again = loader.request("example.com", "https://example.com/c")
    assert again is not None
    again.join()


def test_loader_ignores_closed_picker(caplog):
    gate = threading.Event()

    def load_icon(domain, url):
        gate.wait(2)
        return ICON_BYTES

    picker = QObject()
    loader = FaviconLoader(load_icon, picker)
    thread = loader.request("example.com", "https://example.com")
    del picker
    with caplog.at_level(logging.DEBUG, logger="bookmarkcaller.app.favicons"):
        gate.set()
        thread.join()
    assert "after its picker closed" in caplog.text
