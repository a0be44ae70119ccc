from __future__ import annotations

from types import SimpleNamespace

import pytest
import requests

import scraper


def test_fetch_html_strips_chrome(monkeypatch):
    html = (
        "<html><body><header><h1>Site</h1></header><nav>Menu</nav>"
        "<h1>Article</h1><p>Body</p><aside>Ad</aside><iframe></iframe>"
        "<script>x()</script><footer>Foot</footer></body></html>"
    )
    monkeypatch.setattr(
        scraper.requests, "get", lambda *a, **k: SimpleNamespace(status_code=200, text=html)
    )
    cleaned = scraper.fetch_html("https://example.com/a")

    assert "<h1>Article</h1>" in cleaned
    for gone in ("Site", "Menu", "Ad", "x()", "Foot", "iframe"):
        assert gone not in cleaned


def test_fetch_text_collapses_whitespace(monkeypatch):
    html = "<html><body><h1>Title</h1>\n\n<p>Some   text</p><script>no()</script></body></html>"
    monkeypatch.setattr(
        scraper.requests, "get", lambda *a, **k: SimpleNamespace(status_code=200, text=html)
    )
    assert scraper.fetch_text("https://example.com/a") == "Title Some text"


def test_timeouts_map_to_page_load_error(monkeypatch):
    def boom(*args, **kwargs):
        raise requests.Timeout("slow")

    monkeypatch.setattr(scraper.requests, "get", boom)
    with pytest.raises(scraper.PageLoadError, match="Failed to load page"):
        scraper.fetch_html("https://example.com/a")


def test_http_errors_are_scrape_errors(monkeypatch):
    monkeypatch.setattr(
        scraper.requests, "get", lambda *a, **k: SimpleNamespace(status_code=500, text="")
    )
    with pytest.raises(scraper.ScrapeError) as excinfo:
        scraper.fetch_html("https://example.com/a")
    assert not isinstance(excinfo.value, scraper.PageLoadError)


def test_rejects_non_http_urls():
    with pytest.raises(scraper.ScrapeError):
        scraper.fetch_html("ftp://example.com/file")
