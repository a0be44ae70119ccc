# scraper.py
import asyncio
import re

import requests
from bs4 import BeautifulSoup

URL_RE = re.compile(r"^https?://[^\s/$.?#][^\s]*$", re.I)

# Elements that never carry article content
STRIP_SELECTORS = "script, style, nav, footer, header, iframe, aside"

DEFAULT_TIMEOUT = 30.0


class ScrapeError(Exception):
    pass


class PageLoadError(ScrapeError):
    """Timeout, connection failure or redirect loop while loading the page."""


def validate_url(url: str) -> None:
    if not URL_RE.match(url or ""):
        raise ScrapeError("Only http(s) URLs can be scraped.")


# Browser-like headers so sites don't block us
HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Cache-Control": "no-cache",
}


def _fetch(url: str, timeout: float) -> str:
    try:
        resp = requests.get(url, headers=HEADERS, timeout=timeout, allow_redirects=True)
    except (requests.Timeout, requests.ConnectionError, requests.TooManyRedirects) as e:
        raise PageLoadError(
            f"Failed to load page at {url}: Page load timeout or navigation failed"
        ) from e
    except requests.RequestException as e:
        raise ScrapeError(f"Failed to scrape website at {url}: {e}") from e
    if resp.status_code == 403:
        raise ScrapeError(f"Forbidden (403) from {url}")
    if resp.status_code != 200:
        raise ScrapeError(f"Failed to fetch page: HTTP {resp.status_code}")
    return resp.text


def clean_markup(html: str) -> BeautifulSoup:
    soup = BeautifulSoup(html, "html.parser")
    for el in soup.select(STRIP_SELECTORS):
        el.decompose()
    return soup


def fetch_html(url: str, timeout: float = DEFAULT_TIMEOUT) -> str:
    """Returns page markup with navigation, script and style elements removed."""
    validate_url(url)
    return str(clean_markup(_fetch(url, timeout)))


def fetch_text(url: str, timeout: float = DEFAULT_TIMEOUT) -> str:
    """Returns the page's visible text with whitespace collapsed."""
    validate_url(url)
    soup = clean_markup(_fetch(url, timeout))
    body = soup.body or soup
    return re.sub(r"\s+", " ", body.get_text(" ")).strip()


async def render_page_html(url: str, timeout: float = DEFAULT_TIMEOUT) -> str:
    return await asyncio.to_thread(fetch_html, url, timeout)


async def render_page_text(url: str, timeout: float = DEFAULT_TIMEOUT) -> str:
    return await asyncio.to_thread(fetch_text, url, timeout)
