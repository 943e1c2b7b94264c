"""Render pages in headless Chromium and read their metadata and links."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional
from urllib.parse import urldefrag, urljoin, urlparse

from bs4 import BeautifulSoup
from playwright.async_api import (
    Error as PlaywrightError,
    Playwright,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)
from readability import Document

from .config import CrawlConfig
from .errors import FetchError
from .models import PageMetadata
from .utils import normalize_cache_url

logger = logging.getLogger("sitecanon")

VIEWPORT = {"width": 1920, "height": 1080}
_SKIPPED_HREF_PREFIXES = ("#", "mailto:", "tel:", "javascript:")


@dataclass
class FetchResult:
    """Rendered HTML of one URL plus its head metadata and same-host links."""

    url: str
    final_url: str
    html: str
    metadata: PageMetadata
    links: List[str] = field(default_factory=list)


def _meta_content(soup: BeautifulSoup, **attrs: str) -> str:
    tag = soup.find("meta", attrs=attrs)
    if tag and tag.get("content"):
        return str(tag["content"]).strip()
    return ""


def parse_metadata(html: str, base_url: str = "") -> PageMetadata:
    """Read title, description, keywords, canonical and Open Graph fields."""
    soup = BeautifulSoup(html, "html.parser")

    title = ""
    if soup.title and soup.title.string:
        title = soup.title.string.strip()
    if not title:
        try:
            title = Document(html).short_title().strip()
        except Exception:  # pylint: disable=broad-except
            logger.debug("Readability could not derive a title for %s", base_url)
            title = ""

    canonical = ""
    canonical_tag = soup.find("link", rel="canonical")
    if canonical_tag and canonical_tag.get("href"):
        canonical = urljoin(base_url, str(canonical_tag["href"]).strip())

    return PageMetadata(
        title=title,
        description=_meta_content(soup, name="description"),
        keywords=_meta_content(soup, name="keywords"),
        canonical=canonical,
        og_title=_meta_content(soup, property="og:title"),
        og_description=_meta_content(soup, property="og:description"),
        og_image=_meta_content(soup, property="og:image"),
    )


def extract_links(html: str, base_url: str, domain: str) -> List[str]:
    """Return absolute same-host anchor targets in document order.

    Targets that normalize to the same URL (for example ``/about`` and
    ``/about/``) are reported once, under the first spelling seen.
    """
    soup = BeautifulSoup(html, "html.parser")
    domain = domain.lower()
    seen = set()
    links: List[str] = []
    for anchor in soup.find_all("a", href=True):
        href = str(anchor["href"]).strip()
        if not href or href.lower().startswith(_SKIPPED_HREF_PREFIXES):
            continue
        absolute, _fragment = urldefrag(urljoin(base_url, href))
        try:
            parsed = urlparse(absolute)
        except ValueError:
            continue
        if parsed.scheme not in ("http", "https"):
            continue
        if (parsed.hostname or "").lower() != domain:
            continue
        key = normalize_cache_url(absolute)
        if key in seen:
            continue
        seen.add(key)
        links.append(absolute)
    return links


async def render_page(
    playwright: Playwright,
    url: str,
    config: CrawlConfig,
) -> tuple[str, str]:
    """Navigate to a URL using Playwright and return the HTML and final URL."""
    browser = await playwright.chromium.launch(headless=True)
    try:
        page = await browser.new_page(viewport=VIEWPORT)
        page.set_default_navigation_timeout(config.navigation_timeout * 1000)
        logger.info("Loading %s", url)
        await page.goto(url, wait_until="networkidle")
        if config.wait_after_load:
            await page.wait_for_timeout(int(config.wait_after_load * 1000))
        html = await page.content()
        final_url = page.url
    finally:
        await browser.close()
    return html, final_url


class PlaywrightFetcher:
    """Fetcher that renders each URL in its own short-lived browser.

    Use as an async context manager so the Playwright driver is started once
    per crawl and shut down afterwards.
    """

    def __init__(self, config: CrawlConfig) -> None:
        self.config = config
        self._manager = None
        self._playwright: Optional[Playwright] = None

    async def __aenter__(self) -> "PlaywrightFetcher":
        self._manager = async_playwright()
        self._playwright = await self._manager.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._manager is not None:
            await self._manager.__aexit__(exc_type, exc, tb)
        self._manager = None
        self._playwright = None

    async def fetch(self, url: str, domain: str) -> FetchResult:
        if self._playwright is None:
            raise RuntimeError("PlaywrightFetcher must be used as an async context manager")
        try:
            html, final_url = await render_page(self._playwright, url, self.config)
        except PlaywrightTimeoutError as exc:
            raise FetchError(url, f"timed out after {self.config.navigation_timeout}s") from exc
        except PlaywrightError as exc:
            raise FetchError(url, exc) from exc

        return FetchResult(
            url=url,
            final_url=final_url,
            html=html,
            metadata=parse_metadata(html, final_url),
            links=extract_links(html, final_url, domain),
        )
