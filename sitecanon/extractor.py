"""Separate page content from chrome and extract typed content primitives."""

from __future__ import annotations

import logging
from typing import Iterable, List, Sequence
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from bs4.element import Tag
from readability import Document

from .config import DECORATIVE_TOKENS, NAVIGATION_TOKENS
from .errors import ExtractionError
from .models import (
    ContentBlock,
    ExtractedContent,
    Form,
    FormInput,
    Heading,
    ImageRef,
    LinkRef,
    ListBlock,
    PageRecord,
    Table,
)
from .utils import clean_text, host_of

logger = logging.getLogger("sitecanon")

HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]
NOISE_TAGS = ["script", "style", "noscript", "template"]
CHROME_SELECTOR = (
    "nav, header, footer, aside, .nav, .navigation, .header, .footer, .sidebar, .menu"
)
CONTENT_BLOCK_SELECTOR = "main, .main, .content, .container, article, section"
MIN_BLOCK_CHARS = 50


def _class_string(tag: Tag) -> str:
    value = tag.get("class") or ""
    if isinstance(value, (list, tuple)):
        value = " ".join(value)
    return str(value)


def _contains_token(value: str, tokens: Iterable[str]) -> bool:
    lowered = value.lower()
    return any(token in lowered for token in tokens)


def _text(tag: Tag) -> str:
    return clean_text(tag.get_text(" "))


def strip_chrome(soup: BeautifulSoup) -> BeautifulSoup:
    """Remove scripts and navigation/header/footer/sidebar/menu structure in place."""
    for tag in soup(NOISE_TAGS):
        tag.decompose()
    for tag in soup.select(CHROME_SELECTOR):
        if not tag.decomposed:
            tag.decompose()
    return soup


class ContentExtractor:
    """Extract headings, paragraphs, images, links, lists, tables and forms.

    ``decorative_tokens`` and ``navigation_tokens`` are substring heuristics
    matched case-insensitively against class and alt attributes.
    """

    def __init__(
        self,
        domain: str,
        decorative_tokens: Sequence[str] = DECORATIVE_TOKENS,
        navigation_tokens: Sequence[str] = NAVIGATION_TOKENS,
    ) -> None:
        self.domain = domain.lower()
        self.decorative_tokens = tuple(token.lower() for token in decorative_tokens)
        self.navigation_tokens = tuple(token.lower() for token in navigation_tokens)

    def extract_headings(self, soup: BeautifulSoup) -> List[Heading]:
        headings: List[Heading] = []
        for tag in soup.find_all(HEADING_TAGS):
            text = _text(tag)
            if not text:
                continue
            headings.append(Heading(level=int(tag.name[1]), text=text, id=str(tag.get("id") or "")))
        return headings

    def extract_paragraphs(self, soup: BeautifulSoup) -> List[str]:
        return [text for text in (_text(p) for p in soup.find_all("p")) if text]

    def is_decorative(self, img: Tag) -> bool:
        alt = str(img.get("alt") or "")
        return _contains_token(_class_string(img), self.decorative_tokens) or _contains_token(
            alt, self.decorative_tokens
        )

    def extract_images(self, soup: BeautifulSoup) -> List[ImageRef]:
        images: List[ImageRef] = []
        for img in soup.find_all("img", src=True):
            src = str(img["src"]).strip()
            if not src or src.startswith("data:"):
                continue
            if self.is_decorative(img):
                continue
            images.append(
                ImageRef(
                    src=src,
                    alt=str(img.get("alt") or "").strip(),
                    title=str(img.get("title") or "").strip(),
                )
            )
        return images

    def extract_links(self, soup: BeautifulSoup, page_url: str) -> List[LinkRef]:
        links: List[LinkRef] = []
        for anchor in soup.find_all("a", href=True):
            href = str(anchor["href"]).strip()
            text = _text(anchor)
            if not href or not text:
                continue
            if _contains_token(_class_string(anchor), self.navigation_tokens):
                continue
            target_host = host_of(urljoin(page_url, href))
            links.append(
                LinkRef(
                    href=href,
                    text=text,
                    title=str(anchor.get("title") or "").strip(),
                    is_external=bool(target_host) and target_host != self.domain,
                )
            )
        return links

    def extract_lists(self, soup: BeautifulSoup) -> List[ListBlock]:
        return [
            ListBlock(type=lst.name, items=[_text(li) for li in lst.find_all("li")])
            for lst in soup.find_all(["ul", "ol"])
        ]

    def extract_tables(self, soup: BeautifulSoup) -> List[Table]:
        tables: List[Table] = []
        for table in soup.find_all("table"):
            rows = [
                [_text(cell) for cell in row.find_all(["th", "td"])]
                for row in table.find_all("tr")
            ]
            tables.append(Table(rows=rows))
        return tables

    def extract_forms(self, soup: BeautifulSoup) -> List[Form]:
        forms: List[Form] = []
        for form in soup.find_all("form"):
            inputs = [
                FormInput(
                    type=str(field.get("type") or field.name),
                    name=str(field.get("name") or ""),
                    placeholder=str(field.get("placeholder") or ""),
                    required=field.has_attr("required"),
                )
                for field in form.find_all(["input", "textarea", "select"])
            ]
            forms.append(
                Form(
                    action=str(form.get("action") or ""),
                    method=str(form.get("method") or "get").lower(),
                    inputs=inputs,
                )
            )
        return forms

    def extract_content_blocks(self, soup: BeautifulSoup, html: str) -> List[ContentBlock]:
        blocks: List[ContentBlock] = []
        for element in soup.select(CONTENT_BLOCK_SELECTOR):
            text = _text(element)
            if len(text) <= MIN_BLOCK_CHARS:
                continue
            blocks.append(
                ContentBlock(
                    type=element.name,
                    class_name=_class_string(element),
                    text=text,
                    headings=self.extract_headings(element),
                    paragraphs=self.extract_paragraphs(element),
                )
            )
        if blocks:
            return blocks
        return self._readability_block(html)

    def _readability_block(self, html: str) -> List[ContentBlock]:
        """Fall back to readability's article guess when no container qualifies."""
        try:
            summary_html = Document(html).summary(html_partial=True)
        except Exception:  # pylint: disable=broad-except
            logger.debug("Readability could not summarise page")
            return []
        summary = strip_chrome(BeautifulSoup(summary_html, "html.parser"))
        text = _text(summary)
        if len(text) <= MIN_BLOCK_CHARS:
            return []
        return [
            ContentBlock(
                type="readability",
                class_name="",
                text=text,
                headings=self.extract_headings(summary),
                paragraphs=self.extract_paragraphs(summary),
            )
        ]

    def extract(self, html: str, page_url: str) -> ExtractedContent:
        """Extract content from raw HTML; raises :class:`ExtractionError` on parse failure."""
        try:
            soup = strip_chrome(BeautifulSoup(html, "html.parser"))
            return ExtractedContent(
                headings=self.extract_headings(soup),
                paragraphs=self.extract_paragraphs(soup),
                images=self.extract_images(soup),
                links=self.extract_links(soup, page_url),
                lists=self.extract_lists(soup),
                tables=self.extract_tables(soup),
                forms=self.extract_forms(soup),
                content_blocks=self.extract_content_blocks(soup, html),
            )
        except (TypeError, ValueError, AttributeError, AssertionError) as exc:
            raise ExtractionError(page_url, exc) from exc

    def extract_page(self, page: PageRecord) -> ExtractedContent:
        """Attach extracted content to ``page``; failures yield empty content."""
        try:
            content = self.extract(page.html, page.url)
        except ExtractionError as exc:
            logger.warning("%s; continuing with empty content", exc)
            content = ExtractedContent()
        page.content = content
        return content

    def extract_pages(self, pages: Iterable[PageRecord]) -> List[PageRecord]:
        extracted: List[PageRecord] = []
        for page in pages:
            logger.info("Extracting content from %s", page.path)
            self.extract_page(page)
            extracted.append(page)
        return extracted
