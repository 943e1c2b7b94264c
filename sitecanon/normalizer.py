"""Map crawled pages onto the canonical document schema."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from .models import ExtractedContent, PageRecord
from .schema import (
    ButtonSection,
    CanonicalDocument,
    CanonicalPage,
    GallerySection,
    HeadingSection,
    Hero,
    ImageSection,
    ListSection,
    NavItem,
    ParagraphSection,
    Section,
    SiteInfo,
)

logger = logging.getLogger("sitecanon")

DEFAULT_BRAND_SEED = "#5F6FFF"

# Checked in order; the first group with a matching keyword wins.
BRAND_THEMES: Sequence[Tuple[str, Tuple[str, ...], str]] = (
    ("arts", ("art", "culture", "museum", "gallery", "creative", "bayou"), "#9C27B0"),
    ("business", ("business", "corporate", "company"), "#2196F3"),
    ("education", ("education", "school", "university", "learning", "academic"), "#4CAF50"),
    ("health", ("health", "medical", "hospital", "wellness", "care"), "#E91E63"),
    ("tech", ("tech", "software", "digital", "app", "web"), "#FF9800"),
)


def compute_brand_seed(domain: str, title: str = "", description: str = "") -> str:
    """Pick a theme colour from keywords in the domain, title and description."""
    haystack = f"{domain} {title} {description}".lower()
    for name, keywords, color in BRAND_THEMES:
        if any(keyword in haystack for keyword in keywords):
            logger.debug("Brand seed theme %s -> %s", name, color)
            return color
    return DEFAULT_BRAND_SEED


def _page_title(page: PageRecord, index: int) -> str:
    return page.title.strip() or f"Page {index + 1}"


def _page_slug(page: PageRecord, index: int) -> str:
    return page.path or f"page-{index + 1}"


def build_sections(title: str, description: str, content: ExtractedContent) -> List[Section]:
    """Ordered sections for one page: hero pair, description, text, media, links, lists."""
    sections: List[Section] = [HeadingSection(level=1, text=title)]
    images = content.images
    if images:
        first = images[0]
        sections.append(ImageSection(src=first.src, alt=first.alt, caption=first.title or None))

    if description.strip():
        sections.append(ParagraphSection(text=description))

    for heading in content.headings:
        sections.append(HeadingSection(level=heading.level, text=heading.text))

    for paragraph in content.paragraphs:
        if paragraph.strip():
            sections.append(ParagraphSection(text=paragraph))

    if len(images) > 1:
        sections.append(GallerySection(items=[image.src for image in images]))
    elif len(images) == 1 and not any(isinstance(s, ImageSection) for s in sections):
        only = images[0]
        sections.append(ImageSection(src=only.src, alt=only.alt, caption=only.title or None))

    for link in content.links:
        if link.href and link.text:
            sections.append(ButtonSection(text=link.text, href=link.href))

    for lst in content.lists:
        if lst.items:
            sections.append(ListSection(items=list(lst.items)))

    return sections


def normalize_page(page: PageRecord, index: int) -> CanonicalPage:
    content = page.content or ExtractedContent()
    title = _page_title(page, index)
    description = page.description or ""
    hero: Optional[Hero] = None
    if content.images:
        hero = Hero(title=title, subtitle=description, image=content.images[0].src)
    return CanonicalPage(
        slug=_page_slug(page, index),
        title=title,
        sections=build_sections(title, description, content),
        hero=hero,
    )


def normalize(
    site_metadata: Dict[str, object],
    pages: Sequence[PageRecord],
) -> CanonicalDocument:
    """Convert site metadata and extracted pages into a :class:`CanonicalDocument`.

    ``site_metadata`` is the ``metadata`` block of the legacy site data
    (``domain``, ``title``, ``description``).
    """
    domain = str(site_metadata.get("domain") or "")
    title = str(site_metadata.get("title") or "") or domain
    description = str(site_metadata.get("description") or "")

    logo: Optional[str] = None
    for page in pages:
        if page.content is not None and page.content.images:
            logo = page.content.images[0].src
            break

    document = CanonicalDocument(
        site=SiteInfo(
            title=title,
            description=description,
            brand_seed=compute_brand_seed(domain, title, description),
            logo=logo,
        ),
        nav=[
            NavItem(title=_page_title(page, index), slug=_page_slug(page, index))
            for index, page in enumerate(pages)
        ],
        pages=[normalize_page(page, index) for index, page in enumerate(pages)],
    )
    logger.info("Normalized %d page(s) into canonical document", len(document.pages))
    return document
