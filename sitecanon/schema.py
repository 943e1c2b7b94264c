"""Canonical document schema consumed by the rendering front-end.

A document is ``{version, site, nav, pages}``; every page carries an ordered
list of sections drawn from a closed set of eight kinds. The JSON form is the
external interface, so :func:`validate_document` works on that form and
rejects any section tag outside the set.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

from .errors import SchemaValidationError

SCHEMA_VERSION = "1.0"


@dataclass
class HeadingSection:
    level: int
    text: str
    type: str = field(default="heading", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "level": self.level, "text": self.text}


@dataclass
class ParagraphSection:
    text: str
    type: str = field(default="paragraph", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "text": self.text}


@dataclass
class ImageSection:
    src: str
    alt: str = ""
    caption: Optional[str] = None
    type: str = field(default="image", init=False)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.type, "src": self.src, "alt": self.alt}
        if self.caption:
            data["caption"] = self.caption
        return data


@dataclass
class GallerySection:
    items: List[str]
    type: str = field(default="gallery", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "items": list(self.items)}


@dataclass
class ListSection:
    items: List[str]
    type: str = field(default="list", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "items": list(self.items)}


@dataclass
class QuoteSection:
    text: str
    type: str = field(default="quote", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "text": self.text}


@dataclass
class ButtonSection:
    text: str
    href: str
    type: str = field(default="button", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "text": self.text, "href": self.href}


@dataclass
class HtmlSection:
    raw: str
    type: str = field(default="html", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "raw": self.raw}


Section = Union[
    HeadingSection,
    ParagraphSection,
    ImageSection,
    GallerySection,
    ListSection,
    QuoteSection,
    ButtonSection,
    HtmlSection,
]

SECTION_TYPES = (
    "heading",
    "paragraph",
    "image",
    "gallery",
    "list",
    "quote",
    "button",
    "html",
)


def section_from_dict(data: Mapping[str, Any]) -> Section:
    """Build a typed section from its JSON form; unknown tags are rejected."""
    kind = data.get("type")
    if kind == "heading":
        return HeadingSection(level=int(data.get("level", 1)), text=str(data.get("text", "")))
    if kind == "paragraph":
        return ParagraphSection(text=str(data.get("text", "")))
    if kind == "image":
        return ImageSection(
            src=str(data.get("src", "")),
            alt=str(data.get("alt", "")),
            caption=data.get("caption") or None,
        )
    if kind == "gallery":
        return GallerySection(items=[str(item) for item in data.get("items", [])])
    if kind == "list":
        return ListSection(items=[str(item) for item in data.get("items", [])])
    if kind == "quote":
        return QuoteSection(text=str(data.get("text", "")))
    if kind == "button":
        return ButtonSection(text=str(data.get("text", "")), href=str(data.get("href", "")))
    if kind == "html":
        return HtmlSection(raw=str(data.get("raw", data.get("html", ""))))
    raise SchemaValidationError(f"Unknown section type: {kind!r}", field="type")


@dataclass
class Hero:
    title: str
    subtitle: str
    image: str

    def to_dict(self) -> Dict[str, str]:
        return {"title": self.title, "subtitle": self.subtitle, "image": self.image}


@dataclass
class NavItem:
    title: str
    slug: str

    def to_dict(self) -> Dict[str, str]:
        return {"title": self.title, "slug": self.slug}


@dataclass
class SiteInfo:
    title: str
    description: str
    brand_seed: str
    logo: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "title": self.title,
            "description": self.description,
            "brandSeed": self.brand_seed,
        }
        if self.logo:
            data["logo"] = self.logo
        return data


@dataclass
class CanonicalPage:
    slug: str
    title: str
    sections: List[Section] = field(default_factory=list)
    hero: Optional[Hero] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"slug": self.slug, "title": self.title}
        if self.hero is not None:
            data["hero"] = self.hero.to_dict()
        data["sections"] = [section.to_dict() for section in self.sections]
        return data


@dataclass
class CanonicalDocument:
    site: SiteInfo
    nav: List[NavItem]
    pages: List[CanonicalPage]
    version: str = SCHEMA_VERSION

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "site": self.site.to_dict(),
            "nav": [item.to_dict() for item in self.nav],
            "pages": [page.to_dict() for page in self.pages],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CanonicalDocument":
        """Rebuild a validated document from its JSON form."""
        validate_document(data)
        site = data["site"]
        pages: List[CanonicalPage] = []
        for page in data["pages"]:
            hero = page.get("hero")
            pages.append(
                CanonicalPage(
                    slug=str(page["slug"]),
                    title=str(page["title"]),
                    sections=[section_from_dict(section) for section in page["sections"]],
                    hero=Hero(
                        title=str(hero.get("title", "")),
                        subtitle=str(hero.get("subtitle", "")),
                        image=str(hero.get("image", "")),
                    )
                    if hero
                    else None,
                )
            )
        return cls(
            version=str(data["version"]),
            site=SiteInfo(
                title=str(site["title"]),
                description=str(site.get("description", "")),
                brand_seed=str(site.get("brandSeed", "")),
                logo=site.get("logo") or None,
            ),
            nav=[NavItem(title=str(item["title"]), slug=str(item["slug"])) for item in data["nav"]],
            pages=pages,
        )


def validate_document(doc: Union[CanonicalDocument, Mapping[str, Any]]) -> bool:
    """Check structural invariants; raise :class:`SchemaValidationError` on the first violation."""
    data = doc.to_dict() if isinstance(doc, CanonicalDocument) else doc

    if data.get("version") != SCHEMA_VERSION:
        raise SchemaValidationError(
            f'Invalid version {data.get("version")!r}: must be "{SCHEMA_VERSION}"',
            field="version",
        )

    site = data.get("site")
    if not isinstance(site, Mapping) or not site.get("title"):
        raise SchemaValidationError("Site title is required", field="site.title")

    nav = data.get("nav")
    if not isinstance(nav, list) or not nav:
        raise SchemaValidationError("Navigation is required and must be non-empty", field="nav")

    pages = data.get("pages")
    if not isinstance(pages, list) or not pages:
        raise SchemaValidationError("Pages are required and must be non-empty", field="pages")

    for page_index, page in enumerate(pages):
        label = f"Page {page_index + 1}"
        if not isinstance(page, Mapping):
            raise SchemaValidationError(f"{label} must be an object", page_index=page_index)
        for required in ("slug", "title"):
            if not page.get(required):
                raise SchemaValidationError(
                    f"{label} is missing required field: {required}",
                    page_index=page_index,
                    field=required,
                )
        sections = page.get("sections")
        if not isinstance(sections, list):
            raise SchemaValidationError(
                f"{label} sections must be an array",
                page_index=page_index,
                field="sections",
            )
        for section_index, section in enumerate(sections):
            where = f"{label}, section {section_index + 1}"
            kind = section.get("type") if isinstance(section, Mapping) else None
            if not kind:
                raise SchemaValidationError(
                    f"{where} is missing type",
                    page_index=page_index,
                    section_index=section_index,
                    field="type",
                )
            if kind not in SECTION_TYPES:
                raise SchemaValidationError(
                    f"{where} has invalid type: {kind}",
                    page_index=page_index,
                    section_index=section_index,
                    field="type",
                )
            if kind == "heading" and section.get("level") not in range(1, 7):
                raise SchemaValidationError(
                    f"{where} has invalid heading level: {section.get('level')!r}",
                    page_index=page_index,
                    section_index=section_index,
                    field="level",
                )
    return True
