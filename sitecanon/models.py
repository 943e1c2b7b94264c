"""Data models used throughout the crawler pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class PageMetadata:
    """Metadata read from the rendered page head."""

    title: str = ""
    description: str = ""
    keywords: str = ""
    canonical: str = ""
    og_title: str = ""
    og_description: str = ""
    og_image: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {
            "title": self.title,
            "description": self.description,
            "keywords": self.keywords,
            "canonical": self.canonical,
            "ogTitle": self.og_title,
            "ogDescription": self.og_description,
            "ogImage": self.og_image,
        }


@dataclass
class Heading:
    level: int
    text: str
    id: str = ""


@dataclass
class ImageRef:
    """Content image discovered in a page, after the decorative filter."""

    src: str
    alt: str = ""
    title: str = ""


@dataclass
class LinkRef:
    href: str
    text: str
    title: str = ""
    is_external: bool = False


@dataclass
class ListBlock:
    type: str
    items: List[str]


@dataclass
class Table:
    rows: List[List[str]]


@dataclass
class FormInput:
    type: str
    name: str = ""
    placeholder: str = ""
    required: bool = False


@dataclass
class Form:
    action: str
    method: str
    inputs: List[FormInput] = field(default_factory=list)


@dataclass
class ContentBlock:
    """A main/article/section container holding meaningful text."""

    type: str
    class_name: str
    text: str
    headings: List[Heading] = field(default_factory=list)
    paragraphs: List[str] = field(default_factory=list)


@dataclass
class ExtractedContent:
    """Typed content primitives for one page, with chrome removed."""

    headings: List[Heading] = field(default_factory=list)
    paragraphs: List[str] = field(default_factory=list)
    images: List[ImageRef] = field(default_factory=list)
    links: List[LinkRef] = field(default_factory=list)
    lists: List[ListBlock] = field(default_factory=list)
    tables: List[Table] = field(default_factory=list)
    forms: List[Form] = field(default_factory=list)
    content_blocks: List[ContentBlock] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not any(
            (
                self.headings,
                self.paragraphs,
                self.images,
                self.links,
                self.lists,
                self.tables,
                self.forms,
                self.content_blocks,
            )
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "headings": [asdict(h) for h in self.headings],
            "paragraphs": list(self.paragraphs),
            "images": [asdict(img) for img in self.images],
            "links": [
                {
                    "href": link.href,
                    "text": link.text,
                    "title": link.title,
                    "isExternal": link.is_external,
                }
                for link in self.links
            ],
            "lists": [asdict(lst) for lst in self.lists],
            "tables": [asdict(table) for table in self.tables],
            "forms": [asdict(form) for form in self.forms],
            "contentBlocks": [
                {
                    "type": block.type,
                    "className": block.class_name,
                    "text": block.text,
                    "headings": [
                        {"level": h.level, "text": h.text} for h in block.headings
                    ],
                    "paragraphs": list(block.paragraphs),
                }
                for block in self.content_blocks
            ],
        }


@dataclass
class PageRecord:
    """A fetched page; ``content`` is attached once extraction has run."""

    url: str
    html: str
    metadata: PageMetadata
    depth: int
    path: str
    content: Optional[ExtractedContent] = None

    @property
    def title(self) -> str:
        return self.metadata.title

    @property
    def description(self) -> str:
        return self.metadata.description


@dataclass
class AssetRecord:
    """Downloaded asset; ``content`` is handed to the emitter, never serialized."""

    source_url: str
    path: str
    type: str
    size_bytes: int
    content_type: str = "application/octet-stream"
    content: bytes = field(default=b"", repr=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.source_url,
            "path": self.path,
            "type": self.type,
            "size": self.size_bytes,
            "contentType": self.content_type,
        }
