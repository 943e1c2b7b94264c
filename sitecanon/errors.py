"""Exception types raised by the crawl pipeline."""

from __future__ import annotations

from typing import Optional


class SitecanonError(Exception):
    """Base class for pipeline errors."""


class FetchError(SitecanonError):
    """A single URL could not be rendered."""

    def __init__(self, url: str, cause: BaseException | str) -> None:
        self.url = url
        self.cause = cause
        super().__init__(f"Failed to fetch {url}: {cause}")


class ExtractionError(SitecanonError):
    """Content extraction failed for one page."""

    def __init__(self, url: str, cause: BaseException | str) -> None:
        self.url = url
        self.cause = cause
        super().__init__(f"Failed to extract content from {url}: {cause}")


class AssetDownloadError(SitecanonError):
    """A single asset could not be downloaded or was rejected."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Skipping asset {url}: {reason}")


class CacheError(SitecanonError):
    """The crawl cache store could not be read or written."""


class CrawlFailedError(SitecanonError):
    """No page of the site could be fetched."""


class SchemaValidationError(SitecanonError):
    """The canonical document violates a structural invariant."""

    def __init__(
        self,
        message: str,
        *,
        page_index: Optional[int] = None,
        section_index: Optional[int] = None,
        field: Optional[str] = None,
    ) -> None:
        self.page_index = page_index
        self.section_index = section_index
        self.field = field
        super().__init__(message)
