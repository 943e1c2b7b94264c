"""High-level orchestration: cache gate, crawl, extract, download, normalize, emit."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import requests

from .cache import CacheEntry, CrawlCache
from .config import CrawlConfig
from .crawler import Crawler, CrawlResult, Fetcher
from .emitter import Bundle, BundleEmitter
from .errors import CrawlFailedError
from .extractor import ContentExtractor
from .fetcher import PlaywrightFetcher
from .images import collect_image_urls, download_images
from .models import AssetRecord
from .normalizer import normalize
from .schema import CanonicalDocument, validate_document
from .site_data import build_site_data

logger = logging.getLogger("sitecanon")


@dataclass
class SiteBuild:
    """Validated document plus the tables it was built from."""

    document: CanonicalDocument
    assets: Dict[str, AssetRecord]
    site_data: Dict[str, Any]


@dataclass
class PipelineResult:
    """Outcome of one pipeline run; ``skipped`` means the cache was fresh."""

    url: str
    skipped: bool = False
    cache_entry: Optional[CacheEntry] = None
    crawl: Optional[CrawlResult] = None
    assets: Dict[str, AssetRecord] = field(default_factory=dict)
    site_data: Dict[str, Any] = field(default_factory=dict)
    document: Optional[CanonicalDocument] = None
    emitted: Any = None
    total_seconds: float = 0.0


async def crawl_site(url: str, config: CrawlConfig, fetcher: Optional[Fetcher] = None) -> CrawlResult:
    """Crawl ``url`` with the given fetcher, or a Playwright fetcher owned for the call."""
    if fetcher is not None:
        return await Crawler(fetcher, config).crawl(url)
    async with PlaywrightFetcher(config) as playwright_fetcher:
        return await Crawler(playwright_fetcher, config).crawl(url)


def build_document(
    result: CrawlResult,
    config: CrawlConfig,
    session: Optional[requests.Session] = None,
) -> SiteBuild:
    """Extract, download and normalize an already-crawled page table."""
    extractor = ContentExtractor(
        result.domain,
        decorative_tokens=config.decorative_tokens,
        navigation_tokens=config.navigation_tokens,
    )
    pages = extractor.extract_pages(result.page_list)

    image_urls = collect_image_urls(pages, result.domain, config.same_domain_assets)
    assets = download_images(image_urls, config, session=session)

    site_data = build_site_data(result, assets)
    document = normalize(site_data["metadata"], pages)
    validate_document(document)

    return SiteBuild(document=document, assets=assets, site_data=site_data)


async def run_pipeline(
    url: str,
    config: CrawlConfig,
    *,
    fetcher: Optional[Fetcher] = None,
    cache: Optional[CrawlCache] = None,
    emitter: Optional[BundleEmitter] = None,
    force_recrawl: bool = False,
    session: Optional[requests.Session] = None,
) -> PipelineResult:
    """Run the whole pipeline for one seed URL.

    Raises :class:`CrawlFailedError` when no page could be fetched and
    :class:`SchemaValidationError` when the document is malformed; in both
    cases nothing reaches ``emitter``.
    """
    start = time.perf_counter()
    options = config.options
    if cache is None:
        cache = CrawlCache(config.cache_file)

    if not cache.should_crawl(url, options, force_recrawl, config.max_age_hours):
        return PipelineResult(
            url=url,
            skipped=True,
            cache_entry=cache.get(url, options),
            total_seconds=time.perf_counter() - start,
        )

    crawl = await crawl_site(url, config, fetcher)
    if not crawl.pages:
        raise CrawlFailedError(f"No pages could be fetched from {url}")

    built = build_document(crawl, config, session=session)
    result = PipelineResult(
        url=url,
        crawl=crawl,
        assets=built.assets,
        site_data=built.site_data,
        document=built.document,
    )

    if emitter is not None:
        result.emitted = emitter.emit(
            Bundle(
                document=built.document,
                pages=crawl.pages,
                assets=built.assets,
                site_data=built.site_data,
            )
        )

    result.cache_entry = cache.record_crawl(
        url,
        options,
        {
            "pagesCount": len(crawl.pages),
            "assetsCount": len(result.assets),
            "crawlDepth": options.max_depth,
            "maxPages": options.max_pages,
        },
    )
    result.total_seconds = time.perf_counter() - start
    logger.info(
        "Finished %s in %.2fs (%d page(s), %d asset(s))",
        url,
        result.total_seconds,
        len(crawl.pages),
        len(result.assets),
    )
    return result
