"""Bounded crawl over a single site using an explicit worklist."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List, Optional, Protocol, Set, Tuple

from .config import CrawlConfig
from .errors import FetchError
from .fetcher import FetchResult
from .models import PageRecord
from .utils import host_of, is_http_url, normalize_cache_url, url_to_path

logger = logging.getLogger("sitecanon")


class Fetcher(Protocol):
    async def fetch(self, url: str, domain: str) -> FetchResult:
        ...


@dataclass
class CrawlResult:
    """Pages collected by one crawl, in visit order.

    ``pages`` is keyed by the URL as first discovered; ``visited`` holds the
    normalized form, so spellings that differ only by host case, a trailing
    slash, a query or a fragment count as one page.
    """

    seed: str
    domain: str
    pages: Dict[str, PageRecord] = field(default_factory=dict)
    visited: Set[str] = field(default_factory=set)
    failed: Dict[str, str] = field(default_factory=dict)

    @property
    def page_list(self) -> List[PageRecord]:
        return list(self.pages.values())


class Crawler:
    """Drive a fetcher across the frontier until the page or depth budget is spent.

    ``traversal="bfs"`` pops the oldest frontier entry; ``"dfs"`` pops the
    newest, and links are pushed in reverse so the first link on a page is
    followed first. The two orders select different pages once ``max_pages``
    truncates the crawl.
    """

    def __init__(self, fetcher: Fetcher, config: CrawlConfig) -> None:
        self.fetcher = fetcher
        self.config = config

    def _pop(self, frontier: Deque[Tuple[str, int]]) -> Tuple[str, int]:
        if self.config.traversal == "dfs":
            return frontier.pop()
        return frontier.popleft()

    def _push_links(
        self,
        frontier: Deque[Tuple[str, int]],
        links: List[str],
        depth: int,
        visited: Set[str],
    ) -> int:
        selected = [
            link
            for link in links[: self.config.links_per_page]
            if normalize_cache_url(link) not in visited
        ]
        if self.config.traversal == "dfs":
            selected.reverse()
        for link in selected:
            frontier.append((link, depth))
        return len(selected)

    def _reserve_batch(
        self,
        frontier: Deque[Tuple[str, int]],
        visited: Set[str],
    ) -> List[Tuple[str, int]]:
        """Pop up to ``concurrency`` fetchable URLs, marking each visited.

        Marking happens before any fetch starts, so concurrent fetches can never
        share a URL or exceed ``max_pages``.
        """
        options = self.config.options
        batch: List[Tuple[str, int]] = []
        while frontier and len(batch) < self.config.concurrency:
            url, depth = self._pop(frontier)
            key = normalize_cache_url(url)
            if key in visited:
                continue
            if depth > options.max_depth:
                logger.debug("Skipping %s: depth %d exceeds %d", url, depth, options.max_depth)
                continue
            if len(visited) >= options.max_pages:
                logger.debug("Page budget of %d reached; dropping %s", options.max_pages, url)
                continue
            visited.add(key)
            batch.append((url, depth))
        return batch

    async def _fetch_one(
        self, url: str, domain: str, failed: Dict[str, str]
    ) -> Optional[FetchResult]:
        try:
            return await self.fetcher.fetch(url, domain)
        except FetchError as exc:
            logger.warning("%s", exc)
            failed[url] = str(exc.cause)
        except Exception as exc:  # pylint: disable=broad-except
            logger.exception("Unexpected error loading %s", url)
            failed[url] = str(exc)
        return None

    async def crawl(self, seed: str) -> CrawlResult:
        if not is_http_url(seed):
            raise ValueError(f"Seed URL must be an absolute http(s) URL: {seed!r}")
        domain = host_of(seed)
        result = CrawlResult(seed=seed, domain=domain)
        frontier: Deque[Tuple[str, int]] = deque([(seed, 0)])
        options = self.config.options

        logger.info(
            "Crawling %s (max_depth=%d, max_pages=%d, traversal=%s)",
            seed,
            options.max_depth,
            options.max_pages,
            self.config.traversal,
        )

        while frontier:
            batch = self._reserve_batch(frontier, result.visited)
            if not batch:
                continue
            fetched = await asyncio.gather(
                *(self._fetch_one(url, domain, result.failed) for url, _depth in batch)
            )
            for (url, depth), page in zip(batch, fetched):
                if page is None:
                    continue
                logger.info("Crawled %s (depth %d)", url, depth)
                result.pages[url] = PageRecord(
                    url=url,
                    html=page.html,
                    metadata=page.metadata,
                    depth=depth,
                    path=url_to_path(url),
                )
                if depth < options.max_depth:
                    queued = self._push_links(frontier, page.links, depth + 1, result.visited)
                    logger.debug("Queued %d link(s) from %s", queued, url)

        logger.info(
            "Crawl finished: %d page(s) fetched, %d failed",
            len(result.pages),
            len(result.failed),
        )
        return result
