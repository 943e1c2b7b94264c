"""Crawl cache that records recent crawls so unchanged sites are not recrawled.

The store is a single JSON file mapping cache key to entry. Reads and writes
are whole-file (load, mutate, save) and are not locked; concurrent crawl
processes sharing one store may lose updates.
"""

from __future__ import annotations

import datetime as dt
import hashlib
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

from .config import DEFAULT_MAX_AGE_HOURS, CrawlOptions
from .errors import CacheError
from .utils import iso_timestamp, normalize_cache_url

logger = logging.getLogger("sitecanon")

DEFAULT_PRUNE_AGE_HOURS = 168.0


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def options_fingerprint(options: CrawlOptions | Mapping[str, Any]) -> str:
    """Stable short hash of crawl options."""
    data = options.to_dict() if isinstance(options, CrawlOptions) else dict(options)
    encoded = json.dumps(data, sort_keys=True, separators=(",", ":"))
    return hashlib.md5(encoded.encode("utf-8")).hexdigest()[:8]


def cache_key(url: str, options: CrawlOptions | Mapping[str, Any]) -> str:
    return f"{normalize_cache_url(url)}-{options_fingerprint(options)}"


def _parse_timestamp(value: str) -> dt.datetime:
    parsed = dt.datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.timezone.utc)
    return parsed


@dataclass
class CacheEntry:
    cache_key: str
    url: str
    timestamp: str
    options: Dict[str, Any]
    metadata: Dict[str, Any]

    @property
    def crawled_at(self) -> dt.datetime:
        return _parse_timestamp(self.timestamp)

    def age_hours(self, now: dt.datetime) -> float:
        return (now - self.crawled_at).total_seconds() / 3600.0

    @property
    def pages_count(self) -> int:
        return int(self.metadata.get("pagesCount") or 0)

    @property
    def assets_count(self) -> int:
        return int(self.metadata.get("assetsCount") or 0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cacheKey": self.cache_key,
            "url": self.url,
            "timestamp": self.timestamp,
            "options": self.options,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, key: str, data: Mapping[str, Any]) -> "CacheEntry":
        return cls(
            cache_key=str(data.get("cacheKey") or key),
            url=str(data["url"]),
            timestamp=str(data["timestamp"]),
            options=dict(data.get("options") or {}),
            metadata=dict(data.get("metadata") or {}),
        )


@dataclass
class CacheStats:
    total_entries: int
    oldest_entry: Optional[dt.datetime]
    newest_entry: Optional[dt.datetime]
    total_pages: int
    total_assets: int


class CrawlCache:
    """File-backed record of recent crawls keyed by URL and crawl options."""

    def __init__(
        self,
        path: Path,
        now: Callable[[], dt.datetime] = _utcnow,
    ) -> None:
        self.path = Path(path)
        self._now = now

    def _load_raw(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise CacheError(f"Failed to read crawl cache {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise CacheError(f"Crawl cache {self.path} is not a JSON object")
        return data

    def _save_raw(self, data: Mapping[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(
                json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8"
            )
        except OSError as exc:
            raise CacheError(f"Failed to write crawl cache {self.path}: {exc}") from exc

    def load(self) -> Dict[str, CacheEntry]:
        """Return all readable entries; an unreadable store counts as empty."""
        try:
            raw = self._load_raw()
        except CacheError as exc:
            logger.warning("%s; treating cache as empty", exc)
            return {}
        entries: Dict[str, CacheEntry] = {}
        for key, value in raw.items():
            try:
                entry = CacheEntry.from_dict(key, value)
                _parse_timestamp(entry.timestamp)
            except (KeyError, TypeError, ValueError, AttributeError) as exc:
                logger.warning("Ignoring malformed cache entry %s: %s", key, exc)
                continue
            entries[key] = entry
        return entries

    def save(self, entries: Mapping[str, CacheEntry]) -> bool:
        try:
            self._save_raw({key: entry.to_dict() for key, entry in entries.items()})
        except CacheError as exc:
            logger.warning("%s; continuing without cache", exc)
            return False
        return True

    def get(self, url: str, options: CrawlOptions | Mapping[str, Any]) -> Optional[CacheEntry]:
        return self.load().get(cache_key(url, options))

    def has_recent_crawl(
        self,
        url: str,
        options: CrawlOptions | Mapping[str, Any],
        max_age_hours: float = DEFAULT_MAX_AGE_HOURS,
    ) -> bool:
        entry = self.get(url, options)
        if entry is None:
            return False
        return entry.age_hours(self._now()) < max_age_hours

    def should_crawl(
        self,
        url: str,
        options: CrawlOptions | Mapping[str, Any],
        force_recrawl: bool = False,
        max_age_hours: float = DEFAULT_MAX_AGE_HOURS,
    ) -> bool:
        """Decide whether ``url`` needs a fresh crawl under ``options``."""
        if force_recrawl:
            logger.info("Force recrawl requested for %s", url)
            return True
        entry = self.get(url, options)
        if entry is None:
            logger.info("No previous crawl found for %s; crawling", url)
            return True
        age = entry.age_hours(self._now())
        if age >= max_age_hours:
            logger.info(
                "Previous crawl of %s is %.1fh old (limit %.1fh); recrawling",
                url,
                age,
                max_age_hours,
            )
            return True
        logger.info(
            "Recent crawl found for %s (%s): %d pages, %d assets",
            url,
            entry.timestamp,
            entry.pages_count,
            entry.assets_count,
        )
        return False

    def record_crawl(
        self,
        url: str,
        options: CrawlOptions | Mapping[str, Any],
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> CacheEntry:
        metadata = dict(metadata or {})
        entries = self.load()
        key = cache_key(url, options)
        stored_options = (
            options.to_dict() if isinstance(options, CrawlOptions) else dict(options)
        )
        entry = CacheEntry(
            cache_key=key,
            url=normalize_cache_url(url),
            timestamp=iso_timestamp(self._now()),
            options=stored_options,
            metadata={
                "pagesCount": 0,
                "assetsCount": 0,
                "crawlDepth": 0,
                "maxPages": 0,
                **metadata,
            },
        )
        entries[key] = entry
        self.save(entries)
        return entry

    def stats(self) -> CacheStats:
        entries = list(self.load().values())
        times = [entry.crawled_at for entry in entries]
        return CacheStats(
            total_entries=len(entries),
            oldest_entry=min(times) if times else None,
            newest_entry=max(times) if times else None,
            total_pages=sum(entry.pages_count for entry in entries),
            total_assets=sum(entry.assets_count for entry in entries),
        )

    def prune(self, max_age_hours: float = DEFAULT_PRUNE_AGE_HOURS) -> int:
        """Delete entries older than ``max_age_hours``; return how many went."""
        entries = self.load()
        now = self._now()
        stale = [key for key, entry in entries.items() if entry.age_hours(now) > max_age_hours]
        for key in stale:
            del entries[key]
        if stale:
            self.save(entries)
            logger.info("Pruned %d old cache entries", len(stale))
        return len(stale)

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            logger.warning("Failed to clear crawl cache %s: %s", self.path, exc)
            return
        logger.info("Crawl cache cleared")
