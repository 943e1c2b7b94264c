"""Configuration objects and constants for the crawler."""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple

DEFAULT_MAX_DEPTH = 3
DEFAULT_MAX_PAGES = 50
DEFAULT_LINKS_PER_PAGE = 20
DEFAULT_MAX_AGE_HOURS = 24.0
MAX_CONCURRENCY = 8

DECORATIVE_TOKENS: Tuple[str, ...] = ("icon", "logo", "decoration")
NAVIGATION_TOKENS: Tuple[str, ...] = ("nav", "menu", "header", "footer")


@dataclass(frozen=True)
class CrawlOptions:
    """Bounds for a single crawl; part of the cache key."""

    max_depth: int = DEFAULT_MAX_DEPTH
    max_pages: int = DEFAULT_MAX_PAGES

    def __post_init__(self) -> None:
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be >= 0 (got {self.max_depth})")
        if self.max_pages < 1:
            raise ValueError(f"max_pages must be >= 1 (got {self.max_pages})")

    def to_dict(self) -> Dict[str, int]:
        return {"maxDepth": self.max_depth, "maxPages": self.max_pages}


def default_cache_dir() -> Path:
    override = os.getenv("SITECANON_CACHE_DIR")
    if override:
        return Path(override).expanduser()
    return Path.cwd() / ".crawl-cache"


@dataclass
class CrawlConfig:
    """Top-level settings that control crawling, extraction and output."""

    output_root: Path
    options: CrawlOptions = field(default_factory=CrawlOptions)
    navigation_timeout: float = 30.0
    wait_after_load: float = 0.0
    links_per_page: int = DEFAULT_LINKS_PER_PAGE
    concurrency: int = 1
    traversal: str = "bfs"
    asset_workers: int = 4
    asset_timeout: float = 10.0
    same_domain_assets: bool = True
    cache_dir: Path = field(default_factory=default_cache_dir)
    max_age_hours: float = DEFAULT_MAX_AGE_HOURS
    decorative_tokens: Tuple[str, ...] = DECORATIVE_TOKENS
    navigation_tokens: Tuple[str, ...] = NAVIGATION_TOKENS

    def __post_init__(self) -> None:
        if self.traversal not in ("bfs", "dfs"):
            raise ValueError(f"traversal must be 'bfs' or 'dfs' (got {self.traversal!r})")
        self.concurrency = max(1, min(int(self.concurrency), MAX_CONCURRENCY))

    @property
    def cache_file(self) -> Path:
        return self.cache_dir / "crawl-metadata.json"

    @classmethod
    def from_env(cls, output_root: Path, **overrides) -> "CrawlConfig":
        """Build a config honouring ``SITECANON_*`` environment variables.

        Explicit keyword overrides win over the environment.
        """
        max_depth = _env_int("SITECANON_MAX_DEPTH", DEFAULT_MAX_DEPTH)
        max_pages = _env_int("SITECANON_MAX_PAGES", DEFAULT_MAX_PAGES)
        timeout = _env_float("SITECANON_TIMEOUT", 30.0)
        overrides.setdefault("options", CrawlOptions(max_depth, max_pages))
        overrides.setdefault("navigation_timeout", timeout)
        return cls(output_root=output_root, **overrides)

    def describe(self) -> Dict[str, object]:
        data = asdict(self)
        data["output_root"] = str(self.output_root)
        data["cache_dir"] = str(self.cache_dir)
        return data


def _env_int(name: str, default: int) -> int:
    return int(_env_value(name) or default)


def _env_float(name: str, default: float) -> float:
    return float(_env_value(name) or default)


def _env_value(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()
