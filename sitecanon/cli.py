"""Command-line entry point for the site crawler."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Iterable, Sequence

from .cache import DEFAULT_PRUNE_AGE_HOURS, CrawlCache
from .config import (
    DEFAULT_MAX_AGE_HOURS,
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_PAGES,
    CrawlConfig,
    CrawlOptions,
    default_cache_dir,
)
from .emitter import DirectoryBundleEmitter
from .errors import CrawlFailedError, SchemaValidationError
from .pipeline import run_pipeline

logger = logging.getLogger("sitecanon.cli")


def _ensure_command_prefix(argv: Sequence[str], commands: Iterable[str]) -> Sequence[str]:
    if not argv:
        return argv
    first = argv[0]
    if first in commands or first.startswith("-"):
        return argv
    return ("crawl", *argv)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )


def _add_crawl_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("url", help="Seed URL of the site to crawl")
    parser.add_argument(
        "--output",
        default="output",
        type=Path,
        help="Directory where the canonical document, site data and assets are written",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=None,
        help=f"Maximum link depth from the seed (default: {DEFAULT_MAX_DEPTH})",
    )
    parser.add_argument(
        "--max-pages",
        type=int,
        default=None,
        help=f"Maximum number of pages to fetch (default: {DEFAULT_MAX_PAGES})",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Navigation timeout in seconds (default: 30)",
    )
    parser.add_argument(
        "--wait",
        type=float,
        default=0.0,
        help="Seconds to wait after network idle before reading HTML",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=1,
        help="Pages rendered at once (1-8)",
    )
    parser.add_argument(
        "--traversal",
        choices=("bfs", "dfs"),
        default="bfs",
        help="Frontier order used when the page budget truncates the crawl",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Crawl even if a recent crawl is recorded in the cache",
    )
    parser.add_argument(
        "--max-age-hours",
        type=float,
        default=DEFAULT_MAX_AGE_HOURS,
        help="Recorded crawls younger than this are considered fresh",
    )
    _add_common_arguments(parser)


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--cache-dir",
        type=Path,
        default=None,
        help="Directory holding crawl-metadata.json (default: ./.crawl-cache)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Crawl a website and normalize its content into a canonical document.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    crawl_parser = subparsers.add_parser("crawl", help="Crawl a site and emit a bundle")
    _add_crawl_arguments(crawl_parser)

    cache_parser = subparsers.add_parser("cache", help="Inspect or maintain the crawl cache")
    cache_parser.add_argument("action", choices=("stats", "prune", "clear"))
    cache_parser.add_argument(
        "--max-age-hours",
        type=float,
        default=DEFAULT_PRUNE_AGE_HOURS,
        help="Entries older than this are removed by 'prune'",
    )
    _add_common_arguments(cache_parser)

    argv = list(sys.argv[1:] if argv is None else argv)
    argv = list(_ensure_command_prefix(argv, subparsers.choices.keys()))
    return parser.parse_args(argv)


def _build_config(args: argparse.Namespace) -> CrawlConfig:
    overrides = {
        "wait_after_load": args.wait,
        "concurrency": args.concurrency,
        "traversal": args.traversal,
        "max_age_hours": args.max_age_hours,
    }
    if args.cache_dir is not None:
        overrides["cache_dir"] = args.cache_dir.resolve()
    if args.timeout is not None:
        overrides["navigation_timeout"] = args.timeout
    config = CrawlConfig.from_env(Path(args.output).resolve(), **overrides)
    if args.max_depth is not None or args.max_pages is not None:
        config.options = CrawlOptions(
            max_depth=config.options.max_depth if args.max_depth is None else args.max_depth,
            max_pages=config.options.max_pages if args.max_pages is None else args.max_pages,
        )
    return config


def _run_crawl(args: argparse.Namespace) -> int:
    try:
        config = _build_config(args)
    except ValueError as exc:
        logger.error("Invalid options: %s", exc)
        return 2
    logger.debug("Configuration: %s", config.describe())

    try:
        result = asyncio.run(
            run_pipeline(
                args.url,
                config,
                cache=CrawlCache(config.cache_file),
                emitter=DirectoryBundleEmitter(config.output_root),
                force_recrawl=args.force,
            )
        )
    except ValueError as exc:
        logger.error("%s", exc)
        return 2
    except CrawlFailedError as exc:
        logger.error("%s", exc)
        return 1
    except SchemaValidationError as exc:
        logger.error("Canonical document failed validation: %s", exc)
        return 1

    if result.skipped:
        logger.info("Skipped %s; use --force to recrawl", args.url)
    else:
        logger.info("Bundle written to %s", result.emitted)
    return 0


def _run_cache(args: argparse.Namespace) -> int:
    cache_dir = args.cache_dir.resolve() if args.cache_dir else default_cache_dir()
    cache = CrawlCache(cache_dir / "crawl-metadata.json")
    if args.action == "stats":
        stats = cache.stats()
        payload = {
            "totalEntries": stats.total_entries,
            "oldestEntry": stats.oldest_entry.isoformat() if stats.oldest_entry else None,
            "newestEntry": stats.newest_entry.isoformat() if stats.newest_entry else None,
            "totalPages": stats.total_pages,
            "totalAssets": stats.total_assets,
        }
        sys.stdout.write(json.dumps(payload, indent=2) + "\n")
        sys.stdout.flush()
    elif args.action == "prune":
        removed = cache.prune(args.max_age_hours)
        logger.info("Removed %d cache entr%s", removed, "y" if removed == 1 else "ies")
    else:
        cache.clear()
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    _configure_logging(args.verbose)
    if args.command == "crawl":
        return _run_crawl(args)
    return _run_cache(args)


if __name__ == "__main__":
    sys.exit(main())
