"""MCP server exposing the crawl pipeline as a tool."""

from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path

from mcp.server.fastmcp import FastMCP

from .cache import CrawlCache
from .config import CrawlConfig, CrawlOptions
from .pipeline import run_pipeline

logger = logging.getLogger("sitecanon.mcp")
logger.setLevel(logging.ERROR)

mcp = FastMCP(name="sitecanon")


@mcp.tool()
async def crawl(
    url: str,
    max_depth: int = 1,
    max_pages: int = 10,
) -> str:
    """Crawl a website and return its canonical document as JSON."""

    with tempfile.TemporaryDirectory(prefix="sitecanon-") as tmp_dir:
        output_root = Path(tmp_dir)
        config = CrawlConfig(
            output_root=output_root,
            options=CrawlOptions(max_depth=max_depth, max_pages=max_pages),
            cache_dir=output_root / ".crawl-cache",
        )
        result = await run_pipeline(
            url,
            config,
            cache=CrawlCache(config.cache_file),
            force_recrawl=True,
        )
    if result.document is None:
        raise RuntimeError(f"Failed to crawl {url}")
    return json.dumps(result.document.to_dict(), indent=2, ensure_ascii=False)


def main() -> None:
    """Entry point for running the MCP server."""
    logging.basicConfig(level=logging.ERROR)
    mcp.run()


if __name__ == "__main__":
    main()
