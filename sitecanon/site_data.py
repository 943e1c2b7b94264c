"""Legacy flat site data consumed by template rendering.

Field names here are a compatibility surface and must not be renamed.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Dict, List, Mapping, Optional

from .crawler import CrawlResult
from .models import AssetRecord, ExtractedContent
from .utils import iso_timestamp

logger = logging.getLogger("sitecanon")


def build_navigation(result: CrawlResult) -> List[Dict[str, str]]:
    return [
        {"title": page.title or "Page", "path": page.path, "originalUrl": url}
        for url, page in result.pages.items()
    ]


def build_site_data(
    result: CrawlResult,
    assets: Mapping[str, AssetRecord],
    crawled_at: Optional[dt.datetime] = None,
) -> Dict[str, Any]:
    crawled_at = crawled_at or dt.datetime.now(dt.timezone.utc)
    pages = result.page_list
    main = pages[0] if pages else None

    site_data: Dict[str, Any] = {
        "metadata": {
            "domain": result.domain,
            "baseUrl": result.seed,
            "totalPages": len(pages),
            "totalAssets": len(assets),
            "crawledAt": iso_timestamp(crawled_at),
            "title": (main.metadata.title if main else "") or result.domain,
            "description": main.metadata.description if main else "",
            "keywords": main.metadata.keywords if main else "",
        },
        "pages": [],
        "assets": [asset.to_dict() for asset in assets.values()],
        "navigation": build_navigation(result),
    }

    for page in pages:
        content = page.content or ExtractedContent()
        site_data["pages"].append(
            {
                "url": page.url,
                "path": page.path,
                "title": page.metadata.title or "Untitled",
                "description": page.metadata.description,
                "keywords": page.metadata.keywords,
                "depth": page.depth,
                "metadata": page.metadata.to_dict(),
                "content": content.to_dict(),
            }
        )

    logger.info(
        "Extracted data from %d page(s) and %d asset(s)",
        len(site_data["pages"]),
        len(site_data["assets"]),
    )
    return site_data
