"""Hand-off boundary between the crawl pipeline and packaging/deployment."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Protocol

from .models import AssetRecord, PageRecord
from .schema import CanonicalDocument
from .utils import slugify

logger = logging.getLogger("sitecanon")


@dataclass
class Bundle:
    """Everything downstream packaging receives: a validated document plus raw tables."""

    document: CanonicalDocument
    pages: Dict[str, PageRecord]
    assets: Dict[str, AssetRecord]
    site_data: Dict[str, Any] = field(default_factory=dict)


class BundleEmitter(Protocol):
    def emit(self, bundle: Bundle) -> Any:
        ...


def _contained(base: Path, relative: str) -> Path | None:
    target = (base / relative).resolve()
    if base.resolve() not in target.parents:
        return None
    return target


def _write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")


class DirectoryBundleEmitter:
    """Write a bundle into ``<root>/<domain-slug>/`` on the local filesystem."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def output_dir(self, bundle: Bundle) -> Path:
        domain = str(bundle.site_data.get("metadata", {}).get("domain") or "site")
        return self.root / slugify(domain, fallback="site")

    def emit(self, bundle: Bundle) -> Path:
        output_dir = self.output_dir(bundle)
        output_dir.mkdir(parents=True, exist_ok=True)

        _write_json(output_dir / "canonical.json", bundle.document.to_dict())
        _write_json(output_dir / "site-data.json", bundle.site_data)

        written: List[str] = []
        for page in bundle.pages.values():
            target = _contained(output_dir / "pages", page.path)
            if target is None:
                logger.warning("Refusing to write page outside bundle: %s", page.path)
                continue
            if page.path in written:
                logger.warning("Page %s maps to already written %s; skipping", page.url, page.path)
                continue
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_text(page.html, encoding="utf-8")
            except OSError as exc:
                logger.warning("Failed to write page %s: %s", target, exc)
                continue
            written.append(page.path)

        for asset in bundle.assets.values():
            target = _contained(output_dir / "assets", asset.path)
            if target is None:
                logger.warning("Refusing to write asset outside bundle: %s", asset.path)
                continue
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_bytes(asset.content)
            except OSError as exc:
                logger.warning("Failed to write asset %s: %s", target, exc)

        logger.info(
            "Saved bundle to %s (%d page(s), %d asset(s))",
            output_dir,
            len(written),
            len(bundle.assets),
        )
        return output_dir
