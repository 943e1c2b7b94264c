"""Image downloading and validation utilities."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, Iterable, List, Optional
from urllib.parse import urljoin

import requests
from filetype import guess

from .config import CrawlConfig
from .errors import AssetDownloadError
from .models import AssetRecord, PageRecord
from .utils import content_type_for, host_of, short_hash, url_to_asset_path, with_suffix_tag

logger = logging.getLogger("sitecanon")

MAX_IMAGE_BYTES = 10 * 1024 * 1024
MIN_IMAGE_BYTES = 64
ALLOWED_IMAGE_TYPES = {"png", "jpg", "jpeg", "gif", "webp", "bmp", "tiff", "svg", "svg+xml"}
USER_AGENT = "sitecanon/0.1 (+https://pypi.org/project/sitecanon/)"


def detect_image_format(data: bytes) -> Optional[str]:
    """Detect image type using filetype; returns lowercase extension."""
    kind = guess(data)
    if kind and kind.mime.startswith("image/"):
        ext = kind.extension.lower()
        if ext == "jpeg":
            return "jpg"
        return ext
    return None


def infer_image_extension(content_type: Optional[str], data: bytes) -> Optional[str]:
    """Guess an image file extension from HTTP metadata or file signature."""
    detected = detect_image_format(data)
    if detected:
        return detected
    if not content_type:
        return None
    parts = content_type.split(";")[0].split("/")
    if len(parts) == 2 and parts[0].strip().lower() == "image":
        ext = parts[1].strip().lower()
        if ext == "jpeg":
            ext = "jpg"
        return ext
    return None


def _in_scope(url: str, domain: str) -> bool:
    host = host_of(url)
    return host == domain or host.endswith("." + domain)


def collect_image_urls(
    pages: Iterable[PageRecord],
    domain: str,
    same_domain_only: bool = True,
) -> List[str]:
    """Absolute URLs of extracted content images across all pages, deduplicated."""
    domain = domain.lower()
    seen = set()
    urls: List[str] = []
    for page in pages:
        if page.content is None:
            continue
        for image in page.content.images:
            absolute = urljoin(page.url, image.src)
            if not absolute.startswith(("http://", "https://")):
                continue
            if same_domain_only and not _in_scope(absolute, domain):
                continue
            if absolute in seen:
                continue
            seen.add(absolute)
            urls.append(absolute)
    return urls


def download_image(
    session: requests.Session,
    url: str,
    timeout: float = 10.0,
) -> AssetRecord:
    """Fetch one image; raises :class:`AssetDownloadError` when it is unusable."""
    try:
        resp = session.get(url, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as exc:
        raise AssetDownloadError(url, str(exc)) from exc

    content_type = resp.headers.get("Content-Type", "")
    data = resp.content
    if len(data) < MIN_IMAGE_BYTES:
        raise AssetDownloadError(url, "response too small")
    if len(data) > MAX_IMAGE_BYTES:
        raise AssetDownloadError(url, f"image larger than {MAX_IMAGE_BYTES} bytes")

    extension = infer_image_extension(content_type, data)
    if not extension or extension not in ALLOWED_IMAGE_TYPES:
        raise AssetDownloadError(
            url, f"unsupported image type (Content-Type={content_type or 'unknown'})"
        )

    path = url_to_asset_path(url)
    return AssetRecord(
        source_url=url,
        path=path,
        type="image",
        size_bytes=len(data),
        content_type=content_type.split(";")[0].strip() or content_type_for(path),
        content=data,
    )


def _disambiguate_paths(assets: Dict[str, AssetRecord]) -> None:
    """Give every asset its own path; later URLs on a taken path get a hash tag."""
    owners: Dict[str, str] = {}
    for url, asset in assets.items():
        if asset.path in owners:
            renamed = with_suffix_tag(asset.path, short_hash(url))
            logger.warning(
                "Asset path %s of %s is already used by %s; saving as %s",
                asset.path,
                url,
                owners[asset.path],
                renamed,
            )
            asset.path = renamed
        owners[asset.path] = url


def download_images(
    urls: List[str],
    config: CrawlConfig,
    session: Optional[requests.Session] = None,
) -> Dict[str, AssetRecord]:
    """Download images in parallel; failed downloads are logged and omitted.

    The returned mapping follows the order of ``urls``.
    """
    if not urls:
        return {}
    if session is None:
        session = requests.Session()
        session.headers.update({"User-Agent": USER_AGENT})

    downloaded: Dict[str, AssetRecord] = {}
    with ThreadPoolExecutor(max_workers=max(1, config.asset_workers)) as pool:
        futures = {
            pool.submit(download_image, session, url, config.asset_timeout): url
            for url in urls
        }
        for future in as_completed(futures):
            url = futures[future]
            try:
                downloaded[url] = future.result()
            except AssetDownloadError as exc:
                logger.warning("%s", exc)
            else:
                logger.debug("Downloaded asset %s", url)

    assets = {url: downloaded[url] for url in urls if url in downloaded}
    _disambiguate_paths(assets)
    logger.info("Downloaded %d of %d image(s)", len(assets), len(urls))
    return assets
