"""Utility helpers for string normalization and path handling."""

from __future__ import annotations

import datetime as dt
import hashlib
import re
from urllib.parse import urlparse, urlunparse

SLUG_PATTERN = re.compile(r"[^a-z0-9]+")
PATH_UNSAFE_PATTERN = re.compile(r"[^A-Za-z0-9._/-]")
WHITESPACE_PATTERN = re.compile(r"\s+")

_CONTENT_TYPES = {
    "css": "text/css",
    "js": "application/javascript",
    "html": "text/html",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "svg": "image/svg+xml",
    "webp": "image/webp",
    "pdf": "application/pdf",
}


def slugify(value: str, fallback: str = "page") -> str:
    """Generate a filesystem-friendly slug using ASCII characters only."""
    normalized = value.encode("ascii", "ignore").decode("ascii")
    normalized = normalized.lower()
    normalized = SLUG_PATTERN.sub("-", normalized).strip("-")
    return normalized or fallback


def clean_text(value: str) -> str:
    """Collapse runs of whitespace and trim."""
    return WHITESPACE_PATTERN.sub(" ", value or "").strip()


def is_http_url(url: str) -> bool:
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.hostname)


def host_of(url: str) -> str:
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""


def url_to_path(url: str) -> str:
    """Map a page URL to a deterministic, filesystem-safe relative path.

    The site root becomes ``index.html``; extensionless paths get ``.html``.
    Query strings and fragments never reach the result.
    """
    try:
        path = urlparse(url).path
    except ValueError:
        return "index.html"
    path = path.strip("/")
    if not path:
        return "index.html"
    if "." not in path:
        path += ".html"
    return PATH_UNSAFE_PATTERN.sub("-", path)


def short_hash(value: str) -> str:
    return hashlib.md5(value.encode("utf-8")).hexdigest()[:8]


def with_suffix_tag(path: str, tag: str) -> str:
    """Insert ``-tag`` before the file extension of ``path``, if it has one."""
    stem, dot, ext = path.rpartition(".")
    if dot and stem and "/" not in ext:
        return f"{stem}-{tag}.{ext}"
    return f"{path}-{tag}"


def url_to_asset_path(url: str) -> str:
    """Like :func:`url_to_path` but without extension rewriting.

    A query string is folded into a short hash suffix so ``img?id=1`` and
    ``img?id=2`` land on different files.
    """
    try:
        parsed = urlparse(url)
    except ValueError:
        return "asset"
    path = PATH_UNSAFE_PATTERN.sub("-", parsed.path.lstrip("/")) or "asset"
    if parsed.query:
        path = with_suffix_tag(path, short_hash(parsed.query))
    return path


def normalize_cache_url(url: str) -> str:
    """Lowercase scheme and host, drop query and fragment, strip a trailing slash."""
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return url
    if not parsed.scheme or not parsed.netloc:
        return url
    netloc = (parsed.hostname or "").lower()
    if parsed.port:
        netloc = f"{netloc}:{parsed.port}"
    path = parsed.path[:-1] if parsed.path.endswith("/") else parsed.path
    return urlunparse((parsed.scheme.lower(), netloc, path, "", "", ""))


def content_type_for(path: str) -> str:
    ext = path.rsplit(".", 1)[-1].lower() if "." in path else ""
    return _CONTENT_TYPES.get(ext, "application/octet-stream")


def iso_timestamp(moment: dt.datetime) -> str:
    """Second-precision ISO-8601 string with a ``Z`` suffix for UTC."""
    return moment.replace(microsecond=0).isoformat().replace("+00:00", "Z")
