import unittest
from pathlib import Path
from unittest import mock

import requests

from sitecanon.config import CrawlConfig
from sitecanon.errors import AssetDownloadError
from sitecanon.images import (
    collect_image_urls,
    detect_image_format,
    download_image,
    download_images,
    infer_image_extension,
)
from sitecanon.models import ExtractedContent, ImageRef, PageMetadata, PageRecord

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 120


def _response(content=PNG_BYTES, content_type="image/png", status_error=None):
    resp = mock.Mock()
    resp.content = content
    resp.headers = {"Content-Type": content_type}
    if status_error is not None:
        resp.raise_for_status.side_effect = status_error
    return resp


def _page(url, *srcs):
    return PageRecord(
        url=url,
        html="",
        metadata=PageMetadata(),
        depth=0,
        path="index.html",
        content=ExtractedContent(images=[ImageRef(src=src) for src in srcs]),
    )


class TestImageFormat(unittest.TestCase):
    def test_detects_png_signature(self):
        self.assertEqual(detect_image_format(PNG_BYTES), "png")

    def test_falls_back_to_content_type(self):
        self.assertEqual(infer_image_extension("image/jpeg; charset=binary", b"junk"), "jpg")
        self.assertIsNone(infer_image_extension("text/html", b"junk"))
        self.assertIsNone(infer_image_extension(None, b"junk"))


class TestCollectImageUrls(unittest.TestCase):
    def test_resolves_dedupes_and_scopes_to_domain(self):
        pages = [
            _page("https://example.com/about", "/img/a.png", "b.png", "https://cdn.other.net/c.png"),
            _page("https://example.com/", "/img/a.png", "https://static.example.com/d.png"),
        ]
        self.assertEqual(
            collect_image_urls(pages, "example.com"),
            [
                "https://example.com/img/a.png",
                "https://example.com/b.png",
                "https://static.example.com/d.png",
            ],
        )

    def test_cross_domain_allowed_when_configured(self):
        pages = [_page("https://example.com/", "https://cdn.other.net/c.png")]
        self.assertEqual(
            collect_image_urls(pages, "example.com", same_domain_only=False),
            ["https://cdn.other.net/c.png"],
        )

    def test_pages_without_content_are_skipped(self):
        page = _page("https://example.com/", "/a.png")
        page.content = None
        self.assertEqual(collect_image_urls([page], "example.com"), [])


class TestDownloadImage(unittest.TestCase):
    def test_returns_asset_record(self):
        session = mock.Mock()
        session.get.return_value = _response()
        asset = download_image(session, "https://example.com/img/hero shot.png")
        self.assertEqual(asset.type, "image")
        self.assertEqual(asset.path, "img/hero-20shot.png")
        self.assertEqual(asset.size_bytes, len(PNG_BYTES))
        self.assertEqual(asset.content_type, "image/png")
        self.assertEqual(asset.content, PNG_BYTES)

    def test_missing_content_type_uses_path(self):
        session = mock.Mock()
        session.get.return_value = _response(content_type="")
        asset = download_image(session, "https://example.com/logo.png")
        self.assertEqual(asset.content_type, "image/png")

    def test_http_error_raises(self):
        session = mock.Mock()
        session.get.return_value = _response(status_error=requests.HTTPError("404"))
        with self.assertRaises(AssetDownloadError):
            download_image(session, "https://example.com/missing.png")

    def test_tiny_response_rejected(self):
        session = mock.Mock()
        session.get.return_value = _response(content=b"\x89PNG")
        with self.assertRaises(AssetDownloadError):
            download_image(session, "https://example.com/tiny.png")

    def test_non_image_rejected(self):
        session = mock.Mock()
        session.get.return_value = _response(content=b"<html>" + b" " * 100, content_type="text/html")
        with self.assertRaises(AssetDownloadError):
            download_image(session, "https://example.com/page.png")


class TestDownloadImages(unittest.TestCase):
    def test_failures_are_omitted_and_order_kept(self):
        def fake_get(url, timeout):
            if "broken" in url:
                raise requests.ConnectionError("refused")
            return _response()

        session = mock.Mock()
        session.get.side_effect = fake_get
        config = CrawlConfig(output_root=Path("out"), asset_workers=3)
        urls = [
            "https://example.com/one.png",
            "https://example.com/broken.png",
            "https://example.com/two.png",
        ]
        with self.assertLogs("sitecanon", level="WARNING"):
            assets = download_images(urls, config, session=session)
        self.assertEqual(
            list(assets),
            ["https://example.com/one.png", "https://example.com/two.png"],
        )

    def test_colliding_paths_are_disambiguated(self):
        session = mock.Mock()
        session.get.return_value = _response()
        urls = [
            "https://example.com/img/a.png",
            "https://static.example.com/img/a.png",
        ]
        config = CrawlConfig(output_root=Path("out"))
        with self.assertLogs("sitecanon", level="WARNING") as logs:
            assets = download_images(urls, config, session=session)
        self.assertEqual(assets[urls[0]].path, "img/a.png")
        self.assertRegex(assets[urls[1]].path, r"^img/a-[0-9a-f]{8}\.png$")
        self.assertTrue(any("already used" in line for line in logs.output))

    def test_empty_list_makes_no_requests(self):
        session = mock.Mock()
        self.assertEqual(download_images([], CrawlConfig(output_root=Path("out")), session=session), {})
        session.get.assert_not_called()


if __name__ == "__main__":
    unittest.main()
