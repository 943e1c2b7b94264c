import datetime as dt
import unittest

from sitecanon.crawler import CrawlResult
from sitecanon.models import AssetRecord, ExtractedContent, PageMetadata, PageRecord
from sitecanon.site_data import build_navigation, build_site_data


def _result():
    home = PageRecord(
        url="https://example.com",
        html="",
        metadata=PageMetadata(title="Home", description="Welcome", keywords="arts"),
        depth=0,
        path="index.html",
        content=ExtractedContent(paragraphs=["Hello."]),
    )
    untitled = PageRecord(
        url="https://example.com/misc",
        html="",
        metadata=PageMetadata(),
        depth=1,
        path="misc.html",
    )
    return CrawlResult(
        seed="https://example.com",
        domain="example.com",
        pages={home.url: home, untitled.url: untitled},
    )


class TestSiteData(unittest.TestCase):
    def test_metadata_block(self):
        assets = {
            "https://example.com/a.png": AssetRecord(
                source_url="https://example.com/a.png",
                path="a.png",
                type="image",
                size_bytes=10,
                content_type="image/png",
            )
        }
        data = build_site_data(
            _result(),
            assets,
            crawled_at=dt.datetime(2026, 10, 19, 12, 0, 5, 123, tzinfo=dt.timezone.utc),
        )
        self.assertEqual(
            data["metadata"],
            {
                "domain": "example.com",
                "baseUrl": "https://example.com",
                "totalPages": 2,
                "totalAssets": 1,
                "crawledAt": "2026-10-19T12:00:05Z",
                "title": "Home",
                "description": "Welcome",
                "keywords": "arts",
            },
        )
        self.assertEqual(
            data["assets"],
            [
                {
                    "url": "https://example.com/a.png",
                    "path": "a.png",
                    "type": "image",
                    "size": 10,
                    "contentType": "image/png",
                }
            ],
        )

    def test_pages_keep_order_and_fall_back(self):
        pages = build_site_data(_result(), {})["pages"]
        self.assertEqual([p["path"] for p in pages], ["index.html", "misc.html"])
        self.assertEqual(pages[0]["content"]["paragraphs"], ["Hello."])
        self.assertEqual(pages[1]["title"], "Untitled")
        self.assertEqual(pages[1]["depth"], 1)
        self.assertEqual(pages[1]["content"]["images"], [])

    def test_navigation(self):
        self.assertEqual(
            build_navigation(_result()),
            [
                {"title": "Home", "path": "index.html", "originalUrl": "https://example.com"},
                {"title": "Page", "path": "misc.html", "originalUrl": "https://example.com/misc"},
            ],
        )


if __name__ == "__main__":
    unittest.main()
