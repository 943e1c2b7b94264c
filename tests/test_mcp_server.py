import asyncio
import json
import unittest
from unittest import mock

from sitecanon import mcp_server
from sitecanon.pipeline import PipelineResult
from sitecanon.schema import CanonicalDocument, CanonicalPage, HeadingSection, NavItem, SiteInfo


def _document():
    return CanonicalDocument(
        site=SiteInfo(title="Example", description="", brand_seed="#5F6FFF"),
        nav=[NavItem(title="Home", slug="index.html")],
        pages=[
            CanonicalPage(
                slug="index.html",
                title="Home",
                sections=[HeadingSection(level=1, text="Home")],
            )
        ],
    )


class TestCrawlTool(unittest.TestCase):
    def test_returns_canonical_json(self):
        result = PipelineResult(url="https://example.com", document=_document())
        with mock.patch.object(
            mcp_server, "run_pipeline", mock.AsyncMock(return_value=result)
        ) as run:
            payload = asyncio.run(mcp_server.crawl("https://example.com", max_depth=2, max_pages=4))

        data = json.loads(payload)
        self.assertEqual(data["version"], "1.0")
        self.assertEqual(data["pages"][0]["slug"], "index.html")

        args, kwargs = run.call_args
        self.assertEqual(args[0], "https://example.com")
        self.assertEqual(args[1].options.max_depth, 2)
        self.assertEqual(args[1].options.max_pages, 4)
        self.assertTrue(kwargs["force_recrawl"])

    def test_missing_document_raises(self):
        result = PipelineResult(url="https://example.com", skipped=True)
        with mock.patch.object(mcp_server, "run_pipeline", mock.AsyncMock(return_value=result)):
            with self.assertRaises(RuntimeError):
                asyncio.run(mcp_server.crawl("https://example.com"))


if __name__ == "__main__":
    unittest.main()
