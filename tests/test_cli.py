import io
import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from sitecanon import cli
from sitecanon.errors import CrawlFailedError
from sitecanon.pipeline import PipelineResult


class TestParseArgs(unittest.TestCase):
    def test_bare_url_defaults_to_crawl(self):
        args = cli.parse_args(["https://example.com", "--max-depth", "2"])
        self.assertEqual(args.command, "crawl")
        self.assertEqual(args.url, "https://example.com")
        self.assertEqual(args.max_depth, 2)
        self.assertEqual(args.traversal, "bfs")

    def test_cache_subcommand(self):
        args = cli.parse_args(["cache", "prune"])
        self.assertEqual(args.action, "prune")
        self.assertEqual(args.max_age_hours, 168.0)

    def test_build_config_overrides_options(self):
        args = cli.parse_args(
            ["crawl", "https://example.com", "--max-pages", "7", "--concurrency", "20"]
        )
        with mock.patch.dict("os.environ", {}, clear=True):
            config = cli._build_config(args)
        self.assertEqual(config.options.max_pages, 7)
        self.assertEqual(config.options.max_depth, 3)
        self.assertEqual(config.concurrency, 8)


class TestMain(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def _crawl_argv(self, *extra):
        return [
            "crawl",
            "https://example.com",
            "--output",
            str(self.tmp / "out"),
            "--cache-dir",
            str(self.tmp / "cache"),
            *extra,
        ]

    def test_skipped_crawl_exits_zero(self):
        result = PipelineResult(url="https://example.com", skipped=True)
        with mock.patch.object(cli, "run_pipeline", mock.AsyncMock(return_value=result)) as run:
            self.assertEqual(cli.main(self._crawl_argv()), 0)
        self.assertFalse(run.call_args.kwargs["force_recrawl"])

    def test_failed_crawl_exits_one(self):
        failure = mock.AsyncMock(side_effect=CrawlFailedError("No pages could be fetched"))
        with mock.patch.object(cli, "run_pipeline", failure):
            self.assertEqual(cli.main(self._crawl_argv("--force")), 1)

    def test_invalid_bounds_exit_two(self):
        with mock.patch.object(cli, "run_pipeline", mock.AsyncMock()) as run:
            self.assertEqual(cli.main(self._crawl_argv("--max-pages", "0")), 2)
        run.assert_not_called()

    def test_cache_stats_prints_json(self):
        stdout = io.StringIO()
        with mock.patch("sys.stdout", stdout):
            code = cli.main(["cache", "stats", "--cache-dir", str(self.tmp / "cache")])
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(stdout.getvalue())["totalEntries"], 0)


if __name__ == "__main__":
    unittest.main()
