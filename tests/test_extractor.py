import unittest
from unittest import mock

from sitecanon.extractor import ContentExtractor
from sitecanon.models import PageMetadata, PageRecord

HTML = """
<html>
<head><title>About Us</title><script>var x = 1;</script></head>
<body>
  <header class="site-header">
    <img src="/img/brand.png" alt="Brand">
    <h1>Header title</h1>
  </header>
  <nav><a href="/home">Home</a></nav>
  <main>
    <h1 id="top">About   Us</h1>
    <p>We are a small arts council serving the bayou region since 1972.</p>
    <p>   </p>
    <h3>Our team</h3>
    <img src="/img/team.jpg" alt="The team" title="Team photo">
    <img src="/img/hall.jpg" alt="">
    <img src="/img/logo.png" alt="Company Logo">
    <img src="/img/x.svg" class="icon-small" alt="">
    <img src="/img/flourish.png" class="page-decoration">
    <img src="data:image/png;base64,AAAA" alt="inline">
    <a href="/programs">Our programs</a>
    <a href="https://partner.org/">Partner site</a>
    <a class="menu-item" href="/menu">Menu link</a>
    <a href="/empty"> </a>
    <ul><li> One </li><li>Two</li></ul>
    <ol><li>First</li></ol>
    <table>
      <tr><th>Name</th><th>Role</th></tr>
      <tr><td>Ana</td><td>Director</td></tr>
    </table>
    <form action="/subscribe" method="POST">
      <input type="email" name="email" placeholder="you@example.com" required>
      <textarea name="note"></textarea>
      <select name="topic"></select>
    </form>
  </main>
  <aside class="sidebar"><p>Sidebar text should not appear anywhere.</p></aside>
  <footer><a href="/privacy">Privacy</a></footer>
</body>
</html>
"""


class TestContentExtractor(unittest.TestCase):
    def setUp(self):
        self.extractor = ContentExtractor("example.com")
        self.content = self.extractor.extract(HTML, "https://example.com/about")

    def test_headings_in_order_without_chrome(self):
        self.assertEqual(
            [(h.level, h.text, h.id) for h in self.content.headings],
            [(1, "About Us", "top"), (3, "Our team", "")],
        )

    def test_paragraphs_skip_empty_and_chrome(self):
        self.assertEqual(
            self.content.paragraphs,
            ["We are a small arts council serving the bayou region since 1972."],
        )

    def test_decorative_images_are_excluded(self):
        srcs = [img.src for img in self.content.images]
        self.assertEqual(srcs, ["/img/team.jpg", "/img/hall.jpg"])
        self.assertEqual(self.content.images[0].title, "Team photo")

    def test_logo_alt_and_icon_class_never_extracted(self):
        html = (
            '<img src="/a.png" alt="Company Logo">'
            '<img src="/b.png" class="icon-small">'
            '<img src="/c.png" class="hero" alt="A river at dusk">'
        )
        content = self.extractor.extract(html, "https://example.com/")
        self.assertEqual([img.src for img in content.images], ["/c.png"])

    def test_links_filter_navigation_and_mark_external(self):
        links = [(l.href, l.text, l.is_external) for l in self.content.links]
        self.assertEqual(
            links,
            [
                ("/programs", "Our programs", False),
                ("https://partner.org/", "Partner site", True),
            ],
        )

    def test_lists(self):
        self.assertEqual(
            [(lst.type, lst.items) for lst in self.content.lists],
            [("ul", ["One", "Two"]), ("ol", ["First"])],
        )

    def test_tables(self):
        self.assertEqual(
            self.content.tables[0].rows,
            [["Name", "Role"], ["Ana", "Director"]],
        )

    def test_forms(self):
        form = self.content.forms[0]
        self.assertEqual(form.action, "/subscribe")
        self.assertEqual(form.method, "post")
        self.assertEqual(
            [(i.type, i.name, i.placeholder, i.required) for i in form.inputs],
            [
                ("email", "email", "you@example.com", True),
                ("textarea", "note", "", False),
                ("select", "topic", "", False),
            ],
        )

    def test_content_blocks(self):
        self.assertEqual(len(self.content.content_blocks), 1)
        block = self.content.content_blocks[0]
        self.assertEqual(block.type, "main")
        self.assertNotIn("Sidebar text", block.text)
        self.assertEqual([h.text for h in block.headings], ["About Us", "Our team"])

    def test_short_blocks_are_ignored(self):
        content = self.extractor.extract("<section><p>Too short.</p></section>", "https://example.com/")
        self.assertEqual(content.content_blocks, [])

    def test_custom_tokens(self):
        extractor = ContentExtractor("example.com", decorative_tokens=("badge",))
        content = extractor.extract(
            '<img src="/a.png" alt="Logo"><img src="/b.png" class="badge">',
            "https://example.com/",
        )
        self.assertEqual([img.src for img in content.images], ["/a.png"])

    def test_extract_page_attaches_content(self):
        record = PageRecord(
            url="https://example.com/about",
            html=HTML,
            metadata=PageMetadata(title="About Us"),
            depth=1,
            path="about.html",
        )
        self.extractor.extract_page(record)
        self.assertIsNotNone(record.content)
        self.assertEqual(len(record.content.images), 2)

    def test_extraction_failure_yields_empty_content(self):
        record = PageRecord(
            url="https://example.com/broken",
            html="<p>broken</p>",
            metadata=PageMetadata(),
            depth=0,
            path="broken.html",
        )
        with mock.patch.object(self.extractor, "extract_headings", side_effect=ValueError("boom")):
            with self.assertLogs("sitecanon", level="WARNING"):
                content = self.extractor.extract_page(record)
        self.assertTrue(content.is_empty())
        self.assertIs(record.content, content)


if __name__ == "__main__":
    unittest.main()
