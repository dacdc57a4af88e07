# tests/batch/test_analysis_service.py
import asyncio

from headmap_batch.services.analysis_service import analyze_html, analyze_url, describe_content

HTML = """
<html><head><script>var ignored = "lots of words that should not count";</script></head>
<body><main>
<h1>The best sourdough bread in town</h1>
<p>Our bakery has baked bread every morning since 1990.</p>
<h2>Opening hours</h2>
<p>Monday to Saturday.</p>
</main></body></html>
"""


class StubFetcher:
    def __init__(self, html):
        self.html = html
        self.requested = []

    async def fetch_document(self, url, cancel_event=None):
        self.requested.append(url)
        return self.html


def test_analyze_html():
    result = analyze_html(HTML)
    assert [h.text for h in result.headings] == ["The best sourdough bread in town", "Opening hours"]
    assert result.metrics.h1_count == 1
    assert result.hierarchy.children[0].children[0].text == "Opening hours"


def test_analyze_html_with_container():
    result = analyze_html(HTML, container="footer")
    assert result.metrics.total_headings == 0
    assert "no_headings" in result.validation.codes()


def test_analyze_url_uses_the_fetcher():
    fetcher = StubFetcher(HTML)
    result = asyncio.run(analyze_url("https://bakery.test/", fetcher))

    assert fetcher.requested == ["https://bakery.test/"]
    assert result.metrics.total_headings == 2


def test_describe_content_ignores_scripts():
    result = analyze_html(HTML)
    structure = describe_content(HTML, result.headings)

    # 6 + 9 + 2 + 3 visible words
    assert structure.average_words_per_section == 10
    assert structure.content_density == "sparse"
    assert structure.reading_time_minutes == 1
