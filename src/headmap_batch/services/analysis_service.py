# src/headmap_batch/services/analysis_service.py
import logging
from typing import Any, Dict, Optional, Sequence

from bs4 import BeautifulSoup

from headmap.analysis import analyze_headings
from headmap.model import AnalysisResult, HeadingRecord
from headmap.utils.text_metrics import ContentStructure, analyze_content_structure
from headmap_batch.services.async_page_fetcher_service import PageFetcher
from headmap_batch.services.heading_extract_service import HeadingExtractService

logger = logging.getLogger(__name__)

_extractor = HeadingExtractService()


def analyze_html(
        html: str,
        container: str = "body",
        options: Optional[Dict[str, Any]] = None
) -> AnalysisResult:
    """Extracts the headings of an HTML document and runs the full analysis."""
    headings = _extractor.extract(html, container=container)
    return analyze_headings(headings, options)


async def analyze_url(
        url: str,
        fetcher: PageFetcher,
        options: Optional[Dict[str, Any]] = None
) -> AnalysisResult:
    """
    Fetches a remote document and analyzes it.

    Raises:
        FetchError: The document could not be retrieved.
    """
    html = await fetcher.fetch_document(url)
    logger.debug("Analyzing %s (%d bytes).", url, len(html))
    return analyze_html(html, options=options)


def describe_content(html: str, headings: Sequence[HeadingRecord]) -> ContentStructure:
    """Heading density and reading time for the visible body text of a document."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript", "template"]):
        tag.decompose()
    root = soup.body or soup
    word_count = len(root.get_text(" ").split())
    return analyze_content_structure(len(headings), word_count)
