# src/headmap_batch/utils/url_utils.py
import logging
from typing import Iterable, List
from urllib.parse import urlparse, urlunparse

logger = logging.getLogger(__name__)


class UrlUtils:
    """A collection of static methods for preparing user-supplied URLs."""

    @staticmethod
    def normalize_input_url(url: str) -> str:
        """
        Trims the input and adds 'https://' when no scheme is given.
        Fragments are dropped, as they are client-side only.
        """
        if isinstance(url, bytes):
            url = url.decode('utf-8')

        url = url.strip()
        if not url.startswith(('http://', 'https://')):
            url = 'https://' + url

        parsed_url = urlparse(url)
        if not parsed_url.path:
            parsed_url = parsed_url._replace(path='/')
        parsed_url = parsed_url._replace(fragment='')

        return urlunparse(parsed_url)

    @staticmethod
    def is_valid_url(url: str) -> bool:
        """Checks that the URL is an absolute http(s) URL with a host."""
        if not isinstance(url, str):
            logger.debug(f"Invalid URL check: URL is not a string ({type(url).__name__}).")
            return False

        try:
            parsed_url = urlparse(url)
        except ValueError as e:
            logger.debug(f"Invalid URL check: ValueError during URL parsing for '{url}': {e}.")
            return False

        if parsed_url.scheme not in ('http', 'https'):
            return False

        # A host needs at least one dot or must be localhost
        host = parsed_url.hostname or ""
        return bool(host) and ("." in host or host == "localhost")

    @staticmethod
    def read_url_list(lines: Iterable[str]) -> List[str]:
        """Parses a URL list: one URL per line, blank lines and '#' comments ignored, duplicates dropped."""
        seen = set()
        urls = []
        for line in lines:
            candidate = line.strip()
            if not candidate or candidate.startswith('#'):
                continue
            if candidate not in seen:
                seen.add(candidate)
                urls.append(candidate)
        return urls
