# src/headmap_batch/services/async_page_fetcher_service.py
import asyncio
import contextlib
import logging
import time
from typing import Any, Dict, Optional

import aiohttp

from headmap_batch.exceptions import FetchCancelled, FetchError
from headmap_batch.utils.url_utils import UrlUtils
from headmap_shell.core.managers.config_manager import config_manager

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; HeadmapBot/1.0; +https://github.com/headmap/headmap)"

# Content types we are able to extract headings from.
HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")


class PageFetcher:
    """
    Asynchronous document fetcher backed by a shared aiohttp session.

    `fetch_page` reports every outcome as a status dictionary (negative
    statuses for client-side failures); `fetch_document` turns that into the
    fetch-or-fail contract used by the batch controller.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None, user_agent: Optional[str] = None):
        session_config = (config if config is not None else config_manager.get_all()).get('session', {})

        self.timeout = float(session_config.get('time_out', 30))
        self.read_timeout = float(session_config.get('client_read_timeout', 5.0))
        self.max_connections = int(session_config.get('max_connections', 10))
        self.user_agent = user_agent or session_config.get('user_agent') or DEFAULT_USER_AGENT

        self.session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def initialize(self) -> None:
        if not self.session or self.session.closed:
            connector = aiohttp.TCPConnector(limit=self.max_connections, ttl_dns_cache=300)
            timeout_obj = aiohttp.ClientTimeout(total=self.timeout)
            default_headers = {
                'Accept': 'text/html,application/xhtml+xml;q=0.9,*/*;q=0.8',
                'Accept-Encoding': 'gzip, deflate',
                'User-Agent': self.user_agent
            }
            self.session = aiohttp.ClientSession(
                connector=connector,
                timeout=timeout_obj,
                headers=default_headers
            )
            logger.debug(f"Fetch Service initialized. Timeout: {self.timeout}s")

    async def close(self) -> None:
        if self.session and not self.session.closed:
            await self.session.close()

    async def fetch_page(self, url: str) -> Dict[str, Any]:
        """
        Downloads a single page, following redirects.

        Returns:
            A dictionary with 'status', 'headers', 'content', 'final_url' and
            'elapsed_time'. Status -1 marks a network error or timeout and -10 an
            unsupported content type.
        """
        start = time.perf_counter()

        if not self.session or self.session.closed:
            await self.initialize()

        try:
            async with self.session.get(url, allow_redirects=True) as response:
                status = response.status
                headers = dict(response.headers)
                content_type = headers.get("Content-Type", "").lower()
                content = None
                error = None

                if status == 200 and not any(t in content_type for t in HTML_CONTENT_TYPES):
                    status = -10
                    error = f"Unsupported Content-Type: {content_type or 'unknown'}"
                elif status == 200:
                    try:
                        content = await self._read_content(response)
                    except asyncio.TimeoutError:
                        logger.warning("Timeout reading response for %s", url)
                        status = -1
                        error = "Read timeout"

                response_data = {
                    "status": status,
                    "headers": headers,
                    "content": content,
                    "final_url": str(response.url),
                }
                if error:
                    response_data["error"] = error

        except aiohttp.InvalidURL as e:
            response_data = {"status": -1, "error": f"Invalid URL: {e}"}
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            response_data = {"status": -1, "error": str(e) or type(e).__name__}
        finally:
            elapsed = round(time.perf_counter() - start, 4)

        response_data["elapsed_time"] = elapsed
        return response_data

    async def _read_content(self, response: aiohttp.ClientResponse) -> str:
        """Reads the body within read_timeout; raises asyncio.TimeoutError past it."""
        try:
            return await asyncio.wait_for(response.text(), timeout=self.read_timeout)
        except UnicodeDecodeError:
            content_bytes = await response.read()
            return content_bytes.decode('utf-8', errors='replace')

    async def fetch_document(self, url: str, cancel_event: Optional[asyncio.Event] = None) -> str:
        """
        Fetches a URL and returns its HTML.

        When a cancel_event is given, the download races against it; if the
        event wins, the request is aborted and FetchCancelled is raised.

        Raises:
            FetchError: Invalid URL, network failure, non-200 status or empty body.
            FetchCancelled: cancel_event was set before the document arrived.
        """
        if not UrlUtils.is_valid_url(url):
            raise FetchError(url, "Invalid URL format")

        if cancel_event is None:
            result = await self.fetch_page(url)
        else:
            result = await self._fetch_cancellable(url, cancel_event)

        status = result.get("status")
        if status != 200:
            raise FetchError(url, result.get("error") or f"HTTP {status}", status)
        if not result.get("content"):
            raise FetchError(url, "Empty response body", status)

        logger.debug("Fetched %s in %.2fs", url, result.get("elapsed_time", 0.0))
        return result["content"]

    async def _fetch_cancellable(self, url: str, cancel_event: asyncio.Event) -> Dict[str, Any]:
        if cancel_event.is_set():
            raise FetchCancelled(url)

        fetch_task = asyncio.create_task(self.fetch_page(url))
        cancel_task = asyncio.create_task(cancel_event.wait())
        try:
            done, _ = await asyncio.wait({fetch_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            fetch_task.cancel()
            raise
        finally:
            cancel_task.cancel()

        if fetch_task in done:
            return fetch_task.result()

        fetch_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await fetch_task
        logger.debug("Fetch of %s aborted by cancellation.", url)
        raise FetchCancelled(url)

    async def __call__(self, url: str, cancel_event: Optional[asyncio.Event] = None) -> str:
        return await self.fetch_document(url, cancel_event)
