"""
Web page fetcher that classifies every request outcome.
"""

import asyncio
import aiohttp
import logging
import time
from enum import Enum
from typing import Optional, Dict
from dataclasses import dataclass
from aiohttp import ClientSession, ClientTimeout, ClientError


class OutcomeKind(Enum):
    """Classification of a single fetch attempt."""
    SUCCESS = "success"
    HTTP_ERROR = "http_error"
    NETWORK_ERROR = "network_error"


HTML_CONTENT_TYPES = ('text/html', 'application/xhtml+xml')


@dataclass(frozen=True)
class FetchResult:
    """Result of a fetch operation."""
    url: str
    kind: OutcomeKind
    status_code: Optional[int] = None
    content: Optional[str] = None
    content_type: Optional[str] = None
    error: Optional[str] = None
    fetch_time: float = 0.0
    # Document URL after redirects; relative links resolve against it
    final_url: Optional[str] = None

    @property
    def is_broken(self) -> bool:
        return self.kind is not OutcomeKind.SUCCESS

    @property
    def is_html(self) -> bool:
        return is_html_content(self.content_type or '')


def is_html_content(content_type: str) -> bool:
    """Check if a Content-Type header describes an HTML page."""
    return any(html_type in content_type.lower() for html_type in HTML_CONTENT_TYPES)


def classify_status(status_code: int) -> OutcomeKind:
    """4xx and 5xx are broken, everything else reached the server fine."""
    return OutcomeKind.HTTP_ERROR if status_code >= 400 else OutcomeKind.SUCCESS


class WebFetcher:
    """
    Fetches web pages and reports every failure as a FetchResult.

    Redirects, TLS and connection pooling are left to aiohttp.
    """

    def __init__(self, user_agent: str, request_timeout: float = 10.0,
                 max_concurrent_requests: int = 5, max_content_size: int = 10 * 1024 * 1024):
        self.user_agent = user_agent
        self.request_timeout = request_timeout
        self.max_concurrent_requests = max_concurrent_requests
        self.max_content_size = max_content_size

        self.logger = logging.getLogger(__name__)

        # Session management
        self.session: Optional[ClientSession] = None
        self.semaphore = asyncio.Semaphore(max_concurrent_requests)

        # Statistics
        self.stats = {
            'total_requests': 0,
            'successful_requests': 0,
            'http_errors': 0,
            'network_errors': 0,
            'total_bytes_downloaded': 0
        }

    async def __aenter__(self):
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def start(self):
        """Initialize the fetcher session."""
        if self.session is None:
            timeout = ClientTimeout(total=self.request_timeout)
            headers = {'User-Agent': self.user_agent}

            self.session = aiohttp.ClientSession(
                timeout=timeout,
                headers=headers,
                connector=aiohttp.TCPConnector(
                    limit=self.max_concurrent_requests * 2,
                    ttl_dns_cache=300,
                    use_dns_cache=True
                )
            )
            self.logger.info("WebFetcher session started")

    async def close(self):
        """Close the fetcher session."""
        if self.session:
            await self.session.close()
            self.session = None
            self.logger.info("WebFetcher session closed")

    async def fetch(self, url: str) -> FetchResult:
        """
        Fetch a single URL.

        Args:
            url: The URL to fetch

        Returns:
            FetchResult classified as success, HTTP error or network error
        """
        if self.session is None:
            raise RuntimeError("WebFetcher.start() must be called before fetch()")

        start_time = time.monotonic()

        async with self.semaphore:
            self.stats['total_requests'] += 1
            try:
                async with self.session.get(url) as response:
                    content_type = response.headers.get('content-type', '').lower()
                    kind = classify_status(response.status)

                    content = None
                    if is_html_content(content_type):
                        content = await self._read_content_safely(response)
                    else:
                        self.logger.debug(f"Not reading non-HTML body: {url} ({content_type})")

                    result = FetchResult(
                        url=url,
                        kind=kind,
                        status_code=response.status,
                        content=content,
                        content_type=content_type,
                        fetch_time=time.monotonic() - start_time,
                        final_url=str(response.url)
                    )

                if kind is OutcomeKind.SUCCESS:
                    self.stats['successful_requests'] += 1
                else:
                    self.stats['http_errors'] += 1
                self.logger.debug(f"Fetched {url}: {response.status} ({len(content) if content else 0} chars)")
                return result

            except asyncio.TimeoutError:
                error_msg = "timeout"
                self.logger.info(f"Timeout fetching {url}")

            except ClientError as e:
                error_msg = str(e) or e.__class__.__name__
                self.logger.info(f"Client error fetching {url}: {error_msg}")

            except ValueError as e:
                # yarl/aiohttp reject some URLs that urllib accepted
                error_msg = f"invalid URL: {e}"
                self.logger.info(f"Invalid URL {url}: {e}")

            self.stats['network_errors'] += 1
            return FetchResult(
                url=url,
                kind=OutcomeKind.NETWORK_ERROR,
                error=error_msg,
                fetch_time=time.monotonic() - start_time
            )

    async def _read_content_safely(self, response: aiohttp.ClientResponse) -> Optional[str]:
        """
        Read the response body with a size limit.

        Returns the decoded body, or None if it is larger than max_content_size.
        Timeouts and connection errors while reading propagate to fetch().
        """
        content_length = response.headers.get('content-length')
        if content_length and content_length.isdigit() and int(content_length) > self.max_content_size:
            self.logger.warning(f"Content too large ({content_length} bytes): {response.url}")
            return None

        # Read content in chunks to respect size limit
        chunks = []
        size = 0
        async for chunk in response.content.iter_chunked(8192):
            size += len(chunk)
            if size > self.max_content_size:
                self.logger.warning(f"Content exceeded size limit during reading: {response.url}")
                return None
            chunks.append(chunk)

        self.stats['total_bytes_downloaded'] += size
        content_bytes = b''.join(chunks)

        encoding = response.charset or 'utf-8'
        try:
            return content_bytes.decode(encoding)
        except (UnicodeDecodeError, LookupError):
            return content_bytes.decode('latin-1')

    def get_stats(self) -> Dict[str, int]:
        """Get fetcher statistics."""
        return self.stats.copy()
