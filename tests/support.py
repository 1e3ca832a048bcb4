"""
Test doubles and helpers shared by the test modules.
"""

import asyncio
from typing import Callable, Dict, Iterable, Optional, Tuple, Union

from linkcrawler.crawler.fetcher import FetchResult, OutcomeKind, classify_status
from linkcrawler.utils.config import Config, load_config

PageEntry = Union[str, Tuple[int, Optional[str]]]


def page(*links: str, title: str = "Test page") -> str:
    """Build a small HTML page linking to the given hrefs."""
    anchors = "\n".join(f'<a href="{href}">{href}</a>' for href in links)
    return f"<html><head><title>{title}</title></head><body>{anchors}</body></html>"


def make_config(seed: str = "http://example.com/", verbosity: int = 0, **policy) -> Config:
    """Build a validated Config the same way the CLI does."""
    return load_config(overrides={'seed_url': seed, **policy}, verbosity=verbosity)


class StubFetcher:
    """
    In-memory stand-in for WebFetcher serving a synthetic site.

    ``site`` maps URLs to an HTML string (served as 200) or a
    ``(status, body)`` tuple; it may also be a callable returning either.
    Unknown URLs are 404 without a body.
    """

    def __init__(self, site: Union[Dict[str, PageEntry], Callable[[str], Optional[PageEntry]]],
                 delay: float = 0.0,
                 network_errors: Iterable[str] = (),
                 content_types: Optional[Dict[str, str]] = None,
                 explode_on: Iterable[str] = ()):
        self.site = site
        self.delay = delay
        self.network_errors = set(network_errors)
        self.content_types = content_types or {}
        self.explode_on = set(explode_on)

        self.fetched = []
        self.active = 0
        self.max_active = 0
        self.started = False
        self.closed = False

    async def start(self):
        self.started = True

    async def close(self):
        self.closed = True

    def _lookup(self, url: str) -> Optional[PageEntry]:
        if callable(self.site):
            return self.site(url)
        return self.site.get(url)

    async def fetch(self, url: str) -> FetchResult:
        self.fetched.append(url)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delay)

            if url in self.explode_on:
                raise RuntimeError("stub exploded")

            if url in self.network_errors:
                return FetchResult(url=url, kind=OutcomeKind.NETWORK_ERROR, error="connection refused")

            entry = self._lookup(url)
            if entry is None:
                return FetchResult(url=url, kind=OutcomeKind.HTTP_ERROR, status_code=404)

            status, body = (200, entry) if isinstance(entry, str) else entry
            return FetchResult(
                url=url,
                kind=classify_status(status),
                status_code=status,
                content=body,
                content_type=self.content_types.get(url, 'text/html; charset=utf-8')
            )
        finally:
            self.active -= 1
