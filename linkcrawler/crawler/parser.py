"""
HTML parser for extracting outgoing links.
"""

import logging
from typing import List, Optional
from urllib.parse import urljoin
from dataclasses import dataclass, field
from bs4 import BeautifulSoup, SoupStrainer

# Only the tags we need; skips building the rest of the tree
LINK_STRAINER = SoupStrainer(['a', 'base', 'title'])


@dataclass
class ParsedContent:
    """Links and metadata extracted from a page."""
    url: str
    base_url: str
    title: Optional[str] = None
    links: List[str] = field(default_factory=list)


class ContentParser:
    """
    Extracts raw href values from ``<a>`` elements.

    Links are returned as written in the page; resolving them is the
    normalizer's job, against ``ParsedContent.base_url``.
    """

    def __init__(self, features: str = 'lxml'):
        self.features = features
        self.logger = logging.getLogger(__name__)

    def parse(self, url: str, html_content: str) -> ParsedContent:
        """
        Parse HTML content and extract links.

        Args:
            url: The URL of the page
            html_content: Raw HTML content

        Returns:
            ParsedContent; empty when the document cannot be parsed at all
        """
        try:
            soup = BeautifulSoup(html_content, self.features, parse_only=LINK_STRAINER)
        except Exception as e:
            # bs4 and its tree builders raise a wide range of errors on garbage input
            self.logger.debug(f"Error parsing content from {url}: {e}")
            return ParsedContent(url=url, base_url=url)

        parsed_content = ParsedContent(url=url, base_url=self._extract_base_url(soup, url))

        title_tag = soup.find('title')
        if title_tag and title_tag.string:
            parsed_content.title = title_tag.string.strip() or None

        for link in soup.find_all('a', href=True):
            href = link['href'].strip()
            if href:
                parsed_content.links.append(href)

        self.logger.debug(f"Parsed {len(parsed_content.links)} links from {url}")
        return parsed_content

    def extract_links(self, html_content: str, base_url: str) -> List[str]:
        """Shortcut returning only the raw links of a page."""
        return self.parse(base_url, html_content).links

    def _extract_base_url(self, soup: BeautifulSoup, url: str) -> str:
        """Honor <base href> when present."""
        base_tag = soup.find('base', href=True)
        if base_tag:
            href = base_tag['href'].strip()
            if href:
                try:
                    return urljoin(url, href)
                except ValueError:
                    self.logger.debug(f"Ignoring malformed <base href={href!r}> on {url}")
        return url
