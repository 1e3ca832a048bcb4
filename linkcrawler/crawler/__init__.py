"""
Link crawler core components.
"""

from .normalizer import normalize_url, normalize_seed, url_host
from .url_frontier import URLFrontier, URLTask
from .fetcher import WebFetcher, FetchResult, OutcomeKind
from .parser import ContentParser, ParsedContent
from .reporter import Reporter
from .scheduler import CrawlerScheduler, CrawlResult, CrawlStats

__all__ = [
    'normalize_url', 'normalize_seed', 'url_host',
    'URLFrontier', 'URLTask',
    'WebFetcher', 'FetchResult', 'OutcomeKind',
    'ContentParser', 'ParsedContent',
    'Reporter',
    'CrawlerScheduler', 'CrawlResult', 'CrawlStats'
]
