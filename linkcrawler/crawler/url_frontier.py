"""
URL Frontier implementation for managing URLs to crawl.
Guarantees that every URL is admitted at most once per run.
"""

import asyncio
import logging
import time
from typing import Dict, Optional
from dataclasses import dataclass, field
from collections import deque

from ..utils.config import CrawlPolicy
from .normalizer import url_host


@dataclass(frozen=True)
class URLTask:
    """Represents a URL crawling task."""
    url: str
    depth: int
    parent_url: Optional[str] = None
    discovered_time: float = field(default_factory=time.time)


class URLFrontier:
    """
    Pending URLs plus the record of every URL ever seen.

    ``offer`` and ``take`` share a single condition lock, so admission of a
    URL (check and mark) happens as one step even with many workers offering
    links at once. The frontier is finished when nothing is queued and no
    taken task is still in flight.
    """

    def __init__(self, policy: CrawlPolicy):
        self.policy = policy
        self.logger = logging.getLogger(__name__)

        self.seed_host = url_host(policy.seed_url)

        self._pending: deque = deque()
        self._seen: Dict[str, int] = {}
        self._in_flight = 0
        self._accepted = 0
        self._condition = asyncio.Condition()

    async def offer(self, url: str, depth: int, parent_url: Optional[str] = None) -> bool:
        """
        Admit a normalized URL.
        Returns True if the URL was queued, False if it was rejected.
        """
        async with self._condition:
            if url in self._seen:
                self._seen[url] += 1
                return False

            if self.limit_reached:
                self.logger.debug(f"Limit reached, rejecting {url}")
                return False

            if depth > self.policy.max_depth:
                self.logger.debug(f"Rejecting {url}: depth {depth} exceeds {self.policy.max_depth}")
                return False

            if self.policy.restrict_on_domain and url_host(url) != self.seed_host:
                self.logger.debug(f"Rejecting {url}: outside {self.seed_host}")
                return False

            self._seen[url] = 1
            self._accepted += 1
            self._pending.append(URLTask(url=url, depth=depth, parent_url=parent_url))
            self._condition.notify()

        self.logger.debug(f"Added URL to frontier: {url} (depth={depth})")
        return True

    async def take(self) -> Optional[URLTask]:
        """
        Get the next URL to crawl.
        Waits while the queue is empty but other tasks are still in flight;
        returns None once the crawl is finished.
        """
        async with self._condition:
            while not self._pending and self._in_flight > 0:
                await self._condition.wait()

            if not self._pending:
                return None

            task = self._pending.popleft()
            self._in_flight += 1
            return task

    async def task_done(self, task: URLTask):
        """Retire a task returned by take(); all links it produced must already be offered."""
        async with self._condition:
            if self._in_flight <= 0:
                raise RuntimeError(f"task_done() called more times than take() ({task.url})")
            self._in_flight -= 1
            if self.is_finished:
                self._condition.notify_all()

    def references(self, url: str) -> int:
        """Number of times a URL was offered (found) during the run."""
        return self._seen.get(url, 0)

    @property
    def limit_reached(self) -> bool:
        return self.policy.limit is not None and self._accepted >= self.policy.limit

    @property
    def accepted_count(self) -> int:
        return self._accepted

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def is_finished(self) -> bool:
        return not self._pending and self._in_flight == 0

    def get_stats(self) -> Dict[str, int]:
        """Get frontier statistics."""
        return {
            'total_queued': len(self._pending),
            'in_flight': self._in_flight,
            'total_accepted': self._accepted,
            'total_seen': len(self._seen),
        }
