"""
Crawler scheduler that coordinates crawling tasks and manages the overall crawl process.
"""

import asyncio
import logging
import time
from typing import List, Optional
from dataclasses import dataclass

from .url_frontier import URLFrontier, URLTask
from .fetcher import WebFetcher, FetchResult, OutcomeKind
from .parser import ContentParser
from .normalizer import normalize_url
from .reporter import Reporter
from ..utils.config import Config
from ..utils.logger import get_crawler_logger
from ..utils.monitoring import MetricsCollector


@dataclass(frozen=True)
class CrawlResult:
    """The checked status of one frontier entry."""
    url: str
    outcome: OutcomeKind
    depth: int
    status_code: Optional[int] = None
    parent_url: Optional[str] = None
    error: Optional[str] = None
    fetch_time: float = 0.0

    @property
    def is_broken(self) -> bool:
        return self.outcome is not OutcomeKind.SUCCESS

    @classmethod
    def from_fetch(cls, task: URLTask, fetch_result: FetchResult) -> 'CrawlResult':
        return cls(
            url=task.url,
            outcome=fetch_result.kind,
            depth=task.depth,
            status_code=fetch_result.status_code,
            parent_url=task.parent_url,
            error=fetch_result.error,
            fetch_time=fetch_result.fetch_time
        )


@dataclass
class CrawlStats:
    """Statistics for crawl operations."""
    start_time: float
    urls_crawled: int = 0
    broken: int = 0
    links_discovered: int = 0
    finish_time: Optional[float] = None

    @property
    def elapsed_time(self) -> float:
        return (self.finish_time or time.time()) - self.start_time


class CrawlerScheduler:
    """
    Drives a crawl to completion with a fixed pool of worker tasks.

    Workers take entries from the frontier, fetch them, push a CrawlResult
    to the reporter task and offer the links found in HTML bodies back to
    the frontier. The crawl ends when the frontier reports it is finished.
    """

    def __init__(self, config: Config,
                 fetcher: Optional[WebFetcher] = None,
                 parser: Optional[ContentParser] = None,
                 reporter: Optional[Reporter] = None,
                 metrics: Optional[MetricsCollector] = None):
        self.config = config
        self.policy = config.crawler
        self.logger = logging.getLogger(__name__)

        self.url_frontier = URLFrontier(self.policy)
        self.fetcher = fetcher
        self.parser = parser or ContentParser()
        self.reporter = reporter or Reporter(config.verbosity)
        self.metrics = metrics or MetricsCollector()

        self._owns_fetcher = fetcher is None
        self._results: Optional[asyncio.Queue] = None
        self.results: List[CrawlResult] = []
        self.stats = CrawlStats(start_time=time.time())
        self.workers: List[asyncio.Task] = []

    async def initialize(self):
        """Create the HTTP fetcher unless one was injected."""
        if self.fetcher is None:
            self.fetcher = WebFetcher(
                user_agent=self.policy.user_agent,
                request_timeout=self.policy.request_timeout,
                max_concurrent_requests=self.policy.max_concurrency,
                max_content_size=self.policy.max_content_size
            )
        if self._owns_fetcher:
            await self.fetcher.start()
        self.logger.info("Crawler scheduler initialized")

    async def start_crawling(self) -> CrawlStats:
        """
        Run the crawl until the frontier is exhausted.

        Returns:
            Final crawl statistics
        """
        if self.fetcher is None:
            await self.initialize()

        self.stats = CrawlStats(start_time=time.time())
        self._results = asyncio.Queue()

        await self.url_frontier.offer(self.policy.seed_url, depth=0)
        self.logger.info(f"Seeded frontier with {self.policy.seed_url}")

        reporter_task = asyncio.create_task(self._report_results())
        self.workers = [
            asyncio.create_task(self._worker(f"worker-{i}"))
            for i in range(self.policy.max_concurrency)
        ]
        self.logger.info(f"Started crawling with {len(self.workers)} workers")

        try:
            await asyncio.gather(*self.workers)
        finally:
            # A failed worker leaves its siblings running; stop them before closing the stream
            for worker in self.workers:
                worker.cancel()
            await asyncio.gather(*self.workers, return_exceptions=True)

            # Close the result stream and let the reporter drain it
            await self._results.put(None)
            await reporter_task
            self.workers.clear()

        self.stats.finish_time = time.time()
        self._log_final_stats()
        return self.stats

    async def _worker(self, worker_id: str):
        """
        Worker coroutine that processes URLs from the frontier.
        """
        logger = get_crawler_logger(__name__, worker=worker_id)
        logger.debug("Worker started")

        while True:
            url_task = await self.url_frontier.take()
            if url_task is None:
                break

            reported = False
            try:
                fetch_result = await self.fetcher.fetch(url_task.url)
                await self._emit(CrawlResult.from_fetch(url_task, fetch_result))
                reported = True
                logger.debug(f"{fetch_result.status_code or 'ERR'} - {url_task.url}")

                await self._follow_links(url_task, fetch_result, logger)
            except Exception as e:
                logger.error(f"Error processing {url_task.url}: {e}", exc_info=True)
                if not reported:
                    await self._emit(CrawlResult(
                        url=url_task.url,
                        outcome=OutcomeKind.NETWORK_ERROR,
                        depth=url_task.depth,
                        parent_url=url_task.parent_url,
                        error=f"unexpected error: {e}"
                    ))
            finally:
                # Only after the links are offered, so the frontier cannot finish early
                await self.url_frontier.task_done(url_task)
                self.metrics.update_queue_size(self.url_frontier.pending_count)

        logger.debug("Worker finished")

    async def _follow_links(self, url_task: URLTask, fetch_result: FetchResult,
                            logger: logging.LoggerAdapter):
        """Offer every link of an HTML body to the frontier at depth + 1."""
        # Broken pages still get their links checked when a body came back
        if fetch_result.content is None or not fetch_result.is_html:
            return

        parsed_content = self.parser.parse(fetch_result.final_url or url_task.url, fetch_result.content)
        added = 0
        for link in parsed_content.links:
            target = normalize_url(link, parsed_content.base_url)
            if target is None:
                continue
            self.stats.links_discovered += 1
            accepted = await self.url_frontier.offer(target, url_task.depth + 1, url_task.url)
            self.metrics.record_offer(accepted)
            if accepted:
                added += 1

        logger.debug(f"Queued {added} new URLs from {url_task.url}")

    async def _emit(self, result: CrawlResult):
        """Record a result exactly once and hand it to the reporter."""
        self.stats.urls_crawled += 1
        if result.is_broken:
            self.stats.broken += 1
        self.metrics.record_fetch(result.outcome.value, result.fetch_time)
        await self._results.put(result)

    async def _report_results(self):
        """Forward results to the reporter until the stream is closed."""
        while True:
            result = await self._results.get()
            if result is None:
                break
            self.results.append(result)
            self.reporter.report(result)

    def _log_final_stats(self):
        """Log final crawl statistics."""
        frontier_stats = self.url_frontier.get_stats()

        self.logger.info("=== CRAWL COMPLETED ===")
        self.logger.info(f"Total URLs checked: {self.stats.urls_crawled}")
        self.logger.info(f"Broken: {self.stats.broken}")
        self.logger.info(f"Links discovered: {self.stats.links_discovered}")
        self.logger.info(f"Distinct URLs seen: {frontier_stats['total_seen']}")
        self.logger.info(f"Total time: {self.stats.elapsed_time:.2f} seconds")
        if self.fetcher is not None and hasattr(self.fetcher, 'get_stats'):
            self.logger.info(f"Fetcher stats: {self.fetcher.get_stats()}")
        self.logger.info(f"Metrics: {self.metrics.get_summary()}")

    async def close(self):
        """Close the fetcher if this scheduler created it."""
        if self._owns_fetcher and self.fetcher is not None:
            await self.fetcher.close()
        self.logger.info("Crawler scheduler closed")
