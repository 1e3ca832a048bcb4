"""
Monitoring and metrics collection for the link crawler.
"""

import time
import logging
from typing import Dict, Optional, Any

from prometheus_client import Counter, Histogram, Gauge, CollectorRegistry, generate_latest
from prometheus_client import start_http_server


class MetricsCollector:
    """
    Collects crawl metrics in a private Prometheus registry.

    Each collector has its own registry so several crawls (or tests) in one
    process do not clash on metric names.
    """

    def __init__(self, prometheus_port: Optional[int] = None):
        self.logger = logging.getLogger(__name__)
        self.prometheus_port = prometheus_port
        self.start_time = time.time()

        self.registry = CollectorRegistry()

        self.pages_fetched = Counter(
            'linkcrawler_pages_fetched_total',
            'Total number of URLs fetched, by outcome',
            ['outcome'],
            registry=self.registry
        )
        self.links_offered = Counter(
            'linkcrawler_links_offered_total',
            'Links offered to the frontier, by admission decision',
            ['accepted'],
            registry=self.registry
        )
        self.fetch_seconds = Histogram(
            'linkcrawler_fetch_seconds',
            'Time spent fetching a URL',
            registry=self.registry
        )
        self.frontier_pending = Gauge(
            'linkcrawler_frontier_pending',
            'Number of URLs waiting in the frontier',
            registry=self.registry
        )

        self._counts: Dict[str, int] = {}

    def start_prometheus_server(self):
        """Start the Prometheus metrics HTTP server if a port is configured."""
        if not self.prometheus_port:
            return

        start_http_server(self.prometheus_port, registry=self.registry)
        self.logger.info(f"Prometheus metrics server started on port {self.prometheus_port}")

    def record_fetch(self, outcome: str, fetch_time: float):
        """Record a completed fetch."""
        self.pages_fetched.labels(outcome=outcome).inc()
        self.fetch_seconds.observe(fetch_time)
        self._counts[outcome] = self._counts.get(outcome, 0) + 1

    def record_offer(self, accepted: bool):
        """Record a frontier admission decision."""
        self.links_offered.labels(accepted=str(accepted).lower()).inc()
        key = 'links_accepted' if accepted else 'links_rejected'
        self._counts[key] = self._counts.get(key, 0) + 1

    def update_queue_size(self, size: int):
        """Update the frontier pending gauge."""
        self.frontier_pending.set(size)

    def export_text(self) -> bytes:
        """Render the registry in the Prometheus text format."""
        return generate_latest(self.registry)

    def get_summary(self) -> Dict[str, Any]:
        """Get a summary of all metrics."""
        runtime = time.time() - self.start_time
        fetched = sum(
            count for name, count in self._counts.items()
            if not name.startswith('links_')
        )

        return {
            'runtime_seconds': runtime,
            'counts': dict(self._counts),
            'urls_per_second': fetched / runtime if runtime > 0 else 0,
        }
