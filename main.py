#!/usr/bin/env python3
"""
Main entry point for the link crawler.
"""

import asyncio
import argparse
import logging
import sys
from typing import List, Optional

from linkcrawler import __version__
from linkcrawler.utils.config import Config, ConfigError, load_config
from linkcrawler.utils.logger import setup_logging, log_system_info
from linkcrawler.utils.monitoring import MetricsCollector
from linkcrawler.crawler.reporter import Reporter
from linkcrawler.crawler.scheduler import CrawlerScheduler

EXIT_OK = 0
EXIT_BROKEN_LINKS = 1
EXIT_CONFIG_ERROR = 2


class CrawlerApp:
    """Main application class for the link crawler."""

    def __init__(self, stream=None):
        self.scheduler: Optional[CrawlerScheduler] = None
        self.stream = stream
        self.logger = logging.getLogger(__name__)

    async def run(self, config: Config) -> int:
        """
        Run the crawler.

        Returns:
            Process exit code: 1 if any broken link was found, 0 otherwise
        """
        policy = config.crawler
        self.logger.info("=== LINK CRAWLER STARTING ===")
        self.logger.info(f"Seed URL: {policy.seed_url}")
        self.logger.info(f"Restrict on domain: {policy.restrict_on_domain}")
        self.logger.info(f"Limit: {policy.limit or 'none'}")
        self.logger.info(f"Max concurrency: {policy.max_concurrency}")
        self.logger.info(f"Request timeout: {policy.request_timeout}s")

        metrics = MetricsCollector(
            config.monitoring.prometheus_port if config.monitoring.metrics_enabled else None
        )
        metrics.start_prometheus_server()

        reporter = Reporter(config.verbosity, self.stream)
        self.scheduler = CrawlerScheduler(config, reporter=reporter, metrics=metrics)

        try:
            await self.scheduler.initialize()
            await self.scheduler.start_crawling()
        finally:
            await self.scheduler.close()
            self.logger.info("=== LINK CRAWLER FINISHED ===")

        reporter.print_summary(self.scheduler.url_frontier)
        return reporter.exit_code


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    parser = argparse.ArgumentParser(
        prog="linkcrawler",
        description="Crawl a website and report broken links.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Exit codes:
  0  no broken links found
  1  at least one broken link found
  2  invalid arguments or configuration

Examples:
  linkcrawler https://example.com/                      # Check everything reachable
  linkcrawler example.com --restrict-on-domain          # Stay on example.com
  linkcrawler https://example.com/ --limit 100 -v       # Show every result, stop after 100 URLs
        """
    )

    parser.add_argument(
        'entrypoint',
        help='The domain or URL to start working on'
    )

    parser.add_argument(
        '-r', '--restrict-on-domain',
        action='store_true',
        default=None,
        help='Only follow URLs on the same host as <entrypoint>'
    )

    parser.add_argument(
        '-l', '--limit',
        type=int,
        help='Limit the number of URLs to crawl (0 means no limit)'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='count',
        default=0,
        help='Verbosity: -v shows every result, -vv adds debug logging'
    )

    parser.add_argument(
        '-c', '--concurrency',
        type=int,
        dest='max_concurrency',
        help='Number of concurrent workers (default: 5)'
    )

    parser.add_argument(
        '--timeout',
        type=float,
        dest='request_timeout',
        help='Per-request timeout in seconds (default: 10)'
    )

    parser.add_argument(
        '--max-depth',
        type=int,
        help='Maximum link depth from the entrypoint (default: 50)'
    )

    parser.add_argument(
        '--user-agent',
        help='User-Agent header sent with every request'
    )

    parser.add_argument(
        '--config',
        help='Path to a YAML configuration file'
    )

    parser.add_argument(
        '--log-json',
        action='store_true',
        default=None,
        help='Emit log records as JSON'
    )

    parser.add_argument(
        '--metrics-port',
        type=int,
        help='Expose Prometheus metrics on this port while crawling'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    overrides = {
        'seed_url': args.entrypoint,
        'restrict_on_domain': args.restrict_on_domain,
        'limit': args.limit,
        'max_concurrency': args.max_concurrency,
        'request_timeout': args.request_timeout,
        'max_depth': args.max_depth,
        'user_agent': args.user_agent,
    }

    try:
        config = load_config(
            args.config,
            overrides,
            verbosity=args.verbose,
            logging_overrides={'json': args.log_json},
            monitoring_overrides={'prometheus_port': args.metrics_port}
        )
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    setup_logging(config.verbosity, config.logging)
    log_system_info()

    app = CrawlerApp()
    try:
        return asyncio.run(app.run(config))
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    except OSError as e:
        # e.g. the metrics port is already in use
        print(f"Fatal error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR


if __name__ == '__main__':
    sys.exit(main())
