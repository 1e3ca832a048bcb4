"""
Result reporting: one line per checked link, broken links always shown.
"""

import sys
from typing import List, Optional, TextIO, TYPE_CHECKING

from .fetcher import OutcomeKind

if TYPE_CHECKING:
    from .scheduler import CrawlResult
    from .url_frontier import URLFrontier


def format_result(result: "CrawlResult") -> str:
    """Format a single result line."""
    if result.outcome is OutcomeKind.NETWORK_ERROR:
        line = f"ERR - {result.url} ({result.error})"
    else:
        line = f"{result.status_code} - {result.url}"

    if result.is_broken and result.parent_url:
        line += f" (found on {result.parent_url})"
    return line


class Reporter:
    """Prints crawl results as they complete and remembers the broken ones."""

    def __init__(self, verbosity: int = 0, stream: Optional[TextIO] = None):
        self.verbosity = verbosity
        self.stream = stream or sys.stdout
        self.total = 0
        self.broken: List["CrawlResult"] = []

    def report(self, result: "CrawlResult"):
        self.total += 1
        if result.is_broken:
            self.broken.append(result)
        elif self.verbosity < 1:
            return

        self.stream.write(format_result(result) + "\n")
        self.stream.flush()

    @property
    def has_broken(self) -> bool:
        return bool(self.broken)

    @property
    def exit_code(self) -> int:
        return 1 if self.broken else 0

    def print_summary(self, frontier: Optional["URLFrontier"] = None):
        """Print totals and every broken link with how often it was referenced."""
        if self.verbosity < 1:
            return

        write = self.stream.write
        write("\n")
        write(f"Checked {self.total} links, {len(self.broken)} broken.\n")
        for result in sorted(self.broken, key=lambda r: r.url):
            status = result.status_code if result.status_code is not None else "ERR"
            references = frontier.references(result.url) if frontier else 1
            write(f"  {status} - {result.url} (referenced {references}x)\n")
        self.stream.flush()
