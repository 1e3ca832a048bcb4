"""Tests for result reporting."""

import io

import pytest

from linkcrawler.crawler.fetcher import OutcomeKind
from linkcrawler.crawler.reporter import Reporter, format_result
from linkcrawler.crawler.scheduler import CrawlResult
from linkcrawler.crawler.url_frontier import URLFrontier
from linkcrawler.utils.config import CrawlPolicy

OK = CrawlResult(url="http://example.com/", outcome=OutcomeKind.SUCCESS, depth=0, status_code=200)
MISSING = CrawlResult(
    url="http://example.com/missing",
    outcome=OutcomeKind.HTTP_ERROR,
    depth=1,
    status_code=404,
    parent_url="http://example.com/"
)
DOWN = CrawlResult(
    url="http://down.example.org/",
    outcome=OutcomeKind.NETWORK_ERROR,
    depth=1,
    error="timeout"
)


def report_all(verbosity, *results):
    stream = io.StringIO()
    reporter = Reporter(verbosity, stream)
    for result in results:
        reporter.report(result)
    return reporter, stream.getvalue().splitlines()


class TestReporter:

    def test_quiet_mode_shows_only_broken_results(self):
        reporter, lines = report_all(0, OK, MISSING, DOWN)

        assert len(lines) == 2
        assert set(lines) == {format_result(MISSING), format_result(DOWN)}
        assert reporter.total == 3

    def test_verbose_mode_shows_everything(self):
        _, lines = report_all(1, OK, MISSING, DOWN)

        assert set(lines) == {"200 - http://example.com/", format_result(MISSING), format_result(DOWN)}

    def test_line_formats(self):
        assert format_result(OK) == "200 - http://example.com/"
        assert format_result(MISSING) == "404 - http://example.com/missing (found on http://example.com/)"
        assert format_result(DOWN) == "ERR - http://down.example.org/ (timeout)"

    @pytest.mark.parametrize("results,code", [
        ((OK,), 0),
        ((OK, MISSING), 1),
        ((DOWN,), 1),
        ((), 0),
    ])
    def test_exit_code(self, results, code):
        reporter, _ = report_all(0, *results)

        assert reporter.exit_code == code
        assert reporter.has_broken is bool(code)

    @pytest.mark.asyncio
    async def test_summary_lists_broken_links_with_reference_counts(self):
        frontier = URLFrontier(CrawlPolicy(seed_url="http://example.com/"))
        for _ in range(3):
            await frontier.offer(MISSING.url, 1)

        stream = io.StringIO()
        reporter = Reporter(1, stream)
        reporter.report(OK)
        reporter.report(MISSING)
        reporter.print_summary(frontier)

        output = stream.getvalue()
        assert "Checked 2 links, 1 broken." in output
        assert "404 - http://example.com/missing (referenced 3x)" in output

    def test_summary_is_silent_when_quiet(self):
        reporter, _ = report_all(0, MISSING)
        stream = reporter.stream

        before = stream.getvalue()
        reporter.print_summary()

        assert stream.getvalue() == before
