"""End-to-end tests for the command-line entry point and exit codes."""

import io

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

import main
from linkcrawler.crawler import scheduler as scheduler_module

from .support import StubFetcher, make_config, page

SEED = "http://example.com/"


@pytest.fixture
def stub_site(monkeypatch):
    """Route the CLI's fetcher to an in-memory site."""
    sites = {}

    def install(site):
        fetcher = StubFetcher(site)
        sites['fetcher'] = fetcher
        monkeypatch.setattr(scheduler_module, 'WebFetcher', lambda **kwargs: fetcher)
        return fetcher

    return install


class TestExitCodes:

    def test_one_broken_link_exits_1(self, stub_site, capsys):
        stub_site({SEED: page("/ok", "/missing"), "http://example.com/ok": page()})

        assert main.main([SEED]) == main.EXIT_BROKEN_LINKS

        out = capsys.readouterr().out
        assert "404 - http://example.com/missing (found on http://example.com/)" in out
        assert "http://example.com/ok" not in out

    def test_no_broken_links_exits_0(self, stub_site, capsys):
        fetcher = stub_site({SEED: page("/ok"), "http://example.com/ok": page()})

        assert main.main([SEED]) == main.EXIT_OK

        assert capsys.readouterr().out == ""
        assert fetcher.started and fetcher.closed

    def test_verbose_prints_every_result_and_summary(self, stub_site, capsys):
        stub_site({SEED: page("/ok"), "http://example.com/ok": page()})

        assert main.main([SEED, "-v"]) == main.EXIT_OK

        out = capsys.readouterr().out
        assert "200 - http://example.com/ok" in out
        assert "Checked 2 links, 0 broken." in out

    def test_limit_and_restriction_flags(self, stub_site):
        fetcher = stub_site({SEED: page("/a", "/b", "https://other.com/"), "http://example.com/a": page()})

        assert main.main([SEED, "--restrict-on-domain", "--limit", "2"]) == main.EXIT_OK
        assert set(fetcher.fetched) == {SEED, "http://example.com/a"}

    def test_bare_domain_seed(self, stub_site):
        fetcher = stub_site({SEED: page()})

        assert main.main(["example.com"]) == main.EXIT_OK
        assert fetcher.fetched == [SEED]


class TestArgumentErrors:

    def test_help_exits_0_without_crawling(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main.main(["--help"])

        assert exc_info.value.code == 0
        assert "--restrict-on-domain" in capsys.readouterr().out

    def test_missing_entrypoint_exits_2(self):
        with pytest.raises(SystemExit) as exc_info:
            main.main([])

        assert exc_info.value.code == 2

    def test_non_numeric_limit_exits_2(self):
        with pytest.raises(SystemExit) as exc_info:
            main.main([SEED, "--limit", "many"])

        assert exc_info.value.code == 2

    @pytest.mark.parametrize("argv", [
        [SEED, "--limit", "-1"],
        ["ftp://example.com/"],
        ["http://"],
        [SEED, "--concurrency", "0"],
        [SEED, "--timeout", "0"],
        [SEED, "--config", "/nonexistent/linkcrawler.yaml"],
    ])
    def test_configuration_errors_exit_2(self, argv, capsys):
        assert main.main(argv) == main.EXIT_CONFIG_ERROR
        assert "Error:" in capsys.readouterr().err

    @pytest.mark.parametrize("text", [
        "logging:\n  level: 10\n",
        "monitoring:\n  prometheus_port: abc\n",
    ])
    def test_mistyped_config_values_exit_2(self, tmp_path, text, capsys):
        path = tmp_path / "linkcrawler.yaml"
        path.write_text(text)

        assert main.main([SEED, "--config", str(path)]) == main.EXIT_CONFIG_ERROR
        assert "Error:" in capsys.readouterr().err

    @pytest.mark.parametrize("seed", ["mailto:someone@example.com", "javascript:alert(1)"])
    def test_non_http_seed_exits_2(self, seed, capsys):
        assert main.main([seed]) == main.EXIT_CONFIG_ERROR
        assert "Error:" in capsys.readouterr().err


@pytest.mark.asyncio
class TestCrawlerAppOverHttp:

    @staticmethod
    def build_site(broken: bool) -> web.Application:
        async def home(request):
            links = ["/about", "/missing"] if broken else ["/about"]
            return web.Response(text=page(*links), content_type='text/html')

        async def about(request):
            return web.Response(text=page("/"), content_type='text/html')

        app = web.Application()
        app.router.add_get('/', home)
        app.router.add_get('/about', about)
        return app

    async def test_site_with_broken_link(self):
        async with TestServer(self.build_site(broken=True)) as server:
            config = make_config(str(server.make_url('/')), restrict_on_domain=True)
            stream = io.StringIO()

            code = await main.CrawlerApp(stream=stream).run(config)

        assert code == 1
        assert "404 - " in stream.getvalue()

    async def test_site_without_broken_links(self):
        async with TestServer(self.build_site(broken=False)) as server:
            config = make_config(str(server.make_url('/')), restrict_on_domain=True)
            stream = io.StringIO()

            code = await main.CrawlerApp(stream=stream).run(config)

        assert code == 0
        assert stream.getvalue() == ""
