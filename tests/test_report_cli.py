import pytest

from sitecrawler import cli
from sitecrawler.core import FAILED_STATUS, CrawlRecord, CrawlSnapshot
from sitecrawler.report import RED, RESET, render

from conftest import FakeFetcher, page


def make_snapshot():
    records = [
        CrawlRecord("http://example.com/", 200, "OK", 0.1234),
        CrawlRecord("http://example.com/gone", 404, "Not Found", 0.05),
        CrawlRecord("http://example.com/slow", FAILED_STATUS, "", 10.0, "timed out"),
    ]
    return CrawlSnapshot(records=records, tally={200: 1, 404: 1, FAILED_STATUS: 1})


def test_render_plain():
    text = render(make_snapshot())
    lines = text.splitlines()

    assert lines[0] == "Crawling completed"
    assert "http://example.com/ : 200 OK | Response Time: 123.4ms" in lines
    assert "http://example.com/gone : 404 Not Found | Response Time: 50.0ms" in lines
    assert "http://example.com/slow : ERR timed out | Response Time: 10000.0ms" in lines
    breakdown = lines[lines.index("Status Breakdown:") + 1:lines.index("Summary:") - 1]
    assert breakdown == ["Status ERR: 1 pages", "Status 200: 1 pages", "Status 404: 1 pages"]
    assert lines[-1] == "Total pages crawled: 3"
    assert RED not in text


def test_render_colors_only_non_success():
    lines = render(make_snapshot(), color=True).splitlines()
    ok = next(l for l in lines if "/ : 200" in l)
    gone = next(l for l in lines if "/gone" in l)
    slow = next(l for l in lines if "/slow" in l)

    assert RED not in ok
    assert gone.startswith(RED) and gone.endswith(RESET)
    assert slow.startswith(RED)


def test_cli_requires_url_or_sitemap(capsys):
    with pytest.raises(SystemExit) as excinfo:
        cli.main([])
    assert excinfo.value.code == 2


def test_cli_rejects_both_sources():
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--url", "http://example.com/", "--sitemap", "http://example.com/sitemap.xml"])
    assert excinfo.value.code == 2


def test_cli_rejects_non_positive_concurrency():
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--url", "http://example.com/", "-c", "0"])
    assert excinfo.value.code == 2


def test_cli_crawls_and_prints_report(monkeypatch, capsys):
    fetcher = FakeFetcher({
        "http://example.com/": (200, page("/a", "https://elsewhere.net/")),
        "http://example.com/a": (200, page("/")),
    })
    monkeypatch.setattr(cli, "Fetcher", lambda config: fetcher)

    assert cli.main(["--url", "http://example.com/", "-c", "2"]) == 0

    out = capsys.readouterr().out
    assert "http://example.com/a : 200 OK" in out
    assert "elsewhere" not in out
    assert "Total pages crawled: 2" in out
    assert fetcher.closed


def test_cli_root_sitemap_failure_exits_1(monkeypatch, capsys):
    monkeypatch.setattr(cli, "Fetcher", lambda config: FakeFetcher({}))

    assert cli.main(["--sitemap", "http://example.com/sitemap.xml"]) == 1

    captured = capsys.readouterr()
    assert "Error fetching sitemap" in captured.err
    assert "Crawling completed" not in captured.out


def test_cli_root_sitemap_that_is_html_exits_1(monkeypatch, capsys):
    fetcher = FakeFetcher({
        "http://example.com/sitemap.xml": (200, "<html><body>Oops, not a sitemap</body></html>"),
    })
    monkeypatch.setattr(cli, "Fetcher", lambda config: fetcher)

    assert cli.main(["--sitemap", "http://example.com/sitemap.xml"]) == 1

    captured = capsys.readouterr()
    assert "not a sitemap document" in captured.err
    assert "Total pages crawled" not in captured.out
