"""
Command-line interface for the crawler.
"""
from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from sitecrawler.config import (
    DEFAULT_CONCURRENCY,
    DEFAULT_TIMEOUT_S,
    DEFAULT_USER_AGENT,
    CrawlConfig,
    parse_headers,
)
from sitecrawler.core import CrawlSnapshot
from sitecrawler.fetch import Fetcher
from sitecrawler.report import render
from sitecrawler.scheduler import Crawler
from sitecrawler.sitemap import SitemapError, SitemapExpander

logger = logging.getLogger("sitecrawler")


def positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Crawl all same-host links from a URL or sitemap and report status codes and response times."
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--url", help="URL to start crawling from")
    source.add_argument("--sitemap", help="URL of the sitemap.xml (or sitemap index)")
    parser.add_argument(
        "-c", "--concurrency", type=positive_int, default=DEFAULT_CONCURRENCY,
        help=f"Max number of concurrent crawls (default: {DEFAULT_CONCURRENCY})",
    )
    parser.add_argument("--username", default="", help="HTTP basic auth username")
    parser.add_argument("--password", default="", help="HTTP basic auth password")
    parser.add_argument(
        "--headers", default="",
        help="Custom headers to include in requests (format: Header1:Value1,Header2:Value2,...)",
    )
    parser.add_argument(
        "--timeout", type=float, default=DEFAULT_TIMEOUT_S,
        help=f"Request timeout in seconds (default: {DEFAULT_TIMEOUT_S:g})",
    )
    parser.add_argument("--user-agent", default=DEFAULT_USER_AGENT, help="User-Agent header")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show progress of the links being crawled")
    return parser


def configure_logging(verbose: bool) -> None:
    logger.setLevel(logging.INFO if verbose else logging.WARNING)
    # Avoid duplicate handlers if main() runs more than once in a process
    if logger.handlers:
        return
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    logger.addHandler(handler)


def build_config(args: argparse.Namespace) -> CrawlConfig:
    return CrawlConfig(
        concurrency=args.concurrency,
        timeout=args.timeout,
        username=args.username,
        password=args.password,
        headers=parse_headers(args.headers),
        user_agent=args.user_agent,
        verbose=args.verbose,
    )


def run(args: argparse.Namespace, config: CrawlConfig, fetcher: Optional[Fetcher] = None) -> CrawlSnapshot:
    """Run one crawl for parsed arguments. Raises SitemapError if the root sitemap fails."""
    fetcher = fetcher or Fetcher(config)

    with fetcher, Crawler(fetcher, config) as crawler:
        if args.sitemap:
            SitemapExpander(fetcher, crawler.enqueue).expand(args.sitemap)
            crawler.wait()
            return crawler.frontier.snapshot()
        return crawler.start([args.url])


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the crawler CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if not (args.url or args.sitemap):
        parser.error("Please provide a starting URL using the --url or --sitemap parameter.")
    try:
        config = build_config(args)
    except ValueError as e:
        parser.error(str(e))
    configure_logging(args.verbose)

    try:
        snapshot = run(args, config)
    except SitemapError as e:
        sys.stderr.write(f"{e}\n")
        return 1

    sys.stdout.write("\n" + render(snapshot, color=sys.stdout.isatty()))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
