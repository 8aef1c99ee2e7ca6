"""
Sitemap expansion: turns a sitemap or sitemap index into crawl seeds.
"""
from __future__ import annotations

import logging
from typing import Callable, List, Set, Tuple

from bs4 import BeautifulSoup

from sitecrawler.fetch import FetchCapability, FetchError, FetchResponse

logger = logging.getLogger(__name__)


SITEMAP_ROOTS = ("urlset", "sitemapindex")


class SitemapError(Exception):
    """The sitemap could not be fetched or parsed."""


def parse_sitemap(xml: bytes) -> Tuple[List[str], List[str]]:
    """
    Read <loc> entries from a sitemap document.

    Returns (nested sitemap URLs, page URLs). Raises SitemapError when the
    root element is not <urlset> or <sitemapindex>.
    """
    soup = BeautifulSoup(xml, "xml")
    # lxml recovers from almost anything, so an HTML error page still parses
    root = soup.find(True)
    if root is None or root.name not in SITEMAP_ROOTS:
        found = f"<{root.name}>" if root is not None else "no elements"
        raise SitemapError(f"not a sitemap document (found {found})")
    sitemaps = [loc.get_text(strip=True) for sm in soup.find_all("sitemap") for loc in sm.find_all("loc", recursive=False)]
    pages = [loc.get_text(strip=True) for entry in soup.find_all("url") for loc in entry.find_all("loc", recursive=False)]
    return [u for u in sitemaps if u], [u for u in pages if u]


class SitemapExpander:
    """
    Fetches a sitemap and hands its page URLs to enqueue.

    An index sitemap is expanded recursively; if a document lists both nested
    sitemaps and pages, only the nested sitemaps are followed. Each sitemap
    URL is fetched at most once, so cyclic indexes terminate.
    """

    def __init__(self, fetcher: FetchCapability, enqueue: Callable[[str], object]) -> None:
        self.fetcher = fetcher
        self.enqueue = enqueue
        self.seen: Set[str] = set()

    def expand(self, sitemap_url: str) -> int:
        """
        Expand sitemap_url. Failures of the root sitemap raise SitemapError;
        failures of nested sitemaps are logged and skipped.

        Returns the number of page URLs passed to enqueue.
        """
        return self._expand(sitemap_url, root=True)

    def _expand(self, sitemap_url: str, root: bool) -> int:
        if sitemap_url in self.seen:
            logger.info("Skipping already expanded sitemap %s", sitemap_url)
            return 0
        self.seen.add(sitemap_url)

        try:
            nested, pages = self._load(sitemap_url)
        except SitemapError as e:
            if root:
                raise
            logger.warning("Skipping nested sitemap: %s", e)
            return 0

        if nested:
            logger.info("Sitemap index %s lists %d sitemaps", sitemap_url, len(nested))
            return sum(self._expand(child, root=False) for child in nested)

        logger.info("Sitemap %s lists %d pages", sitemap_url, len(pages))
        for page in pages:
            self.enqueue(page)
        return len(pages)

    def _load(self, sitemap_url: str) -> Tuple[List[str], List[str]]:
        try:
            resp: FetchResponse = self.fetcher.get(sitemap_url)
        except FetchError as e:
            raise SitemapError(f"Error fetching sitemap {sitemap_url}: {e.message}") from e

        if not 200 <= resp.status < 300:
            raise SitemapError(
                f"Error fetching sitemap {sitemap_url}: HTTP {resp.status} {resp.reason}".rstrip()
            )

        try:
            return parse_sitemap(resp.body)
        except SitemapError as e:
            raise SitemapError(f"Error reading sitemap document {sitemap_url}: {e}") from e
