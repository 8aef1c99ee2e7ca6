"""
Bounded crawl scheduler: fetches pages on a fixed-size worker pool and
expands same-host links until no work is left.
"""
from __future__ import annotations

import logging
import sys
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, Optional

from bs4.builder import ParserRejectedMarkup

from sitecrawler.config import CrawlConfig
from sitecrawler.core import (
    CrawlSnapshot,
    Frontier,
    extract_links,
    resolve_link,
    same_host,
)
from sitecrawler.fetch import FetchCapability, FetchError

logger = logging.getLogger(__name__)


class WorkTracker:
    """Counts queued and in-flight units of work; wait() returns at zero."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._outstanding = 0

    def add(self) -> None:
        with self._cond:
            self._outstanding += 1

    def done(self) -> None:
        with self._cond:
            if self._outstanding <= 0:
                raise RuntimeError("WorkTracker.done() called more times than add()")
            self._outstanding -= 1
            if self._outstanding == 0:
                self._cond.notify_all()

    def wait(self, timeout: Optional[float] = None) -> bool:
        with self._cond:
            return self._cond.wait_for(lambda: self._outstanding == 0, timeout=timeout)

    @property
    def outstanding(self) -> int:
        with self._cond:
            return self._outstanding


class Crawler:
    """
    Fetches every claimed URL exactly once with at most config.concurrency
    fetches in flight.

    enqueue() never blocks on a busy pool: admitted work waits in the
    executor's queue until a worker is free, so nothing is dropped.
    """

    def __init__(
        self,
        fetcher: FetchCapability,
        config: Optional[CrawlConfig] = None,
        frontier: Optional[Frontier] = None,
    ) -> None:
        self.fetcher = fetcher
        self.config = config or CrawlConfig()
        self.frontier = frontier if frontier is not None else Frontier()
        self._tracker = WorkTracker()
        self._executor = ThreadPoolExecutor(
            max_workers=self.config.concurrency,
            thread_name_prefix="crawl",
        )

    def enqueue(self, url: str) -> bool:
        """Schedule url for fetching unless it has been claimed before."""
        if not self.frontier.claim(url):
            return False

        self._tracker.add()
        try:
            self._executor.submit(self._run, url)
        except RuntimeError:
            # Executor already shut down; finish the claim so the tally stays consistent
            self._tracker.done()
            self.frontier.fail(url, 0.0, "crawler is closed")
            raise
        return True

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until all transitively enqueued work has finished."""
        return self._tracker.wait(timeout)

    def start(self, seed_urls: Iterable[str]) -> CrawlSnapshot:
        for url in seed_urls:
            self.enqueue(url)
        self.wait()
        return self.frontier.snapshot()

    def close(self, cancel: bool = False) -> None:
        """Shut the pool down. With cancel, queued pages are dropped and stay pending."""
        self._executor.shutdown(wait=True, cancel_futures=cancel)

    def __enter__(self) -> "Crawler":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close(cancel=exc_type is not None)

    def _run(self, url: str) -> None:
        try:
            self._crawl_page(url)
        except Exception:
            logger.exception("Unexpected error while crawling %s", url)
            self.frontier.fail_if_pending(url, 0.0, "internal error")
        finally:
            self._tracker.done()

    def _crawl_page(self, url: str) -> None:
        if self.config.verbose:
            sys.stderr.write(f"Crawling: {url}\n")
            sys.stderr.flush()

        start = time.perf_counter()
        try:
            resp = self.fetcher.get(url)
        except FetchError as e:
            latency = time.perf_counter() - start
            logger.warning("Error fetching %s: %s", url, e.message)
            self.frontier.fail(url, latency, e.message)
            return
        latency = time.perf_counter() - start

        self.frontier.record(url, resp.status, latency, reason=resp.reason)
        logger.debug("Fetched %s: %d in %.3fs", url, resp.status, latency)

        try:
            hrefs = extract_links(resp.body)
        except ParserRejectedMarkup as e:
            logger.warning("Error reading document %s: %s", url, e)
            return

        new_links = 0
        for href in hrefs:
            target = resolve_link(href, base=url)
            if not target or not same_host(target, url):
                continue
            if self.enqueue(target):
                new_links += 1

        logger.info("%s (+%d new links)", url, new_links)
