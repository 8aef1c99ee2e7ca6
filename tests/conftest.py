from __future__ import annotations

import logging
import threading
import time
from collections import Counter
from typing import Dict, Optional, Tuple, Union

import pytest

from sitecrawler.fetch import FetchError, FetchResponse

Page = Union[Tuple[int, str], Exception]


def page(*links: str) -> str:
    anchors = "".join(f'<a href="{href}">link</a>' for href in links)
    return f"<html><body>{anchors}</body></html>"


class FakeFetcher:
    """In-memory site that counts calls and concurrent entries."""

    def __init__(self, pages: Dict[str, Page], delay: float = 0.0) -> None:
        self.pages = pages
        self.delay = delay
        self.calls: Counter = Counter()
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False
        self._lock = threading.Lock()

    def get(self, url: str) -> FetchResponse:
        with self._lock:
            self.calls[url] += 1
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                time.sleep(self.delay)
            entry: Optional[Page] = self.pages.get(url)
            if entry is None:
                return FetchResponse(url=url, status=404, reason="Not Found", body=b"")
            if isinstance(entry, Exception):
                raise entry
            status, body = entry
            reason = "OK" if status == 200 else "Error"
            return FetchResponse(url=url, status=status, reason=reason, body=body.encode("utf-8"))
        finally:
            with self._lock:
                self.in_flight -= 1

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> "FakeFetcher":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


@pytest.fixture
def timeout_error():
    def make(url: str) -> FetchError:
        return FetchError(url, "Read timed out. (read timeout=10)")
    return make


@pytest.fixture(autouse=True)
def reset_cli_logging():
    yield
    logger = logging.getLogger("sitecrawler")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
