"""
Core crawl data structures: the frontier (dedup set) and URL helpers.
"""
from __future__ import annotations

import threading
from collections import defaultdict
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Union
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup, SoupStrainer

# Status of a record that has been claimed but not fetched yet
PENDING_STATUS = 0
# Status of a record whose fetch raised instead of returning a response
FAILED_STATUS = -1

# SoupStrainer to parse only <a> tags (faster link extraction)
LINK_STRAINER = SoupStrainer("a", href=True)


class FrontierError(LookupError):
    """Base class for frontier bookkeeping errors."""


class UnclaimedURLError(FrontierError):
    """A result was recorded for a URL that was never claimed."""


class AlreadyRecordedError(FrontierError):
    """A second result was recorded for the same URL."""


@dataclass(slots=True)
class CrawlRecord:
    """Outcome of fetching a single URL."""
    url: str
    status: int = PENDING_STATUS
    reason: str = ""
    latency: float = 0.0
    error: Optional[str] = None

    @property
    def pending(self) -> bool:
        return self.status == PENDING_STATUS

    @property
    def failed(self) -> bool:
        return self.status == FAILED_STATUS


@dataclass(slots=True)
class CrawlSnapshot:
    """Read-only view of a finished crawl, records sorted by URL."""
    records: List[CrawlRecord] = field(default_factory=list)
    tally: Dict[int, int] = field(default_factory=dict)

    @property
    def completed(self) -> int:
        return sum(1 for r in self.records if not r.pending)


class Frontier:
    """
    Every URL ever claimed for crawling, mapped to its outcome.

    A URL is fetched only by the caller whose claim() inserted it. The status
    tally is updated under the same lock as the record it counts.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: Dict[str, CrawlRecord] = {}
        self._tally: Dict[int, int] = defaultdict(int)

    def claim(self, url: str) -> bool:
        """Insert a pending record for url. Returns False if it was already present."""
        with self._lock:
            if url in self._records:
                return False
            self._records[url] = CrawlRecord(url=url)
            return True

    def record(
        self,
        url: str,
        status: int,
        latency: float,
        reason: str = "",
        error: Optional[str] = None,
    ) -> None:
        """Store the final outcome for a claimed URL and count its status."""
        with self._lock:
            rec = self._records.get(url)
            if rec is None:
                raise UnclaimedURLError(f"URL was never claimed: {url}")
            if not rec.pending:
                raise AlreadyRecordedError(f"URL already has a result: {url}")
            rec.status = status
            rec.reason = reason
            rec.latency = latency
            rec.error = error
            self._tally[status] += 1

    def fail(self, url: str, latency: float, error: str) -> None:
        self.record(url, FAILED_STATUS, latency, error=error)

    def fail_if_pending(self, url: str, latency: float, error: str) -> bool:
        """Fail url unless a result was already recorded. Returns True if it was failed here."""
        with self._lock:
            rec = self._records.get(url)
            if rec is None or not rec.pending:
                return False
            rec.status = FAILED_STATUS
            rec.latency = latency
            rec.error = error
            self._tally[FAILED_STATUS] += 1
            return True

    def snapshot(self) -> CrawlSnapshot:
        # Copies are taken so the snapshot stays valid if the frontier is reused
        with self._lock:
            records = [replace(self._records[u]) for u in sorted(self._records)]
            tally = dict(self._tally)
        return CrawlSnapshot(records=records, tally=tally)

    def __contains__(self, url: object) -> bool:
        with self._lock:
            return url in self._records

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


def resolve_link(href: Optional[str], base: str) -> Optional[str]:
    """
    Resolve href against the URL of the page it was found on.

    Query strings and fragments are kept; they are part of the URL's identity.
    Returns None when href is empty or does not resolve to an absolute URL.
    """
    if not href:
        return None
    href = href.strip()
    if not href:
        return None

    try:
        joined = urljoin(base, href)
        parsed = urlparse(joined)
        # Accessing port validates it ("http://host:abc" raises here)
        parsed.port
    except ValueError:
        return None

    if not parsed.scheme or not parsed.netloc:
        return None
    return joined


def host_of(url: str) -> str:
    """Host and port of url, without user-info. Case is preserved."""
    netloc = urlparse(url).netloc
    return netloc.rpartition("@")[2]


def same_host(url: str, base: str) -> bool:
    """Check if url has the same host as base. Scheme is ignored."""
    return host_of(url) == host_of(base)


def extract_links(html: Union[str, bytes]) -> List[str]:
    """Extract all href values from <a> tags using optimized parsing."""
    soup = BeautifulSoup(html, "lxml", parse_only=LINK_STRAINER)
    return [a["href"] for a in soup.find_all("a") if a.get("href")]
