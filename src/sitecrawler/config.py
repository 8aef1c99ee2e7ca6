"""
Crawl configuration and its defaults.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

DEFAULT_CONCURRENCY = 10
DEFAULT_TIMEOUT_S = 10.0
DEFAULT_USER_AGENT = "SiteCrawler/1.0"


def parse_headers(text: Optional[str]) -> Dict[str, str]:
    """
    Parse custom headers given as "Name1:Value1,Name2:Value2".

    Pairs without a ':' separator are skipped.
    """
    headers: Dict[str, str] = {}
    if not text:
        return headers

    for pair in text.split(","):
        name, sep, value = pair.partition(":")
        if not sep:
            continue
        headers[name.strip()] = value.strip()
    return headers


@dataclass(slots=True)
class CrawlConfig:
    """Settings shared by the fetcher and the scheduler for one run."""
    concurrency: int = DEFAULT_CONCURRENCY
    timeout: float = DEFAULT_TIMEOUT_S
    username: str = ""
    password: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    user_agent: str = DEFAULT_USER_AGENT
    verbose: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.concurrency, int) or self.concurrency < 1:
            raise ValueError(f"concurrency must be a positive integer, got {self.concurrency!r}")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout!r}")

    @property
    def auth(self) -> Optional[Tuple[str, str]]:
        """Basic auth credentials, only when both are set."""
        if self.username and self.password:
            return self.username, self.password
        return None
