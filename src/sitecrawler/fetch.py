"""
HTTP fetch capability used by the scheduler and the sitemap expander.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

import requests
from requests.adapters import HTTPAdapter

from sitecrawler.config import CrawlConfig


class FetchError(Exception):
    """A GET request failed before a response was received."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(f"{url}: {message}")
        self.url = url
        self.message = message


@dataclass(slots=True)
class FetchResponse:
    """Status line and fully read body of a GET response."""
    url: str
    status: int
    reason: str
    body: bytes


class FetchCapability(Protocol):
    def get(self, url: str) -> FetchResponse: ...


class Fetcher:
    """Performs GET requests with the configured headers, auth and timeout."""

    def __init__(self, config: CrawlConfig, session: Optional[requests.Session] = None) -> None:
        self.config = config
        if session is None:
            session = requests.Session()
            # One pooled connection per worker, otherwise urllib3 discards the extras
            adapter = HTTPAdapter(
                pool_connections=config.concurrency,
                pool_maxsize=config.concurrency,
            )
            session.mount("http://", adapter)
            session.mount("https://", adapter)
        self.session = session
        self.session.headers["User-Agent"] = config.user_agent

    def get(self, url: str) -> FetchResponse:
        # Custom headers go on first so they can override the session defaults
        headers = dict(self.config.headers)
        try:
            resp = self.session.get(
                url,
                headers=headers,
                auth=self.config.auth,
                timeout=self.config.timeout,
                allow_redirects=True,
            )
            body = resp.content
        except requests.RequestException as e:
            raise FetchError(url, str(e) or type(e).__name__) from e

        return FetchResponse(
            url=url,
            status=resp.status_code,
            reason=resp.reason or "",
            body=body,
        )

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
