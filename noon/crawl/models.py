"""Data models and error types for the crawl submodule."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field


class ScanAborted(Exception):
    """Raised when a crawl observes its cancel signal."""

    def __init__(self, message: str = "aborted") -> None:
        super().__init__(message)


class FetchError(Exception):
    """A URL could not be fetched (network failure or non-success status)."""

    def __init__(self, url: str, reason: str, status_code: int | None = None) -> None:
        super().__init__(f"fetch failed for {url}: {reason}")
        self.url = url
        self.reason = reason
        self.status_code = status_code


@dataclass
class CrawlState:
    """Mutable state of one top-level crawl.

    ``visited`` is only touched by the sitemap resolver, which recurses
    sequentially; ``cancel`` is shared with every worker.
    """

    visited: set[str] = field(default_factory=set)
    cancel: asyncio.Event = field(default_factory=asyncio.Event)

    @property
    def aborted(self) -> bool:
        return self.cancel.is_set()

    def check(self) -> None:
        if self.cancel.is_set():
            raise ScanAborted()


@dataclass
class CrawlPage:
    """Palindromes found on one crawled page."""

    url: str
    words: list[str] = field(default_factory=list)
