"""
Data models for the LinkScout crawler.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class FetchStatus(str, Enum):
    """Classification of a single fetch attempt."""

    OK = "ok"
    SKIP = "skip"
    FAIL = "fail"


@dataclass(slots=True)
class PageData:
    """Holds the source URL, the post-redirect URL and the HTML of a fetched page."""

    url: str
    final_url: str
    content: str


@dataclass(slots=True)
class FetchResult:
    """Outcome of :meth:`Fetcher.fetch`: a page for OK, a reason for SKIP/FAIL."""

    status: FetchStatus
    url: str
    page: Optional[PageData] = None
    error: Optional[str] = None

    @property
    def final_url(self) -> Optional[str]:
        return self.page.final_url if self.page else None


@dataclass(frozen=True, slots=True)
class FrontierSnapshot:
    pending: int
    visited: int
    results: int


@dataclass(frozen=True, slots=True)
class CrawlProgress:
    """Frontier counters plus scheduler load, for progress output."""

    pending: int
    visited: int
    results: int
    queued: int
    active: int
    elapsed: float

    @property
    def rate(self) -> float:
        return self.results / self.elapsed if self.elapsed > 0 else 0.0
