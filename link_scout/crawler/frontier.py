"""
URL frontier: the single registry of URL states and the source -> final URL mapping.

Every URL moves strictly UNSEEN -> PENDING -> VISITED. The crawler runs on one
event loop, so the mutations below never interleave and need no lock.
"""
from __future__ import annotations

from enum import Enum
from typing import Dict, Iterator, Optional, Set

from link_scout.crawler.models import FrontierSnapshot

__all__ = ("URLState", "Frontier")


class URLState(str, Enum):
    UNSEEN = "unseen"
    PENDING = "pending"
    VISITED = "visited"


class Frontier:
    """Tracks which URLs are pending or visited and where each HTML page ended up."""

    def __init__(self) -> None:
        self._pending: Set[str] = set()
        self._visited: Set[str] = set()
        self._results: Dict[str, str] = {}

    def register(self, url: str) -> bool:
        """Mark *url* pending if it was never seen. Return True only on that transition."""
        if url in self._pending or url in self._visited:
            return False
        self._pending.add(url)
        return True

    def complete(self, url: str, final_url: Optional[str] = None) -> None:
        """Move *url* from pending to visited, recording *final_url* when given."""
        if url not in self._pending:
            raise ValueError(f"URL is not pending: {url} ({self.state(url).value})")
        self._pending.remove(url)
        self._visited.add(url)
        if final_url is not None:
            self._results[url] = final_url

    def state(self, url: str) -> URLState:
        if url in self._visited:
            return URLState.VISITED
        if url in self._pending:
            return URLState.PENDING
        return URLState.UNSEEN

    def is_pending(self, url: str) -> bool:
        return url in self._pending

    def snapshot(self) -> FrontierSnapshot:
        return FrontierSnapshot(
            pending=len(self._pending),
            visited=len(self._visited),
            results=len(self._results),
        )

    @property
    def results(self) -> Dict[str, str]:
        """Copy of the source -> final URL mapping, in completion order."""
        return dict(self._results)

    @property
    def visited(self) -> Set[str]:
        return set(self._visited)

    def __contains__(self, url: object) -> bool:
        return url in self._pending or url in self._visited

    def __len__(self) -> int:
        return len(self._pending) + len(self._visited)

    def __iter__(self) -> Iterator[str]:
        yield from self._visited
        yield from self._pending
