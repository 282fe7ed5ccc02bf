from __future__ import annotations

import asyncio
import logging
import time
from collections import Counter
from enum import Enum
from typing import Dict, List, Optional

from aiohttp import ClientSession

from link_scout.config import CrawlConfig
from link_scout.crawler.fetcher import Fetcher
from link_scout.crawler.frontier import Frontier
from link_scout.crawler.link_extractor import canonical_url, extract_links, hostname_of, normalize_url
from link_scout.crawler.models import CrawlProgress, FetchStatus
from link_scout.logger import LOGGER_NAME

__all__ = ("CrawlState", "GlobalPacer", "AsyncCrawler")


class CrawlState(str, Enum):
    IDLE = "idle"
    CRAWLING = "crawling"
    DRAINING = "draining"
    DONE = "done"


class GlobalPacer:
    """Spaces fetch starts by a fixed interval across all workers."""

    def __init__(self, interval: float) -> None:
        self.interval = interval
        self._lock = asyncio.Lock()
        self._last_request_ts = 0.0

    async def wait(self) -> None:
        async with self._lock:
            now = time.monotonic()
            wait = self.interval - (now - self._last_request_ts)
            if wait > 0:
                await asyncio.sleep(wait)
            self._last_request_ts = time.monotonic()


class AsyncCrawler:
    """
    Same-host crawler: a fixed pool of workers drains a URL queue until quiescence.

    Each worker fetches one URL, marks it visited in the frontier and admits
    the page's new internal links back into the queue. With the default
    "discovery" pacing the worker sleeps ``delay_ms`` before enqueueing each
    newly registered link; this spaces out one page's expansion and is not a
    global request-rate cap. "global" pacing spaces every fetch start instead.
    """

    def __init__(self, config: CrawlConfig) -> None:
        self.config = config
        self.logger = logging.getLogger(LOGGER_NAME)
        self.root_url = normalize_url(canonical_url(config.seed))
        root_host = hostname_of(self.root_url)
        if not root_host:
            raise ValueError(f"Invalid seed URL: {config.seed}")
        self.root_host: str = root_host
        self.frontier = Frontier()
        self.state = CrawlState.IDLE
        self.outcomes: Counter[FetchStatus] = Counter()
        self.session: Optional[ClientSession] = None
        self.fetcher: Optional[Fetcher] = None
        self._queue: Optional[asyncio.Queue[str]] = None
        self._active = 0
        self._admitted = 0
        self._started: Optional[float] = None
        self._delay = config.delay_ms / 1000
        self._pacer = GlobalPacer(self._delay) if config.pacing == "global" else None

    async def __aenter__(self) -> AsyncCrawler:
        self.session = ClientSession(raise_for_status=False)
        self.fetcher = Fetcher(self.session, self.config)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self.session and not self.session.closed:
            await self.session.close()

    async def crawl(self) -> Dict[str, str]:
        """Crawl from the seed until no work is queued or running; return source -> final URLs."""
        if self.fetcher is None:
            raise RuntimeError("Session not initialized")
        if self.state is not CrawlState.IDLE:
            raise RuntimeError("A crawler instance can only crawl once")

        self.logger.info("Starting crawl of %s", self.root_url)
        self._started = time.monotonic()
        self.state = CrawlState.CRAWLING
        queue: asyncio.Queue[str] = asyncio.Queue()
        self._queue = queue
        self._admit(self.root_url)
        queue.put_nowait(self.root_url)

        workers: List[asyncio.Task[None]] = [
            asyncio.create_task(self._worker(queue)) for _ in range(self.config.concurrency)
        ]
        try:
            await queue.join()
        finally:
            if self.state is CrawlState.CRAWLING:
                self.state = CrawlState.DRAINING
            for w in workers:
                w.cancel()
            await asyncio.gather(*workers, return_exceptions=True)
            self.state = CrawlState.DONE

        snapshot = self.frontier.snapshot()
        if snapshot.pending:
            self.logger.error("Crawl finished with %d URLs still pending", snapshot.pending)
        self.logger.info(
            "Crawl completed: %d visited, %d mapped, %d skipped, %d failed in %.2f s",
            snapshot.visited,
            snapshot.results,
            self.outcomes[FetchStatus.SKIP],
            self.outcomes[FetchStatus.FAIL],
            self.elapsed,
        )
        return self.frontier.results

    def stop(self) -> None:
        """Stop admitting new links; queued and in-flight URLs still finish."""
        if self.state is CrawlState.CRAWLING:
            self.logger.info("Draining: no new links will be admitted")
            self.state = CrawlState.DRAINING

    def progress(self) -> CrawlProgress:
        snapshot = self.frontier.snapshot()
        return CrawlProgress(
            pending=snapshot.pending,
            visited=snapshot.visited,
            results=snapshot.results,
            queued=self._queue.qsize() if self._queue else 0,
            active=self._active,
            elapsed=self.elapsed,
        )

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self._started if self._started is not None else 0.0

    def _admit(self, url: str) -> bool:
        if self.state is not CrawlState.CRAWLING or not self.frontier.register(url):
            return False
        self._admitted += 1
        if self.config.max_pages is not None and self._admitted >= self.config.max_pages:
            self.logger.info("Reached max_pages=%d", self.config.max_pages)
            self.stop()
        return True

    async def _worker(self, queue: asyncio.Queue[str]) -> None:
        while True:
            url = await queue.get()
            self._active += 1
            try:
                await self._process(url, queue)
            except Exception as exc:
                self.logger.error("Process error for %s: %s", url, exc, exc_info=self.config.debug)
            finally:
                if self.frontier.is_pending(url):
                    self.frontier.complete(url)
                self._active -= 1
                queue.task_done()

    async def _process(self, url: str, queue: asyncio.Queue[str]) -> None:
        assert self.fetcher is not None
        if self._pacer is not None:
            await self._pacer.wait()
        result = await self.fetcher.fetch(url)
        self.outcomes[result.status] += 1
        self.frontier.complete(url, result.final_url if result.status is FetchStatus.OK else None)
        if result.page is None:
            return

        # relative hrefs resolve against the page's own (post-redirect) address
        for link in extract_links(result.page.content, result.page.final_url, self.root_host):
            if not self._admit(link):
                continue
            if self._pacer is None and self._delay:
                await asyncio.sleep(self._delay)
            await queue.put(link)
