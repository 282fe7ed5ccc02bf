"""Periodic progress output while a crawl is running."""
from __future__ import annotations

import asyncio
import contextlib
from typing import Callable, Optional

from link_scout.crawler.models import CrawlProgress
from link_scout.logger import logger


def format_progress(progress: CrawlProgress) -> str:
    return (
        f"URLs found: {progress.results} | visited: {progress.visited} | "
        f"pending: {progress.pending} | queued: {progress.queued} | "
        f"active: {progress.active} | elapsed: {progress.elapsed:.0f}s | "
        f"rate: {progress.rate:.2f} URLs/s"
    )


class ProgressReporter:
    """
    Logs ``source()`` every *interval* seconds while active, and once more on exit.

    Usage::

        async with ProgressReporter(crawler.progress, interval=5):
            await crawler.crawl()
    """

    def __init__(self, source: Callable[[], CrawlProgress], interval: float = 5.0) -> None:
        self.source = source
        self.interval = interval
        self._task: Optional[asyncio.Task[None]] = None

    async def __aenter__(self) -> ProgressReporter:
        self._task = asyncio.create_task(self._run())
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        self.report()

    def report(self) -> CrawlProgress:
        progress = self.source()
        logger.info("Progress: %s", format_progress(progress))
        return progress

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self.report()
