"""
Fetcher module: one HTTP GET per URL with timeout, redirect following and
HTML / non-HTML classification.
"""
from __future__ import annotations

import asyncio
from typing import Optional

from aiohttp import ClientError, ClientResponseError, ClientSession, ClientTimeout, TooManyRedirects

from link_scout.config import CrawlConfig
from link_scout.crawler.models import FetchResult, FetchStatus, PageData
from link_scout.logger import logger

ACCEPT_HTML = "text/html,application/xhtml+xml,application/xml;q=0.9"


def build_timeout(timeout_ms: int) -> ClientTimeout:
    """Per-request timeout; 0 disables the limit."""
    return ClientTimeout(total=timeout_ms / 1000 if timeout_ms else None)


class Fetcher:
    """Fetches a page and reports whether it is HTML (OK), something else (SKIP) or failed (FAIL)."""

    def __init__(self, session: ClientSession, config: CrawlConfig) -> None:
        self.session = session
        self.config = config
        self._timeout = build_timeout(config.timeout_ms)
        self._headers = {"User-Agent": config.user_agent, "Accept": ACCEPT_HTML}

    async def fetch(self, url: str) -> FetchResult:
        logger.debug("Fetching: %s", url)
        try:
            async with self.session.get(
                url,
                headers=self._headers,
                timeout=self._timeout,
                allow_redirects=True,
                # aiohttp gives up once the hop count reaches max_redirects
                max_redirects=self.config.max_redirects + 1,
            ) as resp:
                final_url = str(resp.url)
                if not 200 <= resp.status < 300:
                    return self._fail(url, f"HTTP {resp.status}")
                ctype = resp.headers.get("Content-Type", "")
                if "html" not in ctype.lower():
                    logger.debug("Skipping non-HTML: %s (%s)", url, ctype or "no content-type")
                    return FetchResult(FetchStatus.SKIP, url, error=ctype or None)
                text = await resp.text(errors="replace")
                return FetchResult(FetchStatus.OK, url, page=PageData(url, final_url, text))
        except asyncio.TimeoutError:
            return self._fail(url, "timeout")
        except TooManyRedirects:
            return self._fail(url, "too many redirects")
        except ClientResponseError as exc:
            return self._fail(url, f"HTTP {exc.status}: {exc.message}" if exc.message else f"HTTP {exc.status}")
        except (ClientError, ValueError) as exc:
            # ValueError covers URLs aiohttp refuses to request at all
            return self._fail(url, str(exc) or type(exc).__name__)

    @staticmethod
    def _fail(url: str, reason: Optional[str]) -> FetchResult:
        logger.warning("Fetch error for %s: %s", url, reason)
        return FetchResult(FetchStatus.FAIL, url, error=reason)
