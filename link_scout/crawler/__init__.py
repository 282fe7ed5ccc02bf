"""Crawl engine: frontier, fetcher, link extractor and the async scheduler."""

from link_scout.crawler.crawler import AsyncCrawler, CrawlState
from link_scout.crawler.fetcher import Fetcher
from link_scout.crawler.frontier import Frontier, URLState
from link_scout.crawler.link_extractor import canonical_url, extract_links, is_internal, normalize_url
from link_scout.crawler.models import CrawlProgress, FetchResult, FetchStatus, FrontierSnapshot, PageData

__all__ = [
    "AsyncCrawler",
    "CrawlState",
    "Fetcher",
    "Frontier",
    "URLState",
    "canonical_url",
    "extract_links",
    "is_internal",
    "normalize_url",
    "CrawlProgress",
    "FetchResult",
    "FetchStatus",
    "FrontierSnapshot",
    "PageData",
]
