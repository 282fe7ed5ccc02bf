"""
Link extraction and URL normalization utilities for LinkScout.
"""
from __future__ import annotations

from typing import Optional, Set
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup
from bs4.element import Tag
from yarl import URL

from link_scout.logger import logger

__all__ = ("canonical_url", "normalize_url", "hostname_of", "is_internal", "extract_links")


def canonical_url(url: str) -> str:
    """
    Spell *url* the way the HTTP client does: lower-case IDNA host, no default
    port, dot segments resolved. Raises ValueError for URLs yarl rejects.
    """
    return str(URL(url))


def normalize_url(url: str) -> str:
    """
    Canonical form used for deduplication: drop the fragment and any trailing slashes.

    Idempotent, so already-normalized URLs pass through unchanged.
    """
    return url.split("#", 1)[0].rstrip("/")


def hostname_of(url: str) -> Optional[str]:
    """Return the hostname of *url* or None when it has none or cannot be parsed."""
    try:
        return urlparse(url).hostname
    except ValueError:
        return None


def is_internal(url: str, root_host: str) -> bool:
    """True iff the hostname of *url* equals *root_host* exactly."""
    return hostname_of(url) == root_host


def extract_links(html: str, page_url: str, root_host: str) -> Set[str]:
    """
    Extract normalized internal links from the anchors of an HTML document.

    Hrefs that cannot be resolved against *page_url* are skipped one by one;
    a document that cannot be parsed at all yields an empty set.
    """
    try:
        soup = BeautifulSoup(html, "html.parser")
        anchors = soup.find_all("a", href=True)
    except Exception as exc:
        logger.error("Parse error for %s: %s", page_url, exc)
        return set()

    links: Set[str] = set()
    for tag in anchors:
        if not isinstance(tag, Tag):
            continue
        href = tag.get("href")
        if not isinstance(href, str) or not href:
            continue
        try:
            absolute = canonical_url(urljoin(page_url, href.strip()))
        except ValueError:
            logger.debug("Skipping malformed href on %s: %r", page_url, href)
            continue
        if not is_internal(absolute, root_host):
            continue
        link = normalize_url(absolute)
        if link not in links:
            links.add(link)
            logger.debug("Found link: %s", link)
    return links
