# Test-suite for the LinkScout async crawler
from __future__ import annotations

import asyncio
import time
from typing import Dict

import pytest
from aiohttp import web

import link_scout.crawler.crawler as crawler_module
from link_scout.config import CrawlConfig
from link_scout.crawler.crawler import AsyncCrawler, CrawlState
from link_scout.crawler.frontier import URLState
from link_scout.crawler.link_extractor import normalize_url
from link_scout.crawler.models import FetchStatus
from tests.conftest import build_app, html, links, redirect, slow_html

#: number of seconds a “slow” handler sleeps in the concurrency test
SLOW_SLEEP: float = 0.5


async def run_crawler(config: CrawlConfig, total_timeout: float = 15.0):
    """Run a crawl to completion inside an overall timeout; return (crawler, results)."""
    async with AsyncCrawler(config) as crawler:
        results = await asyncio.wait_for(crawler.crawl(), timeout=total_timeout)
    return crawler, results


def normalized(results: Dict[str, str]) -> Dict[str, str]:
    return {source: normalize_url(final) for source, final in results.items()}


@pytest.mark.asyncio()
async def test_internal_links_and_redirects(serve_app, make_config):
    app, hits = build_app(
        {
            "/": html(links("/b", "/c", "http://external.test/d")),
            "/b": redirect("/b2"),
            "/b2": html(links("/")),
            "/c": html("<p>leaf</p>"),
        }
    )
    base = await serve_app(app)
    crawler, results = await run_crawler(make_config(base))

    assert normalized(results) == {base: base, f"{base}/b": f"{base}/b2", f"{base}/c": f"{base}/c"}
    assert crawler.frontier.visited == {base, f"{base}/b", f"{base}/c"}
    assert crawler.frontier.state("http://external.test/d") is URLState.UNSEEN
    assert hits == {"/": 1, "/b": 1, "/b2": 1, "/c": 1}
    assert crawler.state is CrawlState.DONE


@pytest.mark.asyncio()
async def test_self_link_is_fetched_once(serve_app, make_config):
    app, hits = build_app(
        {
            "/": html(links("/", "", "#top", "./", "/index")),
            "/index": html(links("/", "/index/", "/index#again")),
        }
    )
    base = await serve_app(app)
    _, results = await run_crawler(make_config(base))

    assert hits == {"/": 1, "/index": 1}
    assert set(results) == {base, f"{base}/index"}


@pytest.mark.asyncio()
async def test_differently_spelled_self_links_are_fetched_once(serve_app, make_config):
    async def root(request: web.Request) -> web.Response:
        port = request.url.port
        body = links(f"http://LOCALHOST:{port}/", f"http://localhost:{port}/x/../", "/x/../", "./")
        return web.Response(text=body, content_type="text/html")

    app, hits = build_app({"/": root})
    port = (await serve_app(app)).rsplit(":", 1)[1]
    seed = f"http://localhost:{port}"
    _, results = await run_crawler(make_config(seed))

    assert hits == {"/": 1}
    assert set(results) == {seed}


@pytest.mark.asyncio()
async def test_timeout_marks_visited_and_crawl_continues(serve_app, make_config):
    app, hits = build_app(
        {
            "/": html(links("/e", "/f")),
            "/e": slow_html(links("/never"), 1.5),
            "/f": html(links("/g")),
            "/g": html("<p>g</p>"),
        }
    )
    base = await serve_app(app)
    crawler, results = await run_crawler(make_config(base, timeout_ms=300))

    assert f"{base}/e" not in results
    assert crawler.frontier.state(f"{base}/e") is URLState.VISITED
    assert set(results) == {base, f"{base}/f", f"{base}/g"}
    assert hits["/never"] == 0
    assert crawler.outcomes[FetchStatus.FAIL] == 1


@pytest.mark.asyncio()
async def test_non_html_and_errors_are_visited_without_results(serve_app, make_config):
    async def pdf(_):
        return web.Response(text='<a href="/hidden">not parsed</a>', content_type="application/pdf")

    app, hits = build_app({"/": html(links("/doc.pdf", "/missing", "/ok")), "/doc.pdf": pdf, "/ok": html("ok")})
    base = await serve_app(app)
    crawler, results = await run_crawler(make_config(base))

    assert set(results) == {base, f"{base}/ok"}
    assert crawler.frontier.visited == {base, f"{base}/doc.pdf", f"{base}/missing", f"{base}/ok"}
    assert hits["/hidden"] == 0
    assert crawler.outcomes == {FetchStatus.OK: 2, FetchStatus.SKIP: 1, FetchStatus.FAIL: 1}


@pytest.mark.asyncio()
async def test_dense_graph_fetches_every_url_once(serve_app, make_config):
    pages = [f"/p{i}" for i in range(20)]
    hrefs = []
    for p in pages:
        hrefs += [p, f"{p}/", f"{p}#section", f".{p}"]
    body = links(*hrefs, "/")

    routes = {"/": html(body)}
    routes.update({p: html(body) for p in pages})
    app, hits = build_app(routes)
    base = await serve_app(app)
    crawler, results = await run_crawler(make_config(base, concurrency=5))

    assert set(hits.values()) == {1}
    assert len(hits) == len(pages) + 1
    assert len(results) == len(pages) + 1
    snapshot = crawler.frontier.snapshot()
    assert snapshot.pending == 0
    assert snapshot.visited == len(crawler.frontier) == len(pages) + 1


@pytest.mark.asyncio()
async def test_concurrency(serve_app, make_config):
    """Ensure that two slow pages are fetched concurrently."""
    app, _ = build_app(
        {
            "/": html(links("/slow1", "/slow2")),
            "/slow1": slow_html("<h1>Slow1</h1>", SLOW_SLEEP),
            "/slow2": slow_html("<h1>Slow2</h1>", SLOW_SLEEP),
        }
    )
    base = await serve_app(app)
    config = make_config(base, concurrency=2)

    start = time.perf_counter()
    _, results = await run_crawler(config)
    elapsed = time.perf_counter() - start

    assert elapsed < SLOW_SLEEP * 1.8
    assert {f"{base}/slow1", f"{base}/slow2"} <= set(results)


@pytest.mark.asyncio()
async def test_concurrency_one_is_sequential(serve_app, make_config):
    app, _ = build_app(
        {
            "/": html(links("/slow1", "/slow2")),
            "/slow1": slow_html("<h1>Slow1</h1>", SLOW_SLEEP / 2),
            "/slow2": slow_html("<h1>Slow2</h1>", SLOW_SLEEP / 2),
        }
    )
    base = await serve_app(app)

    start = time.perf_counter()
    await run_crawler(make_config(base, concurrency=1))
    assert time.perf_counter() - start >= SLOW_SLEEP * 0.95


@pytest.mark.asyncio()
async def test_discovery_pacing_delays_each_new_link(serve_app, make_config):
    app, _ = build_app({"/": html(links("/a", "/b", "/c", "/a")), "/a": html(""), "/b": html(""), "/c": html("")})
    base = await serve_app(app)

    start = time.perf_counter()
    _, results = await run_crawler(make_config(base, delay_ms=100))
    elapsed = time.perf_counter() - start

    assert len(results) == 4
    assert elapsed >= 0.3 * 0.95


@pytest.mark.asyncio()
async def test_global_pacing_spaces_all_requests(serve_app, make_config):
    started = []

    @web.middleware
    async def stamp(request, handler):
        started.append(time.monotonic())
        return await handler(request)

    app, _ = build_app({"/": html(links("/a", "/b", "/c")), "/a": html(""), "/b": html(""), "/c": html("")})
    app.middlewares.append(stamp)
    base = await serve_app(app)

    _, results = await run_crawler(make_config(base, delay_ms=150, pacing="global", concurrency=3))

    assert len(results) == 4
    gaps = [b - a for a, b in zip(started, started[1:])]
    assert len(gaps) == 3
    assert min(gaps) >= 0.15 * 0.9


@pytest.mark.asyncio()
async def test_max_pages_drains_crawl(serve_app, make_config):
    pages = [f"/p{i}" for i in range(10)]
    routes = {"/": html(links(*pages))}
    routes.update({p: html(links(*pages)) for p in pages})
    app, hits = build_app(routes)
    base = await serve_app(app)

    crawler, results = await run_crawler(make_config(base, max_pages=3))

    assert len(results) == 3
    assert sum(hits.values()) == 3
    assert crawler.frontier.snapshot().pending == 0
    assert crawler.state is CrawlState.DONE


@pytest.mark.asyncio()
async def test_task_error_is_contained(serve_app, make_config, monkeypatch):
    app, hits = build_app({"/": html(links("/boom", "/fine")), "/boom": html(links("/lost")), "/fine": html("")})
    base = await serve_app(app)
    real_extract = crawler_module.extract_links

    def flaky_extract(content, page_url, root_host):
        if page_url.endswith("/boom"):
            raise RuntimeError("unexpected")
        return real_extract(content, page_url, root_host)

    monkeypatch.setattr(crawler_module, "extract_links", flaky_extract)
    crawler, results = await run_crawler(make_config(base))

    assert set(results) == {base, f"{base}/boom", f"{base}/fine"}
    assert crawler.frontier.state(f"{base}/boom") is URLState.VISITED
    assert hits["/lost"] == 0


@pytest.mark.asyncio()
async def test_fetch_exception_still_marks_visited(serve_app, make_config, monkeypatch):
    app, _ = build_app({"/": html(links("/a", "/b")), "/a": html(""), "/b": html("")})
    base = await serve_app(app)

    async with AsyncCrawler(make_config(base)) as crawler:
        real_fetch = crawler.fetcher.fetch

        async def exploding_fetch(url):
            if url.endswith("/a"):
                raise RuntimeError("fetcher bug")
            return await real_fetch(url)

        monkeypatch.setattr(crawler.fetcher, "fetch", exploding_fetch)
        results = await asyncio.wait_for(crawler.crawl(), timeout=10)

    assert set(results) == {base, f"{base}/b"}
    assert crawler.frontier.state(f"{base}/a") is URLState.VISITED
    assert crawler.frontier.snapshot().pending == 0


@pytest.mark.asyncio()
async def test_unreachable_seed_finishes_empty(make_config):
    crawler, results = await run_crawler(make_config("http://127.0.0.1:9"))
    assert results == {}
    assert crawler.frontier.visited == {"http://127.0.0.1:9"}


@pytest.mark.asyncio()
async def test_progress_and_state_lifecycle(serve_app, make_config):
    app, _ = build_app({"/": html(links("/a")), "/a": html("")})
    base = await serve_app(app)

    async with AsyncCrawler(make_config(base)) as crawler:
        assert crawler.state is CrawlState.IDLE
        assert crawler.progress().visited == 0
        await crawler.crawl()
        with pytest.raises(RuntimeError):
            await crawler.crawl()

    progress = crawler.progress()
    assert crawler.state is CrawlState.DONE
    assert (progress.pending, progress.visited, progress.results) == (0, 2, 2)
    assert progress.queued == 0 and progress.active == 0


@pytest.mark.asyncio()
async def test_crawl_requires_session(make_config):
    crawler = AsyncCrawler(make_config("http://example.com"))
    with pytest.raises(RuntimeError):
        await crawler.crawl()
