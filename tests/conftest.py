# File: tests/conftest.py
from __future__ import annotations

import asyncio
from collections import Counter
from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Tuple

import pytest
import pytest_asyncio
from aiohttp import web

from link_scout.config import CrawlConfig
from link_scout.logger import configure

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


def html(body: str) -> Handler:
    """Handler returning *body* as text/html."""

    async def handler(_: web.Request) -> web.Response:
        return web.Response(text=body, content_type="text/html")

    return handler


def slow_html(body: str, delay: float) -> Handler:
    async def handler(_: web.Request) -> web.Response:
        await asyncio.sleep(delay)
        return web.Response(text=body, content_type="text/html")

    return handler


def redirect(location: str) -> Handler:
    async def handler(_: web.Request) -> web.Response:
        raise web.HTTPFound(location)

    return handler


def links(*hrefs: str) -> str:
    return "<html><body>" + "".join(f'<a href="{h}">{h}</a>' for h in hrefs) + "</body></html>"


def build_app(routes: Dict[str, Handler]) -> Tuple[web.Application, Counter]:
    """Application serving *routes*; the returned counter records GET hits per path."""
    hits: Counter = Counter()

    @web.middleware
    async def count_hits(request: web.Request, handler: Handler) -> web.StreamResponse:
        hits[request.path] += 1
        return await handler(request)

    app = web.Application(middlewares=[count_hits])
    for path, handler in routes.items():
        app.router.add_get(path, handler)
    return app, hits


@pytest_asyncio.fixture
async def serve_app():
    """Start an aiohttp application on a free local port and return its base URL."""
    runners: List[web.AppRunner] = []

    async def _serve(app: web.Application) -> str:
        runner = web.AppRunner(app)
        await runner.setup()
        site = web.TCPSite(runner, "127.0.0.1", 0)
        await site.start()
        runners.append(runner)
        port = runner.addresses[0][1]
        return f"http://127.0.0.1:{port}"

    yield _serve
    for runner in runners:
        await runner.cleanup()


@pytest.fixture()
def make_config(tmp_path: Path) -> Callable[..., CrawlConfig]:
    """CrawlConfig factory with fast test defaults (no pacing, short timeout)."""

    def _make(seed_url: str, **overrides) -> CrawlConfig:
        values = dict(
            seed_url=seed_url,
            concurrency=3,
            delay_ms=0,
            timeout_ms=2000,
            output_path=tmp_path / "crawled-urls.csv",
            progress_interval=60.0,
        )
        values.update(overrides)
        return CrawlConfig(**values)

    return _make


@pytest.fixture(autouse=True)
def reset_logging():
    """CliRunner swaps stdout; reattach the console handler after every test."""
    yield
    configure()
