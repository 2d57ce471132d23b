# File: tests/conftest.py
from __future__ import annotations

import asyncio
from collections import Counter
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional

import pytest
from aiohttp import web

from link_scout.config import CrawlerConfig
from link_scout.crawler.models import FetchResult
from link_scout.errors import FailureKind, FetchFailure


def html_page(*hrefs: str) -> str:
    """Build a tiny HTML document with one anchor per href."""
    anchors = "".join(f'<a href="{h}">{h}</a>' for h in hrefs)
    return f"<html><body>{anchors}</body></html>"


class MockSite:
    """
    In-memory fetcher. ``pages`` maps URL -> HTML (status 200) or
    ``(status, html)``; unknown URLs answer 404.
    """

    def __init__(
        self,
        pages: Dict[str, object],
        *,
        redirects: Optional[Dict[str, str]] = None,
        delay: float = 0.0,
        content_types: Optional[Dict[str, str]] = None,
    ) -> None:
        self.pages = pages
        self.redirects = redirects or {}
        self.delay = delay
        self.content_types = content_types or {}
        self.calls: Counter = Counter()
        self.active = 0
        self.max_active = 0

    async def fetch(self, url: str) -> FetchResult:
        self.calls[url] += 1
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            else:
                await asyncio.sleep(0)
            final = self.redirects.get(url, url)
            entry = self.pages.get(final)
            if entry is None:
                return FetchResult.failed(url, FetchFailure(FailureKind.HTTP, "HTTP 404", 404))
            status, html = entry if isinstance(entry, tuple) else (200, entry)
            if not 200 <= status < 300:
                return FetchResult.failed(
                    url, FetchFailure(FailureKind.HTTP, f"HTTP {status}", status)
                )
            ctype = self.content_types.get(final, "text/html")
            return FetchResult.success(url, status, html.encode("utf-8"), final, ctype)
        finally:
            self.active -= 1

    @property
    def total_calls(self) -> int:
        return sum(self.calls.values())


@pytest.fixture()
def example_site() -> Dict[str, object]:
    """The three-page site with a cycle and one external link."""
    return {
        "https://example.com/": html_page("/about", "https://external.com/x"),
        "https://example.com/about": html_page("/", "/contact"),
        "https://example.com/contact": html_page(),
    }


@pytest.fixture()
def basic_config() -> CrawlerConfig:
    return CrawlerConfig(workers=4, timeout=2.0, idle_backoff=0.01)


@pytest.fixture()
def site_factory():
    """Return the :class:`MockSite` class for building ad-hoc sites."""
    return MockSite


@pytest.fixture()
def page_html():
    return html_page


@asynccontextmanager
async def serve_app(app: web.Application) -> AsyncIterator[str]:
    """Start *app* on a free local port, yield its base URL, ensure cleanup."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", 0)
    await site.start()
    try:
        port = runner.addresses[0][1]
        yield f"http://127.0.0.1:{port}"
    finally:
        await runner.cleanup()


@pytest.fixture()
def app_server():
    return serve_app
