# File: tests/test_coordinator.py
# Crawl engine tests against in-memory sites (see conftest.MockSite).
from __future__ import annotations

import asyncio

import pytest

from link_scout.config import CrawlerConfig
from link_scout.crawler.coordinator import CrawlCoordinator, CrawlState
from link_scout.crawler.models import FetchResult, PageStatus
from link_scout.errors import ExtractionFailure, InvalidSeed

ROOT = "https://example.com/"
ABOUT = "https://example.com/about"
CONTACT = "https://example.com/contact"
EXTERNAL = "https://external.com/x"


def config_for(workers: int, **kwargs) -> CrawlerConfig:
    return CrawlerConfig(workers=workers, idle_backoff=0.01, **kwargs)


async def crawl(site, seed: str = ROOT, workers: int = 4, **kwargs):
    coordinator = CrawlCoordinator(site, config_for(workers, **kwargs))
    report = await asyncio.wait_for(coordinator.run(seed), timeout=10)
    return coordinator, report


# --------------------------------------------------------------------------- #
#                            End-to-end scenarios                             #
# --------------------------------------------------------------------------- #


@pytest.mark.asyncio()
async def test_example_site_with_cycle(site_factory, example_site):
    site = site_factory(example_site)
    coordinator, report = await crawl(site)

    assert coordinator.state is CrawlState.COMPLETED
    assert set(report.pages) == {ROOT, ABOUT, CONTACT}
    assert report.unique_links == {ABOUT, EXTERNAL, ROOT, CONTACT}
    assert report.unique_link_count == 4
    assert all(count == 1 for count in site.calls.values())
    assert site.total_calls == 3
    assert report.pages[ROOT].links == (ABOUT, EXTERNAL)
    assert report.pages[ABOUT].links == (ROOT, CONTACT)
    assert report.pages[CONTACT].links == ()
    assert not report.truncated


@pytest.mark.asyncio()
async def test_failed_fetch_is_recorded(site_factory, example_site):
    example_site[CONTACT] = (500, "<h1>oops</h1>")
    site = site_factory(example_site)
    _, report = await crawl(site)

    contact = report.pages[CONTACT]
    assert contact.status is PageStatus.FAILED
    assert contact.links == ()
    assert contact.status_code == 500
    assert "500" in contact.error
    assert report.failed_pages == [contact]
    assert report.unique_link_count == 4
    assert site.calls[CONTACT] == 1


@pytest.mark.asyncio()
async def test_failed_seed_still_produces_report(site_factory):
    site = site_factory({})
    _, report = await crawl(site)
    assert list(report.pages) == [ROOT]
    assert report.pages[ROOT].status is PageStatus.FAILED
    assert report.unique_link_count == 0


@pytest.mark.asyncio()
async def test_invalid_seed_aborts_before_fetching(site_factory):
    site = site_factory({})
    coordinator = CrawlCoordinator(site, config_for(2))
    with pytest.raises(InvalidSeed):
        await coordinator.run("ftp://example.com/")
    assert site.total_calls == 0


# --------------------------------------------------------------------------- #
#                         Dedup and concurrency                               #
# --------------------------------------------------------------------------- #


def dense_site(page_html, size: int = 30):
    """Every page links to every other page plus a few spellings of the root."""
    urls = [f"https://example.com/p{i}" for i in range(size)]
    pages = {}
    for i, url in enumerate(urls):
        hrefs = [u for u in urls if u != url] + ["/", "https://EXAMPLE.com:443/", f"/p{i}/#frag"]
        pages[url] = page_html(*hrefs)
    pages[ROOT] = page_html(*urls, "https://other.org/")
    return pages


@pytest.mark.asyncio()
@pytest.mark.parametrize("workers", [1, 2, 8, 16])
async def test_each_url_fetched_at_most_once(site_factory, page_html, workers):
    site = site_factory(dense_site(page_html), delay=0.001)
    _, report = await crawl(site, workers=workers)

    in_scope_discovered = {u for u in report.unique_links if u.startswith("https://example.com/")}
    assert max(site.calls.values()) == 1
    assert site.total_calls == len(in_scope_discovered | {ROOT})
    assert len(report.pages) == 31


@pytest.mark.asyncio()
async def test_single_and_multi_worker_reports_match(site_factory, page_html):
    pages = dense_site(page_html)
    _, serial = await crawl(site_factory(pages), workers=1)
    _, parallel = await crawl(site_factory(pages, delay=0.002), workers=8)

    assert set(serial.pages) == set(parallel.pages)
    assert serial.unique_links == parallel.unique_links
    for url, record in serial.pages.items():
        assert set(record.links) == set(parallel.pages[url].links)


@pytest.mark.asyncio()
async def test_global_links_equal_union_of_page_links(site_factory, page_html):
    _, report = await crawl(site_factory(dense_site(page_html)), workers=8)
    union = set()
    for record in report.pages.values():
        union.update(record.links)
    assert union == report.unique_links


@pytest.mark.asyncio()
async def test_deep_chain_is_fully_reached(site_factory, page_html):
    depth = 40
    pages = {ROOT: page_html("/n0")}
    for i in range(depth):
        nxt = page_html(f"/n{i + 1}") if i + 1 < depth else page_html()
        pages[f"https://example.com/n{i}"] = nxt
    site = site_factory(pages)
    _, report = await crawl(site, workers=8)
    assert len(report.pages) == depth + 1
    assert all(record.ok for record in report.pages.values())


@pytest.mark.asyncio()
async def test_workers_fetch_in_parallel(site_factory, page_html):
    fanout = [f"/slow{i}" for i in range(8)]
    pages = {ROOT: page_html(*fanout)}
    pages.update({f"https://example.com{path}": page_html() for path in fanout})
    site = site_factory(pages, delay=0.05)
    _, report = await crawl(site, workers=4)
    assert len(report.pages) == 9
    assert 1 < site.max_active <= 4


# --------------------------------------------------------------------------- #
#                     Links, redirects and content types                      #
# --------------------------------------------------------------------------- #


@pytest.mark.asyncio()
async def test_malformed_and_unsupported_links_are_dropped(site_factory, page_html):
    pages = {
        ROOT: page_html("http://[::1/broken", "ftp://example.com/f", "/ok", "/ok/", "/ok#x"),
        "https://example.com/ok": page_html(),
    }
    _, report = await crawl(site_factory(pages))
    assert report.pages[ROOT].links == ("https://example.com/ok",)
    assert report.unique_links == {"https://example.com/ok"}


@pytest.mark.asyncio()
async def test_out_of_scope_links_recorded_but_not_fetched(site_factory, page_html):
    pages = {ROOT: page_html("https://sub.example.com/", "https://external.com/x")}
    site = site_factory(pages)
    _, report = await crawl(site)
    assert set(site.calls) == {ROOT}
    assert report.unique_links == {"https://sub.example.com/", EXTERNAL}


@pytest.mark.asyncio()
async def test_redirect_records_final_url(site_factory, page_html):
    pages = {
        ROOT: page_html("/old"),
        "https://example.com/new": page_html("/", "/new"),
    }
    site = site_factory(pages, redirects={"https://example.com/old": "https://example.com/new"})
    _, report = await crawl(site)

    assert "https://example.com/new" in report.pages
    assert "https://example.com/old" not in report.pages
    assert report.pages["https://example.com/new"].requested_url == "https://example.com/old"
    assert "https://example.com/new" not in site.calls
    assert site.total_calls == 2


@pytest.mark.asyncio()
async def test_redirect_to_visited_page_keeps_its_record(site_factory, page_html):
    old = "https://example.com/old"
    pages = {ROOT: page_html("/about", "/old"), ABOUT: page_html()}
    site = site_factory(pages, redirects={old: ROOT})
    _, report = await crawl(site, workers=1)

    assert set(report.pages) == {ROOT, ABOUT, old}
    root = report.pages[ROOT]
    assert root.requested_url == ROOT
    assert root.links == (ABOUT, old)
    moved = report.pages[old]
    assert moved.ok
    assert moved.links == ()
    assert moved.redirected_to == ROOT
    assert moved.to_dict()["redirected_to"] == ROOT
    assert site.calls[ROOT] == 1


@pytest.mark.asyncio()
async def test_redirect_to_pending_page_is_not_fetched_twice(site_factory, page_html):
    old = "https://example.com/old"
    new = "https://example.com/new"
    pages = {ROOT: page_html("/old", "/new"), new: page_html("/")}
    site = site_factory(pages, redirects={old: new})
    _, report = await crawl(site, workers=1)

    assert set(report.pages) == {ROOT, old, new}
    assert report.pages[new].requested_url == new
    assert report.pages[old].redirected_to == new
    assert site.calls[new] == 1


@pytest.mark.asyncio()
async def test_redirect_off_host_is_recorded_under_requested_url(site_factory, page_html):
    out = "https://example.com/out"
    pages = {ROOT: page_html("/out"), EXTERNAL: page_html("https://example.com/hidden")}
    site = site_factory(pages, redirects={out: EXTERNAL})
    _, report = await crawl(site)

    assert set(report.pages) == {ROOT, out}
    assert report.pages[out].redirected_to == EXTERNAL
    assert report.pages[out].links == ()
    assert "https://example.com/hidden" not in site.calls


@pytest.mark.asyncio()
async def test_non_html_pages_have_no_links(site_factory, page_html):
    pages = {
        ROOT: page_html("/file.pdf"),
        "https://example.com/file.pdf": page_html("/hidden"),
    }
    site = site_factory(pages, content_types={"https://example.com/file.pdf": "application/pdf"})
    _, report = await crawl(site)
    pdf = report.pages["https://example.com/file.pdf"]
    assert pdf.ok
    assert pdf.links == ()
    assert "https://example.com/hidden" not in site.calls


@pytest.mark.asyncio()
async def test_extraction_failure_counts_as_zero_links(site_factory, example_site):
    def broken_extractor(body, base_url):
        raise ExtractionFailure("unparsable")

    coordinator = CrawlCoordinator(site_factory(example_site), config_for(2), broken_extractor)
    report = await coordinator.run(ROOT)
    assert list(report.pages) == [ROOT]
    assert report.pages[ROOT].ok
    assert report.pages[ROOT].links == ()
    assert "unparsable" in report.pages[ROOT].error


@pytest.mark.asyncio()
async def test_unexpected_worker_error_propagates(site_factory, example_site):
    def exploding_extractor(body, base_url):
        raise RuntimeError("bug")

    coordinator = CrawlCoordinator(site_factory(example_site), config_for(3), exploding_extractor)
    with pytest.raises(RuntimeError, match="bug"):
        await asyncio.wait_for(coordinator.run(ROOT), timeout=5)


# --------------------------------------------------------------------------- #
#                               Safety valves                                 #
# --------------------------------------------------------------------------- #


@pytest.mark.asyncio()
async def test_max_pages_caps_the_crawl(site_factory, page_html):
    site = site_factory(dense_site(page_html))
    _, report = await crawl(site, workers=4, max_pages=5)
    assert site.total_calls == 5
    assert len(report.pages) == 5
    assert report.truncated
    assert report.unvisited > 0


@pytest.mark.asyncio()
async def test_crawl_timeout_returns_partial_report(site_factory, page_html):
    class Endless:
        """Every page links to a fresh page; each fetch takes a while."""

        def __init__(self):
            self.calls = 0

        async def fetch(self, url):
            self.calls += 1
            await asyncio.sleep(0.02)
            body = page_html(f"/page{self.calls}a", f"/page{self.calls}b").encode()
            return FetchResult.success(url, 200, body, url, "text/html")

    coordinator = CrawlCoordinator(Endless(), config_for(4, crawl_timeout=0.2))
    report = await asyncio.wait_for(coordinator.run(ROOT), timeout=5)
    assert report.truncated
    assert coordinator.state is CrawlState.COMPLETED
    assert ROOT in report.pages
