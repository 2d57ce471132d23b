# === FILE: link_scout/crawler/coordinator.py ===
from __future__ import annotations

import asyncio
import time
from enum import Enum
from typing import Dict, List, Optional

from link_scout.aggregator import CrawlReport, ResultAggregator
from link_scout.config import CrawlerConfig
from link_scout.crawler.frontier import Frontier
from link_scout.crawler.link_extractor import extract_links
from link_scout.crawler.models import (
    FetchResult,
    LinkExtractor,
    NormalizedURL,
    PageFetcher,
    PageRecord,
)
from link_scout.crawler.normalizer import host_of, in_scope, normalize
from link_scout.errors import CrawlError, ExtractionFailure, InvalidSeed, MalformedURL
from link_scout.logger import logger

__all__ = ("CrawlState", "CrawlCoordinator")

_HTML_TYPES = frozenset(("text/html", "application/xhtml+xml"))


class CrawlState(str, Enum):
    INITIALIZING = "initializing"
    RUNNING = "running"
    DRAINING = "draining"
    COMPLETED = "completed"


class CrawlCoordinator:
    """
    Runs a fixed pool of asyncio workers over a shared :class:`Frontier`.

    Workers only coordinate through the frontier's atomic ``offer``/``take``
    and its in-flight counter. The crawl ends when every worker has seen the
    frontier drained; the coordinator re-checks that before building the report.
    """

    def __init__(
        self,
        fetcher: PageFetcher,
        config: Optional[CrawlerConfig] = None,
        extractor: LinkExtractor = extract_links,
    ) -> None:
        self.fetcher = fetcher
        self.config = config or CrawlerConfig()
        self.extractor = extractor
        self.state = CrawlState.INITIALIZING
        self.frontier: Optional[Frontier] = None
        self.aggregator: Optional[ResultAggregator] = None
        self.seed_host = ""

    async def run(self, seed: str) -> CrawlReport:
        """Crawl everything reachable from *seed* on its host and return the report."""
        self.state = CrawlState.INITIALIZING
        try:
            root = normalize(seed)
        except MalformedURL as exc:
            raise InvalidSeed(seed, exc) from exc

        self.seed_host = host_of(root)
        self.frontier = Frontier(max_pages=self.config.max_pages)
        self.aggregator = ResultAggregator(root)
        await self.frontier.offer(root)

        logger.info("Старт обхода: %s (workers=%d)", root, self.config.workers)
        start = time.monotonic()
        truncated = False
        self.state = CrawlState.RUNNING
        try:
            if self.config.crawl_timeout:
                await asyncio.wait_for(self._run_workers(), timeout=self.config.crawl_timeout)
            else:
                await self._run_workers()
        except asyncio.TimeoutError:
            truncated = True
            logger.warning(
                "Обход не уложился в %s с, отчёт будет частичным",
                self.config.crawl_timeout,
            )

        self.state = CrawlState.DRAINING
        if not truncated:
            self._confirm_drained()
        if self.frontier.exhausted and self.frontier.pending_count:
            truncated = True
            logger.warning(
                "Достигнут лимит в %d страниц, %d найденных URL не посещены",
                self.config.max_pages,
                self.frontier.pending_count,
            )

        self.aggregator.close()
        duration = time.monotonic() - start
        report = self.aggregator.snapshot(
            truncated=truncated,
            unvisited=self.frontier.pending_count,
            duration=duration,
        )
        self.state = CrawlState.COMPLETED
        logger.info(
            "Завершено: %d страниц (%d с ошибкой), %d уникальных ссылок за %.2f с",
            len(report.pages),
            len(report.failed_pages),
            report.unique_link_count,
            duration,
        )
        return report

    async def _run_workers(self) -> None:
        workers = [
            asyncio.create_task(self._worker(i), name=f"link-scout-worker-{i}")
            for i in range(self.config.workers)
        ]
        try:
            await asyncio.gather(*workers)
        finally:
            for w in workers:
                w.cancel()
            await asyncio.gather(*workers, return_exceptions=True)

    async def _worker(self, worker_id: int) -> None:
        assert self.frontier is not None
        frontier = self.frontier
        while True:
            url = await frontier.take()
            if url is None:
                if frontier.is_drained():
                    logger.debug("Воркер %d простаивает, очередь исчерпана", worker_id)
                    return
                await frontier.wait_for_work(self.config.idle_backoff)
                continue
            try:
                logger.debug("Воркер %d -> %s", worker_id, url)
                await self.process(url)
            finally:
                await frontier.task_done()

    def _confirm_drained(self) -> None:
        assert self.frontier is not None
        if not self.frontier.is_drained():
            raise CrawlError(
                f"workers stopped with {self.frontier.pending_count} pending and "
                f"{self.frontier.in_flight} in-flight URLs"
            )

    # ------------------------------------------------------------------ #
    # Unit of work                                                       #
    # ------------------------------------------------------------------ #

    async def process(self, url: NormalizedURL) -> PageRecord:
        """Fetch *url*, record its page and feed new in-scope links to the frontier."""
        assert self.frontier is not None and self.aggregator is not None
        result = await self.fetcher.fetch(url)
        if not result.ok:
            logger.warning("Ошибка загрузки %s: %s", url, result.failure)
            page = PageRecord.failed(url, str(result.failure), result.status_code)
            self.aggregator.record(page)
            return page

        page_url = self._final_identity(url, result)
        if page_url != url:
            claimed = in_scope(page_url, self.seed_host) and await self.frontier.mark_seen(
                page_url
            )
            if not claimed:
                # цель редиректа чужая: вне домена или уже принадлежит другой задаче
                logger.debug("Редирект %s -> %s без разбора ссылок", url, page_url)
                page = PageRecord(
                    url=url,
                    status_code=result.status_code,
                    requested_url=url,
                    redirected_to=page_url,
                )
                self.aggregator.record(page)
                return page

        error: Optional[str] = None
        raw_links: List[str] = []
        if result.content_type and result.content_type not in _HTML_TYPES:
            logger.debug("Пропуск разбора ссылок %s (%s)", page_url, result.content_type)
        else:
            try:
                raw_links = list(self.extractor(result.body, page_url))
            except ExtractionFailure as exc:
                logger.warning("Не удалось разобрать %s: %s", page_url, exc)
                error = f"extraction: {exc}"

        links: Dict[NormalizedURL, None] = {}
        for raw in raw_links:
            try:
                link = normalize(raw, base=page_url)
            except MalformedURL as exc:
                logger.debug("Отброшена ссылка на %s: %s", page_url, exc)
                continue
            if link in links:
                continue
            links[link] = None
            self.aggregator.record_global_link(link)
            if in_scope(link, self.seed_host):
                await self.frontier.offer(link)

        page = PageRecord(
            url=page_url,
            links=tuple(links),
            status_code=result.status_code,
            requested_url=url,
            error=error,
        )
        self.aggregator.record(page)
        return page

    @staticmethod
    def _final_identity(url: NormalizedURL, result: FetchResult) -> NormalizedURL:
        if not result.final_url or result.final_url == url:
            return url
        try:
            return normalize(result.final_url)
        except MalformedURL:
            logger.debug("Непригодный итоговый URL %r для %s", result.final_url, url)
            return url
