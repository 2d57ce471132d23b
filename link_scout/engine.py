# File: link_scout/engine.py
"""link_scout.engine: связывает конфиг, HTTP-сессию, координатор обхода и выходные артефакты."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional, Union

from link_scout.aggregator import CrawlReport
from link_scout.config import CrawlerConfig, load_config
from link_scout.crawler.coordinator import CrawlCoordinator
from link_scout.crawler.fetcher import HttpFetcher
from link_scout.errors import LinkScoutError
from link_scout.logger import logger
from link_scout.report import JsonFileSink, OutputSink, write_report

__all__ = ["Engine", "crawl_site"]


async def crawl_site(seed: str, config: Optional[CrawlerConfig] = None) -> CrawlReport:
    """Открывает aiohttp-сессию и обходит сайт, начиная с *seed*."""
    config = config or CrawlerConfig()
    async with HttpFetcher(config) as fetcher:
        coordinator = CrawlCoordinator(fetcher, config)
        return await coordinator.run(seed)


class Engine:
    """Фасад для CLI и тестов: загрузка конфига, запуск обхода и запись отчётов."""

    @staticmethod
    def load_config(path: Union[str, Path, None]) -> CrawlerConfig:
        """Загружает конфиг из YAML/JSON или использует значения по умолчанию."""
        return load_config(path)

    def __init__(self, config: Optional[CrawlerConfig] = None) -> None:
        self.config = config or CrawlerConfig()

    def start_crawl(self, seed: str) -> CrawlReport:
        """Синхронно запускает обход и возвращает отчёт."""
        logger.info("Запуск обхода: %s", seed)
        try:
            return asyncio.run(crawl_site(seed, self.config))
        except LinkScoutError as exc:
            logger.error("Обход прерван: %s", exc)
            raise
        except Exception:
            logger.exception("Непредвиденный сбой обхода")
            raise

    def write(self, report: CrawlReport, sink: Optional[OutputSink] = None) -> None:
        """Пишет отчёт в sink; по умолчанию JSON-файлы в ``config.output_dir``."""
        sink = sink or JsonFileSink(self.config.output_dir, pretty=self.config.pretty)
        write_report(report, sink)
