# File: link_scout/aggregator.py
"""link_scout.aggregator: накопление результатов обхода и итоговый отчёт."""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, List, Mapping, Set

from link_scout.crawler.models import NormalizedURL, PageRecord


@dataclass(frozen=True, slots=True)
class CrawlReport:
    """Итог обхода: страницы по URL и множество всех найденных ссылок."""

    seed: NormalizedURL
    pages: Mapping[NormalizedURL, PageRecord] = field(default_factory=dict)
    unique_links: FrozenSet[NormalizedURL] = frozenset()
    truncated: bool = False
    unvisited: int = 0
    duration: float = 0.0

    @property
    def unique_link_count(self) -> int:
        return len(self.unique_links)

    @property
    def successful_pages(self) -> List[PageRecord]:
        return [self.pages[u] for u in sorted(self.pages) if self.pages[u].ok]

    @property
    def failed_pages(self) -> List[PageRecord]:
        return [self.pages[u] for u in sorted(self.pages) if not self.pages[u].ok]

    def links_by_page(self) -> Dict[str, List[str]]:
        """Ссылки каждой страницы, страницы отсортированы по URL."""
        return {url: list(self.pages[url].links) for url in sorted(self.pages)}

    def unique_links_sorted(self) -> List[str]:
        return sorted(self.unique_links)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "seed": self.seed,
            "pages": [self.pages[u].to_dict() for u in sorted(self.pages)],
            "unique_links": self.unique_links_sorted(),
            "unique_link_count": self.unique_link_count,
            "truncated": self.truncated,
            "unvisited": self.unvisited,
            "duration": round(self.duration, 3),
        }

    def json(self, *, pretty: bool = False) -> str:
        """Возвращает JSON-представление отчёта."""
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2 if pretty else None)


class ResultAggregator:
    """
    Потокобезопасное хранилище результатов одного обхода.

    Записи страниц и глобальное множество ссылок защищены общим замком;
    замок никогда не удерживается через ``await``.
    """

    def __init__(self, seed: NormalizedURL) -> None:
        self.seed = seed
        self._pages: Dict[NormalizedURL, PageRecord] = {}
        self._links: Set[NormalizedURL] = set()
        self._lock = threading.Lock()
        self._closed = False

    def record(self, page: PageRecord) -> None:
        """Сохраняет запись страницы (повторная запись перезаписывает прежнюю)."""
        with self._lock:
            self._ensure_open()
            self._pages[page.url] = page

    def record_global_link(self, url: NormalizedURL) -> bool:
        """Добавляет ссылку в глобальное множество; True, если она новая."""
        with self._lock:
            self._ensure_open()
            if url in self._links:
                return False
            self._links.add(url)
            return True

    @property
    def page_count(self) -> int:
        return len(self._pages)

    @property
    def link_count(self) -> int:
        return len(self._links)

    def close(self) -> None:
        with self._lock:
            self._closed = True

    def snapshot(
        self, *, truncated: bool = False, unvisited: int = 0, duration: float = 0.0
    ) -> CrawlReport:
        """Неизменяемый отчёт; допустим только после :meth:`close`."""
        with self._lock:
            if not self._closed:
                raise RuntimeError("snapshot() requested before the crawl completed")
            return CrawlReport(
                seed=self.seed,
                pages=MappingProxyType(dict(self._pages)),
                unique_links=frozenset(self._links),
                truncated=truncated,
                unvisited=unvisited,
                duration=duration,
            )

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("aggregator is closed")


__all__ = ["CrawlReport", "ResultAggregator"]
