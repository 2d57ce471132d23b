# link_scout/report/json_report.py

"""
Генерация JSON-отчётов для проекта LinkScout.

Два независимых артефакта:

* ``links_by_page.json``: ссылки, найденные на каждой странице,
  вместе со статусом загрузки;
* ``all_links.json``: отсортированный список всех уникальных ссылок.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, TextIO, Union

from link_scout.aggregator import CrawlReport

LINKS_BY_PAGE_FILENAME = "links_by_page.json"
ALL_LINKS_FILENAME = "all_links.json"


def per_page_payload(report: CrawlReport) -> Dict[str, Any]:
    """Словарь ``url -> {status, status_code, links[, error, redirected_to]}`` по всем страницам."""
    payload: Dict[str, Any] = {}
    for page in sorted(report.pages.values(), key=lambda p: p.url):
        entry = page.to_dict()
        entry.pop("url")
        payload[page.url] = entry
    return payload


def unique_links_payload(report: CrawlReport) -> Dict[str, Any]:
    return {
        "seed": report.seed,
        "count": report.unique_link_count,
        "links": report.unique_links_sorted(),
    }


class JsonFileSink:
    """Пишет оба JSON-артефакта в папку *output_dir*."""

    def __init__(self, output_dir: Union[Path, str], *, pretty: bool = False) -> None:
        self.output_dir = Path(output_dir)
        self.pretty = pretty

    @property
    def per_page_path(self) -> Path:
        return self.output_dir / LINKS_BY_PAGE_FILENAME

    @property
    def unique_links_path(self) -> Path:
        return self.output_dir / ALL_LINKS_FILENAME

    def write_per_page_links(self, report: CrawlReport) -> Path:
        return self._dump(per_page_payload(report), self.per_page_path)

    def write_unique_links(self, report: CrawlReport) -> Path:
        return self._dump(unique_links_payload(report), self.unique_links_path)

    def _dump(self, data: Dict[str, Any], path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2 if self.pretty else None)
        return path


class JsonStreamSink:
    """Печатает оба JSON-документа в текстовый поток (например, stdout)."""

    def __init__(self, stream: TextIO, *, pretty: bool = False) -> None:
        self.stream = stream
        self.pretty = pretty

    def write_per_page_links(self, report: CrawlReport) -> None:
        self._dump(per_page_payload(report))

    def write_unique_links(self, report: CrawlReport) -> None:
        self._dump(unique_links_payload(report))

    def _dump(self, data: Dict[str, Any]) -> None:
        self.stream.write(json.dumps(data, ensure_ascii=False, indent=2 if self.pretty else None))
        self.stream.write("\n")
        self.stream.flush()
