# File: link_scout/report/__init__.py
"""link_scout.report: Выходные артефакты обхода (JSON и HTML)."""

from __future__ import annotations

from typing import Any, Protocol

from link_scout.aggregator import CrawlReport
from link_scout.report.html_report import render_html
from link_scout.report.json_report import JsonFileSink, JsonStreamSink


class OutputSink(Protocol):
    """Получатель итогового отчёта: два независимых артефакта."""

    def write_per_page_links(self, report: CrawlReport) -> Any:
        ...

    def write_unique_links(self, report: CrawlReport) -> Any:
        ...


def write_report(report: CrawlReport, sink: OutputSink) -> None:
    """Передаёт отчёт в sink: сначала ссылки по страницам, затем общий список."""
    sink.write_per_page_links(report)
    sink.write_unique_links(report)


__all__ = ["OutputSink", "write_report", "JsonFileSink", "JsonStreamSink", "render_html"]
