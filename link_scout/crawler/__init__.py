"""Crawl engine: URL normalization, frontier, fetch/extract workers and coordinator."""
