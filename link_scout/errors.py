# File: link_scout/errors.py
"""link_scout.errors: Exception hierarchy used across the crawler."""

from __future__ import annotations

from enum import Enum
from typing import Optional

__all__ = [
    "LinkScoutError",
    "InvalidSeed",
    "MalformedURL",
    "FailureKind",
    "FetchFailure",
    "ExtractionFailure",
    "CrawlError",
]


class LinkScoutError(Exception):
    """Base class for all LinkScout errors."""


class MalformedURL(LinkScoutError, ValueError):
    """A URL could not be parsed or uses an unsupported scheme."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"{reason}: {url!r}")
        self.url = url
        self.reason = reason


class InvalidSeed(LinkScoutError):
    """The seed URL failed normalization; the crawl cannot start."""

    def __init__(self, seed: str, cause: Optional[MalformedURL] = None) -> None:
        detail = cause.reason if cause is not None else "invalid seed URL"
        super().__init__(f"Invalid seed URL {seed!r}: {detail}")
        self.seed = seed


class FailureKind(str, Enum):
    NETWORK = "network"
    TIMEOUT = "timeout"
    HTTP = "http"


class FetchFailure(LinkScoutError):
    """A single fetch did not produce a usable 2xx response."""

    def __init__(self, kind: FailureKind, detail: str, status_code: Optional[int] = None) -> None:
        super().__init__(f"{kind.value}: {detail}")
        self.kind = kind
        self.detail = detail
        self.status_code = status_code


class ExtractionFailure(LinkScoutError):
    """Page body could not be parsed for links."""


class CrawlError(LinkScoutError):
    """The coordinator found the frontier in an inconsistent state at shutdown."""
