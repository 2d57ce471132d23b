# link_scout/crawler/models.py
"""
Data models shared by the LinkScout crawler and its collaborators.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, NewType, Optional, Protocol, Sequence, Tuple

from link_scout.errors import FetchFailure

__all__ = (
    "NormalizedURL",
    "FetchResult",
    "PageStatus",
    "PageRecord",
    "PageFetcher",
    "LinkExtractor",
)

#: Canonical URL string produced by :func:`link_scout.crawler.normalizer.normalize`.
NormalizedURL = NewType("NormalizedURL", str)


@dataclass(frozen=True, slots=True)
class FetchResult:
    """Outcome of a single fetch: either a 2xx response or a failure."""

    url: str
    status_code: Optional[int] = None
    body: bytes = b""
    final_url: str = ""
    content_type: str = ""
    failure: Optional[FetchFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(
        cls,
        url: str,
        status_code: int,
        body: bytes,
        final_url: Optional[str] = None,
        content_type: str = "",
    ) -> FetchResult:
        return cls(
            url=url,
            status_code=status_code,
            body=body,
            final_url=final_url or url,
            content_type=content_type,
        )

    @classmethod
    def failed(cls, url: str, failure: FetchFailure) -> FetchResult:
        return cls(url=url, status_code=failure.status_code, final_url=url, failure=failure)


class PageStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class PageRecord:
    """Recorded outcome of fetching one page. Immutable once created."""

    url: NormalizedURL
    links: Tuple[NormalizedURL, ...] = ()
    status: PageStatus = PageStatus.SUCCESS
    status_code: Optional[int] = None
    requested_url: Optional[NormalizedURL] = None
    redirected_to: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is PageStatus.SUCCESS

    @classmethod
    def failed(
        cls, url: NormalizedURL, error: str, status_code: Optional[int] = None
    ) -> PageRecord:
        return cls(
            url=url,
            status=PageStatus.FAILED,
            status_code=status_code,
            requested_url=url,
            error=error,
        )

    def to_dict(self) -> dict:
        data: dict = {
            "url": self.url,
            "status": self.status.value,
            "status_code": self.status_code,
            "links": list(self.links),
        }
        if self.requested_url is not None and self.requested_url != self.url:
            data["requested_url"] = self.requested_url
        if self.redirected_to:
            data["redirected_to"] = self.redirected_to
        if self.error:
            data["error"] = self.error
        return data


class PageFetcher(Protocol):
    """Anything that can turn a URL into a :class:`FetchResult`."""

    async def fetch(self, url: str) -> FetchResult:
        ...


#: ``(body, base_url) -> absolute URL candidates``
LinkExtractor = Callable[[bytes, str], Sequence[str]]
