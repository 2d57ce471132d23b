# link_scout/crawler/fetcher.py
"""
Fetcher module: performs single-attempt HTTP GET requests over aiohttp.

Every call resolves to a :class:`FetchResult`; transport errors, timeouts and
non-2xx statuses come back as failures instead of exceptions.
"""
from __future__ import annotations

import asyncio
from typing import Optional

from aiohttp import ClientError, ClientSession, ClientTimeout

from link_scout.config import CrawlerConfig
from link_scout.crawler.models import FetchResult
from link_scout.errors import FailureKind, FetchFailure
from link_scout.logger import logger


class HttpFetcher:
    """aiohttp-backed fetcher. Use as an async context manager."""

    def __init__(self, config: CrawlerConfig, session: Optional[ClientSession] = None) -> None:
        self.config = config
        self.session = session
        self._owns_session = session is None

    async def __aenter__(self) -> HttpFetcher:
        if self.session is None:
            self.session = ClientSession(
                timeout=ClientTimeout(total=self.config.timeout),
                headers={"User-Agent": self.config.user_agent},
                raise_for_status=False,
            )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()

    async def fetch(self, url: str) -> FetchResult:
        """
        GET *url* once, following redirects.

        Returns a successful FetchResult for 2xx responses, a failed one
        otherwise. No retries are attempted.
        """
        if not self.session:
            raise RuntimeError("Session not initialized")
        try:
            async with self.session.get(url, allow_redirects=True) as resp:
                final_url = str(resp.url)
                if not 200 <= resp.status < 300:
                    return FetchResult.failed(
                        url,
                        FetchFailure(FailureKind.HTTP, f"HTTP {resp.status}", resp.status),
                    )
                ctype = resp.headers.get("Content-Type", "").split(";", 1)[0].strip().lower()
                body = await resp.read()
                return FetchResult.success(url, resp.status, body, final_url, ctype)
        except asyncio.TimeoutError:
            logger.debug("Таймаут %.1f с: %s", self.config.timeout, url)
            return FetchResult.failed(
                url, FetchFailure(FailureKind.TIMEOUT, f"no response within {self.config.timeout} s")
            )
        except ClientError as exc:
            logger.debug("Ошибка клиента для %s: %r", url, exc)
            return FetchResult.failed(
                url, FetchFailure(FailureKind.NETWORK, str(exc) or type(exc).__name__)
            )
