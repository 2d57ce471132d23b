# link_scout/crawler/frontier.py
"""
Frontier: the queue of URLs waiting to be fetched plus the ledger of every URL
ever admitted.

All state lives behind one :class:`asyncio.Condition`. ``offer`` performs its
membership check and both insertions inside a single critical section, which
is what guarantees that every URL is dispatched at most once no matter how
many workers discover it at the same time.
"""
from __future__ import annotations

import asyncio
from collections import deque
from typing import Deque, Optional, Set

from link_scout.crawler.models import NormalizedURL

__all__ = ("Frontier",)


class Frontier:
    """FIFO frontier with at-most-once admission and in-flight tracking."""

    def __init__(self, max_pages: Optional[int] = None) -> None:
        self._pending: Deque[NormalizedURL] = deque()
        self._seen: Set[NormalizedURL] = set()
        self._in_flight = 0
        self._dispatched = 0
        self._max_pages = max_pages
        self._cond = asyncio.Condition()

    # ------------------------------------------------------------------ #
    # Mutations                                                          #
    # ------------------------------------------------------------------ #

    async def offer(self, url: NormalizedURL) -> bool:
        """Admit *url* if it was never seen. Returns ``True`` on acceptance."""
        async with self._cond:
            if url in self._seen:
                return False
            self._seen.add(url)
            self._pending.append(url)
            self._cond.notify()
            return True

    async def mark_seen(self, url: NormalizedURL) -> bool:
        """Record *url* as visited without queueing it (e.g. a redirect target)."""
        async with self._cond:
            if url in self._seen:
                return False
            self._seen.add(url)
            return True

    async def take(self) -> Optional[NormalizedURL]:
        """Pop one pending URL and count it as in flight, or return ``None``."""
        async with self._cond:
            if not self._pending or self._exhausted():
                return None
            url = self._pending.popleft()
            self._in_flight += 1
            self._dispatched += 1
            return url

    async def task_done(self) -> None:
        """Mark one previously taken URL as finished."""
        async with self._cond:
            if self._in_flight <= 0:
                raise ValueError("task_done() called more times than take()")
            self._in_flight -= 1
            if self._drained():
                self._cond.notify_all()

    async def wait_for_work(self, timeout: float) -> None:
        """Sleep until work is pending, the frontier drains, or *timeout* passes."""
        async with self._cond:
            try:
                await asyncio.wait_for(
                    self._cond.wait_for(lambda: self._has_work() or self._drained()),
                    timeout=timeout,
                )
            except asyncio.TimeoutError:
                pass

    # ------------------------------------------------------------------ #
    # Queries                                                            #
    # ------------------------------------------------------------------ #

    def is_drained(self) -> bool:
        """No work can be handed out and no worker holds a taken URL."""
        return self._drained()

    @property
    def exhausted(self) -> bool:
        """True once ``max_pages`` URLs have been dispatched."""
        return self._exhausted()

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def in_flight(self) -> int:
        return self._in_flight

    @property
    def dispatched(self) -> int:
        return self._dispatched

    def __contains__(self, url: object) -> bool:
        return url in self._seen

    def __len__(self) -> int:
        return len(self._seen)

    # ------------------------------------------------------------------ #
    # Internals (caller holds the lock or runs without awaiting)         #
    # ------------------------------------------------------------------ #

    def _exhausted(self) -> bool:
        return self._max_pages is not None and self._dispatched >= self._max_pages

    def _has_work(self) -> bool:
        return bool(self._pending) and not self._exhausted()

    def _drained(self) -> bool:
        return self._in_flight == 0 and not self._has_work()
