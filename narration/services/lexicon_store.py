"""TTL cache around the lexicon source with single-flight refresh."""

import asyncio
import time
from typing import Awaitable, Callable, Optional, Sequence

from narration.core.errors import MalformedSource, SourceUnavailable
from narration.core.logger import logger
from narration.models.lexicon import LexiconSnapshot, LexiconTerm

Fetcher = Callable[[], Awaitable[Sequence[LexiconTerm]]]
Clock = Callable[[], float]


class LexiconStore:
    """Holds the current lexicon snapshot and refreshes it when it goes stale.

    The fetcher and the clock are injected so staleness and refresh
    coalescing can be driven without network or real time.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        ttl_seconds: float = 300.0,
        retry_seconds: float = 30.0,
        clock: Clock = time.time,
    ):
        self.fetcher = fetcher
        self.ttl_seconds = ttl_seconds
        self.retry_seconds = retry_seconds
        self.clock = clock
        self._snapshot: Optional[LexiconSnapshot] = None
        self._inflight: Optional[asyncio.Future] = None
        self._retry_at = 0.0

    def peek(self) -> Optional[LexiconSnapshot]:
        """Current snapshot without triggering a refresh."""
        return self._snapshot

    async def get(self) -> LexiconSnapshot:
        """Return a fresh snapshot, refreshing first when missing or expired.

        A stale snapshot is served when the refresh fails; the error only
        reaches the caller when no snapshot was ever loaded. After a failed
        refresh the stale snapshot is served without refetching for
        ``retry_seconds``.
        """
        snapshot = self._snapshot
        now = self.clock()
        if snapshot is not None and (snapshot.is_fresh(now) or now < self._retry_at):
            return snapshot

        try:
            return await self.refresh()
        except (SourceUnavailable, MalformedSource) as e:
            if self._snapshot is None:
                raise
            logger.warning(f"Lexicon refresh failed, serving stale snapshot: {e}")
            return self._snapshot

    async def refresh(self) -> LexiconSnapshot:
        """Fetch a new term set and replace the snapshot.

        Concurrent callers share the refresh already in flight.
        """
        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._refresh_once())
        # shield: one cancelled caller must not cancel the fetch for the others
        return await asyncio.shield(self._inflight)

    async def _refresh_once(self) -> LexiconSnapshot:
        try:
            terms = await self.fetcher()
            now = self.clock()
            snapshot = LexiconSnapshot(
                terms=tuple(terms),
                fetched_at=now,
                expires_at=now + self.ttl_seconds,
            )
            self._snapshot = snapshot
            self._retry_at = 0.0
            logger.info(f"Lexicon refreshed: {len(snapshot.terms)} terms, valid for {self.ttl_seconds:.0f}s")
            return snapshot
        except (SourceUnavailable, MalformedSource):
            self._retry_at = self.clock() + self.retry_seconds
            raise
        finally:
            self._inflight = None

    def status(self) -> dict:
        snapshot = self._snapshot
        return {
            "termCount": len(snapshot.terms) if snapshot else 0,
            "lastFetched": snapshot.last_fetched if snapshot else None,
            "ttlSeconds": int(self.ttl_seconds),
        }
