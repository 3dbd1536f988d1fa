"""Single-slot result cache with a freshness window."""

from __future__ import annotations

import logging
import time
from typing import Callable

from swarm_leaderboard.models.leaderboard import CacheEntry

log = logging.getLogger(__name__)


class ResultCache:
    """Holds the last built leaderboard and when it was built.

    There is exactly one leaderboard, so there is one slot. The clock is
    injectable so freshness can be tested without sleeping.
    """

    def __init__(self, ttl_seconds: float = 60, clock: Callable[[], float] | None = None) -> None:
        self._ttl = ttl_seconds
        self._clock = clock or time.monotonic
        self._entry: CacheEntry | None = None
        self._generation = 0

    @property
    def ttl(self) -> float:
        return self._ttl

    @property
    def generation(self) -> int:
        """Bumped by every invalidate(); builders read it before fetching."""
        return self._generation

    def now(self) -> float:
        return self._clock()

    def is_fresh(self, entry: CacheEntry | None = None) -> bool:
        entry = entry or self._entry
        if entry is None:
            return False
        return self._clock() - entry.built_at < self._ttl

    def get_fresh(self) -> CacheEntry | None:
        """The cached entry if it is within the TTL, else None."""
        return self._entry if self.is_fresh() else None

    def get_any(self) -> CacheEntry | None:
        """The cached entry regardless of age (stale fallback)."""
        return self._entry

    def put(self, entry: CacheEntry, generation: int | None = None) -> None:
        """Store a built entry.

        `generation` is the value read before the build started. If the
        cache was invalidated since, the entry is stored already expired:
        it may predate the data that triggered the invalidation.
        """
        if generation is not None and generation != self._generation:
            entry.built_at = float("-inf")
            log.debug("Leaderboard cache invalidated during build; entry stored as stale")
        self._entry = entry

    def invalidate(self) -> None:
        """Force the next read to rebuild. The old entry stays as stale fallback."""
        self._generation += 1
        if self._entry is not None:
            self._entry.built_at = float("-inf")
            log.debug("Leaderboard cache invalidated")
