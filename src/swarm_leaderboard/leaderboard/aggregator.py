"""Source aggregator - cache-guarded merge of the ranking API and chain events."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable

from swarm_leaderboard.errors import UpstreamUnavailable
from swarm_leaderboard.interfaces.store import EventStore
from swarm_leaderboard.interfaces.upstream import RankingAPI
from swarm_leaderboard.leaderboard.cache import ResultCache
from swarm_leaderboard.leaderboard.fields import (
    CURRENT_ROUND_FIELDS,
    CURRENT_STAGE_FIELDS,
    ENTRIES_FIELDS,
    UNIQUE_VOTERS_FIELDS,
    UPDATED_AT_FIELDS,
    first_present,
    int_field,
    str_field,
)
from swarm_leaderboard.leaderboard.merge import count_sources, merge_sources
from swarm_leaderboard.leaderboard.ranking import paginate, rank
from swarm_leaderboard.models.leaderboard import (
    CacheEntry,
    LeaderboardEntry,
    LeaderboardPage,
    NetworkStats,
)
from swarm_leaderboard.models.records import PeerActivity

log = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _parse_iso(value: str) -> datetime | None:
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, TypeError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


class SourceAggregator:
    """Builds the global leaderboard from every available source.

    This is the single entry point used by request handlers. Within the
    cache TTL it returns the cached build untouched; on a miss it fetches
    the API snapshot and the whole event store concurrently, merges,
    ranks, and repopulates the cache. Concurrent misses share one rebuild.
    """

    def __init__(
        self,
        store: EventStore,
        api: RankingAPI,
        cache: ResultCache,
        online_window: int = 1800,
    ) -> None:
        self._store = store
        self._api = api
        self._cache = cache
        self._online_window = online_window
        self._rebuild_lock = asyncio.Lock()

    @property
    def cache(self) -> ResultCache:
        return self._cache

    # ── Build ──────────────────────────────────────────────

    async def build_leaderboard(self) -> CacheEntry:
        """Return a fresh (or, during upstream outages, stale) leaderboard.

        Raises UpstreamUnavailable only when the API is down and nothing
        has ever been built.
        """
        cached = self._cache.get_fresh()
        if cached is not None:
            log.debug("Returning cached leaderboard")
            return cached

        async with self._rebuild_lock:
            cached = self._cache.get_fresh()
            if cached is not None:
                return cached

            generation = self._cache.generation
            try:
                entry = await self._rebuild()
            except UpstreamUnavailable as exc:
                stale = self._cache.get_any()
                if stale is None:
                    log.error("Ranking API unavailable and no cached leaderboard: %s", exc)
                    raise
                log.warning("Ranking API unavailable, serving stale leaderboard: %s", exc)
                return stale

            self._cache.put(entry, generation)
            return entry

    async def _rebuild(self) -> CacheEntry:
        log.info("Building leaderboard from ranking API and chain events")
        built_at = self._cache.now()

        # every fetch runs to completion before a failure is raised
        outcomes = await asyncio.gather(
            self._api.get_leaderboard(),
            self._optional(self._api.get_network_stats(), "network-stats"),
            self._optional(self._api.get_nodes_connected(), "nodes-connected"),
            self._optional(self._api.get_unique_voters(), "unique-voters"),
            self._store.get_all_winner_events(),
            return_exceptions=True,
        )
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome
        board, network, nodes, voters, events = outcomes

        api_entries = first_present(board, ENTRIES_FIELDS)
        if not isinstance(api_entries, list):
            log.warning("Ranking API leaderboard has no entry list; using chain events only")
            api_entries = []

        metrics = merge_sources(api_entries, events)
        entries = rank(metrics)
        sources = count_sources(metrics)

        log.info(
            "Leaderboard built: %d peers (%d from API, %d from chain, %d events)",
            sources.total, sources.from_api, sources.from_blockchain, len(events),
        )

        return CacheEntry(
            entries=entries,
            built_at=built_at,
            updated_at=str_field(board, UPDATED_AT_FIELDS) or _now_iso(),
            stats=NetworkStats(
                current_round=int_field(network, CURRENT_ROUND_FIELDS),
                current_stage=int_field(nodes, CURRENT_STAGE_FIELDS),
                unique_voters=int_field(voters, UNIQUE_VOTERS_FIELDS),
                unique_voted_peers=len(entries),
            ),
            peer_sources=sources,
        )

    async def _optional(self, call: Awaitable[dict[str, Any]], name: str) -> dict[str, Any]:
        """Display-only counters never fail a build."""
        try:
            return await call
        except UpstreamUnavailable as exc:
            log.warning("Auxiliary endpoint %s unavailable: %s", name, exc)
            return {}

    # ── Reads ──────────────────────────────────────────────

    async def get_page(
        self, limit: int = 100, offset: int = 0, search: str | None = None
    ) -> LeaderboardPage:
        """A slice of the ranked sequence, optionally filtered by peer id.

        Filtering keeps each entry's global rank. There is no upper bound on
        `limit`; a limit at or above the total returns everything.
        """
        built = await self.build_leaderboard()
        entries = built.entries
        if search:
            needle = search.strip().lower()
            entries = [e for e in entries if needle in e.peer_id.lower()]

        limit = max(limit, 1)
        return LeaderboardPage(
            entries=paginate(entries, offset, limit),
            total=len(entries),
            updated_at=built.updated_at,
            stats=built.stats,
            peer_sources=built.peer_sources,
            stale=not self._cache.is_fresh(built),
        )

    def find_entry(self, peer_id: str) -> LeaderboardEntry | None:
        """Look a peer up in the last build without triggering a rebuild."""
        built = self._cache.get_any()
        if built is None:
            return None
        for entry in built.entries:
            if entry.peer_id == peer_id:
                return entry
        return None

    async def get_peer_activity(self, peer_id: str) -> PeerActivity:
        activity = await self._store.get_peer_activity(peer_id)
        if activity.last_seen:
            seen = _parse_iso(activity.last_seen)
            if seen is not None:
                age = (datetime.now(timezone.utc) - seen).total_seconds()
                activity.online = age <= self._online_window
        return activity
