"""Leaderboard builder - deterministic total order and positional ranks."""

from __future__ import annotations

from typing import Iterable, Mapping

from swarm_leaderboard.models.leaderboard import LeaderboardEntry, PeerMetric


def sort_key(metric: PeerMetric) -> tuple[int, int, str]:
    # participations desc, wins desc, peer_id asc
    return (-metric.participations, -metric.wins, metric.peer_id)


def rank(metrics: Mapping[str, PeerMetric] | Iterable[PeerMetric]) -> list[LeaderboardEntry]:
    """Sort merged metrics and assign 1-based positional ranks.

    Equal scores still get distinct consecutive ranks, so every peer has
    exactly one position and pages never overlap.
    """
    values = metrics.values() if isinstance(metrics, Mapping) else metrics
    ordered = sorted(values, key=sort_key)
    return [
        LeaderboardEntry(
            rank=i,
            peer_id=m.peer_id,
            participations=m.participations,
            wins=m.wins,
        )
        for i, m in enumerate(ordered, start=1)
    ]


def paginate(
    entries: list[LeaderboardEntry], offset: int, limit: int
) -> list[LeaderboardEntry]:
    offset = max(offset, 0)
    return entries[offset:offset + max(limit, 0)]
