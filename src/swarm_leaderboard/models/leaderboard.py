"""Merged peer metrics and the JSON-serializable leaderboard snapshot."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Provenance(str, Enum):
    """Which data source(s) contributed to a peer's merged metric."""

    API_ONLY = "api-only"
    CHAIN_ONLY = "chain-only"
    BOTH = "both"


@dataclass
class PeerMetric:
    """Per-peer aggregate built during one merge pass."""

    peer_id: str
    participations: int = 0
    wins: int = 0
    provenance: Provenance = Provenance.API_ONLY


@dataclass(frozen=True)
class LeaderboardEntry:
    rank: int
    peer_id: str
    participations: int
    wins: int

    def to_dict(self) -> dict:
        return {
            "rank": self.rank,
            "peerId": self.peer_id,
            "participations": self.participations,
            "wins": self.wins,
        }


@dataclass
class NetworkStats:
    """Display-only counters from the ranking API's auxiliary endpoints."""

    current_round: int = 0
    current_stage: int = 0
    unique_voters: int = 0
    unique_voted_peers: int = 0

    def to_dict(self) -> dict:
        return {
            "currentRound": self.current_round,
            "currentStage": self.current_stage,
            "uniqueVoters": self.unique_voters,
            "uniqueVotedPeers": self.unique_voted_peers,
        }


@dataclass
class PeerSources:
    """How many peers each source contributed to the merged map."""

    from_api: int = 0
    from_blockchain: int = 0
    total: int = 0

    def to_dict(self) -> dict:
        return {
            "fromApi": self.from_api,
            "fromBlockchain": self.from_blockchain,
            "total": self.total,
        }


@dataclass
class CacheEntry:
    """One built leaderboard generation."""

    entries: list[LeaderboardEntry]
    built_at: float  # clock seconds when the merge ran
    updated_at: str  # ISO 8601, upstream snapshot time when reported
    stats: NetworkStats = field(default_factory=NetworkStats)
    peer_sources: PeerSources = field(default_factory=PeerSources)


@dataclass
class LeaderboardPage:
    """A slice of the ranked sequence, as served to clients."""

    entries: list[LeaderboardEntry]
    total: int
    updated_at: str
    stats: NetworkStats
    peer_sources: PeerSources
    stale: bool = False

    def to_dict(self) -> dict:
        return {
            "entries": [e.to_dict() for e in self.entries],
            "total": self.total,
            "updatedAt": self.updated_at,
            "stats": self.stats.to_dict(),
            "peerSources": self.peer_sources.to_dict(),
            "stale": self.stale,
        }
