"""Data models for the swarm_leaderboard service."""

from swarm_leaderboard.models.events import WinnerDeclaration, WinnerEvent
from swarm_leaderboard.models.records import (
    InsertResult,
    PeerActivity,
    StopReason,
    SyncCursor,
    SyncResult,
)
from swarm_leaderboard.models.leaderboard import (
    CacheEntry,
    LeaderboardEntry,
    LeaderboardPage,
    NetworkStats,
    PeerMetric,
    PeerSources,
    Provenance,
)
from swarm_leaderboard.models.config import ApiConfig, ChainConfig, ServiceConfig

__all__ = [
    "WinnerDeclaration", "WinnerEvent",
    "InsertResult", "PeerActivity", "StopReason", "SyncCursor", "SyncResult",
    "CacheEntry", "LeaderboardEntry", "LeaderboardPage", "NetworkStats",
    "PeerMetric", "PeerSources", "Provenance",
    "ApiConfig", "ChainConfig", "ServiceConfig",
]
