"""Protocol interfaces for swarm_leaderboard components."""

from swarm_leaderboard.interfaces.chain import ChainReader
from swarm_leaderboard.interfaces.store import EventStore
from swarm_leaderboard.interfaces.upstream import RankingAPI

__all__ = ["ChainReader", "EventStore", "RankingAPI"]
