"""External data sources."""

from swarm_leaderboard.upstream.ranking_api import RankingAPIClient

__all__ = ["RankingAPIClient"]
