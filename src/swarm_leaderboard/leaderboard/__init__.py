"""Leaderboard aggregation: field parsing, merge, ranking, cache."""

from swarm_leaderboard.leaderboard.aggregator import SourceAggregator
from swarm_leaderboard.leaderboard.cache import ResultCache
from swarm_leaderboard.leaderboard.merge import merge_sources
from swarm_leaderboard.leaderboard.ranking import rank

__all__ = ["SourceAggregator", "ResultCache", "merge_sources", "rank"]
