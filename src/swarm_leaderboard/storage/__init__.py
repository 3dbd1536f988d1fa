"""Durable storage backends."""

from swarm_leaderboard.storage.sqlite import SQLiteEventStore

__all__ = ["SQLiteEventStore"]
