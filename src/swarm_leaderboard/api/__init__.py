"""HTTP API for leaderboard clients."""

from swarm_leaderboard.api.server import create_app

__all__ = ["create_app"]
