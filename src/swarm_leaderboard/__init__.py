"""swarm_leaderboard - global peer leaderboard reconstruction for the RL swarm."""

__version__ = "0.1.0"
