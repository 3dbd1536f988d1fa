"""Chain synchronization: bounded runs and the driver that repeats them."""

from swarm_leaderboard.sync.synchronizer import ChainSynchronizer
from swarm_leaderboard.sync.driver import SyncDriver, SyncState

__all__ = ["ChainSynchronizer", "SyncDriver", "SyncState"]
