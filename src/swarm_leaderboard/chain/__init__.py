"""EVM chain integration components."""

from swarm_leaderboard.chain.reader import Web3ChainReader
from swarm_leaderboard.chain.queries import ContractQueries, ContractState

__all__ = ["Web3ChainReader", "ContractQueries", "ContractState"]
