"""Read-only SwarmCoordinator view queries."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from swarm_leaderboard.chain.reader import Web3ChainReader

log = logging.getLogger(__name__)


@dataclass
class ContractState:
    """On-chain coordinator counters."""

    current_round: int | None = None
    current_stage: int | None = None
    unique_voters: int | None = None
    unique_voted_peers: int | None = None


class ContractQueries:
    """View calls against the coordinator through an existing reader."""

    def __init__(self, reader: Web3ChainReader) -> None:
        self._contract = reader.contract

    async def _call_uint(self, name: str) -> int | None:
        try:
            return int(await getattr(self._contract.functions, name)().call())
        except Exception as exc:
            log.warning("%s() call failed: %s", name, exc)
            return None

    async def get_state(self) -> ContractState:
        return ContractState(
            current_round=await self._call_uint("currentRound"),
            current_stage=await self._call_uint("currentStage"),
            unique_voters=await self._call_uint("uniqueVoters"),
            unique_voted_peers=await self._call_uint("uniqueVotedPeers"),
        )
