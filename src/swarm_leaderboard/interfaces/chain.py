"""ChainReader protocol - reads the coordinator contract over RPC."""

from __future__ import annotations

from typing import Protocol, Sequence

from swarm_leaderboard.models.events import WinnerDeclaration


class ChainReader(Protocol):
    """Head queries and decoded WinnersDeclared logs."""

    async def get_block_number(self) -> int:
        """Current chain head. Raises ChainUnavailable on RPC failure."""
        ...

    async def get_raw_logs(
        self, contract_address: str, from_block: int, to_block: int
    ) -> Sequence[object]:
        """Raw WinnersDeclared logs in [from_block, to_block] (inclusive).

        Raises ChainUnavailable if the range cannot be read.
        """
        ...

    def decode_log(self, raw_log: object) -> WinnerDeclaration:
        """Decode one raw log. Raises DecodeError on malformed payloads."""
        ...

    async def get_block_timestamp(self, block_number: int) -> str | None:
        """ISO 8601 block time, or None if the block could not be fetched."""
        ...
