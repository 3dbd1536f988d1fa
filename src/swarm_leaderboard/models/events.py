"""Chain event models decoded from WinnersDeclared logs."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class WinnerDeclaration:
    """One decoded WinnersDeclared log.

    `winners` and `rewards` are index-aligned; `rewards` may be shorter
    when the contract emitted fewer reward values than winners.
    """

    round_number: int
    winners: tuple[str, ...]
    rewards: tuple[int, ...]
    block_number: int
    transaction_hash: str
    log_index: int = 0
    timestamp: str | None = None  # ISO 8601, block time when known


@dataclass(frozen=True)
class WinnerEvent:
    """One winner credited in one on-chain declaration.

    Identity is (transaction_hash, peer_id).
    """

    peer_id: str
    block_number: int
    transaction_hash: str
    round_number: int | None
    event_timestamp: str  # ISO 8601
    reward: int | None = None
    log_index: int = 0

    @property
    def key(self) -> tuple[str, str]:
        return (self.transaction_hash, self.peer_id)
