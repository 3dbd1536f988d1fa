"""EventStore protocol - durable winner events and sync cursors."""

from __future__ import annotations

from typing import Protocol, Sequence

from swarm_leaderboard.models.events import WinnerEvent
from swarm_leaderboard.models.records import InsertResult, PeerActivity, SyncCursor


class EventStore(Protocol):
    """Append-only winner event log plus per-contract sync watermarks."""

    # ── Lifecycle ──────────────────────────────────────────

    async def initialize(self) -> None:
        """Create tables if they don't exist."""
        ...

    async def close(self) -> None:
        ...

    # ── Winner events ──────────────────────────────────────

    async def insert_winner_events(self, events: Sequence[WinnerEvent]) -> InsertResult:
        """Insert-if-absent keyed by (transaction_hash, peer_id).

        Duplicates are counted, not raised. Rows that fail for other
        reasons are counted as failed and skipped. Raises StoreWriteError
        if the batch cannot be committed.
        """
        ...

    async def get_all_winner_events(self) -> list[WinnerEvent]:
        """Every stored event, ordered by block number ascending."""
        ...

    async def count_winner_events(self) -> int:
        ...

    async def get_peer_activity(self, peer_id: str) -> PeerActivity:
        ...

    # ── Sync cursor ────────────────────────────────────────

    async def get_sync_cursor(self, contract_address: str) -> SyncCursor | None:
        ...

    async def upsert_sync_cursor(self, contract_address: str, last_synced_block: int) -> None:
        """Advance the watermark. Never moves it backwards.

        Raises StoreWriteError if the write cannot be committed.
        """
        ...
