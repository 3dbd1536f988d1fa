"""SQLite implementation of the EventStore protocol."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Sequence

import aiosqlite

from swarm_leaderboard.errors import StoreWriteError
from swarm_leaderboard.models.events import WinnerEvent
from swarm_leaderboard.models.records import InsertResult, PeerActivity, SyncCursor

log = logging.getLogger(__name__)

SCHEMA = """
-- Winner events decoded from WinnersDeclared logs (append-only)
CREATE TABLE IF NOT EXISTS winner_events (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    peer_id TEXT NOT NULL,
    block_number INTEGER NOT NULL,
    transaction_hash TEXT NOT NULL,
    log_index INTEGER NOT NULL DEFAULT 0,
    round_number INTEGER,
    reward TEXT,
    event_timestamp TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT (datetime('now')),
    UNIQUE (transaction_hash, peer_id)
);
CREATE INDEX IF NOT EXISTS idx_winner_events_peer_id ON winner_events(peer_id);
CREATE INDEX IF NOT EXISTS idx_winner_events_block ON winner_events(block_number);

-- Per-contract sync watermark
CREATE TABLE IF NOT EXISTS sync_cursor (
    contract_address TEXT PRIMARY KEY,
    last_synced_block INTEGER NOT NULL,
    last_sync_timestamp TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);
"""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def normalize_address(address: str) -> str:
    return address.strip().lower()


class SQLiteEventStore:
    """SQLite-backed implementation of the EventStore protocol."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None

    async def initialize(self) -> None:
        if self._db_path != ":memory:":
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(self._db_path)
        self._db.row_factory = aiosqlite.Row
        await self._db.executescript(SCHEMA)
        await self._db.commit()

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    @property
    def db(self) -> aiosqlite.Connection:
        assert self._db is not None, "Store not initialized. Call initialize() first."
        return self._db

    # ── Winner events ──────────────────────────────────────

    async def insert_winner_events(self, events: Sequence[WinnerEvent]) -> InsertResult:
        result = InsertResult()
        for event in events:
            try:
                cur = await self.db.execute(
                    "INSERT OR IGNORE INTO winner_events"
                    " (peer_id, block_number, transaction_hash, log_index,"
                    "  round_number, reward, event_timestamp, created_at)"
                    " VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        event.peer_id, event.block_number, event.transaction_hash,
                        event.log_index, event.round_number,
                        # uint256 rewards overflow SQLite's 64-bit integers
                        str(event.reward) if event.reward is not None else None,
                        event.event_timestamp, _now(),
                    ),
                )
            except aiosqlite.Error as exc:
                log.warning(
                    "Failed to store winner %s from tx %s: %s",
                    event.peer_id[:16], event.transaction_hash[:18], exc,
                )
                result.failed += 1
                continue

            if cur.rowcount == 1:
                result.inserted += 1
            else:
                result.duplicates += 1
            await cur.close()

        try:
            await self.db.commit()
        except aiosqlite.Error as exc:
            raise StoreWriteError(f"could not commit {len(events)} winner events: {exc}") from exc
        return result

    async def get_all_winner_events(self) -> list[WinnerEvent]:
        async with self.db.execute(
            "SELECT * FROM winner_events ORDER BY block_number, log_index, id"
        ) as cur:
            return [_row_to_event(row) async for row in cur]

    async def count_winner_events(self) -> int:
        async with self.db.execute("SELECT COUNT(*) AS c FROM winner_events") as cur:
            row = await cur.fetchone()
            return row["c"] if row else 0

    async def get_peer_activity(self, peer_id: str) -> PeerActivity:
        async with self.db.execute(
            "SELECT COUNT(*) AS c, MAX(event_timestamp) AS last_seen"
            " FROM winner_events WHERE peer_id=?",
            (peer_id,),
        ) as cur:
            row = await cur.fetchone()
            count = row["c"] if row else 0
            last_seen = row["last_seen"] if row else None

        last_round = None
        if count:
            async with self.db.execute(
                "SELECT round_number FROM winner_events WHERE peer_id=?"
                " ORDER BY block_number DESC, log_index DESC LIMIT 1",
                (peer_id,),
            ) as cur:
                row = await cur.fetchone()
                last_round = row["round_number"] if row else None

        return PeerActivity(
            peer_id=peer_id,
            event_count=count,
            last_seen=last_seen,
            last_round=last_round,
        )

    # ── Sync cursor ────────────────────────────────────────

    async def get_sync_cursor(self, contract_address: str) -> SyncCursor | None:
        async with self.db.execute(
            "SELECT * FROM sync_cursor WHERE contract_address=?",
            (normalize_address(contract_address),),
        ) as cur:
            row = await cur.fetchone()
            if row is None:
                return None
            return SyncCursor(
                contract_address=row["contract_address"],
                last_synced_block=row["last_synced_block"],
                last_sync_timestamp=row["last_sync_timestamp"],
            )

    async def upsert_sync_cursor(self, contract_address: str, last_synced_block: int) -> None:
        now = _now()
        try:
            await self.db.execute(
                "INSERT INTO sync_cursor"
                " (contract_address, last_synced_block, last_sync_timestamp, updated_at)"
                " VALUES (?, ?, ?, ?)"
                " ON CONFLICT(contract_address) DO UPDATE SET"
                " last_synced_block=MAX(last_synced_block, excluded.last_synced_block),"
                " last_sync_timestamp=excluded.last_sync_timestamp,"
                " updated_at=excluded.updated_at",
                (normalize_address(contract_address), last_synced_block, now, now),
            )
            await self.db.commit()
        except aiosqlite.Error as exc:
            raise StoreWriteError(f"could not persist cursor for {contract_address}: {exc}") from exc


# ── Row converters ─────────────────────────────────────────


def _row_to_event(row: aiosqlite.Row) -> WinnerEvent:
    reward = row["reward"]
    return WinnerEvent(
        peer_id=row["peer_id"],
        block_number=row["block_number"],
        transaction_hash=row["transaction_hash"],
        round_number=row["round_number"],
        event_timestamp=row["event_timestamp"],
        reward=int(reward) if reward is not None else None,
        log_index=row["log_index"],
    )
