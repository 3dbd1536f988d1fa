"""Mock implementations of the chain reader and ranking API."""

from __future__ import annotations

import asyncio
from typing import Any

from swarm_leaderboard.errors import (
    ChainUnavailable,
    DecodeError,
    StoreWriteError,
    UpstreamUnavailable,
)
from swarm_leaderboard.models.events import WinnerDeclaration
from swarm_leaderboard.models.records import InsertResult
from swarm_leaderboard.storage.sqlite import SQLiteEventStore

BAD_LOG = object()  # decode_log raises DecodeError for this payload

BLOCK_TIME = "2025-11-23T08:00:00+00:00"


class MockChainReader:
    """Implements ChainReader. Serves pre-loaded declarations by block."""

    def __init__(self, head: int = 10_000_000) -> None:
        self.head = head
        self.head_fails = False
        self.logs: list[tuple[int, Any]] = []  # (block_number, raw payload)
        self.fail_from_blocks: set[int] = set()  # get_logs fails for these from_block values
        self.log_calls: list[tuple[int, int]] = []

    def add(self, *decls: WinnerDeclaration) -> None:
        """Test helper: stage declarations at their block numbers."""
        for d in decls:
            self.logs.append((d.block_number, d))

    def add_bad_log(self, block_number: int) -> None:
        self.logs.append((block_number, BAD_LOG))

    async def get_block_number(self) -> int:
        if self.head_fails:
            raise ChainUnavailable("mock rpc down")
        return self.head

    async def get_raw_logs(self, contract_address: str, from_block: int, to_block: int):
        self.log_calls.append((from_block, to_block))
        if from_block in self.fail_from_blocks:
            raise ChainUnavailable("mock get_logs failure", from_block, to_block)
        return [raw for block, raw in sorted(self.logs, key=lambda x: x[0])
                if from_block <= block <= to_block]

    def decode_log(self, raw_log: Any) -> WinnerDeclaration:
        if isinstance(raw_log, WinnerDeclaration):
            return raw_log
        raise DecodeError("mock undecodable log", "0xbad")

    async def get_block_timestamp(self, block_number: int) -> str | None:
        return BLOCK_TIME


class MockRankingAPI:
    """Implements RankingAPI with canned payloads and call counters."""

    def __init__(self, leaderboard: dict | None = None) -> None:
        self.leaderboard = leaderboard if leaderboard is not None else {"entries": []}
        self.network_stats: dict = {"transactions": 42}
        self.nodes_connected: dict = {"nodesConnected": 3}
        self.unique_voters: dict = {"uniqueVoters": 17}
        self.fail = False
        self.fail_auxiliary = False
        self.leaderboard_calls = 0

    async def get_leaderboard(self) -> dict:
        self.leaderboard_calls += 1
        if self.fail:
            raise UpstreamUnavailable("mock api down", endpoint="/leaderboard")
        return self.leaderboard

    async def _aux(self, payload: dict, endpoint: str) -> dict:
        if self.fail or self.fail_auxiliary:
            raise UpstreamUnavailable("mock api down", endpoint=endpoint)
        return payload

    async def get_network_stats(self) -> dict:
        return await self._aux(self.network_stats, "/network-stats")

    async def get_nodes_connected(self) -> dict:
        return await self._aux(self.nodes_connected, "/nodes-connected")

    async def get_unique_voters(self) -> dict:
        return await self._aux(self.unique_voters, "/unique-voters")


class FlakyStore(SQLiteEventStore):
    """SQLite store whose row writes fail for selected peer ids, and whose
    batch commits and cursor writes fail on demand."""

    def __init__(self, db_path: str, poisoned: set[str] | None = None) -> None:
        super().__init__(db_path)
        self.poisoned = poisoned or set()
        self.cursor_fails = False
        self.commit_fails_from_block: int | None = None

    async def insert_winner_events(self, events) -> InsertResult:
        limit = self.commit_fails_from_block
        if limit is not None and any(e.block_number >= limit for e in events):
            raise StoreWriteError("mock commit failure")
        good = [e for e in events if e.peer_id not in self.poisoned]
        result = await super().insert_winner_events(good)
        result.failed += len(events) - len(good)
        return result

    async def upsert_sync_cursor(self, contract_address: str, last_synced_block: int) -> None:
        if self.cursor_fails:
            raise StoreWriteError("mock cursor write failure")
        await super().upsert_sync_cursor(contract_address, last_synced_block)


class GatedStore(SQLiteEventStore):
    """SQLite store whose full reads pause after taking their snapshot
    until `gate` is set."""

    def __init__(self, db_path: str) -> None:
        super().__init__(db_path)
        self.gate = asyncio.Event()
        self.gate.set()
        self.reading = asyncio.Event()

    async def get_all_winner_events(self):
        snapshot = await super().get_all_winner_events()
        self.reading.set()
        await self.gate.wait()
        return snapshot


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds
