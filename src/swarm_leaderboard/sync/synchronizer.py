"""Chain synchronizer - incremental, resumable WinnersDeclared ingestion."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

from swarm_leaderboard.errors import ChainUnavailable, DecodeError, StoreWriteError
from swarm_leaderboard.interfaces.chain import ChainReader
from swarm_leaderboard.interfaces.store import EventStore
from swarm_leaderboard.models.config import ChainConfig
from swarm_leaderboard.models.events import WinnerDeclaration, WinnerEvent
from swarm_leaderboard.models.records import InsertResult, StopReason, SyncResult
from swarm_leaderboard.storage.sqlite import normalize_address

log = logging.getLogger(__name__)

_READ_OR_WRITE_FAILURES = (StopReason.LOG_QUERY_FAILED, StopReason.STORE_WRITE_FAILED)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def declaration_to_events(decl: WinnerDeclaration, timestamp: str) -> list[WinnerEvent]:
    """Expand one declaration into one WinnerEvent per winner.

    A winner listed twice in the same transaction is credited once.
    """
    events: list[WinnerEvent] = []
    seen: set[str] = set()
    for i, peer_id in enumerate(decl.winners):
        if not peer_id or peer_id in seen:
            continue
        seen.add(peer_id)
        events.append(WinnerEvent(
            peer_id=peer_id,
            block_number=decl.block_number,
            transaction_hash=decl.transaction_hash,
            round_number=decl.round_number,
            event_timestamp=timestamp,
            reward=decl.rewards[i] if i < len(decl.rewards) else None,
            log_index=decl.log_index,
        ))
    return events


def progress_percent(start_block: int, to_block: int, head: int) -> float:
    """Share of [start_block, head] covered by the cursor, 0-100."""
    span = head - start_block
    if span <= 0:
        return 100.0
    done = min(max(to_block - start_block, 0), span)
    return round(done * 100.0 / span, 2)


class ChainSynchronizer:
    """Pulls WinnersDeclared logs into the event store in bounded runs.

    Each call to sync():
    1. Reads the contract's cursor (or the configured start block)
    2. Bounds the run to max_blocks_per_run blocks below the chain head
    3. Walks the range in batch_size sub-batches, in block order
    4. Writes decoded winners insert-if-absent, then advances the
       in-memory pointer past the sub-batch
    5. Persists the pointer as the new cursor if any progress was made

    Calls for the same contract are serialized; distinct contracts run
    independently.
    """

    def __init__(self, store: EventStore, reader: ChainReader, config: ChainConfig) -> None:
        self._store = store
        self._reader = reader
        self._cfg = config
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, contract_address: str) -> asyncio.Lock:
        key = normalize_address(contract_address)
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    def is_running(self, contract_address: str) -> bool:
        lock = self._locks.get(normalize_address(contract_address))
        return lock is not None and lock.locked()

    async def sync(self, contract_address: str | None = None) -> SyncResult:
        """Run one bounded sync for a contract (defaults to the configured one)."""
        address = normalize_address(contract_address or self._cfg.contract_address)
        async with self._lock_for(address):
            return await self._sync_locked(address)

    async def _sync_locked(self, address: str) -> SyncResult:
        cursor = await self._store.get_sync_cursor(address)
        last_synced = cursor.last_synced_block if cursor else self._cfg.start_block

        try:
            head = await self._reader.get_block_number()
        except ChainUnavailable as exc:
            return SyncResult(
                success=False,
                message=f"Chain unavailable, sync not started at block {last_synced}: {exc}",
                from_block=last_synced,
                to_block=last_synced,
                current_block=0,
                stop_reason=StopReason.CHAIN_UNAVAILABLE,
            )

        target = min(last_synced + self._cfg.max_blocks_per_run, head)
        if target <= last_synced:
            log.info("Contract %s up to date at block %d (head %d)", address, last_synced, head)
            return self._result(
                address, last_synced, last_synced, head, InsertResult(), 0,
                StopReason.UP_TO_DATE,
            )

        log.info(
            "Syncing %s: blocks %d-%d (head %d, batch %d)",
            address, last_synced, target, head, self._cfg.batch_size,
        )

        last_processed = last_synced
        written = InsertResult()
        batch_errors = 0
        stop_reason = StopReason.TARGET_REACHED

        for start in range(last_synced, target, self._cfg.batch_size):
            end = min(start + self._cfg.batch_size, target)

            try:
                raw_logs = await self._reader.get_raw_logs(address, start, end - 1)
            except ChainUnavailable as exc:
                batch_errors += 1
                stop_reason = StopReason.LOG_QUERY_FAILED
                log.error("Stopping sync at block %d: %s", start, exc)
                break

            try:
                batch_written, decode_errors = await self._ingest_logs(raw_logs)
            except StoreWriteError as exc:
                batch_errors += 1
                stop_reason = StopReason.STORE_WRITE_FAILED
                log.error("Stopping sync at block %d: %s", start, exc)
                break

            written += batch_written
            batch_errors += decode_errors + batch_written.failed
            last_processed = end

            log.info(
                "Blocks %d-%d: %d logs, %d new winners, %d duplicates, %d errors",
                start, end - 1, len(raw_logs), batch_written.inserted,
                batch_written.duplicates, decode_errors + batch_written.failed,
            )

            if batch_errors > self._cfg.max_batch_errors:
                stop_reason = StopReason.BATCH_ERROR_THRESHOLD
                log.error(
                    "Batch error threshold exceeded (%d > %d), stopping at block %d",
                    batch_errors, self._cfg.max_batch_errors, last_processed,
                )
                break

        if last_processed > last_synced:
            try:
                await self._store.upsert_sync_cursor(address, last_processed)
            except StoreWriteError as exc:
                # events already written are replayed harmlessly next run
                log.error("Cursor for %s not advanced: %s", address, exc)
                return SyncResult(
                    success=False,
                    message=f"Cursor write failed, still at block {last_synced}: {exc}",
                    from_block=last_synced,
                    to_block=last_synced,
                    current_block=head,
                    processed_events=written.inserted,
                    duplicate_events=written.duplicates,
                    remaining_blocks=max(head - last_synced, 0),
                    progress=progress_percent(self._cfg.start_block, last_synced, head),
                    needs_more_sync=True,
                    batch_errors=batch_errors + 1,
                    stop_reason=stop_reason,
                )
            log.info("Cursor for %s advanced %d -> %d", address, last_synced, last_processed)

        return self._result(
            address, last_synced, last_processed, head, written, batch_errors, stop_reason,
        )

    async def _ingest_logs(self, raw_logs) -> tuple[InsertResult, int]:
        """Decode and persist one sub-batch of logs. Returns (writes, decode errors)."""
        written = InsertResult()
        decode_errors = 0
        for raw in raw_logs:
            try:
                decl = self._reader.decode_log(raw)
            except DecodeError as exc:
                decode_errors += 1
                log.warning("Skipping log in tx %s: %s", exc.transaction_hash or "?", exc)
                continue

            timestamp = await self._reader.get_block_timestamp(decl.block_number) or _now()
            events = declaration_to_events(decl, timestamp)
            if not events:
                continue
            written += await self._store.insert_winner_events(events)
        return written, decode_errors

    def _result(
        self,
        address: str,
        from_block: int,
        to_block: int,
        head: int,
        written: InsertResult,
        batch_errors: int,
        stop_reason: StopReason,
    ) -> SyncResult:
        remaining = max(head - to_block, 0)
        if stop_reason in _READ_OR_WRITE_FAILURES and to_block == from_block:
            success = False
            message = f"Sync stopped at block {from_block} ({stop_reason.value}); no progress for {address}"
        else:
            success = True
            message = (
                f"Synced {written.inserted} events from block {from_block} to {to_block}"
                f" ({remaining} blocks remaining)"
            )
        return SyncResult(
            success=success,
            message=message,
            from_block=from_block,
            to_block=to_block,
            current_block=head,
            processed_events=written.inserted,
            duplicate_events=written.duplicates,
            remaining_blocks=remaining,
            progress=progress_percent(self._cfg.start_block, to_block, head),
            needs_more_sync=remaining > 0,
            batch_errors=batch_errors,
            stop_reason=stop_reason,
        )
