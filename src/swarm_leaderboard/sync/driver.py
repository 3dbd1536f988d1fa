"""Sync driver - explicit state machine for repeated synchronizer runs."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Callable

from swarm_leaderboard.models.records import SyncResult
from swarm_leaderboard.sync.synchronizer import ChainSynchronizer

log = logging.getLogger(__name__)


class SyncState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    NEEDS_MORE = "needs_more"
    DONE = "done"
    ERROR = "error"


class SyncDriver:
    """Drives ChainSynchronizer runs for one contract.

    Transitions:
        idle -> running -> needs_more | done | error
        needs_more -> running (next run_once / loop iteration)

    The driver never retries on its own after an error; run_until_done()
    stops and leaves the decision to the caller. Whenever a run stores
    new events or reaches the chain head, `on_synced` is invoked so the
    leaderboard cache can be refreshed.
    """

    def __init__(
        self,
        synchronizer: ChainSynchronizer,
        contract_address: str,
        on_synced: Callable[[SyncResult], None] | None = None,
    ) -> None:
        self._sync = synchronizer
        self._contract = contract_address
        self._on_synced = on_synced
        self._state = SyncState.IDLE
        self._last_result: SyncResult | None = None
        self._total_processed = 0
        self._runs = 0
        self._stop_requested = False

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def last_result(self) -> SyncResult | None:
        return self._last_result

    def stop(self) -> None:
        """Ask run_until_done() to halt after the current run."""
        self._stop_requested = True

    async def run_once(self) -> SyncResult:
        """Run a single bounded sync and update the state."""
        self._state = SyncState.RUNNING
        try:
            result = await self._sync.sync(self._contract)
        except Exception:
            self._state = SyncState.ERROR
            raise

        self._runs += 1
        self._last_result = result
        self._total_processed += result.processed_events

        if not result.success:
            self._state = SyncState.ERROR
            log.warning("Sync run failed: %s", result.message)
            return result

        self._state = SyncState.NEEDS_MORE if result.needs_more_sync else SyncState.DONE
        if self._on_synced and (result.processed_events > 0 or self._state == SyncState.DONE):
            self._on_synced(result)
        return result

    async def run_until_done(
        self, delay: float = 2.0, max_runs: int | None = None
    ) -> SyncResult | None:
        """Repeat run_once() with `delay` seconds between runs.

        Stops on done, error, stop(), or after max_runs runs.
        """
        self._stop_requested = False
        runs = 0
        result: SyncResult | None = None
        while not self._stop_requested:
            result = await self.run_once()
            runs += 1
            if self._state != SyncState.NEEDS_MORE:
                break
            if max_runs is not None and runs >= max_runs:
                break
            log.info(
                "Sync needs more: %d blocks remaining (%.2f%%)",
                result.remaining_blocks, result.progress,
            )
            await asyncio.sleep(delay)
        return result

    def to_dict(self) -> dict:
        return {
            "state": self._state.value,
            "runs": self._runs,
            "totalProcessedEvents": self._total_processed,
            "lastResult": self._last_result.to_dict() if self._last_result else None,
        }
