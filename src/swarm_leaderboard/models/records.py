"""Internal record types for persistence and operation results."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class StopReason(str, Enum):
    """Why a synchronizer run ended."""

    UP_TO_DATE = "up_to_date"  # cursor already at chain head
    TARGET_REACHED = "target_reached"  # processed the whole bounded range
    BATCH_ERROR_THRESHOLD = "batch_error_threshold"  # fail-fast stop
    LOG_QUERY_FAILED = "log_query_failed"  # a sub-batch could not be read
    STORE_WRITE_FAILED = "store_write_failed"  # a sub-batch could not be committed
    CHAIN_UNAVAILABLE = "chain_unavailable"  # head query failed, nothing done


@dataclass
class SyncCursor:
    """Persisted watermark for one contract."""

    contract_address: str
    last_synced_block: int
    last_sync_timestamp: str = ""


@dataclass
class InsertResult:
    """Outcome of an insert-if-absent batch write."""

    inserted: int = 0
    duplicates: int = 0
    failed: int = 0

    def __iadd__(self, other: "InsertResult") -> "InsertResult":
        self.inserted += other.inserted
        self.duplicates += other.duplicates
        self.failed += other.failed
        return self


@dataclass
class SyncResult:
    """Result of one ChainSynchronizer.sync() call."""

    success: bool
    message: str
    from_block: int
    to_block: int
    current_block: int
    processed_events: int = 0
    duplicate_events: int = 0
    remaining_blocks: int = 0
    progress: float = 0.0  # percent of [start_block, current_block] covered
    needs_more_sync: bool = False
    batch_errors: int = 0
    stop_reason: StopReason = StopReason.TARGET_REACHED

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "message": self.message,
            "fromBlock": self.from_block,
            "toBlock": self.to_block,
            "currentBlock": self.current_block,
            "processedEvents": self.processed_events,
            "remainingBlocks": self.remaining_blocks,
            "progress": self.progress,
            "needsMoreSync": self.needs_more_sync,
            "batchErrors": self.batch_errors,
            "stopReason": self.stop_reason.value,
        }


@dataclass
class PeerActivity:
    """Latest on-chain activity of a single peer."""

    peer_id: str
    event_count: int
    last_seen: str | None = None  # ISO 8601
    last_round: int | None = None
    online: bool = False

    def to_dict(self) -> dict:
        return {
            "peerId": self.peer_id,
            "eventCount": self.event_count,
            "lastSeen": self.last_seen,
            "lastRound": self.last_round,
            "online": self.online,
        }
