"""Error taxonomy for sync and aggregation paths."""

from __future__ import annotations


class LeaderboardError(Exception):
    """Base class for all swarm_leaderboard errors."""


class ChainUnavailable(LeaderboardError):
    """The chain RPC could not report a head or serve a log query.

    Aborts the current sync call; the cursor is left unchanged.
    """

    def __init__(self, message: str, from_block: int | None = None,
                 to_block: int | None = None) -> None:
        super().__init__(message)
        self.from_block = from_block
        self.to_block = to_block


class DecodeError(LeaderboardError):
    """A single log payload could not be decoded. Skipped and counted."""

    def __init__(self, message: str, transaction_hash: str | None = None) -> None:
        super().__init__(message)
        self.transaction_hash = transaction_hash


class StoreWriteError(LeaderboardError):
    """A row failed to persist for a reason other than a duplicate key."""


class UpstreamUnavailable(LeaderboardError):
    """The external ranking API could not be reached or returned garbage."""

    def __init__(self, message: str, endpoint: str | None = None,
                 status_code: int | None = None) -> None:
        super().__init__(message)
        self.endpoint = endpoint
        self.status_code = status_code
