"""Tolerant field lookup for the upstream ranking API's shifting payloads.

Each logical attribute maps to an ordered tuple of accepted field names;
the first one present with a non-null value wins.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Mapping

PEER_ID_FIELDS = ("peerId", "peer_id", "id")
PARTICIPATION_FIELDS = ("participation", "participations", "score")
REWARD_FIELDS = ("trainingRewards", "reward", "rewards", "wins")
ENTRIES_FIELDS = ("entries", "leaderboard", "peers")
UPDATED_AT_FIELDS = ("updatedAt", "updated_at", "timestamp")

# auxiliary endpoints
CURRENT_ROUND_FIELDS = ("transactions", "currentRound", "round")
CURRENT_STAGE_FIELDS = ("nodesConnected", "currentStage", "stage")
UNIQUE_VOTERS_FIELDS = ("uniqueVoters", "unique_voters", "voters")

_MAX_DIGITS = 78


def first_present(record: Mapping[str, Any], names: tuple[str, ...]) -> Any:
    """Return the value of the first name present and not None, else None."""
    for name in names:
        value = record.get(name)
        if value is not None:
            return value
    return None


def as_int(value: Any, default: int = 0) -> int:
    """Coerce numbers and numeric strings; anything else yields `default`."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        value = value.strip()
        try:
            return int(value)
        except ValueError:
            pass
    try:
        number = Decimal(value)
    except (TypeError, ValueError, InvalidOperation):
        return default
    # uint256 tops out at 78 digits; anything wider is not a real counter
    if not number.is_finite() or number.adjusted() >= _MAX_DIGITS:
        return default
    try:
        return int(number)
    except (ValueError, OverflowError):
        return default


def int_field(record: Mapping[str, Any], names: tuple[str, ...], default: int = 0) -> int:
    return as_int(first_present(record, names), default)


def str_field(record: Mapping[str, Any], names: tuple[str, ...]) -> str | None:
    value = first_present(record, names)
    if value is None:
        return None
    text = str(value).strip()
    return text or None
