"""Merge the ranking API snapshot and stored chain events into PeerMetrics."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from swarm_leaderboard.leaderboard.fields import (
    PARTICIPATION_FIELDS,
    PEER_ID_FIELDS,
    REWARD_FIELDS,
    int_field,
    str_field,
)
from swarm_leaderboard.models.events import WinnerEvent
from swarm_leaderboard.models.leaderboard import PeerMetric, PeerSources, Provenance

log = logging.getLogger(__name__)


def seed_from_api(api_entries: Iterable[Mapping[str, Any]]) -> dict[str, PeerMetric]:
    """Build the baseline map from the API snapshot.

    Entries without a peer id are dropped; a repeated peer keeps its
    first entry as baseline.
    """
    metrics: dict[str, PeerMetric] = {}
    skipped = 0
    for entry in api_entries:
        if not isinstance(entry, Mapping):
            skipped += 1
            continue
        peer_id = str_field(entry, PEER_ID_FIELDS)
        if peer_id is None:
            skipped += 1
            continue
        if peer_id in metrics:
            continue
        metrics[peer_id] = PeerMetric(
            peer_id=peer_id,
            participations=int_field(entry, PARTICIPATION_FIELDS),
            wins=int_field(entry, REWARD_FIELDS),
            provenance=Provenance.API_ONLY,
        )
    if skipped:
        log.warning("Skipped %d API entries without a usable peer id", skipped)
    return metrics


def apply_chain_events(
    metrics: dict[str, PeerMetric], events: Iterable[WinnerEvent]
) -> dict[str, PeerMetric]:
    """Credit +1 participation and +1 win per stored event, in place."""
    for event in events:
        metric = metrics.get(event.peer_id)
        if metric is None:
            metrics[event.peer_id] = PeerMetric(
                peer_id=event.peer_id,
                participations=1,
                wins=1,
                provenance=Provenance.CHAIN_ONLY,
            )
            continue
        metric.participations += 1
        metric.wins += 1
        if metric.provenance == Provenance.API_ONLY:
            metric.provenance = Provenance.BOTH
    return metrics


def merge_sources(
    api_entries: Iterable[Mapping[str, Any]], events: Iterable[WinnerEvent]
) -> dict[str, PeerMetric]:
    """One full merge pass. Peers are only ever added, never removed."""
    return apply_chain_events(seed_from_api(api_entries), events)


def count_sources(metrics: Mapping[str, PeerMetric]) -> PeerSources:
    from_api = sum(1 for m in metrics.values() if m.provenance != Provenance.CHAIN_ONLY)
    from_chain = sum(1 for m in metrics.values() if m.provenance != Provenance.API_ONLY)
    return PeerSources(from_api=from_api, from_blockchain=from_chain, total=len(metrics))
