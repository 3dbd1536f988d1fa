"""Merging the ranking API snapshot with chain events."""

from __future__ import annotations

import random

from swarm_leaderboard.leaderboard.fields import as_int, first_present
from swarm_leaderboard.leaderboard.merge import (
    count_sources,
    merge_sources,
    seed_from_api,
)
from swarm_leaderboard.leaderboard.ranking import rank
from swarm_leaderboard.models.leaderboard import Provenance

from tests.factories import make_api_entry, make_winner_event


def test_api_baseline_plus_chain_events():
    api = [make_api_entry("QmA", participation=5, rewards=5)]
    events = [
        make_winner_event("QmA", block_number=100),
        make_winner_event("QmA", block_number=101),
        make_winner_event("QmB", block_number=102),
    ]

    metrics = merge_sources(api, events)

    assert (metrics["QmA"].participations, metrics["QmA"].wins) == (7, 7)
    assert metrics["QmA"].provenance == Provenance.BOTH
    assert (metrics["QmB"].participations, metrics["QmB"].wins) == (1, 1)
    assert metrics["QmB"].provenance == Provenance.CHAIN_ONLY

    entries = rank(metrics)
    assert [(e.rank, e.peer_id, e.participations) for e in entries] == [
        (1, "QmA", 7), (2, "QmB", 1),
    ]


def test_field_name_variants_are_accepted():
    api = [
        make_api_entry("QmCamel", 3, 2, style="camel"),
        make_api_entry("QmScore", 4, 1, style="score"),
        make_api_entry("QmSnake", 5, 0, style="snake"),
        {"id": "QmId", "participation": "6", "wins": 2.0},
    ]

    metrics = seed_from_api(api)

    assert {p: (m.participations, m.wins) for p, m in metrics.items()} == {
        "QmCamel": (3, 2),
        "QmScore": (4, 1),
        "QmSnake": (5, 0),
        "QmId": (6, 2),
    }


def test_missing_counts_default_to_zero():
    metrics = seed_from_api([{"peerId": "QmA"}])
    assert (metrics["QmA"].participations, metrics["QmA"].wins) == (0, 0)


def test_entries_without_peer_id_are_dropped():
    metrics = seed_from_api([
        {"participation": 9},
        {"peerId": "   ", "participation": 9},
        "not-a-dict",
        make_api_entry("QmA"),
    ])
    assert list(metrics) == ["QmA"]


def test_repeated_api_peer_keeps_first_baseline():
    metrics = seed_from_api([
        make_api_entry("QmA", participation=5, rewards=1),
        make_api_entry("QmA", participation=50, rewards=10),
    ])
    assert metrics["QmA"].participations == 5


def test_api_peer_without_events_is_kept():
    metrics = merge_sources([make_api_entry("QmIdle", 2, 0)], [])
    assert metrics["QmIdle"].provenance == Provenance.API_ONLY
    assert metrics["QmIdle"].participations == 2


def test_chain_only_peer_stays_chain_only():
    events = [make_winner_event("QmNew", block_number=b) for b in (1, 2, 3)]
    metrics = merge_sources([], events)
    assert metrics["QmNew"].provenance == Provenance.CHAIN_ONLY
    assert metrics["QmNew"].wins == 3


def test_event_order_does_not_change_totals():
    api = [make_api_entry("QmA", 5, 5), make_api_entry("QmC", 1, 0)]
    events = [
        make_winner_event(peer, block_number=i)
        for i, peer in enumerate(["QmA", "QmB", "QmB", "QmC", "QmD", "QmA", "QmB"])
    ]
    baseline = rank(merge_sources(api, events))

    rng = random.Random(7)
    for _ in range(5):
        shuffled = events[:]
        rng.shuffle(shuffled)
        assert rank(merge_sources(api, shuffled)) == baseline


def test_count_sources():
    api = [make_api_entry("QmA"), make_api_entry("QmB")]
    events = [make_winner_event("QmB"), make_winner_event("QmC")]

    sources = count_sources(merge_sources(api, events))

    assert sources.from_api == 2
    assert sources.from_blockchain == 2
    assert sources.total == 3


def test_first_present_skips_nulls():
    assert first_present({"peerId": None, "id": "QmA"}, ("peerId", "id")) == "QmA"
    assert first_present({}, ("peerId",)) is None


def test_as_int_coercion():
    assert as_int("12") == 12
    assert as_int("3.9") == 3
    assert as_int(None) == 0
    assert as_int(True) == 0
    assert as_int("n/a", default=-1) == -1


def test_as_int_keeps_large_integer_strings_exact():
    assert as_int("123456789012345678901") == 123456789012345678901
    assert as_int(" 2 ") == 2
    assert as_int(str(2**255)) == 2**255
    assert as_int("1.5e3") == 1500


def test_as_int_rejects_non_finite_and_oversized_values():
    assert as_int(float("inf")) == 0
    assert as_int(float("nan")) == 0
    assert as_int("Infinity") == 0
    assert as_int("1e400") == 0
    assert as_int(["7"]) == 0


def test_unusable_counts_do_not_break_the_merge():
    api = [
        {"peerId": "QmInf", "participation": 3, "trainingRewards": float("inf")},
        {"peerId": "QmHuge", "participation": "1e400", "trainingRewards": "2"},
        make_api_entry("QmA", 1, 1),
    ]

    metrics = merge_sources(api, [])

    assert (metrics["QmInf"].participations, metrics["QmInf"].wins) == (3, 0)
    assert (metrics["QmHuge"].participations, metrics["QmHuge"].wins) == (0, 2)
    assert [e.peer_id for e in rank(metrics)] == ["QmInf", "QmA", "QmHuge"]


def test_large_string_rewards_break_ties_exactly():
    api = [
        {"peerId": "QmAbe", "participation": 5, "trainingRewards": "123456789012345678900"},
        {"peerId": "QmZed", "participation": 5, "trainingRewards": "123456789012345678901"},
    ]
    # a float round-trip would tie these and fall back to peer id order
    assert [e.peer_id for e in rank(merge_sources(api, []))] == ["QmZed", "QmAbe"]
