"""
Tests for session generation: rotation, balance and the shape of a session.

Generation shuffles the pool, so these tests assert structural properties of
the result rather than exact pairings, and seed the random source wherever a
run has to be repeated.
"""

import sys
import os
import random
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from planner.core.exceptions import InvalidConfigurationError, InvalidPlayerDataError
from planner.models import MatchWeights
from planner.services.session_generator import (
    SessionGenerator, generate_session, validate_session_config, split_teams
)


def assert_well_formed(matches, players, session_minutes, match_minutes):
    pool_ids = {p.id for p in players}
    assert len(matches) <= int(session_minutes // match_minutes)
    for number, match in enumerate(matches, start=1):
        assert match.match_number == number
        assert len(match.team1) == 2
        assert len(match.team2) == 2
        assert len(set(match.player_ids)) == 4
        assert set(match.player_ids) <= pool_ids


def longest_runs(matches):
    """Longest back-to-back run of every player across the session."""
    current, longest = {}, {}
    previous = set()
    for match in matches:
        ids = set(match.player_ids)
        for pid in ids:
            current[pid] = current.get(pid, 0) + 1 if pid in previous else 1
            longest[pid] = max(longest.get(pid, 0), current[pid])
        previous = ids
    return longest


def test_fewer_than_four_players_gives_empty_session(make_players):
    """Three players cannot fill a doubles match."""
    players = make_players([5, 6, 7])
    assert generate_session(players, 60, 15) == []
    assert generate_session([], 60, 15) == []


def test_four_players_play_every_match(make_players):
    """A pool of exactly four has nobody to rotate in."""
    print("\nTesting 4 players, 60 minute session, 15 minute matches")
    players = make_players([8, 6, 5, 3])
    matches = generate_session(players, 60, 15, rng=random.Random(1))

    assert len(matches) == 4
    assert_well_formed(matches, players, 60, 15)
    for match in matches:
        assert set(match.player_ids) == {p.id for p in players}
    print("[PASS] 4 matches with the same four players")


def test_eight_players_get_the_most_balanced_split(eight_players):
    """
    With integer scores the balance term outweighs everything else between
    the three splits of the same four players, so every match must use the
    most even split available.
    """
    matches = generate_session(eight_players, 120, 15, rng=random.Random(7))

    assert len(matches) == 8
    assert_well_formed(matches, eight_players, 120, 15)
    for match in matches:
        best = min(
            abs(sum(p.score for p in t1) - sum(p.score for p in t2))
            for t1, t2 in split_teams(match.players)
        )
        assert match.balance == best
        assert match.balance <= 4


def test_eight_players_share_court_time_evenly(eight_players):
    matches = generate_session(eight_players, 120, 15, rng=random.Random(3))
    counts = {p.id: 0 for p in eight_players}
    for match in matches:
        for pid in match.player_ids:
            counts[pid] += 1

    assert sum(counts.values()) == 32
    assert max(counts.values()) - min(counts.values()) <= 1


def test_five_players_rotate_every_match(make_players):
    """With five players the one who sat out always comes back in."""
    players = make_players([9, 7, 6, 4, 3])
    matches = generate_session(players, 75, 15, rng=random.Random(11))

    assert len(matches) == 5
    assert_well_formed(matches, players, 75, 15)
    for previous, current in zip(matches, matches[1:]):
        assert set(previous.player_ids) != set(current.player_ids)
        assert len(set(previous.player_ids) & set(current.player_ids)) == 3

    counts = {}
    for match in matches:
        for pid in match.player_ids:
            counts[pid] = counts.get(pid, 0) + 1
    assert len(counts) == 5


@pytest.mark.parametrize("pool_size", [8, 10, 12])
def test_large_pools_never_exceed_two_in_a_row(make_players, pool_size):
    players = make_players([(i % 10) + 1 for i in range(pool_size)])
    for seed in range(5):
        matches = generate_session(players, 180, 15, rng=random.Random(seed))
        assert len(matches) == 12
        assert_well_formed(matches, players, 180, 15)
        assert max(longest_runs(matches).values()) <= 2


def test_small_pool_runs_stay_under_the_small_limit(make_players):
    players = make_players([8, 7, 6, 5, 4, 3])
    matches = generate_session(players, 120, 10, rng=random.Random(5))

    assert len(matches) == 12
    assert max(longest_runs(matches).values()) <= 3


def test_zero_match_duration_is_rejected(make_players):
    """A session cannot be split into zero-minute matches."""
    players = make_players([5, 5, 5, 5])
    with pytest.raises(InvalidConfigurationError):
        generate_session(players, 60, 0)
    with pytest.raises(InvalidConfigurationError):
        SessionGenerator(players, session_minutes=60, match_duration_minutes=-15)


@pytest.mark.parametrize("session_minutes,match_minutes", [
    ("60", 15),
    (60, None),
    (True, 15),
    (60, float("inf")),
    (float("nan"), 15),
    (0, 15),
])
def test_invalid_durations_are_rejected(session_minutes, match_minutes):
    with pytest.raises(InvalidConfigurationError):
        validate_session_config(session_minutes, match_minutes)


def test_match_count_is_rounded_down():
    assert validate_session_config(120, 15) == 8
    assert validate_session_config(100, 15) == 6
    assert validate_session_config(10, 15) == 0


def test_match_longer_than_session_gives_empty_session(make_players):
    players = make_players([5, 6, 7, 8])
    assert generate_session(players, 10, 15) == []


def test_duplicate_player_ids_are_rejected(make_players):
    players = make_players([5, 6, 7, 8])
    players.append(players[0])
    with pytest.raises(InvalidPlayerDataError):
        SessionGenerator(players, 60, 15)


def test_non_player_entries_are_rejected(make_players):
    players = make_players([5, 6, 7])
    with pytest.raises(InvalidPlayerDataError):
        SessionGenerator(players + [{"id": "x"}], 60, 15)


def test_invalid_weights_are_rejected(make_players):
    players = make_players([5, 6, 7, 8])
    with pytest.raises(InvalidConfigurationError):
        SessionGenerator(players, 60, 15, weights=MatchWeights(balance=-1))
    with pytest.raises(InvalidConfigurationError):
        SessionGenerator(players, 60, 15, weights=MatchWeights(candidate_pool_size=3))
    with pytest.raises(InvalidConfigurationError):
        SessionGenerator(players, 60, 15, weights=MatchWeights(candidate_pool_size=40))


def test_same_seed_gives_same_session(eight_players):
    first = generate_session(eight_players, 120, 15, rng=random.Random(42))
    second = generate_session(eight_players, 120, 15, rng=random.Random(42))

    assert [m.player_ids for m in first] == [m.player_ids for m in second]


def test_runs_do_not_share_state(eight_players):
    """Every run starts from fresh copies of the players."""
    generator = SessionGenerator(eight_players, 120, 15, rng=random.Random(2))
    first = generator.generate()
    second = generator.generate()

    assert len(first) == len(second) == 8
    first_copies = {id(p) for m in first for p in m.players}
    second_copies = {id(p) for m in second for p in m.players}
    assert not first_copies & second_copies

    # Caller's players are not touched
    assert [p.score for p in eight_players] == [10, 9, 8, 7, 6, 5, 4, 3]


def test_observer_sees_every_match(eight_players):
    decisions = []
    matches = generate_session(
        eight_players, 120, 15, rng=random.Random(9), observer=decisions.append
    )

    assert [d.match_number for d in decisions] == [m.match_number for m in matches]
    for decision, match in zip(decisions, matches):
        assert decision.team1 == match.team1
        assert decision.team2 == match.team2
        assert len(decision.available_players) >= 4
        # Four available players give one group with three splits
        assert decision.candidates_evaluated >= 3


def test_wider_candidate_pool_still_builds_valid_sessions(make_players):
    players = make_players([10, 9, 8, 7, 6, 5, 4, 3, 2, 1])
    weights = MatchWeights(candidate_pool_size=6)
    matches = generate_session(players, 120, 15, weights=weights, rng=random.Random(4))

    assert len(matches) == 8
    assert_well_formed(matches, players, 120, 15)


def test_weights_must_keep_rotation_above_balance(make_players):
    """The largest team gap must never be worth more than resting a tired player."""
    players = make_players([5, 6, 7, 8, 9])
    with pytest.raises(InvalidConfigurationError):
        SessionGenerator(players, 60, 15, weights=MatchWeights(balance=1000, candidate_pool_size=5))
    with pytest.raises(InvalidConfigurationError):
        SessionGenerator(players, 60, 15, weights=MatchWeights(consecutive_penalty_small=500))
    with pytest.raises(InvalidConfigurationError):
        SessionGenerator(players, 60, 15, weights=MatchWeights(max_consecutive_large=0))

    # Raising both sides together stays valid
    SessionGenerator(players, 60, 15, weights=MatchWeights(
        balance=1000, consecutive_penalty_small=10000, consecutive_penalty_large=20000
    ))


def test_unknown_weight_names_are_rejected():
    with pytest.raises(InvalidConfigurationError) as excinfo:
        MatchWeights.from_dict({"balnce": 5, "teammate_repeat": 20})
    assert "balnce" in str(excinfo.value)

    weights = MatchWeights.from_dict({"teammate_repeat": 20})
    assert weights.teammate_repeat == 20
    assert weights.balance == 100
