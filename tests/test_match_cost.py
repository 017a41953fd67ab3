"""
Tests for the match cost function and the working-set selection.
"""

import sys
import os
import math
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from planner.models import Gender, InternalPlayer, MatchWeights
from planner.services.session_generator import (
    SessionGenerator, get_combinations_of_four, split_teams,
    match_cost_breakdown, score_match, update_player_stats
)


@pytest.fixture
def weights():
    return MatchWeights()


def internal(players):
    return [InternalPlayer(player=p) for p in players]


def test_combinations_cover_every_group(make_players):
    for n in range(4, 9):
        pool = internal(make_players([5] * n))
        groups = list(get_combinations_of_four(pool))
        assert len(groups) == math.comb(n, 4)
        assert len({tuple(p.id for p in g) for g in groups}) == len(groups)


def test_three_distinct_splits(make_players):
    four = internal(make_players([1, 2, 3, 4]))
    splits = split_teams(four)

    assert len(splits) == 3
    pairings = {frozenset([frozenset(p.id for p in t1), frozenset(p.id for p in t2)])
                for t1, t2 in splits}
    assert len(pairings) == 3
    for t1, t2 in splits:
        assert len(t1) == len(t2) == 2
        assert {p.id for p in t1} | {p.id for p in t2} == {p.id for p in four}


def test_fresh_players_cost_only_balance(make_players, weights):
    a, b, c, d = internal(make_players([10, 2, 6, 6]))

    even = match_cost_breakdown([a, b], [c, d], 0, 8, weights)
    assert even == {
        "consecutive": 0.0,
        "balance": 0.0,
        "fatigue": 0.0,
        "no_rest": 0.0,
        "teammate_repeat": 0,
    }
    assert score_match([a, c], [b, d], 0, 8, weights) == pytest.approx(800.0)


def test_teammate_repeat_penalty(make_players, weights):
    a, b, c, d = internal(make_players([5, 5, 5, 5]))
    a.last_teammates.add(b.id)
    b.last_teammates.add(a.id)

    assert match_cost_breakdown([a, b], [c, d], 1, 8, weights)["teammate_repeat"] == 20
    assert match_cost_breakdown([a, c], [b, d], 1, 8, weights)["teammate_repeat"] == 0


def test_fatigue_weighs_women_more(make_players, weights):
    men = internal(make_players([5, 5, 5, 5]))
    women = internal(make_players([5, 5, 5, 5], genders=[Gender.FEMALE] * 4))
    for p in men + women:
        p.matches_played = 2
        p.last_played = 0

    male_cost = match_cost_breakdown(men[:2], men[2:], 5, 8, weights)["fatigue"]
    female_cost = match_cost_breakdown(women[:2], women[2:], 5, 8, weights)["fatigue"]

    assert male_cost == pytest.approx(4 * 2 * 0.2 * 2)
    assert female_cost == pytest.approx(4 * 2 * 0.3 * 2)
    assert female_cost > male_cost


def test_no_rest_penalty_counts_previous_match_players(make_players, weights):
    a, b, c, d = internal(make_players([5, 5, 5, 5]))
    a.last_played = 2
    b.last_played = 2
    c.last_played = 1

    assert match_cost_breakdown([a, c], [b, d], 3, 8, weights)["no_rest"] == pytest.approx(2.0)


def test_no_rest_ignores_players_who_never_played(make_players, weights):
    a, b, c, d = internal(make_players([5, 5, 5, 5]))

    assert match_cost_breakdown([a, b], [c, d], 0, 8, weights)["no_rest"] == 0

    update_player_stats([a, b], [c, d], 0)
    assert match_cost_breakdown([a, b], [c, d], 1, 8, weights)["no_rest"] == pytest.approx(4.0)


def test_consecutive_penalty_thresholds(make_players, weights):
    a, b, c, d = internal(make_players([5, 5, 5, 5]))
    a.last_played, a.streak = 3, 2

    # Large pool: two in a row already hits the limit
    assert match_cost_breakdown([a, b], [c, d], 4, 8, weights)["consecutive"] == 4000
    # Small pool allows one more
    assert match_cost_breakdown([a, b], [c, d], 4, 5, weights)["consecutive"] == 0

    a.streak = 3
    assert match_cost_breakdown([a, b], [c, d], 4, 5, weights)["consecutive"] == 3000

    # A streak that ended before the previous match does not count
    assert match_cost_breakdown([a, b], [c, d], 6, 8, weights)["consecutive"] == 0


def test_consecutive_penalty_outweighs_balance(make_players):
    """A tired player sits even when they would give the most even teams."""
    weights = MatchWeights(candidate_pool_size=5)
    tired, *rest = internal(make_players([5, 10, 5, 5, 5]))
    tired.matches_played, tired.last_played, tired.streak = 2, 1, 2

    generator = SessionGenerator([p.player for p in [tired, *rest]], 120, 15, weights=weights)
    best, cost, evaluated = generator.find_best_match([tired, *rest], 2, 8)

    team1, team2 = best
    assert tired not in team1 + team2
    assert cost == pytest.approx(500.0)
    assert evaluated == 15


def test_first_split_wins_ties(make_players, weights):
    four = internal(make_players([5, 5, 5, 5]))
    generator = SessionGenerator([p.player for p in four], 60, 15)
    best, cost, evaluated = generator.find_best_match(four, 0, 4)

    assert best == split_teams(four)[0]
    assert cost == 0
    assert evaluated == 3


def test_update_player_stats_tracks_streaks(make_players):
    a, b, c, d = internal(make_players([5, 5, 5, 5]))
    update_player_stats([a, b], [c, d], 0)
    update_player_stats([a, c], [b, d], 1)

    assert a.matches_played == 2
    assert a.last_played == 1
    assert a.consecutive_matches(2) == 2
    assert a.last_teammates == {b.id, c.id}

    update_player_stats([a, b], [c, d], 3)
    assert a.consecutive_matches(4) == 1
    assert a.consecutive_matches(5) == 0


class TestAvailablePlayers:
    """Working-set selection for a match slot."""

    def test_unplayed_players_come_first(self, make_players):
        pool = internal(make_players([5] * 8))
        generator = SessionGenerator([p.player for p in pool], 120, 15)
        update_player_stats(pool[:2], pool[2:4], 0)

        available = generator.get_available_players(pool, 1)
        assert set(available) == set(pool[4:])

    def test_small_pool_tops_up_with_previous_players(self, make_players):
        pool = internal(make_players([5] * 6))
        generator = SessionGenerator([p.player for p in pool], 120, 15)
        update_player_stats(pool[:2], pool[2:4], 0)

        available = generator.get_available_players(pool, 1)
        assert len(available) == 4
        assert pool[4] in available and pool[5] in available

    def test_small_pool_forces_full_rotation_when_possible(self, make_players):
        pool = internal(make_players([5] * 9))
        weights = MatchWeights(small_pool_max_players=10)
        generator = SessionGenerator([p.player for p in pool], 120, 15, weights=weights)
        update_player_stats(pool[:2], pool[2:4], 0)

        available = generator.get_available_players(pool, 1)
        assert len(available) == 4
        assert not set(available) & set(pool[:4])

    def test_large_pool_skips_players_on_a_run(self, make_players):
        pool = internal(make_players([5] * 8))
        generator = SessionGenerator([p.player for p in pool], 120, 15)
        # Everyone has played once; the first four are on a two-match run
        update_player_stats(pool[4:6], pool[6:8], 0)
        update_player_stats(pool[:2], pool[2:4], 1)
        update_player_stats(pool[:2], pool[2:4], 2)

        available = generator.get_available_players(pool, 3)
        assert set(available) == set(pool[4:])

    def test_large_pool_falls_back_to_ranking(self, make_players):
        pool = internal(make_players([5] * 7))
        weights = MatchWeights(rested_consecutive_limit=1)
        generator = SessionGenerator([p.player for p in pool], 120, 15, weights=weights)
        update_player_stats(pool[:2], pool[2:4], 0)

        # Only three players are rested at match 1, so the ranking decides
        available = generator.get_available_players(pool, 1)
        assert len(available) == 4
        assert set(pool[4:]) <= set(available)
