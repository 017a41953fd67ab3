"""
Session generator: builds a sequence of doubles matches for a player pool.

For every match slot the generator narrows the pool to a small working set
of the most rested players, enumerates every 4-player group and each of its
three team splits, and keeps the split with the lowest cost. The cost mixes
a rotation penalty, team balance, fatigue, rest and teammate repetition.

Player order is shuffled once per run so ties are not decided by the order
the caller supplied. Two runs with the same input may therefore differ; pass
a seeded ``random.Random`` to make a run reproducible.
"""

import math
import numbers
import random
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from planner.models import (
    Player, InternalPlayer, SessionMatch, MatchWeights, MatchDecision
)
from planner.core.config import (
    DEFAULT_SESSION_MINUTES, DEFAULT_MATCH_DURATION_MINUTES,
    PLAYERS_PER_MATCH, MAX_CANDIDATE_POOL_SIZE, MAX_PLAYER_SCORE
)
from planner.core.exceptions import InvalidConfigurationError, InvalidPlayerDataError
from planner.core.logging_config import get_logger

logger = get_logger(__name__)

Team = List[InternalPlayer]
TeamSplit = Tuple[Team, Team]
MatchObserver = Callable[[MatchDecision], None]


def validate_session_config(session_minutes, match_duration_minutes) -> int:
    """
    Check session durations and return the number of matches they fit.

    Raises:
        InvalidConfigurationError: if either duration is not a positive number
    """
    for name, value in (
        ("session_minutes", session_minutes),
        ("match_duration_minutes", match_duration_minutes),
    ):
        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            raise InvalidConfigurationError(f"{name} must be a number, got {value!r}")
        if not math.isfinite(value) or value <= 0:
            raise InvalidConfigurationError(f"{name} must be positive, got {value!r}")

    return int(session_minutes // match_duration_minutes)


def validate_weights(weights: MatchWeights) -> MatchWeights:
    """Reject weights the generator cannot work with."""
    for name, value in weights.to_dict().items():
        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            raise InvalidConfigurationError(f"Weight '{name}' must be a number, got {value!r}")
        if not math.isfinite(value) or value < 0:
            raise InvalidConfigurationError(f"Weight '{name}' must be non-negative, got {value!r}")

    pool_size = weights.candidate_pool_size
    if int(pool_size) != pool_size or not PLAYERS_PER_MATCH <= pool_size <= MAX_CANDIDATE_POOL_SIZE:
        raise InvalidConfigurationError(
            f"candidate_pool_size must be an integer between {PLAYERS_PER_MATCH} "
            f"and {MAX_CANDIDATE_POOL_SIZE}, got {pool_size!r}"
        )

    # Rotation has to outrank the widest possible gap between two teams
    max_balance_cost = 2 * MAX_PLAYER_SCORE * weights.balance
    for label, limit, multiplier in (
        ("small", weights.max_consecutive_small, weights.consecutive_penalty_small),
        ("large", weights.max_consecutive_large, weights.consecutive_penalty_large),
    ):
        if limit * multiplier <= max_balance_cost:
            raise InvalidConfigurationError(
                f"Consecutive-match penalty for {label} pools ({limit} x {multiplier}) "
                f"must exceed the largest balance cost ({max_balance_cost})"
            )
    return weights


def clone_players(players: Iterable[Player]) -> List[InternalPlayer]:
    return [InternalPlayer(player=p) for p in players]


def get_combinations_of_four(players: List[InternalPlayer]) -> Iterator[List[InternalPlayer]]:
    """Yield every 4-player group, in index order."""
    n = len(players)
    for a in range(n):
        for b in range(a + 1, n):
            for c in range(b + 1, n):
                for d in range(c + 1, n):
                    yield [players[a], players[b], players[c], players[d]]


def split_teams(four: List[InternalPlayer]) -> List[TeamSplit]:
    """The three ways to split four players into two teams of two."""
    a, b, c, d = four
    return [
        ([a, b], [c, d]),
        ([a, c], [b, d]),
        ([a, d], [b, c]),
    ]


def match_cost_breakdown(
    team1: Team,
    team2: Team,
    match_index: int,
    pool_size: int,
    weights: MatchWeights,
) -> Dict[str, float]:
    """
    Individual penalty terms for playing team1 against team2 at match_index.

    pool_size is the size of the whole session pool, which selects the
    small-pool or large-pool consecutive-match limits.
    """
    players = [*team1, *team2]
    is_small_pool = weights.is_small_pool(pool_size)

    # Rotation outranks everything else
    max_consecutive = weights.max_consecutive_small if is_small_pool else weights.max_consecutive_large
    multiplier = weights.consecutive_penalty_small if is_small_pool else weights.consecutive_penalty_large
    consecutive_penalty = 0.0
    for p in players:
        consecutive = p.consecutive_matches(match_index)
        if consecutive >= max_consecutive:
            consecutive_penalty += consecutive * multiplier

    total1 = sum(p.score for p in team1)
    total2 = sum(p.score for p in team2)
    balance_penalty = abs(total1 - total2) * weights.balance

    fatigue_penalty = sum(
        p.matches_played * weights.fatigue_factor(p.gender) for p in players
    ) * weights.fatigue

    no_rest_penalty = sum(
        weights.no_rest_penalty for p in players
        if p.last_played >= 0 and p.last_played == match_index - 1
    ) * weights.no_rest

    repeats = 0
    for team in (team1, team2):
        for p in team:
            repeats += sum(
                1 for partner in team
                if partner is not p and partner.id in p.last_teammates
            )
    teammate_penalty = repeats * weights.teammate_repeat

    return {
        "consecutive": consecutive_penalty,
        "balance": balance_penalty,
        "fatigue": fatigue_penalty,
        "no_rest": no_rest_penalty,
        "teammate_repeat": teammate_penalty,
    }


def score_match(
    team1: Team,
    team2: Team,
    match_index: int,
    pool_size: int,
    weights: Optional[MatchWeights] = None,
) -> float:
    """Total cost of a team split. Lower is better."""
    weights = weights or MatchWeights()
    return sum(match_cost_breakdown(team1, team2, match_index, pool_size, weights).values())


def update_player_stats(team1: Team, team2: Team, match_index: int) -> None:
    for team in (team1, team2):
        for p in team:
            p.matches_played += 1
            p.streak = p.streak + 1 if p.last_played == match_index - 1 else 1
            p.last_played = match_index
            for partner in team:
                if partner is not p:
                    p.last_teammates.add(partner.id)


class SessionGenerator:
    """
    Generates the matches of one session.

    A generator instance can be run more than once; each run works on fresh
    clones of the players, so runs never share state.
    """

    def __init__(
        self,
        players: Iterable[Player],
        session_minutes: float = DEFAULT_SESSION_MINUTES,
        match_duration_minutes: float = DEFAULT_MATCH_DURATION_MINUTES,
        weights: Optional[MatchWeights] = None,
        rng: Optional[random.Random] = None,
        observer: Optional[MatchObserver] = None,
    ):
        """
        Initialize the generator.

        Args:
            players: Pool of players; ids must be unique
            session_minutes: Length of the session
            match_duration_minutes: Length of one match
            weights: Cost and selection constants (defaults from config)
            rng: Random source used for the initial shuffle
            observer: Called with a MatchDecision after every committed match

        Raises:
            InvalidConfigurationError: on bad durations, weights or players
        """
        self.total_matches = validate_session_config(session_minutes, match_duration_minutes)
        self.session_minutes = session_minutes
        self.match_duration_minutes = match_duration_minutes
        self.weights = validate_weights(weights or MatchWeights())
        self.players = self._validate_players(players)
        self.rng = rng or random.Random()
        self.observer = observer

    @staticmethod
    def _validate_players(players: Iterable[Player]) -> List[Player]:
        players = list(players)
        seen = set()
        for p in players:
            if not isinstance(p, Player):
                raise InvalidPlayerDataError(f"Expected a Player, got {type(p).__name__}")
            if p.id in seen:
                raise InvalidPlayerDataError(f"Duplicate player id: {p.id}")
            seen.add(p.id)
        return players

    def get_available_players(
        self, players: List[InternalPlayer], match_index: int
    ) -> List[InternalPlayer]:
        """
        Pick the working set of players for match_index.

        Players are ranked by: never played, fewest consecutive matches,
        fewest matches, longest idle. Small pools force rotation away from
        the previous match; large pools skip players on a long run.
        """
        limit = int(self.weights.candidate_pool_size)

        ranked = sorted(
            players,
            key=lambda p: (
                0 if p.matches_played == 0 else 1,
                p.consecutive_matches(match_index),
                p.matches_played,
                p.last_played,
            ),
        )

        if self.weights.is_small_pool(len(players)):
            if match_index > 0:
                others = [p for p in ranked if p.last_played != match_index - 1]
                if len(others) >= PLAYERS_PER_MATCH:
                    logger.debug(
                        "Forcing rotation: excluding previous match players %s",
                        [p.name for p in ranked if p.last_played == match_index - 1],
                    )
                    return others[:limit]

            # Previous-match players rank below everyone else, so this tops
            # up the non-previous players with the most rested of the rest
            return ranked[:limit]

        rested = [
            p for p in ranked
            if p.consecutive_matches(match_index) < self.weights.rested_consecutive_limit
        ]
        if len(rested) >= PLAYERS_PER_MATCH:
            return rested[:limit]

        return ranked[:limit]

    def find_best_match(
        self, available: List[InternalPlayer], match_index: int, pool_size: int
    ) -> Tuple[Optional[TeamSplit], float, int]:
        """
        Evaluate every team split of every 4-player group in available.

        Returns:
            (best split or None, its cost, number of splits evaluated).
            The first split found wins ties.
        """
        best_match = None
        best_cost = math.inf
        evaluated = 0

        for four in get_combinations_of_four(available):
            for team1, team2 in split_teams(four):
                evaluated += 1
                cost = score_match(team1, team2, match_index, pool_size, self.weights)
                if cost < best_cost:
                    best_cost = cost
                    best_match = (team1, team2)

        return best_match, best_cost, evaluated

    def generate(self) -> List[SessionMatch]:
        """
        Generate the session.

        Returns an empty list when there are fewer than four players or no
        match fits the session, and stops early when four eligible players
        can no longer be assembled. A short result is not an error.
        """
        if len(self.players) < PLAYERS_PER_MATCH:
            logger.info(
                "Cannot generate a session: %d players, need %d",
                len(self.players), PLAYERS_PER_MATCH,
            )
            return []

        if self.total_matches <= 0:
            logger.info(
                "Match duration %s exceeds session length %s; no matches generated",
                self.match_duration_minutes, self.session_minutes,
            )
            return []

        shuffled = list(self.players)
        self.rng.shuffle(shuffled)
        players = clone_players(shuffled)
        pool_size = len(players)
        matches: List[SessionMatch] = []

        for match_index in range(self.total_matches):
            available = self.get_available_players(players, match_index)

            if len(available) < PLAYERS_PER_MATCH:
                available.extend(
                    p for p in players
                    if p.last_played < match_index and p not in available
                )

            if len(available) < PLAYERS_PER_MATCH:
                logger.info(
                    "Not enough players (%d) for match %d, stopping generation",
                    len(available), match_index + 1,
                )
                break

            best_match, best_cost, evaluated = self.find_best_match(
                available, match_index, pool_size
            )
            if best_match is None:
                break

            team1, team2 = best_match
            update_player_stats(team1, team2, match_index)
            match = SessionMatch(
                match_number=match_index + 1,
                team1=list(team1),
                team2=list(team2),
            )
            matches.append(match)

            logger.debug("%s (cost: %.2f, candidates: %d)", match, best_cost, evaluated)

            if self.observer is not None:
                self.observer(MatchDecision(
                    match_number=match.match_number,
                    available_players=list(available),
                    team1=match.team1,
                    team2=match.team2,
                    cost=best_cost,
                    candidates_evaluated=evaluated,
                ))

        logger.info(
            "Generated %d of %d matches for %d players",
            len(matches), self.total_matches, pool_size,
        )
        for p in players:
            logger.debug("%s: %d matches", p.name, p.matches_played)

        return matches


def generate_session(
    players: Iterable[Player],
    session_minutes: float = DEFAULT_SESSION_MINUTES,
    match_duration_minutes: float = DEFAULT_MATCH_DURATION_MINUTES,
    weights: Optional[MatchWeights] = None,
    rng: Optional[random.Random] = None,
    observer: Optional[MatchObserver] = None,
) -> List[SessionMatch]:
    """Generate the matches of one session. See SessionGenerator."""
    generator = SessionGenerator(
        players,
        session_minutes=session_minutes,
        match_duration_minutes=match_duration_minutes,
        weights=weights,
        rng=rng,
        observer=observer,
    )
    return generator.generate()
