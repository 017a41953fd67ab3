"""
Session validation module for the Pickleball Session Planner.
Validates generated sessions against hard and soft constraints.
"""

from typing import List, Dict, Optional, Iterable
from collections import defaultdict

from planner.models import (
    Session, Player, MatchWeights, SessionConstraint, SessionValidationResult
)
from planner.core.config import PLAYERS_PER_MATCH, PLAYERS_PER_TEAM, BALANCED_TEAMS_THRESHOLD
from planner.core.logging_config import get_logger

logger = get_logger(__name__)


class SessionValidator:
    """
    Validates generated sessions.
    Hard constraints make a session unusable; soft constraints flag
    fairness problems that a coordinator may want to fix by hand.
    """

    def __init__(self, weights: Optional[MatchWeights] = None):
        """Initialize the validator."""
        self.weights = weights or MatchWeights()

    def validate_session(
        self, session: Session, players: Optional[Iterable[Player]] = None
    ) -> SessionValidationResult:
        """
        Validate a complete session against all constraints.

        Args:
            session: The session to validate
            players: The pool the session was generated from; enables the
                unknown-player check and sets the pool size used for the
                consecutive-match limit

        Returns:
            SessionValidationResult with all violations found
        """
        result = SessionValidationResult(is_valid=True)
        pool = list(players) if players is not None else None

        self._check_match_numbering(session, result)
        self._check_match_composition(session, result)
        self._check_session_length(session, result)
        if pool is not None:
            self._check_unknown_players(session, pool, result)

        pool_size = len(pool) if pool is not None else len(session.get_participation())
        self._check_consecutive_matches(session, pool_size, result)
        self._check_repeat_teammates(session, result)
        self._check_team_balance(session, result)
        self._check_participation_spread(session, pool, result)

        logger.info(
            "Validated session: valid=%s, %d hard / %d soft violations, penalty %.2f",
            result.is_valid,
            len(result.hard_constraint_violations),
            len(result.soft_constraint_violations),
            result.total_penalty_score,
        )
        for violation in result.hard_constraint_violations[:10]:  # Show first 10
            logger.warning("  - %s: %s", violation.constraint_type, violation.description)

        return result

    def _check_match_numbering(self, session: Session, result: SessionValidationResult):
        """Match numbers must run 1, 2, 3, ... without gaps or repeats."""
        for expected, match in enumerate(session.matches, start=1):
            if match.match_number != expected:
                result.add_violation(SessionConstraint(
                    constraint_type="match_numbering",
                    severity="hard",
                    description=f"Expected match {expected}, found match {match.match_number}",
                    match_numbers=[match.match_number],
                    penalty_score=1000.0
                ))

    def _check_match_composition(self, session: Session, result: SessionValidationResult):
        """Each match needs two teams of two and four different players."""
        for match in session.matches:
            if len(match.team1) != PLAYERS_PER_TEAM or len(match.team2) != PLAYERS_PER_TEAM:
                result.add_violation(SessionConstraint(
                    constraint_type="team_size",
                    severity="hard",
                    description=f"Match {match.match_number} has teams of "
                                f"{len(match.team1)} and {len(match.team2)}",
                    match_numbers=[match.match_number],
                    penalty_score=2000.0
                ))
                continue

            ids = match.player_ids
            if len(set(ids)) != PLAYERS_PER_MATCH:
                duplicates = sorted({pid for pid in ids if ids.count(pid) > 1})
                result.add_violation(SessionConstraint(
                    constraint_type="duplicate_player",
                    severity="hard",
                    description=f"Match {match.match_number} uses the same player twice",
                    match_numbers=[match.match_number],
                    player_ids=duplicates,
                    penalty_score=3000.0  # Physically impossible
                ))

    def _check_session_length(self, session: Session, result: SessionValidationResult):
        requested = session.requested_matches
        if len(session.matches) > requested:
            result.add_violation(SessionConstraint(
                constraint_type="session_overrun",
                severity="hard",
                description=f"{len(session.matches)} matches do not fit "
                            f"{session.session_minutes} minutes ({requested} max)",
                match_numbers=[m.match_number for m in session.matches[requested:]],
                penalty_score=500.0
            ))

    def _check_unknown_players(
        self, session: Session, pool: List[Player], result: SessionValidationResult
    ):
        known = {p.id for p in pool}
        for match in session.matches:
            unknown = [pid for pid in match.player_ids if pid not in known]
            if unknown:
                result.add_violation(SessionConstraint(
                    constraint_type="unknown_player",
                    severity="hard",
                    description=f"Match {match.match_number} includes players outside the pool",
                    match_numbers=[match.match_number],
                    player_ids=unknown,
                    penalty_score=1500.0
                ))

    def _check_consecutive_matches(
        self, session: Session, pool_size: int, result: SessionValidationResult
    ):
        """Flag players who play more back-to-back matches than the pool size allows."""
        if self.weights.is_small_pool(pool_size):
            limit = self.weights.max_consecutive_small
        else:
            limit = self.weights.max_consecutive_large

        runs: Dict[str, int] = defaultdict(int)
        flagged = set()
        previous_ids = set()
        for match in session.matches:
            current_ids = set(match.player_ids)
            for pid in current_ids:
                runs[pid] = runs[pid] + 1 if pid in previous_ids else 1
                if runs[pid] > limit and pid not in flagged:
                    flagged.add(pid)
                    result.add_violation(SessionConstraint(
                        constraint_type="consecutive_matches",
                        severity="soft",
                        description=f"Player {pid} plays {runs[pid]} matches in a row "
                                    f"(limit {limit}) ending at match {match.match_number}",
                        match_numbers=[match.match_number],
                        player_ids=[pid],
                        penalty_score=self.weights.consecutive_penalty_large
                    ))
            previous_ids = current_ids

    def _check_repeat_teammates(self, session: Session, result: SessionValidationResult):
        pairings: Dict[frozenset, List[int]] = defaultdict(list)
        for match in session.matches:
            for team in (match.team1, match.team2):
                if len(team) == PLAYERS_PER_TEAM:
                    pairings[frozenset(p.id for p in team)].append(match.match_number)

        for pair, match_numbers in pairings.items():
            if len(match_numbers) > 1:
                result.add_violation(SessionConstraint(
                    constraint_type="repeat_teammates",
                    severity="soft",
                    description=f"Players {' & '.join(sorted(pair))} are teamed "
                                f"{len(match_numbers)} times",
                    match_numbers=match_numbers,
                    player_ids=sorted(pair),
                    penalty_score=(len(match_numbers) - 1) * self.weights.teammate_repeat
                ))

    def _check_team_balance(self, session: Session, result: SessionValidationResult):
        for match in session.matches:
            if match.balance > BALANCED_TEAMS_THRESHOLD:
                result.add_violation(SessionConstraint(
                    constraint_type="team_imbalance",
                    severity="soft",
                    description=f"Match {match.match_number} teams differ by {match.balance:.2f}",
                    match_numbers=[match.match_number],
                    penalty_score=match.balance * self.weights.balance
                ))

    def _check_participation_spread(
        self, session: Session, pool: Optional[List[Player]], result: SessionValidationResult
    ):
        """Everyone should play within one match of everyone else."""
        counts = session.get_participation()
        if pool is not None:
            for p in pool:
                counts.setdefault(p.id, 0)
        if not counts:
            return

        most = max(counts.values())
        least = min(counts.values())
        if most - least > 1:
            result.add_violation(SessionConstraint(
                constraint_type="uneven_participation",
                severity="soft",
                description=f"Participation ranges from {least} to {most} matches",
                player_ids=sorted(pid for pid, c in counts.items() if c in (least, most)),
                penalty_score=(most - least - 1) * 10.0
            ))

    def generate_session_report(self, session: Session, players: Optional[Iterable[Player]] = None) -> str:
        """
        Generate a readable report of the session.

        Args:
            session: The session to report on
            players: Optional pool, so players who never play are listed too

        Returns:
            Formatted report string
        """
        report = []
        report.append("=" * 80)
        report.append("SESSION REPORT")
        report.append("=" * 80)
        report.append(f"Session: {session.name}")
        report.append(f"Length: {session.session_minutes} min, "
                      f"{session.match_duration_minutes} min per match")
        report.append(f"Matches: {len(session.matches)} of {session.requested_matches} requested")
        report.append("")

        report.append("Matches:")
        for match in session.matches:
            report.append(f"  {match} (totals {match.team1_total:.1f} vs "
                          f"{match.team2_total:.1f})")
        report.append("")

        report.append("Player Participation:")
        counts = session.get_participation()
        names = {}
        for match in session.matches:
            for p in match.players:
                names[p.id] = p.name
        if players is not None:
            for p in players:
                counts.setdefault(p.id, 0)
                names.setdefault(p.id, p.name)
        for pid in sorted(counts, key=lambda i: (-counts[i], names.get(i, i))):
            report.append(f"  {names.get(pid, pid)}: {counts[pid]} matches")

        report.append("=" * 80)

        return "\n".join(report)
