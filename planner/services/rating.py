"""
Player rating updates from completed matches.

Expected outcome is logistic in the difference of the two team totals; each
player moves by k * (actual - expected), plus a small bonus to everyone when
the game was close.
"""

from typing import List, Optional, Sequence

from planner.models import ScoreChange
from planner.core.config import (
    RATING_K_FACTOR, RATING_SCALE, CLOSE_MATCH_MARGIN, CLOSE_MATCH_BONUS,
    BALANCED_TEAMS_THRESHOLD, MIN_PLAYER_SCORE, MAX_PLAYER_SCORE,
    DEFAULT_PLAYER_SCORE
)
from planner.core.exceptions import InvalidResultError

TEAM1 = "team1"
TEAM2 = "team2"


def calculate_team_balance(team1_total: float, team2_total: float) -> float:
    """Lower is more balanced."""
    return abs(team1_total - team2_total)


def are_teams_balanced(
    team1_total: float, team2_total: float, threshold: float = BALANCED_TEAMS_THRESHOLD
) -> bool:
    return calculate_team_balance(team1_total, team2_total) <= threshold


def determine_winner(team1_score: int, team2_score: int) -> Optional[str]:
    if team1_score == team2_score:
        return None
    return TEAM1 if team1_score > team2_score else TEAM2


class RatingUpdater:
    """Computes and applies per-player score changes after a match."""

    def __init__(
        self,
        k_factor: float = RATING_K_FACTOR,
        scale: float = RATING_SCALE,
        close_match_margin: int = CLOSE_MATCH_MARGIN,
        close_match_bonus: float = CLOSE_MATCH_BONUS,
    ):
        self.k_factor = k_factor
        self.scale = scale
        self.close_match_margin = close_match_margin
        self.close_match_bonus = close_match_bonus

    def expected_outcome(self, team1_total: float, team2_total: float) -> float:
        """Probability that team 1 wins."""
        return 1 / (1 + 10 ** ((team2_total - team1_total) / self.scale))

    def calculate_score_changes(
        self,
        team1: Sequence,
        team2: Sequence,
        team1_score: int,
        team2_score: int,
        winner: Optional[str] = None,
    ) -> List[ScoreChange]:
        """
        Calculate the score change of every player in a finished match.

        Args:
            team1: Players of team 1 (anything with ``id`` and ``score``)
            team2: Players of team 2
            team1_score: Game points scored by team 1
            team2_score: Game points scored by team 2
            winner: "team1" or "team2"; derived from the game points if omitted

        Returns:
            One ScoreChange per player, team 1 first

        Raises:
            InvalidResultError: for negative or tied game scores
        """
        if team1_score < 0 or team2_score < 0:
            raise InvalidResultError(f"Scores cannot be negative: {team1_score}-{team2_score}")

        winner = winner or determine_winner(team1_score, team2_score)
        if winner not in (TEAM1, TEAM2):
            raise InvalidResultError(f"A match needs a winner, got {team1_score}-{team2_score}")

        team1_total = sum(p.score for p in team1)
        team2_total = sum(p.score for p in team2)

        team1_expected = self.expected_outcome(team1_total, team2_total)
        team2_expected = 1 - team1_expected

        team1_actual = 1 if winner == TEAM1 else 0
        team2_actual = 1 if winner == TEAM2 else 0

        bonus = 0.0
        if abs(team1_score - team2_score) <= self.close_match_margin:
            bonus = self.close_match_bonus

        team1_change = round(self.k_factor * (team1_actual - team1_expected) + bonus, 2)
        team2_change = round(self.k_factor * (team2_actual - team2_expected) + bonus, 2)

        return (
            [ScoreChange(player_id=p.id, score_change=team1_change) for p in team1]
            + [ScoreChange(player_id=p.id, score_change=team2_change) for p in team2]
        )

    @staticmethod
    def apply_score_change(current_score: Optional[float], score_change: float) -> float:
        """New score, clamped to the valid range. Missing scores start at the default."""
        current = DEFAULT_PLAYER_SCORE if current_score is None else current_score
        return max(min(current + score_change, MAX_PLAYER_SCORE), MIN_PLAYER_SCORE)
