"""
Match recording for the Pickleball Session Planner.

Persists generated sessions to Supabase and records final scores, applying
the rating update to the four players of each finished match.
"""

from typing import List, Dict, Optional, Tuple
from supabase import Client

from planner.models import (
    Session, SessionStatus, MatchStatus, Player, MatchOutcome, ScoreChange
)
from planner.core.config import (
    TABLE_PLAYERS, TABLE_SESSIONS, TABLE_MATCHES, TABLE_MATCH_PLAYERS,
    PLAYERS_PER_TEAM
)
from planner.core.exceptions import (
    PersistenceError, MatchNotFoundError, MatchAlreadyCompletedError
)
from planner.core.logging_config import get_logger
from planner.services.rating import RatingUpdater, determine_winner
from planner.services.supabase_reader import SupabaseReader, create_supabase_client

logger = get_logger(__name__)


class MatchRecorder:
    """
    Writes sessions and match results.

    This class is responsible for:
    - Creating session, match and match-player rows for a generated session
    - Recording final scores
    - Updating player scores through the RatingUpdater
    """

    def __init__(self, client: Optional[Client] = None, rating_updater: Optional[RatingUpdater] = None):
        self.client: Client = client or create_supabase_client()
        self.reader = SupabaseReader(self.client)
        self.rating_updater = rating_updater or RatingUpdater()

    def save_session(self, session: Session) -> str:
        """
        Persist a generated session with all of its matches.

        If any insert fails, rows already written for the session are deleted
        before the error is raised.

        Args:
            session: The session to save; its id is set on success

        Returns:
            The new session id
        """
        session_id = None
        try:
            response = self.client.table(TABLE_SESSIONS).insert({
                "name": session.name,
                "session_duration_minutes": session.session_minutes,
                "match_duration_minutes": session.match_duration_minutes,
                "status": SessionStatus.DRAFT.value,
            }).execute()
            session_id = str(response.data[0]["id"])

            if session.matches:
                match_rows = self.client.table(TABLE_MATCHES).insert([
                    {
                        "session_id": session_id,
                        "match_number": match.match_number,
                        "status": MatchStatus.SCHEDULED.value,
                    }
                    for match in session.matches
                ]).execute().data

                match_player_rows = []
                for match, row in zip(session.matches, match_rows):
                    for team_number, team in ((1, match.team1), (2, match.team2)):
                        for p in team:
                            match_player_rows.append({
                                "match_id": row["id"],
                                "player_id": p.id,
                                "team": team_number,
                            })

                self.client.table(TABLE_MATCH_PLAYERS).insert(match_player_rows).execute()
        except Exception as e:
            if session_id is not None:
                self._delete_session_rows(session_id)
            raise PersistenceError(f"Error saving session '{session.name}': {e}") from e

        session.id = session_id
        session.status = SessionStatus.DRAFT
        logger.info("Saved session %s with %d matches", session_id, len(session.matches))
        return session_id

    def _delete_session_rows(self, session_id: str):
        """Best-effort removal of a partially saved session."""
        # match_players is written in a single insert, so only matches and
        # the session row itself can be left behind
        for table, column in ((TABLE_MATCHES, "session_id"), (TABLE_SESSIONS, "id")):
            try:
                self.client.table(table).delete().eq(column, session_id).execute()
            except Exception:
                logger.exception("Could not remove %s rows of session %s", table, session_id)

    def update_session_status(self, session_id: str, status: SessionStatus):
        try:
            self.client.table(TABLE_SESSIONS).update(
                {"status": status.value}
            ).eq("id", session_id).execute()
        except Exception as e:
            raise PersistenceError(f"Error updating session {session_id}: {e}") from e

    def load_match(self, match_id: str) -> Dict:
        """Load a stored match row with its players embedded."""
        try:
            response = (
                self.client.table(TABLE_MATCHES)
                .select("*, match_players(player_id, team, players(*))")
                .eq("id", match_id)
                .execute()
            )
        except Exception as e:
            raise PersistenceError(f"Error loading match {match_id}: {e}") from e

        if not response.data:
            raise MatchNotFoundError(f"Match {match_id} not found")
        return response.data[0]

    def load_match_teams(self, match_id: str) -> Tuple[List[Player], List[Player]]:
        """Load the two teams of a stored match."""
        return self._parse_teams(self.load_match(match_id))

    def _parse_teams(self, match_row: Dict) -> Tuple[List[Player], List[Player]]:
        teams: Dict[int, List[Player]] = {1: [], 2: []}
        for row in match_row.get("match_players") or []:
            player = self.reader.parse_player(row.get("players") or {"id": row["player_id"]})
            if player and row.get("team") in teams:
                teams[row["team"]].append(player)

        if len(teams[1]) != PLAYERS_PER_TEAM or len(teams[2]) != PLAYERS_PER_TEAM:
            raise PersistenceError(
                f"Match {match_row.get('id')} has incomplete teams: "
                f"{len(teams[1])} and {len(teams[2])} players"
            )
        return teams[1], teams[2]

    def record_result(self, match_id: str, team1_score: int, team2_score: int) -> MatchOutcome:
        """
        Record the final score of a match and update player ratings.

        Args:
            match_id: Stored match id
            team1_score: Game points of team 1
            team2_score: Game points of team 2

        Returns:
            MatchOutcome with the winner and every player's score change

        Raises:
            InvalidResultError: for negative or tied scores
            MatchAlreadyCompletedError: if the match already has a result
            MatchNotFoundError: if the match does not exist
            PersistenceError: if the stored teams are incomplete
        """
        match_row = self.load_match(match_id)
        if match_row.get("status") == MatchStatus.COMPLETED.value:
            raise MatchAlreadyCompletedError(
                f"Match {match_id} already has a result: "
                f"{match_row.get('team1_score')}-{match_row.get('team2_score')}"
            )

        team1, team2 = self._parse_teams(match_row)
        score_changes = self.rating_updater.calculate_score_changes(
            team1, team2, team1_score, team2_score
        )

        try:
            self.client.table(TABLE_MATCHES).update({
                "team1_score": team1_score,
                "team2_score": team2_score,
                "status": MatchStatus.COMPLETED.value,
            }).eq("id", match_id).execute()
        except Exception as e:
            raise PersistenceError(f"Error recording result for match {match_id}: {e}") from e

        current_scores = {p.id: p.score for p in [*team1, *team2]}
        for change in score_changes:
            self._apply_score_change(change, current_scores.get(change.player_id))

        winner = determine_winner(team1_score, team2_score)
        logger.info("Recorded match %s: %d-%d (%s)", match_id, team1_score, team2_score, winner)
        return MatchOutcome(
            match_id=match_id,
            team1_score=team1_score,
            team2_score=team2_score,
            winner=winner,
            score_changes=score_changes,
        )

    def _apply_score_change(self, change: ScoreChange, current_score: Optional[float]):
        new_score = self.rating_updater.apply_score_change(current_score, change.score_change)
        try:
            self.client.table(TABLE_PLAYERS).update(
                {"score": new_score}
            ).eq("id", change.player_id).execute()
        except Exception as e:
            raise PersistenceError(f"Error updating score for player {change.player_id}: {e}") from e
