"""
Celery tasks for session generation.
"""

from typing import Any, Dict, List, Optional

from celery.exceptions import SoftTimeLimitExceeded

from planner.core.celery_app import celery_app
from planner.core.exceptions import PlannerException
from planner.core.logging_config import get_logger
from planner.models import Player
from planner.services.planning import plan_session
from planner.services.supabase_reader import SupabaseReader

logger = get_logger(__name__)


@celery_app.task(bind=True, name="generate_session")
def generate_session_task(
    self,
    session_minutes: float,
    match_duration_minutes: float,
    players: Optional[List[Dict[str, Any]]] = None,
    player_ids: Optional[List[str]] = None,
    weights: Optional[Dict[str, Any]] = None,
    seed: Optional[int] = None,
    name: Optional[str] = None,
):
    """
    Async task to generate a session.

    Players are given inline as dicts, or as ids to load from Supabase.

    Returns:
        dict: Session payload, or an error payload with success=False
    """
    try:
        if players is not None:
            pool = [Player.from_dict(p) for p in players]
        else:
            self.update_state(
                state="PROGRESS",
                meta={"status": "Loading players from Supabase..."}
            )
            pool = SupabaseReader().load_players_by_ids(player_ids or [])

        self.update_state(
            state="PROGRESS",
            meta={"status": f"Generating session for {len(pool)} players..."}
        )

        return plan_session(
            pool,
            session_minutes=session_minutes,
            match_duration_minutes=match_duration_minutes,
            weights=weights,
            seed=seed,
            name=name,
        )

    except (PlannerException, SoftTimeLimitExceeded, KeyError, ValueError) as e:
        logger.exception("Error in generate_session_task")
        return {
            "success": False,
            "message": f"Session generation failed: {e}",
            "error": type(e).__name__,
        }
