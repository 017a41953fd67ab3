"""
API routes for session generation and match recording.
"""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from typing import List, Dict, Any, Optional, Literal
from datetime import datetime
from celery.result import AsyncResult

from planner.models import Player, Gender, MatchWeights
from planner.core.config import (
    DEFAULT_SESSION_MINUTES, DEFAULT_MATCH_DURATION_MINUTES,
    MIN_PLAYER_SCORE, MAX_PLAYER_SCORE, PLAYERS_PER_MATCH,
    MAX_CANDIDATE_POOL_SIZE
)
from planner.core.exceptions import (
    InvalidConfigurationError, InvalidResultError, MissingConfigurationError,
    MatchAlreadyCompletedError, MatchNotFoundError, PersistenceError
)
from planner.core.celery_app import celery_app
from planner.core.logging_config import get_logger
from planner.services.planning import plan_session
from planner.services.supabase_reader import SupabaseReader
from planner.services.match_recorder import MatchRecorder
from planner.tasks.session_tasks import generate_session_task

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["session"])


class PlayerIn(BaseModel):
    """A player supplied inline with a request."""
    id: str
    name: str
    gender: Literal["male", "female"]
    score: float = Field(ge=MIN_PLAYER_SCORE, le=MAX_PLAYER_SCORE)
    avatar_url: Optional[str] = None

    def to_player(self) -> Player:
        return Player(
            id=self.id,
            name=self.name,
            gender=Gender(self.gender),
            score=self.score,
            avatar_url=self.avatar_url,
        )


class SessionRequest(BaseModel):
    """Request model for session generation."""
    players: Optional[List[PlayerIn]] = None
    player_ids: Optional[List[str]] = None  # Load from Supabase instead
    session_minutes: float = DEFAULT_SESSION_MINUTES
    match_duration_minutes: float = DEFAULT_MATCH_DURATION_MINUTES
    weights: Optional[Dict[str, float]] = None
    seed: Optional[int] = None
    name: Optional[str] = None


class PlayerResponse(BaseModel):
    id: str
    name: str
    gender: str
    score: float
    avatar_url: Optional[str] = None


class MatchResponse(BaseModel):
    """Response model for a single match."""
    match_number: int
    team1: List[PlayerResponse]
    team2: List[PlayerResponse]
    team1_total: float
    team2_total: float
    balance: float


class SessionResponse(BaseModel):
    """Response model for session generation."""
    success: bool
    message: str
    name: str
    requested_matches: int
    total_matches: int
    matches: List[MatchResponse]
    participation: Dict[str, int]
    validation: Dict[str, Any]
    warnings: List[str]
    generation_time: float


class ResultRequest(BaseModel):
    team1_score: int = Field(ge=0)
    team2_score: int = Field(ge=0)


class ScoreChangeResponse(BaseModel):
    player_id: str
    score_change: float


class ResultResponse(BaseModel):
    match_id: str
    team1_score: int
    team2_score: int
    winner: Optional[str]
    score_changes: List[ScoreChangeResponse]


def get_reader() -> SupabaseReader:
    return SupabaseReader()


def get_recorder() -> MatchRecorder:
    try:
        return MatchRecorder()
    except MissingConfigurationError as e:
        raise HTTPException(status_code=503, detail=str(e))


def _raise_http_error(e: Exception):
    if isinstance(e, MatchAlreadyCompletedError):
        raise HTTPException(status_code=409, detail=str(e))
    if isinstance(e, (InvalidConfigurationError, InvalidResultError)):
        raise HTTPException(status_code=422, detail=str(e))
    if isinstance(e, MatchNotFoundError):
        raise HTTPException(status_code=404, detail=str(e))
    if isinstance(e, MissingConfigurationError):
        raise HTTPException(status_code=503, detail=str(e))
    if isinstance(e, PersistenceError):
        raise HTTPException(status_code=502, detail=str(e))
    raise e


def _require_players(request: SessionRequest):
    if request.players is None and request.player_ids is None:
        raise HTTPException(status_code=422, detail="Provide either players or player_ids")


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "timestamp": datetime.now().isoformat()}


@router.get("/weights")
async def get_weights():
    """Default generation weights and session rules."""
    return {
        "weights": MatchWeights().to_dict(),
        "session_defaults": {
            "session_minutes": DEFAULT_SESSION_MINUTES,
            "match_duration_minutes": DEFAULT_MATCH_DURATION_MINUTES,
            "players_per_match": PLAYERS_PER_MATCH,
        },
        "limits": {
            "min_player_score": MIN_PLAYER_SCORE,
            "max_player_score": MAX_PLAYER_SCORE,
            "max_candidate_pool_size": MAX_CANDIDATE_POOL_SIZE,
        },
    }


@router.post("/session", response_model=SessionResponse)
def generate_session(request: SessionRequest):
    """
    Generate a session.

    This endpoint:
    1. Takes the player pool inline or loads it from Supabase
    2. Generates the matches
    3. Validates the session
    4. Returns the session data

    A session shorter than requested is returned with a warning, not an error.
    """
    _require_players(request)

    try:
        if request.players is not None:
            players = [p.to_player() for p in request.players]
        else:
            players = get_reader().load_players_by_ids(request.player_ids)

        logger.info("Generating session for %d players", len(players))
        return plan_session(
            players,
            session_minutes=request.session_minutes,
            match_duration_minutes=request.match_duration_minutes,
            weights=request.weights,
            seed=request.seed,
            name=request.name,
        )
    except (InvalidConfigurationError, MissingConfigurationError, PersistenceError) as e:
        _raise_http_error(e)


@router.post("/session/async")
async def generate_session_async(request: SessionRequest):
    """
    Start async session generation task.

    Returns:
        dict: Task ID for polling status
    """
    _require_players(request)

    try:
        task = generate_session_task.delay(
            session_minutes=request.session_minutes,
            match_duration_minutes=request.match_duration_minutes,
            players=[p.model_dump() for p in request.players] if request.players is not None else None,
            player_ids=request.player_ids,
            weights=request.weights,
            seed=request.seed,
            name=request.name,
        )
    except Exception as e:
        logger.exception("Failed to start session task")
        raise HTTPException(status_code=500, detail=f"Failed to start task: {str(e)}")

    return {
        "task_id": task.id,
        "status": "PENDING",
        "message": "Session generation started"
    }


@router.get("/session/status/{task_id}")
async def get_session_status(task_id: str):
    """
    Get status of async session generation task.

    Args:
        task_id: Celery task ID

    Returns:
        dict: Task status and result (if complete)
    """
    task_result = AsyncResult(task_id, app=celery_app)

    if task_result.state == "PENDING":
        return {
            "task_id": task_id,
            "status": "PENDING",
            "message": "Task is waiting to start..."
        }
    elif task_result.state == "PROGRESS":
        return {
            "task_id": task_id,
            "status": "PROGRESS",
            "message": (task_result.info or {}).get("status", "Processing...")
        }
    elif task_result.state == "SUCCESS":
        return {
            "task_id": task_id,
            "status": "SUCCESS",
            "result": task_result.result
        }
    elif task_result.state == "FAILURE":
        return {
            "task_id": task_id,
            "status": "FAILURE",
            "message": str(task_result.info)
        }
    return {
        "task_id": task_id,
        "status": task_result.state,
        "message": f"Task state: {task_result.state}"
    }


@router.post("/matches/{match_id}/result", response_model=ResultResponse)
def record_match_result(
    match_id: str,
    request: ResultRequest,
    recorder: MatchRecorder = Depends(get_recorder),
):
    """Record the final score of a match and update the players' ratings."""
    try:
        outcome = recorder.record_result(match_id, request.team1_score, request.team2_score)
    except (InvalidResultError, MatchNotFoundError, PersistenceError) as e:
        _raise_http_error(e)

    return ResultResponse(
        match_id=outcome.match_id,
        team1_score=outcome.team1_score,
        team2_score=outcome.team2_score,
        winner=outcome.winner,
        score_changes=[
            ScoreChangeResponse(player_id=c.player_id, score_change=c.score_change)
            for c in outcome.score_changes
        ],
    )
