"""
Data models for the session planner.
"""

from .models import (
    Gender,
    SessionStatus,
    MatchStatus,
    Player,
    InternalPlayer,
    SessionMatch,
    Session,
    MatchWeights,
    MatchDecision,
    ScoreChange,
    MatchOutcome,
    SessionConstraint,
    SessionValidationResult
)

__all__ = [
    "Gender",
    "SessionStatus",
    "MatchStatus",
    "Player",
    "InternalPlayer",
    "SessionMatch",
    "Session",
    "MatchWeights",
    "MatchDecision",
    "ScoreChange",
    "MatchOutcome",
    "SessionConstraint",
    "SessionValidationResult"
]
