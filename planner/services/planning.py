"""
End-to-end session planning used by the API and the Celery worker:
generate, validate and format a session for a response.
"""

import random
from datetime import datetime
from typing import Any, Dict, List, Optional

from planner.models import Player, Session, MatchWeights
from planner.services.session_generator import SessionGenerator
from planner.services.validator import SessionValidator


def plan_session(
    players: List[Player],
    session_minutes: float,
    match_duration_minutes: float,
    weights: Optional[Dict[str, Any]] = None,
    seed: Optional[int] = None,
    name: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Generate and validate a session, returning a JSON-ready payload.

    Raises:
        InvalidConfigurationError: on invalid durations, weights or players
    """
    start_time = datetime.now()

    match_weights = MatchWeights.from_dict(weights)
    generator = SessionGenerator(
        players,
        session_minutes=session_minutes,
        match_duration_minutes=match_duration_minutes,
        weights=match_weights,
        rng=random.Random(seed) if seed is not None else None,
    )
    session = Session(
        name=name or f"Session {start_time.strftime('%Y-%m-%d %H:%M')}",
        session_minutes=session_minutes,
        match_duration_minutes=match_duration_minutes,
        matches=generator.generate(),
    )

    validator = SessionValidator(match_weights)
    validation_result = validator.validate_session(session, players)

    warnings = []
    if len(players) < 4:
        warnings.append(f"At least 4 players are needed, got {len(players)}")
    elif session.is_truncated:
        warnings.append(
            f"Only {len(session.matches)} of {session.requested_matches} matches could be generated"
        )

    participation = session.get_participation()
    for p in players:
        participation.setdefault(p.id, 0)

    # Calculate generation time
    generation_time = (datetime.now() - start_time).total_seconds()

    return {
        "success": True,
        "message": f"Session generated with {len(session.matches)} matches",
        "name": session.name,
        "requested_matches": session.requested_matches,
        "total_matches": len(session.matches),
        "matches": [match.to_dict() for match in session.matches],
        "participation": participation,
        "validation": validation_result.to_dict(),
        "warnings": warnings,
        "generation_time": generation_time,
    }
