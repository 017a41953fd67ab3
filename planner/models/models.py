"""
Data models for the Pickleball Session Planner.
Defines all data structures used throughout the application.
"""

from dataclasses import dataclass, field, fields
from typing import List, Optional, Set, Dict, Any
from enum import Enum

from planner.core.config import MATCH_WEIGHTS
from planner.core.exceptions import InvalidConfigurationError


class Gender(Enum):
    MALE = "male"
    FEMALE = "female"


class SessionStatus(Enum):
    DRAFT = "draft"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class MatchStatus(Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


@dataclass
class Player:
    id: str
    name: str
    gender: Gender
    score: float
    avatar_url: Optional[str] = None

    def __hash__(self):
        return hash(self.id)

    def __eq__(self, other):
        if isinstance(other, Player):
            return self.id == other.id
        return False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "gender": self.gender.value,
            "score": self.score,
            "avatar_url": self.avatar_url,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Player":
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            gender=Gender(data["gender"]),
            score=float(data["score"]),
            avatar_url=data.get("avatar_url"),
        )


@dataclass(eq=False)
class InternalPlayer:
    """
    Working copy of a player, owned by a single generation run.

    Compared by identity: two clones of the same player from different runs
    are different objects.
    """
    player: Player
    matches_played: int = 0
    last_played: int = -1
    last_teammates: Set[str] = field(default_factory=set)
    streak: int = 0  # length of the back-to-back run ending at last_played

    @property
    def id(self) -> str:
        return self.player.id

    @property
    def name(self) -> str:
        return self.player.name

    @property
    def gender(self) -> Gender:
        return self.player.gender

    @property
    def score(self) -> float:
        return self.player.score

    def consecutive_matches(self, match_index: int) -> int:
        """Count matches played back-to-back immediately before match_index."""
        if self.last_played != match_index - 1:
            return 0
        return self.streak

    def __str__(self):
        return f"{self.name} ({self.score:.1f})"


@dataclass
class SessionMatch:
    match_number: int
    team1: List[InternalPlayer]
    team2: List[InternalPlayer]

    def __str__(self):
        team1 = " & ".join(p.name for p in self.team1)
        team2 = " & ".join(p.name for p in self.team2)
        return f"Match {self.match_number}: {team1} vs {team2}"

    @property
    def players(self) -> List[InternalPlayer]:
        return [*self.team1, *self.team2]

    @property
    def player_ids(self) -> List[str]:
        return [p.id for p in self.players]

    @property
    def team1_total(self) -> float:
        return sum(p.score for p in self.team1)

    @property
    def team2_total(self) -> float:
        return sum(p.score for p in self.team2)

    @property
    def balance(self) -> float:
        return abs(self.team1_total - self.team2_total)

    def involves_player(self, player_id: str) -> bool:
        return player_id in self.player_ids

    def get_team(self, player_id: str) -> Optional[int]:
        if any(p.id == player_id for p in self.team1):
            return 1
        if any(p.id == player_id for p in self.team2):
            return 2
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "match_number": self.match_number,
            "team1": [p.player.to_dict() for p in self.team1],
            "team2": [p.player.to_dict() for p in self.team2],
            "team1_total": round(self.team1_total, 2),
            "team2_total": round(self.team2_total, 2),
            "balance": round(self.balance, 2),
        }


@dataclass
class Session:
    name: str
    session_minutes: float
    match_duration_minutes: float
    matches: List[SessionMatch] = field(default_factory=list)
    status: SessionStatus = SessionStatus.DRAFT
    id: Optional[str] = None

    @property
    def requested_matches(self) -> int:
        if self.match_duration_minutes <= 0:
            return 0
        return int(self.session_minutes // self.match_duration_minutes)

    @property
    def is_truncated(self) -> bool:
        return len(self.matches) < self.requested_matches

    def add_match(self, match: SessionMatch):
        self.matches.append(match)

    def get_player_matches(self, player_id: str) -> List[SessionMatch]:
        return [match for match in self.matches if match.involves_player(player_id)]

    def get_participation(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for match in self.matches:
            for player in match.players:
                counts[player.id] = counts.get(player.id, 0) + 1
        return counts


@dataclass
class MatchWeights:
    """
    Tunable constants for the availability policy and the cost function.

    Defaults come from ``MATCH_WEIGHTS`` in the config module. None of the
    values is derived; they were tuned by hand against real sessions.
    """
    small_pool_max_players: int = MATCH_WEIGHTS["small_pool_max_players"]
    candidate_pool_size: int = MATCH_WEIGHTS["candidate_pool_size"]
    max_consecutive_small: int = MATCH_WEIGHTS["max_consecutive_small"]
    max_consecutive_large: int = MATCH_WEIGHTS["max_consecutive_large"]
    consecutive_penalty_small: float = MATCH_WEIGHTS["consecutive_penalty_small"]
    consecutive_penalty_large: float = MATCH_WEIGHTS["consecutive_penalty_large"]
    rested_consecutive_limit: int = MATCH_WEIGHTS["rested_consecutive_limit"]
    balance: float = MATCH_WEIGHTS["balance"]
    fatigue: float = MATCH_WEIGHTS["fatigue"]
    fatigue_factor_male: float = MATCH_WEIGHTS["fatigue_factor_male"]
    fatigue_factor_female: float = MATCH_WEIGHTS["fatigue_factor_female"]
    no_rest: float = MATCH_WEIGHTS["no_rest"]
    no_rest_penalty: float = MATCH_WEIGHTS["no_rest_penalty"]
    teammate_repeat: float = MATCH_WEIGHTS["teammate_repeat"]

    def fatigue_factor(self, gender: Gender) -> float:
        if gender == Gender.FEMALE:
            return self.fatigue_factor_female
        return self.fatigue_factor_male

    def is_small_pool(self, pool_size: int) -> bool:
        return pool_size <= self.small_pool_max_players

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "MatchWeights":
        """
        Build weights from a partial mapping; missing keys keep their defaults.

        Raises:
            InvalidConfigurationError: if the mapping has keys that are not weights
        """
        if not data:
            return cls()
        known = {f.name for f in fields(cls)}
        unknown = sorted(key for key in data if key not in known)
        if unknown:
            raise InvalidConfigurationError(f"Unknown weights: {', '.join(unknown)}")
        return cls(**data)


@dataclass
class MatchDecision:
    """What the generator saw and picked for one match, for observers."""
    match_number: int
    available_players: List[InternalPlayer]
    team1: List[InternalPlayer]
    team2: List[InternalPlayer]
    cost: float
    candidates_evaluated: int


@dataclass
class ScoreChange:
    player_id: str
    score_change: float


@dataclass
class MatchOutcome:
    match_id: str
    team1_score: int
    team2_score: int
    winner: Optional[str]
    score_changes: List[ScoreChange] = field(default_factory=list)


@dataclass
class SessionConstraint:
    constraint_type: str
    severity: str
    description: str
    match_numbers: List[int] = field(default_factory=list)
    player_ids: List[str] = field(default_factory=list)
    penalty_score: float = 0.0


@dataclass
class SessionValidationResult:
    is_valid: bool
    hard_constraint_violations: List[SessionConstraint] = field(default_factory=list)
    soft_constraint_violations: List[SessionConstraint] = field(default_factory=list)
    total_penalty_score: float = 0.0

    def add_violation(self, constraint: SessionConstraint):
        if constraint.severity == 'hard':
            self.hard_constraint_violations.append(constraint)
            self.is_valid = False
        else:
            self.soft_constraint_violations.append(constraint)
        self.total_penalty_score += constraint.penalty_score

    def get_summary(self) -> str:
        summary = f"Session Valid: {self.is_valid}\n"
        summary += f"Hard Violations: {len(self.hard_constraint_violations)}\n"
        summary += f"Soft Violations: {len(self.soft_constraint_violations)}\n"
        summary += f"Total Penalty Score: {self.total_penalty_score:.2f}\n"
        return summary

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "hard_violations": len(self.hard_constraint_violations),
            "soft_violations": len(self.soft_constraint_violations),
            "total_penalty": self.total_penalty_score,
        }
