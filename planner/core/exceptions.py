"""
Exceptions raised by the Pickleball Session Planner.

Running short of players is not an error: the generator returns a shorter
session instead. Only bad input and remote storage failures raise.
"""


class PlannerException(Exception):
    """Base exception for all planner errors."""

    pass


# ========== Input Validation ==========


class InvalidConfigurationError(PlannerException, ValueError):
    """Raised when session durations or generation weights are invalid."""

    pass


class InvalidPlayerDataError(InvalidConfigurationError):
    """Raised when the player list is malformed (e.g. duplicate ids)."""

    pass


class InvalidResultError(PlannerException, ValueError):
    """Raised when a reported match score is invalid (negative or tied)."""

    pass


class MatchAlreadyCompletedError(InvalidResultError):
    """Raised when a result is reported for a match that already has one."""

    pass


class MissingConfigurationError(PlannerException):
    """Raised when required environment settings (e.g. Supabase credentials) are missing."""

    pass


# ========== Persistence ==========


class PersistenceError(PlannerException):
    """Raised when Supabase rejects a read or write."""

    pass


class MatchNotFoundError(PersistenceError):
    """Raised when a match id does not exist."""

    pass
