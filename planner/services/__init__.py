"""
Services for session generation, validation, rating and Supabase integration.
"""

from .session_generator import SessionGenerator, generate_session
from .validator import SessionValidator
from .rating import RatingUpdater
from .supabase_reader import SupabaseReader
from .match_recorder import MatchRecorder

__all__ = [
    "SessionGenerator",
    "generate_session",
    "SessionValidator",
    "RatingUpdater",
    "SupabaseReader",
    "MatchRecorder"
]
