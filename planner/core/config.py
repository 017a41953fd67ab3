"""
Configuration constants for the Pickleball Session Planner.
All configurable settings are defined here.
"""

import os
import json
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Supabase Configuration (player source and match recording)
SUPABASE_URL = os.getenv("SUPABASE_URL", "")
SUPABASE_KEY = os.getenv("SUPABASE_KEY", os.getenv("SUPABASE_ANON_KEY", ""))

# Table names
TABLE_PLAYERS = "players"
TABLE_SESSIONS = "sessions"
TABLE_MATCHES = "matches"
TABLE_MATCH_PLAYERS = "match_players"

# Celery broker / result backend
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
SESSION_QUEUE = os.getenv("SESSION_QUEUE", "session_generation")

# API server
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8000"))

# Frontend origins allowed by the API
CORS_ORIGINS = json.loads(os.getenv("CORS_ORIGINS", '["http://localhost:5173", "http://localhost:3000"]'))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Session Rules
DEFAULT_SESSION_MINUTES = 120
DEFAULT_MATCH_DURATION_MINUTES = 15
PLAYERS_PER_MATCH = 4
PLAYERS_PER_TEAM = 2

# Player score range (0-10 scale)
MIN_PLAYER_SCORE = 0.0
MAX_PLAYER_SCORE = 10.0
DEFAULT_PLAYER_SCORE = 5.0

# Match generation weights.
# The consecutive-match multipliers must stay above the largest possible
# balance term: (2 * MAX_PLAYER_SCORE) * balance = 2000.
MATCH_WEIGHTS = {
    "small_pool_max_players": 6,       # Pools up to this size use forced rotation
    "candidate_pool_size": 4,          # Players handed to the candidate enumerator per match
    "max_consecutive_small": 3,        # Consecutive run that triggers the penalty (small pools)
    "max_consecutive_large": 2,        # Consecutive run that triggers the penalty (large pools)
    "consecutive_penalty_small": 1000, # Per consecutive match once over the limit (small pools)
    "consecutive_penalty_large": 2000, # Per consecutive match once over the limit (large pools)
    "rested_consecutive_limit": 2,     # Large pools prefer players below this run length
    "balance": 100,                    # Per point of team total difference
    "fatigue": 2,                      # Global fatigue weight
    "fatigue_factor_male": 0.2,        # Per match played
    "fatigue_factor_female": 0.3,      # Per match played
    "no_rest": 1,                      # Global no-rest weight
    "no_rest_penalty": 1.0,            # Per player who played the previous match
    "teammate_repeat": 10,             # Per repeated teammate
}

# Enumeration is C(n, 4) * 3 per match, so the working set is capped
MAX_CANDIDATE_POOL_SIZE = 12

# Rating update (logistic expected outcome on summed team scores)
RATING_K_FACTOR = 0.32
RATING_SCALE = 4.0
CLOSE_MATCH_MARGIN = 2      # Game points
CLOSE_MATCH_BONUS = 0.05
BALANCED_TEAMS_THRESHOLD = 2.0
