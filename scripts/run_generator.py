"""
Generate a session from the command line.
Reads players from a JSON file (or Supabase) and prints the session report.
"""

import sys
import json
import random
import argparse
import logging
from datetime import datetime
import os

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from planner.core.config import DEFAULT_SESSION_MINUTES, DEFAULT_MATCH_DURATION_MINUTES
from planner.core.exceptions import PlannerException
from planner.core.logging_config import setup_logging
from planner.models import Player, Session
from planner.services.session_generator import SessionGenerator
from planner.services.supabase_reader import SupabaseReader
from planner.services.validator import SessionValidator


def load_players(path):
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    rows = data["players"] if isinstance(data, dict) else data
    return [Player.from_dict(row) for row in rows]


def main():
    parser = argparse.ArgumentParser(
        description='Pickleball Session Planner - Generate a balanced doubles session'
    )
    parser.add_argument(
        '--players',
        help='JSON file with a list of {id, name, gender, score} (default: load from Supabase)'
    )
    parser.add_argument(
        '--session-minutes',
        type=float,
        default=DEFAULT_SESSION_MINUTES,
        help='Session length in minutes'
    )
    parser.add_argument(
        '--match-minutes',
        type=float,
        default=DEFAULT_MATCH_DURATION_MINUTES,
        help='Match length in minutes'
    )
    parser.add_argument(
        '--seed',
        type=int,
        help='Seed the shuffle for a reproducible session'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Log every match decision'
    )

    args = parser.parse_args()
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    print("\n" + "=" * 80)
    print("PICKLEBALL SESSION PLANNER")
    print("=" * 80)
    print(f"Started at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print("=" * 80)

    try:
        if args.players:
            players = load_players(args.players)
        else:
            players = SupabaseReader().load_players()

        print(f"\nLoaded {len(players)} players")

        generator = SessionGenerator(
            players,
            session_minutes=args.session_minutes,
            match_duration_minutes=args.match_minutes,
            rng=random.Random(args.seed) if args.seed is not None else None,
        )
        session = Session(
            name=f"CLI session {datetime.now().strftime('%Y-%m-%d %H:%M')}",
            session_minutes=args.session_minutes,
            match_duration_minutes=args.match_minutes,
            matches=generator.generate(),
        )

        validator = SessionValidator()
        validation_result = validator.validate_session(session, players)

        print("\n" + validator.generate_session_report(session, players))
        print("\n" + validation_result.get_summary())

        if session.is_truncated:
            print(f"WARNING: only {len(session.matches)} of "
                  f"{session.requested_matches} matches could be generated")

        return 0

    except KeyboardInterrupt:
        print("\n\nGeneration interrupted by user.")
        return 1

    except (PlannerException, OSError, KeyError, ValueError) as e:
        print(f"\nERROR: {type(e).__name__}: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
