"""
Supabase data reader for the Pickleball Session Planner.
Loads the player pool that sessions are generated from.
"""

from typing import List, Dict, Optional, Iterable
from supabase import create_client, Client

from planner.models import Player, Gender
from planner.core.config import (
    SUPABASE_URL, SUPABASE_KEY, TABLE_PLAYERS, DEFAULT_PLAYER_SCORE
)
from planner.core.exceptions import PersistenceError, MissingConfigurationError
from planner.core.logging_config import get_logger

logger = get_logger(__name__)


def create_supabase_client(url: str = SUPABASE_URL, key: str = SUPABASE_KEY) -> Client:
    if not url or not key:
        raise MissingConfigurationError(
            "Supabase credentials not found. Please set SUPABASE_URL and SUPABASE_KEY"
        )
    return create_client(url, key)


class SupabaseReader:
    def __init__(self, client: Optional[Client] = None):
        self.client: Client = client or create_supabase_client()

        self._players_cache: Optional[List[Player]] = None

    def _parse_enum(self, value: str, enum_class):
        if not value:
            return None

        value = value.strip()

        for enum_item in enum_class:
            if enum_item.value == value:
                return enum_item

        value_lower = value.lower()
        for enum_item in enum_class:
            if enum_item.value.lower() == value_lower:
                return enum_item

        return None

    def parse_player(self, row: Dict) -> Optional[Player]:
        gender = self._parse_enum(row.get('gender') or '', Gender)
        if not gender:
            logger.warning("Skipping player %s: unknown gender %r", row.get('id'), row.get('gender'))
            return None

        score = row.get('score')
        return Player(
            id=str(row['id']),
            name=row.get('name') or '',
            gender=gender,
            score=float(score) if score is not None else DEFAULT_PLAYER_SCORE,
            avatar_url=row.get('avatar_url'),
        )

    def load_players(self) -> List[Player]:
        if self._players_cache is not None:
            return self._players_cache

        try:
            response = self.client.table(TABLE_PLAYERS).select('*').order('name').execute()
        except Exception as e:
            raise PersistenceError(f"Error loading players: {e}") from e

        players = []
        for row in response.data or []:
            player = self.parse_player(row)
            if player:
                players.append(player)

        logger.info("Loaded %d players from Supabase", len(players))
        self._players_cache = players
        return players

    def load_players_by_ids(self, player_ids: Iterable[str]) -> List[Player]:
        """Load the given players, in the order requested. Unknown ids are skipped."""
        wanted = [str(pid) for pid in player_ids]
        by_id = {p.id: p for p in self.load_players()}

        missing = [pid for pid in wanted if pid not in by_id]
        if missing:
            logger.warning("Players not found: %s", ", ".join(missing))

        return [by_id[pid] for pid in wanted if pid in by_id]

    def load_player(self, player_id: str) -> Optional[Player]:
        try:
            response = (
                self.client.table(TABLE_PLAYERS)
                .select('*')
                .eq('id', player_id)
                .execute()
            )
        except Exception as e:
            raise PersistenceError(f"Error loading player {player_id}: {e}") from e

        if not response.data:
            return None
        return self.parse_player(response.data[0])

    def clear_cache(self):
        self._players_cache = None
