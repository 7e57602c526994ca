"""
Roster matching: find or create the player a statistics row belongs to.

Order:
1. Same jersey number and identical normalised name
2. Same jersey number and a name within a small edit distance
   (rapidfuzz Levenshtein), catching typos like "Seamus" / "Seamas"
3. New roster entry, first/last name split on the first space
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from rapidfuzz import process
from rapidfuzz.distance import Levenshtein

from gaa_etl.load.store import StatisticsStore
from gaa_etl.models import PlayerRecord
from gaa_etl.settings import section
from gaa_etl.transform.cleaners import clean_name, normalize_player_name, split_full_name

logger = logging.getLogger(__name__)


class RosterAction(Enum):
    MATCHED = "matched"
    UPDATED = "updated"
    CREATED = "created"


class RosterMatcher:
    """Get-or-create for roster entries keyed by jersey number and name."""

    def __init__(self, store: StatisticsStore, max_distance: Optional[int] = None,
                 config: Optional[Dict[str, Any]] = None):
        if max_distance is None:
            max_distance = section("roster", config).get("fuzzy_max_distance", 3)
        self.store = store
        self.max_distance = max_distance

    async def find_player(self, jersey_number: int, full_name: str) -> Optional[PlayerRecord]:
        """Exact, then fuzzy, match among players wearing the same jersey."""
        candidates = await self.store.find_players_by_jersey(jersey_number)
        if not candidates:
            return None

        target = normalize_player_name(full_name)
        names = {p.player_id: normalize_player_name(p.full_name) for p in candidates}

        for player in candidates:
            if names[player.player_id] == target:
                return player

        best = process.extractOne(target, names, scorer=Levenshtein.distance, score_cutoff=self.max_distance)
        if best is None:
            return None

        _, distance, player_id = best
        player = next(p for p in candidates if p.player_id == player_id)
        logger.info(f"Fuzzy roster match: '{full_name}' -> '{player.full_name}' (#{jersey_number}, distance {distance})")
        return player

    async def get_or_create_player(
        self, jersey_number: int, full_name: str, position_code: str
    ) -> Tuple[PlayerRecord, RosterAction]:
        """
        Resolve a roster entry, creating one when no match exists.

        Args:
            jersey_number: Jersey worn in this match
            full_name: Name as written on the sheet
            position_code: Enriched position (GK, DEF, MID, FWD)

        Returns:
            (player, action) where action says whether the entry was matched
            as-is, matched with its position updated, or newly created
        """
        player = await self.find_player(jersey_number, full_name)

        if player is None:
            name = clean_name(full_name)
            first_name, last_name = split_full_name(name)
            player = await self.store.create_player(jersey_number, first_name, last_name, name, position_code)
            logger.debug(f"Created player #{jersey_number} {name} ({position_code})")
            return player, RosterAction.CREATED

        if player.position_code != position_code:
            logger.info(f"Position change for #{jersey_number} {player.full_name}: "
                        f"{player.position_code} -> {position_code}")
            player = await self.store.update_player_position(player.player_id, position_code)
            return player, RosterAction.UPDATED

        return player, RosterAction.MATCHED
