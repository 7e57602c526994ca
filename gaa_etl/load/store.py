"""
Storage collaborator contract.

The loaders, the roster matcher and the match resolver depend only on this
protocol. Two implementations ship with the package:
- PostgresStore: psycopg AsyncConnection against the schema in config/schema.sql
- InMemoryStore: dictionaries with snapshot rollback, for dry runs and tests

All writes for one sheet happen inside a single transaction() block.
"""

from datetime import date
from typing import AsyncContextManager, List, Optional, Protocol

from gaa_etl.models import (
    KpiDefinition,
    KpiRecord,
    MatchRecord,
    MatchSheetData,
    PlayerRecord,
    PlayerStatistics,
    TeamStatistics,
)


class StatisticsStore(Protocol):
    def transaction(self) -> AsyncContextManager[None]:
        """Unit of work: commit on normal exit, roll back on any exception."""
        ...

    async def ensure_schema(self) -> None:
        ...

    # Match lookup
    async def find_matches_by_number_and_date(self, match_number: int, match_date: date) -> List[MatchRecord]:
        ...

    async def find_matches_by_number(self, match_number: int) -> List[MatchRecord]:
        ...

    async def find_matches_on_date(self, match_date: date) -> List[MatchRecord]:
        ...

    # Roster
    async def find_players_by_jersey(self, jersey_number: int) -> List[PlayerRecord]:
        ...

    async def create_player(
        self, jersey_number: int, first_name: str, last_name: str, full_name: str, position_code: str
    ) -> PlayerRecord:
        ...

    async def update_player_position(self, player_id: int, position_code: str) -> PlayerRecord:
        ...

    # Player statistics
    async def statistics_exist(self, player_id: int, match_id: int) -> bool:
        ...

    async def statistics_exist_for_match(self, match_id: int) -> bool:
        ...

    async def insert_player_statistics(self, match_id: int, player_id: int, record: PlayerStatistics) -> bool:
        """Insert one row; False when the (match, player) pair already exists."""
        ...

    # Match sheets
    async def get_or_create_season(self, year: int) -> int:
        ...

    async def get_or_create_competition(self, season_id: int, name: str, competition_type: str) -> int:
        ...

    async def get_or_create_team(self, name: str, is_drum: bool = False) -> int:
        ...

    async def find_match_by_competition(self, competition_id: int, match_number: int) -> Optional[int]:
        ...

    async def insert_match(
        self, match: MatchSheetData, competition_id: int, home_team_id: int, away_team_id: int
    ) -> int:
        ...

    async def insert_team_statistics(self, match_id: int, team_id: int, stats: TeamStatistics) -> None:
        ...

    # KPI definitions
    async def find_kpi_definition(
        self, event_number: int, event_name: str, outcome: str, team_assignment: str
    ) -> Optional[KpiRecord]:
        """Lookup by natural key; text fields compare case-insensitively."""
        ...

    async def insert_kpi_definition(self, definition: KpiDefinition) -> int:
        ...

    async def update_kpi_definition(self, kpi_id: int, psr_value: float, definition: str) -> None:
        ...
