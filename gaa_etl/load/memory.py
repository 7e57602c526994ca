"""
In-memory StatisticsStore for dry runs and tests.

Mirrors the relational constraints that matter to the loaders: unique
(match, player) statistics, unique (competition, match number), unique team
and season names, unique KPI natural keys. transaction() snapshots the state and restores it when the
block raises.
"""

import copy
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field, replace
from datetime import date
from typing import AsyncIterator, Dict, List, Optional, Tuple

from gaa_etl.models import (
    KpiDefinition,
    KpiRecord,
    MatchRecord,
    MatchSheetData,
    PlayerRecord,
    PlayerStatistics,
    TeamStatistics,
)
from gaa_etl.transform.cleaners import team_abbreviation

logger = logging.getLogger(__name__)


@dataclass
class _State:
    seasons: Dict[int, int] = field(default_factory=dict)  # year -> season_id
    competitions: Dict[Tuple[int, str], Tuple[int, str]] = field(default_factory=dict)
    teams: Dict[str, Tuple[int, bool, str]] = field(default_factory=dict)  # name -> (id, is_drum, abbreviation)
    matches: Dict[int, MatchRecord] = field(default_factory=dict)
    match_sheets: Dict[int, MatchSheetData] = field(default_factory=dict)
    players: Dict[int, PlayerRecord] = field(default_factory=dict)
    player_statistics: Dict[Tuple[int, int], PlayerStatistics] = field(default_factory=dict)
    team_statistics: List[Tuple[int, int, TeamStatistics]] = field(default_factory=list)
    kpi_definitions: Dict[int, KpiRecord] = field(default_factory=dict)
    next_id: int = 1


class InMemoryStore:
    """
    Dictionary-backed store.

    Example:
        >>> store = InMemoryStore()
        >>> store.add_match(9, date(2025, 9, 26), "Slaughtmanus")
        >>> result = await EtlOrchestrator(store).process(path)
    """

    def __init__(self):
        self._state = _State()
        self.commits = 0
        self.rollbacks = 0

    def _next_id(self) -> int:
        value = self._state.next_id
        self._state.next_id += 1
        return value

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        snapshot = copy.deepcopy(self._state)
        try:
            yield
        except BaseException:
            self._state = snapshot
            self.rollbacks += 1
            raise
        self.commits += 1

    async def ensure_schema(self) -> None:
        logger.debug("In-memory store needs no schema")

    # Fixtures and inspection

    def add_match(
        self,
        match_number: int,
        match_date: date,
        away_team: str,
        competition: str = "League",
        home_team: str = "Drum",
    ) -> MatchRecord:
        """Register a persisted match directly, bypassing the match loader."""
        season_id = self._season(match_date.year)
        competition_id = self._competition(season_id, competition, competition)
        record = MatchRecord(
            match_id=self._next_id(),
            match_number=match_number,
            match_date=match_date,
            competition_id=competition_id,
            home_team_name=home_team,
            away_team_name=away_team,
        )
        self._team(home_team, is_drum=True)
        self._team(away_team)
        self._state.matches[record.match_id] = record
        return record

    @property
    def matches(self) -> List[MatchRecord]:
        return list(self._state.matches.values())

    @property
    def players(self) -> List[PlayerRecord]:
        return list(self._state.players.values())

    @property
    def player_statistics(self) -> Dict[Tuple[int, int], PlayerStatistics]:
        """(match_id, player_id) -> stored record."""
        return dict(self._state.player_statistics)

    @property
    def team_statistics(self) -> List[Tuple[int, int, TeamStatistics]]:
        return list(self._state.team_statistics)

    @property
    def kpi_definitions(self) -> List[KpiRecord]:
        return list(self._state.kpi_definitions.values())

    # Match lookup

    async def find_matches_by_number_and_date(self, match_number: int, match_date: date) -> List[MatchRecord]:
        return [m for m in self._state.matches.values()
                if m.match_number == match_number and m.match_date == match_date]

    async def find_matches_by_number(self, match_number: int) -> List[MatchRecord]:
        found = [m for m in self._state.matches.values() if m.match_number == match_number]
        return sorted(found, key=lambda m: m.match_date, reverse=True)

    async def find_matches_on_date(self, match_date: date) -> List[MatchRecord]:
        return [m for m in self._state.matches.values() if m.match_date == match_date]

    # Roster

    async def find_players_by_jersey(self, jersey_number: int) -> List[PlayerRecord]:
        return [p for p in self._state.players.values() if p.jersey_number == jersey_number]

    async def create_player(
        self, jersey_number: int, first_name: str, last_name: str, full_name: str, position_code: str
    ) -> PlayerRecord:
        player = PlayerRecord(self._next_id(), jersey_number, full_name, first_name, last_name, position_code)
        self._state.players[player.player_id] = player
        return player

    async def update_player_position(self, player_id: int, position_code: str) -> PlayerRecord:
        player = replace(self._state.players[player_id], position_code=position_code)
        self._state.players[player_id] = player
        return player

    # Player statistics

    async def statistics_exist(self, player_id: int, match_id: int) -> bool:
        return (match_id, player_id) in self._state.player_statistics

    async def statistics_exist_for_match(self, match_id: int) -> bool:
        return any(key[0] == match_id for key in self._state.player_statistics)

    async def insert_player_statistics(self, match_id: int, player_id: int, record: PlayerStatistics) -> bool:
        key = (match_id, player_id)
        if key in self._state.player_statistics:
            return False
        self._state.player_statistics[key] = copy.deepcopy(record)
        return True

    # Match sheets

    def _season(self, year: int) -> int:
        if year not in self._state.seasons:
            self._state.seasons[year] = self._next_id()
        return self._state.seasons[year]

    def _competition(self, season_id: int, name: str, competition_type: str) -> int:
        key = (season_id, name)
        if key not in self._state.competitions:
            self._state.competitions[key] = (self._next_id(), competition_type)
        return self._state.competitions[key][0]

    def _team(self, name: str, is_drum: bool = False) -> int:
        if name not in self._state.teams:
            self._state.teams[name] = (self._next_id(), is_drum, team_abbreviation(name))
        return self._state.teams[name][0]

    def _team_name(self, team_id: int) -> str:
        return next(name for name, (tid, _, _) in self._state.teams.items() if tid == team_id)

    async def get_or_create_season(self, year: int) -> int:
        return self._season(year)

    async def get_or_create_competition(self, season_id: int, name: str, competition_type: str) -> int:
        return self._competition(season_id, name, competition_type)

    async def get_or_create_team(self, name: str, is_drum: bool = False) -> int:
        return self._team(name, is_drum)

    async def find_match_by_competition(self, competition_id: int, match_number: int) -> Optional[int]:
        for match in self._state.matches.values():
            if match.competition_id == competition_id and match.match_number == match_number:
                return match.match_id
        return None

    async def insert_match(
        self, match: MatchSheetData, competition_id: int, home_team_id: int, away_team_id: int
    ) -> int:
        if await self.find_match_by_competition(competition_id, match.match_number) is not None:
            raise ValueError(f"Match {match.match_number} already exists in competition {competition_id}")
        record = MatchRecord(
            match_id=self._next_id(),
            match_number=match.match_number,
            match_date=match.match_date,
            competition_id=competition_id,
            home_team_name=self._team_name(home_team_id),
            away_team_name=self._team_name(away_team_id),
        )
        self._state.matches[record.match_id] = record
        self._state.match_sheets[record.match_id] = copy.deepcopy(match)
        return record.match_id

    async def insert_team_statistics(self, match_id: int, team_id: int, stats: TeamStatistics) -> None:
        self._state.team_statistics.append((match_id, team_id, copy.deepcopy(stats)))

    # KPI definitions

    async def find_kpi_definition(
        self, event_number: int, event_name: str, outcome: str, team_assignment: str
    ) -> Optional[KpiRecord]:
        key = (event_number, event_name.lower(), outcome.lower(), team_assignment.lower())
        for record in self._state.kpi_definitions.values():
            if (record.event_number, record.event_name.lower(), record.outcome.lower(),
                    record.team_assignment.lower()) == key:
                return record
        return None

    async def insert_kpi_definition(self, definition: KpiDefinition) -> int:
        if await self.find_kpi_definition(definition.event_number, definition.event_name,
                                          definition.outcome, definition.team_assignment) is not None:
            raise ValueError(f"KPI definition already exists: {definition.describe()}")
        record = KpiRecord(
            kpi_id=self._next_id(),
            event_number=definition.event_number,
            event_name=definition.event_name,
            outcome=definition.outcome,
            team_assignment=definition.team_assignment,
            psr_value=definition.psr_value,
            definition=definition.definition,
        )
        self._state.kpi_definitions[record.kpi_id] = record
        return record.kpi_id

    async def update_kpi_definition(self, kpi_id: int, psr_value: float, definition: str) -> None:
        self._state.kpi_definitions[kpi_id] = replace(
            self._state.kpi_definitions[kpi_id], psr_value=psr_value, definition=definition
        )
