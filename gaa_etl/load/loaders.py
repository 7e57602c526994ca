"""
Transactional, idempotent loaders.

Provides:
- PlayerStatisticsLoader: one player sheet -> roster upserts + statistics rows
- MatchLoader: one match sheet -> season/competition/team upserts, match row
  and six team statistics rows
- KpiDefinitionLoader: the KPI definitions sheet -> insert new definitions,
  update changed PSR values or texts, leave the rest alone

Each load runs in a single store transaction. Any exception rolls the sheet
back and surfaces as PersistenceError; other sheets are unaffected.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from gaa_etl.errors import PersistenceError
from gaa_etl.extract.metadata import HOME_TEAM
from gaa_etl.load.roster import RosterAction, RosterMatcher
from gaa_etl.load.store import StatisticsStore
from gaa_etl.models import KpiDefinition, MatchRecord, MatchSheetData, PlayerStatistics, SheetDescriptor
from gaa_etl.transform.cleaners import normalize_competition_type

logger = logging.getLogger(__name__)


@dataclass
class LoadResult:
    """Result of loading one sheet."""

    sheet_name: str
    table_name: str
    load_time: datetime = field(default_factory=datetime.now)
    duration_seconds: float = 0.0
    statistics_created: int = 0
    statistics_skipped: int = 0
    skipped_unpositioned: int = 0
    players_created: int = 0
    players_updated: int = 0
    matches_created: int = 0
    matches_skipped: int = 0
    team_statistics_created: int = 0
    definitions_created: int = 0
    definitions_updated: int = 0
    definitions_unchanged: int = 0
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def players_skipped(self) -> int:
        """Records not inserted: already loaded or without a position."""
        return self.statistics_skipped + self.skipped_unpositioned

    def describe(self) -> str:
        if self.table_name == "kpi_definitions":
            return (
                f"{self.definitions_created} KPI definitions created, {self.definitions_updated} updated, "
                f"{self.definitions_unchanged} unchanged"
            )
        if self.table_name == "matches":
            return (
                f"{self.matches_created} match created, {self.matches_skipped} skipped, "
                f"{self.team_statistics_created} team statistics rows"
            )
        return (
            f"{self.statistics_created} statistics created, {self.players_skipped} skipped "
            f"({self.players_created} new players, {self.players_updated} updated)"
        )

    def summary(self) -> str:
        """Human-readable summary."""
        return f"✅ {self.sheet_name}: {self.describe()} in {self.duration_seconds:.2f}s"


class PlayerStatisticsLoader:
    """
    Loads enriched player records against a resolved match.

    Example:
        >>> loader = PlayerStatisticsLoader(store)
        >>> result = await loader.load(descriptor, match, records)
        >>> print(result.summary())
    """

    def __init__(self, store: StatisticsStore, roster: Optional[RosterMatcher] = None,
                 config: Optional[Dict[str, Any]] = None):
        self.store = store
        self.roster = roster or RosterMatcher(store, config=config)

    async def load(
        self,
        descriptor: SheetDescriptor,
        match: MatchRecord,
        records: List[PlayerStatistics],
    ) -> LoadResult:
        """
        Persist one sheet's records in a single transaction.

        Records without a position code are skipped. A (player, match) pair
        that already has statistics is skipped, so re-running a file is safe.

        Raises:
            PersistenceError: The transaction failed and was rolled back
        """
        start_time = datetime.now()
        result = LoadResult(sheet_name=descriptor.sheet_name, table_name="player_match_statistics",
                            load_time=start_time)
        result.metadata["match_id"] = match.match_id

        try:
            async with self.store.transaction():
                if await self.store.statistics_exist_for_match(match.match_id):
                    result.statistics_skipped = len(records)
                    logger.info(
                        f"Statistics for match {match.match_id} already loaded; "
                        f"skipping {len(records)} records from '{descriptor.sheet_name}'"
                    )
                else:
                    for record in records:
                        await self._load_record(match, record, result)
        except Exception as e:
            logger.error(f"Load failed for '{descriptor.sheet_name}', rolled back: {e}", exc_info=True)
            raise PersistenceError(descriptor.sheet_name, f"Transaction rolled back: {e}", cause=e) from e

        result.duration_seconds = (datetime.now() - start_time).total_seconds()
        logger.info(result.summary())
        return result

    async def _load_record(self, match: MatchRecord, record: PlayerStatistics, result: LoadResult) -> None:
        if not record.position_code:
            result.skipped_unpositioned += 1
            logger.debug(f"Skipping #{record.jersey_number} {record.player_name}: no position")
            return

        player, action = await self.roster.get_or_create_player(
            record.jersey_number, record.player_name, record.position_code
        )
        if action is RosterAction.CREATED:
            result.players_created += 1
        elif action is RosterAction.UPDATED:
            result.players_updated += 1

        if await self.store.statistics_exist(player.player_id, match.match_id):
            result.statistics_skipped += 1
            return

        if await self.store.insert_player_statistics(match.match_id, player.player_id, record):
            result.statistics_created += 1
        else:
            result.statistics_skipped += 1


class MatchLoader:
    """Loads match/team sheets: the match row and its team statistics."""

    def __init__(self, store: StatisticsStore, home_team: str = HOME_TEAM):
        self.store = store
        self.home_team = home_team

    async def load(self, match: MatchSheetData) -> LoadResult:
        """
        Persist one match sheet in a single transaction.

        A match already stored for the same competition and number is skipped
        and counted, not treated as a failure.

        Raises:
            PersistenceError: The transaction failed and was rolled back
        """
        start_time = datetime.now()
        result = LoadResult(sheet_name=match.sheet_name, table_name="matches", load_time=start_time)

        try:
            async with self.store.transaction():
                season_id = await self.store.get_or_create_season(match.match_date.year)
                competition = normalize_competition_type(match.competition, match.sheet_name)
                competition_id = await self.store.get_or_create_competition(season_id, competition, competition)
                home_team_id = await self.store.get_or_create_team(self.home_team, is_drum=True)
                away_team_id = await self.store.get_or_create_team(match.opposition)

                existing = await self.store.find_match_by_competition(competition_id, match.match_number)
                if existing is not None:
                    result.matches_skipped = 1
                    result.metadata["match_id"] = existing
                    logger.info(f"Match {match.match_number} ({competition}) already exists; skipping")
                else:
                    match_id = await self.store.insert_match(match, competition_id, home_team_id, away_team_id)
                    for stats in match.team_statistics:
                        team_id = home_team_id if stats.team_name == self.home_team else away_team_id
                        await self.store.insert_team_statistics(match_id, team_id, stats)
                        result.team_statistics_created += 1
                    result.matches_created = 1
                    result.metadata["match_id"] = match_id
        except Exception as e:
            logger.error(f"Match load failed for '{match.sheet_name}', rolled back: {e}", exc_info=True)
            raise PersistenceError(match.sheet_name, f"Transaction rolled back: {e}", cause=e) from e

        result.duration_seconds = (datetime.now() - start_time).total_seconds()
        logger.info(result.summary())
        return result


class KpiDefinitionLoader:
    """
    Upserts KPI definitions by (event number, event name, outcome, team assignment).

    Example:
        >>> result = await KpiDefinitionLoader(store).load("KPI Definitions", definitions)
        >>> result.describe()
        '42 KPI definitions created, 0 updated, 0 unchanged'
    """

    # Scale of kpi_definitions.psr_value
    PSR_DECIMALS = 3

    def __init__(self, store: StatisticsStore):
        self.store = store

    async def load(self, sheet_name: str, definitions: List[KpiDefinition]) -> LoadResult:
        """
        Persist the sheet in a single transaction.

        Raises:
            PersistenceError: The transaction failed and was rolled back
        """
        start_time = datetime.now()
        result = LoadResult(sheet_name=sheet_name, table_name="kpi_definitions", load_time=start_time)

        try:
            async with self.store.transaction():
                for definition in definitions:
                    await self._load_definition(definition, result)
        except Exception as e:
            logger.error(f"KPI load failed for '{sheet_name}', rolled back: {e}", exc_info=True)
            raise PersistenceError(sheet_name, f"Transaction rolled back: {e}", cause=e) from e

        result.duration_seconds = (datetime.now() - start_time).total_seconds()
        logger.info(result.summary())
        return result

    async def _load_definition(self, definition: KpiDefinition, result: LoadResult) -> None:
        existing = await self.store.find_kpi_definition(
            definition.event_number, definition.event_name, definition.outcome, definition.team_assignment
        )
        if existing is None:
            await self.store.insert_kpi_definition(definition)
            result.definitions_created += 1
            logger.debug(f"Inserted KPI {definition.describe()}")
            return

        psr_changed = (round(existing.psr_value, self.PSR_DECIMALS)
                       != round(definition.psr_value, self.PSR_DECIMALS))
        if psr_changed or existing.definition != definition.definition:
            await self.store.update_kpi_definition(existing.kpi_id, definition.psr_value, definition.definition)
            result.definitions_updated += 1
            logger.debug(f"Updated KPI {definition.describe()}")
        else:
            result.definitions_unchanged += 1
