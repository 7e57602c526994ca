"""
PostgreSQL storage using psycopg 3 (async).

The connection runs in autocommit mode so lookups outside a unit of work do
not leave an implicit transaction open; transaction() then maps directly onto
BEGIN/COMMIT (or ROLLBACK when the block raises).
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import date
from typing import Any, AsyncIterator, Dict, List, Optional

import psycopg
from psycopg import sql
from psycopg.rows import dict_row

from gaa_etl.extract.fields import STATISTIC_FIELDS
from gaa_etl.models import (
    KpiDefinition,
    KpiRecord,
    MatchRecord,
    MatchSheetData,
    PlayerRecord,
    PlayerStatistics,
    TeamStatistics,
)
from gaa_etl.settings import SCHEMA_PATH, database_dsn
from gaa_etl.transform.cleaners import team_abbreviation

logger = logging.getLogger(__name__)

_STATISTIC_COLUMNS = [f.attribute for f in STATISTIC_FIELDS]

INSERT_PLAYER_STATISTICS = sql.SQL(
    "INSERT INTO player_match_statistics ({columns}) VALUES ({values}) "
    "ON CONFLICT (match_id, player_id) DO NOTHING"
).format(
    columns=sql.SQL(", ").join(sql.Identifier(c) for c in ["match_id", "player_id"] + _STATISTIC_COLUMNS),
    values=sql.SQL(", ").join([sql.Placeholder()] * (len(_STATISTIC_COLUMNS) + 2)),
)

_TEAM_STATISTIC_COLUMNS = [
    "match_id", "team_id", "period", "scoreline", "total_possession",
    *TeamStatistics("", "").source_counts().keys(),
]

INSERT_TEAM_STATISTICS = sql.SQL(
    "INSERT INTO match_team_statistics ({columns}) VALUES ({values})"
).format(
    columns=sql.SQL(", ").join(sql.Identifier(c) for c in _TEAM_STATISTIC_COLUMNS),
    values=sql.SQL(", ").join([sql.Placeholder()] * len(_TEAM_STATISTIC_COLUMNS)),
)

SELECT_MATCHES = """
    SELECT m.match_id, m.match_number, m.match_date, m.competition_id,
           home.name AS home_team_name, away.name AS away_team_name
    FROM matches m
    JOIN teams home ON home.team_id = m.home_team_id
    JOIN teams away ON away.team_id = m.away_team_id
"""

SELECT_PLAYERS = """
    SELECT p.player_id, p.jersey_number, p.full_name, p.first_name, p.last_name,
           pos.code AS position_code
    FROM players p
    JOIN positions pos ON pos.position_id = p.position_id
"""

SELECT_KPI_DEFINITIONS = """
    SELECT kpi_id, event_number, event_name, outcome, team_assignment,
           psr_value::float8 AS psr_value, definition
    FROM kpi_definitions
"""


class PostgresStore:
    """
    StatisticsStore backed by PostgreSQL.

    Example:
        >>> async with await PostgresStore.connect() as store:
        >>>     await store.ensure_schema()
        >>>     result = await EtlOrchestrator(store).process("Drum Analysis 2025.xlsx")
    """

    def __init__(self, conn: psycopg.AsyncConnection):
        self.conn = conn

    @classmethod
    async def connect(cls, dsn: Optional[str] = None) -> "PostgresStore":
        """Open an autocommit connection with dict rows."""
        conn = await psycopg.AsyncConnection.connect(
            dsn or database_dsn(), autocommit=True, row_factory=dict_row
        )
        logger.info(f"Connected to PostgreSQL ({conn.info.host}:{conn.info.port}/{conn.info.dbname})")
        return cls(conn)

    async def close(self) -> None:
        await self.conn.close()

    async def __aenter__(self) -> "PostgresStore":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        async with self.conn.transaction():
            yield

    async def ensure_schema(self) -> None:
        """Apply config/schema.sql (idempotent)."""
        ddl = SCHEMA_PATH.read_text()
        await self.conn.execute(ddl)
        logger.info(f"Schema ensured from {SCHEMA_PATH.name}")

    async def _fetch_all(self, query: str, params: tuple = ()) -> List[Dict[str, Any]]:
        cur = await self.conn.execute(query, params)
        return await cur.fetchall()

    async def _fetch_one(self, query: str, params: tuple = ()) -> Optional[Dict[str, Any]]:
        cur = await self.conn.execute(query, params)
        return await cur.fetchone()

    async def find_matches_by_number_and_date(self, match_number: int, match_date: date) -> List[MatchRecord]:
        rows = await self._fetch_all(
            SELECT_MATCHES + " WHERE m.match_number = %s AND m.match_date = %s ORDER BY m.match_id",
            (match_number, match_date),
        )
        return [MatchRecord(**row) for row in rows]

    async def find_matches_by_number(self, match_number: int) -> List[MatchRecord]:
        rows = await self._fetch_all(
            SELECT_MATCHES + " WHERE m.match_number = %s ORDER BY m.match_date DESC, m.match_id",
            (match_number,),
        )
        return [MatchRecord(**row) for row in rows]

    async def find_matches_on_date(self, match_date: date) -> List[MatchRecord]:
        rows = await self._fetch_all(
            SELECT_MATCHES + " WHERE m.match_date = %s ORDER BY m.match_id", (match_date,)
        )
        return [MatchRecord(**row) for row in rows]

    async def find_players_by_jersey(self, jersey_number: int) -> List[PlayerRecord]:
        rows = await self._fetch_all(
            SELECT_PLAYERS + " WHERE p.jersey_number = %s AND p.is_active ORDER BY p.player_id",
            (jersey_number,),
        )
        return [PlayerRecord(**row) for row in rows]

    async def create_player(
        self, jersey_number: int, first_name: str, last_name: str, full_name: str, position_code: str
    ) -> PlayerRecord:
        row = await self._fetch_one(
            """
            INSERT INTO players (jersey_number, first_name, last_name, full_name, position_id)
            VALUES (%s, %s, %s, %s, (SELECT position_id FROM positions WHERE code = %s))
            RETURNING player_id
            """,
            (jersey_number, first_name, last_name, full_name, position_code),
        )
        return PlayerRecord(row["player_id"], jersey_number, full_name, first_name, last_name, position_code)

    async def update_player_position(self, player_id: int, position_code: str) -> PlayerRecord:
        await self.conn.execute(
            """
            UPDATE players
            SET position_id = (SELECT position_id FROM positions WHERE code = %s),
                updated_at = CURRENT_TIMESTAMP
            WHERE player_id = %s
            """,
            (position_code, player_id),
        )
        row = await self._fetch_one(SELECT_PLAYERS + " WHERE p.player_id = %s", (player_id,))
        return PlayerRecord(**row)

    async def statistics_exist(self, player_id: int, match_id: int) -> bool:
        row = await self._fetch_one(
            "SELECT EXISTS (SELECT 1 FROM player_match_statistics WHERE player_id = %s AND match_id = %s) AS found",
            (player_id, match_id),
        )
        return bool(row["found"])

    async def statistics_exist_for_match(self, match_id: int) -> bool:
        row = await self._fetch_one(
            "SELECT EXISTS (SELECT 1 FROM player_match_statistics WHERE match_id = %s) AS found",
            (match_id,),
        )
        return bool(row["found"])

    async def insert_player_statistics(self, match_id: int, player_id: int, record: PlayerStatistics) -> bool:
        values = asdict(record)
        params = [match_id, player_id] + [values[column] for column in _STATISTIC_COLUMNS]
        cur = await self.conn.execute(INSERT_PLAYER_STATISTICS, params)
        return cur.rowcount == 1

    async def get_or_create_season(self, year: int) -> int:
        row = await self._fetch_one(
            """
            INSERT INTO seasons (year, name, is_current) VALUES (%s, %s, %s)
            ON CONFLICT (year) DO NOTHING
            RETURNING season_id
            """,
            (year, f"{year} Season", year == date.today().year),
        )
        if row is None:
            row = await self._fetch_one("SELECT season_id FROM seasons WHERE year = %s", (year,))
        return row["season_id"]

    async def get_or_create_competition(self, season_id: int, name: str, competition_type: str) -> int:
        row = await self._fetch_one(
            """
            INSERT INTO competitions (season_id, name, type) VALUES (%s, %s, %s)
            ON CONFLICT (season_id, name) DO NOTHING
            RETURNING competition_id
            """,
            (season_id, name, competition_type),
        )
        if row is None:
            row = await self._fetch_one(
                "SELECT competition_id FROM competitions WHERE season_id = %s AND name = %s", (season_id, name)
            )
        return row["competition_id"]

    async def get_or_create_team(self, name: str, is_drum: bool = False) -> int:
        row = await self._fetch_one(
            """
            INSERT INTO teams (name, abbreviation, is_drum) VALUES (%s, %s, %s)
            ON CONFLICT (name) DO NOTHING
            RETURNING team_id
            """,
            (name, team_abbreviation(name), is_drum),
        )
        if row is None:
            row = await self._fetch_one("SELECT team_id FROM teams WHERE name = %s", (name,))
        return row["team_id"]

    async def find_match_by_competition(self, competition_id: int, match_number: int) -> Optional[int]:
        row = await self._fetch_one(
            "SELECT match_id FROM matches WHERE competition_id = %s AND match_number = %s",
            (competition_id, match_number),
        )
        return row["match_id"] if row else None

    async def insert_match(
        self, match: MatchSheetData, competition_id: int, home_team_id: int, away_team_id: int
    ) -> int:
        row = await self._fetch_one(
            """
            INSERT INTO matches (
                competition_id, match_number, home_team_id, away_team_id, match_date, venue,
                home_score_first_half, home_score_second_half, home_score_full_time,
                away_score_first_half, away_score_second_half, away_score_full_time
            )
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
            RETURNING match_id
            """,
            (
                competition_id, match.match_number, home_team_id, away_team_id, match.match_date, match.venue,
                *match.scorelines().values(),
            ),
        )
        return row["match_id"]

    async def insert_team_statistics(self, match_id: int, team_id: int, stats: TeamStatistics) -> None:
        params = [match_id, team_id, stats.period, stats.scoreline, stats.total_possession,
                  *stats.source_counts().values()]
        await self.conn.execute(INSERT_TEAM_STATISTICS, params)

    async def find_kpi_definition(
        self, event_number: int, event_name: str, outcome: str, team_assignment: str
    ) -> Optional[KpiRecord]:
        row = await self._fetch_one(
            SELECT_KPI_DEFINITIONS + """
            WHERE event_number = %s AND lower(event_name) = lower(%s)
              AND lower(outcome) = lower(%s) AND lower(team_assignment) = lower(%s)
            """,
            (event_number, event_name, outcome, team_assignment),
        )
        return KpiRecord(**row) if row else None

    async def insert_kpi_definition(self, definition: KpiDefinition) -> int:
        row = await self._fetch_one(
            """
            INSERT INTO kpi_definitions (event_number, event_name, outcome, team_assignment, psr_value, definition)
            VALUES (%s, %s, %s, %s, %s, %s)
            RETURNING kpi_id
            """,
            (definition.event_number, definition.event_name, definition.outcome,
             definition.team_assignment, definition.psr_value, definition.definition),
        )
        return row["kpi_id"]

    async def update_kpi_definition(self, kpi_id: int, psr_value: float, definition: str) -> None:
        await self.conn.execute(
            """
            UPDATE kpi_definitions
            SET psr_value = %s, definition = %s, updated_at = CURRENT_TIMESTAMP
            WHERE kpi_id = %s
            """,
            (psr_value, definition, kpi_id),
        )
