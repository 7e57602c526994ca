"""
PostgresStore against a real database.

Skipped unless TEST_DATABASE_URL points at a disposable PostgreSQL database;
the schema is created if missing and the test tables are emptied first.
"""

import asyncio

import pytest

from gaa_etl.load.postgres import PostgresStore
from gaa_etl.pipelines.orchestrator import EtlOrchestrator
from tests.fixtures import workbooks

TABLES = (
    "player_match_statistics", "match_team_statistics", "matches", "players",
    "competitions", "teams", "seasons", "kpi_definitions",
)


async def run_twice(dsn, path):
    async with await PostgresStore.connect(dsn) as store:
        await store.ensure_schema()
        await store.conn.execute(f"TRUNCATE {', '.join(TABLES)} RESTART IDENTITY CASCADE")

        first = await EtlOrchestrator(store).process(path)
        second = await EtlOrchestrator(store).process(path)
        return first, second


@pytest.mark.slow
class TestPostgresStore:
    """Season workbook loaded twice into PostgreSQL."""

    def test_idempotent_load(self, test_db_dsn, season_workbook_path):
        if not test_db_dsn:
            pytest.skip("TEST_DATABASE_URL not set")

        first, second = asyncio.run(run_twice(test_db_dsn, season_workbook_path))

        assert first.success
        assert first.matches_created == 1
        assert first.player_statistics_created == 3

        assert second.success
        assert second.matches_skipped == 1
        assert second.player_statistics_created == 0
        assert second.players_skipped == 3

    def test_kpi_definitions_upsert(self, test_db_dsn, tmp_path):
        if not test_db_dsn:
            pytest.skip("TEST_DATABASE_URL not set")

        first, second = asyncio.run(run_twice(test_db_dsn, workbooks.kpi_workbook(tmp_path / "kpi.xlsx")))

        assert first.success
        assert first.kpi_definitions_created == 5
        assert second.kpi_definitions_created == 0
        assert second.kpi_definitions_unchanged == 5
