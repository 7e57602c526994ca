"""
End-to-end tests for EtlOrchestrator against real .xlsx files and the
in-memory store.
"""

import asyncio
import json
from datetime import date

import pytest

from gaa_etl.extract.fields import PlayerField
from gaa_etl.load.memory import InMemoryStore
from gaa_etl.monitoring.metrics import MetricsCollector
from gaa_etl.pipelines.orchestrator import EtlOrchestrator
from gaa_etl.pipelines.results import SheetStatus
from gaa_etl.validate.results import Category
from tests.fixtures import workbooks


def run(store, path, **kwargs):
    return asyncio.run(EtlOrchestrator(store, **kwargs).process(path))


class BrokenStore(InMemoryStore):
    async def insert_player_statistics(self, match_id, player_id, record):
        raise RuntimeError("connection reset")


class TestPlayerSheetPipeline:
    """Player sheets against a match that is already persisted."""

    def test_loads_player_sheet(self, store_with_match, player_workbook_path):
        result = run(store_with_match, player_workbook_path)

        assert result.success
        assert result.sheets_found == {"PlayerStats": 1, "MatchStats": 0, "KpiDefinitions": 0, "Other": 3}
        assert result.positions_mapped == 3
        assert result.player_statistics_created == 3
        assert result.players_skipped == 0

        sheet = result.sheets[0]
        assert sheet.status is SheetStatus.LOADED
        assert sheet.match_strategy == "number_and_date"
        assert sheet.fields_mapped == 84
        assert sheet.records_extracted == 3
        assert result.fields_processed == 84 * 3

        positions = {p.jersey_number: p.position_code for p in store_with_match.players}
        assert positions == {1: "GK", 6: "DEF", 14: "FWD"}

    def test_rerun_is_idempotent(self, store_with_match, player_workbook_path):
        run(store_with_match, player_workbook_path)
        second = run(store_with_match, player_workbook_path)

        assert second.success
        assert second.player_statistics_created == 0
        assert second.players_skipped == 3
        assert len(store_with_match.player_statistics) == 3

    def test_goalkeeper_inferred_without_position_sheet(self, tmp_path, store_with_match):
        wb = workbooks.new_workbook()
        workbooks.write_position_sheets(wb, {"Defenders": ["Seamus O'Kane"], "Forwards": ["Ryan McCloskey"]})
        workbooks.write_player_sheet(wb)
        result = run(store_with_match, workbooks.save(wb, tmp_path / "no_keepers.xlsx"))

        assert result.player_statistics_created == 3
        assert any(d.category is Category.POSITION for d in result.run_diagnostics)
        keeper = next(p for p in store_with_match.players if p.jersey_number == 1)
        assert keeper.position_code == "GK"

    def test_unpositioned_player_skipped(self, tmp_path, store_with_match):
        players = workbooks.SAMPLE_PLAYERS + [
            {"jersey_number": 22, "player_name": "Padraig Kelly", "minutes_played": 5, "total_engagements": 3}
        ]
        result = run(store_with_match, workbooks.player_workbook(tmp_path / "sub.xlsx", players=players))

        assert result.success
        assert result.player_statistics_created == 3
        assert result.players_skipped == 1

    def test_unresolved_match(self, store, player_workbook_path):
        result = run(store, player_workbook_path)

        assert not result.success
        assert result.sheets[0].status is SheetStatus.UNRESOLVED
        assert result.players_skipped == 3
        assert result.errors_by_category() == {Category.RESOLUTION.value: 1}
        assert store.players == []

    def test_missing_critical_header_rejects_sheet(self, tmp_path, store_with_match):
        wb = workbooks.new_workbook()
        fields = [f for f in PlayerField if f is not PlayerField.MINUTES_PLAYED]
        workbooks.write_player_sheet(wb, fields=fields)
        result = run(store_with_match, workbooks.save(wb, tmp_path / "no_minutes.xlsx"))

        report = result.sheets[0]
        assert report.status is SheetStatus.REJECTED
        assert report.outcome.errors[-1].category is Category.STRUCTURE
        assert report.outcome.errors[-1].critical

    def test_duplicate_jersey_blocks_sheet(self, tmp_path, store_with_match):
        players = [dict(p) for p in workbooks.SAMPLE_PLAYERS]
        players[2]["jersey_number"] = 6
        result = run(store_with_match, workbooks.player_workbook(tmp_path / "dup.xlsx", players=players))

        assert result.sheets[0].status is SheetStatus.BLOCKED
        assert not result.success
        assert result.players_skipped == 3
        assert result.fields_processed == 0
        assert store_with_match.player_statistics == {}

    def test_persistence_failure_rolls_back(self, player_workbook_path):
        store = BrokenStore()
        store.add_match(9, date(2025, 9, 26), "Slaughtmanus")
        result = run(store, player_workbook_path)

        report = result.sheets[0]
        assert report.status is SheetStatus.FAILED
        assert report.outcome.errors[-1].category is Category.PERSISTENCE
        assert report.outcome.errors[-1].value == "RuntimeError"
        assert store.rollbacks == 1
        assert store.players == []
        assert result.players_skipped == 3
        assert not result.success


class TestSeasonWorkbook:
    """Match sheet and player sheet in one workbook."""

    def test_match_then_player_sheet(self, store, season_workbook_path):
        result = run(store, season_workbook_path)

        assert result.success
        assert result.sheets_by_status == {"loaded": 2}
        assert [r.kind.value for r in result.sheets] == ["MatchStats", "PlayerStats"]
        assert result.matches_created == 1
        assert result.team_statistics_created == 6
        assert result.player_statistics_created == 3
        assert result.sheets[1].match_strategy == "number_and_date"

    def test_rerun_skips_match_and_players(self, store, season_workbook_path):
        run(store, season_workbook_path)
        second = run(store, season_workbook_path)

        assert second.success
        assert second.matches_created == 0
        assert second.matches_skipped == 1
        assert second.player_statistics_created == 0
        assert len(store.matches) == 1
        assert len(store.team_statistics) == 6

    def test_malformed_score_blocks_match_sheet(self, tmp_path, store):
        wb = workbooks.new_workbook()
        workbooks.write_match_sheet(wb, scores=("0-05", "1-02", "abc", "0-04", "0-06", "0-10"))
        workbooks.write_player_sheet(wb)
        workbooks.write_position_sheets(wb)
        result = run(store, workbooks.save(wb, tmp_path / "bad_score.xlsx"))

        assert [r.status for r in result.sheets] == [SheetStatus.BLOCKED, SheetStatus.UNRESOLVED]
        assert store.matches == []
        assert not result.success


class TestKpiDefinitions:
    """KPI definitions sheet loaded alongside the statistics sheets."""

    def test_loads_definitions(self, tmp_path, store):
        result = run(store, workbooks.kpi_workbook(tmp_path / "kpi.xlsx"))

        assert result.success
        assert result.sheets_found["KpiDefinitions"] == 1
        report = result.sheets[0]
        assert report.status is SheetStatus.LOADED
        assert report.records_extracted == 5
        assert result.kpi_definitions_created == 5
        assert result.players_skipped == 0

        described = {(k.event_number, k.outcome): k.team_assignment for k in store.kpi_definitions}
        assert described[(1, "Lost clean")] == "Opposition"
        assert described[(2, "Wide")] == "Home"
        assert {k.event_name for k in store.kpi_definitions} == {"Kickout", "Shot from play"}

    def test_rerun_leaves_definitions_unchanged(self, tmp_path, store):
        path = workbooks.kpi_workbook(tmp_path / "kpi.xlsx")
        run(store, path)
        second = run(store, path)

        assert second.success
        assert second.kpi_definitions_created == 0
        assert second.kpi_definitions_unchanged == 5
        assert len(store.kpi_definitions) == 5

    def test_changed_psr_updates_definition(self, tmp_path, store):
        run(store, workbooks.kpi_workbook(tmp_path / "kpi.xlsx"))
        rows = list(workbooks.SAMPLE_KPIS)
        rows[-1] = (None, None, "Goal", "Both", 4, "Goal scored from play")
        second = run(store, workbooks.kpi_workbook(tmp_path / "kpi_v2.xlsx", rows=rows))

        assert second.kpi_definitions_updated == 1
        assert second.kpi_definitions_unchanged == 4
        goal = next(k for k in store.kpi_definitions if k.outcome == "Goal")
        assert goal.psr_value == 4.0

    def test_invalid_team_assignment_blocks_sheet(self, tmp_path, store):
        rows = list(workbooks.SAMPLE_KPIS) + [(3, "Turnover", "Won", "Neutral", 1, "Ball won")]
        result = run(store, workbooks.kpi_workbook(tmp_path / "bad_team.xlsx", rows=rows))

        assert result.sheets[0].status is SheetStatus.BLOCKED
        assert not result.success
        assert store.kpi_definitions == []

    def test_kpi_sheet_with_player_sheet(self, tmp_path, store_with_match):
        wb = workbooks.new_workbook()
        workbooks.write_kpi_sheet(wb)
        workbooks.write_player_sheet(wb)
        workbooks.write_position_sheets(wb)
        result = run(store_with_match, workbooks.save(wb, tmp_path / "combined.xlsx"))

        assert result.success
        assert [r.kind.value for r in result.sheets] == ["KpiDefinitions", "PlayerStats"]
        assert result.kpi_definitions_created == 5
        assert result.player_statistics_created == 3
        assert result.fields_processed == 84 * 3


class TestRunLevel:
    """Run-level behaviour: cancellation, fatal errors, metrics."""

    def test_cancellation_before_first_sheet(self, store_with_match, player_workbook_path):
        cancellation = asyncio.Event()
        cancellation.set()
        result = asyncio.run(EtlOrchestrator(store_with_match).process(player_workbook_path, cancellation))

        assert result.cancelled
        assert not result.success
        assert result.sheets == ()
        assert any(d.category is Category.RUN for d in result.run_diagnostics)
        assert store_with_match.player_statistics == {}

    def test_missing_file(self, store, tmp_path):
        result = run(store, tmp_path / "missing.xlsx")

        assert not result.success
        assert result.run_error.startswith("FileNotFoundError")
        assert result.run_diagnostics[-1].critical
        assert result.end_time is not None

    def test_metrics_written(self, store_with_match, player_workbook_path, tmp_path):
        collector = MetricsCollector(tmp_path / "metrics")
        result = run(store_with_match, player_workbook_path, collector=collector)

        files = list((tmp_path / "metrics").glob("*/gaa_etl_*.json"))
        assert len(files) == 1
        data = json.loads(files[0].read_text())
        assert data["run_id"] == result.run_id
        assert data["status"] == "success"
        assert data["statistics_created"] == 3

    def test_report_export(self, store_with_match, player_workbook_path):
        result = run(store_with_match, player_workbook_path)

        frame = result.diagnostics_frame()
        assert len(frame) == result.validation_errors + result.validation_warnings
        assert set(frame["severity"]) <= {"error", "warning"}
