"""
Unit tests for position roster reading (gaa_etl/extract/positions.py)
and position enrichment (gaa_etl/transform/positions.py).
"""

import pytest

from gaa_etl.extract.positions import PositionSheetReader
from gaa_etl.extract.workbook import read_workbook
from gaa_etl.models import PlayerStatistics
from gaa_etl.transform.positions import PositionEnricher
from gaa_etl.validate.results import Category, ValidationOutcome
from tests.fixtures import workbooks


def roster_workbook(tmp_path, positions):
    wb = workbooks.new_workbook()
    workbooks.write_position_sheets(wb, positions)
    return read_workbook(workbooks.save(wb, tmp_path / "positions.xlsx"))


class TestPositionSheetReader:
    """Test reading the Goalkeepers/Defenders/Midfielders/Forwards sheets."""

    def test_reads_every_block(self, tmp_path):
        workbook = roster_workbook(tmp_path, {
            "Goalkeepers": ["Ciaran Doherty"],
            "Defenders": ["Seamus O'Kane", "Conor Mullan", "Eoin Bradley"],
        })
        outcome = ValidationOutcome("positions")
        roster = PositionSheetReader().read(workbook, outcome)

        assert dict(roster.mapping) == {
            "ciaran doherty": "GK",
            "seamus o'kane": "DEF",
            "conor mullan": "DEF",
            "eoin bradley": "DEF",
        }
        assert roster.sheets_processed == 2
        # Midfielders and Forwards are missing
        assert outcome.warnings_by_category() == {Category.POSITION.value: 2}

    def test_sheet_names_case_insensitive(self, tmp_path):
        workbook = roster_workbook(tmp_path, {"FORWARDS": ["Ryan McCloskey"]})
        roster = PositionSheetReader().read(workbook)
        assert roster.mapping["ryan mccloskey"] == "FWD"

    def test_duplicate_last_sheet_wins(self, tmp_path):
        workbook = roster_workbook(tmp_path, {
            "Defenders": ["Conor Mullan"],
            "Midfielders": ["Conor Mullan"],
        })
        outcome = ValidationOutcome("positions")
        roster = PositionSheetReader().read(workbook, outcome)

        assert roster.mapping["conor mullan"] == "MID"
        assert len(roster.duplicates) == 1

    def test_mapping_is_read_only(self, tmp_path):
        roster = PositionSheetReader().read(roster_workbook(tmp_path, {"Defenders": ["Conor Mullan"]}))
        with pytest.raises(TypeError):
            roster.mapping["someone"] = "FWD"

    def test_no_position_sheets(self, tmp_path):
        wb = workbooks.new_workbook()
        wb.create_sheet("Notes")
        workbook = read_workbook(workbooks.save(wb, tmp_path / "empty.xlsx"))

        roster = PositionSheetReader().read(workbook)
        assert not roster.success
        assert len(roster.mapping) == 0


class TestPositionEnricher:
    """Test the mapping -> goalkeeper inference chain."""

    def setup_method(self):
        self.enricher = PositionEnricher({"seamus o'kane": "DEF"})

    def test_mapped_player(self):
        record = PlayerStatistics(jersey_number=6, player_name="  Seamus  O'Kane")
        self.enricher.enrich([record])
        assert record.position_code == "DEF"

    def test_goalkeeper_inferred(self):
        record = PlayerStatistics(jersey_number=1, player_name="Ciaran Doherty", gk_total_kickouts=18)
        summary = self.enricher.enrich([record])
        assert record.position_code == "GK"
        assert summary.resolved_by == {"goalkeeper_inference": 1}

    def test_unresolved_player_warned(self):
        record = PlayerStatistics(jersey_number=22, player_name="New Lad", source_row=9)
        outcome = ValidationOutcome("sheet")
        summary = self.enricher.enrich([record], outcome)

        assert record.position_code is None
        assert summary.unresolved == ["New Lad"]
        assert outcome.warnings[0].category is Category.POSITION
        assert outcome.warnings[0].row == 9

    def test_mapping_wins_over_inference(self):
        record = PlayerStatistics(jersey_number=6, player_name="Seamus O'Kane", gk_saves=1)
        self.enricher.enrich([record])
        assert record.position_code == "DEF"
