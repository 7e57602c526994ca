"""
Unit tests for match/team sheet extraction and validation.
"""

from dataclasses import replace
from datetime import date

import pytest

from gaa_etl.extract.match_sheet import MatchSheetReader
from gaa_etl.extract.workbook import read_workbook
from gaa_etl.models import DATE_UNKNOWN
from gaa_etl.validate.match import MatchSheetValidator
from gaa_etl.validate.results import Category, ValidationOutcome
from tests.fixtures import workbooks


def read_match(tmp_path, **sheet_options):
    wb = workbooks.new_workbook()
    ws = workbooks.write_match_sheet(wb, **sheet_options)
    workbook = read_workbook(workbooks.save(wb, tmp_path / "match.xlsx"))
    return workbook[ws.title]


@pytest.fixture
def validator(config):
    return MatchSheetValidator(config)


class TestMatchSheetReader:
    """Test scoreline and team statistics extraction."""

    def test_reads_metadata_and_scores(self, tmp_path):
        grid = read_match(tmp_path)
        match = MatchSheetReader().read(grid)

        assert match.match_number == 9
        assert match.competition == "Championship"
        assert match.opposition == "Slaughtmanus"
        assert match.match_date == date(2025, 9, 26)
        assert match.home_score_full_time == "1-07"
        assert match.away_score_full_time == "0-10"

    def test_six_period_records(self, tmp_path):
        match = MatchSheetReader().read(read_match(tmp_path, source_count=2))
        records = match.team_statistics

        assert [(r.team_name, r.period) for r in records] == [
            ("Drum", "1st"), ("Slaughtmanus", "1st"),
            ("Drum", "2nd"), ("Slaughtmanus", "2nd"),
            ("Drum", "Full"), ("Slaughtmanus", "Full"),
        ]
        assert records[1].scoreline == "0-04"
        assert records[4].total_possession == pytest.approx(0.52)
        assert set(records[0].source_counts().values()) == {2}
        assert len(records[0].source_counts()) == 16

    def test_unreadable_count(self, tmp_path):
        grid = read_match(tmp_path)
        grid.frame.iat[6, 1] = "lots"  # B7
        outcome = ValidationOutcome(grid.name)
        match = MatchSheetReader().read(grid, outcome=outcome)

        assert match.team_statistics[0].score_source_kickout_long == 0
        assert outcome.warnings[0].category is Category.DATA_TYPE
        assert outcome.warnings[0].row == 7


class TestMatchSheetValidator:
    """Test scoreline, possession and date rules."""

    def test_clean_sheet(self, tmp_path, validator):
        match = MatchSheetReader().read(read_match(tmp_path))
        outcome = validator.validate(match)
        assert outcome.diagnostics == []

    def test_malformed_score_blocks(self, tmp_path, validator):
        scores = ("0-05", "1-02", "abc", "0-04", "0-06", "0-10")
        match = MatchSheetReader().read(read_match(tmp_path, scores=scores))
        outcome = validator.validate(match)

        assert outcome.has_critical_errors
        assert outcome.errors[0].category is Category.FORMAT
        assert outcome.errors[0].field_name == "home_score_full_time"

    def test_halves_not_reconciled(self, tmp_path, validator):
        scores = ("0-05", "1-02", "2-07", "0-04", "0-06", "0-10")
        match = MatchSheetReader().read(read_match(tmp_path, scores=scores))
        outcome = validator.validate(match)

        assert not outcome.has_critical_errors
        assert outcome.warnings_by_category() == {Category.CROSS_FIELD.value: 1}

    def test_unrealistic_goals(self, tmp_path, validator):
        scores = ("0-05", "1-02", "12-07", "0-04", "0-06", "0-10")
        match = MatchSheetReader().read(read_match(tmp_path, scores=scores))
        outcome = validator.validate(match)
        assert outcome.errors_by_category()[Category.RANGE.value] >= 1

    def test_possession_out_of_range_blocks(self, tmp_path, validator):
        possession = (1.5, 0.50, 0.52, 0.45, 0.50, 0.48)
        match = MatchSheetReader().read(read_match(tmp_path, possession=possession))
        outcome = validator.validate(match)

        assert outcome.has_critical_errors
        assert any(e.field_name == "total_possession" and e.critical for e in outcome.errors)

    def test_negative_source_count_blocks(self, tmp_path, validator):
        match = MatchSheetReader().read(read_match(tmp_path, source_count=-1))
        outcome = validator.validate(match)
        assert outcome.has_critical_errors
        assert outcome.errors_by_category()[Category.DATA_TYPE.value] == 96

    def test_unknown_date_blocks(self, tmp_path, validator):
        match = MatchSheetReader().read(read_match(tmp_path))
        outcome = validator.validate(replace(match, match_date=DATE_UNKNOWN))

        assert outcome.has_critical_errors
        assert outcome.errors[0].field_name == "match_date"

    def test_missing_team_records_blocks(self, tmp_path, validator):
        match = MatchSheetReader().read(read_match(tmp_path))
        outcome = validator.validate(replace(match, team_statistics=match.team_statistics[:4]))
        assert outcome.errors_by_category() == {Category.STRUCTURE.value: 1}
