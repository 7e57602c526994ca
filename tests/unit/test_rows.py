"""
Unit tests for gaa_etl/extract/rows.py
"""

import pytest

from gaa_etl.extract.headers import HeaderMapper
from gaa_etl.extract.rows import RowExtractor, coerce_int, coerce_ratio, coerce_text, is_blank
from gaa_etl.extract.workbook import read_workbook
from gaa_etl.validate.results import Category, ValidationOutcome
from tests.fixtures import workbooks


def extract(tmp_path, players, after_gap=None):
    """Write a player sheet, optionally with rows below an empty separator row."""
    wb = workbooks.new_workbook()
    ws = workbooks.write_player_sheet(wb, players=players)
    if after_gap:
        first = 4 + len(players) + 1
        for offset, (jersey, name) in enumerate(after_gap):
            ws.cell(row=first + offset, column=1, value=jersey)
            ws.cell(row=first + offset, column=2, value=name)
    path = workbooks.save(wb, tmp_path / "rows.xlsx")

    grid = read_workbook(path)[workbooks.PLAYER_SHEET]
    outcome = ValidationOutcome(grid.name)
    field_map = HeaderMapper().map(grid, outcome)
    return RowExtractor().extract(grid, field_map, outcome), outcome


class TestRowExtractor:
    """Test player row extraction."""

    def test_stops_at_first_empty_row(self, tmp_path):
        records, _ = extract(tmp_path, workbooks.SAMPLE_PLAYERS, after_gap=[(20, "Totals"), (21, "Subs")])
        assert len(records) == 3
        assert [r.jersey_number for r in records] == [1, 6, 14]

    def test_values_and_defaults(self, tmp_path):
        records, _ = extract(tmp_path, workbooks.SAMPLE_PLAYERS)
        keeper, defender, forward = records

        assert keeper.player_name == "Ciaran Doherty"
        assert keeper.source_row == 4
        assert keeper.gk_total_kickouts == 20
        assert keeper.gk_kickout_percentage == pytest.approx(0.75)
        assert defender.tackles_total == 6
        assert defender.shots_play_total == 0
        assert defender.shots_play_percentage is None
        assert forward.scores == "1-03(1f)"

    def test_invalid_jersey_row_skipped(self, tmp_path):
        players = workbooks.SAMPLE_PLAYERS + [{"jersey_number": "x", "player_name": "Mystery Man"}]
        records, outcome = extract(tmp_path, players)

        assert len(records) == 3
        assert outcome.warnings_by_category()[Category.JERSEY.value] == 1

    def test_unreadable_count_warns_and_defaults(self, tmp_path):
        players = [dict(workbooks.SAMPLE_PLAYERS[0], tp="lots")]
        records, outcome = extract(tmp_path, players)

        assert records[0].tp == 0
        assert any(d.category is Category.DATA_TYPE and d.field_name == "TP" for d in outcome.warnings)


class TestCoercion:
    """Test cell coercion helpers."""

    @pytest.mark.parametrize("value, expected", [
        (7, 7), (7.6, 8), ("12", 12), (" 3 ", 3), ("2.0", 2), (None, None), ("-", None),
        ("#DIV/0!", None), ("abc", None), (float("nan"), None),
    ])
    def test_coerce_int(self, value, expected):
        assert coerce_int(value) == expected

    @pytest.mark.parametrize("value, expected", [
        (0.45, 0.45), ("45%", 0.45), ("0.5", 0.5), (None, None), ("#N/A", None), ("n/a", None),
    ])
    def test_coerce_ratio(self, value, expected):
        result = coerce_ratio(value)
        if expected is None:
            assert result is None
        else:
            assert result == pytest.approx(expected)

    def test_coerce_text(self):
        assert coerce_text(5.0) == "5"
        assert coerce_text("  1-07 ") == "1-07"
        assert coerce_text("") is None

    def test_is_blank(self):
        assert is_blank(None)
        assert is_blank("  ")
        assert is_blank("#VALUE!")
        assert not is_blank(0)
