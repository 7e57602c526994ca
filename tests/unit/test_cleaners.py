"""
Unit tests for gaa_etl/transform/cleaners.py
"""

import pytest

from gaa_etl.transform.cleaners import (
    clean_name,
    normalize_competition_type,
    normalize_player_name,
    normalize_team_assignment,
    split_full_name,
    team_abbreviation,
)


class TestNames:
    """Test player name normalisation and splitting."""

    def test_clean_name_collapses_whitespace(self):
        assert clean_name("  Seamus   O'Kane ") == "Seamus O'Kane"
        assert clean_name(None) == ""

    def test_normalize_is_case_insensitive(self):
        assert normalize_player_name("  SEAMUS  o'kane") == normalize_player_name("Seamus O'Kane")

    @pytest.mark.parametrize("full_name, expected", [
        ("Ryan McCloskey", ("Ryan", "McCloskey")),
        ("Mary Ann de Brun", ("Mary", "Ann de Brun")),
        ("Pele", ("Pele", "")),
        ("", ("", "")),
    ])
    def test_split_full_name(self, full_name, expected):
        assert split_full_name(full_name) == expected


class TestCompetitionType:
    """Test competition normalisation."""

    @pytest.mark.parametrize("label, expected", [
        ("championship", "Championship"),
        ("LEAGUE", "League"),
        ("Cup", "Cup"),
        ("friendly", "Friendly"),
        ("Tournament", "League"),
        (None, "League"),
    ])
    def test_normalize(self, label, expected):
        assert normalize_competition_type(label) == expected

    def test_team_abbreviation(self):
        assert team_abbreviation("Slaughtmanus") == "SLA"


class TestTeamAssignment:
    """Test KPI team assignment normalisation."""

    @pytest.mark.parametrize("label, expected", [
        ("Home", "Home"),
        ("home", "Home"),
        (" OPPOSITION ", "Opposition"),
        ("Oppostion", "Opposition"),
        ("both", "Both"),
        ("Neutral", "Neutral"),
        (None, ""),
    ])
    def test_normalize(self, label, expected):
        assert normalize_team_assignment(label) == expected
