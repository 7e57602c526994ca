"""
Unit tests for gaa_etl/validate/consistency.py
"""

from typing import List

import pytest

from gaa_etl.models import PlayerStatistics
from gaa_etl.validate.consistency import ConsistencyChecker
from gaa_etl.validate.results import Category, ValidationOutcome


@pytest.fixture
def checker(config):
    return ConsistencyChecker(config)


def player(**stats) -> PlayerStatistics:
    defaults = {"jersey_number": 10, "player_name": "Eoin Bradley", "source_row": 7,
                "minutes_played": 60, "total_engagements": 30, "tp": 10}
    defaults.update(stats)
    return PlayerStatistics(**defaults)


def messages(outcome: ValidationOutcome) -> List[str]:
    return [d.message for d in outcome.diagnostics]


class TestRecordChecks:
    """Test per-record cross-field rules."""

    def test_consistent_record(self, checker, outcome):
        checker.check_record(player(ta=5, kr=2, kl=1, cr=1, cl=1), outcome)
        assert outcome.diagnostics == []

    def test_sum_within_tolerance(self, checker, outcome):
        checker.check_record(player(ta=6, kr=2, kl=1, cr=1), outcome)
        assert outcome.diagnostics == []

    def test_sum_mismatch_warns(self, checker, outcome):
        checker.check_record(player(ta=12, kr=2, kl=1), outcome)

        assert outcome.warning_count == 1
        assert outcome.warnings[0].category is Category.CROSS_FIELD
        assert "Total attacks (12)" in outcome.warnings[0].message

    def test_subtotal_exceeding_total_is_error(self, checker, outcome):
        checker.check_record(player(tackles_total=2, tackles_contested=3), outcome)

        assert outcome.error_count == 1
        assert outcome.errors[0].field_name == "tackles_contested"
        assert not outcome.has_critical_errors

    def test_ratio_mismatch_warns(self, checker, outcome):
        checker.check_record(player(tackles_total=4, tackles_contested=2, tackles_missed=2,
                                    tackles_percentage=0.9), outcome)
        assert any(w.field_name == "tackles_percentage" for w in outcome.warnings)

    def test_ratio_skipped_without_denominator(self, checker, outcome):
        checker.check_record(player(frees_percentage=0.5), outcome)
        assert outcome.diagnostics == []

    def test_two_red_cards_is_error(self, checker, outcome):
        checker.check_record(player(red_cards=2, minutes_played=30, total_engagements=15), outcome)
        assert outcome.errors_by_category() == {Category.BOOKING.value: 1}

    def test_late_dismissal_warns(self, checker, outcome):
        checker.check_record(player(black_cards=1, minutes_played=65), outcome)
        assert any("dismissed" in m for m in messages(outcome))

    def test_stats_without_minutes(self, checker, outcome):
        checker.check_record(player(minutes_played=0), outcome)
        assert outcome.warnings_by_category() == {Category.BUSINESS_RULE.value: 1}

    def test_engagement_rate_outside_band(self, checker, outcome):
        checker.check_record(player(minutes_played=60, total_engagements=2), outcome)
        assert any("engagements per minute" in m for m in messages(outcome))


class TestPositionChecks:
    """Test position plausibility warnings."""

    def test_unpositioned_record_skipped(self, checker, outcome):
        checker.check_position(player(gk_total_kickouts=5), outcome)
        assert outcome.diagnostics == []

    def test_outfield_player_with_kickouts(self, checker, outcome):
        checker.check_position(player(position_code="MID", gk_total_kickouts=5, tp=10,
                                      ko_drum_kow=2, tackles_total=3), outcome)
        assert messages(outcome) == ["#10 Eoin Bradley: MID with 5 goalkeeper kickouts"]

    def test_goalkeeper_without_kickouts(self, checker, outcome):
        checker.check_position(player(position_code="GK"), outcome)
        assert outcome.warnings[0].category is Category.POSITION
        assert outcome.warnings[0].value == "GK"

    def test_quiet_forward(self, checker, outcome):
        checker.check_position(player(position_code="FWD"), outcome)
        assert len(outcome.warnings) == 3


class TestTeamChecks:
    """Test squad-level checks."""

    def test_small_squad_without_goalkeeper(self, checker, outcome):
        checker.check_team([player(jersey_number=n) for n in range(1, 4)], outcome)

        text = messages(outcome)
        assert "Unusual squad size: 3 players" in text
        assert "No goalkeeper identified in sheet" in text

    def test_full_squad(self, checker, outcome):
        squad = [player(jersey_number=n, minutes_played=60) for n in range(1, 16)]
        squad[0].position_code = "GK"
        checker.check_team(squad, outcome)
        assert outcome.diagnostics == []

    def test_empty_sheet(self, checker, outcome):
        checker.check_team([], outcome)
        assert outcome.diagnostics == []
