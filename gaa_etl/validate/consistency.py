"""
Cross-field, position-specific and business-rule checks for player records.

All checks here are advisory except sub-totals exceeding their parent total
and impossible booking counts, which are (non-critical) errors.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from gaa_etl.models import PlayerStatistics
from gaa_etl.settings import section
from gaa_etl.validate.results import Category, ValidationOutcome

logger = logging.getLogger(__name__)

# (parent total, component fields, label): parent should equal the component sum
SUM_CHECKS: Tuple[Tuple[str, Sequence[str], str], ...] = (
    ("ko_drum_kow", ("ko_drum_wc", "ko_drum_bw", "ko_drum_sw"), "Own kickouts won"),
    ("ko_opp_kow", ("ko_opp_wc", "ko_opp_bw", "ko_opp_sw"), "Opposition kickouts won"),
    ("ta", ("kr", "kl", "cr", "cl"), "Total attacks"),
    ("shots_play_total", (
        "shots_play_points", "shots_play_2points", "shots_play_goals", "shots_play_wide",
        "shots_play_short", "shots_play_save", "shots_play_woodwork", "shots_play_blocked",
    ), "Shots from play"),
    ("frees_total", (
        "frees_points", "frees_2points", "frees_goals", "frees_wide",
        "frees_short", "frees_save", "frees_woodwork",
    ), "Scoreable frees"),
    ("total_shots", ("shots_play_total", "frees_total"), "Total shots"),
    ("assists_total", ("assists_point", "assists_goal"), "Assists"),
    ("tackles_total", ("tackles_contested", "tackles_missed"), "Tackles"),
    ("frees_conceded_total", (
        "frees_conceded_attack", "frees_conceded_midfield",
        "frees_conceded_defense", "frees_conceded_penalty",
    ), "Frees conceded"),
    ("frees_50m_total", ("frees_50m_delay", "frees_50m_dissent", "frees_50m_3v3"), "50m frees"),
    ("gk_total_kickouts", ("gk_kickout_retained", "gk_kickout_lost"), "Goalkeeper kickouts"),
)

# Outcome counts that can never exceed the total they belong to
SUBTOTAL_CHECKS: Tuple[Tuple[str, Sequence[str]], ...] = (
    ("shots_play_total", (
        "shots_play_points", "shots_play_2points", "shots_play_goals", "shots_play_wide",
        "shots_play_short", "shots_play_save", "shots_play_woodwork", "shots_play_blocked",
        "shots_play_45",
    )),
    ("frees_total", (
        "frees_points", "frees_2points", "frees_goals", "frees_wide", "frees_short",
        "frees_save", "frees_woodwork", "frees_45",
    )),
    ("tackles_total", ("tackles_contested", "tackles_missed")),
    ("gk_total_kickouts", ("gk_kickout_retained", "gk_kickout_lost")),
)

# (ratio field, numerator fields, denominator field)
RATIO_CHECKS: Tuple[Tuple[str, Sequence[str], str], ...] = (
    ("shots_play_percentage", ("shots_play_points", "shots_play_2points", "shots_play_goals"),
     "shots_play_total"),
    ("frees_percentage", ("frees_points", "frees_2points", "frees_goals"), "frees_total"),
    ("total_shots_percentage", (
        "shots_play_points", "shots_play_2points", "shots_play_goals",
        "frees_points", "frees_2points", "frees_goals",
    ), "total_shots"),
    ("tackles_percentage", ("tackles_contested",), "tackles_total"),
    ("gk_kickout_percentage", ("gk_kickout_retained",), "gk_total_kickouts"),
)


def _sum(record: PlayerStatistics, names: Sequence[str]) -> int:
    return sum(getattr(record, name) for name in names)


def scoring_shots(record: PlayerStatistics) -> int:
    return _sum(record, RATIO_CHECKS[2][1])


def _label(record: PlayerStatistics) -> str:
    return f"#{record.jersey_number} {record.player_name}"


class ConsistencyChecker:
    """Record-level and team-level consistency rules."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        cross = section("cross_field", config)
        self.count_tolerance: int = cross.get("count_tolerance", 2)
        self.ratio_tolerance: float = cross.get("percentage_tolerance", 0.05)
        self.throw_up_imbalance: int = cross.get("throw_up_imbalance", 10)
        self.business: Dict[str, Any] = section("business", config)

    def check_record(self, record: PlayerStatistics, outcome: ValidationOutcome) -> None:
        self._check_sums(record, outcome)
        self._check_subtotals(record, outcome)
        self._check_ratios(record, outcome)
        self._check_throw_ups(record, outcome)
        self._check_bookings(record, outcome)
        self._check_activity(record, outcome)

    def _check_sums(self, record: PlayerStatistics, outcome: ValidationOutcome) -> None:
        for total_name, parts, label in SUM_CHECKS:
            total = getattr(record, total_name)
            expected = _sum(record, parts)
            if total > 0 and abs(total - expected) > self.count_tolerance:
                outcome.add_warning(
                    Category.CROSS_FIELD,
                    f"{_label(record)}: {label} ({total}) doesn't match sum of components ({expected})",
                    row=record.source_row, field_name=total_name, value=total,
                )

    def _check_subtotals(self, record: PlayerStatistics, outcome: ValidationOutcome) -> None:
        for total_name, parts in SUBTOTAL_CHECKS:
            total = getattr(record, total_name)
            for part in parts:
                value = getattr(record, part)
                if value > total:
                    outcome.add_error(
                        Category.CROSS_FIELD,
                        f"{_label(record)}: {part} ({value}) exceeds {total_name} ({total})",
                        row=record.source_row, field_name=part, value=value,
                    )

    def _check_ratios(self, record: PlayerStatistics, outcome: ValidationOutcome) -> None:
        for ratio_name, numerator, denominator_name in RATIO_CHECKS:
            ratio = getattr(record, ratio_name)
            denominator = getattr(record, denominator_name)
            if ratio is None or denominator <= 0:
                continue
            expected = _sum(record, numerator) / denominator
            if abs(float(ratio) - expected) > self.ratio_tolerance:
                outcome.add_warning(
                    Category.CROSS_FIELD,
                    f"{_label(record)}: {ratio_name} ({ratio:.1%}) doesn't match calculated ({expected:.1%})",
                    row=record.source_row, field_name=ratio_name, value=ratio,
                )

    def _check_throw_ups(self, record: PlayerStatistics, outcome: ValidationOutcome) -> None:
        won, lost = record.throw_up_won, record.throw_up_lost
        limit = self.throw_up_imbalance
        if (won > 0 and lost > limit) or (lost > 0 and won > limit):
            outcome.add_warning(
                Category.CROSS_FIELD,
                f"{_label(record)}: unusual throw-up split (won {won}, lost {lost})",
                row=record.source_row,
            )

    def _check_bookings(self, record: PlayerStatistics, outcome: ValidationOutcome) -> None:
        if record.red_cards > 1:
            outcome.add_error(Category.BOOKING, f"{_label(record)}: {record.red_cards} red cards",
                              row=record.source_row, field_name="Red", value=record.red_cards)
        if record.black_cards > 1:
            outcome.add_error(Category.BOOKING, f"{_label(record)}: {record.black_cards} black cards",
                              row=record.source_row, field_name="Bla", value=record.black_cards)

        dismissed = record.red_cards > 0 or record.black_cards > 0
        if dismissed and record.minutes_played > self.business.get("late_dismissal_minutes", 60):
            outcome.add_warning(
                Category.BOOKING,
                f"{_label(record)}: dismissed but played {record.minutes_played} minutes",
                row=record.source_row,
            )
        if record.total_cards > self.business.get("max_total_cards", 2):
            outcome.add_warning(Category.BOOKING, f"{_label(record)}: {record.total_cards} cards in one match",
                                row=record.source_row)

    def _check_activity(self, record: PlayerStatistics, outcome: ValidationOutcome) -> None:
        minutes = record.minutes_played
        te = record.total_engagements

        if minutes == 0 and (te > 0 or record.tp > 0 or record.total_shots > 0):
            outcome.add_warning(Category.BUSINESS_RULE,
                                f"{_label(record)}: statistics recorded with 0 minutes played",
                                row=record.source_row)
        if minutes > 30 and te == 0:
            outcome.add_warning(Category.BUSINESS_RULE,
                                f"{_label(record)}: {minutes} minutes played with no engagements",
                                row=record.source_row)
        if record.tp > 0 and record.turnovers > record.tp:
            outcome.add_warning(Category.BUSINESS_RULE,
                                f"{_label(record)}: turnovers ({record.turnovers}) exceed possessions ({record.tp})",
                                row=record.source_row)

        if minutes >= self.business.get("engagement_rate_min_minutes", 10):
            rate = te / minutes
            low = self.business.get("engagement_rate_min", 0.2)
            high = self.business.get("engagement_rate_max", 2.0)
            if te > 0 and not low <= rate <= high:
                outcome.add_warning(Category.BUSINESS_RULE,
                                    f"{_label(record)}: {rate:.2f} engagements per minute outside {low}-{high}",
                                    row=record.source_row, value=round(rate, 2))

    def check_position(self, record: PlayerStatistics, outcome: ValidationOutcome) -> None:
        """Position-specific plausibility; needs position_code to be set."""
        position = record.position_code
        if not position:
            return

        minutes = record.minutes_played
        warnings: List[str] = []

        if position != "GK" and record.gk_total_kickouts > 0:
            warnings.append(f"{position} with {record.gk_total_kickouts} goalkeeper kickouts")

        if position == "GK":
            if record.gk_total_kickouts == 0 and minutes > 0:
                warnings.append("goalkeeper with no kickouts")
            if record.total_shots > 2:
                warnings.append(f"goalkeeper with {record.total_shots} shots")
            if record.shots_play_goals + record.frees_goals > 0:
                warnings.append("goalkeeper scored a goal")
            if record.ta > 5:
                warnings.append(f"goalkeeper with {record.ta} attacks")
        elif position == "DEF":
            if minutes > 30 and record.tackles_total == 0:
                warnings.append(f"defender with no tackles in {minutes} minutes")
            if record.total_shots > 10:
                warnings.append(f"defender with {record.total_shots} shots")
            if minutes > 40 and record.tackles_total < 2 and record.interceptions < 2:
                warnings.append("defender with little defensive activity")
        elif position == "MID":
            if minutes > 40 and record.tp < 5:
                warnings.append(f"midfielder with {record.tp} possessions")
            if minutes > 40 and record.ko_drum_kow + record.ko_opp_kow == 0:
                warnings.append("midfielder with no kickouts won")
            if minutes > 40 and record.tackles_total == 0:
                warnings.append("midfielder with no tackles")
        elif position == "FWD":
            if minutes > 40 and record.total_shots == 0:
                warnings.append("forward with no shots")
            if minutes > 40 and record.ta < 3:
                warnings.append(f"forward with {record.ta} attacks")
            if record.tackles_total > 8:
                warnings.append(f"forward with {record.tackles_total} tackles")
            if minutes > 50 and scoring_shots(record) == 0 and record.assists_total == 0:
                warnings.append("forward with no scores or assists")

        for message in warnings:
            outcome.add_warning(Category.POSITION, f"{_label(record)}: {message}",
                                row=record.source_row, value=position)

    def check_team(self, records: List[PlayerStatistics], outcome: ValidationOutcome) -> None:
        """Squad-level sanity checks for one sheet."""
        if not records:
            return

        rules = self.business
        count = len(records)
        if count < rules.get("team_min_players", 15) or count > rules.get("team_max_players", 35):
            outcome.add_warning(Category.BUSINESS_RULE, f"Unusual squad size: {count} players")

        if not any(r.gk_total_kickouts > 0 or r.position_code == "GK" for r in records):
            outcome.add_warning(Category.BUSINESS_RULE, "No goalkeeper identified in sheet")

        total_minutes = sum(r.minutes_played for r in records)
        if not rules.get("team_min_minutes", 700) <= total_minutes <= rules.get("team_max_minutes", 1400):
            outcome.add_warning(Category.BUSINESS_RULE, f"Total minutes played is {total_minutes}",
                                value=total_minutes)

        regular_minutes = rules.get("regular_minutes", 40)
        regulars = sum(1 for r in records if r.minutes_played > regular_minutes)
        if regulars < rules.get("team_min_regulars", 10):
            outcome.add_warning(Category.BUSINESS_RULE,
                                f"Only {regulars} players with more than {regular_minutes} minutes")
