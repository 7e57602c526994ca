"""
Match/team sheet validation.

Critical (sheet not loaded): malformed scorelines, unknown match date,
possession outside [0, 1], negative source counts, wrong number of team
statistics records.
Advisory: unrealistic scores, half/full reconciliation, possession pairs,
match date range.
"""

import logging
from datetime import date
from typing import Any, Dict, Optional

from gaa_etl.models import MatchSheetData
from gaa_etl.settings import section
from gaa_etl.transform.scores import Score, parse_score
from gaa_etl.validate.results import Category, ValidationOutcome

logger = logging.getLogger(__name__)

EXPECTED_TEAM_RECORDS = 6


class MatchSheetValidator:
    """
    Validates one match/team sheet.

    Example:
        >>> outcome = MatchSheetValidator().validate(match)
        >>> outcome.has_critical_errors
        False
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        rules = section("match_sheet", config)
        self.max_goals: int = rules.get("max_goals", 10)
        self.max_points: int = rules.get("max_points", 30)
        self.half_time_tolerance: float = rules.get("half_time_tolerance", 0.10)
        self.possession_tolerance: float = rules.get("possession_tolerance", 0.05)
        self.earliest_year: int = rules.get("earliest_year", 2000)

    def validate(self, match: MatchSheetData, outcome: Optional[ValidationOutcome] = None) -> ValidationOutcome:
        outcome = outcome if outcome is not None else ValidationOutcome(match.sheet_name)

        scores = self._validate_scores(match, outcome)
        self._validate_reconciliation(scores, outcome)
        self._validate_team_statistics(match, outcome)
        self._validate_date(match, outcome)

        logger.info(outcome.summary())
        return outcome

    def _validate_scores(self, match: MatchSheetData, outcome: ValidationOutcome) -> Dict[str, Score]:
        parsed: Dict[str, Score] = {}

        for field_name, text in match.scorelines().items():
            try:
                score = parse_score(text)
            except ValueError:
                outcome.add_error(Category.FORMAT, f"Invalid score format: {text!r} (expected G-PP)",
                                  field_name=field_name, value=text, critical=True)
                continue

            if score.goals > self.max_goals:
                outcome.add_error(Category.RANGE, f"Unrealistic goal count in {field_name}: {score.goals}",
                                  field_name=field_name, value=text)
            if score.points > self.max_points:
                outcome.add_error(Category.RANGE, f"Unrealistic point count in {field_name}: {score.points}",
                                  field_name=field_name, value=text)
            parsed[field_name] = score

        return parsed

    def _validate_reconciliation(self, scores: Dict[str, Score], outcome: ValidationOutcome) -> None:
        """First half plus second half should match the full-time score."""
        for side in ("home", "away"):
            keys = (f"{side}_score_first_half", f"{side}_score_second_half", f"{side}_score_full_time")
            if not all(key in scores for key in keys):
                continue

            first, second, full = (scores[key] for key in keys)
            halves = first.total_points + second.total_points
            tolerance = max(1, int(full.total_points * self.half_time_tolerance))
            if abs(halves - full.total_points) > tolerance:
                outcome.add_warning(
                    Category.CROSS_FIELD,
                    f"{side.capitalize()} halves total {halves} points but full time is {full} "
                    f"({full.total_points} points)",
                    field_name=keys[2], value=str(full),
                )

    def _validate_team_statistics(self, match: MatchSheetData, outcome: ValidationOutcome) -> None:
        records = match.team_statistics
        if len(records) != EXPECTED_TEAM_RECORDS:
            outcome.add_error(Category.STRUCTURE,
                              f"Expected {EXPECTED_TEAM_RECORDS} team statistics records, found {len(records)}",
                              value=len(records), critical=True)

        for stats in records:
            label = f"{stats.team_name} ({stats.period})"
            possession = stats.total_possession
            if possession is not None and not 0 <= possession <= 1:
                outcome.add_error(Category.RANGE, f"{label}: possession {possession} outside 0-1",
                                  field_name="total_possession", value=possession, critical=True)

            for name, value in stats.source_counts().items():
                if value < 0:
                    outcome.add_error(Category.DATA_TYPE, f"{label}: negative {name} ({value})",
                                      field_name=name, value=value, critical=True)

        by_period: Dict[str, list] = {}
        for stats in records:
            if stats.total_possession is not None:
                by_period.setdefault(stats.period, []).append(stats.total_possession)

        for period, values in by_period.items():
            if len(values) == 2 and abs(sum(values) - 1) > self.possession_tolerance:
                outcome.add_warning(Category.CROSS_FIELD,
                                    f"{period}: possession pair sums to {sum(values):.2f}",
                                    field_name="total_possession", value=round(sum(values), 2))

    def _validate_date(self, match: MatchSheetData, outcome: ValidationOutcome) -> None:
        if not match.match_date:
            outcome.add_error(Category.STRUCTURE, "Match date unknown", field_name="match_date", critical=True)
            return

        today = date.today()
        if match.match_date.year < self.earliest_year or match.match_date.year > today.year + 1:
            outcome.add_error(Category.RANGE, f"Match date {match.match_date} outside expected range",
                              field_name="match_date", value=match.match_date)
