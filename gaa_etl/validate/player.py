"""
Player statistics sheet validation.

Layers, in order:
- Structure: mapped field count, player count, match metadata
- Identification: jersey numbers and player names (critical)
- Data type: non-negative counts, realistic ranges, bookings, ratio bounds
- Format: player score notation
- Consistency: cross-field and business rules (see consistency.py)

Position-specific checks need enriched records and run separately through
validate_positions().
"""

import logging
import re
from collections import Counter
from dataclasses import asdict
from datetime import date
from typing import Any, Dict, Iterator, List, Optional, Tuple

import pandas as pd

from gaa_etl.extract.fields import COUNT_FIELDS, RATIO_FIELDS, PlayerField
from gaa_etl.extract.headers import FieldMap
from gaa_etl.models import PlayerStatistics, SheetDescriptor
from gaa_etl.settings import section
from gaa_etl.transform.scores import parse_player_score
from gaa_etl.validate.consistency import ConsistencyChecker
from gaa_etl.validate.results import Category, ValidationOutcome

logger = logging.getLogger(__name__)

# Letters (any script) separated by single spaces, apostrophes, hyphens or dots
NAME_PATTERN = re.compile(r"^[^\W\d_]+(?:(?:[ '\-.]|\. )[^\W\d_]+)*\.?$")

_COUNT_COLUMNS = [f.attribute for f in COUNT_FIELDS]
_PERCENTAGE_COLUMNS = [f.attribute for f in RATIO_FIELDS if f.attribute.endswith("_percentage")]
_RATE_COLUMNS = [f.attribute for f in RATIO_FIELDS if not f.attribute.endswith("_percentage")]


def records_frame(records: List[PlayerStatistics]) -> pd.DataFrame:
    """One row per record, statistic columns numeric (None -> NaN)."""
    frame = pd.DataFrame([asdict(r) for r in records])
    numeric = _COUNT_COLUMNS + _PERCENTAGE_COLUMNS + _RATE_COLUMNS
    frame[numeric] = frame[numeric].apply(pd.to_numeric, errors="coerce")
    return frame


def _flagged(frame: pd.DataFrame, columns: List[str], mask: pd.DataFrame) -> Iterator[Tuple[int, str, Any]]:
    """(row position, column, value) for every cell where mask is True."""
    positions, offsets = mask.to_numpy().nonzero()
    for position, offset in zip(positions, offsets):
        column = columns[offset]
        yield int(position), column, frame.iloc[position][column]


def _display(value: Any) -> Any:
    return int(value) if float(value).is_integer() else value


class PlayerSheetValidator:
    """
    Validates one player statistics sheet.

    Example:
        >>> validator = PlayerSheetValidator()
        >>> outcome = validator.validate(descriptor, field_map, records)
        >>> if outcome.has_critical_errors:
        >>>     print(outcome.details())
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.structure: Dict[str, Any] = section("structure", config)
        self.identification: Dict[str, Any] = section("identification", config)
        self.data_type: Dict[str, Any] = section("data_type", config)
        self.consistency = ConsistencyChecker(config)

    def validate(
        self,
        descriptor: SheetDescriptor,
        field_map: FieldMap,
        records: List[PlayerStatistics],
        outcome: Optional[ValidationOutcome] = None,
    ) -> ValidationOutcome:
        """
        Run every record-level layer over a sheet.

        Args:
            descriptor: Sheet metadata
            field_map: Header map the records were extracted with
            records: Extracted records in sheet order
            outcome: Existing diagnostics for the sheet (extraction warnings)

        Returns:
            The outcome, with critical errors marking the sheet as blocked
        """
        outcome = outcome if outcome is not None else ValidationOutcome(descriptor.sheet_name)

        self._validate_structure(descriptor, field_map, records, outcome)
        if records:
            self._validate_identification(records, outcome)
            self._validate_data_types(records, outcome)
            self._validate_score_notation(records, outcome)
            for record in records:
                self.consistency.check_record(record, outcome)

        logger.info(outcome.summary())
        if outcome.has_critical_errors:
            for diagnostic in outcome.errors:
                if diagnostic.critical:
                    logger.error(str(diagnostic))

        return outcome

    def validate_positions(self, records: List[PlayerStatistics], outcome: ValidationOutcome) -> ValidationOutcome:
        """Position-specific and squad-level checks on enriched records."""
        for record in records:
            self.consistency.check_position(record, outcome)
        self.consistency.check_team(records, outcome)
        return outcome

    def _validate_structure(
        self,
        descriptor: SheetDescriptor,
        field_map: FieldMap,
        records: List[PlayerStatistics],
        outcome: ValidationOutcome,
    ) -> None:
        mapped = len(field_map)
        if mapped < self.structure.get("min_fields", 10):
            outcome.add_error(Category.STRUCTURE, f"Only {mapped} fields mapped from header row",
                              value=mapped, critical=True)
        elif mapped < self.structure.get("warn_fields", 70):
            outcome.add_warning(Category.STRUCTURE, f"Only {mapped} fields mapped from header row", value=mapped)

        if not records:
            outcome.add_error(Category.STRUCTURE, "No player rows found", critical=True)
        elif not self.structure.get("min_players_warning", 10) <= len(records) <= self.structure.get(
            "max_players_warning", 40
        ):
            outcome.add_warning(Category.STRUCTURE, f"Unusual player count: {len(records)}", value=len(records))

        if descriptor.match_number <= 0:
            outcome.add_error(Category.STRUCTURE, f"Invalid match number {descriptor.match_number}",
                              value=descriptor.match_number, critical=True)
        elif descriptor.match_number > self.structure.get("max_match_number_warning", 100):
            outcome.add_warning(Category.STRUCTURE, f"Unusually high match number {descriptor.match_number}",
                                value=descriptor.match_number)

        if len(descriptor.opposition.strip()) < self.structure.get("min_opposition_length", 2):
            outcome.add_warning(Category.STRUCTURE, f"Opposition name '{descriptor.opposition}' is too short",
                                value=descriptor.opposition)

        if descriptor.date_known:
            match_date = descriptor.match_date
            if match_date.year < self.structure.get("earliest_year", 2020):
                outcome.add_warning(Category.STRUCTURE, f"Match date {match_date} is unusually old",
                                    value=match_date)
            elif match_date > date.today():
                outcome.add_warning(Category.STRUCTURE, f"Match date {match_date} is in the future",
                                    value=match_date)

    def _validate_identification(self, records: List[PlayerStatistics], outcome: ValidationOutcome) -> None:
        rules = self.identification
        jersey_header = PlayerField.JERSEY_NUMBER.header
        name_header = PlayerField.PLAYER_NAME.header

        for record in records:
            row = record.source_row
            jersey = record.jersey_number

            if jersey > rules.get("max_jersey", 99):
                outcome.add_error(Category.JERSEY, f"Jersey number {jersey} out of range",
                                  row=row, field_name=jersey_header, value=jersey, critical=True)
            elif jersey > rules.get("warn_jersey", 40):
                outcome.add_warning(Category.JERSEY, f"Unusually high jersey number {jersey}",
                                    row=row, field_name=jersey_header, value=jersey)

            self._validate_name(record, outcome)

            minutes = record.minutes_played
            if minutes > rules.get("max_minutes", 90):
                outcome.add_error(Category.RANGE, f"#{jersey}: {minutes} minutes played",
                                  row=row, field_name=PlayerField.MINUTES_PLAYED.header, value=minutes)
            elif minutes > rules.get("warn_minutes", 70):
                outcome.add_warning(Category.RANGE, f"#{jersey}: {minutes} minutes played (extra time?)",
                                    row=row, field_name=PlayerField.MINUTES_PLAYED.header, value=minutes)

        jerseys = Counter(r.jersey_number for r in records)
        for jersey, count in sorted(jerseys.items()):
            if count > 1:
                rows = [r.source_row for r in records if r.jersey_number == jersey]
                outcome.add_error(Category.JERSEY, f"Duplicate jersey number {jersey} in rows {rows}",
                                  field_name=jersey_header, value=jersey, critical=True)

        names = Counter(r.player_name.strip().casefold() for r in records if r.player_name.strip())
        for name, count in names.items():
            if count > 1:
                outcome.add_warning(Category.IDENTIFICATION, f"Player name '{name}' appears {count} times",
                                    field_name=name_header, value=name)

    def _validate_name(self, record: PlayerStatistics, outcome: ValidationOutcome) -> None:
        rules = self.identification
        name = record.player_name
        stripped = name.strip()
        row = record.source_row
        header = PlayerField.PLAYER_NAME.header

        if not stripped:
            outcome.add_error(Category.IDENTIFICATION, f"#{record.jersey_number}: player name is empty",
                              row=row, field_name=header, critical=True)
            return

        if not rules.get("min_name_length", 2) <= len(stripped) <= rules.get("max_name_length", 100):
            outcome.add_error(Category.IDENTIFICATION, f"#{record.jersey_number}: invalid name length for '{name}'",
                              row=row, field_name=header, value=name, critical=True)
            return

        if "  " in name:
            outcome.add_warning(Category.IDENTIFICATION, f"Name '{name}' contains repeated spaces",
                                row=row, field_name=header, value=name)
        if not NAME_PATTERN.match(" ".join(stripped.split())):
            outcome.add_warning(Category.IDENTIFICATION, f"Name '{name}' contains unexpected characters",
                                row=row, field_name=header, value=name)
        elif stripped.isupper() or stripped.islower():
            outcome.add_warning(Category.IDENTIFICATION, f"Name '{name}' is not in title case",
                                row=row, field_name=header, value=name)

    def _validate_data_types(self, records: List[PlayerStatistics], outcome: ValidationOutcome) -> None:
        frame = records_frame(records)
        counts = frame[_COUNT_COLUMNS]

        for position, column, value in _flagged(frame, _COUNT_COLUMNS, counts < 0):
            record = records[position]
            outcome.add_error(Category.DATA_TYPE, f"#{record.jersey_number}: negative {column} ({_display(value)})",
                              row=record.source_row, field_name=column, value=_display(value))

        warn_count = self.data_type.get("warn_count", 100)
        for position, column, value in _flagged(frame, _COUNT_COLUMNS, counts > warn_count):
            record = records[position]
            outcome.add_warning(Category.RANGE, f"#{record.jersey_number}: unrealistic {column} ({_display(value)})",
                                row=record.source_row, field_name=column, value=_display(value))

        limits: Dict[str, int] = self.data_type.get("booking_limits", {})
        for column, limit in limits.items():
            for position, _, value in _flagged(frame, [column], frame[[column]] > limit):
                record = records[position]
                outcome.add_error(Category.BOOKING, f"#{record.jersey_number}: {_display(value)} {column}",
                                  row=record.source_row, field_name=column, value=_display(value))

        percentages = frame[_PERCENTAGE_COLUMNS]
        soft_max = self.data_type.get("percentage_soft_max", 1.05)
        for position, column, value in _flagged(frame, _PERCENTAGE_COLUMNS, (percentages < 0) | (percentages > 100)):
            record = records[position]
            outcome.add_error(Category.DATA_TYPE, f"#{record.jersey_number}: {column} out of range ({value})",
                              row=record.source_row, field_name=column, value=value)
        for position, column, value in _flagged(
            frame, _PERCENTAGE_COLUMNS, (percentages > soft_max) & (percentages <= 100)
        ):
            record = records[position]
            outcome.add_warning(Category.DATA_TYPE, f"#{record.jersey_number}: {column} is {value}, expected 0-1",
                                row=record.source_row, field_name=column, value=value)

        for position, column, value in _flagged(frame, _RATE_COLUMNS, frame[_RATE_COLUMNS] < 0):
            record = records[position]
            outcome.add_error(Category.DATA_TYPE, f"#{record.jersey_number}: negative {column} ({value})",
                              row=record.source_row, field_name=column, value=value)

    def _validate_score_notation(self, records: List[PlayerStatistics], outcome: ValidationOutcome) -> None:
        for record in records:
            if record.scores and parse_player_score(record.scores) is None:
                outcome.add_error(Category.FORMAT,
                                  f"#{record.jersey_number}: score '{record.scores}' is not in G-PP notation",
                                  row=record.source_row, field_name=PlayerField.SCORES.header, value=record.scores)
