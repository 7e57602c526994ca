"""
Player row extraction.

Rows are read from the data start row until the first row where both the
jersey cell and the name cell are empty; that is the normal end of data.
Counts default to 0 when missing, ratios stay None so "no attempts" is not
confused with 0%.
"""

import logging
import math
import numbers
import re
from typing import Any, Dict, List, Optional

from gaa_etl.extract.fields import STATISTIC_FIELDS, FieldKind, PlayerField
from gaa_etl.extract.headers import FieldMap
from gaa_etl.extract.workbook import SheetGrid
from gaa_etl.models import PlayerStatistics
from gaa_etl.settings import section
from gaa_etl.validate.results import Category, ValidationOutcome

logger = logging.getLogger(__name__)

_NUMBER_TEXT = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)$")
# Cached Excel error values and placeholder dashes carry no data
_EXCEL_ERROR = re.compile(r"^#(DIV/0!|N/A|VALUE!|REF!|NAME\?|NUM!|NULL!)$")
_PLACEHOLDERS = {"", "-", "n/a"}


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        text = value.strip()
        return text.lower() in _PLACEHOLDERS or bool(_EXCEL_ERROR.match(text))
    return False


def coerce_int(value: Any) -> Optional[int]:
    """
    Integer from an int, a float (rounded) or a numeric string.

    Returns None for blanks and anything non-numeric.
    """
    if is_blank(value):
        return None
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, numbers.Real):
        if math.isnan(value) or math.isinf(value):
            return None
        return int(round(value))
    if isinstance(value, str):
        text = value.strip()
        if _NUMBER_TEXT.match(text):
            return int(round(float(text)))
    return None


def coerce_ratio(value: Any) -> Optional[float]:
    """
    Float from a number or numeric string; "45%" becomes 0.45.

    Returns None for blanks and anything non-numeric.
    """
    if is_blank(value) or isinstance(value, bool):
        return None
    if isinstance(value, numbers.Real):
        number = float(value)
        return None if math.isnan(number) or math.isinf(number) else number
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("%"):
            text = text[:-1].strip()
            return float(text) / 100 if _NUMBER_TEXT.match(text) else None
        if _NUMBER_TEXT.match(text):
            return float(text)
    return None


def coerce_text(value: Any) -> Optional[str]:
    """Stripped text; whole floats lose their '.0'. None for blanks."""
    if is_blank(value):
        return None
    if isinstance(value, numbers.Real) and not isinstance(value, bool) and float(value).is_integer():
        return str(int(value))
    return str(value).strip()


class RowExtractor:
    """Walks data rows of a player statistics sheet into PlayerStatistics records."""

    def __init__(self, data_start_row: Optional[int] = None, config: Optional[Dict[str, Any]] = None):
        if data_start_row is None:
            data_start_row = section("player_sheet", config).get("data_start_row", 4)
        self.data_start_row = data_start_row

    def extract(
        self,
        grid: SheetGrid,
        field_map: FieldMap,
        outcome: Optional[ValidationOutcome] = None,
    ) -> List[PlayerStatistics]:
        """
        Extract one record per populated row.

        Args:
            grid: Worksheet cells
            field_map: Header map for the sheet
            outcome: Diagnostics sink for skipped rows and uncoercible cells

        Returns:
            Records in sheet order
        """
        outcome = outcome if outcome is not None else ValidationOutcome(grid.name)
        jersey_col = field_map.column(PlayerField.JERSEY_NUMBER)
        name_col = field_map.column(PlayerField.PLAYER_NAME)

        records: List[PlayerStatistics] = []
        row = self.data_start_row

        while row <= grid.max_row:
            raw_jersey = grid.cell(row, jersey_col)
            name = coerce_text(grid.cell(row, name_col))

            if is_blank(raw_jersey) and not name:
                logger.debug(f"Sheet '{grid.name}': end of player data at row {row}")
                break

            jersey = coerce_int(raw_jersey)
            if jersey is None or jersey <= 0:
                outcome.add_warning(
                    Category.JERSEY,
                    f"Row skipped: invalid jersey number {raw_jersey!r} for '{name or ''}'",
                    row=row,
                    field_name=PlayerField.JERSEY_NUMBER.header,
                    value=raw_jersey,
                )
                row += 1
                continue

            records.append(self._build_record(grid, field_map, row, jersey, name or "", outcome))
            row += 1

        logger.info(f"Sheet '{grid.name}': extracted {len(records)} player rows")
        return records

    def _build_record(
        self,
        grid: SheetGrid,
        field_map: FieldMap,
        row: int,
        jersey: int,
        name: str,
        outcome: ValidationOutcome,
    ) -> PlayerStatistics:
        values: Dict[str, Any] = {}

        for field in STATISTIC_FIELDS:
            column = field_map.column(field)
            raw = grid.cell(row, column) if column else None

            if field.kind is FieldKind.TEXT:
                values[field.attribute] = coerce_text(raw)
                continue

            if field.kind is FieldKind.RATIO:
                value = coerce_ratio(raw)
            else:
                value = coerce_int(raw)

            if value is None and not is_blank(raw):
                outcome.add_warning(
                    Category.DATA_TYPE,
                    f"Unreadable value {raw!r} in '{field.header}' for #{jersey}",
                    row=row,
                    field_name=field.header,
                    value=raw,
                )

            if field.kind is FieldKind.COUNT and value is None:
                value = 0
            values[field.attribute] = value

        return PlayerStatistics(jersey_number=jersey, player_name=name, source_row=row, **values)
