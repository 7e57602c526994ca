"""
KPI definitions sheet.

One row per event outcome: event number, event name, outcome, team
assignment, PSR value and a free-text definition (columns A-F). Headers sit in
row 2 and data starts at row 4. Event number and name are merged across an
event's outcome rows, so empty cells take the value from the row above. Blank
separator rows are allowed between events; reading stops after several in a row.
"""

import logging
from typing import Any, Dict, List, Optional

from gaa_etl.extract.rows import coerce_int, coerce_ratio, coerce_text, is_blank
from gaa_etl.extract.workbook import SheetGrid
from gaa_etl.models import KpiDefinition
from gaa_etl.settings import section
from gaa_etl.transform.cleaners import clean_name, normalize_team_assignment
from gaa_etl.validate.results import Category, ValidationOutcome

logger = logging.getLogger(__name__)

KPI_HEADERS = ["Event #", "Event Name", "Outcome", "Assign to which team", "PSR Value", "Definition"]


class KpiSheetReader:
    """
    Reads the KPI definitions sheet into KpiDefinition records.

    Example:
        >>> definitions = KpiSheetReader().read(workbook["KPI Definitions"], outcome)
        >>> definitions[0].describe()
        'Event 1 - Kickout - Won clean (Home)'
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        settings = section("kpi_sheet", config)
        self.header_row: int = settings.get("header_row", 2)
        self.data_start_row: int = settings.get("data_start_row", 4)
        self.max_blank_rows: int = settings.get("max_blank_rows", 5)
        self.headers: List[str] = list(settings.get("headers", KPI_HEADERS))

    def check_headers(self, grid: SheetGrid, outcome: ValidationOutcome) -> bool:
        """Compare the header row against the expected labels; mismatches are warnings."""
        matched = True
        for column, expected in enumerate(self.headers, start=1):
            actual = grid.text(self.header_row, column)
            if actual.lower() != expected.lower():
                message = f"Header mismatch in column {column}: expected '{expected}', found '{actual}'"
                logger.warning(f"Sheet '{grid.name}': {message}")
                outcome.add_warning(Category.FIELD_MAPPING, message, row=self.header_row, value=actual)
                matched = False
        return matched

    def read(self, grid: SheetGrid, outcome: Optional[ValidationOutcome] = None) -> List[KpiDefinition]:
        """
        Extract every definition row.

        Args:
            grid: The KPI definitions worksheet
            outcome: Diagnostics sink; unreadable numbers are critical data type errors

        Returns:
            Definitions in sheet order, with team assignments normalised
        """
        outcome = outcome if outcome is not None else ValidationOutcome(grid.name)
        self.check_headers(grid, outcome)

        definitions: List[KpiDefinition] = []
        last_number: Optional[int] = None
        last_name: Optional[str] = None
        blank_rows = 0

        for row in range(self.data_start_row, grid.max_row + 1):
            values = [grid.cell(row, column) for column in range(1, len(self.headers) + 1)]
            if all(is_blank(value) for value in values):
                blank_rows += 1
                if blank_rows >= self.max_blank_rows:
                    logger.debug(f"Sheet '{grid.name}': {blank_rows} empty rows at row {row}, stopping")
                    break
                continue
            blank_rows = 0

            raw_number, raw_name, raw_outcome, raw_team, raw_psr, raw_definition = values

            event_number = coerce_int(raw_number)
            if event_number is None and not is_blank(raw_number):
                outcome.add_error(Category.DATA_TYPE, f"Invalid event number: {raw_number!r}",
                                  row=row, field_name="event_number", value=raw_number, critical=True)
                continue

            psr_value = coerce_ratio(raw_psr)
            if psr_value is None and not is_blank(raw_psr):
                outcome.add_error(Category.DATA_TYPE, f"Invalid PSR value: {raw_psr!r}",
                                  row=row, field_name="psr_value", value=raw_psr, critical=True)
                continue

            event_name = clean_name(coerce_text(raw_name)) or None
            if event_number is not None:
                last_number = event_number
            if event_name is not None:
                last_name = event_name

            definition = KpiDefinition(
                event_number=event_number if event_number is not None else (last_number or 0),
                event_name=event_name or last_name or "",
                outcome=clean_name(coerce_text(raw_outcome)),
                team_assignment=normalize_team_assignment(coerce_text(raw_team)),
                psr_value=psr_value if psr_value is not None else 0.0,
                definition=(coerce_text(raw_definition) or ""),
                source_row=row,
            )
            definitions.append(definition)

        logger.info(f"Extracted {len(definitions)} KPI definitions from '{grid.name}'")
        return definitions
