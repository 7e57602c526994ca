"""
Position roster sheets.

The workbook carries one sheet per line (Goalkeepers, Defenders, Midfielders,
Forwards). Player names sit in column B, one player block every 28 rows
starting at row 4, until the first empty name. The result is a read-only
normalised-name -> position code mapping shared by every player sheet of a run.
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Optional

from gaa_etl.extract.workbook import SheetGrid, Workbook
from gaa_etl.models import PositionMapping
from gaa_etl.settings import section
from gaa_etl.transform.cleaners import clean_name, normalize_player_name
from gaa_etl.validate.results import Category, ValidationOutcome

logger = logging.getLogger(__name__)

POSITIONS_SHEET_CONTEXT = "Position sheets"


@dataclass
class PositionRoster:
    """Mapping plus bookkeeping from reading the position sheets."""

    mapping: PositionMapping
    sheets_processed: int = 0
    duplicates: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.sheets_processed > 0


class PositionSheetReader:
    """
    Reads position roster sheets into a PositionMapping.

    Example:
        >>> roster = PositionSheetReader().read(workbook)
        >>> roster.mapping.get("seamus o'kane")
        'DEF'
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        settings = section("position_sheets", config)
        self.sheets: Dict[str, str] = dict(settings.get("sheets", {
            "Goalkeepers": "GK", "Defenders": "DEF", "Midfielders": "MID", "Forwards": "FWD",
        }))
        self.name_column: int = settings.get("name_column", 2)
        self.first_row: int = settings.get("first_row", 4)
        self.row_step: int = settings.get("row_step", 28)
        self.prefix_length: int = settings.get("prefix_length", 25)

    def find_sheet(self, workbook: Workbook, sheet_name: str) -> Optional[SheetGrid]:
        """Exact case-insensitive name first, then a prefix match for truncated names."""
        wanted = sheet_name.lower()
        for name in workbook.sheet_names:
            if name.strip().lower() == wanted:
                return workbook[name]

        prefix = wanted[:self.prefix_length]
        for name in workbook.sheet_names:
            if name.strip().lower().startswith(prefix):
                return workbook[name]
        return None

    def read(self, workbook: Workbook, outcome: Optional[ValidationOutcome] = None) -> PositionRoster:
        """
        Build the position mapping for a workbook.

        Missing sheets are reported as position warnings; position detection
        then relies on inference for that line.
        """
        outcome = outcome if outcome is not None else ValidationOutcome(POSITIONS_SHEET_CONTEXT)
        mapping: Dict[str, str] = {}
        roster = PositionRoster(mapping=MappingProxyType(mapping))

        for sheet_name, position_code in self.sheets.items():
            grid = self.find_sheet(workbook, sheet_name)
            if grid is None:
                message = (
                    f"Position sheet '{sheet_name}' not found. "
                    f"Position detection for {position_code} will rely on inference."
                )
                logger.warning(message)
                outcome.add_warning(Category.POSITION, message)
                continue

            count = self._read_sheet(grid, position_code, mapping, roster.duplicates)
            roster.sheets_processed += 1
            logger.info(f"Position sheet '{grid.name}' processed: {count} players mapped to {position_code}")

        for duplicate in roster.duplicates:
            outcome.add_warning(Category.POSITION, duplicate)

        if not roster.success:
            logger.error(
                "No position sheets found. Position detection will rely entirely on goalkeeper inference."
            )
        else:
            logger.info(
                f"Position sheets: {roster.sheets_processed}/{len(self.sheets)} processed, "
                f"{len(mapping)} players mapped, {len(roster.duplicates)} duplicates"
            )
        return roster

    def _read_sheet(
        self,
        grid: SheetGrid,
        position_code: str,
        mapping: Dict[str, str],
        duplicates: List[str],
    ) -> int:
        count = 0
        row = self.first_row

        while row <= grid.max_row:
            player_name = clean_name(grid.text(row, self.name_column))
            if not player_name:
                break

            key = normalize_player_name(player_name)
            previous = mapping.get(key)
            if previous is not None:
                duplicates.append(
                    f"Player '{player_name}' appears in multiple position sheets. "
                    f"Previous: {previous}, Current: {position_code}. Last occurrence wins."
                )
            mapping[key] = position_code
            count += 1
            row += self.row_step

        return count
