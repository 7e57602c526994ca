"""
Header block parsing for player statistics sheets.

Rows 1-3 form the header: numeric weights, category labels, field
abbreviations. Row 3 is scanned left to right into a FieldMap. Repeated
abbreviations (the kickout block for own and opposition restarts, "Tot" in
every shot/free/tackle block) get a suffix derived from the row-2 category
label, falling back to "_Opp", "_Opp2", ... so nothing is ever overwritten.
"""

import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Optional, Tuple

from gaa_etl.errors import StructuralError
from gaa_etl.extract.fields import EXPECTED_FIELD_COUNT, PlayerField, expected_headers
from gaa_etl.extract.workbook import SheetGrid
from gaa_etl.settings import section
from gaa_etl.validate.results import Category, ValidationOutcome

logger = logging.getLogger(__name__)


class FieldMap(Mapping):
    """Immutable header key -> 1-based column index."""

    def __init__(self, columns: Dict[str, int]):
        self._columns = MappingProxyType(dict(columns))

    def __getitem__(self, key: str) -> int:
        return self._columns[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._columns)

    def __len__(self) -> int:
        return len(self._columns)

    def column(self, field: PlayerField) -> Optional[int]:
        """Column of a manifest field, or None when the sheet lacks it."""
        return self._columns.get(field.header)

    @property
    def missing_fields(self) -> List[PlayerField]:
        return [f for f in PlayerField if f.header not in self._columns]

    @property
    def unknown_headers(self) -> List[str]:
        known = set(expected_headers())
        return [key for key in self._columns if key not in known]

    def __repr__(self) -> str:
        return f"FieldMap({len(self)} fields)"


class HeaderMapper:
    """
    Builds a FieldMap from a sheet's header block.

    Example:
        >>> mapper = HeaderMapper()
        >>> field_map = mapper.map(grid, outcome)
        >>> field_map.column(PlayerField.MINUTES_PLAYED)
        3
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        settings = section("player_sheet", config)
        self.category_row: int = settings.get("category_row", 2)
        self.header_row: int = settings.get("header_row", 3)
        self.critical_fields: List[str] = list(settings.get("critical_fields", ["#", "Player Name", "Min"]))
        self.drift_threshold: int = settings.get("drift_warning_threshold", 80)
        self.fallback_suffix: str = settings.get("fallback_suffix", "_Opp")
        self.category_suffixes: List[Tuple[str, str]] = [
            (entry["keyword"].lower(), entry["suffix"])
            for entry in settings.get("category_suffixes", [])
        ]

    def map(self, grid: SheetGrid, outcome: Optional[ValidationOutcome] = None) -> FieldMap:
        """
        Parse the header row into a FieldMap.

        Args:
            grid: Worksheet cells
            outcome: Diagnostics sink for drift and unknown-header warnings

        Returns:
            FieldMap for the sheet

        Raises:
            StructuralError: If a critical field ("#", "Player Name", "Min") is missing
        """
        columns: Dict[str, int] = {}
        category = ""

        for col in range(1, grid.max_column + 1):
            label = grid.text(self.category_row, col)
            if label:
                category = label

            abbreviation = grid.text(self.header_row, col)
            if not abbreviation:
                continue

            key = self._unique_key(abbreviation, category, columns)
            if key != abbreviation:
                logger.debug(f"Sheet '{grid.name}': repeated header '{abbreviation}' at column {col} mapped to '{key}'")
            columns[key] = col

        missing = [name for name in self.critical_fields if name not in columns]
        if missing:
            raise StructuralError(
                grid.name,
                f"Missing critical header fields: {', '.join(missing)}. "
                "Cannot process player statistics without player identification fields."
            )

        field_map = FieldMap(columns)
        self._report_drift(grid.name, field_map, outcome)
        return field_map

    def _unique_key(self, abbreviation: str, category: str, columns: Dict[str, int]) -> str:
        if abbreviation not in columns:
            return abbreviation

        suffix = self._category_suffix(category)
        if suffix and f"{abbreviation}{suffix}" not in columns:
            return f"{abbreviation}{suffix}"

        candidate = f"{abbreviation}{self.fallback_suffix}"
        counter = 2
        while candidate in columns:
            candidate = f"{abbreviation}{self.fallback_suffix}{counter}"
            counter += 1
        return candidate

    def _category_suffix(self, category: str) -> Optional[str]:
        label = category.lower()
        for keyword, suffix in self.category_suffixes:
            if keyword in label:
                return suffix
        return None

    def _report_drift(self, sheet_name: str, field_map: FieldMap, outcome: Optional[ValidationOutcome]):
        if len(field_map) < self.drift_threshold:
            missing = [f.header for f in field_map.missing_fields]
            message = (
                f"Found only {len(field_map)} fields in header, expected approximately "
                f"{EXPECTED_FIELD_COUNT}. Missing: {', '.join(missing[:10])}"
                f"{' ...' if len(missing) > 10 else ''}"
            )
            logger.warning(f"Sheet '{sheet_name}': {message}")
            if outcome is not None:
                outcome.add_warning(Category.FIELD_MAPPING, message, value=len(field_map))

        unknown = field_map.unknown_headers
        if unknown:
            message = f"Unrecognised header fields ignored: {', '.join(unknown)}"
            logger.info(f"Sheet '{sheet_name}': {message}")
            if outcome is not None:
                outcome.add_warning(Category.FIELD_MAPPING, message)
