"""
Match metadata resolution for worksheets.

Player sheets resolve (match number, opposition, date) through an ordered
strategy chain, first success wins:
1. Full sheet-name pattern
2. Title cell B1 ("... Drum vs {Opposition} {DD.MM.YY}") when the name is truncated
3. Truncated name prefix: number plus a best-effort opposition, date unknown

Match sheets use their own chain: title cell B1 with the competition word,
then the full sheet-name pattern.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import Optional, Sequence

from gaa_etl.errors import StructuralError
from gaa_etl.extract.classifier import (
    MATCH_SHEET_PATTERN,
    PLAYER_SHEET_PATTERN,
    PLAYER_SHEET_PREFIX,
    SHEET_NAME_LIMIT,
)
from gaa_etl.extract.workbook import SheetGrid
from gaa_etl.models import DATE_UNKNOWN, MatchDate, SheetDescriptor, SheetKind
from gaa_etl.strategies import Strategy, StrategyChain
from gaa_etl.transform.cleaners import clean_name, normalize_competition_type

logger = logging.getLogger(__name__)

HOME_TEAM = "Drum"
UNKNOWN_OPPOSITION = "Unknown"

# Title cell location (B1)
TITLE_ROW, TITLE_COLUMN = 1, 2

PLAYER_TITLE_PATTERN = re.compile(
    rf"^(\d+)\.\s+.+?\s+{HOME_TEAM}\s+vs\s+(.+?)\s+(\d{{2}})\.(\d{{2}})\.(\d{{2}})$",
    re.IGNORECASE,
)
MATCH_TITLE_PATTERN = re.compile(
    rf"^(\d+)\.\s+(\w+)\s+{HOME_TEAM}\s+vs\s+(.+?)\s+(\d{{2}})\.(\d{{2}})\.(\d{{2}})$",
    re.IGNORECASE,
)
# Partial trailing date left behind by truncation: " 26", " 26.0", " 26.09.2"
TRAILING_DATE_FRAGMENT = re.compile(r"\s+\d{1,2}(?:\.\d{0,2}){0,2}$")


@dataclass(frozen=True)
class SheetMetadata:
    match_number: int
    opposition: str
    match_date: MatchDate = DATE_UNKNOWN
    competition: Optional[str] = None


def parse_short_date(day: str, month: str, year: str) -> Optional[date]:
    """DD, MM, YY groups to a date in the 2000s; None when not a real date."""
    try:
        return date(2000 + int(year), int(month), int(day))
    except ValueError:
        return None


class PlayerSheetNameStrategy(Strategy[SheetMetadata]):
    """Full "{N}. Player stats vs {Opposition} {DD.MM.YY}" name."""

    name = "sheet_name"

    def attempt(self, sheet_name: str, grid: Optional[SheetGrid] = None) -> Optional[SheetMetadata]:
        m = PLAYER_SHEET_PATTERN.match(sheet_name.strip())
        if not m:
            return None
        match_date = parse_short_date(m.group(3), m.group(4), m.group(5))
        if match_date is None:
            return None
        return SheetMetadata(int(m.group(1)), clean_name(m.group(2)), match_date)


class PlayerTitleCellStrategy(Strategy[SheetMetadata]):
    """Title cell B1, which keeps the full text when the sheet name is cut short."""

    name = "title_cell"

    def attempt(self, sheet_name: str, grid: Optional[SheetGrid] = None) -> Optional[SheetMetadata]:
        if grid is None:
            return None
        m = PLAYER_TITLE_PATTERN.match(grid.text(TITLE_ROW, TITLE_COLUMN))
        if not m:
            return None
        match_date = parse_short_date(m.group(3), m.group(4), m.group(5))
        if match_date is None:
            return None
        return SheetMetadata(int(m.group(1)), clean_name(m.group(2)), match_date)


class TruncatedNameStrategy(Strategy[SheetMetadata]):
    """Number from the "{N}. Player stats vs " prefix, opposition carved from the rest."""

    name = "truncated_name"

    def attempt(self, sheet_name: str, grid: Optional[SheetGrid] = None) -> Optional[SheetMetadata]:
        name = sheet_name.strip()
        m = PLAYER_SHEET_PREFIX.match(name)
        if not m:
            return None

        remainder = TRAILING_DATE_FRAGMENT.sub("", name[m.end():])
        opposition = clean_name(remainder) or UNKNOWN_OPPOSITION
        if len(sheet_name) >= SHEET_NAME_LIMIT:
            logger.debug(f"Sheet name '{sheet_name}' is at the {SHEET_NAME_LIMIT}-character limit")
        return SheetMetadata(int(m.group(1)), opposition, DATE_UNKNOWN)


class MatchTitleCellStrategy(Strategy[SheetMetadata]):
    """Title cell B1: "{N}. {Competition} Drum vs {Opposition} {DD.MM.YY}"."""

    name = "title_cell"

    def attempt(self, sheet_name: str, grid: Optional[SheetGrid] = None) -> Optional[SheetMetadata]:
        if grid is None:
            return None
        m = MATCH_TITLE_PATTERN.match(grid.text(TITLE_ROW, TITLE_COLUMN))
        if not m:
            return None
        match_date = parse_short_date(m.group(4), m.group(5), m.group(6))
        if match_date is None:
            return None
        competition = normalize_competition_type(m.group(2), sheet_name)
        return SheetMetadata(int(m.group(1)), clean_name(m.group(3)), match_date, competition)


class MatchSheetNameStrategy(Strategy[SheetMetadata]):
    """Full "{N}. {Competition} vs {Opposition} {DD.MM.YY}" name."""

    name = "sheet_name"

    def attempt(self, sheet_name: str, grid: Optional[SheetGrid] = None) -> Optional[SheetMetadata]:
        m = MATCH_SHEET_PATTERN.match(sheet_name.strip())
        if not m:
            return None
        match_date = parse_short_date(m.group(4), m.group(5), m.group(6))
        if match_date is None:
            return None
        competition = normalize_competition_type(m.group(2), sheet_name)
        return SheetMetadata(int(m.group(1)), clean_name(m.group(3)), match_date, competition)


class MetadataResolver:
    """
    Resolves worksheet metadata through an ordered strategy chain.

    Example:
        >>> resolver = MetadataResolver.for_player_sheets()
        >>> descriptor = resolver.resolve("09. Player stats vs Slaughtmanus 26.09.25")
        >>> descriptor.match_number, descriptor.opposition, descriptor.match_date
        (9, 'Slaughtmanus', datetime.date(2025, 9, 26))
    """

    def __init__(self, kind: SheetKind, strategies: Sequence[Strategy[SheetMetadata]]):
        self.kind = kind
        self.chain: StrategyChain[SheetMetadata] = StrategyChain(f"{kind.value}_metadata", strategies)

    @classmethod
    def for_player_sheets(cls) -> "MetadataResolver":
        return cls(SheetKind.PLAYER_STATS, [
            PlayerSheetNameStrategy(),
            PlayerTitleCellStrategy(),
            TruncatedNameStrategy(),
        ])

    @classmethod
    def for_match_sheets(cls) -> "MetadataResolver":
        return cls(SheetKind.MATCH_STATS, [
            MatchTitleCellStrategy(),
            MatchSheetNameStrategy(),
        ])

    def resolve(self, sheet_name: str, grid: Optional[SheetGrid] = None) -> SheetDescriptor:
        """
        Resolve metadata for one worksheet.

        Raises:
            StructuralError: If no strategy can extract a match number
        """
        outcome = self.chain.resolve(sheet_name, grid)
        if not outcome.found:
            raise StructuralError(sheet_name, "could not extract match metadata from sheet name or title cell")

        metadata = outcome.value
        descriptor = SheetDescriptor(
            sheet_name=sheet_name,
            kind=self.kind,
            match_number=metadata.match_number,
            opposition=metadata.opposition,
            match_date=metadata.match_date,
            competition=metadata.competition,
            metadata_source=outcome.strategy_name,
        )
        logger.debug(f"Sheet '{sheet_name}': {descriptor.describe()} via {outcome.strategy_name}")
        return descriptor
