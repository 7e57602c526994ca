"""
Worksheet classification by name.

The KPI definitions sheet is recognised by name ("KPI Definitions", any case).
Other patterns are tried in order:
1. Full player sheet name:   "{N}. Player stats vs {Opposition} {DD.MM.YY}"
2. Full match sheet name:    "{N}. {Competition} vs {Opposition} {DD.MM.YY}"
3. Truncated player prefix:  "{N}. Player stats vs " (31-character sheet name limit)
4. Truncated match prefix:   "{N}. {Competition} vs " without "Player"
Anything else is Other and ignored by the orchestrator.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from gaa_etl.models import SheetKind

logger = logging.getLogger(__name__)

PLAYER_SHEET_PATTERN = re.compile(
    r"^(\d+)\.\s+Player\s+stats\s+vs\s+(.+?)\s+(\d{2})\.(\d{2})\.(\d{2})$", re.IGNORECASE
)
PLAYER_SHEET_PREFIX = re.compile(r"^(\d+)\.\s+Player\s+stats\s+vs\s+", re.IGNORECASE)
MATCH_SHEET_PATTERN = re.compile(
    r"^(\d+)\.\s+(\w+)\s+vs\s+(.+?)\s+(\d{2})\.(\d{2})\.(\d{2})$", re.IGNORECASE
)
MATCH_SHEET_PREFIX = re.compile(r"^(\d+)\.\s+(.+?)\s+vs\s+", re.IGNORECASE)
KPI_SHEET_NAME = "KPI Definitions"

# Excel's hard limit on worksheet name length
SHEET_NAME_LIMIT = 31


@dataclass(frozen=True)
class SheetClassification:
    """Classification tag plus the pattern that produced it."""

    sheet_name: str
    kind: SheetKind
    pattern: Optional[str] = None
    truncated: bool = False
    match_number: Optional[int] = None

    @property
    def is_relevant(self) -> bool:
        return self.kind is not SheetKind.OTHER


def classify_sheet(sheet_name: str) -> SheetClassification:
    """
    Classify a worksheet by its name.

    Args:
        sheet_name: Worksheet name as enumerated from the workbook

    Returns:
        SheetClassification (kind Other when no pattern applies)
    """
    name = sheet_name.strip()

    if name.lower() == KPI_SHEET_NAME.lower():
        return SheetClassification(sheet_name, SheetKind.KPI_DEFINITIONS, "kpi_definitions")

    m = PLAYER_SHEET_PATTERN.match(name)
    if m:
        return SheetClassification(sheet_name, SheetKind.PLAYER_STATS, "player_full",
                                   match_number=int(m.group(1)))

    m = MATCH_SHEET_PATTERN.match(name)
    if m and "player" not in name.lower():
        return SheetClassification(sheet_name, SheetKind.MATCH_STATS, "match_full",
                                   match_number=int(m.group(1)))

    m = PLAYER_SHEET_PREFIX.match(name)
    if m:
        return SheetClassification(sheet_name, SheetKind.PLAYER_STATS, "player_prefix",
                                   truncated=True, match_number=int(m.group(1)))

    m = MATCH_SHEET_PREFIX.match(name)
    if m and "player" not in name.lower():
        return SheetClassification(sheet_name, SheetKind.MATCH_STATS, "match_prefix",
                                   truncated=True, match_number=int(m.group(1)))

    logger.debug(f"Sheet '{sheet_name}' classified as Other")
    return SheetClassification(sheet_name, SheetKind.OTHER)
