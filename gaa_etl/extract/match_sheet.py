"""
Match/team sheet extraction.

Layout (fixed template):
- B1: title "{N}. {Competition} Drum vs {Opposition} {DD.MM.YY}"
- Row 4: scorelines, B-D home 1st/2nd/Full, E-G opposition 1st/2nd/Full
- Row 5: possession ratio per team and period
- Rows 7-14: score sources, rows 16-23: shot sources

Produces six TeamStatistics records (three periods x two teams).
"""

import logging
from typing import List, Optional, Tuple

from gaa_etl.extract.metadata import HOME_TEAM, MetadataResolver
from gaa_etl.extract.rows import coerce_int, coerce_ratio, coerce_text, is_blank
from gaa_etl.extract.workbook import SheetGrid
from gaa_etl.models import MatchSheetData, SheetDescriptor, TeamStatistics
from gaa_etl.validate.results import Category, ValidationOutcome

logger = logging.getLogger(__name__)

SCORE_ROW = 4
POSSESSION_ROW = 5
HOME_BASE_COLUMN = 2
AWAY_BASE_COLUMN = 5
PERIODS: Tuple[Tuple[str, int], ...] = (("1st", 0), ("2nd", 1), ("Full", 2))

SOURCE_KINDS = (
    "kickout_long",
    "kickout_short",
    "opp_kickout_long",
    "opp_kickout_short",
    "turnover",
    "possession_lost",
    "shot_short",
    "throw_up_in",
)
SCORE_SOURCE_FIRST_ROW = 7
SHOT_SOURCE_FIRST_ROW = 16


class MatchSheetReader:
    """Reads one match/team sheet into MatchSheetData."""

    def __init__(self, metadata_resolver: Optional[MetadataResolver] = None):
        self.metadata_resolver = metadata_resolver or MetadataResolver.for_match_sheets()

    def describe(self, grid: SheetGrid) -> SheetDescriptor:
        """Resolve match metadata; raises StructuralError when it cannot."""
        return self.metadata_resolver.resolve(grid.name, grid)

    def read(
        self,
        grid: SheetGrid,
        descriptor: Optional[SheetDescriptor] = None,
        outcome: Optional[ValidationOutcome] = None,
    ) -> MatchSheetData:
        """
        Extract scores and team statistics.

        Args:
            grid: Worksheet cells
            descriptor: Pre-resolved metadata (resolved here when None)
            outcome: Diagnostics sink for uncoercible cells

        Returns:
            MatchSheetData with six TeamStatistics records
        """
        if descriptor is None:
            descriptor = self.describe(grid)
        outcome = outcome if outcome is not None else ValidationOutcome(grid.name)

        match = MatchSheetData(
            sheet_name=grid.name,
            match_number=descriptor.match_number,
            competition=descriptor.competition,
            opposition=descriptor.opposition,
            match_date=descriptor.match_date,
            home_score_first_half=coerce_text(grid.cell(SCORE_ROW, 2)),
            home_score_second_half=coerce_text(grid.cell(SCORE_ROW, 3)),
            home_score_full_time=coerce_text(grid.cell(SCORE_ROW, 4)),
            away_score_first_half=coerce_text(grid.cell(SCORE_ROW, 5)),
            away_score_second_half=coerce_text(grid.cell(SCORE_ROW, 6)),
            away_score_full_time=coerce_text(grid.cell(SCORE_ROW, 7)),
        )
        match.team_statistics = self._read_team_statistics(grid, descriptor.opposition, outcome)

        logger.debug(
            f"Sheet '{grid.name}': scores {match.home_score_full_time} - {match.away_score_full_time}, "
            f"{len(match.team_statistics)} team statistics records"
        )
        return match

    def _read_team_statistics(
        self, grid: SheetGrid, opposition: str, outcome: ValidationOutcome
    ) -> List[TeamStatistics]:
        records = []
        teams = ((HOME_TEAM, HOME_BASE_COLUMN), (opposition, AWAY_BASE_COLUMN))

        for period, offset in PERIODS:
            for team_name, base_column in teams:
                column = base_column + offset
                stats = TeamStatistics(
                    team_name=team_name,
                    period=period,
                    scoreline=coerce_text(grid.cell(SCORE_ROW, column)),
                    total_possession=coerce_ratio(grid.cell(POSSESSION_ROW, column)),
                )
                for index, kind in enumerate(SOURCE_KINDS):
                    setattr(stats, f"score_source_{kind}",
                            self._count(grid, SCORE_SOURCE_FIRST_ROW + index, column, outcome))
                    setattr(stats, f"shot_source_{kind}",
                            self._count(grid, SHOT_SOURCE_FIRST_ROW + index, column, outcome))
                records.append(stats)

        return records

    @staticmethod
    def _count(grid: SheetGrid, row: int, column: int, outcome: ValidationOutcome) -> int:
        raw = grid.cell(row, column)
        value = coerce_int(raw)
        if value is None:
            if not is_blank(raw):
                outcome.add_warning(Category.DATA_TYPE, f"Unreadable count {raw!r}",
                                    row=row, value=raw)
            return 0
        return value
