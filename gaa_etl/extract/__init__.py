"""
Workbook extraction.

Provides:
- read_workbook / read_workbook_async: openpyxl workbook -> SheetGrid per worksheet
- classify_sheet: Player stats / Match stats / Other
- MetadataResolver: match number, opposition and date from names or title cells
- HeaderMapper / RowExtractor: player sheet headers and rows
- MatchSheetReader: match/team sheets
- PositionSheetReader: position roster sheets
- KpiSheetReader: the KPI definitions sheet
"""

from .classifier import SheetClassification, classify_sheet
from .fields import EXPECTED_FIELD_COUNT, PlayerField
from .headers import FieldMap, HeaderMapper
from .kpi import KpiSheetReader
from .match_sheet import MatchSheetReader
from .metadata import MetadataResolver
from .positions import PositionRoster, PositionSheetReader
from .rows import RowExtractor
from .workbook import SheetGrid, Workbook, read_workbook, read_workbook_async

__all__ = [
    'SheetClassification',
    'classify_sheet',
    'EXPECTED_FIELD_COUNT',
    'PlayerField',
    'FieldMap',
    'HeaderMapper',
    'KpiSheetReader',
    'MatchSheetReader',
    'MetadataResolver',
    'PositionRoster',
    'PositionSheetReader',
    'RowExtractor',
    'SheetGrid',
    'Workbook',
    'read_workbook',
    'read_workbook_async',
]
