"""
Workbook access.

openpyxl reads cached cell values (formulas are not evaluated) and each
worksheet is held as a pandas DataFrame behind a 1-based cell accessor, so
extraction code addresses cells the way the template documents them (B1, row 3).
Parsing is synchronous; read_workbook_async runs it in a worker thread.
"""

import asyncio
import logging
import numbers
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterator, List, Union

import openpyxl
import pandas as pd

logger = logging.getLogger(__name__)


class SheetGrid:
    """Read-only cell values of one worksheet, addressed 1-based like Excel."""

    def __init__(self, name: str, frame: pd.DataFrame):
        self.name = name
        self.frame = frame

    @property
    def max_row(self) -> int:
        return self.frame.shape[0]

    @property
    def max_column(self) -> int:
        return self.frame.shape[1]

    def cell(self, row: int, column: int) -> Any:
        """Raw value at (row, column); None for empty or out-of-range cells."""
        if row < 1 or column < 1 or row > self.max_row or column > self.max_column:
            return None
        value = self.frame.iat[row - 1, column - 1]
        if value is None or (not isinstance(value, str) and pd.isna(value)):
            return None
        return value

    def text(self, row: int, column: int) -> str:
        """Displayed text of a cell, stripped; whole floats lose their '.0'."""
        value = self.cell(row, column)
        if value is None:
            return ""
        if isinstance(value, numbers.Real) and not isinstance(value, bool):
            if float(value).is_integer():
                return str(int(value))
        return str(value).strip()

    def __repr__(self) -> str:
        return f"SheetGrid({self.name!r}, rows={self.max_row}, columns={self.max_column})"


@dataclass
class Workbook:
    """All worksheets of a workbook, in enumeration order."""

    path: Path
    sheets: Dict[str, SheetGrid] = field(default_factory=dict)
    read_time: datetime = field(default_factory=datetime.now)

    @property
    def sheet_names(self) -> List[str]:
        return list(self.sheets)

    def __getitem__(self, name: str) -> SheetGrid:
        return self.sheets[name]

    def __iter__(self) -> Iterator[SheetGrid]:
        return iter(self.sheets.values())

    def __len__(self) -> int:
        return len(self.sheets)


def grid_from_worksheet(worksheet) -> SheetGrid:
    """Materialise an openpyxl worksheet into a SheetGrid."""
    rows = list(worksheet.iter_rows(values_only=True))
    frame = pd.DataFrame(rows, dtype=object)
    return SheetGrid(worksheet.title, frame)


def read_workbook(path: Union[str, Path]) -> Workbook:
    """
    Read every worksheet of an .xlsx/.xlsm file.

    Args:
        path: Workbook file path

    Returns:
        Workbook with one SheetGrid per worksheet

    Raises:
        FileNotFoundError: If the file does not exist
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Workbook not found: {path}")

    start = datetime.now()
    wb = openpyxl.load_workbook(path, data_only=True)
    try:
        workbook = Workbook(path=path)
        for worksheet in wb.worksheets:
            workbook.sheets[worksheet.title] = grid_from_worksheet(worksheet)
    finally:
        wb.close()

    duration = (datetime.now() - start).total_seconds()
    logger.info(f"Read {len(workbook)} worksheets from {path.name} in {duration:.2f}s")
    return workbook


async def read_workbook_async(path: Union[str, Path]) -> Workbook:
    """Read a workbook without blocking the event loop."""
    return await asyncio.to_thread(read_workbook, path)
