"""
A1 notation parsing and range resolution.

Columns are bijective base-26 numbers (no zero digit): A=0, Z=25, AA=26, ZZ=701.
A ``CellRange`` is 0-based and inclusive on both ends; ``to_grid_range``
converts it to the Sheets API GridRange, whose end indexes are exclusive.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from .errors import InvalidRange

DEFAULT_SHEET = "Sheet1"
DEFAULT_RANGE = "Sheet1!A1:Z1000"
DEFAULT_ROW_COUNT = 1000
DEFAULT_COLUMN_COUNT = 26

_CELL = re.compile(r'^([A-Za-z]*)(\d*)$')
_PLAIN_SHEET = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')
_CELL_LIKE = re.compile(r'^[A-Za-z]{1,3}\d+$')


def column_to_index(column: str) -> int:
    """Convert column letter(s) to 0-based index. A=0, B=1, Z=25, AA=26"""
    if not column or not column.isascii() or not column.isalpha():
        raise InvalidRange(f"Invalid column: {column!r}")
    result = 0
    for char in column.upper():
        result = result * 26 + (ord(char) - ord('A') + 1)
    return result - 1


def index_to_column(index: int) -> str:
    """Convert a 0-based column index to letter(s). 0=A, 25=Z, 26=AA"""
    if index < 0:
        raise InvalidRange(f"Invalid column index: {index}")
    letters = ''
    while index >= 0:
        letters = chr(65 + index % 26) + letters
        index = index // 26 - 1
    return letters


def quote_sheet(sheet_name: str) -> str:
    if _PLAIN_SHEET.match(sheet_name) and not _CELL_LIKE.match(sheet_name):
        return sheet_name
    return "'" + sheet_name.replace("'", "''") + "'"


def split_sheet(expression: str) -> Tuple[Optional[str], str]:
    """Split "Sheet!A1:B2" into ("Sheet", "A1:B2"). Quoted names are unquoted."""
    if '!' not in expression:
        return None, expression
    sheet, _, cells = expression.rpartition('!')
    if len(sheet) >= 2 and sheet[0] == sheet[-1] == "'":
        sheet = sheet[1:-1].replace("''", "'")
    return sheet, cells


def qualify(range_expr: str, sheet_name: str) -> str:
    """Prefix the sheet name unless the range is already qualified."""
    if '!' in range_expr:
        return range_expr
    return f"{quote_sheet(sheet_name)}!{range_expr}"


@dataclass(frozen=True)
class CellRange:
    sheet_name: str
    start_row: int
    end_row: int
    start_col: int
    end_col: int

    def __post_init__(self):
        if min(self.start_row, self.start_col) < 0:
            raise InvalidRange(f"Negative index in range {self}")
        if self.start_row > self.end_row or self.start_col > self.end_col:
            raise InvalidRange(f"Empty range {self}")

    @property
    def a1(self) -> str:
        return (f"{quote_sheet(self.sheet_name)}!"
                f"{index_to_column(self.start_col)}{self.start_row + 1}:"
                f"{index_to_column(self.end_col)}{self.end_row + 1}")

    def to_grid_range(self, sheet_id: int) -> Dict[str, Any]:
        """Build a GridRange (exclusive end indexes) for the given sheet ID."""
        return {
            "sheetId": sheet_id,
            "startRowIndex": self.start_row,
            "endRowIndex": self.end_row + 1,
            "startColumnIndex": self.start_col,
            "endColumnIndex": self.end_col + 1,
        }


def parse_a1(expression: str, default_sheet: Optional[str] = None,
             grid_size: Optional[Tuple[int, int]] = None) -> CellRange:
    """
    Parse A1 notation into a CellRange.
    Examples: "A1" -> one cell, "Sheet1!A1:C10", "'My Sheet'!B2", "B:D" and "2:5".
    Open-ended bounds ("B:D") are closed using grid_size = (row_count, column_count).
    """
    sheet, cells = split_sheet((expression or '').strip())
    sheet = sheet or default_sheet
    if not sheet:
        raise InvalidRange(f"Range has no sheet name: {expression!r}")

    if ':' in cells:
        start, end = cells.split(':', 1)
    else:
        start = end = cells

    start_match = _CELL.match(start)
    end_match = _CELL.match(end)
    if not start_match or not end_match or not start or not end:
        raise InvalidRange(f"Invalid A1 notation: {expression!r}")

    start_col_str, start_row_str = start_match.groups()
    end_col_str, end_row_str = end_match.groups()

    def _row(value: str) -> int:
        row = int(value)
        if row < 1:
            raise InvalidRange(f"Row numbers start at 1: {expression!r}")
        return row - 1

    def _bound(index: int) -> int:
        if grid_size is None:
            raise InvalidRange(f"Open-ended range needs the sheet dimensions: {expression!r}")
        return max(grid_size[index], 1) - 1

    start_row = _row(start_row_str) if start_row_str else 0
    start_col = column_to_index(start_col_str) if start_col_str else 0
    end_row = _row(end_row_str) if end_row_str else _bound(0)
    end_col = column_to_index(end_col_str) if end_col_str else _bound(1)

    return CellRange(
        sheet_name=sheet,
        start_row=min(start_row, end_row),
        end_row=max(start_row, end_row),
        start_col=min(start_col, end_col),
        end_col=max(start_col, end_col),
    )


# =============================================================================
# SHEET METADATA
# =============================================================================

def find_sheet(sheets: List[Dict[str, Any]], sheet_name: str) -> Dict[str, Any]:
    """Return the properties of the sheet titled sheet_name."""
    for sheet in sheets or []:
        properties = sheet.get('properties', {})
        if properties.get('title') == sheet_name:
            return properties
    raise InvalidRange(f'Sheet "{sheet_name}" not found')


def grid_size(properties: Dict[str, Any]) -> Tuple[int, int]:
    """(row_count, column_count) of a sheet, with defaults for missing or zero counts."""
    grid = properties.get('gridProperties', {})
    return (grid.get('rowCount') or DEFAULT_ROW_COUNT,
            grid.get('columnCount') or DEFAULT_COLUMN_COUNT)


def resolve_read_range(sheet_name: Optional[str], range_expr: Optional[str],
                       sheets: Optional[List[Dict[str, Any]]] = None) -> str:
    """
    Resolve the range to read:
    - explicit range: used as given, qualified with sheet_name when one is supplied
    - sheet name only: the sheet's whole grid, e.g. "Sheet1!A1:C10"
    - neither: DEFAULT_RANGE
    """
    if range_expr:
        return qualify(range_expr, sheet_name) if sheet_name else range_expr
    if sheet_name:
        rows, columns = grid_size(find_sheet(sheets, sheet_name))
        return f"{quote_sheet(sheet_name)}!A1:{index_to_column(columns - 1)}{rows}"
    return DEFAULT_RANGE


def resolve_write_range(sheet_name: Optional[str], range_expr: str) -> str:
    if not range_expr or not range_expr.strip():
        raise InvalidRange("A range in A1 notation is required")
    return qualify(range_expr.strip(), sheet_name or DEFAULT_SHEET)
