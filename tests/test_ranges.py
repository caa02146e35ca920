import pytest

from mcp_gdrive_sql.errors import InvalidRange
from mcp_gdrive_sql.ranges import (DEFAULT_RANGE, column_to_index, find_sheet, index_to_column, parse_a1,
                                   quote_sheet, resolve_read_range, resolve_write_range)

from conftest import sheet


@pytest.mark.parametrize("column, index", [("A", 0), ("Z", 25), ("AA", 26), ("AZ", 51), ("BA", 52), ("ZZ", 701),
                                           ("aaa", 702)])
def test_column_index_conversion(column: str, index: int) -> None:
    assert column_to_index(column) == index
    assert index_to_column(index) == column.upper()


def test_every_two_letter_column_converts_back() -> None:
    for index in range(702):
        assert column_to_index(index_to_column(index)) == index


@pytest.mark.parametrize("column", ["", "A1", "Ä", "-"])
def test_invalid_columns(column: str) -> None:
    with pytest.raises(InvalidRange):
        column_to_index(column)


def test_negative_index_is_invalid() -> None:
    with pytest.raises(InvalidRange):
        index_to_column(-1)


def test_quote_sheet() -> None:
    assert quote_sheet("Sheet1") == "Sheet1"
    assert quote_sheet("My Sheet") == "'My Sheet'"
    assert quote_sheet("A1") == "'A1'"
    assert quote_sheet("O'Brien") == "'O''Brien'"


# ---------------------------------------------------------------------------
# parse_a1
# ---------------------------------------------------------------------------

def test_parse_closed_range() -> None:
    cell_range = parse_a1("Sheet1!A1:C10")

    assert (cell_range.sheet_name, cell_range.start_row, cell_range.end_row) == ("Sheet1", 0, 9)
    assert (cell_range.start_col, cell_range.end_col) == (0, 2)
    assert cell_range.to_grid_range(42) == {
        "sheetId": 42,
        "startRowIndex": 0,
        "endRowIndex": 10,
        "startColumnIndex": 0,
        "endColumnIndex": 3,
    }


def test_parse_single_cell_uses_default_sheet() -> None:
    cell_range = parse_a1("B2", default_sheet="Data")
    assert cell_range.a1 == "Data!B2:B2"


def test_parse_reversed_corners_are_normalized() -> None:
    assert parse_a1("Data!C10:A1").a1 == "Data!A1:C10"


def test_parse_open_columns_and_rows() -> None:
    columns = parse_a1("'My Sheet'!B:D", grid_size=(100, 26))
    assert columns.sheet_name == "My Sheet"
    assert (columns.start_row, columns.end_row, columns.start_col, columns.end_col) == (0, 99, 1, 3)

    rows = parse_a1("Data!2:5", grid_size=(10, 5))
    assert (rows.start_row, rows.end_row, rows.start_col, rows.end_col) == (1, 4, 0, 4)


@pytest.mark.parametrize("expression, grid", [
    ("Data!B:D", None),
    ("Data!A0", None),
    ("A1", None),
    ("Data!A1:", (10, 10)),
    ("Data!1A", (10, 10)),
])
def test_parse_invalid(expression, grid) -> None:
    with pytest.raises(InvalidRange):
        parse_a1(expression, grid_size=grid)


# ---------------------------------------------------------------------------
# Range resolution
# ---------------------------------------------------------------------------

def test_read_range_defaults() -> None:
    assert resolve_read_range(None, None) == DEFAULT_RANGE
    assert resolve_read_range(None, "Other!A1:B2") == "Other!A1:B2"
    assert resolve_read_range("Data", "A1:B2") == "Data!A1:B2"


def test_read_range_covers_the_whole_sheet() -> None:
    sheets = [sheet("Data", 0, rows=50, columns=3), sheet("My Sheet", 1, rows=0, columns=0)]

    assert resolve_read_range("Data", None, sheets) == "Data!A1:C50"
    assert resolve_read_range("My Sheet", None, sheets) == "'My Sheet'!A1:Z1000"


def test_read_range_unknown_sheet() -> None:
    with pytest.raises(InvalidRange, match="not found"):
        resolve_read_range("Missing", None, [sheet("Data", 0)])


def test_write_range() -> None:
    assert resolve_write_range(None, "A1:B2") == "Sheet1!A1:B2"
    assert resolve_write_range("My Sheet", " A1 ") == "'My Sheet'!A1"
    with pytest.raises(InvalidRange):
        resolve_write_range("Data", "  ")


def test_find_sheet_matches_by_title() -> None:
    assert find_sheet([sheet("A", 0), sheet("B", 9)], "B")["sheetId"] == 9
