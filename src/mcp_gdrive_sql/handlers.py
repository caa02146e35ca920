"""
Tool handlers.

Each handler takes validated arguments and returns the result text. Failures
are raised as ToolError subclasses; the dispatcher turns them into isError results.
"""

import csv
import io
import json
from typing import Any, List

from .access import AccessVerifier
from .database import Database
from .drive import DriveClient
from .formatting import build_format, repeat_cell_request
from .ranges import find_sheet, grid_size, parse_a1, resolve_read_range, resolve_write_range, split_sheet
from .tools import (EditSheetArguments, FormatSheetArguments, ListSheetsArguments, QueryArguments,
                    ReadSheetArguments, SearchArguments)
from .uris import extract_file_id

SEARCH_FIELDS = "files(id, name, mimeType, modifiedTime, size)"


def rows_to_csv(rows: List[List[Any]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    for row in rows:
        writer.writerow(['' if cell is None else str(cell) for cell in row])
    return buffer.getvalue().rstrip("\n")


# =============================================================================
# DATABASE TOOLS
# =============================================================================

async def run_query(database: Database, args: QueryArguments) -> str:
    rows = await database.run_read_only(args.sql)
    return json.dumps(rows, indent=2, default=str)


# =============================================================================
# DRIVE / SHEETS TOOLS
# =============================================================================

async def search_files(drive: DriveClient, args: SearchArguments, page_size: int) -> str:
    escaped = args.query.replace("\\", "\\\\").replace("'", "\\'")
    result = await drive.list_files(q=f"fullText contains '{escaped}'", pageSize=page_size, fields=SEARCH_FIELDS)
    files = result.get('files', [])
    listing = "\n".join(f"{f.get('name')} ({f.get('mimeType')}) [{f.get('id')}]" for f in files)
    return f"Found {len(files)} files:\n{listing}"


async def list_sheets(drive: DriveClient, args: ListSheetsArguments) -> str:
    file_id = extract_file_id(args.file_id)
    await AccessVerifier(drive).verify(file_id)

    spreadsheet = await drive.get_spreadsheet(file_id, fields="sheets.properties")
    sheets = []
    for sheet in spreadsheet.get('sheets', []):
        properties = sheet.get('properties', {})
        grid = properties.get('gridProperties', {})
        # The API omits zero counts
        sheets.append({
            "name": properties.get('title'),
            "id": properties.get('sheetId', 0),
            "rowCount": grid.get('rowCount', 0),
            "columnCount": grid.get('columnCount', 0),
        })
    return f"Sheets:\n{json.dumps(sheets, indent=2)}"


async def read_sheet(drive: DriveClient, args: ReadSheetArguments) -> str:
    file_id = extract_file_id(args.file_id)
    await AccessVerifier(drive).verify(file_id)

    sheets = None
    if args.sheet_name and not args.range:
        spreadsheet = await drive.get_spreadsheet(file_id, fields="sheets.properties")
        sheets = spreadsheet.get('sheets', [])
    target = resolve_read_range(args.sheet_name, args.range, sheets)

    result = await drive.get_values(file_id, target)
    values = result.get('values', [])
    if not values:
        return "The sheet has no data"
    return f"Sheet data ({result.get('range', target)}):\n{rows_to_csv(values)}"


async def edit_sheet(drive: DriveClient, args: EditSheetArguments) -> str:
    file_id = extract_file_id(args.file_id)
    await AccessVerifier(drive).verify(file_id, require_edit=True)

    target = resolve_write_range(args.sheet_name, args.range)
    result = await drive.update_values(file_id, target, args.values)

    sheet, cells = split_sheet(target)
    return (
        "Update successful!\n"
        f"- Sheet: {sheet}\n"
        f"- Range: {cells}\n"
        f"- Rows updated: {result.get('updatedRows', 0)}\n"
        f"- Columns updated: {result.get('updatedColumns', 0)}\n"
        f"- Cells updated: {result.get('updatedCells', 0)}"
    )


async def format_sheet(drive: DriveClient, args: FormatSheetArguments) -> str:
    spec = build_format(args.formatting.model_dump(by_alias=True, exclude_none=True))
    file_id = extract_file_id(args.file_id)
    await AccessVerifier(drive).verify(file_id, require_edit=True)

    target = resolve_write_range(args.sheet_name, args.range)
    sheet_name, _ = split_sheet(target)
    spreadsheet = await drive.get_spreadsheet(file_id, fields="sheets.properties")
    properties = find_sheet(spreadsheet.get('sheets', []), sheet_name)
    cell_range = parse_a1(target, grid_size=grid_size(properties))

    request = repeat_cell_request(cell_range.to_grid_range(properties.get('sheetId', 0)), spec)
    await drive.batch_update(file_id, [request])

    return (
        "Formatting updated!\n"
        f"- Sheet: {cell_range.sheet_name}\n"
        f"- Range: {cell_range.a1.split('!', 1)[1]}\n"
        f"- Applied: {', '.join(spec.fields)}"
    )
