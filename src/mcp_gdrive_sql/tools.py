"""
Tool descriptors and argument models.

Each tool has one pydantic argument model. The model generates the tool's
declared inputSchema and validates incoming arguments, so the two never drift.
The argument models form the closed set of tool calls that the dispatcher
matches on.
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Tuple, Type, Union

from mcp import types
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ToolArguments(BaseModel):
    # Wire names are camelCase (fileId, sheetName); Python names are snake_case
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class QueryArguments(ToolArguments):
    sql: str = Field(description="SQL query to run. It runs in a transaction that is always rolled back.")


class SearchArguments(ToolArguments):
    query: str = Field(description="Search query")


class ListSheetsArguments(ToolArguments):
    file_id: str = Field(description="ID or URL of the Google Spreadsheet")


class ReadSheetArguments(ToolArguments):
    file_id: str = Field(description="ID or URL of the Google Spreadsheet")
    sheet_name: Optional[str] = Field(None, description="Name of the sheet to read (optional)")
    range: Optional[str] = Field(
        None, description="Range to read in A1 notation (optional, defaults to the whole sheet)")


class EditSheetArguments(ToolArguments):
    file_id: str = Field(description="ID or URL of the Google Spreadsheet")
    sheet_name: Optional[str] = Field(None, description="Name of the sheet to edit (optional, defaults to Sheet1)")
    range: str = Field(description="Range to update in A1 notation, e.g. A1:C3")
    values: List[List[Any]] = Field(description="2D array of values (rows of cells) to write")


class Formatting(ToolArguments):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    background_color: Optional[str] = Field(None, description="Background color, e.g. #ff0000")
    text_color: Optional[str] = Field(None, description="Text color, e.g. #0000ff")
    font_size: Optional[int] = Field(None, gt=0, description="Font size in points")
    bold: Optional[bool] = Field(None, description="Bold text")
    italic: Optional[bool] = Field(None, description="Italic text")
    underline: Optional[bool] = Field(None, description="Underlined text")
    strikethrough: Optional[bool] = Field(None, description="Strikethrough text")
    horizontal_alignment: Optional[str] = Field(None, description="LEFT, CENTER or RIGHT")
    vertical_alignment: Optional[str] = Field(None, description="TOP, MIDDLE or BOTTOM")
    wrap_strategy: Optional[str] = Field(None, description="overflow, clip or wrap")
    number_format: Optional[str] = Field(None, description='Number format pattern, e.g. "#,##0.00"')


class FormatSheetArguments(ToolArguments):
    file_id: str = Field(description="ID or URL of the Google Spreadsheet")
    sheet_name: Optional[str] = Field(None, description="Name of the sheet to format (optional, defaults to Sheet1)")
    range: str = Field(description="Range to format in A1 notation, e.g. A1:C3")
    formatting: Formatting = Field(description="Formatting options to apply")


ToolCall = Union[
    QueryArguments,
    SearchArguments,
    ListSheetsArguments,
    ReadSheetArguments,
    EditSheetArguments,
    FormatSheetArguments,
]


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    arguments: Type[ToolArguments]
    # Headline and remediation checklist for failed calls
    failure: str
    checklist: Tuple[str, ...]

    def descriptor(self) -> types.Tool:
        return types.Tool(
            name=self.name,
            description=self.description,
            inputSchema=self.arguments.model_json_schema(by_alias=True),
        )


QUERY = ToolSpec(
    name="query",
    description="Run a read-only SQL query",
    arguments=QueryArguments,
    failure="Could not run the query",
    checklist=(
        "The SQL is valid PostgreSQL",
        "The tables and columns exist (see the table schema resources)",
        "The query only reads data; changes are always rolled back",
    ),
)

SEARCH = ToolSpec(
    name="search",
    description="Search for files in Google Drive",
    arguments=SearchArguments,
    failure="Could not search Google Drive",
    checklist=(
        "The Google credentials are valid (re-run the auth command if needed)",
    ),
)

_FILE_CHECKS = (
    "The URL or ID is correct",
    "The file is a Google Spreadsheet",
)

LIST_SHEETS = ToolSpec(
    name="list_sheets",
    description="List all sheets in a Google Spreadsheet, with their row and column counts",
    arguments=ListSheetsArguments,
    failure="Could not list the sheets",
    checklist=_FILE_CHECKS + ("The file is shared with you",),
)

READ_SHEET = ToolSpec(
    name="read_sheet",
    description="Read data from a specific sheet in a Google Spreadsheet",
    arguments=ReadSheetArguments,
    failure="Could not read the sheet",
    checklist=_FILE_CHECKS + (
        "The file is shared with you",
        "The sheet name is correct (if provided)",
    ),
)

EDIT_SHEET = ToolSpec(
    name="edit_sheet",
    description="Edit data in a specific sheet in a Google Spreadsheet",
    arguments=EditSheetArguments,
    failure="Could not update the sheet",
    checklist=_FILE_CHECKS + (
        "The file is shared with you with edit permission",
        "The sheet name and range are correct",
        "The values are a 2D array (rows of cells)",
    ),
)

FORMAT_SHEET = ToolSpec(
    name="format_sheet",
    description="Apply formatting (colors, fonts, alignment) to cells in a Google Spreadsheet",
    arguments=FormatSheetArguments,
    failure="Could not update the formatting",
    checklist=_FILE_CHECKS + (
        "The file is shared with you with edit permission",
        "The sheet name and range are correct",
        "The formatting options are valid",
    ),
)

SQL_TOOLS = (QUERY,)
DRIVE_TOOLS = (SEARCH, LIST_SHEETS, READ_SHEET, EDIT_SHEET, FORMAT_SHEET)
