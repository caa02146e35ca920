"""
Resource registries.

A registry lists resources one page at a time and reads one resource by URI.
TableResources exposes each table's column schema; DriveResources exposes
Drive files, exporting Google Workspace files to a readable format.
"""

import base64
import json
import logging
from typing import List, Protocol, Union

from mcp import types

from .access import SPREADSHEET_MIME_TYPE
from .database import Database
from .drive import DriveClient
from .handlers import rows_to_csv
from .pagination import Cursor, ResourcePage, next_cursor, page_params
from .uris import DriveUriCodec, TableUriCodec

logger = logging.getLogger(__name__)

ResourceContents = Union[types.TextResourceContents, types.BlobResourceContents]

GOOGLE_APPS_PREFIX = "application/vnd.google-apps"
DEFAULT_BINARY_MIME_TYPE = "application/octet-stream"

# Export format for each Google Workspace type; anything not listed exports as plain text
EXPORT_MIME_TYPES = {
    "application/vnd.google-apps.document": "text/markdown",
    "application/vnd.google-apps.presentation": "text/plain",
    "application/vnd.google-apps.drawing": "image/png",
}

LIST_FIELDS = "nextPageToken, files(id, name, mimeType)"
SHEET_DATA_FIELDS = "sheets(properties(title),data(rowData(values(formattedValue))))"


class ResourceRegistry(Protocol):
    async def list(self, cursor: Cursor = None) -> ResourcePage: ...

    async def read(self, uri: str) -> List[ResourceContents]: ...


def is_textual(mime_type: str) -> bool:
    return mime_type.startswith("text/") or mime_type == "application/json"


def to_contents(uri: str, mime_type: str, data: Union[bytes, str]) -> ResourceContents:
    """Text contents for textual MIME types, base64 blob contents otherwise."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    if is_textual(mime_type):
        return types.TextResourceContents(uri=uri, mimeType=mime_type, text=data.decode("utf-8", errors="replace"))
    return types.BlobResourceContents(uri=uri, mimeType=mime_type, blob=base64.b64encode(data).decode("ascii"))


class TableResources:
    def __init__(self, database: Database, codec: TableUriCodec):
        self.database = database
        self.codec = codec

    async def list(self, cursor: Cursor = None) -> ResourcePage:
        # The catalog is small; every table fits on one page
        tables = await self.database.list_tables()
        return ResourcePage(resources=[
            types.Resource(
                uri=self.codec.encode(table),
                name=f'"{table}" database schema',
                mimeType="application/json",
            )
            for table in tables
        ])

    async def read(self, uri: str) -> List[ResourceContents]:
        table, _ = self.codec.decode(uri)
        columns = await self.database.table_columns(table)
        return [types.TextResourceContents(uri=uri, mimeType="application/json", text=json.dumps(columns, indent=2))]


class DriveResources:
    def __init__(self, drive: DriveClient, codec: DriveUriCodec, page_size: int = 10):
        self.drive = drive
        self.codec = codec
        self.page_size = page_size

    async def list(self, cursor: Cursor = None) -> ResourcePage:
        params = page_params(cursor, self.page_size)
        params["fields"] = LIST_FIELDS
        result = await self.drive.list_files(**params)
        resources = [
            types.Resource(uri=self.codec.encode(f['id']), name=f.get('name', f['id']), mimeType=f.get('mimeType'))
            for f in result.get('files', [])
        ]
        return ResourcePage(resources=resources, next_cursor=next_cursor(result))

    async def read(self, uri: str) -> List[ResourceContents]:
        file_id, _ = self.codec.decode(uri)
        file = await self.drive.get_file(file_id, fields="mimeType")
        mime_type = file.get('mimeType') or DEFAULT_BINARY_MIME_TYPE

        if mime_type == SPREADSHEET_MIME_TYPE:
            return [types.TextResourceContents(uri=uri, mimeType="text/csv", text=await self._first_sheet_csv(file_id))]

        if mime_type.startswith(GOOGLE_APPS_PREFIX):
            export_type = EXPORT_MIME_TYPES.get(mime_type, "text/plain")
            logger.debug("Exporting %s (%s) as %s", file_id, mime_type, export_type)
            data = await self.drive.export_file(file_id, export_type)
            return [to_contents(uri, export_type, data)]

        data = await self.drive.download_file(file_id)
        return [to_contents(uri, mime_type, data)]

    async def _first_sheet_csv(self, file_id: str) -> str:
        spreadsheet = await self.drive.get_spreadsheet(file_id, includeGridData=True, fields=SHEET_DATA_FIELDS)
        sheets = spreadsheet.get('sheets', [])
        if not sheets:
            return ""
        rows = []
        for grid in sheets[0].get('data', []):
            for row in grid.get('rowData', []):
                rows.append([cell.get('formattedValue', '') for cell in row.get('values', [])])
        return rows_to_csv(rows)
