"""Shared fakes. Nothing here talks to Google or a real database."""

from typing import Any, Dict, List, Optional

import pytest

from mcp_gdrive_sql.access import SPREADSHEET_MIME_TYPE
from mcp_gdrive_sql.errors import BackendFailure


def spreadsheet_file(can_edit: bool = True, can_read: bool = True) -> Dict[str, Any]:
    return {
        "id": "sheet-1",
        "mimeType": SPREADSHEET_MIME_TYPE,
        "capabilities": {"canEdit": can_edit, "canReadRevisions": can_read},
    }


def sheet(title: str, sheet_id: int, rows: Optional[int] = None, columns: Optional[int] = None) -> Dict[str, Any]:
    grid = {}
    if rows is not None:
        grid["rowCount"] = rows
    if columns is not None:
        grid["columnCount"] = columns
    return {"properties": {"title": title, "sheetId": sheet_id, "gridProperties": grid}}


class FakeDrive:
    """Duck-typed stand-in for DriveClient that records every call."""

    def __init__(self, email: str = "me@example.com"):
        self.email = email
        self.files: Dict[str, Dict[str, Any]] = {}
        self.failures: Dict[str, Exception] = {}
        self.permissions: Dict[str, List[Dict[str, Any]]] = {}
        self.spreadsheets: Dict[str, Dict[str, Any]] = {}
        self.values: Dict[str, List[List[Any]]] = {}
        self.exports: Dict[str, bytes] = {}
        self.downloads: Dict[str, bytes] = {}
        self.list_result: Dict[str, Any] = {"files": []}
        self.calls: List[tuple] = []
        self.email_lookups = 0

    async def get_file(self, file_id: str, fields: str) -> Dict[str, Any]:
        self.calls.append(("get_file", file_id, fields))
        if file_id in self.failures:
            raise self.failures[file_id]
        if file_id not in self.files:
            raise BackendFailure("File not found", status=404)
        return self.files[file_id]

    async def list_permissions(self, file_id: str) -> List[Dict[str, Any]]:
        return self.permissions.get(file_id, [])

    async def current_user_email(self) -> str:
        self.email_lookups += 1
        return self.email

    async def list_files(self, **params) -> Dict[str, Any]:
        self.calls.append(("list_files", params))
        return self.list_result

    async def export_file(self, file_id: str, mime_type: str) -> bytes:
        self.calls.append(("export_file", file_id, mime_type))
        return self.exports[file_id]

    async def download_file(self, file_id: str) -> bytes:
        self.calls.append(("download_file", file_id))
        return self.downloads[file_id]

    async def get_spreadsheet(self, spreadsheet_id: str, **params) -> Dict[str, Any]:
        self.calls.append(("get_spreadsheet", spreadsheet_id, params))
        return self.spreadsheets[spreadsheet_id]

    async def get_values(self, spreadsheet_id: str, range: str) -> Dict[str, Any]:
        self.calls.append(("get_values", spreadsheet_id, range))
        return {"range": range, "values": self.values.get(range, [])}

    async def update_values(self, spreadsheet_id: str, range: str, values: List[List[Any]]) -> Dict[str, Any]:
        self.calls.append(("update_values", spreadsheet_id, range, values))
        return {
            "updatedRows": len(values),
            "updatedColumns": max((len(row) for row in values), default=0),
            "updatedCells": sum(len(row) for row in values),
        }

    async def batch_update(self, spreadsheet_id: str, requests: List[Dict[str, Any]]) -> Dict[str, Any]:
        self.calls.append(("batch_update", spreadsheet_id, requests))
        return {}

    def called(self, name: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == name]


@pytest.fixture
def drive() -> FakeDrive:
    return FakeDrive()
