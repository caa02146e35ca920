"""
Tool dispatch.

Looks up the tool by name, validates its arguments against the tool's model,
routes the call to its handler and renders ToolErrors into ``isError`` results.
UnknownTool propagates so the server can report it as a protocol fault.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from mcp import types
from pydantic import ValidationError

from . import handlers
from .database import Database
from .drive import DriveClient
from .errors import AccessDenied, InvalidArguments, NotFoundOrForbidden, ToolError, UnknownTool
from .tools import (EditSheetArguments, FormatSheetArguments, ListSheetsArguments, QueryArguments,
                    ReadSheetArguments, SearchArguments, ToolCall, ToolSpec)

logger = logging.getLogger(__name__)

AUTH_COMMAND = "mcp-gdrive-sql gdrive auth"


@dataclass
class ToolContext:
    """Backends the handlers run against. Only one of them is set per process."""
    database: Optional[Database] = None
    drive: Optional[DriveClient] = None
    search_page_size: int = 10


def describe_validation_error(error: ValidationError) -> str:
    problems = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get('loc', ())) or "arguments"
        problems.append(f"{location}: {item.get('msg')}")
    return "Invalid arguments: " + "; ".join(problems)


def render_failure(spec: ToolSpec, error: ToolError) -> str:
    """Failure headline, the error itself, and what the user can check."""
    lines = [f"{spec.failure}. Error: {error}"]

    if isinstance(error, AccessDenied):
        need = "edit" if error.require_edit else "view"
        share = "with edit permission" if error.require_edit else "with view permission"
        lines += [
            "",
            f"Email in use: {error.email or 'unknown'}",
            f"File ID: {error.file_id}",
            "",
            "Please:",
            f"1. Share the file with the email above {share}",
            f'2. Or set sharing to "Anyone with the link can {need}"',
            f"3. Or sign in with another account: {AUTH_COMMAND}",
        ]
        return "\n".join(lines)

    if isinstance(error, NotFoundOrForbidden):
        lines += [
            "",
            f"Email in use: {error.email or 'unknown'}",
            f"File ID: {error.file_id}",
            "",
            "Please check:",
            "1. The URL or file ID is correct",
            "2. The file is shared with the email above",
            f"3. You signed in with the right Google account ({AUTH_COMMAND})",
        ]
        return "\n".join(lines)

    if spec.checklist:
        lines += ["", "Please check:"]
        lines += [f"{n}. {item}" for n, item in enumerate(spec.checklist, start=1)]
    return "\n".join(lines)


def _text_result(text: str, is_error: bool = False) -> types.CallToolResult:
    return types.CallToolResult(content=[types.TextContent(type="text", text=text)], isError=is_error)


class ToolDispatcher:
    def __init__(self, specs: Sequence[ToolSpec], context: ToolContext):
        self._specs: Dict[str, ToolSpec] = {spec.name: spec for spec in specs}
        self.context = context

    def list_tools(self) -> List[types.Tool]:
        return [spec.descriptor() for spec in self._specs.values()]

    async def call(self, name: str, arguments: Optional[Dict[str, Any]]) -> types.CallToolResult:
        spec = self._specs.get(name)
        if spec is None:
            raise UnknownTool(name)

        try:
            try:
                call = spec.arguments.model_validate(arguments or {})
            except ValidationError as e:
                raise InvalidArguments(describe_validation_error(e)) from e
            text = await self._dispatch(call)
        except ToolError as e:
            logger.warning("Tool %s failed: %s", name, e)
            return _text_result(render_failure(spec, e), is_error=True)

        logger.debug("Tool %s succeeded", name)
        return _text_result(text)

    async def _dispatch(self, call: ToolCall) -> str:
        ctx = self.context
        match call:
            case QueryArguments():
                return await handlers.run_query(ctx.database, call)
            case SearchArguments():
                return await handlers.search_files(ctx.drive, call, ctx.search_page_size)
            case ListSheetsArguments():
                return await handlers.list_sheets(ctx.drive, call)
            case ReadSheetArguments():
                return await handlers.read_sheet(ctx.drive, call)
            case EditSheetArguments():
                return await handlers.edit_sheet(ctx.drive, call)
            case FormatSheetArguments():
                return await handlers.format_sheet(ctx.drive, call)
        raise UnknownTool(type(call).__name__)
