#!/usr/bin/env python
"""
MCP server exposing either a PostgreSQL database or Google Drive.

One process serves one backend:

    mcp-gdrive-sql postgres postgresql://localhost/mydb
    mcp-gdrive-sql gdrive
    mcp-gdrive-sql gdrive auth

Handlers are registered directly on the low-level server so that resource
listing can paginate and protocol faults reach the client as request errors.
"""

import argparse
import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Optional, Sequence

from mcp import types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server
from mcp.shared.exceptions import McpError

from . import __version__
from .config import ServerConfig
from .database import Database
from .dispatcher import ToolContext, ToolDispatcher
from .drive import DriveClient, authenticate_and_save
from .errors import InvalidResourceURI, UnknownTool
from .resources import DriveResources, ResourceRegistry, TableResources
from .tools import DRIVE_TOOLS, SQL_TOOLS
from .uris import DriveUriCodec, TableUriCodec

logger = logging.getLogger(__name__)

SERVER_NAME = "mcp-gdrive-sql"


@dataclass
class Backend:
    """Everything one server process serves. ``client`` owns the init()/shutdown() lifecycle."""
    name: str
    client: Any
    resources: ResourceRegistry
    dispatcher: ToolDispatcher


def postgres_backend(config: ServerConfig) -> Backend:
    database = Database(config)
    return Backend(
        name="postgres",
        client=database,
        resources=TableResources(database, TableUriCodec(config.database_url)),
        dispatcher=ToolDispatcher(SQL_TOOLS, ToolContext(database=database)),
    )


def gdrive_backend(config: ServerConfig) -> Backend:
    drive = DriveClient(config)
    return Backend(
        name="gdrive",
        client=drive,
        resources=DriveResources(drive, DriveUriCodec(), page_size=config.drive_page_size),
        dispatcher=ToolDispatcher(DRIVE_TOOLS, ToolContext(drive=drive, search_page_size=config.search_page_size)),
    )


def _protocol_fault(error: Exception) -> McpError:
    return McpError(types.ErrorData(code=types.INVALID_PARAMS, message=str(error)))


def create_server(backend: Backend) -> Server:
    @asynccontextmanager
    async def lifespan(_server: Server) -> AsyncIterator[Backend]:
        await backend.client.init()
        logger.info("Serving %s backend", backend.name)
        try:
            yield backend
        finally:
            await backend.client.shutdown()

    server = Server(SERVER_NAME, version=__version__, lifespan=lifespan)

    async def list_resources(req: types.ListResourcesRequest) -> types.ServerResult:
        cursor = getattr(req.params, "cursor", None) if req.params is not None else None
        page = await backend.resources.list(cursor)
        return types.ServerResult(types.ListResourcesResult(resources=page.resources, nextCursor=page.next_cursor))

    async def read_resource(req: types.ReadResourceRequest) -> types.ServerResult:
        uri = str(req.params.uri)
        try:
            contents = await backend.resources.read(uri)
        except InvalidResourceURI as e:
            raise _protocol_fault(e) from e
        return types.ServerResult(types.ReadResourceResult(contents=contents))

    async def list_tools(_req: types.ListToolsRequest) -> types.ServerResult:
        return types.ServerResult(types.ListToolsResult(tools=backend.dispatcher.list_tools()))

    async def call_tool(req: types.CallToolRequest) -> types.ServerResult:
        try:
            result = await backend.dispatcher.call(req.params.name, req.params.arguments)
        except UnknownTool as e:
            raise _protocol_fault(e) from e
        return types.ServerResult(result)

    server.request_handlers[types.ListResourcesRequest] = list_resources
    server.request_handlers[types.ReadResourceRequest] = read_resource
    server.request_handlers[types.ListToolsRequest] = list_tools
    server.request_handlers[types.CallToolRequest] = call_tool
    return server


async def serve(server: Server) -> None:
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=SERVER_NAME, description=__doc__.strip().splitlines()[0])
    subparsers = parser.add_subparsers(dest="backend", required=True)

    postgres = subparsers.add_parser("postgres", help="Serve a PostgreSQL database (read-only)")
    postgres.add_argument("database_url", nargs="?", help="Database URL (defaults to $DATABASE_URL)")

    gdrive = subparsers.add_parser("gdrive", help="Serve Google Drive and Google Sheets")
    gdrive.add_argument("command", nargs="?", choices=["auth"], help="Run the OAuth flow and save the token")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    config = ServerConfig.from_env()

    # stdout carries the protocol; logs go to stderr
    logging.basicConfig(
        level=config.log_level,
        stream=sys.stderr,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.backend == "postgres":
        if args.database_url:
            config.database_url = args.database_url
        if not config.database_url:
            parser.error("a database URL is required (argument or DATABASE_URL)")
        backend = postgres_backend(config)
    else:
        if args.command == "auth":
            path = authenticate_and_save(config)
            print(f"Credentials saved to {path}. You can now run the server.", file=sys.stderr)
            return
        backend = gdrive_backend(config)

    asyncio.run(serve(create_server(backend)))


if __name__ == "__main__":
    main()
