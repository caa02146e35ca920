import pytest
from mcp import types
from mcp.shared.exceptions import McpError

from mcp_gdrive_sql.dispatcher import ToolContext, ToolDispatcher
from mcp_gdrive_sql.resources import DriveResources
from mcp_gdrive_sql.server import Backend, build_parser, create_server
from mcp_gdrive_sql.tools import DRIVE_TOOLS
from mcp_gdrive_sql.uris import DriveUriCodec


@pytest.fixture
def server(drive):
    backend = Backend(
        name="gdrive",
        client=drive,
        resources=DriveResources(drive, DriveUriCodec()),
        dispatcher=ToolDispatcher(DRIVE_TOOLS, ToolContext(drive=drive)),
    )
    return create_server(backend)


def test_handlers_are_registered(server) -> None:
    for request_type in (types.ListResourcesRequest, types.ReadResourceRequest,
                         types.ListToolsRequest, types.CallToolRequest):
        assert request_type in server.request_handlers


@pytest.mark.asyncio
async def test_list_tools(server) -> None:
    handler = server.request_handlers[types.ListToolsRequest]

    result = await handler(types.ListToolsRequest(method="tools/list"))

    assert len(result.root.tools) == len(DRIVE_TOOLS)


@pytest.mark.asyncio
async def test_list_resources_returns_next_cursor(server, drive) -> None:
    drive.list_result = {"files": [{"id": "a", "name": "A", "mimeType": "text/plain"}], "nextPageToken": "n"}
    handler = server.request_handlers[types.ListResourcesRequest]

    result = await handler(types.ListResourcesRequest(method="resources/list"))

    assert result.root.nextCursor == "n"
    assert len(result.root.resources) == 1


@pytest.mark.asyncio
async def test_unknown_tool_is_a_protocol_error(server) -> None:
    handler = server.request_handlers[types.CallToolRequest]
    request = types.CallToolRequest(
        method="tools/call", params=types.CallToolRequestParams(name="nope", arguments={}))

    with pytest.raises(McpError) as excinfo:
        await handler(request)
    assert excinfo.value.error.code == types.INVALID_PARAMS


@pytest.mark.asyncio
async def test_malformed_resource_uri_is_a_protocol_error(server) -> None:
    handler = server.request_handlers[types.ReadResourceRequest]
    request = types.ReadResourceRequest(
        method="resources/read", params=types.ReadResourceRequestParams(uri="gdrive:///a/b"))

    with pytest.raises(McpError) as excinfo:
        await handler(request)
    assert "gdrive:///a/b" in excinfo.value.error.message


@pytest.mark.asyncio
async def test_tool_failures_are_results_not_errors(server) -> None:
    handler = server.request_handlers[types.CallToolRequest]
    request = types.CallToolRequest(
        method="tools/call", params=types.CallToolRequestParams(name="list_sheets", arguments={"fileId": "nope"}))

    result = await handler(request)

    assert result.root.isError is True


def test_cli_arguments() -> None:
    parser = build_parser()

    postgres = parser.parse_args(["postgres", "postgresql://localhost/shop"])
    assert (postgres.backend, postgres.database_url) == ("postgres", "postgresql://localhost/shop")

    auth = parser.parse_args(["gdrive", "auth"])
    assert (auth.backend, auth.command) == ("gdrive", "auth")

    assert parser.parse_args(["gdrive"]).command is None
    with pytest.raises(SystemExit):
        parser.parse_args(["gdrive", "login"])
