"""
Error taxonomy.

Protocol faults (InvalidResourceURI, UnknownTool) are surfaced to the MCP caller
as request errors. ToolError subclasses are caught by the dispatcher and
rendered into an ``isError`` tool result. RollbackFailure is only ever logged.
"""

from typing import Optional


class AdapterError(Exception):
    """Base class for every error raised by this package."""


# =============================================================================
# PROTOCOL FAULTS
# =============================================================================

class InvalidResourceURI(AdapterError):
    def __init__(self, uri: str, reason: str = "Invalid resource URI"):
        super().__init__(f"{reason}: {uri}")
        self.uri = uri
        self.reason = reason


class UnknownTool(AdapterError):
    def __init__(self, name: str):
        super().__init__(f"Unknown tool: {name}")
        self.name = name


# =============================================================================
# TOOL-LEVEL ERRORS
# =============================================================================

class ToolError(AdapterError):
    """A handled, user-facing failure of a tool call."""


class AccessDenied(ToolError):
    def __init__(self, file_id: str, require_edit: bool, email: str):
        capability = "edit" if require_edit else "read"
        super().__init__(f"No permission to {capability} the file")
        self.file_id = file_id
        self.require_edit = require_edit
        self.email = email


class NotFoundOrForbidden(ToolError):
    def __init__(self, file_id: str, email: str):
        super().__init__("The file does not exist or you do not have access to it")
        self.file_id = file_id
        self.email = email


class InvalidObjectReference(ToolError):
    def __init__(self, reference: str, reason: str = "Could not extract a file ID"):
        super().__init__(f"{reason}: {reference}")
        self.reference = reference


class InvalidRange(ToolError):
    pass


class InvalidColor(ToolError):
    def __init__(self, color: str):
        super().__init__(
            f"Unknown color: {color}. Use hex (#4285F4), rgb(66,133,244) or a named color (blue, light_green)")
        self.color = color


class InvalidArguments(ToolError):
    pass


class BackendFailure(ToolError):
    """Opaque upstream error; the backend's message is passed through verbatim."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(f"{message} (status {status})" if status is not None else message)
        self.message = message
        self.status = status


# =============================================================================
# NON-FATAL
# =============================================================================

class RollbackFailure(AdapterError):
    def __init__(self, cause: Exception):
        super().__init__(f"Could not roll back transaction: {cause}")
        self.cause = cause
