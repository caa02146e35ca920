"""
Opaque pagination cursors.

A cursor is whatever page token the backend handed out. It is never parsed here:
it goes back to the backend verbatim, and the backend's next token comes back
to the caller verbatim. No cursor means the first page.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from mcp import types

Cursor = Optional[str]


@dataclass(frozen=True)
class ResourcePage:
    resources: List[types.Resource] = field(default_factory=list)
    next_cursor: Cursor = None


def page_params(cursor: Cursor, page_size: int) -> Dict[str, Any]:
    """Backend list parameters for the page addressed by ``cursor``."""
    params: Dict[str, Any] = {"pageSize": page_size}
    if cursor:
        params["pageToken"] = cursor
    return params


def next_cursor(response: Dict[str, Any]) -> Cursor:
    return response.get("nextPageToken") or None
