"""
Resource URI codecs and file reference parsing.

Tables are addressed as ``<scheme>://<host[:port]>/<table>/schema`` and Drive
files as ``gdrive:///<fileId>``. For both codecs ``decode(encode(path, view))``
returns ``(path, view)``.
"""

import re
from typing import Optional, Tuple
from urllib.parse import parse_qs, quote, unquote, urlsplit

from .errors import InvalidObjectReference, InvalidResourceURI

SCHEMA_VIEW = "schema"
DRIVE_PREFIX = "gdrive"

_DRIVE_ID_IN_PATH = re.compile(r"/d/([a-zA-Z0-9_-]+)")


class TableUriCodec:
    """Addresses tables relative to the database URL, with credentials stripped."""

    def __init__(self, database_url: str):
        parsed = urlsplit(database_url)
        if not parsed.scheme or not parsed.hostname:
            raise ValueError("Database URL must include a scheme and a host")
        host = parsed.hostname
        if ":" in host:
            host = f"[{host}]"
        if parsed.port:
            host = f"{host}:{parsed.port}"
        self.scheme = parsed.scheme
        self.netloc = host
        self.base = f"{self.scheme}://{self.netloc}"

    def encode(self, table: str, view: str = SCHEMA_VIEW) -> str:
        return f"{self.base}/{quote(table, safe='')}/{view}"

    def decode(self, uri: str) -> Tuple[str, str]:
        parsed = urlsplit(uri)
        if parsed.scheme != self.scheme or parsed.netloc.lower() != self.netloc.lower():
            raise InvalidResourceURI(uri, "Unrecognized resource URI")

        segments = parsed.path.strip("/").split("/")
        if len(segments) != 2 or not segments[0]:
            raise InvalidResourceURI(uri)
        table, view = segments
        if view != SCHEMA_VIEW:
            raise InvalidResourceURI(uri)
        return unquote(table), view


class DriveUriCodec:
    """Addresses Drive files by id; the file's MIME type decides how it is read."""

    def __init__(self, prefix: str = DRIVE_PREFIX):
        self.prefix = prefix
        self._root = f"{prefix}:///"

    def encode(self, file_id: str, view: Optional[str] = None) -> str:
        return f"{self._root}{file_id}"

    def decode(self, uri: str) -> Tuple[str, Optional[str]]:
        if not uri.startswith(self._root):
            raise InvalidResourceURI(uri, "Unrecognized resource URI")
        file_id = uri[len(self._root):]
        if not file_id or "/" in file_id:
            raise InvalidResourceURI(uri)
        return file_id, None


def extract_file_id(reference: str) -> str:
    """
    Accept a raw file id or a sharing URL and return the file id.
    Supported URLs: .../spreadsheets/d/<id>/edit, .../file/d/<id>, .../open?id=<id>
    """
    reference = (reference or "").strip()
    if not reference:
        raise InvalidObjectReference(reference, "Empty file ID")
    if "http" not in reference:
        return reference

    parsed = urlsplit(reference)
    if not parsed.scheme or not parsed.netloc:
        raise InvalidObjectReference(reference, "Invalid URL")

    match = _DRIVE_ID_IN_PATH.search(parsed.path)
    if match:
        return match.group(1)

    ids = parse_qs(parsed.query).get("id")
    if ids and ids[0]:
        return ids[0]

    raise InvalidObjectReference(reference)
