"""
Google Drive / Sheets client.

Wraps the googleapiclient services behind async methods. Every call runs its
blocking ``execute()`` in a worker thread over its own HTTP transport. HTTP, auth
and transport errors are translated into BackendFailure here and nowhere else.
"""

import asyncio
import base64
import json
import logging
import os
from typing import Any, Dict, List

import google.auth
import httplib2
from google.auth.exceptions import DefaultCredentialsError, GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2 import service_account
from google.oauth2.credentials import Credentials
from google_auth_httplib2 import AuthorizedHttp
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from .config import ServerConfig
from .errors import BackendFailure

logger = logging.getLogger(__name__)

SCOPES = ['https://www.googleapis.com/auth/spreadsheets', 'https://www.googleapis.com/auth/drive']


# =============================================================================
# CREDENTIALS
# =============================================================================

def load_credentials(config: ServerConfig):
    """
    Resolve credentials, first match wins:
    CREDENTIALS_CONFIG (base64 service account JSON), service account file,
    saved user token (refreshed when expired), application default credentials.
    Never starts an interactive flow; use authenticate_and_save() for that.
    """
    if config.credentials_config:
        info = json.loads(base64.b64decode(config.credentials_config))
        logger.info("Using service account from CREDENTIALS_CONFIG")
        return service_account.Credentials.from_service_account_info(info, scopes=SCOPES)

    if config.service_account_path and os.path.exists(config.service_account_path):
        logger.info("Using service account file %s", config.service_account_path)
        return service_account.Credentials.from_service_account_file(config.service_account_path, scopes=SCOPES)

    if os.path.exists(config.token_path):
        with open(config.token_path, 'r') as token:
            creds = Credentials.from_authorized_user_info(json.load(token), SCOPES)
        if creds.valid:
            logger.info("Using saved user token %s", config.token_path)
            return creds
        if creds.expired and creds.refresh_token:
            creds.refresh(Request())
            _save_token(config.token_path, creds)
            logger.info("Refreshed saved user token %s", config.token_path)
            return creds

    try:
        creds, _ = google.auth.default(scopes=SCOPES)
    except DefaultCredentialsError as e:
        raise RuntimeError(
            f"No Google credentials found ({e}). Run 'mcp-gdrive-sql gdrive auth' first.") from e
    logger.info("Using application default credentials")
    return creds


def authenticate_and_save(config: ServerConfig) -> str:
    """Run the installed-app OAuth flow and save the token. Returns the token path."""
    logger.info("Launching auth flow using %s", config.credentials_path)
    flow = InstalledAppFlow.from_client_secrets_file(config.credentials_path, SCOPES)
    creds = flow.run_local_server(port=0)
    _save_token(config.token_path, creds)
    logger.info("Credentials saved to %s", config.token_path)
    return config.token_path


def _save_token(path: str, creds) -> None:
    with open(path, 'w') as token:
        token.write(creds.to_json())


# =============================================================================
# CLIENT
# =============================================================================

class DriveClient:
    """Process-wide Drive and Sheets service handles with an init()/shutdown() lifecycle."""

    def __init__(self, config: ServerConfig):
        self.config = config
        self.credentials = None
        self.sheets_service = None
        self.drive_service = None

    async def init(self) -> None:
        self.credentials = await asyncio.to_thread(load_credentials, self.config)
        self.sheets_service = build('sheets', 'v4', credentials=self.credentials, cache_discovery=False)
        self.drive_service = build('drive', 'v3', credentials=self.credentials, cache_discovery=False)
        logger.info("Google Drive and Sheets clients ready")

    async def shutdown(self) -> None:
        for service in (self.sheets_service, self.drive_service):
            if service is not None:
                service.close()
        self.sheets_service = None
        self.drive_service = None
        logger.info("Google clients closed")

    def _send(self, request) -> Any:
        # httplib2 connections are not thread-safe, so every call gets its own
        http = AuthorizedHttp(self.credentials, http=httplib2.Http())
        try:
            return request.execute(http=http)
        finally:
            http.http.close()

    async def _execute(self, request) -> Any:
        try:
            return await asyncio.to_thread(self._send, request)
        except HttpError as e:
            raise BackendFailure(e.reason or str(e), status=e.status_code) from e
        except GoogleAuthError as e:
            raise BackendFailure(f"Google authentication failed: {e}. Run 'mcp-gdrive-sql gdrive auth' again.") from e
        except (httplib2.HttpLib2Error, OSError) as e:
            raise BackendFailure(f"Could not reach Google: {e}") from e

    # Drive -------------------------------------------------------------------

    async def list_files(self, **params) -> Dict[str, Any]:
        return await self._execute(self.drive_service.files().list(**params))

    async def get_file(self, file_id: str, fields: str) -> Dict[str, Any]:
        return await self._execute(self.drive_service.files().get(fileId=file_id, fields=fields))

    async def export_file(self, file_id: str, mime_type: str) -> bytes:
        return await self._execute(self.drive_service.files().export(fileId=file_id, mimeType=mime_type))

    async def download_file(self, file_id: str) -> bytes:
        return await self._execute(self.drive_service.files().get_media(fileId=file_id))

    async def list_permissions(self, file_id: str) -> List[Dict[str, Any]]:
        result = await self._execute(self.drive_service.permissions().list(
            fileId=file_id, fields='permissions(role,type,emailAddress)'))
        return result.get('permissions', [])

    async def current_user_email(self) -> str:
        """Email of the authenticated identity, or "" when it cannot be looked up."""
        try:
            about = await self._execute(self.drive_service.about().get(fields='user(emailAddress)'))
        except BackendFailure as e:
            logger.warning("Could not look up the current user: %s", e)
            return ''
        return about.get('user', {}).get('emailAddress', '')

    # Sheets ------------------------------------------------------------------

    async def get_spreadsheet(self, spreadsheet_id: str, **params) -> Dict[str, Any]:
        return await self._execute(self.sheets_service.spreadsheets().get(spreadsheetId=spreadsheet_id, **params))

    async def get_values(self, spreadsheet_id: str, range: str) -> Dict[str, Any]:
        return await self._execute(self.sheets_service.spreadsheets().values().get(
            spreadsheetId=spreadsheet_id, range=range,
            valueRenderOption='FORMATTED_VALUE', majorDimension='ROWS'))

    async def update_values(self, spreadsheet_id: str, range: str, values: List[List[Any]]) -> Dict[str, Any]:
        return await self._execute(self.sheets_service.spreadsheets().values().update(
            spreadsheetId=spreadsheet_id, range=range,
            valueInputOption='USER_ENTERED', body={'values': values}))

    async def batch_update(self, spreadsheet_id: str, requests: List[Dict[str, Any]]) -> Dict[str, Any]:
        return await self._execute(self.sheets_service.spreadsheets().batchUpdate(
            spreadsheetId=spreadsheet_id, body={"requests": requests}))
