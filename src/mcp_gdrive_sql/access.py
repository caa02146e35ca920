"""
Access checks for spreadsheet tools.

Decisions are computed per request and never cached, since sharing can change
between calls. The identity email is only looked up when a denial needs it.
"""

import enum
import logging
from dataclasses import dataclass

from .errors import AccessDenied, BackendFailure, InvalidObjectReference, NotFoundOrForbidden

logger = logging.getLogger(__name__)

SPREADSHEET_MIME_TYPE = "application/vnd.google-apps.spreadsheet"
PUBLIC_PERMISSION_TYPES = ("anyone", "domain")


class AccessReason(str, enum.Enum):
    EDIT_CAPABILITY = "edit_capability"
    READ_CAPABILITY = "read_capability"
    SHARED_PUBLICLY = "shared_publicly"


@dataclass(frozen=True)
class AccessDecision:
    readable: bool
    editable: bool
    reason: AccessReason


class AccessVerifier:
    def __init__(self, drive):
        self.drive = drive

    async def verify(self, file_id: str, require_edit: bool = False) -> AccessDecision:
        """Raise AccessDenied / NotFoundOrForbidden unless the file may be read (or edited)."""
        try:
            file = await self.drive.get_file(
                file_id, fields="id,mimeType,capabilities(canReadRevisions,canEdit)")
        except BackendFailure as e:
            if e.status == 404:
                raise NotFoundOrForbidden(file_id, await self.drive.current_user_email()) from e
            raise

        if SPREADSHEET_MIME_TYPE not in (file.get('mimeType') or ''):
            raise InvalidObjectReference(file_id, "The file is not a Google Spreadsheet")

        permissions = await self.drive.list_permissions(file_id)
        is_public = any(p.get('type') in PUBLIC_PERMISSION_TYPES for p in permissions)

        capabilities = file.get('capabilities', {})
        editable = capabilities.get('canEdit') is True
        has_read = capabilities.get('canReadRevisions') is True or editable
        readable = is_public or has_read

        if require_edit and not editable:
            raise AccessDenied(file_id, require_edit=True, email=await self.drive.current_user_email())
        if not readable:
            raise AccessDenied(file_id, require_edit=False, email=await self.drive.current_user_email())

        if editable:
            reason = AccessReason.EDIT_CAPABILITY
        elif has_read:
            reason = AccessReason.READ_CAPABILITY
        else:
            reason = AccessReason.SHARED_PUBLICLY
        logger.debug("Access to %s granted: %s", file_id, reason.value)
        return AccessDecision(readable=readable, editable=editable, reason=reason)
