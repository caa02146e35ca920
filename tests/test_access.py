import pytest

from mcp_gdrive_sql.access import AccessReason, AccessVerifier
from mcp_gdrive_sql.errors import AccessDenied, BackendFailure, InvalidObjectReference, NotFoundOrForbidden

from conftest import spreadsheet_file


@pytest.mark.asyncio
async def test_editor_may_edit_without_email_lookup(drive) -> None:
    drive.files["f"] = spreadsheet_file(can_edit=True)

    decision = await AccessVerifier(drive).verify("f", require_edit=True)

    assert decision.editable and decision.readable
    assert decision.reason is AccessReason.EDIT_CAPABILITY
    assert drive.email_lookups == 0


@pytest.mark.asyncio
async def test_reader_cannot_edit(drive) -> None:
    drive.files["f"] = spreadsheet_file(can_edit=False, can_read=True)
    verifier = AccessVerifier(drive)

    assert (await verifier.verify("f")).reason is AccessReason.READ_CAPABILITY

    with pytest.raises(AccessDenied) as excinfo:
        await verifier.verify("f", require_edit=True)
    assert excinfo.value.require_edit is True
    assert excinfo.value.email == "me@example.com"
    assert excinfo.value.file_id == "f"


@pytest.mark.asyncio
@pytest.mark.parametrize("permission_type", ["anyone", "domain"])
async def test_public_file_is_readable(drive, permission_type) -> None:
    drive.files["f"] = spreadsheet_file(can_edit=False, can_read=False)
    drive.permissions["f"] = [{"type": permission_type, "role": "reader"}]

    decision = await AccessVerifier(drive).verify("f")

    assert decision.readable and not decision.editable
    assert decision.reason is AccessReason.SHARED_PUBLICLY


@pytest.mark.asyncio
async def test_private_file_without_capabilities_is_denied(drive) -> None:
    drive.files["f"] = spreadsheet_file(can_edit=False, can_read=False)
    drive.permissions["f"] = [{"type": "user", "role": "owner", "emailAddress": "owner@example.com"}]

    with pytest.raises(AccessDenied) as excinfo:
        await AccessVerifier(drive).verify("f")
    assert excinfo.value.require_edit is False


@pytest.mark.asyncio
async def test_missing_file_reports_identity(drive) -> None:
    with pytest.raises(NotFoundOrForbidden) as excinfo:
        await AccessVerifier(drive).verify("missing")
    assert excinfo.value.email == "me@example.com"
    assert excinfo.value.file_id == "missing"


@pytest.mark.asyncio
async def test_other_backend_failures_propagate(drive) -> None:
    drive.failures["f"] = BackendFailure("Internal error", status=500)

    with pytest.raises(BackendFailure) as excinfo:
        await AccessVerifier(drive).verify("f")
    assert excinfo.value.status == 500
    assert drive.email_lookups == 0


@pytest.mark.asyncio
async def test_non_spreadsheet_is_rejected(drive) -> None:
    drive.files["doc"] = {"id": "doc", "mimeType": "application/vnd.google-apps.document", "capabilities": {}}

    with pytest.raises(InvalidObjectReference):
        await AccessVerifier(drive).verify("doc")
