"""
Unit tests for the upload endpoint's handling of the file body.

The endpoint function is called directly with an ``UploadFile``; the
service is patched.
"""

from io import BytesIO
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
from fastapi import HTTPException, UploadFile

from admissions.core.config import settings
from admissions.modules.documents import router
from admissions.modules.documents.service import UploadResult
from admissions.modules.documents.storage import DocumentStore

ROUTER = "admissions.modules.documents.router"

SEVEN_MB = 7 * 1024 * 1024


def _upload_file(content: bytes, declared_size: int | None) -> UploadFile:
    return UploadFile(file=BytesIO(content), size=declared_size, filename="transcript.pdf")


async def _call(mock_db, student, file: UploadFile):
    return await router.upload_document(
        uuid4(),
        certificate_type_id=uuid4(),
        file=file,
        db=mock_db,
        store=AsyncMock(spec=DocumentStore),
        user=student,
    )


class TestUploadBody:
    @pytest.mark.asyncio
    async def test_declared_size_above_cap_rejected(self, mock_db, student):
        file = _upload_file(b"x" * SEVEN_MB, SEVEN_MB)

        with patch(f"{ROUTER}.service.upload_document", AsyncMock()) as upload:
            with pytest.raises(HTTPException) as exc_info:
                await _call(mock_db, student, file)

        assert exc_info.value.status_code == 413
        assert exc_info.value.detail["error"] == "FILE_TOO_LARGE"
        assert exc_info.value.detail["max_size_bytes"] == settings.max_request_size_bytes
        upload.assert_not_called()

    @pytest.mark.asyncio
    async def test_size_cap_checked_before_file_type(self, mock_db, student):
        file = UploadFile(file=BytesIO(b"MZ"), size=SEVEN_MB, filename="setup.exe")

        with patch(f"{ROUTER}.service.upload_document", AsyncMock()) as upload:
            with pytest.raises(HTTPException) as exc_info:
                await _call(mock_db, student, file)

        assert exc_info.value.detail["error"] == "FILE_TOO_LARGE"
        upload.assert_not_called()

    @pytest.mark.asyncio
    async def test_undeclared_body_above_cap_is_not_truncated(self, mock_db, student):
        """A body without a declared size is rejected, never cut to the cap."""
        file = _upload_file(b"x" * 65, None)

        with (
            patch.object(settings, "max_request_size_bytes", 64),
            patch(f"{ROUTER}.service.upload_document", AsyncMock()) as upload,
        ):
            with pytest.raises(HTTPException) as exc_info:
                await _call(mock_db, student, file)

        assert exc_info.value.status_code == 413
        upload.assert_not_called()

    @pytest.mark.asyncio
    async def test_full_body_reaches_service(self, mock_db, student):
        content = b"%PDF-1.4 " + b"x" * 1000
        file = _upload_file(content, len(content))
        result = UploadResult(
            document_id=uuid4(),
            application_id=uuid4(),
            certificate_type_id=uuid4(),
            file_id=uuid4(),
            document_name="transcript.pdf",
            file_size=len(content),
            replaced_upload_id=uuid4(),
        )

        with patch(f"{ROUTER}.service.upload_document", AsyncMock(return_value=result)) as upload:
            response = await _call(mock_db, student, file)

        assert upload.call_args.kwargs["content"] == content
        assert upload.call_args.kwargs["declared_size"] == len(content)
        assert response.document_id == result.document_id
        assert response.file_id == result.file_id
        assert response.file_size == len(content)
        assert response.replaced is True
        assert response.message == "Document replaced successfully."
