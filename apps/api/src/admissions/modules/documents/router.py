"""
Documents Router

Student-facing endpoints for an application's supporting documents.

Endpoints:
- GET /applications/{id}/requirements - Requirement matrix with completeness
- POST /applications/{id}/documents - Upload or replace a document (multipart)
- GET /applications/{id}/documents/{document_id}/download - Download a document

Security:
- Uploads only by the owning student while the application is editable
- Uploads are rate limited per user
- Oversized request bodies are rejected before parsing (see main.py)
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from admissions.core.auth import CurrentUser, get_current_user
from admissions.core.config import settings
from admissions.core.database import get_db
from admissions.core.rate_limit import RateLimitExceeded, check_rate_limit
from admissions.modules.applications.exceptions import ApplicationServiceError
from admissions.modules.documents import service
from admissions.modules.documents.exceptions import (
    FileTooLargeError,
    InvalidFileTypeError,
    UnknownCertificateTypeError,
)
from admissions.modules.documents.schemas import RequirementMatrixResponse, UploadResponse
from admissions.modules.documents.storage import DocumentStore, get_document_store

logger = logging.getLogger(__name__)

router = APIRouter()


async def _check_upload_rate_limit(user: CurrentUser) -> None:
    """
    Raises:
        RateLimitExceeded: If the user uploaded too often in the window
    """
    limit = settings.upload_rate_limit
    window_seconds = settings.upload_rate_limit_window_seconds
    allowed = await check_rate_limit(f"upload:{user.id}", limit, window_seconds)

    if not allowed:
        logger.warning(f"Upload rate limit exceeded for {user.id}: {limit}/{window_seconds}s")
        raise RateLimitExceeded(limit, window_seconds)


def _handle_service_error(e: ApplicationServiceError) -> None:
    """Convert service errors to HTTPExceptions."""
    raise HTTPException(
        status_code=e.status_code,
        detail={
            "error": e.error_code,
            "message": e.message,
            **e.details,
        },
    ) from e


def _internal_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )


@router.get(
    "/{application_id}/requirements",
    response_model=RequirementMatrixResponse,
    summary="Document Requirements",
    description="""
Every certificate type the application's program asks for, joined with the
document uploaded for it (if any).

Rows are ordered by the program's display order, then certificate name. A row
without a document is missing; `is_required` tells required from optional.
""",
)
async def get_requirements(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> RequirementMatrixResponse:
    try:
        return await service.get_requirement_matrix(db, user, application_id)
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error loading requirements of application {application_id}: {e}")
        raise _internal_error() from e


@router.post(
    "/{application_id}/documents",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload Document",
    description="""
Upload the document for one certificate type. Uploading again for the same
certificate type replaces the file and resets its verification.

A body above the request size cap is rejected with `FILE_TOO_LARGE` before any
other check, whatever the file type.

**Validation (first failure wins):**
1. File extension allowed for the certificate type (default: pdf, jpg, jpeg, png)
2. File size within the certificate type's limit (default: 5MB)
3. Certificate type required or optional for the application's program

**Requirements:** application must be `draft` or `submitted`.
""",
    responses={
        400: {"description": "Invalid file type or certificate type"},
        403: {"description": "Not the owner"},
        404: {"description": "Application not found"},
        409: {"description": "Application can no longer be edited"},
        413: {"description": "File too large"},
        429: {"description": "Rate limit exceeded"},
    },
)
async def upload_document(
    application_id: UUID,
    certificate_type_id: UUID = Form(...),
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    store: DocumentStore = Depends(get_document_store),
    user: CurrentUser = Depends(get_current_user),
) -> UploadResponse:
    await _check_upload_rate_limit(user)

    read_cap = settings.max_request_size_bytes

    try:
        if file.size is not None and file.size > read_cap:
            raise FileTooLargeError(file.size, read_cap)
        # Never buffer more than the cap, whatever the client declared
        content = await file.read(read_cap + 1)
        if len(content) > read_cap:
            raise FileTooLargeError(len(content), read_cap)

        result = await service.upload_document(
            db,
            store,
            user,
            application_id,
            certificate_type_id,
            content=content,
            original_name=file.filename or "",
            declared_mime_type=file.content_type,
            declared_size=file.size,
        )
        return UploadResponse(
            document_id=result.document_id,
            application_id=result.application_id,
            certificate_type_id=result.certificate_type_id,
            file_id=result.file_id,
            document_name=result.document_name,
            file_size=result.file_size,
            replaced=result.replaced,
            message="Document replaced successfully."
            if result.replaced
            else "Document uploaded successfully.",
        )
    except (InvalidFileTypeError, FileTooLargeError, UnknownCertificateTypeError) as e:
        logger.info(f"Upload rejected for application {application_id}: {e.error_code}")
        _handle_service_error(e)
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error uploading document to application {application_id}: {e}")
        raise _internal_error() from e
    finally:
        await file.close()


@router.get(
    "/{application_id}/documents/{document_id}/download",
    summary="Download Document",
    response_class=Response,
    responses={
        200: {"description": "The document file"},
        403: {"description": "Not the owner or a reviewer of this program"},
        404: {"description": "Application or document not found"},
    },
)
async def download_document(
    application_id: UUID,
    document_id: UUID,
    db: AsyncSession = Depends(get_db),
    store: DocumentStore = Depends(get_document_store),
    user: CurrentUser = Depends(get_current_user),
) -> Response:
    try:
        upload, content = await service.get_document_file(
            db, store, user, application_id, document_id
        )
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error downloading document {document_id}: {e}")
        raise _internal_error() from e

    filename = upload.original_name.replace('"', "")
    return Response(
        content=content,
        media_type=upload.mime_type or "application/octet-stream",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
