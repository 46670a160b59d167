"""
Documents Admin Router

Endpoints:
- POST /admin/documents/{document_id}/verify - Verify or reject a document

Verification never changes the application's status.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from admissions.core.auth import CurrentUser, Permission, require_permission
from admissions.core.database import get_db
from admissions.core.rate_limit import RateLimitExceeded, check_rate_limit
from admissions.modules.applications.exceptions import ApplicationServiceError
from admissions.modules.documents import service
from admissions.modules.documents.schemas import VerifyDocumentRequest, VerifyDocumentResponse

logger = logging.getLogger(__name__)

router = APIRouter()

RATE_LIMIT_VERIFY = (60, 60)  # 60 verifications per minute


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


@router.post(
    "/{document_id}/verify",
    response_model=VerifyDocumentResponse,
    summary="Verify Document",
    description="""
Mark a document as verified (`approve: true`) or rejected (`approve: false`).

The verifier, time and remarks are recorded. Uploading a replacement clears
the verification again.
""",
    responses={
        403: {"description": "Not a reviewer for this program"},
        404: {"description": "Document not found"},
        429: {"description": "Rate limit exceeded"},
    },
)
async def verify_document(
    document_id: UUID,
    data: VerifyDocumentRequest,
    db: AsyncSession = Depends(get_db),
    reviewer: CurrentUser = Depends(require_permission(Permission.MANAGE_APPLICATIONS)),
) -> VerifyDocumentResponse:
    limit, window_seconds = RATE_LIMIT_VERIFY
    if not await check_rate_limit(f"admin:verify:{reviewer.id}", limit, window_seconds):
        logger.warning(f"Rate limit exceeded for reviewer {reviewer.id} on action 'verify'")
        raise RateLimitExceeded(limit, window_seconds)

    try:
        document = await service.verify_document(
            db, reviewer, document_id, data.approve, data.remarks
        )
        return service.to_verify_response(document)
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error verifying document {document_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "INTERNAL_ERROR",
                "message": "An unexpected error occurred.",
            },
        ) from e
