"""
Applications Router

Student-facing endpoints for an admission application.

Endpoints:
- POST /applications - Create a draft application
- GET /applications/me - The caller's application for the current cycle
- GET /applications/{id} - Application details
- POST /applications/{id}/submit - draft -> submitted
- POST /applications/{id}/freeze - Final submission (submitted -> frozen)
- GET /applications/{id}/history - Status history
- GET /applications/{id}/status - Status overview with progress timeline

Security:
- All endpoints require a valid bearer token
- Students only reach their own application; reviewers reach their programs
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from admissions.core.auth import CurrentUser, get_current_user
from admissions.core.database import get_db
from admissions.modules.applications import service
from admissions.modules.applications.exceptions import (
    ApplicationServiceError,
    IncompleteApplicationError,
    InvalidTransitionError,
)
from admissions.modules.applications.schemas import (
    ApplicationCreate,
    ApplicationResponse,
    ApplicationStatusResponse,
    FreezeRequest,
    StatusHistoryItem,
    StatusHistoryResponse,
    TransitionResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


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


@router.post(
    "",
    response_model=ApplicationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Application",
    description="""
Create a draft application for the authenticated student.

**Rules:**
- One application per student per academic year
- The program must be active

**Response:**
The new application including its application number.
""",
    responses={
        403: {"description": "Caller is not a student"},
        404: {"description": "Program not found or inactive"},
        409: {"description": "An application already exists for the academic year"},
    },
)
async def create_application(
    data: ApplicationCreate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> ApplicationResponse:
    try:
        application = await service.create_application(
            db, user, data.program_id, data.academic_year
        )
        return service.to_response(application)
    except ApplicationServiceError as e:
        logger.warning(f"Application creation rejected for {user.id}: {e.message}")
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error creating application: {e}")
        raise _internal_error() from e


@router.get(
    "/me",
    response_model=ApplicationResponse,
    summary="Get My Application",
    responses={404: {"description": "No application for the academic year"}},
)
async def get_my_application(
    academic_year: str | None = Query(None, description="Defaults to the current cycle"),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> ApplicationResponse:
    """The caller's application for an academic year."""
    try:
        application = await service.get_my_application(db, user, academic_year)
        return service.to_response(application)
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error loading application of {user.id}: {e}")
        raise _internal_error() from e


@router.get(
    "/{application_id}",
    response_model=ApplicationResponse,
    summary="Get Application",
    responses={
        403: {"description": "Not the owner or a reviewer of this program"},
        404: {"description": "Application not found"},
    },
)
async def get_application(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> ApplicationResponse:
    try:
        application = await service.get_application(db, user, application_id)
        return service.to_response(application)
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error loading application {application_id}: {e}")
        raise _internal_error() from e


@router.post(
    "/{application_id}/submit",
    response_model=TransitionResponse,
    summary="Submit Application",
    description="""
Move a draft application to `submitted`.

Documents can still be uploaded and replaced after this step, until final
submission.
""",
    responses={
        403: {"description": "Not the owner"},
        404: {"description": "Application not found"},
        409: {"description": "Application is not a draft"},
    },
)
async def submit_application(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> TransitionResponse:
    try:
        application = await service.submit_application(db, user, application_id)
        return TransitionResponse(
            id=application.id,
            status=application.status,
            message="Application submitted. You can keep uploading documents until final "
            "submission.",
        )
    except InvalidTransitionError as e:
        logger.warning(f"Invalid submit of application {application_id}: {e.message}")
        _handle_service_error(e)
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error submitting application {application_id}: {e}")
        raise _internal_error() from e


@router.post(
    "/{application_id}/freeze",
    response_model=TransitionResponse,
    summary="Final Submission",
    description="""
Freeze a submitted application for review. Irreversible.

**Requirements:**
- `declaration_accepted` must be true
- Every required document must be uploaded (verification is not required)

**Errors:**
- `DECLARATION_REQUIRED` (400)
- `INCOMPLETE_APPLICATION` (409) with `missing_documents`
- `INVALID_TRANSITION` (409) if the application is not `submitted`
""",
    responses={
        400: {"description": "Declaration not accepted"},
        403: {"description": "Not the owner"},
        404: {"description": "Application not found"},
        409: {
            "description": "Wrong status or required documents missing",
            "content": {
                "application/json": {
                    "example": {
                        "detail": {
                            "error": "INCOMPLETE_APPLICATION",
                            "message": "Please upload all required documents before final "
                            "submission. Missing: Income Certificate",
                            "missing_documents": ["Income Certificate"],
                        }
                    }
                }
            },
        },
    },
)
async def freeze_application(
    application_id: UUID,
    data: FreezeRequest,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> TransitionResponse:
    try:
        application = await service.freeze_application(
            db, user, application_id, data.declaration_accepted
        )
        return TransitionResponse(
            id=application.id,
            status=application.status,
            message="Application finally submitted and locked for review.",
        )
    except IncompleteApplicationError as e:
        logger.info(f"Application {application_id} not complete: {e.missing_documents}")
        _handle_service_error(e)
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error freezing application {application_id}: {e}")
        raise _internal_error() from e


@router.get(
    "/{application_id}/history",
    response_model=StatusHistoryResponse,
    summary="Status History",
)
async def get_status_history(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> StatusHistoryResponse:
    """Status changes in the order they happened."""
    try:
        history = await service.get_status_history(db, user, application_id)
        return StatusHistoryResponse(
            application_id=application_id,
            history=[StatusHistoryItem.model_validate(entry) for entry in history],
        )
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error loading history of application {application_id}: {e}")
        raise _internal_error() from e


@router.get(
    "/{application_id}/status",
    response_model=ApplicationStatusResponse,
    summary="Status Overview",
    description="Status label, progress percentage, timeline and document completion.",
)
async def get_status_overview(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> ApplicationStatusResponse:
    try:
        return await service.get_status_overview(db, user, application_id)
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error loading status of application {application_id}: {e}")
        raise _internal_error() from e
