"""
Applications Admin Router

Reviewer endpoints. Admins see every program; program admins only the
programs they administer.

Endpoints:
- GET /admin/applications - List applications with filters and pagination
- GET /admin/applications/{id} - Application details
- POST /admin/applications/{id}/start-review - frozen -> under_review
- POST /admin/applications/{id}/decision - under_review -> approved | rejected

Security:
- Listing requires view_applications, actions require manage_applications
- Rate limiting on action endpoints to prevent mass operations
- Audit trail through the status history
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from admissions.core.auth import CurrentUser, Permission, require_permission
from admissions.core.database import get_db
from admissions.core.rate_limit import RateLimitExceeded, check_rate_limit
from admissions.modules.applications import service
from admissions.modules.applications.exceptions import (
    ApplicationNotFoundError,
    ApplicationServiceError,
    InvalidTransitionError,
)
from admissions.modules.applications.models import ApplicationStatus
from admissions.modules.applications.schemas import (
    ApplicationListItem,
    ApplicationListResponse,
    ApplicationResponse,
    DecisionRequest,
    DecisionResponse,
    StartReviewResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================
# Rate Limiting Configuration
# ============================================

RATE_LIMIT_START_REVIEW = (30, 60)  # 30 review starts per minute
RATE_LIMIT_DECISION = (10, 60)  # 10 decisions per minute


async def _check_admin_rate_limit(
    reviewer: CurrentUser,
    action: str,
    limit: int,
    window_seconds: int,
) -> None:
    """
    Check rate limit for a reviewer action.

    Raises:
        RateLimitExceeded: If rate limit is exceeded
    """
    key = f"admin:{action}:{reviewer.id}"
    allowed = await check_rate_limit(key, limit, window_seconds)

    if not allowed:
        logger.warning(
            f"Rate limit exceeded for reviewer {reviewer.id} on action '{action}': "
            f"{limit}/{window_seconds}s"
        )
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
    "",
    response_model=ApplicationListResponse,
    summary="List Applications",
    description="""
List applications with filtering, sorting and pagination.

**Filters:**
- `status`, `program_id`, `academic_year`
- `search`: matches the application number (case-insensitive)

**Sorting:** `submitted_at` (default, oldest first), `created_at`, `application_number`
""",
)
async def list_applications(
    status_filter: ApplicationStatus | None = Query(None, alias="status"),
    program_id: UUID | None = Query(None),
    academic_year: str | None = Query(None, max_length=20),
    search: str | None = Query(None, max_length=100),
    sort_by: str = Query("submitted_at"),
    sort_order: str = Query("asc", pattern="^(asc|desc)$"),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    reviewer: CurrentUser = Depends(require_permission(Permission.VIEW_APPLICATIONS)),
) -> ApplicationListResponse:
    try:
        applications, total = await service.admin_list_applications(
            db,
            reviewer,
            status=status_filter,
            program_id=program_id,
            academic_year=academic_year,
            search=search,
            sort_by=sort_by,
            sort_order=sort_order,
            skip=skip,
            limit=limit,
        )
        return ApplicationListResponse(
            applications=[ApplicationListItem.model_validate(app) for app in applications],
            total=total,
            skip=skip,
            limit=limit,
        )
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error listing applications: {e}")
        raise _internal_error() from e


@router.get(
    "/{application_id}",
    response_model=ApplicationResponse,
    summary="Get Application Details",
)
async def get_application_details(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    reviewer: CurrentUser = Depends(require_permission(Permission.VIEW_APPLICATIONS)),
) -> ApplicationResponse:
    try:
        application = await service.get_application(db, reviewer, application_id)
        return service.to_response(application)
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error loading application {application_id}: {e}")
        raise _internal_error() from e


@router.post(
    "/{application_id}/start-review",
    response_model=StartReviewResponse,
    summary="Start Review",
    description="""
Start reviewing a finally submitted application.

**Requirements:** application must be `frozen`.

**Effects:** status becomes `under_review`; `reviewed_by`/`reviewed_at` are recorded.
""",
    responses={
        403: {"description": "Not a reviewer for this program"},
        404: {"description": "Application not found"},
        409: {"description": "Application is not frozen"},
        429: {"description": "Rate limit exceeded"},
    },
)
async def start_review(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    reviewer: CurrentUser = Depends(require_permission(Permission.MANAGE_APPLICATIONS)),
) -> StartReviewResponse:
    await _check_admin_rate_limit(reviewer, "start_review", *RATE_LIMIT_START_REVIEW)

    try:
        application = await service.advance_to_review(db, reviewer, application_id)
        logger.info(f"Reviewer {reviewer.id} started review of application {application_id}")
        return StartReviewResponse(
            id=application.id,
            status=application.status,
            reviewed_by=application.reviewed_by,
            reviewed_at=application.reviewed_at,
        )
    except ApplicationNotFoundError as e:
        logger.warning(f"Application not found: {application_id}")
        _handle_service_error(e)
    except InvalidTransitionError as e:
        logger.warning(f"Cannot start review of application {application_id}: {e.message}")
        _handle_service_error(e)
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error starting review: {e}")
        raise _internal_error() from e


@router.post(
    "/{application_id}/decision",
    response_model=DecisionResponse,
    summary="Approve or Reject",
    description="""
Record the final decision on an application under review.

**Requirements:** application must be `under_review`.

**Effects:** status becomes `approved` or `rejected` (terminal); remarks are
stored on the application and in the status history.
""",
    responses={
        403: {"description": "Not a reviewer for this program"},
        404: {"description": "Application not found"},
        409: {"description": "Application is not under review"},
        429: {"description": "Rate limit exceeded"},
    },
)
async def decide_application(
    application_id: UUID,
    data: DecisionRequest,
    db: AsyncSession = Depends(get_db),
    reviewer: CurrentUser = Depends(require_permission(Permission.MANAGE_APPLICATIONS)),
) -> DecisionResponse:
    await _check_admin_rate_limit(reviewer, "decision", *RATE_LIMIT_DECISION)

    decision = ApplicationStatus(data.decision)
    try:
        application = await service.decide_application(
            db, reviewer, application_id, decision, data.remarks
        )
        logger.info(f"Reviewer {reviewer.id} {decision.value} application {application_id}")
        return DecisionResponse(
            id=application.id,
            status=application.status,
            decided_at=application.decided_at,
            remarks=application.decision_remarks,
            message=f"Application {decision.value}.",
        )
    except InvalidTransitionError as e:
        logger.warning(f"Cannot decide application {application_id}: {e.message}")
        _handle_service_error(e)
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error deciding application: {e}")
        raise _internal_error() from e
