"""
Applications Service Layer

Business logic for the admission application lifecycle.

This module implements:
1. Application creation:
   - One application per student per academic year
   - Application number <program code><year><4-digit sequence>

2. Status transitions (each in one locked transaction):
   - draft -> submitted          (owner)
   - submitted -> frozen         (owner; declaration + all required documents)
   - frozen -> under_review      (reviewer)
   - under_review -> approved/rejected (reviewer)
   Every transition appends a status history entry.

3. Read models:
   - Application details, status history, status overview with timeline

Transactions:
- The application row is locked (SELECT ... FOR UPDATE) before a transition
  is validated, so concurrent uploads and transitions serialize
- Guard failures roll back; nothing is written
- Database errors roll back and surface as PersistenceFailureError
"""

import contextlib
import logging
from collections.abc import AsyncIterator
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from admissions.core.auth import CurrentUser, Permission
from admissions.core.config import settings
from admissions.modules.applications import access, lifecycle, repository
from admissions.modules.applications.display import STATUS_DISPLAY, build_timeline
from admissions.modules.applications.exceptions import (
    ApplicationAccessDeniedError,
    ApplicationNotFoundError,
    ApplicationServiceError,
    DeclarationRequiredError,
    DuplicateApplicationError,
    IncompleteApplicationError,
    InvalidTransitionError,
    PersistenceFailureError,
    ProgramNotFoundError,
)
from admissions.modules.applications.models import (
    Application,
    ApplicationStatus,
    StatusHistoryEntry,
)
from admissions.modules.applications.schemas import (
    ApplicationResponse,
    ApplicationStatusResponse,
    CompletionSummary,
    StatusStep,
)
from admissions.modules.catalog import repository as catalog_repository
from admissions.modules.documents.requirements import evaluate_completeness, resolve_requirements

logger = logging.getLogger(__name__)

DEFAULT_PROGRAM_CODE = "GEN"

APPLICATION_NUMBER_ATTEMPTS = 3


@contextlib.asynccontextmanager
async def guarded_transaction(db: AsyncSession, action: str) -> AsyncIterator[None]:
    """
    Roll back on any failure inside the block.

    Service errors propagate unchanged; database errors are logged and
    re-raised as PersistenceFailureError.
    """
    try:
        yield
    except ApplicationServiceError:
        await db.rollback()
        raise
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception(f"Database error during {action}: {e}")
        raise PersistenceFailureError() from e


def generate_application_number(program_code: str | None, year: int, sequence: int) -> str:
    """e.g. ``BSC20250007`` for the seventh BSC application of 2025."""
    prefix = (program_code or DEFAULT_PROGRAM_CODE).strip().upper() or DEFAULT_PROGRAM_CODE
    return f"{prefix}{year:04d}{sequence:04d}"


def to_response(application: Application) -> ApplicationResponse:
    program = application.program
    return ApplicationResponse(
        id=application.id,
        application_number=application.application_number,
        user_id=application.user_id,
        program_id=application.program_id,
        program_name=program.name if program is not None else None,
        academic_year=application.academic_year,
        status=application.status,
        status_label=STATUS_DISPLAY[application.status].label,
        can_edit=lifecycle.is_editable(application.status),
        submitted_at=application.submitted_at,
        frozen_at=application.frozen_at,
        reviewed_at=application.reviewed_at,
        reviewed_by=application.reviewed_by,
        decided_at=application.decided_at,
        decision_remarks=application.decision_remarks,
        created_at=application.created_at,
        updated_at=application.updated_at,
    )


# ============================================
# Creation and reads
# ============================================


async def create_application(
    db: AsyncSession,
    actor: CurrentUser,
    program_id: UUID,
    academic_year: str | None = None,
) -> Application:
    """
    Create a draft application for the acting student.

    Raises:
        ApplicationAccessDeniedError: If the actor cannot own an application
        ProgramNotFoundError: If the program does not exist or is inactive
        DuplicateApplicationError: If the actor already applied this academic year
    """
    if not actor.can(Permission.EDIT_OWN_APPLICATION):
        raise ApplicationAccessDeniedError("Only students can create applications.")

    year = academic_year or settings.current_academic_year

    program = await catalog_repository.get_active_program(db, program_id)
    if program is None:
        raise ProgramNotFoundError(program_id)

    if await repository.get_by_user_and_year(db, actor.id, year):
        logger.warning(f"Duplicate application attempt: user={actor.id}, year={year}")
        raise DuplicateApplicationError(year)

    # Rollback expires the program row, so keep plain values for the retries
    program_id, program_code = program.id, program.code
    calendar_year = datetime.now(UTC).year
    sequence = 0
    number = None
    for attempt in range(1, APPLICATION_NUMBER_ATTEMPTS + 1):
        try:
            # A concurrent create in the same program can take the counted number
            count = await repository.count_for_program_in_year(db, program_id, calendar_year)
            sequence = max(count + 1, sequence + 1)
            number = generate_application_number(program_code, calendar_year, sequence)

            application = await repository.create(
                db,
                user_id=actor.id,
                program_id=program_id,
                academic_year=year,
                application_number=number,
            )
            await db.commit()
            break
        except IntegrityError as e:
            await db.rollback()
            if await repository.get_by_user_and_year(db, actor.id, year):
                raise DuplicateApplicationError(year) from e
            if attempt == APPLICATION_NUMBER_ATTEMPTS:
                logger.exception(f"Failed to create application {number}: {e}")
                raise PersistenceFailureError() from e
            logger.warning(f"Application number {number} already taken, retrying")
        except SQLAlchemyError as e:
            await db.rollback()
            logger.exception(f"Failed to create application {number}: {e}")
            raise PersistenceFailureError() from e

    await db.refresh(application)
    logger.info(f"Application {number} created: id={application.id}, user={actor.id}")
    return application


async def get_application(
    db: AsyncSession, actor: CurrentUser, application_id: UUID
) -> Application:
    """
    Raises:
        ApplicationNotFoundError: If the application does not exist
        ApplicationAccessDeniedError: If the actor may not view it
    """
    application = await repository.get_by_id(db, application_id)
    if application is None:
        raise ApplicationNotFoundError(application_id)
    access.ensure_can_view(actor, application)
    return application


async def get_my_application(
    db: AsyncSession, actor: CurrentUser, academic_year: str | None = None
) -> Application:
    """The acting student's application for an academic year (default: current)."""
    year = academic_year or settings.current_academic_year
    application = await repository.get_by_user_and_year(db, actor.id, year)
    if application is None:
        raise ApplicationNotFoundError()
    return application


async def get_status_history(
    db: AsyncSession, actor: CurrentUser, application_id: UUID
) -> list[StatusHistoryEntry]:
    """Status history in append order."""
    application = await get_application(db, actor, application_id)
    return await repository.list_history(db, application.id)


async def get_status_overview(
    db: AsyncSession, actor: CurrentUser, application_id: UUID
) -> ApplicationStatusResponse:
    """Status display attributes, progress timeline and document completion."""
    application = await get_application(db, actor, application_id)
    history = await repository.list_history(db, application.id)
    report = evaluate_completeness(await resolve_requirements(db, application))
    display = STATUS_DISPLAY[application.status]

    return ApplicationStatusResponse(
        id=application.id,
        application_number=application.application_number,
        status=application.status,
        status_label=display.label,
        status_description=display.description,
        status_color=display.color,
        status_icon=display.icon,
        progress=display.progress,
        can_edit=lifecycle.is_editable(application.status),
        steps=[
            StatusStep(
                key=step.key,
                name=step.title,
                completed=step.completed,
                completed_at=step.completed_at,
            )
            for step in build_timeline(application, history)
        ],
        documents=CompletionSummary(
            is_complete=report.is_complete,
            required_total=report.required_total,
            required_uploaded=report.required_uploaded,
            required_verified=report.required_verified,
            optional_uploaded=report.optional_uploaded,
            missing_required=report.missing_required,
        ),
    )


async def admin_list_applications(
    db: AsyncSession,
    actor: CurrentUser,
    *,
    status: ApplicationStatus | None = None,
    program_id: UUID | None = None,
    academic_year: str | None = None,
    search: str | None = None,
    sort_by: str = "submitted_at",
    sort_order: str = "asc",
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[Application], int]:
    """
    Applications visible to a reviewer.

    Program admins only see the programs they administer.
    """
    if not actor.can(Permission.VIEW_APPLICATIONS):
        raise ApplicationAccessDeniedError("You are not allowed to list applications.")

    return await repository.get_applications_for_admin(
        db,
        status=status,
        program_id=program_id,
        program_admin_id=None if actor.is_admin else actor.id,
        academic_year=academic_year,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
        skip=skip,
        limit=limit,
    )


# ============================================
# Transitions
# ============================================


async def _lock_application(db: AsyncSession, application_id: UUID) -> Application:
    application = await repository.get_for_update(db, application_id)
    if application is None:
        raise ApplicationNotFoundError(application_id)
    return application


async def _apply_transition(
    db: AsyncSession,
    application: Application,
    new_status: ApplicationStatus,
    actor: CurrentUser,
    remarks: str | None = None,
    **fields,
) -> None:
    previous = application.status
    await repository.update_status(
        db, application, new_status, changed_by=actor.id, remarks=remarks, **fields
    )
    await db.commit()
    logger.info(
        f"Application {application.id} moved {previous.value} -> {new_status.value} "
        f"by {actor.id}"
    )


def _ensure_student_action(
    actor: CurrentUser, application: Application, permission: Permission
) -> None:
    access.ensure_owner(actor, application)
    if not actor.can(permission):
        raise ApplicationAccessDeniedError()


async def submit_application(
    db: AsyncSession, actor: CurrentUser, application_id: UUID
) -> Application:
    """
    draft -> submitted. No document requirement at this stage.

    Raises:
        ApplicationNotFoundError, ApplicationAccessDeniedError, InvalidTransitionError
    """
    async with guarded_transaction(db, f"submit of application {application_id}"):
        application = await _lock_application(db, application_id)
        _ensure_student_action(actor, application, Permission.SUBMIT_APPLICATION)
        lifecycle.ensure_transition(application.status, ApplicationStatus.SUBMITTED)

        await _apply_transition(
            db,
            application,
            ApplicationStatus.SUBMITTED,
            actor,
            submitted_at=datetime.now(UTC),
        )
    return application


async def freeze_application(
    db: AsyncSession,
    actor: CurrentUser,
    application_id: UUID,
    declaration_accepted: bool,
) -> Application:
    """
    submitted -> frozen (final submission).

    The completeness check runs while the application row is locked, so no
    upload can change the documents between the check and the transition.

    Raises:
        ApplicationNotFoundError, ApplicationAccessDeniedError, InvalidTransitionError
        DeclarationRequiredError: If the declaration was not accepted
        IncompleteApplicationError: If required documents are missing
    """
    async with guarded_transaction(db, f"freeze of application {application_id}"):
        application = await _lock_application(db, application_id)
        _ensure_student_action(actor, application, Permission.SUBMIT_APPLICATION)
        lifecycle.ensure_transition(application.status, ApplicationStatus.FROZEN)

        if not declaration_accepted:
            logger.warning(f"Freeze of application {application.id} without declaration")
            raise DeclarationRequiredError()

        report = evaluate_completeness(await resolve_requirements(db, application))
        if not report.is_complete:
            logger.warning(
                f"Freeze of application {application.id} rejected, "
                f"missing: {report.missing_required}"
            )
            raise IncompleteApplicationError(report.missing_required)

        await _apply_transition(
            db,
            application,
            ApplicationStatus.FROZEN,
            actor,
            frozen_at=datetime.now(UTC),
        )
    return application


async def advance_to_review(
    db: AsyncSession, actor: CurrentUser, application_id: UUID
) -> Application:
    """
    frozen -> under_review, recording the reviewer.

    Raises:
        ApplicationNotFoundError, ApplicationAccessDeniedError, InvalidTransitionError
    """
    async with guarded_transaction(db, f"review start of application {application_id}"):
        application = await _lock_application(db, application_id)
        access.ensure_can_review(actor, application)
        lifecycle.ensure_transition(application.status, ApplicationStatus.UNDER_REVIEW)

        await _apply_transition(
            db,
            application,
            ApplicationStatus.UNDER_REVIEW,
            actor,
            reviewed_by=actor.id,
            reviewed_at=datetime.now(UTC),
        )
    return application


async def decide_application(
    db: AsyncSession,
    actor: CurrentUser,
    application_id: UUID,
    decision: ApplicationStatus,
    remarks: str | None = None,
) -> Application:
    """
    under_review -> approved | rejected. Terminal.

    Raises:
        ApplicationNotFoundError, ApplicationAccessDeniedError
        InvalidTransitionError: If not under review, or ``decision`` is not a decision status
    """
    async with guarded_transaction(db, f"decision on application {application_id}"):
        application = await _lock_application(db, application_id)
        access.ensure_can_review(actor, application)
        if decision not in lifecycle.DECISION_STATUSES:
            raise InvalidTransitionError(
                application.status, decision, lifecycle.DECISION_STATUSES
            )
        lifecycle.ensure_transition(application.status, decision)

        await _apply_transition(
            db,
            application,
            decision,
            actor,
            remarks=remarks,
            decided_at=datetime.now(UTC),
            decision_remarks=remarks,
        )
    return application
