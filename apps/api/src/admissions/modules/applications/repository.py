"""
Applications Repository

Database operations for applications and their status history.

Design Principles:
- All queries are parameterized (no SQL injection)
- Only database operations; guards live in the lifecycle and service modules
- Functions flush, services commit or roll back
- Timezone-aware datetime handling (UTC)
"""

from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import asc, desc, extract, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from admissions.modules.catalog.models import Program

from .models import Application, ApplicationStatus, StatusHistoryEntry


async def create(
    db: AsyncSession,
    *,
    user_id: UUID,
    program_id: UUID,
    academic_year: str,
    application_number: str,
) -> Application:
    """Insert a draft application."""
    application = Application(
        user_id=user_id,
        program_id=program_id,
        academic_year=academic_year,
        application_number=application_number,
        status=ApplicationStatus.DRAFT,
    )
    db.add(application)
    await db.flush()
    return application


async def get_by_id(db: AsyncSession, id: UUID) -> Application | None:
    """Get application by ID."""
    return await db.get(Application, id)


async def get_for_update(db: AsyncSession, id: UUID) -> Application | None:
    """
    Lock the application row for the rest of the transaction and return it.

    Uploads and status transitions on the same application serialize here.
    """
    result = await db.execute(
        select(Application)
        .where(Application.id == id)
        .with_for_update(of=Application)
        .execution_options(populate_existing=True)
    )
    return result.unique().scalar_one_or_none()


async def get_by_user_and_year(
    db: AsyncSession, user_id: UUID, academic_year: str
) -> Application | None:
    result = await db.execute(
        select(Application).where(
            Application.user_id == user_id,
            Application.academic_year == academic_year,
        )
    )
    return result.unique().scalar_one_or_none()


async def count_for_program_in_year(db: AsyncSession, program_id: UUID, year: int) -> int:
    """Number of applications created for a program in a calendar year."""
    result = await db.execute(
        select(func.count(Application.id)).where(
            Application.program_id == program_id,
            extract("year", Application.created_at) == year,
        )
    )
    return result.scalar() or 0


async def update_status(
    db: AsyncSession,
    application: Application,
    status: ApplicationStatus,
    *,
    changed_by: UUID,
    remarks: str | None = None,
    **fields,
) -> StatusHistoryEntry:
    """
    Set a new status and append the matching history entry.

    The transition must already have been validated by the caller. Extra
    keyword arguments are written onto the application (e.g. ``frozen_at``).

    Returns:
        The appended history entry
    """
    previous = application.status

    application.status = status
    for key, value in fields.items():
        if not hasattr(application, key):
            raise AttributeError(f"Application has no field {key!r}")
        setattr(application, key, value)
    application.updated_at = datetime.now(UTC)

    entry = StatusHistoryEntry(
        application_id=application.id,
        from_status=previous,
        to_status=status,
        changed_by=changed_by,
        remarks=remarks,
        changed_at=datetime.now(UTC),
    )
    db.add(entry)
    await db.flush()
    return entry


async def list_history(db: AsyncSession, application_id: UUID) -> list[StatusHistoryEntry]:
    """Status history of an application in append order."""
    result = await db.execute(
        select(StatusHistoryEntry)
        .where(StatusHistoryEntry.application_id == application_id)
        .order_by(StatusHistoryEntry.id)
    )
    return list(result.scalars().all())


async def get_applications_for_admin(
    db: AsyncSession,
    *,
    status: ApplicationStatus | None = None,
    program_id: UUID | None = None,
    program_admin_id: UUID | None = None,
    academic_year: str | None = None,
    search: str | None = None,
    sort_by: str = "submitted_at",
    sort_order: str = "asc",
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[Application], int]:
    """
    Applications with filters, sorting, and pagination for reviewers.

    Args:
        db: Database session
        status: Filter by application status (optional)
        program_id: Filter by program (optional)
        program_admin_id: Only programs administered by this user (optional)
        academic_year: Filter by academic year (optional)
        search: Case-insensitive match on application number (optional)
        sort_by: submitted_at, created_at or application_number. Default: submitted_at
        sort_order: asc or desc. Default: asc (oldest first for fairness)
        skip: Number of records to skip
        limit: Maximum records to return

    Returns:
        Tuple of (list of applications, total count matching filters)
    """
    query = select(Application)

    if status:
        query = query.where(Application.status == status)
    if program_id:
        query = query.where(Application.program_id == program_id)
    if program_admin_id:
        query = query.where(
            Application.program_id.in_(
                select(Program.id).where(Program.program_admin_id == program_admin_id)
            )
        )
    if academic_year:
        query = query.where(Application.academic_year == academic_year)
    if search:
        search_pattern = f"%{search}%"
        query = query.where(Application.application_number.ilike(search_pattern))

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar() or 0

    valid_sort_columns = {"submitted_at", "created_at", "application_number"}
    if sort_by not in valid_sort_columns:
        sort_by = "submitted_at"

    sort_column = getattr(Application, sort_by)
    if sort_order.lower() == "desc":
        query = query.order_by(desc(sort_column))
    else:
        query = query.order_by(asc(sort_column))

    query = query.offset(skip).limit(limit)

    result = await db.execute(query)
    return list(result.unique().scalars().all()), total
