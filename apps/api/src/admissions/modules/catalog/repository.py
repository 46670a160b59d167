"""
Catalog Repository

Read-only queries over programs, certificate types and requirements.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import CertificateType, Program, ProgramCertificateRequirement


async def get_program(db: AsyncSession, program_id: UUID) -> Program | None:
    """Get program by ID."""
    return await db.get(Program, program_id)


async def get_active_program(db: AsyncSession, program_id: UUID) -> Program | None:
    result = await db.execute(
        select(Program).where(Program.id == program_id, Program.is_active.is_(True))
    )
    return result.scalar_one_or_none()


async def get_certificate_type(
    db: AsyncSession, certificate_type_id: UUID
) -> CertificateType | None:
    """Get certificate type by ID (active or not)."""
    return await db.get(CertificateType, certificate_type_id)


async def get_program_requirements(
    db: AsyncSession, program_id: UUID
) -> list[ProgramCertificateRequirement]:
    """
    Requirements of a program over active certificate types only.

    Ordered by requirement display order, then certificate name.
    """
    result = await db.execute(
        select(ProgramCertificateRequirement)
        .join(
            CertificateType,
            ProgramCertificateRequirement.certificate_type_id == CertificateType.id,
        )
        .where(
            ProgramCertificateRequirement.program_id == program_id,
            CertificateType.is_active.is_(True),
        )
        .order_by(ProgramCertificateRequirement.display_order, CertificateType.name)
    )
    return list(result.unique().scalars().all())


async def get_requirement(
    db: AsyncSession, program_id: UUID, certificate_type_id: UUID
) -> ProgramCertificateRequirement | None:
    """The requirement linking a program to an active certificate type, if any."""
    result = await db.execute(
        select(ProgramCertificateRequirement)
        .join(
            CertificateType,
            ProgramCertificateRequirement.certificate_type_id == CertificateType.id,
        )
        .where(
            ProgramCertificateRequirement.program_id == program_id,
            ProgramCertificateRequirement.certificate_type_id == certificate_type_id,
            CertificateType.is_active.is_(True),
        )
    )
    return result.unique().scalar_one_or_none()
