"""
Requirement Resolver and Completeness Gate

Joins what a program requires with what an application has uploaded, and
decides whether the application is complete enough for final submission.

``build_requirement_matrix`` and ``evaluate_completeness`` are pure so they
can be tested without a database. ``resolve_requirements`` loads their input.
"""

import enum
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from admissions.modules.applications.models import Application
from admissions.modules.catalog import repository as catalog_repository
from admissions.modules.catalog.constraints import allowed_extensions_for, max_size_for
from admissions.modules.catalog.models import ProgramCertificateRequirement
from admissions.modules.documents import repository
from admissions.modules.documents.models import ApplicationDocument


class VerificationState(str, enum.Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


def verification_state(document: ApplicationDocument) -> VerificationState:
    """A reviewed-but-not-verified document counts as rejected."""
    if document.is_verified:
        return VerificationState.VERIFIED
    if document.verified_by is not None:
        return VerificationState.REJECTED
    return VerificationState.PENDING


@dataclass(frozen=True)
class DocumentSnapshot:
    document_id: UUID
    file_id: UUID
    original_name: str
    file_size: int
    mime_type: str | None
    uploaded_at: datetime | None
    is_verified: bool
    verified_by: UUID | None
    verified_at: datetime | None
    verification_remarks: str | None
    verification_state: VerificationState

    @classmethod
    def from_document(cls, document: ApplicationDocument) -> "DocumentSnapshot":
        upload = document.file_upload
        return cls(
            document_id=document.id,
            file_id=document.file_upload_id,
            original_name=document.document_name,
            file_size=upload.file_size if upload is not None else 0,
            mime_type=upload.mime_type if upload is not None else None,
            uploaded_at=upload.uploaded_at if upload is not None else None,
            is_verified=bool(document.is_verified),
            verified_by=document.verified_by,
            verified_at=document.verified_at,
            verification_remarks=document.verification_remarks,
            verification_state=verification_state(document),
        )


@dataclass(frozen=True)
class RequirementRow:
    """One certificate type a program asks for, with the uploaded document if any."""

    certificate_type_id: UUID
    certificate_name: str
    description: str | None
    is_required: bool
    special_instructions: str | None
    allowed_extensions: list[str]
    max_file_size_bytes: int
    display_order: int
    document: DocumentSnapshot | None = None

    @property
    def is_uploaded(self) -> bool:
        return self.document is not None

    @property
    def is_missing(self) -> bool:
        return self.document is None


@dataclass(frozen=True)
class CompletenessReport:
    is_complete: bool
    missing_required: list[str] = field(default_factory=list)
    required_total: int = 0
    required_uploaded: int = 0
    required_verified: int = 0
    optional_uploaded: int = 0


def build_requirement_matrix(
    requirements: list[ProgramCertificateRequirement],
    documents: list[ApplicationDocument],
) -> list[RequirementRow]:
    """
    Outer-join requirements with documents by certificate type.

    Requirements on inactive certificate types are dropped. Documents for
    certificate types the program does not ask for are ignored. Rows are
    ordered by requirement display order, then certificate name.
    """
    documents_by_type = {doc.certificate_type_id: doc for doc in documents}

    active = [req for req in requirements if req.certificate_type.is_active]
    active.sort(key=lambda req: (req.display_order, req.certificate_type.name))

    rows = []
    for req in active:
        cert_type = req.certificate_type
        document = documents_by_type.get(req.certificate_type_id)
        rows.append(
            RequirementRow(
                certificate_type_id=req.certificate_type_id,
                certificate_name=cert_type.name,
                description=cert_type.description,
                is_required=bool(req.is_required),
                special_instructions=req.special_instructions,
                allowed_extensions=sorted(allowed_extensions_for(cert_type)),
                max_file_size_bytes=max_size_for(cert_type),
                display_order=req.display_order,
                document=DocumentSnapshot.from_document(document) if document else None,
            )
        )
    return rows


def evaluate_completeness(rows: list[RequirementRow]) -> CompletenessReport:
    """Complete iff every required row has a document, verified or not."""
    required = [row for row in rows if row.is_required]
    missing = [row.certificate_name for row in required if row.is_missing]

    return CompletenessReport(
        is_complete=not missing,
        missing_required=missing,
        required_total=len(required),
        required_uploaded=len(required) - len(missing),
        required_verified=sum(
            1 for row in required if row.document is not None and row.document.is_verified
        ),
        optional_uploaded=sum(1 for row in rows if not row.is_required and row.is_uploaded),
    )


async def resolve_requirements(db: AsyncSession, application: Application) -> list[RequirementRow]:
    """Requirement matrix for an application. Read-only."""
    requirements = await catalog_repository.get_program_requirements(db, application.program_id)
    documents = await repository.list_for_application(db, application.id)
    return build_requirement_matrix(requirements, documents)
