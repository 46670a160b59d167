"""
Documents Repository

Database operations for file uploads and application documents.

Design Principles:
- Only database operations, no business logic
- Functions flush; the calling service owns commit and rollback
- Row locks use FOR UPDATE OF the target table (eager joins are outer joins)
"""

from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import delete, exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import ApplicationDocument, FileUpload


async def list_for_application(db: AsyncSession, application_id: UUID) -> list[ApplicationDocument]:
    """All documents of an application, with certificate type and file loaded."""
    result = await db.execute(
        select(ApplicationDocument).where(ApplicationDocument.application_id == application_id)
    )
    return list(result.unique().scalars().all())


async def get_document(db: AsyncSession, document_id: UUID) -> ApplicationDocument | None:
    """Get document by ID."""
    return await db.get(ApplicationDocument, document_id)


async def get_for_update(
    db: AsyncSession, application_id: UUID, certificate_type_id: UUID
) -> ApplicationDocument | None:
    """Lock and return the document of an application for a certificate type, if any."""
    result = await db.execute(
        select(ApplicationDocument)
        .where(
            ApplicationDocument.application_id == application_id,
            ApplicationDocument.certificate_type_id == certificate_type_id,
        )
        .with_for_update(of=ApplicationDocument)
        .execution_options(populate_existing=True)
    )
    return result.unique().scalar_one_or_none()


async def create_file_upload(
    db: AsyncSession,
    *,
    upload_id: UUID,
    original_name: str,
    storage_path: str,
    file_size: int,
    mime_type: str | None,
    uploaded_by: UUID,
) -> FileUpload:
    """Insert file metadata for bytes already written to the store."""
    upload = FileUpload(
        id=upload_id,
        original_name=original_name,
        storage_path=storage_path,
        file_size=file_size,
        mime_type=mime_type,
        uploaded_by=uploaded_by,
    )
    db.add(upload)
    await db.flush()
    return upload


async def create_document(
    db: AsyncSession,
    *,
    application_id: UUID,
    certificate_type_id: UUID,
    upload: FileUpload,
    document_name: str,
) -> ApplicationDocument:
    """Insert an unverified document linking an application to an upload."""
    document = ApplicationDocument(
        application_id=application_id,
        certificate_type_id=certificate_type_id,
        file_upload_id=upload.id,
        document_name=document_name,
        is_verified=False,
    )
    db.add(document)
    await db.flush()
    return document


async def relink_document(
    db: AsyncSession,
    document: ApplicationDocument,
    upload: FileUpload,
    document_name: str,
) -> ApplicationDocument:
    """
    Point an existing document at a new upload.

    A replaced file has not been reviewed, so verification is cleared.
    """
    document.file_upload_id = upload.id
    document.file_upload = upload
    document.document_name = document_name
    document.is_verified = False
    document.verified_by = None
    document.verified_at = None
    document.verification_remarks = None
    document.updated_at = datetime.now(UTC)
    await db.flush()
    return document


async def set_verification(
    db: AsyncSession,
    document: ApplicationDocument,
    *,
    is_verified: bool,
    verified_by: UUID,
    remarks: str | None,
) -> ApplicationDocument:
    """Record a reviewer's verdict on a document."""
    document.is_verified = is_verified
    document.verified_by = verified_by
    document.verified_at = datetime.now(UTC)
    document.verification_remarks = remarks
    document.updated_at = datetime.now(UTC)
    await db.flush()
    return document


async def get_file_upload(db: AsyncSession, upload_id: UUID) -> FileUpload | None:
    return await db.get(FileUpload, upload_id)


async def is_upload_linked(db: AsyncSession, upload_id: UUID) -> bool:
    result = await db.execute(
        select(exists().where(ApplicationDocument.file_upload_id == upload_id))
    )
    return bool(result.scalar())


async def delete_file_upload(db: AsyncSession, upload_id: UUID) -> int:
    """
    Delete an upload row unless a document still links it.

    Returns:
        Number of rows deleted (0 or 1)
    """
    result = await db.execute(
        delete(FileUpload).where(
            FileUpload.id == upload_id,
            ~exists().where(ApplicationDocument.file_upload_id == FileUpload.id),
        )
    )
    await db.flush()
    return result.rowcount or 0


async def list_orphaned_uploads(
    db: AsyncSession,
    uploaded_before: datetime,
    limit: int = 500,
) -> list[FileUpload]:
    """
    Uploads no document links to, older than ``uploaded_before``.

    The age cut-off leaves room for uploads whose transaction is still open.
    """
    result = await db.execute(
        select(FileUpload)
        .where(
            FileUpload.uploaded_at < uploaded_before,
            ~exists().where(ApplicationDocument.file_upload_id == FileUpload.id),
        )
        .order_by(FileUpload.uploaded_at)
        .limit(limit)
    )
    return list(result.scalars().all())
