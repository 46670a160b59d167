"""
Documents Service Layer

Business logic for supporting documents.

This module implements:
1. Requirement matrix:
   - What the program asks for joined with what was uploaded
2. Upload / replace:
   - Validate (type, size, certificate type) before touching storage
   - Write bytes to the document store under a fresh UUID
   - Link them in one transaction holding the application row lock
   - Delete the stored bytes again if anything after the write fails
   - Remove the superseded upload after the new link is committed
3. Verification:
   - Reviewer verdict on a document; never changes the application status
4. Download:
   - File bytes for the owner and the application's reviewers

Consistency:
- File writes are not transactional with the database. The compensating
  delete keeps the store free of unreferenced files on failure; anything
  that still slips through is removed by the orphan reaper job.
"""

import logging
import uuid
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from admissions.core.auth import CurrentUser, Permission
from admissions.core.database import async_session_maker
from admissions.modules.applications import access, lifecycle
from admissions.modules.applications import repository as applications_repository
from admissions.modules.applications.exceptions import (
    ApplicationAccessDeniedError,
    ApplicationNotEditableError,
    ApplicationNotFoundError,
    PersistenceFailureError,
)
from admissions.modules.applications.service import get_application, guarded_transaction
from admissions.modules.catalog import repository as catalog_repository
from admissions.modules.catalog.constraints import (
    allowed_extensions_for,
    file_extension,
    max_size_for,
)
from admissions.modules.documents import repository
from admissions.modules.documents.exceptions import (
    DocumentNotFoundError,
    FileTooLargeError,
    InvalidFileTypeError,
    StorageFailureError,
    UnknownCertificateTypeError,
)
from admissions.modules.documents.models import ApplicationDocument, FileUpload
from admissions.modules.documents.requirements import (
    evaluate_completeness,
    resolve_requirements,
    verification_state,
)
from admissions.modules.documents.schemas import (
    DocumentInfo,
    RequirementItem,
    RequirementMatrixResponse,
    VerifyDocumentResponse,
)
from admissions.modules.documents.storage import DocumentStore, StorageError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadResult:
    """Committed state of an upload, copied out of the ORM rows."""

    document_id: UUID
    application_id: UUID
    certificate_type_id: UUID
    file_id: UUID
    document_name: str
    file_size: int
    replaced_upload_id: UUID | None = None

    @property
    def replaced(self) -> bool:
        return self.replaced_upload_id is not None


# ============================================
# Requirement matrix
# ============================================


async def get_requirement_matrix(
    db: AsyncSession, actor: CurrentUser, application_id: UUID
) -> RequirementMatrixResponse:
    """
    Requirement rows of an application with completeness figures.

    Raises:
        ApplicationNotFoundError, ApplicationAccessDeniedError
    """
    application = await get_application(db, actor, application_id)
    rows = await resolve_requirements(db, application)
    report = evaluate_completeness(rows)

    return RequirementMatrixResponse(
        application_id=application.id,
        can_edit=lifecycle.is_editable(application.status),
        is_complete=report.is_complete,
        missing_required=report.missing_required,
        required_total=report.required_total,
        required_uploaded=report.required_uploaded,
        required_verified=report.required_verified,
        requirements=[
            RequirementItem(
                certificate_type_id=row.certificate_type_id,
                certificate_name=row.certificate_name,
                description=row.description,
                is_required=row.is_required,
                special_instructions=row.special_instructions,
                allowed_extensions=row.allowed_extensions,
                max_file_size_bytes=row.max_file_size_bytes,
                is_uploaded=row.is_uploaded,
                document=DocumentInfo.model_validate(row.document) if row.document else None,
            )
            for row in rows
        ],
    )


# ============================================
# Upload
# ============================================


async def _discard_stored(store: DocumentStore, key: str) -> None:
    try:
        await store.delete(key)
    except StorageError as e:
        logger.error(f"Failed to remove stored file {key} after a failed upload: {e}")


async def _remove_superseded_upload(store: DocumentStore, upload_id: UUID) -> None:
    """
    Delete a replaced upload's bytes, then its row. Failures are left to the reaper.

    Runs in its own session so a failure here never touches the request
    session that committed the replacement.
    """
    try:
        async with async_session_maker() as db:
            upload = await repository.get_file_upload(db, upload_id)
            if upload is None:
                return
            await store.delete(upload.storage_path)
            await repository.delete_file_upload(db, upload_id)
            await db.commit()
        logger.info(f"Removed superseded upload {upload_id}")
    except (StorageError, SQLAlchemyError) as e:
        logger.warning(f"Could not remove superseded upload {upload_id}, leaving it to reaper: {e}")


async def upload_document(
    db: AsyncSession,
    store: DocumentStore,
    actor: CurrentUser,
    application_id: UUID,
    certificate_type_id: UUID,
    content: bytes,
    original_name: str,
    declared_mime_type: str | None = None,
    declared_size: int | None = None,
) -> UploadResult:
    """
    Upload or replace the document of an application for a certificate type.

    Validation happens before anything is written. A replacement resets the
    document's verification.

    Raises:
        ApplicationNotFoundError, ApplicationAccessDeniedError
        ApplicationNotEditableError: If the application is past final submission
        InvalidFileTypeError: If the extension is not allowed
        FileTooLargeError: If the file exceeds the size limit
        UnknownCertificateTypeError: If the program does not ask for this certificate type
        StorageFailureError: If the bytes could not be stored
        PersistenceFailureError: If the database write failed
    """
    application = await applications_repository.get_by_id(db, application_id)
    if application is None:
        raise ApplicationNotFoundError(application_id)
    access.ensure_owner(actor, application)
    if not actor.can(Permission.EDIT_OWN_APPLICATION):
        raise ApplicationAccessDeniedError()
    if not lifecycle.is_editable(application.status):
        logger.warning(f"Upload to application {application.id} in status {application.status}")
        raise ApplicationNotEditableError(application.status)

    certificate_type = await catalog_repository.get_certificate_type(db, certificate_type_id)

    extension = file_extension(original_name)
    allowed = allowed_extensions_for(certificate_type)
    if extension not in allowed:
        logger.warning(f"Rejected upload with extension '{extension}' for {certificate_type_id}")
        raise InvalidFileTypeError(extension, sorted(allowed))

    size = max(len(content), declared_size or 0)
    max_size = max_size_for(certificate_type)
    if size > max_size:
        logger.warning(f"Rejected upload of {size} bytes (limit {max_size}) for {application.id}")
        raise FileTooLargeError(size, max_size)

    requirement = await catalog_repository.get_requirement(
        db, application.program_id, certificate_type_id
    )
    if requirement is None:
        logger.warning(
            f"Certificate type {certificate_type_id} not accepted for program "
            f"{application.program_id}"
        )
        raise UnknownCertificateTypeError(certificate_type_id)

    upload_id = uuid.uuid4()
    key = f"{application.user_id}/{upload_id}.{extension}"
    try:
        stored = await store.save(key, content)
    except StorageError as e:
        logger.error(f"Failed to store upload for application {application.id}: {e}")
        # A failed write may still have left a partial file behind
        await _discard_stored(store, key)
        raise StorageFailureError() from e

    replaced_upload_id: UUID | None = None
    try:
        locked = await applications_repository.get_for_update(db, application.id)
        if locked is None:
            raise ApplicationNotFoundError(application.id)
        # Status may have changed while the bytes were being written
        if not lifecycle.is_editable(locked.status):
            raise ApplicationNotEditableError(locked.status)

        upload = await repository.create_file_upload(
            db,
            upload_id=upload_id,
            original_name=original_name,
            storage_path=stored.key,
            file_size=stored.size,
            mime_type=declared_mime_type,
            uploaded_by=actor.id,
        )

        document = await repository.get_for_update(db, application.id, certificate_type_id)
        if document is not None:
            replaced_upload_id = document.file_upload_id
            await repository.relink_document(db, document, upload, original_name)
        else:
            document = await repository.create_document(
                db,
                application_id=application.id,
                certificate_type_id=certificate_type_id,
                upload=upload,
                document_name=original_name,
            )

        await db.commit()
        result = UploadResult(
            document_id=document.id,
            application_id=document.application_id,
            certificate_type_id=document.certificate_type_id,
            file_id=upload.id,
            document_name=document.document_name,
            file_size=upload.file_size,
            replaced_upload_id=replaced_upload_id,
        )
    except SQLAlchemyError as e:
        await db.rollback()
        await _discard_stored(store, key)
        logger.exception(
            f"Failed to save upload: application={application.id}, "
            f"certificate_type={certificate_type_id}, file={upload_id}: {e}"
        )
        raise PersistenceFailureError() from e
    except BaseException:
        await db.rollback()
        await _discard_stored(store, key)
        raise

    logger.info(
        f"Document {'replaced' if replaced_upload_id else 'uploaded'}: "
        f"application={application.id}, certificate_type={certificate_type_id}, file={upload_id}"
    )

    if replaced_upload_id is not None:
        await _remove_superseded_upload(store, replaced_upload_id)

    return result


# ============================================
# Verification
# ============================================


def to_verify_response(document: ApplicationDocument) -> VerifyDocumentResponse:
    return VerifyDocumentResponse(
        id=document.id,
        application_id=document.application_id,
        certificate_type_id=document.certificate_type_id,
        is_verified=document.is_verified,
        verified_by=document.verified_by,
        verified_at=document.verified_at,
        verification_remarks=document.verification_remarks,
        verification_state=verification_state(document),
    )


async def verify_document(
    db: AsyncSession,
    actor: CurrentUser,
    document_id: UUID,
    approve: bool,
    remarks: str | None = None,
) -> ApplicationDocument:
    """
    Record a reviewer's verdict on a document.

    Only the document's verification fields change; the file and the
    application status are untouched.

    Raises:
        DocumentNotFoundError
        ApplicationAccessDeniedError: If the actor does not review this program
    """
    if not actor.can(Permission.MANAGE_APPLICATIONS):
        raise ApplicationAccessDeniedError("You are not allowed to verify documents.")

    document = await repository.get_document(db, document_id)
    if document is None:
        raise DocumentNotFoundError(document_id)

    application = await applications_repository.get_by_id(db, document.application_id)
    if application is None:
        raise ApplicationNotFoundError(document.application_id)
    access.ensure_can_review(actor, application)

    async with guarded_transaction(db, f"verification of document {document_id}"):
        await repository.set_verification(
            db,
            document,
            is_verified=approve,
            verified_by=actor.id,
            remarks=remarks,
        )
        await db.commit()

    logger.info(
        f"Document {document_id} {'verified' if approve else 'rejected'} by {actor.id} "
        f"(application {application.id})"
    )
    return document


# ============================================
# Download
# ============================================


async def get_document_file(
    db: AsyncSession,
    store: DocumentStore,
    actor: CurrentUser,
    application_id: UUID,
    document_id: UUID,
) -> tuple[FileUpload, bytes]:
    """
    Metadata and bytes of a document's current file.

    Raises:
        ApplicationNotFoundError, ApplicationAccessDeniedError, DocumentNotFoundError
        StorageFailureError: If the stored file cannot be read
    """
    application = await get_application(db, actor, application_id)

    document = await repository.get_document(db, document_id)
    if document is None or document.application_id != application.id:
        raise DocumentNotFoundError(document_id)

    upload = document.file_upload
    try:
        content = await store.read(upload.storage_path)
    except StorageError as e:
        logger.error(f"Failed to read file {upload.id} of document {document_id}: {e}")
        raise StorageFailureError("The stored file could not be read.") from e

    return upload, content
