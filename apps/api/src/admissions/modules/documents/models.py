"""
Documents Models

Uploaded files and the per-application documents that link them to a
certificate type.
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from admissions.core.database import Base
from admissions.modules.applications.models import Application
from admissions.modules.catalog.models import CertificateType


class FileUpload(Base):
    """
    Metadata of a stored file.

    ``id`` doubles as the opaque storage identifier. Rows are never updated;
    a replacement is a new row.
    """

    __tablename__ = "file_uploads"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    original_name: Mapped[str] = mapped_column(String(255), nullable=False)
    # Key relative to the document store root
    storage_path: Mapped[str] = mapped_column(String(500), unique=True, nullable=False)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    mime_type: Mapped[str | None] = mapped_column(String(100), nullable=True)

    uploaded_by: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (Index("ix_file_uploads_uploaded_at", "uploaded_at"),)


class ApplicationDocument(Base):
    """
    The document an application holds for one certificate type.

    Unique per (application, certificate type). Re-uploading relinks the row
    to a new FileUpload and resets verification.
    """

    __tablename__ = "application_documents"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    application_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
    )
    certificate_type_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("certificate_types.id"),
        nullable=False,
    )
    file_upload_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("file_uploads.id"),
        nullable=False,
    )

    # Original filename as uploaded
    document_name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Verification
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    verified_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    verification_remarks: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    application: Mapped["Application"] = relationship("Application", back_populates="documents")
    certificate_type: Mapped["CertificateType"] = relationship("CertificateType", lazy="joined")
    file_upload: Mapped["FileUpload"] = relationship("FileUpload", lazy="joined")

    __table_args__ = (
        UniqueConstraint(
            "application_id",
            "certificate_type_id",
            name="uq_application_documents_application_type",
        ),
        Index("ix_application_documents_file_upload_id", "file_upload_id"),
    )
