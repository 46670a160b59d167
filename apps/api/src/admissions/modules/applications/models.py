"""
Applications Models

A student's admission application and its append-only status history.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    BigInteger,
    DateTime,
    Enum,
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
from admissions.modules.catalog.models import Program


class ApplicationStatus(str, enum.Enum):
    """Status of an admission application."""

    DRAFT = "draft"
    SUBMITTED = "submitted"
    FROZEN = "frozen"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"


# Stored by value ("draft", ...) and shared by the application and history tables
_STATUS_ENUM = Enum(
    ApplicationStatus,
    name="application_status",
    values_callable=lambda statuses: [s.value for s in statuses],
)


class Application(Base):
    """
    Admission application.

    At most one per (user, academic year). Never hard-deleted; owns its
    documents and status history.
    """

    __tablename__ = "applications"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # Owning student (users live in the auth service, so no FK constraint)
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    program_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("programs.id"), nullable=False
    )
    academic_year: Mapped[str] = mapped_column(String(20), nullable=False)

    # Assigned on creation, never changed afterwards
    application_number: Mapped[str] = mapped_column(String(40), unique=True, nullable=False)

    status: Mapped[ApplicationStatus] = mapped_column(
        _STATUS_ENUM,
        nullable=False,
        default=ApplicationStatus.DRAFT,
    )

    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    frozen_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reviewed_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    decided_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    decision_remarks: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    program: Mapped["Program"] = relationship("Program", lazy="joined")
    documents: Mapped[list["ApplicationDocument"]] = relationship(
        "ApplicationDocument", back_populates="application", cascade="all, delete-orphan"
    )
    status_history: Mapped[list["StatusHistoryEntry"]] = relationship(
        "StatusHistoryEntry",
        back_populates="application",
        cascade="all, delete-orphan",
        order_by="StatusHistoryEntry.id",
    )

    __table_args__ = (
        UniqueConstraint("user_id", "academic_year", name="uq_applications_user_year"),
        Index("ix_applications_status", "status"),
        Index("ix_applications_program_id", "program_id"),
    )


class StatusHistoryEntry(Base):
    """
    One status change of an application.

    Append-only. ``id`` is monotonic, so ordering by it gives the order in
    which transitions were committed.
    """

    __tablename__ = "application_status_history"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)

    application_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
    )

    from_status: Mapped[ApplicationStatus] = mapped_column(
        _STATUS_ENUM,
        nullable=False,
    )
    to_status: Mapped[ApplicationStatus] = mapped_column(
        _STATUS_ENUM,
        nullable=False,
    )

    changed_by: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    application: Mapped["Application"] = relationship(
        "Application", back_populates="status_history"
    )

    __table_args__ = (Index("ix_application_status_history_application_id", "application_id"),)


# Register the document models so the string relationships above resolve
import admissions.modules.documents.models  # noqa: E402,F401
