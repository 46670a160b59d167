"""
Catalog Models

Reference data the admissions workflow reads but does not manage:
programs, certificate types and each program's document requirements.
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSON, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from admissions.core.database import Base


class Program(Base):
    """An admission program students apply to."""

    __tablename__ = "programs"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # Short code used as the application number prefix
    code: Mapped[str | None] = mapped_column(String(20), unique=True, nullable=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)

    # Program admin allowed to review this program's applications
    # Note: users live in the auth service, so no FK constraint
    program_admin_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    requirements: Mapped[list["ProgramCertificateRequirement"]] = relationship(
        "ProgramCertificateRequirement",
        back_populates="program",
        cascade="all, delete-orphan",
    )


class CertificateType(Base):
    """
    A category of supporting document (e.g. "Income Certificate").

    ``allowed_extensions`` is a list of lowercase extensions without dots;
    an empty list means the configured default set. ``max_file_size_mb``
    of None means the configured default size limit.
    """

    __tablename__ = "certificate_types"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    name: Mapped[str] = mapped_column(String(150), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    allowed_extensions: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    max_file_size_mb: Mapped[int | None] = mapped_column(Integer, nullable=True)

    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class ProgramCertificateRequirement(Base):
    """A program's declaration that a certificate type is required or optional."""

    __tablename__ = "program_certificate_requirements"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    program_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("programs.id", ondelete="CASCADE"),
        nullable=False,
    )
    certificate_type_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("certificate_types.id", ondelete="CASCADE"),
        nullable=False,
    )

    is_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    special_instructions: Mapped[str | None] = mapped_column(Text, nullable=True)

    program: Mapped["Program"] = relationship("Program", back_populates="requirements")
    certificate_type: Mapped["CertificateType"] = relationship("CertificateType", lazy="joined")

    __table_args__ = (
        UniqueConstraint(
            "program_id",
            "certificate_type_id",
            name="uq_program_certificate_requirements_program_type",
        ),
        Index("ix_program_certificate_requirements_program_id", "program_id"),
    )
