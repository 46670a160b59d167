"""
Documents Schemas

Pydantic schemas for the requirement matrix, uploads and verification.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from admissions.modules.documents.requirements import VerificationState


class DocumentInfo(BaseModel):
    """The uploaded document of a requirement row."""

    model_config = ConfigDict(from_attributes=True)

    document_id: UUID
    file_id: UUID
    original_name: str
    file_size: int
    mime_type: str | None = None
    uploaded_at: datetime | None = None
    is_verified: bool
    verified_by: UUID | None = None
    verified_at: datetime | None = None
    verification_remarks: str | None = None
    verification_state: VerificationState


class RequirementItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    certificate_type_id: UUID
    certificate_name: str
    description: str | None = None
    is_required: bool
    special_instructions: str | None = None
    allowed_extensions: list[str]
    max_file_size_bytes: int
    is_uploaded: bool
    document: DocumentInfo | None = None


class RequirementMatrixResponse(BaseModel):
    """Response for GET /applications/{id}/requirements."""

    application_id: UUID
    can_edit: bool
    is_complete: bool
    missing_required: list[str]
    required_total: int
    required_uploaded: int
    required_verified: int
    requirements: list[RequirementItem]


class UploadResponse(BaseModel):
    """Response after uploading or replacing a document."""

    document_id: UUID
    application_id: UUID
    certificate_type_id: UUID
    file_id: UUID
    document_name: str
    file_size: int
    replaced: bool = Field(..., description="True if an earlier file was replaced")
    message: str


class VerifyDocumentRequest(BaseModel):
    """Request body for POST /admin/documents/{id}/verify."""

    approve: bool
    remarks: str | None = Field(None, max_length=2000)


class VerifyDocumentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(..., description="Document UUID")
    application_id: UUID
    certificate_type_id: UUID
    is_verified: bool
    verified_by: UUID | None = None
    verified_at: datetime | None = None
    verification_remarks: str | None = None
    verification_state: VerificationState
