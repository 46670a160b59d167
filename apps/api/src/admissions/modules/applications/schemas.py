"""
Applications Schemas

Pydantic schemas for request validation and response serialization.
"""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from admissions.modules.applications.models import ApplicationStatus


class ApplicationCreate(BaseModel):
    """Request body for POST /applications."""

    program_id: UUID
    academic_year: str | None = Field(
        None,
        min_length=4,
        max_length=20,
        description="Defaults to the current admission cycle",
        json_schema_extra={"example": "2025-26"},
    )


class ApplicationResponse(BaseModel):
    """An application as seen by its owner or a reviewer."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    application_number: str
    user_id: UUID
    program_id: UUID
    program_name: str | None = None
    academic_year: str
    status: ApplicationStatus
    status_label: str
    can_edit: bool = Field(..., description="Whether documents can still be uploaded or replaced")
    submitted_at: datetime | None = None
    frozen_at: datetime | None = None
    reviewed_at: datetime | None = None
    reviewed_by: UUID | None = None
    decided_at: datetime | None = None
    decision_remarks: str | None = None
    created_at: datetime
    updated_at: datetime


class FreezeRequest(BaseModel):
    """Request body for final submission."""

    declaration_accepted: bool = Field(
        False, description="The student confirms the information and documents are correct"
    )


class TransitionResponse(BaseModel):
    """Response after a status change."""

    id: UUID = Field(..., description="Application UUID")
    status: ApplicationStatus = Field(..., description="Updated status")
    message: str


class StatusHistoryItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    from_status: ApplicationStatus
    to_status: ApplicationStatus
    changed_by: UUID
    remarks: str | None = None
    changed_at: datetime


class StatusHistoryResponse(BaseModel):
    application_id: UUID
    history: list[StatusHistoryItem]


class StatusStep(BaseModel):
    """A single step in the application progress."""

    key: str
    name: str
    completed: bool
    completed_at: datetime | None = None


class CompletionSummary(BaseModel):
    """Document completion counts."""

    is_complete: bool
    required_total: int
    required_uploaded: int
    required_verified: int
    optional_uploaded: int
    missing_required: list[str]


class ApplicationStatusResponse(BaseModel):
    """Response for GET /applications/{id}/status."""

    id: UUID
    application_number: str
    status: ApplicationStatus
    status_label: str
    status_description: str
    status_color: str
    status_icon: str
    progress: int = Field(..., ge=0, le=100)
    can_edit: bool
    steps: list[StatusStep]
    documents: CompletionSummary


# ============================================
# Reviewer Schemas
# ============================================


class ApplicationListItem(BaseModel):
    """Application summary for the reviewer list view."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(..., description="Application UUID")
    application_number: str
    user_id: UUID = Field(..., description="Owning student")
    program_id: UUID
    academic_year: str
    status: ApplicationStatus = Field(..., description="Current application status")
    submitted_at: datetime | None = None
    frozen_at: datetime | None = None
    reviewed_at: datetime | None = Field(None, description="When review started")
    reviewed_by: UUID | None = Field(None, description="Reviewer who started the review")


class ApplicationListResponse(BaseModel):
    """Paginated list of applications."""

    applications: list[ApplicationListItem]
    total: int = Field(..., ge=0, description="Total number of applications matching filters")
    skip: int = Field(..., ge=0, description="Number of records skipped")
    limit: int = Field(..., ge=1, le=100, description="Maximum records per page")


class DecisionRequest(BaseModel):
    """Request body for POST /admin/applications/{id}/decision."""

    decision: Literal["approved", "rejected"]
    remarks: str | None = Field(
        None,
        max_length=2000,
        json_schema_extra={"example": "All documents verified. Meets eligibility criteria."},
    )


class StartReviewResponse(BaseModel):
    """Response after starting review of an application."""

    id: UUID = Field(..., description="Application UUID")
    status: ApplicationStatus = Field(..., description="Updated status (under_review)")
    reviewed_by: UUID = Field(..., description="Reviewer who started the review")
    reviewed_at: datetime = Field(..., description="When review started")
    message: str = Field(
        default="Application is now under review",
        description="Success message",
    )


class DecisionResponse(BaseModel):
    """Response after approving or rejecting an application."""

    id: UUID = Field(..., description="Application UUID")
    status: ApplicationStatus = Field(..., description="Updated status (approved or rejected)")
    decided_at: datetime
    remarks: str | None = None
    message: str
