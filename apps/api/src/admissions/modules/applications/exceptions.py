"""
Service errors for the admissions workflow.

Every error carries a stable ``error_code`` and the HTTP status the routers
answer with. ``details`` holds extra fields merged into the error body.
"""

from typing import Any
from uuid import UUID

from admissions.modules.applications.models import ApplicationStatus


class ApplicationServiceError(Exception):
    """Base exception for admissions service errors."""

    def __init__(
        self,
        message: str,
        error_code: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ApplicationNotFoundError(ApplicationServiceError):
    """Raised when an application is not found."""

    def __init__(self, application_id: UUID | None = None):
        message = (
            f"Application {application_id} not found" if application_id else "Application not found"
        )
        super().__init__(
            message=message,
            error_code="APPLICATION_NOT_FOUND",
            status_code=404,
        )


class ProgramNotFoundError(ApplicationServiceError):
    """Raised when a program does not exist or is not accepting applications."""

    def __init__(self, program_id: UUID):
        super().__init__(
            message=f"Program {program_id} not found or not accepting applications",
            error_code="PROGRAM_NOT_FOUND",
            status_code=404,
        )


class ApplicationAccessDeniedError(ApplicationServiceError):
    """Raised when the caller may not act on an application."""

    def __init__(self, message: str = "You do not have access to this application."):
        super().__init__(
            message=message,
            error_code="ACCESS_DENIED",
            status_code=403,
        )


class ApplicationNotEditableError(ApplicationServiceError):
    """Raised when documents are changed on an application that is no longer editable."""

    def __init__(self, status: ApplicationStatus):
        self.status = status
        super().__init__(
            message=f"Application can no longer be edited (status: {status.value}).",
            error_code="APPLICATION_NOT_EDITABLE",
            status_code=409,
        )


class InvalidTransitionError(ApplicationServiceError):
    """Raised when a status change is not allowed from the current status."""

    def __init__(
        self,
        current_status: ApplicationStatus,
        new_status: ApplicationStatus,
        valid_transitions: set[ApplicationStatus] | frozenset[ApplicationStatus] = frozenset(),
    ):
        self.current_status = current_status
        self.new_status = new_status
        super().__init__(
            message=(
                f"Invalid status transition: {current_status.value} -> {new_status.value}. "
                f"Valid transitions: {sorted(s.value for s in valid_transitions)}"
            ),
            error_code="INVALID_TRANSITION",
            status_code=409,
            details={
                "current_status": current_status.value,
                "requested_status": new_status.value,
            },
        )


class DeclarationRequiredError(ApplicationServiceError):
    """Raised when final submission is attempted without accepting the declaration."""

    def __init__(self):
        super().__init__(
            message="You must accept the declaration before final submission.",
            error_code="DECLARATION_REQUIRED",
            status_code=400,
        )


class IncompleteApplicationError(ApplicationServiceError):
    """Raised when final submission is attempted with required documents missing."""

    def __init__(self, missing_documents: list[str]):
        self.missing_documents = list(missing_documents)
        super().__init__(
            message=(
                "Please upload all required documents before final submission. Missing: "
                + ", ".join(self.missing_documents)
            ),
            error_code="INCOMPLETE_APPLICATION",
            status_code=409,
            details={"missing_documents": self.missing_documents},
        )


class DuplicateApplicationError(ApplicationServiceError):
    """Raised when the student already has an application for the academic year."""

    def __init__(self, academic_year: str):
        super().__init__(
            message=f"You already have an application for the {academic_year} academic year.",
            error_code="DUPLICATE_APPLICATION",
            status_code=409,
        )


class PersistenceFailureError(ApplicationServiceError):
    """Raised when the database rejects a write; the transaction has been rolled back."""

    def __init__(self, message: str = "Failed to save changes. Please try again."):
        super().__init__(
            message=message,
            error_code="PERSISTENCE_FAILURE",
            status_code=500,
        )
