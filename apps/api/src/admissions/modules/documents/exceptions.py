"""
Document service errors.

Share the ``ApplicationServiceError`` base so routers translate them the
same way as lifecycle errors.
"""

from uuid import UUID

from admissions.modules.applications.exceptions import ApplicationServiceError


class DocumentNotFoundError(ApplicationServiceError):
    """Raised when a document is not found."""

    def __init__(self, document_id: UUID | None = None):
        message = f"Document {document_id} not found" if document_id else "Document not found"
        super().__init__(
            message=message,
            error_code="DOCUMENT_NOT_FOUND",
            status_code=404,
        )


class InvalidFileTypeError(ApplicationServiceError):
    """Raised when the file extension is not allowed for the certificate type."""

    def __init__(self, extension: str, allowed: list[str]):
        shown = f".{extension}" if extension else "(none)"
        super().__init__(
            message=f"File type {shown} is not allowed. Allowed types: {', '.join(allowed)}",
            error_code="INVALID_FILE_TYPE",
            status_code=400,
            details={"allowed_extensions": allowed},
        )


class FileTooLargeError(ApplicationServiceError):
    """Raised when the file exceeds the size limit."""

    def __init__(self, size: int, max_size: int):
        super().__init__(
            message=(
                f"File is too large ({size} bytes). "
                f"Maximum size is {max_size // (1024 * 1024)}MB."
            ),
            error_code="FILE_TOO_LARGE",
            status_code=413,
            details={"max_size_bytes": max_size},
        )


class UnknownCertificateTypeError(ApplicationServiceError):
    """Raised when the certificate type is inactive or not asked for by the program."""

    def __init__(self, certificate_type_id: UUID):
        super().__init__(
            message=(
                f"Certificate type {certificate_type_id} is not accepted for this application's "
                "program."
            ),
            error_code="UNKNOWN_CERTIFICATE_TYPE",
            status_code=400,
        )


class StorageFailureError(ApplicationServiceError):
    """Raised when the document store cannot write or read a file."""

    def __init__(self, message: str = "Failed to store the uploaded file. Please try again."):
        super().__init__(
            message=message,
            error_code="STORAGE_FAILURE",
            status_code=500,
        )
