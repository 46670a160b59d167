"""
File constraints per certificate type.

Pure helpers: the effective allowed extensions and size limit for a
certificate type, falling back to the configured defaults.
"""

from pathlib import PurePath

from admissions.core.config import settings
from admissions.modules.catalog.models import CertificateType

BYTES_PER_MB = 1024 * 1024


def file_extension(filename: str) -> str:
    """Lowercase extension of ``filename`` without the dot ("" if none)."""
    return PurePath(filename).suffix.lower().lstrip(".")


def allowed_extensions_for(certificate_type: CertificateType | None) -> frozenset[str]:
    if certificate_type is not None and certificate_type.allowed_extensions:
        extensions = certificate_type.allowed_extensions
        return frozenset(str(ext).lower().lstrip(".") for ext in extensions)
    return settings.default_allowed_extensions_set


def max_size_for(certificate_type: CertificateType | None) -> int:
    """
    Maximum upload size in bytes.

    Never above the request body cap, since a larger file could not reach
    the service in one piece.
    """
    if certificate_type is not None and certificate_type.max_file_size_mb:
        limit = certificate_type.max_file_size_mb * BYTES_PER_MB
    else:
        limit = settings.max_upload_size_bytes
    return min(limit, settings.max_request_size_bytes)


def is_extension_allowed(filename: str, certificate_type: CertificateType | None) -> bool:
    ext = file_extension(filename)
    return bool(ext) and ext in allowed_extensions_for(certificate_type)
