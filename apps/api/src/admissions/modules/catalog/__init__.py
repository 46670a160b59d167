"""
Catalog Module

Programs, certificate types and per-program document requirements.
Maintained by an external catalog collaborator; this API only reads them.
"""

from .models import CertificateType, Program, ProgramCertificateRequirement

__all__ = ["CertificateType", "Program", "ProgramCertificateRequirement"]
