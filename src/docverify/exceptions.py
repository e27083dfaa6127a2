"""
Exception hierarchy for the verification service.

The core engine never raises for recoverable conditions (missing fields,
checksum failures, OCR timeouts); these exceptions cover caller input and
configuration problems at the service boundary.
"""

from __future__ import annotations


class VerificationError(Exception):
    """Base exception for verification service errors."""

    status_code = 500

    def __init__(self, message: str, error_code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__


class InvalidInputError(VerificationError):
    """Exception raised for malformed caller input."""

    status_code = 400


class ConfigurationError(VerificationError):
    """Exception raised for configuration-related errors."""


class DocumentAcquisitionError(VerificationError):
    """Raised when the OCR collaborator fails to produce text for a document."""

    def __init__(self, index: int, cause: BaseException) -> None:
        super().__init__(f"Document {index} could not be read: {cause}", "OCR_UNAVAILABLE")
        self.index = index
        self.cause = cause
