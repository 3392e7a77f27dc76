"""
Custom exceptions for the LIS core.

Services raise these internally; public operations convert them into
value-level results (see ``lis.core.results``) before they reach a caller.
"""

from typing import Optional, Any, Dict

from .enums import ErrorKind


class LISException(Exception):
    """Base exception for all LIS errors."""

    kind: ErrorKind = ErrorKind.INVALID_INPUT
    default_code: str = "LIS_ERROR"

    def __init__(self, message: str, error_code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code
        self.details = details or {}


class ValidationError(LISException):
    """Raised when input data fails validation."""
    default_code = "INVALID_INPUT"


class ResourceNotFoundError(LISException):
    """Raised when a referenced professor, student, course, lecture or assessment does not exist."""
    kind = ErrorKind.NOT_FOUND
    default_code = "NOT_FOUND"


class DuplicateEmailError(LISException):
    """Raised when registering an email already used within the same role."""
    kind = ErrorKind.CONFLICT
    default_code = "DUPLICATE_EMAIL"


class InvalidCodeError(LISException):
    """Raised when an enrollment code matches no course."""
    default_code = "INVALID_CODE"


class AlreadyEnrolledError(LISException):
    """Raised when a student redeems a code for a course they are already in."""
    kind = ErrorKind.CONFLICT
    default_code = "ALREADY_ENROLLED"


class NotEnrolledError(LISException):
    """Raised when a student acts on a course they are not enrolled in."""
    kind = ErrorKind.CONFLICT
    default_code = "NOT_ENROLLED"


class IllegalTransitionError(LISException):
    """Raised when a lecture status change is not a legal forward step."""
    kind = ErrorKind.CONFLICT
    default_code = "ILLEGAL_TRANSITION"


class DuplicateFeedbackError(LISException):
    """Raised when a student submits feedback twice for the same lecture."""
    kind = ErrorKind.CONFLICT
    default_code = "DUPLICATE_FEEDBACK"


class LectureNotCompletedError(LISException):
    """Raised when feedback targets a lecture that has not completed yet."""
    kind = ErrorKind.CONFLICT
    default_code = "LECTURE_NOT_COMPLETED"


class ConfigurationError(LISException):
    """Raised when configuration is missing or invalid."""
    default_code = "CONFIGURATION_ERROR"


class InsightAnalysisError(LISException):
    """Raised by insight analyzers; always recovered by the local fallback."""
    default_code = "INSIGHT_ANALYSIS_FAILED"
