"""Custom exception classes for identity operations.

Every failure raised by an operation is an ``AppError`` carrying an
``ErrorKind``. The kind, not the raising site, decides the status code
reported to the caller, so the whole mapping lives in ``STATUS_CODES``.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Classification of operation failures."""

    INVALID_INPUT = "invalid_input"
    CREDENTIALS_REJECTED = "credentials_rejected"
    BACKEND_FAILURE = "backend_failure"
    ENCODING_FAILURE = "encoding_failure"


# Validation failures report 500 to stay compatible with existing callers.
# Settings.status_codes() can move them to 400.
STATUS_CODES: dict[ErrorKind, int] = {
    ErrorKind.INVALID_INPUT: 500,
    ErrorKind.CREDENTIALS_REJECTED: 400,
    ErrorKind.BACKEND_FAILURE: 500,
    ErrorKind.ENCODING_FAILURE: 500,
}


class AppError(Exception):
    """Base exception for identity operation errors.

    Attributes:
        message: Human-readable error message, reported in the envelope.
        kind: Failure classification used to pick the status code.
        detail: Optional additional context.
    """

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.BACKEND_FAILURE,
        detail: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.detail = detail

    @property
    def status_code(self) -> int:
        """Default status code for this error's kind."""
        return STATUS_CODES[self.kind]


class ValidationError(AppError):
    """Raised when a required field is missing or malformed.

    Always raised before any collaborator call is made.
    """

    def __init__(self, message: str, field: Optional[str] = None):
        detail = f"Field: {field}" if field else None
        super().__init__(message, kind=ErrorKind.INVALID_INPUT, detail=detail)
        self.field = field


class CredentialsRejectedError(AppError):
    """Raised when the provider rejects a password or a sign-in attempt."""

    def __init__(self, message: str, error_code: Optional[str] = None):
        super().__init__(message, kind=ErrorKind.CREDENTIALS_REJECTED)
        self.error_code = error_code


class BackendError(AppError):
    """Raised when the identity provider or access-policy service fails."""

    def __init__(self, message: str, error_code: Optional[str] = None):
        super().__init__(message, kind=ErrorKind.BACKEND_FAILURE)
        self.error_code = error_code


class EncodingError(AppError):
    """Raised when a response envelope cannot be serialized."""

    def __init__(self, message: str = "Unable to construct JSON"):
        super().__init__(message, kind=ErrorKind.ENCODING_FAILURE)


class ConfigurationError(AppError):
    """Raised when required configuration is missing or invalid."""

    def __init__(self, config_name: str, reason: Optional[str] = None):
        message = f"Invalid configuration: {config_name}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message, kind=ErrorKind.BACKEND_FAILURE)
        self.config_name = config_name
