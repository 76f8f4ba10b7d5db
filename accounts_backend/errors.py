"""
Error taxonomy for the accounts backend.

Handler-level errors derive from ``ApiError`` and carry the HTTP status and
a stable ``ErrorCode`` that is returned to clients. Gateway and credential
errors are plain exceptions; request handlers translate them into
``ApiError`` subclasses so backend messages never reach a response body.
"""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    MISSING_FIELDS = "MISSING_FIELDS"
    MALFORMED_REQUEST = "MALFORMED_REQUEST"
    INVALID_EMAIL = "INVALID_EMAIL"
    PASSWORD_TOO_LONG = "PASSWORD_TOO_LONG"
    MISSING_FILE = "MISSING_FILE"
    TOO_MANY_FILES = "TOO_MANY_FILES"
    EMAIL_EXISTS = "EMAIL_EXISTS"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    INVALID_PASSWORD = "INVALID_PASSWORD"
    UNSUPPORTED_FILE_TYPE = "UNSUPPORTED_FILE_TYPE"
    STORAGE_ERROR = "STORAGE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ApiError(Exception):
    status_code: int = 500
    default_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, code: ErrorCode | None = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code

    def as_dict(self) -> dict:
        return {"message": self.message, "error": self.code.value}


class ValidationError(ApiError):
    status_code = 400
    default_code = ErrorCode.MISSING_FIELDS


class Conflict(ApiError):
    # The public contract reports duplicates as a plain bad request.
    status_code = 400
    default_code = ErrorCode.EMAIL_EXISTS


class NotFound(ApiError):
    status_code = 404
    default_code = ErrorCode.USER_NOT_FOUND


class Unauthorized(ApiError):
    status_code = 401
    default_code = ErrorCode.INVALID_PASSWORD


class UnsupportedMedia(ApiError):
    status_code = 400
    default_code = ErrorCode.UNSUPPORTED_FILE_TYPE


class UnsupportedFileType(UnsupportedMedia):
    """Raised by upload intake when a file fails the image type policy."""


class StorageError(ApiError):
    status_code = 500
    default_code = ErrorCode.STORAGE_ERROR


class StorageUnavailable(Exception):
    """The backing store could not be reached or the query failed."""


class ConstraintViolation(Exception):
    """A write was refused by an integrity constraint."""


class DuplicateEmail(ConstraintViolation):
    """A user with the same email already exists."""


class InvalidCredentialFormat(Exception):
    """A stored password digest is not a valid bcrypt hash."""
