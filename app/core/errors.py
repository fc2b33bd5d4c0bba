"""
Error taxonomy for the job board API.

Every error raised by services, repositories and dependencies derives from
``AppError``. The exception handlers in ``app.main`` turn them into the
standard response envelope::

    {"status": "fail" | "error", "message": "...", "code": "...", "errors": [...]}
"""

from enum import Enum
from typing import List, Optional


class ErrorCode(str, Enum):
    """Stable machine-readable error codes."""
    VALIDATION_FAILED = "VALIDATION_FAILED"
    RESUME_REQUIRED = "RESUME_REQUIRED"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    TOO_MANY_FILES = "TOO_MANY_FILES"
    UNEXPECTED_FIELD = "UNEXPECTED_FIELD"
    INVALID_FILE_TYPE = "INVALID_FILE_TYPE"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    JOB_NOT_FOUND = "JOB_NOT_FOUND"
    APPLICATION_NOT_FOUND = "APPLICATION_NOT_FOUND"
    CONFLICT = "CONFLICT"
    DUPLICATE_APPLICATION = "DUPLICATE_APPLICATION"
    RATE_LIMITED = "RATE_LIMITED"
    INTERNAL = "INTERNAL"


class AppError(Exception):
    """Base exception carrying an HTTP status and a client-safe message."""

    status_code: int = 500
    code: ErrorCode = ErrorCode.INTERNAL

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        self.message = message
        self.errors = errors or []
        super().__init__(message)

    @property
    def status(self) -> str:
        return "fail" if 400 <= self.status_code < 500 else "error"

    def to_dict(self) -> dict:
        body = {
            "status": self.status,
            "message": self.message,
            "code": self.code.value,
        }
        if self.errors:
            body["errors"] = list(self.errors)
        return body


class ValidationFailed(AppError):
    status_code = 400
    code = ErrorCode.VALIDATION_FAILED


class ResumeRequired(ValidationFailed):
    code = ErrorCode.RESUME_REQUIRED

    def __init__(self, message: str = "Resume file is required"):
        super().__init__(message)


class FileTooLarge(ValidationFailed):
    code = ErrorCode.FILE_TOO_LARGE


class TooManyFiles(ValidationFailed):
    code = ErrorCode.TOO_MANY_FILES


class UnexpectedField(ValidationFailed):
    code = ErrorCode.UNEXPECTED_FIELD


class InvalidFileType(ValidationFailed):
    code = ErrorCode.INVALID_FILE_TYPE


class InvalidStatusTransition(ValidationFailed):
    code = ErrorCode.INVALID_STATUS_TRANSITION


class Unauthenticated(AppError):
    status_code = 401
    code = ErrorCode.UNAUTHENTICATED


class Forbidden(AppError):
    status_code = 403
    code = ErrorCode.FORBIDDEN


class NotFound(AppError):
    status_code = 404
    code = ErrorCode.NOT_FOUND


class JobNotFound(NotFound):
    code = ErrorCode.JOB_NOT_FOUND

    def __init__(self, message: str = "Job not found"):
        super().__init__(message)


class ApplicationNotFound(NotFound):
    code = ErrorCode.APPLICATION_NOT_FOUND

    def __init__(self, message: str = "Application not found"):
        super().__init__(message)


class Conflict(AppError):
    status_code = 409
    code = ErrorCode.CONFLICT


class DuplicateApplication(Conflict):
    code = ErrorCode.DUPLICATE_APPLICATION

    def __init__(self, message: str = "You have already applied for this job"):
        super().__init__(message)


class RateLimited(AppError):
    status_code = 429
    code = ErrorCode.RATE_LIMITED


class Internal(AppError):
    status_code = 500
    code = ErrorCode.INTERNAL

    def __init__(self, message: str = "Something went wrong. Please try again later."):
        super().__init__(message)


def validation_messages(exc) -> List[str]:
    """
    Flatten a pydantic ``ValidationError`` (or FastAPI's
    ``RequestValidationError``) into "field: message" strings.
    """
    out = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        field = ".".join(loc)
        msg = err.get("msg", "Invalid value")
        out.append(f"{field}: {msg}" if field else msg)
    return out
