"""
Custom exception classes for the application.

File-level import errors propagate to the caller. Row-level errors
(ResolutionFailure, TransformError, PersistenceError) are captured into
the import outcome and never reach the HTTP layer.
"""

from typing import Optional, Any
from datetime import datetime


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "MALFORMED_INPUT")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.utcnow().isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class ConflictError(AppError):
    """Conflict with existing resource (409)."""

    def __init__(
        self,
        message: str,
        code: str = "CONFLICT",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details
        )


class DuplicateError(ConflictError):
    """Duplicate resource (409)."""

    def __init__(
        self,
        resource: str,
        field: str,
        value: str
    ):
        super().__init__(
            code=f"{resource.upper()}_{field.upper()}_EXISTS",
            message=f"{resource} with this {field} already exists",
            details={field: value}
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# FILE-LEVEL IMPORT ERRORS
# ===================

class MalformedInputError(ValidationError):
    """Uploaded file cannot be parsed at the header level."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="MALFORMED_INPUT",
            message=message,
            details=details
        )


class MissingRequiredFieldsError(ValidationError):
    """Column mapping leaves required fields unmapped."""

    def __init__(self, missing_fields: list[str]):
        self.missing_fields = list(missing_fields)
        super().__init__(
            code="MISSING_REQUIRED_FIELDS",
            message=f"Map the required fields before importing: {', '.join(self.missing_fields)}",
            details={"missing_fields": self.missing_fields}
        )


class UnknownImportTypeError(NotFoundError):
    """No FieldSpec set registered for the import type."""

    def __init__(self, import_type: str):
        super().__init__(
            resource="Import type",
            identifier=import_type,
            code="IMPORT_TYPE_NOT_FOUND"
        )


# ===================
# SESSION ERRORS
# ===================

class ImportSessionNotFoundError(NotFoundError):
    """Import session expired or never existed."""

    def __init__(self, session_id: str):
        super().__init__(
            resource="Import session",
            identifier=session_id,
            code="IMPORT_SESSION_NOT_FOUND"
        )


class InvalidSessionStateError(ConflictError):
    """Operation not allowed in the session's current state."""

    def __init__(self, current_state: str, operation: str, reason: Optional[str] = None):
        message = f"Cannot {operation} while session is {current_state}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(
            code="INVALID_SESSION_STATE",
            message=message,
            details={
                "current_state": current_state,
                "operation": operation,
                "reason": reason,
            }
        )


# ===================
# ROW-LEVEL IMPORT ERRORS
# ===================

class RowError(AppError):
    """Base for failures scoped to a single imported row."""

    def __init__(
        self,
        code: str,
        message: str,
        row_index: Optional[int] = None,
        details: Optional[dict] = None
    ):
        self.row_index = row_index
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details={"row": row_index, **(details or {})}
        )


class ResolutionFailure(RowError):
    """Referenced entity not found and no placeholder may be created."""

    def __init__(self, reason: str, row_index: Optional[int] = None):
        super().__init__(
            code="RESOLUTION_FAILED",
            message=reason,
            row_index=row_index
        )


class TransformError(RowError):
    """Required field could not be coerced."""

    def __init__(
        self,
        field: str,
        message: str,
        row_index: Optional[int] = None,
        value: Optional[str] = None
    ):
        self.field = field
        super().__init__(
            code="TRANSFORM_FAILED",
            message=message,
            row_index=row_index,
            details={"field": field, "value": value}
        )


class PersistenceError(RowError):
    """Store rejected the insert for a row."""

    def __init__(self, message: str, row_index: Optional[int] = None):
        super().__init__(
            code="PERSISTENCE_FAILED",
            message=message,
            row_index=row_index
        )
