"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ConflictError,
    DuplicateError,
    DatabaseError,

    # File-level import errors
    MalformedInputError,
    MissingRequiredFieldsError,
    UnknownImportTypeError,

    # Sessions
    ImportSessionNotFoundError,
    InvalidSessionStateError,

    # Row-level import errors
    RowError,
    ResolutionFailure,
    TransformError,
    PersistenceError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "DuplicateError",
    "DatabaseError",

    # File-level
    "MalformedInputError",
    "MissingRequiredFieldsError",
    "UnknownImportTypeError",

    # Sessions
    "ImportSessionNotFoundError",
    "InvalidSessionStateError",

    # Row-level
    "RowError",
    "ResolutionFailure",
    "TransformError",
    "PersistenceError",
]
