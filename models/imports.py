"""
CSV import schemas.

FieldSpec describes one importable field of a destination table; the rest
are request/response bodies of the import API.
"""

from enum import Enum
from typing import Optional

from pydantic import ConfigDict, Field

from models.base import BaseSchema


class FieldType(str, Enum):
    """How the row transformer coerces a field."""
    TEXT = "text"
    NUMBER = "number"
    INTEGER = "integer"
    DATE = "date"
    BOOLEAN = "boolean"
    REFERENCE = "reference"


class ImportState(str, Enum):
    """Import session lifecycle."""
    AWAITING_FILE = "awaiting_file"
    PREVIEWING = "previewing"
    AWAITING_MAPPING = "awaiting_mapping"
    COMMITTING = "committing"
    COMPLETE = "complete"


class FieldSpec(BaseSchema):
    """
    One importable field.

    db_field is the internal identifier the mapping is keyed by; column is
    the destination column when it differs (e.g. contact_name -> contact_id).
    default applies only when the field is left unmapped.
    """
    model_config = ConfigDict(frozen=True)

    db_field: str = Field(..., min_length=1, description="Internal field identifier")
    display_name: str = Field(..., min_length=1, description="Label shown to the operator")
    required: bool = Field(default=False)
    field_type: FieldType = Field(default=FieldType.TEXT)
    column: Optional[str] = Field(None, description="Destination column if not db_field")
    default: Optional[str] = Field(None, description="Raw value used when unmapped")

    @property
    def target_column(self) -> str:
        return self.column or self.db_field


# ===================
# API SCHEMAS
# ===================

class ImportTypeResponse(BaseSchema):
    """FieldSpec set for one import type."""

    import_type: str
    label: str
    fields: list[FieldSpec]


class UploadPreviewResponse(BaseSchema):
    """Parsed file preview plus the proposed column mapping."""

    session_id: str = Field(..., description="Reference for the mapping and commit calls")
    import_type: str
    headers: list[str]
    preview_rows: list[dict[str, str]] = Field(default_factory=list)
    proposed_mapping: dict[str, Optional[str]]
    total_row_count: int = Field(..., description="Rows that survived parsing")
    dropped_row_count: int = Field(default=0, description="Ragged or blank lines skipped")
    fields: list[FieldSpec]
    warnings: list[str] = Field(default_factory=list)
    expires_in_minutes: int = Field(default=30)


class MappingOverrideRequest(BaseSchema):
    """Point one field at a different source column (or none)."""

    db_field: str = Field(..., min_length=1)
    header: Optional[str] = Field(None, description="Source header, or null to unmap")


class ConfirmMappingRequest(BaseSchema):
    """Operator's final mapping."""

    mapping: dict[str, Optional[str]]


class ConfirmMappingResponse(BaseSchema):
    """Accepted mapping and the token the commit call must present."""

    accepted: bool
    confirmation_token: str
    mapping: dict[str, Optional[str]]


class MappingResponse(BaseSchema):
    """Current (unconfirmed) mapping."""

    session_id: str
    mapping: dict[str, Optional[str]]
    confirmed: bool = False


class CommitRequest(BaseSchema):
    """Start the commit phase."""

    owner_id: int = Field(..., ge=1, description="Caller's user id")
    confirmation_token: str = Field(..., min_length=1)


class ImportErrorDetail(BaseSchema):
    """One failed row."""

    row: int
    message: str


class ImportResultResponse(BaseSchema):
    """
    Commit summary.

    Returned with HTTP 200 whenever commit began; partial failure is
    reported in the payload.
    """

    success: bool
    imported_count: int
    error_count: int
    errors: list[ImportErrorDetail] = Field(default_factory=list)
    message: str
    created_ids: dict[int, int] = Field(default_factory=dict, description="Row index -> created record id")
    placeholders_created: list[int] = Field(default_factory=list, description="Ids of auto-created entities")


class SessionStatusResponse(BaseSchema):
    """Where an import session stands."""

    session_id: str
    import_type: str
    state: ImportState
    total_row_count: int
    mapping: dict[str, Optional[str]]
    mapping_confirmed: bool
    result: Optional[ImportResultResponse] = None
