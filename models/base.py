"""
Base schemas for all models.
"""

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """
    Base for all schemas.

    Features:
        - Auto-trim whitespace from strings
        - Validate on attribute assignment
        - Allow ORM objects (from_attributes)
    """
    model_config = ConfigDict(
        from_attributes=True,
        str_strip_whitespace=True,
        validate_assignment=True
    )


class CandidateRecord(BaseSchema):
    """
    Insertable form of one imported row.

    Built once by the row transformer and then only inserted or discarded.
    """
    model_config = ConfigDict(frozen=True)

    def to_insert(self) -> dict:
        """Column/value dict ready for the store (JSON-safe values)."""
        return self.model_dump(mode="json", exclude_none=True)
