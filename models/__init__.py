"""
Pydantic models for validation and serialization.
"""

from models.base import (
    BaseSchema,
    CandidateRecord,
)
from models.order import (
    OrderResponse,
    ContactResponse,
)
from models.order_item import OrderItemCreate
from models.quote import QuoteCreate
from models.expense import ExpenseCreate
from models.imports import (
    FieldType,
    FieldSpec,
    ImportState,
    ImportTypeResponse,
    UploadPreviewResponse,
    MappingOverrideRequest,
    ConfirmMappingRequest,
    ConfirmMappingResponse,
    MappingResponse,
    CommitRequest,
    ImportErrorDetail,
    ImportResultResponse,
    SessionStatusResponse,
)

__all__ = [
    # Base
    "BaseSchema",
    "CandidateRecord",

    # Referenced entities
    "OrderResponse",
    "ContactResponse",

    # Destination records
    "OrderItemCreate",
    "QuoteCreate",
    "ExpenseCreate",

    # Imports
    "FieldType",
    "FieldSpec",
    "ImportState",
    "ImportTypeResponse",
    "UploadPreviewResponse",
    "MappingOverrideRequest",
    "ConfirmMappingRequest",
    "ConfirmMappingResponse",
    "MappingResponse",
    "CommitRequest",
    "ImportErrorDetail",
    "ImportResultResponse",
    "SessionStatusResponse",
]
