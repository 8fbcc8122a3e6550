"""
Business logic services.

The CSV import pipeline: column mapping, entity resolution, row
transformation and batch commit, driven by an import session.
"""

from services.column_mapper import (
    ColumnMapping,
    MappingStrategy,
    propose_mapping,
    apply_override,
    validate_mapping,
)
from services.entity_resolver import (
    EntityResolver,
    ResolutionResult,
    Matched,
    Created,
    Failed,
)
from services.row_transformer import RowTransformer
from services.batch_committer import BatchCommitter, ImportOutcome, RowFailure
from services.repositories import RecordRepository, OrderRepository, ContactRepository
from services.import_profiles import ImportProfile, get_profile, list_profiles
from services.import_session import ImportSession
from services.import_history_service import ImportHistoryService, get_import_history_service

__all__ = [
    "ColumnMapping",
    "MappingStrategy",
    "propose_mapping",
    "apply_override",
    "validate_mapping",
    "EntityResolver",
    "ResolutionResult",
    "Matched",
    "Created",
    "Failed",
    "RowTransformer",
    "BatchCommitter",
    "ImportOutcome",
    "RowFailure",
    "RecordRepository",
    "OrderRepository",
    "ContactRepository",
    "ImportProfile",
    "get_profile",
    "list_profiles",
    "ImportSession",
    "ImportHistoryService",
    "get_import_history_service",
]
