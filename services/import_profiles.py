"""
Registry of import types.

An ImportProfile ties a FieldSpec set to its destination table, record
model and (when rows refer to another entity) the resolver for that
reference.
"""

from dataclasses import dataclass
from typing import Callable, Optional, Type

from config.import_fields import (
    EXPENSE_FIELDS,
    ORDER_ITEM_FIELDS,
    ORDER_NUMBER_PATTERN,
    QUOTE_FIELDS,
)
from exceptions import UnknownImportTypeError
from models.base import CandidateRecord
from models.expense import ExpenseCreate
from models.imports import FieldSpec, ImportTypeResponse
from models.order_item import OrderItemCreate
from models.quote import QuoteCreate
from services.entity_resolver import EntityResolver
from services.repositories import ContactRepository, OrderRepository, RecordRepository


@dataclass(frozen=True)
class ImportProfile:
    """
    Everything the pipeline needs to know about one import type.

    reference_field names the REFERENCE FieldSpec, if any; make_resolver
    builds a fresh resolver for each commit batch.
    """
    import_type: str
    label: str
    table: str
    fields: tuple[FieldSpec, ...]
    record_model: Type[CandidateRecord]
    owner_column: Optional[str] = None
    reference_field: Optional[str] = None
    make_resolver: Optional[Callable[[], EntityResolver]] = None

    def field(self, db_field: str) -> Optional[FieldSpec]:
        for spec in self.fields:
            if spec.db_field == db_field:
                return spec
        return None

    def make_repository(self) -> RecordRepository:
        return RecordRepository(self.table)

    def describe(self) -> ImportTypeResponse:
        return ImportTypeResponse(
            import_type=self.import_type,
            label=self.label,
            fields=list(self.fields)
        )


def _order_resolver() -> EntityResolver:
    return EntityResolver(OrderRepository(), placeholder_key_pattern=ORDER_NUMBER_PATTERN)


def _contact_resolver() -> EntityResolver:
    return EntityResolver(ContactRepository())


PROFILES: dict[str, ImportProfile] = {
    profile.import_type: profile
    for profile in (
        ImportProfile(
            import_type="order-items",
            label="order items",
            table="order_items",
            fields=ORDER_ITEM_FIELDS,
            record_model=OrderItemCreate,
            reference_field="order_id",
            make_resolver=_order_resolver,
        ),
        ImportProfile(
            import_type="quotes",
            label="quotes",
            table="quotes",
            fields=QUOTE_FIELDS,
            record_model=QuoteCreate,
            owner_column="user_id",
            reference_field="contact_name",
            make_resolver=_contact_resolver,
        ),
        ImportProfile(
            import_type="expenses",
            label="expenses",
            table="expenses",
            fields=EXPENSE_FIELDS,
            record_model=ExpenseCreate,
            owner_column="user_id",
        ),
    )
}


def get_profile(import_type: str) -> ImportProfile:
    """
    Look up an import type.

    Raises:
        UnknownImportTypeError: If the type isn't registered
    """
    profile = PROFILES.get(import_type)
    if profile is None:
        raise UnknownImportTypeError(import_type)
    return profile


def list_profiles() -> list[ImportProfile]:
    return list(PROFILES.values())
