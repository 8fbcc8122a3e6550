"""
Column mapping between source file headers and import fields.

propose_mapping is a best-effort guess; the operator always confirms the
mapping before anything is committed. Any callable with the same signature
can replace it as the session's matching strategy.
"""

from typing import Callable, Mapping, Optional, Sequence
import structlog

from exceptions import MissingRequiredFieldsError, ValidationError
from models.imports import FieldSpec

logger = structlog.get_logger(__name__)

ColumnMapping = dict[str, Optional[str]]
MappingStrategy = Callable[[Sequence[str], Sequence[FieldSpec]], ColumnMapping]

# Values the mapping UI sends for "no column"
UNMAPPED_VALUES = {"", "_none_"}

# Match tiers, strongest first: exact, header contains name, name contains header
_TIERS: tuple[Callable[[str, str], bool], ...] = (
    lambda header, name: header == name,
    lambda header, name: name in header,
    lambda header, name: header in name,
)


def propose_mapping(headers: Sequence[str], fields: Sequence[FieldSpec]) -> ColumnMapping:
    """
    Guess which header feeds each field.

    Headers are visited in file order. Each header claims at most one
    field: the first tier that matches any still-unclaimed field wins, and
    within a tier the first field in declaration order wins. Fields nobody
    claims stay None.

    Args:
        headers: Source headers in file order
        fields: FieldSpecs in declaration order

    Returns:
        Mapping of db_field -> header (or None)
    """
    mapping: ColumnMapping = {spec.db_field: None for spec in fields}
    names = {spec.db_field: _candidate_names(spec) for spec in fields}

    for header in headers:
        normalized = _normalize(header)
        if not normalized:
            continue

        claimed = _match_header(normalized, fields, names, mapping)
        if claimed is not None:
            mapping[claimed] = header

    logger.debug(
        "mapping_proposed",
        mapped=sum(1 for h in mapping.values() if h is not None),
        fields=len(mapping)
    )
    return mapping


def apply_override(
    mapping: Mapping[str, Optional[str]],
    db_field: str,
    header: Optional[str],
    headers: Sequence[str],
) -> ColumnMapping:
    """
    Return a new mapping with db_field pointed at header (or unmapped).

    A header feeds at most one field, so any other field already using it
    is cleared (last write wins).

    Raises:
        ValidationError: If header is not one of the file's headers
    """
    if header is not None and header.strip() in UNMAPPED_VALUES:
        header = None

    if header is not None and header not in headers:
        raise ValidationError(
            message=f"Column '{header}' is not in the uploaded file",
            code="UNKNOWN_COLUMN",
            details={"db_field": db_field, "header": header}
        )

    updated: ColumnMapping = dict(mapping)
    if header is not None:
        for other, current in updated.items():
            if other != db_field and current == header:
                updated[other] = None
    updated[db_field] = header
    return updated


def missing_required_fields(
    mapping: Mapping[str, Optional[str]],
    fields: Sequence[FieldSpec],
) -> list[str]:
    """db_fields of required FieldSpecs that have no column."""
    return [
        spec.db_field
        for spec in fields
        if spec.required and mapping.get(spec.db_field) is None
    ]


def validate_mapping(
    mapping: Mapping[str, Optional[str]],
    fields: Sequence[FieldSpec],
) -> None:
    """
    Gate for the commit phase.

    Raises:
        MissingRequiredFieldsError: If any required field is unmapped
    """
    missing = missing_required_fields(mapping, fields)
    if missing:
        logger.info("mapping_incomplete", missing_fields=missing)
        raise MissingRequiredFieldsError(missing)


# ===================
# HELPER FUNCTIONS
# ===================

def _normalize(text: str) -> str:
    """Lower-case, underscores as spaces, collapsed whitespace."""
    return " ".join(str(text).lower().replace("_", " ").split())


def _candidate_names(spec: FieldSpec) -> list[str]:
    """Display name first, then the field id as words."""
    names = [_normalize(spec.display_name)]
    field_words = _normalize(spec.db_field)
    if field_words not in names:
        names.append(field_words)
    return names


def _match_header(
    header: str,
    fields: Sequence[FieldSpec],
    names: dict[str, list[str]],
    mapping: ColumnMapping,
) -> Optional[str]:
    for tier in _TIERS:
        for spec in fields:
            if mapping[spec.db_field] is not None:
                continue
            if any(tier(header, name) for name in names[spec.db_field]):
                return spec.db_field
    return None
