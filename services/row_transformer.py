"""
Row transformer: raw CSV row + confirmed mapping -> CandidateRecord.

Coercion is lenient toward the predecessor tool's exports:
unparsable numbers become 0 and unparsable optional dates are passed
through as written. Only required fields can fail a row.
"""

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional, Sequence, Type
import pandas as pd
import structlog
from pydantic import ValidationError as PydanticValidationError

from exceptions import ResolutionFailure, TransformError
from models.base import CandidateRecord
from models.imports import FieldSpec, FieldType
from parsers.csv_parser import RawRow
from services.entity_resolver import Failed, ResolutionResult

logger = structlog.get_logger(__name__)

TRUE_VALUES = {"yes", "true", "y", "1"}

# DD/MM/YYYY at the start of the value, time or suffix ignored
DAY_FIRST_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})")

DATE_FORMATS = ["%Y-%m-%d", "%Y/%m/%d", "%d-%m-%Y", "%d.%m.%Y", "%d %b %Y", "%d %B %Y"]

_NON_NUMERIC = re.compile(r"[^0-9.\-]")


# ===================
# COERCION
# ===================

def coerce_number(raw: Optional[str]) -> Decimal:
    """
    Lenient number parse.

    Anything but digits, '.' and '-' is stripped first, so currency
    symbols and thousands separators pass. What's left failing to parse
    (or nothing left at all) gives 0.
    """
    cleaned = _NON_NUMERIC.sub("", raw or "")
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        return Decimal("0")
    return value if value.is_finite() else Decimal("0")


def coerce_integer(raw: Optional[str]) -> int:
    """coerce_number truncated toward zero."""
    return int(coerce_number(raw))


def coerce_boolean(raw: Optional[str]) -> bool:
    return (raw or "").strip().lower() in TRUE_VALUES


def parse_date(raw: Optional[str]) -> Optional[date]:
    """
    Parse a date from the formats seen in bakery exports.

    DD/MM/YYYY wins over every other reading. Returns None if nothing
    recognises the value.
    """
    value = (raw or "").strip()
    if not value:
        return None

    match = DAY_FIRST_DATE.match(value)
    if match:
        day, month, year = (int(part) for part in match.groups())
        try:
            return date(year, month, day)
        except ValueError:
            pass

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue

    try:
        parsed = pd.to_datetime(value, dayfirst=True)
    except (ValueError, TypeError, OverflowError):
        return None
    if pd.isna(parsed):
        return None
    return parsed.date()


# ===================
# TRANSFORMER
# ===================

class RowTransformer:
    """
    Builds CandidateRecords for one import type.

    Args:
        fields: FieldSpec set of the import type
        record_model: CandidateRecord subclass for the destination table
        owner_column: Column stamped with the owner id, if the table has one
    """

    def __init__(
        self,
        fields: Sequence[FieldSpec],
        record_model: Type[CandidateRecord],
        owner_column: Optional[str] = None
    ):
        self.fields = tuple(fields)
        self.record_model = record_model
        self.owner_column = owner_column

    def transform(
        self,
        row: RawRow,
        mapping: Mapping[str, Optional[str]],
        resolution: Optional[ResolutionResult] = None,
        owner_id: Optional[int] = None,
    ) -> CandidateRecord:
        """
        Coerce one row.

        Args:
            row: Parsed source row
            mapping: Confirmed db_field -> header mapping
            resolution: Result for the row's reference field, if any
            owner_id: Stamped into owner_column

        Returns:
            Validated CandidateRecord

        Raises:
            ResolutionFailure: If handed a failed resolution
            TransformError: If a required field is empty or unparsable
        """
        values: dict[str, Any] = {}

        for spec in self.fields:
            if spec.field_type == FieldType.REFERENCE:
                value = self._reference_value(spec, row, resolution)
            else:
                header = mapping.get(spec.db_field)
                if header is not None:
                    raw = row.get(header)
                else:
                    raw = spec.default or ""
                value = self._coerce(spec, raw, row.row_index)

            if value is not None:
                values[spec.target_column] = value

        if self.owner_column and owner_id is not None:
            values[self.owner_column] = owner_id

        try:
            return self.record_model(**values)
        except PydanticValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first.get("loc", ())) or "record"
            raise TransformError(
                field=field,
                message=f"{field}: {first.get('msg', 'invalid value')}",
                row_index=row.row_index,
                value=str(first.get("input", ""))
            )

    def _reference_value(
        self,
        spec: FieldSpec,
        row: RawRow,
        resolution: Optional[ResolutionResult],
    ) -> Optional[int]:
        if isinstance(resolution, Failed):
            raise ResolutionFailure(resolution.reason, row.row_index)
        if resolution is None:
            if spec.required:
                raise TransformError(
                    field=spec.db_field,
                    message=f"{spec.display_name} is required",
                    row_index=row.row_index
                )
            return None
        return resolution.entity_id

    def _coerce(self, spec: FieldSpec, raw: str, row_index: int) -> Any:
        if spec.field_type == FieldType.NUMBER:
            return coerce_number(raw)
        if spec.field_type == FieldType.INTEGER:
            return coerce_integer(raw)
        if spec.field_type == FieldType.BOOLEAN:
            return coerce_boolean(raw)

        text = (raw or "").strip()
        if not text:
            if spec.required:
                raise TransformError(
                    field=spec.db_field,
                    message=f"{spec.display_name} is required",
                    row_index=row_index
                )
            return None

        if spec.field_type == FieldType.DATE:
            parsed = parse_date(text)
            if parsed is not None:
                return parsed.isoformat()
            if spec.required:
                raise TransformError(
                    field=spec.db_field,
                    message=f"{spec.display_name}: unrecognised date '{text}'",
                    row_index=row_index,
                    value=text
                )
            logger.debug("date_kept_verbatim", field=spec.db_field, value=text, row=row_index)
            return text

        return text
