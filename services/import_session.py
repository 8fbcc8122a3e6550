"""
Import session: one file's trip from upload to committed rows.

States move strictly forward:

    awaiting_file -> previewing -> awaiting_mapping -> committing -> complete

The proposed mapping is shown with the preview, so a loaded file passes
straight through previewing. A session commits at most once. Committing
requires the token handed out when the operator confirmed the mapping;
any later override voids that token.
"""

import hashlib
import secrets
import threading
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Mapping, Optional, Union
import structlog

from config import settings
from exceptions import InvalidSessionStateError, ResolutionFailure
from models.base import CandidateRecord
from models.imports import ImportErrorDetail, ImportResultResponse, ImportState
from parsers.csv_parser import RawRow, RawTable, parse_csv
from services.batch_committer import BatchCommitter, ImportOutcome
from services.column_mapper import (
    ColumnMapping,
    MappingStrategy,
    apply_override,
    propose_mapping,
    validate_mapping,
)
from services.entity_resolver import EntityResolver, Failed, ResolutionResult
from services.import_profiles import ImportProfile
from services.row_transformer import RowTransformer

logger = structlog.get_logger(__name__)


class ImportSession:
    """
    Drives one import.

    Args:
        profile: Import type being imported
        matcher: Strategy proposing the initial column mapping
        session_id: Fixed id (a UUID is generated otherwise)
    """

    def __init__(
        self,
        profile: ImportProfile,
        matcher: MappingStrategy = propose_mapping,
        session_id: Optional[str] = None,
    ):
        self.session_id = session_id or str(uuid.uuid4())
        self.profile = profile
        self.matcher = matcher
        self.state = ImportState.AWAITING_FILE
        self.created_at = datetime.now()

        self.table: Optional[RawTable] = None
        self.filename: Optional[str] = None
        self.file_hash: Optional[str] = None
        self.mapping: ColumnMapping = {}
        self.outcome: Optional[ImportOutcome] = None

        self._confirmation_token: Optional[str] = None
        self._lock = threading.Lock()

    # ===================
    # PROPERTIES
    # ===================

    @property
    def mapping_confirmed(self) -> bool:
        return self._confirmation_token is not None

    @property
    def headers(self) -> tuple[str, ...]:
        return self.table.headers if self.table else ()

    # ===================
    # TRANSITIONS
    # ===================

    def load(self, content: Union[str, bytes], filename: Optional[str] = None) -> RawTable:
        """
        Parse the uploaded file and propose a mapping.

        Raises:
            InvalidSessionStateError: If a file was already loaded
            MalformedInputError: If the file has no usable header; the
                session stays awaiting_file
        """
        self._require(ImportState.AWAITING_FILE, "load a file")

        raw = content.encode("utf-8") if isinstance(content, str) else content
        table = parse_csv(content)

        self.table = table
        self.filename = filename
        self.file_hash = hashlib.sha256(raw).hexdigest()
        self.state = ImportState.PREVIEWING
        self.mapping = self.matcher(table.headers, self.profile.fields)
        self.state = ImportState.AWAITING_MAPPING

        logger.info(
            "import_file_loaded",
            session_id=self.session_id,
            import_type=self.profile.import_type,
            filename=filename,
            rows=table.row_count,
            dropped=len(table.dropped_row_indexes)
        )
        return table

    def preview(self, limit: Optional[int] = None) -> list[dict[str, str]]:
        """First rows of the loaded file (settings.import_preview_rows by default)."""
        if self.table is None:
            return []
        return self.table.preview(limit or settings.import_preview_rows)

    def override(self, db_field: str, header: Optional[str]) -> ColumnMapping:
        """
        Re-point one field. Voids any earlier confirmation.

        Raises:
            InvalidSessionStateError: If the session is past mapping
            ValidationError: If header isn't in the file
        """
        with self._lock:
            self._require(ImportState.AWAITING_MAPPING, "change the mapping")
            self.mapping = apply_override(self.mapping, db_field, header, self.headers)
            self._confirmation_token = None
            return self.mapping

    def confirm_mapping(self, mapping: Optional[Mapping[str, Optional[str]]] = None) -> str:
        """
        Accept the operator's final mapping.

        Args:
            mapping: Final db_field -> header; the current mapping when None.
                Keys that aren't fields of this import type are ignored.

        Returns:
            Confirmation token the commit call must present

        Raises:
            InvalidSessionStateError: If the session is past mapping
            ValidationError: If a header isn't in the file
            MissingRequiredFieldsError: If a required field is unmapped;
                the session keeps its previous mapping
        """
        with self._lock:
            self._require(ImportState.AWAITING_MAPPING, "confirm the mapping")

            if mapping is None:
                final = dict(self.mapping)
            else:
                final = {spec.db_field: None for spec in self.profile.fields}
                for db_field, header in mapping.items():
                    if self.profile.field(db_field) is None:
                        logger.warning("mapping_unknown_field_ignored", db_field=db_field)
                        continue
                    final = apply_override(final, db_field, header, self.headers)

            validate_mapping(final, self.profile.fields)

            self.mapping = final
            token = secrets.token_urlsafe(16)
            self._confirmation_token = token

        logger.info(
            "import_mapping_confirmed",
            session_id=self.session_id,
            mapped=[f for f, h in final.items() if h is not None]
        )
        return token

    def commit(self, owner_id: int, confirmation_token: str) -> ImportOutcome:
        """
        Resolve, transform and insert every row.

        Row failures never raise; they are reported in the outcome.

        Raises:
            InvalidSessionStateError: If the mapping wasn't confirmed, the
                token doesn't match, or the session already committed
        """
        with self._lock:
            if self.state != ImportState.AWAITING_MAPPING:
                raise InvalidSessionStateError(self.state.value, "commit")
            if self._confirmation_token is None:
                raise InvalidSessionStateError(
                    self.state.value, "commit", "mapping has not been confirmed"
                )
            if not secrets.compare_digest(
                (confirmation_token or "").encode("utf-8"),
                self._confirmation_token.encode("utf-8")
            ):
                raise InvalidSessionStateError(
                    self.state.value, "commit", "confirmation token does not match"
                )
            self.state = ImportState.COMMITTING
            mapping = dict(self.mapping)

        logger.info(
            "import_commit_started",
            session_id=self.session_id,
            import_type=self.profile.import_type,
            owner_id=owner_id,
            rows=self.table.row_count
        )

        resolver = self.profile.make_resolver() if self.profile.make_resolver else None
        transformer = RowTransformer(
            self.profile.fields,
            self.profile.record_model,
            self.profile.owner_column
        )

        def prepare(row: RawRow) -> CandidateRecord:
            resolution = self._resolve(row, mapping, resolver, owner_id)
            if isinstance(resolution, Failed):
                raise ResolutionFailure(resolution.reason, row.row_index)
            return transformer.transform(row, mapping, resolution, owner_id)

        committer = BatchCommitter(
            self.profile.make_repository(),
            max_workers=settings.import_commit_workers
        )
        outcome = None
        try:
            outcome = committer.commit(self.table.rows, prepare)
            if resolver is not None:
                outcome = replace(outcome, placeholders_created=tuple(resolver.placeholders_created))
        finally:
            # No retry: rows may already be in the store
            with self._lock:
                self.outcome = outcome
                self.state = ImportState.COMPLETE

        logger.info(
            "import_commit_finished",
            session_id=self.session_id,
            imported=outcome.success_count,
            failed=outcome.failure_count,
            placeholders=len(outcome.placeholders_created)
        )
        return outcome

    # ===================
    # RESULTS
    # ===================

    def result(self) -> Optional[ImportResultResponse]:
        """Commit summary in API form, once complete."""
        if self.outcome is None:
            return None
        return build_result(self.outcome, self.profile.label)

    # ===================
    # HELPERS
    # ===================

    def _require(self, state: ImportState, operation: str) -> None:
        if self.state != state:
            raise InvalidSessionStateError(self.state.value, operation)

    def _resolve(
        self,
        row: RawRow,
        mapping: ColumnMapping,
        resolver: Optional[EntityResolver],
        owner_id: int,
    ) -> Optional[ResolutionResult]:
        if resolver is None or self.profile.reference_field is None:
            return None

        spec = self.profile.field(self.profile.reference_field)
        header = mapping.get(spec.db_field)
        key = row.get(header).strip() if header else ""
        if not key:
            if spec.required:
                return Failed(f"{spec.display_name} is required")
            return None
        return resolver.resolve(key, owner_id)


def build_result(outcome: ImportOutcome, label: str) -> ImportResultResponse:
    """ImportOutcome -> API summary with an operator-facing message."""
    if outcome.total == 0:
        message = f"No {label} to import."
    else:
        message = f"Successfully imported {outcome.success_count} {label}."
        if outcome.failure_count:
            message += f" Failed to import {outcome.failure_count} {label}."

    return ImportResultResponse(
        success=outcome.success_count > 0 or outcome.failure_count == 0,
        imported_count=outcome.success_count,
        error_count=outcome.failure_count,
        errors=[
            ImportErrorDetail(row=failure.row_index, message=failure.message)
            for failure in outcome.failures
        ],
        message=message,
        created_ids=outcome.created_ids,
        placeholders_created=list(outcome.placeholders_created),
    )
