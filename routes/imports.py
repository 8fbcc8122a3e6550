"""
CSV import API routes.

Flow: upload a file for an import type, review the proposed column
mapping (optionally re-pointing single fields), confirm it, then commit.
Nothing is written to the store before commit.
"""

from fastapi import APIRouter, UploadFile, File, Form
from fastapi.responses import JSONResponse
from typing import Optional
import structlog

from config import settings
from exceptions import AppError
from models.imports import (
    CommitRequest,
    ConfirmMappingRequest,
    ConfirmMappingResponse,
    ImportResultResponse,
    ImportTypeResponse,
    MappingOverrideRequest,
    MappingResponse,
    SessionStatusResponse,
    UploadPreviewResponse,
)
from services import import_session_store
from services.import_history_service import get_import_history_service
from services.import_profiles import get_profile, list_profiles
from services.import_session import ImportSession

router = APIRouter()
logger = structlog.get_logger(__name__)


def _handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


@router.get("/types", response_model=list[ImportTypeResponse])
async def list_import_types():
    """FieldSpec sets for every import type."""
    return [profile.describe() for profile in list_profiles()]


@router.post("/{import_type}/upload", response_model=UploadPreviewResponse)
async def upload_import_file(
    import_type: str,
    file: UploadFile = File(...),
    owner_id: Optional[int] = Form(None, ge=1),
):
    """
    Parse an uploaded CSV and return a preview with the proposed mapping.

    The returned session_id drives the mapping and commit calls. With
    owner_id, the preview warns if that owner already imported the file.
    """
    try:
        profile = get_profile(import_type)
        content = await file.read()

        session = ImportSession(profile)
        table = session.load(content, filename=file.filename)

        warnings = []
        if table.dropped_row_indexes:
            shown = ", ".join(str(i) for i in table.dropped_row_indexes[:10])
            warnings.append(
                f"{len(table.dropped_row_indexes)} row(s) skipped as blank or "
                f"with the wrong number of columns: {shown}"
            )

        duplicate = None
        if owner_id is not None:
            try:
                duplicate = get_import_history_service().check_duplicate(
                    profile.import_type, session.file_hash, owner_id
                )
            except Exception as e:
                # History is advisory
                logger.warning("import_duplicate_check_failed", error=str(e))
        if duplicate:
            warnings.append(
                f"This file was already imported on {str(duplicate['imported_at'])[:10]} "
                f"({duplicate['filename']})"
            )

        import_session_store.store_session(session)

        logger.info(
            "import_preview_created",
            session_id=session.session_id,
            import_type=profile.import_type,
            row_count=table.row_count,
        )

        return UploadPreviewResponse(
            session_id=session.session_id,
            import_type=profile.import_type,
            headers=list(table.headers),
            preview_rows=session.preview(),
            proposed_mapping=session.mapping,
            total_row_count=table.row_count,
            dropped_row_count=len(table.dropped_row_indexes),
            fields=list(profile.fields),
            warnings=warnings,
            expires_in_minutes=settings.import_session_ttl_minutes,
        )

    except Exception as e:
        return _handle_error(e)


@router.patch("/sessions/{session_id}/mapping", response_model=MappingResponse)
async def override_mapping(session_id: str, request: MappingOverrideRequest):
    """Point one field at a different column, or unmap it (header null)."""
    try:
        session = import_session_store.get_session(session_id)
        mapping = session.override(request.db_field, request.header)
        return MappingResponse(
            session_id=session_id,
            mapping=mapping,
            confirmed=session.mapping_confirmed,
        )
    except Exception as e:
        return _handle_error(e)


@router.put("/sessions/{session_id}/mapping", response_model=ConfirmMappingResponse)
async def confirm_mapping(session_id: str, request: ConfirmMappingRequest):
    """
    Confirm the final mapping.

    Returns 422 MISSING_REQUIRED_FIELDS listing the unmapped required
    fields when the mapping is incomplete.
    """
    try:
        session = import_session_store.get_session(session_id)
        token = session.confirm_mapping(request.mapping)
        return ConfirmMappingResponse(
            accepted=True,
            confirmation_token=token,
            mapping=session.mapping,
        )
    except Exception as e:
        return _handle_error(e)


@router.post("/sessions/{session_id}/commit", response_model=ImportResultResponse)
def commit_import(session_id: str, request: CommitRequest):
    """
    Commit every row of a confirmed session.

    Responds 200 whenever the commit ran, including partial failure;
    per-row problems are listed in errors.
    """
    try:
        session = import_session_store.get_session(session_id)
        session.commit(request.owner_id, request.confirmation_token)
        result = session.result()

        try:
            get_import_history_service().record_import(
                import_type=session.profile.import_type,
                file_hash=session.file_hash,
                filename=session.filename,
                owner_id=request.owner_id,
                imported_count=result.imported_count,
                error_count=result.error_count,
            )
        except Exception as e:
            # Rows are already committed
            logger.warning("import_history_record_failed", session_id=session_id, error=str(e))

        return result

    except Exception as e:
        return _handle_error(e)


@router.get("/sessions/{session_id}", response_model=SessionStatusResponse)
async def get_import_session(session_id: str):
    """Session state, current mapping and, once complete, the result."""
    try:
        session = import_session_store.get_session(session_id)
        return SessionStatusResponse(
            session_id=session.session_id,
            import_type=session.profile.import_type,
            state=session.state,
            total_row_count=session.table.row_count if session.table else 0,
            mapping=session.mapping,
            mapping_confirmed=session.mapping_confirmed,
            result=session.result(),
        )
    except Exception as e:
        return _handle_error(e)


@router.delete("/sessions/{session_id}", status_code=204)
async def discard_import_session(session_id: str):
    """Abandon a session. Rows already committed stay committed."""
    import_session_store.discard_session(session_id)
    logger.info("import_session_discarded", session_id=session_id)
