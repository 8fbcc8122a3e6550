"""
Tracks imported file hashes to warn about repeated imports.
"""
import structlog
from datetime import datetime
from typing import Optional

from config import get_supabase_client

logger = structlog.get_logger(__name__)


class ImportHistoryService:
    def __init__(self):
        self.db = get_supabase_client()
        self.table = "import_history"

    def check_duplicate(self, import_type: str, file_hash: str, owner_id: int) -> Optional[dict]:
        """Check if this owner imported this file before. Returns {filename, imported_at, imported_count} or None."""
        result = (
            self.db.table(self.table)
            .select("filename, imported_at, imported_count")
            .eq("import_type", import_type)
            .eq("file_hash", file_hash)
            .eq("user_id", owner_id)
            .order("imported_at", desc=True)
            .limit(1)
            .execute()
        )
        return result.data[0] if result.data else None

    def record_import(
        self,
        import_type: str,
        file_hash: str,
        filename: str,
        owner_id: int,
        imported_count: int = 0,
        error_count: int = 0,
    ) -> None:
        """Record a committed import for future duplicate detection."""
        self.db.table(self.table).insert({
            "import_type": import_type,
            "file_hash": file_hash,
            "filename": filename or "unknown",
            "user_id": owner_id,
            "imported_count": imported_count,
            "error_count": error_count,
            "imported_at": datetime.utcnow().isoformat(),
        }).execute()
        logger.info(
            "import_recorded",
            import_type=import_type,
            filename=filename,
            imported_count=imported_count,
            error_count=error_count,
        )


_service: Optional[ImportHistoryService] = None


def get_import_history_service() -> ImportHistoryService:
    global _service
    if _service is None:
        _service = ImportHistoryService()
    return _service
