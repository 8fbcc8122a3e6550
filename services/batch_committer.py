"""
Batch committer: prepares and inserts every row of an import.

A row that fails at any stage is recorded and skipped; nothing a single
row does can stop the rest of the batch. There is no batch-wide rollback.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
import threading
from typing import Callable, Sequence
import structlog

from exceptions import AppError, PersistenceError, RowError
from models.base import CandidateRecord
from parsers.csv_parser import RawRow

logger = structlog.get_logger(__name__)

RowPreparer = Callable[[RawRow], CandidateRecord]


@dataclass(frozen=True)
class RowFailure:
    """One row that did not make it into the store."""
    row_index: int
    message: str
    raw_row: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ImportOutcome:
    """
    Result of one commit batch.

    failures are ordered by row_index. created_ids maps row_index to the
    id of the inserted record.
    """
    success_count: int
    failures: tuple[RowFailure, ...] = ()
    created_ids: dict[int, int] = field(default_factory=dict)
    placeholders_created: tuple[int, ...] = ()

    @property
    def failure_count(self) -> int:
        return len(self.failures)

    @property
    def total(self) -> int:
        return self.success_count + self.failure_count


class _OutcomeCollector:
    """Thread-safe tally used while a batch runs."""

    def __init__(self):
        self._lock = threading.Lock()
        self._created: dict[int, int] = {}
        self._failures: list[RowFailure] = []

    def success(self, row_index: int, record_id: int) -> None:
        with self._lock:
            self._created[row_index] = record_id

    def failure(self, row: RawRow, message: str) -> None:
        with self._lock:
            self._failures.append(RowFailure(row.row_index, message, row.to_dict()))

    def build(self) -> ImportOutcome:
        with self._lock:
            return ImportOutcome(
                success_count=len(self._created),
                failures=tuple(sorted(self._failures, key=lambda f: f.row_index)),
                created_ids=dict(sorted(self._created.items())),
            )


class BatchCommitter:
    """
    Runs prepare -> insert for each row.

    Args:
        repository: Destination table access (anything with insert(dict) -> id)
        max_workers: Rows processed concurrently; 1 runs them in file order
    """

    def __init__(self, repository, max_workers: int = 1):
        self.repository = repository
        self.max_workers = max(1, max_workers)

    def commit(self, rows: Sequence[RawRow], prepare: RowPreparer) -> ImportOutcome:
        """
        Commit a batch.

        Args:
            rows: Parsed rows in file order
            prepare: Turns a row into a CandidateRecord; raises RowError
                (resolution or transform failure) to reject the row. Any
                other exception also only fails that row.

        Returns:
            ImportOutcome where success_count + failure_count == len(rows)
        """
        collector = _OutcomeCollector()

        logger.info(
            "batch_commit_started",
            table=getattr(self.repository, "table", None),
            rows=len(rows),
            workers=self.max_workers
        )

        if self.max_workers == 1 or len(rows) <= 1:
            for row in rows:
                self._process(row, prepare, collector)
        else:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                futures = [
                    executor.submit(self._process, row, prepare, collector)
                    for row in rows
                ]
                for future in futures:
                    future.result()

        outcome = collector.build()
        logger.info(
            "batch_commit_finished",
            table=getattr(self.repository, "table", None),
            imported=outcome.success_count,
            failed=outcome.failure_count
        )
        return outcome

    def _process(self, row: RawRow, prepare: RowPreparer, collector: _OutcomeCollector) -> None:
        try:
            record = prepare(row)
        except RowError as e:
            logger.info("import_row_rejected", row=row.row_index, code=e.code, reason=e.message)
            collector.failure(row, e.message)
            return
        except Exception as e:
            logger.error(
                "import_row_prepare_failed",
                row=row.row_index,
                error=str(e),
                type=type(e).__name__
            )
            collector.failure(row, _error_message(e))
            return

        try:
            record_id = self.repository.insert(record.to_insert())
        except Exception as e:
            error = PersistenceError(_error_message(e), row.row_index)
            logger.warning("import_row_insert_failed", row=row.row_index, error=error.message)
            collector.failure(row, error.message)
            return

        collector.success(row.row_index, record_id)


def _error_message(error: Exception) -> str:
    if isinstance(error, AppError):
        return error.message
    return str(error) or error.__class__.__name__
