"""
Batch ledger.

Durable record of every copy/move batch and the exact files it touched.
The ledger is the only source of truth for what an undo may reverse.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Set

from sqlalchemy import select, update
from sqlalchemy.orm import sessionmaker

from ..core.exceptions import LedgerError
from ..core.types import BatchFile, BatchStatus, OperationBatch, OperationType
from .connection import session_scope
from .models import OperationBatchFileRecord, OperationBatchRecord

logger = logging.getLogger(__name__)

# Status transitions a batch may take once persisted
ALLOWED_TRANSITIONS: Dict[str, Set[str]] = {
    BatchStatus.PENDING.value: {BatchStatus.COMPLETED.value, BatchStatus.FAILED.value},
    BatchStatus.COMPLETED.value: {
        BatchStatus.UNDONE.value,
        BatchStatus.ARCHIVED.value,
    },
    BatchStatus.FAILED.value: set(),
    BatchStatus.UNDONE.value: set(),
    BatchStatus.ARCHIVED.value: set(),
}


def _status_value(status) -> str:
    return status.value if hasattr(status, "value") else str(status)


class BatchLedger:
    """SQLAlchemy-backed store of operation batches."""

    def __init__(self, session_factory: sessionmaker):
        """
        Initialize the ledger.

        Args:
            session_factory: Factory producing sessions on the ledger database
        """
        self.session_factory = session_factory

    def insert_batch(
        self,
        operation_type: OperationType,
        files: Sequence[BatchFile],
        timestamp: Optional[datetime] = None,
        status: BatchStatus = BatchStatus.PENDING,
    ) -> int:
        """
        Record a new batch and all of its files in one transaction.

        Args:
            operation_type: copy or move
            files: Files the batch will attempt, in execution order
            timestamp: When the batch was created (defaults to now)
            status: Initial status

        Returns:
            ID of the new batch
        """
        with session_scope(self.session_factory) as session:
            record = OperationBatchRecord(
                operation=_status_value(operation_type),
                timestamp=timestamp or datetime.now(),
                status=_status_value(status),
                error=None,
            )
            for position, file in enumerate(files):
                record.files.append(
                    OperationBatchFileRecord(
                        position=position,
                        photo_id=file.photo_id,
                        source_path=file.source_path,
                        dest_path=file.dest_path,
                    )
                )
            session.add(record)
            session.flush()
            batch_id = record.id

        logger.info(
            f"Logged {_status_value(operation_type)} batch {batch_id} "
            f"with {len(files)} files"
        )
        return batch_id

    def update_status(
        self,
        batch_id: int,
        status: BatchStatus,
        error: Optional[str] = None,
    ) -> None:
        """
        Move a batch to a new status.

        Args:
            batch_id: Batch to update
            status: New status
            error: Optional error message (failed batches)

        Raises:
            LedgerError: If the batch is unknown or the transition is not allowed
        """
        new_status = _status_value(status)
        with session_scope(self.session_factory) as session:
            record = session.get(OperationBatchRecord, batch_id)
            if record is None:
                raise LedgerError(f"Unknown batch: {batch_id}")

            if new_status not in ALLOWED_TRANSITIONS.get(record.status, set()):
                raise LedgerError(
                    f"Batch {batch_id} cannot go from {record.status} to {new_status}"
                )

            record.status = new_status
            record.error = error

        logger.debug(f"Batch {batch_id} -> {new_status}")

    def mark_undone(self, batch_id: int) -> None:
        """Mark a completed batch as undone."""
        self.update_status(batch_id, BatchStatus.UNDONE)

    def get_batch(self, batch_id: int) -> Optional[OperationBatch]:
        """Get a batch with its files, or None if unknown."""
        with session_scope(self.session_factory) as session:
            record = session.get(OperationBatchRecord, batch_id)
            return self._to_batch(record) if record else None

    def get_most_recent_completed_batch(self) -> Optional[OperationBatch]:
        """
        Get the batch an undo would reverse.

        Returns:
            Newest batch with status completed, or None
        """
        with session_scope(self.session_factory) as session:
            record = session.scalars(
                select(OperationBatchRecord)
                .where(OperationBatchRecord.status == BatchStatus.COMPLETED.value)
                .order_by(
                    OperationBatchRecord.timestamp.desc(),
                    OperationBatchRecord.id.desc(),
                )
                .limit(1)
            ).first()
            return self._to_batch(record) if record else None

    def list_batches(self, limit: int = 20) -> List[OperationBatch]:
        """List the newest batches, newest first."""
        with session_scope(self.session_factory) as session:
            records = session.scalars(
                select(OperationBatchRecord)
                .order_by(
                    OperationBatchRecord.timestamp.desc(),
                    OperationBatchRecord.id.desc(),
                )
                .limit(limit)
            ).all()
            return [self._to_batch(record) for record in records]

    def archive_all_completed(self) -> int:
        """
        Retire undo history left over from a previous session.

        Records are kept; they just stop being eligible for undo.

        Returns:
            Number of batches archived
        """
        with session_scope(self.session_factory) as session:
            result = session.execute(
                update(OperationBatchRecord)
                .where(OperationBatchRecord.status == BatchStatus.COMPLETED.value)
                .values(status=BatchStatus.ARCHIVED.value)
            )
            archived = result.rowcount or 0

        if archived > 0:
            logger.info(
                f"Archived {archived} completed operation batches from previous session"
            )
        return archived

    @staticmethod
    def _to_batch(record: OperationBatchRecord) -> OperationBatch:
        return OperationBatch(
            id=record.id,
            operation_type=OperationType(record.operation),
            timestamp=record.timestamp,
            status=BatchStatus(record.status),
            error=record.error,
            files=[
                BatchFile(
                    photo_id=file.photo_id,
                    source_path=file.source_path,
                    dest_path=file.dest_path,
                )
                for file in record.files
            ],
        )
