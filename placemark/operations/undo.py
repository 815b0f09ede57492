"""
Undo of the most recent completed batch.

Copies are undone by sending the copied files to the OS trash; moves are
undone by moving files back to where they came from. Every file is
attempted even if an earlier one failed, and the batch is only marked
undone when all of them succeeded.
"""

import logging
import os
from typing import List, Optional

from ..core.types import BatchFile, BatchInfo, OperationType, UndoResult
from ..db.ledger import BatchLedger
from .fileops import move_file, trash_file

logger = logging.getLogger(__name__)


class UndoEngine:
    """Reverse the latest completed batch recorded in the ledger."""

    def __init__(self, ledger: BatchLedger, catalog=None):
        self.ledger = ledger
        self.catalog = catalog

    def can_undo(self) -> Optional[BatchInfo]:
        """Describe the batch an undo would reverse, or None."""
        batch = self.ledger.get_most_recent_completed_batch()
        if batch is None:
            return None
        return BatchInfo(
            id=batch.id,
            operation_type=batch.operation_type,
            file_count=len(batch.files),
            timestamp=batch.timestamp,
        )

    def undo_last_batch(self) -> UndoResult:
        """
        Undo the most recent completed batch.

        Returns:
            Undo result; partial undos list the files still needing attention
        """
        batch = self.ledger.get_most_recent_completed_batch()
        if batch is None:
            return UndoResult(success=False, message="No operation to undo.")

        op_type = OperationType(batch.operation_type)
        logger.info(f"Undoing {op_type.value} batch {batch.id} ({len(batch.files)} files)")

        failed: List[str] = []
        undone = 0

        for file in batch.files:
            try:
                if op_type == OperationType.COPY:
                    self._undo_copy(file)
                else:
                    error = self._undo_move(file)
                    if error:
                        failed.append(error)
                        logger.warning(error)
                        continue
                undone += 1
            except Exception as e:
                failed.append(f"{os.path.basename(file.source_path)}: {e}")
                logger.error(f"Undo failed for {file.source_path}: {e}")

        if failed:
            return UndoResult(
                success=False,
                message=(
                    f"Partially undone: {undone} restored, {len(failed)} failed. "
                    "Batch NOT marked as undone."
                ),
                undone_count=undone,
                batch_id=batch.id,
                failed=failed,
            )

        self.ledger.mark_undone(batch.id)
        return UndoResult(
            success=True,
            message=f"Undone: {op_type.value} of {undone} files.",
            undone_count=undone,
            batch_id=batch.id,
        )

    @staticmethod
    def _undo_copy(file: BatchFile) -> None:
        if not os.path.lexists(file.dest_path):
            logger.info(f"Undo copy: file already gone {file.dest_path}")
            return
        trash_file(file.dest_path)
        logger.info(f"Undo copy: trashed {file.dest_path}")

    def _undo_move(self, file: BatchFile) -> Optional[str]:
        """Move one file back. Returns an error message instead of overwriting."""
        if os.path.lexists(file.source_path):
            return (
                f"Cannot restore {os.path.basename(file.source_path)}: "
                "file exists at original location"
            )

        move_file(file.dest_path, file.source_path)
        logger.info(f"Undo move: {file.dest_path} -> {file.source_path}")

        if self.catalog is not None:
            try:
                self.catalog.update_photo_path(file.photo_id, file.source_path)
                logger.info(
                    f"Restored photo {file.photo_id} path to {file.source_path}"
                )
            except Exception as e:
                logger.error(
                    f"Failed to restore photo path for {file.photo_id}: {e}"
                )
        return None
