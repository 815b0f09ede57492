"""
Batch execution engine.

Executes a validated plan with all-or-nothing semantics:

1. Pre-flight validation of every operation (no modifications)
2. Batch recorded in the ledger before any file is touched
3. Operations run one at a time, in plan order
4. Any failure (or a cancel request) rolls back everything completed so far
"""

import logging
import os
import threading
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from ..core.exceptions import (
    ExecutionError,
    OperationCancelledError,
    OperationInProgressError,
    ValidationError,
)
from ..core.types import (
    BatchFile,
    BatchStatus,
    ExecutionProgress,
    ExecutionResult,
    FileOperation,
    OperationPlan,
    OperationStatus,
    OperationType,
    ProgressPhase,
)
from ..db.ledger import BatchLedger
from .fileops import copy_file, move_file, trash_file
from .validator import validate_operations

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ExecutionProgress], None]


class _Cancelled(Exception):
    pass


class BatchExecutor:
    """Run copy/move batches with rollback on failure."""

    def __init__(
        self,
        ledger: BatchLedger,
        catalog=None,
        progress: Optional[ProgressCallback] = None,
    ):
        """
        Initialize the executor.

        Args:
            ledger: Batch ledger to record batches in
            catalog: Photo catalog whose paths follow moved files (optional)
            progress: Default progress observer (optional)
        """
        self.ledger = ledger
        self.catalog = catalog
        self.progress = progress
        self._lock = threading.Lock()
        self._cancel_requested = threading.Event()

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    def cancel(self) -> bool:
        """
        Ask the running batch to stop after the current file.

        Returns:
            True if a batch was running and will be rolled back
        """
        if not self.is_running:
            return False
        logger.info("Cancel requested for running batch")
        self._cancel_requested.set()
        return True

    def execute(
        self,
        plan: OperationPlan,
        operation_type: Optional[OperationType] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> ExecutionResult:
        """
        Execute a plan.

        Args:
            plan: Plan produced by the planner
            operation_type: copy or move (defaults to the plan's type)
            progress: Progress observer for this run (overrides the default)

        Returns:
            Execution result

        Raises:
            ConflictError: If a destination became occupied since the plan
            ValidationError: If a source vanished or the request is invalid
            OperationInProgressError: If another batch is running
            ExecutionError: If the batch failed and was rolled back
        """
        op_type = OperationType(operation_type or plan.operation_type)
        if op_type != OperationType(plan.operation_type):
            raise ValidationError(
                f"Plan is a {plan.operation_type} plan, not {op_type.value}"
            )

        if not self._lock.acquire(blocking=False):
            raise OperationInProgressError("Another batch is already running")

        try:
            self._cancel_requested.clear()
            return self._execute(plan, op_type, progress or self.progress)
        finally:
            self._cancel_requested.clear()
            self._lock.release()

    def _execute(
        self,
        plan: OperationPlan,
        op_type: OperationType,
        progress: Optional[ProgressCallback],
    ) -> ExecutionResult:
        self._emit(
            progress,
            ExecutionProgress(
                total_files=len(plan.operations),
                completed_files=0,
                current_file="Validating...",
                percentage=0,
                phase=ProgressPhase.VALIDATING,
            ),
        )

        # Conflicts and validation errors propagate untouched
        preflight = validate_operations(plan.operations)
        to_execute = preflight.to_execute
        skipped = preflight.skipped

        if not to_execute:
            if skipped:
                message = (
                    f"All {len(skipped)} files are already in the destination folder."
                )
            else:
                message = "No files to process."
            logger.info(message)
            return ExecutionResult(
                success=True,
                completed_count=0,
                skipped_count=len(skipped),
                message=message,
                batch_id=0,
            )

        batch_id = self.ledger.insert_batch(
            op_type,
            [
                BatchFile(
                    photo_id=op.photo_id,
                    source_path=op.source_path,
                    dest_path=op.dest_path,
                )
                for op in to_execute
            ],
            timestamp=datetime.now(),
            status=BatchStatus.PENDING,
        )

        completed: List[FileOperation] = []
        total = len(to_execute)

        try:
            for op in to_execute:
                if self._cancel_requested.is_set():
                    raise _Cancelled()

                self._run_operation(op, op_type)
                completed.append(op.model_copy(update={"status": OperationStatus.COMPLETED}))
                logger.info(f"{op_type.value}: {op.source_path} -> {op.dest_path}")

                self._emit(
                    progress,
                    ExecutionProgress(
                        total_files=total,
                        completed_files=len(completed),
                        current_file=os.path.basename(op.source_path),
                        percentage=round(len(completed) / total * 100),
                        phase=ProgressPhase.EXECUTING,
                    ),
                )

            # failing to record completion rolls the batch back
            self.ledger.update_status(batch_id, BatchStatus.COMPLETED)
        except _Cancelled:
            logger.warning(
                f"Batch {batch_id} cancelled after {len(completed)} files. Rolling back..."
            )
            rolled_back, failed = self._rollback(completed, op_type)
            self._mark_failed(batch_id, "cancelled")
            raise OperationCancelledError(
                rolled_back=rolled_back, batch_id=batch_id, rollback_failed=failed
            )
        except Exception as e:
            logger.error(f"Operation failed: {e}. Rolling back...")
            rolled_back, failed = self._rollback(completed, op_type)
            self._mark_failed(batch_id, str(e))
            raise ExecutionError(
                str(e), rolled_back=rolled_back, batch_id=batch_id, rollback_failed=failed
            ) from e

        if op_type == OperationType.MOVE:
            self._update_catalog_paths(completed)

        self._emit(
            progress,
            ExecutionProgress(
                total_files=total,
                completed_files=total,
                current_file="",
                percentage=100,
                phase=ProgressPhase.COMPLETE,
            ),
        )

        verb = "copied" if op_type == OperationType.COPY else "moved"
        skipped_msg = (
            f" ({len(skipped)} already in destination)" if skipped else ""
        )
        return ExecutionResult(
            success=True,
            completed_count=len(completed),
            skipped_count=len(skipped),
            message=f"Successfully {verb} {len(completed)} files.{skipped_msg}",
            batch_id=batch_id,
        )

    @staticmethod
    def _run_operation(op: FileOperation, op_type: OperationType) -> None:
        if op_type == OperationType.COPY:
            copy_file(op.source_path, op.dest_path)
        else:
            move_file(op.source_path, op.dest_path)

    def _rollback(
        self, completed: List[FileOperation], op_type: OperationType
    ) -> Tuple[int, List[str]]:
        """
        Reverse completed operations, newest first.

        Copies go to the OS trash; moves go back to their source path.

        Returns:
            Number of files rolled back and names of files that couldn't be
        """
        rolled_back = 0
        failed: List[str] = []

        for op in reversed(completed):
            try:
                if op_type == OperationType.COPY:
                    if os.path.lexists(op.dest_path):
                        trash_file(op.dest_path)
                else:
                    if os.path.lexists(op.source_path):
                        raise FileExistsError(
                            f"file exists at original location {op.source_path}"
                        )
                    move_file(op.dest_path, op.source_path)
                rolled_back += 1
                logger.info(f"Rollback: restored {op.source_path}")
            except Exception as e:
                failed.append(os.path.basename(op.source_path))
                logger.error(f"Rollback failed for {op.source_path}: {e}")

        return rolled_back, failed

    def _mark_failed(self, batch_id: int, reason: str) -> None:
        try:
            self.ledger.update_status(batch_id, BatchStatus.FAILED, reason)
        except Exception as e:
            logger.error(f"Could not mark batch {batch_id} as failed: {e}")

    def _update_catalog_paths(self, completed: List[FileOperation]) -> None:
        # Files are already moved; a catalog re-scan fixes any path left stale
        if self.catalog is None:
            return
        for op in completed:
            try:
                self.catalog.update_photo_path(op.photo_id, op.dest_path)
                logger.info(f"Updated photo {op.photo_id} path to {op.dest_path}")
            except Exception as e:
                logger.error(f"Failed to update photo path for {op.photo_id}: {e}")

    @staticmethod
    def _emit(
        progress: Optional[ProgressCallback], event: ExecutionProgress
    ) -> None:
        if progress is None:
            return
        try:
            progress(event)
        except Exception as e:
            logger.warning(f"Progress observer failed: {e}")
