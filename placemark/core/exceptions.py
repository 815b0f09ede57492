"""
Error taxonomy for file operations.

Validation and conflict errors are raised before any filesystem mutation.
Execution errors are raised after the batch has been rolled back.
"""

from typing import List, Optional


class PlacemarkError(Exception):
    """Base class for all Placemark errors."""

    pass


class ValidationError(PlacemarkError):
    """Raised when a request is rejected before any plan runs."""

    pass


class ConflictError(PlacemarkError):
    """Raised when one or more destinations are already occupied."""

    def __init__(self, conflicts: List[str]):
        self.conflicts = list(conflicts)
        if len(self.conflicts) == 1:
            message = (
                f'File already exists at destination: "{self.conflicts[0]}". '
                "Operation cancelled."
            )
        else:
            message = (
                f"{len(self.conflicts)} files already exist at destination "
                f'(e.g., "{self.conflicts[0]}"). Operation cancelled.'
            )
        super().__init__(message)


class ExecutionError(PlacemarkError):
    """Raised when a batch failed mid-way and was rolled back."""

    def __init__(
        self,
        reason: str,
        rolled_back: int = 0,
        batch_id: Optional[int] = None,
        rollback_failed: Optional[List[str]] = None,
    ):
        self.reason = reason
        self.rolled_back = rolled_back
        self.batch_id = batch_id
        self.rollback_failed = list(rollback_failed or [])
        message = (
            f"Operation failed: {reason}. "
            f"{rolled_back} completed files have been rolled back."
        )
        if self.rollback_failed:
            message += (
                f" {len(self.rollback_failed)} could not be rolled back: "
                f"{', '.join(self.rollback_failed)}"
            )
        super().__init__(message)


class OperationCancelledError(ExecutionError):
    """Raised when a running batch observed a cancel request."""

    def __init__(
        self,
        rolled_back: int = 0,
        batch_id: Optional[int] = None,
        rollback_failed: Optional[List[str]] = None,
    ):
        super().__init__(
            "cancelled",
            rolled_back=rolled_back,
            batch_id=batch_id,
            rollback_failed=rollback_failed,
        )


class OperationInProgressError(PlacemarkError):
    """Raised when a batch is started while another one is still running."""

    pass


class PartialUndoError(PlacemarkError):
    """Raised when an undo restored some files but not all of them."""

    def __init__(self, restored: int, failed: List[str]):
        self.restored = restored
        self.failed = list(failed)
        super().__init__(
            f"Partially undone: {restored} restored, {len(self.failed)} failed. "
            "Batch NOT marked as undone."
        )


class LedgerError(PlacemarkError):
    """Raised for unknown batches or illegal batch status transitions."""

    pass
