"""
Caller-facing operations API.

Ties the planner, validator, executor and undo engine together. Previews
return an OperationPlan handle that is passed back into execute, so any
number of previews can exist side by side.
"""

import logging
import threading
from typing import List, Optional, Sequence, Set

from ..core.exceptions import ValidationError
from ..core.types import (
    BatchInfo,
    ExecutionResult,
    OperationBatch,
    OperationPlan,
    OperationStatus,
    OperationType,
    PhotoRef,
    UndoResult,
)
from ..db.catalog import PhotoCatalog
from ..db.config import Settings, settings
from ..db.connection import get_session_factory
from ..db.ledger import BatchLedger
from .executor import BatchExecutor, ProgressCallback
from .planner import build_plan
from .undo import UndoEngine
from .validator import validate_destination, validate_operations

logger = logging.getLogger(__name__)


def _parse_operation_type(operation_type) -> OperationType:
    try:
        return OperationType(operation_type)
    except ValueError:
        raise ValidationError(f"Invalid operation type: {operation_type}")


class OperationsService:
    """Preview, execute, cancel and undo copy/move batches."""

    def __init__(
        self,
        ledger: BatchLedger,
        catalog: Optional[PhotoCatalog] = None,
        executor: Optional[BatchExecutor] = None,
        undo_engine: Optional[UndoEngine] = None,
        app_settings: Optional[Settings] = None,
    ):
        """
        Initialize the service.

        Args:
            ledger: Batch ledger
            catalog: Photo catalog (needed for preview_ids and path updates)
            executor: Batch executor (built from ledger and catalog if omitted)
            undo_engine: Undo engine (built from ledger and catalog if omitted)
            app_settings: Settings (defaults to the global settings)
        """
        self.ledger = ledger
        self.catalog = catalog
        self.settings = app_settings or settings
        self.executor = executor or BatchExecutor(ledger, catalog)
        self.undo_engine = undo_engine or UndoEngine(ledger, catalog)
        self._executed_plans: Set[str] = set()
        self._plans_lock = threading.Lock()

    @classmethod
    def from_settings(
        cls,
        app_settings: Optional[Settings] = None,
        start_session: bool = False,
    ) -> "OperationsService":
        """
        Build a service on the configured database.

        Args:
            app_settings: Settings (defaults to the global settings)
            start_session: Archive batches left over from earlier processes
        """
        app_settings = app_settings or settings
        session_factory = get_session_factory(app_settings)
        service = cls(
            BatchLedger(session_factory),
            PhotoCatalog(session_factory),
            app_settings=app_settings,
        )
        if start_session:
            archived = service.start_session()
            logger.info(f"New undo session: {archived} earlier batches archived")
        return service

    @property
    def protected_folders(self) -> List[str]:
        return [str(self.settings.data_dir), *self.settings.protected_folders]

    def start_session(self) -> int:
        """
        Start a new undo session.

        Completed batches from earlier sessions stop being undoable.

        Returns:
            Number of batches archived
        """
        return self.ledger.archive_all_completed()

    def preview(
        self,
        photos: Sequence[PhotoRef],
        dest_folder: str,
        operation_type,
    ) -> OperationPlan:
        """
        Plan and validate a batch without touching any file.

        Args:
            photos: Photos to copy/move
            dest_folder: Destination folder
            operation_type: copy or move

        Returns:
            Plan handle with each operation marked pending or skipped

        Raises:
            ValidationError: If the destination or a source is unusable
            ConflictError: If any destination is already occupied
        """
        op_type = _parse_operation_type(operation_type)
        validate_destination(dest_folder, self.protected_folders)

        plan = build_plan(photos, dest_folder, op_type)
        preflight = validate_operations(plan.operations)

        checked = {op.id: op for op in preflight.to_execute + preflight.skipped}
        operations = [checked[op.id] for op in plan.operations]
        warnings = []
        if preflight.skipped:
            warnings.append(
                f"{len(preflight.skipped)} files are already in the destination folder"
            )

        plan = plan.model_copy(update={"operations": operations, "warnings": warnings})
        logger.info(
            f"Preview {plan.plan_id}: {len(preflight.to_execute)} to {op_type.value}, "
            f"{len(preflight.skipped)} skipped"
        )
        return plan

    def preview_ids(
        self,
        photo_ids: Sequence[int],
        dest_folder: str,
        operation_type,
    ) -> OperationPlan:
        """
        Preview a batch for catalog photo IDs.

        Raises:
            ValidationError: If no IDs or some unknown IDs were given
        """
        if self.catalog is None:
            raise ValidationError("No photo catalog configured")

        photos = self.catalog.get_photos_by_ids(photo_ids)
        if not photos:
            raise ValidationError("No valid photos found for the provided IDs")
        if len(photos) != len(photo_ids):
            raise ValidationError(
                f"Some photo IDs are invalid "
                f"(requested {len(photo_ids)}, found {len(photos)})"
            )
        return self.preview(photos, dest_folder, operation_type)

    def execute(
        self,
        plan: OperationPlan,
        progress: Optional[ProgressCallback] = None,
    ) -> ExecutionResult:
        """
        Execute a previewed plan.

        Raises:
            ValidationError: If the plan was already executed or is blocked
            ConflictError: If a destination became occupied since preview
            ExecutionError: If the batch failed and was rolled back
        """
        with self._plans_lock:
            if plan.plan_id in self._executed_plans:
                raise ValidationError(
                    "This preview was already executed. Please generate a new preview."
                )

        blocking = [
            op
            for op in plan.operations
            if op.status in (OperationStatus.CONFLICT, OperationStatus.FAILED)
        ]
        if blocking:
            raise ValidationError(
                f"Preview contains {len(blocking)} conflicts/errors. "
                "Resolve them before executing."
            )

        validate_destination(plan.dest_folder, self.protected_folders)

        result = self.executor.execute(plan, progress=progress)

        with self._plans_lock:
            self._executed_plans.add(plan.plan_id)
        return result

    def cancel(self) -> bool:
        """Request cancellation of the running batch."""
        return self.executor.cancel()

    def undo_last_batch(self) -> UndoResult:
        return self.undo_engine.undo_last_batch()

    def can_undo(self) -> Optional[BatchInfo]:
        return self.undo_engine.can_undo()

    def history(self, limit: int = 20) -> List[OperationBatch]:
        return self.ledger.list_batches(limit)
