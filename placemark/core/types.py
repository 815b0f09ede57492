"""
Type definitions for the file operation engine.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import PartialUndoError


class OperationType(str, Enum):
    """Type of file operation."""

    COPY = "copy"
    MOVE = "move"


class OperationStatus(str, Enum):
    """Status of a single planned file operation."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    SKIPPED = "skipped"
    CONFLICT = "conflict"


class BatchStatus(str, Enum):
    """Status of a ledgered batch."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    UNDONE = "undone"
    ARCHIVED = "archived"


class ProgressPhase(str, Enum):
    """Phase reported to progress observers."""

    VALIDATING = "validating"
    EXECUTING = "executing"
    COMPLETE = "complete"


class PhotoRef(BaseModel):
    """A photo as known to the catalog (read-only here)."""

    id: int = Field(description="Catalog photo ID")
    source_path: str = Field(description="Current path of the file on disk")
    file_size: int = Field(default=0, description="File size in bytes")


class FileOperation(BaseModel):
    """A single proposed copy or move of one photo."""

    id: str = Field(description="Unique operation ID")
    photo_id: int = Field(description="Catalog photo ID for path updates")
    type: OperationType = Field(description="Operation type (copy/move)")
    source_path: str = Field(description="Source file path")
    dest_path: str = Field(description="Destination file path")
    status: OperationStatus = Field(
        default=OperationStatus.PENDING,
        description="Operation status",
    )
    error: Optional[str] = Field(default=None, description="Error message if any")
    file_size: int = Field(default=0, description="File size in bytes")

    model_config = ConfigDict(use_enum_values=True)


class OperationPlan(BaseModel):
    """
    Plan handle returned by preview and passed into execute.

    Holds every proposed operation for one destination folder, plus the
    totals shown to the user before anything touches the disk.
    """

    plan_id: str = Field(description="Unique plan ID")
    operation_type: OperationType = Field(description="Operation type (copy/move)")
    dest_folder: str = Field(description="Destination folder")
    operations: List[FileOperation] = Field(default_factory=list)
    total_files: int = 0
    total_size: int = 0
    warnings: List[str] = Field(default_factory=list)

    model_config = ConfigDict(use_enum_values=True)

    @property
    def pending_operations(self) -> List[FileOperation]:
        return [op for op in self.operations if op.status == OperationStatus.PENDING]

    @property
    def skipped_operations(self) -> List[FileOperation]:
        return [op for op in self.operations if op.status == OperationStatus.SKIPPED]


class BatchFile(BaseModel):
    """One file recorded in a ledgered batch."""

    photo_id: int
    source_path: str
    dest_path: str


class OperationBatch(BaseModel):
    """A batch of file operations as stored in the ledger."""

    id: int
    operation_type: OperationType
    timestamp: datetime
    status: BatchStatus
    error: Optional[str] = None
    files: List[BatchFile] = Field(default_factory=list)

    model_config = ConfigDict(use_enum_values=True)


class BatchInfo(BaseModel):
    """Summary of the batch that an undo would reverse."""

    id: int
    operation_type: OperationType
    file_count: int
    timestamp: datetime

    model_config = ConfigDict(use_enum_values=True)


class ExecutionProgress(BaseModel):
    """Progress event sent to observers while a batch runs."""

    total_files: int
    completed_files: int
    current_file: str = ""
    percentage: int = 0
    phase: ProgressPhase

    model_config = ConfigDict(use_enum_values=True)


class ExecutionResult(BaseModel):
    """Result of executing a plan."""

    success: bool
    completed_count: int = 0
    skipped_count: int = 0
    message: str = ""
    batch_id: int = Field(
        default=0, description="Ledger batch ID, 0 when no batch was recorded"
    )


class UndoResult(BaseModel):
    """Result of undoing the most recent batch."""

    success: bool
    message: str
    undone_count: int = 0
    batch_id: Optional[int] = None
    failed: List[str] = Field(
        default_factory=list, description="Files that still need manual attention"
    )

    @property
    def is_partial(self) -> bool:
        return bool(self.failed)

    def raise_for_status(self) -> None:
        """Raise PartialUndoError if some files could not be restored."""
        if self.failed:
            raise PartialUndoError(self.undone_count, self.failed)
