"""Core types and errors shared by the operation engine."""

from .exceptions import (
    ConflictError,
    ExecutionError,
    LedgerError,
    OperationCancelledError,
    OperationInProgressError,
    PartialUndoError,
    PlacemarkError,
    ValidationError,
)
from .types import (
    BatchFile,
    BatchInfo,
    BatchStatus,
    ExecutionProgress,
    ExecutionResult,
    FileOperation,
    OperationBatch,
    OperationPlan,
    OperationStatus,
    OperationType,
    PhotoRef,
    ProgressPhase,
    UndoResult,
)

__all__ = [
    # Errors
    "PlacemarkError",
    "ValidationError",
    "ConflictError",
    "ExecutionError",
    "OperationCancelledError",
    "OperationInProgressError",
    "PartialUndoError",
    "LedgerError",
    # Types
    "PhotoRef",
    "FileOperation",
    "OperationPlan",
    "OperationType",
    "OperationStatus",
    "BatchStatus",
    "BatchFile",
    "OperationBatch",
    "BatchInfo",
    "ProgressPhase",
    "ExecutionProgress",
    "ExecutionResult",
    "UndoResult",
]
