"""
File operations module.

Plans, validates, executes and undoes batches of photo copies/moves.
A batch either completes in full or is rolled back.
"""

from .executor import BatchExecutor
from .fileops import copy_file, move_file, trash_file
from .planner import build_plan
from .service import OperationsService
from .undo import UndoEngine
from .validator import (
    PreflightResult,
    is_same_path,
    normalize_path,
    validate_destination,
    validate_operations,
)

__all__ = [
    "BatchExecutor",
    "OperationsService",
    "UndoEngine",
    "PreflightResult",
    "build_plan",
    "copy_file",
    "move_file",
    "trash_file",
    "is_same_path",
    "normalize_path",
    "validate_destination",
    "validate_operations",
]
