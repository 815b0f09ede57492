"""
Pre-flight validation.

Checks every planned operation against the real filesystem before anything
is modified. Conflicts are collected across the whole batch and reported
together; nothing is executed if there is even one.

Existing destination policy (size-match): a file already at the
destination with the same byte size as the source is treated as already
present and skipped. Any other existing entry (different file, symlink,
directory) is a conflict; symlinks are never followed.
"""

import logging
import os
import re
import stat
from typing import Iterable, List, Optional

from pydantic import BaseModel, Field

from ..core.exceptions import ConflictError, ValidationError
from ..core.types import FileOperation, OperationStatus
from .planner import get_basename

logger = logging.getLogger(__name__)

# Folders nobody should be reorganizing photos into
SYSTEM_FOLDERS = ["/System", "/Library"]

_DRIVE_ROOT = re.compile(r"^[A-Za-z]:[\\/]?$")


class PreflightResult(BaseModel):
    """Operations split by what execution should do with them."""

    to_execute: List[FileOperation] = Field(default_factory=list)
    skipped: List[FileOperation] = Field(default_factory=list)


def normalize_path(path: str) -> str:
    """Normalize a path for comparison (forward slashes, lowercase)."""
    return path.replace("\\", "/").lower()


def is_same_path(source: str, dest: str) -> bool:
    """Check if two paths refer to the same file."""
    return normalize_path(source) == normalize_path(dest)


def _is_inside(path: str, folder: str) -> bool:
    n_path = normalize_path(path).rstrip("/")
    n_folder = normalize_path(folder).rstrip("/")
    if not n_folder:
        return False
    return n_path == n_folder or n_path.startswith(n_folder + "/")


def validate_destination(
    dest_folder: str,
    protected_folders: Optional[Iterable[str]] = None,
) -> None:
    """
    Reject destinations that must never receive files.

    Args:
        dest_folder: Destination folder chosen by the user
        protected_folders: Extra folders to refuse (app data, etc.)

    Raises:
        ValidationError: If the destination is unusable
    """
    if not dest_folder or not dest_folder.strip():
        raise ValidationError("Path is empty")

    stripped = dest_folder.strip()
    if stripped in ("/", "\\") or _DRIVE_ROOT.match(stripped):
        raise ValidationError("Cannot write directly to root")

    if not os.path.isabs(dest_folder):
        raise ValidationError("Destination must be an absolute path")

    blocked = list(SYSTEM_FOLDERS)
    blocked.append(os.environ.get("WINDIR", "C:\\Windows"))
    blocked.extend(protected_folders or [])
    if any(_is_inside(dest_folder, folder) for folder in blocked):
        raise ValidationError("Cannot perform operations on system folders")

    if not os.path.isdir(dest_folder):
        raise ValidationError(f"Destination folder does not exist: {dest_folder}")

    if not os.access(dest_folder, os.W_OK):
        raise ValidationError(f"Destination not writable: {dest_folder}")


def _classify(op: FileOperation) -> FileOperation:
    """Return a copy of the operation with its pre-flight status set."""
    if is_same_path(op.source_path, op.dest_path):
        logger.debug(f"Skipping {op.source_path}: already at destination")
        return op.model_copy(update={"status": OperationStatus.SKIPPED})

    try:
        source_size = os.stat(op.source_path).st_size
    except FileNotFoundError:
        raise ValidationError(
            f"Source file no longer exists: {get_basename(op.source_path)}"
        )
    except OSError as e:
        raise ValidationError(f"Cannot read source {op.source_path}: {e}")

    try:
        dest_stat = os.lstat(op.dest_path)
    except FileNotFoundError:
        return op.model_copy(update={"status": OperationStatus.PENDING, "error": None})
    except OSError as e:
        raise ValidationError(f"Cannot check destination: {e}")

    # symlinks (even dangling ones) and directories are always conflicts
    if stat.S_ISREG(dest_stat.st_mode) and dest_stat.st_size == source_size:
        logger.debug(f"Skipping {op.source_path}: identical size file at destination")
        return op.model_copy(update={"status": OperationStatus.SKIPPED})

    return op.model_copy(
        update={
            "status": OperationStatus.CONFLICT,
            "error": "Different file already exists at destination",
        }
    )


def validate_operations(operations: Iterable[FileOperation]) -> PreflightResult:
    """
    Check ALL operations before touching anything.

    Args:
        operations: Planned operations (not modified)

    Returns:
        Operations to execute and operations to skip

    Raises:
        ConflictError: If any destination is occupied by a different file
        ValidationError: If a source vanished or a path can't be inspected
    """
    result = PreflightResult()
    conflicts: List[str] = []

    for op in operations:
        checked = _classify(op)
        if checked.status == OperationStatus.SKIPPED:
            result.skipped.append(checked)
        elif checked.status == OperationStatus.CONFLICT:
            conflicts.append(get_basename(checked.dest_path))
        else:
            result.to_execute.append(checked)

    if conflicts:
        logger.warning(f"Pre-flight found {len(conflicts)} conflicts, aborting")
        raise ConflictError(conflicts)

    return result
