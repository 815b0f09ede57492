"""
Operation planner.

Maps photos to destination paths for one copy/move batch. Pure: it never
looks at the filesystem, so only collisions inside the batch are resolved
here. Files already present at the destination are a validator concern.
"""

import uuid
from typing import Iterable, List, Set

from ..core.types import FileOperation, OperationPlan, OperationType, PhotoRef


def get_basename(path: str) -> str:
    """
    Get the filename of a path using whichever separator it contains.

    Args:
        path: Windows or POSIX style path

    Returns:
        Last path component
    """
    separator = "\\" if "\\" in path else "/"
    return path.split(separator)[-1] or path


def join_dest(dest_folder: str, filename: str) -> str:
    """Join a filename onto a folder, keeping the folder's separator style."""
    separator = "\\" if "\\" in dest_folder else "/"
    clean_folder = dest_folder
    if clean_folder.endswith("/") or clean_folder.endswith("\\"):
        clean_folder = clean_folder[:-1]
    return f"{clean_folder}{separator}{filename}"


def resolve_batch_collision(filename: str, taken: Set[str]) -> str:
    """
    Pick a filename not yet used in this batch.

    The first occurrence keeps its name; later ones get " (1)", " (2)", ...
    inserted before the extension. Names are compared case-insensitively,
    matching how the validator compares paths.

    Args:
        filename: Desired filename
        taken: Lowercased filenames already assigned in the batch

    Returns:
        Unique filename
    """
    if filename.lower() not in taken:
        return filename

    dot_index = filename.rfind(".")
    if dot_index > 0:
        stem, suffix = filename[:dot_index], filename[dot_index:]
    else:
        stem, suffix = filename, ""

    counter = 1
    while True:
        candidate = f"{stem} ({counter}){suffix}"
        if candidate.lower() not in taken:
            return candidate
        counter += 1


def build_plan(
    photos: Iterable[PhotoRef],
    dest_folder: str,
    operation_type: OperationType,
) -> OperationPlan:
    """
    Generate an operation plan for copying/moving photos.

    Args:
        photos: Photos to operate on, in the order they should run
        dest_folder: Target folder path
        operation_type: copy or move

    Returns:
        Plan with one pending operation per photo and batch totals
    """
    operation_type = OperationType(operation_type)
    operations: List[FileOperation] = []
    taken: Set[str] = set()
    total_size = 0

    for photo in photos:
        filename = resolve_batch_collision(get_basename(photo.source_path), taken)
        taken.add(filename.lower())

        operations.append(
            FileOperation(
                id=str(uuid.uuid4()),
                photo_id=photo.id,
                type=operation_type,
                source_path=photo.source_path,
                dest_path=join_dest(dest_folder, filename),
                file_size=photo.file_size,
            )
        )
        total_size += photo.file_size

    return OperationPlan(
        plan_id=str(uuid.uuid4()),
        operation_type=operation_type,
        dest_folder=dest_folder,
        operations=operations,
        total_files=len(operations),
        total_size=total_size,
    )
