"""
File primitives shared by execution, rollback and undo.

Moves try an atomic rename first and fall back to copy, verify, delete when
source and destination live on different devices. Forward moves, rollback
moves and undo moves all go through move_file so verification is identical
in every direction.
"""

import errno
import logging
import os
import shutil

from send2trash import send2trash

logger = logging.getLogger(__name__)


class CopyVerificationError(OSError):
    """Raised when a copied file doesn't match its source."""

    pass


def _ensure_parent(path: str) -> None:
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)


def _remove_partial(path: str) -> None:
    try:
        if os.path.lexists(path):
            os.unlink(path)
            logger.info(f"Removed partial copy: {path}")
    except OSError as e:
        logger.error(f"Could not remove partial copy {path}: {e}")


def copy_file(source: str, dest: str) -> None:
    """
    Copy a file, removing whatever was written if the copy fails.

    Args:
        source: File to copy
        dest: Destination path (must not exist yet)
    """
    _ensure_parent(dest)
    existed = os.path.lexists(dest)
    try:
        shutil.copy2(source, dest)
    except BaseException:
        if not existed:
            _remove_partial(dest)
        raise


def copy_verify_delete(source: str, dest: str) -> None:
    """
    Cross-device move: copy, check sizes match, then delete the source.

    The source is untouched unless the copy was verified.

    Raises:
        CopyVerificationError: If the copy's size differs from the source
    """
    copy_file(source, dest)

    source_size = os.stat(source).st_size
    dest_size = os.stat(dest).st_size
    if source_size != dest_size:
        _remove_partial(dest)
        raise CopyVerificationError(
            f"Copy verification failed for {os.path.basename(source)} "
            f"({dest_size} of {source_size} bytes)",
        )

    try:
        os.unlink(source)
    except OSError:
        # never leave the file in both places
        _remove_partial(dest)
        raise


def move_file(source: str, dest: str) -> None:
    """
    Move a file, falling back to copy+verify+delete across devices.

    Args:
        source: File to move
        dest: Destination path (must not exist yet)
    """
    _ensure_parent(dest)
    try:
        os.rename(source, dest)
    except OSError as e:
        if e.errno != errno.EXDEV:
            raise
        logger.debug(f"Cross-device move, copying {source} -> {dest}")
        copy_verify_delete(source, dest)


def trash_file(path: str) -> None:
    """Send a file to the OS trash (user-recoverable)."""
    send2trash(path)
    logger.info(f"Trashed {path}")
