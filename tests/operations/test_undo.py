"""Tests for undoing batches."""

import errno
from unittest.mock import patch

import pytest

from placemark.core.exceptions import ExecutionError, PartialUndoError
from placemark.core.types import BatchStatus, OperationType
from placemark.operations.planner import build_plan


@pytest.fixture
def photos(make_photo, source_dir):
    return [
        make_photo(source_dir / name, name.encode())
        for name in ("a.jpg", "b.jpg")
    ]


def _run(executor, photos, dest_dir, op_type):
    return executor.execute(build_plan(photos, str(dest_dir), op_type))


class TestUndoCopy:
    """Test undoing copies."""

    def test_nothing_to_undo(self, undo_engine):
        """Test an empty ledger reports nothing to undo."""
        result = undo_engine.undo_last_batch()

        assert result.success is False
        assert result.message == "No operation to undo."
        assert result.failed == []
        assert undo_engine.can_undo() is None

    def test_copies_go_to_trash(
        self, executor, undo_engine, ledger, photos, source_dir, dest_dir, fake_trash
    ):
        """Test undoing a copy trashes the copies and keeps the originals."""
        executed = _run(executor, photos, dest_dir, OperationType.COPY)

        result = undo_engine.undo_last_batch()

        assert result.success is True
        assert result.undone_count == 2
        assert result.message == "Undone: copy of 2 files."
        assert list(dest_dir.iterdir()) == []
        assert len(fake_trash) == 2
        assert (source_dir / "a.jpg").exists()
        assert ledger.get_batch(executed.batch_id).status == BatchStatus.UNDONE

    def test_copy_already_removed(self, executor, undo_engine, photos, dest_dir, fake_trash):
        """Test a copy the user already deleted counts as undone."""
        _run(executor, photos, dest_dir, OperationType.COPY)
        (dest_dir / "a.jpg").unlink()

        result = undo_engine.undo_last_batch()

        assert result.success is True
        assert result.undone_count == 2
        assert len(fake_trash) == 1


class TestUndoMove:
    """Test undoing moves."""

    def test_files_and_catalog_restored(
        self, executor, undo_engine, catalog, photos, source_dir, dest_dir
    ):
        """Test moved files go back and catalog paths follow."""
        _run(executor, photos, dest_dir, OperationType.MOVE)

        result = undo_engine.undo_last_batch()

        assert result.success is True
        assert result.message == "Undone: move of 2 files."
        assert (source_dir / "a.jpg").read_bytes() == b"a.jpg"
        assert list(dest_dir.iterdir()) == []
        for photo in photos:
            assert catalog.get_photo(photo.id).source_path == photo.source_path

    def test_occupied_source_is_partial(
        self, executor, undo_engine, ledger, photos, source_dir, dest_dir
    ):
        """Test a file back at the original location is never overwritten."""
        executed = _run(executor, photos, dest_dir, OperationType.MOVE)
        (source_dir / "a.jpg").write_bytes(b"new file")

        result = undo_engine.undo_last_batch()

        assert result.success is False
        assert result.is_partial is True
        assert result.undone_count == 1
        assert result.failed == [
            "Cannot restore a.jpg: file exists at original location"
        ]
        assert "Batch NOT marked as undone" in result.message
        assert (source_dir / "a.jpg").read_bytes() == b"new file"
        assert (dest_dir / "a.jpg").read_bytes() == b"a.jpg"
        assert (source_dir / "b.jpg").exists()
        assert ledger.get_batch(executed.batch_id).status == BatchStatus.COMPLETED

        with pytest.raises(PartialUndoError):
            result.raise_for_status()

    def test_retry_after_partial_undo(
        self, executor, undo_engine, ledger, photos, source_dir, dest_dir
    ):
        """Test a retry restores the unblocked file and reports files already home."""
        executed = _run(executor, photos, dest_dir, OperationType.MOVE)
        (source_dir / "a.jpg").write_bytes(b"new file")
        undo_engine.undo_last_batch()

        (source_dir / "a.jpg").unlink()
        result = undo_engine.undo_last_batch()

        assert result.success is False
        assert result.undone_count == 1
        assert result.failed == [
            "Cannot restore b.jpg: file exists at original location"
        ]
        assert (source_dir / "a.jpg").read_bytes() == b"a.jpg"
        assert ledger.get_batch(executed.batch_id).status == BatchStatus.COMPLETED

    def test_unexpected_error_reported(self, executor, undo_engine, photos, dest_dir):
        """Test other errors are collected per file."""
        _run(executor, photos, dest_dir, OperationType.MOVE)

        with patch(
            "placemark.operations.undo.move_file",
            side_effect=PermissionError(errno.EACCES, "Permission denied"),
        ):
            result = undo_engine.undo_last_batch()

        assert result.success is False
        assert len(result.failed) == 2
        assert result.failed[0].startswith("a.jpg: ")

    def test_cross_device_undo(self, executor, undo_engine, photos, source_dir, dest_dir):
        """Test undo moves back across devices."""
        _run(executor, photos, dest_dir, OperationType.MOVE)

        with patch(
            "placemark.operations.fileops.os.rename",
            side_effect=OSError(errno.EXDEV, "Invalid cross-device link"),
        ):
            result = undo_engine.undo_last_batch()

        assert result.success is True
        assert sorted(p.name for p in source_dir.iterdir()) == ["a.jpg", "b.jpg"]
        assert list(dest_dir.iterdir()) == []


class TestUndoOrdering:
    """Test which batch gets undone."""

    def test_undone_batch_not_undone_again(self, executor, undo_engine, photos, dest_dir):
        """Test undo never reverses the same batch twice."""
        _run(executor, photos, dest_dir, OperationType.COPY)
        undo_engine.undo_last_batch()

        result = undo_engine.undo_last_batch()

        assert result.message == "No operation to undo."

    def test_latest_batch_first(
        self, executor, undo_engine, make_photo, source_dir, tmp_path
    ):
        """Test the newest completed batch is undone first."""
        first_dest = tmp_path / "first"
        second_dest = tmp_path / "second"
        first_dest.mkdir()
        second_dest.mkdir()
        photo = make_photo(source_dir / "a.jpg")

        _run(executor, [photo], first_dest, OperationType.COPY)
        second = _run(executor, [photo], second_dest, OperationType.COPY)

        info = undo_engine.can_undo()
        assert info.id == second.batch_id
        assert info.file_count == 1
        assert info.operation_type == "copy"

        undo_engine.undo_last_batch()

        assert (first_dest / "a.jpg").exists()
        assert not (second_dest / "a.jpg").exists()

    def test_failed_batch_not_undoable(self, executor, undo_engine, photos, dest_dir):
        """Test a rolled back batch is never offered for undo."""
        with patch(
            "placemark.operations.executor.copy_file",
            side_effect=OSError(errno.EIO, "Input/output error"),
        ):
            with pytest.raises(ExecutionError):
                _run(executor, photos, dest_dir, OperationType.COPY)

        assert undo_engine.can_undo() is None
