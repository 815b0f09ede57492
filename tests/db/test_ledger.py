"""Tests for the batch ledger."""

from datetime import datetime, timedelta

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from placemark.core.exceptions import LedgerError
from placemark.core.types import BatchFile, BatchStatus, OperationType
from placemark.db.connection import session_scope
from placemark.db.models import OperationBatchFileRecord, OperationBatchRecord


def _files(count=2):
    return [
        BatchFile(
            photo_id=index + 1,
            source_path=f"/a/IMG_{index}.jpg",
            dest_path=f"/backup/IMG_{index}.jpg",
        )
        for index in range(count)
    ]


class TestInsert:
    """Test recording batches."""

    def test_insert_and_get(self, ledger):
        """Test a batch round-trips with its files in order."""
        files = _files(3)

        batch_id = ledger.insert_batch(OperationType.MOVE, files)
        batch = ledger.get_batch(batch_id)

        assert batch.id == batch_id
        assert batch.operation_type == "move"
        assert batch.status == BatchStatus.PENDING
        assert batch.error is None
        assert batch.files == files

    def test_get_unknown(self, ledger):
        """Test an unknown batch is None."""
        assert ledger.get_batch(42) is None

    def test_insert_is_atomic(self, ledger, session_factory):
        """Test a batch with a bad file row leaves nothing behind."""
        files = _files(1) + [
            BatchFile.model_construct(photo_id=2, source_path=None, dest_path="/b/x.jpg")
        ]

        with pytest.raises(IntegrityError):
            ledger.insert_batch(OperationType.COPY, files)

        with session_scope(session_factory) as session:
            assert session.scalar(select(func.count(OperationBatchRecord.id))) == 0
            assert session.scalar(select(func.count(OperationBatchFileRecord.id))) == 0


class TestStatus:
    """Test status transitions."""

    @pytest.mark.parametrize(
        "path",
        [
            [BatchStatus.COMPLETED],
            [BatchStatus.FAILED],
            [BatchStatus.COMPLETED, BatchStatus.UNDONE],
            [BatchStatus.COMPLETED, BatchStatus.ARCHIVED],
        ],
    )
    def test_allowed(self, ledger, path):
        """Test every legal lifecycle."""
        batch_id = ledger.insert_batch(OperationType.COPY, _files())

        for status in path:
            ledger.update_status(batch_id, status)

        assert ledger.get_batch(batch_id).status == path[-1]

    @pytest.mark.parametrize(
        "path",
        [
            [BatchStatus.UNDONE],
            [BatchStatus.FAILED, BatchStatus.COMPLETED],
            [BatchStatus.COMPLETED, BatchStatus.UNDONE, BatchStatus.COMPLETED],
            [BatchStatus.COMPLETED, BatchStatus.ARCHIVED, BatchStatus.UNDONE],
        ],
    )
    def test_illegal(self, ledger, path):
        """Test terminal states stay terminal."""
        batch_id = ledger.insert_batch(OperationType.COPY, _files())

        with pytest.raises(LedgerError, match="cannot go from"):
            for status in path:
                ledger.update_status(batch_id, status)

    def test_failed_keeps_error(self, ledger):
        """Test the failure reason is stored."""
        batch_id = ledger.insert_batch(OperationType.COPY, _files())

        ledger.update_status(batch_id, BatchStatus.FAILED, "disk full")

        assert ledger.get_batch(batch_id).error == "disk full"

    def test_unknown_batch(self, ledger):
        """Test updating a batch that doesn't exist."""
        with pytest.raises(LedgerError, match="Unknown batch"):
            ledger.update_status(7, BatchStatus.COMPLETED)

    def test_mark_undone(self, ledger):
        """Test mark_undone on a completed batch."""
        batch_id = ledger.insert_batch(
            OperationType.COPY, _files(), status=BatchStatus.COMPLETED
        )

        ledger.mark_undone(batch_id)

        assert ledger.get_batch(batch_id).status == BatchStatus.UNDONE


class TestQueries:
    """Test undo lookups and history."""

    def test_most_recent_completed(self, ledger):
        """Test only completed batches are candidates, newest first."""
        now = datetime.now()
        older = ledger.insert_batch(
            OperationType.COPY,
            _files(),
            timestamp=now - timedelta(minutes=5),
            status=BatchStatus.COMPLETED,
        )
        newer = ledger.insert_batch(
            OperationType.MOVE, _files(), timestamp=now, status=BatchStatus.COMPLETED
        )
        ledger.insert_batch(
            OperationType.COPY,
            _files(),
            timestamp=now + timedelta(minutes=1),
            status=BatchStatus.PENDING,
        )

        assert ledger.get_most_recent_completed_batch().id == newer

        ledger.mark_undone(newer)

        assert ledger.get_most_recent_completed_batch().id == older

    def test_same_timestamp_uses_id(self, ledger):
        """Test ties on timestamp go to the later batch."""
        now = datetime.now()
        ledger.insert_batch(
            OperationType.COPY, _files(), timestamp=now, status=BatchStatus.COMPLETED
        )
        second = ledger.insert_batch(
            OperationType.COPY, _files(), timestamp=now, status=BatchStatus.COMPLETED
        )

        assert ledger.get_most_recent_completed_batch().id == second

    def test_none_completed(self, ledger):
        """Test no completed batches."""
        ledger.insert_batch(OperationType.COPY, _files())

        assert ledger.get_most_recent_completed_batch() is None

    def test_list_batches_limit(self, ledger):
        """Test history is newest first and limited."""
        now = datetime.now()
        ids = [
            ledger.insert_batch(
                OperationType.COPY, _files(), timestamp=now + timedelta(seconds=i)
            )
            for i in range(4)
        ]

        batches = ledger.list_batches(limit=3)

        assert [b.id for b in batches] == list(reversed(ids))[:3]

    def test_archive_all_completed(self, ledger):
        """Test only completed batches are archived, and records are kept."""
        completed = ledger.insert_batch(
            OperationType.COPY, _files(), status=BatchStatus.COMPLETED
        )
        pending = ledger.insert_batch(OperationType.COPY, _files())

        assert ledger.archive_all_completed() == 1
        assert ledger.archive_all_completed() == 0

        assert ledger.get_batch(completed).status == BatchStatus.ARCHIVED
        assert ledger.get_batch(completed).files == _files()
        assert ledger.get_batch(pending).status == BatchStatus.PENDING
        assert ledger.get_most_recent_completed_batch() is None
