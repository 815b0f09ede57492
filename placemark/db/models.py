"""SQLAlchemy ORM models for the catalog and the batch ledger."""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, declarative_base, mapped_column, relationship

Base = declarative_base()


class Photo(Base):
    """Photo records in the catalog."""

    __tablename__ = "photos"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    path: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    taken_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    scanned_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<Photo(id={self.id}, path={self.path})>"


class OperationBatchRecord(Base):
    """One copy/move batch in the ledger."""

    __tablename__ = "operation_batch"
    __table_args__ = (
        CheckConstraint("operation IN ('copy', 'move')", name="ck_batch_operation"),
        CheckConstraint(
            "status IN ('pending', 'completed', 'failed', 'undone', 'archived')",
            name="ck_batch_status",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    operation: Mapped[str] = mapped_column(String(10), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    files: Mapped[List["OperationBatchFileRecord"]] = relationship(
        back_populates="batch",
        cascade="all, delete-orphan",
        order_by="OperationBatchFileRecord.position",
    )

    def __repr__(self) -> str:
        return (
            f"<OperationBatchRecord(id={self.id}, operation={self.operation}, "
            f"status={self.status})>"
        )


class OperationBatchFileRecord(Base):
    """A file inside a ledgered batch. Never modified after insert."""

    __tablename__ = "operation_batch_files"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    batch_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("operation_batch.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    photo_id: Mapped[int] = mapped_column(Integer, nullable=False)
    source_path: Mapped[str] = mapped_column(Text, nullable=False)
    dest_path: Mapped[str] = mapped_column(Text, nullable=False)

    batch: Mapped[OperationBatchRecord] = relationship(back_populates="files")
