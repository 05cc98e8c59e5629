"""
Module: church_kernel.models.upload_history
Responsibility: ORM persistence for CSV import batches and their lifecycle.
Architecture position: Kernel > Models.  May import from db/base.py only.

Lifecycle:
    PROCESSING -> COMPLETED | PARTIAL -> ROLLED_BACK

    ROLLED_BACK is terminal.  Rollback is legal from COMPLETED and PARTIAL
    only.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import DateTime, Index, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from church_kernel.db.base import Base, UUIDString


class UploadStatus(str, Enum):
    """Lifecycle status of an upload batch."""

    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    PARTIAL = "PARTIAL"  # finished with row errors
    ROLLED_BACK = "ROLLED_BACK"


class UploadHistory(Base):
    """One CSV import batch."""

    __tablename__ = "upload_histories"

    __table_args__ = (
        Index("idx_upload_uploaded_at", "uploaded_at"),
        Index("idx_upload_status", "status"),
    )

    file_name: Mapped[str] = mapped_column(String(255), nullable=False)

    upload_type: Mapped[str] = mapped_column(
        String(50),
        default="transactions",
        nullable=False,
    )

    uploaded_by_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        nullable=True,
    )

    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    status: Mapped[str] = mapped_column(
        String(20),
        default=UploadStatus.PROCESSING.value,
        nullable=False,
    )

    records_processed: Mapped[int] = mapped_column(default=0, nullable=False)

    error_log: Mapped[str | None] = mapped_column(Text, nullable=True)

    rolled_back_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<UploadHistory {self.file_name}: {self.status_value}>"

    @property
    def status_value(self) -> UploadStatus:
        """Status as an enum whether loaded from the DB or set in memory."""
        return UploadStatus(self.status)

    @property
    def is_rolled_back(self) -> bool:
        return self.status_value == UploadStatus.ROLLED_BACK
