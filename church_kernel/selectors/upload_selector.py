"""
UploadSelector -- read side of the import-batch history.

Counts are taken by ``upload_history_id``, never by date: a batch owns
exactly the records it created, regardless of what else shares its dates.
"""

from uuid import UUID

from sqlalchemy import func, select

from church_kernel.domain.dtos import UploadInfo
from church_kernel.models.transaction import Payment, Transaction
from church_kernel.models.upload_history import UploadHistory
from church_kernel.selectors.base import BaseSelector


class UploadSelector(BaseSelector):
    """Read-only queries over upload batches."""

    def count_records(self, upload_id: UUID) -> tuple[int, int]:
        """Return ``(transactions, payments)`` created by the batch."""
        transactions = self.session.execute(
            select(func.count())
            .select_from(Transaction)
            .where(Transaction.upload_history_id == upload_id)
        ).scalar_one()
        payments = self.session.execute(
            select(func.count())
            .select_from(Payment)
            .where(Payment.upload_history_id == upload_id)
        ).scalar_one()
        return transactions, payments

    def to_info(self, upload: UploadHistory) -> UploadInfo:
        transactions, payments = self.count_records(upload.id)
        return UploadInfo(
            id=upload.id,
            file_name=upload.file_name,
            upload_type=upload.upload_type,
            status=upload.status_value.value,
            uploaded_at=upload.uploaded_at,
            uploaded_by_id=upload.uploaded_by_id,
            records_processed=upload.records_processed,
            error_log=upload.error_log,
            rolled_back_at=upload.rolled_back_at,
            transaction_count=transactions,
            payment_count=payments,
        )

    def list_recent(self, limit: int = 50) -> list[UploadInfo]:
        """Most recent batches first."""
        uploads = self.session.execute(
            select(UploadHistory)
            .order_by(UploadHistory.uploaded_at.desc())
            .limit(limit)
        ).scalars().all()
        return [self.to_info(u) for u in uploads]
