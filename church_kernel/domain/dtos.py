"""
Domain DTOs -- immutable results returned by services and selectors.

Services and selectors never hand ORM entities to their callers; they
return these frozen snapshots so the HTTP layer and the CLI can serialize
them after the session is closed.
"""

from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID


@dataclass(frozen=True)
class FinancialYearInfo:
    """Snapshot of a financial-year row."""

    id: UUID
    label: str
    start_date: date
    end_date: date
    is_current: bool

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "label": self.label,
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
            "isCurrent": self.is_current,
        }


@dataclass(frozen=True)
class ResetPreview:
    """Records dated inside a financial year, counted per table."""

    payments: int
    transactions: int
    uploads: int

    @property
    def total(self) -> int:
        return self.payments + self.transactions + self.uploads

    def to_dict(self) -> dict:
        return {
            "payments": self.payments,
            "transactions": self.transactions,
            "uploads": self.uploads,
        }


@dataclass(frozen=True)
class FinancialYearSummary:
    """A financial year together with its record counts."""

    year: FinancialYearInfo
    counts: ResetPreview

    def to_dict(self) -> dict:
        return {
            **self.year.to_dict(),
            "transactionCount": self.counts.transactions,
            "paymentCount": self.counts.payments,
            "uploadCount": self.counts.uploads,
        }


@dataclass(frozen=True)
class ResetResult:
    """Outcome of a confirmed financial-year reset."""

    year: FinancialYearInfo
    payments_deleted: int
    transactions_deleted: int
    uploads_deleted: int

    def to_dict(self) -> dict:
        return {
            "financialYear": self.year.to_dict(),
            "paymentsDeleted": self.payments_deleted,
            "transactionsDeleted": self.transactions_deleted,
            "uploadsDeleted": self.uploads_deleted,
        }


@dataclass(frozen=True)
class UploadInfo:
    """Snapshot of an upload batch with the records it still owns."""

    id: UUID
    file_name: str
    upload_type: str
    status: str
    uploaded_at: datetime | None
    uploaded_by_id: UUID | None
    records_processed: int
    error_log: str | None
    rolled_back_at: datetime | None
    transaction_count: int = 0
    payment_count: int = 0

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "fileName": self.file_name,
            "uploadType": self.upload_type,
            "status": self.status,
            "uploadedAt": self.uploaded_at.isoformat() if self.uploaded_at else None,
            "uploadedBy": str(self.uploaded_by_id) if self.uploaded_by_id else None,
            "recordsProcessed": self.records_processed,
            "errorLog": self.error_log,
            "rolledBackAt": self.rolled_back_at.isoformat() if self.rolled_back_at else None,
            "transactionCount": self.transaction_count,
            "paymentCount": self.payment_count,
        }


@dataclass(frozen=True)
class RollbackResult:
    """Outcome of rolling back one upload batch."""

    upload_id: UUID
    transactions_deleted: int
    payments_deleted: int

    def to_dict(self) -> dict:
        return {
            "message": "Upload rolled back successfully",
            "deletedTransactions": self.transactions_deleted,
            "deletedPayments": self.payments_deleted,
        }
