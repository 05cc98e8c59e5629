"""
FinancialYearSelector -- read side of the financial-year lifecycle.

Responsibility:
    Resolves financial years and counts the records dated inside a year's
    window: the reset preview and the per-year breakdown of the year list.

Architecture position:
    Kernel > Selectors -- read-only, never flushes.

Window semantics:
    ``transaction_date`` and ``payment_date`` are dates compared against the
    inclusive ``[start_date, end_date]``.  ``uploaded_at`` is a timestamp;
    it is compared against the half-open UTC range
    ``[start_date 00:00, end_date + 1 day 00:00)`` so that every instant of
    the last day is inside the window.
"""

from datetime import date, datetime, time, timedelta, timezone

from sqlalchemy import ColumnElement, and_, func, select

from church_kernel.domain.dtos import (
    FinancialYearInfo,
    FinancialYearSummary,
    ResetPreview,
)
from church_kernel.models.financial_year import FinancialYear
from church_kernel.models.transaction import Payment, Transaction
from church_kernel.models.upload_history import UploadHistory
from church_kernel.selectors.base import BaseSelector


def timestamp_window(start_date: date, end_date: date) -> tuple[datetime, datetime]:
    """UTC ``[start, end)`` timestamps covering the inclusive date range."""
    start = datetime.combine(start_date, time.min, tzinfo=timezone.utc)
    end = datetime.combine(end_date + timedelta(days=1), time.min, tzinfo=timezone.utc)
    return start, end


def transactions_in_window(start_date: date, end_date: date) -> ColumnElement[bool]:
    return Transaction.transaction_date.between(start_date, end_date)


def payments_in_window(start_date: date, end_date: date) -> ColumnElement[bool]:
    return Payment.payment_date.between(start_date, end_date)


def uploads_in_window(start_date: date, end_date: date) -> ColumnElement[bool]:
    start, end = timestamp_window(start_date, end_date)
    return and_(UploadHistory.uploaded_at >= start, UploadHistory.uploaded_at < end)


class FinancialYearSelector(BaseSelector):
    """Read-only queries over financial years and their windows."""

    def get_by_label(self, label: str) -> FinancialYearInfo | None:
        year = self.session.execute(
            select(FinancialYear).where(FinancialYear.label == label)
        ).scalar_one_or_none()
        return year.to_info() if year else None

    def count_in_window(self, start_date: date, end_date: date) -> ResetPreview:
        """
        Count payments, transactions and uploads dated inside the window.

        Three independent counts so the caller can show a breakdown.
        """
        payments = self.session.execute(
            select(func.count())
            .select_from(Payment)
            .where(payments_in_window(start_date, end_date))
        ).scalar_one()
        transactions = self.session.execute(
            select(func.count())
            .select_from(Transaction)
            .where(transactions_in_window(start_date, end_date))
        ).scalar_one()
        uploads = self.session.execute(
            select(func.count())
            .select_from(UploadHistory)
            .where(uploads_in_window(start_date, end_date))
        ).scalar_one()
        return ResetPreview(
            payments=payments,
            transactions=transactions,
            uploads=uploads,
        )

    def list_with_counts(self) -> list[FinancialYearSummary]:
        """All financial years, newest first, with their record counts."""
        years = self.session.execute(
            select(FinancialYear).order_by(FinancialYear.start_date.desc())
        ).scalars().all()
        return [
            FinancialYearSummary(
                year=year.to_info(),
                counts=self.count_in_window(year.start_date, year.end_date),
            )
            for year in years
        ]
