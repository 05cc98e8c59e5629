"""Domain models for the church ledger kernel."""

from church_kernel.models.financial_year import FinancialYear
from church_kernel.models.transaction import Payment, Transaction
from church_kernel.models.upload_history import (
    UploadHistory,
    UploadStatus,
)

__all__ = [
    "FinancialYear",
    "Payment",
    "Transaction",
    "UploadHistory",
    "UploadStatus",
]
