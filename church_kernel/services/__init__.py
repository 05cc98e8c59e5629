"""Services for the church ledger kernel (write side)."""

from church_kernel.services.financial_year_service import FinancialYearService
from church_kernel.services.upload_history_service import UploadHistoryService

__all__ = [
    "FinancialYearService",
    "UploadHistoryService",
]
