"""Selectors for the church ledger kernel (read side)."""

from church_kernel.selectors.financial_year_selector import FinancialYearSelector
from church_kernel.selectors.upload_selector import UploadSelector

__all__ = [
    "FinancialYearSelector",
    "UploadSelector",
]
