"""
Module: church_kernel.models.financial_year
Responsibility: ORM persistence for financial years -- the Dec 1 -> Nov 30
    windows that scope reporting, resets and the "current year" default.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - label is unique (uq_financial_year_label); the constraint arbitrates
      concurrent find-or-create.
    - At most one row has is_current = true
      (uq_financial_years_single_current, partial unique index).  The flag
      is only ever written through FinancialYearService.promote_to_current.
"""

from __future__ import annotations

from datetime import date

from sqlalchemy import Boolean, Date, Index, String, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column

from church_kernel.db.base import TrackedBase
from church_kernel.domain.dtos import FinancialYearInfo


class FinancialYear(TrackedBase):
    """
    A financial year.

    Guarantees:
        - start_date and end_date are inclusive bounds.
        - Rows are never deleted by the lifecycle services; a reset removes
          the records dated inside the window, not the window itself.
    """

    __tablename__ = "financial_years"

    __table_args__ = (
        UniqueConstraint("label", name="uq_financial_year_label"),
        Index(
            "uq_financial_years_single_current",
            "is_current",
            unique=True,
            postgresql_where=text("is_current"),
            sqlite_where=text("is_current = 1"),
        ),
        Index("idx_financial_year_dates", "start_date", "end_date"),
    )

    # e.g. "FY2025"
    label: Mapped[str] = mapped_column(String(20), nullable=False)

    start_date: Mapped[date] = mapped_column(Date, nullable=False)

    end_date: Mapped[date] = mapped_column(Date, nullable=False)

    is_current: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    def __repr__(self) -> str:
        flag = " (current)" if self.is_current else ""
        return f"<FinancialYear {self.label}{flag}>"

    def to_info(self) -> FinancialYearInfo:
        return FinancialYearInfo(
            id=self.id,
            label=self.label,
            start_date=self.start_date,
            end_date=self.end_date,
            is_current=self.is_current,
        )
