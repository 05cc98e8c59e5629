"""
Module: church_kernel.models.transaction
Responsibility: ORM persistence for the dated financial records the
    lifecycle services count and delete: product transactions and payments.
Architecture position: Kernel > Models.  May import from db/base.py only.

Both tables carry a nullable ``upload_history_id``.  NULL marks a manually
entered record; a value ties the record to the import batch that created
it, which is what upload rollback deletes by.  Deleting the batch row
(financial-year reset) sets the reference to NULL.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from church_kernel.db.base import TrackedBase, UUIDString


class Transaction(TrackedBase):
    """A product order / stock movement recorded for a church."""

    __tablename__ = "transactions"

    __table_args__ = (
        Index("idx_transaction_date", "transaction_date"),
        Index("idx_transaction_upload", "upload_history_id"),
    )

    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)

    amount: Mapped[Decimal] = mapped_column(nullable=False)

    quantity: Mapped[int] = mapped_column(default=1, nullable=False)

    description: Mapped[str | None] = mapped_column(String(255), nullable=True)

    church_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    upload_history_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("upload_histories.id", ondelete="SET NULL"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Transaction {self.transaction_date}: {self.amount}>"


class Payment(TrackedBase):
    """A payment received from a church."""

    __tablename__ = "payments"

    __table_args__ = (
        Index("idx_payment_date", "payment_date"),
        Index("idx_payment_upload", "upload_history_id"),
    )

    payment_date: Mapped[date] = mapped_column(Date, nullable=False)

    amount: Mapped[Decimal] = mapped_column(nullable=False)

    reference: Mapped[str | None] = mapped_column(String(100), nullable=True)

    church_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    upload_history_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("upload_histories.id", ondelete="SET NULL"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Payment {self.payment_date}: {self.amount}>"
