"""
FinancialYearService -- financial-year lifecycle, current-year pointer and reset.

Responsibility:
    Owns the "current financial year" flag, creates year rows from the
    Dec 1 -> Nov 30 calendar, advances to the next year, points "current"
    at an arbitrary year, and executes the confirmation-gated reset that
    deletes a year's dated records.

Architecture position:
    Kernel > Services -- imperative shell.
    Called by the ``church_web`` blueprints and ``scripts/financial_year.py``
    inside a ``session_scope()``.

Invariants enforced:
    - At most one row has ``is_current = True``.  Every write to the flag
      goes through ``promote_to_current()``, which clears all flags and sets
      one inside the caller's transaction.  The partial unique index on
      ``is_current`` backs this up in the database.
    - find-or-create by label is race tolerant: an insert that loses on the
      ``label`` unique constraint is rolled back to its SAVEPOINT and the
      winning row is re-fetched.
    - Reset deletes nothing unless the confirmation phrase matches, and
      never deletes the FinancialYear row itself.
    - Flush-only: never commits or rolls back the session.

Failure modes:
    - FinancialYearNotFoundError: year id does not resolve.
    - NoCurrentFinancialYearError: start-next with no current year.
    - ResetConfirmationMismatchError: wrong confirmation text.
    - UnauthenticatedError / ForbiddenError: mutating call by a non-admin.

Audit relevance:
    Promotions and resets are logged at INFO with the year label, the
    acting user and (for resets) the deletion counts.  Rejected resets are
    logged at WARNING.
"""

from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError

from church_kernel.domain.dtos import FinancialYearInfo, ResetPreview, ResetResult
from church_kernel.domain.financial_year import (
    FinancialYearBounds,
    confirmation_matches,
    get_financial_year_bounds,
    get_next_financial_year_bounds,
    reset_confirmation_text,
)
from church_kernel.domain.roles import Actor, require_admin
from church_kernel.exceptions import (
    FinancialYearNotFoundError,
    NoCurrentFinancialYearError,
    ResetConfirmationMismatchError,
)
from church_kernel.logging_config import LogContext, get_logger
from church_kernel.models.financial_year import FinancialYear
from church_kernel.models.transaction import Payment, Transaction
from church_kernel.models.upload_history import UploadHistory
from church_kernel.selectors.financial_year_selector import (
    FinancialYearSelector,
    payments_in_window,
    transactions_in_window,
    uploads_in_window,
)
from church_kernel.services.base import BaseService

logger = get_logger("services.financial_year")


class FinancialYearService(BaseService):
    """
    Service for the financial-year lifecycle.

    Contract:
        Accepts year ids and an ``Actor`` and returns frozen DTOs.
        Mutations flush within the caller's transaction.
    """

    # ------------------------------------------------------------------
    # Current-year resolution and promotion
    # ------------------------------------------------------------------

    def get_or_create_current(self) -> FinancialYearInfo:
        """
        Return the current financial year, creating it from "now" if needed.

        Open to every caller: the current year is the default filter of
        every dashboard, and this path never changes which year is current
        once one exists.
        """
        current = self._get_current_orm()
        if current is not None:
            return current.to_info()

        bounds = get_financial_year_bounds(self._clock.now())
        year = self._find_or_create(bounds, actor_id=None)
        self.promote_to_current(year)

        logger.info(
            "current_financial_year_resolved",
            extra={"label": year.label},
        )
        return year.to_info()

    def start_next_year(self, actor: Actor | None) -> FinancialYearInfo:
        """
        Advance the current-year pointer to the year after the current one.

        Raises:
            NoCurrentFinancialYearError: No year is current yet.
        """
        actor = require_admin(actor, "start next financial year")

        current = self._get_current_orm()
        if current is None:
            raise NoCurrentFinancialYearError()

        bounds = get_next_financial_year_bounds(current.end_date)
        year = self._find_or_create(bounds, actor_id=actor.user_id)
        self.promote_to_current(year, actor_id=actor.user_id)

        logger.info(
            "financial_year_advanced",
            extra={"from_label": current.label, "to_label": year.label},
        )
        return year.to_info()

    def set_current(self, year_id: UUID, actor: Actor | None) -> FinancialYearInfo:
        """
        Point the current-year flag at an existing year (forward or back).

        Raises:
            FinancialYearNotFoundError: Year id does not resolve.
        """
        actor = require_admin(actor, "set current financial year")

        year = self._get_orm(year_id)
        if year is None:
            raise FinancialYearNotFoundError(str(year_id))

        self.promote_to_current(year, actor_id=actor.user_id)
        return year.to_info()

    def promote_to_current(
        self, year: FinancialYear, actor_id: UUID | None = None
    ) -> None:
        """
        Make ``year`` the only current financial year.

        The sole writer of ``is_current``: clears the flag on every row,
        then sets it on ``year``, both inside the caller's transaction.
        """
        self.session.execute(
            update(FinancialYear)
            .where(FinancialYear.is_current.is_(True))
            .values(is_current=False)
            .execution_options(synchronize_session="fetch")
        )
        year.is_current = True
        year.updated_by_id = actor_id
        self.session.flush()

        logger.info(
            "financial_year_promoted",
            extra={"label": year.label, "year_id": year.id},
        )

    # ------------------------------------------------------------------
    # Reset
    # ------------------------------------------------------------------

    def preview_reset(self, year_id: UUID) -> ResetPreview:
        """
        Count what a reset of the year would delete.  Read-only.

        Raises:
            FinancialYearNotFoundError: Year id does not resolve.
        """
        year = self._get_orm(year_id)
        if year is None:
            raise FinancialYearNotFoundError(str(year_id))
        return FinancialYearSelector(self.session).count_in_window(
            year.start_date, year.end_date
        )

    def execute_reset(
        self,
        year_id: UUID,
        confirmation: object,
        actor: Actor | None,
    ) -> ResetResult:
        """
        Delete every payment, transaction and upload dated inside the year.

        Preconditions:
            ``confirmation`` equals ``reset_confirmation_text(year.label)``.

        Postconditions:
            - All three deletes are flushed in the caller's transaction;
              they commit or roll back together.
            - The FinancialYear row and its ``is_current`` flag are unchanged.

        Raises:
            FinancialYearNotFoundError: Year id does not resolve.
            ResetConfirmationMismatchError: Confirmation does not match;
                carries the expected phrase.
        """
        actor = require_admin(actor, "reset financial year")

        year = self._get_orm(year_id)
        if year is None:
            raise FinancialYearNotFoundError(str(year_id))

        with LogContext.bind(financial_year_id=str(year.id)):
            expected = reset_confirmation_text(year.label)
            if not confirmation_matches(expected, confirmation):
                logger.warning(
                    "financial_year_reset_rejected",
                    extra={"label": year.label},
                )
                raise ResetConfirmationMismatchError(year.label, expected)

            start, end = year.start_date, year.end_date
            payments = self.session.execute(
                delete(Payment)
                .where(payments_in_window(start, end))
                .execution_options(synchronize_session=False)
            ).rowcount
            transactions = self.session.execute(
                delete(Transaction)
                .where(transactions_in_window(start, end))
                .execution_options(synchronize_session=False)
            ).rowcount
            uploads = self.session.execute(
                delete(UploadHistory)
                .where(uploads_in_window(start, end))
                .execution_options(synchronize_session=False)
            ).rowcount
            # Bulk deletes bypass the identity map; drop stale state.
            self.session.expire_all()

            logger.info(
                "financial_year_reset",
                extra={
                    "label": year.label,
                    "payments_deleted": payments,
                    "transactions_deleted": transactions,
                    "uploads_deleted": uploads,
                },
            )

        return ResetResult(
            year=year.to_info(),
            payments_deleted=payments,
            transactions_deleted=transactions,
            uploads_deleted=uploads,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _find_or_create(
        self, bounds: FinancialYearBounds, actor_id: UUID | None
    ) -> FinancialYear:
        """Fetch the row labelled ``bounds.label``, inserting it if missing."""
        year = self._get_by_label_orm(bounds.label)
        if year is not None:
            return year

        year = FinancialYear(
            label=bounds.label,
            start_date=bounds.start_date,
            end_date=bounds.end_date,
            is_current=False,
            created_by_id=actor_id,
        )
        try:
            with self.session.begin_nested():
                self.session.add(year)
        except IntegrityError:
            # A concurrent caller inserted the same label first.
            logger.warning(
                "financial_year_create_conflict",
                extra={"label": bounds.label},
            )
            year = self._get_by_label_orm(bounds.label)
            if year is None:
                raise
            return year

        logger.info(
            "financial_year_created",
            extra={
                "label": bounds.label,
                "start_date": str(bounds.start_date),
                "end_date": str(bounds.end_date),
            },
        )
        return year

    def _get_orm(self, year_id: UUID) -> FinancialYear | None:
        return self.session.get(FinancialYear, year_id)

    def _get_by_label_orm(self, label: str) -> FinancialYear | None:
        return self.session.execute(
            select(FinancialYear).where(FinancialYear.label == label)
        ).scalar_one_or_none()

    def _get_current_orm(self) -> FinancialYear | None:
        return self.session.execute(
            select(FinancialYear).where(FinancialYear.is_current.is_(True))
        ).scalar_one_or_none()
