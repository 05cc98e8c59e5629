"""
Tests for FinancialYearService.

Covers current-year resolution, advancement, set-current, the single
current-year invariant, and the confirmation-gated reset.
"""

from datetime import date, datetime, timezone
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from church_kernel.domain.clock import DeterministicClock
from church_kernel.exceptions import (
    FinancialYearNotFoundError,
    ForbiddenError,
    NoCurrentFinancialYearError,
    ResetConfirmationMismatchError,
    UnauthenticatedError,
)
from church_kernel.models import FinancialYear, Payment, Transaction, UploadHistory
from church_kernel.services.financial_year_service import FinancialYearService


def _utc(year, month, day, hour=12):
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


def _current_count(session) -> int:
    return session.execute(
        select(func.count())
        .select_from(FinancialYear)
        .where(FinancialYear.is_current.is_(True))
    ).scalar_one()


@pytest.fixture
def service(session, deterministic_clock):
    return FinancialYearService(session, clock=deterministic_clock)


class TestGetOrCreateCurrent:
    """Lazy creation of the current financial year."""

    def test_creates_year_from_clock_when_none_exists(self, service, session):
        year = service.get_or_create_current()

        assert year.label == "FY2025"
        assert year.start_date == date(2024, 12, 1)
        assert year.end_date == date(2025, 11, 30)
        assert year.is_current
        assert _current_count(session) == 1

    def test_is_idempotent(self, service, session):
        first = service.get_or_create_current()
        second = service.get_or_create_current()

        assert first.id == second.id
        assert session.execute(
            select(func.count()).select_from(FinancialYear)
        ).scalar_one() == 1

    def test_returns_existing_current_year_even_if_clock_moved(
        self, session, create_year
    ):
        existing = create_year(
            "FY2024", date(2023, 12, 1), date(2024, 11, 30), is_current=True
        )
        clock = DeterministicClock(_utc(2025, 12, 5))

        year = FinancialYearService(session, clock=clock).get_or_create_current()

        assert year.id == existing.id
        assert year.label == "FY2024"

    def test_reuses_existing_row_with_same_label(self, service, session, create_year):
        """A non-current row for today's window is promoted, not duplicated."""
        existing = create_year("FY2025", date(2024, 12, 1), date(2025, 11, 30))

        year = service.get_or_create_current()

        assert year.id == existing.id
        assert year.is_current

    def test_december_clock_resolves_next_label(self, session):
        clock = DeterministicClock(_utc(2025, 12, 1, 0))
        year = FinancialYearService(session, clock=clock).get_or_create_current()
        assert year.label == "FY2026"

    def test_logs_promotion(self, service, captured_logs):
        service.get_or_create_current()
        messages = [r["message"] for r in captured_logs()]
        assert "financial_year_created" in messages
        assert "financial_year_promoted" in messages


class TestStartNextYear:
    def test_advances_to_following_window(self, service, session, super_admin):
        current = service.get_or_create_current()

        nxt = service.start_next_year(super_admin)

        assert nxt.label == "FY2026"
        assert nxt.start_date == date(2025, 12, 1)
        assert nxt.end_date == date(2026, 11, 30)
        assert nxt.is_current
        assert session.get(FinancialYear, current.id).is_current is False
        assert _current_count(session) == 1

    def test_reuses_existing_next_year(self, service, session, create_year, zone_admin):
        service.get_or_create_current()
        existing_next = create_year("FY2026", date(2025, 12, 1), date(2026, 11, 30))

        nxt = service.start_next_year(zone_admin)

        assert nxt.id == existing_next.id
        assert session.execute(
            select(func.count()).select_from(FinancialYear)
        ).scalar_one() == 2

    def test_requires_a_current_year(self, service, super_admin):
        with pytest.raises(NoCurrentFinancialYearError):
            service.start_next_year(super_admin)

    def test_records_acting_user(self, service, session, super_admin):
        service.get_or_create_current()
        nxt = service.start_next_year(super_admin)
        row = session.get(FinancialYear, nxt.id)
        assert row.created_by_id == super_admin.user_id
        assert row.updated_by_id == super_admin.user_id

    def test_group_admin_is_forbidden(self, service, session, group_admin):
        current = service.get_or_create_current()
        with pytest.raises(ForbiddenError):
            service.start_next_year(group_admin)
        assert session.get(FinancialYear, current.id).is_current is True

    def test_anonymous_is_rejected(self, service):
        service.get_or_create_current()
        with pytest.raises(UnauthenticatedError):
            service.start_next_year(None)


class TestSetCurrent:
    def test_moves_current_flag_backwards(self, service, session, super_admin):
        first = service.get_or_create_current()
        service.start_next_year(super_admin)

        restored = service.set_current(first.id, super_admin)

        assert restored.id == first.id
        assert restored.is_current
        assert _current_count(session) == 1

    def test_unknown_year(self, service, super_admin):
        with pytest.raises(FinancialYearNotFoundError):
            service.set_current(uuid4(), super_admin)

    def test_church_user_is_forbidden(self, service, church_user):
        year = service.get_or_create_current()
        with pytest.raises(ForbiddenError):
            service.set_current(year.id, church_user)

    def test_single_current_after_any_sequence(self, service, session, super_admin):
        ids = [service.get_or_create_current().id]
        for _ in range(3):
            ids.append(service.start_next_year(super_admin).id)
        for year_id in reversed(ids):
            service.set_current(year_id, super_admin)
            assert _current_count(session) == 1


class TestPreviewReset:
    def test_counts_records_in_window(
        self,
        service,
        create_transaction,
        create_payment,
        create_upload,
    ):
        year = service.get_or_create_current()
        create_transaction(date(2024, 12, 1))
        create_transaction(date(2025, 11, 30))
        create_transaction(date(2025, 12, 1))  # next year
        create_payment(date(2025, 3, 1))
        create_payment(date(2024, 11, 30))  # previous year
        create_upload(_utc(2025, 11, 30, 23))
        create_upload(_utc(2025, 12, 1, 0))  # next year

        preview = service.preview_reset(year.id)

        assert preview.transactions == 2
        assert preview.payments == 1
        assert preview.uploads == 1
        assert preview.total == 4

    def test_unknown_year(self, service):
        with pytest.raises(FinancialYearNotFoundError):
            service.preview_reset(uuid4())


class TestExecuteReset:
    """Destructive reset of one financial year."""

    def _seed(self, create_transaction, create_payment, create_upload):
        in_window = create_upload(_utc(2025, 2, 1))
        create_upload(_utc(2026, 1, 10), file_name="next-year.csv")
        for _ in range(3):
            create_transaction(date(2025, 2, 1), upload=in_window)
        create_transaction(date(2025, 12, 15))
        create_payment(date(2025, 5, 5))
        create_payment(date(2025, 5, 6))
        create_payment(date(2023, 1, 1))

        # Both edges of FY2025, and the day either side of them.
        for day in (
            date(2024, 11, 30),
            date(2024, 12, 1),
            date(2025, 11, 30),
            date(2025, 12, 1),
        ):
            create_transaction(day)
            create_payment(day)
        create_upload(
            datetime(2024, 11, 30, 23, 59, 59, tzinfo=timezone.utc), file_name="before-start.csv"
        )
        create_upload(datetime(2024, 12, 1, tzinfo=timezone.utc), file_name="start.csv")
        create_upload(
            datetime(2025, 11, 30, 23, 59, 59, tzinfo=timezone.utc), file_name="end.csv"
        )
        create_upload(datetime(2025, 12, 1, tzinfo=timezone.utc), file_name="after-end.csv")

    def test_deletes_only_records_in_window(
        self,
        service,
        session,
        super_admin,
        create_transaction,
        create_payment,
        create_upload,
    ):
        year = service.get_or_create_current()
        self._seed(create_transaction, create_payment, create_upload)

        result = service.execute_reset(year.id, "RESET FY2025", super_admin)

        assert result.transactions_deleted == 5
        assert result.payments_deleted == 4
        assert result.uploads_deleted == 3
        assert result.year.id == year.id

        transaction_dates = session.execute(
            select(Transaction.transaction_date).order_by(Transaction.transaction_date)
        ).scalars().all()
        assert transaction_dates == [date(2024, 11, 30), date(2025, 12, 1), date(2025, 12, 15)]

        payment_dates = session.execute(
            select(Payment.payment_date).order_by(Payment.payment_date)
        ).scalars().all()
        assert payment_dates == [date(2023, 1, 1), date(2024, 11, 30), date(2025, 12, 1)]

        surviving_uploads = set(session.execute(select(UploadHistory.file_name)).scalars())
        assert surviving_uploads == {"before-start.csv", "after-end.csv", "next-year.csv"}
        assert service.preview_reset(year.id).total == 0

    def test_year_row_and_flag_survive(self, service, session, super_admin):
        year = service.get_or_create_current()
        service.execute_reset(year.id, "RESET FY2025", super_admin)
        row = session.get(FinancialYear, year.id)
        assert row is not None
        assert row.is_current is True

    def test_reset_of_empty_year_reports_zero(self, service, zone_admin):
        year = service.get_or_create_current()
        result = service.execute_reset(year.id, "RESET FY2025", zone_admin)
        assert (result.payments_deleted, result.transactions_deleted, result.uploads_deleted) == (0, 0, 0)

    @pytest.mark.parametrize(
        "confirmation",
        ["reset FY2025", "RESET FY2024", "RESET FY2025 ", "", None, 2025],
    )
    def test_mismatch_deletes_nothing(
        self,
        service,
        super_admin,
        confirmation,
        create_transaction,
        create_payment,
        create_upload,
    ):
        year = service.get_or_create_current()
        self._seed(create_transaction, create_payment, create_upload)
        before = service.preview_reset(year.id)

        with pytest.raises(ResetConfirmationMismatchError) as exc_info:
            service.execute_reset(year.id, confirmation, super_admin)

        assert exc_info.value.expected == "RESET FY2025"
        assert service.preview_reset(year.id) == before

    def test_stored_label_drives_the_phrase(self, session, create_year, super_admin, create_payment):
        year = create_year("2024-2025", date(2024, 12, 1), date(2025, 11, 30))
        create_payment(date(2025, 1, 1))
        service = FinancialYearService(session, clock=DeterministicClock())

        result = service.execute_reset(year.id, "RESET 2024-2025", super_admin)

        assert result.payments_deleted == 1

    def test_upload_referenced_outside_window_is_unlinked(
        self, service, session, super_admin, create_upload, create_transaction
    ):
        """Deleting an in-window batch keeps its out-of-window records, unlinked."""
        year = service.get_or_create_current()
        upload = create_upload(_utc(2025, 11, 30, 20))
        txn = create_transaction(date(2025, 12, 2), upload=upload)

        result = service.execute_reset(year.id, "RESET FY2025", super_admin)

        assert result.uploads_deleted == 1
        assert result.transactions_deleted == 0
        assert session.get(Transaction, txn.id).upload_history_id is None

    def test_non_admin_is_rejected_before_anything(self, service, group_admin):
        year = service.get_or_create_current()
        with pytest.raises(ForbiddenError):
            service.execute_reset(year.id, "RESET FY2025", group_admin)

    def test_unknown_year(self, service, super_admin):
        with pytest.raises(FinancialYearNotFoundError):
            service.execute_reset(uuid4(), "RESET FY2025", super_admin)

    def test_logs_reset_and_rejection(self, service, super_admin, captured_logs):
        year = service.get_or_create_current()
        with pytest.raises(ResetConfirmationMismatchError):
            service.execute_reset(year.id, "nope", super_admin)
        service.execute_reset(year.id, "RESET FY2025", super_admin)

        records = captured_logs()
        rejected = [r for r in records if r["message"] == "financial_year_reset_rejected"]
        done = [r for r in records if r["message"] == "financial_year_reset"]
        assert rejected and rejected[0]["level"] == "WARNING"
        assert done and done[0]["financial_year_id"] == str(year.id)
        assert "nope" not in str(rejected[0])
