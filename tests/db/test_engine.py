"""
Tests for engine initialization (church_kernel/db/engine.py).

Sessions on a file database each get their own connection and their own
transaction; only in-memory SQLite shares a single connection.
"""

from datetime import date

import pytest
from sqlalchemy import func, select
from sqlalchemy.pool import StaticPool

from church_kernel.db.engine import (
    create_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from church_kernel.models import FinancialYear


@pytest.fixture
def file_engine(tmp_path):
    engine = init_engine_from_url(f"sqlite:///{tmp_path / 'ledger.db'}")
    create_tables()
    yield engine
    reset_engine()


def _count_years(session) -> int:
    return session.execute(select(func.count()).select_from(FinancialYear)).scalar_one()


def _year(label="FY2025"):
    return FinancialYear(
        label=label,
        start_date=date(2024, 12, 1),
        end_date=date(2025, 11, 30),
        is_current=False,
    )


class TestSqlitePooling:
    def test_memory_database_shares_one_connection(self):
        engine = init_engine_from_url("sqlite:///:memory:")
        try:
            assert isinstance(engine.pool, StaticPool)
        finally:
            reset_engine()

    def test_file_database_does_not_share_a_connection(self, file_engine):
        assert not isinstance(file_engine.pool, StaticPool)

    def test_overlapping_sessions_have_separate_transactions(self, file_engine):
        writer = get_session()
        reader = get_session()
        try:
            writer.add(_year())
            writer.flush()

            # Uncommitted insert is invisible to the other session.
            assert _count_years(reader) == 0
            reader.rollback()

            writer.commit()
            assert _count_years(reader) == 1
        finally:
            writer.close()
            reader.close()

    def test_failed_scope_rolls_back_only_its_own_work(self, file_engine):
        with session_scope() as session:
            session.add(_year("FY2025"))

        with pytest.raises(RuntimeError):
            with session_scope() as session:
                session.add(_year("FY2026"))
                session.flush()
                raise RuntimeError("import failed")

        with session_scope() as session:
            labels = session.execute(select(FinancialYear.label)).scalars().all()
        assert labels == ["FY2025"]
