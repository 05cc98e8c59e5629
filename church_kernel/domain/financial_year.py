"""
Financial-year calendar -- pure boundary and confirmation helpers.

Responsibility:
    Maps any reference date to the Dec 1 -> Nov 30 financial-year window
    containing it, computes the window that follows a given year, and
    derives/compares the phrase a caller must type to authorize a reset.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  Persistence of the
    computed windows is the job of FinancialYearService.

Examples:
    - 2024-12-01 is in FY2025 (2024-12-01 .. 2025-11-30)
    - 2025-11-30 is in FY2025
    - 2025-12-01 is in FY2026
"""

import hmac
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone

START_MONTH = 12
START_DAY = 1
END_MONTH = 11
END_DAY = 30


@dataclass(frozen=True)
class FinancialYearBounds:
    """A financial-year window. Both bounds are inclusive."""

    label: str
    start_date: date
    end_date: date

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


def _as_utc_date(reference: date | datetime) -> date:
    if isinstance(reference, datetime):
        if reference.tzinfo is not None:
            reference = reference.astimezone(timezone.utc)
        return reference.date()
    return reference


def label_for_end_year(end_year: int) -> str:
    return f"FY{end_year}"


def bounds_for_end_year(end_year: int) -> FinancialYearBounds:
    """Window that ends on Nov 30 of ``end_year``."""
    return FinancialYearBounds(
        label=label_for_end_year(end_year),
        start_date=date(end_year - 1, START_MONTH, START_DAY),
        end_date=date(end_year, END_MONTH, END_DAY),
    )


def get_financial_year_bounds(reference: date | datetime) -> FinancialYearBounds:
    """
    Get the financial-year window containing ``reference``.

    Aware datetimes are normalised to UTC before the calendar date is
    taken; naive datetimes are read as UTC.
    """
    day = _as_utc_date(reference)
    end_year = day.year + 1 if day.month >= START_MONTH else day.year
    return bounds_for_end_year(end_year)


def get_next_financial_year_bounds(current_end_date: date) -> FinancialYearBounds:
    """
    Window following the year that ends on ``current_end_date``.

    The next window starts the day after ``current_end_date``.
    """
    next_start = _as_utc_date(current_end_date) + timedelta(days=1)
    return get_financial_year_bounds(next_start)


def reset_confirmation_text(label: str) -> str:
    """Phrase the caller must echo back to reset the year ``label``."""
    return f"RESET {label}"


def confirmation_matches(expected: str, supplied: object) -> bool:
    """
    Constant-time, length-checked comparison of a confirmation phrase.

    Any value that cannot be encoded (not a string, lone surrogates) is a
    mismatch.  Length is compared first; only equal-length buffers reach
    ``hmac.compare_digest``.
    """
    try:
        expected_bytes = expected.encode("utf-8")
        supplied_bytes = supplied.encode("utf-8")  # type: ignore[union-attr]
    except (AttributeError, UnicodeEncodeError):
        return False

    if len(expected_bytes) != len(supplied_bytes):
        return False
    return hmac.compare_digest(expected_bytes, supplied_bytes)
