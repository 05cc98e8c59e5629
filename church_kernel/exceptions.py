"""
Typed Exception Hierarchy for the Church Ledger kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Every failure a caller can react to has its own class and a machine-readable
``code`` class attribute.  The HTTP layer maps categories to status codes;
logs carry ``exc_code`` and the structured attributes of the exception.

    try:
        service.execute_reset(year_id, confirmation, actor)
    except ResetConfirmationMismatchError as e:
        return {"error": str(e), "expected": e.expected}

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    ChurchLedgerError (base)
    |
    +-- AuthorizationError
    |   +-- UnauthenticatedError
    |   +-- ForbiddenError
    |   +-- OriginRejectedError
    |
    +-- NotFoundError
    |   +-- FinancialYearNotFoundError
    |   +-- UploadNotFoundError
    |
    +-- InvalidStateError
    |   +-- NoCurrentFinancialYearError
    |   +-- UploadAlreadyRolledBackError
    |   +-- UploadStillProcessingError
    |   +-- NothingToRollBackError
    |   +-- InvalidUploadTransitionError
    |
    +-- ResetConfirmationMismatchError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                          | When Raised
----------------|-------------------------------|----------------------------------
Authorization   | UNAUTHENTICATED               | No valid session
                | FORBIDDEN                     | Role lacks the capability
                | ORIGIN_REJECTED               | Same-site check failed
----------------|-------------------------------|----------------------------------
Not found       | FINANCIAL_YEAR_NOT_FOUND      | Year id does not exist
                | UPLOAD_NOT_FOUND              | Upload id does not exist
----------------|-------------------------------|----------------------------------
Invalid state   | NO_CURRENT_FINANCIAL_YEAR     | Start-next with no current year
                | UPLOAD_ALREADY_ROLLED_BACK    | Second rollback of a batch
                | UPLOAD_STILL_PROCESSING       | Rollback of an unfinished batch
                | NOTHING_TO_ROLL_BACK          | Batch created no records
                | INVALID_UPLOAD_TRANSITION     | Completing a non-PROCESSING batch
----------------|-------------------------------|----------------------------------
Reset           | RESET_CONFIRMATION_MISMATCH   | Confirmation text did not match
"""


class ChurchLedgerError(Exception):
    """
    Base exception for all church ledger errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "CHURCH_LEDGER_ERROR"


# Authorization exceptions


class AuthorizationError(ChurchLedgerError):
    """Base exception for rejected callers."""

    code: str = "AUTHORIZATION_ERROR"


class UnauthenticatedError(AuthorizationError):
    """No authenticated actor is attached to the request."""

    code: str = "UNAUTHENTICATED"

    def __init__(self):
        super().__init__("Unauthorized")


class ForbiddenError(AuthorizationError):
    """Authenticated actor lacks the role required by the operation."""

    code: str = "FORBIDDEN"

    def __init__(self, role: str, operation: str):
        self.role = role
        self.operation = operation
        super().__init__("Forbidden")


class OriginRejectedError(AuthorizationError):
    """Request did not originate from the serving host."""

    code: str = "ORIGIN_REJECTED"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__("Invalid request origin")


# Not-found exceptions


class NotFoundError(ChurchLedgerError):
    """Base exception for unresolved identifiers."""

    code: str = "NOT_FOUND"


class FinancialYearNotFoundError(NotFoundError):
    """Financial year id does not resolve to a stored row."""

    code: str = "FINANCIAL_YEAR_NOT_FOUND"

    def __init__(self, year_id: str):
        self.year_id = year_id
        super().__init__("Financial year not found")


class UploadNotFoundError(NotFoundError):
    """Upload batch id does not resolve to a stored row."""

    code: str = "UPLOAD_NOT_FOUND"

    def __init__(self, upload_id: str):
        self.upload_id = upload_id
        super().__init__("Upload not found")


# Invalid-state exceptions


class InvalidStateError(ChurchLedgerError):
    """Base exception for operations invalid in the current lifecycle state."""

    code: str = "INVALID_STATE"


class NoCurrentFinancialYearError(InvalidStateError):
    """Cannot advance: no financial year is flagged current."""

    code: str = "NO_CURRENT_FINANCIAL_YEAR"

    def __init__(self):
        super().__init__(
            "No current financial year found. "
            "Fetch /api/financial-years/current first."
        )


class UploadAlreadyRolledBackError(InvalidStateError):
    """Upload batch is already ROLLED_BACK."""

    code: str = "UPLOAD_ALREADY_ROLLED_BACK"

    def __init__(self, upload_id: str):
        self.upload_id = upload_id
        super().__init__("Upload has already been rolled back")


class UploadStillProcessingError(InvalidStateError):
    """Upload batch has not finished importing."""

    code: str = "UPLOAD_STILL_PROCESSING"

    def __init__(self, upload_id: str):
        self.upload_id = upload_id
        super().__init__("Cannot rollback an upload that is still processing")


class NothingToRollBackError(InvalidStateError):
    """Upload batch produced no transactions and no payments."""

    code: str = "NOTHING_TO_ROLL_BACK"

    def __init__(self, upload_id: str):
        self.upload_id = upload_id
        super().__init__("No records to rollback for this upload")


class InvalidUploadTransitionError(InvalidStateError):
    """Upload batch status does not allow the requested transition."""

    code: str = "INVALID_UPLOAD_TRANSITION"

    def __init__(self, upload_id: str, current_status: str, target_status: str):
        self.upload_id = upload_id
        self.current_status = current_status
        self.target_status = target_status
        super().__init__(
            f"Upload {upload_id} cannot move from {current_status} "
            f"to {target_status}"
        )


# Reset exceptions


class ResetConfirmationMismatchError(ChurchLedgerError):
    """
    Reset confirmation text did not match the expected phrase.

    The expected phrase is derived from the public year label, so it is
    returned to the caller to show what must be typed.
    """

    code: str = "RESET_CONFIRMATION_MISMATCH"

    def __init__(self, year_label: str, expected: str):
        self.year_label = year_label
        self.expected = expected
        super().__init__(f'Invalid confirmation. Expected "{expected}".')
