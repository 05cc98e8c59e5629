"""Translate kernel exceptions into JSON error responses."""

from __future__ import annotations

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from church_kernel.exceptions import (
    AuthorizationError,
    ChurchLedgerError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    OriginRejectedError,
    ResetConfirmationMismatchError,
    UnauthenticatedError,
)
from church_kernel.logging_config import get_logger

logger = get_logger("web.errors")

# Checked in order; the first matching class wins.
_STATUS_BY_ERROR: tuple[tuple[type[ChurchLedgerError], int], ...] = (
    (UnauthenticatedError, 401),
    (ForbiddenError, 403),
    (OriginRejectedError, 403),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (InvalidStateError, 400),
    (ResetConfirmationMismatchError, 400),
)


def status_for(error: ChurchLedgerError) -> int:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status
    return 400


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ChurchLedgerError)
    def handle_ledger_error(error: ChurchLedgerError):
        status = status_for(error)
        logger.info(
            "request_failed",
            extra={"code": error.code, "status": status},
        )
        body = {"error": str(error), "code": error.code}
        if isinstance(error, ResetConfirmationMismatchError):
            body["expected"] = error.expected
        return jsonify(body), status

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        return jsonify({"error": error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected(error: Exception):
        logger.exception("request_unhandled_error")
        return jsonify({"error": "Internal server error"}), 500
