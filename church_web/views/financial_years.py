"""Financial-year routes: current year, advancement and reset."""

from flask import Blueprint, jsonify, request

from church_kernel.db import session_scope
from church_kernel.domain.roles import require_admin, require_authenticated
from church_kernel.exceptions import FinancialYearNotFoundError
from church_kernel.logging_config import LogContext
from church_kernel.selectors.financial_year_selector import FinancialYearSelector
from church_kernel.services.financial_year_service import FinancialYearService
from church_web.security import current_actor, require_same_site
from church_web.views.common import app_clock, parse_id

financial_years_bp = Blueprint(
    "financial_years", __name__, url_prefix="/api/financial-years"
)


@financial_years_bp.get("")
def list_years():
    """Every financial year, newest first, with record counts."""
    require_authenticated(current_actor())
    with session_scope() as session:
        summaries = FinancialYearSelector(session).list_with_counts()
    return jsonify({"financialYears": [s.to_dict() for s in summaries]})


@financial_years_bp.get("/current")
def current_year():
    """The current financial year, created from today's date if none is set."""
    require_authenticated(current_actor())
    with session_scope() as session:
        year = FinancialYearService(session, clock=app_clock()).get_or_create_current()
    return jsonify({"financialYear": year.to_dict()})


@financial_years_bp.post("/start-next")
def start_next():
    require_same_site()
    actor = require_admin(current_actor(), "start next financial year")
    with session_scope() as session:
        year = FinancialYearService(session, clock=app_clock()).start_next_year(actor)
    return jsonify({"financialYear": year.to_dict()})


@financial_years_bp.post("/<year_id>/set-current")
def set_current(year_id: str):
    require_same_site()
    actor = require_admin(current_actor(), "set current financial year")
    parsed = parse_id(year_id, FinancialYearNotFoundError)
    with session_scope() as session:
        year = FinancialYearService(session, clock=app_clock()).set_current(
            parsed, actor
        )
    return jsonify({"financialYear": year.to_dict()})


@financial_years_bp.get("/<year_id>/preview-reset")
def preview_reset(year_id: str):
    require_admin(current_actor(), "preview financial year reset")
    parsed = parse_id(year_id, FinancialYearNotFoundError)
    with session_scope() as session:
        preview = FinancialYearService(session, clock=app_clock()).preview_reset(parsed)
    return jsonify({"preview": preview.to_dict()})


@financial_years_bp.post("/<year_id>/reset")
def reset(year_id: str):
    """
    Delete the year's payments, transactions and uploads.

    Body: ``{"confirmation": "RESET <label>"}``.
    """
    require_same_site()
    actor = require_admin(current_actor(), "reset financial year")
    parsed = parse_id(year_id, FinancialYearNotFoundError)

    body = request.get_json(silent=True)
    confirmation = body.get("confirmation") if isinstance(body, dict) else None

    with LogContext.bind(financial_year_id=str(parsed)):
        with session_scope() as session:
            result = FinancialYearService(session, clock=app_clock()).execute_reset(
                parsed, confirmation, actor
            )
    return jsonify(result.to_dict())
