#!/usr/bin/env python3
"""
Operator CLI for the financial-year lifecycle and upload rollback.

Runs the same services as the HTTP API, as a SUPER_ADMIN operator, inside
one session_scope() per invocation.  Results are printed as JSON.

Usage:
  python3 scripts/financial_year.py init-db
  python3 scripts/financial_year.py current
  python3 scripts/financial_year.py list
  python3 scripts/financial_year.py start-next
  python3 scripts/financial_year.py set-current FY2025
  python3 scripts/financial_year.py preview-reset FY2025
  python3 scripts/financial_year.py reset FY2025 --confirm "RESET FY2025"
  python3 scripts/financial_year.py rollback-upload <UPLOAD_ID>

Database:
  --db-url, else DATABASE_URL, else the settings file
  (CHURCH_LEDGER_CONFIG or church_config/sets/default.yaml).
"""

import argparse
import json
import sys
from pathlib import Path
from uuid import UUID

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

# Stable id for audit columns written by the operator.
OPERATOR_ID = UUID("00000000-0000-4000-8000-000000000001")


def _parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Financial-year administration")
    p.add_argument("--db-url", default=None, help="Database URL (overrides settings)")
    p.add_argument(
        "--operator-id",
        type=UUID,
        default=OPERATOR_ID,
        help="User id recorded as the acting operator",
    )
    sub = p.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create the schema")
    sub.add_parser("current", help="Show (or create) the current financial year")
    sub.add_parser("list", help="List financial years with record counts")
    sub.add_parser("start-next", help="Advance to the next financial year")

    sc = sub.add_parser("set-current", help="Make an existing year current")
    sc.add_argument("label")

    pr = sub.add_parser("preview-reset", help="Count what a reset would delete")
    pr.add_argument("label")

    rs = sub.add_parser("reset", help="Delete a year's transactional data")
    rs.add_argument("label")
    rs.add_argument("--confirm", required=True, help='Must be "RESET <label>"')

    rb = sub.add_parser("rollback-upload", help="Undo one import batch")
    rb.add_argument("upload_id")

    return p.parse_args(argv)


def _year_id(session, label: str):
    from church_kernel.exceptions import FinancialYearNotFoundError
    from church_kernel.selectors.financial_year_selector import FinancialYearSelector

    year = FinancialYearSelector(session).get_by_label(label)
    if year is None:
        raise FinancialYearNotFoundError(label)
    return year.id


def _run(args: argparse.Namespace, actor, clock):
    from church_kernel.db import create_tables, session_scope
    from church_kernel.exceptions import UploadNotFoundError
    from church_kernel.selectors.financial_year_selector import FinancialYearSelector
    from church_kernel.services import FinancialYearService, UploadHistoryService

    if args.command == "init-db":
        create_tables()
        return {"message": "Schema created"}

    with session_scope() as session:
        years = FinancialYearService(session, clock=clock)

        if args.command == "current":
            return {"financialYear": years.get_or_create_current().to_dict()}
        if args.command == "list":
            summaries = FinancialYearSelector(session).list_with_counts()
            return {"financialYears": [s.to_dict() for s in summaries]}
        if args.command == "start-next":
            return {"financialYear": years.start_next_year(actor).to_dict()}
        if args.command == "set-current":
            year_id = _year_id(session, args.label)
            return {"financialYear": years.set_current(year_id, actor).to_dict()}
        if args.command == "preview-reset":
            year_id = _year_id(session, args.label)
            return {"preview": years.preview_reset(year_id).to_dict()}
        if args.command == "reset":
            year_id = _year_id(session, args.label)
            return years.execute_reset(year_id, args.confirm, actor).to_dict()
        if args.command == "rollback-upload":
            try:
                upload_id = UUID(args.upload_id)
            except ValueError:
                raise UploadNotFoundError(args.upload_id) from None
            uploads = UploadHistoryService(session, clock=clock)
            return uploads.rollback_upload(upload_id, actor).to_dict()

    raise ValueError(f"Unknown command: {args.command}")


def main(argv=None, clock=None) -> int:
    args = _parse_args(argv)

    from church_config import get_app_settings
    from church_kernel.db import init_engine_from_url
    from church_kernel.db.engine import reset_engine
    from church_kernel.domain.clock import SystemClock
    from church_kernel.domain.roles import Actor, UserRole
    from church_kernel.exceptions import ChurchLedgerError
    from church_kernel.logging_config import LogContext, configure_logging

    if args.db_url:
        db_url, echo, log_level = args.db_url, False, "WARNING"
    else:
        settings = get_app_settings()
        db_url, echo, log_level = (
            settings.database.url,
            settings.database.echo,
            settings.log_level,
        )

    configure_logging(level=log_level)
    init_engine_from_url(db_url, echo=echo)

    actor = Actor(user_id=args.operator_id, role=UserRole.SUPER_ADMIN)
    try:
        with LogContext.bind(actor_id=str(actor.user_id)):
            result = _run(args, actor, clock or SystemClock())
    except ChurchLedgerError as e:
        print(f"error [{e.code}]: {e}", file=sys.stderr)
        return 1
    finally:
        reset_engine()

    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
