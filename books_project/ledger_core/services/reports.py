"""
Report orchestration: validate parameters, take a fresh snapshot of the
Chart of Accounts and the ledger, and hand both to the pure engine.
"""
import logging
from datetime import date, datetime
from typing import Optional

from asgiref.sync import sync_to_async
from django.db import DatabaseError

from ..conf import get_setting
from ..domain.documents import CUSTOMER, VENDOR
from ..exceptions import (ReportGenerationError, ReportParameterError,
                          StoreError)
from ..models import Account
from ..reporting import engine, transactions
from ..reporting.periods import GRANULARITIES, SUMMARY
from .audit_helper import log_action
from .store import DjangoLedgerStore

logger = logging.getLogger(__name__)


def parse_report_date(value, field_name="date"):
    """Accept a date or an ISO "YYYY-MM-DD" string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value:
        raise ReportParameterError(f"Missing {field_name}.")
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise ReportParameterError(f"Invalid {field_name}: {value!r} (expected YYYY-MM-DD).") from None


def check_date_range(start, end):
    start = parse_report_date(start, "start date")
    end = parse_report_date(end, "end date")
    if end < start:
        raise ReportParameterError("End date cannot be before start date.")
    max_days = get_setting("MAX_REPORT_RANGE_DAYS")
    if (end - start).days > max_days:
        raise ReportParameterError(
            f"Please select a date range of no more than {max_days} days.")
    return start, end


def validate_report_params(report_type, start, end, granularity):
    """Returns (canonical report type, start, end); raises with every problem found."""
    errors = []
    kind = engine.report_type_for(report_type)
    if kind is None:
        errors.append(f"Unknown report type: {report_type!r}.")
    if granularity not in GRANULARITIES:
        errors.append(f"Unknown granularity: {granularity!r}.")
    try:
        start, end = check_date_range(start, end)
    except ReportParameterError as exc:
        errors.extend(exc.messages)
    if errors:
        raise ReportParameterError(errors)
    return kind, start, end


def _snapshot(company, date_from=None, date_to=None):
    """Fresh CoA and ledger rows; never cached between calls."""
    try:
        accounts = list(Account.objects.for_company(company))
    except DatabaseError as exc:
        raise StoreError(f"Could not read the Chart of Accounts: {exc}") from exc
    postings = DjangoLedgerStore(company).query(date_from=date_from, date_to=date_to)
    return accounts, postings


def generate_report(company, report_type, start, end, granularity=SUMMARY,
                    actor_id: Optional[str] = None):
    """Build a Profit & Loss or Balance Sheet for ``company``."""
    report_type, start, end = validate_report_params(report_type, start, end, granularity)

    # P&L only needs the window; the Balance Sheet is cumulative from day one
    date_from = start if report_type == engine.REPORT_PROFIT_AND_LOSS else None
    accounts, postings = _snapshot(company, date_from=date_from, date_to=end)

    try:
        result = engine.build_report(
            report_type, postings, accounts, start, end, granularity,
            **_engine_options(report_type),
        )
    except (ArithmeticError, ValueError) as exc:
        logger.exception("Report %s failed for company %s", report_type, company.pk)
        raise ReportGenerationError(f"Failed to generate {report_type}: {exc}") from exc

    for warning in result.warnings:
        logger.warning("Company %s %s: %s", company.pk, report_type, warning)
    logger.info(
        "Generated %s (%s) for company %s, %s to %s: %d postings, %d issues",
        report_type, granularity, company.pk, start, end, len(postings),
        len(result.unclassified_gl_accounts),
    )
    log_action(
        action="generate_report",
        company=company,
        actor_id=actor_id,
        object_type="Report",
        object_id=report_type,
        changes={"start": start.isoformat(), "end": end.isoformat(), "granularity": granularity},
    )
    return result


def _engine_options(report_type):
    if report_type != engine.REPORT_BALANCE_SHEET:
        return {}
    return {
        "tolerance": get_setting("BALANCE_SHEET_TOLERANCE"),
        "retained_earnings_label": get_setting("RETAINED_EARNINGS_LABEL"),
    }


async def agenerate_report(company, report_type, start, end, granularity=SUMMARY, actor_id=None):
    """Async entry point; the ORM work runs in the sync thread."""
    return await sync_to_async(generate_report)(
        company, report_type, start, end, granularity, actor_id=actor_id)


# ---------- Transaction listings ----------
def account_transaction_report(company, gl_account, start, end, actor_id=None):
    start, end = check_date_range(start, end)
    if not (gl_account or "").strip():
        raise ReportParameterError("Please select a GL account.")
    postings = DjangoLedgerStore(company).query(date_from=start, date_to=end)
    lines = transactions.account_transactions(postings, gl_account, start, end)
    log_action(
        action="generate_report",
        company=company,
        actor_id=actor_id,
        object_type="Account Transaction Report",
        object_id=gl_account,
    )
    return lines


def contact_transaction_report(company, name, contact_type, start, end, actor_id=None):
    start, end = check_date_range(start, end)
    if not (name or "").strip():
        raise ReportParameterError("Please select a contact.")
    if contact_type not in (CUSTOMER, VENDOR):
        raise ReportParameterError(f"Unknown contact type: {contact_type!r}.")
    postings = DjangoLedgerStore(company).query(date_from=start, date_to=end)
    lines = transactions.contact_transactions(postings, name, contact_type, start, end)
    log_action(
        action="generate_report",
        company=company,
        actor_id=actor_id,
        object_type="Contact Transaction Report",
        object_id=name,
    )
    return lines


# ---------- Report session ----------
IDLE = "idle"
LOADING = "loading"
COMPUTED = "computed"
ERROR = "error"


class ReportSession:
    """
    Holds the last report computed for a company.

    idle → loading → computed | error. A failed run records its error
    and keeps the previous result.
    """

    def __init__(self, company, actor_id=None):
        self.company = company
        self.actor_id = actor_id
        self.state = IDLE
        self.result = None
        self.error = None

    def run(self, report_type, start, end, granularity=SUMMARY):
        self.state = LOADING
        self.error = None
        try:
            result = generate_report(
                self.company, report_type, start, end, granularity, actor_id=self.actor_id)
        except (ReportParameterError, StoreError, ReportGenerationError) as exc:
            self.state = ERROR
            self.error = exc
            logger.info("Report session error for company %s: %s", self.company.pk, exc)
            return None
        self.result = result
        self.state = COMPUTED
        return result
