"""
Journal entry import.

Rows arrive as plain dicts (already extracted from a spreadsheet):
``journal_set_id`` (optional), ``date``, ``description``, ``gl_account``,
``debit``, ``credit``, ``vendor_or_customer``, ``contact_type``.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional

from django.core.exceptions import ValidationError
from django.db import transaction

from ..domain import balancer
from ..domain.documents import CUSTOMER, VENDOR
from ..domain.normalizer import AccountIndex
from ..models import JournalEntry, JournalEntryLine
from .audit_helper import log_action
from .coa import list_accounts

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RejectedSet:
    journal_set_id: str
    errors: List[str]


@dataclass
class ImportResult:
    created: List[JournalEntry] = field(default_factory=list)
    rejected: List[RejectedSet] = field(default_factory=list)


def _parse_date(value):
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value or "").strip()
    if not text:
        raise ValueError("missing date.")
    for fmt in ("%Y-%m-%d", "%m/%d/%Y", "%d.%m.%Y"):
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"invalid date {value!r}.")


def _contact_type(value):
    return CUSTOMER if str(value or "").strip().lower() == CUSTOMER.lower() else VENDOR


def _prepare_rows(rows, index: AccountIndex):
    """
    Normalize cells; GL names that match the chart take the CoA spelling,
    others keep the raw value (posting reports them as unresolved).
    Returns (lines, errors).
    """
    lines, errors = [], []
    for n, row in enumerate(rows, start=1):
        try:
            debit = balancer.to_amount(row.get("debit"))
            credit = balancer.to_amount(row.get("credit"))
        except ValueError as exc:
            errors.append(f"Line {n}: {exc}")
            debit = credit = None
        try:
            day = _parse_date(row.get("date"))
        except ValueError as exc:
            errors.append(f"Line {n}: {exc}")
            day = None
        raw_gl = (row.get("gl_account") or "").strip()
        lines.append({
            "date": day,
            "description": (row.get("description") or "").strip(),
            "gl_account": index.canonical(raw_gl) or raw_gl,
            "debit": debit,
            "credit": credit,
            "vendor_or_customer": (row.get("vendor_or_customer") or "").strip() or None,
            "contact_type": _contact_type(row.get("contact_type")),
        })
    return lines, errors


def _create_entry(company, set_id, lines, actor_id):
    entry = JournalEntry.objects.create(
        company=company,
        reference=set_id or None,
        description=lines[0]["description"],
        created_by=actor_id,
    )
    for line in lines:
        JournalEntryLine.objects.create(
            company=company,
            journal=entry,
            date=line["date"],
            description=line["description"],
            gl_account=line["gl_account"],
            vendor_or_customer=line["vendor_or_customer"],
            contact_type=line["contact_type"],
            debit_amount=line["debit"] if line["debit"] else None,
            credit_amount=line["credit"] if line["credit"] else None,
        )
    return entry


def import_journal_rows(company, rows, actor_id: Optional[str] = None) -> ImportResult:
    """Create one draft JournalEntry per valid journal set; reject the rest."""
    index = AccountIndex(list_accounts(company))
    result = ImportResult()

    for set_id, group in balancer.group_import_rows(rows):
        lines, errors = _prepare_rows(group, index)
        check = balancer.validate(lines)
        errors = errors + check.errors
        if set_id and JournalEntry.objects.for_company(company).filter(reference=set_id).exists():
            errors.append(f"Journal set {set_id!r} already exists.")
        if errors:
            result.rejected.append(RejectedSet(journal_set_id=set_id, errors=errors))
            logger.info("Rejected journal set %r: %s", set_id, "; ".join(errors))
            continue

        try:
            with transaction.atomic():
                entry = _create_entry(company, set_id, lines, actor_id)
        except ValidationError as exc:
            # the set rolls back on its own; earlier sets stay imported
            result.rejected.append(RejectedSet(journal_set_id=set_id, errors=exc.messages))
            logger.info("Rejected journal set %r: %s", set_id, "; ".join(exc.messages))
            continue
        result.created.append(entry)

    if result.created or result.rejected:
        log_action(
            action="import",
            company=company,
            actor_id=actor_id,
            object_type="JournalEntry",
            object_id="batch",
            changes={
                "created": [str(e.doc_id) for e in result.created],
                "rejected": [r.journal_set_id for r in result.rejected],
            },
        )
    logger.info("Imported %d journal sets (%d rejected) for company %s",
                len(result.created), len(result.rejected), company.pk)
    return result
