"""Account and contact transaction listings with a running balance."""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..domain.documents import CUSTOMER
from ..domain.normalizer import normalize

ZERO = Decimal("0.00")


@dataclass(frozen=True)
class TransactionLine:
    date: object
    description: str
    source: str
    gl_account: str
    debit_amount: Optional[Decimal]
    credit_amount: Optional[Decimal]
    customer: Optional[str]
    vendor: Optional[str]
    # debit - credit accumulated over the listing so far
    balance: Decimal


def _sort_key(posting):
    # Same-day rows keep their entry order
    created = getattr(posting, "created_at", None) or datetime.min
    if created.tzinfo is not None:
        created = created.replace(tzinfo=None)
    return posting.date, created, getattr(posting, "id", None) or 0


def with_running_balance(postings):
    running = ZERO
    lines = []
    for p in sorted(postings, key=_sort_key):
        running += (p.debit_amount or ZERO) - (p.credit_amount or ZERO)
        lines.append(TransactionLine(
            date=p.date,
            description=p.description,
            source=p.source,
            gl_account=p.gl_account,
            debit_amount=p.debit_amount,
            credit_amount=p.credit_amount,
            customer=p.customer,
            vendor=p.vendor,
            balance=running,
        ))
    return lines


def _in_window(posting, start, end):
    return start <= posting.date <= end


def account_transactions(postings, gl_account, start, end):
    """Every posting to ``gl_account`` (matched by normalized name) within [start, end]."""
    key = normalize(gl_account)
    selected = [
        p for p in postings
        if _in_window(p, start, end) and normalize(p.gl_account) == key
    ]
    return with_running_balance(selected)


def contact_transactions(postings, name, contact_type, start, end):
    """Every posting naming the contact (customer or vendor side) within [start, end]."""
    wanted = (name or "").strip().lower()
    field = "customer" if contact_type == CUSTOMER else "vendor"
    selected = [
        p for p in postings
        if _in_window(p, start, end) and (getattr(p, field) or "").strip().lower() == wanted
    ]
    return with_running_balance(selected)
