"""
Posting rules: turn a source document snapshot into ledger rows.

Pure functions only. The caller supplies the Chart of Accounts (as an
AccountIndex) and the company's receivable / payable control accounts;
nothing here reads or writes the database.
"""
import hashlib
import json
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import List, Optional

from ..exceptions import (DocumentValidationError, ImbalanceError,
                          JournalValidationError, UnresolvedAccountError)
from . import balancer
from .documents import (CUSTOMER, SOURCE_BANK_TRANSACTION,
                        SOURCE_JOURNAL_ENTRY, SOURCE_PURCHASE_BILL,
                        SOURCE_PURCHASE_BILL_PAYMENT, SOURCE_SALES_INVOICE,
                        SOURCE_SALES_INVOICE_PAYMENT, BankTxnDoc, BillDoc,
                        InvoiceDoc, JournalSetDoc, PostingData,
                        clean_counterparty)
from .normalizer import AccountIndex

ZERO = Decimal("0")


@dataclass(frozen=True)
class PostingContext:
    index: AccountIndex
    # Company control accounts (GL names, resolved like any other name)
    receivable_account: Optional[str] = None
    payable_account: Optional[str] = None


def _positive(value):
    return value if value is not None and value > 0 else None


def _doc_number(number):
    return number or "N/A"


# ---------- Per-variant rules ----------
# Each returns postings with GL names as written on the document;
# resolve_accounts() swaps them for the CoA spelling afterwards.

def _bank_postings(doc: BankTxnDoc):
    received = _positive(doc.amount_received)
    paid = _positive(doc.amount_paid)
    if (received is None) == (paid is None):
        raise DocumentValidationError(
            "Bank transaction requires exactly one of amount paid or amount received")

    counterparty = clean_counterparty(doc.counterparty)
    # Money in comes from a customer, money out goes to a vendor
    customer = counterparty if received else None
    vendor = None if received else counterparty
    common = dict(
        date=doc.date,
        description=doc.description,
        source=SOURCE_BANK_TRANSACTION,
        source_doc_id=doc.doc_id,
        customer=customer,
        vendor=vendor,
    )

    bank_leg = PostingData(
        gl_account=doc.bank_gl_account,
        debit_amount=received,
        credit_amount=paid,
        **common,
    )
    if not (doc.gl_account or "").strip():
        # Uncategorized row: only the bank side is known
        return [bank_leg]

    counter_leg = PostingData(
        gl_account=doc.gl_account,
        debit_amount=paid,
        credit_amount=received,
        **common,
    )
    # received: debit bank, credit counter-account; paid: the reverse
    return [bank_leg, counter_leg] if received else [counter_leg, bank_leg]


def _journal_postings(doc: JournalSetDoc):
    result = balancer.validate(doc.lines)
    if not result.ok:
        raise JournalValidationError(result.errors)

    postings = []
    for line in doc.lines:
        counterparty = clean_counterparty(line.counterparty)
        is_customer = line.counterparty_type == CUSTOMER
        postings.append(PostingData(
            date=line.date,
            description=line.description,
            source=SOURCE_JOURNAL_ENTRY,
            source_doc_id=doc.doc_id,
            gl_account=line.gl_account,
            debit_amount=_positive(line.debit_amount),
            credit_amount=_positive(line.credit_amount),
            customer=counterparty if is_customer else None,
            vendor=None if is_customer else counterparty,
        ))
    return postings


def _check_document_lines(doc, kind):
    if not doc.lines:
        raise DocumentValidationError(f"{kind} must have at least one line.")
    lines_total = sum((line.amount for line in doc.lines), ZERO)
    if lines_total != doc.total_amount:
        raise DocumentValidationError(
            f"{kind} total {doc.total_amount} does not match the sum of its lines {lines_total}.")
    if doc.total_amount <= 0:
        raise DocumentValidationError(f"{kind} total must be > 0 to post.")


def _invoice_postings(doc: InvoiceDoc, context: PostingContext):
    _check_document_lines(doc, "Sales invoice")
    if not (context.receivable_account or "").strip():
        raise DocumentValidationError(
            "No Accounts Receivable GL account configured for company.")

    number = _doc_number(doc.number)
    customer = clean_counterparty(doc.customer_name)
    common = dict(
        date=doc.date,
        source=SOURCE_SALES_INVOICE,
        source_doc_id=doc.doc_id,
        customer=customer,
    )
    # Debit AR for the whole invoice
    postings = [PostingData(
        description=f"Invoice #{number} to {doc.customer_name}",
        gl_account=context.receivable_account,
        debit_amount=doc.total_amount,
        **common,
    )]
    # Credit revenue per line (zero lines carry nothing to post)
    for line in doc.lines:
        if line.amount <= 0:
            continue
        postings.append(PostingData(
            description=f"Invoice #{number} - {line.description}",
            gl_account=line.gl_account,
            credit_amount=line.amount,
            **common,
        ))
    return postings


def _bill_postings(doc: BillDoc, context: PostingContext):
    _check_document_lines(doc, "Purchase bill")
    if not (context.payable_account or "").strip():
        raise DocumentValidationError(
            "No Accounts Payable GL account configured for company.")

    number = _doc_number(doc.number)
    vendor = clean_counterparty(doc.vendor_name)
    common = dict(
        date=doc.date,
        source=SOURCE_PURCHASE_BILL,
        source_doc_id=doc.doc_id,
        vendor=vendor,
    )
    # Debit expense per line
    postings = [
        PostingData(
            description=f"Bill #{number} - {line.description}",
            gl_account=line.gl_account,
            debit_amount=line.amount,
            **common,
        )
        for line in doc.lines if line.amount > 0
    ]
    # Credit AP for the whole bill
    postings.append(PostingData(
        description=f"Bill #{number} from {doc.vendor_name}",
        gl_account=context.payable_account,
        credit_amount=doc.total_amount,
        **common,
    ))
    return postings


# ---------- Resolution & checks ----------
def resolve_accounts(postings, index: AccountIndex, doc_id=None, extra_names=()):
    """
    Replace each GL name with its Chart of Accounts spelling.
    Raises UnresolvedAccountError naming every missing account, including
    any in ``extra_names`` (GL names on the document that post nothing).
    """
    missing = index.unresolved([p.gl_account for p in postings] + list(extra_names))
    if missing:
        raise UnresolvedAccountError(missing, doc_id=doc_id)
    return [replace(p, gl_account=index.canonical(p.gl_account)) for p in postings]


def check_balanced(postings, doc_id=None):
    """Debits must equal credits across a multi-leg batch."""
    total_debit = sum((p.debit_amount or ZERO for p in postings), ZERO)
    total_credit = sum((p.credit_amount or ZERO for p in postings), ZERO)
    if total_debit != total_credit:
        raise ImbalanceError(total_debit, total_credit, doc_id=doc_id)
    return total_debit


def is_single_leg(postings):
    return len(postings) == 1


def to_postings(doc, context: PostingContext) -> List[PostingData]:
    """Build the resolved, balance-checked postings for a source document."""
    match doc:
        case BankTxnDoc():
            postings = _bank_postings(doc)
        case JournalSetDoc():
            postings = _journal_postings(doc)
        case InvoiceDoc():
            postings = _invoice_postings(doc, context)
        case BillDoc():
            postings = _bill_postings(doc, context)
        case _:
            raise TypeError(f"Unsupported source document: {type(doc).__name__}")

    # Zero-amount invoice and bill lines post nothing but must still name real accounts
    line_names = [line.gl_account for line in doc.lines] if isinstance(doc, (InvoiceDoc, BillDoc)) else []
    postings = resolve_accounts(postings, context.index, doc_id=doc.doc_id, extra_names=line_names)
    # Only an uncategorized bank row may post a single leg
    if not (isinstance(doc, BankTxnDoc) and is_single_leg(postings)):
        check_balanced(postings, doc_id=doc.doc_id)
    return postings


# ---------- Settlement ----------
def invoice_payment_postings(doc: InvoiceDoc, payment_date, bank_gl_account, context: PostingContext):
    """Debit the bank, credit AR for the full invoice total."""
    if not (context.receivable_account or "").strip():
        raise DocumentValidationError(
            "No Accounts Receivable GL account configured for company.")
    number = _doc_number(doc.number)
    customer = clean_counterparty(doc.customer_name)
    common = dict(
        date=payment_date,
        source=SOURCE_SALES_INVOICE_PAYMENT,
        source_doc_id=doc.doc_id,
        customer=customer,
    )
    postings = [
        PostingData(
            description=f"Payment received for Invoice #{number}",
            gl_account=bank_gl_account,
            debit_amount=doc.total_amount,
            **common,
        ),
        PostingData(
            description=f"Payment applied for Invoice #{number}",
            gl_account=context.receivable_account,
            credit_amount=doc.total_amount,
            **common,
        ),
    ]
    postings = resolve_accounts(postings, context.index, doc_id=doc.doc_id)
    check_balanced(postings, doc_id=doc.doc_id)
    return postings


def bill_payment_postings(doc: BillDoc, payment_date, bank_gl_account, context: PostingContext):
    """Debit AP, credit the bank for the full bill total."""
    if not (context.payable_account or "").strip():
        raise DocumentValidationError(
            "No Accounts Payable GL account configured for company.")
    number = _doc_number(doc.number)
    vendor = clean_counterparty(doc.vendor_name)
    common = dict(
        date=payment_date,
        description=f"Payment made for Bill #{number}",
        source=SOURCE_PURCHASE_BILL_PAYMENT,
        source_doc_id=doc.doc_id,
        vendor=vendor,
    )
    postings = [
        PostingData(gl_account=context.payable_account, debit_amount=doc.total_amount, **common),
        PostingData(gl_account=bank_gl_account, credit_amount=doc.total_amount, **common),
    ]
    postings = resolve_accounts(postings, context.index, doc_id=doc.doc_id)
    check_balanced(postings, doc_id=doc.doc_id)
    return postings


# ---------- Idempotency ----------
def _cents(amount):
    return str(amount.quantize(Decimal("0.01"))) if amount is not None else None


def _posting_payload(postings):
    """Deterministic JSON of everything that matters for a posting batch."""
    rows = [
        {
            "date": p.date.isoformat(),
            "desc": p.description or "",
            "source": p.source,
            "gl": p.gl_account,
            "debit": _cents(p.debit_amount),
            "credit": _cents(p.credit_amount),
            "customer": p.customer,
            "vendor": p.vendor,
        }
        for p in postings
    ]
    return json.dumps(rows, separators=(",", ":"), sort_keys=True)


def fingerprint(postings):
    # sha256 of the canonical payload
    return hashlib.sha256(_posting_payload(postings).encode()).hexdigest()
