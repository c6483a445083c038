import logging
from datetime import date
from typing import Optional

from django.core.exceptions import ValidationError
from django.db import transaction

from ..domain.documents import (SOURCE_PURCHASE_BILL_PAYMENT,
                                SOURCE_SALES_INVOICE_PAYMENT,
                                bank_gl_account_name)
from ..domain.postings import bill_payment_postings, invoice_payment_postings
from ..models import PAID, UNPAID, PurchaseBill, SalesInvoice
from .audit_helper import log_action
from .posting import check_company, lock_document, sync_instance, posting_context
from .store import DjangoLedgerStore

logger = logging.getLogger(__name__)

PAYMENT_FIELDS = ("payment_status", "payment_date", "paid_bank_gl_account")

# document model → (payment source tag, pure posting builder)
PAYMENT_RULES = {
    SalesInvoice: (SOURCE_SALES_INVOICE_PAYMENT, invoice_payment_postings),
    PurchaseBill: (SOURCE_PURCHASE_BILL_PAYMENT, bill_payment_postings),
}


# ----------------------------
# Payment-related workflows
# ----------------------------
def _mark_paid(company, document, payment_date: date, bank_gl_account: str,
               actor_id: Optional[str] = None, store=None):
    check_company(company, document)
    _, build = PAYMENT_RULES[type(document)]
    store = store or DjangoLedgerStore(company)
    context = posting_context(company)
    # "Chase" means the "Bank - Chase" account unless the name is itself in the chart
    bank_gl = bank_gl_account
    if context.index.resolve(bank_gl_account) is None:
        bank_gl = bank_gl_account_name(bank_gl_account)

    # Everything inside either succeeds as one unit or rolls back
    with transaction.atomic():
        locked = lock_document(document)
        if not locked.is_ledger_approved:
            raise ValidationError(
                f"{type(locked).__name__} must be posted before it can be marked paid.")
        if locked.payment_status == PAID:
            raise ValidationError(f"{type(locked).__name__} is already paid.")

        postings = build(locked.as_source_document(), payment_date, bank_gl, context)
        rows = store.append_all(postings, actor_id=actor_id)

        locked.payment_status = PAID
        locked.payment_date = payment_date
        # store the CoA spelling of the bank account
        locked.paid_bank_gl_account = context.index.canonical(bank_gl)
        locked.save(update_fields=list(PAYMENT_FIELDS))

        log_action(
            action="mark_paid",
            instance=locked,
            actor_id=actor_id,
            company=company,
            changes={"payment_date": payment_date.isoformat(),
                     "bank_gl_account": locked.paid_bank_gl_account},
        )

    sync_instance(document, locked, *PAYMENT_FIELDS)
    logger.info("Marked %s %s paid through %s", type(locked).__name__,
                locked.source_doc_id, locked.paid_bank_gl_account)
    return rows


def _mark_unpaid(company, document, actor_id: Optional[str] = None, store=None):
    """Delete only the payment-side postings; the document stays posted."""
    check_company(company, document)
    source, _ = PAYMENT_RULES[type(document)]
    store = store or DjangoLedgerStore(company)

    with transaction.atomic():
        locked = lock_document(document)
        deleted = store.delete_by_source(locked.source_doc_id, source=source)
        was_paid = locked.payment_status == PAID
        if was_paid:
            locked.payment_status = UNPAID
            locked.payment_date = None
            locked.paid_bank_gl_account = None
            locked.save(update_fields=list(PAYMENT_FIELDS))
            log_action(
                action="mark_unpaid",
                instance=locked,
                actor_id=actor_id,
                company=company,
                changes={"postings_deleted": deleted},
            )

    sync_instance(document, locked, *PAYMENT_FIELDS)
    if was_paid:
        logger.info("Marked %s %s unpaid", type(locked).__name__, locked.source_doc_id)
    return deleted


def mark_invoice_paid(company, invoice, payment_date, bank_gl_account, actor_id=None, store=None):
    """Record the customer's payment: debit the bank, credit Accounts Receivable."""
    return _mark_paid(company, invoice, payment_date, bank_gl_account, actor_id=actor_id, store=store)


def mark_invoice_unpaid(company, invoice, actor_id=None, store=None):
    return _mark_unpaid(company, invoice, actor_id=actor_id, store=store)


def mark_bill_paid(company, bill, payment_date, bank_gl_account, actor_id=None, store=None):
    """Record our payment to the vendor: debit Accounts Payable, credit the bank."""
    return _mark_paid(company, bill, payment_date, bank_gl_account, actor_id=actor_id, store=store)


def mark_bill_unpaid(company, bill, actor_id=None, store=None):
    return _mark_unpaid(company, bill, actor_id=actor_id, store=store)
