"""
Post and unpost source documents.

Each call is one unit of work: the document row is locked, its postings
are written (or deleted) and its approval flag is flipped inside a
single ``transaction.atomic()`` block, so the ledger never holds part of
a document.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from django.core.exceptions import ValidationError
from django.db import transaction

from ..domain.documents import CUSTOMER, VENDOR, PostingData
from ..domain.postings import (PostingContext, fingerprint, is_single_leg,
                               to_postings)
from ..exceptions import (AlreadyPostedDifferentPayload,
                          ConcurrentModificationError, LedgerError)
from ..models import (BankTransaction, BilledDocument, JournalEntry,
                      PurchaseBill, SalesInvoice, UNPAID)
from .audit_helper import log_action
from .coa import account_index
from .contacts import ensure_contact
from .store import DjangoLedgerStore

logger = logging.getLogger(__name__)

# URL / task slug → document model
DOCUMENT_MODELS = {
    "bank-transaction": BankTransaction,
    "journal-entry": JournalEntry,
    "sales-invoice": SalesInvoice,
    "purchase-bill": PurchaseBill,
}


@dataclass
class PostResult:
    document: object
    postings: List = field(default_factory=list)
    contacts_created: List[str] = field(default_factory=list)
    # True when the document was already posted with the same payload
    already_posted: bool = False


@dataclass(frozen=True)
class SkippedDocument:
    doc_id: str
    reason: str


@dataclass
class BatchPostResult:
    posted: List[PostResult] = field(default_factory=list)
    skipped: List[SkippedDocument] = field(default_factory=list)


def get_document(company, kind, pk):
    """Load a source document of ``kind`` scoped to ``company``."""
    try:
        model = DOCUMENT_MODELS[kind]
    except KeyError:
        raise ValidationError(f"Unknown document kind: {kind}") from None
    return model.objects.for_company(company).get(pk=pk)


def posting_context(company):
    """Fresh Chart of Accounts + control accounts for one operation."""
    return PostingContext(
        index=account_index(company),
        receivable_account=company.default_ar_gl_account,
        payable_account=company.default_ap_gl_account,
    )


def check_company(company, document):
    # Tenant guard: a document never posts into another company's ledger
    if document.company_id != company.pk:
        raise ValidationError("Document does not belong to this company.")


def lock_document(document):
    """Re-read the document under a row lock and compare versions."""
    locked = type(document).objects.select_for_update().get(pk=document.pk)
    if locked.version != document.version:
        raise ConcurrentModificationError(
            f"{type(document).__name__} {document.pk} was modified concurrently "
            f"(version {document.version} → {locked.version}); reload and retry.",
            doc_id=document.source_doc_id,
        )
    return locked


def sync_instance(document, locked, *fields):
    # Keep the caller's instance in step with what was committed
    for name in ("is_ledger_approved", "ledger_fingerprint", "version", *fields):
        setattr(document, name, getattr(locked, name))


def _counterparties(postings: List[PostingData]):
    seen = []
    for p in postings:
        if p.customer and (p.customer, CUSTOMER) not in seen:
            seen.append((p.customer, CUSTOMER))
        if p.vendor and (p.vendor, VENDOR) not in seen:
            seen.append((p.vendor, VENDOR))
    return seen


def _ensure_contacts(company, postings, actor_id):
    created = []
    for name, contact_type in _counterparties(postings):
        if ensure_contact(company, name, contact_type, actor_id=actor_id):
            created.append(name)
    return created


def post_document(company, document, *, actor_id: Optional[str] = None, store=None) -> PostResult:
    """
    Write the document's postings to the ledger and mark it approved.

    Posting an approved document again is a no-op when nothing changed
    and raises AlreadyPostedDifferentPayload otherwise.
    """
    check_company(company, document)
    store = store or DjangoLedgerStore(company)
    context = posting_context(company)

    with transaction.atomic():
        locked = lock_document(document)
        postings = to_postings(locked.as_source_document(), context)
        fp = fingerprint(postings)

        """ Idempotency & immutability """
        if locked.is_ledger_approved:
            if locked.ledger_fingerprint == fp:
                existing = [
                    row for row in store.for_source(locked.source_doc_id)
                    if row.source == locked.ledger_source
                ]
                sync_instance(document, locked)
                return PostResult(document=document, postings=existing, already_posted=True)
            raise AlreadyPostedDifferentPayload(
                f"{type(locked).__name__} already posted with a different payload; unpost it first.",
                doc_id=locked.source_doc_id,
            )

        if is_single_leg(postings):
            logger.info(
                "Posting single-leg (uncategorized) bank transaction %s", locked.source_doc_id)

        rows = store.append_all(postings, actor_id=actor_id)

        """ Update state """
        locked.is_ledger_approved = True
        locked.ledger_fingerprint = fp
        locked.save(update_fields=["is_ledger_approved", "ledger_fingerprint"])

        log_action(
            action="post",
            instance=locked,
            actor_id=actor_id,
            company=company,
            changes={"postings": len(rows), "fingerprint": fp},
        )

        # Missing counterparties become contacts; never undoes the posting
        contacts_created = _ensure_contacts(company, postings, actor_id)

    sync_instance(document, locked)
    logger.info(
        "Posted %s %s: %d postings", type(locked).__name__, locked.source_doc_id, len(rows))
    return PostResult(document=document, postings=rows, contacts_created=contacts_created)


def unpost_document(company, document, *, actor_id: Optional[str] = None, store=None) -> int:
    """
    Remove every posting the document produced (payments included) and
    clear its approval. Returns the number of postings removed; calling
    it on an unposted document returns 0.
    """
    check_company(company, document)
    store = store or DjangoLedgerStore(company)

    with transaction.atomic():
        locked = lock_document(document)
        was_approved = locked.is_ledger_approved
        deleted = store.delete_by_source(locked.source_doc_id)

        update_fields = []
        if was_approved or locked.ledger_fingerprint:
            locked.is_ledger_approved = False
            locked.ledger_fingerprint = None
            update_fields += ["is_ledger_approved", "ledger_fingerprint"]
        # Payment postings are gone too, so the document is unpaid again
        if isinstance(locked, BilledDocument) and locked.payment_status != UNPAID:
            locked.payment_status = UNPAID
            locked.payment_date = None
            locked.paid_bank_gl_account = None
            update_fields += ["payment_status", "payment_date", "paid_bank_gl_account"]

        if update_fields:
            locked.save(update_fields=update_fields)
        if was_approved or deleted:
            log_action(
                action="unpost",
                instance=locked,
                actor_id=actor_id,
                company=company,
                changes={"postings_deleted": deleted},
            )

    extra = ("payment_status", "payment_date", "paid_bank_gl_account") \
        if isinstance(locked, BilledDocument) else ()
    sync_instance(document, locked, *extra)
    if deleted or was_approved:
        logger.info(
            "Unposted %s %s: %d postings removed", type(locked).__name__, locked.source_doc_id, deleted)
    return deleted


def _reason(exc):
    if isinstance(exc, ValidationError):
        return "; ".join(exc.messages)
    return str(exc)


def post_documents(company, documents, *, actor_id: Optional[str] = None, store=None) -> BatchPostResult:
    """
    Post each document in its own transaction. Documents that fail
    validation are skipped with the reason; the rest still post.
    """
    result = BatchPostResult()
    for document in documents:
        try:
            result.posted.append(
                post_document(company, document, actor_id=actor_id, store=store))
        except (LedgerError, ValidationError) as exc:
            doc_id = getattr(exc, "doc_id", None) or document.source_doc_id
            skipped = SkippedDocument(doc_id=doc_id, reason=_reason(exc))
            logger.warning("Skipped %s %s: %s", type(document).__name__, doc_id, skipped.reason)
            result.skipped.append(skipped)
    return result
