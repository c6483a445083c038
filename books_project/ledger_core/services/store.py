"""
Ledger persistence.

The posting and report services only talk to the ledger through the
``LedgerStore`` protocol; ``DjangoLedgerStore`` is the ORM-backed
implementation. Database failures surface as ``StoreError``.
"""
import logging
from typing import Iterable, List, Optional, Protocol

from django.db import DatabaseError, transaction

from ..domain.documents import PostingData
from ..exceptions import StoreError
from ..models import LedgerPosting

logger = logging.getLogger(__name__)


class LedgerStore(Protocol):
    def append_all(self, postings: Iterable[PostingData], actor_id: Optional[str] = None) -> List[LedgerPosting]:
        ...

    def delete_by_source(self, source_doc_id: str, source: Optional[str] = None) -> int:
        ...

    def query(self, date_from=None, date_to=None, gl_account=None,
              customer=None, vendor=None) -> List[LedgerPosting]:
        ...

    def for_source(self, source_doc_id: str) -> List[LedgerPosting]:
        ...


class DjangoLedgerStore:
    """LedgerPosting rows of one company."""

    def __init__(self, company):
        self.company = company

    def _rows(self):
        return LedgerPosting.objects.for_company(self.company)

    def append_all(self, postings, actor_id=None):
        """Write every posting or none of them."""
        rows = [
            LedgerPosting(
                company=self.company,
                date=p.date,
                description=p.description or "",
                source=p.source,
                source_doc_id=p.source_doc_id,
                customer=p.customer,
                vendor=p.vendor,
                gl_account=p.gl_account,
                debit_amount=p.debit_amount,
                credit_amount=p.credit_amount,
                created_by=actor_id,
            )
            for p in postings
        ]
        # validate in Python first (bulk_create skips save()/full_clean())
        for row in rows:
            row.full_clean()
        try:
            with transaction.atomic():
                return LedgerPosting.objects.bulk_create(rows)
        except DatabaseError as exc:
            logger.error("Ledger write failed for company %s: %s", self.company.pk, exc)
            raise StoreError(f"Could not write ledger postings: {exc}") from exc

    def delete_by_source(self, source_doc_id, source=None):
        try:
            deleted, _ = self._rows().for_source(source_doc_id, source=source).delete()
        except DatabaseError as exc:
            raise StoreError(f"Could not delete ledger postings: {exc}", doc_id=source_doc_id) from exc
        return deleted

    def query(self, date_from=None, date_to=None, gl_account=None, customer=None, vendor=None):
        qs = self._rows()
        if date_from is not None:
            qs = qs.filter(date__gte=date_from)
        if date_to is not None:
            qs = qs.filter(date__lte=date_to)
        if gl_account is not None:
            qs = qs.filter(gl_account=gl_account)
        if customer is not None:
            qs = qs.filter(customer=customer)
        if vendor is not None:
            qs = qs.filter(vendor=vendor)
        try:
            return list(qs.order_by("date", "id"))
        except DatabaseError as exc:
            raise StoreError(f"Could not read the ledger: {exc}") from exc

    def for_source(self, source_doc_id):
        try:
            return list(self._rows().for_source(source_doc_id).order_by("id"))
        except DatabaseError as exc:
            raise StoreError(f"Could not read the ledger: {exc}", doc_id=source_doc_id) from exc
