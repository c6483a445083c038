from django.core.exceptions import ValidationError
from django.db import models

from ..domain.documents import (SOURCE_BANK_TRANSACTION, SOURCE_JOURNAL_ENTRY,
                                SOURCE_PURCHASE_BILL,
                                SOURCE_PURCHASE_BILL_PAYMENT,
                                SOURCE_SALES_INVOICE,
                                SOURCE_SALES_INVOICE_PAYMENT)
from ..managers import LedgerPostingManager
from .company import Company

POSTING_SOURCES = [
    # Tag that tells which kind of source document produced the row
    (SOURCE_BANK_TRANSACTION, SOURCE_BANK_TRANSACTION),
    (SOURCE_JOURNAL_ENTRY, SOURCE_JOURNAL_ENTRY),
    (SOURCE_SALES_INVOICE, SOURCE_SALES_INVOICE),
    (SOURCE_PURCHASE_BILL, SOURCE_PURCHASE_BILL),
    (SOURCE_SALES_INVOICE_PAYMENT, SOURCE_SALES_INVOICE_PAYMENT),
    (SOURCE_PURCHASE_BILL_PAYMENT, SOURCE_PURCHASE_BILL_PAYMENT),
]


# ---------- General ledger ----------
class LedgerPosting(models.Model):
    """
    One debit-or-credit row of the general ledger.
    Rows are written in batches when a source document is posted and
    deleted together (by source_doc_id) when it is unposted;
    they are never edited in place.
    """

    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="ledger_postings")
    date = models.DateField()
    description = models.CharField(max_length=400, blank=True, default="")

    # Traceability back to the originating document
    source = models.CharField(max_length=40, choices=POSTING_SOURCES)
    source_doc_id = models.CharField(max_length=64)

    # Counterparty (a posting names a customer or a vendor, never both)
    customer = models.CharField(max_length=200, null=True, blank=True)
    vendor = models.CharField(max_length=200, null=True, blank=True)

    # GL account by name; not a FK so deleting an account leaves
    # its postings in place as "unclassified" for reporting
    gl_account = models.CharField(max_length=200)
    debit_amount = models.DecimalField(max_digits=18, decimal_places=2, null=True, blank=True)
    credit_amount = models.DecimalField(max_digits=18, decimal_places=2, null=True, blank=True)

    created_by = models.CharField(max_length=150, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    # Enforce tenant scoping
    objects = LedgerPostingManager()

    class Meta:
        indexes = [
            models.Index(fields=["company", "date"]),
            models.Index(fields=["company", "gl_account"]),
            models.Index(fields=["company", "source_doc_id"]),
        ]
        ordering = ("date", "id")

        constraints = [
            # Exactly one side is set, and it is positive
            models.CheckConstraint(
                condition=(
                    (models.Q(debit_amount__gt=0) & models.Q(credit_amount__isnull=True)) |
                    (models.Q(credit_amount__gt=0) & models.Q(debit_amount__isnull=True))
                ),
                name="lp_debit_xor_credit_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(customer__isnull=True) | models.Q(vendor__isnull=True),
                name="lp_customer_xor_vendor",
            ),
        ]

    def __str__(self):
        db = self.debit_amount or 0
        cr = self.credit_amount or 0
        return f"{self.date} | {self.gl_account} | D:{db} C:{cr} [{self.source}]"

    @property
    def net_amount(self):
        """debit - credit (debit-positive convention used by every report)"""
        return (self.debit_amount or 0) - (self.credit_amount or 0)

    def clean(self):
        debit = self.debit_amount
        credit = self.credit_amount
        if (debit is None) == (credit is None):
            raise ValidationError(
                "LedgerPosting requires exactly one of debit or credit")
        if (debit is not None and debit <= 0) or (credit is not None and credit <= 0):
            raise ValidationError("LedgerPosting amount must be positive")
        if self.customer and self.vendor:
            raise ValidationError(
                "LedgerPosting cannot reference both customer and vendor.")

    def save(self, *args, **kwargs):
        # Postings are immutable once written
        # (edits happen by unpost + edit source + repost)
        if not self._state.adding:
            raise ValidationError(
                "Ledger postings are immutable; unpost and repost the source document."
            )
        self.full_clean()
        return super().save(*args, **kwargs)
