from django.core.exceptions import ValidationError
from django.db import models

from ..domain.documents import (CUSTOMER, SOURCE_JOURNAL_ENTRY, VENDOR,
                                JournalLineDoc, JournalSetDoc)
from ..managers import TenantManager
from .company import Company
from .source import SourceDocument

COUNTERPARTY_TYPES = [
    (CUSTOMER, "Customer"),
    (VENDOR, "Vendor"),
]


# ---------- Journal set (Header) & JournalEntryLine ----------
class JournalEntry(SourceDocument):  # One manual accounting transaction (a "journal set")
    ledger_source = SOURCE_JOURNAL_ENTRY

    # Journal set id as shown to the user / given in an import file
    reference = models.CharField(max_length=200, null=True, blank=True)
    description = models.TextField(null=True, blank=True)

    class Meta:
        indexes = [
            models.Index(fields=["company", "is_ledger_approved"]),
        ]

        constraints = [
            # Within one company, each journal set reference must be unique
            # Across companies, duplicates are allowed
            models.UniqueConstraint(
                fields=["company", "reference"], name="uq_je_company_ref"
            )
        ]

    def __str__(self):
        status = "posted" if self.is_ledger_approved else "draft"
        return f"JE {self.reference or self.pk} [{status}]"

    def as_source_document(self):
        return JournalSetDoc(
            doc_id=self.source_doc_id,
            reference=self.reference,
            lines=tuple(line.as_line_document() for line in self.lines.order_by("id")),
        )


class JournalEntryLine(models.Model):  # Stores Lines ( credits / debits )
    """
    Each line belongs to a journal set and names one GL account.
    Exactly one of debit_amount / credit_amount is set.
    """

    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    journal = models.ForeignKey(
        JournalEntry,
        on_delete=models.CASCADE,
        related_name="lines",
    )

    date = models.DateField()
    description = models.CharField(max_length=400, blank=True, default="")
    # GL account by name, resolved against the Chart of Accounts at posting
    gl_account = models.CharField(max_length=200, blank=True, default="")

    # Optional counterparty and which side of the business it is on
    vendor_or_customer = models.CharField(max_length=200, null=True, blank=True)
    contact_type = models.CharField(
        max_length=10, choices=COUNTERPARTY_TYPES, default=VENDOR)

    debit_amount = models.DecimalField(max_digits=18, decimal_places=2, null=True, blank=True)
    credit_amount = models.DecimalField(max_digits=18, decimal_places=2, null=True, blank=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["company", "journal"]),
        ]
        # Enforce debits and credits must be non-negative
        constraints = [
            models.CheckConstraint(
                condition=(
                    (models.Q(debit_amount__isnull=True) | models.Q(debit_amount__gte=0)) &
                    (models.Q(credit_amount__isnull=True) | models.Q(credit_amount__gte=0))
                ),
                name="jel_non_negative_amounts",
            ),
        ]

    def __str__(self):
        db = self.debit_amount or 0
        cr = self.credit_amount or 0
        return f"{self.journal_id} | {self.gl_account} | D:{db} C:{cr}"

    def clean(self):
        # Ensure no negative values sneak in
        # (redundant with CheckConstraint but useful at app-level)
        if (self.debit_amount or 0) < 0 or (self.credit_amount or 0) < 0:
            raise ValidationError("Debit and credit must be >= 0")

        # Every line must belong to same company as its parent journal
        if self.journal_id and self.company_id != self.journal.company_id:
            raise ValidationError(
                "JournalEntryLine.company must equal JournalEntry.company"
            )

        # Lines of an approved set are mirrored in the ledger; editing them
        # would silently diverge from the posted rows
        if self.journal_id and JournalEntry.objects.filter(
            pk=self.journal_id, is_ledger_approved=True
        ).exists():
            raise ValidationError(
                "Cannot modify JournalEntryLine: parent journal is posted. Unpost it first."
            )

    def delete(self, *args, **kwargs):
        # Prevent deletion if parent journal is posted
        if self.journal_id and JournalEntry.objects.filter(
            pk=self.journal_id, is_ledger_approved=True
        ).exists():
            raise ValidationError(
                "Cannot delete JournalEntryLine: parent journal is posted."
            )
        return super().delete(*args, **kwargs)

    def save(self, *args, **kwargs):
        # If company not set but journal is known, copy it from the journal
        if not getattr(self, "company_id", None) and getattr(self, "journal_id", None):
            self.company_id = JournalEntry.objects.only("company_id").get(pk=self.journal_id).company_id
        # clean()+field validation always run whenever
        # you save a line programmatically
        self.full_clean()
        return super().save(*args, **kwargs)

    def as_line_document(self):
        return JournalLineDoc(
            date=self.date,
            description=self.description or "",
            gl_account=self.gl_account or "",
            debit_amount=self.debit_amount or None,
            credit_amount=self.credit_amount or None,
            counterparty=self.vendor_or_customer,
            counterparty_type=self.contact_type or VENDOR,
        )
