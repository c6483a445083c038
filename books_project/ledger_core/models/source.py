import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

from ..domain.documents import DocumentLine
from ..managers import SourceDocumentManager
from .company import Company


class SourceDocument(models.Model):
    """
    Common fields of every document that can be posted to the ledger
    (bank transaction, journal entry set, sales invoice, purchase bill).
    """

    # Multi-tenant: every document belongs to a company
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="+")

    # Globally unique id stamped on every posting the document produces;
    # groups those postings for atomic reversal
    doc_id = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)

    # Approval workflow: True once the document's postings are in the ledger
    is_ledger_approved = models.BooleanField(default=False)
    # sha256 of the posted payload (safe to post twice if nothing has changed)
    ledger_fingerprint = models.CharField(max_length=64, null=True, blank=True)

    # Bumped on every save; the posting engine compares it right before
    # committing so a concurrent edit/unpost aborts the operation
    version = models.PositiveIntegerField(default=0)

    created_by = models.CharField(max_length=150, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # Enforce tenant scoping
    objects = SourceDocumentManager()

    # Ledger tag written on postings ("Sales Invoice", ...); set by subclasses
    ledger_source = None

    class Meta:
        abstract = True

    @property
    def source_doc_id(self):
        return str(self.doc_id)

    def as_source_document(self):
        """Snapshot the document (and its lines) into a domain value."""
        raise NotImplementedError

    def save(self, *args, **kwargs):
        if not self._state.adding:
            self.version = (self.version or 0) + 1
            update_fields = kwargs.get("update_fields")
            if update_fields is not None:
                kwargs["update_fields"] = set(update_fields) | {"version", "updated_at"}
        return super().save(*args, **kwargs)


# ---------- Invoice / bill shared shape ----------
UNPAID = "Unpaid"
PAID = "Paid"

PAYMENT_STATUS_CHOICES = [
    (UNPAID, "Unpaid"),
    (PAID, "Paid"),
]


class BilledDocument(SourceDocument):
    """
    Header fields shared by sales invoices and purchase bills.
    total_amount is kept in sync with the lines by a signal and
    re-validated when the document is posted.
    """

    date = models.DateField()  # issue date
    number = models.CharField(max_length=64, null=True, blank=True)  # e.g. "INV-2025-001"
    due_date = models.DateField(null=True, blank=True)

    # Sum of all line amounts
    total_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))

    # Settlement (set by mark paid / mark unpaid)
    payment_status = models.CharField(
        max_length=10, choices=PAYMENT_STATUS_CHOICES, default=UNPAID)
    payment_date = models.DateField(null=True, blank=True)
    # Bank GL account the payment went through, e.g. "Bank - Chase"
    paid_bank_gl_account = models.CharField(max_length=200, null=True, blank=True)

    class Meta:
        abstract = True

    @property
    def is_paid(self):
        return self.payment_status == PAID

    def lines_total(self):
        """Sum of line amounts as stored (0.00 for a header without lines)."""
        if not self.pk:
            return Decimal("0.00")
        return sum((line.amount for line in self.lines.all()), Decimal("0.00"))

    def recalc_totals(self):
        self.total_amount = self.lines_total()

    def clean(self):
        if self.total_amount is not None and self.total_amount < 0:
            raise ValidationError("Total amount must be >= 0")
        # A paid document always knows when and through which bank
        if self.payment_status == PAID and not (self.payment_date and self.paid_bank_gl_account):
            raise ValidationError(
                "A paid document requires a payment date and a bank GL account")
        if self.payment_status == UNPAID and (self.payment_date or self.paid_bank_gl_account):
            raise ValidationError(
                "An unpaid document cannot carry payment details")

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)


class DocumentLineItem(models.Model):
    """Invoice / bill line: quantity × unit_price = amount, posted to gl_account."""

    description = models.CharField(max_length=400, blank=True, default="")
    # Revenue (invoice) or expense (bill) GL account by name
    gl_account = models.CharField(max_length=200)

    quantity = models.DecimalField(
        max_digits=14, decimal_places=4, default=Decimal("1"))
    unit_price = models.DecimalField(
        max_digits=18, decimal_places=4, default=Decimal("0.00"))
    amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))

    # Name of the FK to the header; set by subclasses
    parent_field = None

    class Meta:
        abstract = True

    def clean(self):
        if self.quantity is not None and self.quantity < 0:  # Quantity must be non-negative
            raise ValidationError("Quantity must be >= 0")
        if self.unit_price is not None and self.unit_price < 0:  # Unit price must be non-negative
            raise ValidationError("Unit price must be >= 0")

        parent_id = getattr(self, f"{self.parent_field}_id", None)
        if parent_id:
            parent_model = self._meta.get_field(self.parent_field).related_model
            parent = parent_model.objects.only("company_id", "is_ledger_approved").get(pk=parent_id)
            # Tenant safety
            if self.company_id != parent.company_id:
                raise ValidationError(
                    f"{type(self).__name__}.company must match {type(parent).__name__}.company")
            # Posted documents are frozen until unposted
            if parent.is_ledger_approved:
                raise ValidationError(
                    f"Cannot modify {type(self).__name__}: parent document is posted. Unpost it first.")

    def save(self, *args, **kwargs):
        parent_id = getattr(self, f"{self.parent_field}_id", None)
        # copy company_id from the parent if missing
        if not getattr(self, "company_id", None) and parent_id:
            parent_model = self._meta.get_field(self.parent_field).related_model
            self.company_id = parent_model.objects.only("company_id").get(pk=parent_id).company_id
        # compute amount always
        amount = (self.quantity or Decimal("0")) * (self.unit_price or Decimal("0"))
        self.amount = amount.quantize(Decimal("0.01"))
        # Run validation, this will call clean()
        self.full_clean()
        return super().save(*args, **kwargs)

    def as_line_document(self):
        return DocumentLine(
            description=self.description or "",
            gl_account=self.gl_account or "",
            quantity=self.quantity,
            unit_price=self.unit_price,
            amount=self.amount,
        )
