from django.core.exceptions import ValidationError
from django.db import models

from ..domain.documents import (SOURCE_BANK_TRANSACTION, BankTxnDoc,
                                bank_gl_account_name)
from .source import SourceDocument


# ---------- Banking ----------
class BankTransaction(SourceDocument):  # Represents single inflow/outflow on a bank statement
    ledger_source = SOURCE_BANK_TRANSACTION

    date = models.DateField()  # when it cleared
    description = models.CharField(max_length=400, blank=True, default="")
    # Bank the row came from, e.g. "Chase" (its GL account is "Bank - Chase")
    bank_name = models.CharField(max_length=200)
    # Payee / payer as printed on the statement
    counterparty = models.CharField(max_length=200, null=True, blank=True)
    # Categorized counter-account; blank leaves the row uncategorized
    gl_account = models.CharField(max_length=200, null=True, blank=True)

    # Exactly one side is filled: money out or money in
    amount_paid = models.DecimalField(max_digits=18, decimal_places=2, null=True, blank=True)
    amount_received = models.DecimalField(max_digits=18, decimal_places=2, null=True, blank=True)

    class Meta:
        # Optimizes queries for reconciliation
        # (find all txns for a bank or for a date)
        indexes = [
            models.Index(fields=["company", "bank_name"]),
            models.Index(fields=["company", "date"]),
        ]

    def __str__(self):
        amt = self.amount_paid if self.amount_paid else self.amount_received
        direction = "out" if self.amount_paid else "in"
        return f"{self.bank_name} - {self.date} - {amt} ({direction})"

    @property
    def bank_gl_account(self):
        return bank_gl_account_name(self.bank_name)

    def clean(self):  # auto-runs when you call full_clean() before saving
        paid = self.amount_paid or 0
        received = self.amount_received or 0
        if paid < 0 or received < 0:
            raise ValidationError("Bank amounts must be >= 0")
        # A statement row either pays or receives money, not both
        if (paid > 0) == (received > 0):
            raise ValidationError(
                "BankTransaction requires exactly one of amount paid or amount received"
            )
        if not (self.bank_name or "").strip():
            raise ValidationError("BankTransaction requires a bank name")

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)

    def as_source_document(self):
        return BankTxnDoc(
            doc_id=self.source_doc_id,
            date=self.date,
            description=self.description or "",
            bank_name=self.bank_name,
            counterparty=self.counterparty,
            gl_account=(self.gl_account or "").strip() or None,
            amount_paid=self.amount_paid or None,
            amount_received=self.amount_received or None,
        )
