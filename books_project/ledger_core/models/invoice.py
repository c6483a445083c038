from django.db import models

from ..domain.documents import SOURCE_SALES_INVOICE, InvoiceDoc
from ..managers import TenantManager
from .company import Company
from .source import BilledDocument, DocumentLineItem


class SalesInvoice(BilledDocument):  # Represents a customer invoice
    ledger_source = SOURCE_SALES_INVOICE

    # Customer by name; a matching Contact is created on posting if missing
    customer_name = models.CharField(max_length=200)
    description = models.TextField(null=True, blank=True)

    class Meta:
        # Optimize for fast lookups by invoice number or customer
        indexes = [
            models.Index(fields=["company", "number"]),
            models.Index(fields=["company", "customer_name"]),
        ]

        constraints = [
            # Within one company, each invoice number must be unique
            # Across companies, duplicates are allowed
            models.UniqueConstraint(
                fields=["company", "number"],
                name="uq_sales_invoice_company_number"
            )
        ]

    def __str__(self):
        # If no invoice number, fall back to database ID
        return f"Inv {self.number or self.pk}"

    def as_source_document(self):
        return InvoiceDoc(
            doc_id=self.source_doc_id,
            date=self.date,
            number=self.number,
            customer_name=self.customer_name,
            total_amount=self.total_amount,
            lines=tuple(line.as_line_document() for line in self.lines.order_by("id")),
        )


class SalesInvoiceLine(DocumentLineItem):  # One product/service sold on the invoice
    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    invoice = models.ForeignKey(
        SalesInvoice, on_delete=models.CASCADE, related_name="lines")

    parent_field = "invoice"

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        # Speed up queries like “all lines for this invoice.”
        indexes = [
            models.Index(fields=["company", "invoice"]),
        ]

        # Ensure quantity & unit_price are never negative
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=0) & models.Q(unit_price__gte=0),
                name="sil_non_negative_amounts",
            ),
        ]

    def __str__(self):
        return f"Invoice line: {self.description} - {self.gl_account} - {self.amount}"
