from django.db import models

from ..domain.documents import SOURCE_PURCHASE_BILL, BillDoc
from ..managers import TenantManager
from .company import Company
from .source import BilledDocument, DocumentLineItem


class PurchaseBill(BilledDocument):  # Represents a vendor bill (what we owe)
    ledger_source = SOURCE_PURCHASE_BILL

    # Vendor by name; a matching Contact is created on posting if missing
    vendor_name = models.CharField(max_length=200)
    description = models.TextField(null=True, blank=True)

    class Meta:
        indexes = [
            models.Index(fields=["company", "number"]),
            models.Index(fields=["company", "vendor_name"]),
        ]
        # Vendors pick their own numbers, so uniqueness is per vendor
        constraints = [
            models.UniqueConstraint(
                fields=["company", "vendor_name", "number"],
                name="uq_purchase_bill_vendor_number"
            )
        ]

    def __str__(self):
        return f"Bill {self.number or self.pk} ({self.vendor_name})"

    def as_source_document(self):
        return BillDoc(
            doc_id=self.source_doc_id,
            date=self.date,
            number=self.number,
            vendor_name=self.vendor_name,
            total_amount=self.total_amount,
            lines=tuple(line.as_line_document() for line in self.lines.order_by("id")),
        )


class PurchaseBillLine(DocumentLineItem):  # One expense / purchase line on the bill
    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    bill = models.ForeignKey(
        PurchaseBill, on_delete=models.CASCADE, related_name="lines")

    parent_field = "bill"

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["company", "bill"]),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=0) & models.Q(unit_price__gte=0),
                name="pbl_non_negative_amounts",
            ),
        ]

    def __str__(self):
        return f"Bill line: {self.description} - {self.gl_account} - {self.amount}"
